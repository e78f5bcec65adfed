"""
路径工具

提供路径处理相关的工具函数。
"""

from pathlib import Path, PurePosixPath
from typing import Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """确保目录存在

    Args:
        path: 目录路径

    Returns:
        Path: 目录路径
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def to_archive_path(path: Union[str, Path]) -> str:
    """转换为归档内路径（统一使用正斜杠，去掉开头的 ./ 与 /）"""
    normalized = str(path).replace('\\', '/')
    while normalized.startswith('./'):
        normalized = normalized[2:]
    return normalized.lstrip('/')


def archive_parent(game_path: str) -> str:
    """获取归档路径的父目录（没有父目录时返回空字符串）"""
    parent = str(PurePosixPath(to_archive_path(game_path)).parent)
    return '' if parent == '.' else parent


def has_path_separator(path: str) -> bool:
    """路径中是否包含分隔符（不区分平台）"""
    return '/' in path or '\\' in path


def flatten_name(relative_path: Union[str, Path]) -> str:
    """把相对路径压平成发布名：分隔符与点都替换为下划线

    示例: ``textures/ui.v2`` -> ``textures_ui_v2``
    """
    return to_archive_path(relative_path).replace('/', '_').replace('.', '_')


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.1f} {units[unit_index]}"


def is_safe_filename(filename: str) -> bool:
    """检查文件名是否安全（可作为输出文件名）

    Args:
        filename: 文件名

    Returns:
        bool: 是否安全
    """
    if not filename or filename in ('.', '..'):
        return False

    illegal_chars = '<>:"/\\|?*'
    if any(char in filename for char in illegal_chars):
        return False

    if any(ord(char) < 32 for char in filename):
        return False

    # Windows 保留名称
    reserved_names = {
        'CON', 'PRN', 'AUX', 'NUL',
        'COM1', 'COM2', 'COM3', 'COM4', 'COM5', 'COM6', 'COM7', 'COM8', 'COM9',
        'LPT1', 'LPT2', 'LPT3', 'LPT4', 'LPT5', 'LPT6', 'LPT7', 'LPT8', 'LPT9'
    }
    if filename.split('.')[0].upper() in reserved_names:
        return False

    return len(filename) <= 255
