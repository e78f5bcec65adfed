"""
变更检测

计算包源目录的内容指纹，并与构建缓存比较决定是否需要重新构建。
"""

import os
from pathlib import Path
from typing import List, Tuple

from ..utils.logging import debug, LogStage
from .cache import BuildCache
from .header import HashCalculator

FINGERPRINT_ALGORITHM = "md5"

# 空目录的指纹，不会与任何真实摘要相同
EMPTY_FINGERPRINT = ""


def list_source_files(directory: Path, recursive: bool = True) -> List[Tuple[str, Path]]:
    """列出目录下的文件

    Args:
        directory: 源目录
        recursive: 是否包含子目录中的文件

    Returns:
        List[Tuple[str, Path]]: (POSIX 相对路径, 绝对路径)，按小写相对路径排序

    Raises:
        IOError: 目录不存在或无法读取
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise IOError(f"源目录不存在: {directory}")

    files: List[Tuple[str, Path]] = []
    pending = [directory]

    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as it:
                for item in it:
                    path = Path(item.path)
                    if item.is_dir():
                        if recursive:
                            pending.append(path)
                    elif item.is_file():
                        files.append((path.relative_to(directory).as_posix(), path))
        except OSError as e:
            raise IOError(f"无法读取目录 {current}: {e}") from e

    # 先按小写路径排序，大小写不同的同名文件再按原始路径区分
    files.sort(key=lambda item: (item[0].lower(), item[0]))
    return files


def compute_fingerprint(directory: Path, recursive: bool = True) -> str:
    """计算目录内容指纹

    依次把每个文件的小写相对路径（UTF-8）与文件内容送入同一个摘要，
    中间不加分隔符。空目录返回 EMPTY_FINGERPRINT。

    Raises:
        IOError: 枚举或读取失败
    """
    files = list_source_files(directory, recursive)
    if not files:
        return EMPTY_FINGERPRINT

    calculator = HashCalculator(FINGERPRINT_ALGORITHM)
    for relative_path, path in files:
        calculator.update(relative_path.lower().encode('utf-8'))
        calculator.update_from_file(path)

    return calculator.hexdigest()


class ChangeDetector:
    """基于构建缓存的变更检测器"""

    def __init__(self, cache: BuildCache):
        self.cache = cache

    def check(self, definition) -> bool:
        """判断包是否需要重新构建

        指纹缺失或不同即视为过期，此时缓存会被更新为新指纹。
        只包含文件条目的包只对源目录顶层计算指纹。

        Args:
            definition: PackageDefinition

        Returns:
            bool: True 表示需要构建
        """
        fingerprint = compute_fingerprint(
            definition.base_path,
            recursive=definition.config.has_directory_entries,
        )
        cached = self.cache.get(definition.source_name)

        if cached is not None and cached == fingerprint:
            debug(f"包 '{definition.source_name}' 未变化 ({fingerprint or '<empty>'})", stage=LogStage.CHECK)
            return False

        if cached is None:
            debug(f"新包 '{definition.source_name}' 加入缓存", stage=LogStage.CHECK)
        else:
            debug(
                f"包 '{definition.source_name}' 已变化: {cached or '<empty>'} -> {fingerprint or '<empty>'}",
                stage=LogStage.CHECK,
            )

        self.cache.update(definition.source_name, fingerprint)
        return True
