"""
Inspect 命令实现

读取 .mods 包的头部，还原主密钥并列出归档成员（不校验归档完整性）。
"""

import io
import json
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

import pyzipper
import typer
from rich.console import Console
from rich.table import Table

from ...build.header import read_package_layout
from ...utils import format_size


console = Console()


def inspect_command(
    package: str = typer.Argument(..., help=".mods 包文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式"),
) -> None:
    """查看 .mods 包信息

    示例:
        modpack inspect dist/core.mods
        modpack inspect dist/core.mods --json
    """
    package_path = Path(package)

    if not package_path.is_file():
        console.print(f"[red]包文件不存在: {package_path}[/red]")
        raise typer.Exit(1)

    try:
        info = read_package_info(package_path)
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        console.print(f"[red]读取包失败: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps(info, ensure_ascii=False, indent=2))
    else:
        _display_package_info(info)


def read_package_info(package_path: Path) -> Dict[str, Any]:
    """读取包头部与成员列表

    Raises:
        ValueError: 不是有效的 .mods 包
        zipfile.BadZipFile: 归档数据损坏
    """
    with open(package_path, 'rb') as f:
        layout = read_package_layout(f)
        payload = f.read()

    header = layout.header
    built_at = datetime.fromtimestamp(header.compilation_timestamp / 1000, tz=timezone.utc)

    members = []
    with pyzipper.AESZipFile(io.BytesIO(payload)) as zf:
        if layout.key:
            zf.setpassword(layout.key)
        for item in zf.infolist():
            members.append({
                'name': item.filename,
                'is_dir': item.is_dir(),
                'size': item.file_size,
                'compressed_size': item.compress_size,
                'encrypted': bool(item.flag_bits & 0x1),
            })

    return {
        'file': str(package_path),
        'magic': f"0x{header.magic:08X}",
        'encryption_enabled': header.encryption_enabled,
        'compilation_timestamp': header.compilation_timestamp,
        'built_at': built_at.isoformat(),
        'key_length': header.key_length,
        'key': layout.key.decode('ascii') if layout.key else None,
        'payload_offset': layout.payload_offset,
        'payload_size': len(payload),
        'members': members,
    }


def _display_package_info(info: Dict[str, Any]) -> None:
    """显示包信息（人类可读格式）"""
    console.print("[bold]包信息[/bold]")
    console.print()

    basic_table = Table(title="头部")
    basic_table.add_column("属性", style="cyan")
    basic_table.add_column("值", style="green")
    basic_table.add_row("文件", info['file'])
    basic_table.add_row("Magic", info['magic'])
    basic_table.add_row("加密", "是" if info['encryption_enabled'] else "否")
    basic_table.add_row("构建时间", info['built_at'])
    basic_table.add_row("密钥长度", str(info['key_length']))
    if info['key']:
        basic_table.add_row("主密钥", info['key'])
    basic_table.add_row("归档偏移", str(info['payload_offset']))
    basic_table.add_row("归档大小", format_size(info['payload_size']))
    console.print(basic_table)
    console.print()

    members = info['members']
    files_table = Table(title=f"归档成员 ({len(members)} 个)")
    files_table.add_column("路径", style="cyan")
    files_table.add_column("大小", style="green")
    files_table.add_column("压缩后", style="yellow")
    files_table.add_column("加密", style="magenta")

    for member in members:
        files_table.add_row(
            member['name'],
            "-" if member['is_dir'] else format_size(member['size']),
            "-" if member['is_dir'] else format_size(member['compressed_size']),
            "是" if member['encrypted'] else "否",
        )

    console.print(files_table)
