"""
Build 命令实现

增量构建内容包的核心命令。
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ...config import load_config, ConfigurationError, ConfigValidationError
from ...utils import ensure_directory, format_size
from ...utils.logging import set_log_level, set_log_file, OutputLevel


console = Console()


def build_command(
    config_file: str = typer.Option(..., "--input", "-i", help="构建配置文件路径"),
    output: str = typer.Option(..., "--output", "-o", help="输出目录"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """构建内容包

    读取构建配置，只重新构建源内容发生变化的包。

    示例:
        modpack build -i build.yaml -o dist
        modpack build -i build.json -o dist --verbose --log-file build.log
    """
    from ...build.builder import Builder

    config_path = Path(config_file)
    output_dir = Path(output)

    # 初始化日志：在任何输出前设置
    set_log_level(OutputLevel.DEBUG if verbose else OutputLevel.INFO)

    if log_file:
        try:
            set_log_file(log_file)
        except OSError:
            console.print(f"[yellow]无法写入日志文件: {log_file}[/yellow]")

    try:
        console.print(f"[cyan]正在加载构建配置[/cyan]: {config_path}")
        config_obj = load_config(config_path)
    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors())
        raise typer.Exit(1)
    except ConfigurationError as e:
        console.print(f"[red]配置错误[/red]: {e}")
        raise typer.Exit(1)

    try:
        ensure_directory(output_dir)
    except OSError as e:
        console.print(f"[red]无法创建输出目录 {output_dir}[/red]: {e}")
        raise typer.Exit(1)

    builder = Builder()
    result = builder.build(config_obj, config_path.parent, output_dir)

    if not result.success:
        console.print(f"[red]✗ 构建失败[/red]: {result.error}")
        if log_file:
            console.print(f"[yellow]请检查日志文件 {log_file} 获取详细信息。[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]✓ 构建完成[/green]: {output_dir}")

    table = Table(title="构建摘要")
    table.add_column("项目", style="cyan")
    table.add_column("值", style="green")
    table.add_row("包总数", str(result.total_packages))
    table.add_row("已构建", str(result.built_packages))
    table.add_row("未变化", str(result.skipped_packages))
    table.add_row("输出大小", format_size(result.output_size))
    if result.index_path:
        table.add_row("索引文件", str(result.index_path))
    table.add_row("耗时", f"{result.build_time or 0:.1f}秒")
    console.print(table)
