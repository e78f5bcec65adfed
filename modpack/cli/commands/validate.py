"""
Validate 命令实现

验证构建配置及其引用的所有包清单（包括自动拆分布局），不执行构建。
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import typer
from rich.console import Console
from rich.table import Table

from ...config import (
    load_config,
    load_package_config,
    ConfigurationError,
    ConfigValidationError,
    MANIFEST_FILE_NAME,
)
from ...utils.logging import set_log_level, OutputLevel


console = Console()


def validate_command(
    config_file: str = typer.Option(..., "--input", "-i", help="构建配置文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式的结果"),
) -> None:
    """验证构建配置

    检查构建配置和每个包清单的语法与语义正确性。

    示例:
        modpack validate -i build.yaml
        modpack validate -i build.yaml --json
    """
    config_path = Path(config_file)

    # 解析器的过程日志不混入验证结果
    set_log_level(OutputLevel.ERROR)

    if not config_path.exists():
        console.print(f"[red]配置文件不存在: {config_path}[/red]")
        raise typer.Exit(1)

    errors = collect_errors(config_path)

    if json_output:
        data = {
            "file": str(config_path),
            "valid": not errors,
            "errors": errors,
            "error_count": len(errors),
        }
        typer.echo(json.dumps(data, ensure_ascii=False, default=str, indent=2))
        if errors:
            raise typer.Exit(1)
        return

    if not errors:
        console.print("[green]✓ 配置验证通过[/green]")
        return

    console.print(f"[red]配置验证失败 ({len(errors)} 个错误):[/red]")
    console.print()

    table = Table(title="验证错误")
    table.add_column("来源", style="cyan", no_wrap=True)
    table.add_column("位置", style="cyan")
    table.add_column("错误信息", style="red")

    for error in errors:
        location = " -> ".join(str(item) for item in error.get('loc', []))
        table.add_row(
            error.get('source', ''),
            location or "根级别",
            error.get('msg', '未知错误'),
        )

    console.print(table)
    raise typer.Exit(1)


def collect_errors(config_path: Path) -> List[Dict[str, Any]]:
    """收集构建配置与包清单中的所有错误

    构建配置本身无效时不再检查包清单。
    """
    from ...build.resolver import PackageResolver, PackageSource
    from ...build.build_context import BuildError

    errors: List[Dict[str, Any]] = []
    source = config_path.name

    try:
        config = load_config(config_path)
    except ConfigValidationError as e:
        return [_error(source, err.get('msg', ''), err.get('loc', [])) for err in e.errors]
    except ConfigurationError as e:
        return [_error(source, str(e))]

    src_root = config_path.parent / "src"
    sources = []
    for package in config.packages:
        manifest_path = src_root / package.source_name / MANIFEST_FILE_NAME
        try:
            manifest = load_package_config(manifest_path, package.source_name)
        except ConfigValidationError as e:
            errors.extend(
                _error(package.source_name, err.get('msg', ''), err.get('loc', []))
                for err in e.errors
            )
            continue
        except ConfigurationError as e:
            errors.append(_error(package.source_name, str(e)))
            continue
        sources.append(PackageSource(package=package, config=manifest, base_path=manifest_path.parent))

    if errors:
        return errors

    try:
        PackageResolver().resolve(sources)
    except (ConfigurationError, BuildError, OSError) as e:
        errors.append(_error("resolve", str(e)))

    return errors


def _error(source: str, message: str, loc: Any = ()) -> Dict[str, Any]:
    return {'source': source, 'loc': list(loc), 'msg': message}
