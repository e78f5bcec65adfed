"""
modpack CLI 主入口

提供命令行接口，支持 build/validate/inspect 等命令。
"""

from typing import Optional

import typer
from rich.console import Console

from .. import __version__
from .commands import build, validate, inspect


# 创建主应用
app = typer.Typer(
    name="modpack",
    help="modpack - 游戏模组内容包增量构建工具",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# 控制台输出
console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"modpack v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
) -> None:
    """modpack - 游戏模组内容包增量构建工具

    使用 --help 查看可用命令的详细信息。
    """
    pass


# 注册子命令
app.command("build", help="构建内容包")(build.build_command)
app.command("validate", help="验证构建配置与包清单")(validate.validate_command)
app.command("inspect", help="查看 .mods 包信息")(inspect.inspect_command)


@app.command("example")
def example_command(
    output: str = typer.Option(
        "build.yaml",
        "--output", "-o",
        help="输出配置文件路径"
    )
) -> None:
    """生成示例构建配置"""
    from ..config import save_config
    from ..config.schema import BuildConfig, BuildConfigPackage

    config = BuildConfig(
        packages=[
            BuildConfigPackage(source_name="core", distribution_name="core"),
            BuildConfigPackage(source_name="textures", distribution_name="textures"),
        ],
        generate_index=True,
    )

    try:
        save_config(config, output)
        console.print(f"✓ 示例配置文件已生成: [green]{output}[/green]")
        console.print("在配置文件同级的 src/<source_name>/config.json 中编写包清单，然后运行:")
        console.print(f"  [cyan]modpack build -i {output} -o dist[/cyan]")
    except Exception as e:
        console.print(f"[red]生成示例配置失败: {e}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
