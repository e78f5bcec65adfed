"""
构建器主类

负责整个构建流程的协调，使用管道模式组织构建步骤。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config.schema import BuildConfig
from .build_pipeline import BuildPipeline
from .build_context import BuildError, ProgressCallback


@dataclass
class BuildResult:
    """构建结果"""
    success: bool
    output_dir: Optional[Path] = None
    total_packages: int = 0
    built_packages: int = 0
    skipped_packages: int = 0
    output_size: int = 0
    index_path: Optional[Path] = None
    build_time: Optional[float] = None
    error: Optional[str] = None


class Builder:
    """包构建器门面

    使用管道模式协调构建步骤，提供统一的构建接口。
    """

    def __init__(self, pipeline: Optional[BuildPipeline] = None):
        self.pipeline = pipeline or BuildPipeline()

    def build(
        self,
        config: BuildConfig,
        config_dir: Path,
        output_dir: Path,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildResult:
        """执行一次完整构建

        Args:
            config: 构建配置
            config_dir: 构建配置所在目录
            output_dir: 输出目录
            progress_callback: 进度回调函数

        Returns:
            BuildResult: 构建结果，失败时 success 为 False 并带有错误信息
        """
        try:
            context = self.pipeline.execute(config, config_dir, output_dir, progress_callback)
        except BuildError as e:
            return BuildResult(
                success=False,
                output_dir=Path(output_dir),
                error=str(e),
            )

        stats = context.build_stats
        return BuildResult(
            success=True,
            output_dir=context.output_dir,
            total_packages=stats['total_packages'],
            built_packages=stats['built_packages'],
            skipped_packages=stats['skipped_packages'],
            output_size=stats['output_size'],
            index_path=context.index_path,
            build_time=stats['end_time'] - stats['start_time'],
        )
