"""
包解析步骤模块

加载每个声明包的清单，并展开为待构建的包定义。
"""

from typing import Optional

from ...config.loader import MANIFEST_FILE_NAME, load_package_config
from ...utils.logging import info, debug, LogStage
from modpack.build.build_context import BuildContext
from modpack.build.resolver import PackageResolver, PackageSource
from .build_step import BuildStep


class ResolveStep(BuildStep):
    """包解析步骤"""

    def __init__(self, resolver: Optional[PackageResolver] = None):
        super().__init__("resolve", "解析包清单")
        self.resolver = resolver or PackageResolver()

    def get_progress_range(self) -> tuple[int, int]:
        return (0, 10)

    def execute(self, context: BuildContext) -> None:
        """加载清单并展开包

        清单缺失时抛出 ConfigurationError，后续的包不再处理。
        """
        progress_start, progress_end = self.get_progress_range()
        context.report_progress("解析包", progress_start, "加载包清单...")

        sources = []
        for package in context.config.packages:
            base_path = context.source_root / package.source_name
            manifest_path = base_path / MANIFEST_FILE_NAME
            debug(f"加载清单: {manifest_path}", stage=LogStage.RESOLVE)

            config = load_package_config(manifest_path, package.source_name)
            sources.append(PackageSource(package=package, config=config, base_path=base_path))

        context.definitions = self.resolver.resolve(sources)
        context.build_stats['total_packages'] = len(context.definitions)

        info(f"待检查的包: {len(context.definitions)} 个", stage=LogStage.RESOLVE)
        context.report_progress("解析包", progress_end, f"共 {len(context.definitions)} 个包")
