"""
打包步骤模块

逐个检查包是否变化，只重新构建过期的包。
"""

from typing import Optional

from ...utils import format_size
from ...utils.logging import info, success, error, LogStage
from modpack.build.archive import ArchiveError
from modpack.build.build_context import BuildContext, BuildError
from modpack.build.fingerprint import ChangeDetector
from modpack.build.package_builder import PackageBuilder
from .build_step import BuildStep


class PackageStep(BuildStep):
    """打包步骤"""

    def __init__(self, package_builder: Optional[PackageBuilder] = None):
        super().__init__("package", "检查并构建包")
        self.package_builder = package_builder or PackageBuilder()

    def get_progress_range(self) -> tuple[int, int]:
        return (10, 85)

    def execute(self, context: BuildContext) -> None:
        """检查并构建每个包"""
        detector = ChangeDetector(context.cache)
        progress_start, progress_end = self.get_progress_range()
        total = len(context.definitions)

        for position, definition in enumerate(context.definitions):
            current = progress_start + int(position / max(1, total) * (progress_end - progress_start))
            context.report_progress("构建包", current, definition.artifact_name)

            try:
                if not detector.check(definition):
                    context.skipped.append(definition)
                    continue

                output_path = self.package_builder.build(definition, context.output_dir)
            except BuildError as e:
                error(f"构建包 '{definition.source_name}' 失败: {e}", stage=LogStage.PACKAGE)
                raise
            except (ArchiveError, OSError) as e:
                error(f"构建包 '{definition.source_name}' 失败: {e}", stage=LogStage.PACKAGE)
                raise BuildError(f"构建包 '{definition.source_name}' 失败: {e}") from e

            context.built.append(definition)
            context.build_stats['output_size'] += output_path.stat().st_size

        context.build_stats['built_packages'] = len(context.built)
        context.build_stats['skipped_packages'] = len(context.skipped)

        context.report_progress("构建包", progress_end, f"已构建 {len(context.built)} 个包")
        success(
            f"打包完成 - 构建 {len(context.built)} 个, 跳过 {len(context.skipped)} 个",
            stage=LogStage.PACKAGE,
        )
        if context.built:
            info(f"  输出大小: {format_size(context.build_stats['output_size'])}")
