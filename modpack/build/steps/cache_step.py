"""
缓存写回步骤模块

整批构建成功后把构建缓存写回磁盘。
"""

from ...utils.logging import info, LogStage
from modpack.build.build_context import BuildContext
from .build_step import BuildStep


class CacheStep(BuildStep):
    """缓存写回步骤"""

    def __init__(self):
        super().__init__("cache", "写回构建缓存")

    def get_progress_range(self) -> tuple[int, int]:
        return (95, 100)

    def execute(self, context: BuildContext) -> None:
        context.cache.flush()
        info(f"缓存已更新: {context.cache.path} ({len(context.cache)} 条)", stage=LogStage.CACHE)
        context.report_progress("写回缓存", self.get_progress_range()[1], "完成")
