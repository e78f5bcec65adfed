"""
索引生成步骤模块

构建配置开启 generate_index 时写出 index.json。
"""

from typing import Optional

from ...utils.logging import debug, LogStage
from modpack.build.build_context import BuildContext
from modpack.build.index import IndexGenerator
from .build_step import BuildStep


class IndexStep(BuildStep):
    """索引生成步骤"""

    def __init__(self, generator: Optional[IndexGenerator] = None):
        super().__init__("index", "生成构建索引")
        self.generator = generator or IndexGenerator()

    def get_progress_range(self) -> tuple[int, int]:
        return (85, 95)

    def execute(self, context: BuildContext) -> None:
        if not context.config.generate_index:
            debug("未开启 generate_index，跳过索引生成", stage=LogStage.INDEX)
            return

        progress_start, progress_end = self.get_progress_range()
        context.report_progress("生成索引", progress_start, "计算校验和...")

        context.index = self.generator.generate(context.definitions, context.output_dir)
        context.index_path = self.generator.write(context.index, context.output_dir)

        context.report_progress("生成索引", progress_end, context.index_path.name)
