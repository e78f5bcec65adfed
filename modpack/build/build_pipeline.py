"""
构建管道模块

使用管道模式协调构建步骤的执行。
"""

import time
from pathlib import Path
from typing import List, Optional

from ..config.schema import BuildConfig
from ..utils.logging import info, success, error, debug, LogStage
from .build_context import BuildContext, BuildError, ProgressCallback
from .cache import BuildCache
from .steps.build_step import BuildStep
from .steps.resolve_step import ResolveStep
from .steps.package_step import PackageStep
from .steps.index_step import IndexStep
from .steps.cache_step import CacheStep


class BuildPipeline:
    """构建管道，负责协调构建步骤的执行"""

    def __init__(self):
        """初始化构建管道"""
        self._steps: List[BuildStep] = []

        # 初始化默认构建步骤
        self._init_default_steps()

    def _init_default_steps(self):
        """初始化默认的构建步骤

        索引在缓存写回之前生成，任一步骤失败时两者都不会落盘。
        """
        self._steps = [
            ResolveStep(),
            PackageStep(),
            IndexStep(),
            CacheStep(),
        ]

    def add_step(self, step: BuildStep, position: Optional[int] = None):
        """添加构建步骤"""
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str):
        """移除构建步骤"""
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[BuildStep]:
        """获取所有构建步骤"""
        return self._steps.copy()

    def execute(
        self,
        config: BuildConfig,
        config_dir: Path,
        output_dir: Path,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildContext:
        """执行构建管道

        Args:
            config: 构建配置
            config_dir: 构建配置所在目录（包含 src/ 与缓存文件）
            output_dir: 输出目录
            progress_callback: 进度回调函数

        Returns:
            BuildContext: 构建上下文，包含所有构建结果

        Raises:
            BuildError: 构建失败
        """
        start_time = time.time()
        config_dir = Path(config_dir)
        output_dir = Path(output_dir)

        try:
            info(f"开始构建: {config_dir} -> {output_dir}", stage=LogStage.INIT)
            debug(f"构建配置: packages={len(config.packages)} generate_index={config.generate_index}", stage=LogStage.INIT)

            context = BuildContext(
                config=config,
                config_dir=config_dir,
                output_dir=output_dir,
                cache=BuildCache.for_config_dir(config_dir),
                progress_callback=progress_callback,
            )
            context.build_stats['start_time'] = start_time

            # 依次执行每个构建步骤
            for step in self._steps:
                info(f"执行步骤: {step.description}", stage=LogStage.INIT)
                step.execute(context)

            context.build_stats['end_time'] = time.time()
            build_time = context.build_stats['end_time'] - context.build_stats['start_time']

            success(
                f"构建完成: {context.build_stats['built_packages']} 个已构建, "
                f"{context.build_stats['skipped_packages']} 个未变化",
                stage=LogStage.DONE,
            )
            info(f"构建时间: {build_time:.1f}秒")

            return context

        except Exception as e:
            build_time = time.time() - start_time
            error_msg = str(e)
            error(f"构建失败 ({build_time:.1f}秒): {error_msg}", stage=LogStage.DONE)

            # 重新抛出异常，让调用者处理
            raise BuildError(f"构建失败: {error_msg}") from e

    def validate_pipeline(self) -> List[str]:
        """验证构建管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        errors = []

        if not self._steps:
            errors.append("构建管道中没有步骤")
            return errors

        # 检查步骤的进度范围是否连续
        prev_end = 0
        for step in self._steps:
            start, end = step.get_progress_range()
            if start != prev_end:
                errors.append(f"步骤 '{step.name}' 的进度范围不连续: 期望起始 {prev_end}%, 实际 {start}%")
            if start >= end:
                errors.append(f"步骤 '{step.name}' 的进度范围无效: {start}% - {end}%")
            prev_end = end

        if prev_end != 100:
            errors.append(f"构建管道的总进度范围不是100%: {prev_end}%")

        return errors
