"""
构建上下文模块

定义一次构建运行中的共享数据结构和异常类。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from ..config.schema import BuildConfig
from .cache import BuildCache

if TYPE_CHECKING:
    from .index import BuildIndex
    from .resolver import PackageDefinition

# 进度回调类型: (阶段, 当前, 总数, 消息)
ProgressCallback = Callable[[str, int, int, str], None]


@dataclass
class BuildContext:
    """构建上下文，由构建管道独占持有，按步骤顺序填充"""
    config: BuildConfig
    config_dir: Path
    output_dir: Path
    cache: BuildCache
    progress_callback: Optional[ProgressCallback] = None

    # 构建过程中生成的数据
    definitions: List['PackageDefinition'] = field(default_factory=list)
    built: List['PackageDefinition'] = field(default_factory=list)
    skipped: List['PackageDefinition'] = field(default_factory=list)
    index: Optional['BuildIndex'] = None
    index_path: Optional[Path] = None

    # 统计信息
    build_stats: Dict[str, Any] = field(default_factory=lambda: {
        'start_time': 0.0,
        'end_time': 0.0,
        'total_packages': 0,
        'built_packages': 0,
        'skipped_packages': 0,
        'output_size': 0,
    })

    @property
    def source_root(self) -> Path:
        """包源根目录 <config_dir>/src"""
        return self.config_dir / "src"

    def report_progress(self, stage: str, current: int, message: str = "") -> None:
        if self.progress_callback:
            self.progress_callback(stage, current, 100, message)


class BuildError(Exception):
    """构建错误"""
    pass


class MissingFileError(BuildError):
    """清单中声明的源文件不存在"""
    pass


class MissingDirectoryError(BuildError):
    """清单中声明的源目录不存在"""
    pass
