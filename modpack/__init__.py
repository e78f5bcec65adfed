"""
modpack - 游戏模组内容包增量构建工具

Incremental builder for encrypted game-mod content packages.
"""

__version__ = "0.1.0"

# 导出主要 API
from .config.schema import BuildConfig, PackageConfig
from .build.builder import Builder, BuildResult

__all__ = ["BuildConfig", "PackageConfig", "Builder", "BuildResult", "__version__"]
