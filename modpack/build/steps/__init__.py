"""构建步骤"""

from .build_step import BuildStep
from .resolve_step import ResolveStep
from .package_step import PackageStep
from .index_step import IndexStep
from .cache_step import CacheStep

__all__ = [
    "BuildStep",
    "ResolveStep",
    "PackageStep",
    "IndexStep",
    "CacheStep",
]
