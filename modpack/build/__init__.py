"""构建服务模块

提供包解析、变更检测、打包与索引生成功能。
"""

from .builder import Builder, BuildResult
from .build_context import BuildContext, BuildError, MissingDirectoryError, MissingFileError
from .build_pipeline import BuildPipeline
from .archive import ArchiveError, ArchiveWriter, ZipArchiveWriter
from .cache import BuildCache, CACHE_FILE_NAME
from .fingerprint import ChangeDetector, compute_fingerprint, EMPTY_FINGERPRINT
from .header import (
    PackageHeader,
    PackageLayout,
    HashCalculator,
    read_package_layout,
    generate_key,
    obfuscate_key,
    unobfuscate_key,
)
from .index import BuildIndex, BuildIndexEntry, IndexGenerator, INDEX_FILE_NAME
from .package_builder import PackageBuilder
from .resolver import PackageDefinition, PackageResolver, PackageSource

__all__ = [
    # 主构建器
    "Builder",
    "BuildResult",
    "BuildContext",
    "BuildPipeline",

    # 异常
    "BuildError",
    "MissingFileError",
    "MissingDirectoryError",
    "ArchiveError",

    # 包解析
    "PackageDefinition",
    "PackageResolver",
    "PackageSource",

    # 变更检测与缓存
    "BuildCache",
    "CACHE_FILE_NAME",
    "ChangeDetector",
    "compute_fingerprint",
    "EMPTY_FINGERPRINT",

    # 打包
    "PackageBuilder",
    "ArchiveWriter",
    "ZipArchiveWriter",
    "PackageHeader",
    "PackageLayout",
    "HashCalculator",
    "read_package_layout",
    "generate_key",
    "obfuscate_key",
    "unobfuscate_key",

    # 索引
    "BuildIndex",
    "BuildIndexEntry",
    "IndexGenerator",
    "INDEX_FILE_NAME",
]
