"""配置和 Schema 模块

提供构建配置与包清单的加载、验证和保存功能。
"""

from .schema import (
    AutoSplitMode,
    BuildConfig,
    BuildConfigPackage,
    DirectoryEntry,
    FileEntry,
    PackageConfig,
    PackageEntry,
)
from .loader import (
    MANIFEST_FILE_NAME,
    ConfigLoader,
    ConfigValidationError,
    ConfigurationError,
    load_config,
    load_package_config,
    validate_config,
    validate_config_with_result,
    save_config,
    config_loader,
)

__all__ = [
    # 模型
    "AutoSplitMode",
    "BuildConfig",
    "BuildConfigPackage",
    "DirectoryEntry",
    "FileEntry",
    "PackageConfig",
    "PackageEntry",

    # 加载器
    "MANIFEST_FILE_NAME",
    "ConfigLoader",

    # 异常类
    "ConfigurationError",
    "ConfigValidationError",

    # 便捷函数
    "load_config",
    "load_package_config",
    "validate_config",
    "validate_config_with_result",
    "save_config",

    # 单例
    "config_loader",
]
