"""通用工具模块"""

from .logging import (
    configure_logging,
    get_stage_logger,
    StageLogger,
    LogStage,
    OutputLevel,
)

from .paths import (
    ensure_directory,
    to_archive_path,
    archive_parent,
    has_path_separator,
    flatten_name,
    format_size,
    is_safe_filename,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "get_stage_logger",
    "StageLogger",
    "LogStage",
    "OutputLevel",

    # 路径相关
    "ensure_directory",
    "to_archive_path",
    "archive_parent",
    "has_path_separator",
    "flatten_name",
    "format_size",
    "is_safe_filename",
]
