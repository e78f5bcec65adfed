"""
日志工具 - 统一输出门面

带时间戳与阶段标记的统一输出接口，底层使用 Rich Console。
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from rich.console import Console
from rich.markup import escape


class OutputLevel:
    """输出级别常量"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


_LEVEL_ORDER = {
    OutputLevel.DEBUG: 0,
    OutputLevel.INFO: 1,
    OutputLevel.SUCCESS: 1,
    OutputLevel.WARNING: 2,
    OutputLevel.ERROR: 3,
}

_LEVEL_STYLES = {
    OutputLevel.DEBUG: "dim",
    OutputLevel.INFO: "default",
    OutputLevel.SUCCESS: "green",
    OutputLevel.WARNING: "yellow",
}


class LogStage:
    """日志阶段标记"""
    INIT = "INIT"
    RESOLVE = "RESOLVE"
    CHECK = "CHECK"
    PACKAGE = "PACKAGE"
    ARCHIVE = "ARCHIVE"
    INDEX = "INDEX"
    CACHE = "CACHE"
    DONE = "DONE"
    INSPECT = "INSPECT"


class OutputFacade:
    """输出门面

    所有构建输出都经由此处：控制台（彩色）与可选的日志文件。
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._level = OutputLevel.INFO
        self._file_handle: Optional[Any] = None
        self._console = Console(highlight=False, log_path=False)
        self._error_console = Console(stderr=True, highlight=False, log_path=False)

    def set_level(self, level: str) -> None:
        """设置输出级别"""
        with self._lock:
            if level in _LEVEL_ORDER and level != OutputLevel.SUCCESS:
                self._level = level

    @property
    def level(self) -> str:
        return self._level

    def set_log_file(self, file_path: Union[str, Path]) -> None:
        """设置日志文件（追加写入）"""
        with self._lock:
            self._close_file()
            log_path = Path(file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(log_path, 'a', encoding='utf-8')

    def emit(self, level: str, message: str, stage: Optional[str] = None) -> None:
        """输出一条消息"""
        if _LEVEL_ORDER.get(level, 1) < _LEVEL_ORDER[self._level]:
            return

        with self._lock:
            timestamp = datetime.now().strftime("%H:%M:%S")
            stage_part = f" [cyan]{stage}[/cyan]" if stage else ""

            if level == OutputLevel.ERROR:
                self._error_console.print(
                    f"[dim]{timestamp}[/dim] [bold red]ERROR[/bold red]{stage_part} {escape(message)}",
                    markup=True,
                )
            else:
                self._console.print(
                    f"[dim]{timestamp}[/dim] [bold]{level}[/bold]{stage_part} {escape(message)}",
                    style=_LEVEL_STYLES.get(level, "default"),
                    markup=True,
                )

            self._write_to_file(level, message, stage)

    def _write_to_file(self, level: str, message: str, stage: Optional[str]) -> None:
        if not self._file_handle:
            return
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        prefix = f"[{timestamp}] [{level}]"
        if stage:
            prefix += f" [{stage}]"
        self._file_handle.write(f"{prefix} {message}\n")
        self._file_handle.flush()

    def _close_file(self) -> None:
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None

    def close(self) -> None:
        """关闭输出门面"""
        with self._lock:
            self._close_file()


_output_facade: Optional[OutputFacade] = None


def get_output_facade() -> OutputFacade:
    """获取全局输出门面实例"""
    global _output_facade
    if _output_facade is None:
        _output_facade = OutputFacade()
    return _output_facade


def debug(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(OutputLevel.DEBUG, message, stage)


def info(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(OutputLevel.INFO, message, stage)


def success(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(OutputLevel.SUCCESS, message, stage)


def warning(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(OutputLevel.WARNING, message, stage)


def error(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(OutputLevel.ERROR, message, stage)


def set_log_level(level: str) -> None:
    """设置全局日志级别"""
    get_output_facade().set_level(level)


def set_log_file(file_path: Union[str, Path]) -> None:
    """设置全局日志文件"""
    get_output_facade().set_log_file(file_path)


def close_logger() -> None:
    """关闭日志系统"""
    global _output_facade
    if _output_facade:
        _output_facade.close()
        _output_facade = None


class StageLogger:
    """绑定到固定阶段的日志器"""

    def __init__(self, stage: str):
        self.stage = stage

    def debug(self, message: str) -> None:
        debug(message, self.stage)

    def info(self, message: str) -> None:
        info(message, self.stage)

    def success(self, message: str) -> None:
        success(message, self.stage)

    def warning(self, message: str) -> None:
        warning(message, self.stage)

    def error(self, message: str) -> None:
        error(message, self.stage)


def get_stage_logger(stage: str) -> StageLogger:
    """获取阶段日志器"""
    return StageLogger(stage)


def configure_logging(level: str = OutputLevel.INFO, log_file: Optional[Union[str, Path]] = None) -> None:
    """配置日志系统"""
    set_log_level(level)
    if log_file:
        set_log_file(log_file)


import atexit
atexit.register(close_logger)
