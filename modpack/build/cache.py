"""
构建缓存

持久化 source_name -> 指纹 的映射，用于跨运行的增量构建判断。
缓存文件与构建配置放在同一目录（.pkg-cache.json）。
"""

import json
from pathlib import Path
from typing import Dict, Optional, Union

from ..config.loader import ConfigurationError
from ..utils.logging import debug, LogStage

CACHE_FILE_NAME = ".pkg-cache.json"


class BuildCache:
    """构建缓存

    运行开始时加载一次，运行期间只在内存中修改，
    整批构建成功后由 flush() 写回同一路径。
    """

    def __init__(self, path: Union[str, Path], entries: Optional[Dict[str, str]] = None):
        self.path = Path(path)
        self._entries: Dict[str, str] = dict(entries or {})

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'BuildCache':
        """加载缓存文件，文件不存在时返回空缓存

        Raises:
            ConfigurationError: 缓存文件存在但无法解析
        """
        path = Path(path)
        if not path.exists():
            debug(f"缓存文件不存在，使用空缓存: {path}", stage=LogStage.CACHE)
            return cls(path)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"缓存文件格式错误 {path}: {e}")
        except OSError as e:
            raise IOError(f"读取缓存文件失败 {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise ConfigurationError(f"缓存文件必须是字符串到字符串的映射: {path}")

        debug(f"已加载缓存: {path} ({len(data)} 条)", stage=LogStage.CACHE)
        return cls(path, data)

    @classmethod
    def for_config_dir(cls, config_dir: Union[str, Path]) -> 'BuildCache':
        """加载与构建配置同目录的缓存"""
        return cls.load(Path(config_dir) / CACHE_FILE_NAME)

    def get(self, source_name: str) -> Optional[str]:
        return self._entries.get(source_name)

    def update(self, source_name: str, fingerprint: str) -> None:
        self._entries[source_name] = fingerprint

    def flush(self) -> None:
        """写回缓存文件"""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(self._entries, f, ensure_ascii=False, indent=2, sort_keys=True)
        except OSError as e:
            raise IOError(f"写入缓存文件失败 {self.path}: {e}") from e

    def to_dict(self) -> Dict[str, str]:
        return dict(self._entries)

    def __contains__(self, source_name: object) -> bool:
        return source_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
