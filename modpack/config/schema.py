"""
配置 Schema 定义

使用 Pydantic 定义构建配置（build config）与包清单（package manifest）模型。
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

from ..utils.paths import is_safe_filename, to_archive_path


class AutoSplitMode(str, Enum):
    """自动拆分模式枚举"""
    NONE = "none"
    SIMPLE = "simple"
    AGGRESSIVE = "aggressive"


class _EntryBase(BaseModel):
    """条目公共字段"""
    local_path: str = Field(..., description="源路径（相对于包源目录）")
    game_path: str = Field(..., description="归档内路径")

    model_config = {"extra": "forbid"}

    _declared_game_path: Optional[str] = PrivateAttr(default=None)

    @field_validator('local_path')
    @classmethod
    def validate_local_path(cls, v: str) -> str:
        """统一分隔符"""
        return v.strip().replace('\\', '/')

    @model_validator(mode='wrap')
    @classmethod
    def keep_declared_game_path(cls, data: Any, handler) -> '_EntryBase':
        """保留规范化之前的 game_path，供自动拆分检查分隔符"""
        entry = handler(data)
        if isinstance(data, dict) and isinstance(data.get('game_path'), str):
            entry._declared_game_path = data['game_path'].strip()
        return entry

    @property
    def declared_game_path(self) -> str:
        """清单中原样声明的 game_path"""
        if self._declared_game_path is None:
            return self.game_path
        return self._declared_game_path


class FileEntry(_EntryBase):
    """单文件条目：归档中只产生一个成员"""
    type: Literal["file"] = "file"

    @field_validator('game_path')
    @classmethod
    def validate_game_path(cls, v: str) -> str:
        """文件条目必须有归档内文件名"""
        path = to_archive_path(v.strip())
        if not path or path.endswith('/'):
            raise ValueError("文件条目的 game_path 不能为空或以 / 结尾")
        return path


class DirectoryEntry(_EntryBase):
    """目录条目：整棵子树加入归档的 game_path 前缀下"""
    type: Literal["directory"] = "directory"

    @field_validator('game_path')
    @classmethod
    def validate_game_path(cls, v: str) -> str:
        """目录前缀允许为空（表示归档根目录）"""
        return to_archive_path(v.strip()).rstrip('/')


PackageEntry = Annotated[Union[FileEntry, DirectoryEntry], Field(discriminator='type')]


class PackageConfig(BaseModel):
    """包清单模型（<src>/<source_name>/config.json）

    auto_split_mode 不为 none 时要求所有条目位于归档根目录，
    该约束由 PackageResolver 在展开时检查。
    """
    encrypt_files: bool = Field(..., description="是否加密归档内的文件")
    auto_split_mode: AutoSplitMode = Field(AutoSplitMode.NONE, description="自动拆分模式")
    entries: List[PackageEntry] = Field(default_factory=list, description="包条目列表")

    model_config = {"extra": "forbid"}

    @property
    def has_directory_entries(self) -> bool:
        return any(isinstance(entry, DirectoryEntry) for entry in self.entries)

    @property
    def file_entries(self) -> List[FileEntry]:
        return [entry for entry in self.entries if isinstance(entry, FileEntry)]

    @property
    def directory_entries(self) -> List[DirectoryEntry]:
        return [entry for entry in self.entries if isinstance(entry, DirectoryEntry)]


class BuildConfigPackage(BaseModel):
    """构建配置中声明的一个包"""
    source_name: str = Field(..., description="源目录名（<config_dir>/src/<source_name>）", min_length=1)
    distribution_name: str = Field(..., description="输出文件名（不含 .mods 扩展名）", min_length=1)

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    @field_validator('source_name')
    @classmethod
    def validate_source_name(cls, v: str) -> str:
        """源目录名不能跳出 src 目录"""
        normalized = v.replace('\\', '/')
        if normalized.startswith('/') or '..' in normalized.split('/'):
            raise ValueError(f"source_name 不能包含上级目录引用或绝对路径: {v}")
        return normalized

    @field_validator('distribution_name')
    @classmethod
    def validate_distribution_name(cls, v: str) -> str:
        if not is_safe_filename(f"{v}.mods"):
            raise ValueError(f"distribution_name 不是合法的文件名: {v}")
        return v


class BuildConfig(BaseModel):
    """构建配置根模型"""
    packages: List[BuildConfigPackage] = Field(..., description="要构建的包")
    generate_index: bool = Field(False, description="是否生成 index.json")

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
    }

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return self.model_dump(mode='json')

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BuildConfig':
        """从字典创建配置实例"""
        return cls.model_validate(data)
