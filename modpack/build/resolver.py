"""
包解析器

把构建配置中声明的包与各自的清单展开为有序的 PackageDefinition 列表，
并按清单的 auto_split_mode 自动拆分。
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from ..config.loader import ConfigurationError
from ..config.schema import (
    AutoSplitMode,
    BuildConfigPackage,
    DirectoryEntry,
    FileEntry,
    PackageConfig,
)
from ..utils.logging import debug, info, LogStage
from ..utils.paths import flatten_name, has_path_separator, is_safe_filename
from .build_context import MissingDirectoryError

ARTIFACT_SUFFIX = ".mods"
ROOT_BUNDLE_NAME = "root"


@dataclass
class PackageSource:
    """解析器输入：声明的包、已加载的清单与包源目录"""
    package: BuildConfigPackage
    config: PackageConfig
    base_path: Path


@dataclass
class PackageDefinition:
    """解析后的待构建包

    source_name 同时是构建缓存的键；base_path 是条目 local_path
    的解析基准，也是计算指纹的目录。
    """
    source_name: str
    distribution_name: str
    config: PackageConfig
    base_path: Path

    @property
    def artifact_name(self) -> str:
        """输出文件名 <distribution_name>.mods"""
        return f"{self.distribution_name}{ARTIFACT_SUFFIX}"


class PackageResolver:
    """包解析器"""

    def resolve(self, sources: List[PackageSource]) -> List[PackageDefinition]:
        """按声明顺序展开所有包

        Args:
            sources: 声明的包及其清单

        Returns:
            List[PackageDefinition]: 确定顺序的包定义列表

        Raises:
            ConfigurationError: 自动拆分的条目不在归档根目录，或两个包会写同一个输出文件
            MissingDirectoryError: aggressive 模式下目录条目的源目录不存在
        """
        definitions: List[PackageDefinition] = []
        for source in sources:
            definitions.extend(self.expand(source))

        self._check_artifact_names(definitions)

        info(f"共解析出 {len(definitions)} 个包", stage=LogStage.RESOLVE)
        for index, definition in enumerate(definitions, 1):
            debug(
                f"包 {index}: {definition.source_name} / {definition.distribution_name} "
                f"({len(definition.config.entries)} 个条目)",
                stage=LogStage.RESOLVE,
            )
        return definitions

    def expand(self, source: PackageSource) -> List[PackageDefinition]:
        """展开单个声明的包"""
        mode = source.config.auto_split_mode

        if mode == AutoSplitMode.NONE:
            info(f"'{source.package.source_name}' 以单文件模式构建", stage=LogStage.RESOLVE)
            return [PackageDefinition(
                source_name=source.package.source_name,
                distribution_name=source.package.distribution_name,
                config=source.config,
                base_path=Path(source.base_path),
            )]

        info(f"'{source.package.source_name}' 以自动拆分模式构建 ({mode.value})", stage=LogStage.RESOLVE)
        self._check_root_entries(source)

        definitions: List[PackageDefinition] = []
        for entry in source.config.directory_entries:
            if mode == AutoSplitMode.AGGRESSIVE:
                definitions.extend(self._split_aggressive(source, entry))
            else:
                definitions.append(self._split_simple(source, entry))

        file_entries = source.config.file_entries
        if file_entries:
            definitions.append(self._derive(
                source,
                source_name=f"{source.package.source_name}/{ROOT_BUNDLE_NAME}",
                distribution_name=ROOT_BUNDLE_NAME,
                base_path=Path(source.base_path),
                entries=list(file_entries),
            ))

        return definitions

    def _split_simple(self, source: PackageSource, entry: DirectoryEntry) -> PackageDefinition:
        return self._derive(
            source,
            source_name=f"{source.package.source_name}/{entry.game_path}",
            distribution_name=entry.game_path,
            base_path=Path(source.base_path) / entry.local_path,
            entries=[DirectoryEntry(local_path="", game_path=entry.game_path)],
        )

    def _split_aggressive(self, source: PackageSource, entry: DirectoryEntry) -> List[PackageDefinition]:
        """每个嵌套子目录一个包，入口目录下的散文件另成一个包"""
        base_path = Path(source.base_path)
        folder = base_path / entry.local_path
        if not folder.is_dir():
            raise MissingDirectoryError(
                f"包 '{source.package.source_name}' 的目录条目不存在: {folder}"
            )

        definitions: List[PackageDefinition] = []
        # 前序遍历：父目录先于其子目录
        pending = list(reversed(self._list_subdirectories(folder)))
        while pending:
            subdir = pending.pop()
            package_relative = subdir.relative_to(base_path).as_posix()
            entry_relative = subdir.relative_to(folder).as_posix()
            definitions.append(self._derive(
                source,
                source_name=f"{source.package.source_name}/{package_relative}",
                distribution_name=flatten_name(package_relative),
                base_path=subdir,
                entries=[DirectoryEntry(
                    local_path="",
                    game_path=f"{entry.game_path}/{entry_relative}" if entry.game_path else entry_relative,
                )],
            ))
            pending.extend(reversed(self._list_subdirectories(subdir)))

        loose_files = self._list_files(folder)
        if loose_files:
            definitions.append(self._derive(
                source,
                source_name=f"{source.package.source_name}/{entry.game_path}",
                distribution_name=entry.game_path,
                base_path=folder,
                entries=[
                    FileEntry(
                        local_path=name,
                        game_path=f"{entry.game_path}/{name}" if entry.game_path else name,
                    )
                    for name in loose_files
                ],
            ))

        return definitions

    @staticmethod
    def _derive(source: PackageSource, source_name: str, distribution_name: str,
                base_path: Path, entries: list) -> PackageDefinition:
        """派生包继承 encrypt_files，自身不再拆分"""
        if not distribution_name or not is_safe_filename(f"{distribution_name}{ARTIFACT_SUFFIX}"):
            raise ConfigurationError(
                f"包 '{source.package.source_name}' 拆分出的发布名无效: {distribution_name!r}"
            )
        return PackageDefinition(
            source_name=source_name,
            distribution_name=distribution_name,
            config=PackageConfig(
                encrypt_files=source.config.encrypt_files,
                auto_split_mode=AutoSplitMode.NONE,
                entries=entries,
            ),
            base_path=base_path,
        )

    @staticmethod
    def _check_root_entries(source: PackageSource) -> None:
        for entry in source.config.entries:
            # 以清单原值判断，规范化会去掉开头的 / 与 ./ 以及结尾的 /
            if has_path_separator(entry.declared_game_path):
                raise ConfigurationError(
                    f"包 '{source.package.source_name}' 自动拆分失败: "
                    f"条目 '{entry.declared_game_path}' 不在归档根目录"
                )

    @staticmethod
    def _check_artifact_names(definitions: List[PackageDefinition]) -> None:
        seen: Dict[str, PackageDefinition] = {}
        for definition in definitions:
            # 输出文件名在不区分大小写的文件系统上也不能冲突
            key = definition.artifact_name.lower()
            other = seen.get(key)
            if other is not None:
                raise ConfigurationError(
                    f"包 '{other.source_name}' 与 '{definition.source_name}' "
                    f"会写入同一个输出文件: {definition.artifact_name}"
                )
            seen[key] = definition

    @staticmethod
    def _list_subdirectories(directory: Path) -> List[Path]:
        try:
            with os.scandir(directory) as it:
                names = sorted(item.name for item in it if item.is_dir())
        except OSError as e:
            raise IOError(f"无法读取目录 {directory}: {e}") from e
        return [directory / name for name in names]

    @staticmethod
    def _list_files(directory: Path) -> List[str]:
        try:
            with os.scandir(directory) as it:
                return sorted(item.name for item in it if item.is_file())
        except OSError as e:
            raise IOError(f"无法读取目录 {directory}: {e}") from e
