"""
包构建器

把一个 PackageDefinition 组装为 <out_dir>/<distribution_name>.mods：
头部、可选的混淆主密钥，以及 zip 归档数据。
"""

import random
from pathlib import Path
from typing import Callable, Optional

from ..config.schema import DirectoryEntry, FileEntry
from ..utils import ensure_directory, format_size
from ..utils.logging import debug, info, warning, LogStage
from ..utils.paths import archive_parent
from .archive import ArchiveWriter, ZipArchiveWriter
from .build_context import MissingDirectoryError, MissingFileError
from .header import KEY_LENGTH, PackageHeader, generate_key, obfuscate_key
from .resolver import PackageDefinition

ArchiveWriterFactory = Callable[[], ArchiveWriter]


class PackageBuilder:
    """包构建器"""

    def __init__(
        self,
        archive_factory: Optional[ArchiveWriterFactory] = None,
        rng: Optional[random.Random] = None,
    ):
        """初始化包构建器

        Args:
            archive_factory: 创建归档写入器的工厂，默认使用 ZipArchiveWriter
            rng: 生成主密钥用的随机源
        """
        self.archive_factory = archive_factory or ZipArchiveWriter
        self.rng = rng or random.Random()

    def build(self, definition: PackageDefinition, output_dir: Path) -> Path:
        """构建一个包

        Args:
            definition: 包定义
            output_dir: 输出目录

        Returns:
            Path: 输出文件路径

        Raises:
            MissingFileError: 文件条目的源文件不存在
            MissingDirectoryError: 目录条目的源目录不存在
            ArchiveError: 归档写入失败
            IOError: 文件系统错误
        """
        output_dir = ensure_directory(output_dir)
        output_path = output_dir / definition.artifact_name
        encrypt = definition.config.encrypt_files

        info(f"构建包 '{definition.source_name}' -> {definition.artifact_name}", stage=LogStage.PACKAGE)

        key = generate_key(KEY_LENGTH, self.rng) if encrypt else b''
        header = PackageHeader.create(encryption_enabled=encrypt, key_length=len(key))

        try:
            with open(output_path, 'wb') as f:
                f.write(header.pack())
                if encrypt:
                    f.write(obfuscate_key(key))

                archive = self.archive_factory()
                if encrypt:
                    archive.enable_encryption(key)

                for entry in definition.config.entries:
                    if isinstance(entry, FileEntry):
                        self._add_file_entry(archive, definition, entry)
                    else:
                        self._add_directory_entry(archive, definition, entry)

                payload_size = archive.save(f)
        except Exception:
            self._remove_partial(output_path)
            raise

        debug(
            f"头部 magic=0x{header.magic:08X} encrypted={header.encryption_enabled} "
            f"timestamp={header.compilation_timestamp} key_length={header.key_length} "
            f"归档大小={payload_size}",
            stage=LogStage.ARCHIVE,
        )
        info(f"  大小: {format_size(output_path.stat().st_size)}", stage=LogStage.PACKAGE)
        return output_path

    def _add_file_entry(self, archive: ArchiveWriter, definition: PackageDefinition, entry: FileEntry) -> None:
        source = definition.base_path / entry.local_path
        if not source.is_file():
            raise MissingFileError(f"包 '{definition.source_name}' 的文件不存在: {source}")

        parent = archive_parent(entry.game_path)
        if parent and not archive.has_entry(parent + '/'):
            archive.add_directory_entry(parent)

        try:
            data = source.read_bytes()
        except OSError as e:
            raise IOError(f"读取文件失败 {source}: {e}") from e

        archive.add_file(entry.game_path, data)
        debug(f"添加文件: {entry.local_path} -> {entry.game_path}", stage=LogStage.ARCHIVE)

    def _add_directory_entry(self, archive: ArchiveWriter, definition: PackageDefinition, entry: DirectoryEntry) -> None:
        source = definition.base_path / entry.local_path
        if not source.is_dir():
            raise MissingDirectoryError(f"包 '{definition.source_name}' 的目录不存在: {source}")

        archive.add_directory(source, entry.game_path)
        debug(f"添加目录: {entry.local_path or '.'} -> {entry.game_path or '/'}", stage=LogStage.ARCHIVE)

    @staticmethod
    def _remove_partial(output_path: Path) -> None:
        try:
            output_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            warning(f"无法删除不完整的输出文件 {output_path}: {e}", stage=LogStage.PACKAGE)
