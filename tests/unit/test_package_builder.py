"""
包构建器单元测试

测试 .mods 文件的头部、密钥与归档内容。
"""

import io
import random
import struct
from unittest.mock import MagicMock

import pyzipper
import pytest

from modpack.build.archive import ArchiveError, ZipArchiveWriter
from modpack.build.build_context import MissingDirectoryError, MissingFileError
from modpack.build.header import (
    HEADER_SIZE,
    KEY_BYTE_MAX,
    KEY_BYTE_MIN,
    PACKAGE_MAGIC,
    read_package_layout,
)
from modpack.build.package_builder import PackageBuilder
from modpack.build.resolver import PackageDefinition
from modpack.config.schema import DirectoryEntry, FileEntry, PackageConfig


def make_definition(base_path, entries, encrypt=False, name="pkg"):
    return PackageDefinition(
        source_name=name,
        distribution_name=name,
        config=PackageConfig(encrypt_files=encrypt, entries=entries),
        base_path=base_path,
    )


def read_members(path):
    with open(path, 'rb') as f:
        layout = read_package_layout(f)
        payload = f.read()
    zf = pyzipper.AESZipFile(io.BytesIO(payload))
    if layout.key:
        zf.setpassword(layout.key)
    return layout, zf


class TestPackageBuilder:
    """PackageBuilder 测试"""

    def test_unencrypted_single_file(self, tmp_path, make_tree):
        """测试不加密的单文件包头部"""
        make_tree(tmp_path / "src", {"readme.txt": "hello"})
        definition = make_definition(tmp_path / "src", [FileEntry(local_path="readme.txt", game_path="readme.txt")])

        output = PackageBuilder().build(definition, tmp_path / "out")

        assert output == tmp_path / "out" / "pkg.mods"
        data = output.read_bytes()
        assert struct.unpack('<I', data[0:4])[0] == PACKAGE_MAGIC == 0x4459495A
        assert data[4] == 0
        assert struct.unpack('<i', data[16:20])[0] == 0
        assert data[HEADER_SIZE:HEADER_SIZE + 2] == b"PK"

        layout, zf = read_members(output)
        with zf:
            assert zf.namelist() == ["readme.txt"]
            assert zf.read("readme.txt") == b"hello"

    def test_file_entry_adds_parent_directory(self, tmp_path, make_tree):
        """测试文件条目先添加父目录成员，且不重复"""
        make_tree(tmp_path / "src", {"a.txt": "a", "b.txt": "b"})
        definition = make_definition(tmp_path / "src", [
            FileEntry(local_path="a.txt", game_path="docs/a.txt"),
            FileEntry(local_path="b.txt", game_path="docs/b.txt"),
        ])

        output = PackageBuilder().build(definition, tmp_path / "out")

        _, zf = read_members(output)
        with zf:
            assert zf.namelist() == ["docs/", "docs/a.txt", "docs/b.txt"]

    def test_directory_entry(self, tmp_path, make_tree):
        """测试目录条目加入整棵子树"""
        make_tree(tmp_path / "src", {"scripts/main.lua": "main", "scripts/lib/u.lua": "u"})
        definition = make_definition(tmp_path / "src", [DirectoryEntry(local_path="scripts", game_path="scripts")])

        output = PackageBuilder().build(definition, tmp_path / "out")

        _, zf = read_members(output)
        with zf:
            assert set(zf.namelist()) == {"scripts/", "scripts/lib/", "scripts/lib/u.lua", "scripts/main.lua"}
            assert zf.read("scripts/lib/u.lua") == b"u"

    def test_encrypted(self, tmp_path, make_tree):
        """测试加密包携带可还原的 32 字节密钥并能用其解密"""
        make_tree(tmp_path / "src", {"data/secret.bin": b"\x00\x01\x02"})
        definition = make_definition(
            tmp_path / "src",
            [DirectoryEntry(local_path="data", game_path="data")],
            encrypt=True,
        )

        output = PackageBuilder(rng=random.Random(99)).build(definition, tmp_path / "out")

        layout, zf = read_members(output)
        assert layout.header.encryption_enabled is True
        assert layout.header.key_length == 32
        assert len(layout.key) == 32
        assert all(KEY_BYTE_MIN <= b < KEY_BYTE_MAX for b in layout.key)
        with zf:
            assert zf.read("data/secret.bin") == b"\x00\x01\x02"

        # 密钥以混淆形式存储
        raw = output.read_bytes()[HEADER_SIZE:HEADER_SIZE + 32]
        assert raw != layout.key

    def test_missing_file(self, tmp_path):
        """测试文件条目源文件不存在时报错并删除不完整输出"""
        (tmp_path / "src").mkdir()
        definition = make_definition(tmp_path / "src", [FileEntry(local_path="nope.txt", game_path="nope.txt")])

        with pytest.raises(MissingFileError, match="nope.txt"):
            PackageBuilder().build(definition, tmp_path / "out")

        assert not (tmp_path / "out" / "pkg.mods").exists()

    def test_missing_directory(self, tmp_path):
        """测试目录条目源目录不存在"""
        (tmp_path / "src").mkdir()
        definition = make_definition(tmp_path / "src", [DirectoryEntry(local_path="gone", game_path="gone")])

        with pytest.raises(MissingDirectoryError):
            PackageBuilder().build(definition, tmp_path / "out")

        assert not (tmp_path / "out" / "pkg.mods").exists()

    def test_archive_failure_removes_output(self, tmp_path, make_tree):
        """测试归档写入失败时删除不完整输出"""
        make_tree(tmp_path / "src", {"a.txt": "a"})
        writer = MagicMock(spec=ZipArchiveWriter)
        writer.has_entry.return_value = False
        writer.save.side_effect = ArchiveError("disk full")
        definition = make_definition(tmp_path / "src", [FileEntry(local_path="a.txt", game_path="a.txt")])

        with pytest.raises(ArchiveError):
            PackageBuilder(archive_factory=lambda: writer).build(definition, tmp_path / "out")

        assert not (tmp_path / "out" / "pkg.mods").exists()

    def test_uses_archive_writer_interface(self, tmp_path, make_tree):
        """测试通过归档写入器接口组装内容"""
        make_tree(tmp_path / "src", {"a.txt": "a", "d/b.txt": "b"})
        writer = MagicMock(spec=ZipArchiveWriter)
        writer.has_entry.return_value = False
        writer.save.return_value = 0
        definition = make_definition(
            tmp_path / "src",
            [
                FileEntry(local_path="a.txt", game_path="x/a.txt"),
                DirectoryEntry(local_path="d", game_path="d"),
            ],
            encrypt=True,
        )

        PackageBuilder(archive_factory=lambda: writer, rng=random.Random(1)).build(definition, tmp_path / "out")

        writer.enable_encryption.assert_called_once()
        assert len(writer.enable_encryption.call_args[0][0]) == 32
        writer.add_directory_entry.assert_called_once_with("x")
        writer.add_file.assert_called_once_with("x/a.txt", b"a")
        writer.add_directory.assert_called_once_with(tmp_path / "src" / "d", "d")
        writer.save.assert_called_once()
