"""
包头部与密钥单元测试

测试头部二进制布局、密钥生成与混淆。
"""

import io
import random
import struct

import pytest

from modpack.build.header import (
    HEADER_SIZE,
    KEY_BYTE_MAX,
    KEY_BYTE_MIN,
    KEY_LENGTH,
    PACKAGE_MAGIC,
    HashCalculator,
    PackageHeader,
    generate_key,
    obfuscate_key,
    read_package_layout,
    unobfuscate_key,
)


class TestPackageHeader:
    """PackageHeader 测试"""

    def test_layout(self):
        """测试 20 字节小端布局"""
        header = PackageHeader(
            magic=PACKAGE_MAGIC,
            encryption_enabled=True,
            compilation_timestamp=1_700_000_000_123,
            key_length=32,
        )
        data = header.pack()

        assert HEADER_SIZE == 20
        assert len(data) == 20
        assert data[0:4] == bytes.fromhex("5a495944")
        assert data[4:8] == b"\x01\x00\x00\x00"
        assert struct.unpack('<q', data[8:16])[0] == 1_700_000_000_123
        assert struct.unpack('<i', data[16:20])[0] == 32

    def test_round_trip(self):
        """测试序列化后可还原"""
        header = PackageHeader.create(encryption_enabled=False, timestamp=42)
        assert PackageHeader.unpack(header.pack()) == header

    def test_create_unencrypted_has_no_key(self):
        """测试不加密时密钥长度为 0"""
        header = PackageHeader.create(encryption_enabled=False, key_length=32)
        assert header.key_length == 0
        assert header.compilation_timestamp > 0

    def test_unpack_bad_magic(self):
        """测试魔术字不匹配"""
        data = PackageHeader.create(encryption_enabled=False).pack()
        with pytest.raises(ValueError, match="魔术字"):
            PackageHeader.unpack(b"\x00\x00\x00\x00" + data[4:])

    def test_unpack_short_data(self):
        """测试数据不足"""
        with pytest.raises(ValueError):
            PackageHeader.unpack(b"\x5a\x49\x49\x44")


class TestKey:
    """主密钥测试"""

    def test_generate_key_range(self):
        """测试密钥为指定长度的可打印字节"""
        key = generate_key(rng=random.Random(1234))
        assert len(key) == KEY_LENGTH
        assert all(KEY_BYTE_MIN <= b < KEY_BYTE_MAX for b in key)
        key.decode('ascii')

    def test_generate_key_seeded(self):
        """测试相同随机源生成相同密钥"""
        assert generate_key(rng=random.Random(7)) == generate_key(rng=random.Random(7))

    def test_obfuscate_pattern(self):
        """测试按 8 字节异或表混淆"""
        assert obfuscate_key(b"\x00" * 9) == bytes.fromhex("94cec3ae73f9f1b994")

    @pytest.mark.parametrize("length", [0, 1, 7, 8, 13, 32, 100])
    def test_obfuscate_involution(self, length):
        """测试任意长度下混淆可逆"""
        key = bytes(random.Random(length).randrange(256) for _ in range(length))
        assert unobfuscate_key(obfuscate_key(key)) == key


class TestReadPackageLayout:
    """read_package_layout 测试"""

    def test_encrypted_layout(self):
        """测试读取加密包的密钥与归档偏移"""
        key = generate_key(rng=random.Random(3))
        header = PackageHeader.create(encryption_enabled=True, key_length=len(key))
        stream = io.BytesIO(header.pack() + obfuscate_key(key) + b"PK-payload")

        layout = read_package_layout(stream)

        assert layout.header == header
        assert layout.key == key
        assert layout.payload_offset == HEADER_SIZE + KEY_LENGTH
        assert stream.read() == b"PK-payload"

    def test_plain_layout(self):
        """测试未加密包没有密钥"""
        header = PackageHeader.create(encryption_enabled=False)
        layout = read_package_layout(io.BytesIO(header.pack() + b"PK"))
        assert layout.key == b''
        assert layout.payload_offset == HEADER_SIZE

    def test_truncated_key(self):
        """测试密钥被截断"""
        header = PackageHeader.create(encryption_enabled=True, key_length=32)
        with pytest.raises(ValueError):
            read_package_layout(io.BytesIO(header.pack() + b"short"))


class TestHashCalculator:
    """HashCalculator 测试"""

    def test_hash_data(self):
        """测试默认 SHA-1"""
        assert HashCalculator.hash_data(b"abc") == "a9993e364706816aba3e25717850c26c9cd0d89d"

    def test_hash_file(self, tmp_path):
        """测试文件哈希与数据哈希一致"""
        path = tmp_path / "data.bin"
        path.write_bytes(b"x" * 200_000)
        assert HashCalculator.hash_file(path) == HashCalculator.hash_data(b"x" * 200_000)

    def test_unsupported_algorithm(self):
        """测试不支持的算法"""
        with pytest.raises(ValueError):
            HashCalculator("not-a-hash")

    def test_missing_file(self, tmp_path):
        """测试文件不存在"""
        with pytest.raises(IOError):
            HashCalculator.hash_file(tmp_path / "missing.bin")
