"""
包头部与密钥工具

.mods 文件布局（小端序，4 字节对齐）::

    [magic u32][encryption_enabled bool + 3 字节填充][timestamp i64][key_length i32]
    [encryption_enabled 时: key_length 字节的混淆主密钥]
    [zip 归档数据，直到文件末尾]

读取端依赖这一布局逐字节一致，修改任何字段都会破坏兼容性。
"""

import hashlib
import random
import struct
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union

PACKAGE_MAGIC = 0x4459495A

# 主密钥长度（字节）
KEY_LENGTH = 32

# 主密钥字节取值范围 [KEY_BYTE_MIN, KEY_BYTE_MAX)
KEY_BYTE_MIN = 0x20
KEY_BYTE_MAX = 0x7E

KEY_XOR_TABLE = bytes([0x94, 0xCE, 0xC3, 0xAE, 0x73, 0xF9, 0xF1, 0xB9])

HEADER_STRUCT = struct.Struct('<I?3xqi')
HEADER_SIZE = HEADER_STRUCT.size


@dataclass
class PackageHeader:
    """包头部"""
    magic: int = PACKAGE_MAGIC
    encryption_enabled: bool = False
    compilation_timestamp: int = 0  # unix 毫秒
    key_length: int = 0

    @classmethod
    def create(cls, encryption_enabled: bool, key_length: int = 0,
               timestamp: Optional[int] = None) -> 'PackageHeader':
        """创建当前时间的头部"""
        if timestamp is None:
            timestamp = int(time.time() * 1000)
        return cls(
            magic=PACKAGE_MAGIC,
            encryption_enabled=encryption_enabled,
            compilation_timestamp=timestamp,
            key_length=key_length if encryption_enabled else 0,
        )

    def pack(self) -> bytes:
        """序列化为 20 字节头部"""
        return HEADER_STRUCT.pack(
            self.magic,
            self.encryption_enabled,
            self.compilation_timestamp,
            self.key_length,
        )

    @classmethod
    def unpack(cls, data: bytes) -> 'PackageHeader':
        """从字节反序列化头部

        Raises:
            ValueError: 数据长度不足或魔术字不匹配
        """
        if len(data) < HEADER_SIZE:
            raise ValueError(f"头部数据长度不足: {len(data)} < {HEADER_SIZE}")

        magic, encrypted, timestamp, key_length = HEADER_STRUCT.unpack_from(data)
        if magic != PACKAGE_MAGIC:
            raise ValueError(f"无效的魔术字: 0x{magic:08X}")
        if key_length < 0:
            raise ValueError(f"无效的密钥长度: {key_length}")

        return cls(
            magic=magic,
            encryption_enabled=encrypted,
            compilation_timestamp=timestamp,
            key_length=key_length,
        )


@dataclass
class PackageLayout:
    """从 .mods 文件读出的头部、主密钥与归档偏移"""
    header: PackageHeader
    key: bytes
    payload_offset: int


def read_package_layout(stream: BinaryIO) -> PackageLayout:
    """读取头部与混淆密钥，返回明文密钥与归档起始偏移

    Raises:
        ValueError: 文件不是有效的 .mods 包
    """
    header = PackageHeader.unpack(stream.read(HEADER_SIZE))

    key = b''
    if header.encryption_enabled:
        obfuscated = stream.read(header.key_length)
        if len(obfuscated) != header.key_length:
            raise ValueError("密钥数据被截断")
        key = unobfuscate_key(obfuscated)

    return PackageLayout(
        header=header,
        key=key,
        payload_offset=HEADER_SIZE + (header.key_length if header.encryption_enabled else 0),
    )


def generate_key(length: int = KEY_LENGTH, rng: Optional[random.Random] = None) -> bytes:
    """生成可打印 ASCII 范围内的主密钥

    取值范围与生成方式必须与现有读取端保持一致；这里不是密码学安全的随机源。
    """
    rng = rng or random.Random()
    return bytes(rng.randrange(KEY_BYTE_MIN, KEY_BYTE_MAX) for _ in range(length))


def obfuscate_key(key: bytes) -> bytes:
    """按 8 字节循环异或表混淆密钥"""
    return bytes(b ^ KEY_XOR_TABLE[i % len(KEY_XOR_TABLE)] for i, b in enumerate(key))


def unobfuscate_key(data: bytes) -> bytes:
    """还原 obfuscate_key 的结果（异或是自逆运算）"""
    return obfuscate_key(data)


class HashCalculator:
    """哈希计算器"""

    def __init__(self, algorithm: str = "sha1"):
        """初始化哈希计算器

        Args:
            algorithm: 哈希算法名称
        """
        self.algorithm = algorithm.lower()
        if self.algorithm not in hashlib.algorithms_available:
            raise ValueError(f"不支持的哈希算法: {algorithm}")

        self._hasher = hashlib.new(self.algorithm)

    def update(self, data: Union[bytes, str]) -> None:
        """更新哈希数据"""
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._hasher.update(data)

    def update_from_file(self, file_path: Path, chunk_size: int = 64 * 1024) -> None:
        """从文件更新哈希

        Raises:
            IOError: 文件读取失败
        """
        try:
            with open(file_path, 'rb') as f:
                while True:
                    chunk = f.read(chunk_size)
                    if not chunk:
                        break
                    self._hasher.update(chunk)
        except OSError as e:
            raise IOError(f"读取文件失败 {file_path}: {e}") from e

    def hexdigest(self) -> str:
        """获取十六进制哈希值（小写）"""
        return self._hasher.hexdigest()

    @classmethod
    def hash_data(cls, data: Union[bytes, str], algorithm: str = "sha1") -> str:
        """便捷方法：计算数据哈希"""
        calculator = cls(algorithm)
        calculator.update(data)
        return calculator.hexdigest()

    @classmethod
    def hash_file(cls, file_path: Path, algorithm: str = "sha1") -> str:
        """便捷方法：计算文件哈希"""
        calculator = cls(algorithm)
        calculator.update_from_file(file_path)
        return calculator.hexdigest()
