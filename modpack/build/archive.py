"""
归档写入器抽象接口和实现

PackageBuilder 只通过 ArchiveWriter 接口组装归档；
ZipArchiveWriter 使用 pyzipper 生成 zip（可选 WinZip AES-256 加密）。
"""

import io
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Tuple, Union

import pyzipper

from ..utils.paths import archive_parent, to_archive_path


class ArchiveError(Exception):
    """归档相关错误"""
    pass


class ArchiveWriter(ABC):
    """归档写入器抽象基类"""

    @abstractmethod
    def add_file(self, game_path: str, data: bytes) -> None:
        """添加一个文件成员"""
        pass

    @abstractmethod
    def add_directory_entry(self, name: str) -> None:
        """添加一个显式的空目录成员（名称以 / 结尾）"""
        pass

    @abstractmethod
    def add_directory(self, source_dir: Path, prefix: str) -> None:
        """把 source_dir 整棵子树加入归档的 prefix 前缀下"""
        pass

    @abstractmethod
    def has_entry(self, name: str) -> bool:
        """归档中是否已有该成员"""
        pass

    @abstractmethod
    def enable_encryption(self, password: bytes) -> None:
        """对之后保存的所有成员启用加密"""
        pass

    @abstractmethod
    def save(self, stream: BinaryIO) -> int:
        """把归档写入流

        Returns:
            int: 写入的字节数
        """
        pass


class ZipArchiveWriter(ArchiveWriter):
    """Zip 归档写入器

    成员先收集在内存中，save() 时一次性写出，
    这样启用加密的时机不影响已添加的成员。
    """

    def __init__(self, level: int = 6):
        self.level = min(9, max(1, level))
        self._members: Dict[str, Optional[Union[bytes, Path]]] = {}
        self._password: Optional[bytes] = None

    @property
    def encrypted(self) -> bool:
        return self._password is not None

    @property
    def names(self) -> List[str]:
        return list(self._members)

    def add_file(self, game_path: str, data: Union[bytes, Path]) -> None:
        name = to_archive_path(game_path)
        if not name or name.endswith('/'):
            raise ArchiveError(f"无效的归档文件路径: {game_path!r}")
        self._members[name] = data

    def add_directory_entry(self, name: str) -> None:
        name = to_archive_path(name)
        if not name:
            return
        if not name.endswith('/'):
            name += '/'
        if name not in self._members:
            self._members[name] = None

    def add_directory(self, source_dir: Path, prefix: str) -> None:
        source_dir = Path(source_dir)
        prefix = to_archive_path(prefix).rstrip('/')

        if prefix:
            self._add_parents(prefix + '/')
            self.add_directory_entry(prefix)

        for relative, path, is_dir in self._walk(source_dir):
            name = f"{prefix}/{relative}" if prefix else relative
            if is_dir:
                self.add_directory_entry(name)
            else:
                self.add_file(name, path)

    def has_entry(self, name: str) -> bool:
        return to_archive_path(name) in self._members

    def enable_encryption(self, password: bytes) -> None:
        if not password:
            raise ArchiveError("加密密码不能为空")
        self._password = bytes(password)

    def save(self, stream: BinaryIO) -> int:
        buffer = io.BytesIO()

        try:
            if self._password is not None:
                zf = pyzipper.AESZipFile(
                    buffer, 'w',
                    compression=pyzipper.ZIP_DEFLATED,
                    compresslevel=self.level,
                    encryption=pyzipper.WZ_AES,
                )
                zf.setpassword(self._password)
                zf.setencryption(pyzipper.WZ_AES, nbits=256)
            else:
                zf = pyzipper.AESZipFile(
                    buffer, 'w',
                    compression=pyzipper.ZIP_DEFLATED,
                    compresslevel=self.level,
                )

            with zf:
                for name, content in self._members.items():
                    if content is None:
                        zf.writestr(name, b'')
                    elif isinstance(content, Path):
                        zf.writestr(name, self._read(content))
                    else:
                        zf.writestr(name, content)
        except (ValueError, RuntimeError) as e:
            raise ArchiveError(f"写入 zip 归档失败: {e}") from e

        data = buffer.getvalue()
        stream.write(data)
        return len(data)

    def _add_parents(self, name: str) -> None:
        parent = archive_parent(name.rstrip('/'))
        chain = []
        while parent:
            chain.append(parent)
            parent = archive_parent(parent)
        for directory in reversed(chain):
            self.add_directory_entry(directory)

    @staticmethod
    def _walk(source_dir: Path) -> List[Tuple[str, Path, bool]]:
        """按名称排序列出子树，目录成员先于其内容出现"""
        items: List[Tuple[str, Path, bool]] = []
        pending = [source_dir]
        while pending:
            current = pending.pop()
            try:
                children = sorted(current.iterdir(), key=lambda p: p.name)
            except OSError as e:
                raise IOError(f"无法读取目录 {current}: {e}") from e

            subdirs = []
            for child in children:
                relative = child.relative_to(source_dir).as_posix()
                if child.is_dir():
                    items.append((relative, child, True))
                    subdirs.append(child)
                else:
                    items.append((relative, child, False))
            pending.extend(reversed(subdirs))
        return items

    @staticmethod
    def _read(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise IOError(f"读取文件失败 {path}: {e}") from e
