"""
构建索引生成

为本次运行解析出的所有包记录输出文件的 SHA-1 校验和与大小，写出 index.json。
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..utils import ensure_directory, get_stage_logger, LogStage
from .header import HashCalculator
from .resolver import PackageDefinition

INDEX_FILE_NAME = "index.json"
INDEX_HASH_ALGORITHM = "sha1"

logger = get_stage_logger(LogStage.INDEX)


@dataclass
class BuildIndexEntry:
    """索引条目"""
    name: str       # 输出文件名（含 .mods）
    checksum: str   # SHA-1 十六进制
    size: int       # 字节数


@dataclass
class BuildIndex:
    """构建索引"""
    built_at: str
    entries: List[BuildIndexEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def find(self, name: str) -> Optional[BuildIndexEntry]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None


class IndexGenerator:
    """构建索引生成器"""

    def generate(self, definitions: List[PackageDefinition], output_dir: Path) -> BuildIndex:
        """为所有包生成索引（包括本次跳过构建的包）

        Args:
            definitions: 本次运行的包定义，按处理顺序
            output_dir: 输出目录

        Returns:
            BuildIndex: 索引数据

        Raises:
            IOError: 输出文件不存在或无法读取
        """
        output_dir = Path(output_dir)
        index = BuildIndex(built_at=datetime.now().astimezone().isoformat())

        for definition in definitions:
            artifact = output_dir / definition.artifact_name
            if not artifact.is_file():
                raise IOError(f"找不到包 '{definition.source_name}' 的输出文件: {artifact}")

            checksum = HashCalculator.hash_file(artifact, INDEX_HASH_ALGORITHM)
            size = artifact.stat().st_size
            index.entries.append(BuildIndexEntry(
                name=definition.artifact_name,
                checksum=checksum,
                size=size,
            ))
            logger.debug(f"{definition.artifact_name}: {checksum} ({size} bytes)")

        logger.info(f"索引包含 {len(index.entries)} 个包")
        return index

    def write(self, index: BuildIndex, output_dir: Path) -> Path:
        """写出 <output_dir>/index.json"""
        index_path = Path(output_dir) / INDEX_FILE_NAME
        try:
            ensure_directory(index_path.parent)
            with open(index_path, 'w', encoding='utf-8') as f:
                json.dump(index.to_dict(), f, ensure_ascii=False, indent=2)
        except OSError as e:
            raise IOError(f"写入索引文件失败 {index_path}: {e}") from e

        logger.success(f"索引已写入: {index_path}")
        return index_path
