"""
测试公共夹具
"""

import json
from pathlib import Path
from typing import Dict, Union

import pytest

from modpack.utils.logging import close_logger, set_log_level, OutputLevel


@pytest.fixture(autouse=True)
def quiet_output():
    """测试期间只输出错误"""
    set_log_level(OutputLevel.ERROR)
    yield
    close_logger()


def write_tree(root: Path, files: Dict[str, Union[str, bytes, None]]) -> Path:
    """按 {相对路径: 内容} 创建文件树，内容为 None 时创建空目录"""
    root.mkdir(parents=True, exist_ok=True)
    for relative, content in files.items():
        path = root / relative
        if content is None:
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding='utf-8')
    return root


def write_manifest(package_dir: Path, manifest: dict) -> Path:
    package_dir.mkdir(parents=True, exist_ok=True)
    path = package_dir / "config.json"
    path.write_text(json.dumps(manifest), encoding='utf-8')
    return path


def write_build_config(config_dir: Path, packages, generate_index: bool = False,
                       name: str = "build.json") -> Path:
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / name
    data = {
        "packages": [
            {"source_name": source, "distribution_name": dist}
            for source, dist in packages
        ],
        "generate_index": generate_index,
    }
    path.write_text(json.dumps(data), encoding='utf-8')
    return path


@pytest.fixture
def make_tree():
    return write_tree


@pytest.fixture
def make_manifest():
    return write_manifest


@pytest.fixture
def make_build_config():
    return write_build_config


@pytest.fixture
def project(tmp_path):
    """一个包含两个包的构建目录

    core: 单文件模式，一个目录条目与一个文件条目，不加密
    textures: simple 拆分，两个目录条目，加密
    """
    config_dir = tmp_path / "project"
    src = config_dir / "src"

    write_tree(src / "core", {
        "scripts/main.lua": "print('hello')",
        "scripts/lib/util.lua": "return {}",
        "readme.txt": "core package",
    })
    write_manifest(src / "core", {
        "encrypt_files": False,
        "entries": [
            {"type": "directory", "local_path": "scripts", "game_path": "scripts"},
            {"type": "file", "local_path": "readme.txt", "game_path": "docs/readme.txt"},
        ],
    })

    write_tree(src / "textures", {
        "ui/button.png": b"\x89PNG button",
        "world/grass.png": b"\x89PNG grass",
    })
    write_manifest(src / "textures", {
        "encrypt_files": True,
        "auto_split_mode": "simple",
        "entries": [
            {"type": "directory", "local_path": "ui", "game_path": "ui"},
            {"type": "directory", "local_path": "world", "game_path": "world"},
        ],
    })

    config_path = write_build_config(
        config_dir,
        [("core", "core"), ("textures", "textures")],
        generate_index=True,
    )
    return config_path
