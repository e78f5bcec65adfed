"""
包解析器单元测试

测试单文件模式与 simple / aggressive 自动拆分的展开结果。
"""

import pytest

from modpack.build.build_context import MissingDirectoryError
from modpack.build.resolver import PackageDefinition, PackageResolver, PackageSource
from modpack.config.loader import ConfigurationError, load_package_config
from modpack.config.schema import (
    AutoSplitMode,
    BuildConfigPackage,
    DirectoryEntry,
    FileEntry,
    PackageConfig,
)


def make_source(base_path, entries, mode="none", encrypt=False, source_name="pkg", distribution_name="pkg"):
    return PackageSource(
        package=BuildConfigPackage(source_name=source_name, distribution_name=distribution_name),
        config=PackageConfig(encrypt_files=encrypt, auto_split_mode=mode, entries=entries),
        base_path=base_path,
    )


class TestPackageDefinition:
    """PackageDefinition 测试"""

    def test_artifact_name(self, tmp_path):
        """测试输出文件名"""
        definition = PackageDefinition(
            source_name="core",
            distribution_name="core",
            config=PackageConfig(encrypt_files=False),
            base_path=tmp_path,
        )
        assert definition.artifact_name == "core.mods"


class TestNoneMode:
    """单文件模式测试"""

    def test_one_to_one(self, tmp_path):
        """测试原样输出一个包定义"""
        source = make_source(
            tmp_path,
            [DirectoryEntry(local_path="data", game_path="deep/data")],
            source_name="core",
            distribution_name="core-dist",
        )

        definitions = PackageResolver().resolve([source])

        assert len(definitions) == 1
        assert definitions[0].source_name == "core"
        assert definitions[0].distribution_name == "core-dist"
        assert definitions[0].config is source.config
        assert definitions[0].base_path == tmp_path

    def test_nested_game_paths_allowed(self, tmp_path):
        """测试不拆分时允许多级 game_path"""
        source = make_source(tmp_path, [FileEntry(local_path="a.txt", game_path="sub/dir/file.txt")])
        assert len(PackageResolver().resolve([source])) == 1

    def test_declaration_order(self, tmp_path):
        """测试按声明顺序输出"""
        sources = [
            make_source(tmp_path / "b", [], source_name="b", distribution_name="b"),
            make_source(tmp_path / "a", [], source_name="a", distribution_name="a"),
        ]
        definitions = PackageResolver().resolve(sources)
        assert [d.source_name for d in definitions] == ["b", "a"]


class TestSimpleMode:
    """simple 拆分测试"""

    def test_two_directories(self, tmp_path):
        """测试两个目录条目拆分为两个包且没有 root 包"""
        source = make_source(
            tmp_path,
            [
                DirectoryEntry(local_path="a", game_path="a"),
                DirectoryEntry(local_path="b", game_path="b"),
            ],
            mode="simple",
            encrypt=True,
        )

        definitions = PackageResolver().resolve([source])

        assert len(definitions) == 2
        assert [d.distribution_name for d in definitions] == ["a", "b"]
        assert [d.source_name for d in definitions] == ["pkg/a", "pkg/b"]
        for definition, name in zip(definitions, ["a", "b"]):
            assert definition.base_path == tmp_path / name
            assert definition.config.encrypt_files is True
            assert definition.config.auto_split_mode == AutoSplitMode.NONE
            assert len(definition.config.entries) == 1
            entry = definition.config.entries[0]
            assert isinstance(entry, DirectoryEntry)
            assert entry.local_path == ""
            assert entry.game_path == name
        assert all(d.distribution_name != "root" for d in definitions)

    def test_file_entries_bundled_in_root(self, tmp_path):
        """测试文件条目合并为 root 包并排在最后"""
        files = [
            FileEntry(local_path="x.txt", game_path="x.txt"),
            FileEntry(local_path="y.txt", game_path="y.txt"),
        ]
        source = make_source(
            tmp_path,
            [files[0], DirectoryEntry(local_path="a", game_path="a"), files[1]],
            mode="simple",
        )

        definitions = PackageResolver().resolve([source])

        assert [d.distribution_name for d in definitions] == ["a", "root"]
        root = definitions[-1]
        assert root.source_name == "pkg/root"
        assert root.base_path == tmp_path
        assert root.config.entries == files

    def test_nested_game_path_rejected(self, tmp_path):
        """测试拆分模式下条目必须位于归档根目录"""
        source = make_source(
            tmp_path,
            [FileEntry(local_path="file.txt", game_path="sub/dir/file.txt")],
            mode="simple",
        )
        with pytest.raises(ConfigurationError, match="sub/dir/file.txt"):
            PackageResolver().resolve([source])

    @pytest.mark.parametrize("entry", [
        DirectoryEntry(local_path="a", game_path="a/"),
        FileEntry(local_path="a.txt", game_path="/a.txt"),
        FileEntry(local_path="a.txt", game_path="./a.txt"),
    ])
    def test_separator_removed_by_normalization_rejected(self, tmp_path, entry):
        """测试规范化前含分隔符的 game_path 同样被拒绝"""
        source = make_source(tmp_path, [entry], mode="simple")
        with pytest.raises(ConfigurationError, match="不在归档根目录"):
            PackageResolver().resolve([source])

    def test_separator_in_loaded_manifest_rejected(self, tmp_path, make_manifest):
        """测试从清单文件加载的原始 game_path 也参与检查"""
        make_manifest(tmp_path, {
            "encrypt_files": False,
            "auto_split_mode": "aggressive",
            "entries": [{"type": "directory", "local_path": "a", "game_path": "a/"}],
        })
        (tmp_path / "a").mkdir()
        source = PackageSource(
            package=BuildConfigPackage(source_name="pkg", distribution_name="pkg"),
            config=load_package_config(tmp_path / "config.json", "pkg"),
            base_path=tmp_path,
        )
        with pytest.raises(ConfigurationError, match="a/"):
            PackageResolver().resolve([source])

    def test_backslash_game_path_rejected(self, tmp_path):
        """测试反斜杠同样视为分隔符"""
        source = make_source(
            tmp_path,
            [DirectoryEntry(local_path="a", game_path="a\\b")],
            mode="aggressive",
        )
        with pytest.raises(ConfigurationError):
            PackageResolver().resolve([source])

    def test_duplicate_artifacts_rejected(self, tmp_path):
        """测试两个包写同一个输出文件时报错"""
        sources = [
            make_source(tmp_path / "one", [DirectoryEntry(local_path="a", game_path="shared")],
                        mode="simple", source_name="one", distribution_name="one"),
            make_source(tmp_path / "two", [], source_name="two", distribution_name="shared"),
        ]
        with pytest.raises(ConfigurationError, match="shared.mods"):
            PackageResolver().resolve(sources)

    def test_root_game_path_rejected(self, tmp_path):
        """测试目录条目 game_path 为空时无法生成发布名"""
        source = make_source(tmp_path, [DirectoryEntry(local_path="a", game_path="")], mode="simple")
        with pytest.raises(ConfigurationError):
            PackageResolver().resolve([source])


class TestAggressiveMode:
    """aggressive 拆分测试"""

    def test_nested_directories(self, tmp_path, make_tree):
        """测试每个嵌套子目录一个包，前序排列，散文件单独成包"""
        make_tree(tmp_path, {
            "textures/b/leaf.png": b"1",
            "textures/a/x/deep.png": b"2",
            "textures/a/top.png": b"3",
            "textures/loose.dds": b"4",
            "textures/atlas.dds": b"5",
            "readme.txt": "r",
        })
        source = make_source(
            tmp_path,
            [
                DirectoryEntry(local_path="textures", game_path="textures"),
                FileEntry(local_path="readme.txt", game_path="readme.txt"),
            ],
            mode="aggressive",
            encrypt=True,
        )

        definitions = PackageResolver().resolve([source])

        assert [d.distribution_name for d in definitions] == [
            "textures_a",
            "textures_a_x",
            "textures_b",
            "textures",
            "root",
        ]
        assert [d.source_name for d in definitions] == [
            "pkg/textures/a",
            "pkg/textures/a/x",
            "pkg/textures/b",
            "pkg/textures",
            "pkg/root",
        ]

        nested = definitions[1]
        assert nested.base_path == tmp_path / "textures" / "a" / "x"
        assert nested.config.encrypt_files is True
        assert nested.config.entries == [DirectoryEntry(local_path="", game_path="textures/a/x")]

        loose = definitions[3]
        assert loose.base_path == tmp_path / "textures"
        assert loose.config.entries == [
            FileEntry(local_path="atlas.dds", game_path="textures/atlas.dds"),
            FileEntry(local_path="loose.dds", game_path="textures/loose.dds"),
        ]

    def test_dots_flattened(self, tmp_path, make_tree):
        """测试发布名中的点替换为下划线"""
        make_tree(tmp_path, {"mods/ui.v2/a.txt": "a"})
        source = make_source(tmp_path, [DirectoryEntry(local_path="mods", game_path="mods")], mode="aggressive")

        definitions = PackageResolver().resolve([source])

        assert [d.distribution_name for d in definitions] == ["mods_ui_v2"]

    def test_no_loose_files(self, tmp_path, make_tree):
        """测试入口目录没有散文件时不生成文件包"""
        make_tree(tmp_path, {"data/sub/a.txt": "a"})
        source = make_source(tmp_path, [DirectoryEntry(local_path="data", game_path="data")], mode="aggressive")

        definitions = PackageResolver().resolve([source])

        assert [d.distribution_name for d in definitions] == ["data_sub"]

    def test_missing_directory(self, tmp_path):
        """测试目录条目不存在"""
        source = make_source(tmp_path, [DirectoryEntry(local_path="missing", game_path="missing")], mode="aggressive")
        with pytest.raises(MissingDirectoryError, match="missing"):
            PackageResolver().resolve([source])

    def test_deterministic(self, tmp_path, make_tree):
        """测试多次解析结果一致"""
        make_tree(tmp_path, {"d/z/1": "1", "d/m/2": "2", "d/a/3": "3", "d/m/n/4": "4"})
        source = make_source(tmp_path, [DirectoryEntry(local_path="d", game_path="d")], mode="aggressive")

        first = [d.source_name for d in PackageResolver().resolve([source])]
        second = [d.source_name for d in PackageResolver().resolve([source])]

        assert first == second == ["pkg/d/a", "pkg/d/m", "pkg/d/m/n", "pkg/d/z"]
