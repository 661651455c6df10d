"""
Tests for the project structure and asset inventory.
"""

from pathlib import Path

import pytest

from archinsight.analysis.structure_scanner import find_large_files, scan_structure, summarize_assets


@pytest.fixture
def project(tmp_path: Path) -> Path:
    files = {
        "Assets/Scripts/Player.cs": "class Player { }",
        "Assets/Scripts/Enemy.CS": "class Enemy { }",
        "Assets/Tests/PlayerTests.cs": "class PlayerTests { }",
        "Assets/Textures/hero.png": "x" * 40,
        "Assets/Textures/sky.png": "x" * 60,
        "Assets/readme": "notes",
        "Library/Cache.cs": "class Cache { }",
        "obj/Debug/Gen.cs": "class Gen { }",
    }
    for rel_path, text in files.items():
        path = tmp_path / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return tmp_path


class TestScanStructure:
    """Walking a root into a sorted file inventory."""

    def test_excluded_directories_pruned(self, project: Path) -> None:
        structure = scan_structure(project)
        paths = [f.rel_path for f in structure.files]

        assert not any(p.startswith(("Library/", "obj/")) for p in paths)
        assert "Library" not in structure.folders

    def test_sorted_posix_paths(self, project: Path) -> None:
        structure = scan_structure(project)

        assert [f.rel_path for f in structure.files] == [
            "Assets/readme",
            "Assets/Scripts/Enemy.CS",
            "Assets/Scripts/Player.cs",
            "Assets/Tests/PlayerTests.cs",
            "Assets/Textures/hero.png",
            "Assets/Textures/sky.png",
        ]
        assert structure.folders == ("Assets", "Assets/Scripts", "Assets/Tests", "Assets/Textures")

    def test_source_and_test_flags(self, project: Path) -> None:
        structure = scan_structure(project)

        assert [f.rel_path for f in structure.source_files] == [
            "Assets/Scripts/Enemy.CS",
            "Assets/Scripts/Player.cs",
            "Assets/Tests/PlayerTests.cs",
        ]
        assert [f.rel_path for f in structure.test_source_files] == ["Assets/Tests/PlayerTests.cs"]
        assert structure.has_test_folders

    def test_single_file_root(self, project: Path) -> None:
        target = project / "Assets" / "Scripts" / "Player.cs"
        structure = scan_structure(target)

        assert structure.root == str(target.parent)
        assert [f.rel_path for f in structure.files] == ["Player.cs"]
        assert structure.files[0].is_source


class TestAssets:
    """Non-source file summaries."""

    def test_summarize_assets(self, project: Path) -> None:
        assets = summarize_assets(scan_structure(project))

        assert assets.total_assets == 3
        assert assets.count_by_extension == {"(none)": 1, ".png": 2}
        assert assets.size_by_extension[".png"] == 100
        assert assets.total_size_bytes == 105

    def test_find_large_files(self, project: Path) -> None:
        large = find_large_files(scan_structure(project), max_bytes=30)
        assert [f.rel_path for f in large] == ["Assets/Textures/sky.png", "Assets/Textures/hero.png"]
