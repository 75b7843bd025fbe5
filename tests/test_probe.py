"""Tests for the soft-fail filesystem probes (scanner/probe.py)."""

from __future__ import annotations

import re
from pathlib import Path

from skill_scout.scanner.probe import (
    is_directory,
    list_all_files,
    list_direct_children,
    list_subdirectories,
    path_exists,
    read_json,
    read_text_prefix,
)


class TestExistenceChecks:
    async def test_path_exists_for_file_and_directory(self, make_tree):
        root = make_tree({"a.txt": "x", "sub": None})
        assert await path_exists(root / "a.txt") is True
        assert await path_exists(root / "sub") is True

    async def test_missing_path_is_negative(self, tmp_path: Path):
        assert await path_exists(tmp_path / "nope") is False
        assert await is_directory(tmp_path / "nope") is False

    async def test_is_directory_false_for_file(self, make_tree):
        root = make_tree({"a.txt": "x"})
        assert await is_directory(root / "a.txt") is False


class TestListing:
    async def test_direct_children_sorted(self, make_tree):
        root = make_tree({"b.txt": "", "a.txt": "", "c": None})
        assert await list_direct_children(root) == ["a.txt", "b.txt", "c"]

    async def test_subdirectories_only(self, make_tree):
        root = make_tree({"file.txt": "", "one": None, "two": None})
        assert await list_subdirectories(root) == ["one", "two"]

    async def test_listing_missing_directory_returns_empty(self, tmp_path: Path):
        assert await list_direct_children(tmp_path / "missing") == []
        assert await list_subdirectories(tmp_path / "missing") == []

    async def test_listing_a_file_returns_empty(self, make_tree):
        root = make_tree({"a.txt": "x"})
        assert await list_direct_children(root / "a.txt") == []


class TestListAllFiles:
    async def test_respects_max_depth(self, make_tree):
        root = make_tree(
            {
                "top.py": "",
                "a/one.py": "",
                "a/b/two.py": "",
                "a/b/c/three.py": "",
            }
        )
        names = sorted(p.name for p in await list_all_files(root, max_depth=3))
        assert names == ["one.py", "top.py", "two.py"]

        shallow = [p.name for p in await list_all_files(root, max_depth=1)]
        assert shallow == ["top.py"]

    async def test_zero_depth_lists_nothing(self, make_tree):
        root = make_tree({"top.py": ""})
        assert await list_all_files(root, max_depth=0) == []

    async def test_skips_dependency_and_build_directories(self, make_tree):
        root = make_tree(
            {
                "src/app.ts": "",
                "node_modules/react/index.js": "",
                ".git/HEAD": "",
                "dist/bundle.js": "",
                ".venv/lib.py": "",
                "__pycache__/mod.pyc": "",
            }
        )
        files = await list_all_files(root)
        assert [p.relative_to(root).as_posix() for p in files] == ["src/app.ts"]

    async def test_pattern_filters_file_names(self, make_tree):
        root = make_tree({"a.ts": "", "b.js": "", "src/c.ts": ""})
        files = await list_all_files(root, pattern=re.compile(r"\.ts$"))
        assert sorted(p.name for p in files) == ["a.ts", "c.ts"]

    async def test_missing_root_returns_empty(self, tmp_path: Path):
        assert await list_all_files(tmp_path / "missing") == []


class TestReadText:
    async def test_reads_prefix_only(self, make_tree):
        root = make_tree({"big.txt": "x" * 50})
        assert await read_text_prefix(root / "big.txt", max_bytes=10) == "x" * 10

    async def test_missing_file_returns_none(self, tmp_path: Path):
        assert await read_text_prefix(tmp_path / "missing.txt") is None

    async def test_invalid_utf8_is_replaced(self, tmp_path: Path):
        (tmp_path / "bin.dat").write_bytes(b"ok\xff")
        text = await read_text_prefix(tmp_path / "bin.dat")
        assert text is not None
        assert text.startswith("ok")


class TestReadJson:
    async def test_parses_object(self, make_tree):
        root = make_tree({"package.json": {"name": "demo"}})
        assert await read_json(root / "package.json") == {"name": "demo"}

    async def test_malformed_json_returns_none(self, make_tree):
        root = make_tree({"package.json": "{not json"})
        assert await read_json(root / "package.json") is None

    async def test_non_object_returns_none(self, make_tree):
        root = make_tree({"package.json": "[1, 2, 3]"})
        assert await read_json(root / "package.json") is None

    async def test_missing_returns_none(self, tmp_path: Path):
        assert await read_json(tmp_path / "package.json") is None

    async def test_deeply_nested_returns_none(self, make_tree):
        depth = 100_000
        root = make_tree({"package.json": '{"a":' * depth + "1" + "}" * depth})
        assert await read_json(root / "package.json") is None
