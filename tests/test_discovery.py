"""文件发现测试

测试目录遍历、递归开关、文件名通配符和不可读目录的处理。
"""

import os
from pathlib import Path

import pytest
from unittest.mock import patch

from filesearch.discovery import discover_files, compile_name_pattern


@pytest.fixture
def tree(tmp_path):
    """创建测试目录树

    root/
        b.txt
        a.txt
        notes.md
        sub/
            c.txt
            deeper/
                d.log
        empty/
    """
    (tmp_path / "b.txt").write_text("b")
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / "notes.md").write_text("notes")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "c.txt").write_text("c")
    deeper = sub / "deeper"
    deeper.mkdir()
    (deeper / "d.log").write_text("d")
    (tmp_path / "empty").mkdir()
    return tmp_path


def _rel(paths, root):
    return [str(Path(p).relative_to(root)) for p in paths]


def test_recursive_depth_first_sorted(tree):
    """递归遍历按名称排序、深度优先"""
    files = discover_files(str(tree), recursive=True)

    assert _rel(files, tree) == [
        "a.txt",
        "b.txt",
        "notes.md",
        os.path.join("sub", "c.txt"),
        os.path.join("sub", "deeper", "d.log"),
    ]


def test_paths_are_absolute(tree):
    files = discover_files(str(tree))
    assert all(os.path.isabs(p) for p in files)


def test_non_recursive_skips_directories(tree):
    """非递归时不进入子目录，也不把目录当作结果"""
    files = discover_files(str(tree), recursive=False)

    assert _rel(files, tree) == ["a.txt", "b.txt", "notes.md"]


def test_name_pattern_filters_base_name(tree):
    files = discover_files(str(tree), recursive=True, name_pattern="*.txt")

    assert _rel(files, tree) == ["a.txt", "b.txt", os.path.join("sub", "c.txt")]


def test_name_pattern_is_anchored(tree):
    """通配符匹配整个文件名"""
    assert discover_files(str(tree), name_pattern="a") == []
    assert _rel(discover_files(str(tree), name_pattern="a*"), tree) == ["a.txt"]


def test_name_pattern_is_case_sensitive(tree):
    assert discover_files(str(tree), name_pattern="*.TXT") == []


def test_unsorted_returns_same_set(tree):
    """不排序时返回相同的文件集合，顺序由操作系统决定"""
    sorted_files = discover_files(str(tree), sort_entries=True)
    unsorted_files = discover_files(str(tree), sort_entries=False)

    assert set(unsorted_files) == set(sorted_files)


def test_symlinks_are_skipped(tree):
    """符号链接既不进入也不列出"""
    try:
        os.symlink(tree / "a.txt", tree / "link.txt")
        os.symlink(tree / "sub", tree / "linkdir")
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")

    files = discover_files(str(tree))

    assert not any("link" in p for p in files)


def test_unreadable_directory_is_skipped(tree):
    """无法读取的目录被跳过，其余文件照常返回"""
    real_iterdir = Path.iterdir
    blocked = tree / "sub"

    def fake_iterdir(self):
        if self == blocked:
            raise PermissionError(13, "Permission denied", str(self))
        return real_iterdir(self)

    with patch.object(Path, "iterdir", autospec=True, side_effect=fake_iterdir):
        files = discover_files(str(tree))

    assert _rel(files, tree) == ["a.txt", "b.txt", "notes.md"]


def test_unreadable_root_returns_empty(tmp_path):
    with patch.object(Path, "iterdir", side_effect=PermissionError("denied")):
        assert discover_files(str(tmp_path)) == []


def test_interrupt_called_per_directory(tree):
    """interrupt 回调在每个目录被列出前调用"""
    calls = []

    discover_files(str(tree), interrupt=lambda: calls.append(1))

    # root, empty, sub, sub/deeper
    assert len(calls) == 4


def test_interrupt_exception_propagates(tree):
    class Stop(Exception):
        pass

    def interrupt():
        raise Stop()

    with pytest.raises(Stop):
        discover_files(str(tree), interrupt=interrupt)


class TestCompileNamePattern:
    """测试通配符编译"""

    def test_star_matches_any_run(self):
        regex = compile_name_pattern("test*.py")
        assert regex.fullmatch("test.py")
        assert regex.fullmatch("test_search.py")
        assert not regex.fullmatch("mytest.py")

    def test_other_characters_are_literal(self):
        regex = compile_name_pattern("*.txt")
        assert regex.fullmatch("a.txt")
        assert not regex.fullmatch("atxt")

    def test_regex_metacharacters_are_literal(self):
        regex = compile_name_pattern("file(1)+[a].txt")
        assert regex.fullmatch("file(1)+[a].txt")
        assert not regex.fullmatch("file1a.txt")

    def test_without_wildcard_matches_exact_name(self):
        regex = compile_name_pattern("Makefile")
        assert regex.fullmatch("Makefile")
        assert not regex.fullmatch("Makefile.bak")
