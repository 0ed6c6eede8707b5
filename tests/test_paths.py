"""Tests for ancestor path sets."""

from warehouse.auth.paths import ancestors


def test_ancestors_of_nested_path():
    assert ancestors("foo/bar/baz") == ["", "foo", "foo/bar", "foo/bar/baz"]


def test_ancestors_of_root():
    assert ancestors("") == [""]
    assert ancestors(None) == [""]
    assert ancestors("/") == [""]


def test_ancestors_drop_empty_segments():
    assert ancestors("/a//b/c/") == ["", "a", "a/b", "a/b/c"]


def test_ancestors_length_and_root_first():
    for path in ["a", "a/b", "x/y/z/w", "docs/api/v1/index.html"]:
        result = ancestors(path)
        assert len(result) == len(path.split("/")) + 1
        assert result[0] == ""
        assert result[-1] == path
