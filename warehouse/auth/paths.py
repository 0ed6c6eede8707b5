"""Ancestor path sets for permission matching."""

from __future__ import annotations

from typing import Optional


def ancestors(path: Optional[str]) -> list[str]:
    """Return ``path`` and every prefix of it, starting with the root ``""``.

    ``"foo/bar/baz"`` yields ``["", "foo", "foo/bar", "foo/bar/baz"]``.
    Empty segments are dropped, so ``"/foo//bar/"`` matches ``"foo/bar"``.
    """
    result = [""]
    for segment in (path or "").split("/"):
        if not segment:
            continue
        result.append(segment if len(result) == 1 else f"{result[-1]}/{segment}")
    return result
