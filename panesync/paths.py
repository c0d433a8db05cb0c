"""Path algebra for slash-separated storage paths.

Paths never carry a leading slash and the root is the empty string.
Everything here is pure so selection, expansion and cache rewrites share it.
"""

from __future__ import annotations

from collections.abc import Iterable

SEPARATOR = "/"
ROOT = ""


def is_ancestor(ancestor: str, path: str) -> bool:
    """Return whether ``ancestor`` is ``path`` itself or one of its ancestors."""
    if ancestor == ROOT:
        return True
    return path == ancestor or path.startswith(ancestor + SEPARATOR)


def rewrite(path: str, old_prefix: str, new_prefix: str) -> str:
    """Replace ``old_prefix`` with ``new_prefix`` when it heads ``path``.

    Paths outside ``old_prefix`` are returned unchanged.
    """
    if not is_ancestor(old_prefix, path):
        return path
    remainder = path[len(old_prefix):]
    if old_prefix == ROOT and remainder:
        remainder = SEPARATOR + remainder
    if new_prefix == ROOT:
        return remainder.lstrip(SEPARATOR)
    return new_prefix + remainder


def rewrite_all(paths: Iterable[str], old_prefix: str, new_prefix: str) -> list[str]:
    """Rewrite each path, dropping duplicates while keeping first-seen order."""
    out: list[str] = []
    seen: set[str] = set()
    for path in paths:
        rewritten = rewrite(path, old_prefix, new_prefix)
        if rewritten in seen:
            continue
        seen.add(rewritten)
        out.append(rewritten)
    return out


def parent_path(path: str) -> str:
    idx = path.rfind(SEPARATOR)
    return ROOT if idx == -1 else path[:idx]


def base_name(path: str) -> str:
    return path.rsplit(SEPARATOR, 1)[-1]


def join(parent: str, name: str) -> str:
    return name if parent == ROOT else f"{parent}{SEPARATOR}{name}"


def depth(path: str) -> int:
    """Zero-based nesting level; top-level entries and the root are level 0."""
    return path.count(SEPARATOR) if path else 0


def ancestors(path: str) -> list[str]:
    """Proper ancestors of ``path`` nearest first, excluding the root."""
    out: list[str] = []
    current = parent_path(path)
    while current != ROOT:
        out.append(current)
        current = parent_path(current)
    return out


def unique_roots(paths: Iterable[str]) -> list[str]:
    """Drop every path that has another listed path as a proper ancestor."""
    items = list(dict.fromkeys(paths))
    return [
        path
        for path in items
        if not any(other != path and is_ancestor(other, path) for other in items)
    ]


__all__ = [
    "ROOT",
    "SEPARATOR",
    "ancestors",
    "base_name",
    "depth",
    "is_ancestor",
    "join",
    "parent_path",
    "rewrite",
    "rewrite_all",
    "unique_roots",
]
