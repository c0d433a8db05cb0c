"""Lazily populated listing cache keyed by parent folder path."""

from __future__ import annotations

from collections.abc import Iterator

from ..paths import ROOT, is_ancestor, parent_path, rewrite
from .types import Node


class SubtreeCache:
    """Parent path -> ordered direct children, as last reported by the server."""

    def __init__(self, entries: dict[str, list[Node]] | None = None) -> None:
        self._entries: dict[str, list[Node]] = dict(entries or {})

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def children(self, path: str) -> list[Node]:
        return self._entries.get(path, [])

    def set_children(self, path: str, nodes: list[Node]) -> None:
        self._entries[path] = list(nodes)

    def replace(self, other: SubtreeCache) -> None:
        """Swap in a freshly loaded cache wholesale."""
        self._entries = dict(other._entries)

    def find(self, path: str) -> Node | None:
        for node in self.children(parent_path(path)):
            if node.path == path:
                return node
        return None

    def remove_node(self, path: str) -> Node | None:
        """Drop ``path`` from its parent's listing and evict its own subtree."""
        parent = parent_path(path)
        siblings = self._entries.get(parent)
        removed: Node | None = None
        if siblings is not None:
            for idx, node in enumerate(siblings):
                if node.path == path:
                    removed = siblings.pop(idx)
                    break
        self.evict_subtree(path)
        return removed

    def evict_subtree(self, path: str) -> None:
        if path == ROOT:
            self._entries.clear()
            return
        for key in [key for key in self._entries if is_ancestor(path, key)]:
            del self._entries[key]

    def rewrite_prefix(self, old_prefix: str, new_prefix: str) -> None:
        """Move cached listings under ``old_prefix`` and rewrite their nodes in place."""
        moved: dict[str, list[Node]] = {}
        for key in [key for key in self._entries if is_ancestor(old_prefix, key)]:
            nodes = self._entries.pop(key)
            for node in nodes:
                node.moved_to(rewrite(node.path, old_prefix, new_prefix))
            moved[rewrite(key, old_prefix, new_prefix)] = nodes
        self._entries.update(moved)

    def snapshot(self) -> dict[str, list[Node]]:
        return {key: list(nodes) for key, nodes in self._entries.items()}


__all__ = ["SubtreeCache"]
