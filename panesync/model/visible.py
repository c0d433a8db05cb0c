"""Filter/sort projections that turn cached listings into visible rows.

Filtering always runs before sorting and sorting is stable, so rows with
equal keys keep the order in which the server listed them.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from ..paths import ROOT
from .cache import SubtreeCache
from .types import Node, SortField, SortSpec, VisibleRow


def matches_filter(node: Node, query: str) -> bool:
    """Case-insensitive substring test on the node name."""
    needle = query.strip().lower()
    return not needle or needle in node.name.lower()


def filter_nodes(nodes: Iterable[Node], query: str) -> list[Node]:
    return [node for node in nodes if matches_filter(node, query)]


def _extension(name: str) -> str:
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


_SORT_KEYS: dict[SortField, Callable[[Node], object]] = {
    SortField.NAME: lambda node: node.name.lower(),
    SortField.DATE: lambda node: node.modified or 0,
    SortField.TYPE: lambda node: _extension(node.name),
    SortField.SIZE: lambda node: node.size or 0,
}


def sort_nodes(nodes: Iterable[Node], spec: SortSpec) -> list[Node]:
    """Stable sort by ``spec``; descending order keeps ties in listing order."""
    return sorted(nodes, key=_SORT_KEYS[spec.field], reverse=spec.descending)


def project_folder_rows(
    cache: SubtreeCache,
    expanded: set[str],
    query: str,
    spec: SortSpec,
) -> list[VisibleRow]:
    """Depth-first folder rows, descending only into expanded, cached folders."""
    rows: list[VisibleRow] = []

    def walk(parent: str, depth: int) -> None:
        folders = [node for node in cache.children(parent) if node.is_folder]
        for node in sort_nodes(filter_nodes(folders, query), spec):
            is_open = node.path in expanded and node.path in cache
            rows.append(VisibleRow(node=node, depth=depth, expanded=node.path in expanded))
            if is_open:
                walk(node.path, depth + 1)

    walk(ROOT, 0)
    return rows


def project_file_rows(files: Iterable[Node], query: str, spec: SortSpec) -> list[VisibleRow]:
    return [VisibleRow(node=node) for node in sort_nodes(filter_nodes(files, query), spec)]


__all__ = [
    "filter_nodes",
    "matches_filter",
    "project_file_rows",
    "project_folder_rows",
    "sort_nodes",
]
