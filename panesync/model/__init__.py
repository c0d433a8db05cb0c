"""Client-side model of the remote folder tree and file list.

Holds node datatypes, the lazily filled listing cache, and the pure
projections that turn cached listings into the rows each pane shows.
"""

from __future__ import annotations

from .cache import SubtreeCache
from .types import Node, NodeKind, SortDirection, SortField, SortSpec, VisibleRow
from .visible import filter_nodes, matches_filter, project_file_rows, project_folder_rows, sort_nodes

__all__ = [
    "Node",
    "NodeKind",
    "SortDirection",
    "SortField",
    "SortSpec",
    "SubtreeCache",
    "VisibleRow",
    "filter_nodes",
    "matches_filter",
    "project_file_rows",
    "project_folder_rows",
    "sort_nodes",
]
