"""Application state owned by the root controller.

Only the synchronizers, the move/merge coordinator and the delete flows
mutate this object; rendering reads it and calls controller entry points.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from .editing import InlineEditMachine
from .model import Node, NodeKind, SortSpec, SubtreeCache, VisibleRow
from .remote.types import FolderStats
from .selection import Pane, SelectionController
from .sequencer import RequestSequencer


@dataclass(frozen=True)
class DragPayload:
    kind: NodeKind
    path: str
    name: str


@dataclass
class AppState:
    folder_selection: SelectionController
    file_selection: SelectionController
    cache: SubtreeCache = field(default_factory=SubtreeCache)
    expanded: set[str] = field(default_factory=set)
    active_folder: str | None = None
    current_folder: str = ""
    current_file: str | None = None
    files: list[Node] = field(default_factory=list)
    files_folder: str | None = None
    folders_filter: str = ""
    files_filter: str = ""
    folders_sort: SortSpec = field(default_factory=SortSpec)
    files_sort: SortSpec = field(default_factory=SortSpec)
    folder_rows: list[VisibleRow] = field(default_factory=list)
    file_rows: list[VisibleRow] = field(default_factory=list)
    stats: FolderStats | None = None
    drag: DragPayload | None = None
    sequencer: RequestSequencer = field(default_factory=RequestSequencer)
    editing: InlineEditMachine = field(default_factory=InlineEditMachine)

    @classmethod
    def create(cls, on_selection_change: Callable[[Pane], None] | None = None) -> AppState:
        return cls(
            folder_selection=SelectionController(Pane.FOLDERS, on_selection_change),
            file_selection=SelectionController(Pane.FILES, on_selection_change),
        )

    def selection(self, pane: Pane) -> SelectionController:
        return self.folder_selection if pane is Pane.FOLDERS else self.file_selection

    def visible_paths(self, pane: Pane) -> list[str]:
        rows = self.folder_rows if pane is Pane.FOLDERS else self.file_rows
        return [row.path for row in rows]

    def current_item(self, pane: Pane) -> str | None:
        """The pane's single "current" item used as the selection fallback."""
        return self.active_folder if pane is Pane.FOLDERS else self.current_file

    def find_file(self, path: str) -> Node | None:
        for node in self.files:
            if node.path == path:
                return node
        return None


@dataclass(frozen=True)
class ViewSnapshot:
    """Read-only copy of what both panes show, handed to renderers."""

    folder_rows: tuple[VisibleRow, ...]
    file_rows: tuple[VisibleRow, ...]
    selected_folders: frozenset[str]
    selected_files: frozenset[str]
    expanded: frozenset[str]
    active_folder: str | None
    current_folder: str
    current_file: str | None
    stats: FolderStats | None

    @classmethod
    def of(cls, state: AppState) -> ViewSnapshot:
        return cls(
            folder_rows=tuple(state.folder_rows),
            file_rows=tuple(state.file_rows),
            selected_folders=frozenset(state.folder_selection.paths),
            selected_files=frozenset(state.file_selection.paths),
            expanded=frozenset(state.expanded),
            active_folder=state.active_folder,
            current_folder=state.current_folder,
            current_file=state.current_file,
            stats=state.stats,
        )


__all__ = ["AppState", "DragPayload", "ViewSnapshot"]
