"""Root controller owning application state for both panes.

The presentation layer calls the ``on_*`` entry points and listens to
``ModelEvents``; everything else is wired here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .bulk import BulkOperationRunner
from .coordinator import MoveMergeCoordinator, OperationOutcome, OperationState
from .deletion import DEFAULT_PREVIEW_MAX_LINES, DeletionFlows
from .errors import RemoteError
from .events import DeleteConfirmation, ModelEvent, ModelEvents, NullPresenter, Presenter, PreviewProgress
from .model import NodeKind, SortField, SortSpec
from .paths import ancestors, is_ancestor
from .remote.types import FolderStats, StorageService
from .selection import Pane
from .state import AppState, DragPayload, ViewSnapshot
from .stats import FolderStatsTracker
from .sync import FileListSynchronizer, TreeSynchronizer

logger = logging.getLogger(__name__)

SortPersister = Callable[[Pane, SortSpec], None]
_DESCENDING_FIRST = frozenset([SortField.DATE, SortField.SIZE])


def _pane_kind(pane: Pane) -> NodeKind:
    return NodeKind.FOLDER if pane is Pane.FOLDERS else NodeKind.FILE


class _EventingPresenter:
    """Forwards to the real presenter and mirrors status/progress as model events."""

    def __init__(self, presenter: Presenter, events: ModelEvents) -> None:
        self._presenter = presenter
        self._events = events

    async def confirm_merge(self, name: str) -> bool:
        return await self._presenter.confirm_merge(name)

    async def show_conflicts(self, conflicts: list[str]) -> None:
        await self._presenter.show_conflicts(conflicts)

    async def confirm_delete(self, confirmation: DeleteConfirmation) -> bool:
        return await self._presenter.confirm_delete(confirmation)

    def open_preview_progress(self, title: str, message: str) -> PreviewProgress:
        return self._presenter.open_preview_progress(title, message)

    def show_status(self, message: str, level: str = "info") -> None:
        self._presenter.show_status(message, level)
        self._events.emit(ModelEvent.STATUS, message, level)

    def show_progress(self, label: str, done: int, total: int) -> None:
        self._presenter.show_progress(label, done, total)
        self._events.emit(ModelEvent.PROGRESS, label, done, total)

    def hide_progress(self, label: str) -> None:
        self._presenter.hide_progress(label)
        self._events.emit(ModelEvent.PROGRESS_FINISHED, label)


class PaneController:
    def __init__(
        self,
        storage: StorageService,
        presenter: Presenter | None = None,
        *,
        folders_sort: SortSpec | None = None,
        files_sort: SortSpec | None = None,
        persist_sort: SortPersister | None = None,
        preview_max_lines: int = DEFAULT_PREVIEW_MAX_LINES,
    ) -> None:
        self.storage = storage
        self.events = ModelEvents()
        self.presenter = _EventingPresenter(presenter or NullPresenter(), self.events)
        self.state = AppState.create(self._selection_changed)
        if folders_sort is not None:
            self.state.folders_sort = folders_sort
        if files_sort is not None:
            self.state.files_sort = files_sort
        self._persist_sort = persist_sort

        self.tree = TreeSynchronizer(self.state, storage, self.events)
        self.files = FileListSynchronizer(self.state, storage, self.events)
        self.stats = FolderStatsTracker(self.state, storage, self.events)
        self.runner = BulkOperationRunner(
            on_progress=self.presenter.show_progress,
            on_finished=self.presenter.hide_progress,
        )
        self.coordinator = MoveMergeCoordinator(
            self.state, storage, self.presenter, self.events, self.tree, self.files
        )
        self.deletion = DeletionFlows(
            self.state,
            storage,
            self.presenter,
            self.events,
            self.tree,
            self.files,
            self.runner,
            preview_max_lines,
        )

    def _selection_changed(self, pane: Pane) -> None:
        self.events.emit(ModelEvent.SELECTION_CHANGED, pane)

    def snapshot(self) -> ViewSnapshot:
        return ViewSnapshot.of(self.state)

    async def refresh_folder_stats(self) -> FolderStats | None:
        return await self.stats.refresh()

    async def open_folder(self, folder: str) -> None:
        try:
            await self.files.load(folder)
        except RemoteError as exc:
            logger.warning("could not load files of %r: %s", folder, exc)
            self.presenter.show_status("Error loading files", "error")
        await self.stats.refresh()

    async def start(self) -> None:
        """Load the root listing, auto-select the first folder and load its files."""
        try:
            first = await self.tree.load_root()
        except RemoteError as exc:
            logger.warning("could not load folder tree: %s", exc)
            self.presenter.show_status("Error loading folders", "error")
            return
        await self.open_folder(first if first is not None else self.state.current_folder)

    async def close(self) -> None:
        """Drop in-flight responses and release the storage connection."""
        self.state.sequencer.invalidate_all()
        self.state.drag = None
        close = getattr(self.storage, "close", None)
        if close is not None:
            await close()

    # Clicks and selection

    async def on_item_click(self, pane: Pane, path: str) -> None:
        if pane is Pane.FOLDERS:
            await self.tree.select_folder(path)
            await self.open_folder(path)
            return
        state = self.state
        state.file_selection.select_single(path)
        if state.current_file != path:
            state.current_file = path
            self.events.emit(ModelEvent.CURRENT_FILE_CHANGED, path)

    async def on_item_shift_click(self, pane: Pane, path: str, additive: bool = False) -> None:
        state = self.state
        state.selection(pane).select_range(
            path,
            state.visible_paths(pane),
            additive=additive,
            current=state.current_item(pane),
        )
        if pane is Pane.FOLDERS:
            await self.stats.refresh()

    async def on_item_ctrl_click(self, pane: Pane, path: str) -> None:
        self.state.selection(pane).toggle(path)
        if pane is Pane.FOLDERS:
            await self.stats.refresh()

    async def on_select_all(self, pane: Pane) -> None:
        self.state.selection(pane).select_all(self.state.visible_paths(pane))
        if pane is Pane.FOLDERS:
            await self.stats.refresh()

    async def on_clear_selection(self, pane: Pane) -> None:
        self.state.selection(pane).clear()
        if pane is Pane.FOLDERS:
            await self.stats.refresh()

    async def on_toggle_expanded(self, path: str) -> None:
        await self.tree.toggle_expanded(path)

    async def reveal(self, path: str) -> None:
        """Expand every ancestor of ``path`` and then ``path`` itself, outermost first."""
        for folder in [*reversed(ancestors(path)), path]:
            if folder not in self.state.expanded:
                await self.tree.expand(folder)

    # Filter and sort

    def _rebuild(self, pane: Pane) -> None:
        if pane is Pane.FOLDERS:
            self.tree.rebuild()
        else:
            self.files.rebuild()

    def set_filter(self, pane: Pane, query: str) -> None:
        if pane is Pane.FOLDERS:
            self.state.folders_filter = query
        else:
            self.state.files_filter = query
        self._rebuild(pane)

    def sort_spec(self, pane: Pane) -> SortSpec:
        return self.state.folders_sort if pane is Pane.FOLDERS else self.state.files_sort

    def set_sort(self, pane: Pane, spec: SortSpec) -> None:
        if pane is Pane.FOLDERS:
            self.state.folders_sort = spec
        else:
            self.state.files_sort = spec
        self._rebuild(pane)
        if self._persist_sort is not None:
            self._persist_sort(pane, spec)

    def choose_sort_field(self, pane: Pane, field: SortField) -> SortSpec:
        """Sort-menu pick: the same field flips direction, another field starts ascending.

        In the file pane date and size start descending (newest and largest first).
        """
        current = self.sort_spec(pane)
        spec = current.choose(field)
        if pane is Pane.FILES and field is not current.field and field in _DESCENDING_FIRST:
            spec = spec.flipped()
        self.set_sort(pane, spec)
        return spec

    def toggle_sort_direction(self, pane: Pane) -> SortSpec:
        spec = self.sort_spec(pane).flipped()
        self.set_sort(pane, spec)
        return spec

    # Drag and drop

    def on_drag_start(self, pane: Pane, path: str) -> DragPayload | None:
        if self.state.editing.editing:
            return None
        node = self.state.cache.find(path) if pane is Pane.FOLDERS else self.state.find_file(path)
        if node is None:
            return None
        self.state.drag = DragPayload(_pane_kind(pane), path, node.name)
        return self.state.drag

    def on_drag_over(self, target: str, copy: bool = False) -> str | None:
        """Drop effect for ``target``: ``"move"``, ``"copy"`` or ``None`` when refused."""
        drag = self.state.drag
        if drag is None:
            return None
        if drag.kind is NodeKind.FOLDER and is_ancestor(drag.path, target):
            return None
        return "copy" if copy else "move"

    def on_drag_end(self) -> None:
        self.state.drag = None

    async def on_drop(self, target: str, copy: bool = False) -> OperationOutcome | None:
        drag = self.state.drag
        self.state.drag = None
        if drag is None:
            return None
        outcome = await self.coordinator.move(drag.kind, drag.path, target, copy)
        if outcome.state is OperationState.REJECTED:
            self.presenter.show_status(outcome.error or "Cannot drop here", "error")
        if outcome.applied and drag.kind is NodeKind.FOLDER:
            await self.stats.refresh()
        return outcome

    # Inline rename

    def on_rename_start(self, pane: Pane, path: str) -> bool:
        return self.state.editing.start_edit(_pane_kind(pane), path)

    async def on_rename_submit(self, new_name: str) -> OperationOutcome | None:
        editing = self.state.editing
        target = editing.target
        if target is None or not editing.begin_save():
            return None
        try:
            outcome = await self.coordinator.rename(target.kind, target.path, new_name)
        except Exception:
            editing.commit()
            raise
        if outcome.state is OperationState.REJECTED:
            editing.abort_save()
            self.presenter.show_status(outcome.error or "Invalid name", "error")
            return outcome
        editing.commit()
        return outcome

    def on_rename_cancel(self) -> bool:
        return self.state.editing.cancel()

    # Delete

    async def _delete(self, pane: Pane, confirmed: bool) -> bool:
        if pane is Pane.FOLDERS:
            deleted = await self.deletion.delete_selected_folders(confirmed)
            if deleted:
                await self.stats.refresh()
            return deleted
        return await self.deletion.delete_selected_files(confirmed)

    async def on_delete_requested(self, pane: Pane, path: str | None = None) -> bool:
        """Delete via context action; an unselected target is single-selected first."""
        selection = self.state.selection(pane)
        if path is not None and path not in selection:
            selection.replace([path], anchor=path)
        return await self._delete(pane, confirmed=False)

    async def on_delete_confirmed(self, pane: Pane) -> bool:
        return await self._delete(pane, confirmed=True)


__all__ = ["PaneController", "SortPersister"]
