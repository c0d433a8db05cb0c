"""Tree and file-list synchronization against the storage service.

Both synchronizers recompute visible rows from cached listings and re-fetch
from the server when a structural change invalidates the cache. Every fetch
runs under a request-sequencer slot and is dropped when it went stale.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .errors import RemoteError
from .events import ModelEvent, ModelEvents
from .model import Node, SubtreeCache, project_file_rows, project_folder_rows
from .paths import ROOT, ancestors, depth, is_ancestor
from .remote.types import StorageService
from .selection import Pane
from .sequencer import FILES_SLOT, TREE_SLOT, children_slot
from .state import AppState

logger = logging.getLogger(__name__)


@dataclass
class TreeSynchronizer:
    """Keeps the folder pane's cache, expansion and rows consistent."""

    state: AppState
    storage: StorageService
    events: ModelEvents

    def rebuild(self) -> None:
        """Re-project folder rows from the cache, then re-validate selection."""
        state = self.state
        state.folder_rows = project_folder_rows(
            state.cache,
            state.expanded,
            state.folders_filter,
            state.folders_sort,
        )
        state.folder_selection.reconcile(state.visible_paths(Pane.FOLDERS), state.active_folder)
        self.events.emit(ModelEvent.TREE_CHANGED)

    async def load_root(self) -> str | None:
        """Fetch the root listing and replace the cache wholesale.

        Returns the folder picked by the auto-select policy, if any.
        """
        state = self.state
        request_id = state.sequencer.begin(TREE_SLOT)
        try:
            nodes = await self.storage.list_root()
        except RemoteError:
            if not state.sequencer.is_current(TREE_SLOT, request_id):
                return None
            raise
        if not state.sequencer.is_current(TREE_SLOT, request_id):
            return None
        state.cache.replace(SubtreeCache({ROOT: nodes}))
        state.expanded.intersection_update(state.cache)
        self.rebuild()
        if state.active_folder is not None or not state.folder_rows:
            return None
        first = state.folder_rows[0].path
        state.active_folder = first
        state.folder_selection.select_single(first)
        return first

    async def expand(self, path: str) -> bool:
        """Expand ``path``, fetching its children the first time."""
        state = self.state
        state.expanded.add(path)
        if path not in state.cache:
            slot = children_slot(path)
            request_id = state.sequencer.begin(slot)
            try:
                children = await self.storage.list_children(path)
            except RemoteError as exc:
                if not state.sequencer.is_current(slot, request_id):
                    return False
                logger.warning("could not load children of %r: %s", path, exc)
                state.expanded.discard(path)
                self.rebuild()
                self.events.emit(ModelEvent.EXPANSION_CHANGED)
                return False
            if not state.sequencer.is_current(slot, request_id):
                return False
            state.cache.set_children(path, children)
        self.rebuild()
        self.events.emit(ModelEvent.EXPANSION_CHANGED)
        return True

    def collapse(self, path: str) -> None:
        if path not in self.state.expanded:
            return
        self.state.expanded.discard(path)
        self.rebuild()
        self.events.emit(ModelEvent.EXPANSION_CHANGED)

    async def toggle_expanded(self, path: str) -> None:
        if path in self.state.expanded:
            self.collapse(path)
        else:
            await self.expand(path)

    async def select_folder(self, path: str) -> None:
        """Normal click: single-select, collapse an unrelated previous folder, toggle.

        The previously current folder is collapsed only when it is neither an
        ancestor nor a descendant of ``path``.
        """
        state = self.state
        previous = state.active_folder
        state.folder_selection.select_single(path)
        if (
            previous is not None
            and previous != path
            and not is_ancestor(previous, path)
            and not is_ancestor(path, previous)
            and previous in state.expanded
        ):
            state.expanded.discard(previous)
            self.events.emit(ModelEvent.EXPANSION_CHANGED)
        state.active_folder = path
        await self.toggle_expanded(path)

    async def reload_preserving_state(
        self,
        expanded_paths: Iterable[str],
        selected_path: str | None,
    ) -> bool:
        """Re-fetch the tree after a destructive change and restore view state.

        Folders are fetched shallowest first so every ancestor's listing is in
        hand before its descendants'. The new cache is committed only when no
        newer tree load started meanwhile.
        """
        state = self.state
        request_id = state.sequencer.begin(TREE_SLOT)
        try:
            root_nodes = await self.storage.list_root()
        except RemoteError:
            if not state.sequencer.is_current(TREE_SLOT, request_id):
                return False
            raise
        if not state.sequencer.is_current(TREE_SLOT, request_id):
            return False
        fresh = SubtreeCache({ROOT: root_nodes})

        closure: set[str] = set()
        for path in expanded_paths:
            if path:
                closure.add(path)
                closure.update(ancestors(path))
        if selected_path:
            closure.update(ancestors(selected_path))

        for path in sorted(closure, key=lambda item: (depth(item), item)):
            try:
                children = await self.storage.list_children(path)
            except RemoteError as exc:
                logger.debug("skipping vanished folder %r during reload: %s", path, exc)
                children = None
            if not state.sequencer.is_current(TREE_SLOT, request_id):
                return False
            if children is not None:
                fresh.set_children(path, children)

        state.cache.replace(fresh)
        state.expanded = {path for path in closure if path in fresh}
        state.active_folder = selected_path or None
        state.folder_selection.replace([selected_path] if selected_path else [], anchor=selected_path)
        self.rebuild()
        if state.active_folder is not None and state.active_folder not in state.visible_paths(Pane.FOLDERS):
            state.active_folder = None
            state.folder_selection.reconcile(state.visible_paths(Pane.FOLDERS), None)
        self.events.emit(ModelEvent.EXPANSION_CHANGED)
        return True


@dataclass
class FileListSynchronizer:
    """Loads and projects the file list of the current folder."""

    state: AppState
    storage: StorageService
    events: ModelEvents

    def rebuild(self) -> None:
        state = self.state
        state.file_rows = project_file_rows(state.files, state.files_filter, state.files_sort)
        state.file_selection.reconcile(state.visible_paths(Pane.FILES), state.current_file)
        self.events.emit(ModelEvent.FILES_CHANGED)

    async def load(self, folder: str) -> bool:
        """Fetch ``folder``'s files; a response superseded by a newer load is dropped."""
        state = self.state
        state.current_folder = folder
        request_id = state.sequencer.begin(FILES_SLOT)
        try:
            files = await self.storage.list_files(folder)
        except RemoteError:
            if not state.sequencer.is_current(FILES_SLOT, request_id):
                return False
            raise
        if not state.sequencer.is_current(FILES_SLOT, request_id):
            return False
        state.files = files
        state.files_folder = folder
        self.rebuild()
        return True

    def forget(self, path: str) -> Node | None:
        """Drop one file from the loaded listing after it was deleted remotely."""
        state = self.state
        node = state.find_file(path)
        if node is not None:
            state.files.remove(node)
        state.file_selection.discard_under(path)
        if state.current_file == path:
            state.current_file = None
            self.events.emit(ModelEvent.CURRENT_FILE_CHANGED, None)
        self.rebuild()
        return node


__all__ = ["FileListSynchronizer", "TreeSynchronizer"]
