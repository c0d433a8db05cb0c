"""Rename, move and copy orchestration with the merge-confirmation protocol.

Each operation walks ``Requested -> Applied | NameConflict -> MergeConfirm ->
(Applied | Reported | Cancelled) | Reported`` and returns an
``OperationOutcome`` naming the terminal state. Names are validated locally
before anything is sent to the server.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from .errors import DropRejectedError, InvalidNameError, NameValidationError, RemoteError, ReservedNameError
from .events import ModelEvent, ModelEvents, Presenter
from .model import NodeKind
from .paths import base_name, is_ancestor, parent_path, rewrite, rewrite_all
from .remote.types import FOLDER_EXISTS, MERGE_CONFLICTS, OperationResult, StorageService
from .state import AppState
from .sync import FileListSynchronizer, TreeSynchronizer

logger = logging.getLogger(__name__)

RESERVED_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{idx}" for idx in range(1, 10)]
    + [f"LPT{idx}" for idx in range(1, 10)]
)
_INVALID_FOLDER_CHARS = re.compile(r'[<>:"|?*\x00-\x1f]')


class OperationState(str, Enum):
    APPLIED = "applied"
    REPORTED = "reported"
    CANCELLED = "cancelled"
    NOOP = "noop"
    REJECTED = "rejected"


@dataclass(frozen=True)
class OperationOutcome:
    state: OperationState
    new_path: str | None = None
    merged: bool = False
    error: str | None = None
    conflicts: tuple[str, ...] = field(default_factory=tuple)

    @property
    def applied(self) -> bool:
        return self.state is OperationState.APPLIED


def validate_file_name(name: str) -> None:
    if "/" in name or "\\" in name:
        raise InvalidNameError(name)


def validate_folder_name(name: str) -> None:
    """Reject separators, reserved characters, and platform device names."""
    if "/" in name or "\\" in name or _INVALID_FOLDER_CHARS.search(name):
        raise InvalidNameError(name)
    if name.upper() in RESERVED_NAMES:
        raise ReservedNameError(name)


def ensure_drop_allowed(source: str, target: str) -> None:
    """A folder may not be dropped onto itself or one of its descendants."""
    if is_ancestor(source, target):
        raise DropRejectedError(source, target)


@dataclass
class MoveMergeCoordinator:
    state: AppState
    storage: StorageService
    presenter: Presenter
    events: ModelEvents
    tree: TreeSynchronizer
    files: FileListSynchronizer

    def _report(self, message: str, conflicts: tuple[str, ...] = ()) -> OperationOutcome:
        self.presenter.show_status(message, "error")
        return OperationOutcome(OperationState.REPORTED, error=message, conflicts=conflicts)

    async def _request_with_merge(
        self,
        request: Callable[[bool], Awaitable[OperationResult]],
        display_name: str,
    ) -> OperationOutcome:
        try:
            result = await request(False)
        except RemoteError as exc:
            return self._report(exc.message)

        if result.error == FOLDER_EXISTS:
            if not await self.presenter.confirm_merge(display_name):
                return OperationOutcome(OperationState.CANCELLED, error=result.error)
            try:
                result = await request(True)
            except RemoteError as exc:
                return self._report(exc.message)

        if result.error is not None:
            if result.error == MERGE_CONFLICTS:
                await self.presenter.show_conflicts(list(result.conflicts))
            return self._report(result.error, result.conflicts)
        if result.new_path is None:
            return self._report("Invalid response from server")
        return OperationOutcome(OperationState.APPLIED, new_path=result.new_path, merged=result.merged)

    def _rewrite_references(self, old_path: str, new_path: str) -> None:
        """Apply one prefix rewrite to every path-holding piece of state."""
        state = self.state
        state.expanded = set(rewrite_all(state.expanded, old_path, new_path))
        state.folder_selection.rewrite(old_path, new_path)
        state.file_selection.rewrite(old_path, new_path)
        if state.active_folder is not None:
            state.active_folder = rewrite(state.active_folder, old_path, new_path)
        state.current_folder = rewrite(state.current_folder, old_path, new_path)
        if state.files_folder is not None:
            state.files_folder = rewrite(state.files_folder, old_path, new_path)
        for node in state.files:
            node.moved_to(rewrite(node.path, old_path, new_path))
        if state.current_file is not None:
            current_file = rewrite(state.current_file, old_path, new_path)
            if current_file != state.current_file:
                state.current_file = current_file
                self.events.emit(ModelEvent.CURRENT_FILE_CHANGED, current_file)
        state.editing.rewrite(old_path, new_path)

    async def _refresh(self, expanded: list[str], selected: str | None) -> None:
        """Re-fetch tree and file list after a change the server already applied."""
        try:
            await self.tree.reload_preserving_state(expanded, selected)
            await self.files.load(self.state.current_folder)
        except RemoteError as exc:
            logger.warning("refresh after structural change failed: %s", exc)
            self.presenter.show_status("Error loading folders", "error")

    async def _reload_in_place(self) -> None:
        await self._refresh(sorted(self.state.expanded), self.state.active_folder)

    async def _reload_files(self) -> None:
        try:
            await self.files.load(self.state.current_folder)
        except RemoteError as exc:
            logger.warning("file list refresh failed: %s", exc)
            self.presenter.show_status("Error loading files", "error")

    async def rename_folder(self, path: str, new_name: str) -> OperationOutcome:
        name = new_name.strip()
        if not name or name == base_name(path):
            return OperationOutcome(OperationState.NOOP)
        try:
            validate_folder_name(name)
        except NameValidationError as exc:
            return OperationOutcome(OperationState.REJECTED, error=exc.reason)

        outcome = await self._request_with_merge(
            lambda merge: self.storage.rename_folder(path, name, merge),
            name,
        )
        if not outcome.applied:
            return outcome
        assert outcome.new_path is not None
        if outcome.merged:
            await self._apply_merge(path, outcome.new_path)
        else:
            node = self.state.cache.find(path)
            if node is not None:
                node.moved_to(outcome.new_path)
            self.state.cache.rewrite_prefix(path, outcome.new_path)
            self._rewrite_references(path, outcome.new_path)
            self.tree.rebuild()
            self.files.rebuild()
        logger.info("renamed folder %r -> %r (merged=%s)", path, outcome.new_path, outcome.merged)
        return outcome

    async def _apply_merge(self, old_path: str, new_path: str) -> None:
        """The source folder was absorbed: re-fetch instead of rewriting it locally."""
        state = self.state
        expanded = rewrite_all(state.expanded, old_path, new_path)
        selected = state.active_folder
        if selected is not None:
            selected = rewrite(selected, old_path, new_path)
        state.current_folder = rewrite(state.current_folder, old_path, new_path)
        if state.current_file is not None and is_ancestor(old_path, state.current_file):
            state.current_file = rewrite(state.current_file, old_path, new_path)
            self.events.emit(ModelEvent.CURRENT_FILE_CHANGED, state.current_file)
        state.file_selection.rewrite(old_path, new_path)
        await self._refresh(expanded, selected)

    async def move_folder(self, path: str, dest_folder: str, copy: bool = False) -> OperationOutcome:
        try:
            ensure_drop_allowed(path, dest_folder)
        except DropRejectedError as exc:
            return OperationOutcome(OperationState.REJECTED, error=str(exc))
        if parent_path(path) == dest_folder and not copy:
            return OperationOutcome(OperationState.NOOP)

        outcome = await self._request_with_merge(
            lambda merge: self.storage.move_folder(path, dest_folder, merge, copy),
            base_name(path),
        )
        if not outcome.applied:
            return outcome
        assert outcome.new_path is not None
        if copy:
            await self._reload_in_place()
        elif outcome.merged:
            await self._apply_merge(path, outcome.new_path)
        else:
            self.state.cache.remove_node(path)
            self._rewrite_references(path, outcome.new_path)
            await self._reload_in_place()
        logger.info(
            "%s folder %r -> %r (merged=%s)",
            "copied" if copy else "moved",
            path,
            outcome.new_path,
            outcome.merged,
        )
        return outcome

    async def rename_file(self, path: str, new_name: str) -> OperationOutcome:
        name = new_name.strip()
        if not name or name == base_name(path):
            return OperationOutcome(OperationState.NOOP)
        try:
            validate_file_name(name)
        except NameValidationError as exc:
            return OperationOutcome(OperationState.REJECTED, error=exc.reason)

        try:
            result = await self.storage.rename_file(path, name)
        except RemoteError as exc:
            return self._report(exc.message)
        if not result.ok:
            return self._report(result.error or "Error")
        assert result.new_path is not None

        node = self.state.find_file(path)
        if node is not None:
            node.moved_to(result.new_path)
        self.state.file_selection.rewrite(path, result.new_path)
        if self.state.current_file == path:
            self.state.current_file = result.new_path
            self.events.emit(ModelEvent.CURRENT_FILE_CHANGED, result.new_path)
        self.state.editing.rewrite(path, result.new_path)
        self.files.rebuild()
        await self._reload_files()
        return OperationOutcome(OperationState.APPLIED, new_path=result.new_path)

    async def move_file(self, path: str, dest_folder: str, copy: bool = False) -> OperationOutcome:
        if parent_path(path) == dest_folder and not copy:
            return OperationOutcome(OperationState.NOOP)
        try:
            result = await self.storage.move_file(path, dest_folder, copy)
        except RemoteError as exc:
            return self._report(exc.message)
        if not result.ok:
            return self._report(result.error or "Error moving file")
        assert result.new_path is not None

        if not copy and self.state.current_file == path:
            self.state.current_file = result.new_path
            self.events.emit(ModelEvent.CURRENT_FILE_CHANGED, result.new_path)
        await self._reload_files()
        return OperationOutcome(OperationState.APPLIED, new_path=result.new_path)

    async def move(self, kind: NodeKind, path: str, dest_folder: str, copy: bool = False) -> OperationOutcome:
        if kind is NodeKind.FOLDER:
            return await self.move_folder(path, dest_folder, copy)
        return await self.move_file(path, dest_folder, copy)

    async def rename(self, kind: NodeKind, path: str, new_name: str) -> OperationOutcome:
        if kind is NodeKind.FOLDER:
            return await self.rename_folder(path, new_name)
        return await self.rename_file(path, new_name)


__all__ = [
    "RESERVED_NAMES",
    "MoveMergeCoordinator",
    "OperationOutcome",
    "OperationState",
    "ensure_drop_allowed",
    "validate_file_name",
    "validate_folder_name",
]
