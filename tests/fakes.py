"""In-memory storage service used by the async controller tests.

Holds folders as a set of paths and files as a path -> (size, date) map,
and applies rename/move/copy/merge/delete the way the real server does.
Every call is recorded in ``calls``; ``fail`` and ``gate`` inject errors
and hold responses back for staleness tests.
"""

from __future__ import annotations

import asyncio

from panesync.errors import RemoteError
from panesync.events import DeleteConfirmation, PreviewProgress
from panesync.model import Node, NodeKind
from panesync.paths import ROOT, base_name, is_ancestor, join, parent_path, rewrite
from panesync.remote.types import FOLDER_EXISTS, MERGE_CONFLICTS, FolderStats, OperationResult


class InMemoryStorage:
    def __init__(self, folders: list[str] | None = None, files: dict[str, int] | None = None) -> None:
        self.folders: set[str] = set()
        self.files: dict[str, int] = {}
        self.dates: dict[str, float] = {}
        for folder in folders or []:
            self.add_folder(folder)
        for path, size in (files or {}).items():
            self.add_file(path, size)
        self.calls: list[tuple[str, tuple[object, ...]]] = []
        self._failures: dict[tuple[str, str], Exception] = {}
        self._gates: dict[tuple[str, str], asyncio.Event] = {}
        self.closed = False

    # Setup helpers

    def add_folder(self, path: str) -> None:
        current = path
        while current != ROOT:
            self.folders.add(current)
            current = parent_path(current)

    def add_file(self, path: str, size: int = 1, date: float = 0.0) -> None:
        if parent_path(path) != ROOT:
            self.add_folder(parent_path(path))
        self.files[path] = size
        self.dates[path] = date

    def fail(self, method: str, path: str, error: Exception | None = None) -> None:
        self._failures[(method, path)] = error or RemoteError(f"{method} failed for {path}", 500)

    def gate(self, method: str, path: str) -> asyncio.Event:
        """Hold ``method(path)`` until the returned event is set."""
        event = asyncio.Event()
        self._gates[(method, path)] = event
        return event

    async def close(self) -> None:
        self.closed = True

    def called(self, method: str) -> list[tuple[object, ...]]:
        return [args for name, args in self.calls if name == method]

    async def _enter(self, method: str, path: str, *args: object) -> None:
        self.calls.append((method, (path, *args)))
        gate = self._gates.get((method, path))
        if gate is not None:
            await gate.wait()
        error = self._failures.get((method, path))
        if error is not None:
            raise error

    # Listings

    def _folder_node(self, path: str) -> Node:
        return Node(path=path, name=base_name(path), kind=NodeKind.FOLDER, modified=0.0)

    def _child_folders(self, parent: str) -> list[Node]:
        return [self._folder_node(path) for path in sorted(self.folders) if parent_path(path) == parent]

    async def list_root(self) -> list[Node]:
        await self._enter("list_root", ROOT)
        return self._child_folders(ROOT)

    async def list_children(self, path: str) -> list[Node]:
        await self._enter("list_children", path)
        if path not in self.folders:
            raise RemoteError("Folder not found", 404)
        return self._child_folders(path)

    async def list_files(self, folder: str) -> list[Node]:
        await self._enter("list_files", folder)
        if folder != ROOT and folder not in self.folders:
            raise RemoteError("Folder not found", 404)
        return [
            Node(path=path, name=base_name(path), kind=NodeKind.FILE, modified=self.dates[path], size=size)
            for path, size in sorted(self.files.items())
            if parent_path(path) == folder
        ]

    async def get_folder_stats(self, path: str) -> FolderStats:
        await self._enter("get_folder_stats", path)
        if path != ROOT and path not in self.folders:
            raise RemoteError("Folder not found", 404)
        folders = [folder for folder in self.folders if folder != path and is_ancestor(path, folder)]
        files = [name for name in self.files if is_ancestor(path, name)]
        return FolderStats(
            folder_count=len(folders),
            file_count=len(files),
            total_size_bytes=sum(self.files[name] for name in files),
        )

    # Mutations

    def _transfer(self, source: str, target: str, keep_source: bool) -> None:
        moved_folders = {folder for folder in self.folders if is_ancestor(source, folder)}
        moved_files = {path: size for path, size in self.files.items() if is_ancestor(source, path)}
        if not keep_source:
            self.folders -= moved_folders
            for path in moved_files:
                del self.files[path]
        for folder in moved_folders:
            self.folders.add(rewrite(folder, source, target))
        for path, size in moved_files.items():
            new_path = rewrite(path, source, target)
            self.files[new_path] = size
            self.dates[new_path] = self.dates.get(path, 0.0)

    def _folder_operation(self, source: str, target: str, merge: bool, keep_source: bool) -> OperationResult:
        if source not in self.folders:
            return OperationResult.failure("Folder not found")
        if target in self.folders:
            if not merge:
                return OperationResult.failure(FOLDER_EXISTS)
            conflicts = [
                rewrite(path, source, target)
                for path in sorted(self.files)
                if is_ancestor(source, path) and rewrite(path, source, target) in self.files
            ]
            if conflicts:
                return OperationResult.failure(MERGE_CONFLICTS, conflicts)
            self._transfer(source, target, keep_source)
            return OperationResult(new_path=target, merged=True)
        self._transfer(source, target, keep_source)
        return OperationResult(new_path=target)

    async def rename_folder(self, path: str, new_name: str, merge: bool = False) -> OperationResult:
        await self._enter("rename_folder", path, new_name, merge)
        return self._folder_operation(path, join(parent_path(path), new_name), merge, keep_source=False)

    async def move_folder(
        self,
        path: str,
        dest_folder: str,
        merge: bool = False,
        copy: bool = False,
    ) -> OperationResult:
        await self._enter("move_folder", path, dest_folder, merge, copy)
        return self._folder_operation(path, join(dest_folder, base_name(path)), merge, keep_source=copy)

    def _file_operation(self, source: str, target: str, keep_source: bool) -> OperationResult:
        if source not in self.files:
            return OperationResult.failure("File not found")
        if target in self.files:
            return OperationResult.failure("A file with that name already exists")
        self.files[target] = self.files[source]
        self.dates[target] = self.dates.get(source, 0.0)
        if not keep_source:
            del self.files[source]
        return OperationResult(new_path=target)

    async def rename_file(self, path: str, new_name: str) -> OperationResult:
        await self._enter("rename_file", path, new_name)
        return self._file_operation(path, join(parent_path(path), new_name), keep_source=False)

    async def move_file(self, path: str, dest_folder: str, copy: bool = False) -> OperationResult:
        await self._enter("move_file", path, dest_folder, copy)
        return self._file_operation(path, join(dest_folder, base_name(path)), keep_source=copy)

    async def delete_file(self, path: str) -> None:
        await self._enter("delete_file", path)
        if path not in self.files:
            raise RemoteError("File not found", 404)
        del self.files[path]

    async def delete_folder(self, path: str, recursive: bool = True) -> None:
        await self._enter("delete_folder", path, recursive)
        if path not in self.folders:
            raise RemoteError("Folder not found", 404)
        self.folders = {folder for folder in self.folders if not is_ancestor(path, folder)}
        self.files = {name: size for name, size in self.files.items() if not is_ancestor(path, name)}


class RecordingPresenter:
    """Scripted presenter: answers come from attributes, every call is logged."""

    def __init__(self, merge_answer: bool = True, delete_answer: bool = True) -> None:
        self.merge_answer = merge_answer
        self.delete_answer = delete_answer
        self.merge_prompts: list[str] = []
        self.conflicts: list[list[str]] = []
        self.confirmations: list[DeleteConfirmation] = []
        self.previews: list[PreviewProgress] = []
        self.statuses: list[tuple[str, str]] = []
        self.progress: list[tuple[str, int, int]] = []
        self.hidden: list[str] = []
        self.cancel_previews = False

    async def confirm_merge(self, name: str) -> bool:
        self.merge_prompts.append(name)
        return self.merge_answer

    async def show_conflicts(self, conflicts: list[str]) -> None:
        self.conflicts.append(list(conflicts))

    async def confirm_delete(self, confirmation: DeleteConfirmation) -> bool:
        self.confirmations.append(confirmation)
        return self.delete_answer

    def open_preview_progress(self, title: str, message: str) -> PreviewProgress:
        progress = PreviewProgress(title, message)
        if self.cancel_previews:
            progress.cancelled.set()
        self.previews.append(progress)
        return progress

    def show_status(self, message: str, level: str = "info") -> None:
        self.statuses.append((message, level))

    def show_progress(self, label: str, done: int, total: int) -> None:
        self.progress.append((label, done, total))

    def hide_progress(self, label: str) -> None:
        self.hidden.append(label)

    @property
    def errors(self) -> list[str]:
        return [message for message, level in self.statuses if level == "error"]
