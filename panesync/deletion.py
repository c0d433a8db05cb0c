"""Confirmed bulk deletion of selected files and folders.

Folder deletion first walks the server to build a preview tree. The walk
polls the preview dialog's cancellation flag between remote calls; calls
already issued are not aborted, their results are simply ignored.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field

from .bulk import BulkOperationRunner
from .errors import BulkOperationError, PreviewCancelled, RemoteError
from .events import DeleteConfirmation, ModelEvent, ModelEvents, Presenter, PreviewProgress
from .model import Node
from .paths import ROOT, base_name, is_ancestor, parent_path, unique_roots
from .remote.types import StorageService
from .state import AppState
from .sync import FileListSynchronizer, TreeSynchronizer

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_MAX_LINES = 1500
TRUNCATED_MARKER = "… (more items)"


@dataclass
class FolderPreview:
    lines: list[str] = field(default_factory=list)
    folder_count: int = 0
    file_count: int = 0
    truncated: bool = False


def _name_key(node: Node) -> str:
    return node.name.casefold()


async def build_folder_preview(
    storage: StorageService,
    root: str,
    progress: PreviewProgress,
    max_lines: int = DEFAULT_PREVIEW_MAX_LINES,
) -> FolderPreview:
    """Render ``root``'s subtree as box-drawing lines, folders before files.

    Raises ``PreviewCancelled`` as soon as the dialog is dismissed. Folders
    that cannot be listed are shown without children.
    """
    preview = FolderPreview(lines=[f"{base_name(root) or '(root)'}/"])
    added = 0

    def check_cancelled() -> None:
        if progress.cancelled.is_set():
            raise PreviewCancelled(root)

    async def walk(folder: str, prefix: str) -> None:
        nonlocal added
        check_cancelled()
        if preview.truncated:
            return
        progress.update(
            f"Scanning: {folder}\nFolders: {preview.folder_count} | Files: {preview.file_count}"
        )
        try:
            children, files = await asyncio.gather(
                storage.list_children(folder),
                storage.list_files(folder),
            )
        except RemoteError as exc:
            logger.debug("preview: cannot list %r: %s", folder, exc)
            return
        check_cancelled()

        entries = sorted((node for node in children if node.is_folder), key=_name_key)
        entries += sorted(files, key=_name_key)
        for idx, entry in enumerate(entries):
            check_cancelled()
            if preview.truncated:
                return
            is_last = idx == len(entries) - 1
            connector = "└─ " if is_last else "├─ "
            if entry.is_folder:
                preview.lines.append(f"{prefix}{connector}{entry.name}/")
                preview.folder_count += 1
            else:
                preview.lines.append(f"{prefix}{connector}{entry.name}")
                preview.file_count += 1
            added += 1
            if added >= max_lines:
                preview.truncated = True
                return
            if entry.is_folder:
                await walk(entry.path, prefix + ("   " if is_last else "│  "))

    await walk(root, "")
    if preview.truncated:
        preview.lines.append(TRUNCATED_MARKER)
    return preview


def file_delete_listing(paths: list[str]) -> list[str]:
    """Group file paths under their folder for the confirmation dialog."""
    by_folder: dict[str, list[str]] = defaultdict(list)
    for path in paths:
        by_folder[parent_path(path) or "(root)"].append(path)
    lines: list[str] = []
    for folder in sorted(by_folder, key=str.casefold):
        lines.append(f"{folder}/")
        for path in sorted(by_folder[folder], key=lambda item: base_name(item).casefold()):
            lines.append(f"  {base_name(path)}")
    return lines


@dataclass
class DeletionFlows:
    state: AppState
    storage: StorageService
    presenter: Presenter
    events: ModelEvents
    tree: TreeSynchronizer
    files: FileListSynchronizer
    runner: BulkOperationRunner
    preview_max_lines: int = DEFAULT_PREVIEW_MAX_LINES

    def file_targets(self) -> list[str]:
        state = self.state
        if len(state.file_selection):
            return state.file_selection.paths
        return [state.current_file] if state.current_file else []

    def folder_targets(self) -> list[str]:
        """Selected folders minus those nested in another selected folder."""
        state = self.state
        selected = state.folder_selection.paths
        if not selected and state.active_folder:
            selected = [state.active_folder]
        return unique_roots(selected)

    async def delete_selected_files(self, confirmed: bool = False) -> bool:
        paths = self.file_targets()
        if not paths:
            return False
        if not confirmed:
            count = len(paths)
            confirmation = DeleteConfirmation(
                title="Delete file" if count == 1 else "Delete files",
                intro=(
                    f'Delete "{base_name(paths[0])}"? This cannot be undone.'
                    if count == 1
                    else f"Delete these {count} files? This cannot be undone."
                ),
                items=file_delete_listing(paths),
                file_count=count,
            )
            if not await self.presenter.confirm_delete(confirmation):
                return False

        async def delete_one(path: str, _idx: int) -> None:
            await self.storage.delete_file(path)
            self.files.forget(path)

        try:
            await self.runner.run(paths, delete_one, label="Deleting files")
        except BulkOperationError as exc:
            self.presenter.show_status(exc.message or "Error deleting file", "error")
            return False

        self.state.file_selection.clear()
        try:
            await self.files.load(self.state.current_folder)
        except RemoteError as exc:
            logger.warning("file list refresh after delete failed: %s", exc)
            self.presenter.show_status("Error loading files", "error")
        return True

    async def _build_confirmation(self, roots: list[str]) -> DeleteConfirmation:
        count = len(roots)
        title = "Delete folder" if count == 1 else "Delete folders"
        message = (
            "Building preview…" if count == 1 else f"Building previews for {count} folders…"
        )
        progress = self.presenter.open_preview_progress(title, message)
        lines: list[str] = []
        folder_count = file_count = 0
        truncated = False
        try:
            for idx, root in enumerate(roots):
                if progress.cancelled.is_set():
                    raise PreviewCancelled(root)
                preview = await build_folder_preview(self.storage, root, progress, self.preview_max_lines)
                lines.extend(preview.lines)
                folder_count += preview.folder_count
                file_count += preview.file_count
                truncated = truncated or preview.truncated
                if idx < count - 1:
                    lines.append("")
        finally:
            progress.close()

        intro = (
            "Delete this folder and all contents? This cannot be undone."
            if count == 1
            else f"Delete these {count} folders and all contents? This cannot be undone."
        )
        counts = f"This includes {folder_count} folders and {file_count} files."
        if truncated:
            counts += " (preview truncated)"
        return DeleteConfirmation(
            title=title,
            intro=f"{intro}\n{counts}",
            items=lines,
            folder_count=folder_count,
            file_count=file_count,
            truncated=truncated,
        )

    def _forget_folder(self, root: str) -> None:
        """Evict a deleted folder's subtree from every piece of local state."""
        state = self.state
        state.cache.remove_node(root)
        state.expanded = {path for path in state.expanded if not is_ancestor(root, path)}
        state.folder_selection.discard_under(root)
        if state.active_folder is not None and is_ancestor(root, state.active_folder):
            state.active_folder = None
        if is_ancestor(root, state.current_folder) and state.current_folder != ROOT:
            state.current_folder = ROOT
        if state.current_file is not None and is_ancestor(root, state.current_file):
            state.current_file = None
            self.events.emit(ModelEvent.CURRENT_FILE_CHANGED, None)
        self.tree.rebuild()

    async def delete_selected_folders(self, confirmed: bool = False) -> bool:
        roots = self.folder_targets()
        if not roots:
            return False
        if not confirmed:
            try:
                confirmation = await self._build_confirmation(roots)
            except PreviewCancelled:
                logger.info("folder delete preview cancelled")
                return False
            if not await self.presenter.confirm_delete(confirmation):
                return False

        async def delete_one(root: str, _idx: int) -> None:
            await self.storage.delete_folder(root, recursive=True)
            self._forget_folder(root)

        try:
            await self.runner.run(roots, delete_one, label="Deleting folders")
        except BulkOperationError as exc:
            self.presenter.show_status(exc.message or "Error deleting folder", "error")
            return False

        state = self.state
        state.folder_selection.clear()
        try:
            await self.tree.reload_preserving_state(sorted(state.expanded), state.active_folder)
            await self.files.load(state.current_folder)
        except RemoteError as exc:
            logger.warning("refresh after folder delete failed: %s", exc)
            self.presenter.show_status("Error loading folders", "error")
        return True


__all__ = [
    "DEFAULT_PREVIEW_MAX_LINES",
    "DeletionFlows",
    "FolderPreview",
    "build_folder_preview",
    "file_delete_listing",
]
