"""Storage-service interface consumed by the synchronizer and coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from ..model.types import Node

FOLDER_EXISTS = "Folder already exists"
MERGE_CONFLICTS = "Merge conflicts"


@dataclass(frozen=True)
class OperationResult:
    """Outcome reported by a rename/move/copy call.

    Domain refusals arrive here as ``error`` rather than as exceptions.
    """

    status: str = "success"
    new_path: str | None = None
    merged: bool = False
    error: str | None = None
    conflicts: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None and self.new_path is not None

    @classmethod
    def failure(cls, error: str, conflicts: tuple[str, ...] | list[str] = ()) -> OperationResult:
        return cls(status="error", error=error, conflicts=tuple(conflicts))

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> OperationResult:
        error = payload.get("error")
        raw_conflicts = payload.get("conflicts")
        conflicts = tuple(str(item) for item in raw_conflicts) if isinstance(raw_conflicts, list) else ()
        if isinstance(error, str) and error:
            return cls.failure(error, conflicts)
        new_path = payload.get("newPath")
        return cls(
            status=str(payload.get("status") or "success"),
            new_path=new_path if isinstance(new_path, str) else None,
            merged=bool(payload.get("merged")),
        )


@dataclass(frozen=True)
class FolderStats:
    status: str = "success"
    folder_count: int = 0
    file_count: int = 0
    total_size_bytes: int = 0
    selection_count: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> FolderStats:
        def count(key: str) -> int:
            value = payload.get(key)
            return value if isinstance(value, int) and not isinstance(value, bool) else 0

        return cls(
            status=str(payload.get("status") or "error"),
            folder_count=count("folderCount"),
            file_count=count("fileCount"),
            total_size_bytes=count("totalSizeBytes"),
        )


@dataclass
class StatsTotals:
    folder_count: int = 0
    file_count: int = 0
    total_size_bytes: int = 0
    roots: list[str] = field(default_factory=list)

    def add(self, stats: FolderStats) -> None:
        self.folder_count += stats.folder_count
        self.file_count += stats.file_count
        self.total_size_bytes += stats.total_size_bytes

    def as_stats(self) -> FolderStats:
        return FolderStats(
            folder_count=self.folder_count,
            file_count=self.file_count,
            total_size_bytes=self.total_size_bytes,
            selection_count=len(self.roots),
        )


class StorageService(Protocol):
    """Asynchronous remote storage API.

    Transport failures raise ``panesync.errors.RemoteError``.
    """

    async def list_root(self) -> list[Node]: ...

    async def list_children(self, path: str) -> list[Node]: ...

    async def list_files(self, folder: str) -> list[Node]: ...

    async def get_folder_stats(self, path: str) -> FolderStats: ...

    async def rename_file(self, path: str, new_name: str) -> OperationResult: ...

    async def rename_folder(self, path: str, new_name: str, merge: bool = False) -> OperationResult: ...

    async def move_file(self, path: str, dest_folder: str, copy: bool = False) -> OperationResult: ...

    async def move_folder(
        self,
        path: str,
        dest_folder: str,
        merge: bool = False,
        copy: bool = False,
    ) -> OperationResult: ...

    async def delete_file(self, path: str) -> None: ...

    async def delete_folder(self, path: str, recursive: bool = True) -> None: ...


__all__ = [
    "FOLDER_EXISTS",
    "MERGE_CONFLICTS",
    "FolderStats",
    "OperationResult",
    "StatsTotals",
    "StorageService",
]
