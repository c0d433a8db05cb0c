"""Remote storage service interface and its HTTP binding."""

from __future__ import annotations

from .http import HttpStorageClient
from .types import FOLDER_EXISTS, MERGE_CONFLICTS, FolderStats, OperationResult, StatsTotals, StorageService

__all__ = [
    "FOLDER_EXISTS",
    "MERGE_CONFLICTS",
    "FolderStats",
    "HttpStorageClient",
    "OperationResult",
    "StatsTotals",
    "StorageService",
]
