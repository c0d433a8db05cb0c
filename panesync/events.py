"""Notifications published to the presentation layer and the modal interface.

The model never talks to a concrete UI: it emits ``ModelEvents`` and asks a
``Presenter`` for confirmations, both of which a thin adapter implements.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)


class ModelEvent(str, Enum):
    SELECTION_CHANGED = "selection-changed"
    EXPANSION_CHANGED = "expansion-changed"
    TREE_CHANGED = "tree-changed"
    FILES_CHANGED = "files-changed"
    CURRENT_FILE_CHANGED = "current-file-changed"
    STATS_CHANGED = "stats-changed"
    PROGRESS = "operation-progress"
    PROGRESS_FINISHED = "operation-progress-finished"
    STATUS = "status"


class ModelEvents:
    """Synchronous listener registry; listeners must not mutate model state."""

    def __init__(self) -> None:
        self._listeners: dict[ModelEvent, list[Callable[..., None]]] = defaultdict(list)

    def subscribe(self, event: ModelEvent, listener: Callable[..., None]) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it again."""
        self._listeners[event].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return unsubscribe

    def emit(self, event: ModelEvent, *args: object) -> None:
        for listener in list(self._listeners[event]):
            listener(*args)


@dataclass(frozen=True)
class DeleteConfirmation:
    """Everything a delete dialog shows before the user confirms."""

    title: str
    intro: str
    items: list[str]
    folder_count: int = 0
    file_count: int = 0
    truncated: bool = False


@dataclass
class PreviewProgress:
    """Handle for the cancellable "building preview" dialog.

    ``cancelled`` is set by the presentation layer when the dialog is dismissed.
    """

    title: str
    message: str
    cancelled: asyncio.Event = field(default_factory=asyncio.Event)
    text: str = ""
    closed: bool = False

    def update(self, text: str) -> None:
        self.text = text

    def close(self) -> None:
        self.closed = True


class Presenter(Protocol):
    async def confirm_merge(self, name: str) -> bool: ...

    async def show_conflicts(self, conflicts: list[str]) -> None: ...

    async def confirm_delete(self, confirmation: DeleteConfirmation) -> bool: ...

    def open_preview_progress(self, title: str, message: str) -> PreviewProgress: ...

    def show_status(self, message: str, level: str = "info") -> None: ...

    def show_progress(self, label: str, done: int, total: int) -> None: ...

    def hide_progress(self, label: str) -> None: ...


class NullPresenter:
    """Declines every confirmation; used when no UI is attached."""

    async def confirm_merge(self, name: str) -> bool:
        return False

    async def show_conflicts(self, conflicts: list[str]) -> None:
        return None

    async def confirm_delete(self, confirmation: DeleteConfirmation) -> bool:
        return False

    def open_preview_progress(self, title: str, message: str) -> PreviewProgress:
        return PreviewProgress(title, message)

    def show_status(self, message: str, level: str = "info") -> None:
        logger.info("[%s] %s", level, message)

    def show_progress(self, label: str, done: int, total: int) -> None:
        logger.debug("%s: %d/%d", label, done, total)

    def hide_progress(self, label: str) -> None:
        return None


__all__ = [
    "DeleteConfirmation",
    "ModelEvent",
    "ModelEvents",
    "NullPresenter",
    "Presenter",
    "PreviewProgress",
]
