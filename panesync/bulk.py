"""Strictly sequential execution of per-item remote operations."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from .errors import BulkOperationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[str, int, int], None]


class BulkOperationRunner:
    """Runs one coroutine per item, in list order, never interleaved.

    The first failure stops the run and is re-raised as ``BulkOperationError``;
    items finished before it stay committed.
    """

    def __init__(
        self,
        on_progress: ProgressCallback | None = None,
        on_finished: Callable[[str], None] | None = None,
    ) -> None:
        self._on_progress = on_progress
        self._on_finished = on_finished

    async def run(
        self,
        items: Sequence[T],
        operation: Callable[[T, int], Awaitable[object]],
        label: str = "Working",
    ) -> list[T]:
        total = len(items)
        if total == 0:
            return []
        show_progress = total > 1 and self._on_progress is not None
        completed: list[T] = []
        try:
            if show_progress:
                self._on_progress(label, 0, total)
            for idx, item in enumerate(items):
                try:
                    await operation(item, idx)
                except Exception as exc:
                    logger.warning("%s: item %d/%d failed: %s", label, idx + 1, total, exc)
                    raise BulkOperationError(label, item, exc, completed) from exc
                completed.append(item)
                if show_progress:
                    self._on_progress(label, idx + 1, total)
        finally:
            if show_progress and self._on_finished is not None:
                self._on_finished(label)
        return completed


__all__ = ["BulkOperationRunner", "ProgressCallback"]
