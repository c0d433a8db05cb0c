"""Latest-request-wins bookkeeping for asynchronous load slots."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

TREE_SLOT = "tree"
FILES_SLOT = "files"
FOLDER_STATS_SLOT = "folder-stats"


def children_slot(path: str) -> str:
    """Slot name for the child listing of one folder."""
    return f"children:{path}"


class RequestSequencer:
    """Hands out per-slot request ids and answers whether one is still newest.

    A caller captures the id returned by ``begin`` before awaiting I/O and
    applies the result only while ``is_current`` holds for that id.
    """

    def __init__(self) -> None:
        self._next_id = 1
        self._current: dict[str, int] = {}

    def begin(self, slot: str) -> int:
        request_id = self._next_id
        self._next_id += 1
        self._current[slot] = request_id
        return request_id

    def is_current(self, slot: str, request_id: int) -> bool:
        current = self._current.get(slot) == request_id
        if not current:
            logger.debug("dropping stale response for %s (request %d)", slot, request_id)
        return current

    def invalidate(self, slot: str) -> None:
        """Make every in-flight request for ``slot`` stale."""
        self.begin(slot)

    def invalidate_all(self) -> None:
        for slot in list(self._current):
            self.begin(slot)


__all__ = [
    "FILES_SLOT",
    "FOLDER_STATS_SLOT",
    "TREE_SLOT",
    "RequestSequencer",
    "children_slot",
]
