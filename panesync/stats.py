"""Folder stats footer: aggregate counts for the selected folders."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .errors import RemoteError
from .events import ModelEvent, ModelEvents
from .paths import unique_roots
from .remote.types import FolderStats, StatsTotals, StorageService
from .sequencer import FOLDER_STATS_SLOT
from .state import AppState

logger = logging.getLogger(__name__)


@dataclass
class FolderStatsTracker:
    state: AppState
    storage: StorageService
    events: ModelEvents

    def _publish(self, stats: FolderStats | None) -> None:
        self.state.stats = stats
        self.events.emit(ModelEvent.STATS_CHANGED, stats)

    async def refresh(self) -> FolderStats | None:
        """Recompute the footer; nested selections are counted once.

        With nothing selected the current folder's own stats are shown.
        """
        state = self.state
        roots = unique_roots(state.folder_selection.paths)
        request_id = state.sequencer.begin(FOLDER_STATS_SLOT)

        if not roots:
            try:
                stats: FolderStats | None = await self.storage.get_folder_stats(state.current_folder)
            except RemoteError as exc:
                logger.debug("folder stats for %r failed: %s", state.current_folder, exc)
                stats = None
            if state.sequencer.is_current(FOLDER_STATS_SLOT, request_id):
                self._publish(stats)
            return state.stats

        results = await asyncio.gather(
            *(self.storage.get_folder_stats(path) for path in roots),
            return_exceptions=True,
        )
        if not state.sequencer.is_current(FOLDER_STATS_SLOT, request_id):
            return state.stats

        totals = StatsTotals(roots=roots)
        for result in results:
            if isinstance(result, RemoteError):
                logger.debug("folder stats failed: %s", result)
                self._publish(None)
                return None
            if isinstance(result, BaseException):
                raise result
            if result.ok:
                totals.add(result)
        self._publish(totals.as_stats())
        return state.stats


__all__ = ["FolderStatsTracker"]
