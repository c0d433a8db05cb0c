"""Per-pane multi-selection with Windows-style anchor semantics.

Every operation works against the pane's current visible ordering, which the
caller passes in; the controller itself never looks at rendering state.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from enum import Enum

from .paths import is_ancestor, rewrite


class Pane(str, Enum):
    FOLDERS = "folders"
    FILES = "files"


class SelectionController:
    """Selected paths plus the anchor used as the shift-range pivot."""

    def __init__(self, pane: Pane, on_change: Callable[[Pane], None] | None = None) -> None:
        self.pane = pane
        self.anchor: str | None = None
        self._selected: dict[str, None] = {}
        self._on_change = on_change

    def __contains__(self, path: object) -> bool:
        return path in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    @property
    def paths(self) -> list[str]:
        """Selected paths in the order they were selected."""
        return list(self._selected)

    def ordered(self, visible: Sequence[str]) -> list[str]:
        """Selected paths in visible order."""
        return [path for path in visible if path in self._selected]

    def _commit(self, selected: dict[str, None]) -> bool:
        changed = list(selected) != list(self._selected)
        self._selected = selected
        if changed and self._on_change is not None:
            self._on_change(self.pane)
        return changed

    def toggle(self, path: str, force: bool | None = None) -> bool:
        """Flip membership of ``path`` (or set it to ``force``); anchor moves to it."""
        should_select = (path not in self._selected) if force is None else bool(force)
        selected = dict(self._selected)
        if should_select:
            selected[path] = None
        else:
            selected.pop(path, None)
        self.anchor = path
        return self._commit(selected)

    def select_single(self, path: str) -> bool:
        self.anchor = path
        return self._commit({path: None})

    def select_range(
        self,
        target: str,
        visible: Sequence[str],
        additive: bool = False,
        current: str | None = None,
    ) -> bool:
        """Select the closed interval between the anchor and ``target``.

        The anchor falls back to ``current`` and then to ``target`` itself when
        neither is visible. The anchor is not moved.
        """
        try:
            target_idx = visible.index(target)
        except ValueError:
            return False
        anchor_idx = -1
        for candidate in (self.anchor, current):
            if candidate is not None and candidate in visible:
                anchor_idx = visible.index(candidate)
                break
        if anchor_idx == -1:
            anchor_idx = target_idx
        lo, hi = min(anchor_idx, target_idx), max(anchor_idx, target_idx)

        selected = dict(self._selected) if additive else {}
        for path in visible[lo : hi + 1]:
            selected[path] = None
        return self._commit(selected)

    def select_all(self, visible: Sequence[str]) -> bool:
        if visible:
            self.anchor = visible[0]
        return self._commit(dict.fromkeys(visible))

    def clear(self) -> bool:
        return self._commit({})

    def replace(self, paths: Iterable[str], anchor: str | None = None) -> bool:
        self.anchor = anchor
        return self._commit(dict.fromkeys(paths))

    def reconcile(self, visible: Iterable[str], current: str | None = None) -> bool:
        """Drop hidden paths; an emptied selection falls back to ``current``.

        The fallback only applies when ``current`` is itself visible.
        """
        visible_set = set(visible)
        selected = {path: None for path in self._selected if path in visible_set}
        if not selected and current is not None and current in visible_set:
            selected[current] = None
        return self._commit(selected)

    def rewrite(self, old_prefix: str, new_prefix: str) -> bool:
        if self.anchor is not None:
            self.anchor = rewrite(self.anchor, old_prefix, new_prefix)
        selected = {rewrite(path, old_prefix, new_prefix): None for path in self._selected}
        return self._commit(selected)

    def discard_under(self, prefix: str) -> bool:
        """Forget ``prefix`` and everything below it."""
        if self.anchor is not None and is_ancestor(prefix, self.anchor):
            self.anchor = None
        selected = {path: None for path in self._selected if not is_ancestor(prefix, path)}
        return self._commit(selected)


__all__ = ["Pane", "SelectionController"]
