"""Process-wide inline rename state shared by the folder and file panes."""

from __future__ import annotations

from dataclasses import dataclass

from .model.types import NodeKind
from .paths import rewrite


@dataclass(frozen=True)
class EditTarget:
    kind: NodeKind
    path: str


class InlineEditMachine:
    """``Normal`` or ``Editing(target)``; only one item is edited at a time.

    While a save request is in flight the machine stays in ``Editing`` and
    refuses ``cancel``; ``commit`` always returns it to ``Normal``.
    """

    def __init__(self) -> None:
        self.target: EditTarget | None = None
        self.saving = False

    @property
    def editing(self) -> bool:
        return self.target is not None

    def is_editing(self, kind: NodeKind, path: str) -> bool:
        return self.target == EditTarget(kind, path)

    def start_edit(self, kind: NodeKind, path: str) -> bool:
        if self.target is not None:
            return False
        self.target = EditTarget(kind, path)
        self.saving = False
        return True

    def begin_save(self) -> bool:
        if self.target is None or self.saving:
            return False
        self.saving = True
        return True

    def commit(self) -> EditTarget | None:
        """Leave editing after the save request resolved, whatever its outcome."""
        target = self.target
        self.target = None
        self.saving = False
        return target

    def abort_save(self) -> None:
        """The name was refused locally; keep the editor open for another try."""
        self.saving = False

    def cancel(self) -> bool:
        if self.target is None or self.saving:
            return False
        self.target = None
        return True

    def rewrite(self, old_prefix: str, new_prefix: str) -> None:
        if self.target is not None:
            self.target = EditTarget(self.target.kind, rewrite(self.target.path, old_prefix, new_prefix))


__all__ = ["EditTarget", "InlineEditMachine"]
