"""Node and sort datatypes shared by both panes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..paths import base_name


class NodeKind(str, Enum):
    FOLDER = "folder"
    FILE = "file"


class SortField(str, Enum):
    NAME = "name"
    DATE = "date"
    TYPE = "type"
    SIZE = "size"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass
class Node:
    """One folder or file known to the client.

    Nodes are rewritten in place on rename so every holder of the object
    observes the new path.
    """

    path: str
    name: str
    kind: NodeKind
    modified: float | None = None
    size: int | None = None

    @property
    def is_folder(self) -> bool:
        return self.kind is NodeKind.FOLDER

    def moved_to(self, new_path: str) -> None:
        self.path = new_path
        self.name = base_name(new_path)

    @classmethod
    def from_payload(cls, payload: dict[str, object], default_kind: NodeKind | None = None) -> Node:
        """Build a node from one listing item of the storage API.

        Folders report ``created`` and files ``date``; either feeds ``modified``.
        """
        path = str(payload.get("path") or "")
        raw_name = payload.get("name")
        name = str(raw_name) if isinstance(raw_name, str) and raw_name else base_name(path)
        raw_kind = payload.get("type")
        if raw_kind in (NodeKind.FOLDER.value, NodeKind.FILE.value):
            kind = NodeKind(raw_kind)
        elif default_kind is not None:
            kind = default_kind
        else:
            kind = NodeKind.FILE
        modified = payload.get("created", payload.get("date"))
        size = payload.get("size")
        return cls(
            path=path,
            name=name,
            kind=kind,
            modified=float(modified) if isinstance(modified, (int, float)) and not isinstance(modified, bool) else None,
            size=int(size) if isinstance(size, int) and not isinstance(size, bool) else None,
        )


@dataclass(frozen=True)
class SortSpec:
    field: SortField = SortField.NAME
    direction: SortDirection = SortDirection.ASC

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC

    def choose(self, field: SortField) -> SortSpec:
        """Pick ``field``: a new field starts ascending, the same field flips."""
        if field is self.field:
            return self.flipped()
        return SortSpec(field, SortDirection.ASC)

    def flipped(self) -> SortSpec:
        direction = SortDirection.ASC if self.descending else SortDirection.DESC
        return SortSpec(self.field, direction)

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field.value, "direction": self.direction.value}

    @classmethod
    def from_dict(cls, value: object) -> SortSpec:
        """Parse a persisted sort choice; anything malformed yields the default."""
        if not isinstance(value, dict):
            return cls()
        try:
            field = SortField(value.get("field"))
        except ValueError:
            field = SortField.NAME
        try:
            direction = SortDirection(value.get("direction"))
        except ValueError:
            direction = SortDirection.ASC
        return cls(field, direction)


@dataclass(frozen=True)
class VisibleRow:
    """One rendered row: a node plus its nesting depth in the pane."""

    node: Node
    depth: int = 0
    expanded: bool = False

    @property
    def path(self) -> str:
        return self.node.path


__all__ = [
    "Node",
    "NodeKind",
    "SortDirection",
    "SortField",
    "SortSpec",
    "VisibleRow",
]
