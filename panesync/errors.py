"""Exception hierarchy shared by the controllers and the storage client."""

from __future__ import annotations

from collections.abc import Sequence


class PaneSyncError(Exception):
    """Base class for every error raised by panesync."""


class NameValidationError(PaneSyncError):
    """A proposed name was rejected locally, before any network call."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(reason)
        self.name = name
        self.reason = reason


class InvalidNameError(NameValidationError):
    def __init__(self, name: str) -> None:
        super().__init__(name, "Invalid name")


class ReservedNameError(NameValidationError):
    def __init__(self, name: str) -> None:
        super().__init__(name, "Reserved name")


class RemoteError(PaneSyncError):
    """Transport failure or unexpected server reply.

    ``payload`` holds the decoded JSON error body when the server sent one.
    """

    def __init__(self, message: str, status_code: int | None = None, payload: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}


class DropRejectedError(PaneSyncError):
    """A drag-and-drop target would make a folder its own descendant."""

    def __init__(self, source: str, target: str) -> None:
        super().__init__(f"Cannot move {source!r} into {target!r}")
        self.source = source
        self.target = target


class PreviewCancelled(PaneSyncError):
    """The user dismissed the progress dialog while a preview was building."""


class BulkOperationError(PaneSyncError):
    """One item of a sequential bulk run failed; earlier items stay committed."""

    def __init__(
        self,
        label: str,
        failed_item: object,
        cause: BaseException,
        completed: Sequence[object],
    ) -> None:
        super().__init__(str(cause) or f"{label} failed")
        self.label = label
        self.failed_item = failed_item
        self.cause = cause
        self.completed = list(completed)

    @property
    def message(self) -> str:
        if isinstance(self.cause, RemoteError):
            return self.cause.message
        return str(self)


__all__ = [
    "BulkOperationError",
    "DropRejectedError",
    "InvalidNameError",
    "NameValidationError",
    "PaneSyncError",
    "PreviewCancelled",
    "RemoteError",
    "ReservedNameError",
]
