"""Public package surface for panesync.

Exports ``main`` for programmatic CLI invocation and ``PaneController`` for
presentation layers that embed the two-pane model.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


def __getattr__(name: str):
    if name == "PaneController":
        from .controller import PaneController

        return PaneController
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["PaneController", "main"]
