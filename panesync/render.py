"""Plain-text rendering of pane snapshots for terminal output.

Pure functions over ``ViewSnapshot``; nothing here touches model state.
"""

from __future__ import annotations

from datetime import datetime

from .events import DeleteConfirmation
from .remote.types import FolderStats
from .state import ViewSnapshot

DIR_COLOR = "\033[1;34m"
MARKER_COLOR = "\033[38;5;44m"
SELECTED_COLOR = "\033[7m"
META_COLOR = "\033[2;37m"
RESET = "\033[0m"

_SIZE_UNITS = ("B", "KB", "MB", "GB")
EMPTY_FOOTER = "Folders: - | Files: - | Size: -"


def format_file_size(size: int | None) -> str:
    """Human-readable size with one decimal, trailing zeros dropped."""
    if not size:
        return "0 B"
    value = float(size)
    idx = 0
    while value >= 1024 and idx < len(_SIZE_UNITS) - 1:
        value /= 1024
        idx += 1
    text = f"{value:.1f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[idx]}"


def format_total_size(size: int) -> str:
    gb_threshold = 1024 ** 3
    if size < gb_threshold:
        mb = size / (1024 * 1024)
        return f"{mb:.0f} MB" if mb >= 100 else f"{mb:.1f} MB"
    gb = size / gb_threshold
    return f"{gb:.0f} GB" if gb >= 10 else f"{gb:.2f} GB"


def format_date(timestamp: float | None) -> str:
    if not timestamp:
        return "Unknown"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d")


def stats_footer(stats: FolderStats | None) -> str:
    if stats is None or not stats.ok:
        return EMPTY_FOOTER
    prefix = f"Selection: {stats.selection_count} | " if stats.selection_count else ""
    return (
        f"{prefix}Folders: {stats.folder_count} | Files: {stats.file_count} | "
        f"Size: {format_total_size(stats.total_size_bytes)}"
    )


def _paint(text: str, color: str, no_color: bool) -> str:
    return text if no_color else f"{color}{text}{RESET}"


def render_folder_lines(snapshot: ViewSnapshot, no_color: bool = True) -> list[str]:
    """One line per visible folder: indent, expansion marker, name.

    Selected rows are prefixed with ``*``; the current folder with ``>``.
    """
    lines: list[str] = []
    for row in snapshot.folder_rows:
        if row.path == snapshot.active_folder:
            gutter = ">"
        elif row.path in snapshot.selected_folders:
            gutter = "*"
        else:
            gutter = " "
        marker = _paint("▾ " if row.expanded else "▸ ", MARKER_COLOR, no_color)
        name = _paint(f"{row.node.name}/", DIR_COLOR, no_color)
        if row.path in snapshot.selected_folders and not no_color:
            name = f"{SELECTED_COLOR}{name}"
        lines.append(f"{gutter} {'  ' * row.depth}{marker}{name}")
    return lines


def render_file_lines(snapshot: ViewSnapshot, no_color: bool = True) -> list[str]:
    """One line per visible file with its size and date columns."""
    rows = snapshot.file_rows
    width = max((len(row.node.name) for row in rows), default=0)
    lines: list[str] = []
    for row in rows:
        if row.path == snapshot.current_file:
            gutter = ">"
        elif row.path in snapshot.selected_files:
            gutter = "*"
        else:
            gutter = " "
        meta = f"{format_file_size(row.node.size):>9}  {format_date(row.node.modified)}"
        lines.append(f"{gutter} {row.node.name.ljust(width)}  {_paint(meta, META_COLOR, no_color)}")
    return lines


def render_delete_confirmation(confirmation: DeleteConfirmation) -> list[str]:
    lines = [confirmation.title, *confirmation.intro.splitlines(), ""]
    lines.extend(confirmation.items)
    return lines


__all__ = [
    "EMPTY_FOOTER",
    "format_date",
    "format_file_size",
    "format_total_size",
    "render_delete_confirmation",
    "render_file_lines",
    "render_folder_lines",
    "stats_footer",
]
