"""Command-line front door for panesync.

Parses CLI options, connects to the storage server and drives a
``PaneController`` for one command. Confirmations are asked on the console.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Callable
from typing import TextIO

from . import config
from .controller import PaneController
from .coordinator import OperationOutcome, OperationState
from .errors import RemoteError
from .events import DeleteConfirmation, PreviewProgress
from .model import NodeKind, SortDirection, SortField, SortSpec
from .remote.http import HttpStorageClient
from .render import render_delete_confirmation, render_file_lines, render_folder_lines, stats_footer
from .selection import Pane

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class ConsolePresenter:
    """Asks confirmations on stdin and reports status on stderr.

    With ``assume_yes`` every confirmation is accepted without prompting.
    """

    def __init__(
        self,
        assume_yes: bool = False,
        out: TextIO | None = None,
        err: TextIO | None = None,
        ask: Callable[[str], str] | None = None,
    ) -> None:
        self.assume_yes = assume_yes
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self._ask = ask or input
        self.errors: list[str] = []

    def _confirm(self, prompt: str) -> bool:
        if self.assume_yes:
            return True
        try:
            answer = self._ask(f"{prompt} [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in ("y", "yes")

    async def confirm_merge(self, name: str) -> bool:
        return self._confirm(f'A folder named "{name}" already exists. Merge them?')

    async def show_conflicts(self, conflicts: list[str]) -> None:
        self.err.write("Merge conflicts:\n")
        for path in conflicts:
            self.err.write(f"  {path}\n")

    async def confirm_delete(self, confirmation: DeleteConfirmation) -> bool:
        for line in render_delete_confirmation(confirmation):
            self.out.write(f"{line}\n")
        return self._confirm(confirmation.title + "?")

    def open_preview_progress(self, title: str, message: str) -> PreviewProgress:
        self.err.write(f"{message}\n")
        return PreviewProgress(title, message)

    def show_status(self, message: str, level: str = "info") -> None:
        if level == "error":
            self.errors.append(message)
            self.err.write(f"error: {message}\n")
        else:
            self.err.write(f"{message}\n")

    def show_progress(self, label: str, done: int, total: int) -> None:
        self.err.write(f"\r{label}: {done}/{total}")
        self.err.flush()

    def hide_progress(self, label: str) -> None:
        self.err.write("\n")


def _positive_float(value: str) -> float:
    """argparse type for positive timeouts."""
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be > 0")
    return parsed


def _add_sort_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--filter", default="", help="Case-insensitive name filter.")
    parser.add_argument(
        "--sort",
        choices=[field.value for field in SortField],
        default=None,
        help="Sort field (default: saved choice).",
    )
    parser.add_argument("--desc", action="store_true", help="Sort descending.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="panesync",
        description="Browse and reorganize a remote folder tree.",
    )
    parser.add_argument("--url", default=None, help="Storage server base URL (default: saved config).")
    parser.add_argument("--timeout", type=_positive_float, default=None, help="Request timeout in seconds.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    commands = parser.add_subparsers(dest="command", required=True)

    tree = commands.add_parser("tree", help="Print the folder tree.")
    tree.add_argument("--expand", nargs="*", default=[], metavar="PATH", help="Folders to expand.")
    _add_sort_options(tree)

    files = commands.add_parser("files", help="Print a folder's files.")
    files.add_argument("folder", nargs="?", default="")
    _add_sort_options(files)

    stats = commands.add_parser("stats", help="Print aggregated folder stats.")
    stats.add_argument("paths", nargs="*", metavar="PATH")

    rename = commands.add_parser("rename", help="Rename a folder or file.")
    rename.add_argument("path")
    rename.add_argument("new_name")
    rename.add_argument("--file", action="store_true", help="PATH is a file.")
    rename.add_argument("--yes", action="store_true", help="Accept merge confirmations.")

    move = commands.add_parser("move", help="Move or copy a folder or file.")
    move.add_argument("path")
    move.add_argument("dest")
    move.add_argument("--file", action="store_true", help="PATH is a file.")
    move.add_argument("--copy", action="store_true", help="Copy instead of move.")
    move.add_argument("--yes", action="store_true", help="Accept merge confirmations.")

    delete = commands.add_parser("delete", help="Delete folders or files.")
    delete.add_argument("paths", nargs="+", metavar="PATH")
    delete.add_argument("--file", action="store_true", help="PATHs are files.")
    delete.add_argument("--yes", action="store_true", help="Skip the confirmation prompt.")
    return parser


def _apply_view_options(controller: PaneController, pane: Pane, args: argparse.Namespace) -> None:
    if args.sort is not None:
        direction = SortDirection.DESC if args.desc else SortDirection.ASC
        controller.set_sort(pane, SortSpec(SortField(args.sort), direction))
    elif args.desc:
        controller.set_sort(pane, SortSpec(controller.sort_spec(pane).field, SortDirection.DESC))
    if args.filter:
        controller.set_filter(pane, args.filter)


def _report_outcome(outcome: OperationOutcome, presenter: ConsolePresenter) -> int:
    if outcome.state is OperationState.APPLIED:
        suffix = " (merged)" if outcome.merged else ""
        presenter.out.write(f"{outcome.new_path}{suffix}\n")
        return 0
    if outcome.state is OperationState.NOOP:
        presenter.out.write("Nothing to do\n")
        return 0
    if outcome.state is OperationState.CANCELLED:
        presenter.err.write("Cancelled\n")
    return 1


async def run_command(args: argparse.Namespace, controller: PaneController, presenter: ConsolePresenter) -> int:
    """Execute one parsed command; returns the process exit code."""
    command = args.command
    no_color = args.no_color or not presenter.out.isatty()

    if command == "tree":
        _apply_view_options(controller, Pane.FOLDERS, args)
        await controller.start()
        for path in args.expand:
            await controller.reveal(path)
        for line in render_folder_lines(controller.snapshot(), no_color=no_color):
            presenter.out.write(f"{line}\n")
    elif command == "files":
        _apply_view_options(controller, Pane.FILES, args)
        await controller.open_folder(args.folder)
        for line in render_file_lines(controller.snapshot(), no_color=no_color):
            presenter.out.write(f"{line}\n")
    elif command == "stats":
        controller.state.folder_selection.replace(args.paths)
        stats = await controller.refresh_folder_stats()
        presenter.out.write(f"{stats_footer(stats)}\n")
    elif command == "rename":
        pane = Pane.FILES if args.file else Pane.FOLDERS
        controller.on_rename_start(pane, args.path)
        outcome = await controller.on_rename_submit(args.new_name)
        return 1 if outcome is None else _report_outcome(outcome, presenter)
    elif command == "move":
        kind = NodeKind.FILE if args.file else NodeKind.FOLDER
        outcome = await controller.coordinator.move(kind, args.path, args.dest, copy=args.copy)
        if outcome.state is OperationState.REJECTED:
            presenter.show_status(outcome.error or "Cannot move here", "error")
        return _report_outcome(outcome, presenter)
    elif command == "delete":
        pane = Pane.FILES if args.file else Pane.FOLDERS
        controller.state.selection(pane).replace(args.paths)
        if args.yes:
            deleted = await controller.on_delete_confirmed(pane)
        else:
            deleted = await controller.on_delete_requested(pane)
        if not deleted:
            return 1
    return 1 if presenter.errors else 0


async def _run(args: argparse.Namespace, presenter: ConsolePresenter) -> int:
    url = args.url or config.load_server_url()
    timeout = args.timeout or config.load_timeout_seconds()
    storage = HttpStorageClient(url, timeout=timeout)
    controller = PaneController(
        storage,
        presenter,
        folders_sort=config.load_sort(Pane.FOLDERS),
        files_sort=config.load_sort(Pane.FILES),
        persist_sort=config.save_sort,
        preview_max_lines=config.load_preview_max_lines(),
    )
    try:
        return await run_command(args, controller, presenter)
    except RemoteError as exc:
        logger.debug("command %s failed", args.command, exc_info=True)
        presenter.show_status(exc.message, "error")
        return 1
    finally:
        await controller.close()


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments, run one command against the server, and exit."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format=LOG_FORMAT)
    presenter = ConsolePresenter(assume_yes=getattr(args, "yes", False))
    exit_code = asyncio.run(_run(args, presenter))
    if exit_code:
        raise SystemExit(exit_code)


__all__ = ["ConsolePresenter", "build_parser", "main", "run_command"]
