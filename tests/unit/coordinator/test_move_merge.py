"""Rename/move orchestration including the merge-confirmation protocol."""

from __future__ import annotations

import unittest

from panesync.coordinator import MoveMergeCoordinator, OperationState, validate_folder_name
from panesync.errors import InvalidNameError, RemoteError, ReservedNameError
from panesync.events import ModelEvents
from panesync.model import NodeKind
from panesync.remote import FOLDER_EXISTS, MERGE_CONFLICTS
from panesync.state import AppState
from panesync.sync import FileListSynchronizer, TreeSynchronizer
from tests.fakes import InMemoryStorage, RecordingPresenter


class CoordinatorTestCase(unittest.IsolatedAsyncioTestCase):
    folders: list[str] = []
    files: dict[str, int] = {}

    async def asyncSetUp(self) -> None:
        self.storage = InMemoryStorage(folders=self.folders, files=self.files)
        self.presenter = RecordingPresenter()
        self.events = ModelEvents()
        self.state = AppState.create()
        self.tree = TreeSynchronizer(self.state, self.storage, self.events)
        self.file_list = FileListSynchronizer(self.state, self.storage, self.events)
        self.coordinator = MoveMergeCoordinator(
            self.state, self.storage, self.presenter, self.events, self.tree, self.file_list
        )
        await self.tree.load_root()

    def visible(self) -> list[str]:
        return [row.path for row in self.state.folder_rows]


class FolderMergeTests(CoordinatorTestCase):
    folders = ["Music", "music/rock"]
    files = {"music/a.mp3": 1, "Music/a.mp3": 2, "music/b.mp3": 3}

    async def test_merge_conflicts_end_reported_without_local_rewrite(self) -> None:
        await self.tree.expand("music")
        self.state.folder_selection.replace(["music/rock"])

        outcome = await self.coordinator.rename_folder("music", "Music")

        self.assertEqual(outcome.state, OperationState.REPORTED)
        self.assertEqual(outcome.error, MERGE_CONFLICTS)
        self.assertEqual(outcome.conflicts, ("Music/a.mp3",))
        self.assertEqual(
            self.storage.called("rename_folder"),
            [("music", "Music", False), ("music", "Music", True)],
        )
        self.assertEqual(self.presenter.merge_prompts, ["Music"])
        self.assertEqual(self.presenter.conflicts, [["Music/a.mp3"]])
        self.assertIn("music", self.state.cache)
        self.assertIn("music", self.state.expanded)
        self.assertEqual(self.state.folder_selection.paths, ["music/rock"])
        self.assertIn("music", self.visible())

    async def test_declined_merge_is_cancelled_after_one_request(self) -> None:
        self.presenter.merge_answer = False

        outcome = await self.coordinator.rename_folder("music", "Music")

        self.assertEqual(outcome.state, OperationState.CANCELLED)
        self.assertEqual(outcome.error, FOLDER_EXISTS)
        self.assertEqual(len(self.storage.called("rename_folder")), 1)
        self.assertEqual(self.presenter.errors, [])


class CleanMergeTests(CoordinatorTestCase):
    folders = ["Music", "music/rock"]
    files = {"music/b.mp3": 3, "Music/a.mp3": 2}

    async def test_accepted_merge_reloads_tree_at_target(self) -> None:
        await self.tree.expand("music")
        self.state.active_folder = "music/rock"
        self.state.current_folder = "music/rock"

        outcome = await self.coordinator.rename_folder("music", "Music")

        self.assertEqual(outcome.state, OperationState.APPLIED)
        self.assertTrue(outcome.merged)
        self.assertEqual(self.visible(), ["Music", "Music/rock"])
        self.assertEqual(self.state.expanded, {"Music"})
        self.assertEqual(self.state.active_folder, "Music/rock")
        self.assertEqual(self.state.current_folder, "Music/rock")


class FolderRenameTests(CoordinatorTestCase):
    folders = ["music/rock", "docs"]
    files = {"music/rock/song.mp3": 1}

    async def test_plain_rename_rewrites_every_reference_in_place(self) -> None:
        await self.tree.expand("music")
        await self.tree.expand("music/rock")
        self.state.active_folder = "music/rock"
        await self.file_list.load("music/rock")
        self.state.current_file = "music/rock/song.mp3"
        self.state.folder_selection.replace(["music/rock"], anchor="music/rock")
        roots_before = len(self.storage.called("list_root"))

        outcome = await self.coordinator.rename_folder("music", "Tunes")

        self.assertEqual(outcome.new_path, "Tunes")
        self.assertEqual(self.state.expanded, {"Tunes", "Tunes/rock"})
        self.assertEqual(self.state.folder_selection.paths, ["Tunes/rock"])
        self.assertEqual(self.state.folder_selection.anchor, "Tunes/rock")
        self.assertEqual(self.state.active_folder, "Tunes/rock")
        self.assertEqual(self.state.current_folder, "Tunes/rock")
        self.assertEqual(self.state.current_file, "Tunes/rock/song.mp3")
        self.assertEqual(self.visible(), ["docs", "Tunes", "Tunes/rock"])
        self.assertEqual(len(self.storage.called("list_root")), roots_before)

    async def test_noop_and_invalid_names_never_reach_the_server(self) -> None:
        for name in ["music", "   ", ""]:
            outcome = await self.coordinator.rename_folder("music", name)
            self.assertEqual(outcome.state, OperationState.NOOP)
        for name in ["a/b", "a\\b", "what?", "con", "LPT1"]:
            outcome = await self.coordinator.rename_folder("music", name)
            self.assertEqual(outcome.state, OperationState.REJECTED, name)
        self.assertEqual(self.storage.called("rename_folder"), [])

    async def test_transport_failure_is_reported_and_state_kept(self) -> None:
        self.storage.fail("rename_folder", "docs", RemoteError("Network error"))

        outcome = await self.coordinator.rename_folder("docs", "papers")

        self.assertEqual(outcome.state, OperationState.REPORTED)
        self.assertEqual(self.presenter.errors, ["Network error"])
        self.assertIn("docs", self.visible())


class FolderMoveTests(CoordinatorTestCase):
    folders = ["A/sub/deep", "B"]
    files = {"A/sub/x.txt": 1}

    async def test_drop_into_own_subtree_is_rejected_locally(self) -> None:
        for target in ["A", "A/sub", "A/sub/deep"]:
            outcome = await self.coordinator.move_folder("A", target)
            self.assertEqual(outcome.state, OperationState.REJECTED)
        self.assertEqual(self.storage.called("move_folder"), [])

    async def test_drop_onto_own_parent_is_a_noop(self) -> None:
        outcome = await self.coordinator.move_folder("A/sub", "A")
        self.assertEqual(outcome.state, OperationState.NOOP)
        self.assertEqual(self.storage.called("move_folder"), [])

    async def test_move_rewrites_state_and_reloads(self) -> None:
        await self.tree.expand("A")
        await self.tree.expand("A/sub")
        self.state.active_folder = "A/sub/deep"
        self.state.folder_selection.replace(["A/sub/deep"])
        await self.file_list.load("A/sub")

        outcome = await self.coordinator.move_folder("A/sub", "B")

        self.assertEqual(outcome.new_path, "B/sub")
        self.assertEqual(self.visible(), ["A", "B", "B/sub", "B/sub/deep"])
        self.assertEqual(self.state.expanded, {"A", "B", "B/sub"})
        self.assertEqual(self.state.active_folder, "B/sub/deep")
        self.assertEqual(self.state.current_folder, "B/sub")
        self.assertEqual([row.path for row in self.state.file_rows], ["B/sub/x.txt"])

    async def test_copy_keeps_source(self) -> None:
        outcome = await self.coordinator.move_folder("A/sub", "B", copy=True)
        self.assertEqual(outcome.new_path, "B/sub")
        self.assertIn("A/sub", self.storage.folders)
        self.assertIn("B/sub", self.storage.folders)


class FileOperationTests(CoordinatorTestCase):
    folders = ["in", "out"]
    files = {"in/a.txt": 1, "in/b.txt": 2}

    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        await self.file_list.load("in")

    async def test_rename_file_updates_selection_and_current_file(self) -> None:
        self.state.current_file = "in/a.txt"
        self.state.file_selection.replace(["in/a.txt"])

        outcome = await self.coordinator.rename_file("in/a.txt", "c.txt")

        self.assertEqual(outcome.new_path, "in/c.txt")
        self.assertEqual(self.state.current_file, "in/c.txt")
        self.assertEqual(self.state.file_selection.paths, ["in/c.txt"])
        self.assertEqual([row.path for row in self.state.file_rows], ["in/b.txt", "in/c.txt"])

    async def test_rename_file_onto_existing_name_is_reported(self) -> None:
        outcome = await self.coordinator.rename_file("in/a.txt", "b.txt")
        self.assertEqual(outcome.state, OperationState.REPORTED)
        self.assertEqual(len(self.presenter.errors), 1)

    async def test_file_names_only_refuse_separators(self) -> None:
        outcome = await self.coordinator.rename_file("in/a.txt", "x/y.txt")
        self.assertEqual(outcome.state, OperationState.REJECTED)
        self.assertEqual(self.storage.called("rename_file"), [])

    async def test_moved_current_file_follows_the_move(self) -> None:
        self.state.current_file = "in/a.txt"
        outcome = await self.coordinator.move(NodeKind.FILE, "in/a.txt", "out")
        self.assertEqual(outcome.new_path, "out/a.txt")
        self.assertEqual(self.state.current_file, "out/a.txt")
        self.assertEqual([row.path for row in self.state.file_rows], ["in/b.txt"])


class NameValidationTests(unittest.TestCase):
    def test_reserved_and_invalid_names(self) -> None:
        with self.assertRaises(ReservedNameError):
            validate_folder_name("Com3")
        with self.assertRaises(InvalidNameError):
            validate_folder_name('say "hi"')
        validate_folder_name("CONFIG")
