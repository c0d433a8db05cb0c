"""Anchor and range semantics of per-pane multi-selection."""

from __future__ import annotations

import unittest

from panesync.selection import Pane, SelectionController

VISIBLE = ["a", "b", "c", "d", "e"]


class SelectionControllerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.changes: list[Pane] = []
        self.selection = SelectionController(Pane.FILES, self.changes.append)

    def test_range_selects_closed_interval_in_both_directions(self) -> None:
        self.selection.select_single("b")
        self.selection.select_range("d", VISIBLE)
        self.assertEqual(self.selection.ordered(VISIBLE), ["b", "c", "d"])

        self.selection.select_single("d")
        self.selection.select_range("a", VISIBLE)
        self.assertEqual(self.selection.ordered(VISIBLE), ["a", "b", "c", "d"])

    def test_range_keeps_anchor_for_repeated_shift_clicks(self) -> None:
        self.selection.select_single("c")
        self.selection.select_range("e", VISIBLE)
        self.selection.select_range("a", VISIBLE)
        self.assertEqual(self.selection.anchor, "c")
        self.assertEqual(self.selection.ordered(VISIBLE), ["a", "b", "c"])

    def test_additive_range_keeps_existing_selection(self) -> None:
        self.selection.toggle("a")
        self.selection.toggle("e")
        self.selection.select_range("c", VISIBLE, additive=True)
        self.assertEqual(self.selection.ordered(VISIBLE), ["a", "c", "d", "e"])

    def test_range_anchor_falls_back_to_current_then_target(self) -> None:
        self.selection.select_range("d", VISIBLE, current="b")
        self.assertEqual(self.selection.ordered(VISIBLE), ["b", "c", "d"])

        other = SelectionController(Pane.FILES)
        other.select_range("c", VISIBLE)
        self.assertEqual(other.paths, ["c"])

    def test_range_to_hidden_target_is_ignored(self) -> None:
        self.selection.select_single("a")
        self.assertFalse(self.selection.select_range("zzz", VISIBLE))
        self.assertEqual(self.selection.paths, ["a"])

    def test_toggle_moves_anchor_and_flips_membership(self) -> None:
        self.selection.toggle("b")
        self.selection.toggle("d")
        self.selection.toggle("b")
        self.assertEqual(self.selection.paths, ["d"])
        self.assertEqual(self.selection.anchor, "b")

    def test_reconcile_drops_hidden_and_falls_back_to_visible_current(self) -> None:
        self.selection.select_all(VISIBLE)
        self.selection.reconcile(["x", "y"], current="y")
        self.assertEqual(self.selection.paths, ["y"])

        self.selection.reconcile(["x"], current="y")
        self.assertEqual(self.selection.paths, [])

    def test_change_callback_fires_only_on_real_changes(self) -> None:
        self.selection.select_single("a")
        self.selection.select_single("a")
        self.selection.clear()
        self.selection.clear()
        self.assertEqual(self.changes, [Pane.FILES, Pane.FILES])

    def test_rewrite_and_discard_under(self) -> None:
        selection = SelectionController(Pane.FOLDERS)
        selection.replace(["music", "music/rock", "docs"], anchor="music/rock")
        selection.rewrite("music", "Music")
        self.assertEqual(selection.paths, ["Music", "Music/rock", "docs"])
        self.assertEqual(selection.anchor, "Music/rock")

        selection.discard_under("Music")
        self.assertEqual(selection.paths, ["docs"])
        self.assertIsNone(selection.anchor)
