"""Tests for config persistence and input sanitization.

Validates server URL, timeout, sort and preview-budget keys and ensures
malformed config data falls back to defaults on load.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from panesync import config
from panesync.deletion import DEFAULT_PREVIEW_MAX_LINES
from panesync.model import SortDirection, SortField, SortSpec
from panesync.remote.http import DEFAULT_TIMEOUT_SECONDS
from panesync.selection import Pane


class ConfigBehaviorTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.config_path = Path(tmp.name) / "nested" / "config.json"
        patcher = mock.patch("panesync.config.CONFIG_PATH", self.config_path)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_missing_file_yields_defaults(self) -> None:
        self.assertEqual(config.load_config(), {})
        self.assertEqual(config.load_server_url(), config.DEFAULT_SERVER_URL)
        self.assertEqual(config.load_timeout_seconds(), DEFAULT_TIMEOUT_SECONDS)
        self.assertEqual(config.load_sort(Pane.FILES), SortSpec())
        self.assertEqual(config.load_preview_max_lines(), DEFAULT_PREVIEW_MAX_LINES)

    def test_sort_choices_round_trip_per_pane(self) -> None:
        spec = SortSpec(SortField.DATE, SortDirection.DESC)
        config.save_sort(Pane.FILES, spec)
        config.save_server_url("  http://nas.local:9000/  ")

        self.assertEqual(config.load_sort(Pane.FILES), spec)
        self.assertEqual(config.load_sort(Pane.FOLDERS), SortSpec())
        self.assertEqual(config.load_server_url(), "http://nas.local:9000/")
        self.assertEqual(config.load_config()["files_sort"], {"field": "date", "direction": "desc"})

    def test_malformed_json_is_ignored(self) -> None:
        self.config_path.parent.mkdir(parents=True)
        self.config_path.write_text("{not json", encoding="utf-8")
        self.assertEqual(config.load_config(), {})

        self.config_path.write_text("[1, 2]", encoding="utf-8")
        self.assertEqual(config.load_config(), {})

    def test_invalid_values_fall_back(self) -> None:
        config.save_config(
            {
                "server_url": "   ",
                "timeout_seconds": True,
                "preview_max_lines": -4,
                "folders_sort": {"field": "weight"},
            }
        )
        self.assertEqual(config.load_server_url(), config.DEFAULT_SERVER_URL)
        self.assertEqual(config.load_timeout_seconds(), DEFAULT_TIMEOUT_SECONDS)
        self.assertEqual(config.load_preview_max_lines(), DEFAULT_PREVIEW_MAX_LINES)
        self.assertEqual(config.load_sort(Pane.FOLDERS), SortSpec())

        config.save_config({"timeout_seconds": 2, "preview_max_lines": 40})
        self.assertEqual(config.load_timeout_seconds(), 2.0)
        self.assertEqual(config.load_preview_max_lines(), 40)
