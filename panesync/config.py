"""Persistent JSON config helpers.

Stores the storage server URL, request timeout, per-pane sort choices and
the delete-preview line cap. Malformed or missing config falls back to
defaults.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from platformdirs import user_config_dir

from .deletion import DEFAULT_PREVIEW_MAX_LINES
from .model import SortSpec
from .remote.http import DEFAULT_TIMEOUT_SECONDS
from .selection import Pane

logger = logging.getLogger(__name__)

APP_NAME = "panesync"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
DEFAULT_SERVER_URL = "http://127.0.0.1:8338/"

_SORT_KEYS = {Pane.FOLDERS: "folders_sort", Pane.FILES: "files_sort"}


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("config not loaded from %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Write failures are logged and otherwise ignored so a read-only config
    directory never breaks the session.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not save config to %s: %s", CONFIG_PATH, exc)


def load_server_url() -> str:
    value = load_config().get("server_url")
    if not isinstance(value, str) or not value.strip():
        return DEFAULT_SERVER_URL
    return value.strip()


def save_server_url(url: str) -> None:
    stripped = str(url).strip()
    if not stripped:
        return
    config = load_config()
    config["server_url"] = stripped
    save_config(config)


def load_timeout_seconds() -> float:
    """Request timeout; booleans, non-numbers and non-positive values are ignored."""
    value = load_config().get("timeout_seconds")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return DEFAULT_TIMEOUT_SECONDS
    return float(value)


def load_sort(pane: Pane) -> SortSpec:
    return SortSpec.from_dict(load_config().get(_SORT_KEYS[pane]))


def save_sort(pane: Pane, spec: SortSpec) -> None:
    config = load_config()
    config[_SORT_KEYS[pane]] = spec.to_dict()
    save_config(config)


def load_preview_max_lines() -> int:
    value = load_config().get("preview_max_lines")
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return DEFAULT_PREVIEW_MAX_LINES
    return value


__all__ = [
    "CONFIG_PATH",
    "DEFAULT_SERVER_URL",
    "load_config",
    "load_preview_max_lines",
    "load_server_url",
    "load_sort",
    "load_timeout_seconds",
    "save_config",
    "save_server_url",
    "save_sort",
]
