"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import copy
from collections.abc import Callable
import json
import os
from pathlib import Path
import tempfile
from typing import Any

from loguru import logger

from core.services.events import EventChannel, Unsubscribe

DEFAULT_SETTINGS: dict[str, Any] = {
    "queue": {
        "concurrency_limit": 3,
        "operation_timeout_seconds": None,
    },
    "navigation": {
        "max_history_size": 50,
        "remember_last_path": True,
        "last_path": None,
    },
    "view": {
        "show_hidden_files": False,
        "sort_by": "name",
        "sort_order": "asc",
    },
    "behavior": {
        "confirm_delete": True,
        "use_recycle_bin": True,
    },
    "advanced": {
        "log_level": "INFO",
    },
}


def _merge(defaults: dict[str, Any], saved: dict[str, Any]) -> dict[str, Any]:
    """Overlay `saved` on `defaults` one category deep; unknown keys are dropped."""
    merged = copy.deepcopy(defaults)
    for key, value in saved.items():
        if key not in merged:
            continue
        if isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


class JsonSettings:
    """JSON settings store with dotted-key access.

    Missing or unreadable files fall back to the defaults; `save` writes the
    whole document back.
    """

    def __init__(self, settings_path: str | Path, defaults: dict[str, Any] | None = None) -> None:
        self._path = Path(settings_path)
        self._defaults = defaults if defaults is not None else DEFAULT_SETTINGS
        self._changed: EventChannel[JsonSettings] = EventChannel("Settings")
        saved: dict[str, Any] = {}
        if self._path.exists():
            try:
                with self._path.open("r", encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    saved = loaded
                else:
                    logger.warning("Ignoring settings file with unexpected shape: {}", self._path)
            except (OSError, ValueError) as ex:
                logger.warning("Failed to load settings {}: {}", self._path, ex)
        self._data = _merge(self._defaults, saved)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def set(self, key: str, value: Any) -> None:
        """Set dotted `key` to `value`, creating intermediate sections."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value
        self._changed.publish(self)

    def save(self) -> None:
        """Write settings to disk atomically."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".settings-", suffix=".json", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self._path)
        except OSError:
            try:
                os.remove(tmp)
            except OSError:
                pass
            raise

    def reset(self) -> None:
        """Restore the defaults (not saved until `save`)."""
        self._data = copy.deepcopy(self._defaults)
        self._changed.publish(self)

    def as_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    def subscribe(self, callback: Callable[[JsonSettings], None]) -> Unsubscribe:
        return self._changed.subscribe(callback)
