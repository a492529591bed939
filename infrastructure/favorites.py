"""Favorites (bookmarked folders) persisted as a JSON list."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict
import json
import os
from pathlib import Path
import time
import uuid

from loguru import logger

from core.models import FavoriteItem
from core.services.events import EventChannel, Unsubscribe


def _display_name(path: str) -> str:
    normalized = path.replace("\\", "/").rstrip("/")
    return normalized.rsplit("/", 1)[-1] or path


class FavoritesStore:
    """Keeps the favorites list and writes it back on every change.

    Each favorite records whether its folder still exists (`is_valid`);
    `refresh_validity` re-checks all of them.
    """

    def __init__(
        self, store_path: str | Path, exists: Callable[[str], bool] = os.path.isdir
    ) -> None:
        self._path = Path(store_path)
        self._exists = exists
        self._items: list[FavoriteItem] = []
        self._changed: EventChannel[list[FavoriteItem]] = EventChannel("Favorites")
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with self._path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as ex:
            logger.warning("Failed to load favorites {}: {}", self._path, ex)
            return
        if not isinstance(raw, list):
            logger.warning("Ignoring favorites file with unexpected shape: {}", self._path)
            return
        for entry in raw:
            if not isinstance(entry, dict) or "path" not in entry:
                continue
            self._items.append(
                FavoriteItem(
                    id=str(entry.get("id") or self._new_id()),
                    name=str(entry.get("name") or _display_name(str(entry["path"]))),
                    path=str(entry["path"]),
                    added_at=float(entry.get("added_at") or time.time()),
                    last_accessed=entry.get("last_accessed"),
                    is_valid=bool(entry.get("is_valid", True)),
                )
            )

    def _save(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("w", encoding="utf-8") as f:
                json.dump([asdict(it) for it in self._items], f, indent=2, ensure_ascii=False)
        except OSError as ex:
            logger.error("Failed to save favorites {}: {}", self._path, ex)

    def _commit(self) -> None:
        self._save()
        self._changed.publish(self.list())

    @staticmethod
    def _new_id() -> str:
        return f"fav_{uuid.uuid4().hex[:12]}"

    def add(self, folder_path: str, name: str | None = None) -> str:
        """Add `folder_path`; if already a favorite, update it and return its id."""
        now = time.time()
        existing = self._find_by_path(folder_path)
        if existing is not None:
            existing.last_accessed = now
            if name:
                existing.name = name
            self._commit()
            return existing.id

        item = FavoriteItem(
            id=self._new_id(),
            name=name or _display_name(folder_path),
            path=folder_path,
            added_at=now,
            last_accessed=now,
            is_valid=self._exists(folder_path),
        )
        self._items.insert(0, item)
        logger.info("Added favorite: {} ({})", item.name, item.path)
        self._commit()
        return item.id

    def remove(self, favorite_id: str) -> bool:
        item = self.get(favorite_id)
        if item is None:
            return False
        self._items.remove(item)
        self._commit()
        return True

    def remove_by_path(self, folder_path: str) -> bool:
        item = self._find_by_path(folder_path)
        if item is None:
            return False
        self._items.remove(item)
        self._commit()
        return True

    def list(self) -> list[FavoriteItem]:
        """All favorites in display order; new ones are added at the top."""
        return list(self._items)

    def valid(self) -> list[FavoriteItem]:
        return [it for it in self.list() if it.is_valid]

    def invalid(self) -> list[FavoriteItem]:
        return [it for it in self.list() if not it.is_valid]

    def is_favorite(self, folder_path: str) -> bool:
        return self._find_by_path(folder_path) is not None

    def get(self, favorite_id: str) -> FavoriteItem | None:
        for it in self._items:
            if it.id == favorite_id:
                return it
        return None

    def touch(self, favorite_id: str) -> None:
        item = self.get(favorite_id)
        if item is not None:
            item.last_accessed = time.time()
            self._save()

    def rename(self, favorite_id: str, new_name: str) -> bool:
        item = self.get(favorite_id)
        if item is None or not new_name.strip():
            return False
        item.name = new_name.strip()
        self._commit()
        return True

    def reorder(self, favorite_ids: list[str]) -> bool:
        """Store favorites in the order of `favorite_ids` (must list all of them)."""
        if len(favorite_ids) != len(self._items):
            return False
        reordered: list[FavoriteItem] = []
        for fid in favorite_ids:
            item = self.get(fid)
            if item is None or item in reordered:
                return False
            reordered.append(item)
        self._items = reordered
        self._commit()
        return True

    def refresh_validity(self) -> bool:
        """Re-check every favorite's folder; return True if anything changed."""
        changed = False
        for it in self._items:
            valid = self._exists(it.path)
            if valid != it.is_valid:
                it.is_valid = valid
                changed = True
        if changed:
            self._commit()
        return changed

    def cleanup_invalid(self) -> int:
        """Drop favorites whose folder no longer exists; return how many."""
        before = len(self._items)
        self._items = [it for it in self._items if it.is_valid]
        removed = before - len(self._items)
        if removed:
            self._commit()
        return removed

    def subscribe(self, callback: Callable[[list[FavoriteItem]], None]) -> Unsubscribe:
        return self._changed.subscribe(callback)

    def _find_by_path(self, folder_path: str) -> FavoriteItem | None:
        for it in self._items:
            if it.path == folder_path:
                return it
        return None
