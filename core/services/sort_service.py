"""Sorting service for directory listings.

Folders always come before files; within each group the items are ordered
by one field, falling back to the name so the order is stable.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from core.models import DirectoryContent, FileItem

SORT_FIELDS = ("name", "size", "modified", "type")


class SortService:
    """Provides sorting utilities for `FileItem` lists."""

    def sort_items(
        self, items: Iterable[FileItem], sort_by: str = "name", ascending: bool = True
    ) -> list[FileItem]:
        """Return `items` sorted by `sort_by`, folders first.

        Args:
            items: Entries to sort; not modified.
            sort_by: One of "name", "size", "modified", "type".
            ascending: Direction of the primary key. Folders stay first
                either way.

        Raises:
            ValueError: If `sort_by` is not a known field.
        """
        if sort_by not in SORT_FIELDS:
            raise ValueError(f"Unknown sort field: {sort_by!r}")

        items = list(items)
        folders = [it for it in items if it.is_directory]
        files = [it for it in items if not it.is_directory]
        return self._sorted(folders, sort_by, ascending) + self._sorted(files, sort_by, ascending)

    def sort_content(
        self, content: DirectoryContent, sort_by: str = "name", ascending: bool = True
    ) -> None:
        """Sort folders and files of `content` in-place."""
        content.directories = self.sort_items(content.directories, sort_by, ascending)
        content.files = self.sort_items(content.files, sort_by, ascending)

    def _sorted(self, items: list[FileItem], sort_by: str, ascending: bool) -> list[FileItem]:
        # Name is the tiebreaker and always ascending, so sort by it first.
        by_name = sorted(items, key=lambda it: it.name.casefold())
        return sorted(by_name, key=lambda it: self._key(it, sort_by), reverse=not ascending)

    @staticmethod
    def _key(item: FileItem, sort_by: str) -> Any:
        if sort_by == "size":
            return item.size
        if sort_by == "modified":
            return item.last_modified or datetime.min
        if sort_by == "type":
            return (item.extension or "").casefold()
        return item.name.casefold()
