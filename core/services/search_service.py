"""Filter a directory listing by name, the way the search bar does."""

from __future__ import annotations

from collections.abc import Iterable
import re

from core.models import FileItem


class SearchService:
    """Match listing entries against a query.

    The query is a plain substring by default; with `use_regex` it is a
    regular expression searched anywhere in the name.
    """

    def __init__(self, case_sensitive: bool = False) -> None:
        self._case_sensitive = case_sensitive

    def filter(
        self, items: Iterable[FileItem], query: str, use_regex: bool = False
    ) -> list[FileItem]:
        """Return the entries of `items` whose name matches `query`.

        An empty query matches everything.

        Raises:
            ValueError: If `use_regex` is set and `query` is not a valid pattern.
        """
        items = list(items)
        query = query.strip()
        if not query:
            return items

        flags = 0 if self._case_sensitive else re.IGNORECASE
        pattern = query if use_regex else re.escape(query)
        try:
            rx = re.compile(pattern, flags)
        except re.error as ex:
            raise ValueError(f"Invalid search pattern {query!r}: {ex}") from ex
        return [it for it in items if rx.search(it.name)]
