"""Bounded back/forward navigation history.

Pure in-memory state: an ordered list of visited paths and a cursor.
``current_index`` is -1 exactly when the history is empty.
"""

from __future__ import annotations

DEFAULT_HISTORY_SIZE = 50


class NavigationHistory:
    """Browser-style history of visited directories."""

    def __init__(self, capacity: int = DEFAULT_HISTORY_SIZE) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._history: list[str] = []
        self._index = -1

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def history(self) -> list[str]:
        """Copy of all recorded paths, oldest first."""
        return list(self._history)

    def __len__(self) -> int:
        return len(self._history)

    def navigate(self, path: str, record: bool = True) -> None:
        """Move to `path`.

        When recording, forward entries are discarded, `path` is appended and
        the oldest entry is evicted if capacity is exceeded. When not
        recording (after an out-of-band jump) the cursor is only clamped into
        range.
        """
        if not record:
            if self._history:
                self._index = max(0, min(self._index, len(self._history) - 1))
            else:
                self._index = -1
            return

        del self._history[self._index + 1 :]
        self._history.append(path)
        if len(self._history) > self._capacity:
            # Cursor keeps pointing at the new tail.
            del self._history[0]
        else:
            self._index += 1

    def can_go_back(self) -> bool:
        return self._index > 0

    def can_go_forward(self) -> bool:
        return self._index < len(self._history) - 1

    def go_back(self) -> str | None:
        """Step back and return the new current path, or None if impossible."""
        if not self.can_go_back():
            return None
        self._index -= 1
        return self._history[self._index]

    def go_forward(self) -> str | None:
        """Step forward and return the new current path, or None if impossible."""
        if not self.can_go_forward():
            return None
        self._index += 1
        return self._history[self._index]

    def current_path(self) -> str | None:
        if 0 <= self._index < len(self._history):
            return self._history[self._index]
        return None

    def clear(self) -> None:
        self._history = []
        self._index = -1

    def back_history(self, max_items: int = 10) -> list[str]:
        """Up to `max_items` entries before the cursor, oldest first."""
        if self._index <= 0:
            return []
        return self._history[max(0, self._index - max_items) : self._index]

    def forward_history(self, max_items: int = 10) -> list[str]:
        """Up to `max_items` entries after the cursor, nearest first."""
        return self._history[self._index + 1 : self._index + 1 + max_items]
