"""Copy/cut/paste bookkeeping decoupled from any UI toolkit."""

from __future__ import annotations

from collections.abc import Callable, Iterable
import time

from core.models import ClipboardAction, ClipboardContent
from core.services.events import EventChannel, Unsubscribe


class ClipboardService:
    """Remembers which paths were copied or cut.

    Pasting a cut clears the clipboard, since the items move away; a copy
    can be pasted repeatedly.
    """

    def __init__(self) -> None:
        self._content: ClipboardContent | None = None
        self._changed: EventChannel[ClipboardContent | None] = EventChannel("Clipboard")

    def copy(self, paths: Iterable[str]) -> None:
        self._set(paths, ClipboardAction.COPY)

    def cut(self, paths: Iterable[str]) -> None:
        self._set(paths, ClipboardAction.CUT)

    def paste(self) -> ClipboardContent | None:
        """Return the clipboard content, clearing it after a cut."""
        content = self._content
        if content is not None and content.action is ClipboardAction.CUT:
            self.clear()
        return content

    def peek(self) -> ClipboardContent | None:
        return self._content

    @property
    def can_paste(self) -> bool:
        return self._content is not None

    def clear(self) -> None:
        self._content = None
        self._changed.publish(None)

    def describe(self) -> str:
        """Short text for a status bar, e.g. "Move 3 items"."""
        if self._content is None:
            return ""
        count = len(self._content.paths)
        verb = "Copy" if self._content.action is ClipboardAction.COPY else "Move"
        noun = "item" if count == 1 else "items"
        return f"{verb} {count} {noun}"

    def subscribe(self, callback: Callable[[ClipboardContent | None], None]) -> Unsubscribe:
        return self._changed.subscribe(callback)

    def _set(self, paths: Iterable[str], action: ClipboardAction) -> None:
        items = tuple(paths)
        if not items:
            return
        self._content = ClipboardContent(paths=items, action=action, timestamp=time.time())
        self._changed.publish(self._content)
