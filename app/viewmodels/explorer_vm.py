"""ViewModel for browsing a directory tree and queueing file operations."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
import os

from loguru import logger

from core.errors import FileSystemError
from core.models import (
    ClipboardAction,
    DirectoryContent,
    FileItem,
    ItemProperties,
    Operation,
    OperationRequest,
    OperationStatus,
)
from core.services.clipboard_service import ClipboardService
from core.services.events import EventChannel, Unsubscribe
from core.services.interfaces import FileSystemFacade
from core.services.navigation_history import NavigationHistory
from core.services.operation_queue import FileOperationQueue
from core.services.search_service import SearchService
from core.services.sort_service import SORT_FIELDS, SortService


@dataclass(frozen=True)
class ListingState:
    """Copy of what the window shows, safe to hand to another thread."""

    path: str | None
    items: tuple[FileItem, ...] = ()
    can_go_back: bool = False
    can_go_forward: bool = False
    back_history: tuple[str, ...] = ()
    forward_history: tuple[str, ...] = ()
    sort_by: str = "name"
    sort_ascending: bool = True
    search_query: str = ""
    total_count: int = 0


def _same_dir(a: str, b: str) -> bool:
    return os.path.normcase(os.path.normpath(a)) == os.path.normcase(os.path.normpath(b))


class ExplorerVM:
    """Application session: navigation, listing and operation submission.

    Owns no global state; the queue, history and facade are injected so
    several independent sessions can coexist (e.g. in tests). Must be used
    from the event loop thread that runs the queue.
    """

    def __init__(
        self,
        facade: FileSystemFacade,
        queue: FileOperationQueue,
        history: NavigationHistory | None = None,
        clipboard: ClipboardService | None = None,
        sorter: SortService | None = None,
        searcher: SearchService | None = None,
        settings=None,
    ) -> None:
        """Create an ExplorerVM.

        Args:
            facade: Filesystem backend used for listings.
            queue: Queue that executes mutating operations.
            history: Back/forward history (defaults to a new one).
            clipboard: Copy/cut bookkeeping (defaults to a new one).
            sorter: Listing sort service.
            searcher: Listing filter service.
            settings: Optional `JsonSettings`; sort order and last path are
                read from and written to it.
        """
        self._facade = facade
        self._queue = queue
        self.history = history or NavigationHistory()
        self.clipboard = clipboard or ClipboardService()
        self._sorter = sorter or SortService()
        self._searcher = searcher or SearchService()
        self._settings = settings

        self.content: DirectoryContent | None = None
        self.visible_items: list[FileItem] = []
        self.search_query = ""
        self.search_is_regex = False
        self.sort_by = "name"
        self.sort_ascending = True
        if settings is not None:
            sort_by = str(settings.get("view.sort_by", "name") or "name")
            self.sort_by = sort_by if sort_by in SORT_FIELDS else "name"
            self.sort_ascending = str(settings.get("view.sort_order", "asc")).lower() != "desc"

        self._content_changed: EventChannel[DirectoryContent] = EventChannel("Directory content")
        self._errors: EventChannel[FileSystemError] = EventChannel("Navigation error")
        self._refresh_task: asyncio.Task[bool] | None = None
        self._refresh_pending = False
        self._unsubscribe_queue = queue.subscribe_lifecycle(self._on_operation)

    @property
    def queue(self) -> FileOperationQueue:
        return self._queue

    @property
    def current_path(self) -> str | None:
        return self.history.current_path()

    def subscribe_content(self, callback: Callable[[DirectoryContent], None]) -> Unsubscribe:
        return self._content_changed.subscribe(callback)

    def subscribe_errors(self, callback: Callable[[FileSystemError], None]) -> Unsubscribe:
        return self._errors.subscribe(callback)

    # ------------------------------------------------------------------
    # Navigation

    async def open_path(self, path: str, record: bool = True) -> bool:
        """List `path` and make it current. Returns False if listing failed."""
        content = await self._load(path)
        if content is None:
            return False
        self.history.navigate(path, record)
        self._apply(content)
        if self._settings is not None and self._settings.get("navigation.remember_last_path", True):
            self._settings.set("navigation.last_path", path)
        return True

    async def go_back(self) -> bool:
        path = self.history.go_back()
        if path is None:
            return False
        if await self.open_path(path, record=False):
            return True
        self.history.go_forward()
        return False

    async def go_forward(self) -> bool:
        path = self.history.go_forward()
        if path is None:
            return False
        if await self.open_path(path, record=False):
            return True
        self.history.go_back()
        return False

    async def go_up(self) -> bool:
        if self.content is None or not self.content.parent_path:
            return False
        return await self.open_path(self.content.parent_path)

    async def go_home(self, home: str | None = None) -> bool:
        return await self.open_path(home or os.path.expanduser("~"))

    async def refresh(self) -> bool:
        path = self.current_path
        if path is None:
            return False
        content = await self._load(path)
        if content is None:
            return False
        self._apply(content)
        return True

    async def _load(self, path: str) -> DirectoryContent | None:
        try:
            return await self._facade.list_directory(path)
        except FileSystemError as ex:
            logger.error("Failed to read directory {}: {}", path, ex)
            self._errors.publish(ex)
            return None

    def _apply(self, content: DirectoryContent) -> None:
        self._sorter.sort_content(content, self.sort_by, self.sort_ascending)
        self.content = content
        self._update_visible()
        self._content_changed.publish(content)

    async def properties(self, path: str) -> ItemProperties:
        return await self._facade.stat(path)

    def _update_visible(self) -> None:
        items = self.content.items if self.content is not None else []
        try:
            self.visible_items = self._searcher.filter(
                items, self.search_query, self.search_is_regex
            )
        except ValueError as ex:
            logger.warning("Search ignored: {}", ex)
            self.visible_items = list(items)

    # ------------------------------------------------------------------
    # View options

    def set_sort(self, sort_by: str, ascending: bool = True) -> None:
        self.sort_by = sort_by
        self.sort_ascending = ascending
        if self._settings is not None:
            self._settings.set("view.sort_by", sort_by)
            self._settings.set("view.sort_order", "asc" if ascending else "desc")
        if self.content is not None:
            self._apply(self.content)

    def set_search(self, query: str, use_regex: bool = False) -> None:
        self.search_query = query
        self.search_is_regex = use_regex
        if self.content is not None:
            self._update_visible()
            self._content_changed.publish(self.content)

    def snapshot(self) -> ListingState:
        total = len(self.content.items) if self.content is not None else 0
        return ListingState(
            path=self.current_path,
            items=tuple(self.visible_items),
            can_go_back=self.history.can_go_back(),
            can_go_forward=self.history.can_go_forward(),
            back_history=tuple(self.history.back_history()),
            forward_history=tuple(self.history.forward_history()),
            sort_by=self.sort_by,
            sort_ascending=self.sort_ascending,
            search_query=self.search_query,
            total_count=total,
        )

    # ------------------------------------------------------------------
    # Operations

    def _require_current(self) -> str:
        path = self.current_path
        if path is None:
            raise RuntimeError("No directory is open")
        return path

    def delete(self, paths: list[str]) -> str:
        return self._queue.submit(OperationRequest.delete(paths))

    def rename(self, path: str, new_name: str) -> str:
        return self._queue.submit(OperationRequest.rename(path, new_name))

    def create_folder(self, name: str = "New Folder") -> str:
        return self._queue.submit(OperationRequest.create_folder(self._require_current(), name))

    def create_file(self, name: str = "New File.txt", content: str = "") -> str:
        return self._queue.submit(
            OperationRequest.create_file(self._require_current(), name, content)
        )

    def copy_to(self, paths: list[str], destination: str) -> str:
        return self._queue.submit(OperationRequest.copy(paths, destination))

    def move_to(self, paths: list[str], destination: str) -> str:
        return self._queue.submit(OperationRequest.move(paths, destination))

    def compress(self, paths: list[str], archive_name: str) -> str:
        if not archive_name.lower().endswith(".zip"):
            archive_name = f"{archive_name}.zip"
        return self._queue.submit(
            OperationRequest.compress(paths, self._require_current(), archive_name)
        )

    def paste(self) -> str | None:
        """Copy or move the clipboard items into the current directory."""
        destination = self._require_current()
        content = self.clipboard.peek()
        if content is None:
            return None
        if content.action is ClipboardAction.CUT:
            op_id = self.move_to(list(content.paths), destination)
        else:
            op_id = self.copy_to(list(content.paths), destination)
        # A cut is consumed only after the queue accepted it.
        self.clipboard.paste()
        return op_id

    # ------------------------------------------------------------------
    # Queue observation

    def _on_operation(self, operation: Operation) -> None:
        if operation.status not in (OperationStatus.COMPLETED, OperationStatus.FAILED):
            return
        current = self.current_path
        if current is None:
            return
        if not any(_same_dir(current, d) for d in operation.touched_directories()):
            return
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_pending = True
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._refresh_task = loop.create_task(self._refresh_after_operation())

    async def _refresh_after_operation(self) -> bool:
        ok = await self.refresh()
        # Operations that finished during the reload need one more pass.
        while self._refresh_pending:
            self._refresh_pending = False
            ok = await self.refresh()
        return ok

    async def wait_refreshed(self) -> None:
        """Wait for a listing reload triggered by a finished operation."""
        if self._refresh_task is not None:
            await self._refresh_task

    def close(self) -> None:
        self._unsubscribe_queue()
        if self._settings is not None:
            try:
                self._settings.save()
            except OSError as ex:
                logger.error("Failed to save settings: {}", ex)
