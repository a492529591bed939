"""Shared fixtures: an in-memory async filesystem facade and a queue on top of it."""

from __future__ import annotations

import asyncio
from datetime import datetime
import os

import pytest

from core.errors import FileSystemError, FsErrorKind
from core.models import DirectoryContent, FileItem, ItemProperties
from core.services.operation_queue import FileOperationQueue


class FakeFileSystem:
    """Records calls and lets tests decide when and how each call ends.

    - `gate`: when set to an `asyncio.Event`, every call waits for it.
    - `failures`: path -> exception raised by any call on that path.
    - `listings`: path -> DirectoryContent returned by `list_directory`.
    """

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.failures: dict[str, BaseException] = {}
        self.listings: dict[str, DirectoryContent] = {}
        self.gate: asyncio.Event | None = None
        self.running = 0
        self.max_running = 0

    async def _step(self, name: str, path: str, *args) -> None:
        self.calls.append((name, path, *args))
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            exc = self.failures.get(path)
            if exc is not None:
                raise exc
        finally:
            self.running -= 1

    async def list_directory(self, path: str) -> DirectoryContent:
        await self._step("list_directory", path)
        if path not in self.listings:
            raise FileSystemError(
                f"No such file or directory: {path}", kind=FsErrorKind.NOT_FOUND, path=path
            )
        content = self.listings[path]
        return DirectoryContent(
            current_path=content.current_path,
            directories=list(content.directories),
            files=list(content.files),
            parent_path=content.parent_path,
        )

    async def create_directory(self, parent_path: str, name: str) -> str:
        await self._step("create_directory", parent_path, name)
        return os.path.join(parent_path, name)

    async def create_file(self, parent_path: str, name: str, content: str = "") -> str:
        await self._step("create_file", parent_path, name, content)
        return os.path.join(parent_path, name)

    async def delete_item(self, path: str) -> None:
        await self._step("delete_item", path)

    async def rename_item(self, old_path: str, new_name: str) -> str:
        await self._step("rename_item", old_path, new_name)
        return os.path.join(os.path.dirname(old_path), new_name)

    async def copy_item(self, source_path: str, destination_dir: str) -> str:
        await self._step("copy_item", source_path, destination_dir)
        return os.path.join(destination_dir, os.path.basename(source_path))

    async def move_item(self, source_path: str, destination_dir: str) -> str:
        await self._step("move_item", source_path, destination_dir)
        return os.path.join(destination_dir, os.path.basename(source_path))

    async def compress(self, item_paths, archive_path: str) -> None:
        await self._step("compress", archive_path, list(item_paths))

    async def stat(self, path: str) -> ItemProperties:
        await self._step("stat", path)
        now = datetime(2024, 1, 1, 12, 0)
        return ItemProperties(
            name=os.path.basename(path),
            path=path,
            parent_path=os.path.dirname(path),
            size=42,
            created=now,
            modified=now,
            accessed=now,
            is_directory=False,
            is_file=True,
        )


def make_item(parent: str, name: str, is_directory: bool = False, size: int = 0) -> FileItem:
    return FileItem(
        name=name,
        path=os.path.join(parent, name),
        is_directory=is_directory,
        size=size,
        last_modified=datetime(2024, 1, 1),
        extension=None if is_directory else (os.path.splitext(name)[1] or None),
    )


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    return FakeFileSystem()


@pytest.fixture
def queue(fake_fs: FakeFileSystem) -> FileOperationQueue:
    return FileOperationQueue(fake_fs, concurrency_limit=3)


@pytest.fixture
def item_factory():
    return make_item
