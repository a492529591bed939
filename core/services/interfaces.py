"""Core service interfaces.

The operation queue and the explorer view-model only see the filesystem
through `FileSystemFacade`, so tests and alternative backends can provide
their own implementation.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from core.models import DirectoryContent, ItemProperties


class FileSystemFacade(Protocol):
    """Asynchronous, possibly-failing access to a filesystem.

    Every method may raise `core.errors.FileSystemError`. Implementations
    that create entries disambiguate name collisions by suffixing ``(n)``
    and return the final path.
    """

    async def list_directory(self, path: str) -> DirectoryContent:
        """Return folders and files directly under `path`."""
        ...

    async def create_directory(self, parent_path: str, name: str) -> str:
        """Create folder `name` in `parent_path`; return its final path."""
        ...

    async def create_file(self, parent_path: str, name: str, content: str = "") -> str:
        """Create file `name` in `parent_path` holding `content`."""
        ...

    async def delete_item(self, path: str) -> None:
        """Delete `path`, recursively for directories."""
        ...

    async def rename_item(self, old_path: str, new_name: str) -> str:
        """Rename `old_path` within its folder; return the new path."""
        ...

    async def copy_item(self, source_path: str, destination_dir: str) -> str:
        """Copy `source_path` into `destination_dir`; return the final path."""
        ...

    async def move_item(self, source_path: str, destination_dir: str) -> str:
        """Move `source_path` into `destination_dir`; return the final path."""
        ...

    async def compress(self, item_paths: Sequence[str], archive_path: str) -> None:
        """Write `item_paths` into a new archive at `archive_path`.

        Fails if no item could be added or the archive ends up empty.
        """
        ...

    async def stat(self, path: str) -> ItemProperties:
        """Return size, timestamps and type of `path`."""
        ...
