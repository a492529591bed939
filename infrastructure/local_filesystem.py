"""Local filesystem backend for the explorer.

Implements `core.services.interfaces.FileSystemFacade` over `os`, `shutil`
and `zipfile`. Blocking calls are pushed to a worker with
`asyncio.to_thread` so the event loop stays responsive; every `OSError` is
translated into a classified `FileSystemError`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from datetime import datetime
import functools
import os
from pathlib import Path
import shutil
from typing import Any, TypeVar
import zipfile

from loguru import logger
from send2trash import send2trash

from core.errors import FileSystemError, FsErrorKind, classify_os_error
from core.models import DirectoryContent, FileItem, ItemProperties

_T = TypeVar("_T")

HIDDEN_PREFIXES = (".", "$")


def unique_path(parent: str, name: str, is_directory: bool) -> str:
    """Return a path in `parent` for `name` that does not exist yet.

    Folders get ``name (n)``; files keep their extension: ``stem (n).ext``.
    """
    candidate = os.path.join(parent, name)
    if not os.path.lexists(candidate):
        return candidate

    if is_directory:
        stem, ext = name, ""
    else:
        stem, ext = os.path.splitext(name)
    counter = 1
    while True:
        candidate = os.path.join(parent, f"{stem} ({counter}){ext}")
        if not os.path.lexists(candidate):
            return candidate
        counter += 1


def parent_of(path: str) -> str | None:
    """Parent directory of `path`, or None at a filesystem root."""
    normalized = os.path.normpath(path)
    parent = os.path.dirname(normalized)
    if not parent or parent == normalized:
        return None
    return parent


def home_directory() -> str:
    return str(Path.home())


def _fs_call(func: Callable[..., _T]) -> Callable[..., Any]:
    """Run a blocking method in a worker thread and classify OS errors."""

    @functools.wraps(func)
    async def wrapper(self: LocalFileSystem, path: str, *args: Any, **kwargs: Any) -> _T:
        try:
            return await asyncio.to_thread(func, self, path, *args, **kwargs)
        except FileSystemError:
            raise
        except OSError as ex:
            raise classify_os_error(ex, path) from ex

    return wrapper


class LocalFileSystem:
    """Asynchronous access to the local disk.

    Args:
        use_recycle_bin: Send deleted items to the recycle bin/trash
            instead of removing them permanently.
        include_hidden: List entries whose names start with "." or "$".
    """

    def __init__(self, *, use_recycle_bin: bool = False, include_hidden: bool = False) -> None:
        self.use_recycle_bin = use_recycle_bin
        self.include_hidden = include_hidden

    @_fs_call
    def list_directory(self, path: str) -> DirectoryContent:
        directories: list[FileItem] = []
        files: list[FileItem] = []
        with os.scandir(path) as entries:
            for entry in entries:
                if not self.include_hidden and entry.name.startswith(HIDDEN_PREFIXES):
                    continue
                try:
                    st = entry.stat()
                    is_dir = entry.is_dir()
                except OSError as ex:
                    # Unreadable entries are skipped, not fatal for the listing.
                    logger.warning("Cannot access {}: {}", entry.path, ex)
                    continue
                item = FileItem(
                    name=entry.name,
                    path=entry.path,
                    is_directory=is_dir,
                    size=int(st.st_size),
                    last_modified=datetime.fromtimestamp(st.st_mtime),
                    extension=None if is_dir else (os.path.splitext(entry.name)[1] or None),
                )
                (directories if is_dir else files).append(item)

        return DirectoryContent(
            current_path=path,
            directories=directories,
            files=files,
            parent_path=parent_of(path),
        )

    @_fs_call
    def create_directory(self, parent_path: str, name: str) -> str:
        final_path = unique_path(parent_path, name, is_directory=True)
        os.mkdir(final_path)
        logger.info("Created folder: {}", final_path)
        return final_path

    @_fs_call
    def create_file(self, parent_path: str, name: str, content: str = "") -> str:
        final_path = unique_path(parent_path, name, is_directory=False)
        # "x" refuses to clobber a file created between the check and the write.
        with open(final_path, "x", encoding="utf-8") as f:
            f.write(content)
        logger.info("Created file: {}", final_path)
        return final_path

    @_fs_call
    def delete_item(self, path: str) -> None:
        if not os.path.lexists(path):
            raise FileSystemError(
                f"No such file or directory: {path}",
                kind=FsErrorKind.NOT_FOUND,
                path=path,
                code="ENOENT",
            )
        if self.use_recycle_bin:
            send2trash(os.path.normpath(path))
        elif os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.unlink(path)
        logger.info("Deleted: {} (recycle_bin={})", path, self.use_recycle_bin)

    @_fs_call
    def rename_item(self, old_path: str, new_name: str) -> str:
        new_path = os.path.join(os.path.dirname(os.path.normpath(old_path)), new_name)
        if os.path.lexists(new_path) and os.path.normcase(new_path) != os.path.normcase(old_path):
            raise FileSystemError(
                f"An item named {new_name!r} already exists",
                kind=FsErrorKind.ALREADY_EXISTS,
                path=new_path,
                code="EEXIST",
            )
        os.rename(old_path, new_path)
        logger.info("Renamed: {} -> {}", old_path, new_path)
        return new_path

    @_fs_call
    def copy_item(self, source_path: str, destination_dir: str) -> str:
        source = os.path.normpath(source_path)
        is_dir = os.path.isdir(source)
        if is_dir and _is_within(destination_dir, source):
            raise FileSystemError(
                "Cannot copy a folder into itself",
                kind=FsErrorKind.ACCESS_DENIED,
                path=source_path,
            )
        final_path = unique_path(destination_dir, os.path.basename(source), is_dir)
        if is_dir:
            shutil.copytree(source, final_path, symlinks=True)
        else:
            shutil.copy2(source, final_path)
        logger.info("Copied: {} -> {}", source_path, final_path)
        return final_path

    @_fs_call
    def move_item(self, source_path: str, destination_dir: str) -> str:
        source = os.path.normpath(source_path)
        if not os.path.lexists(source):
            raise FileSystemError(
                f"No such file or directory: {source_path}",
                kind=FsErrorKind.NOT_FOUND,
                path=source_path,
                code="ENOENT",
            )
        if os.path.normcase(os.path.dirname(source)) == os.path.normcase(
            os.path.normpath(destination_dir)
        ):
            # Already there; moving onto itself would only create a "(1)" copy.
            return source
        is_dir = os.path.isdir(source)
        if is_dir and _is_within(destination_dir, source):
            raise FileSystemError(
                "Cannot move a folder into itself",
                kind=FsErrorKind.ACCESS_DENIED,
                path=source_path,
            )
        final_path = unique_path(destination_dir, os.path.basename(source), is_dir)
        shutil.move(source, final_path)
        logger.info("Moved: {} -> {}", source_path, final_path)
        return final_path

    async def compress(self, item_paths: Sequence[str], archive_path: str) -> None:
        try:
            await asyncio.to_thread(self._compress_sync, list(item_paths), archive_path)
        except FileSystemError:
            raise
        except OSError as ex:
            raise classify_os_error(ex, archive_path) from ex

    def _compress_sync(self, item_paths: list[str], archive_path: str) -> None:
        existing = []
        for p in item_paths:
            if os.path.lexists(p):
                existing.append(os.path.normpath(p))
            else:
                logger.warning("Skipping missing item for archive: {}", p)
        if not existing:
            raise FileSystemError(
                "No valid items found to compress", kind=FsErrorKind.NOT_FOUND, path=archive_path
            )

        if os.path.lexists(archive_path):
            raise FileSystemError(
                f"Archive already exists: {archive_path}",
                kind=FsErrorKind.ALREADY_EXISTS,
                path=archive_path,
                code="EEXIST",
            )

        logger.info("Creating archive {} from {} item(s)", archive_path, len(existing))
        added = 0
        zf = zipfile.ZipFile(archive_path, "x", compression=zipfile.ZIP_DEFLATED, compresslevel=9)
        try:
            with zf:
                for item in existing:
                    base = os.path.basename(item)
                    if os.path.isdir(item):
                        zf.write(item, base)
                        added += 1
                        for root, dirs, files in os.walk(item):
                            dirs.sort()
                            rel_root = os.path.relpath(root, os.path.dirname(item))
                            for d in dirs:
                                zf.write(os.path.join(root, d), os.path.join(rel_root, d))
                                added += 1
                            for f in sorted(files):
                                zf.write(os.path.join(root, f), os.path.join(rel_root, f))
                                added += 1
                    else:
                        zf.write(item, base)
                        added += 1
        except BaseException:
            _remove_quietly(archive_path)
            raise

        if added == 0 or os.path.getsize(archive_path) == 0:
            _remove_quietly(archive_path)
            raise FileSystemError(
                "Archive created but appears to be empty",
                kind=FsErrorKind.IO_ERROR,
                path=archive_path,
            )
        logger.info("Archive created: {} ({} entries)", archive_path, added)

    @_fs_call
    def stat(self, path: str) -> ItemProperties:
        st = os.stat(path)
        created_ts = getattr(st, "st_birthtime", None) or st.st_ctime
        normalized = os.path.normpath(path)
        return ItemProperties(
            name=os.path.basename(normalized) or normalized,
            path=path,
            parent_path=os.path.dirname(normalized),
            size=int(st.st_size),
            created=datetime.fromtimestamp(created_ts),
            modified=datetime.fromtimestamp(st.st_mtime),
            accessed=datetime.fromtimestamp(st.st_atime),
            is_directory=os.path.isdir(path),
            is_file=os.path.isfile(path),
        )


def _is_within(path: str, ancestor: str) -> bool:
    path_abs = os.path.normcase(os.path.abspath(path))
    ancestor_abs = os.path.normcase(os.path.abspath(ancestor))
    return path_abs == ancestor_abs or path_abs.startswith(ancestor_abs + os.sep)


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except OSError as ex:
        logger.debug("Could not remove partial archive {}: {}", path, ex)
