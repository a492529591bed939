"""Core domain models for file listings and queued file operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import os


class OperationKind(str, Enum):
    """Kinds of mutating work accepted by the operation queue."""

    COPY = "copy"
    MOVE = "move"
    DELETE = "delete"
    CREATE_FOLDER = "createFolder"
    CREATE_FILE = "createFile"
    RENAME = "rename"
    COMPRESS = "compress"


class OperationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {OperationStatus.COMPLETED, OperationStatus.FAILED, OperationStatus.CANCELLED}
)


class CancelOutcome(str, Enum):
    """Result of `FileOperationQueue.cancel`. Truthy only when cancelled."""

    CANCELLED = "cancelled"
    NOT_FOUND = "notFound"
    ALREADY_RUNNING = "alreadyRunning"
    ALREADY_FINISHED = "alreadyFinished"

    def __bool__(self) -> bool:
        return self is CancelOutcome.CANCELLED


def _path_tuple(paths):
    # A lone string stays as-is so validation rejects it instead of splitting it.
    if isinstance(paths, (str, bytes)):
        return paths
    return tuple(paths)


@dataclass(frozen=True)
class OperationRequest:
    """User intent submitted to the queue.

    Attributes:
        kind: What to do.
        source_paths: Items to act on (Copy, Move, Delete, Compress; exactly one
            for Rename).
        destination_path: Target directory (Copy, Move, CreateFolder,
            CreateFile, Compress).
        new_name: Name for Rename/CreateFolder/CreateFile, archive name for
            Compress.
        content: Initial text for CreateFile.
    """

    kind: OperationKind
    source_paths: tuple[str, ...] = ()
    destination_path: str | None = None
    new_name: str | None = None
    content: str = ""

    @classmethod
    def delete(cls, paths: list[str] | tuple[str, ...]) -> OperationRequest:
        return cls(OperationKind.DELETE, source_paths=_path_tuple(paths))

    @classmethod
    def rename(cls, path: str, new_name: str) -> OperationRequest:
        return cls(OperationKind.RENAME, source_paths=(path,), new_name=new_name)

    @classmethod
    def create_folder(cls, parent: str, name: str) -> OperationRequest:
        return cls(OperationKind.CREATE_FOLDER, destination_path=parent, new_name=name)

    @classmethod
    def create_file(cls, parent: str, name: str, content: str = "") -> OperationRequest:
        return cls(
            OperationKind.CREATE_FILE, destination_path=parent, new_name=name, content=content
        )

    @classmethod
    def copy(cls, paths: list[str] | tuple[str, ...], destination: str) -> OperationRequest:
        return cls(
            OperationKind.COPY, source_paths=_path_tuple(paths), destination_path=destination
        )

    @classmethod
    def move(cls, paths: list[str] | tuple[str, ...], destination: str) -> OperationRequest:
        return cls(
            OperationKind.MOVE, source_paths=_path_tuple(paths), destination_path=destination
        )

    @classmethod
    def compress(
        cls, paths: list[str] | tuple[str, ...], destination: str, archive_name: str
    ) -> OperationRequest:
        return cls(
            OperationKind.COMPRESS,
            source_paths=_path_tuple(paths),
            destination_path=destination,
            new_name=archive_name,
        )


@dataclass(frozen=True)
class ItemFailure:
    """One item of an operation that could not be processed."""

    path: str
    message: str
    error_kind: str


@dataclass(frozen=True)
class ErrorDetail:
    """Why an operation failed.

    Attributes:
        message: Human-readable cause.
        error_kind: Classification (an `FsErrorKind` value or exception name).
        code: Platform error code such as "EACCES", when known.
        item_failures: Per-item failures that led to the result.
    """

    message: str
    error_kind: str
    code: str | None = None
    item_failures: tuple[ItemFailure, ...] = ()


@dataclass(frozen=True)
class Operation:
    """Immutable snapshot of a queued operation.

    The queue replaces its stored snapshot on every transition, so observers
    can keep references without seeing later changes.
    """

    id: str
    kind: OperationKind
    status: OperationStatus
    created_at: datetime
    source_paths: tuple[str, ...] = ()
    destination_path: str | None = None
    new_name: str | None = None
    content: str = ""
    progress_percent: float = 0.0
    error_detail: ErrorDetail | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    result_paths: tuple[str, ...] = ()
    item_failures: tuple[ItemFailure, ...] = ()

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def touched_directories(self) -> set[str]:
        """Directories whose listing may change because of this operation."""
        dirs: set[str] = set()
        for p in self.source_paths:
            dirs.add(os.path.dirname(os.path.normpath(p)))
        if self.destination_path:
            dirs.add(os.path.normpath(self.destination_path))
        return dirs


@dataclass(frozen=True)
class ProgressEvent:
    """Progress notification for a multi-item (or single-item) operation."""

    operation_id: str
    progress_percent: float
    items_processed: int
    items_total: int
    current_item: str | None = None
    items_failed: int = 0


@dataclass(frozen=True)
class QueueStats:
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0


@dataclass
class FileItem:
    """A single directory entry as shown in a listing."""

    name: str
    path: str
    is_directory: bool
    size: int
    last_modified: datetime | None
    extension: str | None = None

    @property
    def type_label(self) -> str:
        if self.is_directory:
            return "Folder"
        return (self.extension or "").lstrip(".").upper() or "File"


@dataclass
class DirectoryContent:
    """Listing of one directory, split into folders and files."""

    current_path: str
    directories: list[FileItem] = field(default_factory=list)
    files: list[FileItem] = field(default_factory=list)
    parent_path: str | None = None

    @property
    def items(self) -> list[FileItem]:
        return [*self.directories, *self.files]


@dataclass(frozen=True)
class ItemProperties:
    """Result of a facade `stat` call."""

    name: str
    path: str
    parent_path: str
    size: int
    created: datetime
    modified: datetime
    accessed: datetime
    is_directory: bool
    is_file: bool


@dataclass
class FavoriteItem:
    """A bookmarked folder."""

    id: str
    name: str
    path: str
    added_at: float
    last_accessed: float | None = None
    is_valid: bool = True


class ClipboardAction(str, Enum):
    COPY = "copy"
    CUT = "cut"


@dataclass(frozen=True)
class ClipboardContent:
    paths: tuple[str, ...]
    action: ClipboardAction
    timestamp: float
