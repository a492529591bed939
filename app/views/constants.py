"""
UI/view constants centralized for reuse across view modules.

Column order, data roles and the user-facing error texts live here so the
widgets and the model builder agree on them.
"""

from __future__ import annotations

from PySide6.QtCore import Qt

from core.errors import FileSystemError, FsErrorKind

# Column headers and indices
HEADERS: list[str] = [
    "Name",
    "Size",
    "Type",
    "Modified",
]

COL_NAME: int = 0
COL_SIZE: int = 1
COL_TYPE: int = 2
COL_MODIFIED: int = 3
NUM_COLUMNS: int = 4

# Column index -> sort field understood by SortService
SORT_FIELD_BY_COLUMN: dict[int, str] = {
    COL_NAME: "name",
    COL_SIZE: "size",
    COL_TYPE: "type",
    COL_MODIFIED: "modified",
}


# Data roles
PATH_ROLE: int = Qt.UserRole  # store full path on name item
IS_DIR_ROLE: int = Qt.UserRole + 1


# Operations panel
OPS_HEADERS: list[str] = ["Operation", "Status", "Progress", "Details"]
OPS_ID_ROLE: int = Qt.UserRole + 10
FAV_ID_ROLE: int = Qt.UserRole + 11

STATUS_TEXT: dict[str, str] = {
    "pending": "Pending",
    "inProgress": "In progress",
    "completed": "Completed",
    "failed": "Failed",
    "cancelled": "Cancelled",
}


# User-facing messages per error kind
ERROR_MESSAGES: dict[str, str] = {
    FsErrorKind.NOT_FOUND.value: "The item could not be found. It may have been moved.",
    FsErrorKind.ACCESS_DENIED.value: "Access denied. You don't have permission for this item.",
    FsErrorKind.NOT_A_DIRECTORY.value: "The path is not a folder.",
    FsErrorKind.DEVICE_NOT_READY.value: "The drive is not ready. Insert a disk and try again.",
    FsErrorKind.IO_ERROR.value: "A read or write error occurred.",
    FsErrorKind.TOO_MANY_OPEN_FILES.value: "Too many files are open. Close some and try again.",
    FsErrorKind.BUSY.value: "The item is in use by another program.",
    FsErrorKind.ALREADY_EXISTS.value: "An item with that name already exists.",
    FsErrorKind.TIMEOUT.value: "The operation took too long and was stopped.",
}
DEFAULT_ERROR_MESSAGE: str = "An unexpected error occurred."


def describe_error(error_kind: str | None, detail: str | None = None) -> str:
    """User-facing sentence for an error kind, with the raw detail appended."""
    text = ERROR_MESSAGES.get(error_kind or "", DEFAULT_ERROR_MESSAGE)
    if detail:
        return f"{text}\n\n{detail}"
    return text


def describe_exception(exc: BaseException) -> str:
    if isinstance(exc, FileSystemError):
        return describe_error(exc.kind.value, str(exc))
    return describe_error(None, str(exc))
