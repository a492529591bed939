"""Error taxonomy shared by the queue, the facade and the UI.

- `ValidationError`: malformed operation request, raised synchronously.
- `FileSystemError`: a single facade call failed; carries a classification
  and the platform error code.
- `ItemError`: one item of an operation failed; the operation goes on.
- `OperationFailure`: the whole operation failed. It is recorded on the
  operation and never raised out of the queue.
"""

from __future__ import annotations

import errno
from enum import Enum
import re

from core.models import ItemFailure

_DRIVE_ROOT_RE = re.compile(r"^[A-Za-z]:\\?$")


class FsErrorKind(str, Enum):
    """Classification of filesystem failures."""

    NOT_FOUND = "NotFound"
    ACCESS_DENIED = "AccessDenied"
    NOT_A_DIRECTORY = "NotADirectory"
    DEVICE_NOT_READY = "DeviceNotReady"
    IO_ERROR = "IOError"
    TOO_MANY_OPEN_FILES = "TooManyOpenFiles"
    BUSY = "Busy"
    ALREADY_EXISTS = "AlreadyExists"
    TIMEOUT = "Timeout"
    UNKNOWN = "Unknown"


_ERRNO_KINDS: dict[int, FsErrorKind] = {
    errno.EACCES: FsErrorKind.ACCESS_DENIED,
    errno.EPERM: FsErrorKind.ACCESS_DENIED,
    errno.ENOENT: FsErrorKind.NOT_FOUND,
    errno.ENOTDIR: FsErrorKind.NOT_A_DIRECTORY,
    errno.EMFILE: FsErrorKind.TOO_MANY_OPEN_FILES,
    errno.ENFILE: FsErrorKind.TOO_MANY_OPEN_FILES,
    errno.EBUSY: FsErrorKind.BUSY,
    errno.ENODEV: FsErrorKind.DEVICE_NOT_READY,
    errno.EIO: FsErrorKind.IO_ERROR,
    errno.EEXIST: FsErrorKind.ALREADY_EXISTS,
}


class ExplorerError(Exception):
    """Base class for application errors."""


class ValidationError(ExplorerError, ValueError):
    """An operation request is missing a field its kind requires."""


class FileSystemError(ExplorerError):
    """A filesystem call failed.

    Attributes:
        kind: Classification of the failure.
        path: Path the call was acting on.
        code: Platform error code name (e.g. "EACCES"), if any.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: FsErrorKind = FsErrorKind.UNKNOWN,
        path: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.path = path
        self.code = code

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base} ({self.code})" if self.code else base


class ItemError(ExplorerError):
    """One item of a multi-item operation failed."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"{path}: {cause}")
        self.path = path
        self.cause = cause

    def to_failure(self) -> ItemFailure:
        return ItemFailure(
            path=self.path, message=str(self.cause), error_kind=error_kind_of(self.cause)
        )


class OperationFailure(ExplorerError):
    """A whole operation failed."""

    def __init__(self, message: str, failures: list[ItemFailure] | None = None) -> None:
        super().__init__(message)
        self.failures = list(failures or [])


def error_kind_of(exc: BaseException) -> str:
    """Return the classification string recorded for `exc`."""
    if isinstance(exc, FileSystemError):
        return exc.kind.value
    if isinstance(exc, TimeoutError):
        return FsErrorKind.TIMEOUT.value
    if isinstance(exc, OSError) and exc.errno in _ERRNO_KINDS:
        return _ERRNO_KINDS[exc.errno].value
    return type(exc).__name__


def classify_os_error(exc: OSError, path: str | None = None) -> FileSystemError:
    """Translate an `OSError` into a `FileSystemError`.

    A missing drive root (e.g. ``E:\\``) is reported as DEVICE_NOT_READY
    rather than NOT_FOUND.
    """
    code: str | None = None
    kind = FsErrorKind.UNKNOWN
    if exc.errno is not None:
        code = errno.errorcode.get(exc.errno)
        kind = _ERRNO_KINDS.get(exc.errno, FsErrorKind.UNKNOWN)
    target = path if path is not None else exc.filename
    if kind is FsErrorKind.NOT_FOUND and target and _DRIVE_ROOT_RE.match(str(target)):
        kind = FsErrorKind.DEVICE_NOT_READY
    message = exc.strerror or str(exc) or "Filesystem error"
    if target:
        message = f"{message}: {target}"
    return FileSystemError(message, kind=kind, path=target, code=code or "UNKNOWN")
