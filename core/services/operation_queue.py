"""Asynchronous queue for mutating file operations.

Operations are submitted synchronously, admitted in FIFO order up to a
concurrency limit, and executed as asyncio tasks against a
`FileSystemFacade`. All bookkeeping (the operation map, the active set and
event delivery) happens on the event loop thread; the only suspension
points are the facade calls.

State machine::

    PENDING -> IN_PROGRESS -> COMPLETED | FAILED
    PENDING -> CANCELLED

Multi-item operations (copy, move, delete) process their items in the given
order. A failing item is logged and skipped; the operation fails only when
no item succeeded.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import replace
from datetime import datetime
import os
from typing import Any, TypeVar
import uuid

from loguru import logger

from core.errors import (
    FileSystemError,
    FsErrorKind,
    ItemError,
    OperationFailure,
    ValidationError,
    error_kind_of,
)
from core.models import (
    CancelOutcome,
    ErrorDetail,
    ItemFailure,
    Operation,
    OperationKind,
    OperationRequest,
    OperationStatus,
    ProgressEvent,
    QueueStats,
)
from core.services.events import EventChannel, Unsubscribe
from core.services.interfaces import FileSystemFacade

DEFAULT_CONCURRENCY_LIMIT = 3

_T = TypeVar("_T")

_NEEDS_SOURCES = {
    OperationKind.COPY,
    OperationKind.MOVE,
    OperationKind.DELETE,
    OperationKind.RENAME,
    OperationKind.COMPRESS,
}
_NEEDS_DESTINATION = {
    OperationKind.COPY,
    OperationKind.MOVE,
    OperationKind.CREATE_FOLDER,
    OperationKind.CREATE_FILE,
    OperationKind.COMPRESS,
}
_NEEDS_NAME = {
    OperationKind.RENAME,
    OperationKind.CREATE_FOLDER,
    OperationKind.CREATE_FILE,
    OperationKind.COMPRESS,
}

_VERBS = {
    OperationKind.COPY: "copy",
    OperationKind.MOVE: "move",
    OperationKind.DELETE: "delete",
    OperationKind.CREATE_FOLDER: "create folder",
    OperationKind.CREATE_FILE: "create file",
    OperationKind.RENAME: "rename",
    OperationKind.COMPRESS: "compress",
}


def _new_operation_id() -> str:
    return f"op_{uuid.uuid4().hex[:12]}"


def validate_request(request: OperationRequest) -> None:
    """Check that `request` carries the fields its kind requires.

    Raises:
        ValidationError: If a required field is missing or malformed.
    """
    if not isinstance(request.kind, OperationKind):
        raise ValidationError(f"Unknown operation kind: {request.kind!r}")
    kind = request.kind

    sources = request.source_paths
    if isinstance(sources, (str, bytes)) or not all(isinstance(p, str) for p in sources):
        raise ValidationError(f"{kind.value} source paths must be a sequence of path strings")

    if kind in _NEEDS_SOURCES:
        if not sources:
            raise ValidationError(f"{kind.value} requires at least one source path")
        if any(not p for p in sources):
            raise ValidationError(f"{kind.value} received an empty source path")
        relative = [p for p in sources if not os.path.isabs(p)]
        if relative:
            raise ValidationError(
                f"{kind.value} requires absolute source paths, got {relative[0]!r}"
            )
        if kind is OperationKind.RENAME and len(request.source_paths) != 1:
            raise ValidationError(
                f"rename requires exactly one source path, got {len(request.source_paths)}"
            )

    if kind in _NEEDS_DESTINATION:
        destination = request.destination_path
        if not destination or not isinstance(destination, str):
            raise ValidationError(f"{kind.value} requires a destination path")
        if not os.path.isabs(destination):
            raise ValidationError(
                f"{kind.value} requires an absolute destination, got {destination!r}"
            )

    if kind in _NEEDS_NAME:
        name = (request.new_name or "").strip()
        if not name:
            raise ValidationError(f"{kind.value} requires a new name")
        if name in {".", ".."} or "/" in name or "\\" in name:
            raise ValidationError(f"Invalid name: {request.new_name!r}")


class FileOperationQueue:
    """Schedules and executes file operations with bounded concurrency.

    One instance is owned by the application session. Submission, cancel
    and queries are synchronous and must be called from the event loop
    thread; `join` and `shutdown` are coroutines.

    Example:
        >>> queue = FileOperationQueue(LocalFileSystem())
        >>> op_id = queue.submit(OperationRequest.delete(["/tmp/a.txt"]))
        >>> await queue.join()
        >>> queue.get(op_id).status
        <OperationStatus.COMPLETED: 'completed'>
    """

    def __init__(
        self,
        facade: FileSystemFacade,
        *,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
        operation_timeout: float | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """Create a queue.

        Args:
            facade: Filesystem backend the operations run against.
            concurrency_limit: Maximum operations in progress at once.
            operation_timeout: Optional deadline in seconds for each facade
                call. None means calls may take as long as they need.
            id_factory: Generator for operation ids (tests).

        Raises:
            ValueError: If `concurrency_limit` is less than 1 or the timeout
                is not positive.
        """
        if concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be at least 1, got {concurrency_limit}")
        if operation_timeout is not None and operation_timeout <= 0:
            raise ValueError(f"operation_timeout must be positive, got {operation_timeout}")

        self._facade = facade
        self._limit = concurrency_limit
        self._timeout = operation_timeout
        self._id_factory = id_factory or _new_operation_id

        self._operations: dict[str, Operation] = {}
        self._active: set[str] = set()
        self._tasks: set[asyncio.Task[None]] = set()
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

        self._lifecycle: EventChannel[Operation] = EventChannel("Operation lifecycle")
        self._progress: EventChannel[ProgressEvent] = EventChannel("Operation progress")

    @property
    def concurrency_limit(self) -> int:
        return self._limit

    @property
    def operation_timeout(self) -> float | None:
        return self._timeout

    # ------------------------------------------------------------------
    # Submission and cancellation

    def submit(self, request: OperationRequest) -> str:
        """Queue `request` and return the new operation id immediately.

        Raises:
            ValidationError: If the request is malformed for its kind.
            RuntimeError: If the queue has been shut down.
        """
        if self._closed:
            raise RuntimeError("File operation queue is shut down")
        validate_request(request)

        op_id = self._id_factory()
        while op_id in self._operations:
            op_id = self._id_factory()

        operation = Operation(
            id=op_id,
            kind=request.kind,
            status=OperationStatus.PENDING,
            created_at=datetime.now(),
            source_paths=tuple(request.source_paths),
            destination_path=request.destination_path,
            new_name=request.new_name.strip() if request.new_name else request.new_name,
            content=request.content,
        )
        self._operations[op_id] = operation
        self._idle.clear()

        logger.info(
            "File operation queued: {} {} src={} dst={}",
            op_id,
            request.kind.value,
            list(request.source_paths),
            request.destination_path,
        )
        self._lifecycle.publish(operation)
        self._schedule()
        return op_id

    def cancel(self, op_id: str) -> CancelOutcome:
        """Cancel a pending operation.

        Operations already claimed by the scheduler cannot be cancelled;
        the outcome tells the caller why.
        """
        operation = self._operations.get(op_id)
        if operation is None:
            return CancelOutcome.NOT_FOUND

        if operation.status is OperationStatus.PENDING:
            now = datetime.now()
            cancelled = replace(
                operation, status=OperationStatus.CANCELLED, started_at=now, completed_at=now
            )
            self._operations[op_id] = cancelled
            logger.info("File operation cancelled: {}", op_id)
            self._lifecycle.publish(cancelled)
            self._update_idle()
            return CancelOutcome.CANCELLED

        if operation.status is OperationStatus.IN_PROGRESS:
            logger.warning("Cannot cancel in-progress operation: {}", op_id)
            return CancelOutcome.ALREADY_RUNNING

        return CancelOutcome.ALREADY_FINISHED

    # ------------------------------------------------------------------
    # Observation and queries

    def subscribe_lifecycle(self, callback: Callable[[Operation], None]) -> Unsubscribe:
        """Receive a snapshot on every status transition."""
        return self._lifecycle.subscribe(callback)

    def subscribe_progress(self, callback: Callable[[ProgressEvent], None]) -> Unsubscribe:
        """Receive a `ProgressEvent` after every processed item."""
        return self._progress.subscribe(callback)

    def get(self, op_id: str) -> Operation | None:
        return self._operations.get(op_id)

    def list_all(self, newest_first: bool = True) -> list[Operation]:
        ops = list(self._operations.values())
        if newest_first:
            ops.reverse()
        return ops

    def list_active(self) -> list[Operation]:
        return [op for op in self._operations.values() if op.status is OperationStatus.IN_PROGRESS]

    def list_pending(self) -> list[Operation]:
        return [op for op in self._operations.values() if op.status is OperationStatus.PENDING]

    @property
    def active_count(self) -> int:
        return len(self._active)

    def clear_terminal(self) -> int:
        """Forget completed, failed and cancelled operations; return how many."""
        terminal_ids = [op_id for op_id, op in self._operations.items() if op.is_terminal]
        for op_id in terminal_ids:
            del self._operations[op_id]
        logger.info("Cleared finished file operations: {}", len(terminal_ids))
        return len(terminal_ids)

    def stats(self) -> QueueStats:
        counts = {status: 0 for status in OperationStatus}
        for op in self._operations.values():
            counts[op.status] += 1
        return QueueStats(
            total=len(self._operations),
            pending=counts[OperationStatus.PENDING],
            in_progress=counts[OperationStatus.IN_PROGRESS],
            completed=counts[OperationStatus.COMPLETED],
            failed=counts[OperationStatus.FAILED],
            cancelled=counts[OperationStatus.CANCELLED],
        )

    async def join(self) -> None:
        """Wait until no operation is pending or in progress."""
        self._schedule()
        await self._idle.wait()

    async def shutdown(self) -> None:
        """Refuse new work, cancel pending operations and wait for running ones."""
        self._closed = True
        for operation in self.list_pending():
            self.cancel(operation.id)
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Scheduling

    def _schedule(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Started later by join() or the next submit from the loop.
            logger.debug("No running event loop; operations stay pending")
            return

        for op_id in list(self._operations):
            if len(self._active) >= self._limit:
                break
            operation = self._operations.get(op_id)
            if operation is None or operation.status is not OperationStatus.PENDING:
                continue
            self._start(loop, operation)
        self._update_idle()

    def _start(self, loop: asyncio.AbstractEventLoop, operation: Operation) -> None:
        started = replace(operation, status=OperationStatus.IN_PROGRESS, started_at=datetime.now())
        self._operations[operation.id] = started
        self._active.add(operation.id)
        logger.info("Starting file operation: {} {}", operation.id, operation.kind.value)
        self._lifecycle.publish(started)

        task = loop.create_task(self._run(operation.id), name=f"file-operation-{operation.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _update_idle(self) -> None:
        busy = bool(self._active) or any(
            op.status is OperationStatus.PENDING for op in self._operations.values()
        )
        if busy:
            self._idle.clear()
        else:
            self._idle.set()

    # ------------------------------------------------------------------
    # Execution

    async def _run(self, op_id: str) -> None:
        operation = self._operations[op_id]
        try:
            results, failures = await self._dispatch(operation)
        except asyncio.CancelledError:
            self._finish(
                op_id,
                OperationStatus.FAILED,
                error=ErrorDetail(message="Operation interrupted", error_kind="CancelledError"),
            )
            raise
        except OperationFailure as exc:
            logger.error("File operation failed: {} {}: {}", op_id, operation.kind.value, exc)
            self._finish(
                op_id,
                OperationStatus.FAILED,
                error=_summarize_failure(exc),
                failures=exc.failures,
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.error("File operation failed: {} {}: {}", op_id, operation.kind.value, exc)
            self._finish(op_id, OperationStatus.FAILED, error=_error_detail(exc))
        else:
            self._finish(op_id, OperationStatus.COMPLETED, results=results, failures=failures)

    def _finish(
        self,
        op_id: str,
        status: OperationStatus,
        *,
        error: ErrorDetail | None = None,
        results: Sequence[str] = (),
        failures: Sequence[ItemFailure] = (),
    ) -> None:
        current = self._operations[op_id]
        changes: dict[str, Any] = {
            "status": status,
            "completed_at": datetime.now(),
            "result_paths": tuple(results),
            "item_failures": tuple(failures),
        }
        if status is OperationStatus.COMPLETED:
            changes["progress_percent"] = 100.0
        else:
            changes["error_detail"] = error
        finished = replace(current, **changes)

        self._active.discard(op_id)
        self._operations[op_id] = finished
        if status is OperationStatus.COMPLETED:
            logger.info(
                "File operation completed: {} {} in {:.3f}s ({} item(s) skipped)",
                op_id,
                finished.kind.value,
                finished.duration_seconds or 0.0,
                len(finished.item_failures),
            )
        self._lifecycle.publish(finished)
        self._update_idle()

        try:
            asyncio.get_running_loop().call_soon(self._schedule)
        except RuntimeError:
            pass

    async def _dispatch(self, operation: Operation) -> tuple[list[str], list[ItemFailure]]:
        facade = self._facade
        kind = operation.kind
        destination = operation.destination_path or ""
        name = operation.new_name or ""

        if kind is OperationKind.DELETE:
            return await self._run_items(operation, facade.delete_item)
        if kind is OperationKind.COPY:
            return await self._run_items(operation, lambda p: facade.copy_item(p, destination))
        if kind is OperationKind.MOVE:
            return await self._run_items(operation, lambda p: facade.move_item(p, destination))
        if kind is OperationKind.RENAME:
            path = await self._call(facade.rename_item(operation.source_paths[0], name))
        elif kind is OperationKind.CREATE_FOLDER:
            path = await self._call(facade.create_directory(destination, name))
        elif kind is OperationKind.CREATE_FILE:
            path = await self._call(facade.create_file(destination, name, operation.content))
        elif kind is OperationKind.COMPRESS:
            path = os.path.join(destination, name)
            await self._call(facade.compress(list(operation.source_paths), path))
        else:  # pragma: no cover - guarded by validate_request
            raise ValidationError(f"Unknown operation kind: {kind!r}")

        self._report_progress(operation.id, 1, 1, path, 0)
        return [path], []

    async def _run_items(
        self,
        operation: Operation,
        action: Callable[[str], Awaitable[str | None]],
    ) -> tuple[list[str], list[ItemFailure]]:
        items = operation.source_paths
        total = len(items)
        results: list[str] = []
        failures: list[ItemFailure] = []

        for processed, path in enumerate(items, start=1):
            try:
                out = await self._call(action(path))
            except Exception as exc:  # pylint: disable=broad-exception-caught
                item_error = ItemError(path, exc)
                failures.append(item_error.to_failure())
                logger.error(
                    "Failed to {} item {} ({}): {}",
                    _VERBS[operation.kind],
                    path,
                    operation.id,
                    exc,
                )
            else:
                if out:
                    results.append(out)
            self._report_progress(operation.id, processed, total, path, len(failures))

        if len(failures) == total:
            raise OperationFailure(
                f"Failed to {_VERBS[operation.kind]} any of {total} item(s)", failures
            )
        return results, failures

    async def _call(self, awaitable: Awaitable[_T]) -> _T:
        if self._timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, self._timeout)
        except asyncio.TimeoutError as exc:
            raise FileSystemError(
                f"Timed out after {self._timeout:g}s",
                kind=FsErrorKind.TIMEOUT,
                code="ETIMEDOUT",
            ) from exc

    def _report_progress(
        self, op_id: str, processed: int, total: int, current: str | None, failed: int
    ) -> None:
        operation = self._operations[op_id]
        percent = max(operation.progress_percent, processed / total * 100.0)
        self._operations[op_id] = replace(operation, progress_percent=percent)
        self._progress.publish(
            ProgressEvent(
                operation_id=op_id,
                progress_percent=percent,
                items_processed=processed,
                items_total=total,
                current_item=current,
                items_failed=failed,
            )
        )


def _error_detail(exc: BaseException) -> ErrorDetail:
    code = exc.code if isinstance(exc, FileSystemError) else None
    return ErrorDetail(message=str(exc), error_kind=error_kind_of(exc), code=code)


def _summarize_failure(exc: OperationFailure) -> ErrorDetail:
    kinds = {f.error_kind for f in exc.failures}
    error_kind = kinds.pop() if len(kinds) == 1 else "OperationFailure"
    message = str(exc)
    if exc.failures:
        message = f"{message}: {exc.failures[0].message}"
    return ErrorDetail(
        message=message, error_kind=error_kind, item_failures=tuple(exc.failures)
    )
