"""Tests for FileOperationQueue scheduling, outcomes and notifications."""

from __future__ import annotations

import asyncio

import pytest

from core.errors import FileSystemError, FsErrorKind, ValidationError
from core.models import (
    CancelOutcome,
    OperationKind,
    OperationRequest,
    OperationStatus,
)
from core.services.operation_queue import FileOperationQueue


def _statuses(events):
    return [e.status for e in events]


class TestSubmission:
    """Submission returns at once and validates the request."""

    def test_submit_without_running_loop_stays_pending(self, queue) -> None:
        """Test that an operation waits for a loop before it starts."""
        op_id = queue.submit(OperationRequest.delete(["/data/a.txt"]))

        op = queue.get(op_id)
        assert op is not None
        assert op.status is OperationStatus.PENDING
        assert op.started_at is None
        assert op_id.startswith("op_")

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, queue, fake_fs) -> None:
        """Test that every submit yields a fresh id."""
        ids = {queue.submit(OperationRequest.delete([f"/data/{i}"])) for i in range(20)}
        await queue.join()

        assert len(ids) == 20

    @pytest.mark.asyncio
    async def test_id_factory_collisions_are_skipped(self, fake_fs) -> None:
        """Test that a repeated id from the factory is not reused."""
        ids = iter(["op_same", "op_same", "op_other"])
        q = FileOperationQueue(fake_fs, id_factory=lambda: next(ids))

        first = q.submit(OperationRequest.delete(["/data/a"]))
        second = q.submit(OperationRequest.delete(["/data/b"]))
        await q.join()

        assert (first, second) == ("op_same", "op_other")

    @pytest.mark.parametrize(
        "request_",
        [
            OperationRequest(kind=OperationKind.DELETE),
            OperationRequest(kind=OperationKind.COPY, source_paths=("/a",)),
            OperationRequest(kind=OperationKind.MOVE, destination_path="/dst"),
            OperationRequest(kind=OperationKind.DELETE, source_paths=("/a", "")),
            OperationRequest(
                kind=OperationKind.RENAME, source_paths=("/a", "/b"), new_name="c"
            ),
            OperationRequest(kind=OperationKind.RENAME, source_paths=("/a",), new_name="  "),
            OperationRequest(kind=OperationKind.RENAME, source_paths=("/a",), new_name="x/y"),
            OperationRequest(kind=OperationKind.CREATE_FOLDER, new_name="New"),
            OperationRequest(
                kind=OperationKind.CREATE_FILE, destination_path="/dst", new_name=".."
            ),
            OperationRequest(
                kind=OperationKind.COMPRESS, source_paths=("/a",), destination_path="/dst"
            ),
            OperationRequest.delete("/tmp/x"),
            OperationRequest.copy(b"/tmp/x", "/dst"),
            OperationRequest(kind=OperationKind.DELETE, source_paths=("/a", None)),
            OperationRequest.delete(["relative/a.txt"]),
            OperationRequest.move(["/a"], "relative/dst"),
            OperationRequest.create_folder("dst", "New"),
        ],
    )
    def test_invalid_requests_are_rejected(self, queue, request_) -> None:
        """Test that malformed requests raise and leave no trace."""
        events = []
        queue.subscribe_lifecycle(events.append)

        with pytest.raises(ValidationError):
            queue.submit(request_)

        assert queue.list_all() == []
        assert events == []

    def test_validation_error_is_a_value_error(self, queue) -> None:
        """Test that callers catching ValueError also see validation failures."""
        with pytest.raises(ValueError):
            queue.submit(OperationRequest(kind=OperationKind.DELETE))

    def test_invalid_constructor_arguments(self, fake_fs) -> None:
        """Test limits that make no sense are refused."""
        with pytest.raises(ValueError):
            FileOperationQueue(fake_fs, concurrency_limit=0)
        with pytest.raises(ValueError):
            FileOperationQueue(fake_fs, operation_timeout=0)


class TestScheduling:
    """Admission order and the concurrency limit."""

    @pytest.mark.asyncio
    async def test_concurrency_limit_is_respected(self, fake_fs) -> None:
        """Test that at most `limit` operations run at once."""
        # Given
        fake_fs.gate = asyncio.Event()
        q = FileOperationQueue(fake_fs, concurrency_limit=2)

        # When
        ids = [q.submit(OperationRequest.delete([f"/data/{i}.txt"])) for i in range(5)]

        # Then
        stats = q.stats()
        assert stats.in_progress == 2
        assert stats.pending == 3
        assert q.active_count == 2
        assert [op.id for op in q.list_active()] == ids[:2]

        fake_fs.gate.set()
        await q.join()

        assert fake_fs.max_running == 2
        assert all(q.get(i).status is OperationStatus.COMPLETED for i in ids)
        assert q.active_count == 0

    @pytest.mark.asyncio
    async def test_admission_is_fifo(self, fake_fs) -> None:
        """Test that pending operations start in submission order."""
        started = []
        q = FileOperationQueue(fake_fs, concurrency_limit=1)
        q.subscribe_lifecycle(
            lambda op: started.append(op.id) if op.status is OperationStatus.IN_PROGRESS else None
        )

        ids = [q.submit(OperationRequest.delete([f"/data/{i}"])) for i in range(4)]
        await q.join()

        assert started == ids

    def test_pending_operations_start_on_join(self, queue) -> None:
        """Test that operations queued before the loop ran are started by join."""
        op_id = queue.submit(OperationRequest.delete(["/data/a"]))
        assert queue.get(op_id).status is OperationStatus.PENDING

        asyncio.run(queue.join())

        assert queue.get(op_id).status is OperationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_join_returns_immediately_when_idle(self, queue) -> None:
        """Test that join on an empty queue does not block."""
        await asyncio.wait_for(queue.join(), timeout=1)


class TestOutcomes:
    """How operations finish and what they record."""

    @pytest.mark.asyncio
    async def test_rename_emits_three_lifecycle_events(self, queue, fake_fs) -> None:
        """Test the full lifecycle of a successful single-item operation."""
        events = []
        queue.subscribe_lifecycle(events.append)

        op_id = queue.submit(OperationRequest.rename("/data/old.txt", "new.txt"))
        await queue.join()

        assert _statuses(events) == [
            OperationStatus.PENDING,
            OperationStatus.IN_PROGRESS,
            OperationStatus.COMPLETED,
        ]
        assert all(e.id == op_id for e in events)
        final = queue.get(op_id)
        assert final.progress_percent == 100.0
        assert final.result_paths == ("/data/new.txt",)
        assert final.started_at is not None
        assert final.completed_at >= final.started_at
        assert final.error_detail is None
        assert fake_fs.calls == [("rename_item", "/data/old.txt", "new.txt")]

    @pytest.mark.asyncio
    async def test_snapshots_are_not_mutated(self, queue) -> None:
        """Test that an observer's snapshot keeps its original status."""
        events = []
        queue.subscribe_lifecycle(events.append)

        queue.submit(OperationRequest.create_folder("/data", "New Folder"))
        await queue.join()

        assert events[0].status is OperationStatus.PENDING
        assert events[0].started_at is None

    @pytest.mark.asyncio
    async def test_partial_failure_completes_with_item_failures(self, queue, fake_fs) -> None:
        """Test that one failing item does not fail the whole copy."""
        fake_fs.failures["/src/b.txt"] = FileSystemError(
            "Permission denied: /src/b.txt", kind=FsErrorKind.ACCESS_DENIED, code="EACCES"
        )

        op_id = queue.submit(
            OperationRequest.copy(["/src/a.txt", "/src/b.txt", "/src/c.txt"], "/dst")
        )
        await queue.join()

        op = queue.get(op_id)
        assert op.status is OperationStatus.COMPLETED
        assert op.result_paths == ("/dst/a.txt", "/dst/c.txt")
        assert len(op.item_failures) == 1
        failure = op.item_failures[0]
        assert failure.path == "/src/b.txt"
        assert failure.error_kind == "AccessDenied"
        # Items after the failing one were still processed
        assert [c[1] for c in fake_fs.calls] == ["/src/a.txt", "/src/b.txt", "/src/c.txt"]

    @pytest.mark.asyncio
    async def test_all_items_failing_fails_operation(self, queue, fake_fs) -> None:
        """Test that an operation with no successful item is Failed."""
        for p in ("/data/a", "/data/b"):
            fake_fs.failures[p] = FileSystemError(
                f"No such file or directory: {p}", kind=FsErrorKind.NOT_FOUND
            )

        op_id = queue.submit(OperationRequest.delete(["/data/a", "/data/b"]))
        await queue.join()

        op = queue.get(op_id)
        assert op.status is OperationStatus.FAILED
        assert op.error_detail is not None
        assert op.error_detail.error_kind == "NotFound"
        assert op.error_detail.message.startswith("Failed to delete any of 2 item(s)")
        assert len(op.error_detail.item_failures) == 2
        assert op.progress_percent == 100.0

    @pytest.mark.asyncio
    async def test_mixed_failure_kinds_are_summarized(self, queue, fake_fs) -> None:
        """Test the summary kind when items fail for different reasons."""
        fake_fs.failures["/data/a"] = FileSystemError("gone", kind=FsErrorKind.NOT_FOUND)
        fake_fs.failures["/data/b"] = FileSystemError("locked", kind=FsErrorKind.BUSY)

        op_id = queue.submit(OperationRequest.move(["/data/a", "/data/b"], "/dst"))
        await queue.join()

        assert queue.get(op_id).error_detail.error_kind == "OperationFailure"

    @pytest.mark.asyncio
    async def test_single_call_failure_records_error(self, queue, fake_fs) -> None:
        """Test that a failed create records the classified error."""
        fake_fs.failures["/data"] = FileSystemError(
            "File exists: /data/New", kind=FsErrorKind.ALREADY_EXISTS, code="EEXIST"
        )

        op_id = queue.submit(OperationRequest.create_folder("/data", "New"))
        await queue.join()

        op = queue.get(op_id)
        assert op.status is OperationStatus.FAILED
        assert op.error_detail.error_kind == "AlreadyExists"
        assert op.error_detail.code == "EEXIST"
        assert op.progress_percent < 100.0

    @pytest.mark.asyncio
    async def test_unexpected_exception_fails_operation(self, queue, fake_fs) -> None:
        """Test that a non-filesystem error is recorded, not raised."""
        fake_fs.failures["/data/a.txt"] = RuntimeError("boom")

        op_id = queue.submit(OperationRequest.rename("/data/a.txt", "b.txt"))
        await queue.join()

        op = queue.get(op_id)
        assert op.status is OperationStatus.FAILED
        assert op.error_detail.error_kind == "RuntimeError"
        assert op.error_detail.message == "boom"

    @pytest.mark.asyncio
    async def test_compress_builds_archive_path(self, queue, fake_fs) -> None:
        """Test that compress targets destination/name with all sources."""
        op_id = queue.submit(
            OperationRequest.compress(["/data/a.txt", "/data/b"], "/data", "out.zip")
        )
        await queue.join()

        assert fake_fs.calls == [("compress", "/data/out.zip", ["/data/a.txt", "/data/b"])]
        assert queue.get(op_id).result_paths == ("/data/out.zip",)

    @pytest.mark.asyncio
    async def test_create_file_passes_content(self, queue, fake_fs) -> None:
        """Test that initial file content reaches the facade."""
        queue.submit(OperationRequest.create_file("/data", "notes.txt", "hello"))
        await queue.join()

        assert fake_fs.calls == [("create_file", "/data", "notes.txt", "hello")]

    @pytest.mark.asyncio
    async def test_timeout_fails_operation(self, fake_fs) -> None:
        """Test that a facade call exceeding the deadline is recorded as Timeout."""
        fake_fs.gate = asyncio.Event()  # never opened
        q = FileOperationQueue(fake_fs, operation_timeout=0.05)

        op_id = q.submit(OperationRequest.rename("/data/a", "b"))
        await asyncio.wait_for(q.join(), timeout=2)

        op = q.get(op_id)
        assert op.status is OperationStatus.FAILED
        assert op.error_detail.error_kind == "Timeout"
        assert op.error_detail.code == "ETIMEDOUT"
        assert q.active_count == 0


class TestCancel:
    """Cancellation of pending and running operations."""

    @pytest.mark.asyncio
    async def test_cancel_pending(self, fake_fs) -> None:
        """Test that a pending operation becomes Cancelled and never runs."""
        fake_fs.gate = asyncio.Event()
        q = FileOperationQueue(fake_fs, concurrency_limit=1)
        events = []
        q.subscribe_lifecycle(events.append)

        running = q.submit(OperationRequest.delete(["/data/a"]))
        waiting = q.submit(OperationRequest.delete(["/data/b"]))

        outcome = q.cancel(waiting)

        assert outcome is CancelOutcome.CANCELLED
        assert outcome
        assert waiting not in [op.id for op in q.list_pending()]
        assert waiting not in [op.id for op in q.list_active()]
        assert [op.id for op in q.list_active()] == [running]
        cancelled = q.get(waiting)
        assert cancelled.status is OperationStatus.CANCELLED
        assert cancelled.started_at is not None
        assert cancelled.completed_at == cancelled.started_at
        assert events[-1].id == waiting

        fake_fs.gate.set()
        await q.join()

        assert q.get(running).status is OperationStatus.COMPLETED
        assert q.get(waiting).status is OperationStatus.CANCELLED
        assert ("delete_item", "/data/b") not in fake_fs.calls

    @pytest.mark.asyncio
    async def test_cancel_running_is_refused(self, fake_fs) -> None:
        """Test that an in-progress operation keeps running."""
        fake_fs.gate = asyncio.Event()
        q = FileOperationQueue(fake_fs)
        op_id = q.submit(OperationRequest.delete(["/data/a"]))

        outcome = q.cancel(op_id)

        assert outcome is CancelOutcome.ALREADY_RUNNING
        assert not outcome
        assert q.get(op_id).status is OperationStatus.IN_PROGRESS
        assert [op.id for op in q.list_active()] == [op_id]
        fake_fs.gate.set()
        await q.join()
        assert q.get(op_id).status is OperationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_cancel_finished_and_unknown(self, queue) -> None:
        """Test cancel outcomes for finished and unknown ids."""
        op_id = queue.submit(OperationRequest.delete(["/data/a"]))
        await queue.join()

        assert queue.cancel(op_id) is CancelOutcome.ALREADY_FINISHED
        assert queue.cancel("op_missing") is CancelOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_cancel_twice(self, fake_fs) -> None:
        """Test that a cancelled operation reports finished on a second cancel."""
        fake_fs.gate = asyncio.Event()
        q = FileOperationQueue(fake_fs, concurrency_limit=1)
        q.submit(OperationRequest.delete(["/data/a"]))
        waiting = q.submit(OperationRequest.delete(["/data/b"]))

        assert q.cancel(waiting) is CancelOutcome.CANCELLED
        assert q.cancel(waiting) is CancelOutcome.ALREADY_FINISHED

        fake_fs.gate.set()
        await q.join()


class TestProgress:
    """Progress events for multi-item operations."""

    @pytest.mark.asyncio
    async def test_progress_after_every_item(self, queue, fake_fs) -> None:
        """Test monotonic progress including failed items."""
        fake_fs.failures["/data/2"] = FileSystemError("busy", kind=FsErrorKind.BUSY)
        events = []
        queue.subscribe_progress(events.append)

        op_id = queue.submit(OperationRequest.delete([f"/data/{i}" for i in range(4)]))
        await queue.join()

        assert [e.progress_percent for e in events] == [25.0, 50.0, 75.0, 100.0]
        assert [e.items_processed for e in events] == [1, 2, 3, 4]
        assert [e.items_failed for e in events] == [0, 0, 1, 1]
        assert all(e.items_total == 4 and e.operation_id == op_id for e in events)
        assert events[2].current_item == "/data/2"

    @pytest.mark.asyncio
    async def test_progress_unsubscribe(self, queue) -> None:
        """Test that unsubscribed observers get nothing more."""
        events = []
        unsubscribe = queue.subscribe_progress(events.append)
        unsubscribe()
        unsubscribe()  # idempotent

        queue.submit(OperationRequest.delete(["/data/a"]))
        await queue.join()

        assert events == []


class TestObservers:
    """Observer failures are isolated."""

    @pytest.mark.asyncio
    async def test_raising_observer_does_not_abort(self, queue) -> None:
        """Test that a broken observer neither stops others nor the operation."""
        seen = []

        def broken(_op) -> None:
            raise RuntimeError("observer bug")

        queue.subscribe_lifecycle(broken)
        queue.subscribe_lifecycle(seen.append)
        queue.subscribe_progress(broken)

        op_id = queue.submit(OperationRequest.delete(["/data/a"]))
        await queue.join()

        assert len(seen) == 3
        assert queue.get(op_id).status is OperationStatus.COMPLETED


class TestHousekeeping:
    """Queries, clearing and shutdown."""

    @pytest.mark.asyncio
    async def test_list_all_newest_first(self, queue) -> None:
        """Test listing order."""
        ids = [queue.submit(OperationRequest.delete([f"/data/{i}"])) for i in range(3)]
        await queue.join()

        assert [op.id for op in queue.list_all()] == list(reversed(ids))
        assert [op.id for op in queue.list_all(newest_first=False)] == ids

    @pytest.mark.asyncio
    async def test_clear_terminal_keeps_unfinished(self, fake_fs) -> None:
        """Test that only finished operations are forgotten, idempotently."""
        q = FileOperationQueue(fake_fs)
        done = q.submit(OperationRequest.delete(["/data/a"]))
        await q.join()

        fake_fs.gate = asyncio.Event()
        running = q.submit(OperationRequest.delete(["/data/b"]))

        assert q.clear_terminal() == 1
        stats = q.stats()
        assert q.clear_terminal() == 0
        assert q.stats() == stats
        assert q.get(done) is None
        assert q.get(running) is not None

        fake_fs.gate.set()
        await q.join()

    @pytest.mark.asyncio
    async def test_stats_counts_every_status(self, fake_fs) -> None:
        """Test the status breakdown."""
        fake_fs.failures["/data/bad"] = FileSystemError("gone", kind=FsErrorKind.NOT_FOUND)
        q = FileOperationQueue(fake_fs, concurrency_limit=1)
        fake_fs.gate = asyncio.Event()
        q.submit(OperationRequest.delete(["/data/ok"]))
        q.submit(OperationRequest.delete(["/data/bad"]))
        cancelled = q.submit(OperationRequest.delete(["/data/never"]))
        q.cancel(cancelled)

        fake_fs.gate.set()
        await q.join()

        stats = q.stats()
        assert (stats.total, stats.completed, stats.failed, stats.cancelled) == (3, 1, 1, 1)
        assert (stats.pending, stats.in_progress) == (0, 0)

    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending_and_refuses_new(self, fake_fs) -> None:
        """Test shutdown waits for running work and cancels the rest."""
        fake_fs.gate = asyncio.Event()
        q = FileOperationQueue(fake_fs, concurrency_limit=1)
        running = q.submit(OperationRequest.delete(["/data/a"]))
        waiting = q.submit(OperationRequest.delete(["/data/b"]))

        task = asyncio.ensure_future(q.shutdown())
        await asyncio.sleep(0)
        assert q.get(waiting).status is OperationStatus.CANCELLED

        fake_fs.gate.set()
        await asyncio.wait_for(task, timeout=2)

        assert q.get(running).status is OperationStatus.COMPLETED
        with pytest.raises(RuntimeError):
            q.submit(OperationRequest.delete(["/data/c"]))
