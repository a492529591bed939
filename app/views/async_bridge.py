from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from typing import Any

from PySide6.QtCore import QObject, QThread, Signal
from loguru import logger

from app.viewmodels.explorer_vm import ExplorerVM

ResultCallback = Callable[[Any, BaseException | None], None]


class _LoopThread(QThread):
    """Runs an asyncio event loop until it is stopped."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__()
        self._loop = loop

    def run(self) -> None:  # type: ignore[override]
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_forever()
        finally:
            asyncio.set_event_loop(None)


class AsyncBridge(QObject):
    """Hosts the operation queue's event loop beside the Qt GUI thread.

    The view-model and the queue live on the loop thread. Their events are
    re-emitted as Qt signals; since this object lives in the GUI thread the
    connected slots run there. Calls in the other direction go through
    `run` (coroutines) and `call` (plain callables).
    """

    operationChanged = Signal(object)  # Operation
    progressChanged = Signal(object)  # ProgressEvent
    listingChanged = Signal(object)  # ListingState
    navigationFailed = Signal(object)  # FileSystemError
    clipboardChanged = Signal(object)  # ClipboardContent | None
    resultReady = Signal(object, object, object)  # callback, result, error

    def __init__(self, vm: ExplorerVM, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._vm = vm
        self._loop = asyncio.new_event_loop()
        self._thread = _LoopThread(self._loop)
        self._unsubscribers = [
            vm.queue.subscribe_lifecycle(self.operationChanged.emit),
            vm.queue.subscribe_progress(self.progressChanged.emit),
            vm.subscribe_content(lambda _content: self.listingChanged.emit(vm.snapshot())),
            vm.subscribe_errors(self.navigationFailed.emit),
            vm.clipboard.subscribe(self.clipboardChanged.emit),
        ]
        self.resultReady.connect(self._on_result)

    @property
    def vm(self) -> ExplorerVM:
        return self._vm

    def start(self) -> None:
        self._thread.start()
        logger.info("Operation loop started")

    def stop(self, timeout_ms: int = 5000) -> None:
        """Drain the queue, stop the loop and join its thread."""
        if not self._thread.isRunning():
            return
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        shutdown = asyncio.run_coroutine_threadsafe(self._vm.queue.shutdown(), self._loop)
        try:
            shutdown.result(timeout_ms / 1000)
        except FutureTimeoutError:
            logger.warning("Operations still running at exit")
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Queue shutdown failed: {}", ex)
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.wait(timeout_ms)
        if not self._thread.isRunning():
            self._loop.close()
        logger.info("Operation loop stopped")

    def run(self, coro: Awaitable[Any], callback: ResultCallback | None = None) -> Future:
        """Schedule `coro` on the loop; `callback(result, error)` runs in the GUI thread."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        future.add_done_callback(lambda f: self._deliver(f, callback))
        return future

    def call(
        self, fn: Callable[..., Any], *args: Any, callback: ResultCallback | None = None
    ) -> Future:
        """Run a plain callable on the loop thread."""

        async def _invoke() -> Any:
            return fn(*args)

        return self.run(_invoke(), callback)

    def _deliver(self, future: Future, callback: ResultCallback | None) -> None:
        if future.cancelled():
            return
        error = future.exception()
        result = None if error is not None else future.result()
        if callback is None:
            if error is not None:
                logger.opt(exception=error).error("Background call failed: {}", error)
            return
        self.resultReady.emit(callback, result, error)

    def _on_result(self, callback: ResultCallback, result: Any, error: Any) -> None:
        callback(result, error)
