"""Typed publish/subscribe channel used for queue and store notifications."""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

from loguru import logger

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class EventChannel(Generic[T]):
    """Delivers events of one type to registered callbacks.

    Callbacks run synchronously in registration order on the publishing
    thread. A callback that raises is logged and skipped; it never stops
    delivery to the others or propagates to the publisher.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._callbacks: list[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        """Register `callback` and return a function that unregisters it."""
        self._callbacks.append(callback)

        def _unsubscribe() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return _unsubscribe

    def publish(self, event: T) -> None:
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("{} observer {!r} raised", self._name, callback)

    def __len__(self) -> int:
        return len(self._callbacks)
