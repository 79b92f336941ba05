"""Synchronous subscriber registry shared by the station directory and module registry."""

from __future__ import annotations

import logging
from collections.abc import Callable
from itertools import count
from typing import Generic, TypeVar

from station_access.common.logging import log_context

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class SubscriberRegistry(Generic[T]):
    """Ordered set of callbacks notified with each new state.

    Delivery is synchronous and follows registration order. A callback that
    raises is logged and skipped; the remaining subscribers still receive the
    state.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._callbacks: dict[int, Callable[[T], None]] = {}
        self._ids = count(1)

    def __len__(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        token = next(self._ids)
        self._callbacks[token] = callback

        def unsubscribe() -> None:
            self._callbacks.pop(token, None)

        return unsubscribe

    def notify(self, state: T) -> None:
        # Snapshot so callbacks may (un)subscribe while being notified.
        for token, callback in list(self._callbacks.items()):
            if token not in self._callbacks:
                continue
            try:
                callback(state)
            except Exception:
                logger.exception(
                    "subscribers.notify.callback_failed",
                    extra=log_context(registry=self._name, subscriber=token),
                )

    def clear(self) -> None:
        self._callbacks.clear()


__all__ = ["SubscriberRegistry", "Unsubscribe"]
