"""
Observer registry for checkout state.

Owned by one controller instance. Listeners are called in subscription
order; a listener may unsubscribe itself (or others) while being notified,
and a state published from inside a listener is delivered after the
current one has reached every listener.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Generic, TypeVar

from kryptopay.core.logging import get_logger

logger = get_logger("checkout.subscribers")

T = TypeVar("T")

Listener = Callable[[T], None]
Unsubscribe = Callable[[], None]


class SubscriberRegistry(Generic[T]):
    """Insertion-ordered listener registry with re-entrancy-safe dispatch."""

    def __init__(self) -> None:
        # dict keeps insertion order; keys are per-subscription tokens so the
        # same callable may be subscribed twice and removed independently
        self._listeners: dict[object, Listener[T]] = {}
        self._pending: deque[T] = deque()
        self._dispatching = False

    def __len__(self) -> int:
        return len(self._listeners)

    def add(self, listener: Listener[T]) -> Unsubscribe:
        """Register ``listener``; returns an idempotent unsubscribe handle."""
        token = object()
        self._listeners[token] = listener

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    def deliver(self, listener: Listener[T], value: T) -> None:
        """Call one listener, logging instead of propagating its errors."""
        try:
            listener(value)
        except Exception:
            logger.exception(f"Checkout listener {listener!r} raised")

    def publish(self, value: T) -> None:
        """Deliver ``value`` to every registered listener."""
        self._pending.append(value)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._pending:
                current = self._pending.popleft()
                for token, listener in list(self._listeners.items()):
                    # Skip listeners removed earlier in this round
                    if token in self._listeners:
                        self.deliver(listener, current)
        finally:
            self._dispatching = False

    def clear(self) -> None:
        self._listeners.clear()
