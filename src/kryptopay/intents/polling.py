"""
Intent status polling.

``IntentWatcher`` re-resolves an intent on a fixed cadence until it reaches
a terminal status, the total timeout elapses, or the shopper has been
sitting in ``pending_confirmations`` long enough that the UI should offer to
stop watching live ("awaiting confirmation").

The loop is cooperative: it suspends only on the resolver call and on the
sleep between polls, and checks its CancellationToken right after each.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from kryptopay.core.logging import get_logger
from kryptopay.core.types import PaymentIntent, PaymentIntentStatus
from kryptopay.intents.resolver import IntentResolver

logger = get_logger("intents.polling")

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]
WaitingCallback = Callable[[PaymentIntent, "float | None"], None]

DEFAULT_POLL_INTERVAL = 2.5  # seconds
DEFAULT_POLL_TIMEOUT = 10 * 60.0  # 10 minutes total
DEFAULT_AWAITING_THRESHOLD = 60.0  # seconds in pending_confirmations


class CancellationToken:
    """One-way cancellation flag shared by a checkout session and its loops."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class WatchOutcome(str, Enum):
    """How a watch ended."""

    SUCCEEDED = "succeeded"
    EXPIRED = "expired"
    AWAITING_CONFIRMATION = "awaiting_confirmation"  # Escalated, or timed out while pending
    WAITING = "waiting"  # Timed out while still requires_payment
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class WatchResult:
    """Result of a watch: the last observed intent and how the loop ended."""

    intent: PaymentIntent
    outcome: WatchOutcome
    timed_out: bool = False
    pending_since: float | None = None
    polls: int = 0


class IntentWatcher:
    """
    Polls an intent until a terminal outcome, applying the escalation rule.

    Example:
        >>> watcher = IntentWatcher(resolver, poll_interval=2.5)
        >>> result = await watcher.watch("cs_test_123", intent, token)
        >>> result.outcome
        <WatchOutcome.SUCCEEDED: 'succeeded'>
    """

    def __init__(
        self,
        resolver: IntentResolver,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
        awaiting_threshold: float | None = DEFAULT_AWAITING_THRESHOLD,
        clock: Clock | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        """
        Args:
            resolver: Source of intent snapshots
            poll_interval: Seconds between polls
            poll_timeout: Total seconds before giving up
            awaiting_threshold: Seconds in pending_confirmations before
                escalating; None disables escalation
            clock: Time source in seconds (default time.time)
            sleep: Async sleep (default asyncio.sleep)
        """
        self._resolver = resolver
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self.awaiting_threshold = awaiting_threshold
        self._clock = clock or time.time
        self._sleep = sleep or asyncio.sleep

    async def watch(
        self,
        client_secret: str,
        intent: PaymentIntent,
        token: CancellationToken | None = None,
        on_waiting: WaitingCallback | None = None,
        pending_since: float | None = None,
    ) -> WatchResult:
        """
        Watch ``intent`` until it settles.

        ``on_waiting(intent, pending_since)`` is called once on entry with the
        last known intent and then for every non-terminal observation that
        does not escalate.

        Resolver errors propagate to the caller unchanged.

        Args:
            client_secret: Secret passed to the resolver
            intent: Last known snapshot, published on entry
            token: Cancellation token; once cancelled nothing more is published
            on_waiting: Receives every "still waiting" observation
            pending_since: Start of the current pending_confirmations dwell
                (set when the caller restarts after an escalation)
        """
        token = token or CancellationToken()
        start = self._clock()
        polls = 0
        last = intent

        if token.cancelled:
            return WatchResult(last, WatchOutcome.CANCELLED, polls=polls)

        if on_waiting:
            on_waiting(intent, pending_since)

        while True:
            last = await self._resolver.resolve(client_secret)
            polls += 1
            if token.cancelled:
                return WatchResult(last, WatchOutcome.CANCELLED, polls=polls)

            status = last.status
            now = self._clock()
            logger.debug(f"Poll #{polls}: {last.id} is {status.value} ({now - start:.1f}s elapsed)")

            if status == PaymentIntentStatus.SUCCEEDED:
                return WatchResult(last, WatchOutcome.SUCCEEDED, pending_since=pending_since, polls=polls)
            if status == PaymentIntentStatus.EXPIRED:
                return WatchResult(last, WatchOutcome.EXPIRED, pending_since=pending_since, polls=polls)

            if status == PaymentIntentStatus.PENDING_CONFIRMATIONS:
                if pending_since is None:
                    pending_since = now
                if (
                    self.awaiting_threshold is not None
                    and now - pending_since >= self.awaiting_threshold
                ):
                    logger.info(
                        f"{last.id} pending for {now - pending_since:.1f}s, escalating to awaiting confirmation"
                    )
                    return WatchResult(
                        last,
                        WatchOutcome.AWAITING_CONFIRMATION,
                        pending_since=pending_since,
                        polls=polls,
                    )
            elif status == PaymentIntentStatus.REQUIRES_PAYMENT:
                # Payment reverted from pending back to unpaid
                pending_since = None

            if on_waiting:
                on_waiting(last, pending_since)

            if now - start >= self.poll_timeout:
                logger.info(f"Stopped watching {last.id} after {now - start:.1f}s ({status.value})")
                if status == PaymentIntentStatus.PENDING_CONFIRMATIONS:
                    outcome = WatchOutcome.AWAITING_CONFIRMATION
                else:
                    outcome = WatchOutcome.WAITING
                return WatchResult(
                    last, outcome, timed_out=True, pending_since=pending_since, polls=polls
                )

            await self._sleep(self.poll_interval)
            if token.cancelled:
                return WatchResult(last, WatchOutcome.CANCELLED, pending_since=pending_since, polls=polls)


async def wait_for_final_status(
    resolver: IntentResolver,
    client_secret: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    on_update: Callable[[PaymentIntent], None] | None = None,
    clock: Clock | None = None,
    sleep: Sleep | None = None,
) -> WatchResult:
    """
    Poll until the intent succeeds or expires, or ``timeout`` elapses.

    No escalation: a long pending_confirmations simply runs until timeout.
    ``on_update`` sees every observed snapshot, terminal ones included.
    On timeout the last known intent is returned with ``timed_out=True``;
    the caller decides what to show.
    """
    clock = clock or time.time
    sleep = sleep or asyncio.sleep
    start = clock()
    polls = 0

    while True:
        intent = await resolver.resolve(client_secret)
        polls += 1
        if on_update:
            on_update(intent)

        if intent.status == PaymentIntentStatus.SUCCEEDED:
            return WatchResult(intent, WatchOutcome.SUCCEEDED, polls=polls)
        if intent.status == PaymentIntentStatus.EXPIRED:
            return WatchResult(intent, WatchOutcome.EXPIRED, polls=polls)

        if clock() - start >= timeout:
            if intent.status == PaymentIntentStatus.PENDING_CONFIRMATIONS:
                outcome = WatchOutcome.AWAITING_CONFIRMATION
            else:
                outcome = WatchOutcome.WAITING
            return WatchResult(intent, outcome, timed_out=True, polls=polls)

        await sleep(interval)
