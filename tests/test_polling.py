"""
Tests for the intent watcher.

A fake clock drives time: the resolver answers instantly and every sleep
advances the clock by exactly the poll interval.
"""

import pytest

from conftest import FakeResolver, make_intent
from kryptopay.core.exceptions import NetworkError
from kryptopay.core.types import PaymentIntentStatus
from kryptopay.intents.polling import (
    CancellationToken,
    IntentWatcher,
    WatchOutcome,
    wait_for_final_status,
)

PAID = PaymentIntentStatus.SUCCEEDED
UNPAID = PaymentIntentStatus.REQUIRES_PAYMENT
PENDING = PaymentIntentStatus.PENDING_CONFIRMATIONS
EXPIRED = PaymentIntentStatus.EXPIRED


def _watcher(resolver, clock, **kwargs) -> IntentWatcher:
    return IntentWatcher(resolver, clock=clock, sleep=clock.sleep, **kwargs)


class TestIntentWatcher:
    @pytest.mark.asyncio
    async def test_succeeds_on_fourth_observation(self, clock) -> None:
        resolver = FakeResolver(UNPAID, UNPAID, UNPAID, PAID)
        seen = []

        result = await _watcher(resolver, clock).watch(
            "cs_test_123", make_intent(), on_waiting=lambda i, since: seen.append(i.status)
        )

        assert result.outcome == WatchOutcome.SUCCEEDED
        assert result.timed_out is False
        assert result.polls == 4
        assert len(resolver.calls) == 4
        # entry + three unpaid observations
        assert seen == [UNPAID] * 4
        assert clock.sleeps == [2.5, 2.5, 2.5]

    @pytest.mark.asyncio
    async def test_escalates_on_twenty_fifth_poll(self, clock) -> None:
        resolver = FakeResolver(PENDING)

        result = await _watcher(resolver, clock, poll_interval=2.5, awaiting_threshold=60.0).watch(
            "cs_test_123", make_intent()
        )

        assert result.outcome == WatchOutcome.AWAITING_CONFIRMATION
        assert result.timed_out is False
        assert 24 <= result.polls <= 25
        assert result.pending_since == 1_000.0

    @pytest.mark.asyncio
    async def test_escalation_does_not_publish_waiting(self, clock) -> None:
        resolver = FakeResolver(PENDING)
        seen = []

        result = await _watcher(resolver, clock, awaiting_threshold=5.0).watch(
            "cs_test_123", make_intent(), on_waiting=lambda i, since: seen.append(since)
        )

        assert result.polls == 3
        # entry, then polls 1 and 2; the escalating poll is not a waiting update
        assert seen == [None, 1_000.0, 1_000.0]

    @pytest.mark.asyncio
    async def test_revert_to_unpaid_resets_dwell(self, clock) -> None:
        resolver = FakeResolver(PENDING, PENDING, UNPAID, PENDING, PENDING, PENDING)

        result = await _watcher(resolver, clock, awaiting_threshold=5.0).watch("cs_test_123", make_intent())

        assert result.outcome == WatchOutcome.AWAITING_CONFIRMATION
        # dwell restarts at poll 4 (t=7.5) and escalates at poll 6 (t=12.5)
        assert result.polls == 6
        assert result.pending_since == 1_007.5

    @pytest.mark.asyncio
    async def test_restart_with_pending_since(self, clock) -> None:
        resolver = FakeResolver(PENDING)

        result = await _watcher(resolver, clock, awaiting_threshold=60.0).watch(
            "cs_test_123", make_intent(), pending_since=clock() - 55.0
        )

        assert result.outcome == WatchOutcome.AWAITING_CONFIRMATION
        assert result.polls == 3

    @pytest.mark.asyncio
    async def test_threshold_none_disables_escalation(self, clock) -> None:
        resolver = FakeResolver(PENDING)

        result = await _watcher(resolver, clock, awaiting_threshold=None, poll_timeout=100.0).watch(
            "cs_test_123", make_intent()
        )

        assert result.timed_out is True
        assert result.outcome == WatchOutcome.AWAITING_CONFIRMATION

    @pytest.mark.asyncio
    async def test_timeout_while_unpaid(self, clock) -> None:
        resolver = FakeResolver(UNPAID)

        result = await _watcher(resolver, clock, poll_timeout=10.0).watch("cs_test_123", make_intent())

        assert result.outcome == WatchOutcome.WAITING
        assert result.timed_out is True
        assert result.polls == 5

    @pytest.mark.asyncio
    async def test_expired(self, clock) -> None:
        result = await _watcher(FakeResolver(UNPAID, EXPIRED), clock).watch("cs_test_123", make_intent())

        assert result.outcome == WatchOutcome.EXPIRED
        assert result.intent.status == EXPIRED

    @pytest.mark.asyncio
    async def test_pre_cancelled_token(self, clock) -> None:
        resolver = FakeResolver(UNPAID)
        token = CancellationToken()
        token.cancel()

        result = await _watcher(resolver, clock).watch("cs_test_123", make_intent(), token)

        assert result.outcome == WatchOutcome.CANCELLED
        assert resolver.calls == []

    @pytest.mark.asyncio
    async def test_cancel_during_resolve(self, clock) -> None:
        resolver = FakeResolver(UNPAID, PAID)
        token = CancellationToken()
        resolver.hooks.append(lambda call: token.cancel() if call == 2 else None)
        seen = []

        result = await _watcher(resolver, clock).watch(
            "cs_test_123", make_intent(), token, on_waiting=lambda i, since: seen.append(i.status)
        )

        assert result.outcome == WatchOutcome.CANCELLED
        assert result.polls == 2
        assert seen == [UNPAID, UNPAID]

    @pytest.mark.asyncio
    async def test_cancel_during_sleep(self, clock) -> None:
        resolver = FakeResolver(UNPAID)
        token = CancellationToken()

        async def sleep_then_cancel(seconds):
            await clock.sleep(seconds)
            token.cancel()

        watcher = IntentWatcher(resolver, clock=clock, sleep=sleep_then_cancel)
        result = await watcher.watch("cs_test_123", make_intent(), token)

        assert result.outcome == WatchOutcome.CANCELLED
        assert len(resolver.calls) == 1

    @pytest.mark.asyncio
    async def test_resolver_errors_propagate(self, clock) -> None:
        resolver = FakeResolver(UNPAID, NetworkError("offline"))

        with pytest.raises(NetworkError):
            await _watcher(resolver, clock).watch("cs_test_123", make_intent())


class TestWaitForFinalStatus:
    @pytest.mark.asyncio
    async def test_returns_on_success(self, clock) -> None:
        resolver = FakeResolver(UNPAID, PENDING, PAID)
        updates = []

        result = await wait_for_final_status(
            resolver, "cs_test_123", on_update=lambda i: updates.append(i.status), clock=clock, sleep=clock.sleep
        )

        assert result.outcome == WatchOutcome.SUCCEEDED
        assert result.timed_out is False
        assert updates == [UNPAID, PENDING, PAID]

    @pytest.mark.asyncio
    async def test_no_escalation_before_timeout(self, clock) -> None:
        resolver = FakeResolver(PENDING)

        result = await wait_for_final_status(
            resolver, "cs_test_123", interval=2.5, timeout=120.0, clock=clock, sleep=clock.sleep
        )

        assert result.timed_out is True
        assert result.intent.status == PENDING
        assert result.polls == 49

    @pytest.mark.asyncio
    async def test_timeout_returns_last_intent(self, clock) -> None:
        resolver = FakeResolver(UNPAID)

        result = await wait_for_final_status(resolver, "cs_test_123", interval=1.0, timeout=3.0, clock=clock, sleep=clock.sleep)

        assert result.outcome == WatchOutcome.WAITING
        assert result.timed_out is True
        assert result.polls == 4
