"""Tests for the subscriber registry."""

import logging

from kryptopay.checkout.subscribers import SubscriberRegistry


def test_publish_in_subscription_order() -> None:
    registry = SubscriberRegistry()
    calls = []
    registry.add(lambda v: calls.append(("a", v)))
    registry.add(lambda v: calls.append(("b", v)))

    registry.publish(1)

    assert calls == [("a", 1), ("b", 1)]
    assert len(registry) == 2


def test_unsubscribe_is_idempotent() -> None:
    registry = SubscriberRegistry()
    calls = []
    unsubscribe = registry.add(calls.append)

    unsubscribe()
    unsubscribe()
    registry.publish("x")

    assert calls == []
    assert len(registry) == 0


def test_same_listener_subscribed_twice() -> None:
    registry = SubscriberRegistry()
    calls = []
    first = registry.add(calls.append)
    registry.add(calls.append)

    first()
    registry.publish("x")

    assert calls == ["x"]


def test_unsubscribe_during_dispatch() -> None:
    registry = SubscriberRegistry()
    calls = []
    handles = {}

    def first(value):
        calls.append(("first", value))
        handles["second"]()

    registry.add(first)
    handles["second"] = registry.add(lambda v: calls.append(("second", v)))
    registry.add(lambda v: calls.append(("third", v)))

    registry.publish(1)
    registry.publish(2)

    assert calls == [("first", 1), ("third", 1), ("first", 2), ("third", 2)]


def test_reentrant_publish_is_queued() -> None:
    registry = SubscriberRegistry()
    calls = []

    def first(value):
        calls.append(("first", value))
        if value == 1:
            registry.publish(2)

    registry.add(first)
    registry.add(lambda v: calls.append(("second", v)))

    registry.publish(1)

    assert calls == [("first", 1), ("second", 1), ("first", 2), ("second", 2)]


def test_failing_listener_does_not_starve_others(caplog) -> None:
    registry = SubscriberRegistry()
    calls = []

    def broken(value):
        raise RuntimeError("render failed")

    registry.add(broken)
    registry.add(calls.append)

    with caplog.at_level(logging.ERROR, logger="kryptopay"):
        registry.publish("x")

    assert calls == ["x"]
    assert "raised" in caplog.text


def test_clear() -> None:
    registry = SubscriberRegistry()
    registry.add(lambda v: None)

    registry.clear()

    assert len(registry) == 0
