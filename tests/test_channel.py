"""Tests for the give-event channel."""

import pytest

from relaxtimer.engine.channel import TriggerChannel


def test_publish_without_subscribers_is_dropped(clock):
    """Test a publish with nobody listening is silently dropped."""
    channel = TriggerChannel(clock=clock)
    assert channel.publish("rocuronium") == 0


def test_publish_reaches_all_subscribers(clock):
    """Test synchronous fan-out with the event payload."""
    channel = TriggerChannel(clock=clock)
    first, second = [], []
    channel.subscribe(first.append)
    channel.subscribe(second.append)

    assert channel.publish("vecuronium") == 2

    assert len(first) == 1 and len(second) == 1
    event = first[0]
    assert event.agent_key == "vecuronium"
    assert event.timestamp == clock.now


def test_publish_explicit_timestamp(clock):
    """Test callers may stamp the event themselves."""
    channel = TriggerChannel(clock=clock)
    received = []
    channel.subscribe(received.append)

    channel.publish("atracurium", timestamp=42)
    assert received[0].timestamp == 42


def test_unsubscribe(clock):
    """Test unsubscribe stops delivery and is idempotent."""
    channel = TriggerChannel(clock=clock)
    received = []
    unsubscribe = channel.subscribe(received.append)

    channel.publish("rocuronium")
    unsubscribe()
    unsubscribe()
    channel.publish("rocuronium")

    assert len(received) == 1


def test_no_replay_for_late_subscribers(clock):
    """Test events are not queued for subscribers that join later."""
    channel = TriggerChannel(clock=clock)
    channel.publish("rocuronium")

    received = []
    channel.subscribe(received.append)
    assert received == []


def test_handler_errors_propagate(clock):
    """Test a failing handler surfaces to the publisher."""
    channel = TriggerChannel(clock=clock)

    def handler(event):
        raise RuntimeError("broken")

    channel.subscribe(handler)
    with pytest.raises(RuntimeError):
        channel.publish("rocuronium")
