"""Tests for the alert engine."""

from telegram.error import NetworkError

from relaxtimer.engine.alerts import AlertEngine
from relaxtimer.utils.constants import DUE_ALERT_TEXT


def test_pulse_without_capabilities_is_silent():
    """Test pulse with no notifier and no loop does not raise."""
    engine = AlertEngine()
    engine.pulse()
    engine.pulse("anything")
    assert engine.pulse_count == 2


def test_pulse_outside_event_loop_is_silent():
    """Test a notifier without a running loop degrades to visual-only."""
    sent = []

    async def notify(text):
        sent.append(text)

    engine = AlertEngine(notify=notify)
    engine.pulse()

    assert engine.pulse_count == 1
    assert sent == []


async def test_pulse_delivers_text():
    """Test pulses are delivered through the notifier."""
    sent = []

    async def notify(text):
        sent.append(text)

    engine = AlertEngine(notify=notify)
    engine.pulse()
    engine.pulse("custom")
    await engine.drain()

    assert sent == [DUE_ALERT_TEXT, "custom"]


async def test_pulse_uses_describe_hook():
    """Test the due text can be supplied by the owner."""
    sent = []

    async def notify(text):
        sent.append(text)

    engine = AlertEngine(notify=notify)
    engine.describe = lambda: "Rocuronium due"
    engine.pulse()

    def broken():
        raise RuntimeError("boom")

    engine.describe = broken
    engine.pulse()
    await engine.drain()

    assert sent == ["Rocuronium due", DUE_ALERT_TEXT]


async def test_pulse_swallows_delivery_errors():
    """Test send failures never escape pulse."""

    async def failing_notify(text):
        raise NetworkError("offline")

    async def broken_notify(text):
        raise ValueError("bad")

    for notify in (failing_notify, broken_notify):
        engine = AlertEngine(notify=notify)
        engine.pulse()
        await engine.drain()
        assert engine.pulse_count == 1


def test_cadence_start_stop_idempotent(job_queue):
    """Test at most one cadence job exists."""
    engine = AlertEngine(job_queue=job_queue, interval=10)

    engine.start_due_cadence()
    engine.start_due_cadence()
    assert engine.cadence_running
    assert len(job_queue.jobs) == 1
    assert job_queue.jobs[0].interval == 10

    engine.stop_due_cadence()
    engine.stop_due_cadence()
    assert not engine.cadence_running
    assert job_queue.jobs[0].removed

    engine.start_due_cadence(interval=5)
    assert len(job_queue.active()) == 1
    assert job_queue.active()[0].interval == 5


def test_cadence_without_job_queue():
    """Test the cadence flag still tracks state without a scheduler."""
    engine = AlertEngine()
    engine.start_due_cadence()
    assert engine.cadence_running
    engine.stop_due_cadence()
    assert not engine.cadence_running


async def test_cadence_job_pulses_while_due(job_queue):
    """Test each cadence run pulses, and stops once nothing is due."""
    engine = AlertEngine(job_queue=job_queue)
    due = [True]
    engine.should_continue = lambda: due[0]

    engine.start_due_cadence()
    job = job_queue.jobs[0]

    await job.callback(None)
    await job.callback(None)
    assert engine.pulse_count == 2

    due[0] = False
    await job.callback(None)
    assert engine.pulse_count == 2
    assert not engine.cadence_running
    assert job.removed
