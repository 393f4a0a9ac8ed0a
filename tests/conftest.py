"""Shared test fixtures: a controllable clock and a fake job queue."""

import pytest

from relaxtimer.db.kv import MemoryKeyValueStore

T0 = 1_767_268_800_000  # 2026-01-01 12:00 UTC, epoch ms


class FakeClock:
    """Callable clock returning epoch ms; advance it by hand."""

    def __init__(self, start: int = T0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeJob:
    def __init__(self, callback, interval, first, name):
        self.callback = callback
        self.interval = interval
        self.first = first
        self.name = name
        self.removed = False

    def schedule_removal(self) -> None:
        self.removed = True


class FakeJobQueue:
    """Records run_repeating calls instead of scheduling anything."""

    def __init__(self):
        self.jobs: list[FakeJob] = []

    def run_repeating(self, callback, interval, first=None, name=None, **kwargs):
        job = FakeJob(callback, interval, first, name)
        self.jobs.append(job)
        return job

    def active(self, prefix: str = "") -> list[FakeJob]:
        return [j for j in self.jobs if not j.removed and (j.name or "").startswith(prefix)]


class RecordingAlerts:
    """Stand-in for AlertEngine that only counts."""

    def __init__(self):
        self.pulses: list[str | None] = []
        self.cadence_running = False
        self.starts = 0

    def pulse(self, text=None) -> None:
        self.pulses.append(text)

    def start_due_cadence(self, interval=None) -> None:
        if not self.cadence_running:
            self.starts += 1
        self.cadence_running = True

    def stop_due_cadence(self) -> None:
        self.cadence_running = False


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def job_queue() -> FakeJobQueue:
    return FakeJobQueue()


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def alerts() -> RecordingAlerts:
    return RecordingAlerts()
