"""Tests for per-chat session wiring."""

import pytest

from relaxtimer.config import Config
from relaxtimer.db.timer_store import TimerStore
from relaxtimer.engine.catalog import UnknownAgentError
from relaxtimer.engine.session import RelaxantSession, SessionRegistry
from relaxtimer.engine.timers import remaining_ms


def test_give_starts_then_tops_up(kv, clock):
    """Test the first give starts a bolus and the next one tops it up."""
    session = RelaxantSession(chat_id=1, kv=kv, clock=clock)

    assert session.channel.publish("rocuronium") == 1
    timer = session.board.timers[0]
    assert timer.phase == "bolus"
    assert remaining_ms(timer, clock.now) == 31 * 60_000

    clock.advance(30 * 60_000)
    session.channel.publish("rocuronium")

    assert len(session.board.timers) == 1
    assert timer.phase == "maintenance"
    assert remaining_ms(timer, clock.now) == 17 * 60_000
    assert timer.top_up_count == 1


def test_give_for_another_agent_starts_new_timer(kv, clock):
    """Test give events are routed by agent."""
    session = RelaxantSession(chat_id=1, kv=kv, clock=clock)

    session.channel.publish("rocuronium")
    session.channel.publish("cisatracurium")

    assert [t.agent for t in session.board.timers] == ["cisatracurium", "rocuronium"]
    assert all(t.phase == "bolus" for t in session.board.timers)


def test_give_unknown_agent(kv, clock, monkeypatch):
    """Test unknown agents are ignored in production and raise in strict mode."""
    session = RelaxantSession(chat_id=1, kv=kv, clock=clock)

    monkeypatch.setattr(Config, "STRICT_AGENTS", False)
    session.channel.publish("pancuronium")
    assert session.board.timers == []

    monkeypatch.setattr(Config, "STRICT_AGENTS", True)
    with pytest.raises(UnknownAgentError):
        session.channel.publish("pancuronium")


def test_mutations_drive_tick_and_cadence(kv, clock, job_queue):
    """Test the tick loop follows the board and the cadence follows due state."""
    session = RelaxantSession(chat_id=9, kv=kv, clock=clock, job_queue=job_queue)

    timer_id = session.board.start_bolus("rocuronium", 1)
    assert session.ticker.running

    clock.advance(61_000)
    session.ticker.tick()
    assert session.alerts.cadence_running

    # Removing the only due timer stops the cadence and the tick loop at once
    session.board.remove(timer_id)
    assert not session.alerts.cadence_running
    assert not session.ticker.running
    assert job_queue.active() == []


def test_silence_stops_cadence_immediately(kv, clock, job_queue):
    """Test silencing the only due timer stops alerts without waiting for a tick."""
    session = RelaxantSession(chat_id=9, kv=kv, clock=clock, job_queue=job_queue)
    timer_id = session.board.start_bolus("vecuronium", 1)

    clock.advance(90_000)
    session.ticker.tick()
    assert session.alerts.cadence_running

    session.board.silence(timer_id)
    assert not session.alerts.cadence_running
    assert session.alerts.should_continue() is False


async def test_mutations_are_persisted(kv, clock):
    """Test every mutation is written to the store."""
    session = RelaxantSession(chat_id=3, kv=kv, clock=clock)

    session.channel.publish("atracurium")
    await session.flush()
    assert await TimerStore(kv, 3).load() == session.board.timers

    session.board.nudge(session.board.timers[0].id, 2)
    await session.flush()
    stored = await TimerStore(kv, 3).load()
    assert stored[0].target_duration_ms == 42 * 60_000


async def test_restore_after_restart(kv, clock, job_queue):
    """Test a new session picks up persisted timers and alerts on overdue ones."""
    first = RelaxantSession(chat_id=5, kv=kv, clock=clock)
    first.board.start_bolus("rocuronium", 1)
    await first.flush()
    first.close()

    clock.advance(5 * 60_000)  # bot was down for five minutes

    second = RelaxantSession(chat_id=5, kv=kv, clock=clock, job_queue=job_queue)
    assert await second.restore() == 1
    assert second.ticker.running

    timer = second.board.timers[0]
    assert remaining_ms(timer, clock.now) == -4 * 60_000

    newly_due = second.ticker.tick()
    assert [t.id for t in newly_due] == [timer.id]
    assert second.alerts.pulse_count == 1


async def test_registry_lazily_creates_and_restores(kv, clock):
    """Test one session per chat, and restore_all revives stored chats."""
    created = []

    def factory(chat_id):
        session = RelaxantSession(chat_id=chat_id, kv=kv, clock=clock)
        created.append(chat_id)
        return session

    await TimerStore(kv, 11).save([])
    seed = RelaxantSession(chat_id=12, kv=kv, clock=clock)
    seed.board.start_bolus("vecuronium")
    await seed.flush()
    await kv.set("relaxant_timers_v3:not-a-chat", "[]")

    registry = SessionRegistry(kv, factory)
    assert await registry.restore_all() == 2
    assert sorted(created) == [11, 12]

    session = await registry.get(12)
    assert [t.agent for t in session.board.timers] == ["vecuronium"]
    assert await registry.get(12) is session
    assert len(created) == 2

    await registry.close()
    assert registry.sessions == {}
