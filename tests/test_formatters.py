"""Tests for message formatters and keyboards."""

from relaxtimer.bot.formatters import (
    format_board,
    format_dose_suggestion,
    format_drug_doses,
    format_due_alert,
    format_local_anaesthetic,
    format_patient,
    format_progress_bar,
    format_quick_info,
    format_timer,
)
from relaxtimer.bot.keyboards import board_keyboard, give_keyboard, start_agents_keyboard
from relaxtimer.db.models import Patient
from relaxtimer.engine.catalog import get_agent
from relaxtimer.engine.dosing import maintenance_dose
from relaxtimer.engine.reference import (
    LOCAL_ANAESTHETICS,
    drug_dose,
    list_drugs,
    local_anaesthetic_limit,
    quick_info,
)
from relaxtimer.engine.timers import TimerBoard


def button_texts(markup):
    return [button.text for row in markup.inline_keyboard for button in row]


def test_format_timer_bolus(clock):
    """Test the card header, countdown and detail line."""
    board = TimerBoard(clock=clock)
    timer = board.get(board.start_bolus("rocuronium"))

    text = format_timer(timer, clock.now, tz="UTC")
    assert "Rocuronium — Bolus" in text
    assert "<code>31:00</code>" in text
    assert "Started 12:00 • Target 31 min" in text
    assert "DUE" not in text


def test_format_timer_maintenance_and_due(clock):
    """Test phase label, top-up count and due marker."""
    board = TimerBoard(clock=clock)
    timer_id = board.start_bolus("rocuronium")
    clock.advance(30 * 60_000)
    board.top_up_and_restart(timer_id)
    timer = board.get(timer_id)

    text = format_timer(timer, clock.now, tz="UTC")
    assert "Rocuronium — Maintenance" in text
    assert "<code>17:00</code>" in text
    assert "First dose 30 minutes ago • Top-ups: 1" in text

    clock.advance(18 * 60_000)
    text = format_timer(timer, clock.now, tz="UTC")
    assert "💥" in text
    assert "<code>-01:00</code>" in text
    assert "redose decision" in text

    board.silence(timer_id)
    assert "(silenced)" in format_timer(timer, clock.now, tz="UTC")


def test_format_timer_unknown_agent_uses_key(clock):
    """Test a stale agent key still renders."""
    board = TimerBoard(clock=clock)
    timer = board.get(board.start_bolus("rocuronium"))
    timer.agent = "retired-agent"
    assert "retired-agent — Bolus" in format_timer(timer, clock.now, tz="UTC")


def test_format_board(clock):
    """Test empty and populated boards."""
    assert "No active timers." in format_board([], clock.now)

    board = TimerBoard(clock=clock)
    board.start_bolus("rocuronium")
    board.start_bolus("vecuronium")
    text = format_board(board.timers, clock.now, tz="UTC")
    assert "Relaxant Timers (2)" in text
    assert text.index("Vecuronium") < text.index("Rocuronium")
    assert "clinical judgement" in text


def test_format_due_alert(clock):
    """Test alert text lists due agents."""
    board = TimerBoard(clock=clock)
    board.start_bolus("atracurium", 1)
    clock.advance(65_000)
    assert format_due_alert(board.due_timers(), clock.now) == (
        "🔔 <b>Redose due:</b> Atracurium (-00:05)"
    )


def test_format_progress_bar():
    """Test the progress bar."""
    assert format_progress_bar(0.0, width=4) == "░░░░ 0%"
    assert format_progress_bar(0.5, width=4) == "▓▓░░ 50%"
    assert format_progress_bar(1.0, width=4) == "▓▓▓▓ 100%"


def test_format_dose_suggestion():
    """Test dose text with and without patient data."""
    roc = get_agent("rocuronium")
    assert "No dose suggestion available" in format_dose_suggestion(roc, None)

    text = format_dose_suggestion(roc, maintenance_dose(roc, Patient(weight_kg=70)))
    assert "7–14 mg" in text
    assert "0.7–1.4 mL at 10 mg/mL" in text


def test_format_patient():
    """Test patient summary."""
    assert "No patient data" in format_patient(None)

    text = format_patient(Patient(weight_kg=70, height_cm=175, sex="M"))
    assert "TBW 70 kg" in text
    assert "IBW" in text and "LBW" in text

    assert "IBW" not in format_patient(Patient(weight_kg=70))


def test_start_agents_keyboard():
    """Test one start button per agent."""
    texts = button_texts(start_agents_keyboard())
    assert "Start Rocuronium" in texts
    assert len(texts) == 4


def test_board_keyboard_silence_only_when_due(clock):
    """Test the Silence button appears only for due, unsilenced timers."""
    board = TimerBoard(clock=clock)
    timer_id = board.start_bolus("rocuronium", 1)

    texts = button_texts(board_keyboard(board.timers, clock.now))
    assert "Top up now & Restart · Rocuronium" in texts
    assert "+2 min" in texts and "-2 min" in texts
    assert "🔕 Silence" not in texts

    clock.advance(61_000)
    assert "🔕 Silence" in button_texts(board_keyboard(board.timers, clock.now))

    board.silence(timer_id)
    assert "🔕 Silence" not in button_texts(board_keyboard(board.timers, clock.now))


def test_board_keyboard_callback_data(clock):
    """Test callback payloads carry the timer id."""
    board = TimerBoard(clock=clock)
    timer_id = board.start_bolus("vecuronium")

    data = [b.callback_data for row in board_keyboard(board.timers, clock.now).inline_keyboard for b in row]
    assert f"topup:{timer_id}" in data
    assert f"nudge:{timer_id}:2" in data
    assert f"nudge:{timer_id}:-2" in data
    assert f"remove:{timer_id}" in data
    assert "refresh" in data


def test_give_keyboard_labels_repeat_dose():
    """Test the button under a dose reply says it logs another dose."""
    markup = give_keyboard("rocuronium")
    assert button_texts(markup) == ["Log another Rocuronium dose"]
    assert markup.inline_keyboard[0][0].callback_data == "give:rocuronium"


def test_format_local_anaesthetic():
    """Test the limit card and the planned-volume verdict."""
    bupi = LOCAL_ANAESTHETICS["bupivacaine"]

    text = format_local_anaesthetic(local_anaesthetic_limit(bupi, 70, conc_pct=0.5, planned_ml=40))
    assert "Bupivacaine</b> 0.5% (5 mg/mL), plain" in text
    assert "Max 175 mg = 35.0 mL" in text
    assert "Planned 200 mg from 40 mL" in text
    assert "Over limit" in text
    assert "Uncommon" not in text

    text = format_local_anaesthetic(
        local_anaesthetic_limit(bupi, 70, with_adrenaline=True, conc_pct=0.5, planned_ml=30)
    )
    assert "with adrenaline" in text
    assert "Within limit" in text


def test_format_local_anaesthetic_uncommon_concentration():
    """Test a non-typical concentration is flagged."""
    lido = LOCAL_ANAESTHETICS["lidocaine"]
    text = format_local_anaesthetic(local_anaesthetic_limit(lido, 70, conc_pct=3))
    assert "Uncommon concentration; typical: 0.5%, 1%, 1.5%, 2%" in text
    assert "Planned" not in text


def test_format_drug_doses():
    """Test drug dose lines, fixed-dose notes and single-value ranges."""
    doses = [drug_dose(d, 70) for d in list_drugs()]
    text = format_drug_doses(doses, 70)

    assert "Drug doses for 70 kg" in text
    assert "1.5–2.5 mg/kg: 105–175 mg (≈ 10.5–17.5 mL at 10 mg/mL)" in text
    assert "0.1 mg/kg: 7 mg (≈ 1.75 mL at 4 mg/mL)" in text
    assert "💡 Adult typical 4–8 mg IV" in text
    assert "Fentanyl</b> (Analgesia bolus)" in text


def test_format_quick_info():
    """Test quick numbers with and without an age."""
    text = format_quick_info(quick_info(20, 6, "F"))
    assert "Age 6 y" in text
    assert "<b>60 mL/hr</b>" in text
    assert "<b>1500 mL</b>" in text
    assert "cuffed ~ <b>5 mm</b> (depth ~ 15 cm)" in text
    assert "<b>#2.5</b>" in text

    text = format_quick_info(quick_info(70))
    assert "Age adult" in text
    assert "give an age" in text
