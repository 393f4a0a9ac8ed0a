"""Message text formatters."""

from html import escape
from typing import List

from relaxtimer.config import Config
from relaxtimer.db.models import (
    AgentInfo,
    DoseSuggestion,
    DrugDose,
    LocalAnaestheticLimit,
    Patient,
    QuickInfo,
    Timer,
)
from relaxtimer.engine.catalog import find_agent, list_agents
from relaxtimer.engine.dosing import ibw_kg, lbw_kg
from relaxtimer.engine.reference import list_local_anaesthetics
from relaxtimer.engine.timers import is_due, progress, remaining_ms
from relaxtimer.utils.constants import (
    DISCLAIMER,
    PHASE_LABELS,
    PROGRESS_BAR_WIDTH,
    REFERENCE_DISCLAIMER,
)
from relaxtimer.utils.time_utils import format_clock, format_countdown, format_duration


def agent_label(agent_key: str) -> str:
    agent = find_agent(agent_key)
    return agent.label if agent else agent_key


def format_progress_bar(fraction: float, width: int = PROGRESS_BAR_WIDTH) -> str:
    filled = int(round(fraction * width))
    return "▓" * filled + "░" * (width - filled) + f" {int(fraction * 100)}%"


def format_timer(timer: Timer, now: int, tz: str | None = None) -> str:
    """Format one timer card."""
    tz = tz or Config.TIMEZONE
    rem = remaining_ms(timer, now)
    due = is_due(timer, now)
    phase = PHASE_LABELS.get(timer.phase, timer.phase)

    marker = "💥" if due else "⏱"
    lines = [
        f"{marker} <b>{escape(agent_label(timer.agent))} — {phase}</b>  "
        f"<code>{format_countdown(rem)}</code>",
        f"Started {format_clock(timer.started_at, tz)} • "
        f"Target {timer.target_duration_ms // 60_000} min",
        format_progress_bar(progress(timer, now)),
    ]

    if timer.first_dose_at is not None:
        since_first = max(0, (now - timer.first_dose_at) // 60_000)
        extra = f"First dose {format_duration(since_first)} ago"
        if timer.top_up_count:
            extra += f" • Top-ups: {timer.top_up_count}"
        lines.append(extra)

    if due:
        lines.append("🔕 <b>DUE</b> (silenced)" if timer.silenced else "🚨 <b>DUE</b>: redose decision")

    return "\n".join(lines)


def format_board(timers: List[Timer], now: int, tz: str | None = None) -> str:
    """Format the whole timer board."""
    if not timers:
        return "<b>Relaxant Timers</b>\n\nNo active timers."

    cards = "\n\n".join(format_timer(t, now, tz) for t in timers)
    return f"<b>Relaxant Timers ({len(timers)})</b>\n\n{cards}\n\n<i>{DISCLAIMER}</i>"


def format_due_alert(timers: List[Timer], now: int) -> str:
    """Alert text listing what is due."""
    parts = [
        f"{escape(agent_label(t.agent))} ({format_countdown(remaining_ms(t, now))})"
        for t in timers
    ]
    return "🔔 <b>Redose due:</b> " + ", ".join(parts)


def format_agent(agent: AgentInfo) -> str:
    low, high = agent.maint_dose_range_mg_per_kg
    return (
        f"<b>{agent.label}</b> ({agent.conc_mg_per_ml:g} mg/mL)\n"
        f"   Bolus timer {agent.bolus_minutes_default} min • "
        f"Maintenance {agent.maint_minutes_default} min\n"
        f"   Maintenance dose {low:g}–{high:g} mg/kg"
    )


def format_agent_list() -> str:
    body = "\n\n".join(format_agent(a) for a in list_agents())
    return f"<b>Relaxants</b>\n\n{body}\n\n<i>{DISCLAIMER}</i>"


def format_dose_suggestion(agent: AgentInfo, suggestion: DoseSuggestion | None) -> str:
    if suggestion is None:
        return (
            f"No dose suggestion available for {agent.label}. "
            "Set patient data with /patient."
        )

    return (
        f"💉 <b>{agent.label}</b> maintenance: "
        f"{suggestion.low_mg:g}–{suggestion.high_mg:g} mg "
        f"({suggestion.low_ml:g}–{suggestion.high_ml:g} mL at {agent.conc_mg_per_ml:g} mg/mL)\n"
        f"   Dosing weight {suggestion.dosing_weight_kg:g} kg ({suggestion.basis})"
    )


def format_patient(patient: Patient | None) -> str:
    if patient is None:
        return (
            "No patient data.\n\n"
            "Set with <code>/patient 70 175 M</code> (kg, cm, sex)."
        )

    lines = ["<b>Patient</b>", f"TBW {patient.weight_kg:g} kg"]
    if patient.height_cm:
        lines.append(f"Height {patient.height_cm:g} cm")
    if patient.sex:
        lines.append(f"Sex {patient.sex}")
    if patient.height_cm and patient.sex:
        lines.append(
            f"IBW {ibw_kg(patient.height_cm, patient.sex, patient.weight_kg):g} kg • "
            f"LBW {lbw_kg(patient.height_cm, patient.sex, patient.weight_kg):g} kg"
        )
    return "\n".join(lines)


def format_local_anaesthetic(limit: LocalAnaestheticLimit) -> str:
    """Local anaesthetic maximum dose card."""
    agent = limit.agent
    adr = "with adrenaline" if limit.with_adrenaline else "plain"
    cap = f"{limit.cap_mg:g} mg" if limit.cap_mg else "none"
    lines = [
        f"💉 <b>{escape(agent.label)}</b> {limit.conc_pct:g}% ({limit.mg_per_ml:.0f} mg/mL), {adr}",
        f"Weight {limit.weight_kg:g} kg • Max {limit.max_mg_per_kg:g} mg/kg",
        f"Theoretical max {limit.theoretical_max_mg:.0f} mg • Absolute cap {cap}",
        f"<b>Max {limit.effective_max_mg:.0f} mg = {limit.max_volume_ml:.1f} mL</b>",
    ]

    if limit.planned_ml is not None and limit.planned_mg is not None:
        verdict = (
            "⚠️ <b>Over limit</b>: reduce volume or concentration."
            if limit.over_limit
            else "✓ Within limit."
        )
        lines.append(
            f"Planned {limit.planned_mg:.0f} mg from {limit.planned_ml:g} mL. {verdict}"
        )

    if limit.conc_pct not in agent.typical_concs_pct:
        typical = ", ".join(f"{c:g}%" for c in agent.typical_concs_pct)
        lines.append(f"<i>Uncommon concentration; typical: {typical}</i>")

    lines.append(f"\n<i>{REFERENCE_DISCLAIMER}</i>")
    return "\n".join(lines)


def format_local_anaesthetic_usage() -> str:
    names = ", ".join(a.key for a in list_local_anaesthetics())
    return (
        "Usage: /la &lt;agent&gt; [conc%] [adr] [volume mL]\n"
        "Example: <code>/la bupi 0.5% adr 20ml</code>\n\n"
        f"Agents: {names}"
    )


def _range(low: float, high: float, unit: str) -> str:
    if low == high:
        return f"{low:g} {unit}"
    return f"{low:g}–{high:g} {unit}"


def format_drug_doses(doses: List[DrugDose], weight_kg: float) -> str:
    """Induction and adjunct dose list for one weight."""
    cards = []
    for dose in doses:
        drug = dose.drug
        low, high = drug.range_per_kg
        card = (
            f"<b>{drug.label}</b> ({drug.role})\n"
            f"   {_range(low, high, drug.unit + '/kg')}: "
            f"{_range(dose.low_mg, dose.high_mg, 'mg')} "
            f"(≈ {_range(dose.low_ml, dose.high_ml, 'mL')} at {drug.conc_mg_per_ml:g} mg/mL)"
        )
        if drug.adult_fixed_note:
            card += f"\n   💡 {drug.adult_fixed_note}"
        if drug.notes:
            card += f"\n   {drug.notes}"
        cards.append(card)

    body = "\n\n".join(cards)
    return f"<b>Drug doses for {weight_kg:g} kg</b>\n\n{body}\n\n<i>{REFERENCE_DISCLAIMER}</i>"


def format_quick_info(info: QuickInfo) -> str:
    """Fluids, blood volume, airway sizes."""
    age = f"{info.age_years:g} y" if info.age_years is not None else "adult"
    lines = [
        "<b>Quick Info</b>",
        f"Weight {info.weight_kg:g} kg • Age {age} • Sex {info.sex}",
        "",
        f"Maintenance fluids (4–2–1): <b>{info.fluid_rate_ml_h} mL/hr</b>",
        f"Estimated blood volume: <b>{info.ebv_ml} mL</b>",
    ]
    if info.ett_cuffed_mm is not None:
        lines.append(
            f"ETT: cuffed ~ <b>{info.ett_cuffed_mm:g} mm</b> (depth ~ {info.ett_depth_cm:g} cm), "
            f"uncuffed ~ {info.ett_uncuffed_mm:g} mm"
        )
    else:
        lines.append("ETT: give an age for the age formula, e.g. <code>/quick 6</code>")
    lines.append(f"LMA size (by weight): <b>#{info.lma_size:g}</b>")
    lines.append(f"\n<i>{REFERENCE_DISCLAIMER}</i>")
    return "\n".join(lines)


def format_welcome_message() -> str:
    """Format the welcome message for /start."""
    return f"""
<b>Relaxant Timers</b> 💉

Track neuromuscular blocker redosing: start a bolus timer, top up to
switch to maintenance, and I'll keep pinging you while a dose is due.

<b>Quick Start:</b>
• Tap a button below to start a bolus timer
• /give roc - log a dose (starts or tops up the timer)
• /timers - live timer board
• /help - Full command list

<i>{DISCLAIMER}</i>
""".strip()


def format_help_message() -> str:
    """Format the help message."""
    return """
<b>Relaxant Timer Commands</b>

<b>Timers:</b>
/bolus &lt;agent&gt; [min] - Start a bolus timer (optional custom minutes)
/give &lt;agent&gt; - Log a dose: starts a bolus, or tops up and restarts
/timers - Show the live board with controls

<b>Reference:</b>
/agents - Agents, default timings and doses
/patient [kg] [cm] [M/F] - Show or set patient data
/patient clear - Forget patient data

<b>Calculators</b> (use the saved patient weight):
/la &lt;agent&gt; [conc%] [adr] [volume mL] - Local anaesthetic max dose
/drugs - Induction and adjunct doses
/quick [age] - Fluids, blood volume, ETT and LMA sizes

<b>Agents:</b> roc, vec, atra, cis (or full names)

<b>Tips:</b>
• Due timers repeat an alert every few seconds until silenced or topped up
• Silence lasts until the next top-up
• +2/-2 adjust the target without restarting the clock
""".strip()
