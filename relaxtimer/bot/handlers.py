"""Command handlers."""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from relaxtimer.bot.formatters import (
    format_agent_list,
    format_dose_suggestion,
    format_drug_doses,
    format_help_message,
    format_local_anaesthetic,
    format_local_anaesthetic_usage,
    format_patient,
    format_quick_info,
    format_welcome_message,
)
from relaxtimer.bot.keyboards import give_keyboard, start_agents_keyboard
from relaxtimer.db.models import LocalAnaestheticInfo, Patient
from relaxtimer.engine.catalog import resolve_agent
from relaxtimer.engine.dosing import maintenance_dose
from relaxtimer.engine.reference import (
    drug_dose,
    list_drugs,
    local_anaesthetic_limit,
    quick_info,
    resolve_local_anaesthetic,
)
from relaxtimer.engine.session import RelaxantSession, SessionRegistry

logger = logging.getLogger(__name__)

NO_WEIGHT_TEXT = "Set the patient weight first, e.g. /patient 70"

ADRENALINE_WORDS = ("adr", "+adr", "adrenaline", "epi", "epinephrine")


async def get_session(update: Update, context: ContextTypes.DEFAULT_TYPE) -> RelaxantSession | None:
    """Session for the chat the update came from."""
    if not update.effective_chat:
        return None
    registry: SessionRegistry = context.bot_data["sessions"]
    return await registry.get(update.effective_chat.id)


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    if not update.message:
        return

    await update.message.reply_html(format_welcome_message(), reply_markup=start_agents_keyboard())


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    if not update.message:
        return

    await update.message.reply_html(format_help_message())


async def agents_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /agents command - list the catalog."""
    if not update.message:
        return

    await update.message.reply_html(format_agent_list())


async def bolus_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /bolus <agent> [minutes] command."""
    if not update.message:
        return

    if not context.args or len(context.args) > 2:
        await update.message.reply_text("Usage: /bolus <agent> [minutes]")
        return

    agent = resolve_agent(context.args[0])
    if agent is None:
        await update.message.reply_text(
            f"Unknown agent: {context.args[0]}. Try roc, vec, atra or cis."
        )
        return

    minutes: float | None = None
    if len(context.args) == 2:
        try:
            minutes = float(context.args[1])
        except ValueError:
            await update.message.reply_text("Minutes must be a number.")
            return

    session = await get_session(update, context)
    if session is None:
        return

    session.board.start_bolus(agent.key, minutes)
    await show_board(session)


async def give_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /give <agent> command - the dosing action.

    Shows the maintenance dose for the saved patient (if any) and publishes
    a give event, which starts or restarts the agent's timer.
    """
    if not update.message:
        return

    if not context.args or len(context.args) != 1:
        await update.message.reply_text("Usage: /give <agent>")
        return

    agent = resolve_agent(context.args[0])
    if agent is None:
        await update.message.reply_text(
            f"Unknown agent: {context.args[0]}. Try roc, vec, atra or cis."
        )
        return

    session = await get_session(update, context)
    if session is None:
        return

    patient = await session.patients.load()
    await update.message.reply_html(
        format_dose_suggestion(agent, maintenance_dose(agent, patient)),
        reply_markup=give_keyboard(agent.key),
    )

    session.channel.publish(agent.key)
    await show_board(session)


async def timers_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /timers command - post the live board."""
    if not update.message:
        return

    session = await get_session(update, context)
    if session is None:
        return

    await show_board(session)


async def patient_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /patient [kg] [cm] [M/F] and /patient clear."""
    if not update.message:
        return

    session = await get_session(update, context)
    if session is None:
        return

    args = context.args or []

    if not args:
        await update.message.reply_html(format_patient(await session.patients.load()))
        return

    if args[0].lower() == "clear":
        await session.patients.clear()
        await update.message.reply_text("Patient data cleared.")
        return

    patient = parse_patient_args(args)
    if patient is None:
        await update.message.reply_text(
            "Usage: /patient <weight kg> [height cm] [M/F]\nExample: /patient 70 175 M"
        )
        return

    await session.patients.save(patient)
    await update.message.reply_html("✓ Saved.\n\n" + format_patient(patient))


def parse_patient_args(args: list[str]) -> Patient | None:
    """Parse "/patient 70 175 M" style arguments.

    Sex may appear anywhere. Numbers are weight then height.
    Returns None when there is no positive weight.
    """
    numbers: list[float] = []
    sex = None

    for arg in args:
        token = arg.strip().upper()
        if token in ("M", "F"):
            sex = token
            continue
        try:
            numbers.append(float(token))
        except ValueError:
            return None

    if not numbers or numbers[0] <= 0 or len(numbers) > 2:
        return None

    height = numbers[1] if len(numbers) == 2 and numbers[1] > 0 else None
    return Patient(weight_kg=numbers[0], height_cm=height, sex=sex)  # type: ignore[arg-type]


async def _weighed_patient(session: RelaxantSession) -> Patient | None:
    patient = await session.patients.load()
    if patient is None or not patient.weight_kg or patient.weight_kg <= 0:
        return None
    return patient


async def la_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /la <agent> [conc%] [adr] [volume mL] - local anaesthetic limits."""
    if not update.message:
        return

    parsed = parse_la_args(context.args or [])
    if parsed is None:
        await update.message.reply_html(format_local_anaesthetic_usage())
        return

    session = await get_session(update, context)
    if session is None:
        return

    patient = await _weighed_patient(session)
    if patient is None:
        await update.message.reply_text(NO_WEIGHT_TEXT)
        return

    agent, with_adrenaline, conc_pct, planned_ml = parsed
    limit = local_anaesthetic_limit(
        agent,
        patient.weight_kg,
        with_adrenaline=with_adrenaline,
        conc_pct=conc_pct,
        planned_ml=planned_ml,
    )
    await update.message.reply_html(format_local_anaesthetic(limit))


def parse_la_args(
    args: list[str],
) -> tuple[LocalAnaestheticInfo, bool, float | None, float | None] | None:
    """Parse "/la bupi 0.5% adr 20ml" style arguments.

    After the agent, "adr" (or "epi") switches to the adrenaline limits, a
    value ending in % is the concentration and one ending in ml is the
    planned volume. Bare numbers fill concentration, then volume.
    Returns None for an unknown agent or unreadable input.
    """
    if not args:
        return None

    agent = resolve_local_anaesthetic(args[0])
    if agent is None:
        return None

    with_adrenaline = False
    conc_pct: float | None = None
    planned_ml: float | None = None
    bare: list[float] = []

    for arg in args[1:]:
        token = arg.strip().lower()
        if token in ADRENALINE_WORDS:
            with_adrenaline = True
            continue

        try:
            if token.endswith("%"):
                conc_pct = float(token[:-1])
            elif token.endswith("ml"):
                planned_ml = float(token[:-2])
            else:
                bare.append(float(token))
        except ValueError:
            return None

    if len(bare) > 2:
        return None
    if bare and conc_pct is None:
        conc_pct = bare.pop(0)
    if bare and planned_ml is None:
        planned_ml = bare.pop(0)
    if bare:
        return None

    if conc_pct is not None and conc_pct <= 0:
        return None
    if planned_ml is not None and planned_ml < 0:
        return None

    return agent, with_adrenaline, conc_pct, planned_ml


async def drugs_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /drugs - induction and adjunct doses for the patient's weight."""
    if not update.message:
        return

    session = await get_session(update, context)
    if session is None:
        return

    patient = await _weighed_patient(session)
    if patient is None:
        await update.message.reply_text(NO_WEIGHT_TEXT)
        return

    doses = [drug_dose(d, patient.weight_kg) for d in list_drugs()]
    await update.message.reply_html(format_drug_doses(doses, patient.weight_kg))


async def quick_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /quick [age] - fluids, blood volume and airway sizes."""
    if not update.message:
        return

    args = context.args or []
    age: float | None = None
    if args:
        try:
            age = float(args[0].lower().rstrip("y"))
        except ValueError:
            age = None
        if len(args) > 1 or age is None or age < 0:
            await update.message.reply_text("Usage: /quick [age in years]")
            return

    session = await get_session(update, context)
    if session is None:
        return

    patient = await _weighed_patient(session)
    if patient is None:
        await update.message.reply_text(NO_WEIGHT_TEXT)
        return

    await update.message.reply_html(
        format_quick_info(quick_info(patient.weight_kg, age, patient.sex))
    )


async def show_board(session: RelaxantSession) -> None:
    """Post a fresh live board for the session's chat."""
    if session.view is not None:
        await session.view.show()
