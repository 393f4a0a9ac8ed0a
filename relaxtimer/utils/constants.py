"""Constants and default values."""

# Timer target bounds (ms)
MIN_DURATION_MS = 60_000  # 1 minute
MAX_DURATION_MS = 14_400_000  # 240 minutes

# Step for the +/- buttons
NUDGE_STEP_MINUTES = 2

# Storage keys are versioned; a schema change gets a new suffix instead of a migration
TIMER_STORE_KEY = "relaxant_timers_v3"
PATIENT_STORE_KEY = "patient_v1"

# Phases
PHASE_BOLUS = "bolus"
PHASE_MAINTENANCE = "maintenance"

PHASE_LABELS = {
    PHASE_BOLUS: "Bolus",
    PHASE_MAINTENANCE: "Maintenance",
}

# Alert texts
DUE_ALERT_TEXT = "🔔 Relaxant redose due. Check /timers."
TOP_UP_ALERT_TEXT = "✓ Top-up logged, timer restarted."

DISCLAIMER = (
    "Timings are typical teaching ranges; always use clinical judgement "
    "and monitors (TOF, etc.)."
)

# Progress bar width (characters)
PROGRESS_BAR_WIDTH = 10

REFERENCE_DISCLAIMER = (
    "Common ranges and rules of thumb only; cross-check with current labels, "
    "local policy and patient context."
)
