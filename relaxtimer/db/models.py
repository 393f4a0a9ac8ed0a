"""Data models."""

from dataclasses import dataclass, field
from typing import Literal, Tuple

Phase = Literal["bolus", "maintenance"]
Sex = Literal["M", "F"]


@dataclass(frozen=True)
class AgentInfo:
    """A neuromuscular blocking agent (static catalog entry)."""

    key: str
    label: str
    conc_mg_per_ml: float  # typical vial/prepared concentration
    bolus_minutes_default: int  # default timer after intubating dose
    maint_minutes_default: int  # default timer after a maintenance dose
    maint_dose_range_mg_per_kg: Tuple[float, float]  # display only
    aliases: Tuple[str, ...] = ()


@dataclass
class Timer:
    """A running relaxant timer.

    Timestamps are epoch milliseconds. Remaining time is never stored;
    it is derived from ``started_at`` and the wall clock.
    """

    id: str
    agent: str
    phase: Phase
    started_at: int  # start of the current cycle
    target_duration_ms: int
    first_dose_at: int | None = None  # original bolus, kept across top-ups
    silenced: bool = False
    top_up_count: int = 0


@dataclass
class Patient:
    """Patient data used for display-only dose suggestions."""

    weight_kg: float
    height_cm: float | None = None
    sex: Sex | None = None


@dataclass(frozen=True)
class GiveEvent:
    """A dosing action broadcast on the trigger channel."""

    agent_key: str
    timestamp: int  # epoch ms


@dataclass(frozen=True)
class DoseSuggestion:
    """Maintenance dose range for a patient."""

    agent: AgentInfo
    dosing_weight_kg: float
    low_mg: float
    high_mg: float
    low_ml: float
    high_ml: float
    basis: str = field(default="IBW")


@dataclass(frozen=True)
class LocalAnaestheticInfo:
    """Maximum-dose limits for a local anaesthetic."""

    key: str
    label: str
    plain_mg_per_kg: float  # without adrenaline
    with_adr_mg_per_kg: float
    cap_plain_mg: float | None  # absolute cap
    cap_adr_mg: float | None
    typical_concs_pct: Tuple[float, ...]
    aliases: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LocalAnaestheticLimit:
    """Maximum safe dose and volume for one patient, agent and concentration."""

    agent: LocalAnaestheticInfo
    weight_kg: float
    with_adrenaline: bool
    conc_pct: float
    mg_per_ml: float
    max_mg_per_kg: float
    theoretical_max_mg: float
    cap_mg: float | None
    effective_max_mg: float
    max_volume_ml: float
    planned_ml: float | None = None
    planned_mg: float | None = None
    over_limit: bool = False


Unit = Literal["mg", "mcg"]


@dataclass(frozen=True)
class DrugInfo:
    """An induction or adjunct drug with a per-kg dose range."""

    key: str
    label: str
    unit: Unit  # unit of the per-kg range
    range_per_kg: Tuple[float, float]
    conc_mg_per_ml: float
    role: str
    notes: str = ""
    adult_fixed_note: str = ""


@dataclass(frozen=True)
class DrugDose:
    """A drug's dose range in mg and mL for one weight."""

    drug: DrugInfo
    weight_kg: float
    low_mg: float
    high_mg: float
    low_ml: float
    high_ml: float


@dataclass(frozen=True)
class QuickInfo:
    """Rule-of-thumb airway and fluid numbers."""

    weight_kg: float
    age_years: float | None
    sex: Sex
    fluid_rate_ml_h: int
    ebv_ml: int
    lma_size: float
    ett_cuffed_mm: float | None = None  # age based; None without an age
    ett_uncuffed_mm: float | None = None
    ett_depth_cm: float | None = None
