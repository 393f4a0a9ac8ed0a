"""Neuromuscular blocker catalog."""

from typing import List

from relaxtimer.db.models import AgentInfo


class UnknownAgentError(KeyError):
    """Raised when an agent key is not in the catalog (a wiring defect)."""


AGENTS = {
    "rocuronium": AgentInfo(
        key="rocuronium",
        label="Rocuronium",
        conc_mg_per_ml=10,  # 10 mg/mL
        bolus_minutes_default=31,  # median clinical duration after 0.6 mg/kg
        maint_minutes_default=17,  # median after ~0.15 mg/kg
        maint_dose_range_mg_per_kg=(0.1, 0.2),
        aliases=("roc", "rocu", "esmeron"),
    ),
    "vecuronium": AgentInfo(
        key="vecuronium",
        label="Vecuronium",
        conc_mg_per_ml=1,  # 1 mg/mL reconstituted
        bolus_minutes_default=30,  # ~25-40 min
        maint_minutes_default=12,  # ~q12-15 min for 0.01-0.015 mg/kg
        maint_dose_range_mg_per_kg=(0.01, 0.015),
        aliases=("vec", "vecu"),
    ),
    "atracurium": AgentInfo(
        key="atracurium",
        label="Atracurium",
        conc_mg_per_ml=10,
        bolus_minutes_default=40,  # ~40-45 min
        maint_minutes_default=20,  # first redose often 20-45 min
        maint_dose_range_mg_per_kg=(0.08, 0.1),
        aliases=("atra", "atrac"),
    ),
    "cisatracurium": AgentInfo(
        key="cisatracurium",
        label="Cisatracurium",
        conc_mg_per_ml=2,
        bolus_minutes_default=60,  # ~55-65 min
        maint_minutes_default=20,  # ~20 min after 0.03 mg/kg
        maint_dose_range_mg_per_kg=(0.02, 0.03),
        aliases=("cis", "cisatra", "nimbex"),
    ),
}


def get_agent(key: str) -> AgentInfo:
    """Get an agent by key.

    Raises:
        UnknownAgentError: if the key is not in the catalog
    """
    try:
        return AGENTS[key]
    except KeyError:
        raise UnknownAgentError(key) from None


def find_agent(key: str) -> AgentInfo | None:
    """Get an agent by key, or None."""
    return AGENTS.get(key)


def resolve_agent(text: str) -> AgentInfo | None:
    """Match user input against keys, labels and aliases.

    Examples:
        "roc" -> Rocuronium
        "Cisatracurium" -> Cisatracurium
    """
    needle = text.strip().lower()
    if not needle:
        return None

    for agent in AGENTS.values():
        if needle == agent.key or needle == agent.label.lower() or needle in agent.aliases:
            return agent

    return None


def list_agents() -> List[AgentInfo]:
    """All agents in display order."""
    return list(AGENTS.values())
