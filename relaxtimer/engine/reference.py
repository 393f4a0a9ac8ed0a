"""Reference calculators: local anaesthetic limits, drug doses and quick numbers.

All display only. Weights are total body weight in kg.
"""

import math
from typing import List

from relaxtimer.db.models import (
    DrugDose,
    DrugInfo,
    LocalAnaestheticInfo,
    LocalAnaestheticLimit,
    QuickInfo,
    Sex,
)

LOCAL_ANAESTHETICS = {
    "lidocaine": LocalAnaestheticInfo(
        key="lidocaine",
        label="Lidocaine (Lignocaine)",
        plain_mg_per_kg=4.5,
        with_adr_mg_per_kg=7,
        cap_plain_mg=300,
        cap_adr_mg=500,
        typical_concs_pct=(0.5, 1, 1.5, 2),
        aliases=("lido", "lignocaine", "xylocaine"),
    ),
    "bupivacaine": LocalAnaestheticInfo(
        key="bupivacaine",
        label="Bupivacaine",
        plain_mg_per_kg=2.5,
        with_adr_mg_per_kg=3,
        cap_plain_mg=175,
        cap_adr_mg=225,
        typical_concs_pct=(0.25, 0.5, 0.75),
        aliases=("bupi", "bupiv", "marcaine"),
    ),
    "ropivacaine": LocalAnaestheticInfo(
        key="ropivacaine",
        label="Ropivacaine",
        plain_mg_per_kg=3,
        with_adr_mg_per_kg=3,  # adrenaline rarely added; same limit
        cap_plain_mg=225,
        cap_adr_mg=250,
        typical_concs_pct=(0.2, 0.5, 0.75),
        aliases=("ropi", "naropin"),
    ),
    "prilocaine": LocalAnaestheticInfo(
        key="prilocaine",
        label="Prilocaine",
        plain_mg_per_kg=6,
        with_adr_mg_per_kg=8,
        cap_plain_mg=400,
        cap_adr_mg=600,
        typical_concs_pct=(0.5, 1, 2, 3, 4),
        aliases=("prilo", "citanest"),
    ),
}

DRUGS = {
    "propofol": DrugInfo(
        key="propofol",
        label="Propofol",
        unit="mg",
        range_per_kg=(1.5, 2.5),
        conc_mg_per_ml=10,
        role="Induction",
        notes="Titrate to effect; lower dose in elderly/frail.",
    ),
    "fentanyl": DrugInfo(
        key="fentanyl",
        label="Fentanyl",
        unit="mcg",
        range_per_kg=(0.5, 2),
        conc_mg_per_ml=0.05,
        role="Analgesia bolus",
        notes="Titrate carefully; consider age/comorbidity.",
    ),
    "ketamine": DrugInfo(
        key="ketamine",
        label="Ketamine",
        unit="mg",
        range_per_kg=(1, 2),
        conc_mg_per_ml=50,
        role="Induction/Adjunct",
        notes="Hemodynamically supportive; watch psychomimetics.",
    ),
    "midazolam": DrugInfo(
        key="midazolam",
        label="Midazolam",
        unit="mg",
        range_per_kg=(0.02, 0.04),
        conc_mg_per_ml=1,
        role="Preop anxiolysis",
        notes="Titrate slowly; reduce with opioids/elderly.",
    ),
    "dexamethasone": DrugInfo(
        key="dexamethasone",
        label="Dexamethasone",
        unit="mg",
        range_per_kg=(0.1, 0.1),
        conc_mg_per_ml=4,
        role="PONV prophylaxis",
        adult_fixed_note="Adult typical 4–8 mg IV",
    ),
    "ondansetron": DrugInfo(
        key="ondansetron",
        label="Ondansetron",
        unit="mg",
        range_per_kg=(0.1, 0.1),
        conc_mg_per_ml=2,
        role="PONV prophylaxis",
        adult_fixed_note="Adult typical 4 mg IV (max per policy/label)",
    ),
}


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


# Local anaesthetics


def resolve_local_anaesthetic(text: str) -> LocalAnaestheticInfo | None:
    """Match user input against keys, labels and aliases."""
    needle = text.strip().lower()
    if not needle:
        return None

    for agent in LOCAL_ANAESTHETICS.values():
        if needle == agent.key or needle == agent.label.lower() or needle in agent.aliases:
            return agent

    return None


def local_anaesthetic_limit(
    agent: LocalAnaestheticInfo,
    weight_kg: float,
    with_adrenaline: bool = False,
    conc_pct: float | None = None,
    planned_ml: float | None = None,
) -> LocalAnaestheticLimit:
    """Maximum dose in mg and mL at a concentration.

    The per-kg limit is capped by the agent's absolute limit. 1% = 10 mg/mL.
    Without a concentration the agent's first typical one is used.
    """
    conc = conc_pct if conc_pct is not None else agent.typical_concs_pct[0]
    mg_per_ml = conc * 10

    max_per_kg = agent.with_adr_mg_per_kg if with_adrenaline else agent.plain_mg_per_kg
    cap = agent.cap_adr_mg if with_adrenaline else agent.cap_plain_mg
    theoretical = weight_kg * max_per_kg
    effective = min(theoretical, cap) if cap else theoretical
    max_volume = effective / mg_per_ml if mg_per_ml > 0 else 0.0

    planned_mg = mg_per_ml * planned_ml if planned_ml is not None else None

    return LocalAnaestheticLimit(
        agent=agent,
        weight_kg=weight_kg,
        with_adrenaline=with_adrenaline,
        conc_pct=conc,
        mg_per_ml=mg_per_ml,
        max_mg_per_kg=max_per_kg,
        theoretical_max_mg=theoretical,
        cap_mg=cap,
        effective_max_mg=effective,
        max_volume_ml=max_volume,
        planned_ml=planned_ml,
        planned_mg=planned_mg,
        over_limit=planned_mg is not None and planned_mg > effective,
    )


def list_local_anaesthetics() -> List[LocalAnaestheticInfo]:
    return list(LOCAL_ANAESTHETICS.values())


# Induction and adjunct drugs


def drug_dose(drug: DrugInfo, weight_kg: float, conc_mg_per_ml: float | None = None) -> DrugDose:
    """Dose range in mg and mL. mcg ranges are converted to mg."""
    conc = conc_mg_per_ml if conc_mg_per_ml is not None else drug.conc_mg_per_ml
    to_mg = 1 / 1000 if drug.unit == "mcg" else 1
    low_per_kg, high_per_kg = drug.range_per_kg

    low_mg = low_per_kg * weight_kg * to_mg
    high_mg = high_per_kg * weight_kg * to_mg

    return DrugDose(
        drug=drug,
        weight_kg=weight_kg,
        low_mg=round(low_mg, 2),
        high_mg=round(high_mg, 2),
        low_ml=round(low_mg / conc, 2) if conc > 0 else 0.0,
        high_ml=round(high_mg / conc, 2) if conc > 0 else 0.0,
    )


def list_drugs() -> List[DrugInfo]:
    return list(DRUGS.values())


# Quick numbers


def fluid_rate_421(weight_kg: float) -> int:
    """Maintenance fluid rate in mL/hr by the 4-2-1 rule."""
    w = max(0.0, weight_kg or 0)
    first10 = min(w, 10) * 4
    second10 = min(max(w - 10, 0), 10) * 2
    rest = max(w - 20, 0)
    return int(_round_half_up(first10 + second10 + rest))


def ebv_ml(weight_kg: float, age_years: float | None, sex: Sex | None) -> int:
    """Estimated blood volume in mL.

    mL/kg: neonate 90, infant 80, child 75, adult male 70, adult female 65.
    No age means adult.
    """
    w = max(0.0, weight_kg or 0)
    if age_years is None or age_years >= 12:
        per_kg = 65 if sex == "F" else 70
    elif age_years < 0.083:  # under 1 month
        per_kg = 90
    elif age_years < 1:
        per_kg = 80
    else:
        per_kg = 75
    return int(_round_half_up(per_kg * w))


def ett_size_by_age(age_years: float) -> tuple[float, float]:
    """(cuffed, uncuffed) tube ID in mm: age/4 + 3.5 and age/4 + 4."""
    a = max(0.0, age_years or 0)
    return _round_half_up(a / 4 + 3.5, 1), _round_half_up(a / 4 + 4, 1)


def ett_depth_cm(tube_id_mm: float) -> float:
    """Oral tube depth, roughly 3 x ID."""
    return _round_half_up((tube_id_mm or 0) * 3, 1)


def lma_size(weight_kg: float) -> float:
    """LMA size by weight band."""
    w = max(0.0, weight_kg or 0)
    for limit, size in ((5, 1), (10, 1.5), (20, 2), (30, 2.5), (50, 3), (70, 4)):
        if w < limit:
            return size
    return 5


def quick_info(weight_kg: float, age_years: float | None = None, sex: Sex | None = None) -> QuickInfo:
    """Fluids, blood volume, LMA and (with an age) tube size for a patient."""
    cuffed = uncuffed = depth = None
    if age_years is not None:
        cuffed, uncuffed = ett_size_by_age(age_years)
        depth = ett_depth_cm(cuffed)

    return QuickInfo(
        weight_kg=weight_kg,
        age_years=age_years,
        sex=sex or "M",
        fluid_rate_ml_h=fluid_rate_421(weight_kg),
        ebv_ml=ebv_ml(weight_kg, age_years, sex),
        lma_size=lma_size(weight_kg),
        ett_cuffed_mm=cuffed,
        ett_uncuffed_mm=uncuffed,
        ett_depth_cm=depth,
    )
