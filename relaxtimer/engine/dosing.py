"""Weight formulas and maintenance dose suggestions (display only)."""

from relaxtimer.db.models import AgentInfo, DoseSuggestion, Patient, Sex


def ibw_kg(height_cm: float | None, sex: Sex | None, tbw_kg: float) -> float:
    """Devine ideal body weight.

    M = 50 + 2.3 per inch over 60, F = 45.5 + 2.3 per inch over 60.
    Falls back to total body weight when height or sex is missing.
    """
    if not height_cm or sex is None:
        return tbw_kg

    over_60_in = max(0.0, height_cm / 2.54 - 60)
    base = 50.0 if sex == "M" else 45.5
    return round(base + 2.3 * over_60_in, 1)


def lbw_kg(height_cm: float | None, sex: Sex | None, tbw_kg: float) -> float:
    """Janmahasatian lean body weight. Falls back to total body weight."""
    if not height_cm or not tbw_kg or sex is None:
        return tbw_kg

    height_m = height_cm / 100
    bmi = tbw_kg / (height_m * height_m)
    if sex == "M":
        return round((9270 * tbw_kg) / (6680 + 216 * bmi), 1)
    return round((9270 * tbw_kg) / (8780 + 244 * bmi), 1)


def dosing_weight_kg(patient: Patient) -> float:
    """IBW capped at actual weight."""
    return min(patient.weight_kg, ibw_kg(patient.height_cm, patient.sex, patient.weight_kg))


def maintenance_dose(agent: AgentInfo, patient: Patient | None) -> DoseSuggestion | None:
    """Maintenance dose range for the patient, or None without patient data."""
    if patient is None or not patient.weight_kg or patient.weight_kg <= 0:
        return None

    weight = dosing_weight_kg(patient)
    low_per_kg, high_per_kg = agent.maint_dose_range_mg_per_kg
    low_mg = round(low_per_kg * weight, 2)
    high_mg = round(high_per_kg * weight, 2)

    return DoseSuggestion(
        agent=agent,
        dosing_weight_kg=weight,
        low_mg=low_mg,
        high_mg=high_mg,
        low_ml=round(low_mg / agent.conc_mg_per_ml, 2),
        high_ml=round(high_mg / agent.conc_mg_per_ml, 2),
        basis="IBW" if weight < patient.weight_kg else "TBW",
    )
