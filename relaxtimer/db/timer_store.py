"""Persistence of timer collections and patient records.

Both stores are best effort. A failed save is logged and dropped, and a
failed load returns an empty result, so storage trouble never reaches the
user.
"""

import json
import logging
from typing import Any, Dict, List

import aiosqlite

from relaxtimer.db.kv import KeyValueStore
from relaxtimer.db.models import Patient, Timer
from relaxtimer.engine.timers import clamp_duration_ms
from relaxtimer.utils.constants import (
    PATIENT_STORE_KEY,
    PHASE_BOLUS,
    PHASE_MAINTENANCE,
    TIMER_STORE_KEY,
)

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (aiosqlite.Error, RuntimeError, OSError)
DECODE_ERRORS = (ValueError, KeyError, TypeError, AttributeError)


def timer_to_record(timer: Timer) -> Dict[str, Any]:
    """Serialize a timer using the persisted field names."""
    record: Dict[str, Any] = {
        "id": timer.id,
        "agent": timer.agent,
        "phase": timer.phase,
        "startedAt": timer.started_at,
        "targetDurationMs": timer.target_duration_ms,
        "silenced": timer.silenced,
        "topUpCount": timer.top_up_count,
    }
    if timer.first_dose_at is not None:
        record["firstDoseAt"] = timer.first_dose_at
    return record


def timer_from_record(record: Dict[str, Any]) -> Timer:
    """Deserialize a timer record.

    Raises:
        KeyError, TypeError, ValueError: on a malformed record
    """
    phase = record["phase"]
    if phase not in (PHASE_BOLUS, PHASE_MAINTENANCE):
        raise ValueError(f"Unknown phase {phase!r}")

    first_dose_at = record.get("firstDoseAt")
    return Timer(
        id=str(record["id"]),
        agent=str(record["agent"]),
        phase=phase,
        started_at=int(record["startedAt"]),
        target_duration_ms=clamp_duration_ms(int(record["targetDurationMs"])),
        first_dose_at=int(first_dose_at) if first_dose_at is not None else None,
        silenced=record.get("silenced") is True,
        top_up_count=int(record.get("topUpCount", 0)),
    )


class TimerStore:
    """Saves and loads one chat's timer collection."""

    def __init__(self, kv: KeyValueStore, namespace: str | int):
        self.kv = kv
        self.key = f"{TIMER_STORE_KEY}:{namespace}"

    async def save(self, timers: List[Timer]) -> None:
        try:
            payload = json.dumps([timer_to_record(t) for t in timers])
            await self.kv.set(self.key, payload)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to save timers under {self.key}: {e}")

    async def load(self) -> List[Timer]:
        try:
            raw = await self.kv.get(self.key)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to read timers under {self.key}: {e}")
            return []

        if raw is None:
            return []

        try:
            records = json.loads(raw)
            if not isinstance(records, list):
                raise TypeError("expected a list of timer records")
            return [timer_from_record(r) for r in records]
        except DECODE_ERRORS as e:
            logger.warning(f"Discarding unreadable timers under {self.key}: {e}")
            return []


class PatientStore:
    """Saves and loads one chat's patient record."""

    def __init__(self, kv: KeyValueStore, namespace: str | int):
        self.kv = kv
        self.key = f"{PATIENT_STORE_KEY}:{namespace}"

    async def save(self, patient: Patient) -> None:
        payload = json.dumps(
            {"weightKg": patient.weight_kg, "heightCm": patient.height_cm, "sex": patient.sex}
        )
        try:
            await self.kv.set(self.key, payload)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to save patient under {self.key}: {e}")

    async def load(self) -> Patient | None:
        try:
            raw = await self.kv.get(self.key)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to read patient under {self.key}: {e}")
            return None

        if raw is None:
            return None

        try:
            data = json.loads(raw)
            height = data.get("heightCm")
            sex = data.get("sex")
            return Patient(
                weight_kg=float(data["weightKg"]),
                height_cm=float(height) if height is not None else None,
                sex=sex if sex in ("M", "F") else None,
            )
        except DECODE_ERRORS as e:
            logger.warning(f"Discarding unreadable patient under {self.key}: {e}")
            return None

    async def clear(self) -> None:
        try:
            await self.kv.remove(self.key)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to clear patient under {self.key}: {e}")
