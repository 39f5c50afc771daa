"""Vital-sign risk scoring and alert classification.

Scores a patient from blood pressure, temperature (Fahrenheit) and age,
and sorts a batch of raw patient records into three alert lists:
high risk, fever, and data-quality issues.

The raw records come from a loosely typed external API: the id may sit
under ``patient_id`` or ``id``, and temperature/age may be numbers or
numeric strings. ``normalize_patient`` is the single place that turns a
raw record into a ``NormalizedPatient``; unparsable readings are recorded
in ``invalid_fields`` rather than raised.
"""

import logging
import math
from collections.abc import Iterable
from typing import Any, NamedTuple

from vitalscore.models.assessment import AlertSets
from vitalscore.models.patient import NormalizedPatient, RiskInputs, ScoreBreakdown

logger = logging.getLogger(__name__)

HIGH_RISK_THRESHOLD = 4
FEVER_THRESHOLD = 99.6
HIGH_FEVER_THRESHOLD = 101.0
SENIOR_AGE = 65

ID_FIELDS = ("patient_id", "id")


class BloodPressure(NamedTuple):
    systolic: float
    diastolic: float


# --- Parsing ---


def parse_number(value: Any) -> float | None:
    """Parse a number or numeric string. Returns None when unusable."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def parse_blood_pressure(value: Any) -> BloodPressure | None:
    """Parse a "systolic/diastolic" reading such as "128/84"."""
    if not isinstance(value, str):
        return None
    parts = value.split("/")
    if len(parts) != 2:
        return None
    systolic = parse_number(parts[0])
    diastolic = parse_number(parts[1])
    if systolic is None or diastolic is None:
        return None
    return BloodPressure(systolic, diastolic)


def parse_age(value: Any) -> float | None:
    age = parse_number(value)
    if age is None or age < 0:
        return None
    return age


# --- Component scores ---


def blood_pressure_score(systolic: Any, diastolic: Any) -> int:
    """Score a blood pressure reading from 0 to 4.

    When systolic and diastolic fall in different stages the higher
    stage wins. Unparsable readings score 0.
    """
    sys_value = parse_number(systolic)
    dia_value = parse_number(diastolic)
    if sys_value is None or dia_value is None:
        return 0

    if sys_value >= 140 or dia_value >= 90:
        return 4
    if 130 <= sys_value < 140 or 80 <= dia_value < 90:
        return 3
    if 120 <= sys_value < 130 and dia_value < 80:
        return 2
    if sys_value < 120 and dia_value < 80:
        return 1
    return 0


def temperature_score(temperature: Any) -> int:
    """Score a Fahrenheit temperature: >=101 is 2, 99.6-100.9 is 1, else 0."""
    value = parse_number(temperature)
    if value is None:
        return 0
    if value >= HIGH_FEVER_THRESHOLD:
        return 2
    if value >= FEVER_THRESHOLD:
        return 1
    return 0


def age_score(age: Any) -> int:
    """Over 65 scores 2, any other valid age scores 1, invalid scores 0."""
    value = parse_age(age)
    if value is None:
        return 0
    if value > SENIOR_AGE:
        return 2
    return 1


def calculate_scores(inputs: RiskInputs) -> ScoreBreakdown:
    """Score the manual calculator form."""
    bp = blood_pressure_score(inputs.systolic, inputs.diastolic)
    temp = temperature_score(inputs.temperature)
    age = age_score(inputs.age)
    return ScoreBreakdown(
        blood_pressure=bp,
        temperature=temp,
        age=age,
        total=bp + temp + age,
    )


# --- Record normalization ---


def resolve_patient_id(record: Any) -> str | None:
    """Return the first non-empty id among the known id fields."""
    if not isinstance(record, dict):
        return None
    for field in ID_FIELDS:
        value = record.get(field)
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def normalize_patient(record: Any) -> NormalizedPatient | None:
    """Map a raw API record to a NormalizedPatient, or None if it has no id."""
    patient_id = resolve_patient_id(record)
    if patient_id is None:
        return None

    invalid: list[str] = []

    bp = parse_blood_pressure(record.get("blood_pressure"))
    if bp is None:
        invalid.append("blood_pressure")
        bp_score = 0
    else:
        bp_score = blood_pressure_score(bp.systolic, bp.diastolic)

    temperature = parse_number(record.get("temperature"))
    if temperature is None:
        invalid.append("temperature")
    temp_score = temperature_score(temperature)

    age = parse_age(record.get("age"))
    if age is None:
        invalid.append("age")
    a_score = age_score(age)

    return NormalizedPatient(
        id=patient_id,
        blood_pressure_score=bp_score,
        temperature_score=temp_score,
        age_score=a_score,
        total=bp_score + temp_score + a_score,
        temperature=temperature,
        invalid_fields=invalid,
    )


def classify_patients(records: Iterable[Any]) -> AlertSets:
    """Sort raw records into high-risk, fever and data-quality alert lists.

    Records without an id are dropped. Duplicate ids keep the first
    occurrence. A patient may land in any combination of the lists.
    """
    seen: set[str] = set()
    high_risk: list[str] = []
    fever: list[str] = []
    data_issues: list[str] = []
    dropped = 0

    for record in records:
        patient = normalize_patient(record)
        if patient is None:
            dropped += 1
            continue
        if patient.id in seen:
            continue
        seen.add(patient.id)

        if patient.total >= HIGH_RISK_THRESHOLD:
            high_risk.append(patient.id)
        if patient.temperature is not None and patient.temperature >= FEVER_THRESHOLD:
            fever.append(patient.id)
        if patient.has_invalid:
            data_issues.append(patient.id)

    if dropped:
        logger.warning("Dropped %d patient records without an id", dropped)

    logger.info(
        "Classified %d patients: high_risk=%d fever=%d data_quality=%d",
        len(seen), len(high_risk), len(fever), len(data_issues),
    )
    return AlertSets(
        high_risk=high_risk,
        fever=fever,
        data_quality_issues=data_issues,
        total_patients_seen=len(seen),
    )
