"""Tests for Pydantic models - patient, fetch result and assessment schemas."""

import pytest
from pydantic import ValidationError

from vitalscore.models.assessment import AlertSets, AssessmentRun, RunMeta
from vitalscore.models.patient import (
    FetchResult,
    NormalizedPatient,
    PatientsMeta,
    PatientsResponse,
    RiskInputs,
    ScoreBreakdown,
)

# --- Patient Models ---


class TestRiskInputs:
    def test_defaults_all_none(self):
        inputs = RiskInputs()
        assert inputs.systolic is None
        assert inputs.diastolic is None
        assert inputs.temperature is None
        assert inputs.age is None

    def test_text_kept(self):
        inputs = RiskInputs(systolic="128", temperature="abc")
        assert inputs.systolic == "128"
        assert inputs.temperature == "abc"


class TestScoreBreakdown:
    def test_serializes_camel_case(self):
        score = ScoreBreakdown(blood_pressure=3, temperature=1, age=2, total=6)
        assert score.model_dump(by_alias=True) == {
            "bloodPressure": 3, "temperature": 1, "age": 2, "total": 6,
        }

    def test_accepts_alias(self):
        score = ScoreBreakdown.model_validate({"bloodPressure": 4, "total": 4})
        assert score.blood_pressure == 4

    def test_bounds(self):
        with pytest.raises(ValidationError):
            ScoreBreakdown(blood_pressure=5)
        with pytest.raises(ValidationError):
            ScoreBreakdown(total=9)


class TestNormalizedPatient:
    def test_defaults(self):
        patient = NormalizedPatient(id="DEMO001")
        assert patient.total == 0
        assert patient.temperature is None
        assert patient.has_invalid is False

    def test_has_invalid(self):
        patient = NormalizedPatient(id="DEMO001", invalid_fields=["age"])
        assert patient.has_invalid is True

    def test_score_bounds(self):
        with pytest.raises(ValidationError):
            NormalizedPatient(id="DEMO001", temperature_score=3)


class TestFetchResult:
    def test_frozen(self):
        result = FetchResult(records=[], pages_fetched=1, total_pages=1, limit=5)
        with pytest.raises(ValidationError):
            result.pages_fetched = 2

    def test_partial(self):
        assert FetchResult(pages_fetched=2, total_pages=5, limit=5).partial is True
        assert FetchResult(pages_fetched=5, total_pages=5, limit=5).partial is False


class TestPatientsResponse:
    def test_meta_aliases(self):
        resp = PatientsResponse(
            data=[{"patient_id": "DEMO001"}],
            meta=PatientsMeta(count=1, pages_fetched=1, total_pages=3, limit=5),
        )
        dumped = resp.model_dump(by_alias=True)
        assert dumped["meta"] == {"count": 1, "pagesFetched": 1, "totalPages": 3, "limit": 5}
        assert dumped["data"] == [{"patient_id": "DEMO001"}]


# --- Assessment Models ---


class TestAlertSets:
    def test_defaults_empty(self):
        alerts = AlertSets()
        assert alerts.high_risk == []
        assert alerts.fever == []
        assert alerts.data_quality_issues == []
        assert alerts.total_patients_seen == 0

    def test_serialization_roundtrip(self):
        alerts = AlertSets(high_risk=["A"], fever=["A", "B"], total_patients_seen=2)
        restored = AlertSets.model_validate_json(alerts.model_dump_json())
        assert restored == alerts


class TestAssessmentRun:
    def test_defaults(self):
        run = AssessmentRun(
            alerts=AlertSets(),
            meta=RunMeta(count=0, pages_fetched=1, total_pages=1, limit=5),
        )
        assert run.submitted is False
        assert run.submission is None
        assert run.model_dump(by_alias=True)["meta"]["pagesFetched"] == 1
