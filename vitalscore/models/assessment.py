from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_ids(value: Any) -> list[str]:
    """Keep only non-empty string ids, trimmed. Anything but a list yields []."""
    if not isinstance(value, list):
        return []
    return [entry.strip() for entry in value if isinstance(entry, str) and entry.strip()]


class AssessmentPayload(BaseModel):
    high_risk_patients: list[str] = []
    fever_patients: list[str] = []
    data_quality_issues: list[str] = []

    @field_validator(
        "high_risk_patients", "fever_patients", "data_quality_issues", mode="before"
    )
    @classmethod
    def _clean_ids(cls, value: Any) -> list[str]:
        return normalize_ids(value)


class AlertSets(BaseModel):
    high_risk: list[str] = []
    fever: list[str] = []
    data_quality_issues: list[str] = []
    total_patients_seen: int = 0

    def to_payload(self) -> AssessmentPayload:
        return AssessmentPayload(
            high_risk_patients=self.high_risk,
            fever_patients=self.fever,
            data_quality_issues=self.data_quality_issues,
        )


class RunMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    count: int
    pages_fetched: int = Field(alias="pagesFetched")
    total_pages: int = Field(alias="totalPages")
    limit: int
    partial: bool = False


class AssessmentRun(BaseModel):
    alerts: AlertSets
    meta: RunMeta
    submitted: bool = False
    submission: Any = None
