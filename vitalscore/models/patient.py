from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


class RiskInputs(BaseModel):
    """Raw calculator inputs. Values may arrive as text or numbers."""

    systolic: str | float | None = None
    diastolic: str | float | None = None
    temperature: str | float | None = None
    age: str | float | None = None


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    blood_pressure: int = Field(0, ge=0, le=4, alias="bloodPressure")
    temperature: int = Field(0, ge=0, le=2)
    age: int = Field(0, ge=0, le=2)
    total: int = Field(0, ge=0, le=8)


class NormalizedPatient(BaseModel):
    id: str
    blood_pressure_score: int = Field(0, ge=0, le=4)
    temperature_score: int = Field(0, ge=0, le=2)
    age_score: int = Field(0, ge=0, le=2)
    total: int = Field(0, ge=0, le=8)
    temperature: float | None = None
    invalid_fields: list[str] = []

    @computed_field
    @property
    def has_invalid(self) -> bool:
        return bool(self.invalid_fields)


class FetchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    records: list[Any] = []
    pages_fetched: int = 0
    total_pages: int = 0
    limit: int

    @property
    def partial(self) -> bool:
        """True when the page ceiling stopped the run before the last page."""
        return self.pages_fetched < self.total_pages


class PatientsMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    count: int
    pages_fetched: int = Field(alias="pagesFetched")
    total_pages: int = Field(alias="totalPages")
    limit: int


class PatientsResponse(BaseModel):
    data: list[Any] = []
    meta: PatientsMeta
