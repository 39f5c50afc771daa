import logging
import math
from collections.abc import Callable

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from vitalscore import config
from vitalscore.models.patient import PatientsMeta, PatientsResponse
from vitalscore.services.demomed_client import DemoMedClient, DemoMedError, get_client_factory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["patients"])


def _parse_int(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return int(value)


def clamp_limit(raw: str | None) -> int:
    """Page size from a query string: default 5, truncated, clamped to [1, 20]."""
    value = _parse_int(raw)
    if value is None:
        return config.DEFAULT_PAGE_LIMIT
    return min(max(value, 1), config.MAX_PAGE_LIMIT)


def parse_max_pages(raw: str | None) -> int:
    value = _parse_int(raw)
    if value is None:
        return config.DEFAULT_MAX_PAGES
    return max(value, 1)


@router.get("/patients", response_model=PatientsResponse)
async def list_patients(
    limit: str | None = Query(None),
    max_pages: str | None = Query(None, alias="maxPages"),
    client_factory: Callable[[], DemoMedClient] = Depends(get_client_factory),
):
    """Fetch every patient page from the remote API."""
    page_limit = clamp_limit(limit)
    pages = parse_max_pages(max_pages)

    try:
        async with client_factory() as client:
            result = await client.fetch_all_patients(limit=page_limit, max_pages=pages)
    except DemoMedError as e:
        logger.exception("Failed to fetch patients")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch patients", "message": str(e)},
        )

    return PatientsResponse(
        data=result.records,
        meta=PatientsMeta(
            count=len(result.records),
            pages_fetched=result.pages_fetched,
            total_pages=result.total_pages,
            limit=result.limit,
        ),
    )
