"""Risk scoring and assessment submission endpoints."""

import logging
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import JSONResponse

from vitalscore.models.assessment import AlertSets, AssessmentPayload, AssessmentRun
from vitalscore.models.patient import RiskInputs, ScoreBreakdown
from vitalscore.routers.patients import clamp_limit, parse_max_pages
from vitalscore.services.assessment import run_assessment
from vitalscore.services.demomed_client import DemoMedClient, DemoMedError, get_client_factory
from vitalscore.services.risk_scoring import calculate_scores, classify_patients

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["assessment"])


def _error_response(error: str, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": error, "message": str(exc)})


@router.post("/submit-assessment")
async def submit_assessment(
    request: Request,
    client_factory: Callable[[], DemoMedClient] = Depends(get_client_factory),
):
    """Forward the three alert id lists to the remote API.

    Non-string ids are dropped and the rest trimmed before forwarding.
    The remote response is returned unchanged.
    """
    try:
        body = await request.json()
    except ValueError as e:
        logger.error("Invalid JSON in submit-assessment body")
        return _error_response("Failed to submit assessment", e)

    payload = AssessmentPayload.model_validate(body if isinstance(body, dict) else {})

    try:
        async with client_factory() as client:
            result = await client.submit_assessment(payload)
    except DemoMedError as e:
        logger.exception("Failed to submit assessment")
        return _error_response("Failed to submit assessment", e)

    return result


@router.post("/risk-score", response_model=ScoreBreakdown)
async def risk_score(inputs: RiskInputs):
    """Score manually entered vitals."""
    return calculate_scores(inputs)


@router.post("/classify", response_model=AlertSets)
async def classify(body: list[Any] | dict[str, Any] = Body(...)):
    """Classify raw patient records without touching the remote API.

    Accepts a bare list of records or the ``{"data": [...]}`` shape that
    ``GET /api/patients`` returns.
    """
    if isinstance(body, dict):
        records = body.get("data")
        if not isinstance(records, list):
            records = []
    else:
        records = body
    return classify_patients(records)


@router.post("/assessment/run", response_model=AssessmentRun)
async def run(
    limit: str | None = Query(None),
    max_pages: str | None = Query(None, alias="maxPages"),
    dry_run: bool = Query(False, alias="dryRun"),
    client_factory: Callable[[], DemoMedClient] = Depends(get_client_factory),
):
    """Run a full fetch, classify and submit cycle server-side."""
    try:
        return await run_assessment(
            client_factory(),
            limit=clamp_limit(limit),
            max_pages=parse_max_pages(max_pages),
            submit=not dry_run,
        )
    except DemoMedError as e:
        logger.exception("Assessment run failed")
        return _error_response("Failed to run assessment", e)
