"""Fetch, classify and submit: one full assessment cycle."""

import logging

from vitalscore import config
from vitalscore.models.assessment import AssessmentRun, RunMeta
from vitalscore.services.demomed_client import DemoMedClient
from vitalscore.services.risk_scoring import classify_patients

logger = logging.getLogger(__name__)


async def run_assessment(
    client: DemoMedClient,
    limit: int = config.DEFAULT_PAGE_LIMIT,
    max_pages: int = config.DEFAULT_MAX_PAGES,
    submit: bool = True,
) -> AssessmentRun:
    """Pull every patient page, build the alert lists and optionally submit them.

    Any fetch failure aborts the whole run; there is no partial submission.
    """
    async with client:
        result = await client.fetch_all_patients(limit=limit, max_pages=max_pages)
        alerts = classify_patients(result.records)

        if result.partial:
            logger.warning(
                "Assessment built from %d of %d pages",
                result.pages_fetched, result.total_pages,
            )

        submission = None
        if submit:
            submission = await client.submit_assessment(alerts.to_payload())
            logger.info("Assessment submitted for %d patients", alerts.total_patients_seen)

    return AssessmentRun(
        alerts=alerts,
        meta=RunMeta(
            count=len(result.records),
            pages_fetched=result.pages_fetched,
            total_pages=result.total_pages,
            limit=result.limit,
            partial=result.partial,
        ),
        submitted=submit,
        submission=submission,
    )
