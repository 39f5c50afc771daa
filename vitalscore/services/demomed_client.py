"""Client for the DemoMed clinical-data API.

Pulls the patient list page by page and submits assessment results. Every
request goes through ``request_with_retry``, which retries rate limiting
(429), server errors (500, 503) and failed requests (connection, timeout,
body decoding, redirect loops) with capped exponential backoff. Anything
else, or running out of attempts, raises ``TransferError``.

Pages are fetched strictly in sequence. The remote API shares a rate
limit budget across callers, so there is no parallel paging.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from vitalscore import config
from vitalscore.models.assessment import AssessmentPayload
from vitalscore.models.patient import FetchResult

logger = logging.getLogger(__name__)

PATIENTS_PATH = "/patients"
SUBMIT_PATH = "/submit-assessment"


class DemoMedError(Exception):
    """Base class for DemoMed client failures."""


class ConfigurationError(DemoMedError):
    """The client cannot be built, e.g. the API key is missing."""


class TransferError(DemoMedError):
    """A request failed for good: non-retriable status or retries exhausted."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str = "",
        attempts: int = 0,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.attempts = attempts


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = config.DEMOMED_MAX_ATTEMPTS
    base_delay: float = config.DEMOMED_BASE_DELAY_MS / 1000
    max_delay: float = config.DEMOMED_MAX_DELAY_MS / 1000
    retriable_statuses: frozenset[int] = config.RETRIABLE_STATUSES

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return min(self.base_delay * 2 ** (attempt - 1), self.max_delay)

    def is_retriable(self, status_code: int) -> bool:
        return status_code in self.retriable_statuses


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        logger.warning(
            "Non-JSON response from %s (status %s)", response.request.url, response.status_code
        )
        return None


def _page_records(payload: Any) -> list[Any]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        if data is not None:
            logger.warning("Patients page 'data' is %s, not a list", type(data).__name__)
        return []
    return data


def _page_pagination(payload: Any) -> dict:
    pagination = payload.get("pagination") if isinstance(payload, dict) else None
    if not isinstance(pagination, dict):
        return {}
    return pagination


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class DemoMedClient:
    """Async DemoMed API client.

    Configuration is captured at construction. ``transport`` and ``sleep``
    exist so tests can substitute a fake server and a fake clock. Use as an
    async context manager to share one connection pool across calls;
    otherwise each call opens its own ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        policy: RetryPolicy | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        key = api_key if api_key is not None else config.DEMOMED_API_KEY
        if not key:
            raise ConfigurationError("Missing DEMOMED_API_KEY environment variable")
        self.api_key = key
        self.base_url = (base_url or config.DEMOMED_BASE_URL).rstrip("/")
        self.policy = policy or RetryPolicy()
        self.timeout = timeout if timeout is not None else config.DEMOMED_TIMEOUT
        self._transport = transport
        self._sleep = sleep
        self._client: httpx.AsyncClient | None = None

    def _build_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Accept": "application/json",
                "x-api-key": self.api_key,
            },
        )

    async def __aenter__(self) -> "DemoMedClient":
        self._client = self._build_http_client()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request_with_retry(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send a request, retrying transient failures per the retry policy."""
        if self._client is not None:
            return await self._send_with_retry(self._client, method, path, params, json)
        async with self._build_http_client() as client:
            return await self._send_with_retry(client, method, path, params, json)

    async def _send_with_retry(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        json: Any,
    ) -> httpx.Response:
        max_attempts = self.policy.max_attempts
        attempt = 0

        while attempt < max_attempts:
            attempt += 1
            try:
                response = await client.request(method, path, params=params, json=json)
            except httpx.RequestError as e:
                if attempt >= max_attempts:
                    logger.error(
                        "%s %s failed after %d attempts: %s", method, path, attempt, e
                    )
                    raise TransferError(
                        f"Request failed after {attempt} attempts: {e}",
                        attempts=attempt,
                    ) from e
                delay = self.policy.delay_for(attempt)
                logger.warning(
                    "%s %s request error on attempt %d/%d (%s), retrying in %.2fs",
                    method, path, attempt, max_attempts, e, delay,
                )
                await self._sleep(delay)
                continue

            if response.is_success:
                return response

            if self.policy.is_retriable(response.status_code) and attempt < max_attempts:
                delay = self.policy.delay_for(attempt)
                logger.warning(
                    "%s %s returned %d on attempt %d/%d, retrying in %.2fs",
                    method, path, response.status_code, attempt, max_attempts, delay,
                )
                await self._sleep(delay)
                continue

            body = response.text
            logger.error(
                "%s %s failed with status %d after %d attempts",
                method, path, response.status_code, attempt,
            )
            message = f"Request failed with status {response.status_code}"
            if body:
                message += f": {body}"
            raise TransferError(
                message, status_code=response.status_code, body=body, attempts=attempt
            )

        # Only reachable with a policy of zero attempts.
        raise TransferError("Exceeded maximum retry attempts", attempts=attempt)

    async def fetch_all_patients(
        self,
        limit: int = config.DEFAULT_PAGE_LIMIT,
        max_pages: int = config.DEFAULT_MAX_PAGES,
    ) -> FetchResult:
        """Fetch every patient page until pagination ends or max_pages is hit.

        Hitting max_pages while more pages remain is not an error; the
        result's ``pages_fetched < total_pages`` in that case.
        """
        if not 1 <= limit <= config.MAX_PAGE_LIMIT:
            raise ValueError(f"limit must be between 1 and {config.MAX_PAGE_LIMIT}, got {limit}")
        if max_pages < 1:
            raise ValueError(f"max_pages must be at least 1, got {max_pages}")

        records: list[Any] = []
        page = 1
        pages_fetched = 0
        has_next = True
        total_pages: int | None = None

        while has_next and page <= max_pages:
            response = await self.request_with_retry(
                "GET", PATIENTS_PATH, params={"page": page, "limit": limit}
            )
            payload = _decode_json(response)
            page_records = _page_records(payload)
            records.extend(page_records)

            pagination = _page_pagination(payload)
            reported_total = _int_or_none(pagination.get("totalPages"))
            if reported_total is not None:
                total_pages = reported_total
            page_number = _int_or_none(pagination.get("page"))
            if page_number is None:
                page_number = page

            has_next_flag = pagination.get("hasNext")
            if isinstance(has_next_flag, bool):
                has_next = has_next_flag
            elif total_pages is not None:
                has_next = page_number < total_pages
            else:
                has_next = bool(page_records) and page < max_pages

            logger.info(
                "Fetched patients page %d (%d records, has_next=%s, total_pages=%s)",
                page, len(page_records), has_next, total_pages,
            )
            page += 1
            pages_fetched += 1

        if has_next:
            logger.warning(
                "Stopped at max_pages=%d with more pages remaining (total_pages=%s)",
                max_pages, total_pages,
            )

        return FetchResult(
            records=records,
            pages_fetched=pages_fetched,
            total_pages=total_pages if total_pages is not None else pages_fetched,
            limit=limit,
        )

    async def submit_assessment(self, payload: AssessmentPayload) -> Any:
        """POST alert lists to the remote API and return its JSON as-is."""
        logger.info(
            "Submitting assessment: high_risk=%d fever=%d data_quality=%d",
            len(payload.high_risk_patients),
            len(payload.fever_patients),
            len(payload.data_quality_issues),
        )
        response = await self.request_with_retry(
            "POST", SUBMIT_PATH, json=payload.model_dump()
        )
        return _decode_json(response)


def get_client_factory() -> Callable[[], DemoMedClient]:
    """FastAPI dependency: how route handlers build a client.

    Handlers call the factory inside their own error handling so a missing
    API key is reported like any other client failure.
    """
    return DemoMedClient
