from __future__ import annotations

import asyncio
import logging
import time
from urllib.parse import urlencode

import httpx

from eloqua_toolbox.config import get_settings
from eloqua_toolbox.contracts.form_bulk_submit import Row, RowOutcome, SubmissionTarget

logger = logging.getLogger(__name__)

FORM_ENDPOINT_TEMPLATE = "https://s{site_id}.{host}/e/f2"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _elapsed_ms(start: float) -> int:
    return round((time.perf_counter() - start) * 1000)


def form_endpoint(target: SubmissionTarget, *, host: str | None = None) -> str:
    return FORM_ENDPOINT_TEMPLATE.format(
        site_id=target.site_id,
        host=host or get_settings().eloqua_form_host,
    )


def build_form_params(target: SubmissionTarget, row: Row) -> list[tuple[str, str]]:
    """Control parameters first, then every row column as a same-named field."""
    params = [("elqFormName", target.form_name), ("elqSiteID", target.site_id)]
    params.extend((key, value) for key, value in row.items())
    return params


def build_form_url(target: SubmissionTarget, row: Row, *, host: str | None = None) -> str:
    return f"{form_endpoint(target, host=host)}?{urlencode(build_form_params(target, row))}"


def new_form_client(*, timeout_seconds: float | None = None) -> httpx.AsyncClient:
    settings = get_settings()
    return httpx.AsyncClient(
        timeout=float(timeout_seconds or settings.bulk_submit_default_timeout_seconds),
        headers={"User-Agent": settings.form_submit_user_agent},
    )


async def submit_row(
    client: httpx.AsyncClient,
    *,
    row: Row,
    row_number: int,
    target: SubmissionTarget,
    timeout_seconds: int,
) -> RowOutcome:
    """POST one CSV row to the public Eloqua form endpoint.

    Row-level failures never raise; they come back as an unsuccessful
    RowOutcome. Any completed HTTP exchange counts as success whatever the
    status code, since the form endpoint answers 200 even for rejected
    submissions. The status is recorded for the caller to inspect.
    """
    start = time.perf_counter()
    url = build_form_url(target, row)
    base = {"row_number": row_number, "parameter_count": len(row), "data": row}

    try:
        response = await asyncio.wait_for(
            client.post(
                form_endpoint(target),
                content=urlencode(build_form_params(target, row)),
                headers={"Content-Type": FORM_CONTENT_TYPE},
            ),
            timeout=timeout_seconds,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.warning(
            "Form submission timed out",
            extra={"row_number": row_number, "timeout_seconds": timeout_seconds},
        )
        return RowOutcome(
            **base,
            success=False,
            processing_time_ms=_elapsed_ms(start),
            url=url,
            error=f"Request timeout after {timeout_seconds}s",
        )
    except httpx.HTTPError as exc:
        logger.warning(
            "Form submission failed",
            extra={"row_number": row_number, "error": str(exc), "error_type": type(exc).__name__},
        )
        return RowOutcome(
            **base,
            success=False,
            processing_time_ms=_elapsed_ms(start),
            url=url,
            error=f"Network error: {type(exc).__name__}: {exc}",
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected form submission error", extra={"row_number": row_number})
        return RowOutcome(
            **base,
            success=False,
            processing_time_ms=_elapsed_ms(start),
            url=url,
            error=f"Unexpected error: {type(exc).__name__}: {exc}",
        )

    return RowOutcome(
        **base,
        success=True,
        status_code=response.status_code,
        processing_time_ms=_elapsed_ms(start),
        url=url,
        response_size=len(response.content),
    )
