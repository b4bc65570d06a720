from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from enum import Enum

import httpx

from eloqua_toolbox.contracts.form_bulk_submit import (
    BulkSubmitResult,
    Row,
    RowOutcome,
    SubmissionOptions,
    SubmissionTarget,
    ValidationReport,
)
from eloqua_toolbox.providers.eloqua_forms import build_form_url, new_form_client, submit_row
from eloqua_toolbox.services.bulk_submit_summary import aggregate, format_progress

logger = logging.getLogger(__name__)

SAMPLE_REQUEST_COUNT = 3

# progress(processed_rows, total_rows, "Processed X/Y rows (Z%)")
ProgressSink = Callable[[int, int, str], None]


class JobState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def validate_submission(rows: Sequence[Row], target: SubmissionTarget) -> ValidationReport:
    """Dry run: build the first few request URLs without any network I/O."""
    return ValidationReport(
        total_rows=len(rows),
        valid_rows=len(rows),
        sample_requests=[build_form_url(target, row) for row in rows[:SAMPLE_REQUEST_COUNT]],
    )


class FormBulkSubmitJob:
    """Submits parsed CSV rows to one Eloqua form in concurrency-bounded batches.

    Batches are strictly sequential: every row of a batch must finish before
    the next batch starts, and ``delay_between_batches_ms`` is slept between
    batches. Outcomes land in a pre-sized buffer indexed by row number, so
    results always come back in input order. A job can only be run once.
    """

    def __init__(
        self,
        *,
        rows: Sequence[Row],
        target: SubmissionTarget,
        options: SubmissionOptions,
        client: httpx.AsyncClient | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        self.job_id = str(uuid.uuid4())
        self.rows = list(rows)
        self.target = target
        self.options = options
        self.state = JobState.IDLE
        self._client = client
        self._cancel_event = cancel_event
        self._results: list[RowOutcome | None] = [None] * len(self.rows)

    def _cancel_requested(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    def _collected(self) -> list[RowOutcome]:
        return [outcome for outcome in self._results if outcome is not None]

    def _failed_outcome(self, row_number: int, row: Row, exc: BaseException) -> RowOutcome:
        return RowOutcome(
            row_number=row_number,
            success=False,
            processing_time_ms=0,
            parameter_count=len(row),
            error=f"Submission task failed: {type(exc).__name__}: {exc}",
            data=row,
        )

    async def _submit_staggered(
        self,
        client: httpx.AsyncClient,
        *,
        row: Row,
        row_number: int,
        position: int,
    ) -> RowOutcome:
        if position and self.options.stagger_delay_ms:
            await asyncio.sleep(position * self.options.stagger_delay_ms / 1000)
        return await submit_row(
            client,
            row=row,
            row_number=row_number,
            target=self.target,
            timeout_seconds=self.options.request_timeout_seconds,
        )

    async def _run_batches(self, client: httpx.AsyncClient, progress: ProgressSink | None) -> bool:
        """Run every batch; returns False if cancelled at a batch boundary."""
        total = len(self.rows)
        batch_size = self.options.max_concurrent_requests
        processed = 0

        for batch_start in range(0, total, batch_size):
            if self._cancel_requested():
                logger.info(
                    "Form bulk submit cancelled",
                    extra={"job_id": self.job_id, "processed_rows": processed, "total_rows": total},
                )
                return False

            batch = self.rows[batch_start : batch_start + batch_size]
            outcomes = await asyncio.gather(
                *(
                    self._submit_staggered(
                        client,
                        row=row,
                        row_number=batch_start + position + 1,
                        position=position,
                    )
                    for position, row in enumerate(batch)
                ),
                return_exceptions=True,
            )

            for position, outcome in enumerate(outcomes):
                row_number = batch_start + position + 1
                if isinstance(outcome, BaseException):
                    logger.error(
                        "Form submission task raised",
                        extra={"job_id": self.job_id, "row_number": row_number, "error": repr(outcome)},
                    )
                    outcome = self._failed_outcome(row_number, batch[position], outcome)
                self._results[outcome.row_number - 1] = outcome

            processed += len(batch)
            if progress is not None:
                progress(processed, total, format_progress(processed, total))

            if self.options.delay_between_batches_ms > 0 and batch_start + batch_size < total:
                await asyncio.sleep(self.options.delay_between_batches_ms / 1000)

        return True

    async def run(self, progress: ProgressSink | None = None) -> BulkSubmitResult:
        if self.state is not JobState.IDLE:
            raise RuntimeError(f"Job {self.job_id} has already been started")
        self.state = JobState.RUNNING
        logger.info(
            "Starting form bulk submit",
            extra={
                "job_id": self.job_id,
                "site_id": self.target.site_id,
                "form_name": self.target.form_name,
                "total_rows": len(self.rows),
                "max_concurrent_requests": self.options.max_concurrent_requests,
            },
        )

        owns_client = self._client is None
        client = self._client or new_form_client(timeout_seconds=self.options.request_timeout_seconds)
        try:
            finished = await self._run_batches(client, progress)
            results = self._collected()
            summary = aggregate(results) if finished or results else None
        except asyncio.CancelledError:
            logger.info("Form bulk submit task cancelled", extra={"job_id": self.job_id})
            self.state = JobState.CANCELLED
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Form bulk submit failed", extra={"job_id": self.job_id})
            self.state = JobState.FAILED
            return BulkSubmitResult(
                status="failed",
                results=self._collected(),
                error=str(exc) or type(exc).__name__,
                timestamp=_utc_now_iso(),
            )
        finally:
            if owns_client:
                await client.aclose()

        self.state = JobState.COMPLETED if finished else JobState.CANCELLED
        logger.info(
            "Finished form bulk submit",
            extra={
                "job_id": self.job_id,
                "state": self.state.value,
                "processed_rows": len(results),
                "successful_requests": summary.successful_requests if summary else 0,
            },
        )
        return BulkSubmitResult(
            status=self.state.value,
            summary=summary,
            results=results,
            timestamp=_utc_now_iso(),
        )


async def run_bulk_submission(
    rows: Sequence[Row],
    target: SubmissionTarget,
    options: SubmissionOptions,
    *,
    progress: ProgressSink | None = None,
    client: httpx.AsyncClient | None = None,
    cancel_event: asyncio.Event | None = None,
) -> BulkSubmitResult | ValidationReport:
    if options.validate_only:
        return validate_submission(rows, target)
    job = FormBulkSubmitJob(
        rows=rows,
        target=target,
        options=options,
        client=client,
        cancel_event=cancel_event,
    )
    return await job.run(progress)
