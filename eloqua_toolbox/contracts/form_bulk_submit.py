from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

SITE_ID_PATTERN = re.compile(r"^\d+$")

Row = dict[str, str]


class SubmissionTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    site_id: str
    form_name: str

    @field_validator("site_id")
    @classmethod
    def _validate_site_id(cls, value: str) -> str:
        cleaned = value.strip()
        if not SITE_ID_PATTERN.match(cleaned):
            raise ValueError("site_id must be numeric")
        return cleaned

    @field_validator("form_name")
    @classmethod
    def _validate_form_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("form_name must be non-empty")
        return cleaned


class SubmissionOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    request_timeout_seconds: int = Field(default=10, ge=1, le=60)
    delay_between_batches_ms: int = Field(default=100, ge=0, le=5000)
    # Intra-batch stagger; row N of a batch waits N * stagger_delay_ms.
    stagger_delay_ms: int = Field(default=0, ge=0, le=5000)
    max_concurrent_requests: int = Field(default=5, ge=1, le=20)
    validate_only: bool = False


class RowOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    row_number: int
    success: bool
    status_code: int | None = None
    processing_time_ms: int
    url: str | None = None
    parameter_count: int
    response_size: int | None = None
    error: str | None = None
    data: Row


class JobSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_rows: int
    successful_requests: int
    failed_requests: int
    success_rate: float
    total_processing_time_ms: int
    average_processing_time_ms: float


class ValidationReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_rows: int
    valid_rows: int
    sample_requests: list[str]


class BulkSubmitResult(BaseModel):
    status: Literal["completed", "cancelled", "failed"]
    summary: JobSummary | None = None
    results: list[RowOutcome]
    error: str | None = None
    timestamp: str
