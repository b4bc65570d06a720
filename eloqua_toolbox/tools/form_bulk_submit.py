from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from eloqua_toolbox.config import get_settings
from eloqua_toolbox.contracts.form_bulk_submit import (
    SITE_ID_PATTERN,
    SubmissionOptions,
    SubmissionTarget,
    ValidationReport,
)
from eloqua_toolbox.services.csv_ingestion import parse_csv
from eloqua_toolbox.services.form_bulk_submit import run_bulk_submission
from eloqua_toolbox.tools.base import BaseTool, ToolConfig, ToolExecutionContext, ToolResult
from eloqua_toolbox.tools.form_bulk_submit_examples import USAGE_GUIDE, get_examples
from eloqua_toolbox.utils.exceptions import CsvIngestionError

TOOL_ID = "form-bulk-submit-tool"


def _default(name: str) -> Any:
    return lambda: getattr(get_settings(), name)


class FormBulkSubmitParameters(BaseModel):
    operation: Literal["submit", "get-examples", "get-usage-guide"] = "submit"
    site_id: str | None = None
    elq_form_name: str | None = None
    csv_data: str | None = None
    request_timeout: int = Field(default_factory=_default("bulk_submit_default_timeout_seconds"), ge=1, le=60)
    delay_between_requests: int = Field(default_factory=_default("bulk_submit_default_batch_delay_ms"), ge=0, le=5000)
    stagger_delay: int = Field(default_factory=_default("bulk_submit_default_stagger_ms"), ge=0, le=5000)
    max_concurrent_requests: int = Field(default_factory=_default("bulk_submit_default_max_concurrent"), ge=1, le=20)
    validate_only: bool = False
    example_type: Literal["csv", "parameters", "all"] = "all"


class FormBulkSubmitTool(BaseTool):
    def __init__(self) -> None:
        super().__init__(
            ToolConfig(
                id=TOOL_ID,
                name="Form Bulk Submit",
                description="Submit form data in bulk from CSV files to Eloqua forms",
                icon="ClipboardList",
                path="/form-bulk-submit",
                category="operations",
                features=[
                    "CSV processing and sanitization",
                    "Bulk form submissions to Eloqua",
                    "Batched concurrent requests with pacing",
                    "Per-row error reporting",
                    "Submission summary statistics",
                    "Validation-only dry run",
                ],
                # Posts to the public form endpoint, not the REST API
                requires_auth=False,
                version="1.0.0",
            )
        )

    def validate_parameters(self, parameters: dict[str, Any] | None) -> bool:
        if not isinstance(parameters, dict):
            return False
        try:
            params = FormBulkSubmitParameters.model_validate(parameters)
        except PydanticValidationError:
            return False

        if params.operation != "submit":
            return True
        if not params.site_id or not SITE_ID_PATTERN.match(params.site_id.strip()):
            return False
        if not params.elq_form_name or not params.elq_form_name.strip():
            return False
        return params.csv_data is not None

    def get_parameter_schema(self) -> dict[str, Any]:
        settings = get_settings()
        return {
            "operation": {
                "type": "string",
                "required": False,
                "enum": ["submit", "get-examples", "get-usage-guide"],
                "default": "submit",
                "description": "Operation to perform",
                "category": "basic",
            },
            "site_id": {
                "type": "string",
                "required": False,
                "description": "Numeric Eloqua site identifier (required for submit)",
                "category": "basic",
            },
            "elq_form_name": {
                "type": "string",
                "required": False,
                "description": "Eloqua form HTML name (required for submit)",
                "category": "basic",
            },
            "csv_data": {
                "type": "string",
                "required": False,
                "description": "CSV data as text (required for submit)",
                "category": "basic",
            },
            "request_timeout": {
                "type": "number",
                "required": False,
                "default": settings.bulk_submit_default_timeout_seconds,
                "min": 1,
                "max": 60,
                "description": "Request timeout in seconds",
                "category": "advanced",
            },
            "delay_between_requests": {
                "type": "number",
                "required": False,
                "default": settings.bulk_submit_default_batch_delay_ms,
                "min": 0,
                "max": 5000,
                "description": "Delay between batches in milliseconds",
                "category": "advanced",
            },
            "stagger_delay": {
                "type": "number",
                "required": False,
                "default": settings.bulk_submit_default_stagger_ms,
                "min": 0,
                "max": 5000,
                "description": "Stagger between requests inside a batch in milliseconds",
                "category": "advanced",
            },
            "validate_only": {
                "type": "boolean",
                "required": False,
                "default": False,
                "description": "Only validate CSV data without submitting",
                "category": "advanced",
            },
            "max_concurrent_requests": {
                "type": "number",
                "required": False,
                "default": settings.bulk_submit_default_max_concurrent,
                "min": 1,
                "max": 20,
                "description": "Maximum number of concurrent requests (batch size)",
                "category": "advanced",
            },
            "example_type": {
                "type": "string",
                "required": False,
                "enum": ["csv", "parameters", "all"],
                "default": "all",
                "description": "Type of examples to retrieve",
                "category": "basic",
            },
        }

    async def execute(self, context: ToolExecutionContext, parameters: dict[str, Any]) -> ToolResult:
        params = FormBulkSubmitParameters.model_validate(parameters)

        if params.operation == "get-examples":
            return ToolResult(
                success=True,
                data={
                    "example_type": params.example_type,
                    "examples": get_examples(params.example_type),
                    "description": f"Form Bulk Submit {params.example_type} examples",
                },
                message=f"Retrieved {params.example_type} examples successfully",
            )

        if params.operation == "get-usage-guide":
            return ToolResult(
                success=True,
                data={
                    "usage_guide": USAGE_GUIDE,
                    "description": "Complete usage guide for Form Bulk Submit tool",
                },
                message="Retrieved usage guide successfully",
            )

        context.show_progress("Processing CSV data...")
        try:
            rows = parse_csv(params.csv_data)
        except CsvIngestionError as exc:
            return ToolResult(success=False, error=str(exc))

        if not rows:
            return ToolResult(success=False, error="No valid data rows found in CSV")
        context.show_progress(f"Found {len(rows)} data rows")

        target = SubmissionTarget(site_id=params.site_id or "", form_name=params.elq_form_name or "")
        options = SubmissionOptions(
            request_timeout_seconds=params.request_timeout,
            delay_between_batches_ms=params.delay_between_requests,
            stagger_delay_ms=params.stagger_delay,
            max_concurrent_requests=params.max_concurrent_requests,
            validate_only=params.validate_only,
        )

        if not options.validate_only:
            context.show_progress("Starting bulk form submissions...")
        outcome = await run_bulk_submission(
            rows,
            target,
            options,
            progress=lambda _processed, _total, message: context.show_progress(message),
            cancel_event=context.cancel_event,
        )

        if isinstance(outcome, ValidationReport):
            return ToolResult(
                success=True,
                data={"validation": outcome.model_dump()},
                message=f"Validation complete: {outcome.valid_rows} valid rows found",
            )

        data = outcome.model_dump(exclude={"error"})
        if outcome.status == "failed":
            return ToolResult(
                success=False,
                data=data,
                error=f"Bulk submission failed: {outcome.error}",
                internal_error=True,
            )

        summary = outcome.summary
        if outcome.status == "cancelled":
            message = f"Bulk submission cancelled after {len(outcome.results)}/{len(rows)} rows"
        else:
            message = (
                f"Bulk submission complete: {summary.successful_requests}/{summary.total_rows} successful "
                f"({summary.success_rate}% success rate)"
            )
        return ToolResult(success=True, data=data, message=message)
