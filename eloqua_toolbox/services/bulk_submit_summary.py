from __future__ import annotations

import math
from collections.abc import Sequence

from eloqua_toolbox.contracts.form_bulk_submit import JobSummary, RowOutcome
from eloqua_toolbox.utils.exceptions import EmptyResultsError


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def aggregate(results: Sequence[RowOutcome]) -> JobSummary:
    total = len(results)
    if total == 0:
        raise EmptyResultsError()

    successful = sum(1 for outcome in results if outcome.success)
    total_time = sum(outcome.processing_time_ms for outcome in results)
    return JobSummary(
        total_rows=total,
        successful_requests=successful,
        failed_requests=total - successful,
        success_rate=round_half_up(successful * 100 / total, 1),
        total_processing_time_ms=total_time,
        average_processing_time_ms=round_half_up(total_time / total, 1),
    )


def format_progress(processed: int, total: int) -> str:
    percent = int(round_half_up(processed * 100 / total)) if total else 100
    return f"Processed {processed}/{total} rows ({percent}%)"
