#!/usr/bin/env python3
"""
Operator CLI for bulk form submission.

Reads a CSV file, submits every row to an Eloqua form (or only validates the
data with --validate-only) and writes the JSON result to stdout or --output.
Ctrl-C stops the job at the next batch boundary and still writes the rows
processed so far.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from eloqua_toolbox.config import get_settings
from eloqua_toolbox.tools import ToolExecutionContext, build_tool_registry, execute_tool
from eloqua_toolbox.tools.form_bulk_submit import TOOL_ID


def _print_info(message: str) -> None:
    print(f"[INFO] {message}", file=sys.stderr)


def _print_error(message: str) -> None:
    print(f"[ERROR] {message}", file=sys.stderr)


def parse_args() -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Submit CSV rows to an Eloqua form in bulk.")
    parser.add_argument("--site-id", required=True, help="Numeric Eloqua site id")
    parser.add_argument("--form-name", required=True, help="Eloqua form HTML name (elqFormName)")
    parser.add_argument("--csv", required=True, type=Path, help="Path to the CSV file")
    parser.add_argument("--validate-only", action="store_true", help="Build sample requests without submitting")
    parser.add_argument(
        "--max-concurrent",
        type=int,
        default=settings.bulk_submit_default_max_concurrent,
        help="Rows submitted concurrently per batch (1-20)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=settings.bulk_submit_default_timeout_seconds,
        help="Per-request timeout in seconds (1-60)",
    )
    parser.add_argument(
        "--batch-delay",
        type=int,
        default=settings.bulk_submit_default_batch_delay_ms,
        help="Pause between batches in milliseconds (0-5000)",
    )
    parser.add_argument(
        "--stagger",
        type=int,
        default=settings.bulk_submit_default_stagger_ms,
        help="Stagger between requests inside a batch in milliseconds (0-5000)",
    )
    parser.add_argument("--output", type=Path, default=None, help="Write the JSON result here instead of stdout")
    return parser.parse_args()


def _build_parameters(args: argparse.Namespace, csv_data: str) -> dict[str, Any]:
    return {
        "operation": "submit",
        "site_id": args.site_id,
        "elq_form_name": args.form_name,
        "csv_data": csv_data,
        "request_timeout": args.timeout,
        "delay_between_requests": args.batch_delay,
        "stagger_delay": args.stagger,
        "max_concurrent_requests": args.max_concurrent,
        "validate_only": args.validate_only,
    }


async def _run(parameters: dict[str, Any]) -> dict[str, Any]:
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    except NotImplementedError:
        pass

    registry = build_tool_registry()
    context = ToolExecutionContext(
        cancel_event=cancel_event,
        show_progress=_print_info,
        show_error=_print_error,
        show_success=_print_info,
    )
    result = await execute_tool(registry, TOOL_ID, context, parameters)
    return result.model_dump()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        csv_data = args.csv.read_text(encoding="utf-8-sig")
    except OSError as exc:
        _print_error(f"Could not read {args.csv}: {exc}")
        return 2

    result = asyncio.run(_run(_build_parameters(args, csv_data)))
    rendered = json.dumps(result, indent=2, default=str)
    if args.output:
        args.output.write_text(rendered + "\n", encoding="utf-8")
        _print_info(f"Wrote result to {args.output}")
    else:
        print(rendered)
    return 0 if result.get("success") else 1


if __name__ == "__main__":
    raise SystemExit(main())
