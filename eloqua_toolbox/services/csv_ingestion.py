from __future__ import annotations

import logging

from eloqua_toolbox.config import get_settings
from eloqua_toolbox.contracts.form_bulk_submit import Row
from eloqua_toolbox.utils.exceptions import CsvTooLargeError, EmptyInputError, MalformedCsvError
from eloqua_toolbox.utils.sanitize import sanitize_cell, sanitize_html

logger = logging.getLogger(__name__)


def _parse_csv_line(line: str) -> list[str]:
    """Split one physical line into fields.

    Any ``"`` toggles quoting, so quotes may open mid-field; a doubled
    ``""`` inside quotes is a literal quote. Commas only separate fields
    outside quotes. Embedded newlines are not supported because input is
    split on newlines first.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    index = 0
    while index < len(line):
        char = line[index]
        if char == '"':
            if in_quotes and line[index + 1 : index + 2] == '"':
                current.append('"')
                index += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    fields.append("".join(current))
    return fields


def _parse_headers(line: str) -> list[str]:
    return [sanitize_html(header.strip()) for header in _parse_csv_line(line)]


def parse_csv(raw_csv: str | None, *, max_bytes: int | None = None) -> list[Row]:
    """Turn raw CSV text into sanitized header -> value rows, in input order.

    Raises EmptyInputError for blank input and MalformedCsvError when there
    is no header plus data line. Blank and all-empty rows are skipped.
    """
    if not isinstance(raw_csv, str) or not raw_csv.strip():
        raise EmptyInputError()

    limit = max_bytes if max_bytes is not None else get_settings().csv_max_bytes
    size_bytes = len(raw_csv.encode("utf-8"))
    if size_bytes > limit:
        raise CsvTooLargeError(size_bytes, limit)

    lines = [line.rstrip("\r") for line in raw_csv.strip().split("\n")]
    if len(lines) < 2:
        raise MalformedCsvError()

    headers = _parse_headers(lines[0])
    if not any(headers):
        raise MalformedCsvError("CSV must have column headers")

    rows: list[Row] = []
    skipped = 0
    for line in lines[1:]:
        line_data = line.strip()
        if not line_data:
            skipped += 1
            continue

        values = _parse_csv_line(line_data)
        row: Row = {}
        for header, raw_value in zip(headers, values):
            if not header:
                continue
            value = sanitize_cell(raw_value)
            if value:
                row[header] = value

        if not row:
            skipped += 1
            continue
        rows.append(row)

    logger.info(
        "Parsed CSV data",
        extra={"column_count": len(headers), "row_count": len(rows), "skipped_rows": skipped},
    )
    return rows
