from __future__ import annotations

import html
import re

_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_HTML_TAG_RE = re.compile(r"<[^>]*>")

# Spreadsheet apps evaluate cells starting with these as formulas.
FORMULA_PREFIXES = ("=", "+", "-", "@")


def escape_html(value: str) -> str:
    return html.escape(value, quote=True).replace("/", "&#x2F;")


def strip_tags(value: str) -> str:
    return _HTML_TAG_RE.sub("", _SCRIPT_RE.sub("", value))


def sanitize_html(value: str | None) -> str:
    """Strip script blocks and tags, then entity-escape what remains (slashes included)."""
    if not isinstance(value, str) or not value:
        return ""
    return escape_html(strip_tags(value))


def is_formula_like(value: str) -> bool:
    return value.lstrip('"').startswith(FORMULA_PREFIXES)


def sanitize_cell(value: str | None) -> str:
    """Trim, sanitize and neutralize one CSV cell.

    Formula-looking cells are kept but prefixed with a single quote so
    spreadsheet tools render them as text.
    """
    if not isinstance(value, str):
        return ""
    text = strip_tags(value.strip()).strip()
    if not text:
        return ""
    escaped = escape_html(text)
    if is_formula_like(text):
        return "'" + escaped
    return escaped
