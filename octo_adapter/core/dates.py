"""Host date strings come with moment-style formats ("DD/MM/YYYY"); the supplier wants ISO dates."""

from __future__ import annotations

import re
from datetime import date, datetime

from octo_adapter.core.errors import InvalidRequestError

ISO_DATE = "YYYY-MM-DD"

_TOKENS = {
    "YYYY": "%Y",
    "YY": "%y",
    "MMMM": "%B",
    "MMM": "%b",
    "MM": "%m",
    "M": "%m",
    "DD": "%d",
    "D": "%d",
    "HH": "%H",
    "H": "%H",
    "mm": "%M",
    "ss": "%S",
}
_TOKEN_RE = re.compile("|".join(sorted(_TOKENS, key=len, reverse=True)))


def to_strptime(date_format: str) -> str:
    """Translate a moment-style format into a strptime pattern."""
    return _TOKEN_RE.sub(lambda m: _TOKENS[m.group(0)], date_format)


def to_iso_date(value: str | date, date_format: str = ISO_DATE, field: str = "date") -> str:
    """
    Parse ``value`` with ``date_format`` and return it as YYYY-MM-DD.

    Raises:
        InvalidRequestError: value is empty or does not match the format.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not value:
        raise InvalidRequestError(f"{field} is required")
    try:
        return datetime.strptime(value.strip(), to_strptime(date_format or ISO_DATE)).date().isoformat()
    except ValueError as e:
        raise InvalidRequestError(f"{field} '{value}' does not match format {date_format}") from e
