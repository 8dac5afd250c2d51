from __future__ import annotations

from datetime import date

from voter_import.core.errors import DateFormatError

DATE_FORMAT_MESSAGE = "Invalid date format. Expected mm/dd/yyyy"


def parse_date(text: str) -> date:
    """Parse ``mm/dd/yyyy`` (optionally quoted) into a calendar date.

    Impossible dates such as ``04/31/2020`` are rejected rather than rolled
    over into the following month.
    """
    parts = text.replace('"', "").split("/")
    if len(parts) != 3:
        raise DateFormatError(DATE_FORMAT_MESSAGE, details=text)

    numbers: list[int] = []
    for part in parts:
        token = part.strip()
        if not token or not token.isascii() or not token.isdigit():
            raise DateFormatError(DATE_FORMAT_MESSAGE, details=text)
        numbers.append(int(token))

    month, day, year = numbers
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise DateFormatError(DATE_FORMAT_MESSAGE, details=text) from exc
