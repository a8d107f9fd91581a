"""String <-> value converters for money, height and date fields.

Money uses the site's abbreviated notation (``€10k``, ``€1.50m``, ``€2.5bn``), heights are
stored in centimetres (``"1,91m"`` -> 191) and dates use the English ``"Jun 26, 1999"`` form.
All ``*_from_string`` functions raise :class:`ParseFailure` on unparsable text.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from ..domain.errors import ParseFailure

MONEY_UNITS: list[tuple[str, int]] = [
    ("bn", 1_000_000_000),
    ("m", 1_000_000),
    ("k", 1_000),
]

DATE_FORMAT = "%b %d, %Y"

_MONEY_RE = re.compile(r"^(\d+(?:\.\d+)?)(bn|m|k)?$")
_MONEY_NOISE_RE = re.compile(r"[€$£\s ]")


def _is_placeholder(text: str | None) -> bool:
    return text is None or not text.strip() or text.strip() in ("-", "?")


def money_from_string(text: str | None) -> float:
    """Parse ``"€1.50m"`` / ``"10k"`` / ``"2.5bn"`` / ``"950"`` into a number."""
    if _is_placeholder(text):
        raise ParseFailure("money", text, "empty value")
    cleaned = _MONEY_NOISE_RE.sub("", text).lower().replace(",", ".")
    m = _MONEY_RE.match(cleaned)
    if not m:
        raise ParseFailure("money", text)
    number = float(m.group(1))
    suffix = m.group(2)
    if suffix:
        number *= dict(MONEY_UNITS)[suffix]
    return number


def _trim_decimal(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".")


def money_to_string(value: float) -> str:
    """Format with the largest unit that keeps the quotient at two decimals or fewer."""
    amount = round(value)
    if amount != value:
        return _trim_decimal(value)
    magnitude = abs(amount)
    for suffix, unit in MONEY_UNITS:
        if magnitude >= unit and magnitude % (unit // 100) == 0:
            return f"{_trim_decimal(amount / unit)}{suffix}"
    return str(amount)


def height_from_string(text: str | None) -> int:
    """``"1,91m"`` -> 191 (centimetres)."""
    if _is_placeholder(text):
        raise ParseFailure("height", text, "empty value")
    numeric = text.strip().rstrip("mM").strip().replace(",", ".")
    try:
        meters = float(numeric)
    except ValueError as e:
        raise ParseFailure("height", text) from e
    return int(round(meters * 100))


def height_to_string(height_cm: int) -> str:
    return f"{height_cm / 100:.2f}m"


def date_from_string(text: str | None) -> date | None:
    """``"Jun 26, 1999"`` -> date. Empty cells give None."""
    if _is_placeholder(text):
        return None
    try:
        return datetime.strptime(re.sub(r"\s+", " ", text.strip()), DATE_FORMAT).date()
    except ValueError as e:
        raise ParseFailure("date", text) from e


def date_to_string(value: date) -> str:
    return f"{value:%b} {value.day}, {value.year}"


__all__ = [
    "money_from_string",
    "money_to_string",
    "height_from_string",
    "height_to_string",
    "date_from_string",
    "date_to_string",
]
