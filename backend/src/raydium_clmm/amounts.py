"""
Exact conversion between human decimal strings and integer base units.

Fractional digits beyond the mint precision are truncated, never rounded, so a
converted amount is never larger than what the user typed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_DECIMAL_RE = re.compile(r"^([0-9]*)(?:\.([0-9]*))?$")


@dataclass(frozen=True)
class ParsedAmount:
    value: int
    valid: bool

    @property
    def is_positive(self) -> bool:
        return self.valid and self.value > 0


def parse_amount(text: str, decimals: int) -> ParsedAmount:
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    sanitized = (text or "").strip()
    if not sanitized or sanitized.startswith("-"):
        return ParsedAmount(0, False)

    match = _DECIMAL_RE.match(sanitized)
    if not match or sanitized == ".":
        return ParsedAmount(0, False)

    whole = match.group(1) or "0"
    fraction = (match.group(2) or "")[:decimals].ljust(decimals, "0")
    combined = f"{whole}{fraction}".lstrip("0") or "0"
    return ParsedAmount(int(combined), True)


def to_base_units(text: str, decimals: int) -> int:
    """Decimal string -> integer base units. Invalid input yields 0."""
    return parse_amount(text, decimals).value


def to_decimal_string(amount: int, decimals: int) -> str:
    """Integer base units -> shortest decimal string (no trailing zeros)."""
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")
    if decimals == 0:
        return str(amount)

    raw = str(amount).rjust(decimals + 1, "0")
    whole = raw[:-decimals] or "0"
    fraction = raw[-decimals:].rstrip("0")
    return f"{whole}.{fraction}" if fraction else whole
