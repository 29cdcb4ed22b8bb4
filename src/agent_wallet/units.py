"""Conversion between raw integer amounts and human-readable decimal strings.

Everything here is integer arithmetic on ``int`` and ``str``; amounts never
pass through ``float``.
"""

from __future__ import annotations

import re

_AMOUNT_RE = re.compile(r"(\d*)(?:\.(\d*))?")


def format_units(value: int, decimals: int) -> str:
    """Render *value* (smallest units) as a decimal string.

    ``format_units(1500000, 6)`` → ``"1.5"``, ``format_units(0, 18)`` → ``"0"``.
    Trailing zeros in the fractional part are dropped.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)
    text = str(whole)
    if decimals:
        frac_text = str(frac).rjust(decimals, "0").rstrip("0")
        if frac_text:
            text = f"{text}.{frac_text}"
    return sign + text


def parse_units(amount: str, decimals: int) -> int:
    """Parse a decimal string like ``"10.5"`` into smallest units.

    Raises
    ------
    ValueError
        If *amount* is not a non-negative decimal number, or has more
        significant fractional digits than *decimals* allows.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    text = amount.strip()
    match = _AMOUNT_RE.fullmatch(text)
    if match is None or not any(ch.isdigit() for ch in text):
        raise ValueError(f"Invalid amount: '{amount}'")

    whole, frac = match.group(1) or "0", match.group(2) or ""
    if len(frac) > decimals:
        if frac[decimals:].strip("0"):
            raise ValueError(
                f"Amount '{amount}' has more than {decimals} decimal places"
            )
        frac = frac[:decimals]

    return int(whole) * 10**decimals + int(frac.ljust(decimals, "0") or "0")
