"""
Amount codec - numeric amount <-> display string ("12 500 ₸").

Only integral amounts survive a round trip; callers round fractional
currency before formatting.
"""

import re
from decimal import ROUND_DOWN, Decimal, InvalidOperation

from .exceptions import FormatError

DEFAULT_SUFFIX = "₸"

_NON_NUMERIC = re.compile(r"[^\d.\-]")


def parse_amount(display: str) -> Decimal:
    """Parse a display string back into an amount."""
    cleaned = _NON_NUMERIC.sub("", display or "")
    if not any(ch.isdigit() for ch in cleaned):
        raise FormatError(display)
    try:
        return Decimal(cleaned)
    except InvalidOperation as exc:
        raise FormatError(display) from exc


def format_amount(amount: Decimal | int, suffix: str = DEFAULT_SUFFIX) -> str:
    """Render the magnitude of ``amount`` with space-grouped thousands."""
    whole = abs(Decimal(amount)).quantize(Decimal("1"), rounding=ROUND_DOWN)
    return f"{int(whole):,} {suffix}".replace(",", " ")


def format_signed_amount(amount: Decimal | int, suffix: str = DEFAULT_SUFFIX) -> str:
    """Like format_amount, but keeps a leading minus for negative balances."""
    text = format_amount(amount, suffix)
    return f"-{text}" if Decimal(amount) < 0 and text[0] != "0" else text
