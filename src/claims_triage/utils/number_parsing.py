"""Lenient number parsing for spreadsheet cells.

Claims extracts carry amounts and ages as whatever the payer's report tool
emitted: native numbers, "1,250.00", "$ 300", "12 days". Parsing takes the
leading numeric prefix and never raises; unparseable or out-of-range input
returns None so callers can apply their own default.
"""

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

# Optional sign, digits with optional decimals, or a bare decimal fraction.
# No exponent notation: "1e5" reads as 1.
_NUMERIC_PREFIX = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)")

# Values of 10**15 and above are not real amounts or ages
_MAX_ADJUSTED_EXPONENT = 14

_CURRENCY_PREFIXES = ("USD", "US$", "$")


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse a cell value into a Decimal.

    Handles:
    - Native ints/floats/Decimals (NaN and infinities are rejected)
    - Thousand separators: "1,250.50" -> 1250.50
    - Currency prefixes: "$ 300", "USD 42"
    - Trailing text after the number: "12 days" -> 12, "1e5" -> 1
    - Magnitudes of 10**15 and above are rejected

    Args:
        value: Raw cell value (string, number, None, ...)

    Returns:
        Parsed Decimal, or None when no numeric prefix is present or the
        value is out of range.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        return _bounded(value)

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        if isinstance(value, int) and abs(value) >= 10 ** (_MAX_ADJUSTED_EXPONENT + 1):
            return None
        return _bounded(Decimal(str(value)))

    text = str(value).strip()
    if not text:
        return None

    upper = text.upper()
    for prefix in _CURRENCY_PREFIXES:
        if upper.startswith(prefix):
            text = text[len(prefix):].strip()
            break

    text = text.replace(",", "")
    match = _NUMERIC_PREFIX.match(text)
    if not match:
        return None

    try:
        return _bounded(Decimal(match.group(0)))
    except InvalidOperation:
        return None


def _bounded(value: Decimal) -> Optional[Decimal]:
    if not value.is_finite() or value.adjusted() > _MAX_ADJUSTED_EXPONENT:
        return None
    return value


def parse_int(value: Any) -> Optional[int]:
    """Parse a cell value into an int, truncating any fractional part."""
    parsed = parse_decimal(value)
    if parsed is None:
        return None
    return int(parsed)
