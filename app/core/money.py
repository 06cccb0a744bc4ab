"""Amount parsing: fractional currency units in, integer minor units out."""

import math
import re
from typing import Any, Callable

# Longest leading numeric prefix, the way browsers parse "12.50 USD".
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")
# Whole string must be numeric, surrounding whitespace allowed.
_FLOAT_EXACT = re.compile(r"^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))\s*$")


def _from_number(value: int | float) -> float:
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def _from_token(token: str) -> float:
    if token.lstrip("+-") == "Infinity":
        return -math.inf if token.startswith("-") else math.inf
    return float(token)


def parse_float(value: Any) -> float:
    """Leniently parse value as a float; NaN when there is nothing numeric to read."""
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return _from_number(value)
    if not isinstance(value, str):
        return math.nan
    match = _FLOAT_PREFIX.match(value)
    if not match:
        return math.nan
    return _from_token(match.group(1))


def coerce_float(value: Any) -> float:
    """
    Strict numeric coercion: the whole string must be a number.
    None and blank strings are 0; trailing garbage ("12.5abc") is NaN.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return _from_number(value)
    if not isinstance(value, str):
        return math.nan
    if not value.strip():
        return 0.0
    match = _FLOAT_EXACT.match(value)
    if not match:
        return math.nan
    return _from_token(match.group(1))


def to_minor_units(value: Any, parse: Callable[[Any], float] = parse_float) -> int | None:
    """floor(amount * 100), or None when the amount is NaN or infinite."""
    scaled = parse(value) * 100
    if not math.isfinite(scaled):
        return None
    return math.floor(scaled)


def is_valid_amount(minor_units: int | None) -> bool:
    return minor_units is not None and minor_units > 0
