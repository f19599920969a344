"""Kubernetes resource quantity parsing and formatting.

Quantities are converted to one canonical unit per resource: fractional
cores for CPU, bytes for memory.  Parsing is permissive: a string with no
leading number yields ``nan`` instead of raising, so callers never need to
guard against malformed API data.

The decimal suffixes k, M, G and T are scaled as Kubernetes scales them,
rather than parsed as the bare leading number.
"""

from __future__ import annotations

import math
import re

_LEADING_NUMBER_RE = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

# (suffix, multiplier, divisor), checked in order against the end of the
# string.  Case-sensitive: "m" is milli, "M" is mega.  Sub-unit suffixes
# divide so that "100m" parses to exactly 0.1.
_SUFFIXES: tuple[tuple[str, int, int], ...] = (
    ("m", 1, 1_000),
    ("n", 1, 1_000_000_000),
    ("Ki", 1024, 1),
    ("Mi", 1024**2, 1),
    ("Gi", 1024**3, 1),
    ("Ti", 1024**4, 1),
    ("k", 1_000, 1),
    ("M", 1_000_000, 1),
    ("G", 1_000_000_000, 1),
    ("T", 1_000_000_000_000, 1),
)

_KI = 1024
_MI = 1024**2
_GI = 1024**3
_TI = 1024**4


def _leading_number(text: str) -> float:
    match = _LEADING_NUMBER_RE.match(text)
    if match is None:
        return math.nan
    return float(match.group(0))


def parse_quantity(quantity: str) -> float:
    """Parse a quantity string such as ``"100m"``, ``"1Gi"`` or ``"500000000n"``.

    Returns cores for CPU quantities and bytes for memory quantities.
    """
    for suffix, multiplier, divisor in _SUFFIXES:
        if quantity.endswith(suffix):
            return _leading_number(quantity[: -len(suffix)]) * multiplier / divisor
    return _leading_number(quantity)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_cpu(cores: float) -> str:
    """Format cores as integer millicores below one core, else a bare core count."""
    if cores < 1:
        return f"{_round_half_up(cores * 1000)}m"
    return f"{cores:.3f}".rstrip("0").rstrip(".")


def format_memory(num_bytes: float) -> str:
    """Format bytes in the largest binary unit that keeps the integer part >= 1."""
    for unit, size in (("Ti", _TI), ("Gi", _GI), ("Mi", _MI), ("Ki", _KI)):
        if num_bytes >= size:
            return f"{_round_half_up(num_bytes / size)}{unit}"
    return str(_round_half_up(num_bytes))
