"""
Numeric Helpers - Pure Function Utility
=======================================
Clamping, blank-as-zero coercion and display formatting shared by every
calculator. Non-finite values render as an em dash placeholder.
"""

import math
from typing import Any, Optional, Union

Number = Union[int, float]

PLACEHOLDER = "—"


def clamp(n: Number, lo: Number, hi: Number) -> Number:
    """Clamp ``n`` into ``[lo, hi]``."""
    return min(hi, max(lo, n))


def is_finite(x: Any) -> bool:
    """True for real, finite numbers (bools excluded)."""
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        return False
    return math.isfinite(x)


def num0(v: Optional[Union[Number, str]]) -> float:
    """
    Treat blank inputs as zero.

    Form fields may be cleared by the user; a cleared field behaves like 0
    in the math instead of poisoning the result with NaN.

    Example:
        >>> num0("")
        0.0
        >>> num0("12.5")
        12.5
    """
    if v is None or v == "":
        return 0.0
    try:
        n = float(v)
    except (TypeError, ValueError):
        return 0.0
    return n if math.isfinite(n) else 0.0


def fmt(n: Optional[Number], digits: int = 1) -> str:
    """
    Format a number for display.

    Example:
        >>> fmt(3.14159, 2)
        '3.14'
        >>> fmt(float('nan'))
        '—'
    """
    if n is None or not is_finite(n):
        return PLACEHOLDER
    return f"{n:.{digits}f}"


def fmt_pct(x: Optional[Number]) -> str:
    """Format a 0..1 fraction as a rounded percentage."""
    if x is None or not is_finite(x):
        return PLACEHOLDER
    return f"{round(x * 100)}%"


def finite_or_none(x: Optional[Number]) -> Optional[float]:
    """JSON cannot carry NaN/inf; map them to None at the response boundary."""
    if x is None or not is_finite(x):
        return None
    return float(x)
