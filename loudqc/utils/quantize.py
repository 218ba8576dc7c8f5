from __future__ import annotations
import math


def q(x: float, step: float) -> float:
    """Quantize a float to the nearest step for stable output."""
    if x is None or math.isnan(x) or math.isinf(x):
        return x
    inv = 1.0 / step
    y = x * inv
    if y >= 0:
        yq = math.floor(y + 0.5)
    else:
        yq = -math.floor(-y + 0.5)
    return yq / inv


def json_number(x: float | None, step: float = 0.01):
    """Quantize for JSON output; non-finite values become "inf", "-inf" or "nan"."""
    if x is None:
        return None
    x = float(x)
    if math.isnan(x) or math.isinf(x):
        return str(x)
    return q(x, step)
