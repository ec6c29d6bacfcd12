"""Duration formatting helpers for clip metadata."""

from __future__ import annotations

import math


def format_duration_s(seconds: float | None) -> str:
    """Format clip length as seconds with one decimal, e.g. ``12.3s``.

    Whole values drop the decimal (``12s``). Missing or non-finite values
    render as ``0s``.
    """
    value = _coerce_seconds(seconds)
    rounded = round(value * 10) / 10
    if rounded == int(rounded):
        return f"{int(rounded)}s"
    return f"{rounded}s"


def _coerce_seconds(value: float | None) -> float:
    try:
        numeric = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(numeric):
        return 0.0
    return max(0.0, numeric)
