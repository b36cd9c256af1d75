from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal
from typing import Sequence, Union

from src.schemas.metrics import Change

Number = Union[int, float, Decimal]

TREND_UP = "up"
TREND_DOWN = "down"
TREND_NEUTRAL = "neutral"


def _round_half_ceiling(value: float) -> int:
    # Halves round toward positive infinity: 12.5 -> 13, -12.5 -> -12.
    return int((Decimal(str(value)) + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def percent_change(current: Number, previous: Number) -> Change:
    """Change from ``previous`` to ``current``.

    ``percentage`` is always the absolute rounded value; the direction lives in ``trend``.
    A zero baseline reports 100% up for any positive current value and neutral otherwise.
    """
    current_value = float(current or 0)
    previous_value = float(previous or 0)
    if previous_value == 0:
        if current_value > 0:
            return Change(value=current_value, percentage=100, trend=TREND_UP)
        return Change(value=current_value, percentage=0, trend=TREND_NEUTRAL)

    percentage = _round_half_ceiling((current_value - previous_value) / previous_value * 100)
    if percentage > 0:
        trend = TREND_UP
    elif percentage < 0:
        trend = TREND_DOWN
    else:
        trend = TREND_NEUTRAL
    return Change(value=current_value, percentage=abs(percentage), trend=trend)


def series_trend(values: Sequence[Number]) -> Change:
    """Change between the first and last point of a series."""
    if len(values) < 2:
        last = float(values[-1] or 0) if values else 0.0
        return Change(value=last, percentage=0, trend=TREND_NEUTRAL)
    return percent_change(values[-1], values[0])
