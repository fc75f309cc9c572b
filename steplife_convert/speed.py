"""Per-point speed estimation."""

from __future__ import annotations

from typing import Final, Sequence

from steplife_convert.geo import distance_m
from steplife_convert.models import ConversionConfig, InterpolationConfig, Point, SpeedMode


NOMINAL_PACE_MPS: Final[float] = 1.5  # assumed walking pace when timestamps are synthetic


def estimate_speed(config: ConversionConfig, points: Sequence[Point], index: int) -> float:
    """Speed for the row(s) produced from `points[index]`.

    MANUAL mode returns the configured constant. AUTO mode ignores real
    timestamps: the elapsed time is estimated as `max(1, d / 1.5)` seconds
    for the hop from the previous point, so the result is `d` for hops
    under 1.5 m and 1.5 m/s otherwise.
    """

    if config.speed_mode is SpeedMode.MANUAL:
        return config.manual_speed_mps

    if index <= 0 or index >= len(points):
        return 0.0

    d = distance_m(points[index - 1], points[index])
    elapsed = max(1.0, d / NOMINAL_PACE_MPS)
    return d / elapsed


def estimate_speed_csv(config: InterpolationConfig, points: Sequence[Point], index: int) -> float:
    """Speed for CSV re-interpolation, where the points carry real times.

    AUTO mode uses `distance / |dt|` to the previous point, falling back to
    the previous point's recorded speed when both share a timestamp. The
    first point (or an out-of-range index) reports `points[0].speed_mps`.
    """

    if config.speed_mode is SpeedMode.MANUAL:
        return config.manual_speed_mps

    if index <= 0 or index >= len(points):
        return points[0].speed_mps if points else 0.0

    prev = points[index - 1]
    curr = points[index]
    dt = abs(curr.timestamp - prev.timestamp)
    if dt == 0:
        return prev.speed_mps
    return distance_m(prev, curr) / dt
