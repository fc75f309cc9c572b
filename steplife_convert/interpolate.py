"""Linear densification of track segments."""

from __future__ import annotations

import math

from steplife_convert.geo import distance_m
from steplife_convert.models import Point


def _lerp(a: float, b: float, alpha: float) -> float:
    return a + alpha * (b - a)


def interpolate_between(prev: Point, curr: Point, spacing_m: float) -> list[Point]:
    """Insert evenly spaced points between two samples.

    `n = floor(distance / spacing)` synthetic points are placed at ratios
    `i / (n + 1)`; latitude, longitude, altitude and speed are blended
    linearly. Timestamps advance proportionally when `curr` is later than
    `prev`, otherwise every synthetic point gets `prev.timestamp + 1`.

    Args:
        prev: Segment start (not included in the result).
        curr: Segment end (always the last element, unmodified).
        spacing_m: Target spacing in meters, must be > 0.

    Returns:
        The synthetic points followed by `curr`; just `[curr]` when the
        segment is shorter than the spacing.
    """

    n = math.floor(distance_m(prev, curr) / spacing_m)
    if n <= 0:
        return [curr]

    dt = curr.timestamp - prev.timestamp
    out: list[Point] = []
    for i in range(1, n + 1):
        alpha = i / (n + 1)
        if dt > 0:
            ts = prev.timestamp + math.floor(alpha * dt)
        else:
            ts = prev.timestamp + 1
        out.append(
            Point(
                timestamp=ts,
                latitude=_lerp(prev.latitude, curr.latitude, alpha),
                longitude=_lerp(prev.longitude, curr.longitude, alpha),
                altitude_m=_lerp(prev.altitude_m, curr.altitude_m, alpha),
                speed_mps=_lerp(prev.speed_mps, curr.speed_mps, alpha),
            )
        )
    out.append(curr)
    return out
