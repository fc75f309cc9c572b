"""Track to StepLife row conversion.

Two entry points:

- `convert_track`: raw GPX/KML/OVJSN points get synthetic timestamps
  (start/end/interval), optional densification and speed estimates.
- `interpolate_csv_points`: an existing StepLife CSV is densified in
  place, keeping the original timestamps.

Both build a segment plan first (which raw point yields which output
points), so the row count used to size the time interval is exactly the
number of rows emitted.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from steplife_convert.interpolate import interpolate_between
from steplife_convert.models import ConversionConfig, InterpolationConfig, Point, Row, SpeedMode
from steplife_convert.speed import estimate_speed, estimate_speed_csv
from steplife_convert.timing import allocate_timestamps, resolve_time_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SegmentPlan:
    """Output points produced for one source point.

    Attributes:
        source_index: Index of the source point in the processed track.
        points: Points to emit, in order. Length 1 for edge points; for
            densified segments the synthetic points followed by the source.
    """

    source_index: int
    points: tuple[Point, ...]


@dataclass(frozen=True, slots=True)
class ConversionResult:
    """Rows produced for one track plus the counts shown to the user."""

    rows: tuple[Row, ...]
    original_points: int

    @property
    def final_points(self) -> int:
        return len(self.rows)

    @property
    def inserted_points(self) -> int:
        return self.final_points - self.original_points


def is_edge_index(index: int, count: int) -> bool:
    """Edge points are never densified: the first two and the last.

    This keeps the first (A-B) and last (E-F) segments of A-B-C-D-E-F
    straight; only B-C, C-D and D-E receive synthetic points.
    """

    return index <= 1 or index == count - 1


def plan_segments(points: Sequence[Point], config: ConversionConfig) -> list[SegmentPlan]:
    """Classify every point as edge or interior and expand interior ones."""

    plans: list[SegmentPlan] = []
    count = len(points)
    for i, point in enumerate(points):
        if not config.insertion_enabled or is_edge_index(i, count):
            plans.append(SegmentPlan(i, (point,)))
        else:
            expanded = interpolate_between(points[i - 1], point, config.insertion_distance_m)
            plans.append(SegmentPlan(i, tuple(expanded)))
    return plans


def _altitude(default_altitude_m: float, point: Point) -> float:
    return default_altitude_m if default_altitude_m != 0 else point.altitude_m


def convert_track(points: Sequence[Point], config: ConversionConfig, now: int | None = None) -> ConversionResult:
    """Convert decoded track points to StepLife rows.

    Args:
        points: Points in path order, as returned by a parser.
        config: Conversion settings.
        now: Epoch seconds used when no start time is configured. Defaults
            to the current time.

    Returns:
        ConversionResult. An empty track yields no rows.

    Raises:
        ConfigError: If the settings are invalid.
    """

    config.validate()
    if not points:
        return ConversionResult(rows=(), original_points=0)

    window = resolve_time_window(config, now=now)
    processed = list(reversed(points)) if window.reverse_points else list(points)

    plans = plan_segments(processed, config)
    total_rows = sum(len(plan.points) for plan in plans)
    stamps = allocate_timestamps(window, total_rows, config.fixed_interval_s)

    rows: list[Row] = []
    for plan in plans:
        speed = estimate_speed(config, processed, plan.source_index)
        for point in plan.points:
            rows.append(
                Row(
                    data_time=stamps[len(rows)],
                    longitude=point.longitude,
                    latitude=point.latitude,
                    speed_mps=speed,
                    altitude_m=_altitude(config.default_altitude_m, point),
                )
            )

    logger.debug(
        "converted %s points -> %s rows (start=%s, end=%s, reversed=%s)",
        len(points),
        len(rows),
        window.start,
        window.end,
        window.reverse_points,
    )
    return ConversionResult(rows=tuple(rows), original_points=len(points))


def filter_bounds(count: int, config: InterpolationConfig) -> tuple[int, int]:
    """Inclusive [start, end] index range eligible for densification."""

    start = math.floor(count * (config.filter_start_percent / 100))
    end = count - math.floor(count * (config.filter_end_percent / 100)) - 1
    return start, end


def interpolate_csv_points(points: Sequence[Point], config: InterpolationConfig) -> ConversionResult:
    """Densify a StepLife track while keeping its recorded timestamps.

    Points before the start filter and after the end filter are copied
    unchanged; inside the range each segment is densified with the same
    interpolator as `convert_track`.

    Raises:
        ConfigError: If the settings are invalid.
    """

    config.validate()
    if not points:
        return ConversionResult(rows=(), original_points=0)

    def passthrough_speed(point: Point) -> float:
        return config.manual_speed_mps if config.speed_mode is SpeedMode.MANUAL else point.speed_mps

    def make_row(point: Point, speed: float) -> Row:
        return Row(
            data_time=point.timestamp,
            longitude=point.longitude,
            latitude=point.latitude,
            speed_mps=speed,
            altitude_m=_altitude(config.default_altitude_m, point),
        )

    start, end = filter_bounds(len(points), config)
    if len(points) == 1 or start >= end:
        passthrough = tuple(make_row(p, passthrough_speed(p)) for p in points)
        return ConversionResult(rows=passthrough, original_points=len(points))

    rows: list[Row] = []
    for i in range(0, start + 1):
        rows.append(make_row(points[i], estimate_speed_csv(config, points, i)))
    for i in range(start + 1, end + 1):
        speed = estimate_speed_csv(config, points, i)
        for point in interpolate_between(points[i - 1], points[i], config.insertion_distance_m):
            rows.append(make_row(point, speed))
    for i in range(end + 1, len(points)):
        rows.append(make_row(points[i], estimate_speed_csv(config, points, i)))

    logger.debug("interpolated %s points -> %s rows (range %s..%s)", len(points), len(rows), start, end)
    return ConversionResult(rows=tuple(rows), original_points=len(points))
