"""Inspect StepLife row sets (time range, bounds, duplicate timestamps)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from steplife_convert.models import Row


@dataclass(frozen=True, slots=True)
class RowSetStats:
    """High-level statistics of one row set."""

    row_count: int
    min_time: int | None
    max_time: int | None
    min_lat: float | None
    max_lat: float | None
    min_lon: float | None
    max_lon: float | None
    duplicate_times: int

    @property
    def duration_seconds(self) -> int:
        if self.min_time is None or self.max_time is None:
            return 0
        return self.max_time - self.min_time


def inspect_rows(rows: Sequence[Row]) -> RowSetStats:
    """Inspect already-loaded rows."""

    if not rows:
        return RowSetStats(
            row_count=0,
            min_time=None,
            max_time=None,
            min_lat=None,
            max_lat=None,
            min_lon=None,
            max_lon=None,
            duplicate_times=0,
        )

    times = sorted(r.data_time for r in rows)
    dupe = 0
    for i in range(1, len(times)):
        if times[i] == times[i - 1]:
            dupe += 1

    lats = [r.latitude for r in rows]
    lons = [r.longitude for r in rows]
    return RowSetStats(
        row_count=len(rows),
        min_time=times[0],
        max_time=times[-1],
        min_lat=min(lats),
        max_lat=max(lats),
        min_lon=min(lons),
        max_lon=max(lons),
        duplicate_times=dupe,
    )
