"""Timestamp allocation across the emitted row sequence."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from steplife_convert.models import ConversionConfig
from steplife_convert.timeutils import now_epoch_s, wallclock_to_epoch_s

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Resolved start/end of a conversion, in epoch seconds.

    Attributes:
        start: First row timestamp.
        end: Last row timestamp, 0 when no end time was given.
        reverse_points: True when the configured start was later than the
            end; the track must then be walked backwards.
    """

    start: int
    end: int
    reverse_points: bool = False

    @property
    def has_end(self) -> bool:
        return self.end > 0


def resolve_time_window(config: ConversionConfig, now: int | None = None) -> TimeWindow:
    """Turn the configured wall-clock strings into a TimeWindow.

    An empty start time means "now". When both times are set and start is
    after end, the two are swapped and `reverse_points` is raised.
    """

    tz = config.timezone or None
    if config.start_time.strip():
        start = wallclock_to_epoch_s(config.start_time, tz)
    else:
        start = now if now is not None else now_epoch_s()
    end = wallclock_to_epoch_s(config.end_time, tz) if config.end_time.strip() else 0

    if end > 0 and start > end:
        logger.info("开始时间晚于结束时间，交换时间并反转轨迹方向")
        return TimeWindow(start=end, end=start, reverse_points=True)
    return TimeWindow(start=start, end=end)


def row_interval(window: TimeWindow, total_rows: int, fixed_interval_s: int = 0) -> int:
    """Seconds between consecutive rows; 0 means every row shares `start`.

    With an end time the span is divided evenly (at least 1 s per row);
    otherwise a nonzero fixed interval is used as-is, sign included.
    """

    if total_rows <= 1 or window.start <= 0:
        return 0
    if window.has_end:
        return max(1, (window.end - window.start) // (total_rows - 1))
    return int(fixed_interval_s)


def allocate_timestamps(window: TimeWindow, total_rows: int, fixed_interval_s: int = 0) -> list[int]:
    """Timestamps for `total_rows` rows, in emission order.

    When an end time is in effect the last timestamp is forced to exactly
    `window.end`, absorbing the remainder of the integer division.
    """

    if total_rows <= 0:
        return []
    interval = row_interval(window, total_rows, fixed_interval_s)
    stamps = [window.start + k * interval for k in range(total_rows)]
    if window.has_end and total_rows > 1 and window.start > 0:
        stamps[-1] = window.end
    return stamps
