"""Data models for track points, output rows and conversion settings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from steplife_convert.errors import ConfigError
from steplife_convert.timeutils import tzinfo_from_name


CSV_HEADER: Final[tuple[str, ...]] = (
    "dataTime",
    "locType",
    "longitude",
    "latitude",
    "heading",
    "accuracy",
    "speed",
    "distance",
    "isBackForeground",
    "stepType",
    "altitude",
)

DEFAULT_INSERT_DISTANCE_M: Final[float] = 100.0
DEFAULT_MANUAL_SPEED_MPS: Final[float] = 1.5


class SpeedMode(str, Enum):
    """How per-row speed is derived."""

    AUTO = "auto"
    MANUAL = "manual"


@dataclass(frozen=True, slots=True)
class Point:
    """A single track sample as decoded from an input file.

    Attributes:
        timestamp: Unix epoch seconds. 0 when the source format has no time.
        latitude: Latitude in decimal degrees.
        longitude: Longitude in decimal degrees.
        altitude_m: Altitude in meters (0.0 when unknown).
        speed_mps: Speed in meters/second (0.0 when unknown).
    """

    timestamp: int
    latitude: float
    longitude: float
    altitude_m: float = 0.0
    speed_mps: float = 0.0


@dataclass(frozen=True, slots=True)
class Row:
    """One record of the StepLife CSV (fixed 11-column schema).

    Only time, position, speed and altitude carry data; the remaining
    columns are emitted as 0 by every converter.
    """

    data_time: int
    longitude: float
    latitude: float
    speed_mps: float = 0.0
    altitude_m: float = 0.0
    loc_type: int = 0
    heading: float = 0
    accuracy: float = 0
    distance: float = 0
    is_back_foreground: int = 0
    step_type: int = 0

    def to_point(self) -> Point:
        """Convert back to a Point for re-processing."""

        return Point(
            timestamp=int(self.data_time),
            latitude=self.latitude,
            longitude=self.longitude,
            altitude_m=self.altitude_m,
            speed_mps=self.speed_mps,
        )


@dataclass(frozen=True, slots=True)
class ConversionConfig:
    """Settings for turning a track into StepLife rows.

    Attributes:
        insertion_enabled: Densify long segments with synthetic points.
        insertion_distance_m: Target spacing between inserted points.
        start_time: Wall-clock text "YYYY-MM-DD HH:MM:SS"; empty means "now".
        end_time: Wall-clock text; empty means unset.
        fixed_interval_s: Seconds between rows when no end time is set.
            0 means unset. Negative values are used as-is.
        default_altitude_m: Altitude written to every row; 0 keeps the
            source altitude.
        speed_mode: AUTO (distance heuristic) or MANUAL (constant).
        manual_speed_mps: Constant speed for MANUAL mode.
        timezone: IANA zone the wall-clock times are given in. None uses
            the system local zone.
    """

    insertion_enabled: bool = False
    insertion_distance_m: float = DEFAULT_INSERT_DISTANCE_M
    start_time: str = ""
    end_time: str = ""
    fixed_interval_s: int = 0
    default_altitude_m: float = 0.0
    speed_mode: SpeedMode = SpeedMode.AUTO
    manual_speed_mps: float = DEFAULT_MANUAL_SPEED_MPS
    timezone: str | None = None

    def validate(self) -> None:
        """Raise ConfigError if the settings cannot be used."""

        if self.insertion_enabled and not self.insertion_distance_m > 0:
            raise ConfigError(f"插值间距必须大于0：{self.insertion_distance_m!r}")
        if self.timezone:
            tzinfo_from_name(self.timezone)


@dataclass(frozen=True, slots=True)
class InterpolationConfig:
    """Settings for densifying an existing StepLife CSV.

    Original timestamps are kept. Only points between the first
    `filter_start_percent` and the last `filter_end_percent` of the track
    are densified; the filtered head and tail pass through unchanged.
    """

    insertion_distance_m: float = DEFAULT_INSERT_DISTANCE_M
    default_altitude_m: float = 0.0
    speed_mode: SpeedMode = SpeedMode.AUTO
    manual_speed_mps: float = DEFAULT_MANUAL_SPEED_MPS
    filter_start_percent: float = 0.0
    filter_end_percent: float = 0.0

    def validate(self) -> None:
        """Raise ConfigError if the settings cannot be used."""

        if not self.insertion_distance_m > 0:
            raise ConfigError(f"插值间距必须大于0：{self.insertion_distance_m!r}")
        for name, value in (
            ("filter_start_percent", self.filter_start_percent),
            ("filter_end_percent", self.filter_end_percent),
        ):
            if not 0 <= value <= 100:
                raise ConfigError(f"{name} 必须在 0-100 之间：{value!r}")
        if self.filter_start_percent + self.filter_end_percent > 100:
            raise ConfigError("前部与后部过滤比例之和不能超过100%")
