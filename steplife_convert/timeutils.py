"""Time parsing and formatting utilities."""

from __future__ import annotations

import math
import time
from datetime import UTC, datetime, tzinfo

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from steplife_convert.errors import ConfigError, FormatError


def tzinfo_from_name(tz_name: str) -> tzinfo:
    """Create tzinfo from an IANA timezone name.

    Args:
        tz_name: Timezone name like "Asia/Shanghai".

    Returns:
        tzinfo instance.

    Raises:
        ConfigError: If timezone name is invalid on this system.
    """

    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"无效时区：{tz_name!r}。例如可用：Asia/Shanghai") from exc


def wallclock_to_epoch_s(text: str, tz_name: str | None = None) -> int:
    """Convert user-entered wall-clock text to Unix epoch seconds.

    Supported formats:
      - "YYYY-MM-DD HH:MM:SS"
      - "YYYY-MM-DDTHH:MM:SS"
      - with optional timezone offset, e.g. "+08:00" (the offset wins)

    A naive string is read as local time in `tz_name`; without a zone name
    the system local zone is used.

    Raises:
        ConfigError: If the text cannot be parsed.
    """

    s = text.strip().replace("T", " ")
    try:
        dt = datetime.fromisoformat(s)
    except ValueError as exc:
        raise ConfigError(f"无法解析时间：{text!r}。建议格式：2025-12-18 09:30:00") from exc

    if dt.tzinfo is None and tz_name:
        dt = dt.replace(tzinfo=tzinfo_from_name(tz_name))
    # naive datetimes are interpreted in the system local zone by timestamp()
    return math.floor(dt.timestamp())


def iso_to_epoch_s(text: str) -> int:
    """Parse an ISO-8601 timestamp (as found in GPX <time>) to epoch seconds.

    Naive values are treated as UTC, like GPX requires.

    Raises:
        FormatError: If the text is not ISO-8601.
    """

    try:
        dt = datetime.fromisoformat(text.strip())
    except ValueError as exc:
        raise FormatError(f"无法解析时间：{text!r}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return math.floor(dt.timestamp())


def dt_from_epoch_s(epoch_s: int, tz_name: str | None = None) -> datetime:
    """Convert epoch seconds to a timezone-aware datetime.

    Args:
        epoch_s: Unix epoch seconds.
        tz_name: IANA timezone name; None uses the system local zone.
    """

    if tz_name:
        return datetime.fromtimestamp(epoch_s, tz=tzinfo_from_name(tz_name))
    return datetime.fromtimestamp(epoch_s, tz=UTC).astimezone()


def now_epoch_s() -> int:
    """Current Unix time in whole seconds."""

    return math.floor(time.time())
