"""Decoders for the supported track formats (GPX, KML, OVJSN, StepLife CSV).

Every parser maps the full file text to a list of Points in path order.
Parsing is all-or-nothing: the first structural or numeric problem raises
FormatError and no points are returned.
"""

from __future__ import annotations

import json
import logging
import math
import xml.etree.ElementTree as ET
from enum import Enum
from pathlib import PurePath
from typing import Any, Callable, Iterator

from steplife_convert.csv_io import parse_csv_rows
from steplife_convert.errors import EmptyInputError, FormatError, UnsupportedExtensionError
from steplife_convert.models import Point
from steplife_convert.timeutils import iso_to_epoch_s

logger = logging.getLogger(__name__)


class TrackFormat(str, Enum):
    """Supported input formats, keyed by canonical extension."""

    GPX = "gpx"
    KML = "kml"
    OVJSN = "ovjsn"
    CSV = "csv"

    @classmethod
    def from_filename(cls, filename: str) -> TrackFormat:
        """Pick the format from a file name (".json" is read as OVJSN).

        Raises:
            UnsupportedExtensionError: For any other extension.
        """

        ext = PurePath(filename).suffix.lower().lstrip(".")
        if ext == "json":
            return cls.OVJSN
        try:
            return cls(ext)
        except ValueError as exc:
            raise UnsupportedExtensionError(f"不支持的文件格式: {ext or filename}") from exc


def local_name(tag: str) -> str:
    """Element tag without its "{namespace}" prefix ("" for comments/PIs)."""

    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def descendants(elem: ET.Element, name: str) -> Iterator[ET.Element]:
    """All descendants of `elem` whose local tag name is `name`, in document order."""

    for child in elem.iter():
        if child is not elem and local_name(child.tag) == name:
            yield child


def parse_xml(content: str, kind: str) -> ET.Element:
    """Parse XML text, mapping parser errors to FormatError."""

    try:
        return ET.fromstring(content.lstrip("\ufeff"))
    except ET.ParseError as exc:
        raise FormatError(f"{kind} 文件格式错误，无法解析：{exc}") from exc


def _number(text: str | None, what: str) -> float:
    if text is None or not text.strip():
        return 0.0
    try:
        number = float(text.strip())
    except ValueError as exc:
        raise FormatError(f"{what} 不是有效数字：{text!r}") from exc
    if not math.isfinite(number):
        raise FormatError(f"{what} 不是有效数字：{text!r}")
    return number


def _first_text(elem: ET.Element, name: str) -> str | None:
    for child in descendants(elem, name):
        return child.text or ""
    return None


def parse_gpx(content: str) -> list[Point]:
    """Decode `trk/trkseg/trkpt` elements.

    Reads the `lat`/`lon` attributes and the optional `ele`, `time` and
    `speed` children (in any namespace); missing numbers default to 0.
    """

    root = parse_xml(content, "GPX")
    points: list[Point] = []
    for trk in descendants(root, "trk"):
        for seg in descendants(trk, "trkseg"):
            for pt in descendants(seg, "trkpt"):
                time_text = _first_text(pt, "time")
                points.append(
                    Point(
                        timestamp=iso_to_epoch_s(time_text) if time_text and time_text.strip() else 0,
                        latitude=_number(pt.get("lat"), "lat"),
                        longitude=_number(pt.get("lon"), "lon"),
                        altitude_m=_number(_first_text(pt, "ele"), "ele"),
                        speed_mps=_number(_first_text(pt, "speed"), "speed"),
                    )
                )
    logger.debug("GPX: %s points", len(points))
    return points


def _kml_token(token: str) -> Point | None:
    parts = token.split(",")
    if len(parts) < 2:
        return None
    try:
        lon = float(parts[0])
        lat = float(parts[1])
        alt = float(parts[2]) if len(parts) >= 3 and parts[2] else 0.0
    except ValueError:
        return None
    if not all(math.isfinite(v) for v in (lon, lat, alt)):
        return None
    return Point(timestamp=0, latitude=lat, longitude=lon, altitude_m=alt)


def parse_kml(content: str) -> list[Point]:
    """Decode every `<coordinates>` block ("lon,lat[,alt]" tuples).

    KML carries no time or speed. Tuples that do not parse as at least two finite
    numbers are skipped.
    """

    root = parse_xml(content, "KML")
    points: list[Point] = []
    for elem in descendants(root, "coordinates"):
        for token in (elem.text or "").split():
            point = _kml_token(token)
            if point is not None:
                points.append(point)
    logger.debug("KML: %s points", len(points))
    return points


def load_ovjsn(content: str) -> dict[str, Any]:
    """Decode OVJSN text (UTF-8 BOM tolerated) into its top-level object."""

    try:
        data = json.loads(content.lstrip("\ufeff"))
    except json.JSONDecodeError as exc:
        raise FormatError(f"OVJSN 文件格式错误：{exc}") from exc
    if not isinstance(data, dict):
        raise FormatError("无效的 OVJSN 文件格式")
    return data


def latlng_values(detail: dict[str, Any]) -> list[Any] | None:
    """The flat [lat0, lon0, lat1, lon1, ...] list of a leaf, if it has one.

    `Latlng` may be a JSON array or a string holding one. An undecodable
    string is logged and treated as missing.
    """

    raw = detail.get("Latlng")
    if not raw:
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("无法解析 Latlng 字符串，已跳过：%s", exc)
            return None
    return raw if isinstance(raw, list) else None


def object_detail(item: Any) -> dict[str, Any] | None:
    if not isinstance(item, dict):
        return None
    obj = item.get("Object")
    if not isinstance(obj, dict):
        return None
    detail = obj.get("ObjectDetail")
    return detail if isinstance(detail, dict) else None


def _ovjsn_points(item: Any, out: list[Point]) -> None:
    detail = object_detail(item)
    if detail is None:
        return
    children = detail.get("ObjChildren")
    if isinstance(children, list):
        for child in children:
            _ovjsn_points(child, out)
        return

    values = latlng_values(detail)
    if values is None:
        return
    # a trailing unpaired value is dropped
    for i in range(0, len(values) - 1, 2):
        out.append(
            Point(
                timestamp=0,
                latitude=_number(str(values[i]), "Latlng"),
                longitude=_number(str(values[i + 1]), "Latlng"),
            )
        )


def parse_ovjsn(content: str) -> list[Point]:
    """Decode the OVJSN object tree (`ObjItems[].Object.ObjectDetail`)."""

    data = load_ovjsn(content)
    points: list[Point] = []
    items = data.get("ObjItems")
    if isinstance(items, list):
        for item in items:
            _ovjsn_points(item, points)
    logger.debug("OVJSN: %s points", len(points))
    return points


def parse_csv_points(content: str) -> list[Point]:
    """Decode a StepLife CSV back into Points for re-processing.

    Raises:
        FormatError: If the CSV fails validation.
        EmptyInputError: If it holds no data rows.
    """

    rows = parse_csv_rows(content)
    if not rows:
        raise EmptyInputError("CSV文件不包含任何轨迹点数据")
    return [row.to_point() for row in rows]


PARSERS: dict[TrackFormat, Callable[[str], list[Point]]] = {
    TrackFormat.GPX: parse_gpx,
    TrackFormat.KML: parse_kml,
    TrackFormat.OVJSN: parse_ovjsn,
    TrackFormat.CSV: parse_csv_points,
}


def parse_track(content: str, filename: str) -> list[Point]:
    """Decode a track file, choosing the parser by extension.

    Raises:
        UnsupportedExtensionError: For unknown extensions.
        FormatError: If the content is malformed.
    """

    return PARSERS[TrackFormat.from_filename(filename)](content)
