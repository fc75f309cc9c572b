"""Format-preserving reversal of track direction (KML, GPX, OVJSN).

Only the order of coordinates changes; everything else in the document
is written back as it was read (comments and namespace prefixes included).
Each reverser returns None when the input is malformed or carries no
coordinate data.
"""

from __future__ import annotations

import io
import json
import logging
import xml.etree.ElementTree as ET
from pathlib import PurePath
from typing import Any, Callable

from steplife_convert.errors import FormatError, UnsupportedExtensionError
from steplife_convert.formats import (
    TrackFormat,
    descendants,
    latlng_values,
    load_ovjsn,
    local_name,
    object_detail,
)

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'
KML_COORD_INDENT = "\n          "
KML_COORD_CLOSE = "\n        "


def _register_namespaces(content: str) -> None:
    # keep the document's own prefixes when serializing
    for _, (prefix, uri) in ET.iterparse(io.StringIO(content), events=("start-ns",)):
        try:
            ET.register_namespace(prefix, uri)
        except ValueError:
            logger.debug("namespace prefix %r cannot be registered", prefix)


def _load_xml(content: str, kind: str) -> ET.Element:
    text = content.lstrip("\ufeff")
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
    try:
        _register_namespaces(text)
        return ET.fromstring(text, parser=parser)
    except ET.ParseError as exc:
        raise FormatError(f"{kind} 文件格式错误，无法解析：{exc}") from exc


def _dump_xml(root: ET.Element, original: str) -> str:
    body = ET.tostring(root, encoding="unicode")
    if original.lstrip("\ufeff").startswith("<?xml"):
        return XML_DECLARATION + body
    return body


def reverse_kml_content(content: str) -> str | None:
    """Reverse the tuples inside every `<coordinates>` block."""

    try:
        root = _load_xml(content, "KML")
        found = False
        for elem in descendants(root, "coordinates"):
            coords = (elem.text or "").split()
            if not coords:
                continue
            found = True
            elem.text = KML_COORD_INDENT + KML_COORD_INDENT.join(reversed(coords)) + KML_COORD_CLOSE
        if not found:
            raise FormatError("未找到坐标数据")
        return _dump_xml(root, content)
    except FormatError as exc:
        logger.warning("KML 反转失败：%s", exc)
        return None


def _reverse_trkpts(seg: ET.Element) -> bool:
    children = list(seg)
    slots = [i for i, child in enumerate(children) if local_name(child.tag) == "trkpt"]
    if not slots:
        return False
    tails = [children[i].tail for i in slots]
    pts = [children[i] for i in reversed(slots)]
    for slot, pt, tail in zip(slots, pts, tails):
        pt.tail = tail
        children[slot] = pt
    seg[:] = children
    return True


def reverse_gpx_content(content: str) -> str | None:
    """Reverse the `<trkpt>` children of every `<trkseg>`.

    Other children of a segment (e.g. `<extensions>`) keep their position.
    """

    try:
        root = _load_xml(content, "GPX")
        found = False
        for trk in descendants(root, "trk"):
            for seg in descendants(trk, "trkseg"):
                found = _reverse_trkpts(seg) or found
        if not found:
            raise FormatError("未找到轨迹数据")
        return _dump_xml(root, content)
    except FormatError as exc:
        logger.warning("GPX 反转失败：%s", exc)
        return None


def reverse_latlng(values: list[Any]) -> list[Any]:
    """Reverse (lat, lon) pairs; a trailing unpaired value stays last."""

    paired = len(values) - len(values) % 2
    pairs = [values[i : i + 2] for i in range(0, paired, 2)]
    out = [v for pair in reversed(pairs) for v in pair]
    return out + values[paired:]


def _reverse_ovjsn_items(items: list[Any]) -> bool:
    found = False
    for item in items:
        detail = object_detail(item)
        if detail is None:
            continue
        children = detail.get("ObjChildren")
        if isinstance(children, list):
            found = _reverse_ovjsn_items(children) or found
            continue
        values = latlng_values(detail)
        if values is None or len(values) < 4:
            continue
        found = True
        reversed_values = reverse_latlng(values)
        if isinstance(detail["Latlng"], str):
            detail["Latlng"] = json.dumps(reversed_values)
        else:
            detail["Latlng"] = reversed_values
    return found


def reverse_ovjsn_content(content: str) -> str | None:
    """Reverse the coordinate pairs of every leaf, recursing into children."""

    try:
        data = load_ovjsn(content)
        items = data.get("ObjItems")
        if not isinstance(items, list):
            raise FormatError("无效的 OVJSN 文件格式")
        if not _reverse_ovjsn_items(items):
            raise FormatError("未找到坐标数据")
        return json.dumps(data, ensure_ascii=False, indent=2)
    except FormatError as exc:
        logger.warning("OVJSN 反转失败：%s", exc)
        return None


REVERSERS: dict[TrackFormat, Callable[[str], str | None]] = {
    TrackFormat.KML: reverse_kml_content,
    TrackFormat.GPX: reverse_gpx_content,
    TrackFormat.OVJSN: reverse_ovjsn_content,
}


def reverse_track(content: str, filename: str) -> str | None:
    """Reverse a track file, choosing the format by extension.

    Returns:
        The reversed document text, or None if it could not be reversed.

    Raises:
        UnsupportedExtensionError: For extensions without a reverser.
    """

    fmt = TrackFormat.from_filename(filename)
    reverser = REVERSERS.get(fmt)
    if reverser is None:
        raise UnsupportedExtensionError(f"不支持反转的文件格式: {fmt.value}")
    return reverser(content)


def reversed_filename(filename: str) -> str:
    """Add a "_reversed" suffix before the extension (names already marked are kept)."""

    if "_reversed" in filename:
        return filename
    p = PurePath(filename)
    return f"{filename[: len(filename) - len(p.suffix)]}_reversed{p.suffix}"
