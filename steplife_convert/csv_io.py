"""CSV input/output utilities for the StepLife track file."""

from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from steplife_convert.errors import FormatError
from steplife_convert.models import CSV_HEADER, Row

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CsvSummary:
    """Quick summary of a validated CSV."""

    rows_total: int
    fieldnames: Sequence[str]
    first_time: int | None
    last_time: int | None


def _parse_number(value: str, line_no: int, column: str) -> float:
    try:
        number = float(value.strip())
    except ValueError as exc:
        raise FormatError(f"第 {line_no} 行 {column} 列不是有效数字：{value!r}") from exc
    if not math.isfinite(number):
        raise FormatError(f"第 {line_no} 行 {column} 列不是有效数字：{value!r}")
    return number


def _format_plain(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _row_values(row: Row) -> list[str]:
    return [
        str(int(row.data_time)),
        _format_plain(row.loc_type),
        f"{row.longitude:.8f}",
        f"{row.latitude:.8f}",
        _format_plain(row.heading),
        _format_plain(row.accuracy),
        f"{row.speed_mps:.2f}",
        _format_plain(row.distance),
        _format_plain(row.is_back_foreground),
        _format_plain(row.step_type),
        f"{row.altitude_m:.2f}",
    ]


def generate_csv(rows: Iterable[Row]) -> str:
    """Render rows as StepLife CSV text (header + LF-joined lines).

    Encodings: dataTime as integer seconds, longitude/latitude with 8
    decimals, speed/altitude with 2 decimals, other columns unformatted.
    """

    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(CSV_HEADER)
    for row in rows:
        w.writerow(_row_values(row))
    return buf.getvalue().removesuffix("\n")


def _strip_bom(text: str) -> str:
    return text[1:] if text.startswith("\ufeff") else text


def parse_csv_rows(text: str) -> list[Row]:
    """Validate StepLife CSV text and decode every data row.

    Blank lines are ignored. A header-only file yields an empty list.

    Raises:
        FormatError: On an empty file, a header that differs from the fixed
            11-column schema, a row with the wrong column count or any
            non-numeric (or NaN) field. The first problem found is reported.
    """

    lines = [line for line in _strip_bom(text).splitlines() if line.strip()]
    if not lines:
        raise FormatError("CSV文件为空")

    reader = csv.reader(lines)
    header = [h.strip() for h in next(reader)]
    if tuple(header) != CSV_HEADER:
        raise FormatError(f"CSV表头不匹配。期望：{','.join(CSV_HEADER)}；实际：{','.join(header)}")

    rows: list[Row] = []
    for line_no, fields in enumerate(reader, start=2):
        if len(fields) != len(CSV_HEADER):
            raise FormatError(f"第 {line_no} 行列数错误：期望 {len(CSV_HEADER)} 列，实际 {len(fields)} 列")
        v = [_parse_number(value, line_no, column) for value, column in zip(fields, CSV_HEADER)]
        rows.append(
            Row(
                data_time=int(v[0]),
                loc_type=int(v[1]),
                longitude=v[2],
                latitude=v[3],
                heading=v[4],
                accuracy=v[5],
                speed_mps=v[6],
                distance=v[7],
                is_back_foreground=int(v[8]),
                step_type=int(v[9]),
                altitude_m=v[10],
            )
        )
    logger.debug("parsed %s CSV rows", len(rows))
    return rows


def validate_csv(text: str) -> CsvSummary:
    """Validate StepLife CSV text and summarize its row count and time span.

    Raises:
        FormatError: See `parse_csv_rows`.
    """

    rows = parse_csv_rows(text)
    return CsvSummary(
        rows_total=len(rows),
        fieldnames=CSV_HEADER,
        first_time=rows[0].data_time if rows else None,
        last_time=rows[-1].data_time if rows else None,
    )


def read_text(path: str | Path) -> str:
    """Read a track file as text (UTF-8, BOM tolerated)."""

    return Path(path).read_text(encoding="utf-8-sig")


def write_text(path: str | Path, text: str) -> None:
    """Write text to disk, creating the parent directory if needed."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8", newline="") as f:
        f.write(text)


def sample_csv() -> str:
    """A small valid StepLife CSV, handy as a template for manual edits."""

    rows = [
        Row(data_time=1735689600, longitude=121.47370000, latitude=31.23040000, altitude_m=4.0),
        Row(data_time=1735689660, longitude=121.47450000, latitude=31.23100000, speed_mps=1.5, altitude_m=4.0),
        Row(data_time=1735689720, longitude=121.47530000, latitude=31.23160000, speed_mps=1.5, altitude_m=4.0),
    ]
    return generate_csv(rows)
