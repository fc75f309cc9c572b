"""Sequential batch processing with per-file status.

Files are handled one at a time in input order. A failure in one file is
recorded on its FileStatus and never stops the rest of the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import PurePath
from typing import Callable, Literal, Sequence

from steplife_convert.convert import ConversionResult, convert_track, interpolate_csv_points
from steplife_convert.csv_io import generate_csv, parse_csv_rows
from steplife_convert.errors import EmptyInputError, FormatError, TrackConvertError
from steplife_convert.formats import parse_csv_points, parse_track
from steplife_convert.merge import MergeResult, merge_rows
from steplife_convert.models import ConversionConfig, InterpolationConfig, Row
from steplife_convert.reverse import reverse_track, reversed_filename

logger = logging.getLogger(__name__)

Status = Literal["pending", "parsing", "converting", "completed", "error"]
NamedText = tuple[str, str]  # (file name, file content)
ProgressCallback = Callable[[int, "FileStatus"], None]


@dataclass(slots=True)
class FileStatus:
    """Processing state of one input file."""

    name: str
    status: Status = "pending"
    progress: int = 0
    output_name: str | None = None
    content: str | None = None
    error_message: str | None = None
    original_points: int = 0
    final_points: int = 0
    inserted_points: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "completed"

    def fail(self, exc: Exception) -> None:
        self.status = "error"
        self.error_message = str(exc)

    def complete(self, output_name: str, content: str, result: ConversionResult | None = None) -> None:
        self.status = "completed"
        self.progress = 100
        self.output_name = output_name
        self.content = content
        if result is not None:
            self.original_points = result.original_points
            self.final_points = result.final_points
            self.inserted_points = result.inserted_points


def _stem(name: str) -> str:
    return PurePath(name).stem


def _run(
    files: Sequence[NamedText],
    step: Callable[[FileStatus, str], None],
    on_progress: ProgressCallback | None,
) -> list[FileStatus]:
    statuses = [FileStatus(name=name) for name, _ in files]
    logger.info("开始处理 %s 个文件", len(files))
    for i, ((name, text), st) in enumerate(zip(files, statuses)):
        logger.info("正在处理文件: %s", name)
        try:
            step(st, text)
        except TrackConvertError as exc:
            st.fail(exc)
            logger.warning("处理文件 %s 失败: %s", name, exc)
        else:
            logger.info("文件处理完成: %s", st.output_name)
        if on_progress is not None:
            on_progress(i, st)
    return statuses


def convert_files(
    files: Sequence[NamedText],
    config: ConversionConfig,
    on_progress: ProgressCallback | None = None,
    now: int | None = None,
) -> list[FileStatus]:
    """Convert GPX/KML/OVJSN (or StepLife CSV) files to StepLife CSV.

    Output names are "<stem>_steplife.csv".
    """

    def step(st: FileStatus, text: str) -> None:
        st.status = "parsing"
        st.progress = 10
        points = parse_track(text, st.name)
        if not points:
            raise EmptyInputError("未解析到任何轨迹点")
        logger.info("解析完成，共 %s 个轨迹点", len(points))

        st.status = "converting"
        st.progress = 60
        result = convert_track(points, config, now=now)
        logger.info(
            "转换完成：原始 %s 个点，最终 %s 个点（插入了 %s 个点）",
            result.original_points,
            result.final_points,
            result.inserted_points,
        )
        st.complete(f"{_stem(st.name)}_steplife.csv", generate_csv(result.rows), result)

    return _run(files, step, on_progress)


def interpolate_csv_files(
    files: Sequence[NamedText],
    config: InterpolationConfig,
    on_progress: ProgressCallback | None = None,
) -> list[FileStatus]:
    """Densify StepLife CSV files, keeping their timestamps.

    Output names are "<stem>_interpolated.csv".
    """

    def step(st: FileStatus, text: str) -> None:
        st.status = "parsing"
        st.progress = 10
        points = parse_csv_points(text)

        st.status = "converting"
        st.progress = 60
        result = interpolate_csv_points(points, config)
        logger.info(
            "插值完成：原始 %s 个点，最终 %s 个点（插入了 %s 个点）",
            result.original_points,
            result.final_points,
            result.inserted_points,
        )
        st.complete(f"{_stem(st.name)}_interpolated.csv", generate_csv(result.rows), result)

    return _run(files, step, on_progress)


def reverse_files(
    files: Sequence[NamedText],
    on_progress: ProgressCallback | None = None,
) -> list[FileStatus]:
    """Reverse the direction of KML/GPX/OVJSN files, keeping their format."""

    def step(st: FileStatus, text: str) -> None:
        st.status = "converting"
        reversed_text = reverse_track(text, st.name)
        if reversed_text is None:
            raise FormatError("反转失败：文件格式错误或未找到坐标数据")
        st.complete(reversed_filename(st.name), reversed_text)

    return _run(files, step, on_progress)


@dataclass(frozen=True, slots=True)
class MergeOutcome:
    """Merged CSV text with its suggested file name and statistics."""

    output_name: str
    content: str
    result: MergeResult
    input_names: tuple[str, ...] = field(default=())


def merged_filename(count: int, when: datetime | None = None) -> str:
    """Merge output name: "merged_<n>_csv_files_<UTC timestamp>.csv"."""

    when = when or datetime.now(UTC)
    return f"merged_{count}_csv_files_{when.strftime('%Y-%m-%dT%H-%M-%S')}.csv"


def merge_files(files: Sequence[NamedText], when: datetime | None = None) -> MergeOutcome:
    """Validate and merge StepLife CSV files.

    Unlike the other batch operations this is all-or-nothing: every input
    must validate before anything is merged.

    Raises:
        FormatError: Naming the first file that fails validation.
        EmptyInputError: If the inputs hold no rows at all.
    """

    row_sets: list[list[Row]] = []
    for name, text in files:
        try:
            row_sets.append(parse_csv_rows(text))
        except FormatError as exc:
            raise FormatError(f"{name}: {exc}") from exc
    result = merge_rows(row_sets)
    return MergeOutcome(
        output_name=merged_filename(len(files), when),
        content=generate_csv(result.rows),
        result=result,
        input_names=tuple(name for name, _ in files),
    )
