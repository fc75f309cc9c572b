"""Merge several StepLife CSV files into one time-ordered file."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from steplife_convert.csv_io import parse_csv_rows
from steplife_convert.errors import EmptyInputError
from steplife_convert.inspect import RowSetStats, inspect_rows
from steplife_convert.models import Row

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MergeResult:
    """Merged rows plus per-input statistics (in input order)."""

    rows: tuple[Row, ...]
    input_stats: tuple[RowSetStats, ...]

    @property
    def total_rows(self) -> int:
        return len(self.rows)


def merge_rows(row_sets: Sequence[Sequence[Row]]) -> MergeResult:
    """Concatenate row sets and stable-sort them by `dataTime`.

    Rows sharing a timestamp keep their input order.

    Raises:
        EmptyInputError: If the combined result holds no rows.
    """

    stats = tuple(inspect_rows(rows) for rows in row_sets)
    merged = sorted((row for rows in row_sets for row in rows), key=lambda r: r.data_time)
    if not merged:
        raise EmptyInputError("合并结果不包含任何数据行")
    logger.info("merged %s row sets into %s rows", len(row_sets), len(merged))
    return MergeResult(rows=tuple(merged), input_stats=stats)


def merge_csv_texts(texts: Sequence[str]) -> MergeResult:
    """Validate every CSV text, then merge them.

    Raises:
        FormatError: If any input fails validation (nothing is merged).
        EmptyInputError: If the inputs hold no rows at all.
    """

    row_sets = [parse_csv_rows(text) for text in texts]
    return merge_rows(row_sets)
