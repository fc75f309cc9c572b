"""Tests for StepLife CSV rendering and validation."""

import pytest

from steplife_convert.csv_io import (
    generate_csv,
    parse_csv_rows,
    read_text,
    sample_csv,
    validate_csv,
    write_text,
)
from steplife_convert.convert import convert_track
from steplife_convert.errors import FormatError
from steplife_convert.models import CSV_HEADER, ConversionConfig, Row

from conftest import CSV_HEADER_LINE


class TestGenerateCsv:
    def test_row_encoding(self):
        row = Row(data_time=1700000000, longitude=121.5, latitude=31.25, speed_mps=1.234, altitude_m=5)
        text = generate_csv([row])
        assert text == CSV_HEADER_LINE + "\n" + "1700000000,0,121.50000000,31.25000000,0,0,1.23,0,0,0,5.00"

    def test_no_trailing_newline(self):
        rows = [Row(data_time=i, longitude=0.0, latitude=0.0) for i in range(3)]
        text = generate_csv(rows)
        assert not text.endswith("\n")
        assert len(text.split("\n")) == 4

    def test_empty_rows_is_header_only(self):
        assert generate_csv([]) == ",".join(CSV_HEADER)

    def test_converted_rows_survive_text_round_trip(self, make_line):
        points = make_line(6, step_deg=0.0123456789, lat=-31.5)
        config = ConversionConfig(
            insertion_enabled=True,
            insertion_distance_m=400,
            start_time="2025-01-01 00:00:00",
            end_time="2025-01-01 02:00:00",
            timezone="UTC",
        )
        rows = convert_track(points, config).rows

        parsed = parse_csv_rows(generate_csv(rows))

        assert len(parsed) == len(rows) > len(points)
        for got, want in zip(parsed, rows):
            assert got.data_time == want.data_time
            assert got.longitude == pytest.approx(want.longitude, abs=5e-9)
            assert got.latitude == pytest.approx(want.latitude, abs=5e-9)
            assert got.speed_mps == pytest.approx(want.speed_mps, abs=0.005)
            assert got.altitude_m == pytest.approx(want.altitude_m, abs=0.005)
            assert (got.loc_type, got.heading, got.accuracy, got.distance) == (0, 0, 0, 0)
            assert (got.is_back_foreground, got.step_type) == (0, 0)


class TestParseCsvRows:
    def test_reads_all_columns(self, csv_text):
        rows = parse_csv_rows(csv_text)
        assert len(rows) == 3
        assert rows[1].data_time == 1735689700
        assert rows[1].longitude == 121.01
        assert rows[1].speed_mps == 1.5
        assert rows[2].altitude_m == 7.0

    def test_header_only(self):
        assert parse_csv_rows(CSV_HEADER_LINE + "\n") == []

    def test_bom_and_blank_lines(self, csv_text):
        rows = parse_csv_rows("\ufeff" + csv_text.replace("\n", "\n\n") + "\n\n")
        assert len(rows) == 3

    def test_crlf(self, csv_text):
        assert len(parse_csv_rows(csv_text.replace("\n", "\r\n"))) == 3

    def test_empty_file(self):
        with pytest.raises(FormatError, match="为空"):
            parse_csv_rows("  \n\n")

    def test_header_mismatch(self, csv_text):
        with pytest.raises(FormatError, match="表头"):
            parse_csv_rows(csv_text.replace("dataTime", "time", 1))

    def test_wrong_column_count_names_line(self):
        text = CSV_HEADER_LINE + "\n1,0,121,31,0,0,0,0,0,0,0\n2,0,121,31"
        with pytest.raises(FormatError, match="第 3 行"):
            parse_csv_rows(text)

    @pytest.mark.parametrize("bad", ["abc", "nan", "inf", ""])
    def test_non_numeric_field(self, bad):
        text = CSV_HEADER_LINE + f"\n1,0,{bad},31,0,0,0,0,0,0,0"
        with pytest.raises(FormatError, match="longitude"):
            parse_csv_rows(text)

    def test_validate_summary(self, csv_text):
        summary = validate_csv(csv_text)
        assert summary.rows_total == 3
        assert summary.first_time == 1735689600
        assert summary.last_time == 1735689800
        assert tuple(summary.fieldnames) == CSV_HEADER

    def test_validate_header_only(self):
        summary = validate_csv(CSV_HEADER_LINE)
        assert summary.rows_total == 0
        assert summary.first_time is None


class TestFiles:
    def test_write_then_read(self, tmp_path, csv_text):
        target = tmp_path / "nested" / "out.csv"
        write_text(target, csv_text)
        assert read_text(target) == csv_text

    def test_read_strips_bom(self, tmp_path, csv_text):
        target = tmp_path / "bom.csv"
        target.write_bytes(("\ufeff" + csv_text).encode("utf-8"))
        assert read_text(target) == csv_text

    def test_sample_is_valid(self):
        assert validate_csv(sample_csv()).rows_total == 3
