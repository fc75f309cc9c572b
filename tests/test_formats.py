"""Tests for the GPX/KML/OVJSN/CSV decoders and format dispatch."""

import pytest

from steplife_convert.errors import EmptyInputError, FormatError, UnsupportedExtensionError
from steplife_convert.formats import (
    TrackFormat,
    local_name,
    parse_csv_points,
    parse_gpx,
    parse_kml,
    parse_ovjsn,
    parse_track,
)

from conftest import CSV_HEADER_LINE


class TestGpx:
    def test_points_and_attributes(self, gpx_text):
        points = parse_gpx(gpx_text)

        assert len(points) == 4
        assert (points[0].latitude, points[0].longitude) == (31.0, 121.0)
        assert points[0].timestamp == 1735689600
        assert points[0].altitude_m == 10.5
        assert points[1].timestamp == 1735689700
        assert points[1].speed_mps == 1.2
        assert points[2].altitude_m == 0.0
        assert points[3].timestamp == 0

    def test_no_namespace(self):
        text = '<gpx><trk><trkseg><trkpt lat="1" lon="2"><ele>3</ele></trkpt></trkseg></trk></gpx>'
        points = parse_gpx(text)
        assert [(p.latitude, p.longitude, p.altitude_m) for p in points] == [(1.0, 2.0, 3.0)]

    def test_waypoints_are_ignored(self):
        text = '<gpx><wpt lat="1" lon="2"/><rte><rtept lat="3" lon="4"/></rte></gpx>'
        assert parse_gpx(text) == []

    def test_malformed_xml(self):
        with pytest.raises(FormatError):
            parse_gpx("<gpx><trk>")

    def test_bad_coordinate(self):
        text = '<gpx><trk><trkseg><trkpt lat="north" lon="2"/></trkseg></trk></gpx>'
        with pytest.raises(FormatError):
            parse_gpx(text)

    def test_bad_time(self):
        text = '<gpx><trk><trkseg><trkpt lat="1" lon="2"><time>noon</time></trkpt></trkseg></trk></gpx>'
        with pytest.raises(FormatError):
            parse_gpx(text)

    @pytest.mark.parametrize("value", ["inf", "-inf", "nan", "1e999"])
    def test_non_finite_number(self, value):
        text = f'<gpx><trk><trkseg><trkpt lat="{value}" lon="2"/></trkseg></trk></gpx>'
        with pytest.raises(FormatError):
            parse_gpx(text)


class TestKml:
    def test_tokens(self, kml_text):
        points = parse_kml(kml_text)
        assert [(p.longitude, p.latitude) for p in points] == [(121.1, 31.1), (121.2, 31.2), (121.3, 31.3)]
        assert [p.altitude_m for p in points] == [10.0, 0.0, 30.0]
        assert all(p.timestamp == 0 and p.speed_mps == 0 for p in points)

    def test_multiple_blocks_in_document_order(self):
        text = (
            "<kml><Placemark><LineString><coordinates>1,2 3,4</coordinates></LineString></Placemark>"
            "<Placemark><Point><coordinates>5,6,7</coordinates></Point></Placemark></kml>"
        )
        assert [(p.longitude, p.latitude) for p in parse_kml(text)] == [(1.0, 2.0), (3.0, 4.0), (5.0, 6.0)]

    def test_malformed(self):
        with pytest.raises(FormatError):
            parse_kml("<kml><Document>")

    def test_non_finite_tuples_are_skipped(self):
        text = "<kml><coordinates>121.1,31.1 inf,31.2 121.2,nan 121.25,31.25,1e999 121.3,31.3</coordinates></kml>"
        assert [(p.longitude, p.latitude) for p in parse_kml(text)] == [(121.1, 31.1), (121.3, 31.3)]


class TestOvjsn:
    def test_nested_tree(self, ovjsn_text):
        points = parse_ovjsn(ovjsn_text)
        assert [(p.latitude, p.longitude) for p in points] == [
            (31.0, 121.0),
            (31.1, 121.1),
            (31.2, 121.2),
            (31.3, 121.3),
            (31.4, 121.4),
            (31.5, 121.5),
        ]

    def test_invalid_json(self):
        with pytest.raises(FormatError):
            parse_ovjsn("{not json")

    def test_top_level_must_be_object(self):
        with pytest.raises(FormatError):
            parse_ovjsn("[1, 2]")

    def test_bad_latlng_string_is_skipped(self):
        text = (
            '{"ObjItems": ['
            '{"Object": {"ObjectDetail": {"Latlng": "[31.0, oops"}}},'
            '{"Object": {"ObjectDetail": {"Latlng": [1, 2]}}}'
            "]}"
        )
        assert [(p.latitude, p.longitude) for p in parse_ovjsn(text)] == [(1.0, 2.0)]

    def test_missing_items(self):
        assert parse_ovjsn('{"Version": 1}') == []

    def test_non_finite_latlng(self):
        text = '{"ObjItems": [{"Object": {"ObjectDetail": {"Latlng": [31.0, NaN, 31.1, 121.1]}}}]}'
        with pytest.raises(FormatError):
            parse_ovjsn(text)


class TestCsvPoints:
    def test_points_keep_time_and_speed(self, csv_text):
        points = parse_csv_points(csv_text)
        assert [p.timestamp for p in points] == [1735689600, 1735689700, 1735689800]
        assert points[1].speed_mps == 1.5
        assert points[0].altitude_m == 5.0

    def test_header_only_is_empty(self):
        with pytest.raises(EmptyInputError):
            parse_csv_points(CSV_HEADER_LINE)


class TestDispatch:
    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("a.gpx", TrackFormat.GPX),
            ("B.GPX", TrackFormat.GPX),
            ("c.kml", TrackFormat.KML),
            ("d.ovjsn", TrackFormat.OVJSN),
            ("e.json", TrackFormat.OVJSN),
            ("dir/f.csv", TrackFormat.CSV),
        ],
    )
    def test_from_filename(self, filename, expected):
        assert TrackFormat.from_filename(filename) is expected

    @pytest.mark.parametrize("filename", ["track.txt", "noext", "track.gpx.bak"])
    def test_unsupported(self, filename):
        with pytest.raises(UnsupportedExtensionError):
            TrackFormat.from_filename(filename)

    def test_parse_track(self, kml_text):
        assert len(parse_track(kml_text, "route.KML")) == 3

    def test_local_name(self):
        assert local_name("{http://www.opengis.net/kml/2.2}coordinates") == "coordinates"
        assert local_name("trkpt") == "trkpt"
