"""Tests for format-preserving track reversal."""

import json

import pytest

from steplife_convert.errors import UnsupportedExtensionError
from steplife_convert.formats import parse_gpx, parse_kml, parse_ovjsn
from steplife_convert.reverse import (
    reverse_gpx_content,
    reverse_kml_content,
    reverse_latlng,
    reverse_ovjsn_content,
    reverse_track,
    reversed_filename,
)


def coords(points):
    return [(p.latitude, p.longitude) for p in points]


class TestReverseKml:
    def test_coordinates_reversed(self, kml_text):
        out = reverse_kml_content(kml_text)
        assert out is not None
        assert coords(parse_kml(out)) == coords(reversed(parse_kml(kml_text)))

    def test_document_preserved(self, kml_text):
        out = reverse_kml_content(kml_text)
        assert out.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert "<!-- exported route -->" in out
        assert "<name>route</name>" in out
        assert "ns0:" not in out
        assert 'xmlns="http://www.opengis.net/kml/2.2"' in out

    def test_tuple_layout(self):
        out = reverse_kml_content("<kml><coordinates>1,2 3,4</coordinates></kml>")
        assert "<coordinates>\n          3,4\n          1,2\n        </coordinates>" in out

    def test_no_coordinates(self):
        assert reverse_kml_content("<kml><Document/></kml>") is None

    def test_malformed(self):
        assert reverse_kml_content("<kml>") is None


class TestReverseGpx:
    def test_each_segment_reversed(self, gpx_text):
        out = reverse_gpx_content(gpx_text)
        assert out is not None
        original = parse_gpx(gpx_text)
        expected = list(reversed(original[:3])) + original[3:]
        assert parse_gpx(out) == expected

    def test_no_prefixes_introduced(self, gpx_text):
        out = reverse_gpx_content(gpx_text)
        assert "ns0:" not in out
        assert "<metadata><name>walk</name></metadata>" in out

    def test_non_point_children_keep_position(self):
        text = (
            "<gpx><trk><trkseg>"
            '<trkpt lat="1" lon="1"/><trkpt lat="2" lon="2"/><extensions/>'
            "</trkseg></trk></gpx>"
        )
        out = reverse_gpx_content(text)
        assert '<trkpt lat="2" lon="2" /><trkpt lat="1" lon="1" /><extensions />' in out

    def test_no_track_points(self):
        assert reverse_gpx_content("<gpx><wpt lat='1' lon='2'/></gpx>") is None


class TestReverseOvjsn:
    def test_leaves_reversed(self, ovjsn_text):
        out = reverse_ovjsn_content(ovjsn_text)
        assert out is not None
        assert coords(parse_ovjsn(out)) == [
            (31.1, 121.1),
            (31.0, 121.0),
            (31.3, 121.3),
            (31.2, 121.2),
            (31.5, 121.5),
            (31.4, 121.4),
        ]

    def test_string_latlng_stays_string(self, ovjsn_text):
        data = json.loads(reverse_ovjsn_content(ovjsn_text))
        leaf = data["ObjItems"][0]["Object"]["ObjectDetail"]["ObjChildren"][1]["Object"]["ObjectDetail"]
        assert isinstance(leaf["Latlng"], str)
        assert json.loads(leaf["Latlng"]) == [31.3, 121.3, 31.2, 121.2]

    def test_odd_value_kept_last(self, ovjsn_text):
        data = json.loads(reverse_ovjsn_content(ovjsn_text))
        leaf = data["ObjItems"][0]["Object"]["ObjectDetail"]["ObjChildren"][0]["Object"]["ObjectDetail"]
        assert leaf["Latlng"] == [31.1, 121.1, 31.0, 121.0, 99.0]

    def test_single_pair_is_not_enough(self):
        assert reverse_ovjsn_content('{"ObjItems": [{"Object": {"ObjectDetail": {"Latlng": [1, 2]}}}]}') is None

    @pytest.mark.parametrize("text", ["{broken", "[]", '{"ObjItems": {}}'])
    def test_invalid(self, text):
        assert reverse_ovjsn_content(text) is None


class TestHelpers:
    @pytest.mark.parametrize(
        "values, expected",
        [
            ([1, 2, 3, 4], [3, 4, 1, 2]),
            ([1, 2, 3, 4, 5], [3, 4, 1, 2, 5]),
            ([1, 2], [1, 2]),
            ([], []),
        ],
    )
    def test_reverse_latlng(self, values, expected):
        assert reverse_latlng(values) == expected

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("route.kml", "route_reversed.kml"),
            ("a.b.gpx", "a.b_reversed.gpx"),
            ("x_reversed.ovjsn", "x_reversed.ovjsn"),
        ],
    )
    def test_reversed_filename(self, name, expected):
        assert reversed_filename(name) == expected

    def test_dispatch(self, kml_text):
        assert reverse_track(kml_text, "route.kml") == reverse_kml_content(kml_text)

    def test_csv_cannot_be_reversed(self, csv_text):
        with pytest.raises(UnsupportedExtensionError):
            reverse_track(csv_text, "track.csv")
