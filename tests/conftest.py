"""Shared fixtures: small track documents in every supported format."""

from __future__ import annotations

import pytest

from steplife_convert.models import Point


GPX_TEXT = """<?xml version="1.0" encoding="UTF-8"?>
<gpx xmlns="http://www.topografix.com/GPX/1/1" version="1.1" creator="test">
  <metadata><name>walk</name></metadata>
  <trk>
    <name>walk</name>
    <trkseg>
      <trkpt lat="31.0000000" lon="121.0000000">
        <ele>10.5</ele>
        <time>2025-01-01T00:00:00Z</time>
      </trkpt>
      <trkpt lat="31.0010000" lon="121.0010000">
        <ele>11.0</ele>
        <time>2025-01-01T00:01:40Z</time>
        <extensions><speed>1.2</speed></extensions>
      </trkpt>
      <trkpt lat="31.0020000" lon="121.0020000">
        <time>2025-01-01T00:03:20Z</time>
      </trkpt>
    </trkseg>
    <trkseg>
      <trkpt lat="31.0030000" lon="121.0030000"/>
    </trkseg>
  </trk>
</gpx>
"""

KML_TEXT = """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <name>route</name>
    <!-- exported route -->
    <Placemark>
      <LineString>
        <coordinates>
          121.1,31.1,10 121.2,31.2 bad 1
          121.3,31.3,30
        </coordinates>
      </LineString>
    </Placemark>
  </Document>
</kml>
"""

OVJSN_TEXT = "\ufeff" + """{
  "ObjItems": [
    {"Object": {"Name": "folder", "ObjectDetail": {"ObjChildren": [
      {"Object": {"Name": "a", "ObjectDetail": {"Latlng": [31.0, 121.0, 31.1, 121.1, 99.0]}}},
      {"Object": {"Name": "b", "ObjectDetail": {"Latlng": "[31.2, 121.2, 31.3, 121.3]"}}}
    ]}}},
    {"Object": {"Name": "c", "ObjectDetail": {"Latlng": [31.4, 121.4, 31.5, 121.5]}}}
  ]
}"""

CSV_HEADER_LINE = "dataTime,locType,longitude,latitude,heading,accuracy,speed,distance,isBackForeground,stepType,altitude"


@pytest.fixture
def gpx_text() -> str:
    return GPX_TEXT


@pytest.fixture
def kml_text() -> str:
    return KML_TEXT


@pytest.fixture
def ovjsn_text() -> str:
    return OVJSN_TEXT


@pytest.fixture
def csv_text() -> str:
    return "\n".join(
        [
            CSV_HEADER_LINE,
            "1735689600,0,121.00000000,31.00000000,0,0,0.00,0,0,0,5.00",
            "1735689700,0,121.01000000,31.00000000,0,0,1.50,0,0,0,6.00",
            "1735689800,0,121.02000000,31.00000000,0,0,1.50,0,0,0,7.00",
        ]
    )


def line_points(count: int, step_deg: float = 0.01, dt: int = 0, lat: float = 0.0) -> list[Point]:
    """Points along a parallel, `step_deg` of longitude apart (~1112 m at the equator)."""

    return [
        Point(timestamp=i * dt, latitude=lat, longitude=i * step_deg, altitude_m=float(i), speed_mps=0.0)
        for i in range(count)
    ]


@pytest.fixture
def make_line():
    return line_points
