from __future__ import annotations

import argparse
import math
import random
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Final


GPX_NS: Final[str] = "http://www.topografix.com/GPX/1/1"


@dataclass(frozen=True, slots=True)
class Sample:
    time: datetime
    lat: float
    lon: float
    ele: float


def generate_walk(*, points: int, seed: int, start: datetime, lat: float, lon: float) -> list[Sample]:
    """Generate a sparse, privacy-safe random walk (roughly 50-800 m per hop)."""

    rng = random.Random(seed)
    heading = rng.uniform(0, 2 * math.pi)
    cur = start
    ele = rng.uniform(0, 50)

    out: list[Sample] = []
    for _ in range(points):
        out.append(Sample(time=cur, lat=lat, lon=lon, ele=ele))

        # Mostly keep direction, sometimes turn
        heading += rng.gauss(0, 0.4)
        hop_m = rng.uniform(50, 800)
        lat += (hop_m * math.cos(heading)) / 111_000.0
        lon += (hop_m * math.sin(heading)) / (111_000.0 * math.cos(math.radians(lat)))
        ele = max(0.0, ele + rng.uniform(-3, 3))
        cur = cur + timedelta(seconds=hop_m / rng.uniform(1.0, 2.0))
    return out


def to_gpx(samples: list[Sample], name: str) -> ET.ElementTree:
    ET.register_namespace("", GPX_NS)
    gpx = ET.Element(f"{{{GPX_NS}}}gpx", version="1.1", creator="steplife_convert sample generator")
    trk = ET.SubElement(gpx, f"{{{GPX_NS}}}trk")
    ET.SubElement(trk, f"{{{GPX_NS}}}name").text = name
    seg = ET.SubElement(trk, f"{{{GPX_NS}}}trkseg")
    for s in samples:
        pt = ET.SubElement(seg, f"{{{GPX_NS}}}trkpt", lat=f"{s.lat:.7f}", lon=f"{s.lon:.7f}")
        ET.SubElement(pt, f"{{{GPX_NS}}}ele").text = f"{s.ele:.1f}"
        ET.SubElement(pt, f"{{{GPX_NS}}}time").text = s.time.strftime("%Y-%m-%dT%H:%M:%SZ")
    tree = ET.ElementTree(gpx)
    ET.indent(tree)
    return tree


def main() -> int:
    p = argparse.ArgumentParser(description="Generate a fake GPX track for demo/testing (privacy-safe).")
    p.add_argument("--out", type=str, default="sample_data/track.gpx", help="Output GPX path")
    p.add_argument("--points", type=int, default=60, help="Number of track points")
    p.add_argument("--seed", type=int, default=42, help="Random seed (reproducible)")
    p.add_argument("--start", type=str, default="2025-01-01 00:00:00", help="Start time in UTC")
    p.add_argument("--lat", type=float, default=31.2304, help="Start latitude")
    p.add_argument("--lon", type=float, default=121.4737, help="Start longitude")
    args = p.parse_args()

    start = datetime.fromisoformat(args.start).replace(tzinfo=UTC)
    samples = generate_walk(points=args.points, seed=args.seed, start=start, lat=args.lat, lon=args.lon)

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    to_gpx(samples, name=out_path.stem).write(out_path, encoding="utf-8", xml_declaration=True)

    print(f"Generated: {out_path} (points={len(samples)}, seed={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
