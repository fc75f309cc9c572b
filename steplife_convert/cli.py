"""Command-line interface for steplife_convert.

Run:
    python -m steplife_convert convert track.gpx --start "2025-01-01 08:00:00"
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Sequence

from steplife_convert.batch import (
    FileStatus,
    NamedText,
    convert_files,
    interpolate_csv_files,
    merge_files,
    reverse_files,
)
from steplife_convert.csv_io import parse_csv_rows, read_text, write_text
from steplife_convert.errors import TrackConvertError
from steplife_convert.inspect import inspect_rows
from steplife_convert.models import (
    DEFAULT_INSERT_DISTANCE_M,
    DEFAULT_MANUAL_SPEED_MPS,
    ConversionConfig,
    InterpolationConfig,
    SpeedMode,
)
from steplife_convert.timeutils import dt_from_epoch_s, tzinfo_from_name


def _read_inputs(paths: Sequence[str]) -> tuple[list[NamedText], list[FileStatus]]:
    """Read every input; unreadable files come back as failed statuses."""

    files: list[NamedText] = []
    unreadable: list[FileStatus] = []
    for p in paths:
        name = Path(p).name
        try:
            files.append((name, read_text(p)))
        except (OSError, UnicodeDecodeError) as exc:
            unreadable.append(FileStatus(name=name, status="error", error_message=f"无法读取文件：{exc}"))
    return files, unreadable


def _write_outputs(statuses: Sequence[FileStatus], out_dir: str) -> int:
    failed = 0
    for st in statuses:
        if st.ok and st.output_name is not None and st.content is not None:
            out_path = Path(out_dir) / st.output_name
            write_text(out_path, st.content)
            extra = ""
            if st.final_points:
                extra = f"（原始 {st.original_points} 个点，最终 {st.final_points} 个点，插入 {st.inserted_points} 个点）"
            print(f"已导出：{out_path}{extra}")
        else:
            failed += 1
            print(f"失败：{st.name}：{st.error_message}", file=sys.stderr)
    print(f"完成：成功 {len(statuses) - failed} 个，失败 {failed} 个")
    return 0 if failed == 0 else 1


def _cmd_convert(args: argparse.Namespace) -> int:
    config = ConversionConfig(
        insertion_enabled=args.insert,
        insertion_distance_m=args.insert_distance,
        start_time=args.start or "",
        end_time=args.end or "",
        fixed_interval_s=args.interval,
        default_altitude_m=args.altitude,
        speed_mode=SpeedMode(args.speed_mode),
        manual_speed_mps=args.speed,
        timezone=args.tz,
    )
    files, unreadable = _read_inputs(args.files)
    statuses = convert_files(files, config)
    return _write_outputs([*statuses, *unreadable], args.out_dir)


def _cmd_interpolate(args: argparse.Namespace) -> int:
    config = InterpolationConfig(
        insertion_distance_m=args.insert_distance,
        default_altitude_m=args.altitude,
        speed_mode=SpeedMode(args.speed_mode),
        manual_speed_mps=args.speed,
        filter_start_percent=args.filter_start,
        filter_end_percent=args.filter_end,
    )
    files, unreadable = _read_inputs(args.files)
    statuses = interpolate_csv_files(files, config)
    return _write_outputs([*statuses, *unreadable], args.out_dir)


def _cmd_reverse(args: argparse.Namespace) -> int:
    files, unreadable = _read_inputs(args.files)
    statuses = reverse_files(files)
    return _write_outputs([*statuses, *unreadable], args.out_dir)


def _cmd_merge(args: argparse.Namespace) -> int:
    files, unreadable = _read_inputs(args.files)
    if unreadable:
        for st in unreadable:
            print(f"合并失败：{st.name}：{st.error_message}", file=sys.stderr)
        return 1
    try:
        outcome = merge_files(files)
    except TrackConvertError as exc:
        print(f"合并失败：{exc}", file=sys.stderr)
        return 1

    for name, stats in zip(outcome.input_names, outcome.result.input_stats):
        print(f"{name}: rows={stats.row_count}, dataTime=[{stats.min_time}, {stats.max_time}]")
    out_path = Path(args.out) if args.out else Path(args.out_dir) / outcome.output_name
    write_text(out_path, outcome.content)
    print(f"已合并 {len(outcome.input_names)} 个CSV文件，共 {outcome.result.total_rows} 行：{out_path}")
    return 0


def _cmd_inspect(args: argparse.Namespace) -> int:
    try:
        if args.tz:
            tzinfo_from_name(args.tz)
        rows = parse_csv_rows(read_text(args.csv))
    except (TrackConvertError, OSError, UnicodeDecodeError) as exc:
        print(f"CSV校验失败：{exc}", file=sys.stderr)
        return 1
    res = inspect_rows(rows)

    print("### 行数")
    print(res.row_count)
    print()

    if res.min_time is not None and res.max_time is not None:
        print("### 时间范围")
        start = dt_from_epoch_s(res.min_time, args.tz)
        end = dt_from_epoch_s(res.max_time, args.tz)
        print(f"start={start.isoformat(sep=' ')}, end={end.isoformat(sep=' ')}")
        print()

    print("### 经纬度范围（粗略）")
    print(f"lat=[{res.min_lat}, {res.max_lat}], lon=[{res.min_lon}, {res.max_lon}]")
    print()

    print("### 重复时间戳（dataTime重复）")
    print(res.duplicate_times)

    if args.json:
        print(json.dumps(asdict(res), ensure_ascii=False, indent=2))
    return 0


def _add_speed_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--speed-mode",
        type=str,
        default=SpeedMode.AUTO.value,
        choices=[m.value for m in SpeedMode],
        help="速度模式：auto(自动估算) / manual(手动指定)",
    )
    p.add_argument("--speed", type=float, default=DEFAULT_MANUAL_SPEED_MPS, help="手动速度（米/秒），默认 1.5")
    p.add_argument("--altitude", type=float, default=0.0, help="统一海拔（米），0 表示使用原始海拔")


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="steplife_convert")
    p.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_cv = sub.add_parser("convert", help="将 GPX/KML/OVJSN 轨迹转换为一生足迹 CSV")
    p_cv.add_argument("files", nargs="+", help="输入轨迹文件（.gpx/.kml/.ovjsn/.json/.csv）")
    p_cv.add_argument("--out-dir", type=str, default=".", help="输出目录")
    p_cv.add_argument("--insert", action="store_true", help="启用插点策略（在稀疏轨迹中插入中间点）")
    p_cv.add_argument(
        "--insert-distance",
        type=float,
        default=DEFAULT_INSERT_DISTANCE_M,
        help="插点间距（米），默认 100",
    )
    p_cv.add_argument("--start", type=str, default=None, help="轨迹开始时间，例如 2025-01-01 08:00:00；不填为当前时间")
    p_cv.add_argument(
        "--end",
        type=str,
        default=None,
        help="轨迹结束时间；早于开始时间时自动反转轨迹方向",
    )
    p_cv.add_argument("--interval", type=int, default=0, help="固定时间间隔（秒），未设置结束时间时生效")
    p_cv.add_argument("--tz", type=str, default=None, help="开始/结束时间所在时区（IANA），默认系统时区")
    _add_speed_args(p_cv)
    p_cv.set_defaults(func=_cmd_convert)

    p_ip = sub.add_parser("interpolate", help="对一生足迹 CSV 进行插值（保留原始时间戳）")
    p_ip.add_argument("files", nargs="+", help="输入CSV文件")
    p_ip.add_argument("--out-dir", type=str, default=".", help="输出目录")
    p_ip.add_argument(
        "--insert-distance",
        type=float,
        default=DEFAULT_INSERT_DISTANCE_M,
        help="插点间距（米），默认 100",
    )
    p_ip.add_argument("--filter-start", type=float, default=0.0, help="前部不插值的点占比（0-100）")
    p_ip.add_argument("--filter-end", type=float, default=0.0, help="后部不插值的点占比（0-100）")
    _add_speed_args(p_ip)
    p_ip.set_defaults(func=_cmd_interpolate)

    p_mg = sub.add_parser("merge", help="合并多个一生足迹 CSV（按时间排序）")
    p_mg.add_argument("files", nargs="+", help="输入CSV文件")
    p_mg.add_argument("--out", type=str, default=None, help="输出CSV路径；不填则自动命名")
    p_mg.add_argument("--out-dir", type=str, default=".", help="自动命名时的输出目录")
    p_mg.set_defaults(func=_cmd_merge)

    p_rv = sub.add_parser("reverse", help="反转 KML/GPX/OVJSN 轨迹方向（保持原格式）")
    p_rv.add_argument("files", nargs="+", help="输入轨迹文件")
    p_rv.add_argument("--out-dir", type=str, default=".", help="输出目录")
    p_rv.set_defaults(func=_cmd_reverse)

    p_ins = sub.add_parser("inspect", help="校验并分析一生足迹 CSV 的时间范围/经纬度范围等")
    p_ins.add_argument("--csv", type=str, required=True, help="输入CSV路径")
    p_ins.add_argument("--tz", type=str, default=None, help="显示用时区（IANA），默认系统时区")
    p_ins.add_argument("--json", action="store_true", help="额外输出JSON（便于后处理）")
    p_ins.set_defaults(func=_cmd_inspect)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
