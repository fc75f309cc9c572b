from __future__ import annotations

from datetime import datetime
from typing import Sequence

import streamlit as st

from steplife_convert.batch import (
    FileStatus,
    NamedText,
    convert_files,
    interpolate_csv_files,
    merge_files,
    reverse_files,
)
from steplife_convert.csv_io import sample_csv
from steplife_convert.errors import TrackConvertError
from steplife_convert.models import (
    DEFAULT_INSERT_DISTANCE_M,
    DEFAULT_MANUAL_SPEED_MPS,
    ConversionConfig,
    InterpolationConfig,
    SpeedMode,
)

TIMEZONES = [
    "",
    "Asia/Shanghai",
    "Asia/Tokyo",
    "Asia/Seoul",
    "Asia/Singapore",
    "Asia/Kolkata",
    "Europe/London",
    "Europe/Paris",
    "America/New_York",
    "America/Los_Angeles",
    "Australia/Sydney",
    "UTC",
]


def _uploaded(files: Sequence[object] | None) -> list[NamedText]:
    """Decode uploaded files as UTF-8 text (BOM tolerated)."""

    out: list[NamedText] = []
    for f in files or []:
        out.append((f.name, f.getvalue().decode("utf-8-sig", errors="replace")))
    return out


def _run_with_progress(total: int, run) -> list[FileStatus]:
    bar = st.progress(0.0, text="处理中……")

    def on_progress(index: int, status: FileStatus) -> None:
        bar.progress((index + 1) / max(1, total), text=f"{index + 1}/{total}：{status.name}")

    statuses = run(on_progress)
    bar.empty()
    return statuses


def _show_results(statuses: Sequence[FileStatus], key: str, mime: str = "text/csv") -> None:
    ok = sum(1 for s in statuses if s.ok)
    if ok == len(statuses):
        st.success(f"全部完成：{ok} 个文件")
    else:
        st.warning(f"成功 {ok} 个，失败 {len(statuses) - ok} 个")

    for i, s in enumerate(statuses):
        cols = st.columns([3, 2])
        if s.ok and s.content is not None and s.output_name is not None:
            detail = ""
            if s.final_points:
                detail = f"原始 {s.original_points} 点 → 最终 {s.final_points} 点（+{s.inserted_points}）"
            cols[0].markdown(f"✅ **{s.name}** → `{s.output_name}`  \n{detail}")
            cols[1].download_button(
                "下载",
                data=s.content.encode("utf-8"),
                file_name=s.output_name,
                mime=mime,
                key=f"{key}-{i}",
            )
        else:
            cols[0].markdown(f"❌ **{s.name}**")
            cols[1].error(s.error_message or "处理失败")


def _speed_inputs(prefix: str) -> tuple[SpeedMode, float, float]:
    mode = st.radio(
        "速度模式",
        options=[SpeedMode.AUTO, SpeedMode.MANUAL],
        format_func=lambda m: "自动计算" if m is SpeedMode.AUTO else "手动指定",
        horizontal=True,
        key=f"{prefix}-speed-mode",
    )
    speed = st.number_input(
        "手动速度（米/秒）",
        value=DEFAULT_MANUAL_SPEED_MPS,
        min_value=0.0,
        step=0.5,
        disabled=mode is SpeedMode.AUTO,
        key=f"{prefix}-speed",
    )
    altitude = st.number_input("统一海拔（米，0=使用原始海拔）", value=0.0, step=10.0, key=f"{prefix}-alt")
    return mode, float(speed), float(altitude)


def _tab_convert() -> None:
    files = st.file_uploader(
        "上传轨迹文件（GPX / KML / OVJSN）",
        type=["gpx", "kml", "ovjsn", "json", "csv"],
        accept_multiple_files=True,
        key="convert-files",
    )
    c1, c2 = st.columns(2)
    with c1:
        start = st.text_input("开始时间（YYYY-MM-DD HH:MM:SS，空=当前时间）", value="")
        end = st.text_input("结束时间（可空；早于开始时间则反转轨迹）", value="")
        interval = st.number_input("固定时间间隔（秒，0=不设置）", value=0, step=1)
        tz = st.selectbox("时区（空=系统时区）", options=TIMEZONES, index=0)
    with c2:
        insert = st.checkbox("启用插点策略", value=False)
        distance = st.number_input(
            "插点间距（米）",
            value=DEFAULT_INSERT_DISTANCE_M,
            min_value=1.0,
            step=10.0,
            disabled=not insert,
        )
        mode, speed, altitude = _speed_inputs("convert")

    if st.button("开始转换", type="primary", disabled=not files, use_container_width=True):
        config = ConversionConfig(
            insertion_enabled=insert,
            insertion_distance_m=float(distance),
            start_time=start,
            end_time=end,
            fixed_interval_s=int(interval),
            default_altitude_m=altitude,
            speed_mode=mode,
            manual_speed_mps=speed,
            timezone=tz or None,
        )
        inputs = _uploaded(files)
        st.session_state["convert-results"] = _run_with_progress(
            len(inputs), lambda cb: convert_files(inputs, config, on_progress=cb)
        )

    if "convert-results" in st.session_state:
        _show_results(st.session_state["convert-results"], "convert")


def _tab_interpolate() -> None:
    files = st.file_uploader("上传一生足迹 CSV", type=["csv"], accept_multiple_files=True, key="interp-files")
    c1, c2 = st.columns(2)
    with c1:
        distance = st.number_input("插点间距（米）", value=DEFAULT_INSERT_DISTANCE_M, min_value=1.0, step=10.0)
        filter_start = st.slider("前部不插值比例（%）", 0, 100, 0)
        filter_end = st.slider("后部不插值比例（%）", 0, 100 - filter_start, 0)
    with c2:
        mode, speed, altitude = _speed_inputs("interp")

    if st.button("开始插值", type="primary", disabled=not files, use_container_width=True):
        config = InterpolationConfig(
            insertion_distance_m=float(distance),
            default_altitude_m=altitude,
            speed_mode=mode,
            manual_speed_mps=speed,
            filter_start_percent=float(filter_start),
            filter_end_percent=float(filter_end),
        )
        inputs = _uploaded(files)
        st.session_state["interp-results"] = _run_with_progress(
            len(inputs), lambda cb: interpolate_csv_files(inputs, config, on_progress=cb)
        )

    if "interp-results" in st.session_state:
        _show_results(st.session_state["interp-results"], "interp")


def _tab_merge() -> None:
    files = st.file_uploader("上传多个一生足迹 CSV", type=["csv"], accept_multiple_files=True, key="merge-files")
    st.download_button("下载示例 CSV", data=sample_csv().encode("utf-8"), file_name="sample_steplife.csv")

    if st.button("合并", type="primary", disabled=not files or len(files) < 2, use_container_width=True):
        try:
            outcome = merge_files(_uploaded(files))
        except TrackConvertError as exc:
            st.error(f"合并失败：{exc}")
            return

        rows = []
        for name, stats in zip(outcome.input_names, outcome.result.input_stats):
            rows.append(
                {
                    "file": name,
                    "rows": stats.row_count,
                    "start": datetime.fromtimestamp(stats.min_time).isoformat(sep=" ") if stats.min_time else "",
                    "end": datetime.fromtimestamp(stats.max_time).isoformat(sep=" ") if stats.max_time else "",
                }
            )
        st.dataframe(rows, use_container_width=True)
        st.success(f"成功合并 {len(rows)} 个CSV文件，共 {outcome.result.total_rows} 行数据")
        st.download_button(
            "下载合并结果",
            data=outcome.content.encode("utf-8"),
            file_name=outcome.output_name,
            mime="text/csv",
        )


def _tab_reverse() -> None:
    files = st.file_uploader(
        "上传轨迹文件（KML / GPX / OVJSN）",
        type=["kml", "gpx", "ovjsn", "json"],
        accept_multiple_files=True,
        key="reverse-files",
    )
    if st.button("反转轨迹", type="primary", disabled=not files, use_container_width=True):
        inputs = _uploaded(files)
        st.session_state["reverse-results"] = _run_with_progress(
            len(inputs), lambda cb: reverse_files(inputs, on_progress=cb)
        )

    if "reverse-results" in st.session_state:
        _show_results(st.session_state["reverse-results"], "reverse", mime="application/octet-stream")


def main() -> None:
    st.set_page_config(page_title="一生足迹轨迹转换工具", layout="wide")
    st.title("一生足迹：轨迹转换 / CSV插值 / 合并 / 反转")

    t_convert, t_interp, t_merge, t_reverse = st.tabs(["轨迹转换", "CSV插值", "CSV合并", "轨迹反转"])
    with t_convert:
        _tab_convert()
    with t_interp:
        _tab_interpolate()
    with t_merge:
        _tab_merge()
    with t_reverse:
        _tab_reverse()

    st.caption("说明：所有处理均在本地完成；输出 CSV 表头为 dataTime,locType,longitude,latitude,...,altitude。")


if __name__ == "__main__":
    main()
