# ---------------- Altair sink ----------------
# Chart description (chain_dashboard.charts) -> Altair chart for st.altair_chart.

import json
import math

import altair as alt
import pandas as pd

from chain_dashboard.metrics import TickFormat

TARGET_TICKS = 12


def to_frame(chart: dict) -> pd.DataFrame:
    """Long form: one row per (position, dataset) with a value."""
    rows = []
    for ds in chart["datasets"]:
        for i, v in enumerate(ds["data"]):
            if v is None:
                continue
            rows.append({
                "idx": i,
                "label": chart["labels"][i],
                "date": chart["dates"][i],
                "series": ds["label"],
                "axis": ds["axis"],
                "value": v,
            })
    return pd.DataFrame(rows, columns=["idx", "label", "date", "series", "axis", "value"])


def tick_positions(chart: dict, target: int = TARGET_TICKS) -> list[int]:
    """Evenly spaced ticks plus every point where a year label was injected."""
    n = len(chart["labels"])
    if n == 0:
        return []
    step = max(1, math.ceil(n / target))
    return sorted(set(range(0, n, step)) | set(chart.get("year_anchors", [])))


def _x(chart: dict) -> alt.X:
    n = len(chart["labels"])
    x_cfg = chart["options"]["scales"]["x"]
    return alt.X(
        "idx:Q",
        title=x_cfg.get("title"),
        scale=alt.Scale(domain=[0, max(n - 1, 1)], nice=False),
        axis=alt.Axis(
            values=tick_positions(chart),
            labelExpr=f"{json.dumps(chart['labels'])}[datum.value]",
            labelAngle=-45,
            gridColor=x_cfg.get("grid_color", alt.Undefined),
        ),
    )


def _y(axis_cfg: dict, default_tick: TickFormat) -> alt.Y:
    tick = axis_cfg.get("tick") or default_tick
    if axis_cfg.get("max") is not None:
        scale = alt.Scale(domain=[axis_cfg.get("min", 0), axis_cfg["max"]])
    else:
        scale = alt.Scale(zero=bool(axis_cfg.get("begin_at_zero", True)))
    return alt.Y(
        "value:Q",
        title=axis_cfg.get("title"),
        scale=scale,
        axis=alt.Axis(
            labelExpr=tick.vega_expr(),
            orient=axis_cfg.get("position", "left"),
            gridColor=axis_cfg.get("grid_color", alt.Undefined),
        ),
    )


def _layer(chart: dict, data: pd.DataFrame, datasets: list, y: alt.Y, tick: TickFormat):
    legend = chart["options"]["plugins"]["legend"]
    color = alt.Color(
        "series:N",
        scale=alt.Scale(domain=[d["label"] for d in datasets], range=[d["color"] for d in datasets]),
        legend=alt.Legend(orient=legend.get("position", "top"), title=None) if legend.get("display") else None,
    )
    tooltip = [
        alt.Tooltip("label:N", title="Date"),
        alt.Tooltip("series:N"),
        alt.Tooltip("value:Q", title="Value", format=tick.spec),
    ]
    base = alt.Chart(data).encode(x=_x(chart), y=y, color=color, tooltip=tooltip)

    if chart["type"] == "bar":
        return base.mark_bar(opacity=0.8)
    line = base.mark_line(strokeWidth=2, interpolate="monotone")
    if any(d["fill"] for d in datasets):
        area = base.mark_area(opacity=0.3, interpolate="monotone")
        return alt.layer(area, line)
    return line


def to_altair(chart: dict):
    opts = chart["options"]
    scales = opts["scales"]
    y_cfg = scales["y"]
    tick = y_cfg.get("tick") or TickFormat()
    data = to_frame(chart)

    layers = []
    for axis in ("y", "y1"):
        datasets = [d for d in chart["datasets"] if d["axis"] == axis]
        if not datasets:
            continue
        axis_cfg = scales.get(axis, y_cfg)
        layers.append(_layer(
            chart,
            data[data["axis"] == axis],
            datasets,
            _y(axis_cfg, tick),
            axis_cfg.get("tick") or tick,
        ))

    if not layers:
        out = alt.Chart(data).mark_line()
    elif len(layers) == 1:
        out = layers[0]
    else:
        out = alt.layer(*layers).resolve_scale(y="independent", color="independent")

    title = opts["plugins"]["title"]
    return out.properties(
        height=opts.get("height", 320),
        title=title.get("text", "") if title.get("display") else "",
    )
