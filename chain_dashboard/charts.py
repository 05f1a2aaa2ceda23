# ---------------- Chart assembly ----------------
# Prepared series -> declarative chart description:
#   {type, title, labels, dates, datasets[{label, data, color, background, fill, axis}],
#    options{scales, plugins}}
# The renderer (chain_dashboard.render) turns it into an Altair chart.

import math
from collections.abc import Mapping
from types import MappingProxyType

import numpy as np
import pandas as pd

from chain_dashboard.labels import format_labels, year_anchor_positions
from chain_dashboard.metrics import MetricSpec, series_colors
from chain_dashboard.parsing import value_columns

AXIS_PADDING = 1.1


def freeze(obj):
    if isinstance(obj, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in obj.items()})
    return obj


def merge_config(base: Mapping, overrides: Mapping | None = None) -> dict:
    """Deep merge into a new dict; neither argument is touched."""
    out = {k: merge_config(v) if isinstance(v, Mapping) else v for k, v in base.items()}
    for k, v in (overrides or {}).items():
        if isinstance(v, Mapping) and isinstance(out.get(k), dict):
            out[k] = merge_config(out[k], v)
        elif isinstance(v, Mapping):
            out[k] = merge_config(v)
        else:
            out[k] = v
    return out


BASE_CONFIG = freeze({
    "responsive": True,
    "height": 320,
    "plugins": {
        "legend": {"display": True, "position": "top"},
        "title": {"display": False, "text": ""},
    },
    "scales": {
        "y": {"begin_at_zero": True, "grid_color": "rgba(0,0,0,0.1)"},
        "x": {"grid_color": "rgba(0,0,0,0.1)", "title": "Date"},
    },
})


def shared_axis_max(*series, decimals: int = 0) -> float | None:
    """
    max across every series * 1.1, rounded up to the tick precision (`decimals` places).
    None when there is nothing positive to show.
    """
    values = [
        float(v) for s in series if s is not None for v in s
        if v is not None and not pd.isna(v)
    ]
    if not values:
        return None
    peak = float(np.max(values))
    if peak <= 0:
        return None
    if decimals <= 0:
        return math.ceil(peak * AXIS_PADDING)
    step = 10 ** -decimals
    # inner round() drops float noise (5.0000000001 steps is 5, not 6)
    return round(math.ceil(round(peak * AXIS_PADDING / step, 9)) * step, decimals)


def _as_list(values) -> list:
    return [None if pd.isna(v) else float(v) for v in values]


def _dataset(spec: MetricSpec, entity: str, label: str, data: list,
             axis: str = "y", series: int = 0) -> dict:
    color, background = series_colors(entity, series)
    return {
        "label": label,
        "entity": entity,
        "data": data,
        "color": color,
        "background": background,
        "fill": spec.fill,
        "axis": axis,
    }


def _frame(spec: MetricSpec, title: str, dates, datasets: list, overrides: dict) -> dict:
    dates = [pd.Timestamp(d) for d in dates]
    return {
        "type": spec.kind,
        "title": title,
        "labels": format_labels(dates),
        "year_anchors": year_anchor_positions(dates),
        "dates": [d.date().isoformat() for d in dates],
        "datasets": datasets,
        "options": merge_config(BASE_CONFIG, merge_config(
            {
                "plugins": {"title": {"display": True, "text": title}},
                "scales": {"y": {"title": spec.axis_title, "tick": spec.tick}},
            },
            overrides,
        )),
    }


def entity_chart(spec: MetricSpec, entity: str, df: pd.DataFrame) -> dict:
    title = f"{entity} - {spec.title}"
    datasets = [
        _dataset(spec, entity, spec.label_for(i), _as_list(df[col]), series=i)
        for i, col in enumerate(value_columns(df))
    ]
    return _frame(spec, title, df["date"], datasets, {})


def align(series: Mapping[str, pd.DataFrame]) -> pd.DataFrame:
    """
    Entities side by side on the union of their dates (NaN where an entity has no point).
    Only the first value column of each frame is compared.
    """
    cols = []
    for entity, df in series.items():
        s = df.set_index("date")[value_columns(df)[0]]
        cols.append(s[~s.index.duplicated(keep="last")].rename(entity))
    if not cols:
        return pd.DataFrame()
    return pd.concat(cols, axis=1).sort_index()


def comparison_chart(spec: MetricSpec, series: Mapping[str, pd.DataFrame]) -> dict:
    wide = align(series)
    entities = list(wide.columns)
    dual = spec.comparison == "dual"
    title = f"{spec.title} Comparison"

    datasets = []
    for i, entity in enumerate(entities):
        axis = "y1" if dual and i > 0 else "y"
        datasets.append(_dataset(spec, entity, entity, _as_list(wide[entity]), axis=axis))

    if dual and len(entities) > 1:
        overrides = {"scales": {
            "y": {"title": f"{entities[0]} - {spec.axis_title}", "position": "left"},
            "y1": {
                "title": f"{entities[1]} - {spec.axis_title}",
                "position": "right",
                "tick": spec.tick,
                "begin_at_zero": True,
            },
        }}
    else:
        overrides = {"scales": {"y": {
            "min": 0,
            "max": shared_axis_max(*(d["data"] for d in datasets), decimals=spec.tick.decimals),
        }}}
    return _frame(spec, title, wide.index, datasets, overrides)
