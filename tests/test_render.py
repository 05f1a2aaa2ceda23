import pandas as pd

from chain_dashboard.charts import comparison_chart, entity_chart
from chain_dashboard.metrics import ETHEREUM, METRICS_BY_KEY, SOLANA, TickFormat
from chain_dashboard.render import tick_positions, to_altair, to_frame


def series(start, values):
    return pd.DataFrame({
        "date": pd.date_range(start, periods=len(values), freq="D"),
        "value": [float(v) for v in values],
    })


def test_to_frame_drops_gaps():
    chart = comparison_chart(METRICS_BY_KEY["rev"], {
        SOLANA: series("2024-07-01", [1, 2]),
        ETHEREUM: series("2024-07-02", [3]),
    })
    df = to_frame(chart)
    assert len(df) == 3
    assert df[df["series"] == ETHEREUM]["idx"].tolist() == [1]
    assert df[df["series"] == ETHEREUM]["label"].tolist() == ["Jul 2"]


def test_tick_positions_include_year_anchors():
    chart = entity_chart(METRICS_BY_KEY["rev"], SOLANA, series("2024-07-01", range(300)))
    ticks = tick_positions(chart, target=10)
    assert ticks[0] == 0
    assert 184 in ticks  # Jan 1, 2025
    assert ticks == sorted(set(ticks))
    assert tick_positions({"labels": []}) == []


def test_tick_format():
    tick = TickFormat("$", ",.1f", "M")
    assert tick.label(1234.56) == "$1,234.6M"
    assert tick.label(None) == "—"
    assert tick.vega_expr() == "'$' + format(datum.value, ',.1f') + 'M'"


def test_to_altair_builds_valid_specs():
    sol = series("2024-12-01", range(1, 61))
    eth = series("2024-12-15", range(100, 140))
    for key in ("rev", "app_revenue", "dex_volume"):
        spec = METRICS_BY_KEY[key]
        for chart in (entity_chart(spec, SOLANA, sol), comparison_chart(spec, {SOLANA: sol, ETHEREUM: eth})):
            out = to_altair(chart).to_dict()
            assert out["height"] == 320
            assert out["title"] == chart["title"]
