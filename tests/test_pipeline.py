import logging
from dataclasses import replace
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from chain_dashboard.metrics import ETHEREUM, METRICS, METRICS_BY_KEY, SOLANA, MetricSpec
from chain_dashboard.parsing import TIMESTAMP_DATE_SUMMED
from chain_dashboard.pipeline import run_all, run_metric
from chain_dashboard.sources import SourceReader

DATA_ROOT = Path(__file__).resolve().parent.parent / "data"


def write_csv(root, key, entity, rows, header="date,value"):
    folder = root / key
    folder.mkdir(parents=True, exist_ok=True)
    (folder / f"{entity.lower()}.csv").write_text("\n".join([header, *rows]) + "\n", encoding="utf-8")


def daily_rows(start, values):
    days = pd.date_range(start, periods=len(values), freq="D")
    return [f"{d:%Y-%m-%d},{v}" for d, v in zip(days, values)]


@pytest.fixture
def spec():
    return MetricSpec(
        key="rev",
        title="Real Economic Value",
        axis_title="Revenue ($ Millions)",
        series_label="REV ($M)",
        cutoff=date(2024, 7, 1),
        window=3,
        divisor=1e6,
    )


def test_run_metric_full_pipeline(tmp_path, spec):
    write_csv(tmp_path, "rev", SOLANA, daily_rows("2024-06-29", [9e6, 9e6, 1e6, 2e6, 3e6, 4e6]))
    write_csv(tmp_path, "rev", ETHEREUM, daily_rows("2024-07-01", [5e6, 5e6, 5e6]))

    result = run_metric(spec, SourceReader(tmp_path))

    assert result.ok and not result.empty
    sol = result.series[SOLANA]
    # rows before the cutoff never reach the rolling mean
    assert sol["value"].tolist() == pytest.approx([2.0, 3.0])
    assert sol["date"].dt.strftime("%Y-%m-%d").tolist() == ["2024-07-03", "2024-07-04"]
    assert result.series[ETHEREUM]["value"].tolist() == pytest.approx([5.0])


def test_run_metric_short_series_passes_through(tmp_path, spec):
    write_csv(tmp_path, "rev", SOLANA, daily_rows("2024-07-01", [1e6, 3e6]))
    write_csv(tmp_path, "rev", ETHEREUM, daily_rows("2024-07-01", [2e6]))

    result = run_metric(spec, SourceReader(tmp_path))
    assert result.series[SOLANA]["value"].tolist() == pytest.approx([1.0, 3.0])
    assert result.series[ETHEREUM]["value"].tolist() == pytest.approx([2.0])


def test_run_metric_missing_resource(tmp_path, spec, caplog):
    write_csv(tmp_path, "rev", SOLANA, daily_rows("2024-07-01", [1, 2, 3]))

    with caplog.at_level(logging.WARNING, logger="chain_dashboard.pipeline"):
        result = run_metric(spec, SourceReader(tmp_path))

    assert not result.ok
    assert result.series == {}
    assert result.empty
    assert "ethereum.csv" in result.error
    assert "Error loading rev data" in caplog.text


def test_run_metric_unexpected_failure_is_contained(spec, caplog):
    class BrokenReader:
        def read_many(self, locations):
            raise RuntimeError("boom")

    with caplog.at_level(logging.ERROR, logger="chain_dashboard.pipeline"):
        result = run_metric(spec, BrokenReader())

    assert result.error == "RuntimeError: boom"
    assert "Failed to prepare rev data" in caplog.text


def test_run_all_isolates_failures(tmp_path, spec):
    write_csv(tmp_path, "rev", SOLANA, daily_rows("2024-07-01", [1e6] * 4))
    write_csv(tmp_path, "rev", ETHEREUM, daily_rows("2024-07-01", [2e6] * 4))
    missing = MetricSpec(key="fees", title="Fees", axis_title="", series_label="")

    results = run_all([missing, spec], SourceReader(tmp_path), max_workers=2)

    assert [r.spec.key for r in results] == ["fees", "rev"]
    assert not results[0].ok
    assert results[1].ok
    assert results[1].series[SOLANA]["value"].tolist() == pytest.approx([1.0, 1.0])


def test_summed_layout_through_pipeline(tmp_path):
    spec = MetricSpec(
        key="dex_volume", title="DEX Volume", axis_title="", series_label="",
        layout=TIMESTAMP_DATE_SUMMED, window=None, divisor=1e9,
    )
    header = "timestamp,date,a,b"
    write_csv(tmp_path, "dex_volume", SOLANA, ["1,2024-07-01,1000000000,500000000"], header=header)
    write_csv(tmp_path, "dex_volume", ETHEREUM, ["1,2024-06-01,1,1", "2,2024-07-01,2000000000,0"], header=header)

    result = run_metric(spec, SourceReader(tmp_path))
    assert result.series[SOLANA]["value"].tolist() == pytest.approx([1.5])
    assert result.series[ETHEREUM]["value"].tolist() == pytest.approx([2.0])


def test_run_all_empty():
    assert run_all([], SourceReader()) == []


def test_bundled_sample_data_loads():
    results = run_all(METRICS, SourceReader(DATA_ROOT))
    for result in results:
        assert result.ok, result.error
        for entity, df in result.series.items():
            assert not df.empty, (result.spec.key, entity)
            assert (df["date"] >= pd.Timestamp(result.spec.cutoff)).all()
            assert df["date"].is_monotonic_increasing


def test_fee_series_through_pipeline(tmp_path):
    fees = METRICS_BY_KEY["fees"]
    header = "date,median_fee_usd,average_fee_usd"
    rows = [f"{d:%Y-%m-%d},{m},{a}" for d, m, a in zip(
        pd.date_range("2024-07-01", periods=3, freq="D"), [1, 2, 3], [10, 20, 30],
    )]
    write_csv(tmp_path, "fees", SOLANA, rows, header=header)
    write_csv(tmp_path, "fees", ETHEREUM, rows[:1], header=header)

    result = run_metric(replace(fees, window=2), SourceReader(tmp_path))
    sol = result.series[SOLANA]
    assert sol["value"].tolist() == pytest.approx([1.5, 2.5])
    assert sol["average"].tolist() == pytest.approx([15.0, 25.0])
    assert result.series[ETHEREUM]["average"].tolist() == pytest.approx([10.0])
