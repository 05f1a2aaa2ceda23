# ---------------- Metric pipeline ----------------
# read -> parse -> cutoff -> rolling mean -> scale, once per entity, per metric.

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import pandas as pd

from chain_dashboard.metrics import MetricSpec
from chain_dashboard.parsing import parse_series
from chain_dashboard.sources import SourceError, SourceReader
from chain_dashboard.transforms import filter_since, rolling_mean, scale

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricResult:
    spec: MetricSpec
    series: dict[str, pd.DataFrame] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def empty(self) -> bool:
        return all(df.empty for df in self.series.values())


def prepare(text: str, spec: MetricSpec) -> pd.DataFrame:
    df = parse_series(text, spec.layout)
    df = filter_since(df, spec.cutoff)
    df = rolling_mean(df, spec.window)
    return scale(df, spec.divisor)


def run_metric(spec: MetricSpec, reader: SourceReader) -> MetricResult:
    try:
        texts = reader.read_many(spec.resources())
        series = {entity: prepare(text, spec) for entity, text in texts.items()}
    except SourceError as e:
        logger.warning("Error loading %s data: %s", spec.key, e)
        return MetricResult(spec, error=str(e))
    except Exception as e:
        logger.exception("Failed to prepare %s data", spec.key)
        return MetricResult(spec, error=f"{type(e).__name__}: {e}")

    logger.info(
        "Loaded %s: %s", spec.key,
        ", ".join(f"{entity}={len(df)} pts" for entity, df in series.items()),
    )
    return MetricResult(spec, series=series)


def run_all(specs, reader: SourceReader, max_workers: int = 8) -> list[MetricResult]:
    """Every metric concurrently; results in the order of `specs`."""
    specs = list(specs)
    if not specs:
        return []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(specs)))) as pool:
        return list(pool.map(lambda s: run_metric(s, reader), specs))
