# ---------------- Metric catalog ----------------
# One MetricSpec per dashboard tab. Resources live at <key>/<entity>.csv under the data root.

import re
from dataclasses import dataclass, field
from datetime import date

from chain_dashboard.parsing import (
    DATE_VALUE,
    VALUE,
    TIMESTAMP_DATE_SUMMED,
    TIMESTAMP_DATE_VALUE,
    CsvLayout,
)
from chain_dashboard.transforms import DEFAULT_WINDOW

SOLANA = "Solana"
ETHEREUM = "Ethereum"
ENTITIES = (SOLANA, ETHEREUM)

# ---------------- Palette ----------------
COLORS = {
    SOLANA: "#9945ff",
    ETHEREUM: "#627eea",
}
COLORS_SOFT = {
    SOLANA: "rgba(153, 69, 255, 0.3)",
    ETHEREUM: "rgba(98, 126, 234, 0.3)",
}
# second series on a chain (e.g. average next to median)
COLORS_ALT = {
    SOLANA: "#6a2c93",
    ETHEREUM: "#4a5cb8",
}
COLORS_ALT_SOFT = {
    SOLANA: "rgba(106, 44, 147, 0.3)",
    ETHEREUM: "rgba(74, 92, 184, 0.3)",
}


def series_colors(entity: str, i: int) -> tuple[str, str]:
    if i % 2:
        return COLORS_ALT[entity], COLORS_ALT_SOFT[entity]
    return COLORS[entity], COLORS_SOFT[entity]


DEFAULT_CUTOFF = date(2024, 7, 1)

THOUSANDS = 1e3
MILLIONS = 1e6
BILLIONS = 1e9


@dataclass(frozen=True)
class TickFormat:
    prefix: str = ""
    spec: str = ",.1f"   # d3 / python format spec
    suffix: str = ""

    def label(self, value) -> str:
        if value is None:
            return "—"
        return f"{self.prefix}{format(float(value), self.spec)}{self.suffix}"

    def vega_expr(self) -> str:
        return f"'{self.prefix}' + format(datum.value, '{self.spec}') + '{self.suffix}'"

    @property
    def decimals(self) -> int:
        m = re.search(r"\.(\d+)", self.spec)
        return int(m.group(1)) if m else 0


@dataclass(frozen=True)
class MetricSpec:
    key: str
    title: str
    axis_title: str
    series_label: str
    series_labels: tuple[str, ...] = ()   # one per layout.names column
    layout: CsvLayout = DATE_VALUE
    cutoff: date = DEFAULT_CUTOFF
    window: int | None = DEFAULT_WINDOW
    divisor: float = MILLIONS
    tick: TickFormat = field(default_factory=TickFormat)
    kind: str = "line"              # line | bar
    fill: bool = False
    comparison: str | None = None   # None | "shared" | "dual"
    methodology: str = ""

    def resources(self) -> dict[str, str]:
        return {entity: f"{self.key}/{entity.lower()}.csv" for entity in ENTITIES}

    def label_for(self, i: int) -> str:
        if i < len(self.series_labels):
            return self.series_labels[i]
        return self.series_label

    @property
    def smoothing_label(self) -> str:
        return f"{self.window}-day avg" if self.window and self.window > 1 else "daily"


METRICS = (
    MetricSpec(
        key="rev",
        title="Real Economic Value",
        axis_title="Revenue ($ Millions)",
        series_label="Real Economic Value ($M)",
        divisor=MILLIONS,
        tick=TickFormat("$", ",.1f", "M"),
        fill=True,
        comparison="shared",
        methodology=(
            "Real Economic Value (REV) is the total a user pays to get a transaction included: "
            "base and priority fees plus MEV tips paid to validators. Daily values are smoothed with "
            "a trailing 90-day average."
        ),
    ),
    MetricSpec(
        key="fees",
        title="Transaction Fees",
        axis_title="Fee per Transaction ($)",
        series_label="Median Fee ($)",
        series_labels=("Median Fee ($)", "Average Fee ($)"),
        layout=CsvLayout(date_column=0, value_columns=(1, 2), names=(VALUE, "average")),
        divisor=1,
        tick=TickFormat("$", ",.4f", ""),
        methodology=(
            "Median and average fee paid per successful transaction, in USD, each smoothed with a "
            "trailing 90-day average. The average is pulled up by a small number of very large fees."
        ),
    ),
    MetricSpec(
        key="app_revenue",
        title="Application Revenue",
        axis_title="Revenue ($ Millions)",
        series_label="App Revenue ($M)",
        window=None,
        divisor=MILLIONS,
        tick=TickFormat("$", ",.1f", "M"),
        kind="bar",
        comparison="shared",
        methodology="Revenue retained by applications built on each chain, per day, as reported by DeFiLlama.",
    ),
    MetricSpec(
        key="dex_volume",
        title="DEX Volume",
        axis_title="Volume ($ Billions)",
        series_label="DEX Volume ($B)",
        layout=TIMESTAMP_DATE_SUMMED,
        divisor=BILLIONS,
        tick=TickFormat("$", ",.2f", "B"),
        fill=True,
        comparison="dual",
        methodology=(
            "Daily spot volume summed across the tracked DEXs on each chain (one column per venue), "
            "smoothed with a trailing 90-day average. The comparison uses one axis per chain."
        ),
    ),
    MetricSpec(
        key="active_addresses",
        title="Active Addresses",
        axis_title="Active Addresses (Thousands)",
        series_label="Active Addresses (K)",
        layout=TIMESTAMP_DATE_VALUE,
        window=None,
        divisor=THOUSANDS,
        tick=TickFormat("", ",.0f", "K"),
        kind="bar",
        methodology="Distinct addresses that signed at least one successful transaction on the day.",
    ),
    MetricSpec(
        key="transactions",
        title="Transaction Count",
        axis_title="Daily Transactions (Millions)",
        series_label="Daily Transactions (M)",
        divisor=MILLIONS,
        tick=TickFormat("", ",.1f", "M"),
        fill=True,
        methodology="Successful transactions per day, smoothed with a trailing 90-day average.",
    ),
    MetricSpec(
        key="avg_fee",
        title="Average Fee per Unit",
        axis_title="Fee per Million Units ($)",
        series_label="Fee per 1M Units ($)",
        divisor=1,
        tick=TickFormat("$", ",.2f", ""),
        comparison="shared",
        methodology=(
            "Total daily fees divided by the execution units consumed that day (compute units on "
            "Solana, gas on Ethereum), in USD per million units."
        ),
    ),
)

METRICS_BY_KEY = {m.key: m for m in METRICS}
