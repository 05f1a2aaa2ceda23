# app.py — Solana vs Ethereum Comparison Dashboard
# Tabs: Real Economic Value, Transaction Fees, Application Revenue, DEX Volume,
#       Active Addresses, Transaction Count, Average Fee per Transaction

import logging
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd
import streamlit as st

from chain_dashboard.charts import comparison_chart, entity_chart
from chain_dashboard.metrics import ENTITIES, METRICS
from chain_dashboard.parsing import value_columns
from chain_dashboard.pipeline import MetricResult, run_all
from chain_dashboard.render import to_altair
from chain_dashboard.sources import SourceReader

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# ---------------- Page ----------------
st.set_page_config(page_title="Solana vs Ethereum Dashboard", page_icon="🟣", layout="wide")

# ---------------- Utils ----------------
def now_local() -> str:
    return datetime.now(timezone.utc).astimezone().strftime("%Y-%m-%d %H:%M")

def download_btn(df: pd.DataFrame, label: str, fname: str, key: str):
    if df is None or df.empty:
        return
    out = df.assign(date=df["date"].dt.strftime("%Y-%m-%d"))
    st.download_button(label, out.to_csv(index=False).encode("utf-8"),
                       file_name=fname, mime="text/csv", key=key)

def secret(name: str, default=None):
    # no secrets.toml is fine, everything has a default
    try:
        return st.secrets.get(name, default)
    except FileNotFoundError:
        return default

# ---- footer shown on all tabs ----
def render_footer():
    st.divider()
    c1, c2 = st.columns([1, 2])
    with c1:
        st.markdown("### Links")
        st.markdown(
            "- Solana: https://solana.com\n"
            "- Solana Explorer: https://explorer.solana.com\n"
            "- Ethereum: https://ethereum.org\n"
            "- Etherscan: https://etherscan.io\n"
            "- DeFiLlama: https://defillama.com\n"
        )
    with c2:
        st.markdown("### About this dashboard")
        st.markdown(
            "Side-by-side view of Solana and Ethereum activity: the value users pay for blockspace, "
            "fees, application revenue, DEX volume, active addresses and transaction counts.\n\n"
            "Each series is read from a daily CSV export, truncated at a fixed start date and, where noted, "
            "smoothed with a trailing 90-day average. Comparison charts put both chains on one axis "
            "(with a shared ceiling) unless the gap between them calls for one axis per chain."
        )

# ---------------- Config ----------------
DATA_ROOT = secret("DATA_ROOT") or str(Path(__file__).parent / "data")
HTTP_TIMEOUT = secret("HTTP_TIMEOUT")
MAX_WORKERS = int(secret("MAX_WORKERS", 8))

@st.cache_data(show_spinner=False)
def load_dashboard(data_root: str, timeout: float | None, max_workers: int) -> list[MetricResult]:
    reader = SourceReader(data_root, timeout=timeout)
    return run_all(METRICS, reader, max_workers=max_workers)

# ---------------- Sidebar ----------------
with st.sidebar:
    st.title("Solana vs Ethereum")
    st.caption("Daily on-chain metrics, two chains, one scale.")

    if st.button("🔄 Force refresh"):
        load_dashboard.clear()
        st.rerun()

    st.caption(f"Data: `{DATA_ROOT}`")
    st.caption(f"Last updated: {now_local()}")

# ---------------- Metric tab ----------------
def render_metric_tab(result: MetricResult):
    spec = result.spec
    st.subheader(spec.title)

    if not result.ok:
        st.warning(f"Could not load {spec.title.lower()} data: {result.error}")
        render_footer()
        return
    if result.empty:
        st.info(f"No {spec.title.lower()} data since {spec.cutoff:%b %d, %Y}.")
        render_footer()
        return

    # ---- KPIs (latest point per chain, first series) ----
    cols = st.columns(len(ENTITIES))
    for col, entity in zip(cols, ENTITIES):
        df = result.series.get(entity)
        latest = df[value_columns(df)[0]].iloc[-1] if df is not None and not df.empty else None
        col.metric(f"{entity} — {spec.label_for(0)}, latest ({spec.smoothing_label})", spec.tick.label(latest))

    # ---- One chart per chain ----
    cols = st.columns(len(ENTITIES))
    for col, entity in zip(cols, ENTITIES):
        df = result.series.get(entity)
        with col:
            if df is None or df.empty:
                st.info(f"No {entity} data for this metric.")
                continue
            st.altair_chart(to_altair(entity_chart(spec, entity, df)), use_container_width=True)
            download_btn(df, f"⬇️ Download {entity}", f"{spec.key}_{entity.lower()}.csv",
                         key=f"dl_{spec.key}_{entity}")

    # ---- Comparison ----
    if spec.comparison:
        st.markdown(f"### {spec.title} — Solana vs Ethereum")
        if spec.comparison == "dual":
            st.caption("One axis per chain (left: Solana, right: Ethereum).")
        else:
            st.caption("Both chains on a shared axis.")
        try:
            st.altair_chart(to_altair(comparison_chart(spec, result.series)), use_container_width=True)
        except Exception as e:
            logger.exception("Comparison chart failed for %s", spec.key)
            st.warning(f"Could not render comparison chart: {e}")

    with st.expander("Methodology"):
        st.markdown(
            f"{spec.methodology}\n\n"
            f"- Series start: **{spec.cutoff:%b %d, %Y}**\n"
            f"- Smoothing: **{spec.smoothing_label}**\n"
            f"- Units: **{spec.axis_title}**"
        )
    render_footer()

# ---------------- Layout ----------------
st.title("🟣 Solana vs Ethereum — Comparison Dashboard")

with st.spinner("Loading metrics..."):
    results = load_dashboard(DATA_ROOT, HTTP_TIMEOUT, MAX_WORKERS)

tabs = st.tabs([r.spec.title for r in results])
for tab, result in zip(tabs, results):
    with tab:
        render_metric_tab(result)
