# ---------------- Axis labels ----------------
# "Jul 1, 2024", "Jul 2", ... "Jan 1, 2025", "Jan 2": the year is shown once per
# year, on the first point of that year, and nowhere else.

from collections.abc import Iterable

import pandas as pd


def _short(ts: pd.Timestamp) -> str:
    return f"{ts:%b} {ts.day}"


def format_labels(dates: Iterable) -> list[str]:
    seen_years: set[int] = set()
    labels = []
    for d in dates:
        ts = pd.Timestamp(d)
        if ts.year not in seen_years:
            seen_years.add(ts.year)
            labels.append(f"{_short(ts)}, {ts.year}")
        else:
            labels.append(_short(ts))
    return labels


def year_anchor_positions(dates: Iterable) -> list[int]:
    """Indices where format_labels injects the year."""
    seen_years: set[int] = set()
    anchors = []
    for i, d in enumerate(dates):
        year = pd.Timestamp(d).year
        if year not in seen_years:
            seen_years.add(year)
            anchors.append(i)
    return anchors
