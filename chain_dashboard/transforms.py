# ---------------- Series transforms ----------------
# Date cutoff, trailing rolling mean, unit scaling. All return new frames.

from datetime import date

import pandas as pd

from chain_dashboard.parsing import value_columns

DEFAULT_WINDOW = 90


def filter_since(df: pd.DataFrame, cutoff: date) -> pd.DataFrame:
    if df is None or df.empty:
        return df
    keep = df["date"] >= pd.Timestamp(cutoff)
    return df.loc[keep].reset_index(drop=True)


def rolling_mean(df: pd.DataFrame, window: int | None = DEFAULT_WINDOW) -> pd.DataFrame:
    """
    Trailing `window`-point mean, one output point per full window.
    - Output date is the date of the window's last point.
    - Fewer than `window` points (or window None/1): input returned unchanged.
    """
    if window is None:
        return df
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")
    if df is None or window == 1 or len(df) < window:
        return df

    out = df.copy()
    cols = value_columns(out)
    out[cols] = out[cols].rolling(window=window, min_periods=window).mean()
    return out.iloc[window - 1:].reset_index(drop=True)


def scale(df: pd.DataFrame, divisor: float) -> pd.DataFrame:
    if divisor == 0:
        raise ValueError("divisor must be non-zero")
    if df is None or df.empty or divisor == 1:
        return df
    out = df.copy()
    cols = value_columns(out)
    out[cols] = out[cols] / divisor
    return out
