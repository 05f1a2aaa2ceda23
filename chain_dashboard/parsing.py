# ---------------- Row parser ----------------
# Raw CSV text -> DataFrame[date, value...]. Malformed rows are dropped, never raised.

import csv
import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

DATE = "date"
VALUE = "value"

# currency symbol, thousands separators, quotes, whitespace
_JUNK = r"[$,\"'\s]"
_EPOCH = r"\d{9,11}(?:\.\d+)?"
_ISO_DAY = r"^(\d{4}-\d{2}-\d{2})"


@dataclass(frozen=True)
class CsvLayout:
    """Where the date and the value(s) live in a row.

    value_columns=None means "every column after the date", summed.
    names: one output column per value column instead of a single summed "value".
    """
    date_column: int = 0
    value_columns: tuple[int, ...] | None = (1,)
    names: tuple[str, ...] | None = None

    @property
    def single_value(self) -> int | None:
        if self.names is None and self.value_columns is not None and len(self.value_columns) == 1:
            return self.value_columns[0]
        return None


DATE_VALUE = CsvLayout(date_column=0, value_columns=(1,))
TIMESTAMP_DATE_VALUE = CsvLayout(date_column=1, value_columns=(2,))
TIMESTAMP_DATE_SUMMED = CsvLayout(date_column=1, value_columns=None)


def value_columns(df: pd.DataFrame) -> list[str]:
    return [c for c in df.columns if c != DATE]


def empty_series(names=(VALUE,)) -> pd.DataFrame:
    cols = {DATE: pd.Series(dtype="datetime64[ns]")}
    cols.update({name: pd.Series(dtype="float64") for name in names})
    return pd.DataFrame(cols)


def clean_values(raw: pd.Series) -> pd.Series:
    """'$1,234.50' -> 1234.5; anything non-numeric (or inf) -> NaN."""
    s = raw.fillna("").astype(str).str.replace(_JUNK, "", regex=True)
    out = pd.to_numeric(s, errors="coerce").astype("float64")
    return out.where(np.isfinite(out))


def parse_dates(raw: pd.Series) -> pd.Series:
    """
    Dates -> naive datetime64 at midnight (NaT if unparseable).
    - 'YYYY-MM-DD...' keeps its own calendar day, whatever offset follows.
    - unix seconds are read as UTC.
    """
    s = raw.fillna("").astype(str).str.strip().str.strip("\"'")
    is_epoch = s.str.fullmatch(_EPOCH)
    iso_day = s.str.extract(_ISO_DAY, expand=False)
    has_day = iso_day.notna() & ~is_epoch
    out = pd.Series(pd.NaT, index=s.index, dtype="datetime64[ns]")
    if is_epoch.any():
        out[is_epoch] = pd.to_datetime(s[is_epoch].astype("float64"), unit="s")
    if has_day.any():
        out[has_day] = pd.to_datetime(iso_day[has_day], format="%Y-%m-%d", errors="coerce")
    rest = ~is_epoch & ~has_day
    if rest.any():
        parsed = pd.to_datetime(s[rest], errors="coerce", format="mixed", utc=True)
        out[rest] = parsed.dt.tz_localize(None)
    return out.dt.normalize()


def split_rows(text: str) -> tuple[list[str], list[list[str]]]:
    """
    Header and data rows, read one line at a time so a broken row can't swallow the rest.
    Blank lines and lines with an unbalanced quote are dropped.
    """
    if text is None:
        return [], []
    lines = [ln for ln in text.lstrip("\ufeff").splitlines() if ln.strip()]
    if not lines:
        return [], []

    header = next(csv.reader([lines[0]], skipinitialspace=True))
    rows = []
    for line in lines[1:]:
        if line.count('"') % 2:
            continue
        try:
            rows.append(next(csv.reader([line], skipinitialspace=True)))
        except csv.Error:
            continue
    return header, rows


def fit_row(fields: list[str], width: int, layout: CsvLayout) -> list[str] | None:
    """
    Pad short rows; for single-value layouts glue an unquoted '$1,234' back into one cell.
    Other over-wide rows -> None.
    """
    extra = len(fields) - width
    if extra <= 0:
        return fields + [""] * -extra
    v = layout.single_value
    if v is None or v >= width:
        return None
    return fields[:v] + [",".join(fields[v:v + extra + 1])] + fields[v + extra + 1:]


def parse_series(text: str, layout: CsvLayout = DATE_VALUE) -> pd.DataFrame:
    names = layout.names or (VALUE,)
    header, raw_rows = split_rows(text)
    width = len(header)
    if layout.date_column >= width:
        return empty_series(names)

    rows = [r for r in (fit_row(f, width, layout) for f in raw_rows) if r is not None]
    if not rows:
        return empty_series(names)
    cells = pd.DataFrame(rows, columns=range(width), dtype=object)

    if layout.value_columns is None:
        value_idx = list(range(layout.date_column + 1, width))
    else:
        value_idx = list(layout.value_columns)
    if not value_idx or any(i >= width for i in value_idx):
        return empty_series(names)

    df = pd.DataFrame({DATE: parse_dates(cells[layout.date_column])})
    values = cells[value_idx].apply(clean_values)
    if layout.names:
        for name, i in zip(layout.names, value_idx):
            df[name] = values[i]
    elif len(value_idx) == 1:
        df[VALUE] = values[value_idx[0]]
    else:
        df[VALUE] = values.sum(axis=1, min_count=1)

    df = df.dropna(subset=[DATE, *names])
    df = df.sort_values(DATE, kind="mergesort")
    # one point per day; a later row for the same day wins
    df = df.drop_duplicates(DATE, keep="last").reset_index(drop=True)

    dropped = len(raw_rows) - len(df)
    if dropped:
        logger.info("Dropped %d of %d rows (malformed or duplicate dates)", dropped, len(raw_rows))
    return df.astype({name: "float64" for name in names})
