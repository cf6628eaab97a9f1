from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Sequence

import numpy as np
import pandas as pd

from scrollstory.config.model import DatasetConfig, DatasetFields, HistogramDomain
from scrollstory.core.dataset import (
    DerivedSeries,
    HistogramBin,
    PreprocessedDataset,
    RawDataset,
    SeriesPoint,
    bound_key,
    histogram_series,
)

logger = logging.getLogger(__name__)

__all__ = [
    "preprocess",
    "preprocess_all",
    "get_words",
    "get_filler_words",
    "group_by_key",
    "build_histogram",
    "histogram_series",
]

_TRUTHY = {"1", "true", "yes", "y", "t"}


# -----------------------------------------------------------------------------
# Coercion
# -----------------------------------------------------------------------------
def coerce_numeric(values: pd.Series) -> pd.Series:
    """Numbers stay numbers, numeric strings are parsed, everything else becomes 0."""
    return pd.to_numeric(values, errors="coerce").fillna(0).astype(float)


def _is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, np.number)):
        return value == 1
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY


def _frame(rows: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> pd.DataFrame:
    df = pd.DataFrame.from_records(list(rows)) if len(rows) else pd.DataFrame()
    for col in columns:
        if col not in df.columns:
            df[col] = None
    return df


# -----------------------------------------------------------------------------
# Record-level helpers
# -----------------------------------------------------------------------------
def get_words(rows: Sequence[Mapping[str, Any]], fields: DatasetFields) -> pd.DataFrame:
    """
    One typed row per spoken word.

    Columns: word (str), filler (bool), time (seconds, float), minute (int).
    The input rows are left untouched.
    """
    raw = _frame(rows, [fields.category, fields.flag, fields.time])
    time = coerce_numeric(raw[fields.time])
    return pd.DataFrame(
        {
            "word": raw[fields.category].fillna("").astype(str),
            "filler": raw[fields.flag].map(_is_truthy).astype(bool),
            "time": time,
            "minute": np.floor(time / 60).astype(int),
        }
    )


def get_filler_words(words: pd.DataFrame) -> pd.DataFrame:
    return words[words["filler"]]


def group_by_key(frame: pd.DataFrame, column: str, name: str) -> DerivedSeries:
    """
    Count rows per key, largest first. Equal counts keep first-seen order.
    """
    if frame.empty:
        return DerivedSeries(name=name)
    counts = frame.groupby(column, sort=False).size()
    counts = counts.sort_values(ascending=False, kind="stable")
    return DerivedSeries(
        name=name,
        points=tuple(SeriesPoint(str(k), float(v)) for k, v in counts.items()),
    )


def _bin_indices(values: pd.Series, domain: HistogramDomain) -> tuple[np.ndarray, np.ndarray]:
    """Bucket index for every in-domain value, plus the mask that selected them."""
    arr = values.to_numpy(dtype=float)
    mask = (arr >= domain.lower) & (arr < domain.upper)
    idx = np.floor((arr[mask] - domain.lower) / domain.width).astype(int)
    return np.minimum(idx, domain.n_bins - 1), mask


def _bin_edges(domain: HistogramDomain) -> List[float]:
    edges = [domain.lower + k * domain.width for k in range(domain.n_bins + 1)]
    edges[-1] = min(edges[-1], domain.upper)
    return edges


def build_histogram(values: pd.Series, domain: HistogramDomain) -> List[HistogramBin]:
    """
    Partition values into fixed-width bins over [lower, upper).

    Always returns every bin of the domain; values outside it are dropped
    rather than clipped into the edge bins.
    """
    idx, _ = _bin_indices(values, domain)
    counts = np.bincount(idx, minlength=domain.n_bins)
    edges = _bin_edges(domain)
    return [
        HistogramBin(lower_bound=edges[k], upper_bound=edges[k + 1], length=int(counts[k]))
        for k in range(domain.n_bins)
    ]


# -----------------------------------------------------------------------------
# Per-kind pipelines
# -----------------------------------------------------------------------------
def _preprocess_words(raw: RawDataset, cfg: DatasetConfig) -> PreprocessedDataset:
    words = get_words(raw.rows, cfg.fields)
    fillers = get_filler_words(words)

    domain = cfg.domain
    if domain.field in words.columns:
        values = fillers[domain.field]
    else:
        values = coerce_numeric(_frame(raw.rows, [domain.field])[domain.field])[words["filler"].to_numpy()]

    return PreprocessedDataset(
        name=cfg.name,
        series={"filler_counts": group_by_key(fillers, "word", "filler_counts")},
        histograms={"filler_minutes": build_histogram(values, domain)},
    )


def _preprocess_frequency(raw: RawDataset, cfg: DatasetConfig) -> PreprocessedDataset:
    """
    Per-year frequency over the configured year band.

    Every dataset of this kind covers the whole band (missing years are 0,
    duplicate years are summed) so switching speakers only ever updates bars.
    """
    fields = cfg.fields
    domain = cfg.domain
    df = _frame(raw.rows, [fields.key, fields.value])
    keys = coerce_numeric(df[fields.key])
    freq = coerce_numeric(df[fields.value]).to_numpy()

    idx, mask = _bin_indices(keys, domain)
    totals = np.bincount(idx, weights=freq[mask], minlength=domain.n_bins)
    edges = _bin_edges(domain)

    series = DerivedSeries(
        name="frequency",
        points=tuple(
            SeriesPoint(bound_key(edges[k]), float(totals[k])) for k in range(domain.n_bins)
        ),
    )
    return PreprocessedDataset(name=cfg.name, series={"frequency": series})


def _preprocess_pageviews(raw: RawDataset, cfg: DatasetConfig) -> PreprocessedDataset:
    fields = cfg.fields
    df = _frame(raw.rows, [fields.key, fields.value])
    if df.empty:
        return PreprocessedDataset(name=cfg.name, series={"pageviews": DerivedSeries(name="pageviews")})

    df = pd.DataFrame(
        {
            "key": df[fields.key].fillna("").astype(str),
            "value": coerce_numeric(df[fields.value]),
        }
    )
    totals = df.groupby("key", sort=False)["value"].sum()
    series = DerivedSeries(
        name="pageviews",
        points=tuple(SeriesPoint(k, float(v)) for k, v in totals.items()),
    )
    return PreprocessedDataset(name=cfg.name, series={"pageviews": series})


_PIPELINES: Dict[str, Callable[[RawDataset, DatasetConfig], PreprocessedDataset]] = {
    "words": _preprocess_words,
    "frequency": _preprocess_frequency,
    "pageviews": _preprocess_pageviews,
}


def preprocess(raw: RawDataset, cfg: DatasetConfig) -> PreprocessedDataset:
    """
    Derive every series and histogram for one dataset.

    Pure: the same rows and config always give the same result, and nothing
    is cached between calls.
    """
    try:
        pipeline = _PIPELINES[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown dataset kind '{cfg.kind}'")

    result = pipeline(raw, cfg)
    logger.debug(
        "Dataset preprocessed",
        extra={
            "dataset": cfg.name,
            "kind": cfg.kind,
            "n_rows": len(raw.rows),
            "labels": result.labels(),
        },
    )
    return result


def preprocess_all(
        raw_by_name: Mapping[str, RawDataset],
        cfg_by_name: Mapping[str, DatasetConfig],
) -> Dict[str, PreprocessedDataset]:
    return {
        name: preprocess(raw_by_name.get(name, RawDataset(name=name)), cfg)
        for name, cfg in cfg_by_name.items()
    }
