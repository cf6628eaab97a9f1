from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Sequence, Tuple


@dataclass(frozen=True)
class RawDataset:
    """
    Rows handed over by a supplier. A failed fetch is an empty RawDataset,
    never an exception.
    """
    name: str
    rows: Sequence[Mapping[str, Any]] = ()
    meta: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return len(self.rows) == 0


@dataclass(frozen=True)
class SeriesPoint:
    key: str
    value: float


@dataclass(frozen=True)
class DerivedSeries:
    """
    Named, ordered sequence of (key, value) points.

    Keys are unique; order decides bar placement. Series are replaced
    wholesale when the data changes, never edited in place.
    """
    name: str
    points: Tuple[SeriesPoint, ...] = ()

    def __post_init__(self) -> None:
        keys = [p.key for p in self.points]
        if len(set(keys)) != len(keys):
            dupes = sorted({k for k in keys if keys.count(k) > 1})
            raise ValueError(f"Series '{self.name}' has duplicate keys: {dupes}")

    @classmethod
    def from_pairs(cls, name: str, pairs) -> DerivedSeries:
        return cls(name=name, points=tuple(SeriesPoint(str(k), float(v)) for k, v in pairs))

    def __iter__(self) -> Iterator[SeriesPoint]:
        return iter(self.points)

    def __len__(self) -> int:
        return len(self.points)

    def keys(self) -> List[str]:
        return [p.key for p in self.points]

    def values(self) -> List[float]:
        return [p.value for p in self.points]

    @property
    def max_value(self) -> float:
        return max(self.values(), default=0.0)


def bound_key(value: float) -> str:
    """Label for a bin edge. Keeps full precision so neighbouring edges never collide."""
    return format(float(value), ".15g")


@dataclass(frozen=True)
class HistogramBin:
    lower_bound: float
    upper_bound: float
    length: int

    @property
    def key(self) -> str:
        return bound_key(self.lower_bound)


def histogram_series(name: str, bins: Sequence[HistogramBin]) -> DerivedSeries:
    """Histogram as a series keyed by each bin's lower bound."""
    return DerivedSeries(
        name=name,
        points=tuple(SeriesPoint(b.key, float(b.length)) for b in bins),
    )


@dataclass(frozen=True)
class PreprocessedDataset:
    """
    Everything derived from one raw dataset, keyed by label
    (e.g. 'filler_counts', 'filler_minutes').
    """
    name: str
    series: Dict[str, DerivedSeries] = field(default_factory=dict)
    histograms: Dict[str, List[HistogramBin]] = field(default_factory=dict)

    def get_series(self, label: str) -> DerivedSeries:
        """
        Series by label; histograms are exposed as series keyed by lower bound
        so bars and histograms share one rendering path.
        """
        if label in self.series:
            return self.series[label]
        if label in self.histograms:
            return histogram_series(label, self.histograms[label])
        raise KeyError(f"Dataset '{self.name}' has no series '{label}'")

    def labels(self) -> List[str]:
        return sorted(set(self.series) | set(self.histograms))
