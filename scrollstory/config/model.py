from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

DATASET_KINDS = ("words", "frequency", "pageviews")


@dataclass(frozen=True)
class HistogramDomain:
    """
    Bounded numeric domain [lower, upper) partitioned into fixed-width buckets.

    Each dataset carries its own domain: transcripts bin minutes over 0-30,
    speaker datasets bin calendar years over a year band.
    """
    lower: float
    upper: float
    width: float
    field: str = "minute"

    def __post_init__(self) -> None:
        if self.width <= 0:
            raise ValueError(f"Bin width must be positive, got {self.width}")
        if self.upper <= self.lower:
            raise ValueError(f"Empty domain [{self.lower}, {self.upper})")

    @property
    def n_bins(self) -> int:
        return int(math.ceil((self.upper - self.lower) / self.width))


@dataclass(frozen=True)
class DatasetFields:
    """
    Column names in the raw rows.
    """
    category: str = "word"
    flag: str = "filler"
    time: str = "time"
    key: str = "year"
    value: str = "frequency"


DEFAULT_FIELDS: Dict[str, DatasetFields] = {
    "words": DatasetFields(),
    "frequency": DatasetFields(key="year", value="frequency"),
    "pageviews": DatasetFields(key="date", value="views"),
}

DEFAULT_DOMAINS: Dict[str, Optional[HistogramDomain]] = {
    "words": HistogramDomain(lower=0, upper=30, width=2, field="minute"),
    "frequency": HistogramDomain(lower=1984, upper=2020, width=1, field="year"),
    "pageviews": None,
}


@dataclass
class DatasetConfig:
    """
    Parsed config entry for a single dataset.
    """
    raw: Dict[str, Any]
    source_path: Path
    index: int

    @property
    def name(self) -> str:
        return self.raw.get("name", f"dataset_{self.index}")

    @property
    def kind(self) -> str:
        return self.raw.get("kind", "words")

    @property
    def source(self) -> Optional[str]:
        """
        Local path (resolved against the config root) or URL of a TSV file.
        """
        src = self.raw.get("source")
        if src is None:
            return None
        if "://" in src:
            return src
        path = Path(src)
        if not path.is_absolute():
            path = (self.source_path.parent.parent / path).resolve()
        return str(path)

    @property
    def article(self) -> Optional[str]:
        return self.raw.get("article")

    @property
    def fields(self) -> DatasetFields:
        defaults = DEFAULT_FIELDS.get(self.kind, DatasetFields())
        overrides = self.raw.get("fields", {})
        return DatasetFields(
            category=overrides.get("category", defaults.category),
            flag=overrides.get("flag", defaults.flag),
            time=overrides.get("time", defaults.time),
            key=overrides.get("key", defaults.key),
            value=overrides.get("value", defaults.value),
        )

    @property
    def domain(self) -> Optional[HistogramDomain]:
        default = DEFAULT_DOMAINS.get(self.kind)
        raw_domain = self.raw.get("domain")
        if raw_domain is None:
            return default
        base = default or HistogramDomain(lower=0, upper=1, width=1)
        return HistogramDomain(
            lower=float(raw_domain.get("lower", base.lower)),
            upper=float(raw_domain.get("upper", base.upper)),
            width=float(raw_domain.get("width", base.width)),
            field=raw_domain.get("field", base.field),
        )

    @classmethod
    def from_raw(cls, raw: Dict[str, Any], source_path: Path, index: int) -> DatasetConfig:
        return cls(raw=raw, source_path=source_path, index=index)


@dataclass(frozen=True)
class Margin:
    top: int = 0
    left: int = 20
    bottom: int = 40
    right: int = 10


@dataclass(frozen=True)
class ChartConfig:
    """
    Size of the drawing area plus transition timings.

    - duration_ms: enter/update transitions
    - exit_duration_ms: exits run shorter than entries
    - fade_ms: title cards
    - axis_fade_ms: axis show/hide, layered on top of geometry
    """
    width: int = 700
    height: int = 520
    margin: Margin = field(default_factory=Margin)
    duration_ms: int = 1200
    exit_duration_ms: int = 500
    fade_ms: int = 600
    axis_fade_ms: int = 500
    easing: str = "cubic-in-out"
    bar_padding: float = 0.08
    colors: Tuple[str, ...] = ("#008080", "#399785", "#5AAF8C")
    highlight_color: str = "#ff0000"


@dataclass(frozen=True)
class ScrollConfig:
    """
    threshold: fraction of a step that must be visible to activate it
    reference: position of the reference line as a fraction of viewport height
    poll_interval_ms: how often the browser samples scroll position
    """
    threshold: float = 0.6
    reference: float = 0.5
    poll_interval_ms: int = 100


@dataclass(frozen=True)
class SectionConfig:
    scene: str
    dataset: Optional[str] = None
    series: Optional[str] = None
    progress: Optional[str] = None
    title: str = ""
    body: str = ""


@dataclass
class GlobalConfig:
    ui_title: str
    chart: ChartConfig
    scroll: ScrollConfig
    sections: List[SectionConfig]
    datasets: List[DatasetConfig]

    def datasets_by_name(self) -> Dict[str, DatasetConfig]:
        return {ds.name: ds for ds in self.datasets}
