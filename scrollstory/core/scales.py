from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from scrollstory.core.dataset import DerivedSeries, SeriesPoint


@dataclass(frozen=True)
class BandScale:
    """Ordinal keys to evenly spaced bands across a pixel range."""
    domain: Tuple[str, ...]
    range: Tuple[float, float]
    padding_inner: float = 0.0

    @property
    def step(self) -> float:
        span = self.range[1] - self.range[0]
        return span / max(1.0, len(self.domain) - self.padding_inner)

    @property
    def bandwidth(self) -> float:
        return self.step * (1 - self.padding_inner)

    def __call__(self, key: str) -> float:
        return self.range[0] + self.domain.index(key) * self.step


@dataclass(frozen=True)
class LinearScale:
    domain: Tuple[float, float]
    range: Tuple[float, float]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return r0
        return r0 + (value - d0) / (d1 - d0) * (r1 - r0)


@dataclass(frozen=True)
class AxisSpec:
    """
    Bottom axis: tick positions (pixels) and their labels.
    """
    ticks: Tuple[Tuple[float, str], ...] = ()
    y: float = 0.0


@dataclass(frozen=True)
class BarLayout:
    """
    Vertical bar geometry inside a width x height drawing area.

    y grows downwards, bars hang from `height` (the baseline) like SVG rects.
    """
    width: float
    height: float
    padding: float = 0.08

    def scales(self, series: DerivedSeries, y_max: Optional[float] = None) -> Tuple[BandScale, LinearScale]:
        x = BandScale(tuple(series.keys()), (0.0, self.width), self.padding)
        top = series.max_value if y_max is None else y_max
        y = LinearScale((0.0, top), (self.height, 0.0))
        return x, y

    def mapper(
            self, series: DerivedSeries, y_max: Optional[float] = None
    ) -> Callable[[SeriesPoint, int], Dict[str, Any]]:
        x, y = self.scales(series, y_max)

        def visual(point: SeriesPoint, _position: int) -> Dict[str, Any]:
            top = y(point.value)
            return {
                "x": x(point.key),
                "width": x.bandwidth,
                "y": top,
                "height": self.height - top,
                "opacity": 1.0,
            }

        return visual

    def baseline(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        """Same bar at zero magnitude, sitting on the baseline."""
        return {**attrs, "y": self.height, "height": 0.0}

    def axis(
            self,
            series: DerivedSeries,
            tick_format: Callable[[str], str] = str,
            max_ticks: int = 12,
    ) -> AxisSpec:
        x, _ = self.scales(series)
        keys: Sequence[str] = series.keys()
        stride = max(1, -(-len(keys) // max_ticks))
        ticks = tuple(
            (x(k) + x.bandwidth / 2, tick_format(k)) for k in keys[::stride]
        )
        return AxisSpec(ticks=ticks, y=self.height)
