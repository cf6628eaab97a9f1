from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from scrollstory.config.model import ChartConfig, SectionConfig
from scrollstory.core.dataset import DerivedSeries, PreprocessedDataset
from scrollstory.core.reconciler import ChartReconciler
from scrollstory.core.scales import BarLayout

OPENVIS_TITLE = "openvis-title"
COUNT_TITLE = "count-title"
TITLE_LAYER = "titles"


@dataclass
class SceneContext:
    """
    Everything a scene may touch: the reconciler (and through it the
    surface), chart settings and the preprocessed datasets.

    y_max_by_series holds one y-domain per series label across all datasets,
    so e.g. every speaker's per-year histogram is drawn on the same scale.
    """
    reconciler: ChartReconciler
    chart: ChartConfig
    layout: BarLayout
    datasets: Mapping[str, PreprocessedDataset]
    ui_title: str = ""
    y_max_by_series: Dict[str, float] = field(default_factory=dict)

    @property
    def surface(self):
        return self.reconciler.surface


class BaseScene(ABC):
    """
    Abstract base class for all story scenes.

    Defines the contract that every scene must follow
    - expose an 'id' - referenced from the 'scene' key of a section config
    - implement 'activate' - drive the chart into this scene's state
    - optionally override 'setup' - create persistent elements (idempotent)
    """

    id: str = None
    label: str = None

    def __init__(self, ctx: SceneContext, section: SectionConfig):
        self.ctx = ctx
        self.section = section

    def setup(self) -> None:
        """Create elements this scene fades in and out. Called once per section."""
        return None

    @abstractmethod
    def activate(self) -> None:
        """
        Bring the chart into this scene's state. Must be safe to call again
        with the same data.
        """
        raise NotImplementedError()

    # ------------------------------------------------------------------
    # Common helpers for all scenes
    # ------------------------------------------------------------------
    def series(self) -> Optional[DerivedSeries]:
        if self.section.dataset is None or self.section.series is None:
            return None
        return self.ctx.datasets[self.section.dataset].get_series(self.section.series)

    def fade_titles(self, show: Optional[str] = None) -> None:
        """Hide every title card instantly, then fade `show` in."""
        for key in (OPENVIS_TITLE, COUNT_TITLE):
            if key != show:
                self.ctx.reconciler.fade(key, 0.0, 0)
        if show is not None:
            self.ctx.reconciler.fade(show, 1.0, self.ctx.chart.fade_ms)

    def ensure_title(self, key: str, text: str, subtitle: str) -> None:
        surface = self.ctx.surface
        if key in surface:
            return
        surface.add(
            key,
            TITLE_LAYER,
            {
                "x": self.ctx.chart.width / 2,
                "y": self.ctx.chart.height / 3,
                "text": text,
                "subtitle": subtitle,
                "opacity": 0.0,
            },
        )
