from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from scrollstory.core.dataset import DerivedSeries
from scrollstory.core.reconciler import AXIS_KEY, BAR_LAYER
from scrollstory.core.surface import interpolate
from scrollstory.story.base_scene import COUNT_TITLE, OPENVIS_TITLE, BaseScene, SceneContext

logger = logging.getLogger(__name__)


class TitleScene(BaseScene):
    """Opening title card. Nothing before it to hide except the count title."""

    id = "title"
    label = "Title"

    def setup(self) -> None:
        self.ensure_title(
            OPENVIS_TITLE,
            self.section.title or self.ctx.ui_title,
            self.section.body or "A scrollstory",
        )

    def activate(self) -> None:
        self.fade_titles(show=OPENVIS_TITLE)


class CountTitleScene(BaseScene):
    """
    Interlude card between charts.
    hides: intro title, axis, bars
    shows: count title
    """

    id = "count_title"
    label = "Count title"

    def setup(self) -> None:
        self.ensure_title(COUNT_TITLE, self.section.title or "testing", self.section.body or "1, 2, 3...")

    def activate(self) -> None:
        ctx = self.ctx
        ctx.reconciler.fade(OPENVIS_TITLE, 0.0, 0)
        ctx.reconciler.fade(AXIS_KEY, 0.0, ctx.chart.axis_fade_ms)
        ctx.reconciler.reconcile_series(
            DerivedSeries(name="empty"),
            visual_mapper=lambda point, i: {},
            duration_ms=ctx.chart.fade_ms,
            easing=ctx.chart.easing,
            exit_duration_ms=ctx.chart.fade_ms,
        )
        ctx.reconciler.fade(COUNT_TITLE, 1.0, ctx.chart.fade_ms)


class BarChartScene(BaseScene):
    """
    Bars for one derived series, keyed by series key.

    Switching between sections of this scene only updates bars whose keys
    persist; new keys grow from the baseline, vanished keys shrink away.
    """

    id = "bars"
    label = "Bar chart"

    shared_scale = False

    def tick_format(self, key: str) -> str:
        return key

    def fill(self, position: int) -> str:
        colors = self.ctx.chart.colors
        return colors[position % len(colors)]

    def y_max(self, series: DerivedSeries) -> Optional[float]:
        if self.shared_scale:
            return self.ctx.y_max_by_series.get(series.name)
        return None

    def activate(self) -> None:
        ctx = self.ctx
        series = self.series()
        if series is None:
            logger.warning("Scene has no series configured", extra={"scene": self.id})
            series = DerivedSeries(name="empty")

        self.fade_titles(show=None)

        if len(series):
            ctx.reconciler.reconcile_axis(ctx.layout.axis(series, self.tick_format), ctx.chart.axis_fade_ms)
        else:
            ctx.reconciler.reconcile_axis(None, ctx.chart.axis_fade_ms)

        mapper = ctx.layout.mapper(series, y_max=self.y_max(series))
        fills: Dict[str, str] = {p.key: self.fill(i) for i, p in enumerate(series)}

        ctx.reconciler.reconcile_series(
            series,
            visual_mapper=mapper,
            duration_ms=ctx.chart.duration_ms,
            easing=ctx.chart.easing,
            exit_duration_ms=ctx.chart.exit_duration_ms,
            baseline=ctx.layout.baseline,
            enter_style={"fill": ctx.chart.colors[0]},
        )
        # Own channel so the colour change is not clobbered by the geometry transition
        ctx.reconciler.recolor(
            BAR_LAYER,
            lambda element: fills.get(element.key, ctx.chart.colors[0]),
            duration_ms=ctx.chart.axis_fade_ms,
        )


class HistogramScene(BarChartScene):
    """
    Histogram of a binned series in a single colour.

    Uses the y-domain shared by every dataset carrying the same series, so
    scrolling from one speaker to the next compares like with like.
    """

    id = "histogram"
    label = "Histogram"

    shared_scale = True

    def tick_format(self, key: str) -> str:
        if self.section.series == "filler_minutes":
            return f"{key} min"
        return key

    def fill(self, position: int) -> str:
        return self.ctx.chart.colors[0]


class PageviewsScene(BarChartScene):
    """Monthly pageview bars; timestamps like 2023010100 shown as 2023-01."""

    id = "pageviews"
    label = "Pageviews"

    def tick_format(self, key: str) -> str:
        return f"{key[:4]}-{key[4:6]}" if len(key) >= 6 else key

    def fill(self, position: int) -> str:
        return self.ctx.chart.colors[0]


# -----------------------------------------------------------------------------
# Progress handlers
# -----------------------------------------------------------------------------
def highlight_progress(ctx: SceneContext) -> Callable[[float], None]:
    """
    Blend the bars from the base colour towards the highlight colour as the
    reader scrolls through the section.
    """
    base = ctx.chart.colors[0]
    target = ctx.chart.highlight_color

    def on_progress(progress: float) -> None:
        ctx.reconciler.recolor(BAR_LAYER, interpolate(base, target, progress), duration_ms=0)

    return on_progress


PROGRESS_HANDLERS: Dict[str, Callable[[SceneContext], Callable[[float], None]]] = {
    "highlight": highlight_progress,
}
