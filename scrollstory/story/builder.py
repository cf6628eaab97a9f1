from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from scrollstory.config.model import GlobalConfig
from scrollstory.core.dataset import PreprocessedDataset
from scrollstory.core.exceptions import ConfigError, UnknownSceneError
from scrollstory.core.reconciler import ChartReconciler
from scrollstory.core.scales import BarLayout
from scrollstory.core.scroll_tracker import ScrollEvent, ScrollTracker, StepGeometry, ViewportSignal
from scrollstory.core.section_machine import SectionStateMachine
from scrollstory.core.sections import SectionRegistry
from scrollstory.core.state import VisualizationState
from scrollstory.core.surface import ChartSurface
from scrollstory.story.base_scene import BaseScene, SceneContext
from scrollstory.story.scene_registry import SceneRegistry
from scrollstory.story.scenes import (
    PROGRESS_HANDLERS,
    BarChartScene,
    CountTitleScene,
    HistogramScene,
    PageviewsScene,
    TitleScene,
)

logger = logging.getLogger(__name__)


def build_scene_registry() -> SceneRegistry:
    registry = SceneRegistry()
    registry.register(TitleScene)
    registry.register(CountTitleScene)
    registry.register(BarChartScene)
    registry.register(HistogramScene)
    registry.register(PageviewsScene)
    return registry


def shared_y_max(datasets: Mapping[str, PreprocessedDataset]) -> Dict[str, float]:
    """Largest value per series label across all datasets."""
    y_max: Dict[str, float] = {}
    for ds in datasets.values():
        for label in ds.labels():
            y_max[label] = max(y_max.get(label, 0.0), ds.get_series(label).max_value)
    return y_max


@dataclass
class Story:
    """
    A wired-up story: tracker -> state machine -> scenes -> reconciler.

    Feed it viewport signals with observe(); everything downstream runs
    synchronously before observe() returns.
    """
    config: GlobalConfig
    sections: SectionRegistry
    machine: SectionStateMachine
    tracker: ScrollTracker
    reconciler: ChartReconciler
    state: VisualizationState
    scenes: List[BaseScene]

    @property
    def surface(self) -> ChartSurface:
        return self.reconciler.surface

    def observe(
            self,
            signal: ViewportSignal,
            steps: Optional[Sequence[StepGeometry]] = None,
    ) -> List[ScrollEvent]:
        if steps is not None:
            self.tracker.set_steps(steps)
        return self.tracker.observe(signal)

    def reset(self) -> None:
        """Drop all visual state, e.g. after the datasets were reloaded."""
        self.state.reset()
        self.surface.clear()
        self.tracker.reset()
        for scene in self.scenes:
            scene.setup()


def build_story(
        config: GlobalConfig,
        datasets: Mapping[str, PreprocessedDataset],
        surface: Optional[ChartSurface] = None,
        state: Optional[VisualizationState] = None,
        scene_registry: Optional[SceneRegistry] = None,
) -> Story:
    """
    Assemble the story from config and loaded datasets.

    :raises RuntimeError: if the datasets are not loaded yet
    :raises ConfigError: if a section points at a series its dataset lacks
    :raises UnknownSceneError: if a section names an unregistered scene or progress handler
    """
    if not getattr(datasets, "is_ready", True):
        raise RuntimeError("Story built before datasets finished loading")

    chart = config.chart
    state = state or VisualizationState()
    surface = surface or ChartSurface()
    scene_registry = scene_registry or build_scene_registry()

    layout = BarLayout(width=chart.width, height=chart.height, padding=chart.bar_padding)
    reconciler = ChartReconciler(
        surface,
        state=state,
        baseline=layout.baseline,
        exit_duration_ms=chart.exit_duration_ms,
    )
    ctx = SceneContext(
        reconciler=reconciler,
        chart=chart,
        layout=layout,
        datasets=datasets,
        ui_title=config.ui_title,
        y_max_by_series=shared_y_max(datasets),
    )

    sections = SectionRegistry()
    scenes: List[BaseScene] = []
    for idx, section in enumerate(config.sections):
        if section.dataset is not None and section.series is not None:
            try:
                datasets[section.dataset].get_series(section.series)
            except KeyError as e:
                raise ConfigError(f"Section {idx}: {e}") from e

        scene = scene_registry.create(ctx, section)
        scene.setup()

        on_progress = None
        if section.progress is not None:
            factory = PROGRESS_HANDLERS.get(section.progress)
            if factory is None:
                raise UnknownSceneError(f"Progress handler '{section.progress}' not found")
            on_progress = factory(ctx)

        sections.add(scene.activate, on_progress, label=section.title or scene.label)
        scenes.append(scene)

    machine = SectionStateMachine(sections, state)
    tracker = ScrollTracker(threshold=config.scroll.threshold, reference=config.scroll.reference)
    tracker.on("active", machine.activate)
    tracker.on("progress", machine.update)

    logger.info(
        "Story built",
        extra={"n_sections": len(sections), "scenes": [s.id for s in scenes]},
    )

    return Story(
        config=config,
        sections=sections,
        machine=machine,
        tracker=tracker,
        reconciler=reconciler,
        state=state,
        scenes=scenes,
    )
