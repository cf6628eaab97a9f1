from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Union

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepGeometry:
    """Vertical extent of one step, in page coordinates."""
    index: int
    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class ViewportSignal:
    scroll_top: float
    viewport_height: float


@dataclass(frozen=True)
class ActiveEvent:
    index: int


@dataclass(frozen=True)
class ProgressEvent:
    index: int
    progress: float


ScrollEvent = Union[ActiveEvent, ProgressEvent]


class ScrollTracker:
    """
    Decides which step is active for each viewport signal.

    - A step is a candidate once `threshold` of it is visible. Visibility is
      measured against min(step height, viewport height) so a step taller
      than the screen can still become active.
    - At most one `active` event per signal: the most visible candidate wins,
      ties go to the step closest to the reference line. Nothing is emitted
      while the winner is already active.
    - A `progress` event is emitted on every signal for the step nearest the
      reference line, with the depth of the line inside that step.

    Listeners are attached with on("active", fn) / on("progress", fn).
    Steps skipped by a fast scroll are not replayed here; the section state
    machine fills in the gap.
    """

    EVENT_TYPES = ("active", "progress")

    def __init__(self, threshold: float = 0.6, reference: float = 0.5):
        if not 0 < threshold <= 1:
            raise ValueError(f"threshold must be in (0, 1], got {threshold}")
        self.threshold = threshold
        self.reference = reference
        self.current_index: Optional[int] = None
        self._steps: List[StepGeometry] = []
        self._listeners: Dict[str, List[Callable]] = {name: [] for name in self.EVENT_TYPES}

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def set_steps(self, steps: Sequence[StepGeometry]) -> None:
        """
        Replace the tracked steps. Called whenever the page re-measures them.

        Raises:
            ValueError: if indices are not exactly 0..N-1
        """
        ordered = sorted(steps, key=lambda s: s.index)
        if [s.index for s in ordered] != list(range(len(ordered))):
            raise ValueError(f"Step indices must be dense, got {[s.index for s in ordered]}")
        self._steps = ordered

    @property
    def steps(self) -> List[StepGeometry]:
        return list(self._steps)

    def on(self, event: str, callback: Callable) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown scroll event '{event}'")
        self._listeners[event].append(callback)

    def reset(self) -> None:
        self.current_index = None

    # ------------------------------------------------------------------
    # Signal handling
    # ------------------------------------------------------------------
    def observe(self, signal: ViewportSignal) -> List[ScrollEvent]:
        """
        Process one viewport signal, notify listeners and return the events
        in emission order (active first, then progress).
        """
        if not self._steps:
            return []

        events: List[ScrollEvent] = []

        active = self._pick_active(signal)
        if active is not None and active != self.current_index:
            self.current_index = active
            events.append(ActiveEvent(active))

        nearest = self._nearest_step(signal)
        events.append(ProgressEvent(nearest.index, self._depth(nearest, signal)))

        for event in events:
            self._dispatch(event)
        return events

    def visibility(self, signal: ViewportSignal) -> np.ndarray:
        """Visible fraction per step, indexed by step index."""
        tops = np.array([s.top for s in self._steps], dtype=float)
        bottoms = np.array([s.bottom for s in self._steps], dtype=float)
        view_top = signal.scroll_top
        view_bottom = signal.scroll_top + signal.viewport_height

        visible = np.clip(np.minimum(bottoms, view_bottom) - np.maximum(tops, view_top), 0, None)
        basis = np.minimum(bottoms - tops, signal.viewport_height)
        return np.divide(visible, basis, out=np.zeros_like(visible), where=basis > 0)

    def _reference_line(self, signal: ViewportSignal) -> float:
        return signal.scroll_top + signal.viewport_height * self.reference

    def _distance(self, step: StepGeometry, line: float) -> float:
        if step.top <= line < step.bottom:
            return 0.0
        return min(abs(step.top - line), abs(step.bottom - line))

    def _pick_active(self, signal: ViewportSignal) -> Optional[int]:
        ratios = self.visibility(signal)
        candidates = [s for s in self._steps if ratios[s.index] >= self.threshold]
        if not candidates:
            return None
        line = self._reference_line(signal)
        best = max(candidates, key=lambda s: (ratios[s.index], -self._distance(s, line)))
        return best.index

    def _nearest_step(self, signal: ViewportSignal) -> StepGeometry:
        line = self._reference_line(signal)
        return min(self._steps, key=lambda s: (self._distance(s, line), s.index))

    def _depth(self, step: StepGeometry, signal: ViewportSignal) -> float:
        if step.height <= 0:
            return 0.0
        line = self._reference_line(signal)
        return float(np.clip((line - step.top) / step.height, 0.0, 1.0))

    def _dispatch(self, event: ScrollEvent) -> None:
        if isinstance(event, ActiveEvent):
            for callback in self._listeners["active"]:
                callback(event.index)
        else:
            for callback in self._listeners["progress"]:
                callback(event.index, event.progress)
