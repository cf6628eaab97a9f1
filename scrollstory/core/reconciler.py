from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Hashable, Iterable, List, Optional, Sequence, TypeVar, Union

from scrollstory.core.dataset import DerivedSeries
from scrollstory.core.easing import Easing, get_easing
from scrollstory.core.scales import AxisSpec
from scrollstory.core.state import VisualizationState
from scrollstory.core.surface import ChartSurface, VisualElement

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = TypeVar("P")

KeyFn = Callable[[Any], Hashable]
VisualMapper = Callable[[Any, int], Dict[str, Any]]
Baseline = Callable[[Dict[str, Any]], Dict[str, Any]]

AXIS_KEY = "x-axis"
AXIS_LAYER = "axis"
BAR_LAYER = "bars"
OPACITY_CHANNEL = "opacity"
COLOR_CHANNEL = "color"


@dataclass(frozen=True)
class Join(Generic[T, P]):
    """
    Result of matching a target dataset against what is on screen.

    - enter: target items with no counterpart (target order)
    - update: target items that already exist (target order)
    - exit: previous items missing from the target (previous order)
    """
    enter: List[T] = field(default_factory=list)
    update: List[T] = field(default_factory=list)
    exit: List[P] = field(default_factory=list)


def diff(
        previous: Iterable[P],
        target: Iterable[T],
        key_fn: KeyFn,
        previous_key_fn: Optional[KeyFn] = None,
) -> Join[T, P]:
    """
    Partition target and previous items by identity.

    Matching is by key only, so reordering a dataset never turns into
    enter/exit pairs.

    Raises:
        ValueError: if two target items share a key
    """
    previous_key_fn = previous_key_fn or key_fn
    previous = list(previous)
    previous_keys = {previous_key_fn(p) for p in previous}

    enter: List[T] = []
    update: List[T] = []
    seen = set()
    for item in target:
        key = key_fn(item)
        if key in seen:
            raise ValueError(f"Duplicate key {key!r} in target dataset")
        seen.add(key)
        (update if key in previous_keys else enter).append(item)

    exit_ = [p for p in previous if previous_key_fn(p) not in seen]
    return Join(enter=enter, update=update, exit=exit_)


def _identity(attrs: Dict[str, Any]) -> Dict[str, Any]:
    return dict(attrs)


def _hidden(attrs: Dict[str, Any]) -> Dict[str, Any]:
    return {**attrs, "opacity": 0.0}


class ChartReconciler:
    """
    Applies joins to a {@link ChartSurface} as animated transitions.

    - enter: element created at baseline(target) then animated to target
    - update: animated from wherever it currently is to the new target
    - exit: animated to baseline(current target) over exit_duration_ms, then removed

    Each call first advances the surface clock, so a reconcile issued
    mid-animation picks up the in-between values and supersedes the older
    transition instead of queueing behind it.
    """

    def __init__(
            self,
            surface: ChartSurface,
            state: Optional[VisualizationState] = None,
            baseline: Baseline = _identity,
            exit_duration_ms: float = 500,
    ):
        self.surface = surface
        self.state = state
        self.baseline = baseline
        self.exit_duration_ms = exit_duration_ms

    def reconcile(
            self,
            target: Sequence[Any],
            key_fn: KeyFn,
            visual_mapper: VisualMapper,
            duration_ms: float,
            easing: Union[str, Easing] = "cubic-in-out",
            layer: str = BAR_LAYER,
            exit_duration_ms: Optional[float] = None,
            baseline: Optional[Baseline] = None,
            enter_style: Optional[Dict[str, Any]] = None,
    ) -> Join:
        ease = get_easing(easing)
        baseline = baseline or self.baseline
        exit_ms = self.exit_duration_ms if exit_duration_ms is None else exit_duration_ms

        now = self.surface.now()
        self.surface.tick(now)

        items = list(target)
        join = diff(
            self.surface.elements(layer),
            items,
            key_fn=lambda item: str(key_fn(item)),
            previous_key_fn=lambda el: el.key,
        )
        entering = {id(item) for item in join.enter}

        for position, item in enumerate(items):
            key = str(key_fn(item))
            attrs = visual_mapper(item, position)
            if id(item) in entering:
                start = {**(enter_style or {}), **baseline(attrs)}
                self.surface.add(key, layer, start, datum=item)
            else:
                self.surface.get(key).datum = item
            self.surface.transition(key, attrs, duration_ms, ease, now=now)

        for element in join.exit:
            if self.surface.is_exiting(element.key):
                continue
            end = baseline(self.surface.target_attrs(element.key))
            self.surface.transition(element.key, end, exit_ms, ease, remove=True, now=now)

        self._record(target)

        logger.debug(
            "reconcile",
            extra={
                "layer": layer,
                "n_enter": len(join.enter),
                "n_update": len(join.update),
                "n_exit": len(join.exit),
            },
        )
        return join

    def reconcile_series(
            self,
            series: DerivedSeries,
            visual_mapper: VisualMapper,
            duration_ms: float,
            easing: Union[str, Easing] = "cubic-in-out",
            **kwargs,
    ) -> Join:
        """Bars keyed by series key."""
        return self.reconcile(
            series,
            key_fn=lambda point: point.key,
            visual_mapper=visual_mapper,
            duration_ms=duration_ms,
            easing=easing,
            **kwargs,
        )

    def reconcile_axis(
            self,
            axis: Optional[AxisSpec],
            duration_ms: float,
            easing: Union[str, Easing] = "cubic-in-out",
    ) -> Join:
        """
        The axis is a one-element dataset under a fixed key. It enters
        transparent and fades in; passing None fades it out and removes it.
        Ticks swap instantly, geometry animates.
        """
        target = [axis] if axis is not None else []
        if axis is None and AXIS_KEY in self.surface:
            # A running fade would otherwise hold the exiting axis visible
            self.surface.interrupt(AXIS_KEY, OPACITY_CHANNEL)

        def visual(spec: AxisSpec, _position: int) -> Dict[str, Any]:
            return {"y": spec.y}

        join = self.reconcile(
            target,
            key_fn=lambda _spec: AXIS_KEY,
            visual_mapper=visual,
            duration_ms=duration_ms,
            easing=easing,
            layer=AXIS_LAYER,
            exit_duration_ms=duration_ms,
            baseline=_hidden,
        )
        if axis is not None:
            self.surface.get(AXIS_KEY).attrs["ticks"] = axis.ticks
            self.fade(AXIS_KEY, 1.0, duration_ms)
        return join

    def fade(
            self,
            key: str,
            opacity: float,
            duration_ms: float,
            easing: Union[str, Easing] = "linear",
    ) -> None:
        """Show/hide on the opacity channel, independent of geometry."""
        if key not in self.surface:
            return
        self.surface.transition(
            key, {"opacity": opacity}, duration_ms, get_easing(easing), channel=OPACITY_CHANNEL
        )

    def recolor(
            self,
            layer: str,
            fill: Union[str, Callable[[VisualElement], str]],
            duration_ms: float,
            easing: Union[str, Easing] = "linear",
    ) -> None:
        """Colour change on its own channel so it never clobbers geometry."""
        ease = get_easing(easing)
        now = self.surface.now()
        for element in self.surface.elements(layer):
            if self.surface.is_exiting(element.key):
                continue
            value = fill(element) if callable(fill) else fill
            self.surface.transition(
                element.key, {"fill": value}, duration_ms, ease, channel=COLOR_CHANNEL, now=now
            )

    def _record(self, target: Any) -> None:
        if self.state is None or self.state.current_section is None:
            return
        if isinstance(target, DerivedSeries):
            self.state.rendered[self.state.current_section] = target
