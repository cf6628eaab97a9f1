from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from scrollstory.core.easing import Easing, linear

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL = "default"


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class VisualElement:
    """
    One mark on the chart surface.

    attrs holds both numeric geometry (x, y, width, height, opacity) and
    style values (fill, text, ticks); only the numeric ones interpolate.
    """
    key: str
    layer: str
    attrs: Dict[str, Any] = field(default_factory=dict)
    datum: Any = None


@dataclass
class Transition:
    key: str
    channel: str
    start: Dict[str, Any]
    end: Dict[str, Any]
    start_ms: float
    duration_ms: float
    easing: Easing = linear
    remove: bool = False

    def fraction(self, now: float) -> float:
        if self.duration_ms <= 0:
            return 1.0
        return min(1.0, max(0.0, (now - self.start_ms) / self.duration_ms))

    def values_at(self, now: float) -> Dict[str, Any]:
        t = self.fraction(now)
        eased = self.easing(t)
        return {
            name: interpolate(self.start.get(name), end, eased, done=t >= 1.0)
            for name, end in self.end.items()
        }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_hex_color(value: Any) -> bool:
    return isinstance(value, str) and len(value) == 7 and value.startswith("#")


def _lerp_color(a: str, b: str, t: float) -> str:
    ca = [int(a[i:i + 2], 16) for i in (1, 3, 5)]
    cb = [int(b[i:i + 2], 16) for i in (1, 3, 5)]
    mixed = [round(x + (y - x) * t) for x, y in zip(ca, cb)]
    return "#" + "".join(f"{c:02x}" for c in mixed)


def interpolate(start: Any, end: Any, t: float, done: bool = False) -> Any:
    """
    Value between start and end at eased time t.

    Numbers and #rrggbb colours blend; anything else switches to `end`
    when the transition completes.
    """
    if done:
        return end
    if _is_number(start) and _is_number(end):
        return start + (end - start) * t
    if _is_hex_color(start) and _is_hex_color(end):
        return _lerp_color(start, end, t)
    return start if start is not None else end


class ChartSurface:
    """
    The single live chart: keyed visual elements plus in-flight transitions.

    Transitions are keyed by (element key, channel). Starting a transition
    on a pair that is already animating interrupts the old one where it
    stands; the new one starts from the element's current values. Different
    channels on the same element run side by side (e.g. a bar can grow on
    the default channel while recolouring on "color").

    The surface does not paint anything; a painter reads elements() or
    target_attrs() and draws them.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self.clock = clock or monotonic_ms
        self._elements: Dict[str, VisualElement] = {}
        self._transitions: Dict[Tuple[str, str], Transition] = {}

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------
    def now(self) -> float:
        return self.clock()

    def add(self, key: str, layer: str, attrs: Dict[str, Any], datum: Any = None) -> VisualElement:
        if key in self._elements:
            raise KeyError(f"Element '{key}' already on the surface")
        element = VisualElement(key=key, layer=layer, attrs=dict(attrs), datum=datum)
        self._elements[key] = element
        return element

    def get(self, key: str) -> Optional[VisualElement]:
        return self._elements.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._elements

    def elements(self, layer: Optional[str] = None) -> List[VisualElement]:
        return [e for e in self._elements.values() if layer is None or e.layer == layer]

    def keys(self, layer: Optional[str] = None) -> List[str]:
        return [e.key for e in self.elements(layer)]

    def remove(self, key: str) -> None:
        self._elements.pop(key, None)
        for pair in [p for p in self._transitions if p[0] == key]:
            del self._transitions[pair]

    def clear(self) -> None:
        self._elements.clear()
        self._transitions.clear()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def transition(
            self,
            key: str,
            end: Dict[str, Any],
            duration_ms: float,
            easing: Easing = linear,
            channel: str = DEFAULT_CHANNEL,
            remove: bool = False,
            now: Optional[float] = None,
    ) -> Transition:
        element = self._elements.get(key)
        if element is None:
            raise KeyError(f"No element '{key}' on the surface")

        now = self.now() if now is None else now
        self.interrupt(key, channel, now=now)

        start = {name: element.attrs.get(name) for name in end}
        transition = Transition(
            key=key,
            channel=channel,
            start=start,
            end=dict(end),
            start_ms=now,
            duration_ms=duration_ms,
            easing=easing,
            remove=remove,
        )
        self._transitions[(key, channel)] = transition

        if duration_ms <= 0:
            self._step(transition, now)
        return transition

    def interrupt(self, key: str, channel: str = DEFAULT_CHANNEL, now: Optional[float] = None) -> None:
        """Freeze the (key, channel) transition at its current values and drop it."""
        running = self._transitions.pop((key, channel), None)
        if running is None:
            return
        now = self.now() if now is None else now
        element = self._elements.get(key)
        if element is not None:
            element.attrs.update(running.values_at(now))

    def tick(self, now: Optional[float] = None) -> List[str]:
        """
        Advance every transition to `now`.

        :return: keys of elements removed because their exit finished
        """
        now = self.now() if now is None else now
        removed: List[str] = []
        for transition in list(self._transitions.values()):
            if (transition.key, transition.channel) not in self._transitions:
                continue
            if self._step(transition, now):
                removed.append(transition.key)
        return removed

    def _step(self, transition: Transition, now: float) -> bool:
        element = self._elements.get(transition.key)
        if element is None:
            self._transitions.pop((transition.key, transition.channel), None)
            return False

        element.attrs.update(transition.values_at(now))
        if transition.fraction(now) < 1.0:
            return False

        self._transitions.pop((transition.key, transition.channel), None)
        if transition.remove:
            self.remove(transition.key)
            return True
        return False

    def is_exiting(self, key: str) -> bool:
        return any(t.remove for (k, _), t in self._transitions.items() if k == key)

    @property
    def is_animating(self) -> bool:
        return bool(self._transitions)

    def target_attrs(self, key: str) -> Dict[str, Any]:
        """Where the element ends up once every running transition finishes."""
        element = self._elements[key]
        attrs = dict(element.attrs)
        for (k, _), transition in self._transitions.items():
            if k == key:
                attrs.update(transition.end)
        return attrs

    def pending_ms(self, key: str, now: Optional[float] = None) -> float:
        """Time left on the longest transition running for `key`."""
        now = self.now() if now is None else now
        remaining = [
            t.start_ms + t.duration_ms - now
            for (k, _), t in self._transitions.items()
            if k == key
        ]
        return max([0.0, *remaining])
