from __future__ import annotations

import math
from typing import Callable, Dict, Union

Easing = Callable[[float], float]


def linear(t: float) -> float:
    return t


def quad_in(t: float) -> float:
    return t * t


def quad_out(t: float) -> float:
    return t * (2 - t)


def quad_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t / 2
    t -= 1
    return (t * (2 - t) + 1) / 2


def cubic_in(t: float) -> float:
    return t * t * t


def cubic_out(t: float) -> float:
    t -= 1
    return t * t * t + 1


def cubic_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


def sin_in_out(t: float) -> float:
    return (1 - math.cos(math.pi * t)) / 2


# Names follow Plotly's layout.transition.easing values so the same
# string drives both the model and the browser-side animation.
EASINGS: Dict[str, Easing] = {
    "linear": linear,
    "quad-in": quad_in,
    "quad-out": quad_out,
    "quad-in-out": quad_in_out,
    "cubic-in": cubic_in,
    "cubic-out": cubic_out,
    "cubic-in-out": cubic_in_out,
    "sin-in-out": sin_in_out,
}


def get_easing(easing: Union[str, Easing]) -> Easing:
    if callable(easing):
        return easing
    try:
        return EASINGS[easing]
    except KeyError:
        raise ValueError(f"Unknown easing '{easing}', expected one of {sorted(EASINGS)}")
