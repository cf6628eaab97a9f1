from __future__ import annotations

__all__ = ["IDs", "step_id", "step_media_id"]


class IDs:
    class Store:
        SCROLL_SIGNAL = "scroll-signal"

    class Control:
        MAIN_GRAPH = "main-graph"
        SCROLL_CLOCK = "scroll-clock"
        ANIMATION_CLOCK = "animation-clock"
        RELOAD_BTN = "reload-data-btn"
        STATUS_BAR = "status-bar"

    class Pattern:
        # pattern-matching "type" strings
        STEP = "step"
        STEP_MEDIA = "step-media"


def step_id(index: int) -> dict:
    return {"type": IDs.Pattern.STEP, "index": index}


def step_media_id(index: int) -> dict:
    return {"type": IDs.Pattern.STEP_MEDIA, "index": index}
