from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import dash
from dash import ALL, Input, Output, State

from scrollstory.core.exceptions import SectionIndexError
from scrollstory.core.scroll_tracker import StepGeometry, ViewportSignal
from scrollstory.ui.figure import error_figure, surface_to_figure
from scrollstory.ui.ids import IDs

if TYPE_CHECKING:
    from scrollstory.ui.context import AppContext

logger = logging.getLogger(__name__)

ACTIVE_STEP_OPACITY = 1.0
IDLE_STEP_OPACITY = 0.1

# Samples scroll position and step geometry in the browser. Returns no_update
# when nothing moved so the server only hears about real changes.
SCROLL_SAMPLER_JS = """
function(n_intervals, previous) {
    const steps = Array.from(document.querySelectorAll('.step'));
    if (!steps.length) {
        return window.dash_clientside.no_update;
    }
    const scrollTop = window.pageYOffset || document.documentElement.scrollTop;
    const geometry = steps.map(function (el, i) {
        const rect = el.getBoundingClientRect();
        const index = el.dataset.index !== undefined ? parseInt(el.dataset.index, 10) : i;
        return {index: index, top: rect.top + scrollTop, height: rect.height};
    });
    const signal = {
        scroll_top: scrollTop,
        viewport_height: window.innerHeight,
        steps: geometry
    };
    if (previous && JSON.stringify(previous) === JSON.stringify(signal)) {
        return window.dash_clientside.no_update;
    }
    return signal;
}
"""


def parse_scroll_signal(data: Any) -> Optional[Tuple[ViewportSignal, List[StepGeometry]]]:
    """Store payload -> (viewport signal, step geometry), or None if unusable."""
    if not isinstance(data, dict):
        return None
    try:
        signal = ViewportSignal(
            scroll_top=float(data["scroll_top"]),
            viewport_height=float(data["viewport_height"]),
        )
        steps = [
            StepGeometry(index=int(s["index"]), top=float(s["top"]), height=float(s["height"]))
            for s in data.get("steps", [])
        ]
    except (KeyError, TypeError, ValueError):
        logger.warning("Malformed scroll signal: %r", data)
        return None
    return signal, steps


def step_styles(n_steps: int, active: Optional[int]) -> List[Dict[str, Any]]:
    """Highlight the current step text, dim the rest."""
    return [
        {
            "minHeight": "80vh",
            "paddingTop": "2rem",
            "opacity": ACTIVE_STEP_OPACITY if i == active else IDLE_STEP_OPACITY,
            "transition": "opacity 300ms",
        }
        for i in range(n_steps)
    ]


def register_scroll_callbacks(app: dash.Dash, ctx: AppContext) -> None:
    app.clientside_callback(
        SCROLL_SAMPLER_JS,
        Output(IDs.Store.SCROLL_SIGNAL, "data"),
        Input(IDs.Control.SCROLL_CLOCK, "n_intervals"),
        State(IDs.Store.SCROLL_SIGNAL, "data"),
    )

    # ---------------------------------------------------------
    # Scroll signal -> tracker -> state machine -> figure
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.MAIN_GRAPH, "figure"),
        Output({"type": IDs.Pattern.STEP, "index": ALL}, "style"),
        Input(IDs.Store.SCROLL_SIGNAL, "data"),
        prevent_initial_call=True,
    )
    def on_scroll(data: dict[str, Any] | None):
        n_steps = len(ctx.global_config.sections)

        parsed = parse_scroll_signal(data)
        if parsed is None:
            raise dash.exceptions.PreventUpdate

        signal, steps = parsed
        with ctx.lock:
            story = ctx.story
            try:
                events = story.observe(signal, steps)
            except (SectionIndexError, ValueError):
                # Markup and registry disagree; nothing sensible to draw
                logger.exception(
                    "Scroll signal rejected",
                    extra={"n_steps": len(steps), "n_sections": len(story.sections)},
                )
                return error_figure("Story steps and sections are out of sync."), step_styles(n_steps, None)
            except Exception:
                logger.exception("Error while handling scroll signal")
                return error_figure(
                    "The story hit an unexpected error. Reload the page to start over."
                ), step_styles(n_steps, None)

            if events:
                logger.debug(
                    "scroll_events",
                    extra={"events": [type(e).__name__ for e in events], "last_index": story.state.last_index},
                )
            figure = surface_to_figure(story.surface, story.config.chart)
            active = story.tracker.current_index

        return figure, step_styles(n_steps, active)
