from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import dash
from dash import ALL, Input, Output

from scrollstory.ui.figure import error_figure, surface_to_figure
from scrollstory.ui.ids import IDs
from scrollstory.ui.layout.build_steps_panel import step_media

if TYPE_CHECKING:
    from scrollstory.ui.context import AppContext

logger = logging.getLogger(__name__)


def reload_story(ctx: AppContext) -> tuple:
    """
    Refetch and rebuild, then return (figure, status text, step media) so
    every output fed by the datasets is refreshed together.
    """
    sections = ctx.global_config.sections
    try:
        ctx.reload()
    except Exception:
        logger.exception("Reload failed")
        return (
            error_figure("Reloading the datasets failed. See the server log."),
            "Reload failed",
            [dash.no_update] * len(sections),
        )

    with ctx.lock:
        figure = surface_to_figure(ctx.story.surface, ctx.story.config.chart)
        media = [step_media(section, ctx.dataset_manager) for section in sections]
    return figure, ctx.status_text(), media


def register_render_callbacks(app: dash.Dash, ctx: AppContext) -> None:
    # ---------------------------------------------------------
    # Animation clock: finish exits that have run their course
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.MAIN_GRAPH, "figure", allow_duplicate=True),
        Input(IDs.Control.ANIMATION_CLOCK, "n_intervals"),
        prevent_initial_call=True,
    )
    def on_animation_tick(_n_intervals):
        with ctx.lock:
            surface = ctx.story.surface
            if not surface.is_animating:
                raise dash.exceptions.PreventUpdate

            removed = surface.tick()
            if not removed:
                raise dash.exceptions.PreventUpdate

            logger.debug("exits_finished", extra={"keys": removed})
            return surface_to_figure(surface, ctx.story.config.chart)

    # ---------------------------------------------------------
    # Reload: refetch datasets, rebuild the story from scratch
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.MAIN_GRAPH, "figure", allow_duplicate=True),
        Output(IDs.Control.STATUS_BAR, "children"),
        Output({"type": IDs.Pattern.STEP_MEDIA, "index": ALL}, "children"),
        Input(IDs.Control.RELOAD_BTN, "n_clicks"),
        prevent_initial_call=True,
    )
    def on_reload(n_clicks):
        if not n_clicks:
            raise dash.exceptions.PreventUpdate
        return reload_story(ctx)
