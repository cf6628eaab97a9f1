from __future__ import annotations

from typing import TYPE_CHECKING

import dash_bootstrap_components as dbc
from dash import dcc

from scrollstory.ui.figure import surface_to_figure
from scrollstory.ui.ids import IDs
from scrollstory.ui.layout.build_navbar import build_navbar
from scrollstory.ui.layout.build_plot_panel import build_plot_panel
from scrollstory.ui.layout.build_steps_panel import build_steps_panel

if TYPE_CHECKING:
    from scrollstory.ui.context import AppContext


def build_layout(ctx: AppContext):
    cfg = ctx.global_config

    return dbc.Container(
        fluid=True,
        className="scrollstory-root",
        children=[
            build_navbar(cfg, ctx.status_text()),

            # Browser-side scroll sampling feeds this store
            dcc.Store(id=IDs.Store.SCROLL_SIGNAL),
            dcc.Interval(id=IDs.Control.SCROLL_CLOCK, interval=cfg.scroll.poll_interval_ms),
            # Finishes exits on the server-side surface
            dcc.Interval(id=IDs.Control.ANIMATION_CLOCK, interval=cfg.chart.exit_duration_ms),

            dbc.Row(
                [
                    dbc.Col(
                        build_steps_panel(cfg.sections, ctx.dataset_manager),
                        md=4,
                    ),
                    dbc.Col(
                        build_plot_panel(cfg.chart, surface_to_figure(ctx.story.surface, cfg.chart)),
                        md=8,
                    ),
                ],
                className="gx-4",
            ),
        ],
    )
