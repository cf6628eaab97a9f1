from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import dcc

from scrollstory.config.model import ChartConfig
from scrollstory.ui.ids import IDs


def build_plot_panel(chart: ChartConfig, figure=None) -> dbc.Card:
    return dbc.Card(
        dbc.CardBody(
            dcc.Graph(
                id=IDs.Control.MAIN_GRAPH,
                figure=figure if figure is not None else {},
                style={"height": f"{chart.height + chart.margin.top + chart.margin.bottom}px"},
                config={"displayModeBar": False, "responsive": True},
            ),
        ),
        className="border-0",
        style={"position": "sticky", "top": "6rem"},
    )
