from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import html

from scrollstory.config.model import GlobalConfig
from scrollstory.ui.ids import IDs


def build_navbar(global_config: GlobalConfig, status: str = "") -> dbc.Navbar:
    return dbc.Navbar(
        dbc.Container(
            fluid=True,
            children=[
                html.H2(global_config.ui_title, className="mb-0"),
                html.Div(
                    [
                        html.Small(status, id=IDs.Control.STATUS_BAR, className="text-muted me-3"),
                        dbc.Button(
                            "Reload data",
                            id=IDs.Control.RELOAD_BTN,
                            color="secondary",
                            size="sm",
                        ),
                    ],
                    className="d-flex align-items-center",
                ),
            ],
        ),
        color="light",
        sticky="top",
        className="mb-3",
    )
