from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import dash_bootstrap_components as dbc
from dash import Dash

from scrollstory.config.loader import load_global_config
from scrollstory.services.dataset_service import DatasetManager, Fetcher, fetch_dataset
from scrollstory.story.builder import build_story
from scrollstory.ui.callbacks.callbacks_render import register_render_callbacks
from scrollstory.ui.callbacks.callbacks_scroll import register_scroll_callbacks
from scrollstory.ui.context import AppContext
from scrollstory.ui.layout.build_layout import build_layout

logger = logging.getLogger(__name__)


def create_dash_app(
        config_root: Path | str = Path("config"),
        fetcher: Optional[Fetcher] = None,
) -> Dash:
    config_root = Path(config_root)

    # 1) Load Config
    global_config = load_global_config(config_root)
    if not global_config.sections:
        raise RuntimeError("No story sections were configured")

    # 2) Load every dataset before anything reads one
    dataset_manager = DatasetManager(global_config.datasets_by_name(), fetcher=fetcher or fetch_dataset)
    dataset_manager.load_all()

    # 3) Wire tracker -> state machine -> scenes -> reconciler
    story = build_story(global_config, dataset_manager)

    # 4) App Context
    ctx = AppContext(
        config_root=config_root,
        global_config=global_config,
        dataset_manager=dataset_manager,
        story=story,
    )

    app = Dash(
        __name__,
        external_stylesheets=[dbc.themes.FLATLY],
    )
    app.title = global_config.ui_title
    app.layout = build_layout(ctx)

    register_scroll_callbacks(app, ctx)
    register_render_callbacks(app, ctx)

    logger.info(
        "Dash app created",
        extra={"config_root": str(config_root), "n_sections": len(global_config.sections)},
    )
    return app
