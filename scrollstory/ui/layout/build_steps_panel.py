from __future__ import annotations

from typing import List

from dash import html

from scrollstory.config.model import SectionConfig
from scrollstory.services.dataset_service import DatasetManager
from scrollstory.ui.ids import step_id, step_media_id


def step_media(section: SectionConfig, datasets: DatasetManager) -> list:
    """Children of a step's media slot; rebuilt after every reload."""
    if section.dataset is None:
        return []
    raw = datasets.raw(section.dataset)
    image_url = raw.meta.get("image_url") if raw is not None else None
    if not image_url:
        return []
    return [
        html.Img(
            src=image_url,
            alt=section.title or section.dataset,
            style={"width": "200px", "display": "block", "marginTop": "10px"},
        )
    ]


def build_steps_panel(sections: List[SectionConfig], datasets: DatasetManager) -> html.Div:
    """
    One <section class="step" data-index="i"> per story section. The
    browser-side scroll sampler measures these by class and index.
    """
    steps = []
    for idx, section in enumerate(sections):
        steps.append(
            html.Section(
                [
                    html.H4(section.title),
                    html.P(section.body),
                    html.Div(step_media(section, datasets), id=step_media_id(idx)),
                ],
                id=step_id(idx),
                className="step",
                style={"minHeight": "80vh", "opacity": 0.1, "paddingTop": "2rem"},
                **{"data-index": str(idx)},
            )
        )

    # Trailing spacer so the last step can scroll past the threshold
    steps.append(html.Div(style={"height": "40vh"}))
    return html.Div(steps, id="sections")
