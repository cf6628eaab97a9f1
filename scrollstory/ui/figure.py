from __future__ import annotations

from typing import Any, Dict, List, Optional

import plotly.graph_objs as go

from scrollstory.config.model import ChartConfig
from scrollstory.core.dataset import SeriesPoint
from scrollstory.core.reconciler import AXIS_KEY, BAR_LAYER
from scrollstory.core.surface import ChartSurface
from scrollstory.story.base_scene import TITLE_LAYER


def message_figure(title: str, details: Optional[str] = None) -> go.Figure:
    fig = go.Figure()
    text = title if details is None else f"{title}<br><br>{details}"
    fig.add_annotation(
        text=text,
        showarrow=False,
        xref="paper",
        yref="paper",
        x=0.5,
        y=0.5,
    )
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    fig.update_layout(margin=dict(l=40, r=40, t=40, b=40))
    return fig


def error_figure(details: str) -> go.Figure:
    return message_figure("Something went wrong while rendering this step.", details)


def _hover(datum: Any) -> str:
    if isinstance(datum, SeriesPoint):
        return f"{datum.key}: {datum.value:g}"
    return ""


def surface_to_figure(surface: ChartSurface, chart: ChartConfig) -> go.Figure:
    """
    Paint the chart surface as a Plotly figure.

    Elements are drawn at their target values; Plotly's layout.transition
    tweens from the previous figure in the browser. Bars carry their keys as
    trace ids so Plotly matches them by identity, the same way the surface
    does.

    Surface coordinates are SVG-like (y grows downwards from the top of the
    drawing area); they are flipped onto a y-up axis spanning [0, height].
    """
    height = chart.height

    keys: List[str] = []
    centers: List[float] = []
    widths: List[float] = []
    bases: List[float] = []
    heights: List[float] = []
    fills: List[str] = []
    opacities: List[float] = []
    hovers: List[str] = []

    for element in surface.elements(BAR_LAYER):
        attrs = surface.target_attrs(element.key)
        bar_height = float(attrs.get("height", 0.0))
        top = float(attrs.get("y", height))
        keys.append(element.key)
        centers.append(float(attrs.get("x", 0.0)) + float(attrs.get("width", 0.0)) / 2)
        widths.append(float(attrs.get("width", 0.0)))
        bases.append(height - (top + bar_height))
        heights.append(bar_height)
        fills.append(attrs.get("fill", chart.colors[0]))
        opacities.append(float(attrs.get("opacity", 1.0)))
        hovers.append(_hover(element.datum))

    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            ids=keys,
            x=centers,
            y=heights,
            base=bases,
            width=widths,
            marker={"color": fills, "opacity": opacities},
            hovertext=hovers,
            hoverinfo="text",
            showlegend=False,
        )
    )

    fig.update_layout(
        width=chart.width + chart.margin.left + chart.margin.right,
        height=chart.height + chart.margin.top + chart.margin.bottom,
        margin=dict(
            l=chart.margin.left,
            r=chart.margin.right,
            t=chart.margin.top,
            b=chart.margin.bottom,
        ),
        plot_bgcolor="white",
        paper_bgcolor="white",
        bargap=0,
        transition={"duration": chart.duration_ms, "easing": chart.easing},
        annotations=_title_annotations(surface, chart),
        uirevision="story",
    )
    fig.update_yaxes(range=[0, height], visible=False, fixedrange=True)
    fig.update_xaxes(fixedrange=True, **_axis_props(surface, chart))
    return fig


def _axis_props(surface: ChartSurface, chart: ChartConfig) -> Dict[str, Any]:
    props: Dict[str, Any] = {"range": [0, chart.width], "showgrid": False, "zeroline": False}
    if AXIS_KEY not in surface:
        props["visible"] = False
        return props

    attrs = surface.target_attrs(AXIS_KEY)
    ticks = attrs.get("ticks") or ()
    props.update(
        visible=float(attrs.get("opacity", 0.0)) > 0,
        tickmode="array",
        tickvals=[pos for pos, _ in ticks],
        ticktext=[label for _, label in ticks],
        showline=True,
        linecolor="#444",
    )
    return props


def _title_annotations(surface: ChartSurface, chart: ChartConfig) -> List[Dict[str, Any]]:
    annotations = []
    for element in surface.elements(TITLE_LAYER):
        attrs = surface.target_attrs(element.key)
        opacity = float(attrs.get("opacity", 0.0))
        if opacity <= 0:
            continue
        annotations.append(
            dict(
                text=f"<b>{attrs.get('text', '')}</b><br>{attrs.get('subtitle', '')}",
                x=attrs.get("x", chart.width / 2),
                y=chart.height - float(attrs.get("y", chart.height / 3)),
                xref="x",
                yref="y",
                showarrow=False,
                opacity=opacity,
                font={"size": 36, "color": chart.colors[0]},
            )
        )
    return annotations
