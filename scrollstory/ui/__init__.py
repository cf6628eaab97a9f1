"""
Dash delivery layer: layout, callbacks and the Plotly painter for the
chart surface.
"""
