"""
Core domain layer: derived datasets, section registry and state machine,
scroll tracking, and the chart surface/reconciler
"""

from .dataset import DerivedSeries, HistogramBin, PreprocessedDataset, RawDataset
from .reconciler import ChartReconciler, Join, diff
from .scroll_tracker import ScrollTracker, StepGeometry, ViewportSignal
from .section_machine import SectionStateMachine
from .sections import SectionDescriptor, SectionRegistry
from .state import VisualizationState
from .surface import ChartSurface

__all__ = [
    "DerivedSeries",
    "HistogramBin",
    "PreprocessedDataset",
    "RawDataset",
    "ChartReconciler",
    "Join",
    "diff",
    "ScrollTracker",
    "StepGeometry",
    "ViewportSignal",
    "SectionStateMachine",
    "SectionDescriptor",
    "SectionRegistry",
    "VisualizationState",
    "ChartSurface",
]
