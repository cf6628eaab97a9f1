from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from scrollstory.core.dataset import DerivedSeries

NO_SECTION = -1


@dataclass
class VisualizationState:
    """
    State shared by the section machine and the chart reconciler.

    Fields:

    - last_index: last section whose activation completed, NO_SECTION before the first
    - current_section: section whose activation handler is running, or ran last
    - rendered: series currently on screen, by the section that drew it

    Only {@link SectionStateMachine} and {@link ChartReconciler} write to it.
    """

    last_index: int = NO_SECTION
    current_section: Optional[int] = None
    rendered: Dict[int, DerivedSeries] = field(default_factory=dict)

    def reset(self) -> None:
        """Back to the pre-load state. Used when the underlying data is reloaded."""
        self.last_index = NO_SECTION
        self.current_section = None
        self.rendered.clear()
