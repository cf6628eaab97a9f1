from __future__ import annotations

import logging
from typing import List

import numpy as np

from scrollstory.core.sections import SectionRegistry
from scrollstory.core.state import NO_SECTION, VisualizationState

logger = logging.getLogger(__name__)


def traversal_range(last_index: int, new_index: int) -> List[int]:
    """
    Sections crossed when moving from last_index to new_index.

    Excludes last_index, includes new_index, ordered in scroll direction.
    Moving to the same index crosses nothing.

    >>> traversal_range(1, 4)
    [2, 3, 4]
    >>> traversal_range(4, 1)
    [3, 2, 1]
    """
    sign = 1 if new_index >= last_index else -1
    return list(range(last_index + sign, new_index + sign, sign))


class SectionStateMachine:
    """
    Turns tracker events into activation handler calls.

    A fast scroll can jump straight from section 1 to section 4; every
    section in between still gets its activate() call, in order, before
    activate() returns. Handlers run synchronously on the caller's thread.
    """

    def __init__(self, registry: SectionRegistry, state: VisualizationState):
        self.registry = registry
        self.state = state

    @property
    def last_index(self) -> int:
        return self.state.last_index

    def activate(self, index: int) -> List[int]:
        """
        Handle active(index).

        :param index: section the tracker reports as active
        :return: the sections whose handlers fired, in firing order

        Raises:
            SectionIndexError: index outside 0..N-1; raised before any handler runs
        """
        self.registry.check_index(index)

        crossed = traversal_range(self.state.last_index, index)
        if not crossed:
            return crossed

        logger.debug(
            "section_traversal",
            extra={"from": self.state.last_index, "to": index, "crossed": crossed},
        )

        for i in crossed:
            section = self.registry.get(i)
            self.state.current_section = i
            section.activate()
            # Recorded per section so a raising handler resumes from here next time
            self.state.last_index = i

        return crossed

    def update(self, index: int, progress: float) -> None:
        """
        Handle progress(index, progress). Never changes last_index.
        """
        section = self.registry.get(index)
        progress = float(np.clip(progress, 0.0, 1.0))
        if section.on_progress is not None:
            section.on_progress(progress)

    def reset(self) -> None:
        self.state.reset()

    @property
    def is_idle(self) -> bool:
        return self.state.last_index == NO_SECTION
