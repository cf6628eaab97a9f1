from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional

from scrollstory.core.exceptions import SectionIndexError

ActivateFn = Callable[[], None]
ProgressFn = Callable[[float], None]


@dataclass(frozen=True)
class SectionDescriptor:
    """
    One narrative step.

    - activate: fired once each time the reader enters the section. Must be
      safe to call again with the same data (it drives visuals only).
    - on_progress: optional, fired repeatedly with scroll depth in [0, 1]
      while the section is current.
    """
    index: int
    activate: ActivateFn
    on_progress: Optional[ProgressFn] = None
    label: str = ""


class SectionRegistry:
    """
    Ordered registry of sections, looked up by index.

    Design Notes:
    - Indices are dense: the n-th registered section must have index n, so
      every index the scroll tracker can emit maps to exactly one section
    - Lookups outside 0..N-1 raise {@link SectionIndexError} instead of
      returning None; a miss means markup and registry are out of sync
    """

    def __init__(self):
        self._sections: List[SectionDescriptor] = []

    def register(self, descriptor: SectionDescriptor) -> None:
        """
        Append a section.

        :param descriptor: the section; its index must equal len(self)

        Raises:
            ValueError: if the index would leave a gap or repeat an index
        """
        expected = len(self._sections)
        if descriptor.index != expected:
            raise ValueError(
                f"Section index {descriptor.index} out of order, expected {expected}"
            )
        self._sections.append(descriptor)

    def add(
            self,
            activate: ActivateFn,
            on_progress: Optional[ProgressFn] = None,
            label: str = "",
    ) -> SectionDescriptor:
        """Register a section at the next free index and return it."""
        descriptor = SectionDescriptor(
            index=len(self._sections),
            activate=activate,
            on_progress=on_progress,
            label=label,
        )
        self.register(descriptor)
        return descriptor

    def get(self, index: int) -> SectionDescriptor:
        self.check_index(index)
        return self._sections[index]

    def check_index(self, index: int) -> None:
        if not 0 <= index < len(self._sections):
            raise SectionIndexError(
                f"Section index {index} outside 0..{len(self._sections) - 1}"
            )

    def __len__(self) -> int:
        return len(self._sections)

    def __iter__(self) -> Iterator[SectionDescriptor]:
        return iter(self._sections)
