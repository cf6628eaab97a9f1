from __future__ import annotations

from typing import Dict, List, Type

from scrollstory.config.model import SectionConfig
from scrollstory.core.exceptions import UnknownSceneError
from scrollstory.story.base_scene import BaseScene, SceneContext


class SceneRegistry:
    """
    Registry for scene classes so the story can be assembled from config.

    Purpose:
    - Section configs name a scene ('title', 'histogram', ...) instead of
      pointing at handler functions, and the registry resolves the name
    - Stores the subclasses of {@link BaseScene}, not instances; each section
      gets its own instance bound to its own dataset/series

    Enforces:
    - only {@link BaseScene} subclasses can be registered
    - each scene 'id' is unique across the registry
    """

    def __init__(self):
        self._scenes: Dict[str, Type[BaseScene]] = {}

    def register(self, scene_cls: Type[BaseScene]) -> None:
        """
        Raises:
            TypeError: if scene_cls is not a subclass of {@link BaseScene}
            ValueError: if a scene with same 'id' already exists
        """
        if not issubclass(scene_cls, BaseScene):
            raise TypeError(f"Scene '{scene_cls!r}' must be a subclass of BaseScene")

        if scene_cls.id in self._scenes:
            raise ValueError(f"Scene '{scene_cls.id}' already registered")

        self._scenes[scene_cls.id] = scene_cls

    def create(self, ctx: SceneContext, section: SectionConfig) -> BaseScene:
        """
        Raises:
            UnknownSceneError: if no scene with the section's id exists
        """
        try:
            cls = self._scenes[section.scene]
        except KeyError:
            raise UnknownSceneError(f"Scene '{section.scene}' not found")
        return cls(ctx, section)

    def all_classes(self) -> List[Type[BaseScene]]:
        return list(self._scenes.values())
