"""
Story layer: scenes bound to sections, and the builder that wires
tracker, state machine and reconciler together.
"""

from .builder import Story, build_scene_registry, build_story

__all__ = ["Story", "build_scene_registry", "build_story"]
