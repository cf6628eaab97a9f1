"""
Top-level package for the scroll-linked story.

Most code should import from submodules such as:
    scrollstory.core
    scrollstory.story
    scrollstory.ui
"""

__all__: list[str] = []
