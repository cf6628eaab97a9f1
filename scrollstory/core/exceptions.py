

class ScrollStoryError(Exception):
    """Base exception for all scrollstory errors"""
    pass

class ConfigError(ScrollStoryError):
    """Invalid or inconsistent global.json / dataset config"""
    pass

class SectionIndexError(ScrollStoryError, IndexError):
    """
    A scroll event referenced a section outside 0..N-1.
    Means the step markup and the section registry disagree - not recoverable
    """
    pass

class UnknownSceneError(ScrollStoryError):
    """Config names a scene that is not registered"""
    pass
