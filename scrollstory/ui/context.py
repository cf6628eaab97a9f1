from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

from scrollstory.config.model import GlobalConfig
from scrollstory.services.dataset_service import DatasetManager
from scrollstory.story.builder import Story, build_story

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """
    Holds shared state for the Dash app: config, datasets and the wired-up
    story. Passed into layout + callback registration instead of
    module-level globals.

    Dash may run callbacks on several worker threads; every callback that
    touches the story holds `lock` so the story itself only ever sees one
    caller at a time.
    """
    config_root: Path
    global_config: GlobalConfig
    dataset_manager: DatasetManager
    story: Story
    lock: threading.RLock = field(default_factory=threading.RLock)

    def reload(self) -> None:
        """
        Refetch every dataset and rebuild the story against the same surface
        and state, both reset first so nothing carries over from old data.
        """
        with self.lock:
            logger.info("Reloading datasets", extra={"config_root": str(self.config_root)})
            datasets = self.dataset_manager.reload()
            self.story.state.reset()
            self.story.surface.clear()
            self.story = build_story(
                self.global_config,
                self.dataset_manager,
                surface=self.story.surface,
                state=self.story.state,
            )
            logger.info("Reload complete", extra={"dataset_names": sorted(datasets)})

    def status_text(self) -> str:
        manager = self.dataset_manager
        empty = [name for name in sorted(manager) if manager.raw(name) is None or manager.raw(name).is_empty]
        if not empty:
            return f"{len(manager)} dataset(s) loaded"
        return f"{len(manager)} dataset(s) loaded, no data for: {', '.join(empty)}"
