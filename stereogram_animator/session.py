"""Per-run accumulation of uploaded depth maps and textures."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from stereogram_animator.models import AnimationSequence, StereogramParameters
from stereogram_animator.sequencer import generate_frames
from stereogram_animator.sources import SourceImage, load_depth_maps, load_textures

LOGGER = logging.getLogger(__name__)


class StereogramSession:
    """Holds the depth maps and textures added so far.

    Each add call sorts its own batch (depth maps by trailing frame number,
    textures by natural name order) and appends it after earlier batches.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or LOGGER
        self.depth_maps: List[SourceImage] = []
        self.textures: List[SourceImage] = []

    def add_depth_maps(self, paths: Sequence[Union[str, Path]]) -> int:
        batch = load_depth_maps(paths)
        self.depth_maps.extend(batch)
        self.logger.info("Loaded %s depth maps (%s total)", len(batch), len(self.depth_maps))
        return len(self.depth_maps)

    def add_textures(self, paths: Sequence[Union[str, Path]]) -> int:
        batch = load_textures(paths)
        self.textures.extend(batch)
        self.logger.info("Loaded %s textures (%s total)", len(batch), len(self.textures))
        return len(self.textures)

    def clear(self) -> None:
        self.depth_maps.clear()
        self.textures.clear()

    def generate(
        self,
        parameters: StereogramParameters,
        *,
        frame_interval_ms: int = 150,
        workers: int = 1,
    ) -> AnimationSequence:
        """Render all accumulated depth maps into an ordered animation."""
        frames = generate_frames(
            self.depth_maps,
            self.textures,
            parameters,
            workers=workers,
            logger=self.logger,
        )
        return AnimationSequence(frames=tuple(frames), frame_interval_ms=frame_interval_ms)


__all__ = ["StereogramSession"]
