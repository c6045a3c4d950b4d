"""Batch generation of ordered stereogram frames from depth map / texture pairs."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence

import numpy as np

from stereogram_animator.errors import GeometryError, MissingInputError
from stereogram_animator.models import Frame, StereogramParameters, compute_geometry
from stereogram_animator.progress import ProgressReporter
from stereogram_animator.rendering import build_shift_table, composite_stereogram
from stereogram_animator.sources import SourceImage, resize_raster
from stereogram_animator.texture import prepare_strip

LOGGER = logging.getLogger(__name__)


def texture_index_for(frame_index: int, texture_count: int) -> int:
    """Textures are reused cyclically when there are fewer textures than depth maps."""
    return frame_index % texture_count


def generate_frame(
    depth_map: np.ndarray,
    texture: np.ndarray,
    parameters: StereogramParameters,
    shift_table: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Render a single stereogram raster for one depth map and texture."""
    parameters.validate()
    if texture.ndim < 2 or texture.shape[0] < 1 or texture.shape[1] < 1:
        raise GeometryError(f"Texture raster is empty: shape {texture.shape}")

    geometry = compute_geometry(depth_map.shape[1], depth_map.shape[0], parameters)
    if shift_table is None:
        shift_table = build_shift_table(parameters.depth_multiplier)

    scaled_depth = resize_raster(depth_map, geometry.scaled_width, geometry.scaled_height)
    strip = prepare_strip(
        texture,
        geometry.strip_width,
        geometry.scaled_height,
        tile=parameters.tile_texture,
        mirror=parameters.mirror_tiles,
    )
    pixels = composite_stereogram(scaled_depth, strip, parameters.num_strips, shift_table)
    expected = (geometry.output_height, geometry.output_width)
    if pixels.shape[:2] != expected:
        raise GeometryError(
            f"Composited frame is {pixels.shape[1]}x{pixels.shape[0]}, "
            f"expected {expected[1]}x{expected[0]}"
        )
    return pixels


def _check_geometry(
    depth_maps: Sequence[SourceImage],
    parameters: StereogramParameters,
) -> None:
    for index, depth in enumerate(depth_maps):
        try:
            compute_geometry(depth.pixels.shape[1], depth.pixels.shape[0], parameters)
        except GeometryError as exc:
            raise GeometryError(f"Depth map {index} ({depth.name}): {exc}") from exc


def generate_frames(
    depth_maps: Sequence[SourceImage],
    textures: Sequence[SourceImage],
    parameters: StereogramParameters,
    *,
    workers: int = 1,
    logger: Optional[logging.Logger] = None,
) -> List[Frame]:
    """Render one frame per depth map, in depth map order.

    Frame ``i`` uses ``textures[i % len(textures)]``. Frames are independent
    and may be rendered on up to ``workers`` threads; results are stored by
    index so the output order never depends on completion order. The first
    failure aborts the batch and is re-raised.
    """
    log = logger or LOGGER
    if not depth_maps:
        raise MissingInputError("No depth maps loaded; add depth maps before generating")
    if not textures:
        raise MissingInputError("No textures loaded; add textures before generating")

    parameters.validate()
    _check_geometry(depth_maps, parameters)
    for index, texture in enumerate(textures):
        if texture.pixels.shape[0] < 1 or texture.pixels.shape[1] < 1:
            raise GeometryError(f"Texture {index} ({texture.name}) is empty")

    shift_table = build_shift_table(parameters.depth_multiplier)
    total = len(depth_maps)
    texture_count = len(textures)
    results: List[Optional[Frame]] = [None] * total
    progress = ProgressReporter(log, "Stereogram generation", total)

    log.info(
        "Generating %s frames from %s textures (strips=%s, depth x%s, scale %s, tile=%s, mirror=%s)",
        total,
        texture_count,
        parameters.num_strips,
        parameters.depth_multiplier,
        parameters.image_scale,
        parameters.tile_texture,
        parameters.mirror_tiles,
    )

    def render(index: int) -> Frame:
        depth = depth_maps[index]
        texture_index = texture_index_for(index, texture_count)
        log.debug("Rendering frame %s/%s from %s", index + 1, total, depth.name)
        pixels = generate_frame(
            depth.pixels,
            textures[texture_index].pixels,
            parameters,
            shift_table,
        )
        return Frame(
            index=index,
            pixels=pixels,
            depth_name=depth.name,
            texture_index=texture_index,
        )

    with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        futures = [executor.submit(render, index) for index in range(total)]
        try:
            for future in as_completed(futures):
                frame = future.result()
                results[frame.index] = frame
                progress.advance()
        except BaseException:
            for pending in futures:
                pending.cancel()
            raise

    frames = [frame for frame in results if frame is not None]
    log.info("Generated %s frames", len(frames))
    return frames


__all__ = ["generate_frame", "generate_frames", "texture_index_for"]
