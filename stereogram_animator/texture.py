"""Seed-strip preparation from a repeating texture."""

from __future__ import annotations

import math

import numpy as np

from stereogram_animator.errors import GeometryError
from stereogram_animator.sources import resize_raster

# Textures are scaled slightly wider than the strip before painting it.
WIDTH_MARGIN = 1.1


def tile_texture(tile: np.ndarray, height: int, *, mirror: bool = False) -> np.ndarray:
    """Stack copies of ``tile`` vertically until ``height`` rows are filled.

    With ``mirror`` set, every odd copy is flipped upside down so that
    neighbouring copies meet at matching rows.
    """
    tile_height, tile_width = tile.shape[:2]
    tiled = np.zeros((height, tile_width) + tile.shape[2:], dtype=tile.dtype)
    copies = math.ceil(height / tile_height)
    for index in range(copies):
        block = tile[::-1] if mirror and index % 2 == 1 else tile
        top = index * tile_height
        rows = min(tile_height, height - top)
        tiled[top:top + rows] = block[:rows]
    return tiled


def _scale_untiled(texture: np.ndarray, strip_width: int, strip_height: int) -> np.ndarray:
    height, width = texture.shape[:2]
    scaled = texture
    if strip_width > width * WIDTH_MARGIN:
        target_width = math.ceil(strip_width * WIDTH_MARGIN)
        target_height = max(1, math.ceil(height * target_width / width))
        scaled = resize_raster(scaled, target_width, target_height)
        height, width = scaled.shape[:2]
    # Only the height is corrected here, which can stretch the aspect ratio
    # again after the width fix-up above.
    if strip_height > height:
        target_width = max(1, math.ceil(width * strip_height / height))
        scaled = resize_raster(scaled, target_width, strip_height)
    return scaled


def _scale_tiled(
    texture: np.ndarray,
    strip_width: int,
    strip_height: int,
    *,
    mirror: bool,
) -> np.ndarray:
    height, width = texture.shape[:2]
    target_width = math.ceil(strip_width * WIDTH_MARGIN)
    target_height = max(1, round(height * target_width / width))
    tile = resize_raster(texture, target_width, target_height)
    return tile_texture(tile, strip_height, mirror=mirror)


def prepare_strip(
    texture: np.ndarray,
    strip_width: int,
    strip_height: int,
    *,
    tile: bool = False,
    mirror: bool = False,
) -> np.ndarray:
    """Return the seed strip of shape ``(strip_height, strip_width, 4)`` painted from ``texture``.

    Without tiling the texture is only ever enlarged: first to cover the strip
    width plus a 10% margin, then, if still too short, to the strip height.
    With tiling it is resized to the margin width and stacked vertically,
    optionally mirroring every other copy. Either way the result is finally
    painted into the strip box without smoothing.
    """
    if texture.ndim < 2 or texture.shape[0] < 1 or texture.shape[1] < 1:
        raise GeometryError(f"Texture raster is empty: shape {texture.shape}")
    if strip_width < 1 or strip_height < 1:
        raise GeometryError(f"Strip size must be positive, got {strip_width}x{strip_height}")

    if tile:
        painted = _scale_tiled(texture, strip_width, strip_height, mirror=mirror)
    else:
        painted = _scale_untiled(texture, strip_width, strip_height)

    return resize_raster(painted, strip_width, strip_height, smooth=False)


__all__ = ["WIDTH_MARGIN", "prepare_strip", "tile_texture"]
