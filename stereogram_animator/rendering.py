"""Depth-driven strip compositing for single-image stereograms."""

from __future__ import annotations

import numpy as np

from stereogram_animator.errors import GeometryError

# Disparity in pixels at depth 255 with a unit multiplier.
MAX_DISPARITY = 15
DEPTH_LEVELS = 256


def build_shift_table(depth_multiplier: float) -> np.ndarray:
    """Map every 8-bit depth value to its horizontal pixel shift.

    ``table[v] == floor(15 * v * depth_multiplier / 255)``.
    """
    values = np.arange(DEPTH_LEVELS, dtype=np.float64)
    shifts = np.floor(MAX_DISPARITY * values * depth_multiplier / 255)
    return shifts.astype(np.int64)


def depth_channel(depth_map: np.ndarray) -> np.ndarray:
    """Return the per-pixel depth values (red channel of RGBA, or the single gray channel)."""
    if depth_map.ndim == 2:
        return depth_map
    return depth_map[:, :, 0]


def composite_stereogram(
    depth_map: np.ndarray,
    strip: np.ndarray,
    num_strips: int,
    shift_table: np.ndarray,
) -> np.ndarray:
    """Build one stereogram frame from a scaled depth map and a prepared seed strip.

    Parameters
    ----------
    depth_map:
        Depth raster already resampled to the output scale, shape ``(H, W[, C])``.
    strip:
        Prepared RGBA seed strip of shape ``(H, strip_width, 4)``.
    num_strips:
        Number of depth-shifted repeats laid out to the right of the seed strip.
    shift_table:
        Lookup from depth value to pixel shift, see `build_shift_table`.

    The output is ``W + strip_width`` wide. Columns are resolved left to right:
    destination column ``c + strip_width`` copies the colour already present at
    ``c + shift`` (clamped to the frame), so every copy reads either the seed
    strip or a column finished earlier. Rows do not depend on each other and
    are processed together.
    """
    if num_strips < 1:
        raise GeometryError(f"num_strips must be >= 1, got {num_strips}")

    height, width = depth_map.shape[:2]
    strip_height, strip_width = strip.shape[:2]
    if strip_width < 1:
        raise GeometryError(
            f"{num_strips} strips do not fit a scaled depth width of {width}"
        )
    if strip_height != height:
        raise GeometryError(
            f"Seed strip height {strip_height} does not match depth height {height}"
        )
    if num_strips * strip_width > width:
        raise GeometryError(
            f"{num_strips} strips of width {strip_width} exceed depth width {width}"
        )

    output_width = width + strip_width
    output = np.zeros((height, output_width, 4), dtype=np.uint8)
    output[:, :strip_width] = strip

    shifts = shift_table[depth_channel(depth_map).astype(np.intp)]
    rows = np.arange(height)

    for column in range(num_strips * strip_width):
        source = np.clip(column + shifts[:, column], 0, output_width - 1)
        target = column + strip_width
        output[:, target, :3] = output[rows, source, :3]
        output[:, target, 3] = 255

    return output


__all__ = [
    "DEPTH_LEVELS",
    "MAX_DISPARITY",
    "build_shift_table",
    "composite_stereogram",
    "depth_channel",
]
