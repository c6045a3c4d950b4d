import logging
import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stereogram_animator.errors import (  # noqa: E402
    GeometryError,
    InvalidParameterError,
    MissingInputError,
)
from stereogram_animator.models import StereogramParameters, compute_geometry  # noqa: E402
from stereogram_animator.sequencer import generate_frame, generate_frames  # noqa: E402
from stereogram_animator.sources import SourceImage  # noqa: E402

LOGGER = logging.getLogger("sequencer-tests")


def solid(height: int, width: int, rgba) -> np.ndarray:
    raster = np.zeros((height, width, 4), dtype=np.uint8)
    raster[...] = rgba
    return raster


def depth_source(name: str, height: int = 4, width: int = 6, value: int = 0) -> SourceImage:
    return SourceImage(name=name, pixels=solid(height, width, (value, value, value, 255)))


def unique_colors(raster: np.ndarray) -> set:
    return {tuple(int(c) for c in pixel) for pixel in raster.reshape(-1, raster.shape[-1])}


def test_flat_depth_with_solid_texture_is_solid_frame():
    depth = solid(4, 4, (0, 0, 0, 255))
    texture = solid(1, 1, (90, 60, 30, 255))
    parameters = StereogramParameters(num_strips=2, depth_multiplier=1.0, image_scale=1.0)

    frame = generate_frame(depth, texture, parameters)

    # strip width 2, so 4 + 2 columns
    assert frame.shape == (4, 6, 4)
    assert unique_colors(frame) == {(90, 60, 30, 255)}


def test_too_many_strips_for_scaled_width_raises_geometry_error():
    depth = solid(4, 4, (0, 0, 0, 255))
    texture = solid(1, 1, (255, 255, 255, 255))

    with pytest.raises(GeometryError):
        generate_frame(depth, texture, StereogramParameters(num_strips=5))


@pytest.mark.parametrize(
    "num_strips, scale, expected_size",
    [
        (6, 1.0, (40 + 6, 20)),
        (6, 0.5, (20 + 3, 10)),
        (3, 0.75, (30 + 10, 15)),
        (7, 1.0, (40 + 5, 20)),
    ],
)
def test_frame_size_follows_scaled_depth_and_strip_width(num_strips, scale, expected_size):
    depth = solid(20, 40, (128, 128, 128, 255))
    texture = solid(5, 5, (1, 2, 3, 255))
    parameters = StereogramParameters(num_strips=num_strips, image_scale=scale)

    frame = generate_frame(depth, texture, parameters)

    assert (frame.shape[1], frame.shape[0]) == expected_size
    geometry = compute_geometry(40, 20, parameters)
    assert (geometry.output_width, geometry.output_height) == expected_size


def test_generates_one_frame_per_depth_map_with_cyclic_textures():
    depth_maps = [depth_source(f"depth_{index}.png", value=index * 40) for index in range(5)]
    colors = [(255, 0, 0, 255), (0, 255, 0, 255)]
    textures = [SourceImage(name=f"tex{i}.png", pixels=solid(3, 3, color)) for i, color in enumerate(colors)]
    parameters = StereogramParameters(num_strips=3, depth_multiplier=0.0)

    frames = generate_frames(depth_maps, textures, parameters, workers=3, logger=LOGGER)

    assert len(frames) == 5
    assert [frame.index for frame in frames] == [0, 1, 2, 3, 4]
    assert [frame.depth_name for frame in frames] == [f"depth_{index}.png" for index in range(5)]
    assert [frame.texture_index for frame in frames] == [0, 1, 0, 1, 0]
    for frame in frames:
        assert unique_colors(frame.pixels) == {colors[frame.texture_index]}


def test_frames_are_read_only_and_do_not_alias_inputs():
    depth = depth_source("depth_1.png")
    texture = SourceImage(name="tex.png", pixels=solid(2, 2, (4, 5, 6, 255)))

    frame = generate_frames([depth], [texture], StereogramParameters(num_strips=2))[0]

    assert not frame.pixels.flags.writeable
    assert not np.shares_memory(frame.pixels, depth.pixels)
    assert not np.shares_memory(frame.pixels, texture.pixels)
    with pytest.raises(ValueError):
        frame.pixels[0, 0, 0] = 1


def test_missing_depth_maps_or_textures_abort_generation():
    texture = SourceImage(name="tex.png", pixels=solid(2, 2, (1, 1, 1, 255)))
    with pytest.raises(MissingInputError):
        generate_frames([], [texture], StereogramParameters())
    with pytest.raises(MissingInputError):
        generate_frames([depth_source("depth_1.png")], [], StereogramParameters())


@pytest.mark.parametrize(
    "parameters",
    [
        StereogramParameters(num_strips=0),
        StereogramParameters(depth_multiplier=-0.5),
        StereogramParameters(image_scale=0.0),
        StereogramParameters(image_scale=float("nan")),
        StereogramParameters(num_strips=2, depth_multiplier="1.0"),
        StereogramParameters(num_strips=2, image_scale="0.5"),
        StereogramParameters(num_strips=2, tile_texture="yes"),
    ],
)
def test_invalid_parameters_are_rejected_before_rendering(parameters):
    texture = SourceImage(name="tex.png", pixels=solid(2, 2, (1, 1, 1, 255)))
    with pytest.raises(InvalidParameterError):
        generate_frames([depth_source("depth_1.png")], [texture], parameters)


def test_one_narrow_depth_map_aborts_the_whole_batch():
    depth_maps = [depth_source("depth_1.png", width=12), depth_source("depth_2.png", width=4)]
    texture = SourceImage(name="tex.png", pixels=solid(2, 2, (1, 1, 1, 255)))

    with pytest.raises(GeometryError, match="depth_2.png"):
        generate_frames(depth_maps, [texture], StereogramParameters(num_strips=5))


def test_empty_texture_is_rejected_before_rendering():
    texture = SourceImage(name="blank.png", pixels=np.zeros((0, 0, 4), dtype=np.uint8))
    with pytest.raises(GeometryError, match="blank.png"):
        generate_frames([depth_source("depth_1.png")], [texture], StereogramParameters(num_strips=2))


def test_single_frame_rejects_string_parameters():
    depth = solid(4, 8, (0, 0, 0, 255))
    texture = solid(2, 2, (5, 5, 5, 255))

    with pytest.raises(InvalidParameterError, match="depth_multiplier"):
        generate_frame(depth, texture, StereogramParameters(num_strips=2, depth_multiplier="1.0"))
    with pytest.raises(InvalidParameterError, match="image_scale"):
        generate_frame(depth, texture, StereogramParameters(num_strips=2, image_scale="0.5"))
