"""Input raster decoding and file-name ordering helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Tuple, Union

import cv2
import numpy as np

from stereogram_animator.errors import RasterReadError

FRAME_NUMBER_REGEX = re.compile(r"(\d+)(?=\.[^.]+$)")
_DIGIT_RUN_REGEX = re.compile(r"(\d+)")

PathLike = Union[str, Path]


def depth_sort_key(name: str) -> int:
    """Return the number right before the file extension (``depth_12.png`` -> 12), else 0."""
    match = FRAME_NUMBER_REGEX.search(Path(name).name)
    return int(match.group(1)) if match else 0


def natural_sort_key(name: str) -> Tuple[object, ...]:
    """Case-insensitive sort key that orders embedded numbers numerically."""
    parts = _DIGIT_RUN_REGEX.split(Path(name).name.casefold())
    return tuple(int(part) if index % 2 else part for index, part in enumerate(parts))


def to_rgba(image: np.ndarray) -> np.ndarray:
    """Convert an OpenCV-decoded image (gray, BGR or BGRA) to an RGBA uint8 raster."""
    if image.dtype != np.uint8:
        # 16-bit depth maps are common; keep the top byte.
        if image.dtype == np.uint16:
            image = (image >> 8).astype(np.uint8)
        else:
            image = np.clip(image, 0, 255).astype(np.uint8)

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    channels = image.shape[2]
    if channels == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2RGBA)
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    raise RasterReadError(f"Unsupported channel count: {channels}")


def load_raster(path: PathLike) -> np.ndarray:
    """Decode an image file into an RGBA raster."""
    image_path = Path(path)
    image = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise RasterReadError(f"Failed to read image: {image_path}")
    return to_rgba(image)


def resize_raster(raster: np.ndarray, width: int, height: int, *, smooth: bool = True) -> np.ndarray:
    """Resize to exactly ``width`` x ``height``; returns a new array."""
    if raster.shape[1] == width and raster.shape[0] == height:
        return raster.copy()
    interpolation = cv2.INTER_LINEAR if smooth else cv2.INTER_NEAREST
    return cv2.resize(raster, (width, height), interpolation=interpolation)


@dataclass(frozen=True)
class SourceImage:
    """A decoded input raster and the file name it came from."""

    name: str
    pixels: np.ndarray

    @classmethod
    def from_path(cls, path: PathLike) -> "SourceImage":
        image_path = Path(path)
        return cls(name=image_path.name, pixels=load_raster(image_path))


def load_depth_maps(paths: Iterable[PathLike]) -> List[SourceImage]:
    """Load depth maps ordered by the frame number embedded in each file name."""
    images = [SourceImage.from_path(path) for path in paths]
    images.sort(key=lambda image: depth_sort_key(image.name))
    return images


def load_textures(paths: Iterable[PathLike]) -> List[SourceImage]:
    """Load textures in natural file-name order."""
    images = [SourceImage.from_path(path) for path in paths]
    images.sort(key=lambda image: natural_sort_key(image.name))
    return images


__all__ = [
    "SourceImage",
    "depth_sort_key",
    "load_depth_maps",
    "load_raster",
    "load_textures",
    "natural_sort_key",
    "resize_raster",
    "to_rgba",
]
