"""Data models used across the stereogram animation pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional, Tuple

import numpy as np

from stereogram_animator.errors import GeometryError, InvalidParameterError

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def coerce_int(value: Any, name: str) -> int:
    """Convert ``value`` to an integer or raise `InvalidParameterError`."""
    if isinstance(value, bool):
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
        return int(value)
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}") from exc


def coerce_float(value: Any, name: str) -> float:
    """Convert ``value`` to a finite float or raise `InvalidParameterError`."""
    if isinstance(value, bool):
        raise InvalidParameterError(f"{name} must be a number, got {value!r}")
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(parsed):
        raise InvalidParameterError(f"{name} must be finite, got {value!r}")
    return parsed


def coerce_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise InvalidParameterError(f"{name} must be a boolean, got {value!r}")


def _require_real(value: Any, name: str) -> float:
    """Accept only an actual int or float; strings must go through `coerce_float` first."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidParameterError(f"{name} must be a number, got {value!r}")
    return coerce_float(value, name)


@dataclass(frozen=True)
class StereogramParameters:
    """Parameters shared by every frame of one generation call."""

    num_strips: int = 6
    depth_multiplier: float = 1.0
    image_scale: float = 1.0
    tile_texture: bool = False
    mirror_tiles: bool = False

    def validate(self) -> None:
        if isinstance(self.num_strips, bool) or not isinstance(self.num_strips, int):
            raise InvalidParameterError(f"num_strips must be an integer, got {self.num_strips!r}")
        if self.num_strips < 1:
            raise InvalidParameterError(f"num_strips must be >= 1, got {self.num_strips}")
        multiplier = _require_real(self.depth_multiplier, "depth_multiplier")
        if multiplier < 0:
            raise InvalidParameterError(f"depth_multiplier must be >= 0, got {multiplier}")
        scale = _require_real(self.image_scale, "image_scale")
        if scale <= 0:
            raise InvalidParameterError(f"image_scale must be > 0, got {scale}")
        for name in ("tile_texture", "mirror_tiles"):
            if not isinstance(getattr(self, name), bool):
                raise InvalidParameterError(f"{name} must be a boolean, got {getattr(self, name)!r}")

    @classmethod
    def from_mapping(
        cls,
        raw: Mapping[str, Any],
        defaults: Optional["StereogramParameters"] = None,
    ) -> "StereogramParameters":
        """Build validated parameters from loosely typed input such as JSON or CLI values.

        Keys that are absent or ``None`` keep the value from ``defaults``.
        Present but malformed values raise `InvalidParameterError`.
        """
        base = defaults or cls()

        def pick(key: str) -> Any:
            value = raw.get(key)
            return getattr(base, key) if value is None else value

        parameters = cls(
            num_strips=coerce_int(pick("num_strips"), "num_strips"),
            depth_multiplier=coerce_float(pick("depth_multiplier"), "depth_multiplier"),
            image_scale=coerce_float(pick("image_scale"), "image_scale"),
            tile_texture=coerce_bool(pick("tile_texture"), "tile_texture"),
            mirror_tiles=coerce_bool(pick("mirror_tiles"), "mirror_tiles"),
        )
        parameters.validate()
        return parameters


@dataclass(frozen=True)
class FrameGeometry:
    """Derived pixel dimensions for one stereogram frame."""

    scaled_width: int
    scaled_height: int
    strip_width: int

    @property
    def output_width(self) -> int:
        return self.scaled_width + self.strip_width

    @property
    def output_height(self) -> int:
        return self.scaled_height


def compute_geometry(depth_width: int, depth_height: int, parameters: StereogramParameters) -> FrameGeometry:
    """Derive scaled depth size and strip width, failing on degenerate layouts."""
    if parameters.num_strips < 1:
        raise GeometryError(f"num_strips must be >= 1, got {parameters.num_strips}")

    scaled_width = int(math.floor(depth_width * parameters.image_scale))
    scaled_height = int(math.floor(depth_height * parameters.image_scale))
    if scaled_width < 1 or scaled_height < 1:
        raise GeometryError(
            f"Scaled depth map is empty ({scaled_width}x{scaled_height}) "
            f"for {depth_width}x{depth_height} at scale {parameters.image_scale}"
        )

    strip_width = scaled_width // parameters.num_strips
    if strip_width < 1:
        raise GeometryError(
            f"{parameters.num_strips} strips do not fit a scaled depth width of {scaled_width}"
        )

    return FrameGeometry(
        scaled_width=scaled_width,
        scaled_height=scaled_height,
        strip_width=strip_width,
    )


@dataclass(frozen=True)
class Frame:
    """A finished stereogram raster and the inputs it was built from."""

    index: int
    pixels: np.ndarray
    depth_name: Optional[str] = None
    texture_index: int = 0

    def __post_init__(self) -> None:
        self.pixels.flags.writeable = False

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True)
class AnimationSequence:
    """Ordered frames plus the preview interval between them."""

    frames: Tuple[Frame, ...] = field(default_factory=tuple)
    frame_interval_ms: int = 150

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(self.frames)

    def __getitem__(self, index: int) -> Frame:
        return self.frames[index]


__all__ = [
    "AnimationSequence",
    "Frame",
    "FrameGeometry",
    "StereogramParameters",
    "coerce_bool",
    "coerce_float",
    "coerce_int",
    "compute_geometry",
]
