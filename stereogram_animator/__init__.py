"""
Animated single-image stereogram generation from depth maps and repeating textures.
"""

from .errors import (
    EncodingError,
    GeometryError,
    InvalidParameterError,
    MissingInputError,
    RasterReadError,
    StereogramError,
)
from .export import encode_gif, export_frames, write_gif
from .models import AnimationSequence, Frame, StereogramParameters
from .player import AnimationPlayer, PlayerState
from .rendering import build_shift_table, composite_stereogram
from .sequencer import generate_frame, generate_frames
from .session import StereogramSession
from .texture import prepare_strip

__all__ = [
    "AnimationPlayer",
    "AnimationSequence",
    "EncodingError",
    "Frame",
    "GeometryError",
    "InvalidParameterError",
    "MissingInputError",
    "PlayerState",
    "RasterReadError",
    "StereogramError",
    "StereogramParameters",
    "StereogramSession",
    "build_shift_table",
    "composite_stereogram",
    "encode_gif",
    "export_frames",
    "generate_frame",
    "generate_frames",
    "prepare_strip",
    "write_gif",
]
