"""Exception types raised by the stereogram animation pipeline."""

from __future__ import annotations


class StereogramError(Exception):
    """Base class for all stereogram pipeline failures."""


class MissingInputError(StereogramError):
    """Raised when generation is requested without depth maps or textures."""


class InvalidParameterError(StereogramError, ValueError):
    """Raised for non-numeric or out-of-range generation and export parameters."""


class GeometryError(StereogramError):
    """Raised when the derived frame geometry cannot produce a stereogram."""


class EncodingError(StereogramError, RuntimeError):
    """Raised when an image or animation encoder fails to produce output."""


class RasterReadError(StereogramError):
    """Raised when an input image cannot be decoded into a raster."""


__all__ = [
    "EncodingError",
    "GeometryError",
    "InvalidParameterError",
    "MissingInputError",
    "RasterReadError",
    "StereogramError",
]
