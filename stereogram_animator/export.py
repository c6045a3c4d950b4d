"""Still-frame and animated GIF export for generated stereogram frames."""

from __future__ import annotations

import io
import logging
import uuid
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

import cv2
from PIL import Image

from stereogram_animator.errors import EncodingError, InvalidParameterError, MissingInputError
from stereogram_animator.models import Frame, coerce_float

LOGGER = logging.getLogger(__name__)

DEFAULT_FRAME_PREFIX = "stereo_"
DEFAULT_FRAME_EXTENSION = ".jpg"
DEFAULT_GIF_NAME = "animated_stereogram.gif"


def _require_frames(frames: Sequence[Frame]) -> None:
    if not frames:
        raise MissingInputError("No frames to export; generate an animation first")


def frame_filename(
    index: int,
    total: int,
    *,
    prefix: str = DEFAULT_FRAME_PREFIX,
    extension: str = DEFAULT_FRAME_EXTENSION,
) -> str:
    """Zero-padded file name for frame ``index``: at least three digits."""
    width = max(3, len(str(max(0, total - 1))))
    suffix = extension if extension.startswith(".") else f".{extension}"
    return f"{prefix}{index:0{width}d}{suffix}"


def export_frames(
    frames: Sequence[Frame],
    output_dir: Union[str, Path],
    *,
    prefix: str = DEFAULT_FRAME_PREFIX,
    extension: str = DEFAULT_FRAME_EXTENSION,
    logger: Optional[logging.Logger] = None,
) -> List[Path]:
    """Write each frame as its own numbered image file, in sequence order."""
    log = logger or LOGGER
    _require_frames(frames)

    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    suffix = extension if extension.startswith(".") else f".{extension}"

    written: List[Path] = []
    for position, frame in enumerate(frames):
        # JPEG has no alpha channel; PNG and friends keep it.
        if suffix.lower() in {".jpg", ".jpeg", ".bmp"}:
            image = cv2.cvtColor(frame.pixels, cv2.COLOR_RGBA2BGR)
        else:
            image = cv2.cvtColor(frame.pixels, cv2.COLOR_RGBA2BGRA)

        success, buffer = cv2.imencode(suffix, image)
        if not success:
            raise EncodingError(f"Failed to encode frame {position} as {suffix}")

        path = directory / frame_filename(position, len(frames), prefix=prefix, extension=suffix)
        path.write_bytes(buffer.tobytes())
        written.append(path)

    log.info("Exported %s frames to %s", len(written), directory)
    return written


def validate_fps(value: Any) -> float:
    """Return ``value`` as a positive frame rate or raise `InvalidParameterError`."""
    if value is None:
        raise InvalidParameterError("A frame rate is required for GIF export")
    fps = coerce_float(value, "fps")
    if fps <= 0:
        raise InvalidParameterError(f"fps must be > 0, got {value!r}")
    return fps


def encode_gif(
    frames: Sequence[Frame],
    fps: Any,
    *,
    logger: Optional[logging.Logger] = None,
) -> bytes:
    """Encode ``frames`` as a looping animated GIF with a ``1000 / fps`` ms frame delay."""
    log = logger or LOGGER
    frame_rate = validate_fps(fps)
    _require_frames(frames)

    delay_ms = 1000.0 / frame_rate
    images = [Image.fromarray(frame.pixels).convert("RGB") for frame in frames]

    buffer = io.BytesIO()
    try:
        images[0].save(
            buffer,
            format="GIF",
            save_all=True,
            append_images=images[1:],
            duration=delay_ms,
            loop=0,
        )
    except (OSError, ValueError) as exc:
        raise EncodingError(f"GIF encoding failed: {exc}") from exc

    data = buffer.getvalue()
    if not data:
        raise EncodingError("GIF encoder produced no data")

    log.info(
        "Encoded %s frames as GIF at %.2f fps (%.1f ms/frame, %.1f KiB)",
        len(images),
        frame_rate,
        delay_ms,
        len(data) / 1024,
    )
    return data


def write_gif(
    frames: Sequence[Frame],
    fps: Any,
    output_path: Union[str, Path],
    *,
    logger: Optional[logging.Logger] = None,
) -> Path:
    """Encode frames to a GIF and atomically place it at ``output_path``."""
    data = encode_gif(frames, fps, logger=logger)

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_output = path.with_name(f".tmp_{uuid.uuid4().hex}_{path.name}")
    try:
        temp_output.write_bytes(data)
        temp_output.replace(path)
    finally:
        if temp_output.exists():
            temp_output.unlink()
    return path


__all__ = [
    "DEFAULT_FRAME_EXTENSION",
    "DEFAULT_FRAME_PREFIX",
    "DEFAULT_GIF_NAME",
    "encode_gif",
    "export_frames",
    "frame_filename",
    "validate_fps",
    "write_gif",
]
