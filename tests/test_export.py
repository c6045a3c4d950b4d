import io
import logging
import sys
from pathlib import Path

import cv2
import numpy as np
import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stereogram_animator.errors import (  # noqa: E402
    EncodingError,
    InvalidParameterError,
    MissingInputError,
)
from stereogram_animator.export import (  # noqa: E402
    encode_gif,
    export_frames,
    frame_filename,
    validate_fps,
    write_gif,
)
from stereogram_animator.models import AnimationSequence, Frame  # noqa: E402

LOGGER = logging.getLogger("export-tests")


def make_frames(count: int) -> list[Frame]:
    frames = []
    for index in range(count):
        pixels = np.zeros((4, 6, 4), dtype=np.uint8)
        pixels[..., 0] = 60 * index
        pixels[..., 2] = 255 - 60 * index
        pixels[..., 3] = 255
        frames.append(Frame(index=index, pixels=pixels))
    return frames


def test_frame_filenames_are_zero_padded():
    assert frame_filename(0, 3) == "stereo_000.jpg"
    assert frame_filename(42, 100) == "stereo_042.jpg"
    assert frame_filename(5, 1200) == "stereo_0005.jpg"
    assert frame_filename(1, 2, prefix="f", extension="png") == "f001.png"


def test_export_frames_writes_numbered_images_in_order(tmp_path):
    frames = make_frames(3)

    written = export_frames(frames, tmp_path / "frames", logger=LOGGER)

    assert [path.name for path in written] == ["stereo_000.jpg", "stereo_001.jpg", "stereo_002.jpg"]
    for path in written:
        image = cv2.imread(str(path))
        assert image is not None
        assert image.shape == (4, 6, 3)


def test_export_frames_png_round_trips_colors(tmp_path):
    frames = make_frames(2)

    written = export_frames(AnimationSequence(frames=tuple(frames)), tmp_path, extension=".png")

    restored = cv2.cvtColor(cv2.imread(str(written[1]), cv2.IMREAD_UNCHANGED), cv2.COLOR_BGRA2RGBA)
    np.testing.assert_array_equal(restored, frames[1].pixels)


def test_export_requires_frames(tmp_path):
    with pytest.raises(MissingInputError):
        export_frames([], tmp_path)
    with pytest.raises(MissingInputError):
        encode_gif([], 10)


@pytest.mark.parametrize("value", [None, 0, -3, "fast", float("nan"), float("inf")])
def test_invalid_frame_rates_are_rejected(value):
    with pytest.raises(InvalidParameterError):
        validate_fps(value)


def test_validate_fps_accepts_numeric_strings():
    assert validate_fps("12.5") == 12.5


def test_encode_gif_produces_looping_animation():
    frames = make_frames(3)

    data = encode_gif(frames, 4, logger=LOGGER)

    assert data.startswith(b"GIF8")
    with Image.open(io.BytesIO(data)) as gif:
        assert gif.n_frames == 3
        assert gif.info.get("loop") == 0
        assert gif.info.get("duration") == 250
        assert gif.size == (6, 4)


def test_encoder_failure_is_reported(monkeypatch):
    def broken_save(self, *args, **kwargs):
        raise OSError("encoder unavailable")

    monkeypatch.setattr(Image.Image, "save", broken_save)

    with pytest.raises(EncodingError):
        encode_gif(make_frames(2), 10)


def test_invalid_fps_fails_before_encoding(monkeypatch):
    calls = []
    monkeypatch.setattr(Image.Image, "save", lambda self, *a, **k: calls.append(a))

    with pytest.raises(InvalidParameterError):
        encode_gif(make_frames(2), "0")
    assert calls == []


def test_write_gif_replaces_target_atomically(tmp_path):
    target = tmp_path / "out" / "animated_stereogram.gif"

    result = write_gif(make_frames(2), 10, target)

    assert result == target
    assert target.read_bytes().startswith(b"GIF8")
    assert [path.name for path in target.parent.iterdir()] == ["animated_stereogram.gif"]
