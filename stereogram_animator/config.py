"""Configuration dataclasses and loading helpers for the stereogram animator."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from stereogram_animator.export import DEFAULT_FRAME_EXTENSION, DEFAULT_FRAME_PREFIX, DEFAULT_GIF_NAME
from stereogram_animator.models import StereogramParameters


def _default_frame_workers() -> int:
    """Frame rendering is CPU-bound numpy work; cap the pool at four threads."""
    return max(1, min(4, os.cpu_count() or 1))


def _parse_positive_int(value: Any, default: int) -> int:
    """Parse a positive integer with fallback to default."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _parse_optional_path(value: Any, default: Optional[Path]) -> Optional[Path]:
    if value is None:
        return default
    text = str(value).strip()
    if not text or text.lower() in {"none", "off", "false"}:
        return None
    return Path(text)


@dataclass(frozen=True)
class PreviewSettings:
    """Timing for the looping on-screen preview."""

    frame_interval_ms: int = 150


@dataclass(frozen=True)
class ExportSettings:
    """Where and how generated frames are written."""

    output_dir: Path = Path("output")
    frame_prefix: str = DEFAULT_FRAME_PREFIX
    frame_extension: str = DEFAULT_FRAME_EXTENSION
    gif_filename: str = DEFAULT_GIF_NAME
    # Kept as given; validated when a GIF is actually exported.
    fps: Any = 10.0


@dataclass(frozen=True)
class RuntimeSettings:
    """Process-level knobs: worker threads and log destination."""

    frame_workers: int = field(default_factory=_default_frame_workers)
    log_file: Optional[Path] = None


@dataclass(frozen=True)
class Config:
    """Root configuration object."""

    parameters: StereogramParameters = field(default_factory=StereogramParameters)
    preview: PreviewSettings = field(default_factory=PreviewSettings)
    export: ExportSettings = field(default_factory=ExportSettings)
    runtime: RuntimeSettings = field(default_factory=RuntimeSettings)


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = data.get(name, {})
    return raw if isinstance(raw, Mapping) else {}


def _parse_preview(raw: Mapping[str, Any]) -> PreviewSettings:
    default = PreviewSettings()
    return PreviewSettings(
        frame_interval_ms=_parse_positive_int(raw.get("frame_interval_ms"), default.frame_interval_ms),
    )


def _parse_export(raw: Mapping[str, Any]) -> ExportSettings:
    default = ExportSettings()
    return ExportSettings(
        output_dir=Path(raw.get("output_dir") or default.output_dir),
        frame_prefix=str(raw.get("frame_prefix", default.frame_prefix)),
        frame_extension=str(raw.get("frame_extension") or default.frame_extension),
        gif_filename=str(raw.get("gif_filename") or default.gif_filename),
        fps=raw.get("fps", default.fps),
    )


def _parse_runtime(raw: Mapping[str, Any]) -> RuntimeSettings:
    return RuntimeSettings(
        frame_workers=_parse_positive_int(raw.get("frame_workers"), _default_frame_workers()),
        log_file=_parse_optional_path(raw.get("log_file"), None),
    )


def _load_env_config(env: Mapping[str, str]) -> Config:
    """Configuration derived from environment variables when no config file exists."""
    parameters = StereogramParameters.from_mapping({
        "num_strips": env.get("NUM_STRIPS"),
        "depth_multiplier": env.get("DEPTH_MULTIPLIER"),
        "image_scale": env.get("IMAGE_SCALE"),
        "tile_texture": env.get("TILE_TEXTURE"),
        "mirror_tiles": env.get("MIRROR_TILES"),
    })
    preview = _parse_preview({"frame_interval_ms": env.get("FRAME_INTERVAL_MS")})
    export = _parse_export({
        "output_dir": env.get("OUTPUT_DIR"),
        "fps": env.get("EXPORT_FPS", ExportSettings.fps),
    })
    runtime = _parse_runtime({
        "frame_workers": env.get("FRAME_WORKERS"),
        "log_file": env.get("LOG_FILE"),
    })
    return Config(parameters=parameters, preview=preview, export=export, runtime=runtime)


def load_config(config_path: Path | str, env: Mapping[str, str] | None = None) -> Config:
    """Load configuration from a JSON file, or from the environment when it is absent.

    Stereogram parameters are parsed strictly and raise
    `InvalidParameterError`; the remaining settings fall back to defaults.
    """
    source_env = os.environ if env is None else env
    path = Path(config_path)

    if path.exists():
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, Mapping):
            data = {}
        return Config(
            parameters=StereogramParameters.from_mapping(_section(data, "stereogram")),
            preview=_parse_preview(_section(data, "preview")),
            export=_parse_export(_section(data, "export")),
            runtime=_parse_runtime(_section(data, "runtime")),
        )

    return _load_env_config(source_env)


__all__ = [
    "Config",
    "ExportSettings",
    "PreviewSettings",
    "RuntimeSettings",
    "load_config",
]
