"""
Command line interface for generating, previewing and exporting stereogram animations.
"""

from __future__ import annotations

import argparse
import logging
import queue
import sys
from pathlib import Path
from typing import Optional

import cv2
from dotenv import load_dotenv

from stereogram_animator.config import Config, load_config
from stereogram_animator.errors import StereogramError
from stereogram_animator.export import export_frames, write_gif
from stereogram_animator.models import AnimationSequence, StereogramParameters
from stereogram_animator.player import AnimationPlayer
from stereogram_animator.session import StereogramSession

PREVIEW_WINDOW = "Stereogram Preview"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def _log_file_handler(log_file: Path) -> tuple[Optional[logging.Handler], Optional[str]]:
    """Open ``log_file``; if its directory is unusable, retry with the bare name in the cwd."""
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_file, encoding="utf-8"), None
    except OSError as exc:
        fallback = Path.cwd() / log_file.name
        try:
            handler = logging.FileHandler(fallback, encoding="utf-8")
        except OSError as fallback_exc:
            return None, f"Logging to console only; cannot open {log_file} or {fallback}: {fallback_exc}"
        return handler, f"Cannot open {log_file} ({exc}); logging to {fallback}"


def configure_logging(verbose: bool, log_file: Optional[Path] = None) -> logging.Logger:
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    warning = None
    if log_file is not None:
        file_handler, warning = _log_file_handler(Path(log_file))
        if file_handler is not None:
            handlers.append(file_handler)

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    logger = logging.getLogger("stereogram_animator")
    logger.setLevel(level)
    if warning:
        logger.warning(warning)
    return logger


def _resolve_parameters(args: argparse.Namespace, config: Config) -> StereogramParameters:
    return StereogramParameters.from_mapping(
        {
            "num_strips": args.strips,
            "depth_multiplier": args.depth_multiplier,
            "image_scale": args.scale,
            "tile_texture": args.tile,
            "mirror_tiles": args.mirror,
        },
        defaults=config.parameters,
    )


def _build_sequence(
    args: argparse.Namespace,
    config: Config,
    logger: logging.Logger,
    *,
    frame_interval_ms: Optional[int] = None,
) -> AnimationSequence:
    parameters = _resolve_parameters(args, config)
    session = StereogramSession(logger)
    session.add_depth_maps(args.depth)
    session.add_textures(args.texture)
    workers = args.workers or config.runtime.frame_workers
    return session.generate(
        parameters,
        frame_interval_ms=frame_interval_ms or config.preview.frame_interval_ms,
        workers=workers,
    )


def generate_command(args: argparse.Namespace, config: Config, logger: logging.Logger) -> int:
    sequence = _build_sequence(args, config, logger)
    export = config.export

    write_stills = args.frames_dir is not None or args.gif is None
    if write_stills:
        frames_dir = args.frames_dir or export.output_dir
        export_frames(
            sequence.frames,
            frames_dir,
            prefix=export.frame_prefix,
            extension=export.frame_extension,
            logger=logger,
        )

    if args.gif is not None:
        gif_path = Path(args.gif) if args.gif else export.output_dir / export.gif_filename
        fps = args.fps if args.fps is not None else export.fps
        # Frames written above stay on disk if GIF encoding fails.
        write_gif(sequence.frames, fps, gif_path, logger=logger)
        logger.info("Saved animated GIF to %s", gif_path)

    return 0


def show_preview(sequence: AnimationSequence, logger: logging.Logger) -> None:
    """Loop ``sequence`` in an OpenCV window until a key is pressed or the window is closed."""
    pending: "queue.Queue" = queue.Queue()
    player = AnimationPlayer(pending.put, logger=logger)
    player.play(sequence)
    try:
        while player.is_playing:
            try:
                frame = pending.get(timeout=0.05)
            except queue.Empty:
                frame = None
            if frame is not None:
                cv2.imshow(PREVIEW_WINDOW, cv2.cvtColor(frame.pixels, cv2.COLOR_RGBA2BGR))
            if cv2.waitKey(10) != -1:
                break
            if cv2.getWindowProperty(PREVIEW_WINDOW, cv2.WND_PROP_VISIBLE) < 1:
                break
    except KeyboardInterrupt:
        logger.info("Preview interrupted")
    finally:
        player.shutdown()
        cv2.destroyAllWindows()


def preview_command(args: argparse.Namespace, config: Config, logger: logging.Logger) -> int:
    sequence = _build_sequence(args, config, logger, frame_interval_ms=args.interval_ms)
    show_preview(sequence, logger)
    return 0


def _add_generation_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--depth",
        nargs="+",
        required=True,
        type=Path,
        help="Depth map images; ordered by the number before the file extension.",
    )
    parser.add_argument(
        "--texture",
        nargs="+",
        required=True,
        type=Path,
        help="Texture images; reused cyclically when fewer than depth maps.",
    )
    parser.add_argument("--strips", help="Number of repeat strips (default: 6).")
    parser.add_argument("--depth-multiplier", help="Scale applied to depth disparity (default: 1.0).")
    parser.add_argument("--scale", help="Scale applied to the depth maps (default: 1.0).")
    parser.add_argument(
        "--tile",
        action="store_true",
        default=None,
        help="Tile the texture vertically instead of stretching it.",
    )
    parser.add_argument(
        "--mirror",
        action="store_true",
        default=None,
        help="Flip every other tile vertically (with --tile).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Frames rendered in parallel (default: from config, up to 4).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Turn depth maps and textures into looping stereogram animations.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.json"),
        help="Path to a JSON config file (default: config.json; environment is used when missing).",
    )
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Render frames and write them as numbered images and/or a GIF.",
    )
    _add_generation_arguments(generate_parser)
    generate_parser.add_argument(
        "--frames-dir",
        type=Path,
        help="Directory for numbered frame images (default: export output_dir).",
    )
    generate_parser.add_argument(
        "--gif",
        nargs="?",
        const="",
        help="Write an animated GIF, optionally to the given path.",
    )
    generate_parser.add_argument("--fps", help="GIF frame rate (default: from config, 10).")

    preview_parser = subparsers.add_parser(
        "preview",
        help="Render frames and loop them in a preview window.",
    )
    _add_generation_arguments(preview_parser)
    preview_parser.add_argument(
        "--interval-ms",
        type=int,
        help="Milliseconds between preview frames (default: 150).",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (StereogramError, ValueError) as exc:
        configure_logging(args.verbose, args.log_file).error("Invalid configuration in %s: %s", args.config, exc)
        return 1

    logger = configure_logging(args.verbose, args.log_file or config.runtime.log_file)
    logger.debug("Loaded configuration: %s", config)

    try:
        if args.command == "generate":
            return generate_command(args, config, logger)
        if args.command == "preview":
            return preview_command(args, config, logger)
    except StereogramError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1

    parser.error(f"Unhandled command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
