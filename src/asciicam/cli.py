"""Command-line entry point for the ASCII camera viewer."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from .app import AppConfig, AsciiCamApp
from .errors import SettingsError
from .logging_setup import configure_logging
from .models import (
    DEFAULT_BRIGHTNESS,
    DEFAULT_FPS,
    DEFAULT_RAMP,
    DEFAULT_RESOLUTION,
    RAMP_NAMES,
    RESOLUTION_PRESETS,
    RenderSettings,
)
from .settings import parse_resolution, validate_brightness, validate_fps, validate_ramp

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def build_parser() -> argparse.ArgumentParser:
    presets = ", ".join(f"{w}x{h}" for w, h in RESOLUTION_PRESETS)
    parser = argparse.ArgumentParser(description="Render a live camera feed as ASCII art.")
    parser.add_argument("--camera-index", type=int, default=0, help="Camera device index.")
    parser.add_argument(
        "--video-path",
        type=str,
        default=None,
        help="Path to a video file used instead of a live camera feed.",
    )
    parser.add_argument(
        "--loop-video",
        action="store_true",
        help="Loop the video file when reaching the end (only applies to --video-path).",
    )
    parser.add_argument(
        "--resolution",
        type=str,
        default="{}x{}".format(*DEFAULT_RESOLUTION),
        help=f"Output grid size in characters, one of: {presets} (default: %(default)s)",
    )
    parser.add_argument(
        "--charset",
        type=str,
        default=DEFAULT_RAMP,
        choices=list(RAMP_NAMES),
        help="Character set used for the brightness ramp (default: %(default)s)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=DEFAULT_FPS,
        help="Target frames per second (default: %(default)s)",
    )
    parser.add_argument(
        "--brightness",
        type=float,
        default=DEFAULT_BRIGHTNESS,
        help="Brightness multiplier applied before mapping (default: %(default)s)",
    )
    parser.add_argument("--no-mirror", action="store_true", help="Disable the horizontal mirror effect.")
    parser.add_argument(
        "--refresh-rate",
        type=int,
        default=60,
        help="Display refresh loop rate in Hz (default: %(default)s)",
    )
    parser.add_argument("--window-width", type=int, default=800, help="Initial window width (pixels).")
    parser.add_argument("--window-height", type=int, default=600, help="Initial window height (pixels).")
    parser.add_argument("--font-name", type=str, default="Courier New", help="Preferred monospaced font.")
    parser.add_argument(
        "--ready-timeout",
        type=float,
        default=10.0,
        help="Seconds to wait for the first camera frame; 0 waits forever (default: %(default)s)",
    )
    parser.add_argument("--autostart", action="store_true", help="Start the camera immediately.")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level (default: %(default)s)")
    parser.add_argument("--log-file", type=Path, default=None, help="Write JSON log lines to this file.")
    return parser


def config_from_args(args: argparse.Namespace) -> AppConfig:
    """Validate parsed arguments at the settings boundary.

    Raises :class:`SettingsError` for values the viewer must never see.
    """
    width, height = parse_resolution(args.resolution)
    settings = RenderSettings(
        width=width,
        height=height,
        ramp_name=validate_ramp(args.charset),
        brightness=validate_brightness(args.brightness),
        target_fps=validate_fps(args.fps),
        mirror=not args.no_mirror,
    )
    if args.refresh_rate <= 0:
        raise SettingsError("Refresh rate must be greater than zero.")
    if args.log_level.upper() not in LOG_LEVELS:
        raise SettingsError(f"Unknown log level '{args.log_level}'. Choose one of: {', '.join(LOG_LEVELS)}.")
    return AppConfig(
        settings=settings,
        camera_index=args.camera_index,
        video_path=Path(args.video_path).expanduser() if args.video_path else None,
        loop_video=args.loop_video,
        refresh_rate=args.refresh_rate,
        window_size=(args.window_width, args.window_height),
        font_name=args.font_name,
        ready_timeout=args.ready_timeout if args.ready_timeout > 0 else None,
        autostart=args.autostart,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = config_from_args(args)
    except SettingsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    configure_logging(args.log_level.upper(), args.log_file)
    return AsciiCamApp(config).run()


if __name__ == "__main__":
    raise SystemExit(main())
