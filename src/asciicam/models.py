"""Shared data types for the ASCII camera pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

import numpy as np

# (height, width, 3) uint8 array in RGB order, owned by the sampler.
RasterFrame = np.ndarray


@dataclass(frozen=True)
class GlyphRamp:
    name: str
    characters: str

    def __len__(self) -> int:
        return len(self.characters)


# First character is the densest glyph.
RAMPS: Dict[str, GlyphRamp] = {
    ramp.name: ramp
    for ramp in (
        GlyphRamp("classic", "@%#*+=-:. "),
        GlyphRamp("simple", "█▓▒░ "),
        GlyphRamp(
            "detailed",
            "$@B%8&WM#*oahkbdpqwmZO0QLCJUYXzcvunxrjft/\\|()1{}[]?-_+~<>i!lI;:,\"^`'. ",
        ),
    )
}
RAMP_NAMES: Sequence[str] = tuple(RAMPS)
DEFAULT_RAMP = "classic"

RESOLUTION_PRESETS: Sequence[Tuple[int, int]] = (
    (40, 24),
    (60, 30),
    (80, 40),
    (100, 50),
    (120, 60),
)
DEFAULT_RESOLUTION = (80, 40)

MIN_BRIGHTNESS = 0.1
MAX_BRIGHTNESS = 3.0
BRIGHTNESS_STEP = 0.1
DEFAULT_BRIGHTNESS = 1.0

MIN_FPS = 1
MAX_FPS = 60
DEFAULT_FPS = 30


@dataclass(frozen=True)
class RenderSettings:
    width: int = DEFAULT_RESOLUTION[0]
    height: int = DEFAULT_RESOLUTION[1]
    ramp_name: str = DEFAULT_RAMP
    brightness: float = DEFAULT_BRIGHTNESS
    target_fps: int = DEFAULT_FPS
    mirror: bool = True

    @property
    def ramp(self) -> GlyphRamp:
        return RAMPS[self.ramp_name]

    @property
    def resolution_label(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def frame_interval_ms(self) -> float:
        return 1000.0 / self.target_fps


@dataclass
class PacerState:
    last_frame_time: float | None = None
    frame_count: int = 0
    window_start: float = 0.0
    measured_fps: int = 0
    running: bool = False
