"""Validated render settings and the control stepping used by the viewer."""

from __future__ import annotations

import math
import re
from dataclasses import replace
from typing import Tuple

from .errors import SettingsError
from .models import (
    BRIGHTNESS_STEP,
    MAX_BRIGHTNESS,
    MAX_FPS,
    MIN_BRIGHTNESS,
    MIN_FPS,
    RAMP_NAMES,
    RAMPS,
    RESOLUTION_PRESETS,
    RenderSettings,
)

_RESOLUTION_RE = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


def parse_resolution(value: str) -> Tuple[int, int]:
    """Parse a ``WIDTHxHEIGHT`` preset string such as ``"80x40"``."""
    match = _RESOLUTION_RE.match(value or "")
    if match is None:
        raise SettingsError(f"Malformed resolution '{value}', expected WIDTHxHEIGHT.")
    width, height = int(match.group(1)), int(match.group(2))
    if (width, height) not in RESOLUTION_PRESETS:
        choices = ", ".join(f"{w}x{h}" for w, h in RESOLUTION_PRESETS)
        raise SettingsError(f"Unsupported resolution '{value}'. Choose one of: {choices}.")
    return width, height


def validate_ramp(name: str) -> str:
    if name not in RAMPS:
        raise SettingsError(f"Unknown character set '{name}'. Choose one of: {', '.join(RAMP_NAMES)}.")
    return name


def validate_brightness(value: float) -> float:
    try:
        brightness = float(value)
    except (TypeError, ValueError):
        raise SettingsError(f"Brightness must be a number, got {value!r}.") from None
    if not math.isfinite(brightness) or brightness <= 0:
        raise SettingsError("Brightness must be greater than zero.")
    return brightness


def validate_fps(value: int) -> int:
    if isinstance(value, float) and not value.is_integer():
        raise SettingsError(f"FPS must be a whole number, got {value!r}.")
    try:
        fps = int(value)
    except (TypeError, ValueError):
        raise SettingsError(f"FPS must be an integer, got {value!r}.") from None
    if fps <= 0:
        raise SettingsError("FPS must be greater than zero.")
    return fps


def clamp_brightness(value: float) -> float:
    return round(max(MIN_BRIGHTNESS, min(MAX_BRIGHTNESS, value)), 2)


def clamp_fps(value: int) -> int:
    return max(MIN_FPS, min(MAX_FPS, value))


class SettingsStore:
    """Current render settings, replaced wholesale on every accepted change.

    The pacer calls :meth:`snapshot` once per tick, so a change made between
    ticks is picked up by the next conversion and never halfway through one.
    """

    def __init__(self, settings: RenderSettings | None = None) -> None:
        self._settings = settings or RenderSettings()
        validate_ramp(self._settings.ramp_name)
        validate_brightness(self._settings.brightness)
        validate_fps(self._settings.target_fps)

    def snapshot(self) -> RenderSettings:
        return self._settings

    def _update(self, **changes) -> RenderSettings:
        self._settings = replace(self._settings, **changes)
        return self._settings

    def set_resolution(self, value: str | Tuple[int, int]) -> RenderSettings:
        if isinstance(value, str):
            width, height = parse_resolution(value)
        else:
            width, height = value
            if (width, height) not in RESOLUTION_PRESETS:
                raise SettingsError(f"Unsupported resolution {width}x{height}.")
        return self._update(width=width, height=height)

    def set_ramp(self, name: str) -> RenderSettings:
        return self._update(ramp_name=validate_ramp(name))

    def set_brightness(self, value: float) -> RenderSettings:
        return self._update(brightness=validate_brightness(value))

    def set_target_fps(self, value: int) -> RenderSettings:
        return self._update(target_fps=validate_fps(value))

    def set_mirror(self, enabled: bool) -> RenderSettings:
        return self._update(mirror=bool(enabled))

    def cycle_resolution(self, direction: int) -> RenderSettings:
        current = (self._settings.width, self._settings.height)
        index = RESOLUTION_PRESETS.index(current) if current in RESOLUTION_PRESETS else 0
        width, height = RESOLUTION_PRESETS[(index + direction) % len(RESOLUTION_PRESETS)]
        return self._update(width=width, height=height)

    def cycle_ramp(self, direction: int) -> RenderSettings:
        index = RAMP_NAMES.index(self._settings.ramp_name)
        return self._update(ramp_name=RAMP_NAMES[(index + direction) % len(RAMP_NAMES)])

    def step_brightness(self, direction: int) -> RenderSettings:
        value = self._settings.brightness + direction * BRIGHTNESS_STEP
        return self._update(brightness=clamp_brightness(value))

    def step_fps(self, direction: int) -> RenderSettings:
        return self._update(target_fps=clamp_fps(self._settings.target_fps + direction))
