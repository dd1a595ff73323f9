"""Brightness-to-glyph conversion of RGB rasters."""

from __future__ import annotations

import numpy as np

from .models import GlyphRamp, RasterFrame


def luminance(frame: RasterFrame) -> np.ndarray:
    """Per-pixel perceptual luminance rounded half up, as float64."""
    pixels = np.asarray(frame, dtype=np.float64)
    red = pixels[..., 0]
    green = pixels[..., 1]
    blue = pixels[..., 2]
    return np.floor(0.299 * red + 0.587 * green + 0.114 * blue + 0.5)


def glyph_indices(frame: RasterFrame, num_chars: int, brightness: float) -> np.ndarray:
    gray = np.minimum(255.0, np.maximum(0.0, luminance(frame) * brightness))
    char_index = np.floor((gray / 255.0) * (num_chars - 1)).astype(np.intp)
    # Dense glyphs sit at the start of the ramp, so dark pixels select from the end.
    return (num_chars - 1) - char_index


def to_glyph_grid(frame: RasterFrame, ramp: GlyphRamp | str, brightness: float = 1.0) -> str:
    chars = ramp.characters if isinstance(ramp, GlyphRamp) else ramp
    palette = np.array(list(chars))
    selected = palette[glyph_indices(frame, len(palette), brightness)]
    return "".join("".join(row) + "\n" for row in selected.tolist())
