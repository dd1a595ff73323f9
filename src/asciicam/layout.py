"""Font sizing that fits a glyph grid inside the display viewport."""

from __future__ import annotations

import math

# Average width/height ratio of a monospaced glyph.
CHAR_ASPECT_RATIO = 0.65
MIN_FONT_SIZE = 6
MAX_FONT_SIZE = 24
FALLBACK_FONT_SIZE = 12


def fit_font_size(
    grid_width: int,
    grid_height: int,
    viewport_width: float | None,
    viewport_height: float | None,
) -> int:
    if viewport_width is None or viewport_height is None:
        return FALLBACK_FONT_SIZE

    by_width = math.floor(viewport_width / (grid_width * CHAR_ASPECT_RATIO))
    by_height = math.floor(viewport_height / grid_height)
    return max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, min(by_width, by_height)))
