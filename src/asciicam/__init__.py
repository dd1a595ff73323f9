"""Live camera feed rendered as ASCII art."""

from .mapper import to_glyph_grid
from .layout import fit_font_size
from .models import RAMPS, GlyphRamp, PacerState, RenderSettings

__all__ = [
    "RAMPS",
    "GlyphRamp",
    "PacerState",
    "RenderSettings",
    "fit_font_size",
    "to_glyph_grid",
]

__version__ = "0.3.0"
