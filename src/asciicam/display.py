"""Pygame window acting as the display and status sink."""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

import pygame

from .pacer import StatusLevel

STATUS_BAR_HEIGHT = 28
MIN_WINDOW_DIMENSION = 200
BACKGROUND = (0, 0, 0)
GLYPH_COLOR = (255, 255, 255)
OVERLAY_TEXT = (200, 200, 200)

STATUS_COLORS: Dict[StatusLevel, Tuple[int, int, int]] = {
    StatusLevel.READY: (60, 200, 90),
    StatusLevel.PENDING: (240, 190, 60),
    StatusLevel.ACTIVE: (60, 200, 90),
    StatusLevel.STOPPED: (150, 150, 150),
    StatusLevel.ERROR: (230, 70, 60),
}


def clamp_window_dimension(value: int) -> int:
    return max(MIN_WINDOW_DIMENSION, value)


def init_font(name: str, size: int) -> pygame.font.Font:
    font = pygame.font.SysFont(name, size)
    if font is None:
        font = pygame.font.Font(pygame.font.get_default_font(), size)
    return font


class FontCache:
    """Monospaced fonts keyed by pixel size."""

    def __init__(self, name: str):
        self.name = name
        self.cache: dict[int, pygame.font.Font] = {}

    def get(self, size: int) -> pygame.font.Font:
        font = self.cache.get(size)
        if font is None:
            font = init_font(self.name, size)
            self.cache[size] = font
        return font


class PygameDisplay:
    def __init__(
        self,
        window_size: Tuple[int, int],
        font_name: str = "Courier New",
        caption: str = "asciicam",
    ) -> None:
        self.window_size = (
            clamp_window_dimension(window_size[0]),
            clamp_window_dimension(window_size[1]),
        )
        self.caption = caption
        self.fonts = FontCache(font_name)
        self.overlay_font: pygame.font.Font | None = None
        self.screen: pygame.Surface | None = None

        self.lines: List[str] = []
        self.font_size = 12
        self.idle_message: str | None = None
        self.fps: int | None = None
        self.show_fps_counter = True
        self.status_message = ""
        self.status_level = StatusLevel.READY
        self.hint = ""

    def open(self) -> None:
        pygame.init()
        pygame.font.init()
        self.screen = pygame.display.set_mode(self.window_size, pygame.RESIZABLE)
        pygame.display.set_caption(self.caption)
        self.overlay_font = init_font(self.fonts.name, 14)

    def close(self) -> None:
        pygame.quit()
        self.screen = None

    def resize(self, width: int, height: int) -> None:
        self.window_size = (clamp_window_dimension(width), clamp_window_dimension(height))
        self.screen = pygame.display.set_mode(self.window_size, pygame.RESIZABLE)

    # DisplaySink
    def viewport(self) -> Tuple[int, int] | None:
        if self.screen is None:
            return None
        width, height = self.screen.get_size()
        return width, max(0, height - STATUS_BAR_HEIGHT)

    def show_frame(self, text: str, font_size: int) -> None:
        self.lines = text.splitlines()
        self.font_size = font_size
        self.idle_message = None

    def show_fps(self, fps: int) -> None:
        self.fps = fps

    def show_idle(self, message: str) -> None:
        self.lines = []
        self.fps = None
        self.idle_message = message

    # StatusSink
    def report(self, message: str, level: StatusLevel) -> None:
        self.status_message = message
        self.status_level = level
        if self.screen is not None:
            self.draw()

    def draw(self) -> None:
        if self.screen is None:
            return
        self.screen.fill(BACKGROUND)
        if self.lines:
            self._draw_grid(self.lines)
        elif self.idle_message:
            self._draw_centered(self.idle_message)
        if self.show_fps_counter and self.fps is not None:
            self._draw_fps()
        self._draw_status_bar()
        pygame.display.flip()

    def _draw_grid(self, lines: Sequence[str]) -> None:
        font = self.fonts.get(self.font_size)
        line_height = font.get_linesize()
        viewport = self.viewport() or self.window_size
        block_width = max(font.size(line)[0] for line in lines)
        block_height = line_height * len(lines)
        left = max(0, (viewport[0] - block_width) // 2)
        top = max(0, (viewport[1] - block_height) // 2)
        for row_index, line in enumerate(lines):
            text_surface = font.render(line, True, GLYPH_COLOR)
            self.screen.blit(text_surface, (left, top + row_index * line_height))

    def _draw_centered(self, message: str) -> None:
        text_surface = self.overlay_font.render(message, True, OVERLAY_TEXT)
        viewport = self.viewport() or self.window_size
        text_rect = text_surface.get_rect(center=(viewport[0] // 2, viewport[1] // 2))
        self.screen.blit(text_surface, text_rect)

    def _draw_fps(self) -> None:
        label = f"FPS: {self.fps}"
        text = self.overlay_font.render(label, True, (255, 255, 255))
        overlay = pygame.Surface((text.get_width() + 20, text.get_height() + 12), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 150))
        overlay.blit(text, (10, 6))
        self.screen.blit(overlay, (self.screen.get_width() - overlay.get_width() - 10, 10))

    def _draw_status_bar(self) -> None:
        width, height = self.screen.get_size()
        top = height - STATUS_BAR_HEIGHT
        pygame.draw.rect(self.screen, (20, 20, 20), (0, top, width, STATUS_BAR_HEIGHT))
        color = STATUS_COLORS[self.status_level]
        center_y = top + STATUS_BAR_HEIGHT // 2
        pygame.draw.circle(self.screen, color, (14, center_y), 6)
        status = self.overlay_font.render(self.status_message, True, OVERLAY_TEXT)
        self.screen.blit(status, (28, center_y - status.get_height() // 2))
        if self.hint:
            hint = self.overlay_font.render(self.hint, True, (120, 120, 120))
            self.screen.blit(hint, (width - hint.get_width() - 10, center_y - hint.get_height() // 2))
