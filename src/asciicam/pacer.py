"""Frame pacing: decides on each refresh tick whether to sample and convert."""

from __future__ import annotations

import enum
import time
from typing import Callable, Protocol, Tuple

from .layout import fit_font_size
from .logging_setup import get_logger
from .mapper import to_glyph_grid
from .models import PacerState, RasterFrame
from .settings import SettingsStore

FPS_WINDOW_MS = 1000.0
STOPPED_MESSAGE = "Camera stopped. Press Space to begin."

log = get_logger("pacer")


class StatusLevel(enum.Enum):
    READY = "ready"
    PENDING = "pending"
    ACTIVE = "active"
    STOPPED = "stopped"
    ERROR = "error"

    @property
    def marker(self) -> str:
        return _MARKERS[self]


_MARKERS = {
    StatusLevel.READY: "[ok]",
    StatusLevel.PENDING: "[..]",
    StatusLevel.ACTIVE: "[on]",
    StatusLevel.STOPPED: "[||]",
    StatusLevel.ERROR: "[!!]",
}


class DisplaySink(Protocol):
    def show_frame(self, text: str, font_size: int) -> None: ...

    def show_fps(self, fps: int) -> None: ...

    def show_idle(self, message: str) -> None: ...

    def viewport(self) -> Tuple[int, int] | None: ...


class StatusSink(Protocol):
    def report(self, message: str, level: StatusLevel) -> None: ...


class Sampler(Protocol):
    def sample(self, handle, width: int, height: int, mirror: bool = True) -> RasterFrame: ...

    def release(self, handle) -> None: ...


def monotonic_ms() -> float:
    return time.perf_counter() * 1000.0


class Pacer:
    """Idle/Running state machine driven by an external refresh scheduler.

    The scheduler calls :meth:`tick` once per display refresh and keeps doing
    so for as long as it returns ``True``.
    """

    def __init__(
        self,
        sampler: Sampler,
        settings: SettingsStore,
        display: DisplaySink,
        status: StatusSink,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self.sampler = sampler
        self.settings = settings
        self.display = display
        self.status = status
        self.clock = clock
        self.state = PacerState()
        self._handle = None
        self._font_size: int | None = None

    @property
    def running(self) -> bool:
        return self.state.running

    @property
    def measured_fps(self) -> int:
        return self.state.measured_fps

    @property
    def font_size(self) -> int | None:
        return self._font_size

    def start(self, handle) -> None:
        if self.state.running:
            self.sampler.release(self._handle)
        self._handle = handle
        self.state = PacerState(window_start=self.clock(), running=True)
        self.status.report("Camera active", StatusLevel.ACTIVE)
        log.info("pacer running", extra={"event": "pacer_start"})

    def stop(self, message: str = "Camera stopped", level: StatusLevel = StatusLevel.STOPPED) -> None:
        handle, self._handle = self._handle, None
        self.state.running = False
        self.sampler.release(handle)
        self.display.show_idle(STOPPED_MESSAGE)
        self.status.report(message, level)
        log.info("pacer stopped: %s", message, extra={"event": "pacer_stop"})

    def refit(self) -> int:
        """Recompute the font size for the current grid and viewport."""
        settings = self.settings.snapshot()
        viewport = self.display.viewport()
        if viewport is None:
            size = fit_font_size(settings.width, settings.height, None, None)
        else:
            size = fit_font_size(settings.width, settings.height, viewport[0], viewport[1])
        self._font_size = size
        return size

    def tick(self, now: float | None = None) -> bool:
        if not self.state.running:
            return False

        handle = self._handle
        if handle is not None and getattr(handle, "failed", False):
            log.error("stream failed: %s", handle.error, extra={"event": "stream_failed"})
            self.stop(f"Error: {handle.error}", StatusLevel.ERROR)
            return False

        if now is None:
            now = self.clock()
        state = self.state
        settings = self.settings.snapshot()

        due = state.last_frame_time is None or now - state.last_frame_time >= settings.frame_interval_ms
        if due:
            raster = self.sampler.sample(handle, settings.width, settings.height, settings.mirror)
            text = to_glyph_grid(raster, settings.ramp, settings.brightness)
            self.display.show_frame(text, self.refit())
            state.last_frame_time = now
            state.frame_count += 1

        if now - state.window_start >= FPS_WINDOW_MS:
            state.measured_fps = state.frame_count
            state.frame_count = 0
            state.window_start = now
            self.display.show_fps(state.measured_fps)
            log.debug("fps=%d", state.measured_fps, extra={"event": "fps"})

        return True
