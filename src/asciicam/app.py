"""Interactive viewer: keyboard controls, camera lifecycle and the refresh loop."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

import pygame

from .capture import CameraSampler
from .display import PygameDisplay
from .errors import CaptureError, DeviceUnavailable
from .logging_setup import get_logger
from .models import RenderSettings
from .pacer import Pacer, StatusLevel
from .settings import SettingsStore

log = get_logger("app")

READY_POLL_INTERVAL = 0.05  # seconds

KEY_HINT = "Space start/stop  R res  D chars  Up/Down bright  Left/Right fps  M mirror  Q quit"


@dataclass
class AppConfig:
    settings: RenderSettings
    camera_index: int = 0
    video_path: Path | None = None
    loop_video: bool = False
    refresh_rate: int = 60
    window_size: Tuple[int, int] = (800, 600)
    font_name: str = "Courier New"
    ready_timeout: float | None = 10.0
    autostart: bool = False


class AsciiCamApp:
    def __init__(self, config: AppConfig, sampler: CameraSampler | None = None) -> None:
        self.config = config
        self.settings = SettingsStore(config.settings)
        self.sampler = sampler or CameraSampler()
        self.display = PygameDisplay(config.window_size, config.font_name, caption="asciicam")
        self.pacer = Pacer(self.sampler, self.settings, self.display, self.display)
        self.start_enabled = True
        self.alive = False

    @property
    def source(self):
        if self.config.video_path is not None:
            return self.config.video_path
        return self.config.camera_index

    def check_support(self) -> None:
        if self.config.video_path is not None:
            return
        try:
            self.sampler.check_support()
        except CaptureError as exc:
            self.start_enabled = False
            log.error("capture unsupported: %s", exc, extra={"event": "unsupported"})
            self.display.report("Your system does not support camera capture", StatusLevel.ERROR)

    # Commands
    def start(self) -> None:
        if self.pacer.running or not self.start_enabled:
            return
        self.display.report("Requesting camera access...", StatusLevel.PENDING)
        log.info("requesting %s", self.source, extra={"event": "acquire_start"})
        handle = None
        try:
            handle = self.sampler.acquire(self.source, loop=self.config.loop_video)
            if not self._wait_for_first_frame(handle):
                raise DeviceUnavailable(f"No frames received from {handle.label}.")
        except CaptureError as exc:
            self.sampler.release(handle)
            log.error("camera error: %s", exc, extra={"event": "acquire_failed"})
            self.display.report(f"Error: {exc}", StatusLevel.ERROR)
            return
        self.pacer.start(handle)

    def _wait_for_first_frame(self, handle) -> bool:
        """Wait for the stream while keeping the window responsive."""
        timeout = self.config.ready_timeout
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            slice_ = READY_POLL_INTERVAL
            if deadline is not None:
                slice_ = min(slice_, max(0.0, deadline - time.monotonic()))
            if handle.wait_ready(slice_):
                return True
            if deadline is not None and time.monotonic() >= deadline:
                return False
            if pygame.display.get_init():
                pygame.event.pump()

    def stop(self) -> None:
        if self.pacer.running:
            self.pacer.stop()

    def settings_changed(self) -> None:
        settings = self.settings.snapshot()
        log.debug(
            "settings %s %s brightness=%.1f fps=%d mirror=%s",
            settings.resolution_label,
            settings.ramp_name,
            settings.brightness,
            settings.target_fps,
            settings.mirror,
            extra={"event": "settings_changed"},
        )
        if self.pacer.running:
            self.display.font_size = self.pacer.refit()
        self.display.hint = self._settings_label(settings)

    @staticmethod
    def _settings_label(settings: RenderSettings) -> str:
        return (
            f"{settings.resolution_label}  {settings.ramp_name}  "
            f"bright {settings.brightness:.1f}  {settings.target_fps} fps"
            f"{'  mirror' if settings.mirror else ''}"
        )

    def handle_key(self, event) -> None:
        shift = bool(event.mod & pygame.KMOD_SHIFT)
        direction = -1 if shift else 1
        key = event.key
        if key in (pygame.K_ESCAPE, pygame.K_q):
            self.alive = False
            return
        if key == pygame.K_SPACE:
            if self.pacer.running:
                self.stop()
            else:
                self.start()
            return
        if key == pygame.K_f:
            self.display.show_fps_counter = not self.display.show_fps_counter
            return

        if key == pygame.K_r:
            self.settings.cycle_resolution(direction)
        elif key == pygame.K_d:
            self.settings.cycle_ramp(direction)
        elif key == pygame.K_UP:
            self.settings.step_brightness(1)
        elif key == pygame.K_DOWN:
            self.settings.step_brightness(-1)
        elif key == pygame.K_RIGHT:
            self.settings.step_fps(1)
        elif key == pygame.K_LEFT:
            self.settings.step_fps(-1)
        elif key == pygame.K_m:
            self.settings.set_mirror(not self.settings.snapshot().mirror)
        else:
            return
        self.settings_changed()

    def handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.alive = False
            elif event.type == pygame.VIDEORESIZE:
                self.display.resize(event.w, event.h)
                if self.pacer.running:
                    self.display.font_size = self.pacer.refit()
            elif event.type == pygame.KEYDOWN:
                self.handle_key(event)

    def run(self) -> int:
        self.display.open()
        clock = pygame.time.Clock()
        self.alive = True
        self.display.show_idle(f"Press Space to start. {KEY_HINT}")
        self.settings_changed()
        self.display.report("Ready to start camera", StatusLevel.READY)
        self.check_support()
        if self.config.autostart:
            self.start()

        try:
            while self.alive:
                self.handle_events()
                if not self.alive:
                    break
                if self.pacer.running:
                    self.pacer.tick()
                self.display.draw()
                clock.tick(self.config.refresh_rate)
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()
            self.display.close()
        return 0
