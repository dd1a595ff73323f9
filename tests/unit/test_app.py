import sys
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import pygame

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "src"))

from asciicam.app import READY_POLL_INTERVAL, AppConfig, AsciiCamApp
from asciicam.errors import PermissionDenied, Unsupported
from asciicam.models import RenderSettings
from asciicam.pacer import StatusLevel


class FakeHandle:
    label = "fake camera"
    error = None
    failed = False

    def __init__(self, ready=True):
        self._ready = ready

    def wait_ready(self, timeout=None):
        return self._ready


class FakeSampler:
    def __init__(self, handle=None, error=None, supported=True):
        self.handle = handle or FakeHandle()
        self.error = error
        self.supported = supported
        self.acquired = []
        self.released = []

    def check_support(self):
        if not self.supported:
            raise Unsupported("no backend")

    def acquire(self, source, loop=False):
        self.acquired.append(source)
        if self.error is not None:
            raise self.error
        return self.handle

    def release(self, handle):
        if handle is not None:
            self.released.append(handle)

    def sample(self, handle, width, height, mirror=True):
        raise AssertionError("not sampled in these tests")


class SlowHandle(FakeHandle):
    """Becomes ready after a number of wait_ready calls."""

    def __init__(self, polls_until_ready):
        super().__init__(ready=False)
        self.polls_until_ready = polls_until_ready
        self.timeouts = []

    def wait_ready(self, timeout=None):
        self.timeouts.append(timeout)
        return len(self.timeouts) >= self.polls_until_ready


def key(code, mod=0):
    return SimpleNamespace(key=code, mod=mod)


class AppTests(unittest.TestCase):
    def make_app(self, sampler, **config):
        return AsciiCamApp(AppConfig(settings=RenderSettings(), **config), sampler=sampler)

    def test_start_runs_pacer(self):
        sampler = FakeSampler()
        app = self.make_app(sampler)
        app.start()
        self.assertTrue(app.pacer.running)
        self.assertEqual(sampler.acquired, [0])
        self.assertEqual(app.display.status_level, StatusLevel.ACTIVE)

    def test_permission_error_is_reported_not_raised(self):
        sampler = FakeSampler(error=PermissionDenied("denied"))
        app = self.make_app(sampler)
        app.start()
        self.assertFalse(app.pacer.running)
        self.assertEqual(app.display.status_level, StatusLevel.ERROR)
        self.assertIn("denied", app.display.status_message)

    def test_stream_without_frames_is_released(self):
        handle = FakeHandle(ready=False)
        sampler = FakeSampler(handle=handle)
        app = self.make_app(sampler, ready_timeout=0.01)
        app.start()
        self.assertFalse(app.pacer.running)
        self.assertEqual(sampler.released, [handle])
        self.assertEqual(app.display.status_level, StatusLevel.ERROR)

    def test_waiting_for_first_frame_keeps_pumping_events(self):
        handle = SlowHandle(polls_until_ready=4)
        app = self.make_app(FakeSampler(handle=handle), ready_timeout=None)
        with patch("asciicam.app.pygame.display.get_init", return_value=True), patch(
            "asciicam.app.pygame.event.pump"
        ) as pump:
            app.start()
        self.assertTrue(app.pacer.running)
        self.assertEqual(len(handle.timeouts), 4)
        self.assertTrue(all(t <= READY_POLL_INTERVAL for t in handle.timeouts))
        self.assertEqual(pump.call_count, 3)

    def test_space_toggles_capture(self):
        sampler = FakeSampler()
        app = self.make_app(sampler)
        app.handle_key(key(pygame.K_SPACE))
        self.assertTrue(app.pacer.running)
        app.handle_key(key(pygame.K_SPACE))
        self.assertFalse(app.pacer.running)
        self.assertEqual(sampler.released, [sampler.handle])
        self.assertEqual(app.display.status_level, StatusLevel.STOPPED)

    def test_unsupported_disables_start(self):
        sampler = FakeSampler(supported=False)
        app = self.make_app(sampler)
        app.check_support()
        app.start()
        self.assertEqual(sampler.acquired, [])
        self.assertEqual(app.display.status_level, StatusLevel.ERROR)

    def test_video_source_skips_camera_check(self):
        sampler = FakeSampler(supported=False)
        app = self.make_app(sampler, video_path=Path("clip.mp4"))
        app.check_support()
        app.start()
        self.assertEqual(sampler.acquired, [Path("clip.mp4")])

    def test_control_keys_update_settings(self):
        app = self.make_app(FakeSampler())
        app.handle_key(key(pygame.K_r))
        app.handle_key(key(pygame.K_d))
        app.handle_key(key(pygame.K_UP))
        app.handle_key(key(pygame.K_LEFT))
        app.handle_key(key(pygame.K_m))
        settings = app.settings.snapshot()
        self.assertEqual(settings.resolution_label, "100x50")
        self.assertEqual(settings.ramp_name, "simple")
        self.assertEqual(settings.brightness, 1.1)
        self.assertEqual(settings.target_fps, 29)
        self.assertFalse(settings.mirror)
        self.assertIn("100x50", app.display.hint)

    def test_shift_reverses_cycling(self):
        app = self.make_app(FakeSampler())
        app.handle_key(key(pygame.K_r, pygame.KMOD_LSHIFT))
        self.assertEqual(app.settings.snapshot().resolution_label, "60x30")

    def test_quit_key(self):
        app = self.make_app(FakeSampler())
        app.alive = True
        app.handle_key(key(pygame.K_q))
        self.assertFalse(app.alive)


if __name__ == "__main__":
    unittest.main()
