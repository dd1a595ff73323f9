import sys
import unittest
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "src"))

from asciicam.models import RenderSettings
from asciicam.pacer import STOPPED_MESSAGE, Pacer, StatusLevel
from asciicam.settings import SettingsStore


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeHandle:
    def __init__(self):
        self.error = None

    @property
    def failed(self):
        return self.error is not None


class FakeSampler:
    def __init__(self, value=0):
        self.value = value
        self.samples = []
        self.released = []

    def sample(self, handle, width, height, mirror=True):
        self.samples.append((width, height, mirror))
        return np.full((height, width, 3), self.value, dtype=np.uint8)

    def release(self, handle):
        self.released.append(handle)


class RecordingDisplay:
    def __init__(self, viewport=None):
        self._viewport = viewport
        self.frames = []
        self.fps = []
        self.idle = []

    def show_frame(self, text, font_size):
        self.frames.append((text, font_size))

    def show_fps(self, fps):
        self.fps.append(fps)

    def show_idle(self, message):
        self.idle.append(message)

    def viewport(self):
        return self._viewport


class RecordingStatus:
    def __init__(self):
        self.reports = []

    def report(self, message, level):
        self.reports.append((message, level))


class PacerTests(unittest.TestCase):
    def make_pacer(self, fps=10, value=0, viewport=None, **settings):
        self.clock = FakeClock()
        self.sampler = FakeSampler(value)
        self.display = RecordingDisplay(viewport)
        self.status = RecordingStatus()
        self.store = SettingsStore(RenderSettings(target_fps=fps, **settings))
        return Pacer(self.sampler, self.store, self.display, self.status, clock=self.clock)

    def test_idle_tick_does_nothing(self):
        pacer = self.make_pacer()
        self.assertFalse(pacer.tick(0))
        self.assertEqual(self.sampler.samples, [])
        self.assertEqual(self.display.frames, [])

    def test_start_reports_active(self):
        pacer = self.make_pacer()
        pacer.start(FakeHandle())
        self.assertTrue(pacer.running)
        self.assertEqual(self.status.reports[-1], ("Camera active", StatusLevel.ACTIVE))

    def test_cadence_at_ten_fps(self):
        pacer = self.make_pacer(fps=10)
        pacer.start(FakeHandle())
        rendered = []
        for now in range(0, 1001, 50):
            before = len(self.sampler.samples)
            self.assertTrue(pacer.tick(now))
            if len(self.sampler.samples) > before:
                rendered.append(now)
        self.assertEqual(rendered, list(range(0, 1001, 100)))
        self.assertEqual(len(self.display.fps), 1)
        self.assertLessEqual(abs(pacer.measured_fps - 10), 1)

    def test_measured_fps_over_second_window(self):
        pacer = self.make_pacer(fps=10)
        pacer.start(FakeHandle())
        for now in range(0, 2001, 50):
            pacer.tick(now)
        self.assertEqual(len(self.display.fps), 2)
        self.assertEqual(self.display.fps[-1], 10)

    def test_stop_then_tick_does_nothing(self):
        pacer = self.make_pacer()
        handle = FakeHandle()
        pacer.start(handle)
        pacer.tick(0)
        pacer.stop()
        samples = len(self.sampler.samples)
        frames = len(self.display.frames)
        self.assertFalse(pacer.tick(500))
        self.assertFalse(pacer.tick(1500))
        self.assertEqual(len(self.sampler.samples), samples)
        self.assertEqual(len(self.display.frames), frames)
        self.assertEqual(self.display.fps, [])
        self.assertEqual(self.sampler.released, [handle])
        self.assertEqual(self.display.idle, [STOPPED_MESSAGE])
        self.assertEqual(self.status.reports[-1], ("Camera stopped", StatusLevel.STOPPED))

    def test_stream_failure_returns_to_idle(self):
        pacer = self.make_pacer()
        handle = FakeHandle()
        pacer.start(handle)
        pacer.tick(0)
        handle.error = RuntimeError("camera unplugged")
        self.assertFalse(pacer.tick(100))
        self.assertFalse(pacer.running)
        self.assertEqual(self.sampler.released, [handle])
        message, level = self.status.reports[-1]
        self.assertEqual(level, StatusLevel.ERROR)
        self.assertIn("camera unplugged", message)
        self.assertEqual(len(self.sampler.samples), 1)

    def test_restart_releases_previous_handle(self):
        pacer = self.make_pacer()
        first, second = FakeHandle(), FakeHandle()
        pacer.start(first)
        pacer.start(second)
        self.assertEqual(self.sampler.released, [first])

    def test_black_frame_renders_spaces(self):
        pacer = self.make_pacer(width=40, height=24)
        pacer.start(FakeHandle())
        pacer.tick(0)
        text, _ = self.display.frames[-1]
        self.assertEqual(text, (" " * 40 + "\n") * 24)

    def test_settings_change_applies_on_next_tick(self):
        pacer = self.make_pacer(fps=10, value=255)
        pacer.start(FakeHandle())
        pacer.tick(0)
        self.store.set_resolution("40x24")
        self.store.set_mirror(False)
        pacer.tick(100)
        self.assertEqual(self.sampler.samples, [(80, 40, True), (40, 24, False)])
        text, _ = self.display.frames[-1]
        self.assertEqual(text.splitlines(), ["@" * 40] * 24)

    def test_font_size_fits_viewport(self):
        pacer = self.make_pacer(viewport=(640, 360))
        pacer.start(FakeHandle())
        pacer.tick(0)
        self.assertEqual(self.display.frames[-1][1], 9)
        self.assertEqual(pacer.font_size, 9)

    def test_font_size_fallback_without_viewport(self):
        pacer = self.make_pacer()
        pacer.start(FakeHandle())
        pacer.tick(0)
        self.assertEqual(self.display.frames[-1][1], 12)

    def test_uses_clock_when_time_not_given(self):
        pacer = self.make_pacer(fps=10)
        pacer.start(FakeHandle())
        pacer.tick()
        self.clock.now = 40.0
        pacer.tick()
        self.clock.now = 100.0
        pacer.tick()
        self.assertEqual(len(self.sampler.samples), 2)


if __name__ == "__main__":
    unittest.main()
