"""Camera acquisition and downsampling into a reusable RGB raster."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Union

import cv2  # type: ignore
import numpy as np

from .errors import DeviceUnavailable, PermissionDenied, Unsupported
from .logging_setup import get_logger
from .models import RasterFrame

CAMERA_SCAN_LIMIT = 5  # inclusive max index probed for fallbacks
CAPTURE_WIDTH = 640
CAPTURE_HEIGHT = 480
READER_JOIN_TIMEOUT = 1.0  # seconds

_PERMISSION_MARKERS = ("permission", "not authorized", "authorization", "access denied")

Source = Union[int, Path]

log = get_logger("capture")


class StreamHandle:
    """A live source delivering frames from a background reader thread.

    The reader keeps only the most recent decoded frame; the sampler scales
    it out on demand, so a slow consumer simply skips frames.
    """

    def __init__(self, capture, label: str, loop: bool = False, frame_interval: float = 0.0) -> None:
        self.label = label
        self.loop = loop
        self._capture = capture
        self._frame_interval = frame_interval
        self._lock = threading.Lock()
        self._latest: np.ndarray | None = None
        self._ready = threading.Event()
        self._shutdown = threading.Event()
        self._thread: threading.Thread | None = None
        self._released = False
        self._capture_released = False
        self.error: Exception | None = None

    @property
    def ready(self) -> bool:
        return self._ready.is_set()

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def released(self) -> bool:
        return self._released

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._shutdown.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="asciicam-reader")
        self._thread.start()

    def wait_ready(self, timeout: float | None = None) -> bool:
        return self._ready.wait(timeout)

    def publish(self, frame: np.ndarray) -> None:
        with self._lock:
            self._latest = frame
        self._ready.set()

    def latest(self) -> np.ndarray | None:
        with self._lock:
            return self._latest

    def close(self) -> None:
        if self._released:
            return
        self._released = True
        self._shutdown.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=READER_JOIN_TIMEOUT)
            if thread.is_alive():
                # The reader is still inside read(); it releases the device on exit.
                log.warning("reader for %s still busy, deferring release", self.label)
                return
        self._release_capture()

    def _release_capture(self) -> None:
        with self._lock:
            if self._capture_released:
                return
            self._capture_released = True
        self._capture.release()
        log.info("released %s", self.label, extra={"event": "capture_released"})

    def _rewind(self) -> bool:
        return bool(self._capture.set(cv2.CAP_PROP_POS_FRAMES, 0))

    def _run(self) -> None:
        try:
            self._read_loop()
        finally:
            if self._released:
                self._release_capture()

    def _read_loop(self) -> None:
        while not self._shutdown.is_set():
            loop_start = time.perf_counter()
            success, frame = self._capture.read()
            if self._shutdown.is_set():
                break
            if not success or frame is None:
                if self.loop and self._rewind():
                    continue
                self.error = DeviceUnavailable(f"Unable to read frame from {self.label}.")
                log.warning("read failed on %s", self.label, extra={"event": "capture_read_failed"})
                break
            self.publish(frame)

            if self._frame_interval > 0:
                delay = self._frame_interval - (time.perf_counter() - loop_start)
                if delay > 0:
                    self._shutdown.wait(delay)


def _classify_open_error(exc: Exception, label: str) -> Exception:
    message = str(exc)
    if any(marker in message.lower() for marker in _PERMISSION_MARKERS):
        return PermissionDenied(f"Camera access denied for {label}: {message}")
    return DeviceUnavailable(f"Unable to open {label}: {message}")


def _open_capture(source: Source, label: str):
    try:
        cap = cv2.VideoCapture(str(source) if isinstance(source, Path) else source)
    except cv2.error as exc:
        raise _classify_open_error(exc, label) from exc
    if cap.isOpened():
        return cap
    cap.release()
    return None


def _as_bgr(image: np.ndarray) -> np.ndarray:
    channels = 1 if image.ndim == 2 else image.shape[2]
    if channels == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


def probe_camera_indices(max_index: int = CAMERA_SCAN_LIMIT) -> list[int]:
    """Return a list of camera indexes that we can open successfully."""
    available: list[int] = []
    for idx in range(max(0, max_index) + 1):
        cap = cv2.VideoCapture(idx)
        if cap.isOpened():
            available.append(idx)
        cap.release()
    return available


class CameraSampler:
    """Owns the off-screen raster and draws stream frames into it."""

    def __init__(self, scan_limit: int = CAMERA_SCAN_LIMIT) -> None:
        self.scan_limit = scan_limit
        self._scaled: np.ndarray | None = None
        self._flipped: np.ndarray | None = None
        self._raster: RasterFrame | None = None

    def check_support(self) -> None:
        registry = getattr(cv2, "videoio_registry", None)
        if registry is None or not hasattr(cv2, "VideoCapture"):
            raise Unsupported("This OpenCV build has no video capture support.")
        if not registry.getCameraBackends():
            raise Unsupported("No camera backend is available in this OpenCV build.")

    def acquire(self, source: Source = 0, loop: bool = False, start: bool = True) -> StreamHandle:
        if isinstance(source, Path):
            handle = self._acquire_file(source, loop)
        else:
            self.check_support()
            handle = self._acquire_camera(int(source))
        if start:
            handle.start()
        return handle

    def _acquire_file(self, path: Path, loop: bool) -> StreamHandle:
        label = f"video {path.name}"
        if not path.exists():
            raise DeviceUnavailable(f"Video path '{path}' does not exist.")
        cap = _open_capture(path, label)
        if cap is None:
            raise DeviceUnavailable(f"Unable to open video file '{path}'.")
        fps = cap.get(cv2.CAP_PROP_FPS) or 0.0
        interval = 1.0 / fps if fps > 0 else 0.0
        log.info("opened %s at %.1f fps", label, fps, extra={"event": "capture_opened"})
        return StreamHandle(cap, label, loop=loop, frame_interval=interval)

    def _acquire_camera(self, index: int) -> StreamHandle:
        cap = _open_capture(index, f"camera #{index}")
        actual = index
        if cap is None:
            for candidate in probe_camera_indices(self.scan_limit):
                if candidate == index:
                    continue
                cap = _open_capture(candidate, f"camera #{candidate}")
                if cap is not None:
                    actual = candidate
                    break
        if cap is None:
            raise DeviceUnavailable(
                f"Unable to open camera index {index} and no fallback cameras were detected."
            )
        if actual != index:
            log.warning(
                "unable to open camera index %d; using camera index %d instead",
                index,
                actual,
                extra={"event": "capture_fallback"},
            )
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, CAPTURE_WIDTH)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, CAPTURE_HEIGHT)
        log.info("opened camera #%d", actual, extra={"event": "capture_opened"})
        return StreamHandle(cap, f"camera #{actual}")

    def release(self, handle: StreamHandle | None) -> None:
        if handle is not None:
            handle.close()

    def _buffers(self, width: int, height: int) -> None:
        shape = (height, width, 3)
        if self._raster is None or self._raster.shape != shape:
            self._scaled = np.zeros(shape, dtype=np.uint8)
            self._flipped = np.zeros(shape, dtype=np.uint8)
            self._raster = np.zeros(shape, dtype=np.uint8)

    def sample(self, handle: StreamHandle, width: int, height: int, mirror: bool = True) -> RasterFrame:
        """Draw the latest frame into the raster at ``width`` x ``height``.

        Returns the same buffer on every call with unchanged dimensions. Before
        the stream has produced a frame the raster is left black.
        """
        self._buffers(width, height)
        frame = handle.latest()
        if frame is None:
            self._raster.fill(0)
            return self._raster

        self._scaled = cv2.resize(_as_bgr(frame), (width, height), dst=self._scaled, interpolation=cv2.INTER_AREA)
        source = self._scaled
        if mirror:
            self._flipped = cv2.flip(self._scaled, 1, dst=self._flipped)
            source = self._flipped
        self._raster = cv2.cvtColor(source, cv2.COLOR_BGR2RGB, dst=self._raster)
        return self._raster
