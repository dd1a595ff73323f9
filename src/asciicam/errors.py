"""Exception types shared across the capture pipeline."""

from __future__ import annotations


class AsciiCamError(Exception):
    pass


class CaptureError(AsciiCamError):
    """Camera acquisition failed; the user may retry by starting again."""


class PermissionDenied(CaptureError):
    pass


class DeviceUnavailable(CaptureError):
    pass


class Unsupported(CaptureError):
    pass


class SettingsError(AsciiCamError, ValueError):
    pass
