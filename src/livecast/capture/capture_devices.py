"""Capture device access and single-owner leasing.

The camera/microphone handle is a singleton per session: the buffered
recorder and the live transport share one :class:`DeviceArbiter`, and only the
current lease holder may keep the device open.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from aiortc.contrib.media import MediaPlayer

from ..config import CaptureConfig
from ..exceptions import ValidationError

logger = logging.getLogger(__name__)


class CaptureDevice(Protocol):
    """Open handle on a local audio/video source."""

    @property
    def tracks(self) -> Sequence[Any]: ...

    def close(self) -> None: ...


class DeviceBusyError(ValidationError):
    """Raised when another owner already holds the capture device."""


@dataclass(slots=True)
class MediaPlayerDevice:
    """Capture device backed by an aiortc ``MediaPlayer``."""

    player: MediaPlayer

    @property
    def tracks(self) -> Sequence[Any]:
        return [track for track in (self.player.audio, self.player.video) if track is not None]

    def close(self) -> None:
        for track in self.tracks:
            track.stop()


def open_media_player(config: CaptureConfig) -> MediaPlayerDevice:
    """Open the configured local device via FFmpeg."""
    options = {"video_size": config.video_size, "framerate": config.framerate}
    player = MediaPlayer(config.device, format=config.format, options=options)
    logger.info(
        "capture.device.opened",
        extra={"device": config.device, "format": config.format},
    )
    return MediaPlayerDevice(player=player)


@dataclass(slots=True)
class DeviceArbiter:
    """Grant the capture device to at most one owner at a time."""

    opener: Callable[[], CaptureDevice]
    _owner: object | None = field(default=None, init=False, repr=False)
    _device: CaptureDevice | None = field(default=None, init=False, repr=False)
    log: logging.Logger = field(default_factory=lambda: logger)

    @property
    def owner(self) -> object | None:
        return self._owner

    @property
    def in_use(self) -> bool:
        return self._device is not None

    def acquire(self, owner: object) -> CaptureDevice:
        if self._device is not None:
            if self._owner is owner:
                return self._device
            raise DeviceBusyError("Capture device is already in use by another session")
        device = self.opener()
        self._owner = owner
        self._device = device
        self.log.info("capture.device.acquired", extra={"owner": type(owner).__name__})
        return device

    def release(self, owner: object) -> None:
        if self._device is None or self._owner is not owner:
            return
        device, self._device, self._owner = self._device, None, None
        try:
            device.close()
        finally:
            self.log.info("capture.device.released", extra={"owner": type(owner).__name__})
