"""Buffered capture: record the device to a WebM buffer, upload afterwards."""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from aiortc.contrib.media import MediaRecorder

from ..capture.capture_devices import DeviceArbiter
from ..exceptions import ValidationError
from .upload_transport import ChunkBuffer

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1024 * 1024


class TrackRecorder(Protocol):
    def addTrack(self, track: Any) -> None: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...


def _webm_recorder(path: str) -> TrackRecorder:
    return MediaRecorder(path, format="webm")


@dataclass(slots=True, eq=False)
class BufferedRecorder:
    """Hold the capture device while recording and hand back the media bytes."""

    arbiter: DeviceArbiter
    recorder_factory: Callable[[str], TrackRecorder] = _webm_recorder
    log: logging.Logger = field(default_factory=lambda: logger)
    _recorder: TrackRecorder | None = field(default=None, init=False, repr=False)
    _path: Path | None = field(default=None, init=False, repr=False)

    @property
    def recording(self) -> bool:
        return self._recorder is not None

    async def start(self) -> None:
        if self._recorder is not None:
            raise ValidationError("Recording already in progress")
        device = self.arbiter.acquire(self)
        fd, raw_path = tempfile.mkstemp(prefix="livecast-", suffix=".webm")
        os.close(fd)
        path = Path(raw_path)
        try:
            recorder = self.recorder_factory(str(path))
            for track in device.tracks:
                recorder.addTrack(track)
            await recorder.start()
        except Exception:
            self.arbiter.release(self)
            path.unlink(missing_ok=True)
            raise
        self._recorder = recorder
        self._path = path
        self.log.info("recorder.started", extra={"path": str(path)})

    async def stop(self) -> ChunkBuffer:
        recorder, path = self._recorder, self._path
        if recorder is None or path is None:
            raise ValidationError("No recording in progress")
        self._recorder = None
        self._path = None
        try:
            await recorder.stop()
        finally:
            self.arbiter.release(self)

        buffer = ChunkBuffer()
        try:
            with path.open("rb") as source:
                while chunk := source.read(READ_CHUNK_SIZE):
                    buffer.append(chunk)
        finally:
            path.unlink(missing_ok=True)
        self.log.info(
            "recorder.stopped",
            extra={"size_bytes": buffer.size, "chunks": buffer.chunk_count},
        )
        return buffer
