from __future__ import annotations

from pathlib import Path

import pytest

from src.livecast.capture.capture_devices import DeviceArbiter, DeviceBusyError
from src.livecast.exceptions import ValidationError
from src.livecast.upload.buffered_recorder import BufferedRecorder


class DummyDevice:
    def __init__(self) -> None:
        self.tracks = ["audio-track", "video-track"]
        self.closed = False

    def close(self) -> None:
        self.closed = True


class DummyRecorder:
    def __init__(self, path: str, *, content: bytes = b"webm-bytes", fail_on_start: bool = False) -> None:
        self.path = path
        self.content = content
        self.fail_on_start = fail_on_start
        self.tracks: list[str] = []

    def addTrack(self, track) -> None:
        self.tracks.append(track)

    async def start(self) -> None:
        if self.fail_on_start:
            raise RuntimeError("encoder unavailable")

    async def stop(self) -> None:
        Path(self.path).write_bytes(self.content)


@pytest.mark.asyncio
async def test_records_into_chunk_buffer_and_releases_device() -> None:
    device = DummyDevice()
    arbiter = DeviceArbiter(opener=lambda: device)
    recorders: list[DummyRecorder] = []

    def factory(path: str) -> DummyRecorder:
        recorders.append(DummyRecorder(path))
        return recorders[-1]

    recorder = BufferedRecorder(arbiter=arbiter, recorder_factory=factory)
    await recorder.start()

    assert recorder.recording is True
    assert arbiter.owner is recorder
    assert recorders[0].tracks == ["audio-track", "video-track"]

    buffer = await recorder.stop()

    assert buffer.getvalue() == b"webm-bytes"
    assert device.closed is True
    assert arbiter.in_use is False
    assert not Path(recorders[0].path).exists()


@pytest.mark.asyncio
async def test_failed_start_releases_device_and_removes_file() -> None:
    device = DummyDevice()
    arbiter = DeviceArbiter(opener=lambda: device)
    paths: list[str] = []

    def factory(path: str) -> DummyRecorder:
        paths.append(path)
        return DummyRecorder(path, fail_on_start=True)

    recorder = BufferedRecorder(arbiter=arbiter, recorder_factory=factory)

    with pytest.raises(RuntimeError):
        await recorder.start()

    assert arbiter.in_use is False
    assert recorder.recording is False
    assert not Path(paths[0]).exists()


@pytest.mark.asyncio
async def test_stop_without_start_is_rejected() -> None:
    recorder = BufferedRecorder(arbiter=DeviceArbiter(opener=DummyDevice))

    with pytest.raises(ValidationError):
        await recorder.stop()


@pytest.mark.asyncio
async def test_recording_is_refused_while_another_owner_holds_device() -> None:
    arbiter = DeviceArbiter(opener=DummyDevice)
    arbiter.acquire("live-session")
    recorder = BufferedRecorder(arbiter=arbiter, recorder_factory=DummyRecorder)

    with pytest.raises(DeviceBusyError):
        await recorder.start()

    assert arbiter.owner == "live-session"
