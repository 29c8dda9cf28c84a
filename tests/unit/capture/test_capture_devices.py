from __future__ import annotations

import pytest

from src.livecast.capture.capture_devices import DeviceArbiter, DeviceBusyError, MediaPlayerDevice


class DummyTrack:
    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class DummyPlayer:
    def __init__(self, *, audio=None, video=None) -> None:
        self.audio = audio
        self.video = video


class CountingOpener:
    def __init__(self) -> None:
        self.opened = 0
        self.devices: list[MediaPlayerDevice] = []

    def __call__(self) -> MediaPlayerDevice:
        self.opened += 1
        device = MediaPlayerDevice(
            player=DummyPlayer(audio=DummyTrack("audio"), video=DummyTrack("video"))  # type: ignore[arg-type]
        )
        self.devices.append(device)
        return device


def test_media_player_device_skips_missing_tracks_and_stops_on_close() -> None:
    video = DummyTrack("video")
    device = MediaPlayerDevice(player=DummyPlayer(video=video))  # type: ignore[arg-type]

    assert list(device.tracks) == [video]

    device.close()
    assert video.stopped is True


def test_same_owner_reuses_open_device() -> None:
    opener = CountingOpener()
    arbiter = DeviceArbiter(opener=opener)
    owner = object()

    first = arbiter.acquire(owner)
    second = arbiter.acquire(owner)

    assert first is second
    assert opener.opened == 1


def test_second_owner_is_refused_until_release() -> None:
    opener = CountingOpener()
    arbiter = DeviceArbiter(opener=opener)
    recorder, live = object(), object()

    arbiter.acquire(recorder)
    with pytest.raises(DeviceBusyError):
        arbiter.acquire(live)

    arbiter.release(recorder)
    assert all(track.stopped for track in opener.devices[0].tracks)

    arbiter.acquire(live)
    assert arbiter.owner is live
    assert opener.opened == 2


def test_release_by_non_holder_is_noop() -> None:
    opener = CountingOpener()
    arbiter = DeviceArbiter(opener=opener)
    holder = object()
    arbiter.acquire(holder)

    arbiter.release(object())
    assert arbiter.owner is holder

    arbiter.release(holder)
    arbiter.release(holder)
    assert arbiter.in_use is False
