from __future__ import annotations

import httpx
import pytest
from aiortc import RTCPeerConnection, RTCSessionDescription, VideoStreamTrack

from src.livecast.exceptions import RemoteError, TransportError
from src.livecast.live.whip_session import WhipIngestSession


class DummyTrack:
    def __init__(self, kind: str) -> None:
        self.kind = kind


class DummySender:
    def __init__(self) -> None:
        self.track = "initial"

    def replaceTrack(self, track) -> None:
        self.track = track


class DummyTransceiver:
    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.sender = DummySender()


class DummyPeerConnection:
    def __init__(self) -> None:
        self.transceivers = [DummyTransceiver("audio"), DummyTransceiver("video")]
        self.closed = False

    def getTransceivers(self):
        return self.transceivers

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_replace_tracks_matches_senders_by_kind() -> None:
    session = WhipIngestSession("https://ingest.example/whip")
    pc = DummyPeerConnection()
    session._pc = pc  # type: ignore[assignment]
    video = DummyTrack("video")

    await session.replace_tracks([video])

    assert pc.transceivers[0].sender.track is None
    assert pc.transceivers[1].sender.track is video


@pytest.mark.asyncio
async def test_replace_tracks_before_open_is_noop() -> None:
    session = WhipIngestSession("https://ingest.example/whip")

    await session.replace_tracks([DummyTrack("audio")])


@pytest.mark.asyncio
async def test_close_deletes_resource_and_closes_peer_connection() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    session = WhipIngestSession(
        "https://ingest.example/live-1/webRTC/publish",
        transport=httpx.MockTransport(handler),
    )
    pc = DummyPeerConnection()
    session._pc = pc  # type: ignore[assignment]
    session.resource_url = "https://ingest.example/live-1/webRTC/publish/resource-9"

    await session.close()

    assert pc.closed is True
    assert [(request.method, str(request.url)) for request in seen] == [
        ("DELETE", "https://ingest.example/live-1/webRTC/publish/resource-9")
    ]


@pytest.mark.asyncio
async def test_close_still_closes_peer_connection_when_delete_fails() -> None:
    def fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("gone", request=request)

    session = WhipIngestSession("https://ingest.example/whip", transport=httpx.MockTransport(fail))
    pc = DummyPeerConnection()
    session._pc = pc  # type: ignore[assignment]
    session.resource_url = "https://ingest.example/whip/resource"

    with pytest.raises(httpx.ConnectError):
        await session.close()

    assert pc.closed is True


class DummyWhipServer:
    """Answers WHIP offers with a real aiortc peer connection."""

    def __init__(self, status_code: int = 201, location: str | None = "resource-9") -> None:
        self.status_code = status_code
        self.location = location
        self.requests: list[httpx.Request] = []
        self.peers: list[RTCPeerConnection] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "DELETE":
            return httpx.Response(200)
        if self.status_code not in (200, 201):
            return httpx.Response(self.status_code, text="negotiation rejected")
        peer = RTCPeerConnection()
        self.peers.append(peer)
        await peer.setRemoteDescription(
            RTCSessionDescription(sdp=request.content.decode(), type="offer")
        )
        await peer.setLocalDescription(await peer.createAnswer())
        headers = {"Content-Type": "application/sdp"}
        if self.location:
            headers["Location"] = self.location
        return httpx.Response(self.status_code, text=peer.localDescription.sdp, headers=headers)

    async def close(self) -> None:
        for peer in self.peers:
            await peer.close()


@pytest.mark.asyncio
async def test_open_posts_offer_and_applies_answer() -> None:
    server = DummyWhipServer()
    session = WhipIngestSession(
        "https://ingest.example/live-1/webRTC/publish",
        transport=httpx.MockTransport(server),
    )

    try:
        await session.open([VideoStreamTrack()])

        offer = server.requests[0]
        assert offer.method == "POST"
        assert offer.headers["Content-Type"] == "application/sdp"
        assert offer.content.decode().startswith("v=0")
        assert session.resource_url == "https://ingest.example/live-1/webRTC/resource-9"
        assert session._pc is not None
        assert session._pc.remoteDescription.type == "answer"
    finally:
        await session.close()
        await server.close()

    assert [request.method for request in server.requests] == ["POST", "DELETE"]


@pytest.mark.asyncio
async def test_open_accepts_200_without_location() -> None:
    server = DummyWhipServer(status_code=200, location=None)
    session = WhipIngestSession("https://ingest.example/whip", transport=httpx.MockTransport(server))

    try:
        await session.open([VideoStreamTrack()])

        assert session.resource_url is None
    finally:
        await session.close()
        await server.close()

    assert [request.method for request in server.requests] == ["POST"]


@pytest.mark.asyncio
async def test_open_rejected_offer_is_remote_error() -> None:
    server = DummyWhipServer(status_code=500)
    session = WhipIngestSession("https://ingest.example/whip", transport=httpx.MockTransport(server))

    try:
        with pytest.raises(RemoteError) as exc_info:
            await session.open([VideoStreamTrack()])
    finally:
        await session.close()

    assert exc_info.value.status_code == 500
    assert session.resource_url is None


@pytest.mark.asyncio
async def test_open_unreachable_endpoint_is_transport_error() -> None:
    def fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    session = WhipIngestSession("https://ingest.example/whip", transport=httpx.MockTransport(fail))

    try:
        with pytest.raises(TransportError):
            await session.open([VideoStreamTrack()])
    finally:
        await session.close()
