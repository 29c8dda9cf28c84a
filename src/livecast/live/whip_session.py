"""WHIP ingest session over an aiortc peer connection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence
from urllib.parse import urljoin

import httpx
from aiortc import RTCPeerConnection, RTCSessionDescription

from ..exceptions import RemoteError, TransportError

logger = logging.getLogger(__name__)

SDP_CONTENT_TYPE = "application/sdp"


class IngestSession(Protocol):
    """Real-time ingest session owned by exactly one live transport."""

    async def open(self, tracks: Sequence[Any]) -> None: ...

    async def replace_tracks(self, tracks: Sequence[Any]) -> None: ...

    async def close(self) -> None: ...


@dataclass(slots=True, eq=False)
class WhipIngestSession:
    """Publish local tracks to a WHIP endpoint."""

    endpoint: str
    timeout_seconds: float = 30.0
    transport: httpx.AsyncBaseTransport | None = None
    log: logging.Logger = field(default_factory=lambda: logger)
    resource_url: str | None = field(default=None, init=False)
    _pc: RTCPeerConnection | None = field(default=None, init=False, repr=False)

    async def open(self, tracks: Sequence[Any]) -> None:
        pc = RTCPeerConnection()
        self._pc = pc
        for track in tracks:
            pc.addTransceiver(track, direction="sendonly")

        offer = await pc.createOffer()
        # aiortc finishes ICE gathering inside setLocalDescription.
        await pc.setLocalDescription(offer)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self.transport
            ) as client:
                response = await client.post(
                    self.endpoint,
                    content=pc.localDescription.sdp,
                    headers={"Content-Type": SDP_CONTENT_TYPE},
                )
        except httpx.HTTPError as exc:
            raise TransportError(f"WHIP endpoint unreachable: {exc}") from exc

        if response.status_code not in (200, 201):
            raise RemoteError(
                f"WHIP negotiation failed with status {response.status_code}",
                status_code=response.status_code,
            )
        location = response.headers.get("location")
        if location:
            self.resource_url = urljoin(self.endpoint, location)

        await pc.setRemoteDescription(RTCSessionDescription(sdp=response.text, type="answer"))
        self.log.info(
            "live.whip.negotiated",
            extra={"endpoint": self.endpoint, "resource": self.resource_url},
        )

    async def replace_tracks(self, tracks: Sequence[Any]) -> None:
        if self._pc is None:
            return
        by_kind = {track.kind: track for track in tracks}
        for transceiver in self._pc.getTransceivers():
            transceiver.sender.replaceTrack(by_kind.get(transceiver.kind))

    async def close(self) -> None:
        pc, self._pc = self._pc, None
        try:
            if self.resource_url:
                async with httpx.AsyncClient(
                    timeout=self.timeout_seconds, transport=self.transport
                ) as client:
                    await client.delete(self.resource_url)
        finally:
            if pc is not None:
                await pc.close()
            self.log.info("live.whip.closed", extra={"endpoint": self.endpoint})
