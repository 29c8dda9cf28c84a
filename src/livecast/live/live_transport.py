"""Live ingest: provision a live input and publish the capture device over WHIP."""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from ..capture.capture_devices import DeviceArbiter
from ..exceptions import AppError, RemoteError, TransportError, ValidationError
from ..platform.platform_models import LiveInput, RecordingMode
from .live_models import ACTIVE_STATES, ConnectionState, LiveSessionSnapshot
from .whip_session import IngestSession, WhipIngestSession

logger = logging.getLogger(__name__)

DEFAULT_STREAM_NAME = "Live Stream"


class LiveSessionBusyError(ValidationError):
    """Raised when a session is already connecting, connected or paused."""


class LiveInputGateway(Protocol):
    async def create_live_input(
        self, name: str | None = None, *, recording_mode: str = ...
    ) -> LiveInput: ...

    async def get_live_input(self, uid: str) -> LiveInput: ...

    async def pause_live_input(self, uid: str) -> LiveInput: ...

    async def resume_live_input(self, uid: str) -> LiveInput: ...


def _unique_token() -> str:
    return secrets.token_hex(3)


@dataclass(slots=True, eq=False)
class LiveTransport:
    """Owns one live ingest session at a time."""

    client: LiveInputGateway
    arbiter: DeviceArbiter
    session_factory: Callable[[str], IngestSession] = WhipIngestSession
    flush_grace_seconds: float = 0.5
    recording_mode: str = RecordingMode.AUTOMATIC
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    clock: Callable[[], datetime] = datetime.now
    token_factory: Callable[[], str] = _unique_token
    on_state_change: Callable[[ConnectionState], None] | None = None
    on_error: Callable[[AppError], None] | None = None
    log: logging.Logger = field(default_factory=lambda: logger)
    state: ConnectionState = field(default=ConnectionState.DISCONNECTED, init=False)
    live_input: LiveInput | None = field(default=None, init=False)
    paused: bool = field(default=False, init=False)
    capturing: bool = field(default=False, init=False)
    error: str | None = field(default=None, init=False)
    _session: IngestSession | None = field(default=None, init=False, repr=False)

    @property
    def live_input_id(self) -> str | None:
        return self.live_input.uid if self.live_input else None

    def snapshot(self) -> LiveSessionSnapshot:
        return LiveSessionSnapshot(
            state=self.state,
            live_input_id=self.live_input_id,
            paused=self.paused,
            capturing=self.capturing,
            error=self.error,
        )

    def unique_name(self, name: str | None) -> str:
        label = (name or "").strip() or DEFAULT_STREAM_NAME
        return f"{label}-{self.clock().strftime('%Y%m%d%H%M%S')}-{self.token_factory()}"

    async def start(self, name: str | None = None) -> LiveInput:
        if self.state in ACTIVE_STATES:
            raise LiveSessionBusyError("A live session is already active")

        self.error = None
        self.live_input = None
        self.paused = False
        self._set_state(ConnectionState.CONNECTING)
        try:
            device = self.arbiter.acquire(self)
            self.capturing = True
            live_input = await self.client.create_live_input(
                self.unique_name(name), recording_mode=self.recording_mode
            )
            ingest_url = live_input.ingest_url
            if not ingest_url:
                raise RemoteError("Live input did not provide a WebRTC ingest URL")
            self.live_input = live_input
            self._session = self.session_factory(ingest_url)
            await self._session.open(device.tracks)
        except AppError as exc:
            await self._fail(exc)
            raise
        except asyncio.CancelledError:
            await self._fail(TransportError("Live session start was cancelled"))
            raise
        except Exception as exc:
            wrapped = TransportError(f"Failed to start live session: {exc}")
            await self._fail(wrapped)
            raise wrapped from exc

        self._set_state(ConnectionState.CONNECTED)
        self.log.info(
            "live.session.started",
            extra={"live_input_id": live_input.uid, "ingest_url": ingest_url},
        )
        return live_input

    async def pause(self) -> bool:
        """Stop sending media right away, then flag the input paused remotely.

        Local state is not rolled back when the remote call fails; use
        :meth:`reconcile` to pick up the platform's view afterwards.
        """
        if self.state is not ConnectionState.CONNECTED or self.live_input_id is None:
            raise ValidationError("No connected live session to pause")

        self._release_device()
        if self._session is not None:
            await self._session.replace_tracks([])
        self.paused = True
        self._set_state(ConnectionState.PAUSED)

        try:
            await self.client.pause_live_input(self.live_input_id)
        except AppError as exc:
            self.log.warning(
                "live.session.pause_unconfirmed",
                extra={"live_input_id": self.live_input_id, "error": exc.message},
            )
            self._report(exc)
            return False
        self.log.info("live.session.paused", extra={"live_input_id": self.live_input_id})
        return True

    async def resume(self) -> LiveInput:
        if self.state is not ConnectionState.PAUSED or self.live_input_id is None:
            raise ValidationError("No paused live session to resume")

        remote = await self.client.resume_live_input(self.live_input_id)
        self.paused = False
        self._set_state(ConnectionState.CONNECTED)
        self.log.info("live.session.resumed", extra={"live_input_id": self.live_input_id})
        return remote

    async def resume_capture(self) -> None:
        """Re-lease the capture device and send its tracks again."""
        if self.state is not ConnectionState.CONNECTED or self._session is None:
            raise ValidationError("No connected live session to attach media to")
        if self.capturing:
            return
        device = self.arbiter.acquire(self)
        self.capturing = True
        await self._session.replace_tracks(device.tracks)
        self.log.info("live.capture.resumed", extra={"live_input_id": self.live_input_id})

    async def stop(self) -> None:
        if self.state is ConnectionState.DISCONNECTED:
            return

        self._release_device()
        session, self._session = self._session, None
        if session is not None:
            # Let in-flight packets drain before tearing the connection down.
            await self.sleep(self.flush_grace_seconds)
            await self._close_quietly(session)
        self.paused = False
        self._set_state(ConnectionState.DISCONNECTED)
        self.log.info("live.session.stopped", extra={"live_input_id": self.live_input_id})

    async def reconcile(self) -> LiveInput:
        """Replace the local paused flag with the platform's."""
        if self.live_input_id is None:
            raise ValidationError("No live input to reconcile")

        remote = await self.client.get_live_input(self.live_input_id)
        remote_paused = bool(remote.paused)
        if remote_paused != self.paused:
            self.log.info(
                "live.session.reconciled",
                extra={
                    "live_input_id": self.live_input_id,
                    "local_paused": self.paused,
                    "remote_paused": remote_paused,
                },
            )
        self.paused = remote_paused
        if self.state in (ConnectionState.CONNECTED, ConnectionState.PAUSED):
            self._set_state(
                ConnectionState.PAUSED if remote_paused else ConnectionState.CONNECTED
            )
        return remote

    # ------------------------------------------------------------------
    def _set_state(self, state: ConnectionState) -> None:
        if state is self.state:
            return
        self.state = state
        if self.on_state_change is not None:
            self.on_state_change(state)

    def _report(self, exc: AppError) -> None:
        if self.on_error is not None:
            self.on_error(exc)

    def _release_device(self) -> None:
        self.arbiter.release(self)
        self.capturing = False

    async def _fail(self, exc: AppError) -> None:
        self._release_device()
        session, self._session = self._session, None
        if session is not None:
            await self._close_quietly(session)
        self.error = exc.message
        self.log.error("live.session.failed", extra={"error": exc.message})
        self._set_state(ConnectionState.ERROR)
        self._report(exc)

    async def _close_quietly(self, session: IngestSession) -> None:
        try:
            await session.close()
        except Exception as exc:  # noqa: BLE001
            self.log.warning("live.session.close_failed", extra={"error": str(exc)})
