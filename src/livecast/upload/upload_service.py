"""Domain service for buffered uploads."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from ..config import ReadinessConfig, UploadConfig
from ..exceptions import RemoteError, ValidationError
from ..platform.platform_client import StreamPlatformClient
from ..platform.platform_models import UploadSession
from ..readiness.readiness_poller import PollerRegistry, ReadinessPoller
from .upload_transport import ChunkBuffer, ProgressCallback, UploadTransport

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadOutcome:
    uid: str
    poller: ReadinessPoller | None = None


@dataclass(slots=True)
class UploadService:
    """Coordinates upload sessions, transfers and readiness polling."""

    client: StreamPlatformClient
    transport: UploadTransport
    upload_config: UploadConfig = field(default_factory=UploadConfig)
    readiness_config: ReadinessConfig = field(default_factory=ReadinessConfig)
    pollers: PollerRegistry = field(default_factory=PollerRegistry)
    clock: Callable[[], datetime] = datetime.now
    log: logging.Logger = field(default_factory=lambda: logger)

    def default_name(self) -> str:
        return f"Recording {self.clock().strftime('%Y-%m-%d %H:%M:%S')}"

    async def create_session(self, name: str | None = None) -> UploadSession:
        session = await self.client.create_upload_session(
            name or self.default_name(),
            max_duration_seconds=self.upload_config.max_duration_seconds,
            allowed_origins=self.upload_config.allowed_origins,
            require_signed_urls=True,
        )
        if not session.upload_url:
            raise RemoteError("Failed to get upload URL")
        self.log.info("upload.session.created", extra={"uid": session.uid})
        return session

    async def forward(
        self,
        upload_url: str,
        payload: bytes,
        *,
        filename: str | None = None,
        content_type: str = "video/webm",
    ) -> None:
        """Relay an already-recorded payload to a session created elsewhere."""
        await self.transport.upload(
            upload_url, payload, filename=filename, content_type=content_type
        )

    async def record_and_upload(
        self,
        payload: bytes | ChunkBuffer,
        *,
        name: str | None = None,
        on_progress: ProgressCallback | None = None,
        on_complete: Callable[[str], None] | None = None,
        poll: bool = True,
    ) -> UploadOutcome:
        size = payload.size if isinstance(payload, ChunkBuffer) else len(payload)
        if size == 0:
            raise ValidationError(
                "No video data recorded. Please record a video before uploading."
            )

        session = await self.create_session(name)
        await self.transport.upload(
            session.upload_url, payload, filename=name, on_progress=on_progress
        )

        poller = self.start_readiness_poller(session.uid) if poll else None
        if on_complete is not None:
            on_complete(session.uid)
        self.log.info(
            "upload.recording.completed",
            extra={"uid": session.uid, "size_bytes": size},
        )
        return UploadOutcome(uid=session.uid, poller=poller)

    def start_readiness_poller(self, uid: str) -> ReadinessPoller:
        poller = ReadinessPoller(
            client=self.client,
            uid=uid,
            interval_seconds=self.readiness_config.interval_seconds,
            max_attempts=self.readiness_config.max_attempts,
            caption_language=self.readiness_config.caption_language,
        )
        return self.pollers.track(poller)
