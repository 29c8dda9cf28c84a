"""Dependency wiring helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial

import httpx
from fastapi import FastAPI

from .capture.capture_devices import DeviceArbiter, open_media_player
from .config import AppConfig
from .library.library_api import router as library_router
from .library.library_service import LibraryAggregator
from .live.live_api import router as live_router
from .live.live_transport import LiveTransport
from .live.whip_session import WhipIngestSession
from .platform.platform_client import StreamPlatformClient
from .playback.playback_resolver import PlaybackResolver
from .readiness.readiness_poller import PollerRegistry
from .upload.buffered_recorder import BufferedRecorder
from .upload.upload_api import router as upload_router
from .upload.upload_service import UploadService
from .upload.upload_transport import UploadTransport


@dataclass(slots=True)
class Services:
    """Every long-lived collaborator built from one configuration."""

    config: AppConfig
    client: StreamPlatformClient
    upload_service: UploadService
    library: LibraryAggregator
    pollers: PollerRegistry
    arbiter: DeviceArbiter

    def buffered_recorder(self) -> BufferedRecorder:
        return BufferedRecorder(arbiter=self.arbiter)

    def live_transport(self, **callbacks) -> LiveTransport:
        return LiveTransport(
            client=self.client,
            arbiter=self.arbiter,
            session_factory=partial(
                WhipIngestSession, timeout_seconds=self.config.account.timeout_seconds
            ),
            flush_grace_seconds=self.config.live.flush_grace_seconds,
            recording_mode=self.config.live.recording_mode,
            **callbacks,
        )


def build_services(
    config: AppConfig, *, transport: httpx.AsyncBaseTransport | None = None
) -> Services:
    client = StreamPlatformClient(account=config.account, transport=transport)
    pollers = PollerRegistry()
    upload_service = UploadService(
        client=client,
        transport=UploadTransport(
            chunk_size=config.upload.chunk_size_bytes, transport=transport
        ),
        upload_config=config.upload,
        readiness_config=config.readiness,
        pollers=pollers,
    )
    resolver = PlaybackResolver(
        client=client,
        customer_subdomain=config.account.customer_subdomain,
        require_signed_playback=config.account.require_signed_playback,
    )
    return Services(
        config=config,
        client=client,
        upload_service=upload_service,
        library=LibraryAggregator(client=client, resolver=resolver),
        pollers=pollers,
        arbiter=DeviceArbiter(opener=partial(open_media_player, config.capture)),
    )


def include_routers(app: FastAPI, services: Services) -> None:
    """Mount module routers and attach services."""
    app.state.config = services.config
    app.state.services = services
    app.state.platform_client = services.client
    app.state.upload_service = services.upload_service
    app.state.library = services.library
    app.state.pollers = services.pollers

    app.include_router(upload_router)
    app.include_router(library_router)
    app.include_router(live_router)
