"""Wire models for the stream platform REST API.

Field names follow the platform's camelCase JSON through aliases so that a
model dumped with ``by_alias=True`` is shaped exactly like the upstream record
(plus the enrichment fields this service adds).  Unknown keys are kept, the
platform adds fields faster than this module tracks them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AssetState(StrEnum):
    """Processing states reported for on-demand assets."""

    PENDING_UPLOAD = "pendingupload"
    DOWNLOADING = "downloading"
    QUEUED = "queued"
    READY = "ready"
    ERROR = "error"


class LiveConnectionState(StrEnum):
    """Connection states reported for live inputs."""

    CONNECTED = "connected"
    LIVE = "live"
    DISCONNECTED = "disconnected"


class RecordingMode(StrEnum):
    AUTOMATIC = "automatic"
    OFF = "off"


class PlatformModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_wire(self) -> dict[str, Any]:
        """Dump using platform field names, skipping absent values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class MediaMeta(PlatformModel):
    name: str | None = None


class AssetStatus(PlatformModel):
    state: str | None = None
    err_reason_code: str | None = Field(default=None, alias="errReasonCode")
    err_reason_text: str | None = Field(default=None, alias="errReasonText")


class PlaybackBundle(PlatformModel):
    iframe: str | None = None
    hls: str | None = None
    dash: str | None = None
    whep: str | None = None


class Asset(PlatformModel):
    """A video tracked by the platform (finished upload or live recording)."""

    uid: str
    meta: MediaMeta | None = None
    created: str | None = None
    modified: str | None = None
    duration: float | None = None
    ready_to_stream: bool | None = Field(default=None, alias="readyToStream")
    status: AssetStatus | None = None
    thumbnail: str | None = None
    playback: PlaybackBundle | None = None
    is_live: bool | None = Field(default=None, alias="isLive")
    live_input_id: str | None = Field(default=None, alias="liveInputId")
    is_live_recording: bool | None = Field(default=None, alias="isLiveRecording")
    paused: bool | None = None

    @property
    def state(self) -> str | None:
        return self.status.state if self.status else None

    @property
    def is_playable(self) -> bool:
        # The platform does not always populate both signals.
        return bool(self.ready_to_stream) or self.state == AssetState.READY

    @property
    def is_errored(self) -> bool:
        return self.state == AssetState.ERROR

    @property
    def display_name(self) -> str | None:
        return self.meta.name if self.meta else None

    @property
    def created_at(self) -> datetime | None:
        return parse_timestamp(self.created)


class WebRTCEndpoint(PlatformModel):
    url: str | None = None


class RecordingSettings(PlatformModel):
    mode: str | None = None
    require_signed_urls: bool | None = Field(default=None, alias="requireSignedURLs")
    allowed_origins: list[str] | None = Field(default=None, alias="allowedOrigins")
    hide_live_viewer_count: bool | None = Field(default=None, alias="hideLiveViewerCount")


class LiveInputConnection(PlatformModel):
    ingest_protocol: str | None = Field(default=None, alias="ingestProtocol")
    state: str | None = None
    status_entered_at: str | None = Field(default=None, alias="statusEnteredAt")
    status_last_seen: str | None = Field(default=None, alias="statusLastSeen")


class LiveInputStatus(PlatformModel):
    state: str | None = None
    current: LiveInputConnection | None = None
    history: list[LiveInputConnection] | None = None
    error_reason_code: str | None = Field(default=None, alias="errorReasonCode")
    error_reason_text: str | None = Field(default=None, alias="errorReasonText")


class LiveInput(PlatformModel):
    """A persistent real-time ingest endpoint."""

    uid: str | None = None
    meta: MediaMeta | None = None
    created: str | None = None
    modified: str | None = None
    paused: bool | None = None
    web_rtc: WebRTCEndpoint | None = Field(default=None, alias="webRTC")
    web_rtc_playback: WebRTCEndpoint | None = Field(default=None, alias="webRTCPlayback")
    recording: RecordingSettings | None = None
    status: LiveInputStatus | None = None

    @property
    def ingest_url(self) -> str | None:
        return self.web_rtc.url if self.web_rtc else None

    @property
    def playback_url(self) -> str | None:
        return self.web_rtc_playback.url if self.web_rtc_playback else None

    @property
    def connection_state(self) -> str | None:
        if self.status is None:
            return None
        if self.status.current and self.status.current.state:
            return self.status.current.state
        return self.status.state

    @property
    def is_live(self) -> bool:
        return self.connection_state in {LiveConnectionState.CONNECTED, LiveConnectionState.LIVE}

    @property
    def recording_mode(self) -> str | None:
        return self.recording.mode if self.recording else None


class UploadSession(PlatformModel):
    """Pre-authorized, single-use upload target bound to a new asset uid."""

    uid: str
    upload_url: str | None = Field(default=None, alias="uploadURL")


class PlatformMessage(PlatformModel):
    code: int | None = None
    message: str | None = None


class Envelope(PlatformModel):
    """Outer wrapper the platform puts around every JSON response."""

    result: Any = None
    success: bool | None = None
    errors: list[PlatformMessage] = Field(default_factory=list)
    messages: list[PlatformMessage] = Field(default_factory=list)

    @field_validator("errors", "messages", mode="before")
    @classmethod
    def _wrap_bare_messages(cls, value: Any) -> Any:
        if value is None:
            return []
        # Some endpoints report plain strings instead of {code, message} objects.
        if isinstance(value, list):
            return [{"message": item} if isinstance(item, str) else item for item in value]
        return value

    def first_error_message(self) -> str | None:
        for error in self.errors:
            if error.message:
                return error.message
        return None


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def created_sort_key(asset: Asset) -> datetime:
    """Sort key placing assets without a creation time at epoch zero."""
    return asset.created_at or _EPOCH
