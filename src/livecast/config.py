"""Application configuration builder."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Sequence

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.cloudflare.com/client/v4"


@dataclass(slots=True)
class StreamAccountConfig:
    account_id: str = ""
    api_token: str = ""
    api_base: str = DEFAULT_API_BASE
    customer_subdomain: str | None = None
    require_signed_playback: bool = True
    timeout_seconds: float = 30.0

    @property
    def is_configured(self) -> bool:
        return bool(self.account_id and self.api_token)


@dataclass(slots=True)
class UploadConfig:
    max_duration_seconds: int = 60
    chunk_size_bytes: int = 64 * 1024
    allowed_origins: Sequence[str] = ("*",)


@dataclass(slots=True)
class ReadinessConfig:
    interval_seconds: float = 5.0
    max_attempts: int = 12
    caption_language: str = "en"


@dataclass(slots=True)
class CaptureConfig:
    device: str = "/dev/video0"
    format: str | None = "v4l2"
    video_size: str = "1280x720"
    framerate: str = "30"


@dataclass(slots=True)
class LiveConfig:
    flush_grace_seconds: float = 0.5
    recording_mode: str = "automatic"


@dataclass(slots=True)
class AppConfig:
    account: StreamAccountConfig = field(default_factory=StreamAccountConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    readiness: ReadinessConfig = field(default_factory=ReadinessConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    live: LiveConfig = field(default_factory=LiveConfig)
    cors_origins: Sequence[str] = ("*",)


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def load_config() -> AppConfig:
    """Load configuration from environment variables."""
    subdomain = (os.getenv("CUSTOMER_SUBDOMAIN") or "").strip() or None
    account = StreamAccountConfig(
        account_id=os.getenv("STREAM_ACCOUNT_ID", "").strip(),
        api_token=os.getenv("STREAM_API_TOKEN", "").strip(),
        api_base=os.getenv("STREAM_API_BASE", DEFAULT_API_BASE).rstrip("/"),
        customer_subdomain=subdomain,
        require_signed_playback=_parse_bool(os.getenv("STREAM_REQUIRE_SIGNED_URLS"), True),
        timeout_seconds=float(os.getenv("STREAM_HTTP_TIMEOUT_SECONDS", 30)),
    )
    if not account.is_configured:
        logger.warning(
            "config.stream_credentials_missing: set STREAM_ACCOUNT_ID and STREAM_API_TOKEN"
        )

    upload = UploadConfig(
        max_duration_seconds=int(os.getenv("UPLOAD_MAX_DURATION_SECONDS", 60)),
        chunk_size_bytes=int(os.getenv("UPLOAD_CHUNK_SIZE_BYTES", 64 * 1024)),
        allowed_origins=_split_csv(os.getenv("UPLOAD_ALLOWED_ORIGINS", "*")) or ("*",),
    )
    readiness = ReadinessConfig(
        interval_seconds=float(os.getenv("READINESS_POLL_INTERVAL_SECONDS", 5)),
        max_attempts=max(1, int(os.getenv("READINESS_MAX_ATTEMPTS", 12))),
        caption_language=os.getenv("CAPTION_LANGUAGE", "en"),
    )
    capture = CaptureConfig(
        device=os.getenv("CAPTURE_VIDEO_DEVICE", "/dev/video0"),
        format=os.getenv("CAPTURE_FORMAT", "v4l2") or None,
        video_size=os.getenv("CAPTURE_VIDEO_SIZE", "1280x720"),
        framerate=os.getenv("CAPTURE_FRAMERATE", "30"),
    )
    live = LiveConfig(
        flush_grace_seconds=float(os.getenv("LIVE_FLUSH_GRACE_SECONDS", 0.5)),
        recording_mode=os.getenv("LIVE_RECORDING_MODE", "automatic"),
    )

    return AppConfig(
        account=account,
        upload=upload,
        readiness=readiness,
        capture=capture,
        live=live,
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")) or ("*",),
    )
