"""Fill in playback URLs and thumbnails for assets and live inputs.

Signed playback replaces the uid in every URL with a short-lived token issued
by the platform.  When the token cannot be obtained the raw uid is used and a
warning is logged; the asset stays listable even if signed playback then
refuses to serve it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlsplit, urlunsplit

from ..exceptions import AppError
from ..platform.platform_models import (
    Asset,
    AssetState,
    AssetStatus,
    LiveInput,
    PlaybackBundle,
)

logger = logging.getLogger(__name__)

THUMBNAIL_QUERY = "time=1s&height=270"


class PlaybackTokenIssuer(Protocol):
    async def issue_playback_token(self, uid: str) -> str: ...


def playback_urls(subdomain: str, identifier: str) -> dict[str, str]:
    base = f"https://{subdomain}/{identifier}"
    return {
        "iframe": f"{base}/iframe",
        "hls": f"{base}/manifest/video.m3u8",
        "dash": f"{base}/manifest/video.mpd",
        "whep": f"{base}/webRTC/play",
    }


def thumbnail_url(subdomain: str, identifier: str) -> str:
    return f"https://{subdomain}/{identifier}/thumbnails/thumbnail.jpg?{THUMBNAIL_QUERY}"


@dataclass(slots=True)
class PlaybackResolver:
    client: PlaybackTokenIssuer
    customer_subdomain: str | None = None
    require_signed_playback: bool = True
    log: logging.Logger = field(default_factory=lambda: logger)

    async def resolve(self, asset: Asset) -> Asset:
        """Return a copy of ``asset`` with playback URLs filled in.

        Only missing fields are populated, so resolving twice yields the same
        record as resolving once.
        """
        if not self.customer_subdomain:
            return asset

        token = await self._issue_token(asset.uid)
        identifier = token or asset.uid
        playback = _fill_bundle(asset.playback, playback_urls(self.customer_subdomain, identifier))

        thumbnail = asset.thumbnail
        if token and thumbnail:
            thumbnail = _swap_identifier_segment(thumbnail, asset.uid, token)
        elif not thumbnail:
            thumbnail = thumbnail_url(self.customer_subdomain, identifier)

        return asset.model_copy(update={"playback": playback, "thumbnail": thumbnail})

    async def resolve_live_input(self, live_input: LiveInput) -> Asset:
        """Present a live input as a playable, asset-shaped record."""
        uid = live_input.uid or ""
        asset = Asset(
            uid=uid,
            meta=live_input.meta,
            created=live_input.created,
            modified=live_input.modified,
            ready_to_stream=True,
            status=AssetStatus(
                state=AssetState.READY if live_input.is_live else AssetState.QUEUED
            ),
            is_live=True,
            live_input_id=uid,
            paused=live_input.paused,
        )
        if not self.customer_subdomain or not uid:
            if live_input.playback_url:
                asset.playback = PlaybackBundle(whep=live_input.playback_url)
            return asset

        urls = playback_urls(self.customer_subdomain, uid)
        asset.playback = PlaybackBundle(
            iframe=urls["iframe"],
            hls=urls["hls"],
            dash=urls["dash"],
            whep=live_input.playback_url,
        )
        asset.thumbnail = thumbnail_url(self.customer_subdomain, uid)
        return asset

    async def _issue_token(self, uid: str) -> str | None:
        if not self.require_signed_playback:
            return None
        try:
            return await self.client.issue_playback_token(uid)
        except AppError as exc:
            self.log.warning(
                "playback.token.degraded",
                extra={"uid": uid, "error": exc.message},
            )
            return None


def _fill_bundle(existing: PlaybackBundle | None, urls: dict[str, str]) -> PlaybackBundle:
    current = existing.model_dump() if existing else {}
    merged = {key: current.get(key) or value for key, value in urls.items()}
    return PlaybackBundle(**{**current, **merged})


def _swap_identifier_segment(url: str, uid: str, token: str) -> str:
    """Replace the leading ``/<uid>/`` path segment with ``token``.

    Other occurrences of the uid (file names, query values) are left alone.
    """
    parts = urlsplit(url)
    segments = parts.path.split("/")
    if len(segments) < 2 or segments[1] != uid:
        return url
    segments[1] = token
    return urlunsplit(parts._replace(path="/".join(segments)))
