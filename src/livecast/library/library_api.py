"""HTTP routes for the video library."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request

from ..api.responses import success, wire_list
from ..platform.platform_client import StreamPlatformClient
from ..playback.embed_settings import EmbedSettings, Preload
from .library_service import LibraryAggregator

router = APIRouter(prefix="/api/videos", tags=["videos"])
logger = logging.getLogger(__name__)


def get_library(request: Request) -> LibraryAggregator:
    """Fetch library aggregator from application state."""
    try:
        return request.app.state.library  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("LibraryAggregator is not configured") from exc


def get_platform_client(request: Request) -> StreamPlatformClient:
    try:
        return request.app.state.platform_client  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("StreamPlatformClient is not configured") from exc


@router.get("/list")
async def list_videos(library: LibraryAggregator = Depends(get_library)) -> dict[str, Any]:
    return success(wire_list(await library.list_library()))


@router.get("/{video_id}")
async def get_video(
    video_id: str,
    autoplay: bool = Query(False),
    loop: bool = Query(False),
    muted: bool = Query(False),
    preload: Preload | None = Query(None),
    library: LibraryAggregator = Depends(get_library),
) -> dict[str, Any]:
    embed = EmbedSettings(autoplay=autoplay, loop=loop, muted=muted, preload=preload)
    asset = await library.get_asset(video_id, embed if embed != EmbedSettings() else None)
    return success(asset.to_wire())


@router.delete("/{video_id}")
async def delete_video(
    video_id: str,
    client: StreamPlatformClient = Depends(get_platform_client),
) -> dict[str, Any]:
    await client.delete_asset(video_id)
    logger.info("library.video.deleted", extra={"uid": video_id})
    return success({"uid": video_id})


@router.post("/{video_id}/captions/generate")
async def generate_captions(
    video_id: str,
    language: str = Body("en", embed=True),
    client: StreamPlatformClient = Depends(get_platform_client),
) -> dict[str, Any]:
    await client.generate_captions(video_id, language)
    return success({"uid": video_id, "language": language})


@router.post("/{video_id}/require-signed-urls")
async def require_signed_urls(
    video_id: str,
    client: StreamPlatformClient = Depends(get_platform_client),
) -> dict[str, Any]:
    asset = await client.require_signed_urls(video_id)
    logger.info("library.video.signed_urls_required", extra={"uid": video_id})
    return success(asset.to_wire())
