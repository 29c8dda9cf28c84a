"""HTTP routes for creating sessions, proxying uploads and checking status."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from ..api.responses import success
from ..config import AppConfig
from ..exceptions import ValidationError
from ..platform.platform_client import StreamPlatformClient
from .upload_schemas import CreateStreamRequest, StreamType
from .upload_service import UploadService

router = APIRouter(prefix="/api/stream", tags=["stream"])
logger = logging.getLogger(__name__)


def get_upload_service(request: Request) -> UploadService:
    """Fetch upload service from application state."""
    try:
        return request.app.state.upload_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("UploadService is not configured") from exc


def get_app_config(request: Request) -> AppConfig:
    try:
        return request.app.state.config  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("AppConfig is not configured") from exc


def get_platform_client(request: Request) -> StreamPlatformClient:
    try:
        return request.app.state.platform_client  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("StreamPlatformClient is not configured") from exc


@router.post("/create")
async def create_stream(
    payload: CreateStreamRequest,
    service: UploadService = Depends(get_upload_service),
    config: AppConfig = Depends(get_app_config),
) -> dict[str, Any]:
    """Create a direct upload session or a live input."""
    if payload.type == StreamType.DIRECT:
        session = await service.create_session(payload.meta.name)
        return success(session.to_wire())
    if payload.type == StreamType.LIVE:
        live_input = await service.client.create_live_input(
            payload.meta.name, recording_mode=config.live.recording_mode
        )
        logger.info("stream.live_input.created", extra={"uid": live_input.uid})
        return success(live_input.to_wire())
    raise ValidationError("Invalid stream type. Use 'direct' or 'live'.")


@router.post("/upload")
async def proxy_upload(
    file: UploadFile | None = File(None),
    upload_url: str | None = Form(None, alias="uploadURL"),
    service: UploadService = Depends(get_upload_service),
) -> dict[str, Any]:
    """Relay a browser-recorded file to a pre-authorized upload URL."""
    if file is None or not upload_url:
        raise ValidationError("Both file and uploadURL are required")

    payload = await file.read()
    await service.forward(
        upload_url,
        payload,
        filename=file.filename,
        content_type=file.content_type or "video/webm",
    )
    logger.info("stream.upload.proxied", extra={"size_bytes": len(payload)})
    return success({"size": len(payload)})


@router.get("/status")
async def stream_status(
    input_id: str | None = Query(None, alias="inputId"),
    video_id: str | None = Query(None, alias="videoId"),
    client: StreamPlatformClient = Depends(get_platform_client),
) -> dict[str, Any]:
    if input_id:
        live_input = await client.get_live_input(input_id)
        return success(live_input.to_wire())
    if video_id:
        asset = await client.get_asset(video_id)
        return success(asset.to_wire())
    raise ValidationError("Either inputId or videoId is required")
