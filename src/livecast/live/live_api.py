"""HTTP routes for live inputs."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from ..api.responses import success, wire_list
from ..library.library_service import LibraryAggregator
from ..platform.platform_client import StreamPlatformClient

router = APIRouter(prefix="/api/live-inputs", tags=["live-inputs"])
logger = logging.getLogger(__name__)


def get_library(request: Request) -> LibraryAggregator:
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
async def list_live_inputs(library: LibraryAggregator = Depends(get_library)) -> dict[str, Any]:
    return success(wire_list(await library.list_live_inputs()))


@router.get("/{input_id}")
async def get_live_input(
    input_id: str, library: LibraryAggregator = Depends(get_library)
) -> dict[str, Any]:
    return success((await library.get_live_input(input_id)).to_wire())


@router.delete("/{input_id}")
async def delete_live_input(
    input_id: str,
    client: StreamPlatformClient = Depends(get_platform_client),
) -> dict[str, Any]:
    await client.delete_live_input(input_id)
    logger.info("live.input.deleted", extra={"uid": input_id})
    return success({"uid": input_id})


@router.post("/{input_id}/pause")
async def pause_live_input(
    input_id: str,
    client: StreamPlatformClient = Depends(get_platform_client),
) -> dict[str, Any]:
    live_input = await client.pause_live_input(input_id)
    return success(live_input.to_wire())


@router.post("/{input_id}/resume")
async def resume_live_input(
    input_id: str,
    client: StreamPlatformClient = Depends(get_platform_client),
) -> dict[str, Any]:
    live_input = await client.resume_live_input(input_id)
    return success(live_input.to_wire())


@router.get("/{input_id}/recordings")
async def live_input_recordings(
    input_id: str, library: LibraryAggregator = Depends(get_library)
) -> dict[str, Any]:
    return success(await library.recordings_report(input_id))
