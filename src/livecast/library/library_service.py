"""Unified view over uploads, live inputs and their recordings."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import AppError
from ..platform.platform_client import StreamPlatformClient
from ..platform.platform_models import Asset, LiveInput, created_sort_key
from ..playback.embed_settings import EmbedSettings, apply_embed_settings
from ..playback.playback_resolver import PlaybackResolver

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LibraryAggregator:
    client: StreamPlatformClient
    resolver: PlaybackResolver
    log: logging.Logger = field(default_factory=lambda: logger)

    async def list_library(self) -> list[Asset]:
        """Merge uploads with live recordings, newest first.

        A recording already present among the uploads is listed once, as the
        upload. Failing to list one live input's recordings drops only those.
        """
        uploads, live_inputs = await asyncio.gather(
            self.client.list_assets(), self.client.list_live_inputs()
        )
        per_input = await asyncio.gather(
            *(self._playable_recordings(live_input) for live_input in live_inputs)
        )

        seen = {asset.uid for asset in uploads}
        merged = list(uploads)
        for recordings in per_input:
            for recording in recordings:
                if recording.uid in seen:
                    continue
                seen.add(recording.uid)
                merged.append(recording)

        resolved = await asyncio.gather(*(self.resolver.resolve(asset) for asset in merged))
        items = sorted(resolved, key=created_sort_key, reverse=True)
        self.log.info(
            "library.listed",
            extra={
                "uploads": len(uploads),
                "live_inputs": len(live_inputs),
                "total": len(items),
            },
        )
        return items

    async def get_asset(self, uid: str, embed: EmbedSettings | None = None) -> Asset:
        asset = await self.resolver.resolve(await self.client.get_asset(uid))
        if embed is not None and asset.playback and asset.playback.iframe:
            playback = asset.playback.model_copy(
                update={"iframe": apply_embed_settings(asset.playback.iframe, embed)}
            )
            asset = asset.model_copy(update={"playback": playback})
        return asset

    async def list_live_inputs(self) -> list[Asset]:
        live_inputs = await self.client.list_live_inputs()
        return list(
            await asyncio.gather(
                *(self.resolver.resolve_live_input(item) for item in live_inputs)
            )
        )

    async def get_live_input(self, uid: str) -> Asset:
        return await self.resolver.resolve_live_input(await self.client.get_live_input(uid))

    async def recordings_report(self, uid: str) -> dict[str, Any]:
        """Live input details with a breakdown of its recordings."""
        live_input, recordings = await asyncio.gather(
            self.client.get_live_input(uid),
            self.client.list_live_input_recordings(uid),
        )
        ready = sum(1 for recording in recordings if recording.is_playable)
        return {
            "liveInput": {
                "uid": live_input.uid,
                "name": live_input.meta.name if live_input.meta else None,
                "created": live_input.created,
                "recording": live_input.recording.to_wire() if live_input.recording else None,
                "status": live_input.connection_state,
            },
            "recordings": {
                "total": len(recordings),
                "ready": ready,
                "notReady": len(recordings) - ready,
                "videos": [
                    {
                        "uid": recording.uid,
                        "created": recording.created,
                        "readyToStream": bool(recording.ready_to_stream),
                        "status": recording.state,
                        "duration": recording.duration,
                    }
                    for recording in recordings
                ],
            },
        }

    async def _playable_recordings(self, live_input: LiveInput) -> list[Asset]:
        if not live_input.uid:
            return []
        try:
            recordings = await self.client.list_live_input_recordings(live_input.uid)
        except AppError as exc:
            self.log.warning(
                "library.recordings.skipped",
                extra={"live_input_id": live_input.uid, "error": exc.message},
            )
            return []
        return [
            recording.model_copy(
                update={"live_input_id": live_input.uid, "is_live_recording": True}
            )
            for recording in recordings
            if recording.is_playable
        ]
