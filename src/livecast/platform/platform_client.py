"""Typed async client for the stream platform REST API.

The client performs request/response translation only: one method per remote
capability, one decode step per method, and every failure normalised into the
:mod:`livecast.exceptions` taxonomy.  Retry policy belongs to callers.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence, TypeVar

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..config import StreamAccountConfig
from ..exceptions import RemoteError, TransportError, ensure_configured
from .platform_models import (
    Asset,
    Envelope,
    LiveInput,
    RecordingMode,
    UploadSession,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ASSET = TypeAdapter(Asset)
_ASSETS = TypeAdapter(list[Asset])
_LIVE_INPUT = TypeAdapter(LiveInput)
_LIVE_INPUTS = TypeAdapter(list[LiveInput])
_UPLOAD_SESSION = TypeAdapter(UploadSession)


@dataclass(slots=True)
class StreamPlatformClient:
    """Gateway to the platform's assets, live inputs, tokens and captions."""

    account: StreamAccountConfig
    transport: httpx.AsyncBaseTransport | None = None
    log: logging.Logger = field(default_factory=lambda: logger)

    @property
    def base_url(self) -> str:
        return f"{self.account.api_base.rstrip('/')}/accounts/{self.account.account_id}/stream"

    # ------------------------------------------------------------------
    # Uploads and assets
    # ------------------------------------------------------------------
    async def create_upload_session(
        self,
        name: str | None = None,
        *,
        max_duration_seconds: int = 60,
        allowed_origins: Sequence[str] = ("*",),
        require_signed_urls: bool = True,
    ) -> UploadSession:
        body = {
            "maxDurationSeconds": max_duration_seconds,
            "allowedOrigins": list(allowed_origins),
            "requireSignedURLs": require_signed_urls,
            "meta": {"name": name} if name else {},
        }
        payload = await self._request("POST", "/direct_upload", json=body)
        return self._decode(_UPLOAD_SESSION, payload, operation="create_upload_session")

    async def get_asset(self, uid: str) -> Asset:
        payload = await self._request("GET", f"/{uid}")
        return self._decode(_ASSET, payload, operation="get_asset")

    async def list_assets(self) -> list[Asset]:
        payload = await self._request("GET", "/")
        return self._decode(_ASSETS, payload, operation="list_assets", empty=[])

    async def delete_asset(self, uid: str) -> None:
        await self._request("DELETE", f"/{uid}")

    async def require_signed_urls(self, uid: str) -> Asset:
        payload = await self._request("PATCH", f"/{uid}", json={"requireSignedURLs": True})
        return self._decode(_ASSET, payload, operation="require_signed_urls")

    async def issue_playback_token(self, uid: str) -> str:
        payload = await self._request("POST", f"/{uid}/token")
        if isinstance(payload, str) and payload:
            return payload
        if isinstance(payload, dict) and payload.get("token"):
            return str(payload["token"])
        raise RemoteError(f"Failed to extract playback token for asset {uid}")

    async def generate_captions(self, uid: str, language: str = "en") -> None:
        await self._request("POST", f"/{uid}/captions/{language}/generate")

    # ------------------------------------------------------------------
    # Live inputs
    # ------------------------------------------------------------------
    async def create_live_input(
        self,
        name: str | None = None,
        *,
        recording_mode: str = RecordingMode.AUTOMATIC,
    ) -> LiveInput:
        body = {
            "meta": {"name": name} if name else {},
            "recording": {"mode": str(recording_mode)},
        }
        payload = await self._request("POST", "/live_inputs", json=body)
        return self._decode(_LIVE_INPUT, payload, operation="create_live_input")

    async def get_live_input(self, uid: str) -> LiveInput:
        payload = await self._request("GET", f"/live_inputs/{uid}")
        return self._decode(_LIVE_INPUT, payload, operation="get_live_input")

    async def list_live_inputs(self) -> list[LiveInput]:
        payload = await self._request("GET", "/live_inputs")
        return self._decode(_LIVE_INPUTS, payload, operation="list_live_inputs", empty=[])

    async def list_live_input_recordings(self, uid: str) -> list[Asset]:
        payload = await self._request("GET", f"/live_inputs/{uid}/videos")
        return self._decode(
            _ASSETS, payload, operation="list_live_input_recordings", empty=[]
        )

    async def delete_live_input(self, uid: str) -> None:
        await self._request("DELETE", f"/live_inputs/{uid}")

    async def set_live_input_paused(self, uid: str, paused: bool) -> LiveInput:
        payload = await self._request("PUT", f"/live_inputs/{uid}", json={"paused": paused})
        if payload is None:
            return LiveInput(uid=uid, paused=paused)
        return self._decode(_LIVE_INPUT, payload, operation="set_live_input_paused")

    async def pause_live_input(self, uid: str) -> LiveInput:
        return await self.set_live_input_paused(uid, True)

    async def resume_live_input(self, uid: str) -> LiveInput:
        return await self.set_live_input_paused(uid, False)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    async def _request(
        self, method: str, path: str, *, json: dict[str, Any] | None = None
    ) -> Any:
        ensure_configured(
            STREAM_ACCOUNT_ID=self.account.account_id,
            STREAM_API_TOKEN=self.account.api_token,
        )
        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self.account.api_token}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.account.timeout_seconds, transport=self.transport
            ) as client:
                response = await client.request(method, url, headers=headers, json=json)
        except httpx.HTTPError as exc:
            self.log.warning(
                "platform.request.transport_error",
                extra={"method": method, "path": path, "error": str(exc)},
            )
            raise TransportError(f"Stream platform unreachable: {exc}") from exc

        if not response.is_success:
            message = _extract_error_message(response)
            self.log.warning(
                "platform.request.failed",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "error_detail": message,
                },
            )
            raise RemoteError(message, status_code=response.status_code)

        self.log.debug(
            "platform.request.ok",
            extra={"method": method, "path": path, "status_code": response.status_code},
        )
        return _unwrap_payload(response)

    def _decode(
        self,
        adapter: TypeAdapter[T],
        payload: Any,
        *,
        operation: str,
        empty: T | None = None,
    ) -> T:
        if payload is None:
            if empty is not None:
                return empty
            raise RemoteError(f"Stream platform returned an empty response for {operation}")
        try:
            return adapter.validate_python(payload)
        except PydanticValidationError as exc:
            self.log.error(
                "platform.response.unexpected_shape",
                extra={"operation": operation, "error": str(exc)},
            )
            raise RemoteError(
                f"Unexpected stream platform response for {operation}"
            ) from exc


def _status_line(response: httpx.Response) -> str:
    reason = response.reason_phrase or ""
    return f"HTTP {response.status_code} {reason}".strip()


def _extract_error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return _status_line(response)
    if isinstance(data, dict):
        try:
            envelope = Envelope.model_validate(data)
        except PydanticValidationError:
            return _status_line(response)
        message = envelope.first_error_message()
        if message:
            return message
    return _status_line(response)


def _unwrap_payload(response: httpx.Response) -> Any:
    """Return the envelope payload, or ``None`` for a valid empty body."""
    content_type = response.headers.get("content-type", "")
    if (
        response.status_code == 204
        or response.headers.get("content-length") == "0"
        or "application/json" not in content_type
    ):
        return None
    text = response.text
    if not text.strip():
        return None
    try:
        data = json.loads(text)
    except ValueError:
        return None

    if isinstance(data, dict) and ("result" in data or "success" in data):
        try:
            envelope = Envelope.model_validate(data)
        except PydanticValidationError as exc:
            raise RemoteError(
                "Unexpected stream platform response envelope",
                status_code=response.status_code,
            ) from exc
        if envelope.success is False:
            raise RemoteError(
                envelope.first_error_message() or _status_line(response),
                status_code=response.status_code,
            )
        return envelope.result
    return data
