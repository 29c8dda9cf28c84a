"""Chunked-buffer-then-upload transport.

A finished recording is encoded as a single multipart body and streamed to a
pre-authorized, single-use upload URL.  The body is produced chunk by chunk so
progress can be reported as bytes leave the process.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field

import httpx

from ..exceptions import RemoteError, TransportError, ValidationError
from .upload_filenames import sanitize_filename

logger = logging.getLogger(__name__)

UPLOAD_FIELD_NAME = "file"
DEFAULT_CONTENT_TYPE = "video/webm"

ProgressCallback = Callable[[float], None]


class UploadNetworkError(TransportError):
    """Raised when the upload target could not be reached."""


class UploadAbortedError(TransportError):
    """Raised when the operator cancels an upload mid-transfer."""


@dataclass(slots=True)
class ChunkBuffer:
    """Accumulates recorded media chunks until the recording stops."""

    chunks: list[bytes] = field(default_factory=list)

    def append(self, chunk: bytes) -> None:
        if chunk:
            self.chunks.append(bytes(chunk))

    @property
    def size(self) -> int:
        return sum(len(chunk) for chunk in self.chunks)

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)

    def getvalue(self) -> bytes:
        return b"".join(self.chunks)

    def clear(self) -> None:
        self.chunks.clear()


@dataclass(slots=True)
class ProgressTracker:
    """Emit non-decreasing percentages and a single final 100."""

    callback: ProgressCallback | None = None
    last: float = 0.0
    completed: bool = False

    def report(self, transferred: int, total: int) -> None:
        if total <= 0 or self.completed:
            return
        value = min(transferred / total * 100.0, 100.0)
        # 100 is reserved for complete().
        if value >= 100.0 or value <= self.last:
            return
        self.last = value
        if self.callback is not None:
            self.callback(value)

    def complete(self) -> None:
        if self.completed:
            return
        self.completed = True
        self.last = 100.0
        if self.callback is not None:
            self.callback(100.0)


@dataclass(slots=True)
class UploadTransport:
    """Stream one finished media payload to a pre-authorized upload target."""

    chunk_size: int = 64 * 1024
    timeout_seconds: float = 300.0
    transport: httpx.AsyncBaseTransport | None = None
    log: logging.Logger = field(default_factory=lambda: logger)
    _in_flight: dict[str, asyncio.Event] = field(default_factory=dict, init=False, repr=False)

    def abort(self, upload_url: str | None = None) -> None:
        """Cancel the transfer to ``upload_url``, or every transfer in flight."""
        if upload_url is None:
            events = list(self._in_flight.values())
        else:
            events = [self._in_flight[upload_url]] if upload_url in self._in_flight else []
        for event in events:
            event.set()

    async def upload(
        self,
        upload_url: str,
        payload: bytes | ChunkBuffer,
        *,
        filename: str | None = None,
        content_type: str = DEFAULT_CONTENT_TYPE,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        data = payload.getvalue() if isinstance(payload, ChunkBuffer) else bytes(payload)
        if not upload_url:
            raise ValidationError("Upload URL is required")
        if not data:
            raise ValidationError(
                "No video data recorded. Please record a video before uploading."
            )

        name = sanitize_filename(filename)
        request = httpx.Request(
            "POST",
            upload_url,
            files={UPLOAD_FIELD_NAME: (name, data, content_type)},
        )
        body = request.read()
        headers = {
            "Content-Type": request.headers["Content-Type"],
            "Content-Length": str(len(body)),
        }
        tracker = ProgressTracker(on_progress)
        if upload_url in self._in_flight:
            raise ValidationError("An upload to this URL is already in progress")
        aborted = asyncio.Event()
        self._in_flight[upload_url] = aborted

        self.log.info(
            "upload.transfer.start",
            extra={"size_bytes": len(data), "upload_filename": name, "content_type": content_type},
        )
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self.transport
            ) as client:
                response = await client.post(
                    upload_url,
                    content=self._stream(body, tracker, aborted),
                    headers=headers,
                )
        except UploadAbortedError:
            self.log.warning("upload.transfer.aborted", extra={"upload_filename": name})
            raise
        except httpx.HTTPError as exc:
            if aborted.is_set():
                raise UploadAbortedError("Upload was aborted") from exc
            self.log.error("upload.transfer.network_error", extra={"error": str(exc)})
            raise UploadNetworkError("Network error during upload") from exc
        finally:
            self._in_flight.pop(upload_url, None)

        if not response.is_success:
            message = _upload_error_message(response)
            self.log.error(
                "upload.transfer.rejected",
                extra={"status_code": response.status_code, "error_detail": message},
            )
            raise RemoteError(message, status_code=response.status_code)

        tracker.complete()
        self.log.info("upload.transfer.completed", extra={"size_bytes": len(data)})

    async def _stream(
        self, body: bytes, tracker: ProgressTracker, aborted: asyncio.Event
    ) -> AsyncIterator[bytes]:
        total = len(body)
        sent = 0
        for start in range(0, total, self.chunk_size):
            if aborted.is_set():
                raise UploadAbortedError("Upload was aborted")
            chunk = body[start : start + self.chunk_size]
            yield chunk
            sent += len(chunk)
            tracker.report(sent, total)


def _upload_error_message(response: httpx.Response) -> str:
    fallback = f"Upload failed with status {response.status_code}"
    text = response.text
    try:
        data = response.json()
    except ValueError:
        return f"{fallback}: {text[:200]}" if text else fallback
    if isinstance(data, dict):
        errors = data.get("errors") or []
        if errors and isinstance(errors[0], dict) and errors[0].get("message"):
            return str(errors[0]["message"])
        for key in ("message", "error"):
            if data.get(key):
                return str(data[key])
    return fallback
