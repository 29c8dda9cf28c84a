"""Bounded readiness polling for freshly uploaded assets.

After an upload completes the platform processes the asset asynchronously.
:class:`ReadinessPoller` checks the asset at a fixed interval, triggers caption
generation once it becomes playable and gives up after ``max_attempts``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

from ..exceptions import AppError, ConfigurationError, RemoteError, TransportError
from ..platform.platform_models import Asset

logger = logging.getLogger(__name__)


class PollState(StrEnum):
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


class AssetStatusSource(Protocol):
    async def get_asset(self, uid: str) -> Asset: ...

    async def generate_captions(self, uid: str, language: str = "en") -> None: ...


@dataclass(slots=True, eq=False)
class ReadinessPoller:
    """Poll one asset until ready, errored, cancelled or out of attempts."""

    client: AssetStatusSource
    uid: str
    interval_seconds: float = 5.0
    max_attempts: int = 12
    caption_language: str | None = "en"
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    state: PollState = PollState.POLLING
    attempts: int = 0
    log: logging.Logger = field(default_factory=lambda: logger)
    _task: asyncio.Task[PollState] | None = field(default=None, init=False, repr=False)

    @property
    def done(self) -> bool:
        return self.state is not PollState.POLLING

    def start(self) -> asyncio.Task[PollState]:
        """Schedule the polling loop on the running event loop."""
        if self._task is None:
            self._task = asyncio.create_task(self.run(), name=f"readiness:{self.uid}")
        return self._task

    def cancel(self) -> None:
        """Cancel a scheduled or running loop; no fetch fires afterwards."""
        if self.state is PollState.POLLING:
            self.state = PollState.CANCELLED
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> PollState:
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                self.state = PollState.CANCELLED
        return self.state

    async def run(self) -> PollState:
        try:
            for attempt in range(1, self.max_attempts + 1):
                await self.sleep(self.interval_seconds)
                if self.state is PollState.CANCELLED:
                    return self.state
                self.attempts = attempt
                try:
                    asset = await self.client.get_asset(self.uid)
                except ConfigurationError as exc:
                    self.log.error(
                        "readiness.poll.misconfigured",
                        extra={"uid": self.uid, "error": exc.message},
                    )
                    self.state = PollState.FAILED
                    return self.state
                except (TransportError, RemoteError) as exc:
                    self.log.warning(
                        "readiness.poll.attempt_failed",
                        extra={"uid": self.uid, "attempt": attempt, "error": exc.message},
                    )
                    continue

                if asset.is_playable:
                    await self._generate_captions()
                    self.state = PollState.SUCCEEDED
                    self.log.info(
                        "readiness.poll.ready", extra={"uid": self.uid, "attempt": attempt}
                    )
                    return self.state
                if asset.is_errored:
                    status = asset.status
                    self.log.warning(
                        "readiness.poll.processing_failed",
                        extra={
                            "uid": self.uid,
                            "reason_code": status.err_reason_code if status else None,
                            "reason_text": status.err_reason_text if status else None,
                        },
                    )
                    self.state = PollState.FAILED
                    return self.state

            self.state = PollState.EXHAUSTED
            self.log.info(
                "readiness.poll.exhausted",
                extra={"uid": self.uid, "attempts": self.attempts},
            )
            return self.state
        except asyncio.CancelledError:
            self.state = PollState.CANCELLED
            raise

    async def _generate_captions(self) -> None:
        if not self.caption_language:
            return
        try:
            await self.client.generate_captions(self.uid, self.caption_language)
        except AppError as exc:
            self.log.warning(
                "readiness.captions.skipped",
                extra={"uid": self.uid, "error": exc.message},
            )
        else:
            self.log.info(
                "readiness.captions.requested",
                extra={"uid": self.uid, "language": self.caption_language},
            )


@dataclass(slots=True)
class PollerRegistry:
    """Keeps running pollers reachable so teardown can cancel them."""

    _pollers: set[ReadinessPoller] = field(default_factory=set, init=False)

    def __len__(self) -> int:
        return len(self._pollers)

    def track(self, poller: ReadinessPoller) -> ReadinessPoller:
        task = poller.start()
        self._pollers.add(poller)
        task.add_done_callback(lambda _: self._pollers.discard(poller))
        return poller

    async def shutdown(self) -> None:
        pollers = list(self._pollers)
        for poller in pollers:
            poller.cancel()
        await asyncio.gather(*(poller.wait() for poller in pollers))
        self._pollers.clear()
