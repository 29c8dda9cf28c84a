"""Lifecycle helpers tying background work to FastAPI startup and shutdown."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .readiness.readiness_poller import PollerRegistry

logger = logging.getLogger(__name__)


async def shutdown_pollers(pollers: PollerRegistry) -> None:
    """Cancel every readiness poller still running."""
    pending = len(pollers)
    await pollers.shutdown()
    if pending:
        logger.info("lifecycle.pollers.cancelled", extra={"count": pending})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("lifecycle.startup")
    try:
        yield
    finally:
        pollers: PollerRegistry | None = getattr(app.state, "pollers", None)
        if pollers is not None:
            await shutdown_pollers(pollers)
        logger.info("lifecycle.shutdown")


__all__ = ["lifespan", "shutdown_pollers"]
