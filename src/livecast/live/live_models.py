"""Data structures for live sessions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ConnectionState(StrEnum):
    """Lifecycle states of a live ingest session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    PAUSED = "paused"
    ERROR = "error"


ACTIVE_STATES = frozenset(
    {ConnectionState.CONNECTING, ConnectionState.CONNECTED, ConnectionState.PAUSED}
)


@dataclass(slots=True, frozen=True)
class LiveSessionSnapshot:
    """Point-in-time view of a live transport for callers and the CLI."""

    state: ConnectionState
    live_input_id: str | None
    paused: bool
    capturing: bool
    error: str | None = None
