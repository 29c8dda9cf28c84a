"""Pydantic schemas for stream session requests."""

from enum import StrEnum

from pydantic import BaseModel, Field


class StreamType(StrEnum):
    DIRECT = "direct"
    LIVE = "live"


class StreamMeta(BaseModel):
    name: str | None = None


class CreateStreamRequest(BaseModel):
    type: str = StreamType.DIRECT
    meta: StreamMeta = Field(default_factory=StreamMeta)
