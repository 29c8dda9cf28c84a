"""Player embed options encoded as iframe query parameters."""

from __future__ import annotations

from enum import StrEnum
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel


class Preload(StrEnum):
    AUTO = "auto"
    METADATA = "metadata"
    NONE = "none"


class EmbedSettings(BaseModel):
    autoplay: bool = False
    loop: bool = False
    muted: bool = False
    preload: Preload | None = None

    def as_query(self) -> dict[str, str]:
        params = {
            name: "true"
            for name in ("autoplay", "loop", "muted")
            if getattr(self, name)
        }
        if self.preload is not None:
            params["preload"] = self.preload.value
        return params


def apply_embed_settings(url: str, settings: EmbedSettings) -> str:
    """Return ``url`` with the embed parameters set, replacing existing ones.

    Flags that are off are removed so the player falls back to its default.
    """
    parts = urlsplit(url)
    managed = {"autoplay", "loop", "muted", "preload"}
    query = [(key, value) for key, value in parse_qsl(parts.query, keep_blank_values=True) if key not in managed]
    query.extend(settings.as_query().items())
    return urlunsplit(parts._replace(query=urlencode(query)))
