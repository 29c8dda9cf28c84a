"""Success envelope shared by every JSON route."""

from __future__ import annotations

from typing import Any, Iterable

from ..platform.platform_models import PlatformModel


def success(data: Any = None) -> dict[str, Any]:
    return {"success": True, "data": data}


def wire_list(items: Iterable[PlatformModel]) -> list[dict[str, Any]]:
    return [item.to_wire() for item in items]
