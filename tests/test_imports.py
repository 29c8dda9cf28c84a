"""Smoke-check imports for the application modules.

Guards against refactors that break the wiring between routers, services and
the platform gateway.
"""

from __future__ import annotations

from importlib import import_module
from types import ModuleType

import pytest

MODULES_AND_SYMBOLS = [
    ("src.livecast.main", "create_app"),
    ("src.livecast.config", "AppConfig"),
    ("src.livecast.dependencies", "build_services"),
    ("src.livecast.lifecycle", "lifespan"),
    ("src.livecast.api.errors", "register_error_handlers"),
    ("src.livecast.platform.platform_client", "StreamPlatformClient"),
    ("src.livecast.platform.platform_models", "Asset"),
    ("src.livecast.upload.upload_transport", "UploadTransport"),
    ("src.livecast.upload.upload_service", "UploadService"),
    ("src.livecast.upload.buffered_recorder", "BufferedRecorder"),
    ("src.livecast.upload.upload_api", "router"),
    ("src.livecast.live.live_transport", "LiveTransport"),
    ("src.livecast.live.whip_session", "WhipIngestSession"),
    ("src.livecast.live.live_api", "router"),
    ("src.livecast.capture.capture_devices", "DeviceArbiter"),
    ("src.livecast.readiness.readiness_poller", "ReadinessPoller"),
    ("src.livecast.playback.playback_resolver", "PlaybackResolver"),
    ("src.livecast.playback.embed_settings", "apply_embed_settings"),
    ("src.livecast.library.library_service", "LibraryAggregator"),
    ("src.livecast.library.library_api", "router"),
]


@pytest.mark.parametrize(("module_name", "symbol"), MODULES_AND_SYMBOLS)
def test_importable_symbols(module_name: str, symbol: str) -> None:
    """Import modules and verify that public symbols are exposed."""

    module: ModuleType = import_module(module_name)
    assert hasattr(module, symbol), f"{module_name} missing {symbol}"
