from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.livecast.api.errors import register_error_handlers
from src.livecast.exceptions import RemoteError
from src.livecast.library.library_service import LibraryAggregator
from src.livecast.live.live_api import router
from src.livecast.playback.playback_resolver import PlaybackResolver
from tests.mocks.platform import FakePlatformClient, make_asset, make_live_input


def build_client(platform: FakePlatformClient) -> TestClient:
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(router)
    app.state.platform_client = platform
    app.state.library = LibraryAggregator(
        client=platform,  # type: ignore[arg-type]
        resolver=PlaybackResolver(
            client=platform,  # type: ignore[arg-type]
            customer_subdomain="cust.example",
            require_signed_playback=False,
        ),
    )
    return TestClient(app)


def test_list_live_inputs_as_assets() -> None:
    platform = FakePlatformClient(
        live_inputs={"live-1": make_live_input("live-1", state="connected")}
    )

    response = build_client(platform).get("/api/live-inputs/list")

    assert response.status_code == 200
    (item,) = response.json()["data"]
    assert item["uid"] == "live-1"
    assert item["isLive"] is True
    assert item["status"]["state"] == "ready"
    assert item["playback"]["whep"] == "https://cust.example/live/webRTC/play"


def test_get_unknown_live_input_maps_to_502() -> None:
    response = build_client(FakePlatformClient()).get("/api/live-inputs/nope")

    assert response.status_code == 502
    assert response.json()["error"] == "live input nope not found"


def test_pause_and_resume_flags() -> None:
    platform = FakePlatformClient(live_inputs={"live-1": make_live_input("live-1")})
    client = build_client(platform)

    paused = client.post("/api/live-inputs/live-1/pause")
    resumed = client.post("/api/live-inputs/live-1/resume")

    assert paused.json()["data"]["paused"] is True
    assert resumed.json()["data"]["paused"] is False
    assert [name for name, _ in platform.calls] == ["pause_live_input", "resume_live_input"]


def test_pause_failure_maps_to_502() -> None:
    platform = FakePlatformClient(failures={"pause_live_input": RemoteError("HTTP 500 Internal Server Error")})

    response = build_client(platform).post("/api/live-inputs/live-1/pause")

    assert response.status_code == 502
    assert response.json() == {"success": False, "error": "HTTP 500 Internal Server Error"}


def test_delete_live_input() -> None:
    platform = FakePlatformClient(live_inputs={"live-1": make_live_input("live-1")})

    response = build_client(platform).delete("/api/live-inputs/live-1")

    assert response.status_code == 200
    assert platform.live_inputs == {}


def test_recordings_report() -> None:
    platform = FakePlatformClient(
        live_inputs={"live-1": make_live_input("live-1")},
        recordings={"live-1": [make_asset("r1"), make_asset("r2", ready=False)]},
    )

    response = build_client(platform).get("/api/live-inputs/live-1/recordings")

    assert response.status_code == 200
    counts = response.json()["data"]["recordings"]
    assert (counts["total"], counts["ready"], counts["notReady"]) == (2, 1, 1)
