from contextlib import ExitStack

import pytest
from fastapi.testclient import TestClient

from conftest import build_service
from video_relay.main import create_app


@pytest.fixture(name="make_client")
def make_client_fixture(provider):
    with ExitStack() as stack:
        def make(api_key="sk-test", interval=60):
            app = create_app()
            app.state.video_service = build_service(provider, api_key=api_key, interval=interval)
            return stack.enter_context(TestClient(app))

        yield make


@pytest.fixture(name="client")
def client_fixture(make_client):
    return make_client()


def create_video(client, **overrides):
    body = {"prompt": "a cat", "model": "sora-2", "size": "1280x720", "seconds": "4"}
    body.update(overrides)
    return client.post("/api/videos", json=body)


def test_health_check(client):
    """test basic health endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["has_api_key"] is True


def test_root_lists_endpoints(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["endpoints"]["videos"] == "/api/videos"


def test_settings_reports_credential(make_client):
    assert make_client().get("/api/settings").json() == {"hasApiKey": True}
    assert make_client(api_key=None).get("/api/settings").json() == {"hasApiKey": False}


def test_create_video(client):
    """test job submission returns the stored record"""
    response = create_video(client)
    assert response.status_code == 201
    data = response.json()
    video = data["video"]
    assert data["videoId"] == video["id"]
    assert video["status"] == "queued"
    assert video["progress"] == 0
    assert video["size"] == video["resolution"] == "1280x720"
    assert video["seconds"] == video["durationSeconds"] == 4
    assert video["createdAt"] == video["updatedAt"]


def test_create_video_validation_error(client, provider):
    """test invalid input never reaches the provider"""
    response = client.post("/api/videos", json={"prompt": "", "model": "other", "seconds": 7})
    assert response.status_code == 400
    data = response.json()
    assert data["message"] == "Validation error"
    assert len(data["errors"]) == 3
    assert provider.requests == []


def test_create_video_without_body(client, provider):
    response = client.post("/api/videos")
    assert response.status_code == 400
    assert "prompt is required" in response.json()["errors"]
    assert provider.requests == []


def test_create_video_without_credential(make_client):
    response = create_video(make_client(api_key=None))
    assert response.status_code == 503
    assert response.json()["setupRequired"] is True


def test_create_video_provider_error(client, provider):
    provider.create_reply = (429, {"error": {"message": "rate limited"}})
    response = create_video(client)
    assert response.status_code == 502
    assert "rate limited" in response.json()["message"]


def test_list_videos_newest_first(client):
    first = create_video(client).json()["videoId"]
    second = create_video(client, prompt="a dog").json()["videoId"]

    response = client.get("/api/videos")
    assert response.status_code == 200
    assert [v["id"] for v in response.json()["videos"]] == [second, first]

    refreshed = client.get("/api/videos", params={"refresh": "true"})
    assert [v["id"] for v in refreshed.json()["videos"]] == [second, first]


def test_video_status(client):
    video_id = create_video(client).json()["videoId"]
    response = client.get(f"/api/videos/{video_id}/status")
    assert response.status_code == 200
    assert response.json()["video"]["id"] == video_id


def test_unknown_video(client):
    assert client.get("/api/videos/missing/status").status_code == 404
    response = client.get("/api/videos/missing/content")
    assert response.status_code == 404
    assert response.json() == {"message": "Video not found"}


def test_content_not_ready(client, provider):
    provider.create_reply = (200, {"status": "queued"})
    video_id = create_video(client).json()["videoId"]

    response = client.get(f"/api/videos/{video_id}/content")
    assert response.status_code == 400
    assert response.json() == {"message": "Video is not ready yet"}
    assert provider.calls("/content") == []


def test_content_range_request(client, provider):
    """test range header goes upstream unchanged and range headers come back"""
    provider.content_status = 206
    provider.content_body = b"v" * 100
    provider.content_headers = {
        "content-type": "video/mp4",
        "content-range": "bytes 0-99/2048",
        "accept-ranges": "bytes",
    }
    video_id = create_video(client).json()["videoId"]

    response = client.get(f"/api/videos/{video_id}/content", headers={"Range": "bytes=0-99"})

    assert response.status_code == 206
    assert response.content == b"v" * 100
    assert response.headers["content-range"] == "bytes 0-99/2048"
    assert response.headers["accept-ranges"] == "bytes"
    assert response.headers["content-type"] == "video/mp4"
    assert provider.calls("/content")[0].headers["range"] == "bytes=0-99"


def test_content_provider_error_is_relayed(client, provider):
    provider.content_status = 403
    provider.content_headers = {"content-type": "text/plain"}
    provider.content_body = b"forbidden upstream"
    video_id = create_video(client).json()["videoId"]

    response = client.get(f"/api/videos/{video_id}/content")
    assert response.status_code == 403
    assert response.json() == {"message": "forbidden upstream"}


def test_create_video_non_object_reply(client, provider):
    """test a provider reply that is not a JSON object maps to 502"""
    provider.create_reply = (200, ["oops"])
    response = create_video(client)
    assert response.status_code == 502
    assert client.get("/api/videos").json()["videos"] == []
