"""Integration tests for the session and log REST endpoints with real in-memory SQLite."""

from urllib.parse import urlsplit

from voicecheck.core.exceptions import PERMISSION_DENIED_MESSAGE

TEST_IP = "203.0.113.50"  # returned by the patched IP lookup in conftest

# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------


async def test_session_lifecycle(async_client, device_source, sample_pcm_bytes):
    """create -> start -> stop -> result, logged with the caller's user agent."""
    resp = await async_client.post(
        "/api/v1/session", json={"url": "/"}, headers={"User-Agent": "api-test/1.0"}
    )
    assert resp.status_code == 201
    assert resp.json()["state"] == "idle"

    resp = await async_client.post("/api/v1/session/start")
    assert resp.status_code == 200
    assert resp.json()["state"] == "recording"
    assert resp.json()["elapsed_seconds"] == 0

    device_source.emit(sample_pcm_bytes)

    resp = await async_client.post("/api/v1/session/stop")
    assert resp.status_code == 200
    body = resp.json()
    assert body["state"] == "result"
    assert body["analysis"]["overallScore"] == 82
    assert body["analysis"]["metrics"]["clarity"] == 85

    resp = await async_client.get("/api/v1/logs")
    assert resp.status_code == 200
    logs = resp.json()
    assert len(logs) == 1
    assert logs[0]["ip"] == TEST_IP
    assert logs[0]["user_agent"] == "api-test/1.0"
    assert logs[0]["analysis"]["voiceArchetype"] == "The Late Night DJ"

    resp = await async_client.post("/api/v1/session/reset")
    assert resp.json()["state"] == "idle"
    assert resp.json()["analysis"] is None


async def test_get_session_snapshot(async_client):
    await async_client.post("/api/v1/session", json={"url": "/", "language": "ja"})

    resp = await async_client.get("/api/v1/session")

    assert resp.status_code == 200
    assert resp.json()["language"] == "ja"
    assert resp.json()["max_seconds"] == 15


async def test_no_session_returns_404(async_client):
    resp = await async_client.get("/api/v1/session")
    assert resp.status_code == 404
    assert resp.json()["code"] == "NO_ACTIVE_SESSION"


async def test_invalid_transition_returns_409(async_client):
    await async_client.post("/api/v1/session", json={"url": "/"})

    resp = await async_client.post("/api/v1/session/share")

    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "INVALID_TRANSITION"
    assert "timestamp" in body


async def test_permission_denied_snapshot(async_client, device_source):
    device_source.deny = True
    await async_client.post("/api/v1/session", json={"url": "/"})

    resp = await async_client.post("/api/v1/session/start")

    assert resp.status_code == 200
    assert resp.json()["state"] == "error"
    assert resp.json()["error_message"] == PERMISSION_DENIED_MESSAGE


# ---------------------------------------------------------------------------
# Share links and navigation
# ---------------------------------------------------------------------------


async def test_share_link_opens_result(async_client, device_source, sample_pcm_bytes):
    await async_client.post("/api/v1/session", json={"url": "/"})
    await async_client.post("/api/v1/session/start")
    device_source.emit(sample_pcm_bytes)
    await async_client.post("/api/v1/session/stop")

    resp = await async_client.post("/api/v1/session/share")
    assert resp.status_code == 200
    share = resp.json()
    assert share["copied"] is True
    assert "share=" in urlsplit(share["url"]).query

    resp = await async_client.post("/api/v1/session", json={"url": share["url"]})
    assert resp.json()["state"] == "result"
    assert resp.json()["analysis"]["overallScore"] == 82


async def test_malformed_share_link_stays_idle(async_client):
    resp = await async_client.post("/api/v1/session", json={"url": "/?share=broken"})
    assert resp.status_code == 201
    assert resp.json()["state"] == "idle"


async def test_navigate_to_admin(async_client):
    await async_client.post("/api/v1/session", json={"url": "/"})

    resp = await async_client.post("/api/v1/session/navigate", json={"url": "/#/admin"})

    assert resp.json()["state"] == "admin"


async def test_spectrum_levels(async_client, device_source, sample_pcm_bytes):
    await async_client.post("/api/v1/session", json={"url": "/"})

    resp = await async_client.get("/api/v1/session/spectrum")
    assert resp.status_code == 200
    assert resp.json()["levels"] == [0] * 64

    await async_client.post("/api/v1/session/start")
    device_source.emit(sample_pcm_bytes)
    resp = await async_client.get("/api/v1/session/spectrum")
    assert len(resp.json()["levels"]) == 64
    await async_client.post("/api/v1/session/stop")


# ---------------------------------------------------------------------------
# Admin log endpoints
# ---------------------------------------------------------------------------


async def test_delete_log(async_client, device_source, sample_pcm_bytes):
    await async_client.post("/api/v1/session", json={"url": "/"})
    await async_client.post("/api/v1/session/start")
    device_source.emit(sample_pcm_bytes)
    await async_client.post("/api/v1/session/stop")
    log_id = (await async_client.get("/api/v1/logs")).json()[0]["id"]

    resp = await async_client.delete(f"/api/v1/logs/{log_id}")
    assert resp.status_code == 200
    assert resp.json() == {"id": log_id, "deleted": True}

    assert (await async_client.get("/api/v1/logs")).json() == []
    assert (await async_client.get("/api/v1/session")).json()["state"] == "result"


async def test_delete_unknown_log_returns_404(async_client):
    resp = await async_client.delete("/api/v1/logs/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["code"] == "LOG_NOT_FOUND"


async def test_list_logs_empty(async_client):
    resp = await async_client.get("/api/v1/logs")
    assert resp.status_code == 200
    assert resp.json() == []


async def test_log_count_tracks_saves_and_deletes(async_client, device_source, sample_pcm_bytes):
    assert (await async_client.get("/api/v1/logs/count")).json() == {"total": 0}

    await async_client.post("/api/v1/session", json={"url": "/"})
    await async_client.post("/api/v1/session/start")
    device_source.emit(sample_pcm_bytes)
    await async_client.post("/api/v1/session/stop")

    resp = await async_client.get("/api/v1/logs/count")
    assert resp.status_code == 200
    assert resp.json() == {"total": 1}

    log_id = (await async_client.get("/api/v1/logs")).json()[0]["id"]
    await async_client.delete(f"/api/v1/logs/{log_id}")
    assert (await async_client.get("/api/v1/logs/count")).json() == {"total": 0}
