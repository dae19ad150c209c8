"""Integration test fixtures for VoiceCheck.

Provides an async HTTP client on an in-memory SQLite database and swaps
the session's collaborators for a fake microphone and a mock audio model,
while keeping the real analyzer validation, share encoding and store.
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from voicecheck.api.app import create_app
from voicecheck.services import session as session_module
from voicecheck.services.analyzer import VoiceAnalyzer
from voicecheck.services.audio.capture import AudioCapture
from voicecheck.services.storage import database
from voicecheck.services.storage.access_log import AccessLogStore

TEST_IP = "203.0.113.50"


@pytest.fixture
def app():
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
def fake_components(device_source, mock_audio_model):
    """Route ``create_session`` to fakes for the device, model and IP lookup."""
    with (
        patch(
            "voicecheck.services.session.build_analyzer",
            side_effect=lambda: VoiceAnalyzer(mock_audio_model, temperature=0.8),
        ),
        patch(
            "voicecheck.services.session.build_capture",
            side_effect=lambda: AudioCapture(device_source, visualizer_fps=200.0),
        ),
        patch(
            "voicecheck.services.session.build_store",
            side_effect=lambda: AccessLogStore(ip_lookup=AsyncMock(return_value=TEST_IP)),
        ),
    ):
        yield


@pytest.fixture
async def async_client(app, db_engine, fake_components):
    """AsyncClient backed by the in-memory test engine.

    Injects the test engine into the database module so that all routes
    and the session's log store use the same in-memory SQLite.
    """
    database._engine = db_engine
    database._session_factory = None
    session_module._active_session = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    await session_module.close_active_session()
    database.reset_engine()
