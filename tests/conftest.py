"""Shared pytest fixtures for VoiceCheck test suite.

Provides common test fixtures used across unit and integration tests,
including a fake microphone, a mock audio model, sample analysis payloads
and in-memory database setup helpers.
"""

import json
import math
import struct
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest

from voicecheck.core.exceptions import MicrophonePermissionError
from voicecheck.services.audio.devices import BaseDeviceSource, DeviceHandle

# ---------------------------------------------------------------------------
# Analysis payload fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_analysis_dict():
    """A complete analyzer reply in wire (camelCase) form, score 82."""
    return {
        "overallScore": 82,
        "voiceArchetype": "The Late Night DJ",
        "estimatedAge": "Late 20s",
        "estimatedWeight": "Approx 70kg",
        "isArtificialVoice": False,
        "roast": "You sound like you narrate your own grocery runs.",
        "encouragement": "Jokes aside, that warm low end is a real asset.",
        "pros": ["Warm resonance", "Steady pitch", "Clear consonants"],
        "cons": ["Monotone endings", "Rushed pace", "Slight nasality"],
        "similarVoice": "A late-night radio host",
        "metrics": {
            "clarity": 85,
            "charisma": 78,
            "uniqueness": 64,
            "stability": 90,
            "warmth": 88,
        },
        "technical": {
            "pitchRange": "Deep Baritone",
            "speakingPace": "Thoughtful & Slow",
            "expressiveness": "Melodic",
        },
    }


@pytest.fixture
def sample_result(sample_analysis_dict):
    """The sample reply as a validated ``AnalysisResult``."""
    from voicecheck.core.models import AnalysisResult

    return AnalysisResult.model_validate(sample_analysis_dict)


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_audio_model(sample_analysis_dict):
    """Create a mock audio model for unit testing.

    Returns:
        AsyncMock: A mock implementing the BaseAudioModel interface whose
        ``generate`` returns the sample analysis as JSON text.
    """
    from voicecheck.services.analyzer.base import BaseAudioModel

    model = AsyncMock(spec=BaseAudioModel)
    model.generate.return_value = json.dumps(sample_analysis_dict)
    model.describe.return_value = "mock-audio-model"
    return model


# ---------------------------------------------------------------------------
# Device fixtures
# ---------------------------------------------------------------------------


class FakeDeviceHandle(DeviceHandle):
    """Handle that records start/stop calls instead of touching hardware."""

    def __init__(self, fail_stop: bool = False) -> None:
        self.started = False
        self.stopped = False
        self.fail_stop = fail_stop

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True
        if self.fail_stop:
            raise RuntimeError("PortAudio: stream stop failed")

    @property
    def active(self) -> bool:
        return self.started and not self.stopped


class FakeDeviceSource(BaseDeviceSource):
    """Microphone stand-in; ``emit`` pushes PCM as if the device delivered it.

    Set ``deny`` to refuse access and ``fail_stop`` to make handles raise on stop.
    """

    def __init__(self) -> None:
        self.deny = False
        self.fail_stop = False
        self.handles: list[FakeDeviceHandle] = []
        self.released: list[FakeDeviceHandle] = []
        self._on_chunk = None

    async def acquire(self, on_chunk):
        if self.deny:
            raise MicrophonePermissionError()
        self._on_chunk = on_chunk
        handle = FakeDeviceHandle(fail_stop=self.fail_stop)
        self.handles.append(handle)
        return handle

    def release(self, handle: DeviceHandle) -> None:
        handle.stop()
        self.released.append(handle)
        self._on_chunk = None

    def emit(self, data: bytes) -> None:
        if self._on_chunk is not None:
            self._on_chunk(data)


@pytest.fixture
def device_source():
    """A fresh fake microphone."""
    return FakeDeviceSource()


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pcm_bytes():
    """Generate 1 second of 440Hz sine-wave PCM audio (16kHz, 16-bit, mono).

    Returns:
        bytes: Raw PCM audio data.
    """
    sample_rate = 16000
    duration = 1.0
    frequency = 440.0
    amplitude = 16000  # ~50% of max int16

    samples = []
    for i in range(int(sample_rate * duration)):
        value = int(amplitude * math.sin(2 * math.pi * frequency * i / sample_rate))
        samples.append(struct.pack("<h", value))
    return b"".join(samples)


@pytest.fixture
def silent_pcm_bytes():
    """Generate 1 second of silence as PCM audio (16kHz, 16-bit, mono).

    Returns:
        bytes: Raw PCM silence data (all zeros).
    """
    sample_rate = 16000
    return b"\x00\x00" * sample_rate


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from voicecheck.services.storage import models_db  # noqa: F401
    from voicecheck.services.storage.database import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Yield an AsyncSession bound to the test engine; rolls back after test."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def repository(db_session):
    """Return an AccessLogRepository bound to the test session."""
    from voicecheck.services.storage.repository import AccessLogRepository

    return AccessLogRepository(db_session)


@pytest.fixture
def session_provider(db_engine):
    """``get_session`` equivalent bound to the test engine (commits on exit)."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)

    @asynccontextmanager
    async def _provider():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return _provider


@pytest.fixture
def log_store(session_provider):
    """AccessLogStore on the test engine with a fixed IP lookup."""
    from voicecheck.services.storage.access_log import AccessLogStore

    return AccessLogStore(
        ip_lookup=AsyncMock(return_value="203.0.113.7"),
        session_provider=session_provider,
    )
