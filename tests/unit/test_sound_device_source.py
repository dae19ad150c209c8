"""Tests for SoundDeviceSource (mocked sounddevice, no audio hardware needed).

Validates stream opening, the PortAudio-to-permission error mapping, chunk
delivery from the PortAudio thread onto the event loop, and that releasing a
handle stops and closes the underlying stream even when stopping fails.
"""

import asyncio
import builtins
import logging
import sys
from unittest.mock import MagicMock, patch

import pytest

from voicecheck.core.exceptions import MicrophonePermissionError
from voicecheck.services.audio.devices import SoundDeviceSource


class _PortAudioError(Exception):
    """Stand-in for ``sounddevice.PortAudioError``."""


@pytest.fixture
def mock_stream():
    """A RawInputStream double that is not yet running."""
    stream = MagicMock()
    stream.active = False
    return stream


@pytest.fixture
def mock_sd(mock_stream):
    """Replace the ``sounddevice`` module for the duration of a test."""
    sd = MagicMock()
    sd.PortAudioError = _PortAudioError
    sd.RawInputStream.return_value = mock_stream
    with patch.dict(sys.modules, {"sounddevice": sd}):
        yield sd


@pytest.fixture
def source():
    return SoundDeviceSource(sample_rate=16000, channels=1)


class TestAcquire:
    """Verify the stream is opened with the capture format."""

    async def test_opens_int16_stream(self, source, mock_sd):
        handle = await source.acquire(lambda data: None)

        mock_sd.query_devices.assert_called_once_with(None, kind="input")
        kwargs = mock_sd.RawInputStream.call_args.kwargs
        assert kwargs["samplerate"] == 16000
        assert kwargs["channels"] == 1
        assert kwargs["dtype"] == "int16"
        assert kwargs["device"] is None
        assert callable(kwargs["callback"])
        assert handle.active is False

    async def test_named_device_passed_through(self, mock_sd):
        source = SoundDeviceSource(device="USB Mic")
        await source.acquire(lambda data: None)

        mock_sd.query_devices.assert_called_once_with("USB Mic", kind="input")
        assert mock_sd.RawInputStream.call_args.kwargs["device"] == "USB Mic"

    async def test_empty_device_name_means_default(self, mock_sd):
        source = SoundDeviceSource(device="")
        await source.acquire(lambda data: None)
        assert mock_sd.RawInputStream.call_args.kwargs["device"] is None

    async def test_start_starts_stream_once(self, source, mock_sd, mock_stream):
        handle = await source.acquire(lambda data: None)
        handle.start()
        mock_stream.active = True
        handle.start()

        mock_stream.start.assert_called_once()
        assert handle.active is True


class TestPermissionMapping:
    """Every way of not getting a microphone surfaces as a permission error."""

    async def test_no_input_device(self, source, mock_sd):
        mock_sd.query_devices.side_effect = ValueError("No input device matching")

        with pytest.raises(MicrophonePermissionError):
            await source.acquire(lambda data: None)
        mock_sd.RawInputStream.assert_not_called()

    async def test_portaudio_error_on_open(self, source, mock_sd):
        mock_sd.RawInputStream.side_effect = _PortAudioError("Device unavailable")

        with pytest.raises(MicrophonePermissionError):
            await source.acquire(lambda data: None)

    def test_missing_portaudio_library(self, source):
        real_import = builtins.__import__

        def _import(name, *args, **kwargs):
            if name == "sounddevice":
                raise OSError("PortAudio library not found")
            return real_import(name, *args, **kwargs)

        with patch("builtins.__import__", side_effect=_import):
            with pytest.raises(MicrophonePermissionError):
                source._open_stream(lambda *args: None)


class TestCallback:
    """Chunks cross from the PortAudio thread to the event loop as bytes."""

    async def test_chunk_forwarded_from_audio_thread(self, source, mock_sd):
        received = []
        await source.acquire(received.append)
        callback = mock_sd.RawInputStream.call_args.kwargs["callback"]

        await asyncio.to_thread(callback, bytearray(b"\x01\x00\x02\x00"), 2, None, None)
        await asyncio.sleep(0)

        assert received == [b"\x01\x00\x02\x00"]
        assert type(received[0]) is bytes

    async def test_status_flags_logged(self, source, mock_sd, caplog):
        received = []
        await source.acquire(received.append)
        callback = mock_sd.RawInputStream.call_args.kwargs["callback"]

        with caplog.at_level(logging.WARNING):
            callback(b"\x00\x00", 1, None, "input overflow")
            await asyncio.sleep(0)

        assert "input overflow" in caplog.text
        assert received == [b"\x00\x00"]


class TestRelease:
    """Releasing must leave no stream open."""

    async def test_stop_stops_and_closes(self, source, mock_sd, mock_stream):
        handle = await source.acquire(lambda data: None)

        handle.stop()

        mock_stream.stop.assert_called_once()
        mock_stream.close.assert_called_once()
        assert handle.active is False

    async def test_second_stop_does_nothing(self, source, mock_sd, mock_stream):
        handle = await source.acquire(lambda data: None)
        handle.stop()
        handle.stop()

        mock_stream.stop.assert_called_once()
        mock_stream.close.assert_called_once()

    async def test_close_runs_when_stop_fails(self, source, mock_sd, mock_stream):
        mock_stream.stop.side_effect = _PortAudioError("Stream is not running")
        handle = await source.acquire(lambda data: None)

        with pytest.raises(_PortAudioError):
            handle.stop()

        mock_stream.close.assert_called_once()
        assert handle.active is False

    async def test_release_contains_stop_failure(self, source, mock_sd, mock_stream, caplog):
        mock_stream.stop.side_effect = _PortAudioError("Stream is not running")
        handle = await source.acquire(lambda data: None)

        with caplog.at_level(logging.WARNING):
            source.release(handle)

        mock_stream.close.assert_called_once()
        assert "stopping the microphone stream" in caplog.text

    async def test_start_after_release_is_ignored(self, source, mock_sd, mock_stream):
        handle = await source.acquire(lambda data: None)
        source.release(handle)
        handle.start()
        mock_stream.start.assert_not_called()
