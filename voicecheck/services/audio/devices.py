"""Permission-gated microphone access.

``BaseDeviceSource`` is the seam the capture pipeline depends on;
``SoundDeviceSource`` is the PortAudio-backed implementation. PortAudio
delivers audio on its own thread, so chunks are handed back to the event
loop with ``call_soon_threadsafe`` and all buffering stays single-threaded.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from voicecheck.core.exceptions import MicrophonePermissionError

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[bytes], None]


class DeviceHandle(ABC):
    """A live, exclusively owned microphone stream."""

    @abstractmethod
    def start(self) -> None:
        """Begin delivering chunks to the acquire callback."""

    @abstractmethod
    def stop(self) -> None:
        """Stop every underlying stream so the device is no longer in use."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """True while the device is delivering audio."""


class BaseDeviceSource(ABC):
    """Interface for anything that can hand out a microphone stream."""

    @abstractmethod
    async def acquire(self, on_chunk: ChunkCallback) -> DeviceHandle:
        """Request device access.

        Args:
            on_chunk: Called on the event loop with each raw PCM chunk.

        Returns:
            A handle owned by the caller until ``release``.

        Raises:
            MicrophonePermissionError: If access is denied or no device exists.
        """

    @abstractmethod
    def release(self, handle: DeviceHandle) -> None:
        """Give the device back. Safe to call more than once."""


class _SoundDeviceHandle(DeviceHandle):
    """Wraps a ``sounddevice.RawInputStream``."""

    def __init__(self, stream: Any) -> None:
        self._stream = stream
        self._closed = False

    def start(self) -> None:
        if not self._closed and not self._stream.active:
            self._stream.start()

    def stop(self) -> None:
        if self._closed:
            return
        try:
            self._stream.stop()
        finally:
            self._stream.close()
            self._closed = True

    @property
    def active(self) -> bool:
        return not self._closed and bool(self._stream.active)


class SoundDeviceSource(BaseDeviceSource):
    """Microphone access through PortAudio.

    Args:
        sample_rate: Capture rate in Hz.
        channels: Number of input channels.
        device: Optional device name or index; None = system default input.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        device: str | int | None = None,
    ) -> None:
        self._sample_rate = sample_rate
        self._channels = channels
        self._device = device or None

    def _open_stream(self, callback: Callable[..., None]) -> Any:
        try:
            import sounddevice as sd
        except OSError as exc:
            # sounddevice raises OSError when the PortAudio library is missing
            logger.warning("PortAudio unavailable: %s", exc)
            raise MicrophonePermissionError() from exc

        try:
            sd.query_devices(self._device, kind="input")
            return sd.RawInputStream(
                samplerate=self._sample_rate,
                channels=self._channels,
                dtype="int16",
                device=self._device,
                callback=callback,
            )
        except (sd.PortAudioError, ValueError) as exc:
            logger.warning("Microphone unavailable: %s", exc)
            raise MicrophonePermissionError() from exc

    async def acquire(self, on_chunk: ChunkCallback) -> DeviceHandle:
        loop = asyncio.get_running_loop()

        def _callback(indata: Any, _frames: int, _time_info: Any, status: Any) -> None:
            if status:
                logger.warning("Audio input status: %s", status)
            try:
                loop.call_soon_threadsafe(on_chunk, bytes(indata))
            except RuntimeError:
                # Event loop closed while PortAudio was still draining
                logger.debug("Dropped audio chunk after loop shutdown")

        stream = await asyncio.to_thread(self._open_stream, _callback)

        logger.info(
            "Microphone acquired (device=%s, rate=%s, channels=%s)",
            self._device or "default",
            self._sample_rate,
            self._channels,
        )
        return _SoundDeviceHandle(stream)

    def release(self, handle: DeviceHandle) -> None:
        try:
            handle.stop()
        except Exception:
            # The stream is closed even when stopping it fails
            logger.warning("Error while stopping the microphone stream", exc_info=True)
        logger.info("Microphone released")
