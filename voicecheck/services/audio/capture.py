"""Audio capture pipeline for one recording attempt.

Owns the microphone handle between ``acquire()`` and ``stop()``, buffers
chunks as they arrive, drives the spectrum tap, and finalizes everything
into one WAV ``AudioPayload``.

Usage::

    capture = AudioCapture(SoundDeviceSource())
    await capture.acquire()
    capture.start()
    ...
    payload = capture.stop()
"""

import logging
from dataclasses import dataclass

from voicecheck.services.audio.devices import BaseDeviceSource, DeviceHandle
from voicecheck.services.audio.processor import AudioProcessor
from voicecheck.services.audio.recorder import AudioBuffer
from voicecheck.services.audio.visualizer import SpectrumTap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioPayload:
    """Finalized recording handed to the analyzer."""

    data: bytes
    mime_type: str = "audio/wav"
    sample_rate: int = 16000
    duration_seconds: float = 0.0

    def __bool__(self) -> bool:
        return bool(self.data)


class AudioCapture:
    """Microphone -> buffer -> payload.

    Args:
        source: Device source used by ``acquire()``.
        sample_rate: Capture rate in Hz (must match the source).
        channels: Capture channels (must match the source).
        visualizer_bins: Spectrum resolution of the level meter.
        visualizer_fps: Spectrum sampling rate.
    """

    def __init__(
        self,
        source: BaseDeviceSource,
        sample_rate: int = 16000,
        channels: int = 1,
        visualizer_bins: int = 64,
        visualizer_fps: float = 30.0,
    ) -> None:
        self._source = source
        self._processor = AudioProcessor(sample_rate=sample_rate, channels=channels)
        self._buffer = AudioBuffer(sample_rate=sample_rate, channels=channels)
        self._tap = SpectrumTap(self._processor, bins=visualizer_bins, fps=visualizer_fps)
        self._handle: DeviceHandle | None = None
        self._active = False

    @property
    def acquired(self) -> bool:
        return self._handle is not None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def tap(self) -> SpectrumTap:
        return self._tap

    @property
    def levels(self) -> list[int]:
        """Latest level-meter reading."""
        return self._tap.levels

    async def acquire(self) -> None:
        """Request the microphone.

        Raises:
            MicrophonePermissionError: If the source refuses access.
        """
        if self._handle is not None:
            return
        self._handle = await self._source.acquire(self._on_chunk)

    def start(self) -> None:
        """Begin buffering. Calling it again while active does nothing."""
        if self._handle is None:
            raise RuntimeError("Microphone not acquired")
        if self._active:
            logger.debug("Capture already active; ignoring start()")
            return
        self._buffer.reset()
        self._active = True
        self._handle.start()
        self._tap.start()

    def stop(self) -> AudioPayload | None:
        """Finalize the recording and release the device.

        Returns:
            The payload, or None if capture was already stopped.
        """
        if not self._active:
            self.release()
            return None
        self._active = False
        self._tap.stop()
        pcm = self._buffer.flush()
        self.release()

        if not pcm:
            logger.warning("Recording stopped with no audio captured")
            return AudioPayload(data=b"", sample_rate=self._processor.sample_rate)
        if self._processor.is_silent(self._processor.pcm_to_ndarray(pcm)):
            logger.warning("Recording appears silent; sending it for analysis anyway")
        payload = AudioPayload(
            data=self._processor.to_wav_bytes(pcm),
            mime_type="audio/wav",
            sample_rate=self._processor.sample_rate,
            duration_seconds=self._processor.duration_seconds(pcm),
        )
        logger.info(
            "Recording finalized: %.1fs, %d bytes", payload.duration_seconds, len(payload.data)
        )
        return payload

    def release(self) -> None:
        """Release the device and discard anything still buffered (idempotent)."""
        self._active = False
        self._tap.stop()
        self._buffer.reset()
        if self._handle is not None:
            handle, self._handle = self._handle, None
            try:
                self._source.release(handle)
            except Exception:
                logger.warning("Device release failed; handle dropped", exc_info=True)

    def _on_chunk(self, data: bytes) -> None:
        if not self._active:
            return
        self._buffer.add_bytes(data)
        self._tap.feed(data)
