"""Read-only spectrum tap for the live level meter.

The tap keeps a private copy of the latest chunk and samples it on its
own asyncio task; it never touches the buffer that becomes the payload.
"""

import asyncio
import logging

from voicecheck.services.audio.processor import AudioProcessor

logger = logging.getLogger(__name__)


class SpectrumTap:
    """Samples the frequency spectrum of the live stream at a fixed rate.

    Args:
        processor: Processor configured for the capture format.
        bins: Spectrum resolution.
        fps: Sampling frames per second.
    """

    def __init__(self, processor: AudioProcessor, bins: int = 64, fps: float = 30.0) -> None:
        self._processor = processor
        self._bins = bins
        self._interval = 1.0 / fps
        self._latest = b""
        self._levels: list[int] = [0] * bins
        self._task: asyncio.Task | None = None
        self.frames_sampled = 0

    @property
    def bins(self) -> int:
        return self._bins

    @property
    def levels(self) -> list[int]:
        """Most recent spectrum, ``bins`` values in 0-255."""
        return list(self._levels)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def feed(self, chunk: bytes) -> None:
        """Remember a copy of the newest chunk."""
        self._latest = bytes(chunk)

    def start(self) -> None:
        """Launch the sampling loop (no-op if already running)."""
        if self.running:
            return
        self._latest = b""
        self._levels = [0] * self._bins
        self.frames_sampled = 0
        self._task = asyncio.get_running_loop().create_task(self._sample_loop())

    def stop(self) -> None:
        """Cancel the sampling loop and zero the levels."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._levels = [0] * self._bins
        self._latest = b""

    async def _sample_loop(self) -> None:
        while True:
            try:
                self._levels = self._processor.spectrum(self._latest, self._bins)
                self.frames_sampled += 1
            except ValueError:
                logger.debug("Skipping malformed frame in spectrum tap")
            await asyncio.sleep(self._interval)
