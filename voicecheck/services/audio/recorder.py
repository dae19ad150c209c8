"""Audio buffering for one recording attempt.

Accumulates incoming PCM bytes with arbitrary chunk boundaries and
flushes them into a single frame-aligned byte string on stop.
"""


class AudioBuffer:
    """Accumulates PCM audio bytes until the recording is finalized.

    Chunks arrive in whatever sizes the device delivers; the buffer only
    guarantees that the flushed output is aligned to whole frames.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        self._sample_rate = sample_rate
        self._sample_width = sample_width
        self._channels = channels
        self._buffer = bytearray()
        self._chunks = 0

    @property
    def frame_size(self) -> int:
        """Bytes per frame."""
        return self._sample_width * self._channels

    @property
    def buffered_duration(self) -> float:
        """Duration of currently buffered audio in seconds."""
        return len(self._buffer) / (self._sample_rate * self.frame_size)

    @property
    def chunk_count(self) -> int:
        """Number of chunks appended since the last flush or reset."""
        return self._chunks

    def __len__(self) -> int:
        return len(self._buffer)

    def add_bytes(self, data: bytes) -> None:
        """Append raw PCM bytes to the buffer."""
        if data:
            self._buffer.extend(data)
            self._chunks += 1

    def flush(self) -> bytes:
        """Return all buffered audio as one frame-aligned payload and clear.

        A trailing partial frame is dropped.

        Returns:
            The buffered PCM bytes (may be empty).
        """
        usable = len(self._buffer) - (len(self._buffer) % self.frame_size)
        data = bytes(self._buffer[:usable])
        self.reset()
        return data

    def reset(self) -> None:
        """Clear the buffer."""
        self._buffer.clear()
        self._chunks = 0
