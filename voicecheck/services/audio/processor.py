"""Audio processing utilities for PCM data.

Converts raw PCM bytes to numpy arrays, encodes WAV payloads, detects
silence and computes the byte-scaled spectrum used by the level meter.
"""

import io
import wave

import numpy as np

# Decibel window mapped onto 0-255, same as a browser AnalyserNode.
_MIN_DB = -100.0
_MAX_DB = -30.0


class AudioProcessor:
    """Handles PCM audio data conversion and analysis.

    Provides utilities for converting raw PCM bytes to numpy arrays,
    encoding WAV bytes, detecting silence via RMS energy, and sampling
    a fixed-resolution frequency spectrum.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        """Initialize the audio processor.

        Args:
            sample_rate: Audio sample rate in Hz (default: 16 kHz).
            sample_width: Bytes per sample (2 = 16-bit signed PCM).
            channels: Number of audio channels (1 = mono).
        """
        self.sample_rate = sample_rate
        self.sample_width = sample_width
        self.channels = channels

    @property
    def frame_size(self) -> int:
        """Bytes per frame (one sample for every channel)."""
        return self.sample_width * self.channels

    def pcm_to_ndarray(self, pcm_data: bytes) -> np.ndarray:
        """Convert raw PCM bytes (16-bit signed) to float32 numpy array.

        Multi-channel input is downmixed to mono.

        Args:
            pcm_data: Raw PCM bytes (16-bit).

        Returns:
            Float32 numpy array normalized to [-1.0, 1.0].

        Raises:
            ValueError: If data length is not aligned to sample frame size.
        """
        if len(pcm_data) % self.frame_size != 0:
            raise ValueError(
                f"PCM data length ({len(pcm_data)}) is not aligned to frame size ({self.frame_size})"
            )
        samples = np.frombuffer(pcm_data, dtype=np.int16).astype(np.float32) / 32768.0
        if self.channels > 1:
            samples = samples.reshape(-1, self.channels).mean(axis=1)
        return samples

    def duration_seconds(self, pcm_data: bytes) -> float:
        """Length of *pcm_data* in seconds."""
        return len(pcm_data) / (self.sample_rate * self.frame_size)

    def to_wav_bytes(self, pcm_data: bytes) -> bytes:
        """Wrap raw PCM bytes in an in-memory WAV container.

        Args:
            pcm_data: Raw PCM bytes (16-bit).

        Returns:
            Complete WAV file contents.

        Raises:
            ValueError: If pcm_data is empty.
        """
        if not pcm_data:
            raise ValueError("Cannot encode empty PCM data to WAV")
        out = io.BytesIO()
        with wave.open(out, "wb") as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(self.sample_width)
            wf.setframerate(self.sample_rate)
            wf.writeframes(pcm_data)
        return out.getvalue()

    def is_silent(self, audio: np.ndarray, threshold: float = 0.01) -> bool:
        """Check if an audio segment is silence based on RMS energy.

        Args:
            audio: Float32 numpy array of audio samples.
            threshold: RMS energy below this value is considered silence.

        Returns:
            True if the audio is silence.
        """
        if len(audio) == 0:
            return True
        # RMS (Root Mean Square) measures signal energy, low RMS = silence
        rms = np.sqrt(np.mean(audio**2))
        return float(rms) < threshold

    def spectrum(self, pcm_data: bytes, bins: int = 64) -> list[int]:
        """Byte-scaled magnitude spectrum of the most recent samples.

        Uses an FFT of ``2 * bins`` samples with a Hann window and maps the
        [-100, -30] dB window onto 0-255.

        Args:
            pcm_data: Raw PCM bytes; only the tail is used.
            bins: Number of frequency bins to return.

        Returns:
            ``bins`` integers in [0, 255]; all zeros when there is no audio.
        """
        usable = len(pcm_data) - (len(pcm_data) % self.frame_size)
        if usable <= 0:
            return [0] * bins

        fft_size = bins * 2
        samples = self.pcm_to_ndarray(pcm_data[:usable])[-fft_size:]
        if len(samples) < fft_size:
            samples = np.pad(samples, (fft_size - len(samples), 0))

        windowed = samples * np.hanning(fft_size)
        magnitude = np.abs(np.fft.rfft(windowed))[:bins] / fft_size
        with np.errstate(divide="ignore"):
            db = 20 * np.log10(magnitude)
        scaled = (db - _MIN_DB) / (_MAX_DB - _MIN_DB) * 255
        return [int(v) for v in np.clip(np.nan_to_num(scaled, neginf=0.0), 0, 255)]
