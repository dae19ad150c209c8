"""
Abstract base class for audio-capable model providers.

Every provider must accept an inline audio clip plus a prompt and a JSON
schema, and return the model's raw text. Parsing and validation happen in
the analyzer so that all providers are held to the same contract.
"""

from abc import ABC, abstractmethod


class BaseAudioModel(ABC):
    """Interface that every audio model provider must implement."""

    @abstractmethod
    async def generate(
        self,
        audio_b64: str,
        mime_type: str,
        prompt: str,
        schema: dict,
        temperature: float | None = None,
    ) -> str:
        """Send one audio clip and return the structured response text.

        Args:
            audio_b64: Base64-encoded audio bytes.
            mime_type: Encoding of the audio (e.g. ``audio/wav``).
            prompt: Instruction text accompanying the clip.
            schema: JSON schema the response must follow.
            temperature: Sampling temperature; provider default when None.

        Returns:
            The model's raw text response (expected to be JSON).

        Raises:
            ConnectionError: Network or rate-limit failure.
            TimeoutError: The request timed out.
            RuntimeError: Any other provider failure, including empty output.
        """

    @abstractmethod
    def describe(self) -> str:
        """Human-readable provider/model label for logs."""
