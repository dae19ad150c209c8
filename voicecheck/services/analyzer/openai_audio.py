"""
OpenAI audio model provider implementation.

Uses the OpenAI Python SDK (``openai.AsyncOpenAI``) chat completions API
with an ``input_audio`` content part and a ``json_schema`` response format.
Exactly one request is made per call; retrying is the caller's decision.
"""

import logging

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError,
)

from voicecheck.core.config import get_settings
from voicecheck.services.analyzer.base import BaseAudioModel

logger = logging.getLogger(__name__)

# input_audio accepts a bare format name, not a MIME type
_AUDIO_FORMATS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}


class OpenAIAudioModel(BaseAudioModel):
    """Audio-in, JSON-out model served by the OpenAI API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key or settings.openai_api_key
        self._model = model or settings.openai_model
        self._max_tokens = max_tokens or settings.analyzer_max_tokens
        self._temperature = (
            temperature if temperature is not None else settings.analyzer_temperature
        )
        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": timeout or settings.analyzer_timeout_seconds,
            "max_retries": 0,
        }
        if base_url or settings.openai_base_url:
            client_kwargs["base_url"] = base_url or settings.openai_base_url
        self._client = AsyncOpenAI(**client_kwargs)

    async def generate(
        self,
        audio_b64: str,
        mime_type: str,
        prompt: str,
        schema: dict,
        temperature: float | None = None,
    ) -> str:
        """Send the clip and return the JSON text.

        All SDK exceptions are translated to standard Python exceptions so
        that the analyzer can log the cause uniformly.
        """
        audio_format = _AUDIO_FORMATS.get(mime_type.split(";")[0].strip().lower())
        if audio_format is None:
            raise RuntimeError(f"Unsupported audio type for {self.describe()}: {mime_type}")

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                modalities=["text"],
                max_tokens=self._max_tokens,
                temperature=temperature if temperature is not None else self._temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "voice_analysis", "schema": schema},
                },
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "input_audio",
                                "input_audio": {"data": audio_b64, "format": audio_format},
                            },
                            {"type": "text", "text": prompt},
                        ],
                    }
                ],
            )
        except APITimeoutError as exc:
            logger.warning("OpenAI API timeout: %s", exc)
            raise TimeoutError(f"OpenAI API request timed out: {exc}") from exc
        except APIConnectionError as exc:
            logger.warning("OpenAI API connection error: %s", exc)
            raise ConnectionError(f"Failed to connect to OpenAI API: {exc}") from exc
        except RateLimitError as exc:
            logger.warning("OpenAI API rate limit hit: %s", exc)
            raise ConnectionError(f"OpenAI API rate limit exceeded: {exc}") from exc
        except APIStatusError as exc:
            logger.error("OpenAI API returned %s: %s", exc.status_code, exc)
            raise RuntimeError(f"OpenAI API error ({exc.status_code}): {exc}") from exc
        except Exception as exc:
            logger.error("Unexpected OpenAI API error: %s", exc)
            raise RuntimeError(f"OpenAI API error: {exc}") from exc

        if not response.choices or not response.choices[0].message.content:
            raise RuntimeError("No response from AI")
        return response.choices[0].message.content

    def describe(self) -> str:
        return f"OpenAI ({self._model})"
