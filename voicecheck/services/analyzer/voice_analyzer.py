"""
Remote voice analysis.

Takes a finalized recording and produces a validated ``AnalysisResult``
using the configured audio model. One model call per ``analyze``; any
failure (transport, empty reply, bad JSON, schema violation) is raised as
``AnalyzerError`` and never yields a partial result.
"""

import base64
import logging

from voicecheck.core.config import get_settings
from voicecheck.core.exceptions import AnalyzerError, SchemaValidationError
from voicecheck.core.models import AnalysisResult
from voicecheck.services.analyzer.base import BaseAudioModel
from voicecheck.services.analyzer.prompts import build_prompt
from voicecheck.services.analyzer.schema import ANALYSIS_RESPONSE_SCHEMA, validate_analysis
from voicecheck.services.audio.capture import AudioPayload

logger = logging.getLogger(__name__)


class VoiceAnalyzer:
    """Sends a recording to an audio model and validates the report."""

    def __init__(self, model: BaseAudioModel, temperature: float | None = None) -> None:
        """Initialize with the configured model provider.

        Args:
            model: A provider implementing ``BaseAudioModel``.
            temperature: Sampling temperature; settings default when None.
        """
        self._model = model
        self._temperature = (
            temperature if temperature is not None else get_settings().analyzer_temperature
        )

    async def analyze(self, payload: AudioPayload, language: str | None = None) -> AnalysisResult:
        """Analyze one recording.

        Args:
            payload: Non-empty audio with its MIME type.
            language: Output-language hint for the report text.

        Returns:
            The validated analysis result.

        Raises:
            AnalyzerError: On any failure, including schema validation
                (``SchemaValidationError``).
        """
        if payload is None or not payload.data:
            raise AnalyzerError(detail="Audio payload is empty")

        audio_b64 = base64.b64encode(payload.data).decode("ascii")
        prompt = build_prompt(language)

        try:
            raw_response = await self._model.generate(
                audio_b64=audio_b64,
                mime_type=payload.mime_type,
                prompt=prompt,
                schema=ANALYSIS_RESPONSE_SCHEMA,
                temperature=self._temperature,
            )
        except Exception as exc:
            logger.error("Model call failed (%s): %s", self._model.describe(), exc)
            raise AnalyzerError(detail=f"Model call failed: {exc}") from exc

        if not raw_response or not raw_response.strip():
            raise AnalyzerError(detail="No response from AI")

        outcome = validate_analysis(raw_response)
        if not outcome.ok:
            logger.error("Analyzer response rejected: %s", outcome.error)
            raise SchemaValidationError(detail=f"Invalid analysis response: {outcome.error}")

        logger.info(
            "Analysis complete: score=%s archetype=%r",
            outcome.result.overall_score,
            outcome.result.voice_archetype,
        )
        return outcome.result
