"""
Response schema and the single validation function for analysis results.

``ANALYSIS_RESPONSE_SCHEMA`` is sent with every analyzer request.
``validate_analysis`` checks both the analyzer's reply (strict profile)
and a decoded share payload (shared profile) and returns a typed outcome
instead of raising.
"""

import json
from dataclasses import dataclass

from pydantic import ValidationError

from voicecheck.core.models import AnalysisResult, SharedAnalysisResult
from voicecheck.core.utils import strip_code_fences


def _score(description: str) -> dict:
    return {"type": "number", "minimum": 0, "maximum": 100, "description": description}


ARTIFICIAL_VOICE_RULE = (
    "True ONLY when the voice is deliberately constricted or performed: pinched "
    "throat, forced baby-talk or forced cuteness, an exaggerated put-on character "
    "voice. A naturally high, light or sweet timbre with relaxed resonance and "
    "stable pitch is NOT artificial and must be false. When unsure, answer false."
)

ANALYSIS_RESPONSE_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "overallScore": _score("Overall objective audio quality score (0-100)."),
        "voiceArchetype": {
            "type": "string",
            "description": "A creative but accurate professional classification "
            "(e.g. 'The Late Night DJ', 'The Corporate Leader').",
        },
        "estimatedAge": {
            "type": "string",
            "description": "Speaker age estimated from vocal maturity, timbre and pitch "
            "(e.g. 'Late 20s', 'Approx 35').",
        },
        "estimatedWeight": {
            "type": "string",
            "description": "Build estimated from resonance and fullness "
            "(e.g. 'Approx 70kg', 'Light build ~50kg').",
        },
        "isArtificialVoice": {"type": "boolean", "description": ARTIFICIAL_VOICE_RULE},
        "roast": {
            "type": "string",
            "description": "Sharp, witty critical commentary on how the voice sounds.",
        },
        "encouragement": {
            "type": "string",
            "description": "A separate paragraph of genuine support.",
        },
        "pros": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Top 3 technical or aesthetic strengths, most important first.",
        },
        "cons": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Top 3 areas for improvement, most important first.",
        },
        "similarVoice": {
            "type": "string",
            "description": "A famous person or character with a similar vocal quality.",
        },
        "metrics": {
            "type": "object",
            "properties": {
                "clarity": _score("Articulation and diction (0-100)."),
                "charisma": _score("Magnetic quality (0-100)."),
                "uniqueness": _score("Distinctiveness (0-100)."),
                "stability": _score("Tone consistency (0-100)."),
                "warmth": _score("Approachability and resonance (0-100)."),
            },
            "required": ["clarity", "charisma", "uniqueness", "stability", "warmth"],
        },
        "technical": {
            "type": "object",
            "properties": {
                "pitchRange": {
                    "type": "string",
                    "description": "e.g. 'Deep Baritone', 'Bright Soprano'.",
                },
                "speakingPace": {
                    "type": "string",
                    "description": "e.g. 'Rapid Fire', 'Thoughtful & Slow'.",
                },
                "expressiveness": {
                    "type": "string",
                    "description": "e.g. 'Flat', 'Melodic', 'Dynamic'.",
                },
            },
            "required": ["pitchRange", "speakingPace", "expressiveness"],
        },
    },
    "required": [
        "overallScore",
        "voiceArchetype",
        "estimatedAge",
        "estimatedWeight",
        "isArtificialVoice",
        "roast",
        "encouragement",
        "pros",
        "cons",
        "similarVoice",
        "metrics",
        "technical",
    ],
}


@dataclass(frozen=True)
class ValidationOutcome:
    """Typed success/failure of a validation attempt."""

    result: AnalysisResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def _describe(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "<root>"
        problems.append(f"{loc}: {err['msg']}")
    return "; ".join(problems)


def validate_analysis(raw: str | bytes | dict, *, shared: bool = False) -> ValidationOutcome:
    """Parse and validate an analysis payload.

    Args:
        raw: JSON text (optionally wrapped in code fences) or an already
            decoded mapping.
        shared: Use the share-link profile (only ``overallScore`` and
            ``metrics`` required) instead of the full analyzer contract.

    Returns:
        ValidationOutcome with either ``result`` or ``error`` set.
    """
    model = SharedAnalysisResult if shared else AnalysisResult

    if isinstance(raw, dict):
        data = raw
    else:
        try:
            text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
            data = json.loads(strip_code_fences(text))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            return ValidationOutcome(error=f"Unparsable JSON: {exc}")

    if not isinstance(data, dict):
        return ValidationOutcome(error=f"Expected a JSON object, got {type(data).__name__}")

    try:
        return ValidationOutcome(result=model.model_validate(data))
    except ValidationError as exc:
        return ValidationOutcome(error=_describe(exc))
