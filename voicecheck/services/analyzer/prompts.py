"""
Prompt text for voice analysis.

The scoring instructions are fixed. The language hint only appends an
output-language instruction so that scores never depend on it.
"""

import logging

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

SCORING_PROMPT = """\
You are an expert Audio Engineer and a 'Vibe Check' specialist. Analyze the user voice recording.

IMPORTANT: The user may speak in ANY language or dialect. Do not bias the score based on
the language spoken. If you cannot understand the words, you must still analyze the sound itself.

Part 1: Rigorous Objective Analysis.
Analyze the acoustic properties (timbre, resonance, pitch stability, clarity of tone) like a
scientist. Identify technical strengths and weaknesses regardless of language. Score strictly
based on how the voice sounds. All scores are numbers from 0 to 100.
Infer demographics:
1. Age: listen to vocal maturity and roughness.
2. Weight: estimate physical build from vocal tract resonance and fullness.

Part 2: Natural vs. artificial voice.
Set isArtificialVoice to true ONLY for a deliberately constricted or performed voice (pinched
throat, forced cuteness, exaggerated character voice). A naturally high or sweet voice is NOT
artificial. Do not penalize a natural high voice.

Part 3: The Verdict (two parts).
1. roast: be honest and sharp. If the voice is forced or performed, call it out. Be funny.
2. encouragement:
   - If overallScore < 60: reassure them the roast was for fun and name a real quality of their voice.
   - If overallScore > 80: jokes aside, tell them they have a great voice and should keep using it.

Output valid JSON matching the schema.
"""

LANGUAGE_INSTRUCTIONS: dict[str, str] = {
    "en": "Write every text field in English.",
    "zh": "Write every text field in Simplified Chinese (简体中文). Keep JSON keys in English.",
    "es": "Write every text field in Spanish. Keep JSON keys in English.",
    "ja": "Write every text field in Japanese. Keep JSON keys in English.",
    "ko": "Write every text field in Korean. Keep JSON keys in English.",
    "fr": "Write every text field in French. Keep JSON keys in English.",
    "de": "Write every text field in German. Keep JSON keys in English.",
}


def normalize_language(language: str | None) -> str:
    """Map a hint like ``zh-CN`` or ``EN`` to a supported code.

    Unknown or empty hints fall back to English.
    """
    if not language:
        return DEFAULT_LANGUAGE
    code = language.strip().lower().replace("_", "-").split("-")[0]
    if code not in LANGUAGE_INSTRUCTIONS:
        logger.warning("Unsupported language hint %r; using %s", language, DEFAULT_LANGUAGE)
        return DEFAULT_LANGUAGE
    return code


def build_prompt(language: str | None) -> str:
    """Return the full analysis prompt for the given output language."""
    code = normalize_language(language)
    return f"{SCORING_PROMPT}\nOutput language: {LANGUAGE_INSTRUCTIONS[code]}\n"
