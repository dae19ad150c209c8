"""
Analyzer module - remote voice analysis through an audio-capable model.

Factory function for creating model instances based on provider configuration.
"""

from .base import BaseAudioModel
from .schema import ANALYSIS_RESPONSE_SCHEMA, ValidationOutcome, validate_analysis
from .voice_analyzer import VoiceAnalyzer

__all__ = [
    "ANALYSIS_RESPONSE_SCHEMA",
    "BaseAudioModel",
    "ValidationOutcome",
    "VoiceAnalyzer",
    "create_analyzer_model",
    "validate_analysis",
]


def create_analyzer_model(provider: str, **kwargs) -> BaseAudioModel:
    """
    Factory function to create an audio model instance based on provider.

    Args:
        provider: Provider name ("openai")
        **kwargs: Provider-specific configuration

    Returns:
        BaseAudioModel implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "openai":
        from .openai_audio import OpenAIAudioModel

        return OpenAIAudioModel(**kwargs)
    else:
        raise ValueError(f"Unknown analyzer provider: {provider}")
