"""VoiceCheck - record a short voice sample and get an AI vocal report."""

__version__ = "0.1.0"
