"""
Audio module - Microphone capture, buffering and level-meter utilities.
"""

from .capture import AudioCapture, AudioPayload
from .devices import BaseDeviceSource, DeviceHandle, SoundDeviceSource
from .processor import AudioProcessor
from .recorder import AudioBuffer
from .visualizer import SpectrumTap

__all__ = [
    "AudioBuffer",
    "AudioCapture",
    "AudioPayload",
    "AudioProcessor",
    "BaseDeviceSource",
    "DeviceHandle",
    "SoundDeviceSource",
    "SpectrumTap",
]
