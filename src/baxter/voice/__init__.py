"""Speech input and output module boundaries."""

from .input import ListenerState, ResilientListener
from .interfaces import (
    RecognitionEndEvent,
    RecognitionEngine,
    RecognitionErrorEvent,
    RecognitionOptions,
    RecognitionResult,
    RecognitionResultEvent,
    SpeechSynthesizer,
    Voice,
)
from .output import UtteranceQueue, VoiceOutputConfig

__all__ = [
    "ListenerState",
    "RecognitionEndEvent",
    "RecognitionEngine",
    "RecognitionErrorEvent",
    "RecognitionOptions",
    "RecognitionResult",
    "RecognitionResultEvent",
    "ResilientListener",
    "SpeechSynthesizer",
    "UtteranceQueue",
    "Voice",
    "VoiceOutputConfig",
]
