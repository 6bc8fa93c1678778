"""Contracts for speech recognition and synthesis engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Literal, Protocol, Union


@dataclass(slots=True, frozen=True)
class Voice:
    """A synthesis voice exposed by the platform engine."""

    id: str
    name: str
    languages: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class RecognitionOptions:
    """How a recognition handle should be configured before ``start()``."""

    language: str = "en-US"
    continuous: bool = True
    interim_results: bool = True


@dataclass(slots=True, frozen=True)
class RecognitionResult:
    """One hypothesis slot; final results will not change any further."""

    transcript: str
    is_final: bool
    confidence: float | None = None


@dataclass(slots=True)
class RecognitionResultEvent:
    """All results of the current session, with ``result_index`` pointing at the newest."""

    result_index: int
    results: list[RecognitionResult] = field(default_factory=list)


@dataclass(slots=True)
class RecognitionErrorEvent:
    error: str
    message: str = ""


@dataclass(slots=True)
class RecognitionEndEvent:
    reason: str = ""


RecognitionEventName = Literal["result", "end", "error"]
RecognitionEvent = Union[RecognitionResultEvent, RecognitionErrorEvent, RecognitionEndEvent]
RecognitionHandler = Callable[[RecognitionEvent], None]


class SpeechSynthesizer(Protocol):
    """Speaks text through a platform voice engine."""

    async def speak(self, text: str) -> None:
        """Speak ``text`` and return once playback finished; raise on failure."""

    def voices(self) -> list[Voice]:
        """Return the currently known voices, possibly empty while loading."""

    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        """Register a callback fired when the voice list becomes available or changes."""

    def select_voice(self, voice: Voice | None) -> None:
        """Use ``voice`` for subsequent utterances; ``None`` keeps the engine default."""

    def close(self) -> None:
        """Release the engine handle."""


class RecognitionEngine(Protocol):
    """A single live recognition session.

    Notifications are delivered on the event loop thread. ``end`` may fire at
    any time, including right after ``start()``. A handle is not restartable.
    """

    def on(self, event: RecognitionEventName, handler: RecognitionHandler) -> None:
        """Register a handler for ``result``, ``end`` or ``error`` notifications."""

    def start(self) -> None:
        """Begin capturing and recognizing speech."""

    def stop(self) -> None:
        """Request the session to end; an ``end`` notification follows."""


RecognitionEngineFactory = Callable[[RecognitionOptions], RecognitionEngine]
