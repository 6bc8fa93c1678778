"""Speech-to-text backend powered by ``speech_recognition``."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from .interfaces import (
    RecognitionEndEvent,
    RecognitionEngine,
    RecognitionErrorEvent,
    RecognitionEvent,
    RecognitionEventName,
    RecognitionHandler,
    RecognitionOptions,
    RecognitionResult,
    RecognitionResultEvent,
)

logger = logging.getLogger(__name__)


class SpeechRecognitionEngine(RecognitionEngine):
    """One microphone recognition session using the Google Web Speech recognizer.

    Phrases are captured in a background thread and transcribed as final
    results; this backend has no interim hypotheses. Like browser engines, the
    session ends itself after ``idle_timeout`` seconds without a phrase or after
    a recognizer request error.
    """

    def __init__(
        self,
        options: RecognitionOptions,
        *,
        phrase_time_limit: float | None = 10.0,
        idle_timeout: float | None = 8.0,
        sample_rate: int = 16_000,
        chunk_size: int = 1024,
    ) -> None:
        try:
            import speech_recognition as sr
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Voice STT backend unavailable. Install with: pip install 'baxter-voice-chat[voice]'"
            ) from exc

        self._sr = sr
        self._options = options
        self._phrase_time_limit = phrase_time_limit
        self._idle_timeout = idle_timeout
        self._sample_rate = sample_rate
        self._chunk_size = chunk_size

        self._handlers: dict[str, list[RecognitionHandler]] = {"result": [], "end": [], "error": []}
        self._results: list[RecognitionResult] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stopper: Callable[..., None] | None = None
        self._idle_handle: asyncio.TimerHandle | None = None
        self._started = False
        self._ended = False

    def on(self, event: RecognitionEventName, handler: RecognitionHandler) -> None:
        self._handlers[event].append(handler)

    def start(self) -> None:
        if self._started:
            raise RuntimeError("Recognition sessions cannot be restarted; create a new engine")
        self._started = True
        self._loop = asyncio.get_running_loop()
        if not self._options.continuous:
            logger.debug("stt_single_phrase_unsupported")

        recognizer = self._sr.Recognizer()
        microphone = self._sr.Microphone(sample_rate=self._sample_rate, chunk_size=self._chunk_size)
        self._stopper = recognizer.listen_in_background(
            microphone,
            self._on_audio,
            phrase_time_limit=self._phrase_time_limit,
        )
        self._arm_idle_timer()

    def stop(self) -> None:
        self._finish("stopped")

    def _on_audio(self, recognizer: Any, audio: Any) -> None:
        # Runs on the speech_recognition background thread.
        try:
            transcript = recognizer.recognize_google(audio, language=self._options.language)
        except self._sr.UnknownValueError:
            self._post(self._arm_idle_timer)
            return
        except self._sr.RequestError as exc:
            self._post(self._emit, "error", RecognitionErrorEvent(error="network", message=str(exc)))
            self._post(self._finish, "error")
            return
        self._post(self._deliver, str(transcript))

    def _deliver(self, transcript: str) -> None:
        if self._ended or not transcript.strip():
            return
        self._arm_idle_timer()
        self._results.append(RecognitionResult(transcript=transcript, is_final=True))
        self._emit("result", RecognitionResultEvent(result_index=len(self._results) - 1, results=list(self._results)))

    def _arm_idle_timer(self) -> None:
        if self._ended or self._idle_timeout is None or self._loop is None:
            return
        if self._idle_handle is not None:
            self._idle_handle.cancel()
        self._idle_handle = self._loop.call_later(self._idle_timeout, self._finish, "no-speech")

    def _finish(self, reason: str) -> None:
        if self._ended:
            return
        self._ended = True
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None
        if self._stopper is not None:
            self._stopper(wait_for_stop=False)
            self._stopper = None
        if self._loop is None:
            self._emit("end", RecognitionEndEvent(reason=reason))
        else:
            self._loop.call_soon(self._emit, "end", RecognitionEndEvent(reason=reason))

    def _emit(self, event: str, payload: RecognitionEvent) -> None:
        if self._ended and event != "end":
            return
        for handler in list(self._handlers[event]):
            handler(payload)

    def _post(self, callback: Callable[..., None], *args: Any) -> None:
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(callback, *args)


def speech_recognition_engine_factory(
    *,
    phrase_time_limit: float | None = 10.0,
    idle_timeout: float | None = 8.0,
) -> Callable[[RecognitionOptions], SpeechRecognitionEngine]:
    """Build a factory that creates a fresh engine handle for every session."""

    def _factory(options: RecognitionOptions) -> SpeechRecognitionEngine:
        return SpeechRecognitionEngine(options, phrase_time_limit=phrase_time_limit, idle_timeout=idle_timeout)

    return _factory
