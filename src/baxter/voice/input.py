"""Continuous speech input that survives engine timeouts."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable

from .interfaces import (
    RecognitionEndEvent,
    RecognitionEngine,
    RecognitionEngineFactory,
    RecognitionErrorEvent,
    RecognitionOptions,
    RecognitionResultEvent,
)


class ListenerState(str, Enum):
    """Caller intent for the recognizer, independent of the engine's own status."""

    STOPPED = "stopped"
    LISTENING = "listening"


class ResilientListener:
    """Keeps a recognition session alive for as long as listening is desired.

    Recognition engines end their sessions on their own after silence,
    transient errors or platform policy. Every such ``end`` while the desired
    state is LISTENING replaces the handle with a fresh one, so ``on_word``
    keeps firing until ``stop()`` is called.
    """

    def __init__(
        self,
        engine_factory: RecognitionEngineFactory,
        on_word: Callable[[str], None],
        *,
        options: RecognitionOptions | None = None,
        restart_delay_seconds: float = 1.0,
        autostart: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self._engine_factory = engine_factory
        self._on_word = on_word
        self._options = options or RecognitionOptions()
        self._restart_delay_seconds = restart_delay_seconds
        self._logger = logger or logging.getLogger("baxter.voice.input")

        self._desired_state = ListenerState.STOPPED
        self._engine: RecognitionEngine | None = None
        self._result_index = 0
        self._retry_handle: asyncio.TimerHandle | None = None
        self.restarts = 0

        if autostart:
            self.start()

    @property
    def desired_state(self) -> ListenerState:
        return self._desired_state

    @property
    def is_listening(self) -> bool:
        return self._desired_state == ListenerState.LISTENING

    def start(self) -> None:
        """Begin listening; no-op if already listening."""
        if self._desired_state == ListenerState.LISTENING:
            return
        self._logger.info("listener_starting", extra={"language": self._options.language})
        self._desired_state = ListenerState.LISTENING
        self._open_engine()

    def stop(self) -> None:
        """Stop listening; the engine's following ``end`` is not treated as a failure."""
        if self._desired_state == ListenerState.STOPPED:
            return
        self._logger.info("listener_stopping")
        self._desired_state = ListenerState.STOPPED
        self._cancel_retry()

        engine = self._engine
        if engine is None:
            return
        try:
            engine.stop()
        except Exception:  # noqa: BLE001 - a handle that fails to stop is simply dropped.
            self._logger.exception("listener_engine_stop_failed")
            self._engine = None

    def _open_engine(self) -> None:
        self._result_index = 0
        self._engine = None
        try:
            engine = self._engine_factory(self._options)
            self._engine = engine
            engine.on("result", lambda event: self._handle_result(engine, event))
            engine.on("end", lambda event: self._handle_end(engine, event))
            engine.on("error", lambda event: self._handle_error(engine, event))
            engine.start()
        except Exception:  # noqa: BLE001 - the listener must never stay down while desired.
            self._logger.exception("listener_engine_start_failed")
            self._engine = None
            self._schedule_retry()

    def _handle_result(self, engine: RecognitionEngine, event: RecognitionResultEvent) -> None:
        if engine is not self._engine:
            return
        if self._desired_state != ListenerState.LISTENING:
            return

        index = event.result_index
        if index < 0 or index >= len(event.results):
            return
        result = event.results[index]
        if not result.is_final:
            self._logger.debug("recognition_interim", extra={"transcript": result.transcript})
            return
        if index < self._result_index:
            return
        self._result_index = index + 1

        transcript = result.transcript.strip()
        self._logger.debug("recognition_final", extra={"transcript": transcript})
        for word in transcript.split():
            try:
                self._on_word(word)
            except Exception:  # noqa: BLE001
                self._logger.exception("listener_callback_failed", extra={"word": word})

    def _handle_end(self, engine: RecognitionEngine, event: RecognitionEndEvent) -> None:
        if engine is not self._engine:
            return
        self._engine = None

        if self._desired_state != ListenerState.LISTENING:
            self._logger.info("listener_stopped")
            return

        self.restarts += 1
        self._logger.info("listener_restarting", extra={"reason": event.reason, "restarts": self.restarts})
        self._open_engine()

    def _handle_error(self, engine: RecognitionEngine, event: RecognitionErrorEvent) -> None:
        if engine is not self._engine:
            return
        # Recovery happens on the ``end`` notification that follows.
        self._logger.warning("recognition_error", extra={"error": event.error, "detail": event.message})

    def _schedule_retry(self) -> None:
        if self._desired_state != ListenerState.LISTENING:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.error("listener_retry_unavailable")
            return
        self._cancel_retry()
        self._retry_handle = loop.call_later(self._restart_delay_seconds, self._retry)

    def _retry(self) -> None:
        self._retry_handle = None
        if self._desired_state != ListenerState.LISTENING or self._engine is not None:
            return
        self.restarts += 1
        self._logger.info("listener_retrying", extra={"restarts": self.restarts})
        self._open_engine()

    def _cancel_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None
