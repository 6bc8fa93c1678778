"""Voice chat session wiring listener, prompt buffer, coordinator and speech."""

from __future__ import annotations

import logging

from baxter.coordinator import StreamingCoordinator
from baxter.errors import TurnFailedError
from baxter.prompt_buffer import PromptBuffer
from baxter.transcript import MessageRole, Transcript
from baxter.voice.input import ResilientListener
from baxter.voice.interfaces import RecognitionEngineFactory, RecognitionOptions
from baxter.voice.output import UtteranceQueue

LOADING_TEXT = "Initializing AI..."
READY_TEXT = "AI is ready. Ask me anything!"
PLACEHOLDER_TEXT = "..."
FAILURE_TEXT = "An error occurred while generating the response."


class VoiceChatSession:
    """One chat session: recognized words fill the prompt, replies are shown and spoken."""

    def __init__(
        self,
        *,
        coordinator: StreamingCoordinator,
        utterance_queue: UtteranceQueue,
        transcript: Transcript,
        prompt_buffer: PromptBuffer | None = None,
        engine_factory: RecognitionEngineFactory | None = None,
        recognition_options: RecognitionOptions | None = None,
        restart_delay_seconds: float = 1.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._utterance_queue = utterance_queue
        self._transcript = transcript
        self._prompt_buffer = prompt_buffer or PromptBuffer()
        self._engine_factory = engine_factory
        self._recognition_options = recognition_options or RecognitionOptions()
        self._restart_delay_seconds = restart_delay_seconds
        self._logger = logger or logging.getLogger("baxter.session")
        self._listener: ResilientListener | None = None

    @property
    def prompt_buffer(self) -> PromptBuffer:
        return self._prompt_buffer

    @property
    def transcript(self) -> Transcript:
        return self._transcript

    @property
    def listener(self) -> ResilientListener | None:
        return self._listener

    @property
    def utterance_queue(self) -> UtteranceQueue:
        return self._utterance_queue

    def start(self) -> None:
        """Show the loading message, begin listening, then report readiness."""
        status = self._transcript.add(MessageRole.BOT, LOADING_TEXT)
        if self._engine_factory is not None and self._listener is None:
            self._listener = ResilientListener(
                self._engine_factory,
                self._prompt_buffer.append,
                options=self._recognition_options,
                restart_delay_seconds=self._restart_delay_seconds,
            )
        status.display(READY_TEXT)
        self._logger.info("session_ready", extra={"listening": self._listener is not None})

    async def submit(self, text: str | None = None) -> str | None:
        """Submit the prompt buffer (plus ``text``) as one turn.

        Returns the full reply, or ``None`` when the prompt was empty or the turn failed.
        """
        if text:
            self._prompt_buffer.append(text)
        prompt = self._prompt_buffer.take()
        if not prompt:
            return None

        self._transcript.add(MessageRole.USER, prompt)
        reply = self._transcript.add(MessageRole.BOT, PLACEHOLDER_TEXT)
        try:
            return await self._coordinator.run_turn(prompt, reply, self._utterance_queue)
        except TurnFailedError:
            reply.display(FAILURE_TEXT)
            self._logger.exception("prompt_streaming_failed", extra={"prompt": prompt})
            return None

    async def close(self) -> None:
        """Stop listening, finish queued speech and release the generation stream."""
        if self._listener is not None:
            self._listener.stop()
        await self._utterance_queue.close()
        aclose = getattr(self._coordinator.generation, "aclose", None)
        if aclose is not None:
            await aclose()
