"""Runs one streamed generation turn into the transcript and the speech queue."""

from __future__ import annotations

import logging
from typing import Protocol

from baxter.errors import TurnFailedError
from baxter.generation import GenerationStream


class TranscriptSink(Protocol):
    """Displays the cumulative reply text; the last call wins."""

    def display(self, text: str) -> None:
        """Show ``text`` as the full reply so far."""


class FragmentQueue(Protocol):
    """Accepts reply fragments for speech."""

    def add_text(self, fragment: object) -> None:
        """Accept a fragment without blocking."""


class StreamingCoordinator:
    """Fans generated fragments out to speech and display in generation order."""

    def __init__(self, generation: GenerationStream, *, logger: logging.Logger | None = None) -> None:
        self._generation = generation
        self._logger = logger or logging.getLogger("baxter.coordinator")
        self.accumulated_text = ""

    @property
    def generation(self) -> GenerationStream:
        return self._generation

    async def run_turn(self, prompt: str, transcript_sink: TranscriptSink, utterance_queue: FragmentQueue) -> str:
        """Stream the reply to ``prompt`` and return it in full.

        Each fragment goes to ``utterance_queue`` as-is and the cumulative text
        goes to ``transcript_sink``. A failing stream raises ``TurnFailedError``
        after whatever was already forwarded; queued speech is left alone.
        """
        self.accumulated_text = ""
        fragments = 0

        try:
            async for fragment in self._generation.generate(prompt):
                if not isinstance(fragment, str) or not fragment:
                    continue
                fragments += 1
                self.accumulated_text += fragment
                utterance_queue.add_text(fragment)
                transcript_sink.display(self.accumulated_text)
        except Exception as exc:  # noqa: BLE001 - surfaced to the caller as a turn failure.
            self._logger.warning(
                "turn_failed",
                extra={"fragments": fragments, "error": f"{type(exc).__name__}: {exc}"},
            )
            raise TurnFailedError(str(exc) or type(exc).__name__, partial_text=self.accumulated_text) from exc

        self._logger.info("turn_finished", extra={"fragments": fragments, "chars": len(self.accumulated_text)})
        return self.accumulated_text
