"""Serialized speech output for streamed assistant replies."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .interfaces import SpeechSynthesizer, Voice


@dataclass(slots=True)
class VoiceOutputConfig:
    """Configurable controls for reply speech."""

    enabled: bool = True
    preferred_voice: str | None = None


def match_voice(voices: list[Voice], preferred: str | None) -> Voice | None:
    """Pick the first voice whose name or id contains ``preferred`` (case-insensitive)."""
    wanted = (preferred or "").strip().lower()
    if not wanted:
        return None
    for voice in voices:
        if voice.name.lower() == wanted or voice.id.lower() == wanted:
            return voice
    for voice in voices:
        if wanted in voice.name.lower() or wanted in voice.id.lower():
            return voice
    return None


class UtteranceQueue:
    """Batches text fragments into utterances with at most one in flight.

    ``add_text`` never blocks. Fragments arriving while an utterance plays are
    joined into the next utterance, so batch sizes follow how fast text
    arrives relative to how fast it is spoken.
    """

    def __init__(
        self,
        synthesizer: SpeechSynthesizer | None,
        config: VoiceOutputConfig | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._synthesizer = synthesizer
        self._config = config or VoiceOutputConfig()
        self._logger = logger or logging.getLogger("baxter.voice.output")

        self._pending: list[str] = []
        self._speaking = False
        self._drain_task: asyncio.Task[None] | None = None
        self._voice: Voice | None = None
        self._voice_resolved = False
        self.utterances_spoken = 0

        if self._synthesizer is not None and self._config.enabled:
            self._synthesizer.on_voices_changed(self._on_voices_changed)
            self._on_voices_changed()

    @property
    def speaking(self) -> bool:
        return self._speaking

    @property
    def pending(self) -> tuple[str, ...]:
        return tuple(self._pending)

    @property
    def voice(self) -> Voice | None:
        """Selected voice, ``None`` while unresolved or when using the engine default."""
        return self._voice

    def add_text(self, fragment: object) -> None:
        """Queue a fragment for speech and start draining if idle.

        Empty or non-text input is ignored. Must be called from the event loop.
        """
        if not isinstance(fragment, str) or fragment == "":
            return
        if not self._config.enabled or self._synthesizer is None:
            return

        self._pending.append(fragment)
        if not self._speaking:
            self._schedule_drain()

    async def wait_idle(self) -> None:
        """Wait until every queued fragment has been spoken (or failed)."""
        while self._drain_task is not None and not self._drain_task.done():
            await asyncio.wait({self._drain_task})

    async def close(self) -> None:
        await self.wait_idle()
        if self._synthesizer is not None:
            self._synthesizer.close()

    def _schedule_drain(self) -> None:
        if self._drain_task is not None and not self._drain_task.done():
            return
        loop = asyncio.get_running_loop()
        self._drain_task = loop.create_task(self._drain(), name="utterance-drain")

    async def _drain(self) -> None:
        if self._speaking or not self._pending:
            return

        while self._pending:
            self._speaking = True
            text = " ".join(self._pending)
            self._pending.clear()
            try:
                await self._synthesizer.speak(text)
                self.utterances_spoken += 1
                self._logger.debug("utterance_spoken", extra={"chars": len(text)})
            except Exception:  # noqa: BLE001 - one failed utterance must not stop the queue.
                self._logger.exception("utterance_failed", extra={"text": text})
            finally:
                self._speaking = False

    def _on_voices_changed(self) -> None:
        if self._voice_resolved:
            return
        try:
            voices = self._synthesizer.voices()
        except Exception:  # noqa: BLE001 - voice selection is best effort.
            self._logger.exception("voice_list_failed")
            return
        if not voices:
            return

        self._voice_resolved = True
        self._voice = match_voice(voices, self._config.preferred_voice)
        if self._voice is None:
            self._logger.info(
                "voice_default_used",
                extra={"preferred_voice": self._config.preferred_voice, "available": len(voices)},
            )
            return

        try:
            self._synthesizer.select_voice(self._voice)
        except Exception:  # noqa: BLE001
            self._logger.exception("voice_select_failed", extra={"voice": self._voice.name})
            self._voice = None
            return
        self._logger.info("voice_selected", extra={"voice": self._voice.name})
