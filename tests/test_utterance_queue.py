from __future__ import annotations

import asyncio
import logging

from baxter.voice.interfaces import Voice
from baxter.voice.output import UtteranceQueue, VoiceOutputConfig, match_voice


class RecordingSynthesizer:
    def __init__(self, voices: list[Voice] | None = None, fail_on: str | None = None) -> None:
        self.spoken: list[str] = []
        self.attempts: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.gate = asyncio.Event()
        self.gate.set()
        self.fail_on = fail_on
        self._voices = voices or []
        self.callbacks = []
        self.selected: list[Voice | None] = []
        self.closed = False

    async def speak(self, text: str) -> None:
        self.attempts.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await self.gate.wait()
            await asyncio.sleep(0)
            if self.fail_on and self.fail_on in text:
                raise RuntimeError("synthesis failed")
            self.spoken.append(text)
        finally:
            self.in_flight -= 1

    def voices(self) -> list[Voice]:
        return list(self._voices)

    def on_voices_changed(self, callback) -> None:
        self.callbacks.append(callback)

    def select_voice(self, voice: Voice | None) -> None:
        self.selected.append(voice)

    def close(self) -> None:
        self.closed = True

    def load_voices(self, voices: list[Voice]) -> None:
        self._voices = voices
        for callback in self.callbacks:
            callback()


async def _settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


def test_burst_of_fragments_collapses_into_one_utterance() -> None:
    async def _run() -> list[str]:
        synth = RecordingSynthesizer()
        queue = UtteranceQueue(synth)
        for fragment in ["Hello", "there,", "friend."]:
            queue.add_text(fragment)
        await queue.wait_idle()
        return synth.spoken

    assert asyncio.run(_run()) == ["Hello there, friend."]


def test_fragments_arriving_while_speaking_form_the_next_batch() -> None:
    async def _run() -> tuple[list[str], int, tuple[str, ...]]:
        synth = RecordingSynthesizer()
        synth.gate.clear()
        queue = UtteranceQueue(synth)

        queue.add_text("One")
        await _settle()
        assert synth.attempts == ["One"]
        assert queue.speaking is True

        queue.add_text("two")
        queue.add_text("three")
        waiting = queue.pending
        assert synth.attempts == ["One"]

        synth.gate.set()
        await queue.wait_idle()
        return synth.spoken, synth.max_in_flight, waiting

    spoken, max_in_flight, waiting = asyncio.run(_run())
    assert waiting == ("two", "three")
    assert spoken == ["One", "two three"]
    assert max_in_flight == 1


def test_slow_trickle_speaks_one_utterance_per_fragment() -> None:
    async def _run() -> list[str]:
        synth = RecordingSynthesizer()
        queue = UtteranceQueue(synth)
        for fragment in ["alpha", "beta", "gamma"]:
            queue.add_text(fragment)
            await queue.wait_idle()
        return synth.spoken

    assert asyncio.run(_run()) == ["alpha", "beta", "gamma"]


def test_interleaved_producer_never_overlaps_or_loses_fragments() -> None:
    fragments = [f"w{i}" for i in range(40)]

    async def _run() -> tuple[list[str], int]:
        synth = RecordingSynthesizer()
        queue = UtteranceQueue(synth)
        for i, fragment in enumerate(fragments):
            queue.add_text(fragment)
            for _ in range(i % 4):
                await asyncio.sleep(0)
        await queue.wait_idle()
        return synth.spoken, synth.max_in_flight

    spoken, max_in_flight = asyncio.run(_run())
    assert max_in_flight == 1
    assert " ".join(spoken).split() == fragments
    assert 1 < len(spoken) < len(fragments)


def test_synthesis_failure_is_logged_and_queue_continues(caplog) -> None:
    async def _run() -> RecordingSynthesizer:
        synth = RecordingSynthesizer(fail_on="broken")
        queue = UtteranceQueue(synth)
        queue.add_text("broken")
        await queue.wait_idle()
        queue.add_text("fine")
        await queue.wait_idle()
        return synth

    with caplog.at_level(logging.ERROR, logger="baxter.voice.output"):
        synth = asyncio.run(_run())

    assert synth.attempts == ["broken", "fine"]
    assert synth.spoken == ["fine"]
    assert any(record.getMessage() == "utterance_failed" for record in caplog.records)


def test_failure_keeps_fragments_queued_behind_it() -> None:
    async def _run() -> list[str]:
        synth = RecordingSynthesizer(fail_on="bad")
        synth.gate.clear()
        queue = UtteranceQueue(synth)
        queue.add_text("bad")
        await _settle()
        queue.add_text("after")
        synth.gate.set()
        await queue.wait_idle()
        return synth.spoken

    assert asyncio.run(_run()) == ["after"]


def test_empty_and_non_text_input_is_ignored() -> None:
    synth = RecordingSynthesizer()
    queue = UtteranceQueue(synth)

    queue.add_text("")
    queue.add_text(None)
    queue.add_text(42)

    assert queue.pending == ()
    assert queue.speaking is False
    assert synth.attempts == []


def test_disabled_output_drops_text() -> None:
    async def _run() -> tuple[tuple[str, ...], list[str]]:
        synth = RecordingSynthesizer()
        queue = UtteranceQueue(synth, VoiceOutputConfig(enabled=False))
        queue.add_text("quiet")
        await queue.wait_idle()
        return queue.pending, synth.attempts

    assert asyncio.run(_run()) == ((), [])


def test_close_waits_for_speech_and_releases_engine() -> None:
    async def _run() -> RecordingSynthesizer:
        synth = RecordingSynthesizer()
        queue = UtteranceQueue(synth)
        queue.add_text("last words")
        await queue.close()
        return synth

    synth = asyncio.run(_run())
    assert synth.spoken == ["last words"]
    assert synth.closed is True


def test_preferred_voice_selected_once_voices_load() -> None:
    synth = RecordingSynthesizer()
    queue = UtteranceQueue(synth, VoiceOutputConfig(preferred_voice="samantha"))
    assert queue.voice is None

    samantha = Voice(id="com.apple.voice.Samantha", name="Samantha")
    synth.load_voices([Voice(id="v1", name="Daniel"), samantha])
    assert queue.voice == samantha
    assert synth.selected == [samantha]

    synth.load_voices([Voice(id="v2", name="Samantha Premium")])
    assert queue.voice == samantha
    assert synth.selected == [samantha]


def test_engine_default_kept_without_matching_voice() -> None:
    synth = RecordingSynthesizer(voices=[Voice(id="v1", name="Daniel")])
    queue = UtteranceQueue(synth, VoiceOutputConfig(preferred_voice="Karen"))

    assert queue.voice is None
    assert synth.selected == []


def test_match_voice_prefers_exact_name() -> None:
    voices = [Voice(id="a", name="Google US English Female"), Voice(id="b", name="Google US English")]

    assert match_voice(voices, "google us english") == voices[1]
    assert match_voice(voices, "female") == voices[0]
    assert match_voice(voices, None) is None
