"""Text-to-speech backend powered by ``pyttsx3``."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from .interfaces import SpeechSynthesizer, Voice

logger = logging.getLogger(__name__)


def _voice_from_driver(raw: Any) -> Voice:
    languages = []
    for language in getattr(raw, "languages", None) or ():
        if isinstance(language, bytes):
            language = language.decode("utf-8", errors="ignore")
        languages.append(str(language).strip("\x05 "))
    return Voice(id=str(raw.id), name=str(getattr(raw, "name", None) or raw.id), languages=tuple(languages))


class Pyttsx3SpeechSynthesizer(SpeechSynthesizer):
    """Speaker playback using a local pyttsx3 engine instance.

    pyttsx3 drivers expect to be used from the thread that created them, so the
    engine lives on a single dedicated worker thread and ``speak`` awaits it.
    """

    def __init__(self, *, rate: int | None = None, volume: float | None = None) -> None:
        try:
            import pyttsx3
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Voice TTS backend unavailable. Install with: pip install 'baxter-voice-chat[voice]'"
            ) from exc

        self._pyttsx3 = pyttsx3
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pyttsx3")
        self._callbacks: list[Callable[[], None]] = []
        self._engine: Any = None
        self._voices: list[Voice] = []
        self._executor.submit(self._init_engine, rate, volume).result()

    def _init_engine(self, rate: int | None, volume: float | None) -> None:
        self._engine = self._pyttsx3.init()
        if rate is not None:
            self._engine.setProperty("rate", rate)
        if volume is not None:
            clamped = max(0.0, min(1.0, volume))
            self._engine.setProperty("volume", clamped)
        self._voices = [_voice_from_driver(raw) for raw in self._engine.getProperty("voices") or ()]

    async def speak(self, text: str) -> None:
        text = text.strip()
        if not text:
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._executor, self._say, text)

    def _say(self, text: str) -> None:
        self._engine.say(text)
        self._engine.runAndWait()

    def voices(self) -> list[Voice]:
        return list(self._voices)

    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        # pyttsx3 enumerates voices while the engine initializes; the list never changes later.
        self._callbacks.append(callback)

    def select_voice(self, voice: Voice | None) -> None:
        if voice is None:
            return
        self._executor.submit(self._engine.setProperty, "voice", voice.id).result()

    def close(self) -> None:
        if self._engine is None:
            return
        try:
            self._executor.submit(self._engine.stop).result()
        except Exception:  # noqa: BLE001
            logger.exception("tts_engine_stop_failed")
        finally:
            self._engine = None
            self._executor.shutdown(wait=True)
