"""CLI startup entrypoint for Baxter."""

from __future__ import annotations

import asyncio

import typer
from rich import print
from rich.console import Console

from baxter.config import settings
from baxter.coordinator import StreamingCoordinator
from baxter.generation import OllamaGenerationStream
from baxter.session import VoiceChatSession
from baxter.telemetry import configure_logging
from baxter.transcript import RichTranscriptRenderer, Transcript
from baxter.voice.interfaces import RecognitionOptions, SpeechSynthesizer
from baxter.voice.output import UtteranceQueue, VoiceOutputConfig

app = typer.Typer(help="Baxter voice chat entrypoint")

_INSTALL_HINT = "Voice extras are missing. Install with: pip install 'baxter-voice-chat[voice]'"


@app.callback()
def _setup(log_level: str = typer.Option(None, help="Override BAXTER_LOG_LEVEL")) -> None:
    configure_logging(log_level or settings.log_level)


def _build_generation() -> OllamaGenerationStream:
    return OllamaGenerationStream(
        url=settings.ollama_url,
        model=settings.model,
        system_prompt=settings.system_prompt,
        timeout_seconds=settings.request_timeout_seconds,
    )


def _build_synthesizer() -> SpeechSynthesizer:
    try:
        from baxter.voice.tts_pyttsx3 import Pyttsx3SpeechSynthesizer
    except ImportError:
        print({"error": _INSTALL_HINT})
        raise typer.Exit(code=1)

    try:
        return Pyttsx3SpeechSynthesizer(rate=settings.speech_rate, volume=settings.speech_volume)
    except RuntimeError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)


def _build_engine_factory():
    try:
        import speech_recognition  # noqa: F401

        from baxter.voice.stt_speechrecognition import speech_recognition_engine_factory
    except ImportError:
        print({"error": _INSTALL_HINT})
        raise typer.Exit(code=1)

    return speech_recognition_engine_factory(
        phrase_time_limit=settings.phrase_time_limit,
        idle_timeout=settings.idle_timeout_seconds,
    )


def _build_queue(speak: bool) -> UtteranceQueue:
    synthesizer = _build_synthesizer() if speak else None
    return UtteranceQueue(
        synthesizer,
        VoiceOutputConfig(enabled=speak, preferred_voice=settings.preferred_voice),
    )


@app.command()
def start() -> None:
    """Show runtime configuration."""
    print(
        {
            "app_name": settings.app_name,
            "ollama_url": settings.ollama_url,
            "model": settings.model,
            "preferred_voice": settings.preferred_voice,
            "recognition_language": settings.recognition_language,
            "voice_enabled": settings.voice_enabled,
            "listen_enabled": settings.listen_enabled,
        }
    )


@app.command()
def voices() -> None:
    """List voices offered by the local speech synthesizer."""
    synthesizer = _build_synthesizer()
    try:
        for voice in synthesizer.voices():
            print({"id": voice.id, "name": voice.name, "languages": list(voice.languages)})
    finally:
        synthesizer.close()


@app.command()
def ask(
    prompt: str,
    speak: bool = typer.Option(None, "--speak/--no-speak", help="Speak the reply aloud"),
) -> None:
    """Stream one reply to PROMPT, printing and speaking it."""
    speak = settings.voice_enabled if speak is None else speak
    queue = _build_queue(speak)
    generation = _build_generation()
    renderer = RichTranscriptRenderer()
    session = VoiceChatSession(
        coordinator=StreamingCoordinator(generation),
        utterance_queue=queue,
        transcript=Transcript(renderer),
    )

    async def _run() -> str | None:
        try:
            return await session.submit(prompt)
        finally:
            renderer.finish()
            await session.close()

    if asyncio.run(_run()) is None:
        raise typer.Exit(code=1)


@app.command()
def chat(
    speak: bool = typer.Option(None, "--speak/--no-speak", help="Speak replies aloud"),
    listen: bool = typer.Option(None, "--listen/--no-listen", help="Fill the prompt from the microphone"),
) -> None:
    """Run an interactive chat; Enter submits typed text plus recognized words."""
    speak = settings.voice_enabled if speak is None else speak
    listen = settings.listen_enabled if listen is None else listen

    engine_factory = _build_engine_factory() if listen else None
    queue = _build_queue(speak)
    generation = _build_generation()
    console = Console()
    renderer = RichTranscriptRenderer(console)
    session = VoiceChatSession(
        coordinator=StreamingCoordinator(generation),
        utterance_queue=queue,
        transcript=Transcript(renderer),
        engine_factory=engine_factory,
        recognition_options=RecognitionOptions(language=settings.recognition_language),
        restart_delay_seconds=settings.restart_delay_seconds,
    )

    async def _run() -> None:
        session.start()
        renderer.finish()
        console.print("[dim]Type a message or speak, then press Enter. /quit exits.[/dim]")
        try:
            while True:
                line = await asyncio.to_thread(input)
                if line.strip() == "/quit":
                    break
                if not line.strip() and session.prompt_buffer.value:
                    console.print(f"[dim]heard: {session.prompt_buffer.value}[/dim]")
                await session.submit(line)
                renderer.finish()
        except (EOFError, KeyboardInterrupt):
            pass
        finally:
            await session.close()

    asyncio.run(_run())
    print({"chat": "stopped"})


if __name__ == "__main__":
    app()
