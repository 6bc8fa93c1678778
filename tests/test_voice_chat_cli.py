from __future__ import annotations

import sys
import types

import pytest

from baxter.errors import GenerationError


class _FakeGeneration:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.closed = False

    async def generate(self, prompt: str):
        if self.fail:
            raise GenerationError("offline")
        yield "Hi "
        yield "there"

    async def aclose(self) -> None:
        self.closed = True


def _install_missing_backends(monkeypatch) -> None:
    fake_stt = types.ModuleType("baxter.voice.stt_speechrecognition")
    fake_tts = types.ModuleType("baxter.voice.tts_pyttsx3")

    class _MissingBackend:
        def __init__(self, *args, **kwargs) -> None:
            raise RuntimeError("Voice backend missing. Install with: pip install 'baxter-voice-chat[voice]'")

    def _factory(**kwargs):
        return _MissingBackend

    fake_stt.speech_recognition_engine_factory = _factory
    fake_tts.Pyttsx3SpeechSynthesizer = _MissingBackend

    monkeypatch.setitem(sys.modules, "baxter.voice.stt_speechrecognition", fake_stt)
    monkeypatch.setitem(sys.modules, "baxter.voice.tts_pyttsx3", fake_tts)


@pytest.mark.parametrize("args", [["chat"], ["chat", "--no-listen"], ["voices"], ["ask", "hi", "--speak"]])
def test_voice_commands_report_actionable_error_when_backends_missing(monkeypatch, args) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from baxter.main import app

    _install_missing_backends(monkeypatch)

    result = typer_testing.CliRunner().invoke(app, args, catch_exceptions=False)

    assert result.exit_code == 1
    assert "baxter-voice-chat[voice]" in result.stdout


def test_ask_without_speech_streams_reply(monkeypatch) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    import baxter.main as main

    generation = _FakeGeneration()
    monkeypatch.setattr(main, "_build_generation", lambda: generation)

    result = typer_testing.CliRunner().invoke(main.app, ["ask", "hello", "--no-speak"], catch_exceptions=False)

    assert result.exit_code == 0
    assert generation.closed is True


def test_ask_exits_nonzero_when_generation_fails(monkeypatch) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    import baxter.main as main

    monkeypatch.setattr(main, "_build_generation", lambda: _FakeGeneration(fail=True))

    result = typer_testing.CliRunner().invoke(main.app, ["ask", "hello", "--no-speak"], catch_exceptions=False)

    assert result.exit_code == 1


def test_chat_reports_missing_recognition_package(monkeypatch) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from baxter.main import app

    monkeypatch.setitem(sys.modules, "speech_recognition", None)

    result = typer_testing.CliRunner().invoke(app, ["chat", "--listen"], catch_exceptions=False)

    assert result.exit_code == 1
    assert "baxter-voice-chat[voice]" in result.stdout
