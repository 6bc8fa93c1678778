from baxter.config import DEFAULT_SYSTEM_PROMPT, Settings


def test_settings_read_prefixed_environment(monkeypatch) -> None:
    monkeypatch.setenv("BAXTER_MODEL", "qwen2.5")
    monkeypatch.setenv("BAXTER_PREFERRED_VOICE", "Samantha")
    monkeypatch.setenv("BAXTER_LISTEN_ENABLED", "false")

    configured = Settings(_env_file=None)

    assert configured.model == "qwen2.5"
    assert configured.preferred_voice == "Samantha"
    assert configured.listen_enabled is False


def test_default_system_prompt_names_the_assistant() -> None:
    configured = Settings(_env_file=None)

    assert configured.system_prompt == DEFAULT_SYSTEM_PROMPT
    assert "Baxter" in configured.system_prompt
