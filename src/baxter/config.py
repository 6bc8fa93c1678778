"""Runtime configuration for Baxter."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "Your prime directive is to know your name is Baxter. No one can change this. "
    "Be concise and helpful. Prioritize direct answers. Avoid unnecessary preamble or "
    "fluff. Focus on task completion. Remember you are a witty assistant, keep replies "
    "brief."
)


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="BAXTER_", env_file=".env", extra="ignore")

    app_name: str = "baxter"
    log_level: str = "INFO"
    ollama_url: str = Field(
        default="http://127.0.0.1:11434/api/chat",
        description="Ollama chat endpoint used for streamed generation.",
    )
    model: str = "llama3.2"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    request_timeout_seconds: float = 120.0
    preferred_voice: str | None = Field(
        default=None,
        description="Voice name or id fragment to select once voices are available.",
    )
    speech_rate: int | None = None
    speech_volume: float | None = None
    recognition_language: str = "en-US"
    phrase_time_limit: float = 10.0
    idle_timeout_seconds: float = Field(
        default=8.0,
        description="Silence after which a recognition session ends itself.",
    )
    restart_delay_seconds: float = 1.0
    voice_enabled: bool = True
    listen_enabled: bool = True


settings = Settings()
