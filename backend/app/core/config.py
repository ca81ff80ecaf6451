from functools import lru_cache
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    openai_api_key: str = ""
    tts_model: str = "tts-1"
    tts_voice: str = "alloy"
    sampling_rate_out: int = 24_000
    timer_sound_path: str = "frontend/static/timer-sound.mp3"

    tick_interval_seconds: float = 1.0
    auto_advance_delay_seconds: float = 1.0

    # Initial cooking settings for new sessions
    voice_enabled: bool = False
    show_tips: bool = True
    auto_advance: bool = False
    sound_enabled: bool = True
    compact_mode: bool = False

    model_config = {
        "env_file": ".env",
        "env_prefix": "",
        "extra": "ignore",
    }

@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
