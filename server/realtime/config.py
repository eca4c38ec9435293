from pathlib import Path
import os

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Look-alike glyphs (0/O, 1/I) are left out so codes survive being read aloud.
DEFAULT_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


class RelaySettings(BaseSettings):
    model_config = SettingsConfigDict(
        # Priority: environment variables > .env file
        env_prefix="RELAY_",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    CODE_LENGTH: int = Field(default=6, ge=4, le=32)
    CODE_ALPHABET: str = Field(default=DEFAULT_CODE_ALPHABET, min_length=2)
    CODE_MAX_ATTEMPTS: int = Field(default=100, ge=1)
    HISTORY_LIMIT: int = Field(default=10, ge=1)
    SESSION_TIMEOUT_SECONDS: float = Field(default=24 * 60 * 60, gt=0)
    SWEEP_INTERVAL_SECONDS: float = Field(default=60 * 60, gt=0)
    MAX_PAYLOAD_BYTES: int = Field(default=10_000_000, gt=0)
    JANITOR_ENABLED: bool = True
    DEBUG_ENDPOINTS: bool = False


def _load_dotenv() -> None:
    current_dir = Path(__file__).resolve().parent
    env_paths = [
        current_dir.parent.parent / ".env",  # repository root
        current_dir.parent / ".env",         # server/.env
        Path(os.getcwd()) / ".env",
    ]
    for env_path in env_paths:
        if env_path.exists():
            load_dotenv(env_path, override=False)
            return


def load_relay_settings() -> RelaySettings:
    _load_dotenv()
    return RelaySettings()
