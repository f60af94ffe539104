"""
Application settings read from the environment
"""
import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings.

    Attributes:
        webhook_secret: Shared secret expected in the x-webhook-secret header, None disables the check
        poll_initial_delay: Seconds to wait before the first enhancement check
        poll_interval: Seconds between enhancement checks
        poll_max_attempts: Number of task list fetches before giving up on an enhancement
        api_base_url: Base url the client package talks to
        log_level: Root log level name
    """
    webhook_secret: Optional[str] = None
    poll_initial_delay: float = 3.0
    poll_interval: float = 3.0
    poll_max_attempts: int = 5
    api_base_url: str = "http://localhost:8000"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            webhook_secret=os.getenv("N8N_WEBHOOK_SECRET") or None,
            poll_initial_delay=_float_env("ENHANCEMENT_POLL_INITIAL_DELAY", 3.0),
            poll_interval=_float_env("ENHANCEMENT_POLL_INTERVAL", 3.0),
            poll_max_attempts=_int_env("ENHANCEMENT_POLL_MAX_ATTEMPTS", 5),
            api_base_url=os.getenv("TODO_API_BASE_URL", "http://localhost:8000"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton"""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
