"""Runtime settings loaded from environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_HOME = Path.home() / ".teller"
DEFAULT_PLATFORM_URL = "https://income-api.copperx.io"
DEFAULT_MODEL = "llama-3.3-70b-versatile"


@dataclass
class Settings:
    """Process-wide settings.

    Attributes:
        telegram_token: Bot token for the Telegram transport.
        groq_api_key: API key for the language model service.
        model: Chat completion model used for both passes.
        platform_url: Base URL of the financial platform API.
        platform_api_key: Key used for unauthenticated platform calls (OTP flow).
        platform_timeout: Timeout in seconds for platform requests.
        sessions_dir: Directory holding one JSON file per session.
        log_dir: Directory for JSONL logs.
        max_transcript_messages: Retention bound for each conversation transcript.
    """

    telegram_token: str | None = None
    groq_api_key: str | None = None
    model: str = DEFAULT_MODEL
    platform_url: str = DEFAULT_PLATFORM_URL
    platform_api_key: str | None = None
    platform_timeout: float = 30.0
    sessions_dir: Path = field(default_factory=lambda: DEFAULT_HOME / "sessions")
    log_dir: Path = field(default_factory=lambda: DEFAULT_HOME / "logs")
    max_transcript_messages: int = 50

    def __post_init__(self) -> None:
        if self.max_transcript_messages < 2:
            raise ValueError("max_transcript_messages must be at least 2")
        if self.platform_timeout <= 0:
            raise ValueError("platform_timeout must be positive")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        sessions_dir = os.getenv("TELLER_SESSIONS_DIR")
        log_dir = os.getenv("TELLER_LOG_DIR")
        return cls(
            telegram_token=os.getenv("TELEGRAM_TOKEN"),
            groq_api_key=os.getenv("GROQ_API_KEY"),
            model=os.getenv("GROQ_MODEL", DEFAULT_MODEL),
            platform_url=os.getenv("PLATFORM_API_URL", DEFAULT_PLATFORM_URL),
            platform_api_key=os.getenv("PLATFORM_API_KEY"),
            platform_timeout=float(os.getenv("PLATFORM_TIMEOUT", "30")),
            sessions_dir=Path(sessions_dir) if sessions_dir else DEFAULT_HOME / "sessions",
            log_dir=Path(log_dir) if log_dir else DEFAULT_HOME / "logs",
            max_transcript_messages=int(os.getenv("MAX_TRANSCRIPT_MESSAGES", "50")),
        )
