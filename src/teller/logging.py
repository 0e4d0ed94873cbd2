"""JSONL logging for observability."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass
class LogEntry:
    """A single log entry."""

    timestamp: str
    event: str
    identity_key: str | None = None
    session_id: str | None = None
    tool_name: str | None = None
    duration_ms: float | None = None
    status_code: int | None = None
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        data = asdict(self)
        return {k: v for k, v in data.items() if v is not None and v != {}}


class JSONLLogger:
    """Logger that writes structured events in JSONL format."""

    def __init__(
        self,
        log_dir: str | Path | None = None,
        filename: str = "events.jsonl",
        max_size_mb: float = 10.0,
    ) -> None:
        if log_dir is None:
            log_dir = Path.home() / ".teller" / "logs"
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.filename = filename
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)

    @property
    def log_path(self) -> Path:
        """Current log file path."""
        return self.log_dir / self.filename

    def _rotate_if_needed(self) -> None:
        if not self.log_path.exists():
            return

        if self.log_path.stat().st_size >= self.max_size_bytes:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
            rotated_name = f"{self.log_path.stem}_{timestamp}.jsonl"
            self.log_path.rename(self.log_dir / rotated_name)

    def _write(self, entry: LogEntry) -> None:
        self._rotate_if_needed()

        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict(), default=str) + "\n")

    def log(
        self,
        event: str,
        *,
        identity_key: str | None = None,
        session_id: str | None = None,
        tool_name: str | None = None,
        duration_ms: float | None = None,
        status_code: int | None = None,
        error: str | None = None,
        **extra: Any,
    ) -> None:
        """Log an event."""
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            identity_key=identity_key,
            session_id=session_id,
            tool_name=tool_name,
            duration_ms=duration_ms,
            status_code=status_code,
            error=error,
            extra=extra if extra else {},
        )
        self._write(entry)

    def log_session(self, event: str, identity_key: str, session_id: str | None = None) -> None:
        """Log a session lifecycle event (created, deleted, repaired)."""
        self.log(f"session_{event}", identity_key=identity_key, session_id=session_id)

    def log_dispatch(
        self,
        tool_name: str,
        success: bool,
        *,
        duration_ms: float | None = None,
        status_code: int | None = None,
        error: str | None = None,
    ) -> None:
        """Log the outcome of a tool dispatch."""
        self.log(
            "tool_dispatch",
            tool_name=tool_name,
            duration_ms=duration_ms,
            status_code=status_code,
            error=error if not success else None,
            success=success,
        )


# Global logger instance
_logger: JSONLLogger | None = None


def get_logger() -> JSONLLogger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = JSONLLogger()
    return _logger


def configure_logger(log_dir: str | Path | None = None, max_size_mb: float = 10.0) -> JSONLLogger:
    """Configure and return the global logger."""
    global _logger
    _logger = JSONLLogger(log_dir=log_dir, max_size_mb=max_size_mb)
    return _logger
