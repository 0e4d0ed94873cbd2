"""Conversation logger for detailed analysis.

Each identity gets its own JSONL file per day with user messages, model
requests and responses, tool calls and results, and final replies.
Credentials never reach these files: OTP codes are redacted from tool
arguments and tool outputs are truncated.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

MAX_OUTPUT_CHARS = 2000
REDACTED_ARGS = frozenset({"otp"})


def redact_args(tool_args: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of tool_args safe to write to disk."""
    return {
        key: "***" if key in REDACTED_ARGS else value
        for key, value in tool_args.items()
    }


class ConversationLogger:
    """Logs complete conversations for analysis."""

    def __init__(self, log_dir: Path | str | None = None) -> None:
        """Initialize the conversation logger.

        Args:
            log_dir: Directory to store logs. Defaults to ~/.teller/logs/conversations.
        """
        if log_dir is None:
            log_dir = Path.home() / ".teller" / "logs" / "conversations"
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def _get_log_file(self, identity_key: str) -> Path:
        date_str = datetime.now().strftime("%Y-%m-%d")
        return self.log_dir / f"{date_str}_{identity_key}.jsonl"

    def _write(self, identity_key: str, entry: dict[str, Any]) -> None:
        entry["timestamp"] = datetime.now(timezone.utc).isoformat()
        entry["identity_key"] = identity_key

        log_file = self._get_log_file(identity_key)
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")

    def log_user_message(self, identity_key: str, content: str) -> None:
        self._write(identity_key, {
            "event": "user_message",
            "role": "user",
            "content": content,
        })

    def log_assistant_message(self, identity_key: str, content: str) -> None:
        """Log the reply returned to the user."""
        self._write(identity_key, {
            "event": "assistant_message",
            "role": "assistant",
            "content": content,
        })

    def log_tool_call(
        self,
        identity_key: str,
        tool_name: str,
        tool_args: dict[str, Any],
        tool_call_id: str | None = None,
    ) -> None:
        """Log a tool call requested by the model."""
        self._write(identity_key, {
            "event": "tool_call",
            "tool_name": tool_name,
            "tool_args": redact_args(tool_args),
            "tool_call_id": tool_call_id,
        })

    def log_dropped_tool_calls(self, identity_key: str, tool_names: list[str]) -> None:
        self._write(identity_key, {
            "event": "tool_calls_dropped",
            "tool_names": tool_names,
        })

    def log_tool_result(
        self,
        identity_key: str,
        tool_name: str,
        output: str,
        tool_call_id: str | None = None,
        duration_ms: float | None = None,
    ) -> None:
        """Log the result of a tool execution."""
        entry: dict[str, Any] = {
            "event": "tool_result",
            "tool_name": tool_name,
            "output": output[:MAX_OUTPUT_CHARS] if output else "",
            "tool_call_id": tool_call_id,
        }
        if duration_ms is not None:
            entry["duration_ms"] = duration_ms

        self._write(identity_key, entry)

    def log_llm_request(
        self,
        identity_key: str,
        model: str,
        messages_count: int,
        has_tools: bool,
    ) -> None:
        """Log a model API request."""
        self._write(identity_key, {
            "event": "llm_request",
            "model": model,
            "messages_count": messages_count,
            "has_tools": has_tools,
        })

    def log_llm_response(
        self,
        identity_key: str,
        has_content: bool,
        tool_calls_count: int,
        finish_reason: str | None = None,
    ) -> None:
        """Log a model API response."""
        self._write(identity_key, {
            "event": "llm_response",
            "has_content": has_content,
            "tool_calls_count": tool_calls_count,
            "finish_reason": finish_reason,
        })

    def log_error(self, identity_key: str, error: str, context: str | None = None) -> None:
        entry = {
            "event": "error",
            "error": error,
        }
        if context:
            entry["context"] = context
        self._write(identity_key, entry)

    def log_turn_end(self, identity_key: str, state: str, tool_name: str | None) -> None:
        """Log when a turn finishes."""
        self._write(identity_key, {
            "event": "turn_end",
            "state": state,
            "tool_name": tool_name,
        })


# Global instance
_conversation_logger: ConversationLogger | None = None


def get_conversation_logger(log_dir: Path | str | None = None) -> ConversationLogger:
    """Get or create the global conversation logger."""
    global _conversation_logger
    if _conversation_logger is None:
        _conversation_logger = ConversationLogger(log_dir=log_dir)
    return _conversation_logger


def reset_conversation_logger() -> None:
    """Reset the global conversation logger (for testing)."""
    global _conversation_logger
    _conversation_logger = None
