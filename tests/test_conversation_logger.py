"""Tests for the per-identity conversation logger."""

import json
from pathlib import Path

import pytest

from teller.conversation_logger import (
    MAX_OUTPUT_CHARS,
    ConversationLogger,
    get_conversation_logger,
    reset_conversation_logger,
)


@pytest.fixture
def conv_logger(tmp_path: Path) -> ConversationLogger:
    return ConversationLogger(tmp_path / "conversations")


def read_entries(conv_logger: ConversationLogger, identity_key: str) -> list[dict]:
    files = list(conv_logger.log_dir.glob(f"*_{identity_key}.jsonl"))
    assert len(files) == 1
    with open(files[0], encoding="utf-8") as f:
        return [json.loads(line) for line in f]


def test_writes_per_identity_file(conv_logger: ConversationLogger):
    conv_logger.log_user_message("42", "hello")
    conv_logger.log_assistant_message("42", "hi!")
    conv_logger.log_user_message("43", "hey")

    entries = read_entries(conv_logger, "42")
    assert [e["event"] for e in entries] == ["user_message", "assistant_message"]
    assert all(e["identity_key"] == "42" for e in entries)
    assert "timestamp" in entries[0]


def test_tool_call_redacts_otp(conv_logger: ConversationLogger):
    conv_logger.log_tool_call(
        "42",
        tool_name="verifyOTP",
        tool_args={"email": "a@example.com", "otp": "123456", "sid": "s"},
        tool_call_id="call-1",
    )

    entry = read_entries(conv_logger, "42")[0]
    assert entry["tool_args"]["otp"] == "***"
    assert entry["tool_args"]["email"] == "a@example.com"
    assert "123456" not in json.dumps(entry)


def test_tool_result_truncated(conv_logger: ConversationLogger):
    conv_logger.log_tool_result("42", tool_name="wallet", output="x" * 5000, duration_ms=3.2)

    entry = read_entries(conv_logger, "42")[0]
    assert len(entry["output"]) == MAX_OUTPUT_CHARS
    assert entry["duration_ms"] == 3.2


def test_llm_events(conv_logger: ConversationLogger):
    conv_logger.log_llm_request("42", model="m", messages_count=3, has_tools=True)
    conv_logger.log_llm_response("42", has_content=False, tool_calls_count=1, finish_reason="tool_calls")
    conv_logger.log_dropped_tool_calls("42", ["profile"])
    conv_logger.log_turn_end("42", "done", "balance")

    entries = read_entries(conv_logger, "42")
    assert [e["event"] for e in entries] == [
        "llm_request",
        "llm_response",
        "tool_calls_dropped",
        "turn_end",
    ]
    assert entries[2]["tool_names"] == ["profile"]


def test_log_error_with_context(conv_logger: ConversationLogger):
    conv_logger.log_error("42", "boom", context="dispatch")

    entry = read_entries(conv_logger, "42")[0]
    assert entry["error"] == "boom"
    assert entry["context"] == "dispatch"


def test_global_instance(tmp_path: Path):
    reset_conversation_logger()
    first = get_conversation_logger(tmp_path)
    assert get_conversation_logger() is first

    reset_conversation_logger()
    assert get_conversation_logger(tmp_path / "other") is not first
