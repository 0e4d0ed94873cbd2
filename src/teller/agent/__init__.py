"""Dialogue orchestration."""

from .orchestrator import AgentConfig, Orchestrator, TurnResult, TurnState
from .prompt import build_conversational_messages, build_system_prompt

__all__ = [
    "AgentConfig",
    "Orchestrator",
    "TurnResult",
    "TurnState",
    "build_conversational_messages",
    "build_system_prompt",
]
