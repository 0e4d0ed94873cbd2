"""Dialogue orchestrator: one model decision, at most one tool, one reply."""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from groq import AsyncGroq

from ..config import DEFAULT_MODEL
from ..conversation_logger import ConversationLogger, get_conversation_logger
from ..errors import InvalidToolArguments, NoConversationalResponse, NoModelResponse
from ..tools import ToolRegistry
from .prompt import build_conversational_messages, build_system_prompt

logger = logging.getLogger(__name__)


class TurnState(Enum):
    """Progress of a single user turn."""

    AWAITING_MODEL_DECISION = "awaiting_model_decision"
    TOOL_SELECTED = "tool_selected"
    TOOL_EXECUTED = "tool_executed"
    AWAITING_CONVERSATIONAL_REPLY = "awaiting_conversational_reply"
    DONE = "done"


@dataclass
class AgentConfig:
    """Configuration for the orchestrator."""

    model: str = DEFAULT_MODEL
    max_transcript_messages: int = 50


@dataclass
class TurnResult:
    """Outcome of handling one user message."""

    reply: str
    state: TurnState
    tool_name: str | None = None
    dropped_tool_calls: list[str] = field(default_factory=list)
    path: list[TurnState] = field(default_factory=list)


class Orchestrator:
    """Turns user messages into replies, invoking at most one tool per turn.

    Transcripts are kept in memory per identity key. A turn is committed to
    the transcript only once it has progressed far enough to keep the
    transcript well-formed: a tool request is always stored together with
    its result.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        config: AgentConfig | None = None,
        groq_client: AsyncGroq | None = None,
        conversation_logger: ConversationLogger | None = None,
    ) -> None:
        self.registry = registry
        self.config = config or AgentConfig()
        self.client = groq_client or AsyncGroq(api_key=os.getenv("GROQ_API_KEY"))
        self.conv_logger = conversation_logger or get_conversation_logger()
        self._transcripts: dict[str, list[dict[str, Any]]] = {}

    def get_transcript(self, identity_key: str) -> list[dict[str, Any]]:
        """Return a copy of the identity's transcript (empty if none)."""
        return list(self._transcripts.get(identity_key, []))

    def reset(self, identity_key: str) -> bool:
        """Forget the identity's conversation. Returns False if there was none."""
        return self._transcripts.pop(identity_key, None) is not None

    def _transcript_for(self, identity_key: str, chat_id: str | None) -> list[dict[str, Any]]:
        system_turn = {
            "role": "system",
            "content": build_system_prompt(self.registry.get_tools_schema(), chat_id),
        }
        transcript = self._transcripts.get(identity_key)
        if transcript is None:
            transcript = [system_turn]
            self._transcripts[identity_key] = transcript
        elif chat_id:
            transcript[0] = system_turn
        return transcript

    def _prune(self, transcript: list[dict[str, Any]]) -> None:
        """Drop the oldest exchanges until the transcript fits.

        An exchange starts at a user turn and runs to the next one, so tool
        requests stay next to their results. The system turn and the most
        recent exchange are always kept.
        """
        while len(transcript) > self.config.max_transcript_messages:
            next_user = next(
                (
                    i
                    for i in range(2, len(transcript))
                    if transcript[i]["role"] == "user"
                ),
                None,
            )
            if next_user is None:
                return
            del transcript[1:next_user]

    def _finish(
        self,
        identity_key: str,
        transcript: list[dict[str, Any]],
        turns: list[dict[str, Any]],
        result: TurnResult,
    ) -> TurnResult:
        result.path.append(result.state)
        transcript.extend(turns)
        self._prune(transcript)
        self.conv_logger.log_assistant_message(identity_key, result.reply)
        self.conv_logger.log_turn_end(identity_key, result.state.value, result.tool_name)
        return result

    async def handle_message(
        self,
        identity_key: str,
        message: str,
        chat_id: str | None = None,
    ) -> TurnResult:
        """Handle one user message.

        Args:
            identity_key: Whose conversation this message belongs to.
            message: The user's text.
            chat_id: Telegram chat, given to the model for notification setup.

        Returns:
            TurnResult with the reply and how far the turn progressed.

        Raises:
            NoModelResponse: The first model pass returned nothing usable.
            NoConversationalResponse: The second pass returned no content.
            ToolError: Tool lookup, argument validation or execution failed.
        """
        transcript = self._transcript_for(identity_key, chat_id)
        user_turn = {"role": "user", "content": message}
        messages = [*transcript, user_turn]
        tools = self.registry.get_tools_schema()
        path = [TurnState.AWAITING_MODEL_DECISION]

        self.conv_logger.log_user_message(identity_key, message)
        self.conv_logger.log_llm_request(
            identity_key,
            model=self.config.model,
            messages_count=len(messages),
            has_tools=bool(tools),
        )

        # Decide: answer directly or pick a tool
        response = await self.client.chat.completions.create(
            model=self.config.model,
            messages=messages,
            tools=tools or None,
            tool_choice="auto" if tools else None,
        )
        if not response.choices or response.choices[0].message is None:
            raise NoModelResponse()

        assistant_message = response.choices[0].message
        tool_calls = assistant_message.tool_calls or []

        self.conv_logger.log_llm_response(
            identity_key,
            has_content=bool(assistant_message.content),
            tool_calls_count=len(tool_calls),
            finish_reason=response.choices[0].finish_reason,
        )

        if not tool_calls:
            if not assistant_message.content:
                raise NoModelResponse()
            reply = assistant_message.content
            return self._finish(
                identity_key,
                transcript,
                [user_turn, {"role": "assistant", "content": reply}],
                TurnResult(reply=reply, state=TurnState.DONE, path=path),
            )

        path.append(TurnState.TOOL_SELECTED)

        tool_call, *extra_calls = tool_calls
        dropped = [tc.function.name for tc in extra_calls]
        if dropped:
            logger.warning(
                "Model requested %d tool calls; only %s will run, dropping %s",
                len(tool_calls),
                tool_call.function.name,
                ", ".join(dropped),
            )
            self.conv_logger.log_dropped_tool_calls(identity_key, dropped)

        tool_name = tool_call.function.name
        try:
            tool_args = json.loads(tool_call.function.arguments or "{}")
        except json.JSONDecodeError as e:
            raise InvalidToolArguments(tool_name, f"arguments are not valid JSON: {e}") from e
        if not isinstance(tool_args, dict):
            raise InvalidToolArguments(tool_name, "arguments must be a JSON object")

        self.conv_logger.log_tool_call(
            identity_key,
            tool_name=tool_name,
            tool_args=tool_args,
            tool_call_id=tool_call.id,
        )

        # Act
        positional_args = self.registry.bind_arguments(tool_name, tool_args)
        start_time = time.time()
        result = await self.registry.dispatch(tool_name, positional_args)
        duration_ms = (time.time() - start_time) * 1000
        path.append(TurnState.TOOL_EXECUTED)

        self.conv_logger.log_tool_result(
            identity_key,
            tool_name=tool_name,
            output=result,
            tool_call_id=tool_call.id,
            duration_ms=duration_ms,
        )

        # Only fields accepted by the Groq API, and only the call that ran
        tool_request = {
            "role": "assistant",
            "content": assistant_message.content,
            "tool_calls": [
                {
                    "id": tool_call.id,
                    "type": tool_call.type,
                    "function": {
                        "name": tool_name,
                        "arguments": tool_call.function.arguments,
                    },
                }
            ],
        }
        tool_result = {"role": "tool", "tool_call_id": tool_call.id, "content": result}
        transcript.extend([user_turn, tool_request, tool_result])

        # Phrase the result for the user
        path.append(TurnState.AWAITING_CONVERSATIONAL_REPLY)
        conversational_messages = build_conversational_messages(result)
        self.conv_logger.log_llm_request(
            identity_key,
            model=self.config.model,
            messages_count=len(conversational_messages),
            has_tools=False,
        )
        second = await self.client.chat.completions.create(
            model=self.config.model,
            messages=conversational_messages,
        )
        reply = None
        if second.choices and second.choices[0].message is not None:
            reply = second.choices[0].message.content
        if not reply:
            raise NoConversationalResponse()

        return self._finish(
            identity_key,
            transcript,
            [{"role": "assistant", "content": reply}],
            TurnResult(
                reply=reply,
                state=TurnState.DONE,
                tool_name=tool_name,
                dropped_tool_calls=dropped,
                path=path,
            ),
        )
