"""Prompt builders for both model passes."""

from typing import Any

SYSTEM_PROMPT_BASE = """You are Teller, a helpful assistant for a financial platform. The user talks to you over Telegram.

You have access to the following tools:
{tools_description}

Rules:
- Every tool except login and verifyOTP needs the user's account email. If you don't know it yet, ask for it.
- To log in, call login with the email, then ask the user for the one-time code sent to their inbox and call verifyOTP with the email, the code and the SID returned by login.
- Call at most one tool per message.
- Never reveal access tokens, session IDs or internal identifiers.
- If a request is not about the user's account, answer directly without a tool."""

CHAT_CONTEXT = """
The user's Telegram chat ID is {chat_id}. Use it as chatId when the user asks for deposit notifications."""

CONVERSATIONAL_PROMPT = (
    "You are Teller, a helpful assistant (the user communicates with you via "
    "Telegram chat). Analyze the tool response and first give a clear, "
    "conversational summary of it in plain language, for example for profile "
    "info give name, wallet address, role and status. Hide sensitive data, "
    "especially IDs, and don't tell the user you did this. Then explain what "
    "the user should do next. Be friendly and concise. Don't use the words "
    "tool or tool response and don't introduce yourself."
)

TOOL_RESPONSE_PREFIX = "what next? here is the tool response: "


def build_system_prompt(tools_schema: list[dict[str, Any]], chat_id: str | None = None) -> str:
    """Build the first-pass system prompt.

    Args:
        tools_schema: List of tool schemas for the LLM.
        chat_id: Telegram chat of the conversation, if known.

    Returns:
        Complete system prompt string.
    """
    if not tools_schema:
        tools_desc = "No tools available."
    else:
        tools_desc = "\n".join(
            f"- {t['function']['name']}: {t['function']['description']}"
            for t in tools_schema
        )

    prompt = SYSTEM_PROMPT_BASE.format(tools_description=tools_desc)
    if chat_id:
        prompt += CHAT_CONTEXT.format(chat_id=chat_id)
    return prompt


def build_conversational_messages(tool_result: str) -> list[dict[str, str]]:
    """Messages for the second pass that phrases a tool result for the user."""
    return [
        {"role": "system", "content": CONVERSATIONAL_PROMPT},
        {"role": "user", "content": TOOL_RESPONSE_PREFIX + tool_result},
    ]
