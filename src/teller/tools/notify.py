"""Deposit notification subscriptions."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..errors import BackendCallFailed
from ..platform import PlatformClient
from ..session import SessionStore
from .base import AuthenticatedTool, ToolName

logger = logging.getLogger(__name__)

DeliverFn = Callable[[str, str], Awaitable[None]]


def channel_for(organization_id: str) -> str:
    return f"private-org-{organization_id}"


def format_deposit_message(data: dict[str, Any]) -> str:
    """Render a deposit event for the chat."""
    lines = [
        "New Deposit Received",
        "",
        f"Amount: {data.get('amount')} {data.get('currency')}",
        f"Network: {data.get('network')}",
        f"Status: {data.get('status')}",
    ]
    if data.get("transactionHash"):
        lines.append(f"Transaction Hash: {data['transactionHash']}")
    return "\n".join(lines)


class DepositNotifier:
    """Routes deposit events on organization channels to chats.

    The realtime feed itself is external; it calls `handle_event` with the
    channel name and event payload.
    """

    def __init__(self, deliver: DeliverFn | None = None) -> None:
        self.deliver = deliver
        self._subscriptions: dict[str, str] = {}

    def subscribe(self, organization_id: str, chat_id: str) -> str:
        """Route the organization's deposits to chat_id. Replaces any previous chat."""
        channel = channel_for(organization_id)
        self._subscriptions[channel] = chat_id
        logger.info("Subscribed %s to deposit notifications", channel)
        return channel

    def unsubscribe(self, organization_id: str) -> bool:
        return self._subscriptions.pop(channel_for(organization_id), None) is not None

    def subscribed_chat(self, organization_id: str) -> str | None:
        return self._subscriptions.get(channel_for(organization_id))

    async def handle_event(self, channel: str, data: dict[str, Any]) -> bool:
        """Deliver a deposit event. False if nobody is subscribed to channel."""
        chat_id = self._subscriptions.get(channel)
        if chat_id is None or self.deliver is None:
            return False
        await self.deliver(chat_id, format_deposit_message(data))
        return True


class NotifyTool(AuthenticatedTool):
    failure_message = "Failed to setup notifications"

    def __init__(
        self,
        platform: PlatformClient,
        sessions: SessionStore,
        notifier: DepositNotifier,
    ) -> None:
        super().__init__(platform, sessions)
        self.notifier = notifier

    @property
    def name(self) -> ToolName:
        return ToolName.NOTIFY

    @property
    def description(self) -> str:
        return "Subscribe to deposit notifications"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "email": {"type": "string", "description": "The user's email"},
                "chatId": {
                    "type": "string",
                    "description": "The Telegram chat ID to send notifications to",
                },
            },
            "required": ["email", "chatId"],
        }

    async def run(self, email: str, chat_id: str) -> str:
        session = self.require_session(email)
        organization_id = session.organization_id
        if not organization_id:
            raise BackendCallFailed("Session profile has no organization")

        self.notifier.subscribe(organization_id, chat_id)
        return (
            "Successfully subscribed to deposit notifications. "
            "You will receive updates for new deposits."
        )
