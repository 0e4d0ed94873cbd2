"""Fund transfer and withdrawal tools."""

from typing import Any

from .base import AuthenticatedTool, ToolName
from .formatting import format_amount, format_timestamp

DEFAULT_CURRENCY = "USD"
DEFAULT_WITHDRAW_METHOD = "bank"


class SendTool(AuthenticatedTool):
    failure_message = "Failed to send funds"

    @property
    def name(self) -> ToolName:
        return ToolName.SEND

    @property
    def description(self) -> str:
        return "Send funds to another user"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "email": {"type": "string", "description": "The sender's email"},
                "recipientId": {"type": "string", "description": "The recipient's email"},
                "amount": {"type": "number", "description": "Amount to send"},
                "currency": {
                    "type": "string",
                    "description": "Currency code (default: USD)",
                },
            },
            "required": ["email", "recipientId", "amount"],
        }

    async def run(
        self,
        email: str,
        recipient_id: str,
        amount: float,
        currency: str | None = None,
    ) -> str:
        session = self.require_session(email)
        currency = currency or DEFAULT_CURRENCY
        transfer = await self.platform.post(
            "/api/transactions/send",
            {"recipientId": recipient_id, "amount": amount, "currency": currency},
            token=session.access_token,
        )
        return (
            "Transaction completed successfully!\n"
            f"Transaction ID: {transfer.get('id')}\n"
            f"Amount: {currency} {format_amount(amount)}\n"
            f"Recipient: {recipient_id}\n"
            f"Status: {transfer.get('status')}\n"
            f"Time: {format_timestamp(transfer.get('timestamp'))}"
        )


class WithdrawTool(AuthenticatedTool):
    failure_message = "Failed to submit withdrawal"

    @property
    def name(self) -> ToolName:
        return ToolName.WITHDRAW

    @property
    def description(self) -> str:
        return "Withdraw funds from account"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "email": {"type": "string", "description": "The user's email"},
                "amount": {"type": "number", "description": "Amount to withdraw"},
                "currency": {
                    "type": "string",
                    "description": "Currency code (default: USD)",
                },
                "method": {
                    "type": "string",
                    "description": "Withdrawal method (default: bank)",
                },
            },
            "required": ["email", "amount"],
        }

    async def run(
        self,
        email: str,
        amount: float,
        currency: str | None = None,
        method: str | None = None,
    ) -> str:
        session = self.require_session(email)
        currency = currency or DEFAULT_CURRENCY
        method = method or DEFAULT_WITHDRAW_METHOD
        withdrawal = await self.platform.post(
            "/api/transactions/withdraw",
            {"amount": amount, "currency": currency, "method": method},
            token=session.access_token,
        )
        return (
            "Withdrawal request submitted successfully!\n"
            f"Request ID: {withdrawal.get('id')}\n"
            f"Amount: {currency} {format_amount(amount)}\n"
            f"Method: {method}\n"
            f"Status: {withdrawal.get('status')}\n"
            f"Submitted: {format_timestamp(withdrawal.get('timestamp'))}\n"
            f"Estimated Completion: {format_timestamp(withdrawal.get('estimatedCompletion'))}\n\n"
            "Note: Withdrawals typically take 24-48 hours to process."
        )
