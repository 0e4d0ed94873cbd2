"""Wallet management tool."""

from typing import Any

from ..errors import InvalidToolArguments
from .base import AuthenticatedTool, ToolName
from .formatting import (
    format_amount,
    format_timestamp,
    format_token_balance,
    join_lines,
    mask_account,
    page_summary,
)

WALLET_ACTIONS = ["list", "balances", "setDefault", "deposit", "transactions"]


class WalletTool(AuthenticatedTool):
    """List wallets, show balances, set the default, deposit info and transfers."""

    failure_message = "Failed to execute wallet operation"

    @property
    def name(self) -> ToolName:
        return ToolName.WALLET

    @property
    def description(self) -> str:
        return "Manage wallets and view wallet information"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "email": {"type": "string", "description": "The user's email"},
                "action": {
                    "type": "string",
                    "description": "Action to perform (list, balances, setDefault, deposit, transactions)",
                    "enum": WALLET_ACTIONS,
                },
                "walletId": {
                    "type": "string",
                    "description": "Wallet ID (required for setDefault and deposit actions)",
                },
            },
            "required": ["email", "action"],
        }

    async def run(self, email: str, action: str, wallet_id: str | None = None) -> str:
        session = self.require_session(email)
        token = session.access_token

        if action not in WALLET_ACTIONS:
            raise InvalidToolArguments(self.name.value, f"unsupported wallet action: {action}")
        if action in ("setDefault", "deposit") and not wallet_id:
            raise InvalidToolArguments(self.name.value, f"walletId is required for {action}")

        if action == "list":
            return await self._list_wallets(token)
        if action == "balances":
            return await self._balances(token)
        if action == "setDefault":
            return await self._set_default(token, wallet_id)
        if action == "deposit":
            return await self._deposit_info(token, wallet_id)
        return await self._transfers(token)

    async def _list_wallets(self, token: str | None) -> str:
        wallets = (await self.platform.get("/api/wallets", token=token))["data"]
        if not wallets:
            return "No wallets found. Please add a wallet to get started."

        entries = [
            f"{'* ' if w.get('isDefault') else ''}{w['walletType'].upper()} ({w['network']})\n"
            f"Address: {w['walletAddress']}\n"
            f"Created: {format_timestamp(w.get('createdAt'))}\n"
            f"Default: {'Yes' if w.get('isDefault') else 'No'}"
            for w in wallets
        ]
        return "Your Wallets:\n\n" + "\n\n".join(entries)

    async def _balances(self, token: str | None) -> str:
        wallets = (await self.platform.get("/api/wallets/balances", token=token))["data"]
        if not wallets:
            return "No wallet balances found."

        entries = []
        for wallet in wallets:
            tokens = "\n\n".join(
                f"Token: {b['symbol']}\n"
                f"Balance: {format_token_balance(b['balance'], b['decimals'])}\n"
                f"Contract: {b['address']}"
                for b in wallet.get("balances", [])
            )
            default = " (Default)" if wallet.get("isDefault") else ""
            entries.append(f"{wallet['network']} Wallet{default}\n{tokens}")
        return "Your Wallet Balances:\n\n" + "\n\n".join(entries)

    async def _set_default(self, token: str | None, wallet_id: str | None) -> str:
        wallet = await self.platform.post(
            "/api/wallets/default", {"walletId": wallet_id}, token=token
        )
        return (
            "Successfully set as default wallet:\n"
            f"Type: {wallet['walletType'].upper()}\n"
            f"Network: {wallet['network']}\n"
            f"Address: {wallet['walletAddress']}\n"
            f"Updated: {format_timestamp(wallet.get('updatedAt'))}"
        )

    async def _deposit_info(self, token: str | None, wallet_id: str | None) -> str:
        info = await self.platform.get(f"/api/wallets/{wallet_id}/deposit", token=token)
        return (
            f"Deposit Information for Wallet {wallet_id}:\n"
            f"Network: {info['network']}\n"
            f"Address: {info['address']}\n"
            f"QR Code: {info.get('qrCode')}\n"
            f"Minimum Amount: {info.get('minAmount')} {info.get('currency')}\n"
            f"Maximum Amount: {info.get('maxAmount')} {info.get('currency')}\n"
            f"Note: {info.get('note') or 'No special instructions'}"
        )

    async def _transfers(self, token: str | None) -> str:
        payload = await self.platform.get("/api/transfers", token=token)
        transfers = payload["data"]
        if not transfers:
            return "No transactions found."

        entries = []
        for transfer in transfers:
            main = (transfer.get("transactions") or [{}])[0]
            status = transfer["status"].upper()
            if main.get("externalStatus"):
                status += f" ({main['externalStatus']})"
            entries.append(join_lines(
                f"[{format_timestamp(transfer['createdAt'])}] "
                f"{transfer['type'].upper()} - {transfer['status'].upper()}",
                f"Amount: {format_amount(transfer['amount'])} {transfer['currency']}",
                f"Subtotal: {format_amount(transfer.get('amountSubtotal') or 0)} {transfer['currency']}",
                f"Fee: {format_amount(transfer.get('totalFee') or 0)} {transfer.get('feeCurrency', '')} "
                f"({transfer.get('feePercentage', '0')}%)",
                f"From: {mask_account(transfer.get('sourceAccount'))}",
                f"To: {mask_account(transfer.get('destinationAccount'))}",
                f"Mode: {transfer.get('mode')}",
                f"Purpose: {transfer.get('purposeCode')}",
                f"Note: {transfer['note']}" if transfer.get("note") else "",
                f"Hash: {main['transactionHash']}" if main.get("transactionHash") else "",
                f"Status: {status}",
                f"ID: {transfer['id']}",
            ))

        return (
            "Transaction History:\n\n"
            + "\n\n".join(entries)
            + f"\n\n{page_summary(payload)}\n\n"
            "Note: For security, bank account numbers are partially masked."
        )
