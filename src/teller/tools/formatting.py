"""Helpers for rendering platform payloads as text."""

from datetime import datetime
from typing import Any


def format_timestamp(value: str | None) -> str:
    """Render an ISO-8601 timestamp; unparseable values are returned as-is."""
    if not value:
        return "N/A"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def format_date(value: str | None) -> str:
    if not value:
        return "N/A"
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        return value


def format_amount(value: Any) -> str:
    """Render a numeric or numeric-string amount with two decimals."""
    return f"{float(value):.2f}"


def format_token_balance(balance: str, decimals: int) -> str:
    """Scale a raw integer token balance by its decimals."""
    return f"{float(balance) / (10 ** decimals):.{decimals}f}"


def mask_account(account: dict[str, Any] | None) -> str:
    """Describe an account without exposing full bank account numbers."""
    if not account:
        return "N/A"
    if account.get("type") == "web3_wallet":
        return f"{account.get('walletAddress')} ({account.get('network')})"
    number = account.get("bankAccountNumber")
    if number:
        return f"{account.get('bankName') or ''} ****{number[-4:]}".strip()
    return account.get("payeeDisplayName") or "N/A"


def page_summary(payload: dict[str, Any]) -> str:
    """Render the pagination footer of a paginated platform response."""
    limit = payload.get("limit") or 1
    count = payload.get("count") or 0
    pages = max(1, -(-count // limit))
    more = "More transactions available." if payload.get("hasMore") else "End of transaction history."
    return f"Page {payload.get('page', 1)} of {pages}\n{more}"


def join_lines(*lines: str) -> str:
    """Join lines, dropping empty optional ones."""
    return "\n".join(line for line in lines if line)
