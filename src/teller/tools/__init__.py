"""Tool registry and tool implementations."""

from .account import BalanceTool, KYCTool, ProfileTool
from .auth import LoginTool, LogoutTool, VerifyOTPTool
from .base import AuthenticatedTool, Tool, ToolName
from .notify import DepositNotifier, NotifyTool, format_deposit_message
from .registry import ToolRegistry, create_registry
from .transfers import SendTool, WithdrawTool
from .wallet import WalletTool

__all__ = [
    "AuthenticatedTool",
    "BalanceTool",
    "DepositNotifier",
    "KYCTool",
    "LoginTool",
    "LogoutTool",
    "NotifyTool",
    "ProfileTool",
    "SendTool",
    "Tool",
    "ToolName",
    "ToolRegistry",
    "VerifyOTPTool",
    "WalletTool",
    "WithdrawTool",
    "create_registry",
    "format_deposit_message",
]
