"""Tool registry for managing and dispatching tools."""

import logging
import time
from typing import Any

from ..errors import BackendCallFailed, InvalidToolArguments, ToolError, UnknownTool
from ..logging import JSONLLogger, get_logger
from ..platform import PlatformClient
from ..session import SessionStore
from .account import BalanceTool, KYCTool, ProfileTool
from .auth import LoginTool, LogoutTool, VerifyOTPTool
from .base import Tool, ToolName
from .notify import DepositNotifier, NotifyTool
from .transfers import SendTool, WithdrawTool
from .wallet import WalletTool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry for available tools."""

    def __init__(self, json_logger: JSONLLogger | None = None) -> None:
        self._tools: dict[ToolName, Tool] = {}
        self.json_logger = json_logger or get_logger()

    def register(self, tool: Tool) -> None:
        """Register a tool."""
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name.value}' already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        """Get a tool by name."""
        try:
            return self._tools.get(ToolName(name))
        except ValueError:
            return None

    def list_tools(self) -> list[str]:
        """List all registered tool names."""
        return [name.value for name in self._tools]

    def missing_tools(self) -> list[ToolName]:
        """Tool names without a registered handler."""
        return [name for name in ToolName if name not in self._tools]

    def get_tools_schema(self) -> list[dict[str, Any]]:
        """Get schemas for all tools (for LLM function calling)."""
        return [tool.get_schema() for tool in self._tools.values()]

    def _require(self, tool_name: str) -> Tool:
        tool = self.get(tool_name)
        if tool is None:
            raise UnknownTool(tool_name)
        return tool

    def bind_arguments(self, tool_name: str, args: dict[str, Any]) -> list[Any]:
        """Validate named arguments and order them for dispatch."""
        return self._require(tool_name).bind_arguments(args)

    async def dispatch(self, tool_name: str, args: list[Any]) -> str:
        """Dispatch a tool call by name with positional arguments.

        Arguments must already be in the handler's order (see
        `Tool.argument_order`). Each call is attempted exactly once.
        """
        tool = self._require(tool_name)

        if len(args) > len(tool.argument_order):
            raise InvalidToolArguments(tool_name, "too many arguments")
        bound = dict(zip(tool.argument_order, args))
        missing = [name for name in tool.required_arguments if bound.get(name) is None]
        if missing:
            raise InvalidToolArguments(
                tool_name, f"missing required arguments: {', '.join(missing)}"
            )

        start_time = time.time()
        try:
            result = await tool.execute(*args)
        except ToolError as e:
            duration_ms = (time.time() - start_time) * 1000
            status = e.status_code if isinstance(e, BackendCallFailed) else None
            logger.info("Tool %s failed: %s", tool_name, type(e).__name__)
            self.json_logger.log_dispatch(
                tool_name,
                False,
                duration_ms=duration_ms,
                status_code=status,
                error=type(e).__name__,
            )
            raise

        self.json_logger.log_dispatch(
            tool_name, True, duration_ms=(time.time() - start_time) * 1000
        )
        return result


def create_registry(
    platform: PlatformClient,
    sessions: SessionStore,
    notifier: DepositNotifier,
    json_logger: JSONLLogger | None = None,
) -> ToolRegistry:
    """Build the registry with one handler per tool name."""
    registry = ToolRegistry(json_logger)
    registry.register(LoginTool(platform))
    registry.register(VerifyOTPTool(platform, sessions))
    registry.register(LogoutTool(platform, sessions))
    registry.register(BalanceTool(platform, sessions))
    registry.register(SendTool(platform, sessions))
    registry.register(WithdrawTool(platform, sessions))
    registry.register(ProfileTool(platform, sessions))
    registry.register(KYCTool(platform, sessions))
    registry.register(WalletTool(platform, sessions))
    registry.register(NotifyTool(platform, sessions, notifier))

    missing = registry.missing_tools()
    if missing:
        raise RuntimeError(f"No handler for tools: {', '.join(m.value for m in missing)}")
    return registry
