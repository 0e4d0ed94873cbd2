"""Tests for tool registry."""

import json

import pytest

from teller.errors import InvalidToolArguments, NotAuthenticated, UnknownTool
from teller.logging import get_logger
from teller.platform import PlatformClient
from teller.session import SessionStore
from teller.tools import DepositNotifier, Tool, ToolName, ToolRegistry, create_registry


class EchoTool(Tool):
    """Simple echo tool for testing."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    @property
    def name(self) -> ToolName:
        return ToolName.LOGIN

    @property
    def description(self) -> str:
        return "Echoes the input message"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "message": {"type": "string", "description": "Message to echo"},
                "times": {"type": "integer", "description": "Repetitions"},
                "style": {"type": "string", "enum": ["plain", "loud"]},
            },
            "required": ["message"],
        }

    async def run(self, message: str, times: int | None = None, style: str | None = None) -> str:
        self.calls.append((message, times, style))
        text = message * (times or 1)
        return text.upper() if style == "loud" else text


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def echo_tool() -> EchoTool:
    return EchoTool()


def test_register_tool(registry: ToolRegistry, echo_tool: EchoTool) -> None:
    registry.register(echo_tool)
    assert "login" in registry.list_tools()


def test_register_duplicate_raises(registry: ToolRegistry, echo_tool: EchoTool) -> None:
    registry.register(echo_tool)
    with pytest.raises(ValueError, match="already registered"):
        registry.register(echo_tool)


def test_get_tool(registry: ToolRegistry, echo_tool: EchoTool) -> None:
    registry.register(echo_tool)
    assert registry.get("login") is echo_tool


def test_get_unknown_tool(registry: ToolRegistry) -> None:
    assert registry.get("unknown") is None
    assert registry.get("balance") is None


def test_get_tools_schema(registry: ToolRegistry, echo_tool: EchoTool) -> None:
    registry.register(echo_tool)
    schemas = registry.get_tools_schema()
    assert len(schemas) == 1
    assert schemas[0]["type"] == "function"
    assert schemas[0]["function"]["name"] == "login"
    assert schemas[0]["function"]["parameters"]["required"] == ["message"]


def test_argument_order(echo_tool: EchoTool) -> None:
    assert echo_tool.argument_order == ["message", "times", "style"]
    assert echo_tool.required_arguments == ["message"]


@pytest.mark.asyncio
async def test_dispatch_positional(registry: ToolRegistry, echo_tool: EchoTool) -> None:
    registry.register(echo_tool)
    result = await registry.dispatch("login", ["hi", 2, "loud"])
    assert result == "HIHI"
    assert echo_tool.calls == [("hi", 2, "loud")]


@pytest.mark.asyncio
async def test_dispatch_unknown_tool(registry: ToolRegistry) -> None:
    with pytest.raises(UnknownTool, match="nonexistent"):
        await registry.dispatch("nonexistent", [])


@pytest.mark.asyncio
async def test_dispatch_arity(registry: ToolRegistry, echo_tool: EchoTool) -> None:
    registry.register(echo_tool)

    with pytest.raises(InvalidToolArguments, match="too many"):
        await registry.dispatch("login", ["a", 1, "plain", "extra"])
    with pytest.raises(InvalidToolArguments, match="missing"):
        await registry.dispatch("login", [])
    with pytest.raises(InvalidToolArguments, match="missing required arguments: message"):
        await registry.dispatch("login", [None, 2])

    assert echo_tool.calls == []


class TestBindArguments:
    def test_orders_and_fills_missing(self, registry: ToolRegistry, echo_tool: EchoTool) -> None:
        registry.register(echo_tool)
        args = registry.bind_arguments("login", {"style": "plain", "message": "x"})
        assert args == ["x", None, "plain"]

    def test_ignores_unknown_names(self, registry: ToolRegistry, echo_tool: EchoTool) -> None:
        registry.register(echo_tool)
        assert registry.bind_arguments("login", {"message": "x", "other": 1}) == ["x", None, None]

    def test_missing_required(self, registry: ToolRegistry, echo_tool: EchoTool) -> None:
        registry.register(echo_tool)
        with pytest.raises(InvalidToolArguments, match="message"):
            registry.bind_arguments("login", {"times": 2})

    def test_wrong_type(self, registry: ToolRegistry, echo_tool: EchoTool) -> None:
        registry.register(echo_tool)
        with pytest.raises(InvalidToolArguments, match="times"):
            registry.bind_arguments("login", {"message": "x", "times": "two"})

    def test_bool_is_not_integer(self, registry: ToolRegistry, echo_tool: EchoTool) -> None:
        registry.register(echo_tool)
        with pytest.raises(InvalidToolArguments):
            registry.bind_arguments("login", {"message": "x", "times": True})

    def test_enum(self, registry: ToolRegistry, echo_tool: EchoTool) -> None:
        registry.register(echo_tool)
        with pytest.raises(InvalidToolArguments, match="one of"):
            registry.bind_arguments("login", {"message": "x", "style": "whisper"})

    def test_unknown_tool(self, registry: ToolRegistry) -> None:
        with pytest.raises(UnknownTool):
            registry.bind_arguments("nope", {})


@pytest.mark.asyncio
async def test_dispatch_logs_outcome(registry: ToolRegistry, echo_tool: EchoTool) -> None:
    registry.register(echo_tool)
    await registry.dispatch("login", ["hi"])

    with open(get_logger().log_path) as f:
        entries = [json.loads(line) for line in f]

    dispatches = [e for e in entries if e["event"] == "tool_dispatch"]
    assert dispatches[-1]["tool_name"] == "login"
    assert dispatches[-1]["extra"]["success"] is True
    assert "duration_ms" in dispatches[-1]


class TestCreateRegistry:
    def test_every_tool_name_has_a_handler(
        self, platform: PlatformClient, sessions: SessionStore
    ) -> None:
        registry = create_registry(platform, sessions, DepositNotifier())

        assert sorted(registry.list_tools()) == sorted(name.value for name in ToolName)
        assert registry.missing_tools() == []

    def test_schemas_match_argument_order(
        self, platform: PlatformClient, sessions: SessionStore
    ) -> None:
        registry = create_registry(platform, sessions, DepositNotifier())

        assert registry.get("verifyOTP").argument_order == ["email", "otp", "sid"]
        assert registry.get("send").argument_order == [
            "email", "recipientId", "amount", "currency"
        ]
        assert registry.get("withdraw").argument_order == ["email", "amount", "currency", "method"]
        assert registry.get("kyc").argument_order == ["email", "nationality", "country"]
        assert registry.get("wallet").argument_order == ["email", "action", "walletId"]
        assert registry.get("notify").argument_order == ["email", "chatId"]

    def test_missing_handler_fails(self, monkeypatch: pytest.MonkeyPatch,
                                   platform: PlatformClient, sessions: SessionStore) -> None:
        original = ToolRegistry.register

        def skip_notify(self, tool):
            if tool.name is not ToolName.NOTIFY:
                original(self, tool)

        monkeypatch.setattr(ToolRegistry, "register", skip_notify)

        with pytest.raises(RuntimeError, match="notify"):
            create_registry(platform, sessions, DepositNotifier())

    @pytest.mark.asyncio
    async def test_dispatch_failure_is_logged_and_raised(
        self, fake_platform, platform: PlatformClient, sessions: SessionStore
    ) -> None:
        registry = create_registry(platform, sessions, DepositNotifier())

        with pytest.raises(NotAuthenticated):
            await registry.dispatch("balance", ["nobody@example.com", "balance"])

        with open(get_logger().log_path) as f:
            entries = [json.loads(line) for line in f]
        failure = [e for e in entries if e["event"] == "tool_dispatch"][-1]
        assert failure["extra"]["success"] is False
        assert failure["error"] == "NotAuthenticated"
        assert fake_platform.calls() == 0

    @pytest.mark.asyncio
    async def test_none_in_required_slot_rejected(
        self, fake_platform, platform: PlatformClient, sessions: SessionStore, logged_in: str
    ) -> None:
        registry = create_registry(platform, sessions, DepositNotifier())

        with pytest.raises(InvalidToolArguments, match="missing required arguments: type"):
            await registry.dispatch("balance", [logged_in, None])

        assert fake_platform.calls() == 0
