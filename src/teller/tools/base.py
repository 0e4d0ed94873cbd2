"""Base tool interface."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from ..errors import BackendCallFailed, InvalidToolArguments, NotAuthenticated
from ..platform import PlatformClient
from ..session import Session, SessionStore


class ToolName(str, Enum):
    """Closed set of tools the model may request."""

    LOGIN = "login"
    VERIFY_OTP = "verifyOTP"
    LOGOUT = "logout"
    BALANCE = "balance"
    SEND = "send"
    WITHDRAW = "withdraw"
    PROFILE = "profile"
    KYC = "kyc"
    WALLET = "wallet"
    NOTIFY = "notify"


_TYPE_CHECKS: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
}


class Tool(ABC):
    """Base interface for all tools.

    Subclasses implement `run` with positional parameters in the same order
    as the `properties` of their schema. `execute` is the boundary that
    normalizes backend failures into `BackendCallFailed`.
    """

    failure_message = "Tool execution failed"

    @property
    @abstractmethod
    def name(self) -> ToolName:
        """Unique tool name."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Tool description for LLM."""
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for tool parameters."""
        ...

    @abstractmethod
    async def run(self, *args: Any) -> str:
        """Perform the operation and render its result."""
        ...

    @property
    def argument_order(self) -> list[str]:
        """Positional order the handler expects its arguments in."""
        return list(self.parameters.get("properties", {}).keys())

    @property
    def required_arguments(self) -> list[str]:
        return list(self.parameters.get("required", []))

    def failure_context(self, *args: Any) -> str:
        """Prefix for errors raised by a call with these arguments."""
        return self.failure_message

    async def execute(self, *args: Any) -> str:
        """Run the tool, re-raising backend failures with this tool's context."""
        try:
            return await self.run(*args)
        except BackendCallFailed as e:
            raise e.with_context(self.failure_context(*args)) from e
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise BackendCallFailed(
                self.failure_context(*args), f"Unexpected response from platform: {e}"
            ) from e

    def get_schema(self) -> dict[str, Any]:
        """Get tool schema for LLM function calling."""
        return {
            "type": "function",
            "function": {
                "name": self.name.value,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def validate_args(self, args: dict[str, Any]) -> tuple[bool, str | None]:
        """Validate arguments against schema. Returns (valid, error_message)."""
        properties = self.parameters.get("properties", {})

        for field in self.required_arguments:
            if args.get(field) is None:
                return False, f"Missing required argument: {field}"

        for key, value in args.items():
            if key not in properties or value is None:
                continue
            schema = properties[key]
            expected = _TYPE_CHECKS.get(schema.get("type", ""))
            if expected is not None:
                if isinstance(value, bool) and bool not in expected:
                    return False, f"Argument '{key}' must be a {schema['type']}"
                if not isinstance(value, expected):
                    return False, f"Argument '{key}' must be a {schema['type']}"
            allowed = schema.get("enum")
            if allowed and value not in allowed:
                return False, f"Argument '{key}' must be one of: {', '.join(allowed)}"

        return True, None

    def bind_arguments(self, args: dict[str, Any]) -> list[Any]:
        """Map named arguments onto the handler's positional order.

        Unknown names are ignored; missing optional arguments become None.
        """
        valid, error = self.validate_args(args)
        if not valid:
            raise InvalidToolArguments(self.name.value, error or "invalid arguments")
        return [args.get(name) for name in self.argument_order]


class AuthenticatedTool(Tool):
    """Tool that acts on behalf of a logged-in identity."""

    def __init__(self, platform: PlatformClient, sessions: SessionStore) -> None:
        self.platform = platform
        self.sessions = sessions

    def require_session(self, identity_key: str) -> Session:
        """Return the caller's session or raise NotAuthenticated."""
        session = self.sessions.get(identity_key)
        if session is None or not session.access_token:
            raise NotAuthenticated(identity_key)
        return session
