"""Error kinds raised by tools, the dispatcher and the orchestrator."""


class TellerError(Exception):
    """Base class for all Teller errors."""


class ToolError(TellerError):
    """Raised when a tool cannot produce a result."""


class NotAuthenticated(ToolError):
    """No session exists for the identity the tool was called for."""

    def __init__(self, identity_key: str) -> None:
        self.identity_key = identity_key
        super().__init__("No active session found. Please log in first.")


class UnknownTool(ToolError):
    """The model asked for a tool that is not registered."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class InvalidToolArguments(ToolError):
    """Arguments for a tool call failed schema validation."""

    def __init__(self, tool_name: str, reason: str) -> None:
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(f"Invalid arguments for {tool_name}: {reason}")


class BackendCallFailed(ToolError):
    """A call to the financial platform failed.

    Attributes:
        message: Human-readable description of the failure.
        detail: Optional extra detail reported by the platform.
        status_code: HTTP status, or None when no response was received.
    """

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message
        self.detail = detail
        self.status_code = status_code
        super().__init__(self.render())

    @property
    def status_label(self) -> str:
        return str(self.status_code) if self.status_code is not None else "Unknown"

    def render(self) -> str:
        text = f"{self.message} ({self.status_label})"
        if self.detail:
            text += f"\nDetails: {self.detail}"
        return text

    def with_context(self, context: str) -> "BackendCallFailed":
        """Return a copy of this error (same kind) prefixed with context."""
        return type(self)(f"{context}: {self.message}", self.detail, self.status_code)


class AuthenticationRejected(BackendCallFailed):
    """The platform rejected the access token (HTTP 401)."""


class NoModelResponse(TellerError):
    """The first model pass returned no usable choice."""

    def __init__(self) -> None:
        super().__init__("No response from the language model")


class NoConversationalResponse(TellerError):
    """The second model pass returned no content."""

    def __init__(self) -> None:
        super().__init__("No conversational response from the language model")
