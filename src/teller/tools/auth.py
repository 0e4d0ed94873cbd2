"""Login, OTP verification and logout tools."""

from typing import Any

from ..errors import AuthenticationRejected
from ..platform import PlatformClient
from ..session import SessionStore
from .base import AuthenticatedTool, Tool, ToolName
from .formatting import format_timestamp

EMAIL_PARAM = {"type": "string", "description": "The user's email address"}


class LoginTool(Tool):
    """Requests a one-time code; the returned sid is needed by verifyOTP."""

    failure_message = "Login initiation failed"

    def __init__(self, platform: PlatformClient) -> None:
        self.platform = platform

    @property
    def name(self) -> ToolName:
        return ToolName.LOGIN

    @property
    def description(self) -> str:
        return "Initiate login process by sending an OTP code to the user's email"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {"email": EMAIL_PARAM},
            "required": ["email"],
        }

    async def run(self, email: str) -> str:
        data = await self.platform.post(
            "/api/auth/email-otp/request", {"email": email.strip()}
        )
        return (
            "Login initiated successfully!\n"
            f"Email: {data['email']}\n"
            f"Session ID (SID): {data['sid']}\n\n"
            "Please check your email for the OTP code to complete the login process."
        )


class VerifyOTPTool(Tool):
    """Verifies the code and creates the session. The only session creator."""

    failure_message = "OTP verification failed"

    def __init__(self, platform: PlatformClient, sessions: SessionStore) -> None:
        self.platform = platform
        self.sessions = sessions

    @property
    def name(self) -> ToolName:
        return ToolName.VERIFY_OTP

    @property
    def description(self) -> str:
        return "Verify the OTP code and complete login"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "email": EMAIL_PARAM,
                "otp": {"type": "string", "description": "OTP code received by the user"},
                "sid": {
                    "type": "string",
                    "description": "Session ID received from login initiation",
                },
            },
            "required": ["email", "otp", "sid"],
        }

    async def run(self, email: str, otp: str, sid: str) -> str:
        data = await self.platform.post(
            "/api/auth/email-otp/authenticate",
            {"email": email.strip(), "otp": otp.strip(), "sid": sid.strip()},
        )
        user = data["user"]
        self.sessions.create(
            user["email"],
            {
                "accessToken": data["accessToken"],
                "accessTokenId": data.get("accessTokenId"),
                "expireAt": data.get("expireAt"),
                "user": user,
            },
        )
        return (
            "Login successful!\n"
            f"User: {user.get('firstName', '')} {user.get('lastName', '')}\n"
            f"Email: {user['email']}\n"
            f"Role: {user.get('role')}\n"
            f"Status: {user.get('status')}\n"
            f"Wallet Address: {user.get('walletAddress')}\n"
            f"Session Expires: {format_timestamp(data.get('expireAt'))}\n\n"
            "Welcome back! You can now access all platform features."
        )


class LogoutTool(AuthenticatedTool):
    """Ends the platform session and removes the local one."""

    failure_message = "Logout failed"

    @property
    def name(self) -> ToolName:
        return ToolName.LOGOUT

    @property
    def description(self) -> str:
        return "Logout the currently logged-in user"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {"email": EMAIL_PARAM},
            "required": ["email"],
        }

    async def run(self, email: str) -> str:
        session = self.require_session(email)
        try:
            await self.platform.post("/api/auth/logout", token=session.access_token)
        except AuthenticationRejected:
            # Token already invalid remotely; keep local state consistent.
            self.sessions.delete(email)
            return "Session expired. Cleared local session data."

        self.sessions.delete(email)
        return "Logged out successfully."
