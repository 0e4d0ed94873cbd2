"""Telegram bot integration for Teller."""

import logging

import httpx
from groq import AsyncGroq
from telegram import BotCommand, Update
from telegram.constants import ChatAction, ParseMode
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from ..agent import AgentConfig, Orchestrator
from ..config import Settings
from ..conversation_logger import ConversationLogger
from ..errors import BackendCallFailed, NotAuthenticated
from ..logging import get_logger
from ..platform import PlatformClient
from ..session import SessionConfig, SessionStore
from ..tools import DepositNotifier, create_registry

logger = logging.getLogger(__name__)


WELCOME_MESSAGE = """
*Welcome to Teller!*

I'm your assistant for your financial platform account. Just tell me what you need in plain language.

With Teller you can:
- Check your balance and transaction history
- Send and withdraw funds
- Manage your wallets
- View your profile and KYC status
- Get notified about new deposits

*Commands:*
/balance - Check your balance
/send - Send funds
/withdraw - Withdraw funds
/wallet - Manage your wallets
/login - Login to your account
/logout - Logout from your account
/profile - View your account profile
/kyc - Check your KYC/KYB status
/reset - Clear our conversation
/help - Show this message

How can I help you today?
"""

# Commands forwarded to the orchestrator, with the acknowledgement sent first
COMMAND_ACKS = {
    "balance": "Fetching account balance...",
    "send": "Processing fund transfer...",
    "withdraw": "Processing withdrawal request...",
    "wallet": "Fetching wallet information...",
    "login": "Initializing login process...",
    "logout": "Processing logout request...",
    "profile": "Fetching profile information...",
    "kyc": "Checking KYC status...",
}

MENU_COMMANDS = [
    BotCommand("start", "Start the bot"),
    BotCommand("balance", "Check your balance"),
    BotCommand("send", "Send funds"),
    BotCommand("withdraw", "Withdraw funds"),
    BotCommand("wallet", "Manage your wallets"),
    BotCommand("login", "Login to your account"),
    BotCommand("logout", "Logout from your account"),
    BotCommand("profile", "View your account profile"),
    BotCommand("kyc", "Check your KYC/KYB status"),
    BotCommand("reset", "Clear the conversation"),
]

DIRECT_MESSAGE_REQUIRED = (
    "Please send this command as a direct message to the bot "
    "to ensure proper user identification."
)
LOGIN_PROMPT = "You're not logged in. Send /login or tell me your email to get started."
GENERIC_ERROR = "Sorry, there was an error processing your request."

MAX_MESSAGE_LENGTH = 4096


def truncate_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """Truncate message to fit Telegram limits."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 20] + "\n... [truncated]"


def error_reply(error: Exception) -> str:
    """User-facing text for an error raised while handling a message."""
    if isinstance(error, NotAuthenticated):
        return LOGIN_PROMPT
    if isinstance(error, BackendCallFailed):
        return error.render()
    return GENERIC_ERROR


def command_name(text: str) -> str:
    """'/send@teller_bot 10' -> 'send'."""
    return text.split()[0].lstrip("/").split("@")[0].lower() if text.strip() else ""


class TelegramBot:
    """Telegram bot for Teller.

    Builds the whole object graph once: session store, platform client,
    deposit notifier, tool registry and orchestrator.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        groq_client: AsyncGroq | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.token = self.settings.telegram_token
        if not self.token:
            raise ValueError("TELEGRAM_TOKEN not set")

        self.json_logger = get_logger()
        self.sessions = SessionStore(
            SessionConfig(sessions_dir=self.settings.sessions_dir),
            json_logger=self.json_logger,
        )
        self.platform = PlatformClient(
            self.settings.platform_url,
            api_key=self.settings.platform_api_key,
            timeout=self.settings.platform_timeout,
            http_client=http_client,
        )
        self.notifier = DepositNotifier(self.deliver)
        self.registry = create_registry(
            self.platform, self.sessions, self.notifier, self.json_logger
        )
        self.orchestrator = Orchestrator(
            self.registry,
            AgentConfig(
                model=self.settings.model,
                max_transcript_messages=self.settings.max_transcript_messages,
            ),
            groq_client=groq_client or AsyncGroq(api_key=self.settings.groq_api_key),
            conversation_logger=ConversationLogger(self.settings.log_dir / "conversations"),
        )
        self._app: Application | None = None

    def _get_chat_id(self, update: Update) -> str:
        """Get chat_id as string from update."""
        assert update.effective_chat is not None
        return str(update.effective_chat.id)

    def _get_user_id(self, update: Update) -> str | None:
        user = update.effective_user
        return str(user.id) if user is not None else None

    async def deliver(self, chat_id: str, text: str) -> None:
        """Push an unsolicited message (deposit notifications) to a chat."""
        if self._app is None:
            logger.warning("Dropping notification for chat %s: bot not running", chat_id)
            return
        await self._app.bot.send_message(chat_id=chat_id, text=truncate_message(text))

    async def _handle_start(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /start and /help."""
        assert update.message is not None
        user_id = self._get_user_id(update)
        if user_id is None:
            await update.message.reply_text(DIRECT_MESSAGE_REQUIRED)
            return

        self.json_logger.log("telegram_start", identity_key=user_id)

        await update.message.reply_text(
            WELCOME_MESSAGE,
            parse_mode=ParseMode.MARKDOWN,
        )

    async def _handle_reset(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /reset command."""
        assert update.message is not None
        user_id = self._get_user_id(update)
        if user_id is None:
            await update.message.reply_text(DIRECT_MESSAGE_REQUIRED)
            return

        self.orchestrator.reset(user_id)
        self.json_logger.log("telegram_reset", identity_key=user_id)

        await update.message.reply_text("Conversation cleared. Let's start fresh!")

    async def _handle_command(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Acknowledge a menu command, then let the orchestrator handle it."""
        assert update.message is not None
        assert update.message.text is not None
        text = update.message.text

        if self._get_user_id(update) is None:
            await update.message.reply_text(DIRECT_MESSAGE_REQUIRED)
            return

        ack = COMMAND_ACKS.get(command_name(text), "Processing your request...")
        await update.message.reply_text(ack)
        await self._respond(update, text)

    async def _handle_message(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle incoming messages."""
        assert update.message is not None
        assert update.message.text is not None
        await self._respond(update, update.message.text)

    async def _respond(self, update: Update, text: str) -> None:
        assert update.message is not None
        user_id = self._get_user_id(update)
        if user_id is None:
            await update.message.reply_text(DIRECT_MESSAGE_REQUIRED)
            return
        chat_id = self._get_chat_id(update)

        try:
            await update.message.chat.send_action(ChatAction.TYPING)
            result = await self.orchestrator.handle_message(user_id, text, chat_id=chat_id)
            self.json_logger.log(
                "telegram_reply",
                identity_key=user_id,
                tool_name=result.tool_name,
                state=result.state.value,
            )
            await update.message.reply_text(truncate_message(result.reply))

        except Exception as e:
            logger.exception("Error processing message")
            self.json_logger.log("telegram_error", identity_key=user_id, error=type(e).__name__)
            self.orchestrator.conv_logger.log_error(user_id, str(e), context=type(e).__name__)
            await update.message.reply_text(truncate_message(error_reply(e)))

    async def _post_init(self, application: Application) -> None:
        """Called after Application.initialize()."""
        await application.bot.set_my_commands(MENU_COMMANDS)

    async def _post_shutdown(self, application: Application) -> None:
        """Called after Application.shutdown()."""
        await self.platform.aclose()

    def build_app(self) -> Application:
        """Build the Telegram application."""
        self._app = (
            Application.builder()
            .token(self.token)
            .post_init(self._post_init)
            .post_shutdown(self._post_shutdown)
            .build()
        )

        self._app.add_handler(CommandHandler(["start", "help"], self._handle_start))
        self._app.add_handler(CommandHandler("reset", self._handle_reset))
        self._app.add_handler(CommandHandler(list(COMMAND_ACKS), self._handle_command))
        self._app.add_handler(
            MessageHandler(filters.TEXT & ~filters.COMMAND, self._handle_message)
        )

        return self._app

    def run(self) -> None:
        """Run the bot (blocking)."""
        app = self.build_app()

        logger.info("Starting Telegram bot...")
        app.run_polling()
