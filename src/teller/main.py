"""Teller entry point."""

import logging
import os

from dotenv import find_dotenv, load_dotenv

from .config import Settings
from .logging import configure_logger


def main() -> None:
    """Main entry point."""
    load_dotenv(find_dotenv(usecwd=True))
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = Settings.from_env()
    configure_logger(settings.log_dir)

    from .telegram import TelegramBot

    bot = TelegramBot(settings)
    bot.run()


if __name__ == "__main__":
    main()
