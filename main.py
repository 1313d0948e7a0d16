"""Spoiler-free entertainment chat - Telegram Bot entry point."""
import logging
import sys
from urllib.parse import urlparse

from telegram import BotCommand
from telegram.ext import (
    Application,
    CommandHandler,
    MessageHandler,
    filters,
)

from config import settings
from errors import ConfigurationError
from bot.handlers import (
    cmd_start,
    cmd_help,
    cmd_reset,
    cmd_danger,
    cmd_status,
    handle_message,
    close_transport,
)

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=logging.INFO,
    stream=sys.stdout,
)
# httpx logs every request at INFO; the bot polls constantly.
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


async def _set_commands(app: Application) -> None:
    await app.bot.set_my_commands([
        BotCommand("reset",  "Forget this conversation"),
        BotCommand("danger", "Toggle danger mode (videogame spoilers)"),
        BotCommand("status", "Show model and current context"),
        BotCommand("help",   "Show all commands"),
    ])


async def _shutdown(app: Application) -> None:
    await close_transport()


def main() -> None:
    if not settings.telegram_bot_token:
        raise ConfigurationError("TELEGRAM_BOT_TOKEN not set in .env")

    logger.info("Relaying conversations to %s", settings.chat_endpoint)

    # Concurrent updates let /reset interrupt an answer that is still streaming.
    app = (
        Application.builder()
        .token(settings.telegram_bot_token)
        .concurrent_updates(True)
        .post_init(_set_commands)
        .post_shutdown(_shutdown)
        .build()
    )

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("reset", cmd_reset))
    app.add_handler(CommandHandler("danger", cmd_danger))
    app.add_handler(CommandHandler("status", cmd_status))
    app.add_handler(
        MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message)
    )

    if settings.webhook_url:
        url_path = urlparse(settings.webhook_url).path or "/bot"
        logger.info("Webhook mode: %s (listening on port %d)", settings.webhook_url, settings.webhook_port)
        app.run_webhook(
            listen=settings.webhook_listen,
            port=settings.webhook_port,
            url_path=url_path,
            secret_token=settings.webhook_secret or None,
            webhook_url=settings.webhook_url,
            drop_pending_updates=True,
        )
    else:
        logger.info("Polling mode (set WEBHOOK_URL in .env to switch to webhook).")
        app.run_polling(drop_pending_updates=True)


if __name__ == "__main__":
    main()
