import logging

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import BadRequest, TelegramError

from agent.errors import TransportFailure

logger = logging.getLogger(__name__)


class TelegramSender:
    """Outbound delivery of bot replies."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send(self, chat_id: int, text: str) -> None:
        if not chat_id:
            raise TransportFailure('Invalid chat ID')

        try:
            await self.bot.send_message(chat_id=chat_id, text=text, parse_mode=ParseMode.MARKDOWN)
        except BadRequest as e:
            # Usually unbalanced Markdown in third-party text; resend it verbatim.
            logger.warning("Markdown delivery to chat %s rejected (%s), retrying as plain text", chat_id, e)
            try:
                await self.bot.send_message(chat_id=chat_id, text=text)
            except TelegramError as retry_error:
                raise TransportFailure(f'sendMessage failed: {retry_error}') from retry_error
        except TelegramError as e:
            raise TransportFailure(f'sendMessage failed: {e}') from e
