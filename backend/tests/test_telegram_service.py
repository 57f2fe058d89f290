import unittest
from unittest.mock import AsyncMock, MagicMock

from telegram.constants import ParseMode
from telegram.error import BadRequest, NetworkError

from agent.errors import TransportFailure
from services.telegram_service import TelegramSender


class TelegramSenderTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.bot = MagicMock()
        self.bot.send_message = AsyncMock()
        self.sender = TelegramSender(self.bot)

    async def test_send_uses_markdown(self) -> None:
        await self.sender.send(100, 'Balance: 5 ETH')

        self.bot.send_message.assert_awaited_once_with(
            chat_id=100,
            text='Balance: 5 ETH',
            parse_mode=ParseMode.MARKDOWN,
        )

    async def test_bad_markdown_falls_back_to_plain_text(self) -> None:
        self.bot.send_message.side_effect = [BadRequest("Can't parse entities"), None]

        await self.sender.send(100, 'unbalanced *markdown')

        self.assertEqual(2, self.bot.send_message.await_count)
        self.assertEqual({'chat_id': 100, 'text': 'unbalanced *markdown'}, self.bot.send_message.call_args.kwargs)

    async def test_network_error_raises_transport_failure(self) -> None:
        self.bot.send_message.side_effect = NetworkError('connection reset')

        with self.assertRaises(TransportFailure):
            await self.sender.send(100, 'hello')

    async def test_invalid_chat_id(self) -> None:
        with self.assertRaises(TransportFailure):
            await self.sender.send(0, 'hello')

        self.bot.send_message.assert_not_awaited()
