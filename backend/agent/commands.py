import logging
import time
from typing import Any, Awaitable, Callable, Dict

from agent import messages
from agent.classifier import Command
from agent.errors import InvalidCredential, PreconditionFailure, QueryFailure
from agent.pipeline import require_wallet
from agent.session_store import InMemorySessionStore
from agent.state import IncomingMessage

logger = logging.getLogger(__name__)

CommandResult = Dict[str, Any]


class CommandDispatcher:
    """
    Handlers for slash commands. None of them touch the pending transaction.
    """

    def __init__(
        self,
        store: InMemorySessionStore,
        starknet_service: Any,
        confirmation_keyword: str,
        mini_app_url: str,
        clock: Callable[[], float] = time.monotonic
    ):
        self.store = store
        self.starknet_service = starknet_service
        self.confirmation_keyword = confirmation_keyword
        self.mini_app_url = mini_app_url
        self.clock = clock
        self.handlers: Dict[str, Callable[[IncomingMessage, str], Awaitable[CommandResult]]] = {
            'start': self.start,
            'help': self.help,
            'wallet': self.wallet,
            'balance': self.balance,
            'txn': self.txn,
        }

    async def dispatch(self, command: Command, message: IncomingMessage) -> CommandResult:
        handler = self.handlers.get(command.name)

        if handler is None:
            logger.info("Unknown command /%s from session %s", command.name, message.session_key)
            return {'error': 'invalid_command', 'response': messages.INVALID_COMMAND}

        logger.info("Command /%s from session %s", command.name, message.session_key)
        return await handler(message, command.args)

    async def start(self, message: IncomingMessage, args: str) -> CommandResult:
        return {'response': messages.WELCOME}

    async def help(self, message: IncomingMessage, args: str) -> CommandResult:
        return {'response': messages.HELP.format(keyword=self.confirmation_keyword)}

    async def txn(self, message: IncomingMessage, args: str) -> CommandResult:
        return {'response': messages.TXN_MINI_APP.format(url=self.mini_app_url)}

    async def wallet(self, message: IncomingMessage, args: str) -> CommandResult:
        """
        Connect a wallet: ``/wallet <private_key> [account_address]``.

        The key is validated by building an account before the session changes.
        """
        if message.is_group:
            return {'error': 'precondition', 'response': messages.WALLET_PRIVATE_CHAT_ONLY}

        parts = args.split()

        if not parts:
            return {'error': 'precondition', 'response': messages.WALLET_KEY_REQUIRED}

        private_key = parts[0]
        account_address = parts[1] if len(parts) > 1 else None

        try:
            credential = self.starknet_service.connect(private_key, account_address)
        except InvalidCredential as e:
            logger.info("Wallet connection rejected for session %s: %s", message.session_key, e)
            return {'error': 'invalid_credential', 'response': messages.WALLET_INVALID}

        async with self.store.lock(message.session_key):
            # evicts a stale session so the reconnect starts fresh
            await self.store.get(message.session_key)
            await self.store.upsert(
                message.session_key,
                wallet_address=credential.account_address,
                signing_credential=credential,
                last_activity=self.clock(),
                is_group_context=message.is_group,
            )

        return {
            'wallet_address': credential.account_address,
            'response': messages.WALLET_CONNECTED.format(address=credential.account_address),
        }

    async def balance(self, message: IncomingMessage, args: str) -> CommandResult:
        try:
            session = require_wallet(await self.store.get(message.session_key))
        except PreconditionFailure:
            logger.info("Balance requested without wallet by session %s", message.session_key)
            return {'error': 'precondition', 'response': messages.CONNECT_WALLET_FIRST}

        async with self.store.lock(message.session_key):
            await self.store.upsert(message.session_key, last_activity=self.clock())

        token_address = args.split()[0] if args.strip() else None

        try:
            amount = await self.starknet_service.get_balance(token_address, session.wallet_address)
        except QueryFailure as e:
            logger.warning("Balance query failed for session %s: %s", message.session_key, e)
            return {'error': 'query', 'response': messages.BALANCE_FAILED}

        symbol = 'tokens' if token_address else 'ETH'
        return {
            'balance': amount,
            'response': messages.BALANCE_RESULT.format(amount=amount, symbol=symbol),
        }
