import logging
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Optional

from agent import messages
from agent.errors import ExecutionFailure, ExtractionFailure, PreconditionFailure
from agent.session_store import InMemorySessionStore
from models.session import Session
from models.transaction import TransactionIntent

logger = logging.getLogger(__name__)


def require_wallet(session: Optional[Session]) -> Session:
    if session is None or not session.has_wallet:
        raise PreconditionFailure('No wallet connected')
    return session


class TransactionPipeline:
    """
    Preview, confirm and execute lifecycle of the single pending transaction
    held by each session.

    The session lock is only held while reading or writing the session, never
    across calls to the extraction service or the network.
    """

    def __init__(
        self,
        store: InMemorySessionStore,
        brian_service: Any,
        starknet_service: Any,
        network_id: str,
        confirmation_keyword: str,
        explorer_tx_url: str,
        intent_ttl_seconds: float = 30 * 60,
        clock: Callable[[], float] = time.monotonic
    ):
        self.store = store
        self.brian_service = brian_service
        self.starknet_service = starknet_service
        self.network_id = network_id
        self.confirmation_keyword = confirmation_keyword
        self.explorer_tx_url = explorer_tx_url
        self.intent_ttl_seconds = intent_ttl_seconds
        self.clock = clock

    def _is_stale(self, intent: TransactionIntent) -> bool:
        if intent.created_at is None:
            return True
        return self.clock() - intent.created_at > self.intent_ttl_seconds

    async def request_transaction(self, session_key: str, text: str) -> Dict[str, Any]:
        """
        Extract a transaction from free text and store it as the pending one.
        """
        logger.info("Pipeline: request_transaction for session %s", session_key)

        try:
            session = require_wallet(await self.store.get(session_key))
        except PreconditionFailure:
            logger.info("Session %s has no wallet connected", session_key)
            return {'error': 'precondition', 'response': messages.CONNECT_WALLET_FIRST}

        if session.executing:
            return {'error': 'precondition', 'response': messages.EXECUTION_IN_PROGRESS}

        try:
            intent = await self.brian_service.extract(text, session.wallet_address, self.network_id)
        except ExtractionFailure as e:
            logger.warning("Extraction failed for session %s: %s", session_key, e)
            return {'error': 'extraction', 'response': messages.EXTRACTION_FAILED}

        intent = replace(intent, created_at=self.clock())

        async with self.store.lock(session_key):
            try:
                current = require_wallet(await self.store.get(session_key))
            except PreconditionFailure:
                return {'error': 'precondition', 'response': messages.CONNECT_WALLET_FIRST}

            if current.executing:
                return {'error': 'precondition', 'response': messages.EXECUTION_IN_PROGRESS}

            replaced = current.pending_transaction is not None
            await self.store.upsert(session_key, pending_transaction=intent)

        if replaced:
            logger.info("Session %s: pending transaction replaced", session_key)

        preview = messages.render_preview(
            intent,
            self.confirmation_keyword,
            require_code=current.is_group_context,
        )

        if replaced:
            preview = f"{messages.PENDING_REPLACED}\n\n{preview}"

        return {'intent': intent, 'response': preview}

    async def confirm(self, session_key: str, code: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Execute the pending transaction.

        The intent is cleared before execution starts, so it runs at most once.
        Returns None when nothing is pending.
        """
        logger.info("Pipeline: confirm for session %s", session_key)

        async with self.store.lock(session_key):
            session = await self.store.get(session_key)

            if session is None or session.pending_transaction is None:
                return None

            intent = session.pending_transaction

            if code is None and session.is_group_context:
                return {
                    'error': 'precondition',
                    'response': messages.CONFIRMATION_CODE_REQUIRED.format(
                        keyword=self.confirmation_keyword,
                        code=intent.confirmation_code,
                    ),
                }

            if code is not None and code != intent.confirmation_code:
                logger.info("Session %s: confirmation code mismatch", session_key)
                return {'error': 'precondition', 'response': messages.CONFIRMATION_CODE_MISMATCH}

            await self.store.clear_pending(session_key)

            if self._is_stale(intent):
                logger.info("Session %s: pending transaction expired", session_key)
                return {'error': 'precondition', 'response': messages.PENDING_EXPIRED}

            if not session.has_wallet:
                return {'error': 'precondition', 'response': messages.CONNECT_WALLET_FIRST}

            credential = session.signing_credential
            await self.store.upsert(session_key, executing=True)

        try:
            transaction_hash = await self.starknet_service.execute(intent.steps, credential)
        except ExecutionFailure as e:
            logger.error("❌ Execution failed for session %s: %s", session_key, e)
            return {'error': 'execution', 'response': messages.EXECUTION_FAILED}
        finally:
            async with self.store.lock(session_key):
                if await self.store.get(session_key) is not None:
                    await self.store.upsert(session_key, executing=False)

        logger.info("✅ Session %s executed transaction %s", session_key, transaction_hash)

        return {
            'transaction_hash': transaction_hash,
            'response': messages.render_execution_result(transaction_hash, self.explorer_tx_url),
        }
