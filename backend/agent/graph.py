import logging
import time
from typing import Any, Callable

from agent.classifier import (
    Command,
    ConfirmPending,
    IntentClassifier,
    KnowledgeQuery,
    MessageIntent,
    TransactionRequest,
)
from agent.commands import CommandDispatcher
from agent.pipeline import TransactionPipeline
from agent.session_store import InMemorySessionStore
from agent.state import AgentResult, IncomingMessage
from config.settings import settings
from services.brian_service import BrianService
from services.starknet_service import StarknetService, resolve_chain_id

logger = logging.getLogger(__name__)


def route_by_intent(intent: MessageIntent) -> str:
    """
    Maps a classified message to the node that handles it.
    """
    intent_routes = {
        Command: 'command',
        ConfirmPending: 'confirm',
        TransactionRequest: 'transaction',
        KnowledgeQuery: 'knowledge',
    }

    route = intent_routes.get(type(intent), 'knowledge')
    logger.info(f"Routing to node: {route}")

    return route


class AgentGraph:
    """Routes one inbound message through commands, the transaction pipeline or the knowledge base."""

    def __init__(
        self,
        store: InMemorySessionStore,
        classifier: IntentClassifier,
        dispatcher: CommandDispatcher,
        pipeline: TransactionPipeline,
        brian_service: Any,
        clock: Callable[[], float] = time.monotonic
    ):
        self.store = store
        self.classifier = classifier
        self.dispatcher = dispatcher
        self.pipeline = pipeline
        self.brian_service = brian_service
        self.clock = clock

    async def ainvoke(self, message: IncomingMessage) -> AgentResult:
        session_key = message.session_key
        text = (message.text or '').strip()

        session = await self.store.get(session_key)
        intent = self.classifier.classify(session, text)
        route = route_by_intent(intent)

        if isinstance(intent, Command):
            result = await self.dispatcher.dispatch(intent, message)
            return {'route': route, **result}

        logger.info("Received message from session %s: %s", session_key, text)

        async with self.store.lock(session_key):
            await self.store.upsert(
                session_key,
                last_activity=self.clock(),
                is_group_context=message.is_group,
            )

        if isinstance(intent, ConfirmPending):
            result = await self.pipeline.confirm(session_key, intent.code)

            if result is not None:
                return {'route': route, **result}

            # Nothing left to confirm, e.g. a redelivered confirmation.
            route = 'knowledge'
            intent = KnowledgeQuery(text=text)

        if isinstance(intent, TransactionRequest):
            result = await self.pipeline.request_transaction(session_key, intent.text)
            return {'route': route, **result}

        answer = await self.brian_service.ask(intent.text)
        return {'route': route, 'response': answer}


def create_agent_graph() -> AgentGraph:
    """Create an agent graph wired to the configured services."""
    store = InMemorySessionStore(timeout_seconds=settings.SESSION_TIMEOUT_SECONDS)

    brian_service = BrianService(
        api_key=settings.BRIAN_API_KEY,
        base_url=settings.BRIAN_API_BASE_URL,
        knowledge_base=settings.BRIAN_KNOWLEDGE_BASE,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )

    starknet_service = StarknetService(
        rpc_url=settings.STARKNET_RPC_URL,
        account_class_hash=settings.ACCOUNT_CLASS_HASH,
        default_token_address=settings.ETH_TOKEN_ADDRESS,
        chain_id=resolve_chain_id(settings.STARKNET_SIGNING_CHAIN),
        confirmation_timeout=settings.TX_CONFIRMATION_TIMEOUT_SECONDS,
    )

    classifier = IntentClassifier(
        confirmation_keyword=settings.CONFIRMATION_KEYWORD,
        trigger_words=settings.TRANSACTION_TRIGGER_WORDS,
    )

    dispatcher = CommandDispatcher(
        store=store,
        starknet_service=starknet_service,
        confirmation_keyword=settings.CONFIRMATION_KEYWORD,
        mini_app_url=settings.MINI_APP_URL,
    )

    pipeline = TransactionPipeline(
        store=store,
        brian_service=brian_service,
        starknet_service=starknet_service,
        network_id=settings.STARKNET_CHAIN_ID,
        confirmation_keyword=settings.CONFIRMATION_KEYWORD,
        explorer_tx_url=settings.EXPLORER_TX_URL,
        intent_ttl_seconds=settings.SESSION_TIMEOUT_SECONDS,
    )

    return AgentGraph(
        store=store,
        classifier=classifier,
        dispatcher=dispatcher,
        pipeline=pipeline,
        brian_service=brian_service,
    )
