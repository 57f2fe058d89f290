import logging
import sys

from telegram import Update
from telegram.constants import ChatType
from telegram.ext import Application, ChatMemberHandler, ContextTypes, MessageHandler, filters

from agent import messages
from agent.errors import TransportFailure
from agent.graph import AgentGraph, create_agent_graph
from agent.state import IncomingMessage
from config.settings import settings
from services.telegram_service import TelegramSender

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
# httpx logs every request URL at INFO, which includes the bot token.
logging.getLogger('httpx').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


agent_graph = None


def ensure_agent_graph() -> AgentGraph:
    global agent_graph

    if agent_graph is None:
        agent_graph = create_agent_graph()
        logger.info("Agent graph initialized")

    return agent_graph


async def deliver(sender: TelegramSender, chat_id: int, text: str) -> None:
    try:
        await sender.send(chat_id, text)
    except TransportFailure as e:
        logger.error("Failed to deliver reply to chat %s: %s", chat_id, e)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Handler for every incoming text message, commands included.
    """
    message = update.effective_message
    user = update.effective_user

    if message is None or user is None or not message.text:
        return

    incoming = IncomingMessage(
        chat_id=message.chat_id,
        user_id=user.id,
        text=message.text,
        is_group=message.chat.type in (ChatType.GROUP, ChatType.SUPERGROUP),
    )
    sender = TelegramSender(context.bot)

    try:
        result = await ensure_agent_graph().ainvoke(incoming)
        response_text = result.get('response') or messages.GENERIC_ERROR
    except Exception as e:
        logger.error("Error while handling message for session %s: %s", incoming.session_key, e, exc_info=True)
        response_text = messages.GENERIC_ERROR

    await deliver(sender, incoming.chat_id, response_text)
    logger.info("Response sent to session %s", incoming.session_key)


async def handle_chat_member(update: Update, context: ContextTypes.DEFAULT_TYPE):
    member_update = update.my_chat_member

    if member_update is not None:
        logger.info(
            "Membership in chat %s changed to %s",
            member_update.chat.id,
            member_update.new_chat_member.status,
        )


async def sweep_sessions(context: ContextTypes.DEFAULT_TYPE):
    await ensure_agent_graph().store.evict_expired()


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE):
    """
    Global error handler.
    """
    logger.error(f"Error while handling update: {context.error}", exc_info=context.error)

    if isinstance(update, Update) and update.effective_message:
        await deliver(TelegramSender(context.bot), update.effective_message.chat_id, messages.GENERIC_ERROR)


def build_application() -> Application:
    # Handlers for one session are serialized by the session store locks.
    application = (
        Application.builder()
        .token(settings.TELEGRAM_BOT_TOKEN)
        .concurrent_updates(True)
        .build()
    )

    application.add_handler(MessageHandler(filters.TEXT, handle_message))
    application.add_handler(ChatMemberHandler(handle_chat_member, ChatMemberHandler.MY_CHAT_MEMBER))
    application.add_error_handler(error_handler)

    if application.job_queue is not None:
        application.job_queue.run_repeating(
            sweep_sessions,
            interval=settings.SESSION_SWEEP_INTERVAL_SECONDS,
            first=settings.SESSION_SWEEP_INTERVAL_SECONDS,
        )
    else:
        logger.warning("Job queue unavailable; expired sessions are only evicted on access")

    return application


def main():
    """
    Entry point for running the bot.
    """
    if not settings.validate():
        logger.error("Not all required environment variables are set")
        sys.exit(1)

    logger.info("Starting the StarkFinder bot...")

    ensure_agent_graph()
    application = build_application()

    logger.info("Bot started and ready to work!")

    if settings.WEBHOOK_URL:
        application.run_webhook(
            listen=settings.WEBHOOK_LISTEN,
            port=settings.WEBHOOK_PORT,
            url_path='tg-bot',
            webhook_url=f"{settings.WEBHOOK_URL.rstrip('/')}/tg-bot",
            secret_token=settings.WEBHOOK_SECRET_TOKEN,
            allowed_updates=[Update.MESSAGE, Update.MY_CHAT_MEMBER],
        )
    else:
        application.run_polling(allowed_updates=[Update.MESSAGE, Update.MY_CHAT_MEMBER])


if __name__ == '__main__':
    main()
