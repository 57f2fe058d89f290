from dataclasses import dataclass
from typing import Iterable, Optional, Union

from models.session import Session

COMMAND_MARKER = '/'


@dataclass(frozen=True)
class Command:
    name: str
    args: str = ''


@dataclass(frozen=True)
class ConfirmPending:
    code: Optional[str] = None


@dataclass(frozen=True)
class TransactionRequest:
    text: str


@dataclass(frozen=True)
class KnowledgeQuery:
    text: str


MessageIntent = Union[Command, ConfirmPending, TransactionRequest, KnowledgeQuery]


def parse_command(text: str) -> Command:
    """
    Split ``/name rest of text`` into a command name and its argument string.

    Telegram appends ``@botname`` to commands sent in groups; it is dropped.
    """
    name, _, args = text[len(COMMAND_MARKER):].partition(' ')
    name = name.split('@', 1)[0]
    return Command(name=name.lower(), args=args.strip())


class IntentClassifier:
    """
    Decides what an inbound text message asks for.

    Commands win over confirmations, and confirmations win over trigger
    words, so a confirmation is never routed to the knowledge path while a
    transaction is pending.
    """

    def __init__(self, confirmation_keyword: str, trigger_words: Iterable[str]):
        self.confirmation_keyword = confirmation_keyword.lower()
        self.trigger_words = tuple(word.lower() for word in trigger_words)

    def _confirmation_code(self, text: str) -> Optional[ConfirmPending]:
        parts = text.split()

        if not parts or parts[0].lower() != self.confirmation_keyword or len(parts) > 2:
            return None

        return ConfirmPending(code=parts[1].lower() if len(parts) == 2 else None)

    def classify(self, session: Optional[Session], text: str) -> MessageIntent:
        text = text.strip()

        if text.startswith(COMMAND_MARKER):
            return parse_command(text)

        if session is not None and session.pending_transaction is not None:
            confirmation = self._confirmation_code(text)
            if confirmation is not None:
                return confirmation

        lowered = text.lower()
        if any(word in lowered for word in self.trigger_words):
            return TransactionRequest(text=text)

        return KnowledgeQuery(text=text)
