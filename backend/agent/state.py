from dataclasses import dataclass
from typing import Optional, TypedDict

from models.session import build_session_key
from models.transaction import TransactionIntent


@dataclass(frozen=True)
class IncomingMessage:
    chat_id: int
    user_id: int
    text: str
    is_group: bool = False

    @property
    def session_key(self) -> str:
        return build_session_key(self.chat_id, self.user_id)


class AgentResult(TypedDict, total=False):
    route: str
    response: str
    error: Optional[str]

    intent: TransactionIntent
    transaction_hash: str
    wallet_address: str
    balance: str
