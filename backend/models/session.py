from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from models.transaction import TransactionIntent
from models.wallet import SigningCredential


class PipelineState(str, Enum):
    NO_PENDING = 'no_pending'
    PENDING_PREVIEW = 'pending_preview'
    EXECUTING = 'executing'


def build_session_key(chat_id: int, user_id: int) -> str:
    return f"{chat_id}_{user_id}"


@dataclass
class Session:
    session_key: str
    is_group_context: bool = False
    wallet_address: Optional[str] = None
    signing_credential: Optional[SigningCredential] = field(default=None, repr=False)
    pending_transaction: Optional[TransactionIntent] = None
    executing: bool = False
    last_activity: float = 0.0

    @property
    def has_wallet(self) -> bool:
        return bool(self.wallet_address) and self.signing_credential is not None

    @property
    def state(self) -> PipelineState:
        if self.executing:
            return PipelineState.EXECUTING

        if self.pending_transaction is not None:
            return PipelineState.PENDING_PREVIEW

        return PipelineState.NO_PENDING
