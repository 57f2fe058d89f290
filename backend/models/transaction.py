import secrets
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union

# Stark field prime; every felt (addresses, keys, calldata) must be below it.
FIELD_PRIME = 2 ** 251 + 17 * 2 ** 192 + 1


def to_felt(value: Union[str, int]) -> int:
    if isinstance(value, bool):
        raise ValueError('booleans are not felts')

    if isinstance(value, int):
        felt = value
    else:
        text = str(value).strip().lower()
        felt = int(text, 16) if text.startswith('0x') else int(text)

    if not 0 <= felt < FIELD_PRIME:
        raise ValueError('value is outside the Stark field')

    return felt


def new_confirmation_code() -> str:
    return secrets.token_hex(3)


@dataclass(frozen=True)
class TransactionStep:
    contract_address: str
    entrypoint: str
    calldata: Tuple[str, ...] = ()

    @staticmethod
    def from_dict(data: dict) -> 'TransactionStep':
        """
        Build a step from a Brian step object, rejecting anything that could
        not be turned into a call.
        """
        address = data['contractAddress']
        entrypoint = data.get('entrypoint')
        calldata = data.get('calldata') or []

        if address is None or isinstance(address, (list, dict)):
            raise ValueError('contractAddress is missing')

        if not isinstance(entrypoint, str) or not entrypoint.strip():
            raise ValueError('entrypoint is missing')

        if not isinstance(calldata, (list, tuple)):
            raise ValueError('calldata must be a list')

        for value in (address, *calldata):
            if value is None or isinstance(value, (list, dict)):
                raise ValueError(f'{value!r} is not a felt')
            to_felt(value)

        return TransactionStep(
            contract_address=str(address).strip(),
            entrypoint=entrypoint.strip(),
            calldata=tuple(str(value) for value in calldata),
        )


@dataclass(frozen=True)
class TransactionIntent:
    """
    Structured result of extracting a transaction from free text.

    Only ``steps`` are executed; the remaining fields exist for the preview.
    """
    action: str
    steps: Tuple[TransactionStep, ...]
    from_asset: Optional[str] = None
    to_asset: Optional[str] = None
    from_amount: Optional[str] = None
    to_amount: Optional[str] = None
    receiver: Optional[str] = None
    estimated_cost_usd: Optional[str] = None
    description: Optional[str] = None
    solver: Optional[str] = None
    confirmation_code: str = field(default_factory=new_confirmation_code)
    created_at: Optional[float] = None

    def summary(self) -> dict:
        result: dict = {
            'action': self.action,
            'steps': len(self.steps),
        }

        if self.solver:
            result['solver'] = self.solver

        return result


def display_value(value: Any) -> Optional[str]:
    if value is None:
        return None

    text = str(value).strip()
    return text or None
