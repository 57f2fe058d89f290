import logging
from typing import Any, Dict, Optional

import httpx

from agent.errors import ExtractionFailure
from agent.messages import KNOWLEDGE_UNAVAILABLE
from models.transaction import TransactionIntent, TransactionStep, display_value

logger = logging.getLogger(__name__)

UNKNOWN = 'Unknown'


def _token_symbol(token: Any) -> Optional[str]:
    if not token:
        return None

    if isinstance(token, dict):
        return display_value(token.get('symbol')) or UNKNOWN

    return UNKNOWN


def parse_transaction_result(payload: Any) -> TransactionIntent:
    """
    Convert a Brian agent response into a TransactionIntent.

    Only the first result is used. Missing steps are fatal; missing token
    metadata only degrades the preview fields to "Unknown".
    """
    results = payload.get('result') if isinstance(payload, dict) else None

    if not isinstance(results, list) or not results:
        raise ExtractionFailure('Brian returned no transaction results')

    first = results[0]
    data = first.get('data') if isinstance(first, dict) else None

    if not isinstance(data, dict):
        raise ExtractionFailure('Brian transaction result has no data')

    raw_steps = data.get('steps')

    if not isinstance(raw_steps, list) or not raw_steps:
        raise ExtractionFailure('Brian transaction result has no steps')

    try:
        steps = tuple(TransactionStep.from_dict(step) for step in raw_steps)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ExtractionFailure(f'Malformed transaction step: {e}') from e

    from_asset = _token_symbol(data.get('fromToken'))
    to_asset = _token_symbol(data.get('toToken'))

    return TransactionIntent(
        action=display_value(first.get('action')) or UNKNOWN,
        steps=steps,
        from_asset=from_asset,
        to_asset=to_asset,
        from_amount=display_value(data.get('fromAmount')) or (UNKNOWN if from_asset else None),
        to_amount=display_value(data.get('toAmount')) or (UNKNOWN if to_asset else None),
        receiver=display_value(data.get('receiver')),
        estimated_cost_usd=display_value(data.get('gasCostUSD')),
        description=display_value(data.get('description')),
        solver=display_value(first.get('solver')),
    )


class BrianService:
    """Client for the Brian agent API: knowledge answers and transaction extraction."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        knowledge_base: str = 'starknet_kb',
        timeout: float = 30.0
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.knowledge_base = knowledge_base
        self.timeout = timeout

    @property
    def knowledge_url(self) -> str:
        return f"{self.base_url}/knowledge"

    @property
    def transaction_url(self) -> str:
        return self.base_url

    def _headers(self) -> Dict[str, str]:
        return {
            'Content-Type': 'application/json',
            'X-Brian-Api-Key': self.api_key,
        }

    async def ask(self, prompt: str) -> str:
        """
        Answer a free-text question from the knowledge base.

        Never raises; failures produce the fixed apology text.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.knowledge_url,
                    headers=self._headers(),
                    json={'prompt': prompt, 'kb': self.knowledge_base},
                )
                response.raise_for_status()
                payload = response.json()

            answer = payload['result']['answer']

            if not isinstance(answer, str) or not answer.strip():
                raise ValueError('empty answer')

            logger.info("Knowledge answer received")
            return answer
        except Exception as e:
            logger.error("❌ Brian knowledge query failed: %s: %s", type(e).__name__, e)
            return KNOWLEDGE_UNAVAILABLE

    async def extract(self, prompt: str, address: str, network_id: str) -> TransactionIntent:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.transaction_url,
                    headers=self._headers(),
                    json={'prompt': prompt, 'address': address, 'chainId': network_id},
                )
        except httpx.HTTPError as e:
            raise ExtractionFailure(f'Brian transaction request failed: {type(e).__name__}') from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ExtractionFailure(
                f'Brian returned a non-JSON response (status {response.status_code})'
            ) from e

        if response.is_error or (isinstance(payload, dict) and payload.get('error')):
            raise ExtractionFailure(f'Brian returned an error (status {response.status_code})')

        intent = parse_transaction_result(payload)
        logger.info("✅ Transaction extracted: %s", intent.summary())
        return intent
