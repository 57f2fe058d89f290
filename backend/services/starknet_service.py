import asyncio
import logging
from typing import List, Optional, Sequence

from starknet_py.hash.address import compute_address
from starknet_py.hash.selector import get_selector_from_name
from starknet_py.net.account.account import Account
from starknet_py.net.client_models import Call
from starknet_py.net.full_node_client import FullNodeClient
from starknet_py.net.models import StarknetChainId
from starknet_py.net.signer.stark_curve_signer import KeyPair

from agent.errors import ExecutionFailure, InvalidCredential, QueryFailure
from models.transaction import TransactionStep, to_felt
from models.wallet import SigningCredential

logger = logging.getLogger(__name__)


def to_call(step: TransactionStep) -> Call:
    return Call(
        to_addr=to_felt(step.contract_address),
        selector=get_selector_from_name(step.entrypoint),
        calldata=[to_felt(value) for value in step.calldata],
    )


def resolve_chain_id(name: str) -> StarknetChainId:
    try:
        return StarknetChainId[name.strip().upper()]
    except KeyError:
        raise ValueError(f"Unknown Starknet chain: {name}") from None


class StarknetService:
    """
    Account construction, multicall execution and ERC-20 balance reads.
    """

    def __init__(
        self,
        rpc_url: str,
        account_class_hash: str,
        default_token_address: str,
        chain_id: StarknetChainId = StarknetChainId.MAINNET,
        confirmation_timeout: float = 180.0,
        client: Optional[FullNodeClient] = None
    ):
        self.client = client or FullNodeClient(node_url=rpc_url)
        self.account_class_hash = to_felt(account_class_hash)
        self.default_token_address = default_token_address
        self.chain_id = chain_id
        self.confirmation_timeout = confirmation_timeout

    def derive_address(self, key_pair: KeyPair) -> int:
        return compute_address(
            salt=key_pair.public_key,
            class_hash=self.account_class_hash,
            constructor_calldata=[key_pair.public_key],
        )

    def build_account(self, private_key: str, account_address: Optional[str] = None) -> Account:
        try:
            key_pair = KeyPair.from_private_key(to_felt(private_key))
            if key_pair.private_key == 0:
                raise ValueError('private key must not be zero')

            address = to_felt(account_address) if account_address else self.derive_address(key_pair)

            return Account(
                address=address,
                client=self.client,
                key_pair=key_pair,
                chain=self.chain_id,
            )
        except (ValueError, TypeError) as e:
            raise InvalidCredential('Could not build an account from the supplied key') from e

    def connect(self, private_key: str, account_address: Optional[str] = None) -> SigningCredential:
        account = self.build_account(private_key, account_address)
        address = hex(account.address)
        logger.info("✅ Account constructed for %s", address)
        return SigningCredential(private_key=private_key, account_address=address)

    async def execute(self, steps: Sequence[TransactionStep], credential: SigningCredential) -> str:
        """
        Submit all steps as a single multicall and wait for the network to accept it.

        Returns the transaction hash as a hex string.
        """
        if not steps:
            raise ExecutionFailure('No transaction steps to execute')

        try:
            calls: List[Call] = [to_call(step) for step in steps]
        except (ValueError, TypeError) as e:
            raise ExecutionFailure('Malformed transaction step') from e

        with credential.unsealed() as private_key:
            try:
                account = self.build_account(private_key, credential.account_address)
            except InvalidCredential as e:
                raise ExecutionFailure('Signing account could not be constructed') from e

            try:
                logger.info("Submitting multicall with %d calls from %s", len(calls), credential.account_address)
                sent = await account.execute_v3(calls=calls, auto_estimate=True)
            except Exception as e:
                raise ExecutionFailure(f'Multicall submission failed: {type(e).__name__}') from e
            finally:
                del account

        transaction_hash = hex(sent.transaction_hash)

        try:
            await asyncio.wait_for(
                self.client.wait_for_tx(sent.transaction_hash),
                timeout=self.confirmation_timeout,
            )
        except asyncio.TimeoutError as e:
            raise ExecutionFailure(f'Timed out waiting for {transaction_hash}') from e
        except Exception as e:
            raise ExecutionFailure(
                f'Transaction {transaction_hash} was not accepted: {type(e).__name__}'
            ) from e

        logger.info("✅ Transaction confirmed: %s", transaction_hash)
        return transaction_hash

    async def get_balance(self, token_address: Optional[str], account_address: str) -> str:
        token = token_address or self.default_token_address

        try:
            call = Call(
                to_addr=to_felt(token),
                selector=get_selector_from_name('balanceOf'),
                calldata=[to_felt(account_address)],
            )
            result = await self.client.call_contract(call=call, block_number='latest')
        except Exception as e:
            raise QueryFailure(f'balanceOf call failed: {type(e).__name__}') from e

        if not result:
            raise QueryFailure('balanceOf returned no data')

        # Uint256 comes back as (low, high).
        low = result[0]
        high = result[1] if len(result) > 1 else 0
        return str(low + (high << 128))
