import asyncio
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from starknet_py.net.models import StarknetChainId

from agent.errors import ExecutionFailure, InvalidCredential, QueryFailure
from models.transaction import FIELD_PRIME, TransactionStep, to_felt
from models.wallet import SigningCredential
from services.starknet_service import StarknetService, resolve_chain_id

ETH_ADDRESS = '0x049d36570d4e46f48e99674bd3fcc84644ddd6b96f7c741b1562b82f9e004dc7'

STEPS = (
    TransactionStep('0x049d', 'approve', ('0x0427', '10', '0')),
    TransactionStep('0x0427', 'multi_route_swap', ('0x049d', '10')),
)


class ToFeltTest(unittest.TestCase):
    def test_hex_and_decimal(self) -> None:
        self.assertEqual(255, to_felt('0xff'))
        self.assertEqual(255, to_felt('0XFF'))
        self.assertEqual(10, to_felt('10'))
        self.assertEqual(7, to_felt(7))

    def test_out_of_range_rejected(self) -> None:
        for value in (-1, FIELD_PRIME, hex(FIELD_PRIME)):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    to_felt(value)


class ResolveChainIdTest(unittest.TestCase):
    def test_known_chains(self) -> None:
        self.assertEqual(StarknetChainId.MAINNET, resolve_chain_id('MAINNET'))
        self.assertEqual(StarknetChainId.SEPOLIA, resolve_chain_id(' sepolia '))

    def test_unknown_chain_rejected(self) -> None:
        with self.assertRaises(ValueError):
            resolve_chain_id('goerli-1')


class StarknetServiceTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.client = MagicMock()
        self.client.wait_for_tx = AsyncMock()
        self.client.call_contract = AsyncMock()

        self.key_pair_patcher = patch("services.starknet_service.KeyPair")
        self.mock_key_pair = self.key_pair_patcher.start()
        self.mock_key_pair.from_private_key.return_value = SimpleNamespace(private_key=1, public_key=2)

        self.address_patcher = patch("services.starknet_service.compute_address", return_value=0x1234)
        self.mock_compute_address = self.address_patcher.start()

        self.account_patcher = patch("services.starknet_service.Account")
        self.mock_account_cls = self.account_patcher.start()
        self.account = MagicMock()
        self.account.address = 0x1234
        self.account.execute_v3 = AsyncMock(return_value=SimpleNamespace(transaction_hash=0xabc))
        self.mock_account_cls.return_value = self.account

        self.service = StarknetService(
            rpc_url='https://rpc.test',
            account_class_hash='0x061dac',
            default_token_address=ETH_ADDRESS,
            confirmation_timeout=0.05,
            client=self.client,
        )

    async def asyncTearDown(self) -> None:
        self.account_patcher.stop()
        self.address_patcher.stop()
        self.key_pair_patcher.stop()

    async def test_connect_derives_address(self) -> None:
        credential = self.service.connect('0x1')

        self.assertEqual('0x1234', credential.account_address)
        self.mock_compute_address.assert_called_once_with(
            salt=2,
            class_hash=0x061dac,
            constructor_calldata=[2],
        )
        self.assertNotIn('0x1', repr(credential).replace('0x1234', ''))

    async def test_connect_uses_explicit_address(self) -> None:
        self.account.address = 0x999

        credential = self.service.connect('0x1', '0x999')

        self.assertEqual('0x999', credential.account_address)
        self.mock_compute_address.assert_not_called()
        self.assertEqual(0x999, self.mock_account_cls.call_args.kwargs['address'])

    async def test_connect_rejects_invalid_key(self) -> None:
        for key in ('not-a-key', '0x0', hex(FIELD_PRIME)):
            with self.subTest(key=key):
                if key == '0x0':
                    self.mock_key_pair.from_private_key.return_value = SimpleNamespace(private_key=0, public_key=0)
                with self.assertRaises(InvalidCredential):
                    self.service.connect(key)

    async def test_execute_submits_single_multicall(self) -> None:
        credential = SigningCredential('0x1', '0x1234')

        tx_hash = await self.service.execute(STEPS, credential)

        self.assertEqual('0xabc', tx_hash)
        self.account.execute_v3.assert_awaited_once()
        calls = self.account.execute_v3.call_args.kwargs['calls']
        self.assertEqual(2, len(calls))
        self.assertEqual(0x049d, calls[0].to_addr)
        self.assertEqual([0x0427, 10, 0], calls[0].calldata)
        self.assertEqual(0x0427, calls[1].to_addr)
        self.client.wait_for_tx.assert_awaited_once_with(0xabc)

    async def test_execute_without_steps_fails(self) -> None:
        with self.assertRaises(ExecutionFailure):
            await self.service.execute((), SigningCredential('0x1', '0x1234'))

        self.account.execute_v3.assert_not_awaited()

    async def test_execute_malformed_step_submits_nothing(self) -> None:
        steps = STEPS + (TransactionStep('not-an-address', 'transfer'),)

        with self.assertRaises(ExecutionFailure):
            await self.service.execute(steps, SigningCredential('0x1', '0x1234'))

        self.account.execute_v3.assert_not_awaited()

    async def test_execute_submission_error(self) -> None:
        self.account.execute_v3.side_effect = RuntimeError('rejected by sequencer')

        with self.assertRaises(ExecutionFailure):
            await self.service.execute(STEPS, SigningCredential('0x1', '0x1234'))

        self.client.wait_for_tx.assert_not_awaited()

    async def test_execute_confirmation_error(self) -> None:
        self.client.wait_for_tx.side_effect = RuntimeError('reverted')

        with self.assertRaises(ExecutionFailure):
            await self.service.execute(STEPS, SigningCredential('0x1', '0x1234'))

    async def test_execute_confirmation_timeout(self) -> None:
        async def never_confirms(*args, **kwargs):
            await asyncio.sleep(10)

        self.client.wait_for_tx = never_confirms

        with self.assertRaises(ExecutionFailure):
            await self.service.execute(STEPS, SigningCredential('0x1', '0x1234'))

    async def test_get_balance_defaults_to_eth(self) -> None:
        self.client.call_contract.return_value = [5, 1]

        balance = await self.service.get_balance(None, '0x1234')

        self.assertEqual(str(5 + (1 << 128)), balance)
        call = self.client.call_contract.call_args.kwargs['call']
        self.assertEqual(int(ETH_ADDRESS, 16), call.to_addr)
        self.assertEqual([0x1234], call.calldata)

    async def test_get_balance_for_token(self) -> None:
        self.client.call_contract.return_value = [42]

        balance = await self.service.get_balance('0x0427', '0x1234')

        self.assertEqual('42', balance)
        self.assertEqual(0x0427, self.client.call_contract.call_args.kwargs['call'].to_addr)

    async def test_get_balance_failure(self) -> None:
        self.client.call_contract.side_effect = RuntimeError('contract not found')

        with self.assertRaises(QueryFailure):
            await self.service.get_balance('0x0427', '0x1234')

    async def test_get_balance_invalid_token_address(self) -> None:
        with self.assertRaises(QueryFailure):
            await self.service.get_balance('not-an-address', '0x1234')

        self.client.call_contract.assert_not_awaited()
