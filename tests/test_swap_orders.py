"""
Test suite for swap orders and swaps.
"""

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from rollup_wallet.core.errors import InvalidOrderError, SignerRequiredError
from rollup_wallet.core.types import EthSignerType, Order, Swap, token_ratio, wei_ratio
from rollup_wallet.core.wallet import Wallet
from rollup_wallet.signer.eth import EthAccountSigner

from conftest import RECIPIENT, TEST_ADDRESS, FakeL2Signer

COUNTERPARTY_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"


def recover(message: str, signature: str) -> str:
    return Account.recover_message(encode_defunct(text=message), signature=signature)


@pytest.fixture
def counterparty(mock_provider, test_config) -> Wallet:
    """Create a second wallet on the same network (address == RECIPIENT)."""
    eth_signer = EthAccountSigner(test_config)
    eth_signer.load_key(COUNTERPARTY_KEY)
    mock_provider.add_account(eth_signer.address, account_id=8, nonce=0)
    return Wallet.from_eth_signer(
        eth_signer,
        mock_provider,
        signer=FakeL2Signer("sync:" + "cd" * 20),
        eth_signer_type=EthSignerType(),
        config=test_config,
    )


async def sign_orders(wallet, counterparty, amounts=(10**18, 4000 * 10**6)):
    order_a = await wallet.sign_order(Order(
        token_sell="ETH",
        token_buy="USDC",
        ratio=token_ratio({"ETH": 1, "USDC": 4000}),
        amount=amounts[0],
    ))
    order_b = await counterparty.sign_order(Order(
        token_sell="USDC",
        token_buy="ETH",
        ratio=token_ratio({"USDC": 4000, "ETH": 1}),
        amount=amounts[1],
    ))
    return order_a, order_b


class TestOrders:
    """Tests for signing one side of a swap."""

    @pytest.mark.asyncio
    async def test_sign_order(self, wallet):
        order = await wallet.sign_order(Order(
            token_sell="ETH",
            token_buy="USDC",
            ratio=token_ratio({"ETH": 1, "USDC": 4000}),
            amount=10**18,
        ))

        assert order["type"] == "Order"
        assert order["accountId"] == 7
        assert order["recipient"] == TEST_ADDRESS
        assert order["nonce"] == 3
        assert order["tokenSell"] == 0
        assert order["tokenBuy"] == 2
        assert order["ratio"] == [10**18, 4000 * 10**6]

        message = (
            "Order for 1.0 ETH -> USDC\n"
            f"Ratio: {10**18}:{4000 * 10**6}\n"
            f"Address: {TEST_ADDRESS.lower()}\n"
            "Nonce: 3"
        )
        assert order["ethSignature"]["type"] == "EthereumSignature"
        assert recover(message, order["ethSignature"]["signature"]) == TEST_ADDRESS

    @pytest.mark.asyncio
    async def test_wei_ratio_is_used_verbatim(self, wallet):
        order = await wallet.sign_order(Order(
            token_sell="ETH",
            token_buy="USDC",
            ratio=wei_ratio({"ETH": 1, "USDC": 4000}),
            nonce=1,
        ))

        assert order["ratio"] == [1, 4000]
        assert order["amount"] == 0

    @pytest.mark.asyncio
    async def test_limit_order_message(self, wallet):
        order = await wallet.sign_order(Order(
            token_sell="ETH",
            token_buy="USDC",
            ratio=wei_ratio({"ETH": 1, "USDC": 4000}),
            recipient=RECIPIENT,
            nonce=1,
        ))

        message = (
            "Limit order for ETH -> USDC\n"
            "Ratio: 1:4000\n"
            f"Address: {RECIPIENT.lower()}\n"
            "Nonce: 1"
        )
        assert order["recipient"] == RECIPIENT
        assert recover(message, order["ethSignature"]["signature"]) == TEST_ADDRESS

    @pytest.mark.asyncio
    async def test_wrong_ratio_tokens(self, wallet, mock_provider):
        with pytest.raises(InvalidOrderError, match="should be ETH and USDC"):
            await wallet.sign_order(Order(
                token_sell="ETH",
                token_buy="USDC",
                ratio=token_ratio({"ETH": 1, "DAI": 4000}),
            ))

        assert mock_provider.network_calls == 0

    @pytest.mark.asyncio
    async def test_order_requires_signer(self, wallet_without_signer):
        with pytest.raises(SignerRequiredError):
            await wallet_without_signer.sign_order(Order(
                token_sell="ETH",
                token_buy="USDC",
                ratio=wei_ratio({"ETH": 1, "USDC": 4000}),
            ))


class TestSwap:
    """Tests for swap submission."""

    @pytest.mark.asyncio
    async def test_swap_signatures(self, wallet, counterparty):
        order_a, order_b = await sign_orders(wallet, counterparty)

        signed = await wallet.sign_sync_swap(
            Swap(orders=(order_a, order_b), fee_token="ETH", fee=10**15)
        )

        assert signed.tx["type"] == "Swap"
        assert signed.tx["amounts"] == [10**18, 4000 * 10**6]
        assert signed.tx["submitterId"] == 7
        assert signed.tx["submitterAddress"] == TEST_ADDRESS
        assert signed.tx["feeToken"] == 0
        assert signed.tx["nonce"] == 3

        submitter, sig_a, sig_b = signed.eth_signature
        assert recover("Swap fee: 0.001 ETH\nNonce: 3", submitter.signature) == TEST_ADDRESS
        assert sig_a.signature == order_a["ethSignature"]["signature"]
        assert sig_b.signature == order_b["ethSignature"]["signature"]
        assert len(signed.to_dict()["signature"]) == 3

    @pytest.mark.asyncio
    async def test_zero_fee_swap_signs_nonce_line(self, wallet, counterparty):
        order_a, order_b = await sign_orders(wallet, counterparty)

        signed = await wallet.sign_sync_swap(
            Swap(orders=(order_a, order_b), fee_token="ETH", fee=0)
        )

        submitter = signed.eth_signature[0]
        assert submitter is not None
        assert recover("Nonce: 3", submitter.signature) == TEST_ADDRESS
        assert signed.eth_signature[1].signature == order_a["ethSignature"]["signature"]

    @pytest.mark.asyncio
    async def test_implicit_amounts_require_explicit_swap_amounts(self, wallet, counterparty):
        order_a, order_b = await sign_orders(wallet, counterparty, amounts=(0, 0))

        with pytest.raises(InvalidOrderError, match="amounts in orders are implicit"):
            await wallet.sync_swap(Swap(orders=(order_a, order_b), fee_token="ETH", fee=0))

        signed = await wallet.sign_sync_swap(
            Swap(orders=(order_a, order_b), fee_token="ETH", fee=0, amounts=(5, 6), nonce=3)
        )
        assert signed.tx["amounts"] == [5, 6]

    @pytest.mark.asyncio
    async def test_swap_in_batch(self, wallet, counterparty):
        order_a, order_b = await sign_orders(wallet, counterparty)

        batch = await (
            wallet.batch_builder(nonce=3)
            .add_swap(Swap(orders=(order_a, order_b), fee_token="ETH", fee=10**15))
            .build()
        )

        assert batch.message == "Swap fee: 0.001 ETH\nNonce: 3"
        swap_signatures = batch.transactions[0].eth_signature
        assert swap_signatures[0] is None
        assert swap_signatures[1].signature == order_a["ethSignature"]["signature"]
