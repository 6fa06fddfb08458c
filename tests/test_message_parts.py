"""
Test suite for Ethereum-compatible message rendering.

The rendered text is reconstructed by the network, so these tests pin
the exact templates.
"""

import pytest

from rollup_wallet.core.types import (
    ChangePubKey,
    ForcedExit,
    MintNFT,
    Swap,
    Transfer,
    Withdraw,
    WithdrawNFT,
)
from rollup_wallet.provider.tokens import format_units, parse_units

from conftest import NEW_PUB_KEY_HASH, RECIPIENT


class TestAmountFormatting:
    """Tests for minor-unit formatting."""

    @pytest.mark.parametrize("amount,decimals,expected", [
        (10**18, 18, "1.0"),
        (15 * 10**17, 18, "1.5"),
        (100, 18, "0.0000000000000001"),
        (500_000, 6, "0.5"),
        (0, 6, "0.0"),
        (1, 0, "1"),
    ])
    def test_format_units(self, amount, decimals, expected):
        assert format_units(amount, decimals) == expected

    def test_parse_units(self):
        assert parse_units("1.5", 18) == 15 * 10**17
        assert parse_units(4000, 6) == 4_000_000_000

    def test_parse_units_rejects_excess_precision(self):
        with pytest.raises(ValueError, match="exceeds 6 decimals"):
            parse_units("0.0000001", 6)


class TestMessageParts:
    """Tests for per-kind message parts."""

    def test_transfer_with_zero_fee_omits_fee_line(self, wallet):
        part = wallet.messages.transfer(Transfer(to=RECIPIENT, token="ETH", amount=100, fee=0))

        assert part == f"Transfer 0.0000000000000001 ETH to: {RECIPIENT.lower()}"
        assert "Fee" not in part

    def test_transfer_with_fee(self, wallet):
        part = wallet.messages.transfer(
            Transfer(to=RECIPIENT, token="USDC", amount=2_000_000, fee=250_000)
        )

        assert part == f"Transfer 2.0 USDC to: {RECIPIENT.lower()}\nFee: 0.25 USDC"

    def test_zero_amount_transfer_keeps_only_fee(self, wallet):
        part = wallet.messages.transfer(Transfer(to=RECIPIENT, token="ETH", amount=0, fee=10**15))

        assert part == "Fee: 0.001 ETH"

    def test_zero_amount_and_fee_renders_nothing(self, wallet):
        assert wallet.messages.transfer(Transfer(to=RECIPIENT, token="ETH", amount=0, fee=0)) == ""

    def test_withdraw(self, wallet):
        part = wallet.messages.withdraw(
            Withdraw(eth_address=RECIPIENT, token="ETH", amount=10**18, fee=10**15)
        )

        assert part == f"Withdraw 1.0 ETH to: {RECIPIENT.lower()}\nFee: 0.001 ETH"

    def test_forced_exit(self, wallet):
        part = wallet.messages.forced_exit(ForcedExit(target=RECIPIENT, token="USDC", fee=500_000))

        assert part == f"ForcedExit USDC to: {RECIPIENT.lower()}\nFee: 0.5 USDC"

    def test_change_pub_key_strips_prefix(self, wallet):
        part = wallet.messages.change_pub_key(NEW_PUB_KEY_HASH, "ETH", 10**15)

        assert part == f"Set signing key: {'ab' * 20}\nFee: 0.001 ETH"

    def test_swap_without_fee_is_empty(self, wallet):
        assert wallet.messages.swap(Swap(orders=({}, {}), fee_token="ETH", fee=0)) == ""

    def test_swap_with_fee(self, wallet):
        part = wallet.messages.swap(Swap(orders=({}, {}), fee_token="USDC", fee=1_000_000))

        assert part == "Swap fee: 1.0 USDC"

    def test_mint_nft(self, wallet):
        content_hash = "0x" + "12" * 32
        part = wallet.messages.mint_nft(
            MintNFT(recipient=RECIPIENT, content_hash=content_hash, fee_token="ETH", fee=10**15)
        )

        assert part == f"MintNFT {content_hash} for: {RECIPIENT.lower()}\nFee: 0.001 ETH"

    def test_withdraw_nft(self, wallet):
        part = wallet.messages.withdraw_nft(
            WithdrawNFT(to=RECIPIENT, token=65536, fee_token="ETH", fee=0)
        )

        assert part == f"WithdrawNFT 65536 to: {RECIPIENT.lower()}"

    def test_nft_transfer_uses_synthetic_symbol(self, wallet):
        part = wallet.messages.transfer(Transfer(to=RECIPIENT, token=65537, amount=1, fee=0))

        assert part == f"Transfer 1 NFT-65537 to: {RECIPIENT.lower()}"

    def test_for_intent_requires_pub_key_hash_for_change_pub_key(self, wallet):
        with pytest.raises(ValueError, match="public key hash"):
            wallet.messages.for_intent(ChangePubKey(fee_token="ETH", fee=0))


class TestOrderMessages:
    """Tests for swap order messages."""

    def test_order_with_amount(self, wallet):
        message = wallet.eth_message_signer.get_order_eth_message(
            string_amount="1.0",
            string_token_sell="ETH",
            string_token_buy="USDC",
            ratio=(1, 4000),
            recipient=RECIPIENT,
            nonce=3,
        )

        assert message == (
            "Order for 1.0 ETH -> USDC\n"
            "Ratio: 1:4000\n"
            f"Address: {RECIPIENT.lower()}\n"
            "Nonce: 3"
        )

    def test_limit_order(self, wallet):
        message = wallet.eth_message_signer.get_order_eth_message(
            string_amount=None,
            string_token_sell="ETH",
            string_token_buy="USDC",
            ratio=(1, 4000),
            recipient=RECIPIENT,
            nonce=0,
        )

        assert message.startswith("Limit order for ETH -> USDC\n")
