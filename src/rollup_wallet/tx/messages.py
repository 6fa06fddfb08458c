"""
Message-part rendering for Ethereum-compatible authorization.

Formats amounts and fees with token symbols and decimals, then delegates
to the message signer's per-kind templates. A zero amount or fee is
passed as None so its line is dropped from the message.
"""

from typing import TYPE_CHECKING, Optional

from rollup_wallet.core.types import (
    ChangePubKey,
    ForcedExit,
    MintNFT,
    Swap,
    TokenLike,
    TransactionIntent,
    Transfer,
    Withdraw,
    WithdrawNFT,
)
from rollup_wallet.core.utils import hexlify

if TYPE_CHECKING:
    from rollup_wallet.core.wallet import Wallet


class MessagePartBuilder:
    """Renders the message part of each transaction kind for a wallet."""

    def __init__(self, wallet: "Wallet"):
        self.wallet = wallet

    @property
    def _signer(self):
        return self.wallet.eth_message_signer

    @property
    def _tokens(self):
        return self.wallet.provider.token_set

    def format_amount(self, token: TokenLike, amount: Optional[int]) -> Optional[str]:
        """Format an amount for a message, None when it is zero."""
        if not amount:
            return None
        return self._tokens.format_token(token, amount)

    def transfer(self, transfer: Transfer) -> str:
        return self._signer.get_transfer_eth_message_part(
            string_amount=self.format_amount(transfer.token, transfer.amount),
            string_token=self._tokens.resolve_token_symbol(transfer.token),
            string_fee=self.format_amount(transfer.token, transfer.fee),
            to=transfer.to,
        )

    def withdraw(self, withdraw: Withdraw) -> str:
        return self._signer.get_withdraw_eth_message_part(
            string_amount=self.format_amount(withdraw.token, withdraw.amount),
            string_token=self._tokens.resolve_token_symbol(withdraw.token),
            string_fee=self.format_amount(withdraw.token, withdraw.fee),
            eth_address=withdraw.eth_address,
        )

    def forced_exit(self, forced_exit: ForcedExit) -> str:
        return self._signer.get_forced_exit_eth_message_part(
            string_token=self._tokens.resolve_token_symbol(forced_exit.token),
            string_fee=self.format_amount(forced_exit.token, forced_exit.fee),
            target=forced_exit.target,
        )

    def change_pub_key(self, pub_key_hash: str, fee_token: TokenLike, fee: Optional[int]) -> str:
        return self._signer.get_change_pub_key_eth_message_part(
            pub_key_hash=pub_key_hash,
            string_token=self._tokens.resolve_token_symbol(fee_token),
            string_fee=self.format_amount(fee_token, fee),
        )

    def swap(self, swap: Swap) -> str:
        return self._signer.get_swap_eth_message_part(
            string_fee=self.format_amount(swap.fee_token, swap.fee),
            string_fee_token=self._tokens.resolve_token_symbol(swap.fee_token),
        )

    def mint_nft(self, mint_nft: MintNFT) -> str:
        return self._signer.get_mint_nft_eth_message_part(
            string_fee_token=self._tokens.resolve_token_symbol(mint_nft.fee_token),
            string_fee=self.format_amount(mint_nft.fee_token, mint_nft.fee),
            recipient=mint_nft.recipient,
            content_hash=hexlify(mint_nft.content_hash),
        )

    def withdraw_nft(self, withdraw_nft: WithdrawNFT) -> str:
        return self._signer.get_withdraw_nft_eth_message_part(
            token=withdraw_nft.token,
            to=withdraw_nft.to,
            string_fee=self.format_amount(withdraw_nft.fee_token, withdraw_nft.fee),
            string_fee_token=self._tokens.resolve_token_symbol(withdraw_nft.fee_token),
        )

    def for_intent(self, intent: TransactionIntent, pub_key_hash: Optional[str] = None) -> str:
        """
        Render the message part of any intent.

        ChangePubKey needs the hash of the key being registered.
        """
        if isinstance(intent, Transfer):
            return self.transfer(intent)
        if isinstance(intent, Withdraw):
            return self.withdraw(intent)
        if isinstance(intent, ForcedExit):
            return self.forced_exit(intent)
        if isinstance(intent, ChangePubKey):
            if pub_key_hash is None:
                raise ValueError("ChangePubKey message part requires the new public key hash")
            return self.change_pub_key(pub_key_hash, intent.fee_token, intent.fee)
        if isinstance(intent, Swap):
            return self.swap(intent)
        if isinstance(intent, MintNFT):
            return self.mint_nft(intent)
        if isinstance(intent, WithdrawNFT):
            return self.withdraw_nft(intent)
        raise TypeError(f"Unsupported transaction intent: {type(intent).__name__}")
