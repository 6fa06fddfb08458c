"""
Ethereum-compatible message signer.

Renders the human-readable message part of each transaction kind and
signs messages with the wallet's Ethereum signer. The rendered text is
reconstructed independently by the network from the transaction payload,
so every template here is part of the protocol.
"""

from typing import Optional, Sequence, Union

import structlog

from rollup_wallet.core.errors import InvalidEthSignerTypeError
from rollup_wallet.core.types import EthSignerType, TxEthSignature
from rollup_wallet.core.utils import get_signed_bytes_from_message, strip_pub_key_hash_prefix
from rollup_wallet.signer.eth import EthSigner

logger = structlog.get_logger(__name__)


def _append_fee(message: str, string_fee: Optional[str], string_token: str) -> str:
    if string_fee is None:
        return message
    if message:
        message += "\n"
    return message + f"Fee: {string_fee} {string_token}"


def _append_nonce(message: str, nonce: int) -> str:
    if message:
        message += "\n"
    return message + f"Nonce: {nonce}"


class EthMessageSigner:
    """
    Builds and signs Ethereum-compatible authorization messages.

    Amount and fee arguments are pre-formatted strings; ``None`` means the
    value is zero and its line is left out of the message.
    """

    def __init__(self, eth_signer: EthSigner, eth_signer_type: Optional[EthSignerType]):
        self.eth_signer = eth_signer
        self.eth_signer_type = eth_signer_type

    async def get_eth_message_signature(self, message: Union[str, bytes]) -> TxEthSignature:
        """
        Sign a message.

        Args:
            message: UTF-8 text or raw bytes

        Returns:
            Signature tagged with the verification method of the signer
        """
        if self.eth_signer_type is None:
            raise InvalidEthSignerTypeError("eth_signer_type is unknown")

        signed_bytes = get_signed_bytes_from_message(
            message,
            not self.eth_signer_type.is_signed_msg_prefixed,
        )
        signature = await self.eth_signer.sign_message(signed_bytes)

        logger.debug("eth_message_signed", length=len(signed_bytes))

        return TxEthSignature(type=self.eth_signer_type.signature_type, signature=signature)

    # Message parts

    def get_transfer_eth_message_part(
        self,
        string_amount: Optional[str],
        string_token: str,
        string_fee: Optional[str],
        to: Optional[str] = None,
        eth_address: Optional[str] = None,
    ) -> str:
        if eth_address is not None:
            tx_type, recipient = "Withdraw", eth_address
        elif to is not None:
            tx_type, recipient = "Transfer", to
        else:
            raise ValueError("Either to or eth_address must be present")

        message = ""
        if string_amount is not None:
            message = f"{tx_type} {string_amount} {string_token} to: {recipient.lower()}"
        return _append_fee(message, string_fee, string_token)

    def get_withdraw_eth_message_part(
        self,
        string_amount: Optional[str],
        string_token: str,
        string_fee: Optional[str],
        eth_address: str,
    ) -> str:
        return self.get_transfer_eth_message_part(
            string_amount, string_token, string_fee, eth_address=eth_address
        )

    def get_forced_exit_eth_message_part(
        self,
        string_token: str,
        string_fee: Optional[str],
        target: str,
    ) -> str:
        message = f"ForcedExit {string_token} to: {target.lower()}"
        return _append_fee(message, string_fee, string_token)

    def get_change_pub_key_eth_message_part(
        self,
        pub_key_hash: str,
        string_token: str,
        string_fee: Optional[str],
    ) -> str:
        message = f"Set signing key: {strip_pub_key_hash_prefix(pub_key_hash)}"
        return _append_fee(message, string_fee, string_token)

    def get_mint_nft_eth_message_part(
        self,
        string_fee_token: str,
        string_fee: Optional[str],
        recipient: str,
        content_hash: str,
    ) -> str:
        message = f"MintNFT {content_hash} for: {recipient.lower()}"
        return _append_fee(message, string_fee, string_fee_token)

    def get_withdraw_nft_eth_message_part(
        self,
        token: int,
        to: str,
        string_fee: Optional[str],
        string_fee_token: str,
    ) -> str:
        message = f"WithdrawNFT {token} to: {to.lower()}"
        return _append_fee(message, string_fee, string_fee_token)

    def get_swap_eth_message_part(self, string_fee: Optional[str], string_fee_token: str) -> str:
        if string_fee is None:
            return ""
        return f"Swap fee: {string_fee} {string_fee_token}"

    def get_order_eth_message(
        self,
        string_amount: Optional[str],
        string_token_sell: str,
        string_token_buy: str,
        ratio: Sequence[int],
        recipient: str,
        nonce: int,
    ) -> str:
        if string_amount is None:
            message = f"Limit order for {string_token_sell} -> {string_token_buy}\n"
        else:
            message = f"Order for {string_amount} {string_token_sell} -> {string_token_buy}\n"
        return (
            message
            + f"Ratio: {ratio[0]}:{ratio[1]}\n"
            + f"Address: {recipient.lower()}\n"
            + f"Nonce: {nonce}"
        )

    # Full messages

    @staticmethod
    def with_nonce(message_part: str, nonce: int) -> str:
        """Append the trailing nonce line that closes every signed message."""
        return _append_nonce(message_part, nonce)

    async def eth_sign_order(
        self,
        string_amount: Optional[str],
        string_token_sell: str,
        string_token_buy: str,
        ratio: Sequence[int],
        recipient: str,
        nonce: int,
    ) -> TxEthSignature:
        message = self.get_order_eth_message(
            string_amount, string_token_sell, string_token_buy, ratio, recipient, nonce
        )
        return await self.get_eth_message_signature(message)
