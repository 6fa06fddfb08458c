"""
Transaction Builder - assembles and L2-signs transaction payloads.

One builder method per transaction kind. Each requires an L2 signer,
resolves the wallet's account id if it is not cached yet, resolves token
identifiers to numeric ids and hands the wire-format payload to the
L2 signer. Nonce and fee must already be set on the intent.
"""

from typing import TYPE_CHECKING, Optional

import structlog

from rollup_wallet.core.errors import InvalidOrderError, InvalidTokenError, SignerRequiredError
from rollup_wallet.core.types import (
    ChangePubKey,
    ChangePubKeyAuthData,
    ForcedExit,
    MintNFT,
    Order,
    SignedPayload,
    Swap,
    TransactionIntent,
    Transfer,
    Withdraw,
    WithdrawNFT,
)
from rollup_wallet.core.utils import MAX_TIMESTAMP, hexlify, is_nft
from rollup_wallet.signer.interface import L2Signer

if TYPE_CHECKING:
    from rollup_wallet.core.wallet import Wallet

logger = structlog.get_logger(__name__)


class TransactionBuilder:
    """
    Builds L2-signed payloads for a wallet.

    The builder never fetches nonces or fees; the only network access is
    the one-time account id resolution.
    """

    def __init__(self, wallet: "Wallet"):
        """
        Initialize the transaction builder.

        Args:
            wallet: Wallet providing identity, signer and token metadata
        """
        self.wallet = wallet

    def require_signer(self, action: str = "sending transactions") -> L2Signer:
        if self.wallet.signer is None:
            raise SignerRequiredError(f"Rollup signer is required for {action}")
        return self.wallet.signer

    @property
    def _tokens(self):
        return self.wallet.provider.token_set

    @staticmethod
    def _window(valid_from: Optional[int], valid_until: Optional[int]):
        return (
            valid_from if valid_from is not None else 0,
            valid_until if valid_until is not None else MAX_TIMESTAMP,
        )

    @staticmethod
    def _require_fee_and_nonce(kind: str, fee: Optional[int], nonce: Optional[int]) -> None:
        if fee is None or nonce is None:
            raise ValueError(f"{kind} fee and nonce must be resolved before signing")

    def _log_signed(self, payload: SignedPayload) -> SignedPayload:
        logger.debug(
            "transaction_signed",
            kind=payload.get("type"),
            nonce=payload.get("nonce"),
            account_id=self.wallet.account_id,
        )
        return payload

    async def build_transfer(self, transfer: Transfer) -> SignedPayload:
        signer = self.require_signer()
        self._require_fee_and_nonce("Transfer", transfer.fee, transfer.nonce)
        account_id = await self.wallet.require_account_id("Transfer funds")
        valid_from, valid_until = self._window(transfer.valid_from, transfer.valid_until)

        payload = {
            "accountId": account_id,
            "from": self.wallet.address,
            "to": transfer.to,
            "tokenId": self._tokens.resolve_token_id(transfer.token),
            "amount": transfer.amount,
            "fee": transfer.fee,
            "nonce": transfer.nonce,
            "validFrom": valid_from,
            "validUntil": valid_until,
        }
        return self._log_signed(await signer.sign_sync_transfer(payload))

    async def build_withdraw(self, withdraw: Withdraw) -> SignedPayload:
        signer = self.require_signer()
        self._require_fee_and_nonce("Withdraw", withdraw.fee, withdraw.nonce)
        account_id = await self.wallet.require_account_id("Withdraw funds")
        valid_from, valid_until = self._window(withdraw.valid_from, withdraw.valid_until)

        payload = {
            "accountId": account_id,
            "from": self.wallet.address,
            "ethAddress": withdraw.eth_address,
            "tokenId": self._tokens.resolve_token_id(withdraw.token),
            "amount": withdraw.amount,
            "fee": withdraw.fee,
            "nonce": withdraw.nonce,
            "validFrom": valid_from,
            "validUntil": valid_until,
        }
        return self._log_signed(await signer.sign_sync_withdraw(payload))

    async def build_forced_exit(self, forced_exit: ForcedExit) -> SignedPayload:
        signer = self.require_signer()
        self._require_fee_and_nonce("ForcedExit", forced_exit.fee, forced_exit.nonce)
        account_id = await self.wallet.require_account_id("perform a Forced Exit")
        valid_from, valid_until = self._window(forced_exit.valid_from, forced_exit.valid_until)

        payload = {
            "initiatorAccountId": account_id,
            "target": forced_exit.target,
            "tokenId": self._tokens.resolve_token_id(forced_exit.token),
            "fee": forced_exit.fee,
            "nonce": forced_exit.nonce,
            "validFrom": valid_from,
            "validUntil": valid_until,
        }
        return self._log_signed(await signer.sign_sync_forced_exit(payload))

    async def build_change_pub_key(
        self,
        change_pub_key: ChangePubKey,
        new_pub_key_hash: str,
        eth_auth_data: Optional[ChangePubKeyAuthData],
        eth_signature: Optional[str] = None,
    ) -> SignedPayload:
        """
        Build a ChangePubKey payload.

        Args:
            change_pub_key: The intent, with nonce and fee set
            new_pub_key_hash: Hash of the key being registered
            eth_auth_data: Authorization data (None for legacy message authorization)
            eth_signature: Transaction-level signature (legacy message authorization only)
        """
        signer = self.require_signer("current pubkey calculation")
        self._require_fee_and_nonce("ChangePubKey", change_pub_key.fee, change_pub_key.nonce)
        fee_token_id = self._tokens.resolve_token_id(change_pub_key.fee_token)
        account_id = await self.wallet.require_account_id("Set Signing Key")
        valid_from, valid_until = self._window(change_pub_key.valid_from, change_pub_key.valid_until)

        payload = {
            "accountId": account_id,
            "account": self.wallet.address,
            "newPkHash": new_pub_key_hash,
            "nonce": change_pub_key.nonce,
            "feeTokenId": fee_token_id,
            "fee": change_pub_key.fee,
            "ethAuthData": eth_auth_data.to_dict() if eth_auth_data is not None else None,
            "ethSignature": eth_signature,
            "validFrom": valid_from,
            "validUntil": valid_until,
        }
        return self._log_signed(await signer.sign_sync_change_pub_key(payload))

    async def build_swap(self, swap: Swap) -> SignedPayload:
        """
        Build a swap of two signed orders submitted by this wallet.

        Amounts default to the order amounts; an order with an implicit
        (zero) amount requires explicit swap amounts.
        """
        signer = self.require_signer("swapping funds")
        self._require_fee_and_nonce("Swap", swap.fee, swap.nonce)
        account_id = await self.wallet.require_account_id("Swap submission")

        if swap.amounts is None:
            amount0 = int(swap.orders[0].get("amount") or 0)
            amount1 = int(swap.orders[1].get("amount") or 0)
            if amount0 == 0 or amount1 == 0:
                raise InvalidOrderError(
                    "If amounts in orders are implicit, you must specify them during submission"
                )
            swap.amounts = (amount0, amount1)

        payload = {
            "orders": [swap.orders[0], swap.orders[1]],
            "amounts": list(swap.amounts),
            "nonce": swap.nonce,
            "fee": swap.fee,
            "feeToken": self._tokens.resolve_token_id(swap.fee_token),
            "submitterId": account_id,
            "submitterAddress": self.wallet.address,
        }
        return self._log_signed(await signer.sign_sync_swap(payload))

    async def build_mint_nft(self, mint_nft: MintNFT) -> SignedPayload:
        signer = self.require_signer()
        self._require_fee_and_nonce("MintNFT", mint_nft.fee, mint_nft.nonce)
        account_id = await self.wallet.require_account_id("MintNFT")

        payload = {
            "creatorId": account_id,
            "creatorAddress": self.wallet.address,
            "recipient": mint_nft.recipient,
            "contentHash": hexlify(mint_nft.content_hash),
            "feeTokenId": self._tokens.resolve_token_id(mint_nft.fee_token),
            "fee": mint_nft.fee,
            "nonce": mint_nft.nonce,
        }
        return self._log_signed(await signer.sign_mint_nft(payload))

    async def build_withdraw_nft(self, withdraw_nft: WithdrawNFT) -> SignedPayload:
        signer = self.require_signer()
        if not is_nft(withdraw_nft.token):
            raise InvalidTokenError("This token ID does not correspond to an NFT")
        self._require_fee_and_nonce("WithdrawNFT", withdraw_nft.fee, withdraw_nft.nonce)
        account_id = await self.wallet.require_account_id("WithdrawNFT")
        valid_from, valid_until = self._window(withdraw_nft.valid_from, withdraw_nft.valid_until)

        payload = {
            "accountId": account_id,
            "from": self.wallet.address,
            "to": withdraw_nft.to,
            "tokenId": self._tokens.resolve_token_id(withdraw_nft.token),
            "feeTokenId": self._tokens.resolve_token_id(withdraw_nft.fee_token),
            "fee": withdraw_nft.fee,
            "nonce": withdraw_nft.nonce,
            "validFrom": valid_from,
            "validUntil": valid_until,
        }
        return self._log_signed(await signer.sign_withdraw_nft(payload))

    async def build_order(self, order: Order, ratio) -> SignedPayload:
        """
        Build one side of a swap.

        Args:
            order: Order intent with nonce resolved
            ratio: Ratio in minor units as ``(sell, buy)``
        """
        signer = self.require_signer("signing an order")
        account_id = await self.wallet.require_account_id("Swap order")
        valid_from, valid_until = self._window(order.valid_from, order.valid_until)

        payload = {
            "accountId": account_id,
            "recipient": order.recipient or self.wallet.address,
            "nonce": order.nonce,
            "amount": order.amount or 0,
            "tokenSell": self._tokens.resolve_token_id(order.token_sell),
            "tokenBuy": self._tokens.resolve_token_id(order.token_buy),
            "validFrom": valid_from,
            "validUntil": valid_until,
            "ratio": list(ratio),
        }
        return await signer.sign_sync_order(payload)

    async def build_intent(self, intent: TransactionIntent) -> SignedPayload:
        """
        Build any intent except ChangePubKey, which needs authorization data.
        """
        if isinstance(intent, Transfer):
            return await self.build_transfer(intent)
        if isinstance(intent, Withdraw):
            return await self.build_withdraw(intent)
        if isinstance(intent, ForcedExit):
            return await self.build_forced_exit(intent)
        if isinstance(intent, Swap):
            return await self.build_swap(intent)
        if isinstance(intent, MintNFT):
            return await self.build_mint_nft(intent)
        if isinstance(intent, WithdrawNFT):
            return await self.build_withdraw_nft(intent)
        raise TypeError(f"Cannot build {type(intent).__name__} without authorization data")
