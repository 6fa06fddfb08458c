"""
Batch Builder - groups transactions into a single signed batch.

Members receive consecutive nonces starting at the batch nonce. Their
message parts are joined into one text closed by ``Nonce: <batch nonce>``
and authorized with a single Ethereum-compatible signature.
"""

from typing import TYPE_CHECKING, Dict, List, Optional, Union

import structlog

from rollup_wallet.core.batch import BatchEntry, SignedBatch
from rollup_wallet.core.errors import BatchBuildError
from rollup_wallet.core.types import (
    ChangePubKey,
    ChangePubKeyAuthType,
    ForcedExit,
    MintNFT,
    SignedPayload,
    SignedTransaction,
    Swap,
    TokenLike,
    TxEthSignature,
    TxKind,
    Transfer,
    Withdraw,
    WithdrawNFT,
    change_pub_key_fee_type,
)
from rollup_wallet.provider.interface import ProviderInterface

if TYPE_CHECKING:
    from rollup_wallet.core.wallet import Wallet

logger = structlog.get_logger(__name__)


class BatchBuilder:
    """
    Fluent builder for a transaction batch.

    Usage:
        ```python
        batch = await (
            wallet.batch_builder()
            .add_transfer(to="0x...", token="ETH", amount=10**18)
            .add_withdraw(eth_address="0x...", token="USDC", amount=5 * 10**6)
            .build(fee_token="ETH")
        )
        ```

    Member fees default to zero. Either give every member an explicit fee,
    or pass ``fee_token`` to ``build`` to have the whole batch fee paid by
    one extra transfer to self.
    """

    def __init__(self, wallet: "Wallet", nonce: Optional[Union[int, str]] = None):
        """
        Initialize the batch builder.

        Args:
            wallet: Wallet the batch is signed by
            nonce: Nonce of the first member, or a nonce tag; fetched when omitted
        """
        self.wallet = wallet
        self.nonce = nonce
        self.entries: List[BatchEntry] = []

    def add_transfer(
        self,
        to: str,
        token: TokenLike,
        amount: int,
        fee: int = 0,
        valid_from: Optional[int] = None,
        valid_until: Optional[int] = None,
    ) -> "BatchBuilder":
        transfer = Transfer(
            to=to,
            token=token,
            amount=amount,
            fee=fee,
            valid_from=valid_from,
            valid_until=valid_until,
        )
        self.entries.append(BatchEntry(TxKind.TRANSFER, transfer, "Transfer", to, token))
        return self

    def add_withdraw(
        self,
        eth_address: str,
        token: TokenLike,
        amount: int,
        fee: int = 0,
        fast_processing: bool = False,
        valid_from: Optional[int] = None,
        valid_until: Optional[int] = None,
    ) -> "BatchBuilder":
        withdraw = Withdraw(
            eth_address=eth_address,
            token=token,
            amount=amount,
            fee=fee,
            valid_from=valid_from,
            valid_until=valid_until,
            fast_processing=fast_processing,
        )
        fee_type = "FastWithdraw" if fast_processing else "Withdraw"
        self.entries.append(BatchEntry(TxKind.WITHDRAW, withdraw, fee_type, eth_address, token))
        return self

    def add_forced_exit(
        self,
        target: str,
        token: TokenLike,
        fee: int = 0,
        valid_from: Optional[int] = None,
        valid_until: Optional[int] = None,
    ) -> "BatchBuilder":
        forced_exit = ForcedExit(
            target=target,
            token=token,
            fee=fee,
            valid_from=valid_from,
            valid_until=valid_until,
        )
        self.entries.append(BatchEntry(TxKind.FORCED_EXIT, forced_exit, "ForcedExit", target, token))
        return self

    def add_change_pub_key(
        self,
        change_pub_key: Union[ChangePubKey, SignedPayload],
        fee_token: Optional[TokenLike] = None,
    ) -> "BatchBuilder":
        """
        Add a ChangePubKey, either as an intent or as an already signed payload.

        Args:
            change_pub_key: Intent to sign within the batch, or a signed payload
                to include verbatim
            fee_token: Fee token of a signed payload (ignored for intents)
        """
        if isinstance(change_pub_key, ChangePubKey):
            if change_pub_key.fee is None:
                change_pub_key.fee = 0
            if change_pub_key.eth_auth_type is None:
                change_pub_key.eth_auth_type = self.wallet.config.change_pub_key_auth_type
            auth_type = self.wallet.auth.check(change_pub_key.eth_auth_type)
            self.entries.append(
                BatchEntry(
                    TxKind.CHANGE_PUB_KEY,
                    change_pub_key,
                    change_pub_key_fee_type(auth_type),
                    self.wallet.address,
                    change_pub_key.fee_token,
                )
            )
            return self

        if fee_token is None:
            raise BatchBuildError("fee_token is required for an already signed ChangePubKey")
        eth_auth_data = change_pub_key.get("ethAuthData")
        auth_type = ChangePubKeyAuthType(
            eth_auth_data["type"] if eth_auth_data else ChangePubKeyAuthType.ECDSA_LEGACY_MESSAGE
        )
        self.entries.append(
            BatchEntry(
                TxKind.CHANGE_PUB_KEY,
                change_pub_key,
                change_pub_key_fee_type(auth_type),
                self.wallet.address,
                fee_token,
                already_signed=True,
            )
        )
        return self

    def add_swap(self, swap: Swap) -> "BatchBuilder":
        if swap.fee is None:
            swap.fee = 0
        self.entries.append(BatchEntry(TxKind.SWAP, swap, "Swap", self.wallet.address, swap.fee_token))
        return self

    def add_mint_nft(
        self,
        recipient: str,
        content_hash: Union[bytes, str],
        fee_token: TokenLike,
        fee: int = 0,
    ) -> "BatchBuilder":
        mint_nft = MintNFT(recipient=recipient, content_hash=content_hash, fee_token=fee_token, fee=fee)
        self.entries.append(BatchEntry(TxKind.MINT_NFT, mint_nft, "MintNFT", recipient, fee_token))
        return self

    def add_withdraw_nft(
        self,
        to: str,
        token: int,
        fee_token: TokenLike,
        fee: int = 0,
        fast_processing: bool = False,
        valid_from: Optional[int] = None,
        valid_until: Optional[int] = None,
    ) -> "BatchBuilder":
        withdraw_nft = WithdrawNFT(
            to=to,
            token=token,
            fee_token=fee_token,
            fee=fee,
            valid_from=valid_from,
            valid_until=valid_until,
            fast_processing=fast_processing,
        )
        fee_type = "FastWithdrawNFT" if fast_processing else "WithdrawNFT"
        self.entries.append(BatchEntry(TxKind.WITHDRAW_NFT, withdraw_nft, fee_type, to, fee_token))
        return self

    async def build(self, fee_token: Optional[TokenLike] = None) -> SignedBatch:
        """
        Sign every member and the batch as a whole.

        Args:
            fee_token: When given, all member fees must be zero and the batch
                fee is quoted and paid by an extra transfer to self in this token

        Returns:
            SignedBatch ready for submission

        Raises:
            BatchBuildError: If the batch is empty or the fee setup is invalid
        """
        if not self.entries:
            raise BatchBuildError("Transaction batch cannot be empty")

        if fee_token is not None:
            await self._add_fee_transfer(fee_token)

        return await process_batch(self.wallet, self.nonce, self.entries)

    async def _add_fee_transfer(self, fee_token: TokenLike) -> None:
        for entry in self.entries:
            if entry.already_signed:
                raise BatchBuildError("Batches paid in one token cannot contain already signed transactions")
            if entry.fee != 0:
                raise BatchBuildError("Fees are expected to be zero when a batch fee token is given")

        fee_types = [entry.fee_type for entry in self.entries] + ["Transfer"]
        addresses = [entry.address for entry in self.entries] + [self.wallet.address]
        total_fee = await self.wallet.provider.get_transactions_batch_fee(
            fee_types, addresses, fee_token
        )

        logger.debug("batch_fee_quoted", fee_token=fee_token, total_fee=total_fee)

        self.entries.append(
            BatchEntry(
                TxKind.TRANSFER,
                Transfer(to=self.wallet.address, token=fee_token, amount=0, fee=total_fee),
                "Transfer",
                self.wallet.address,
                fee_token,
            )
        )


async def process_batch(
    wallet: "Wallet",
    start_nonce: Optional[Union[int, str]],
    entries: List[BatchEntry],
) -> SignedBatch:
    """
    Assign nonces, sign every member and produce the aggregate signature.

    Any member failure aborts the whole batch; nothing partial is returned.

    Args:
        wallet: Wallet the batch is signed by
        start_nonce: Batch nonce, nonce tag, or None for the configured default
        entries: Members in batch order

    Returns:
        SignedBatch whose members carry nonces ``batch_nonce .. batch_nonce + n - 1``
    """
    if not entries:
        raise BatchBuildError("Transaction batch cannot be empty")

    wallet.builder.require_signer("batch signing")

    batch_nonce = await wallet.get_nonce(start_nonce)
    nonce = batch_nonce

    transactions: List[SignedTransaction] = []
    message_parts: List[str] = []
    total_fee: Dict[TokenLike, int] = {}

    for entry in entries:
        if entry.fee_is_missing:
            raise BatchBuildError(f"Fee is required for every batch member ({entry.kind.value})")

        if entry.already_signed:
            transaction, part = await _reuse_signed_change_pub_key(wallet, entry, nonce)
        else:
            entry.tx.nonce = nonce
            transaction, part = await _sign_member(wallet, entry)

        transactions.append(transaction)
        message_parts.append(part)
        total_fee[entry.token] = total_fee.get(entry.token, 0) + entry.fee
        nonce += 1

    message_parts.append(f"Nonce: {batch_nonce}")
    message = "\n".join(part for part in message_parts if part)
    signature = await wallet.eth_sign(message)

    batch = SignedBatch(
        transactions=transactions,
        signature=signature,
        batch_nonce=batch_nonce,
        message=message,
        total_fee=total_fee,
    )

    logger.info(
        "batch_built",
        batch_id=batch.batch_id,
        batch_nonce=batch_nonce,
        size=batch.size,
        signed=signature is not None,
    )

    return batch


async def _sign_member(wallet: "Wallet", entry: BatchEntry):
    intent = entry.tx

    if entry.kind == TxKind.CHANGE_PUB_KEY:
        signed = await wallet.sign_set_signing_key(intent)
        part = wallet.messages.change_pub_key(signed.tx["newPkHash"], intent.fee_token, intent.fee)
        return SignedTransaction(tx=signed.tx), part

    payload = await wallet.builder.build_intent(intent)
    part = wallet.messages.for_intent(intent)

    eth_signature = None
    if entry.kind == TxKind.SWAP:
        eth_signature = [None] + [order_eth_signature(order) for order in intent.orders]

    return SignedTransaction(tx=payload, eth_signature=eth_signature), part


async def _reuse_signed_change_pub_key(wallet: "Wallet", entry: BatchEntry, nonce: int):
    payload = entry.tx
    if payload.get("nonce") != nonce:
        raise BatchBuildError(
            f"Signed ChangePubKey has nonce {payload.get('nonce')}, expected {nonce} at its batch position"
        )

    await wallet.auth.ensure_key_changes(payload["newPkHash"])

    part = wallet.messages.change_pub_key(payload["newPkHash"], entry.token, payload.get("fee"))
    return SignedTransaction(tx=payload), part


def order_eth_signature(order: SignedPayload) -> Optional[TxEthSignature]:
    signature = order.get("ethSignature")
    if signature is None:
        return None
    return TxEthSignature(type=signature["type"], signature=signature["signature"])


async def submit_signed_transactions_batch(
    provider: ProviderInterface,
    batch: SignedBatch,
) -> List[str]:
    """
    Submit a signed batch through the given provider.

    Returns:
        Transaction hashes in batch order
    """
    tx_hashes = await provider.submit_txs_batch(batch.transactions, batch.eth_signatures)

    logger.info("batch_submitted", batch_id=batch.batch_id, tx_count=len(tx_hashes))

    return tx_hashes
