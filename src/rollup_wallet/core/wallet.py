"""
Wallet - signing and submission facade for a single rollup account.

Coordinates all components:
- Account state queries (account id, nonce, registered signing key)
- Fee resolution
- Transaction construction and L2 signing
- Ethereum-compatible authorization messages
- Submission through the provider

Usage:
    ```python
    eth_signer = EthAccountSigner()
    eth_signer.load_from_config()

    wallet = Wallet.from_eth_signer(eth_signer, provider, signer=l2_signer,
                                    eth_signer_type=EthSignerType())
    if not await wallet.is_signing_key_set():
        await wallet.set_signing_key(ChangePubKey(fee_token="ETH"))

    submitted = await wallet.sync_transfer(Transfer(to="0x...", token="ETH", amount=10**17))
    ```
"""

from decimal import Decimal
from typing import List, Optional, Tuple, Union

import structlog

from rollup_wallet.config import VerificationMethod, WalletConfig, get_config
from rollup_wallet.core.batch import BatchEntry
from rollup_wallet.core.batch_builder import BatchBuilder, order_eth_signature, process_batch
from rollup_wallet.core.errors import (
    InvalidEthSignerTypeError,
    InvalidOrderError,
    InvalidTokenError,
)
from rollup_wallet.core.types import (
    ChangePubKey,
    Create2Data,
    EthSignerType,
    FeeType,
    ForcedExit,
    MintNFT,
    Order,
    RatioType,
    SignedPayload,
    SignedTransaction,
    SubmittedTransaction,
    Swap,
    TokenLike,
    Transfer,
    TxEthSignature,
    TxKind,
    Withdraw,
    WithdrawNFT,
    change_pub_key_fee_type,
)
from rollup_wallet.core.utils import is_nft
from rollup_wallet.provider.interface import (
    AccountNotFoundError,
    AccountState,
    ProviderInterface,
)
from rollup_wallet.provider.tokens import NFT
from rollup_wallet.signer.eth import Create2WalletSigner, EthSigner, unable_to_sign
from rollup_wallet.signer.interface import L2Signer
from rollup_wallet.signer.message_signer import EthMessageSigner
from rollup_wallet.tx.auth import ChangePubKeyAuthResolver
from rollup_wallet.tx.builder import TransactionBuilder
from rollup_wallet.tx.messages import MessagePartBuilder

logger = structlog.get_logger(__name__)

NonceLike = Union[int, str, None]

_VERIFICATION_METHODS = {method.value for method in VerificationMethod}


class Wallet:
    """
    A rollup account able to sign and submit transactions.

    The account id is cached after the first successful lookup and never
    changes afterwards.
    """

    def __init__(
        self,
        eth_signer: EthSigner,
        eth_message_signer: EthMessageSigner,
        address: str,
        provider: ProviderInterface,
        signer: Optional[L2Signer] = None,
        account_id: Optional[int] = None,
        eth_signer_type: Optional[EthSignerType] = None,
        config: Optional[WalletConfig] = None,
    ):
        """
        Initialize the wallet. Prefer the ``from_*`` constructors.

        Args:
            eth_signer: Ethereum-compatible account
            eth_message_signer: Message signer wrapping ``eth_signer``
            address: Account address
            provider: Operator access
            signer: L2 signer, required for anything that signs transactions
            account_id: Known account id, looked up lazily when omitted
            eth_signer_type: Capabilities of ``eth_signer``
            config: Wallet configuration (global configuration when omitted)
        """
        if eth_signer_type is not None and eth_signer_type.verification_method not in _VERIFICATION_METHODS:
            raise InvalidEthSignerTypeError(
                f"Unknown verification method: {eth_signer_type.verification_method}"
            )

        self.config = config or get_config()
        self.eth_signer = eth_signer
        self.eth_message_signer = eth_message_signer
        self.address = address
        self.provider = provider
        self.signer = signer
        self.eth_signer_type = eth_signer_type
        self._account_id = account_id

        self.builder = TransactionBuilder(self)
        self.messages = MessagePartBuilder(self)
        self.auth = ChangePubKeyAuthResolver(self)

    # =========================================================================
    # Constructors
    # =========================================================================

    @classmethod
    def from_eth_signer(
        cls,
        eth_signer: EthSigner,
        provider: ProviderInterface,
        signer: Optional[L2Signer] = None,
        account_id: Optional[int] = None,
        eth_signer_type: Optional[EthSignerType] = None,
        config: Optional[WalletConfig] = None,
    ) -> "Wallet":
        """
        Create a wallet for an Ethereum-compatible account.

        Raises:
            InvalidEthSignerTypeError: If an L2 signer is given without the
                Ethereum signer's capabilities
        """
        config = config or get_config()
        if signer is not None and eth_signer_type is None:
            raise InvalidEthSignerTypeError(
                "If you passed signer, you must also pass eth_signer_type"
            )
        if eth_signer_type is None:
            eth_signer_type = EthSignerType(
                verification_method=config.verification_method.value,
                is_signed_msg_prefixed=config.is_signed_msg_prefixed,
            )

        return cls(
            eth_signer=eth_signer,
            eth_message_signer=EthMessageSigner(eth_signer, eth_signer_type),
            address=eth_signer.address,
            provider=provider,
            signer=signer,
            account_id=account_id,
            eth_signer_type=eth_signer_type,
            config=config,
        )

    @classmethod
    def from_eth_signer_no_keys(
        cls,
        eth_signer: EthSigner,
        provider: ProviderInterface,
        account_id: Optional[int] = None,
        eth_signer_type: Optional[EthSignerType] = None,
        config: Optional[WalletConfig] = None,
    ) -> "Wallet":
        """Create a wallet that can only sign Ethereum messages."""
        return cls(
            eth_signer=eth_signer,
            eth_message_signer=EthMessageSigner(eth_signer, eth_signer_type),
            address=eth_signer.address,
            provider=provider,
            account_id=account_id,
            eth_signer_type=eth_signer_type,
            config=config,
        )

    @classmethod
    def from_sync_signer(
        cls,
        eth_signer: EthSigner,
        signer: L2Signer,
        provider: ProviderInterface,
        account_id: Optional[int] = None,
        config: Optional[WalletConfig] = None,
    ) -> "Wallet":
        """Create a wallet for a contract account verified through ERC-1271."""
        eth_signer_type = EthSignerType(
            verification_method=VerificationMethod.ERC1271.value,
            is_signed_msg_prefixed=True,
        )
        return cls.from_eth_signer(
            eth_signer,
            provider,
            signer=signer,
            account_id=account_id,
            eth_signer_type=eth_signer_type,
            config=config,
        )

    @classmethod
    async def from_create2_data(
        cls,
        signer: L2Signer,
        provider: ProviderInterface,
        create2_data: Create2Data,
        account_id: Optional[int] = None,
        config: Optional[WalletConfig] = None,
    ) -> "Wallet":
        """
        Create a wallet for a CREATE2-deployed contract account.

        The address is derived from the deployment data and the L2 key.
        Such accounts cannot sign Ethereum messages.
        """
        pub_key_hash = await signer.pub_key_hash()
        eth_signer = Create2WalletSigner(pub_key_hash, create2_data)
        wallet = cls.from_eth_signer(
            eth_signer,
            provider,
            signer=signer,
            account_id=account_id,
            eth_signer_type=EthSignerType(
                verification_method=VerificationMethod.ERC1271.value,
                is_signed_msg_prefixed=True,
            ),
            config=config,
        )

        logger.info("create2_wallet_created", address=wallet.address[:10] + "...")

        return wallet

    def connect(self, provider: ProviderInterface) -> "Wallet":
        self.provider = provider
        return self

    # =========================================================================
    # Account state
    # =========================================================================

    @property
    def account_id(self) -> Optional[int]:
        """Cached account id, None until resolved."""
        return self._account_id

    @property
    def sync_signer_connected(self) -> bool:
        return self.signer is not None

    async def get_state(self) -> AccountState:
        return await self.provider.get_state(self.address)

    async def get_account_id(self) -> Optional[int]:
        """Look up the account id, None if the account does not exist yet."""
        try:
            state = await self.get_state()
        except AccountNotFoundError:
            return None
        return state.id

    async def require_account_id(self, action: str) -> int:
        """
        Return the account id, resolving and caching it on first use.

        Raises:
            AccountNotFoundError: If the account is unknown to the network
        """
        if self._account_id is None:
            account_id = await self.get_account_id()
            if account_id is None:
                raise AccountNotFoundError(
                    f"Failed to {action}: Account does not exist in the rollup network"
                )
            self._account_id = account_id
            logger.info("account_id_resolved", address=self.address[:10] + "...", account_id=account_id)
        return self._account_id

    async def get_nonce(self, nonce: NonceLike = None) -> int:
        """
        Resolve a nonce.

        Args:
            nonce: Explicit nonce, ``"committed"``/``"verified"`` tag, or None
                for the configured default tag
        """
        if nonce is None:
            nonce = self.config.nonce_source.value
        if isinstance(nonce, int) and not isinstance(nonce, bool):
            return nonce

        state = await self.get_state()
        if nonce == "committed":
            return state.committed.nonce
        if nonce == "verified":
            return state.verified.nonce
        raise ValueError(f"Unknown nonce tag: {nonce}")

    async def get_current_pub_key_hash(self) -> str:
        """Signing key hash currently registered for the account (committed state)."""
        state = await self.get_state()
        return state.committed.pub_key_hash

    async def is_signing_key_set(self) -> bool:
        signer = self.builder.require_signer("current pubkey calculation")
        current = await self.get_current_pub_key_hash()
        return current == await signer.pub_key_hash()

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _prepare(self, intent, fee_type: FeeType, address: str, token: TokenLike) -> None:
        # Nonce first, then fee; explicit values are never queried.
        intent.nonce = await self.get_nonce(intent.nonce)
        if intent.fee is None:
            quote = await self.provider.get_transaction_fee(fee_type, address, token)
            intent.fee = quote.total_fee
            logger.debug("fee_resolved", fee_type=fee_type, token=token, fee=intent.fee)

    def _fast(self, fast_processing: Optional[bool]) -> bool:
        return self.config.fast_processing if fast_processing is None else fast_processing

    async def eth_sign(self, message: str) -> Optional[TxEthSignature]:
        """Sign a full message, None if the account cannot sign messages."""
        if unable_to_sign(self.eth_signer):
            return None
        return await self.eth_message_signer.get_eth_message_signature(message)

    async def _eth_sign_part(self, message_part: str, nonce: int) -> Optional[TxEthSignature]:
        return await self.eth_sign(EthMessageSigner.with_nonce(message_part, nonce))

    async def _submit(self, signed: SignedTransaction, fast_processing: bool = False) -> SubmittedTransaction:
        tx_hash = await self.provider.submit_tx(signed, fast_processing)
        logger.info("transaction_submitted", kind=signed.kind, nonce=signed.nonce, tx_hash=tx_hash)
        return SubmittedTransaction(tx_hash=tx_hash, signed=signed)

    # =========================================================================
    # Signing
    # =========================================================================

    async def sign_sync_transfer(self, transfer: Transfer) -> SignedTransaction:
        self.builder.require_signer()
        await self._prepare(transfer, "Transfer", transfer.to, transfer.token)

        payload = await self.builder.build_transfer(transfer)
        eth_signature = await self._eth_sign_part(self.messages.transfer(transfer), transfer.nonce)
        return SignedTransaction(tx=payload, eth_signature=eth_signature)

    async def sign_withdraw_from_sync_to_ethereum(self, withdraw: Withdraw) -> SignedTransaction:
        self.builder.require_signer()
        fee_type = "FastWithdraw" if self._fast(withdraw.fast_processing) else "Withdraw"
        await self._prepare(withdraw, fee_type, withdraw.eth_address, withdraw.token)

        payload = await self.builder.build_withdraw(withdraw)
        eth_signature = await self._eth_sign_part(self.messages.withdraw(withdraw), withdraw.nonce)
        return SignedTransaction(tx=payload, eth_signature=eth_signature)

    async def sign_sync_forced_exit(self, forced_exit: ForcedExit) -> SignedTransaction:
        self.builder.require_signer()
        await self._prepare(forced_exit, "ForcedExit", forced_exit.target, forced_exit.token)

        payload = await self.builder.build_forced_exit(forced_exit)
        eth_signature = await self._eth_sign_part(
            self.messages.forced_exit(forced_exit), forced_exit.nonce
        )
        return SignedTransaction(tx=payload, eth_signature=eth_signature)

    async def sign_set_signing_key(self, change_pub_key: ChangePubKey) -> SignedTransaction:
        """
        Sign a registration of the wallet's L2 signing key.

        The authorization mode is validated before any network access.
        Only the legacy message mode attaches a transaction-level signature.

        Raises:
            UnsupportedAuthTypeError: If the mode is unknown
            Create2AuthError: If CREATE2 is requested by a non-CREATE2 wallet
            SigningKeyAlreadySetError: If the key is already registered
        """
        signer = self.builder.require_signer("current pubkey calculation")
        if change_pub_key.eth_auth_type is None:
            change_pub_key.eth_auth_type = self.config.change_pub_key_auth_type
        auth_type = self.auth.check(change_pub_key.eth_auth_type)

        await self._prepare(
            change_pub_key,
            change_pub_key_fee_type(auth_type),
            self.address,
            change_pub_key.fee_token,
        )

        new_pub_key_hash = await signer.pub_key_hash()
        eth_auth_data, eth_signature = await self.auth.resolve(change_pub_key, new_pub_key_hash)
        await self.auth.ensure_key_changes(new_pub_key_hash)

        payload = await self.builder.build_change_pub_key(
            change_pub_key, new_pub_key_hash, eth_auth_data, eth_signature
        )
        return SignedTransaction(tx=payload)

    async def sign_order(self, order: Order) -> SignedPayload:
        """
        Sign one side of a swap.

        Returns:
            Signed order payload with its ``ethSignature`` (None if the
            account cannot sign messages)

        Raises:
            InvalidOrderError: If the ratio does not name both order tokens
        """
        self.builder.require_signer("signing an order")
        ratio = self._order_ratio(order)
        order.nonce = await self.get_nonce(order.nonce)

        signed = await self.builder.build_order(order, ratio)

        eth_signature = None
        if not unable_to_sign(self.eth_signer):
            tokens = self.provider.token_set
            eth_signature = await self.eth_message_signer.eth_sign_order(
                string_amount=self.messages.format_amount(order.token_sell, order.amount),
                string_token_sell=tokens.resolve_token_symbol(order.token_sell),
                string_token_buy=tokens.resolve_token_symbol(order.token_buy),
                ratio=ratio,
                recipient=signed["recipient"],
                nonce=order.nonce,
            )

        signed["ethSignature"] = eth_signature.to_dict() if eth_signature else None
        return signed

    def _order_ratio(self, order: Order) -> Tuple[int, int]:
        sell = order.ratio.get(order.token_sell)
        buy = order.ratio.get(order.token_buy)
        if not sell or not buy:
            raise InvalidOrderError(
                f"Wrong tokens in the ratio object: should be {order.token_sell} and {order.token_buy}"
            )
        if order.ratio.type == RatioType.WEI:
            return int(sell), int(buy)

        tokens = self.provider.token_set
        return (
            tokens.parse_token(order.token_sell, _as_decimal(sell)),
            tokens.parse_token(order.token_buy, _as_decimal(buy)),
        )

    async def sign_sync_swap(self, swap: Swap) -> SignedTransaction:
        """
        Sign a swap of two signed orders.

        The submitter signs the fee part, or only the nonce line for a
        zero fee. Each order carries its own signature.
        """
        self.builder.require_signer("swapping funds")
        await self._prepare(swap, "Swap", self.address, swap.fee_token)

        payload = await self.builder.build_swap(swap)
        message_part = self.messages.swap(swap)
        submitter_signature = await self._eth_sign_part(message_part, swap.nonce)

        eth_signature = [submitter_signature] + [
            order_eth_signature(order) for order in swap.orders
        ]
        return SignedTransaction(tx=payload, eth_signature=eth_signature)

    async def sign_mint_nft(self, mint_nft: MintNFT) -> SignedTransaction:
        self.builder.require_signer()
        await self._prepare(mint_nft, "MintNFT", mint_nft.recipient, mint_nft.fee_token)

        payload = await self.builder.build_mint_nft(mint_nft)
        eth_signature = await self._eth_sign_part(self.messages.mint_nft(mint_nft), mint_nft.nonce)
        return SignedTransaction(tx=payload, eth_signature=eth_signature)

    async def sign_withdraw_nft(self, withdraw_nft: WithdrawNFT) -> SignedTransaction:
        self.builder.require_signer()
        if not is_nft(withdraw_nft.token):
            raise InvalidTokenError("This token ID does not correspond to an NFT")
        fee_type = "FastWithdrawNFT" if self._fast(withdraw_nft.fast_processing) else "WithdrawNFT"
        await self._prepare(withdraw_nft, fee_type, withdraw_nft.to, withdraw_nft.fee_token)

        payload = await self.builder.build_withdraw_nft(withdraw_nft)
        eth_signature = await self._eth_sign_part(
            self.messages.withdraw_nft(withdraw_nft), withdraw_nft.nonce
        )
        return SignedTransaction(tx=payload, eth_signature=eth_signature)

    # =========================================================================
    # Submission
    # =========================================================================

    async def sync_transfer(self, transfer: Transfer) -> SubmittedTransaction:
        return await self._submit(await self.sign_sync_transfer(transfer))

    async def withdraw_from_sync_to_ethereum(self, withdraw: Withdraw) -> SubmittedTransaction:
        signed = await self.sign_withdraw_from_sync_to_ethereum(withdraw)
        return await self._submit(signed, self._fast(withdraw.fast_processing))

    async def sync_forced_exit(self, forced_exit: ForcedExit) -> SubmittedTransaction:
        return await self._submit(await self.sign_sync_forced_exit(forced_exit))

    async def set_signing_key(self, change_pub_key: ChangePubKey) -> SubmittedTransaction:
        return await self._submit(await self.sign_set_signing_key(change_pub_key))

    async def sync_swap(self, swap: Swap) -> SubmittedTransaction:
        return await self._submit(await self.sign_sync_swap(swap))

    async def mint_nft(self, mint_nft: MintNFT) -> SubmittedTransaction:
        return await self._submit(await self.sign_mint_nft(mint_nft))

    async def withdraw_nft(self, withdraw_nft: WithdrawNFT) -> SubmittedTransaction:
        signed = await self.sign_withdraw_nft(withdraw_nft)
        return await self._submit(signed, self._fast(withdraw_nft.fast_processing))

    # =========================================================================
    # Batches
    # =========================================================================

    def batch_builder(self, nonce: NonceLike = None) -> BatchBuilder:
        return BatchBuilder(self, nonce)

    async def sync_multi_transfer(self, transfers: List[Transfer]) -> List[SubmittedTransaction]:
        """
        Sign and submit transfers as one batch.

        Every transfer needs an explicit fee. The nonce of the first
        transfer, if set, is the batch nonce.
        """
        self.builder.require_signer()
        if not transfers:
            return []

        await self.require_account_id("Transfer funds")

        entries = [
            BatchEntry(TxKind.TRANSFER, transfer, "Transfer", transfer.to, transfer.token)
            for transfer in transfers
        ]
        batch = await process_batch(self, transfers[0].nonce, entries)
        tx_hashes = await self.provider.submit_txs_batch(batch.transactions, batch.eth_signatures)

        logger.info("batch_submitted", batch_id=batch.batch_id, tx_count=len(tx_hashes))

        return [
            SubmittedTransaction(tx_hash=tx_hash, signed=signed)
            for tx_hash, signed in zip(tx_hashes, batch.transactions)
        ]

    async def sync_transfer_nft(
        self,
        to: str,
        token: NFT,
        fee_token: TokenLike,
        fee: Optional[int] = None,
        nonce: NonceLike = None,
        valid_from: Optional[int] = None,
        valid_until: Optional[int] = None,
    ) -> List[SubmittedTransaction]:
        """
        Transfer an NFT, paying the fee with a second transfer to self.

        Without an explicit fee, the fee of both transfers is quoted as a batch.
        """
        self.builder.require_signer()
        nonce = await self.get_nonce(nonce)
        if fee is None:
            fee = await self.provider.get_transactions_batch_fee(
                ["Transfer", "Transfer"], [to, self.address], fee_token
            )

        nft_transfer = Transfer(
            to=to,
            token=token.id,
            amount=1,
            fee=0,
            nonce=nonce,
            valid_from=valid_from,
            valid_until=valid_until,
        )
        fee_transfer = Transfer(
            to=self.address,
            token=fee_token,
            amount=0,
            fee=fee,
            valid_from=valid_from,
            valid_until=valid_until,
        )
        return await self.sync_multi_transfer([nft_transfer, fee_transfer])

    def __repr__(self) -> str:
        return f"Wallet(address={self.address}, account_id={self._account_id})"


def _as_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))

