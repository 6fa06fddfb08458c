"""
Abstract interface for the rollup operator.

Defines the contract for network access the wallet depends on: account
state (nonce, account id, registered key), fee quotes, token metadata and
transaction submission. Transport, retries and timeouts belong to the
concrete adapters.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from rollup_wallet.core.types import FeeType, SignedTransaction, TokenLike, TxEthSignature
from rollup_wallet.provider.tokens import TokenSet


@dataclass
class AccountStateSnapshot:
    """Account state at one confirmation level (committed or verified)."""
    nonce: int = 0
    pub_key_hash: str = "sync:" + "0" * 40
    balances: Dict[str, int] = field(default_factory=dict)


@dataclass
class AccountState:
    """
    State of an account as reported by the network.

    Attributes:
        address: Account address
        id: Network-assigned account id, None if the account does not exist yet
        committed: State including transactions not yet proven
        verified: State proven on-chain
    """
    address: str
    id: Optional[int] = None
    committed: AccountStateSnapshot = field(default_factory=AccountStateSnapshot)
    verified: AccountStateSnapshot = field(default_factory=AccountStateSnapshot)


@dataclass
class TransactionFee:
    """Fee quote for a single transaction."""
    fee_type: FeeType
    total_fee: int


class ProviderInterface(ABC):
    """
    Abstract interface for rollup operator access.

    This interface defines all network operations needed by the wallet:
    - Account state queries (nonce, account id, signing key)
    - Fee quotes
    - Token metadata
    - Transaction and batch submission
    """

    @property
    @abstractmethod
    def token_set(self) -> TokenSet:
        """Tokens supported by the network."""
        pass

    @abstractmethod
    async def get_state(self, address: str) -> AccountState:
        """
        Get the state of an account.

        Args:
            address: Account address

        Returns:
            Current account state

        Raises:
            AccountNotFoundError: If the account is unknown to the network
        """
        pass

    @abstractmethod
    async def get_transaction_fee(
        self,
        fee_type: FeeType,
        address: str,
        token: TokenLike,
    ) -> TransactionFee:
        """
        Get the fee for a single transaction.

        Args:
            fee_type: Kind-and-mode-specific fee type tag
            address: Counterparty or destination of the transaction
            token: Token the fee is paid in
        """
        pass

    @abstractmethod
    async def get_transactions_batch_fee(
        self,
        fee_types: Sequence[FeeType],
        addresses: Sequence[str],
        token: TokenLike,
    ) -> int:
        """Get the total fee for a batch of transactions paid in one token."""
        pass

    @abstractmethod
    async def submit_tx(
        self,
        tx: SignedTransaction,
        fast_processing: bool = False,
    ) -> str:
        """
        Submit a signed transaction.

        Returns:
            Transaction hash

        Raises:
            TransactionSubmitError: If submission fails
        """
        pass

    @abstractmethod
    async def submit_txs_batch(
        self,
        transactions: Sequence[SignedTransaction],
        eth_signatures: Sequence[TxEthSignature],
    ) -> List[str]:
        """
        Submit a batch of signed transactions with its aggregate signatures.

        Returns:
            Transaction hashes in batch order
        """
        pass


class ProviderError(Exception):
    """Raised when the operator cannot serve a request."""
    pass


class AccountNotFoundError(ProviderError):
    """Raised when the account has no presence in the network yet."""
    pass


class TransactionSubmitError(ProviderError):
    """Raised when transaction submission fails."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code
