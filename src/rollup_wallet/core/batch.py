"""
Batch models.

A batch is a run of transactions with contiguous nonces authorized by a
single Ethereum-compatible signature over all of their message parts.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Union

from rollup_wallet.core.types import (
    FeeType,
    SignedPayload,
    SignedTransaction,
    TokenLike,
    TransactionIntent,
    TxEthSignature,
    TxKind,
)


@dataclass
class BatchEntry:
    """
    One transaction queued in a batch builder.

    Attributes:
        kind: Transaction kind
        tx: Unsigned intent, or an already signed payload (ChangePubKey only)
        fee_type: Fee type tag used when the batch fee is quoted
        address: Counterparty used when the batch fee is quoted
        token: Token the member's fee is paid in
        already_signed: Whether ``tx`` is a signed payload to be reused verbatim
    """
    kind: TxKind
    tx: Union[TransactionIntent, SignedPayload]
    fee_type: FeeType
    address: str
    token: TokenLike
    already_signed: bool = False

    @property
    def fee(self) -> int:
        if self.already_signed:
            return int(self.tx.get("fee") or 0)
        return int(self.tx.fee or 0)

    @property
    def fee_is_missing(self) -> bool:
        if self.already_signed:
            return self.tx.get("fee") is None
        return self.tx.fee is None


@dataclass
class SignedBatch:
    """
    A fully signed batch ready for submission.

    Attributes:
        transactions: Signed members in nonce order
        signature: Aggregate signature, None if the account cannot sign messages
        batch_nonce: Nonce of the first member
        message: The exact text covered by ``signature``
        total_fee: Sum of member fees per fee token
    """
    transactions: List[SignedTransaction]
    signature: Optional[TxEthSignature]
    batch_nonce: int
    message: str
    total_fee: Dict[TokenLike, int] = field(default_factory=dict)

    batch_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def size(self) -> int:
        return len(self.transactions)

    @property
    def nonces(self) -> List[int]:
        return [tx.nonce for tx in self.transactions]

    @property
    def eth_signatures(self) -> List[TxEthSignature]:
        """Signatures to submit alongside the batch."""
        return [self.signature] if self.signature is not None else []

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "batch_id": self.batch_id,
            "batch_nonce": self.batch_nonce,
            "size": self.size,
            "created_at": self.created_at.isoformat(),
            "signature": self.signature.to_dict() if self.signature else None,
            "total_fee": {str(token): fee for token, fee in self.total_fee.items()},
            "transactions": [tx.to_dict() for tx in self.transactions],
        }

    def __repr__(self) -> str:
        return f"SignedBatch(id={self.batch_id[:8]}..., nonce={self.batch_nonce}, size={self.size})"
