"""
Core wallet components.

This module contains the transaction data model, batch construction and
the wallet facade that signs and submits transactions.
"""

from rollup_wallet.core.batch import BatchEntry, SignedBatch
from rollup_wallet.core.batch_builder import BatchBuilder, submit_signed_transactions_batch
from rollup_wallet.core.wallet import Wallet

__all__ = [
    "BatchEntry",
    "SignedBatch",
    "BatchBuilder",
    "submit_signed_transactions_batch",
    "Wallet",
]
