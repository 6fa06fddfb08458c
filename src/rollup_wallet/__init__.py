"""
Rollup Wallet

Client-side transaction signing and batch construction for a layer-2
rollup account. Builds and L2-signs transfers, withdrawals, forced exits,
signing-key changes, swaps and NFT operations, and produces the
Ethereum-compatible authorization messages that accompany them.
"""

__version__ = "0.1.0"

from rollup_wallet.core.batch import SignedBatch
from rollup_wallet.core.batch_builder import BatchBuilder, submit_signed_transactions_batch
from rollup_wallet.core.types import (
    ChangePubKey,
    ChangePubKeyAuthType,
    Create2Data,
    EthSignerType,
    ForcedExit,
    MintNFT,
    Order,
    SignedTransaction,
    Swap,
    Transfer,
    Withdraw,
    WithdrawNFT,
    token_ratio,
    wei_ratio,
)
from rollup_wallet.core.wallet import Wallet

__all__ = [
    "Wallet",
    "BatchBuilder",
    "SignedBatch",
    "submit_signed_transactions_batch",
    "ChangePubKey",
    "ChangePubKeyAuthType",
    "Create2Data",
    "EthSignerType",
    "ForcedExit",
    "MintNFT",
    "Order",
    "SignedTransaction",
    "Swap",
    "Transfer",
    "Withdraw",
    "WithdrawNFT",
    "token_ratio",
    "wei_ratio",
]
