"""
Operator integration layer.

Provides the abstract boundary to the rollup operator (account state,
fees, submission) and token metadata resolution.
"""

from rollup_wallet.provider.interface import (
    AccountNotFoundError,
    AccountState,
    AccountStateSnapshot,
    ProviderError,
    ProviderInterface,
    TransactionFee,
    TransactionSubmitError,
)
from rollup_wallet.provider.tokens import NFT, Token, TokenSet

__all__ = [
    "AccountNotFoundError",
    "AccountState",
    "AccountStateSnapshot",
    "ProviderError",
    "ProviderInterface",
    "TransactionFee",
    "TransactionSubmitError",
    "NFT",
    "Token",
    "TokenSet",
]
