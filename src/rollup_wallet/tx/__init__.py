"""
Transaction module.

Handles payload construction, message-part rendering and ChangePubKey
authorization.
"""

from rollup_wallet.tx.auth import ChangePubKeyAuthResolver
from rollup_wallet.tx.builder import TransactionBuilder
from rollup_wallet.tx.messages import MessagePartBuilder

__all__ = [
    "ChangePubKeyAuthResolver",
    "TransactionBuilder",
    "MessagePartBuilder",
]
