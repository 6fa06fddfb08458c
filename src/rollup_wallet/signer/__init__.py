"""
Signer module.

L2 signer boundary and Ethereum-compatible message signing.
"""

from rollup_wallet.signer.eth import (
    Create2WalletSigner,
    EthAccountSigner,
    EthSigner,
    NoEthSigner,
    generate_test_signer,
    unable_to_sign,
)
from rollup_wallet.signer.interface import L2Signer
from rollup_wallet.signer.message_signer import EthMessageSigner

__all__ = [
    "Create2WalletSigner",
    "EthAccountSigner",
    "EthSigner",
    "NoEthSigner",
    "generate_test_signer",
    "unable_to_sign",
    "L2Signer",
    "EthMessageSigner",
]
