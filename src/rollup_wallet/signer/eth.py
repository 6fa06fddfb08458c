"""
Ethereum-compatible signers.

Wraps the account that produces off-chain message signatures. Some
accounts cannot sign messages at all (CREATE2-deployed contract wallets,
address-only accounts); ``unable_to_sign`` is the capability check the
wallet uses before requesting a signature.
"""

from abc import ABC, abstractmethod
from typing import Optional

import structlog
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address, to_hex

from rollup_wallet.config import WalletConfig, get_config
from rollup_wallet.core.errors import WalletError
from rollup_wallet.core.types import Create2Data
from rollup_wallet.core.utils import get_create2_address_and_salt

logger = structlog.get_logger(__name__)


class EthSigner(ABC):
    """Account able (or not) to sign arbitrary messages."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Checksummed account address."""
        pass

    @abstractmethod
    async def sign_message(self, message: bytes) -> str:
        """
        Sign a message with the ``personal_sign`` scheme.

        Args:
            message: Raw message bytes

        Returns:
            ``0x``-prefixed 65-byte signature
        """
        pass


class EthAccountSigner(EthSigner):
    """
    Key-backed signer using eth-account.

    Supports loading keys from:
    - A hex-encoded private key
    - Configuration (``ROLLUP_WALLET_ETH_PRIVATE_KEY``)
    """

    def __init__(self, config: Optional[WalletConfig] = None):
        self.config = config or get_config()
        self._account: Optional[LocalAccount] = None

    def load_key(self, private_key: str) -> None:
        """
        Load the signing key.

        Args:
            private_key: Hex-encoded private key
        """
        self._account = Account.from_key(private_key)
        logger.info("eth_signing_key_loaded", address=self._account.address[:10] + "...")

    def load_from_config(self) -> None:
        """Load signing key from configuration."""
        if self.config.eth_private_key is None:
            raise ValueError("No Ethereum signing key configured")
        self.load_key(self.config.eth_private_key.get_secret_value())

    @property
    def is_loaded(self) -> bool:
        return self._account is not None

    @property
    def address(self) -> str:
        if not self._account:
            raise RuntimeError("No signing key loaded")
        return self._account.address

    async def sign_message(self, message: bytes) -> str:
        if not self._account:
            raise RuntimeError("No signing key loaded")

        signed = self._account.sign_message(encode_defunct(primitive=message))
        return to_hex(signed.signature)


class Create2WalletSigner(EthSigner):
    """
    Contract wallet deployed with CREATE2.

    The address is derived from the deployment data and the L2 public key
    hash. Such accounts authorize key changes with their deployment data
    and cannot sign messages.
    """

    def __init__(self, sync_pub_key_hash: str, create2_data: Create2Data):
        self.sync_pub_key_hash = sync_pub_key_hash
        self.create2_wallet_data = create2_data
        self._address, self.salt = get_create2_address_and_salt(
            sync_pub_key_hash,
            create2_data.creator_address,
            create2_data.salt_arg,
            create2_data.code_hash,
        )

    @property
    def address(self) -> str:
        return self._address

    async def sign_message(self, message: bytes) -> str:
        raise WalletError("Create2Wallet signer cannot sign messages")


class NoEthSigner(EthSigner):
    """Address-only account without an Ethereum signing capability."""

    def __init__(self, address: str):
        self._address = to_checksum_address(address)

    @property
    def address(self) -> str:
        return self._address

    async def sign_message(self, message: bytes) -> str:
        raise WalletError("This account cannot sign Ethereum messages")


def unable_to_sign(signer: EthSigner) -> bool:
    """Check whether a signer cannot produce Ethereum message signatures."""
    return isinstance(signer, (Create2WalletSigner, NoEthSigner))


def generate_test_signer() -> EthAccountSigner:
    """
    Generate a new random Ethereum signer for testing.

    WARNING: Do not use in production. The key is not persisted.

    Returns:
        EthAccountSigner with a new random key
    """
    signer = EthAccountSigner()
    signer._account = Account.create()

    logger.warning("test_eth_key_generated", address=signer.address[:10] + "...")

    return signer
