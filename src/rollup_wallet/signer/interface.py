"""
Abstract interface for the L2 signer.

The L2 signer owns the rollup signing key. It signs the canonical
encoding of each transaction kind and returns the payload with its
``signature`` attached. The cryptographic primitives live behind this
boundary.
"""

from abc import ABC, abstractmethod

from rollup_wallet.core.types import SignedPayload


class L2Signer(ABC):
    """
    Signs rollup transactions with the account's L2 key.

    Every ``sign_*`` method receives the wire-format payload assembled by
    the transaction builders and returns it signed, with ``type`` set to
    the transaction kind.
    """

    @abstractmethod
    async def pub_key_hash(self) -> str:
        """Hash of the public key, ``sync:``-prefixed."""
        pass

    @abstractmethod
    async def sign_sync_transfer(self, payload: dict) -> SignedPayload:
        pass

    @abstractmethod
    async def sign_sync_withdraw(self, payload: dict) -> SignedPayload:
        pass

    @abstractmethod
    async def sign_sync_forced_exit(self, payload: dict) -> SignedPayload:
        pass

    @abstractmethod
    async def sign_sync_change_pub_key(self, payload: dict) -> SignedPayload:
        pass

    @abstractmethod
    async def sign_sync_swap(self, payload: dict) -> SignedPayload:
        pass

    @abstractmethod
    async def sign_mint_nft(self, payload: dict) -> SignedPayload:
        pass

    @abstractmethod
    async def sign_withdraw_nft(self, payload: dict) -> SignedPayload:
        pass

    @abstractmethod
    async def sign_sync_order(self, payload: dict) -> SignedPayload:
        """Sign one side of a swap."""
        pass
