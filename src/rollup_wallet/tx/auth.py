"""
ChangePubKey authorization.

Selects one of four mutually exclusive ways to authorize the
registration of a new L2 signing key:

- Onchain: authorized by a separate on-chain call, nothing is signed here
- ECDSA: Ethereum signature over the binary ChangePubKey message
- CREATE2: the account's CREATE2 deployment data, no signature
- ECDSALegacyMessage: Ethereum signature over the legacy text message,
  attached to the transaction itself rather than to the auth data
"""

from typing import TYPE_CHECKING, Optional, Tuple, Union

import structlog

from rollup_wallet.core.errors import (
    Create2AuthError,
    SigningKeyAlreadySetError,
    UnsupportedAuthTypeError,
)
from rollup_wallet.core.types import (
    ChangePubKey,
    ChangePubKeyAuthData,
    ChangePubKeyAuthType,
    Create2Auth,
    ECDSAAuth,
    OnchainAuth,
)
from rollup_wallet.core.utils import (
    get_change_pub_key_legacy_message,
    get_change_pub_key_message,
)
from rollup_wallet.signer.eth import Create2WalletSigner

if TYPE_CHECKING:
    from rollup_wallet.core.wallet import Wallet

logger = structlog.get_logger(__name__)

AuthResult = Tuple[Optional[ChangePubKeyAuthData], Optional[str]]


class ChangePubKeyAuthResolver:
    """
    Produces authorization data for ChangePubKey transactions.

    ``check`` validates the requested mode without touching the network;
    ``resolve`` produces ``(eth_auth_data, eth_signature)`` where exactly
    one of the two is meaningful for the chosen mode.
    """

    def __init__(self, wallet: "Wallet"):
        self.wallet = wallet

    def check(self, eth_auth_type: Union[ChangePubKeyAuthType, str, None]) -> ChangePubKeyAuthType:
        """
        Validate the requested authorization mode.

        Raises:
            UnsupportedAuthTypeError: If the mode is unknown
            Create2AuthError: If CREATE2 is requested by a non-CREATE2 wallet
        """
        try:
            auth_type = ChangePubKeyAuthType(eth_auth_type)
        except ValueError:
            raise UnsupportedAuthTypeError(f"Unsupported SetSigningKey type: {eth_auth_type}")

        if auth_type == ChangePubKeyAuthType.CREATE2 and not isinstance(
            self.wallet.eth_signer, Create2WalletSigner
        ):
            raise Create2AuthError("CREATE2 wallet authentication is only available for CREATE2 wallets")

        return auth_type

    async def resolve(self, change_pub_key: ChangePubKey, new_pub_key_hash: str) -> AuthResult:
        auth_type = self.check(change_pub_key.eth_auth_type)

        if auth_type == ChangePubKeyAuthType.ONCHAIN:
            result: AuthResult = (OnchainAuth(), None)
        elif auth_type == ChangePubKeyAuthType.ECDSA:
            result = (await self._ecdsa(change_pub_key, new_pub_key_hash), None)
        elif auth_type == ChangePubKeyAuthType.CREATE2:
            result = (self._create2(), None)
        else:
            result = (None, await self._ecdsa_legacy(change_pub_key, new_pub_key_hash))

        logger.debug("change_pub_key_authorized", auth_type=auth_type.value)
        return result

    async def ensure_key_changes(self, new_pub_key_hash: str) -> None:
        """Reject a rotation to the key that is already registered."""
        current = await self.wallet.get_current_pub_key_hash()
        if current == new_pub_key_hash:
            raise SigningKeyAlreadySetError("Current signing key is already set")

    async def _ecdsa(self, change_pub_key: ChangePubKey, new_pub_key_hash: str) -> ECDSAAuth:
        account_id = await self.wallet.require_account_id("ChangePubKey authorized by ECDSA.")
        message = get_change_pub_key_message(
            new_pub_key_hash,
            change_pub_key.nonce,
            account_id,
            change_pub_key.batch_hash,
        )
        signature = await self.wallet.eth_message_signer.get_eth_message_signature(message)
        return ECDSAAuth(eth_signature=signature.signature, batch_hash=change_pub_key.batch_hash)

    def _create2(self) -> Create2Auth:
        data = self.wallet.eth_signer.create2_wallet_data
        return Create2Auth(
            creator_address=data.creator_address,
            salt_arg=data.salt_arg,
            code_hash=data.code_hash,
        )

    async def _ecdsa_legacy(self, change_pub_key: ChangePubKey, new_pub_key_hash: str) -> str:
        account_id = await self.wallet.require_account_id(
            "ChangePubKey authorized by ECDSALegacyMessage."
        )
        message = get_change_pub_key_legacy_message(
            new_pub_key_hash,
            change_pub_key.nonce,
            account_id,
        )
        signature = await self.wallet.eth_message_signer.get_eth_message_signature(message)
        return signature.signature
