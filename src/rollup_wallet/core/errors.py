"""
Wallet error types.

Precondition and idempotence-guard failures raised by the signing core.
Errors coming from the network collaborators are defined in
``rollup_wallet.provider.interface`` and are propagated unchanged.
"""


class WalletError(Exception):
    """Base class for errors raised by the signing core."""
    pass


class SignerRequiredError(WalletError):
    """Raised when an operation needs an L2 signer and none is attached."""
    pass


class InvalidEthSignerTypeError(WalletError):
    """Raised when the Ethereum signer type is missing or malformed."""
    pass


class UnsupportedAuthTypeError(WalletError):
    """Raised for an unknown ChangePubKey authorization type."""
    pass


class Create2AuthError(WalletError):
    """Raised when CREATE2 authorization is requested by a non-CREATE2 wallet."""
    pass


class InvalidOrderError(WalletError):
    """Raised for malformed swap orders (bad ratio, implicit amounts)."""
    pass


class InvalidTokenError(WalletError):
    """Raised when a token cannot be used for the requested operation."""
    pass


class BatchBuildError(WalletError):
    """Raised when a transaction batch cannot be built."""
    pass


class SigningKeyAlreadySetError(WalletError):
    """Raised when the new signing key equals the currently registered one."""
    pass
