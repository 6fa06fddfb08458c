"""
Configuration management for the rollup wallet.

Supports configuration via environment variables and .env files.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class VerificationMethod(str, Enum):
    """How the network verifies Ethereum-compatible signatures of an account."""
    ECDSA = "ECDSA"
    ERC1271 = "ERC-1271"


class NonceSource(str, Enum):
    """Account state a fetched nonce is read from."""
    COMMITTED = "committed"
    VERIFIED = "verified"


class WalletConfig(BaseSettings):
    """
    Configuration settings for the rollup wallet.

    All settings can be configured via environment variables with the ROLLUP_WALLET_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="ROLLUP_WALLET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Ethereum signer settings
    eth_private_key: Optional[SecretStr] = Field(
        default=None,
        description="Hex-encoded private key for the Ethereum message signer"
    )
    verification_method: VerificationMethod = Field(
        default=VerificationMethod.ECDSA,
        description="Default signature verification method for new wallets"
    )
    is_signed_msg_prefixed: bool = Field(
        default=True,
        description="Whether the Ethereum signer prefixes messages itself"
    )

    # Transaction defaults
    nonce_source: NonceSource = Field(
        default=NonceSource.COMMITTED,
        description="Account state used when a nonce is fetched from the network"
    )
    fast_processing: bool = Field(
        default=False,
        description="Request fast processing for withdrawals by default"
    )
    change_pub_key_auth_type: str = Field(
        default="ECDSA",
        description="Default authorization mode for ChangePubKey transactions"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )


# Global config instance
_config: Optional[WalletConfig] = None


def get_config() -> WalletConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = WalletConfig()
    return _config


def set_config(config: WalletConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
