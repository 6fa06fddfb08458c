"""
Transaction data model.

Contains the caller-facing transaction intents for every transaction kind,
ChangePubKey authorization data variants, swap orders and the signed
transaction envelope handed to the submission gateway.

Intents are mutable: the wallet fills ``nonce`` and ``fee`` exactly once
before signing. Signed payloads are plain dicts in the network's wire
format (camelCase keys) as returned by the L2 signer.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

TokenLike = Union[int, str]
FeeType = Union[str, Dict[str, Any]]
SignedPayload = Dict[str, Any]


class TxKind(str, Enum):
    """Transaction kinds supported by the signing core."""
    TRANSFER = "Transfer"
    WITHDRAW = "Withdraw"
    FORCED_EXIT = "ForcedExit"
    CHANGE_PUB_KEY = "ChangePubKey"
    SWAP = "Swap"
    MINT_NFT = "MintNFT"
    WITHDRAW_NFT = "WithdrawNFT"


class ChangePubKeyAuthType(str, Enum):
    """Authorization modes for registering a new L2 signing key."""
    ONCHAIN = "Onchain"
    ECDSA = "ECDSA"
    CREATE2 = "CREATE2"
    ECDSA_LEGACY_MESSAGE = "ECDSALegacyMessage"


class RatioType(str, Enum):
    """Units a swap ratio is expressed in."""
    WEI = "Wei"       # minor units
    TOKEN = "Token"   # human-readable token units


# =============================================================================
# Transaction intents
# =============================================================================

@dataclass
class Transfer:
    """Transfer of funds to another L2 account."""
    to: str
    token: TokenLike
    amount: int
    fee: Optional[int] = None
    nonce: Optional[int] = None
    valid_from: Optional[int] = None
    valid_until: Optional[int] = None


@dataclass
class Withdraw:
    """Withdrawal of funds to an Ethereum address."""
    eth_address: str
    token: TokenLike
    amount: int
    fee: Optional[int] = None
    nonce: Optional[int] = None
    valid_from: Optional[int] = None
    valid_until: Optional[int] = None
    fast_processing: Optional[bool] = None


@dataclass
class ForcedExit:
    """Withdrawal of another account's funds to its own Ethereum address."""
    target: str
    token: TokenLike
    fee: Optional[int] = None
    nonce: Optional[int] = None
    valid_from: Optional[int] = None
    valid_until: Optional[int] = None


@dataclass
class ChangePubKey:
    """
    Registration of the wallet's L2 signing key.

    Attributes:
        fee_token: Token the fee is paid in
        eth_auth_type: One of the ChangePubKeyAuthType values
        batch_hash: Optional hash of the batch this transaction is part of (ECDSA only)
    """
    fee_token: TokenLike
    eth_auth_type: Optional[Union[ChangePubKeyAuthType, str]] = None
    fee: Optional[int] = None
    nonce: Optional[int] = None
    valid_from: Optional[int] = None
    valid_until: Optional[int] = None
    batch_hash: Optional[str] = None


@dataclass
class Ratio:
    """Exchange ratio of a swap order, keyed by token."""
    values: Dict[TokenLike, Union[int, str, Decimal]]
    type: RatioType = RatioType.WEI

    def get(self, token: TokenLike):
        return self.values.get(token)


def token_ratio(values: Dict[TokenLike, Union[int, str, Decimal]]) -> Ratio:
    """Ratio expressed in human-readable token units, e.g. ``{"ETH": 1, "USDT": 4000}``."""
    return Ratio(values=dict(values), type=RatioType.TOKEN)


def wei_ratio(values: Dict[TokenLike, int]) -> Ratio:
    """Ratio expressed in minor units."""
    return Ratio(values=dict(values), type=RatioType.WEI)


@dataclass
class Order:
    """One independently signed side of an atomic swap."""
    token_sell: TokenLike
    token_buy: TokenLike
    ratio: Ratio
    amount: int = 0
    recipient: Optional[str] = None
    nonce: Optional[int] = None
    valid_from: Optional[int] = None
    valid_until: Optional[int] = None


@dataclass
class Swap:
    """
    Swap of two signed orders, submitted by this wallet.

    ``orders`` are signed order payloads as returned by ``Wallet.sign_order``.
    """
    orders: Tuple[SignedPayload, SignedPayload]
    fee_token: TokenLike
    amounts: Optional[Tuple[int, int]] = None
    fee: Optional[int] = None
    nonce: Optional[int] = None


@dataclass
class MintNFT:
    recipient: str
    content_hash: Union[bytes, str]
    fee_token: TokenLike
    fee: Optional[int] = None
    nonce: Optional[int] = None


@dataclass
class WithdrawNFT:
    to: str
    token: int
    fee_token: TokenLike
    fee: Optional[int] = None
    nonce: Optional[int] = None
    valid_from: Optional[int] = None
    valid_until: Optional[int] = None
    fast_processing: Optional[bool] = None


TransactionIntent = Union[Transfer, Withdraw, ForcedExit, ChangePubKey, Swap, MintNFT, WithdrawNFT]


# =============================================================================
# ChangePubKey authorization data
# =============================================================================

@dataclass(frozen=True)
class OnchainAuth:
    """Authorization performed by a separate on-chain call."""

    def to_dict(self) -> dict:
        return {"type": ChangePubKeyAuthType.ONCHAIN.value}


@dataclass(frozen=True)
class ECDSAAuth:
    """Authorization by an Ethereum signature over the ChangePubKey message."""
    eth_signature: str
    batch_hash: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "type": ChangePubKeyAuthType.ECDSA.value,
            "ethSignature": self.eth_signature,
            "batchHash": self.batch_hash,
        }


@dataclass(frozen=True)
class Create2Auth:
    """Authorization by the CREATE2 deployment data of the account."""
    creator_address: str
    salt_arg: str
    code_hash: str

    def to_dict(self) -> dict:
        return {
            "type": ChangePubKeyAuthType.CREATE2.value,
            "creatorAddress": self.creator_address,
            "saltArg": self.salt_arg,
            "codeHash": self.code_hash,
        }


ChangePubKeyAuthData = Union[OnchainAuth, ECDSAAuth, Create2Auth]


@dataclass(frozen=True)
class Create2Data:
    """CREATE2 deployment data a contract wallet address is derived from."""
    creator_address: str
    salt_arg: str
    code_hash: str


def change_pub_key_fee_type(auth_type: ChangePubKeyAuthType) -> Dict[str, Any]:
    """Fee type tag for a ChangePubKey with the given authorization mode."""
    if auth_type == ChangePubKeyAuthType.ECDSA_LEGACY_MESSAGE:
        return {"ChangePubKey": {"onchainPubkeyAuth": False}}
    return {"ChangePubKey": auth_type.value}


# =============================================================================
# Signatures and signed envelopes
# =============================================================================

@dataclass(frozen=True)
class TxEthSignature:
    """Ethereum-compatible signature tagged with its verification method."""
    type: str  # "EthereumSignature" or "EIP1271Signature"
    signature: str

    def to_dict(self) -> dict:
        return {"type": self.type, "signature": self.signature}


EthSignatureField = Union[None, TxEthSignature, List[Optional[TxEthSignature]]]


@dataclass
class SignedTransaction:
    """
    An L2-signed transaction plus its optional Ethereum-compatible signature.

    Swaps carry a list of three signatures: the submitter's and one per order.
    """
    tx: SignedPayload
    eth_signature: EthSignatureField = None

    @property
    def kind(self) -> Optional[str]:
        return self.tx.get("type")

    @property
    def nonce(self) -> Optional[int]:
        return self.tx.get("nonce")

    def to_dict(self) -> dict:
        if isinstance(self.eth_signature, list):
            signature: Any = [s.to_dict() if s else None for s in self.eth_signature]
        else:
            signature = self.eth_signature.to_dict() if self.eth_signature else None
        return {"tx": self.tx, "signature": signature}


@dataclass
class EthSignerType:
    """
    Capabilities of the Ethereum-compatible signer behind a wallet.

    Attributes:
        verification_method: "ECDSA" for externally owned accounts, "ERC-1271" for contracts
        is_signed_msg_prefixed: Whether the signer adds the Ethereum message prefix itself
    """
    verification_method: str = "ECDSA"
    is_signed_msg_prefixed: bool = True

    @property
    def signature_type(self) -> str:
        return "EthereumSignature" if self.verification_method == "ECDSA" else "EIP1271Signature"


@dataclass
class SubmittedTransaction:
    """Handle returned after a transaction was accepted by the submission gateway."""
    tx_hash: str
    signed: SignedTransaction
