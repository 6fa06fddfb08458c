"""
Protocol constants and byte-level helpers.

Serialization rules here must match what the network reconstructs when it
verifies Ethereum-compatible authorization messages.
"""

from typing import Optional, Tuple, Union

from eth_utils import decode_hex, keccak, to_checksum_address, to_hex

MAX_TIMESTAMP = 4294967295
MIN_NFT_TOKEN_ID = 65536

PUB_KEY_HASH_PREFIX = "sync:"
ETH_MESSAGE_PREFIX = "\x19Ethereum Signed Message:\n"


def is_nft(token: Union[int, str]) -> bool:
    """Check whether a token identifier refers to an NFT."""
    return isinstance(token, int) and not isinstance(token, bool) and token >= MIN_NFT_TOKEN_ID


def serialize_nonce(nonce: int) -> bytes:
    if nonce < 0 or nonce > 0xFFFFFFFF:
        raise ValueError(f"Nonce out of range: {nonce}")
    return nonce.to_bytes(4, "big")


def serialize_account_id(account_id: int) -> bytes:
    if account_id < 0 or account_id > 0xFFFFFFFF:
        raise ValueError(f"Account id out of range: {account_id}")
    return account_id.to_bytes(4, "big")


def serialize_address(address: str) -> bytes:
    """
    Serialize an Ethereum address or a ``sync:`` public key hash to 20 bytes.

    Args:
        address: ``0x``-prefixed address or ``sync:``-prefixed key hash

    Returns:
        The 20 raw bytes
    """
    prefixless = address[len(PUB_KEY_HASH_PREFIX):] if address.startswith(PUB_KEY_HASH_PREFIX) else address
    data = decode_hex(prefixless)
    if len(data) != 20:
        raise ValueError(f"Address must be 20 bytes long: {address}")
    return data


def strip_pub_key_hash_prefix(pub_key_hash: str) -> str:
    return pub_key_hash.replace(PUB_KEY_HASH_PREFIX, "").lower()


def hexlify(data: Union[bytes, str]) -> str:
    """Normalize bytes or hex to a lowercase ``0x``-prefixed string."""
    if isinstance(data, (bytes, bytearray)):
        return to_hex(bytes(data))
    return to_hex(decode_hex(data))


def get_change_pub_key_message(
    pub_key_hash: str,
    nonce: int,
    account_id: int,
    batch_hash: Optional[str] = None,
) -> bytes:
    """
    Build the ECDSA ChangePubKey authorization message.

    Layout: pub key hash (20) | nonce (4, BE) | account id (4, BE) | batch hash (32).
    """
    msg_batch_hash = bytes(32) if batch_hash is None else decode_hex(batch_hash)
    if len(msg_batch_hash) != 32:
        raise ValueError("Batch hash must be 32 bytes long")
    return (
        serialize_address(pub_key_hash)
        + serialize_nonce(nonce)
        + serialize_account_id(account_id)
        + msg_batch_hash
    )


def get_change_pub_key_legacy_message(pub_key_hash: str, nonce: int, account_id: int) -> str:
    """Build the pre-ECDSA text message used by ECDSALegacyMessage authorization."""
    msg_nonce = to_hex(serialize_nonce(nonce))
    msg_account_id = to_hex(serialize_account_id(account_id))
    msg_pub_key_hash = serialize_address(pub_key_hash).hex()
    return (
        "Register zkSync pubkey:\n\n"
        f"{msg_pub_key_hash}\n"
        f"nonce: {msg_nonce}\n"
        f"account id: {msg_account_id}\n\n"
        "Only sign this message for a trusted client!"
    )


def get_signed_bytes_from_message(message: Union[str, bytes], add_prefix: bool) -> bytes:
    """
    Encode a message for signing.

    When the signer does not prefix messages itself, the Ethereum signed
    message prefix is prepended here.
    """
    message_bytes = message.encode("utf-8") if isinstance(message, str) else bytes(message)
    if add_prefix:
        prefix = f"{ETH_MESSAGE_PREFIX}{len(message_bytes)}".encode("utf-8")
        message_bytes = prefix + message_bytes
    return message_bytes


def get_create2_address_and_salt(
    sync_pub_key_hash: str,
    creator_address: str,
    salt_arg: str,
    code_hash: str,
) -> Tuple[str, str]:
    """
    Derive the CREATE2 account address bound to an L2 public key hash.

    Returns:
        Tuple of (checksummed address, hex salt)
    """
    additional_salt = decode_hex(salt_arg)
    if len(additional_salt) != 32:
        raise ValueError("create2 salt argument should be exactly 32 bytes long")

    salt = keccak(additional_salt + serialize_address(sync_pub_key_hash))
    digest = keccak(b"\xff" + decode_hex(creator_address) + salt + decode_hex(code_hash))
    return to_checksum_address(digest[12:]), to_hex(salt)
