"""secp256k1 signature utilities following the Ethereum signed-message convention.

Everything in here is pure: no settings, no database. Claim-specific message
layout lives in :mod:`claim_gate.core.claims`; this module only knows about
hashes, signatures and addresses.
"""
from __future__ import annotations

from coincurve import PrivateKey, PublicKey
from Crypto.Hash import keccak

ADDRESS_LENGTH_BYTES = 20
HASH_LENGTH_BYTES = 32
SIGNATURE_LENGTH_BYTES = 65
SIGNED_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n32"

# Order of the secp256k1 group; signatures with s above half of it are malleable.
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_HALF_N = SECP256K1_N // 2


class SignatureError(ValueError):
    """Raised when a signature cannot be parsed or recovered."""


def keccak256(data: bytes) -> bytes:
    """Return the Keccak-256 digest (pre-standard SHA-3 padding) of ``data``."""
    return keccak.new(digest_bits=256, data=data).digest()


def normalize_hex(value: str) -> str:
    """Lowercase a hex string and strip an optional ``0x`` prefix."""
    cleaned = value.strip().lower()
    if cleaned.startswith("0x"):
        cleaned = cleaned[2:]
    return cleaned


def decode_hex(value: str, length: int | None = None) -> bytes:
    """Decode a ``0x``-optional hex string, enforcing ``length`` bytes if given."""
    try:
        raw = bytes.fromhex(normalize_hex(value))
    except ValueError as err:
        raise ValueError(f"Invalid hex encoding: {err}") from err
    if length is not None and len(raw) != length:
        raise ValueError(f"Expected {length} bytes, got {len(raw)}")
    return raw


def to_address(raw: bytes) -> str:
    """Render 20 raw bytes as a ``0x``-prefixed lowercase address."""
    if len(raw) != ADDRESS_LENGTH_BYTES:
        raise ValueError(f"Addresses must be {ADDRESS_LENGTH_BYTES} bytes")
    return "0x" + raw.hex()


def normalize_address(value: str) -> str:
    """Validate an address string and return its canonical lowercase form."""
    return to_address(decode_hex(value, ADDRESS_LENGTH_BYTES))


def is_zero_address(address: str) -> bool:
    return decode_hex(address, ADDRESS_LENGTH_BYTES) == bytes(ADDRESS_LENGTH_BYTES)


def address_from_public_key(public_key: PublicKey) -> str:
    """Derive the account address (last 20 bytes of keccak(X || Y))."""
    uncompressed = public_key.format(compressed=False)
    return to_address(keccak256(uncompressed[1:])[-ADDRESS_LENGTH_BYTES:])


def eth_signed_message_hash(message_hash: bytes) -> bytes:
    """Apply the standard signed-message prefix to a 32-byte hash."""
    if len(message_hash) != HASH_LENGTH_BYTES:
        raise ValueError("Message hash must be 32 bytes")
    return keccak256(SIGNED_MESSAGE_PREFIX + message_hash)


def _split_signature(signature: bytes) -> tuple[bytes, int]:
    if len(signature) != SIGNATURE_LENGTH_BYTES:
        raise SignatureError(f"Signatures must be {SIGNATURE_LENGTH_BYTES} bytes")
    v = signature[64]
    if v in (27, 28):
        v -= 27
    if v not in (0, 1):
        raise SignatureError(f"Unsupported recovery id {signature[64]}")
    s = int.from_bytes(signature[32:64], "big")
    if s == 0 or s > _HALF_N:
        raise SignatureError("Signature s value is out of the canonical range")
    return signature[:64], v


def recover_signer(message_hash: bytes, signature: bytes) -> str:
    """Recover the address that signed ``message_hash`` under the signed-message prefix.

    Args:
        message_hash: The 32-byte hash the signer was asked to sign (before prefixing).
        signature: 65-byte ``r || s || v`` signature; ``v`` may be 0/1 or 27/28.

    Returns:
        The recovered ``0x``-prefixed lowercase address.

    Raises:
        SignatureError: If the signature is malformed, malleable, or unrecoverable.
    """
    rs, recovery_id = _split_signature(signature)
    digest = eth_signed_message_hash(message_hash)
    try:
        public_key = PublicKey.from_signature_and_message(
            rs + bytes([recovery_id]), digest, hasher=None
        )
    except Exception as err:  # coincurve raises ValueError or its own errors
        raise SignatureError(f"Unable to recover signer: {err}") from err
    return address_from_public_key(public_key)


def sign_message_hash(private_key: bytes, message_hash: bytes) -> bytes:
    """Sign a 32-byte hash the way an off-chain wallet signs a personal message.

    Returns:
        65-byte ``r || s || v`` signature with ``v`` in {27, 28}.
    """
    digest = eth_signed_message_hash(message_hash)
    recoverable = PrivateKey(private_key).sign_recoverable(digest, hasher=None)
    return recoverable[:64] + bytes([recoverable[64] + 27])


def address_of(private_key: bytes) -> str:
    """Return the address controlled by a raw 32-byte private key."""
    return address_from_public_key(PrivateKey(private_key).public_key)
