"""Claim envelopes and the exact message layout the off-chain signer signs.

The signed message is the tight packing, in fixed order, of::

    actor(20) | magnitude(32) | unique_id(32) | nonce(32) | expiry(32) | chain_id(32) | verifier(20)

Integers are big-endian unsigned 256-bit words and addresses are raw 20-byte
values. The keccak-256 of that packing is the "message hash"; wallets sign it
under the standard signed-message prefix.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from claim_gate.core.signatures import (
    ADDRESS_LENGTH_BYTES,
    HASH_LENGTH_BYTES,
    decode_hex,
    keccak256,
    normalize_address,
    sign_message_hash,
)

Flow = Literal["purchase", "reward"]
FLOWS: tuple[Flow, ...] = ("purchase", "reward")

UINT256_MAX = 2**256 - 1
WORD_BYTES = 32


@dataclass(frozen=True)
class SigningDomain:
    """Where a claim may be redeemed: network plus the redeeming service's identity."""

    chain_id: int
    verifying_address: str


@dataclass(frozen=True)
class ClaimFields:
    """The signed portion of a claim."""

    actor: str
    magnitude: int
    unique_id: str
    nonce: int
    expiry: int


@dataclass(frozen=True)
class Claim:
    """A signed, single-use authorization for one purchase or reward."""

    fields: ClaimFields
    signature: bytes

    @property
    def actor(self) -> str:
        return self.fields.actor

    @property
    def magnitude(self) -> int:
        return self.fields.magnitude

    @property
    def unique_id(self) -> str:
        return self.fields.unique_id

    @property
    def nonce(self) -> int:
        return self.fields.nonce

    @property
    def expiry(self) -> int:
        return self.fields.expiry


def _uint256(value: int) -> bytes:
    if not (0 <= value <= UINT256_MAX):
        raise ValueError(f"{value} does not fit in an unsigned 256-bit word")
    return value.to_bytes(WORD_BYTES, "big")


def pack_claim_message(fields: ClaimFields, domain: SigningDomain) -> bytes:
    """Return the packed bytes whose keccak-256 the signer must sign."""
    return b"".join(
        (
            decode_hex(fields.actor, ADDRESS_LENGTH_BYTES),
            _uint256(fields.magnitude),
            decode_hex(fields.unique_id, HASH_LENGTH_BYTES),
            _uint256(fields.nonce),
            _uint256(fields.expiry),
            _uint256(domain.chain_id),
            decode_hex(domain.verifying_address, ADDRESS_LENGTH_BYTES),
        )
    )


def claim_message_hash(fields: ClaimFields, domain: SigningDomain) -> bytes:
    """Return the 32-byte message hash for a claim under ``domain``."""
    return keccak256(pack_claim_message(fields, domain))


def normalize_unique_id(value: str) -> str:
    """Validate a 32-byte identifier and return it as ``0x``-prefixed lowercase hex."""
    return "0x" + decode_hex(value, HASH_LENGTH_BYTES).hex()


def build_fields(
    actor: str,
    magnitude: int,
    unique_id: str,
    nonce: int,
    expiry: int,
) -> ClaimFields:
    """Construct :class:`ClaimFields` with canonical address and id encodings."""
    return ClaimFields(
        actor=normalize_address(actor),
        magnitude=magnitude,
        unique_id=normalize_unique_id(unique_id),
        nonce=nonce,
        expiry=expiry,
    )


def sign_claim(private_key: bytes, fields: ClaimFields, domain: SigningDomain) -> Claim:
    """Produce a signed claim the way the off-chain authorizer does."""
    signature = sign_message_hash(private_key, claim_message_hash(fields, domain))
    return Claim(fields=fields, signature=signature)
