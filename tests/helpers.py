# tests/helpers.py
"""Constants and small builders shared across the test suite."""
from __future__ import annotations

from claim_gate.core.claims import Claim
from claim_gate.core.signatures import address_of, keccak256

# 2023-11-14 22:13:20 UTC; day bucket 19675.
T0 = 1_700_000_000

SIGNER_KEY = bytes([7]) * 32
ROGUE_KEY = bytes([9]) * 32
SIGNER_ADDRESS = address_of(SIGNER_KEY)
ROGUE_ADDRESS = address_of(ROGUE_KEY)

ACTOR = "0x" + "a1" * 20
OTHER_ACTOR = "0x" + "b2" * 20
RESERVE = "0x" + "c3" * 20

RESERVE_FUNDS = 1_000_000
ACTOR_FUNDS = 100_000


def unique_id(label: str) -> str:
    """Return a deterministic 32-byte id for a human-readable label."""
    return "0x" + keccak256(label.encode()).hex()


def envelope(claim: Claim) -> dict[str, object]:
    """Serialize a claim into the JSON body the API accepts."""
    return {
        "actor": claim.actor,
        "magnitude": claim.magnitude,
        "unique_id": claim.unique_id,
        "nonce": claim.nonce,
        "expiry": claim.expiry,
        "signature": "0x" + claim.signature.hex(),
    }
