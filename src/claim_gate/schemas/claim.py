# src/claim_gate/schemas/claim.py
"""Claim-related Pydantic schemas."""
from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from claim_gate.core.claims import UINT256_MAX, Claim, ClaimFields, Flow, normalize_unique_id
from claim_gate.core.signatures import SIGNATURE_LENGTH_BYTES, decode_hex, normalize_address


class ClaimFieldsIn(BaseModel):
    """The signed fields of a claim, as the off-chain authorizer issues them."""

    actor: str = Field(..., description="20-byte actor address, 0x-prefixed hex")
    magnitude: int = Field(..., ge=1, le=UINT256_MAX, description="Price or reward amount")
    unique_id: str = Field(..., description="32-byte purchase id or run id, hex")
    nonce: int = Field(..., ge=0, le=UINT256_MAX)
    expiry: int = Field(..., ge=0, le=UINT256_MAX, description="Unix seconds")

    @field_validator("actor")
    @classmethod
    def _normalize_actor(cls, value: str) -> str:
        return normalize_address(value)

    @field_validator("unique_id")
    @classmethod
    def _normalize_unique_id(cls, value: str) -> str:
        return normalize_unique_id(value)

    def to_fields(self) -> ClaimFields:
        return ClaimFields(
            actor=self.actor,
            magnitude=self.magnitude,
            unique_id=self.unique_id,
            nonce=self.nonce,
            expiry=self.expiry,
        )


class ClaimEnvelope(ClaimFieldsIn):
    """Schema for submitting a signed claim."""

    signature: str = Field(..., description="65-byte r||s||v signature, hex")

    @field_validator("signature")
    @classmethod
    def _check_signature(cls, value: str) -> str:
        return "0x" + decode_hex(value, SIGNATURE_LENGTH_BYTES).hex()

    def to_claim(self) -> Claim:
        return Claim(fields=self.to_fields(), signature=decode_hex(self.signature))


class PreviewHashRequest(ClaimFieldsIn):
    """Fields to hash for a flow, exactly as the signer would."""

    flow: Flow


class PreviewHashResponse(BaseModel):
    flow: Flow
    chain_id: int
    verifying_address: str
    message_hash: str


class ClaimReceiptResponse(BaseModel):
    """Schema for a finalized claim returned by the API."""

    flow: str
    actor: str
    unique_id: str
    magnitude: int
    nonce: int
    new_nonce: int
    consumed_at: int
    item_id: int | None = None


class ClaimStatusResponse(BaseModel):
    unique_id: str
    consumed: bool
    receipt: ClaimReceiptResponse | None = None


class GuardSnapshotResponse(BaseModel):
    """Schema for an actor's replay and rate-limit state."""

    actor: str
    nonce: int
    last_claim_timestamp: int
    daily_consumed: int
    remaining_daily_allowance: int
    cooldown_remaining: int
    can_claim_now: bool
