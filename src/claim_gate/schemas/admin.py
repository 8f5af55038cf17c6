# src/claim_gate/schemas/admin.py
"""Administrative Pydantic schemas."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Ledger columns are signed 64-bit integers.
MAX_LEDGER_VALUE = 2**63 - 1


class AddressUpdate(BaseModel):
    """Schema for replacing the signer or reserve address."""

    address: str = Field(..., description="0x-prefixed 20-byte address")


class LimitsUpdate(BaseModel):
    max_single: int
    max_daily: int
    cooldown_seconds: int


class ExpiryWindowUpdate(BaseModel):
    seconds: int


class ClaimConfigResponse(BaseModel):
    """Schema for the persisted claim configuration."""

    model_config = ConfigDict(from_attributes=True)

    authorized_signer: str
    reserve_address: str
    max_single_claim: int
    max_daily_per_actor: int
    cooldown_seconds: int
    expiry_window_seconds: int
    paused: bool


class LedgerAccountUpdate(BaseModel):
    """Mint to an account and optionally set what it lets the service draw."""

    address: str
    credit: int = Field(0, ge=0, le=MAX_LEDGER_VALUE)
    allowance: int | None = Field(None, ge=0, le=MAX_LEDGER_VALUE)


class LedgerAccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    address: str
    balance: int
    allowance: int
