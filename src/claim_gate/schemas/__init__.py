# src/claim_gate/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .admin import (
    AddressUpdate,
    ClaimConfigResponse,
    ExpiryWindowUpdate,
    LedgerAccountResponse,
    LedgerAccountUpdate,
    LimitsUpdate,
)
from .claim import (
    ClaimEnvelope,
    ClaimFieldsIn,
    ClaimReceiptResponse,
    ClaimStatusResponse,
    GuardSnapshotResponse,
    PreviewHashRequest,
    PreviewHashResponse,
)

__all__ = [
    "AddressUpdate", "ClaimConfigResponse", "ExpiryWindowUpdate",
    "LedgerAccountResponse", "LedgerAccountUpdate", "LimitsUpdate",
    "ClaimEnvelope", "ClaimFieldsIn", "ClaimReceiptResponse", "ClaimStatusResponse",
    "GuardSnapshotResponse", "PreviewHashRequest", "PreviewHashResponse",
]
