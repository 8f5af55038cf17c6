# src/claim_gate/models/__init__.py
"""SQLAlchemy models for the Claim Gate application."""

from .config import ClaimConfig
from .guard_state import ActorGuardState
from .ledger import LedgerAccount, OwnedItem
from .replay_protection import ConsumedClaim

__all__ = [
    "ActorGuardState",
    "ClaimConfig",
    "ConsumedClaim",
    "LedgerAccount", "OwnedItem",
]
