"""Replay protection for claims.

Two independent mechanisms guard against reuse: the per-actor nonce orders an
actor's claims, and the global consumed set makes each unique id single-use
regardless of nonce state.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from claim_gate.core.claims import Claim, Flow
from claim_gate.models import ActorGuardState, ConsumedClaim
from claim_gate.services.errors import DuplicateClaim, NonceMismatch


def load_guard_state(db: Session, actor: str) -> ActorGuardState:
    """Return the actor's guard state, or an unsaved all-zero record if none exists.

    The returned object is only attached to the session when the pipeline
    commits a claim for the actor.
    """
    state = db.get(ActorGuardState, actor)
    if state is None:
        state = ActorGuardState(
            actor=actor,
            nonce=0,
            last_claim_timestamp=0,
            daily_consumed=0,
            daily_bucket=0,
        )
    return state


class ReplayGuard:
    """Service enforcing at-most-once consumption of claims."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def is_consumed(self, unique_id: str) -> bool:
        """Return True if ``unique_id`` was already consumed by a finalized claim."""
        return self.db.get(ConsumedClaim, unique_id) is not None

    def check(self, claim: Claim, state: ActorGuardState) -> None:
        """Reject a claim whose id was used or whose nonce is not the actor's next one."""
        if self.is_consumed(claim.unique_id):
            raise DuplicateClaim(f"Claim {claim.unique_id} has already been processed")
        if claim.nonce != state.nonce:
            raise NonceMismatch(f"Expected nonce {state.nonce}, got {claim.nonce}")

    def reserve(
        self,
        claim: Claim,
        state: ActorGuardState,
        *,
        flow: Flow,
        now: int,
    ) -> ConsumedClaim:
        """Stage the consumed-id record and the nonce increment.

        Must only run inside the pipeline's unit of work, after every check passed.
        """
        record = ConsumedClaim(
            unique_id=claim.unique_id,
            flow=flow,
            actor=claim.actor,
            magnitude=claim.magnitude,
            nonce=claim.nonce,
            consumed_at=now,
        )
        self.db.add(record)
        state.nonce = claim.nonce + 1
        return record
