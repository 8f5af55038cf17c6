# src/claim_gate/api/v1/endpoints/actors.py
"""Read-only per-actor guard state endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from claim_gate.core.signatures import normalize_address
from claim_gate.schemas.claim import GuardSnapshotResponse

from ..dependencies import ClaimServiceDep

router = APIRouter(prefix="/actors", tags=["actors"])


def _actor_or_422(actor: str) -> str:
    try:
        return normalize_address(actor)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid actor address: {err}",
        ) from err


@router.get("/{actor}", response_model=GuardSnapshotResponse)
async def get_actor(actor: str, service: ClaimServiceDep) -> GuardSnapshotResponse:
    """Return the actor's nonce, daily usage and cooldown state."""
    snapshot = service.guard_snapshot(_actor_or_422(actor))
    return GuardSnapshotResponse(
        actor=snapshot.actor,
        nonce=snapshot.nonce,
        last_claim_timestamp=snapshot.last_claim_timestamp,
        daily_consumed=snapshot.daily_consumed,
        remaining_daily_allowance=snapshot.remaining_daily_allowance,
        cooldown_remaining=snapshot.cooldown_remaining,
        can_claim_now=snapshot.can_claim_now,
    )


@router.get("/{actor}/nonce")
async def current_nonce(actor: str, service: ClaimServiceDep) -> dict[str, object]:
    """Return the nonce the actor's next claim must carry."""
    address = _actor_or_422(actor)
    return {"actor": address, "nonce": service.current_nonce(address)}


@router.get("/{actor}/allowance")
async def remaining_daily_allowance(actor: str, service: ClaimServiceDep) -> dict[str, object]:
    address = _actor_or_422(actor)
    return {
        "actor": address,
        "remaining_daily_allowance": service.remaining_daily_allowance(address),
    }


@router.get("/{actor}/can-claim")
async def can_claim_now(actor: str, service: ClaimServiceDep) -> dict[str, object]:
    address = _actor_or_422(actor)
    return {"actor": address, "can_claim_now": service.can_claim_now(address)}
