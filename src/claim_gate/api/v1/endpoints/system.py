# src/claim_gate/api/v1/endpoints/system.py
"""System and transparency endpoints for the Claim Gate API."""

from __future__ import annotations

from fastapi import APIRouter

from claim_gate.core.claims import FLOWS
from claim_gate.core.settings import settings
from claim_gate.services.admin import AdminConfigStore
from claim_gate.services.verifier import signing_domain

from ..dependencies import ClockDep, SessionDep

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config")
async def get_public_config(db: SessionDep, clock: ClockDep) -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Signers need the domain to build messages; clients need the limits to
    predict rejections. Secrets and connection strings are excluded.
    """
    config = AdminConfigStore(db).current()
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
        "domain": {
            flow: {
                "chain_id": signing_domain(flow).chain_id,
                "verifying_address": signing_domain(flow).verifying_address,
            }
            for flow in FLOWS
        },
        "claims": {
            "authorized_signer": config.authorized_signer,
            "reserve_address": config.reserve_address,
            "max_single_claim": config.max_single_claim,
            "max_daily_per_actor": config.max_daily_per_actor,
            "cooldown_seconds": config.cooldown_seconds,
            "expiry_window_seconds": config.expiry_window_seconds,
            "paused": config.paused,
        },
        "server_time": clock.now(),
    }
