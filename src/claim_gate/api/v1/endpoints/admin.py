# src/claim_gate/api/v1/endpoints/admin.py
"""Administrative endpoints: signer, reserve, limits, pause and ledger plumbing."""

from __future__ import annotations

from collections.abc import Callable

from fastapi import APIRouter, status

from claim_gate.core.signatures import normalize_address
from claim_gate.models import ClaimConfig
from claim_gate.schemas.admin import (
    AddressUpdate,
    ClaimConfigResponse,
    ExpiryWindowUpdate,
    LedgerAccountResponse,
    LedgerAccountUpdate,
    LimitsUpdate,
)
from claim_gate.services.admin import AdminConfigStore
from claim_gate.services.errors import ClaimError, InvalidAdminParameter
from claim_gate.services.ledger import LedgerError, SqlValueLedger

from ..dependencies import AdminDep, SessionDep, raise_http

router = APIRouter(prefix="/admin", tags=["admin"])


def _apply(change: Callable[[], ClaimConfig]) -> ClaimConfigResponse:
    try:
        config = change()
    except ClaimError as err:
        raise_http(err)
    return ClaimConfigResponse.model_validate(config)


@router.get("/config", response_model=ClaimConfigResponse)
async def get_config(db: SessionDep, _admin: AdminDep) -> ClaimConfigResponse:
    """Return the configuration the next claim will be evaluated against."""
    return ClaimConfigResponse.model_validate(AdminConfigStore(db).current())


@router.put("/signer", response_model=ClaimConfigResponse)
async def set_authorized_signer(
    update: AddressUpdate,
    db: SessionDep,
    _admin: AdminDep,
) -> ClaimConfigResponse:
    store = AdminConfigStore(db)
    return _apply(lambda: store.set_authorized_signer(update.address))


@router.put("/reserve", response_model=ClaimConfigResponse)
async def set_reserve_address(
    update: AddressUpdate,
    db: SessionDep,
    _admin: AdminDep,
) -> ClaimConfigResponse:
    store = AdminConfigStore(db)
    return _apply(lambda: store.set_reserve_address(update.address))


@router.put("/limits", response_model=ClaimConfigResponse)
async def set_limits(update: LimitsUpdate, db: SessionDep, _admin: AdminDep) -> ClaimConfigResponse:
    store = AdminConfigStore(db)
    return _apply(
        lambda: store.set_limits(update.max_single, update.max_daily, update.cooldown_seconds)
    )


@router.put("/expiry-window", response_model=ClaimConfigResponse)
async def set_expiry_window(
    update: ExpiryWindowUpdate,
    db: SessionDep,
    _admin: AdminDep,
) -> ClaimConfigResponse:
    store = AdminConfigStore(db)
    return _apply(lambda: store.set_expiry_window(update.seconds))


@router.post("/pause", response_model=ClaimConfigResponse)
async def pause(db: SessionDep, _admin: AdminDep) -> ClaimConfigResponse:
    """Stop accepting new claims until unpaused."""
    return _apply(AdminConfigStore(db).pause)


@router.post("/unpause", response_model=ClaimConfigResponse)
async def unpause(db: SessionDep, _admin: AdminDep) -> ClaimConfigResponse:
    return _apply(AdminConfigStore(db).unpause)


@router.post(
    "/ledger/accounts",
    response_model=LedgerAccountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def fund_ledger_account(
    update: LedgerAccountUpdate,
    db: SessionDep,
    _admin: AdminDep,
) -> LedgerAccountResponse:
    """Mint to a ledger account and optionally set the amount it authorizes the service to draw."""
    try:
        address = normalize_address(update.address)
    except ValueError as err:
        raise_http(InvalidAdminParameter(f"address is not a valid address: {err}"))
    try:
        account = SqlValueLedger(db).credit(address, update.credit, update.allowance)
    except LedgerError as err:
        raise_http(InvalidAdminParameter(str(err)))
    db.commit()
    db.refresh(account)
    return LedgerAccountResponse.model_validate(account)
