# src/claim_gate/api/v1/endpoints/claims.py
"""Purchase and reward claim endpoints for the Claim Gate API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from claim_gate.core.claims import normalize_unique_id
from claim_gate.schemas.claim import (
    ClaimEnvelope,
    ClaimReceiptResponse,
    ClaimStatusResponse,
    PreviewHashRequest,
    PreviewHashResponse,
)
from claim_gate.services.claims import ClaimReceipt
from claim_gate.services.errors import ClaimError
from claim_gate.services.verifier import signing_domain

from ..dependencies import ClaimServiceDep, raise_http

router = APIRouter(prefix="/claims", tags=["claims"])


def _receipt_response(receipt: ClaimReceipt) -> ClaimReceiptResponse:
    return ClaimReceiptResponse(
        flow=receipt.flow,
        actor=receipt.actor,
        unique_id=receipt.unique_id,
        magnitude=receipt.magnitude,
        nonce=receipt.nonce,
        new_nonce=receipt.new_nonce,
        consumed_at=receipt.consumed_at,
        item_id=receipt.item_id,
    )


@router.post(
    "/purchase",
    status_code=status.HTTP_201_CREATED,
    response_model=ClaimReceiptResponse,
    summary="Redeem a signed purchase authorization",
)
async def purchase(envelope: ClaimEnvelope, service: ClaimServiceDep) -> ClaimReceiptResponse:
    """Burn the price from the buyer and issue the purchased item."""
    try:
        receipt = service.purchase(envelope.to_claim())
    except ClaimError as err:
        raise_http(err)
    return _receipt_response(receipt)


@router.post(
    "/reward",
    status_code=status.HTTP_201_CREATED,
    response_model=ClaimReceiptResponse,
    summary="Redeem a signed reward authorization",
)
async def claim_reward(envelope: ClaimEnvelope, service: ClaimServiceDep) -> ClaimReceiptResponse:
    """Pay the reward from the reserve to the actor."""
    try:
        receipt = service.claim_reward(envelope.to_claim())
    except ClaimError as err:
        raise_http(err)
    return _receipt_response(receipt)


@router.post("/preview-hash", response_model=PreviewHashResponse)
async def preview_message_hash(
    request: PreviewHashRequest,
    service: ClaimServiceDep,
) -> PreviewHashResponse:
    """Return the message hash the off-chain signer must sign for these fields."""
    domain = signing_domain(request.flow)
    digest = service.preview_message_hash(request.flow, request.to_fields())
    return PreviewHashResponse(
        flow=request.flow,
        chain_id=domain.chain_id,
        verifying_address=domain.verifying_address,
        message_hash="0x" + digest.hex(),
    )


@router.get("/{unique_id}", response_model=ClaimStatusResponse)
async def get_claim(unique_id: str, service: ClaimServiceDep) -> ClaimStatusResponse:
    """Report whether a unique id has been consumed, with its receipt if so."""
    try:
        normalized = normalize_unique_id(unique_id)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid unique id: {err}",
        ) from err

    receipt = service.get_receipt(normalized)
    return ClaimStatusResponse(
        unique_id=normalized,
        consumed=receipt is not None,
        receipt=_receipt_response(receipt) if receipt is not None else None,
    )
