"""Claim signature and validity-window verification."""
from __future__ import annotations

import logging

from claim_gate.core.claims import Claim, ClaimFields, Flow, SigningDomain, claim_message_hash
from claim_gate.core.settings import settings
from claim_gate.core.signatures import SignatureError, normalize_address, recover_signer
from claim_gate.models import ClaimConfig
from claim_gate.services.errors import Expired, ExpiryWindowExceeded, InvalidSignature

logger = logging.getLogger(__name__)


def signing_domain(flow: Flow) -> SigningDomain:
    """Return the domain a claim of ``flow`` must be signed under.

    Each flow has its own verifying address, so a signature issued for one
    flow never validates against the other.
    """
    verifying_address = (
        settings.purchase_verifier_address
        if flow == "purchase"
        else settings.reward_verifier_address
    )
    return SigningDomain(
        chain_id=settings.chain_id,
        verifying_address=normalize_address(verifying_address),
    )


class ClaimAuthorizationVerifier:
    """Checks that a claim was signed by the authorized signer and is currently valid."""

    def __init__(self, domain: SigningDomain) -> None:
        self.domain = domain

    @classmethod
    def for_flow(cls, flow: Flow) -> ClaimAuthorizationVerifier:
        return cls(signing_domain(flow))

    def message_hash(self, fields: ClaimFields) -> bytes:
        """Return the hash the off-chain signer is expected to sign for ``fields``."""
        return claim_message_hash(fields, self.domain)

    def verify(self, claim: Claim, config: ClaimConfig, now: int) -> None:
        """Validate signature and expiry of ``claim`` at time ``now``.

        Args:
            claim: The submitted claim.
            config: Current claim configuration (signer and expiry window).
            now: Current unix time in seconds.

        Raises:
            InvalidSignature: If the signature does not recover to the authorized signer.
            Expired: If ``now`` is past the claim's expiry.
            ExpiryWindowExceeded: If the expiry lies beyond ``now + expiry_window_seconds``.
        """
        try:
            signer = recover_signer(self.message_hash(claim.fields), claim.signature)
        except (SignatureError, ValueError) as err:
            raise InvalidSignature(f"Malformed signature: {err}") from err

        if signer != config.authorized_signer:
            logger.debug("Signature recovered to %s, expected %s", signer, config.authorized_signer)
            raise InvalidSignature("Signature was not produced by the authorized signer")

        if now > claim.expiry:
            raise Expired(f"Claim expired at {claim.expiry}")

        if claim.expiry > now + config.expiry_window_seconds:
            raise ExpiryWindowExceeded(
                f"Claim expiry {claim.expiry} exceeds the {config.expiry_window_seconds}s window"
            )
