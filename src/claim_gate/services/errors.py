"""Error taxonomy for claim processing and administration.

Every rejection raised by the pipeline derives from :class:`ClaimError`. The
``code`` is stable and is what API clients match on; ``status_code`` is the
HTTP status the API layer responds with.
"""

from __future__ import annotations


class ClaimError(RuntimeError):
    """Base exception for claim rejections.

    All subclasses are fail-closed: by the time one propagates out of the
    pipeline, no guard or ledger state has changed.
    """

    code: str = "ClaimError"
    status_code: int = 400

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)

    def to_detail(self) -> dict[str, str]:
        """Return the error as a JSON-serializable API detail payload."""
        return {"code": self.code, "message": str(self)}


class InvalidSignature(ClaimError):
    """The signature is malformed or was not produced by the authorized signer."""

    code = "InvalidSignature"
    status_code = 401


class Expired(ClaimError):
    code = "Expired"
    status_code = 400


class ExpiryWindowExceeded(ClaimError):
    """The claim expires further in the future than the configured window allows."""

    code = "ExpiryWindowExceeded"
    status_code = 400


class NonceMismatch(ClaimError):
    code = "NonceMismatch"
    status_code = 409


class DuplicateClaim(ClaimError):
    code = "DuplicateClaim"
    status_code = 409


class SingleCapExceeded(ClaimError):
    code = "SingleCapExceeded"
    status_code = 429


class DailyCapExceeded(ClaimError):
    code = "DailyCapExceeded"
    status_code = 429


class CooldownActive(ClaimError):
    code = "CooldownActive"
    status_code = 429


class LedgerEffectFailed(ClaimError):
    """The value movement was refused (insufficient balance or authorization)."""

    code = "LedgerEffectFailed"
    status_code = 402


class ReentrantCall(ClaimError):
    """The claim pipeline was entered again before the outer call returned."""

    code = "ReentrantCall"
    status_code = 409


class Paused(ClaimError):
    code = "Paused"
    status_code = 503


class InvalidAdminParameter(ClaimError):
    code = "InvalidAdminParameter"
    status_code = 422
