"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated, Any, NoReturn

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from claim_gate.core.clock import Clock, get_clock
from claim_gate.core.security import ADMIN_ROLE, TokenError, decode_access_token
from claim_gate.db.session import get_db
from claim_gate.services.claims import ClaimService
from claim_gate.services.errors import ClaimError

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_clock_dep() -> Clock:
    """Return the clock used to evaluate claims."""
    return get_clock()


ClockDep = Annotated[Clock, Depends(get_clock_dep)]


def get_claim_service(db: SessionDep, clock: ClockDep) -> ClaimService:
    """Return a claim service bound to the request's session."""
    return ClaimService(db, clock)


ClaimServiceDep = Annotated[ClaimService, Depends(get_claim_service)]


def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> dict[str, Any]:
    """Authorize an administrative request from its bearer token.

    Returns:
        The decoded token claims.

    Raises:
        HTTPException: 401 for a missing or invalid token, 403 for a non-admin role.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_access_token(credentials.credentials)
    except TokenError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from err
    if payload.get("role") != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator role required",
        )
    return payload


AdminDep = Annotated[dict[str, Any], Depends(require_admin)]


def raise_http(err: ClaimError) -> NoReturn:
    """Translate a domain rejection into the HTTP error clients receive."""
    raise HTTPException(status_code=err.status_code, detail=err.to_detail()) from err
