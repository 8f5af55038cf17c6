"""Administrative configuration store.

All writes to :class:`~claim_gate.models.ClaimConfig` go through this module.
Callers are expected to have passed the admin access check already; this layer
only validates parameters.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from claim_gate.core.settings import settings
from claim_gate.core.signatures import is_zero_address, normalize_address
from claim_gate.models import ClaimConfig
from claim_gate.models.config import CONFIG_ROW_ID
from claim_gate.services.errors import InvalidAdminParameter, Paused

logger = logging.getLogger(__name__)

MIN_EXPIRY_WINDOW_SECONDS = 60
MAX_EXPIRY_WINDOW_SECONDS = 86_400
MAX_COOLDOWN_SECONDS = 86_400
# Limits are stored in signed 64-bit columns.
MAX_LIMIT_VALUE = 2**63 - 1


def default_config() -> ClaimConfig:
    """Build an unsaved configuration from the environment settings."""
    return ClaimConfig(
        id=CONFIG_ROW_ID,
        authorized_signer=normalize_address(settings.authorized_signer),
        reserve_address=normalize_address(settings.reserve_address),
        max_single_claim=settings.max_single_claim,
        max_daily_per_actor=settings.max_daily_per_actor,
        cooldown_seconds=settings.cooldown_seconds,
        expiry_window_seconds=settings.expiry_window_seconds,
        paused=False,
    )


def _validated_address(field: str, value: str) -> str:
    try:
        address = normalize_address(value)
    except ValueError as err:
        raise InvalidAdminParameter(f"{field} is not a valid address: {err}") from err
    if is_zero_address(address):
        raise InvalidAdminParameter(f"{field} must not be the zero address")
    return address


class AdminConfigStore:
    """Reads and mutates the persisted claim configuration."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def current(self) -> ClaimConfig:
        """Return the active configuration without writing anything.

        Before the first administrative change this is an unsaved copy of the
        environment defaults.
        """
        config = self.db.get(ClaimConfig, CONFIG_ROW_ID)
        return config if config is not None else default_config()

    def _row(self) -> ClaimConfig:
        config = self.db.get(ClaimConfig, CONFIG_ROW_ID)
        if config is None:
            config = default_config()
            self.db.add(config)
        return config

    def _commit(self, config: ClaimConfig) -> ClaimConfig:
        self.db.commit()
        self.db.refresh(config)
        return config

    def set_authorized_signer(self, address: str) -> ClaimConfig:
        signer = _validated_address("signer", address)
        config = self._row()
        logger.info("Authorized signer changed from %s to %s", config.authorized_signer, signer)
        config.authorized_signer = signer
        return self._commit(config)

    def set_reserve_address(self, address: str) -> ClaimConfig:
        reserve = _validated_address("reserve", address)
        config = self._row()
        logger.info("Reserve address changed from %s to %s", config.reserve_address, reserve)
        config.reserve_address = reserve
        return self._commit(config)

    def set_limits(self, max_single: int, max_daily: int, cooldown_seconds: int) -> ClaimConfig:
        """Replace the single-claim cap, the daily cap and the cooldown together."""
        if not (1 <= max_single <= MAX_LIMIT_VALUE):
            raise InvalidAdminParameter("max_single must be a positive 64-bit integer")
        if not (1 <= max_daily <= MAX_LIMIT_VALUE):
            raise InvalidAdminParameter("max_daily must be a positive 64-bit integer")
        if max_single > max_daily:
            raise InvalidAdminParameter("max_single cannot exceed max_daily")
        if not (0 <= cooldown_seconds <= MAX_COOLDOWN_SECONDS):
            raise InvalidAdminParameter(
                f"cooldown_seconds must lie within [0, {MAX_COOLDOWN_SECONDS}]"
            )

        config = self._row()
        logger.info(
            "Limits changed from (%d, %d, %ds) to (%d, %d, %ds)",
            config.max_single_claim,
            config.max_daily_per_actor,
            config.cooldown_seconds,
            max_single,
            max_daily,
            cooldown_seconds,
        )
        config.max_single_claim = max_single
        config.max_daily_per_actor = max_daily
        config.cooldown_seconds = cooldown_seconds
        return self._commit(config)

    def set_expiry_window(self, seconds: int) -> ClaimConfig:
        if not (MIN_EXPIRY_WINDOW_SECONDS <= seconds <= MAX_EXPIRY_WINDOW_SECONDS):
            raise InvalidAdminParameter(
                f"expiry window must lie within "
                f"[{MIN_EXPIRY_WINDOW_SECONDS}, {MAX_EXPIRY_WINDOW_SECONDS}] seconds"
            )
        config = self._row()
        logger.info(
            "Expiry window changed from %ds to %ds", config.expiry_window_seconds, seconds
        )
        config.expiry_window_seconds = seconds
        return self._commit(config)

    def pause(self) -> ClaimConfig:
        if self.current().paused:
            raise Paused("Claims are already paused")
        config = self._row()
        config.paused = True
        logger.warning("Claim processing paused")
        return self._commit(config)

    def unpause(self) -> ClaimConfig:
        if not self.current().paused:
            raise InvalidAdminParameter("Claims are not paused")
        config = self._row()
        config.paused = False
        logger.warning("Claim processing resumed")
        return self._commit(config)
