"""Per-claim, per-day and cooldown throttling of claims."""

from __future__ import annotations

from claim_gate.core.clock import day_of
from claim_gate.models import ActorGuardState, ClaimConfig
from claim_gate.services.errors import CooldownActive, DailyCapExceeded, SingleCapExceeded


def effective_daily_consumed(state: ActorGuardState, now: int) -> int:
    """Return what the actor has consumed today, treating a stale bucket as empty."""
    if state.daily_bucket != day_of(now):
        return 0
    return state.daily_consumed


def remaining_daily_allowance(state: ActorGuardState, config: ClaimConfig, now: int) -> int:
    return max(0, config.max_daily_per_actor - effective_daily_consumed(state, now))


def cooldown_remaining(state: ActorGuardState, config: ClaimConfig, now: int) -> int:
    """Return seconds until the actor may claim again (0 if allowed now)."""
    if config.cooldown_seconds <= 0 or state.last_claim_timestamp == 0:
        return 0
    return max(0, state.last_claim_timestamp + config.cooldown_seconds - now)


class RateLimiter:
    """Enforces the single-claim cap, the daily cap and the cooldown."""

    def check(
        self,
        state: ActorGuardState,
        magnitude: int,
        config: ClaimConfig,
        now: int,
    ) -> None:
        """Raise if a claim of ``magnitude`` would exceed any limit at ``now``."""
        if magnitude > config.max_single_claim:
            raise SingleCapExceeded(
                f"Claim of {magnitude} exceeds the single-claim maximum {config.max_single_claim}"
            )

        consumed = effective_daily_consumed(state, now)
        if consumed + magnitude > config.max_daily_per_actor:
            raise DailyCapExceeded(
                f"Claim of {magnitude} exceeds the remaining daily allowance "
                f"{max(0, config.max_daily_per_actor - consumed)}"
            )

        wait = cooldown_remaining(state, config, now)
        if wait > 0:
            raise CooldownActive(f"Actor may claim again in {wait}s")

    def reserve(self, state: ActorGuardState, magnitude: int, now: int) -> None:
        """Apply the day rollover, add ``magnitude`` and stamp the claim time."""
        bucket = day_of(now)
        if state.daily_bucket != bucket:
            state.daily_bucket = bucket
            state.daily_consumed = 0
        state.daily_consumed += magnitude
        state.last_claim_timestamp = now
