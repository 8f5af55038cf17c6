"""Claim processing pipeline shared by the purchase and reward flows.

A claim moves through::

    submitted -> signature verified -> replay checked -> rate checked
              -> guard committed -> effect executed -> finalized

Every check runs before anything is written. The guard-state writes and the
ledger call then share one savepoint, with the guard writes flushed first, so
a failing ledger call rolls everything back and a reentrant caller always sees
the nonce and consumed id already taken.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from claim_gate.core.claims import Claim, ClaimFields, Flow
from claim_gate.core.clock import Clock, get_clock
from claim_gate.models import ActorGuardState, ConsumedClaim
from claim_gate.services.admin import AdminConfigStore
from claim_gate.services.errors import ClaimError, DuplicateClaim, Paused, ReentrantCall
from claim_gate.services.ledger import (
    ItemRegistry,
    LedgerEffector,
    SqlItemRegistry,
    SqlValueLedger,
    ValueLedger,
)
from claim_gate.services.rate_limit import (
    RateLimiter,
    cooldown_remaining,
    effective_daily_consumed,
    remaining_daily_allowance,
)
from claim_gate.services.replay import ReplayGuard, load_guard_state
from claim_gate.services.verifier import ClaimAuthorizationVerifier

logger = logging.getLogger(__name__)


class PipelineLock:
    """Serializes claim processing and rejects re-entry from the owning thread.

    Other threads block until the current claim finishes; the thread already
    inside the pipeline gets :class:`ReentrantCall` instead of deadlocking.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: int | None = None

    @property
    def held(self) -> bool:
        return self._owner is not None

    @contextmanager
    def hold(self) -> Iterator[None]:
        me = threading.get_ident()
        if self._owner == me:
            raise ReentrantCall("Claim pipeline re-entered before the outer call returned")
        self._lock.acquire()
        self._owner = me
        try:
            yield
        finally:
            self._owner = None
            self._lock.release()


_PIPELINE_LOCK = PipelineLock()


def get_pipeline_lock() -> PipelineLock:
    """Return the process-wide pipeline lock."""
    return _PIPELINE_LOCK


@dataclass(frozen=True)
class ClaimReceipt:
    """Outcome of a finalized claim."""

    flow: str
    actor: str
    unique_id: str
    magnitude: int
    nonce: int
    consumed_at: int
    item_id: int | None = None

    @property
    def new_nonce(self) -> int:
        return self.nonce + 1

    @classmethod
    def from_record(cls, record: ConsumedClaim) -> ClaimReceipt:
        return cls(
            flow=record.flow,
            actor=record.actor,
            unique_id=record.unique_id,
            magnitude=record.magnitude,
            nonce=record.nonce,
            consumed_at=record.consumed_at,
            item_id=record.item_id,
        )


@dataclass(frozen=True)
class GuardSnapshot:
    """Read-only view of an actor's guard state at a point in time."""

    actor: str
    nonce: int
    last_claim_timestamp: int
    daily_consumed: int
    remaining_daily_allowance: int
    cooldown_remaining: int

    @property
    def can_claim_now(self) -> bool:
        return self.cooldown_remaining == 0


class ClaimService:
    """Runs claims through verification, replay and rate checks, then executes them."""

    def __init__(
        self,
        db: Session,
        clock: Clock | None = None,
        *,
        ledger: ValueLedger | None = None,
        registry: ItemRegistry | None = None,
        lock: PipelineLock | None = None,
    ) -> None:
        self.db = db
        self.clock = clock or get_clock()
        self.lock = lock or get_pipeline_lock()
        self.config_store = AdminConfigStore(db)
        self.replay = ReplayGuard(db)
        self.rate_limiter = RateLimiter()
        self.effector = LedgerEffector(
            ledger if ledger is not None else SqlValueLedger(db),
            registry if registry is not None else SqlItemRegistry(db),
        )

    # --- Entry points ---------------------------------------------------------------
    def purchase(self, claim: Claim) -> ClaimReceipt:
        """Destroy the claim's price from the buyer and issue the purchased item."""
        return self.process("purchase", claim)

    def claim_reward(self, claim: Claim) -> ClaimReceipt:
        """Pay the claim's reward from the reserve to the actor."""
        return self.process("reward", claim)

    def process(self, flow: Flow, claim: Claim) -> ClaimReceipt:
        """Run ``claim`` through the full pipeline for ``flow``.

        Raises:
            ClaimError: The specific rejection; no state has changed when it propagates.
        """
        with self.lock.hold():
            try:
                receipt = self._run(flow, claim)
            except ClaimError as err:
                logger.warning(
                    "Rejected %s claim %s for %s: %s",
                    flow,
                    claim.unique_id,
                    claim.actor,
                    err.code,
                )
                raise
        logger.info(
            "Finalized %s claim %s for %s (magnitude=%d, nonce=%d)",
            flow,
            receipt.unique_id,
            receipt.actor,
            receipt.magnitude,
            receipt.nonce,
        )
        return receipt

    def _run(self, flow: Flow, claim: Claim) -> ClaimReceipt:
        config = self.config_store.current()
        if config.paused:
            raise Paused("Claim processing is paused")

        now = self.clock.now()
        state = load_guard_state(self.db, claim.actor)

        ClaimAuthorizationVerifier.for_flow(flow).verify(claim, config, now)
        self.replay.check(claim, state)
        self.rate_limiter.check(state, claim.magnitude, config, now)

        try:
            with self.db.begin_nested():
                if inspect(state).transient:
                    self.db.add(state)
                record = self.replay.reserve(claim, state, flow=flow, now=now)
                self.rate_limiter.reserve(state, claim.magnitude, now)
                # Guard state hits the database before any value moves.
                self.db.flush()
                record.item_id = self.effector.execute(
                    flow, claim, reserve=config.reserve_address, now=now
                )
                self.db.flush()
        except IntegrityError as err:
            raise DuplicateClaim(f"Claim {claim.unique_id} has already been processed") from err

        self.db.commit()
        return ClaimReceipt.from_record(record)

    # --- Queries --------------------------------------------------------------------
    def current_nonce(self, actor: str) -> int:
        return load_guard_state(self.db, actor).nonce

    def is_consumed(self, unique_id: str) -> bool:
        return self.replay.is_consumed(unique_id)

    def remaining_daily_allowance(self, actor: str) -> int:
        state = load_guard_state(self.db, actor)
        return remaining_daily_allowance(state, self.config_store.current(), self.clock.now())

    def can_claim_now(self, actor: str) -> bool:
        """Return True if the actor is not inside its cooldown window."""
        state = load_guard_state(self.db, actor)
        return cooldown_remaining(state, self.config_store.current(), self.clock.now()) == 0

    def preview_message_hash(self, flow: Flow, fields: ClaimFields) -> bytes:
        """Return the exact hash the off-chain signer must sign for ``fields``."""
        return ClaimAuthorizationVerifier.for_flow(flow).message_hash(fields)

    def get_receipt(self, unique_id: str) -> ClaimReceipt | None:
        record = self.db.get(ConsumedClaim, unique_id)
        return ClaimReceipt.from_record(record) if record is not None else None

    def guard_snapshot(self, actor: str) -> GuardSnapshot:
        state: ActorGuardState = load_guard_state(self.db, actor)
        config = self.config_store.current()
        now = self.clock.now()
        return GuardSnapshot(
            actor=actor,
            nonce=state.nonce,
            last_claim_timestamp=state.last_claim_timestamp,
            daily_consumed=effective_daily_consumed(state, now),
            remaining_daily_allowance=remaining_daily_allowance(state, config, now),
            cooldown_remaining=cooldown_remaining(state, config, now),
        )
