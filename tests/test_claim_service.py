# tests/test_claim_service.py
"""Tests for the end-to-end claim pipeline."""

import pytest
from sqlalchemy import insert

from claim_gate.core.clock import SECONDS_PER_DAY
from claim_gate.models import ActorGuardState, ConsumedClaim, LedgerAccount, OwnedItem
from claim_gate.services.claims import ClaimService, PipelineLock
from claim_gate.services.errors import (
    CooldownActive,
    DailyCapExceeded,
    DuplicateClaim,
    Expired,
    ExpiryWindowExceeded,
    InvalidSignature,
    LedgerEffectFailed,
    NonceMismatch,
    Paused,
    ReentrantCall,
    SingleCapExceeded,
)
from claim_gate.services.ledger import MAX_BALANCE, LedgerError, SqlValueLedger
from tests.helpers import (
    ACTOR,
    ACTOR_FUNDS,
    OTHER_ACTOR,
    RESERVE,
    RESERVE_FUNDS,
    ROGUE_KEY,
    unique_id,
)


@pytest.fixture()
def service(db_session, clock, configured) -> ClaimService:
    return ClaimService(db_session, clock, lock=PipelineLock())


def _balance(db_session, address: str) -> int:
    return SqlValueLedger(db_session).balance_of(address)


def _assert_untouched(db_session, service: ClaimService, label: str) -> None:
    assert service.current_nonce(ACTOR) == 0
    assert not service.is_consumed(unique_id(label))
    assert db_session.get(ActorGuardState, ACTOR) is None
    assert _balance(db_session, ACTOR) == ACTOR_FUNDS
    assert _balance(db_session, RESERVE) == RESERVE_FUNDS


def test_scenario_a_success_then_duplicate(service, make_claim, clock, configured) -> None:
    configured.set_expiry_window(3_600)
    claim = make_claim(magnitude=100, label="R7", nonce=0, expiry=clock.now() + 300)

    receipt = service.claim_reward(claim)

    assert receipt.new_nonce == 1
    assert service.current_nonce(ACTOR) == 1
    assert service.is_consumed(unique_id("R7"))

    with pytest.raises(DuplicateClaim):
        service.claim_reward(claim)
    assert service.current_nonce(ACTOR) == 1


def test_duplicate_even_with_bumped_nonce(service, make_claim) -> None:
    service.claim_reward(make_claim(label="R7", nonce=0))
    with pytest.raises(DuplicateClaim):
        service.claim_reward(make_claim(label="R7", nonce=1))


def test_nonce_increments_by_exactly_one(service, make_claim) -> None:
    for nonce in range(3):
        service.claim_reward(make_claim(label=f"run-{nonce}", nonce=nonce, magnitude=10))
        assert service.current_nonce(ACTOR) == nonce + 1

    with pytest.raises(NonceMismatch):
        service.claim_reward(make_claim(label="run-skip", nonce=5, magnitude=10))
    with pytest.raises(NonceMismatch):
        service.claim_reward(make_claim(label="run-old", nonce=2, magnitude=10))


def test_nonces_are_per_actor(service, make_claim) -> None:
    service.claim_reward(make_claim(label="a-0", nonce=0))
    service.claim_reward(make_claim(label="b-0", nonce=0, actor=OTHER_ACTOR))
    assert service.current_nonce(ACTOR) == 1
    assert service.current_nonce(OTHER_ACTOR) == 1


def test_scenario_b_cooldown(service, make_claim, clock, configured) -> None:
    configured.set_limits(max_single=1_000, max_daily=5_000, cooldown_seconds=60)
    t0 = clock.now()
    service.claim_reward(make_claim(label="b-0", nonce=0))

    clock.set(t0 + 30)
    assert service.can_claim_now(ACTOR) is False
    with pytest.raises(CooldownActive):
        service.claim_reward(make_claim(label="b-1", nonce=1))

    clock.set(t0 + 61)
    assert service.can_claim_now(ACTOR) is True
    service.claim_reward(make_claim(label="b-1", nonce=1))
    assert service.current_nonce(ACTOR) == 2


def test_scenario_c_daily_cap_and_rollover(service, make_claim, clock, configured) -> None:
    configured.set_limits(max_single=1_000, max_daily=1_000, cooldown_seconds=0)
    service.claim_reward(make_claim(label="c-0", nonce=0, magnitude=600))
    assert service.remaining_daily_allowance(ACTOR) == 400

    with pytest.raises(DailyCapExceeded):
        service.claim_reward(make_claim(label="c-1", nonce=1, magnitude=600))

    clock.advance(SECONDS_PER_DAY)
    assert service.remaining_daily_allowance(ACTOR) == 1_000
    service.claim_reward(make_claim(label="c-1", nonce=1, magnitude=600))
    assert service.remaining_daily_allowance(ACTOR) == 400


def test_scenario_d_expiry_window(service, make_claim, clock) -> None:
    window = 3_600
    with pytest.raises(ExpiryWindowExceeded):
        service.claim_reward(make_claim(label="d-0", expiry=clock.now() + window + 1))
    _assert_untouched(service.db, service, "d-0")


def test_expired_claim_rejected(service, make_claim, clock) -> None:
    claim = make_claim(label="late", expiry=clock.now() + 10)
    clock.advance(11)
    with pytest.raises(Expired):
        service.claim_reward(claim)


def test_rogue_signer_rejected(service, make_claim) -> None:
    with pytest.raises(InvalidSignature):
        service.claim_reward(make_claim(label="rogue", key=ROGUE_KEY))
    _assert_untouched(service.db, service, "rogue")


def test_purchase_signature_cannot_claim_reward(service, make_claim) -> None:
    purchase_claim = make_claim(label="P1", flow="purchase")
    with pytest.raises(InvalidSignature):
        service.claim_reward(purchase_claim)
    service.purchase(purchase_claim)


def test_single_cap_boundary(service, make_claim) -> None:
    with pytest.raises(SingleCapExceeded):
        service.claim_reward(make_claim(label="big", magnitude=1_001))
    receipt = service.claim_reward(make_claim(label="max", magnitude=1_000))
    assert receipt.magnitude == 1_000


def test_reward_moves_value_from_reserve(service, make_claim, db_session) -> None:
    receipt = service.claim_reward(make_claim(label="R1", magnitude=250))

    assert receipt.flow == "reward"
    assert receipt.item_id is None
    assert _balance(db_session, RESERVE) == RESERVE_FUNDS - 250
    assert _balance(db_session, ACTOR) == ACTOR_FUNDS + 250


def test_purchase_burns_price_and_issues_item(service, make_claim, db_session) -> None:
    receipt = service.purchase(make_claim(label="P1", magnitude=300, flow="purchase"))

    assert receipt.flow == "purchase"
    assert _balance(db_session, ACTOR) == ACTOR_FUNDS - 300
    assert _balance(db_session, RESERVE) == RESERVE_FUNDS
    item = db_session.get(OwnedItem, receipt.item_id)
    assert item.owner == ACTOR
    assert item.purchase_id == unique_id("P1")
    assert item.price == 300
    assert service.get_receipt(unique_id("P1")) == receipt


def test_ledger_failure_rolls_back_guard_state(service, make_claim, db_session) -> None:
    account = db_session.get(LedgerAccount, ACTOR)
    account.balance = 50
    db_session.commit()

    claim = make_claim(label="P2", magnitude=300, flow="purchase")
    with pytest.raises(LedgerEffectFailed):
        service.purchase(claim)

    assert service.current_nonce(ACTOR) == 0
    assert not service.is_consumed(unique_id("P2"))
    assert db_session.get(ActorGuardState, ACTOR) is None
    assert db_session.query(OwnedItem).count() == 0
    assert _balance(db_session, ACTOR) == 50

    # The unchanged envelope goes through once the actor is funded.
    SqlValueLedger(db_session).credit(ACTOR, 1_000)
    db_session.commit()
    receipt = service.purchase(claim)
    assert receipt.nonce == 0
    assert _balance(db_session, ACTOR) == 750


def test_ledger_failure_keeps_existing_guard_state(service, make_claim, db_session) -> None:
    service.claim_reward(make_claim(label="ok", nonce=0, magnitude=100))
    account = db_session.get(LedgerAccount, RESERVE)
    account.allowance = 10
    db_session.commit()

    with pytest.raises(LedgerEffectFailed):
        service.claim_reward(make_claim(label="no-allowance", nonce=1, magnitude=100))

    state = db_session.get(ActorGuardState, ACTOR)
    db_session.refresh(state)
    assert state.nonce == 1
    assert state.daily_consumed == 100
    assert not service.is_consumed(unique_id("no-allowance"))


def test_paused_rejects_claims_but_not_queries(service, make_claim, configured) -> None:
    configured.pause()
    with pytest.raises(Paused):
        service.claim_reward(make_claim(label="paused"))
    assert service.current_nonce(ACTOR) == 0

    configured.unpause()
    service.claim_reward(make_claim(label="paused"))
    assert service.current_nonce(ACTOR) == 1


class _ReentrantLedger(SqlValueLedger):
    """Ledger whose value movement calls back into the claim pipeline."""

    def __init__(self, db, reenter, swallow: bool) -> None:
        super().__init__(db)
        self.reenter = reenter
        self.swallow = swallow
        self.inner_errors: list[Exception] = []
        self.guard_seen: ActorGuardState | None = None

    def move_from_reserve(self, reserve: str, actor: str, amount: int) -> None:
        self.guard_seen = self.db.get(ActorGuardState, actor)
        try:
            self.reenter()
        except ReentrantCall as err:
            self.inner_errors.append(err)
            if not self.swallow:
                raise
        super().move_from_reserve(reserve, actor, amount)


def test_reentrant_call_is_rejected(db_session, clock, configured, make_claim) -> None:
    lock = PipelineLock()
    inner_claim = make_claim(label="inner", nonce=1)
    holder: dict[str, ClaimService] = {}
    ledger = _ReentrantLedger(db_session, lambda: holder["svc"].claim_reward(inner_claim), True)
    service = ClaimService(db_session, clock, ledger=ledger, lock=lock)
    holder["svc"] = service

    receipt = service.claim_reward(make_claim(label="outer", nonce=0))

    assert len(ledger.inner_errors) == 1
    assert isinstance(ledger.inner_errors[0], ReentrantCall)
    # Guard state was already committed when value moved.
    assert ledger.guard_seen is not None and ledger.guard_seen.nonce == 1
    assert receipt.unique_id == unique_id("outer")
    assert not service.is_consumed(unique_id("inner"))
    assert lock.held is False


def test_propagated_reentrant_call_aborts_outer_claim(
    db_session, clock, configured, make_claim
) -> None:
    lock = PipelineLock()
    holder: dict[str, ClaimService] = {}
    ledger = _ReentrantLedger(
        db_session,
        lambda: holder["svc"].claim_reward(make_claim(label="inner", nonce=1)),
        False,
    )
    service = ClaimService(db_session, clock, ledger=ledger, lock=lock)
    holder["svc"] = service

    with pytest.raises(ReentrantCall):
        service.claim_reward(make_claim(label="outer", nonce=0))

    _assert_untouched(db_session, service, "outer")
    assert lock.held is False
    # The lock is free again for the next claim.
    ledger.swallow = True
    ledger.reenter = lambda: None
    service.claim_reward(make_claim(label="outer", nonce=0))
    assert service.current_nonce(ACTOR) == 1


def test_lock_released_after_rejection(service, make_claim) -> None:
    with pytest.raises(InvalidSignature):
        service.claim_reward(make_claim(label="x", key=ROGUE_KEY))
    assert service.lock.held is False


class _FailingLedger(SqlValueLedger):
    def destroy(self, actor: str, amount: int) -> None:
        raise LedgerError("ledger offline")


def test_receipt_lookup_and_snapshot(service, make_claim, clock) -> None:
    assert service.get_receipt(unique_id("R1")) is None
    service.claim_reward(make_claim(label="R1", magnitude=120))

    receipt = service.get_receipt(unique_id("R1"))
    assert receipt.actor == ACTOR
    assert receipt.consumed_at == clock.now()

    snapshot = service.guard_snapshot(ACTOR)
    assert snapshot.nonce == 1
    assert snapshot.daily_consumed == 120
    assert snapshot.remaining_daily_allowance == 5_000 - 120
    assert snapshot.can_claim_now


def test_custom_ledger_failure_is_reported(db_session, clock, configured, make_claim) -> None:
    service = ClaimService(db_session, clock, ledger=_FailingLedger(db_session), lock=PipelineLock())
    with pytest.raises(LedgerEffectFailed):
        service.purchase(make_claim(label="P9", flow="purchase"))
    assert db_session.query(ConsumedClaim).count() == 0


def test_reward_overflowing_recipient_balance_fails(service, make_claim, db_session) -> None:
    account = db_session.get(LedgerAccount, ACTOR)
    account.balance = MAX_BALANCE - 100
    db_session.commit()

    with pytest.raises(LedgerEffectFailed):
        service.claim_reward(make_claim(label="overflow", magnitude=500))

    assert service.current_nonce(ACTOR) == 0
    assert not service.is_consumed(unique_id("overflow"))
    assert _balance(db_session, ACTOR) == MAX_BALANCE - 100
    assert _balance(db_session, RESERVE) == RESERVE_FUNDS


def test_credit_rejects_overflow(db_session, configured) -> None:
    ledger = SqlValueLedger(db_session)
    with pytest.raises(LedgerError):
        ledger.credit(ACTOR, MAX_BALANCE)
    with pytest.raises(LedgerError):
        ledger.credit(OTHER_ACTOR, 1, allowance=MAX_BALANCE + 1)
    assert ledger.balance_of(ACTOR) == ACTOR_FUNDS
    assert db_session.get(LedgerAccount, OTHER_ACTOR) is None


def test_database_level_duplicate_is_reported(
    service, make_claim, db_session, monkeypatch
) -> None:
    # Row written by another process; the in-session lookup does not see it.
    db_session.execute(
        insert(ConsumedClaim).values(
            unique_id=unique_id("race"),
            flow="reward",
            actor=OTHER_ACTOR,
            magnitude=1,
            nonce=0,
            consumed_at=0,
        )
    )
    db_session.commit()
    monkeypatch.setattr(service.replay, "is_consumed", lambda _unique_id: False)

    with pytest.raises(DuplicateClaim):
        service.claim_reward(make_claim(label="race"))

    assert service.current_nonce(ACTOR) == 0
    assert db_session.get(ActorGuardState, ACTOR) is None
    assert _balance(db_session, ACTOR) == ACTOR_FUNDS
    assert _balance(db_session, RESERVE) == RESERVE_FUNDS
