#!/usr/bin/env python3
"""Walk a reward claim through the Claim Gate pipeline against an in-memory database.

This script shows how to:
1. Configure the authorized signer, reserve and limits
2. Sign a reward claim the way the off-chain authorizer does
3. Redeem it, then watch replay, cooldown and expiry checks reject follow-ups

Usage:
    SECRET_KEY=demo python examples/claim_demo.py
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from claim_gate.core.claims import build_fields, sign_claim
from claim_gate.core.clock import FixedClock
from claim_gate.core.signatures import address_of, keccak256
from claim_gate.db.session import Base, enable_sqlite_savepoints
from claim_gate.services.admin import AdminConfigStore
from claim_gate.services.claims import ClaimService
from claim_gate.services.errors import ClaimError
from claim_gate.services.ledger import SqlValueLedger
from claim_gate.services.verifier import signing_domain

SIGNER_KEY = bytes([7]) * 32
ACTOR = "0x" + "a1" * 20
RESERVE = "0x" + "c3" * 20


def attempt(label: str, service: ClaimService, claim) -> None:  # type: ignore[no-untyped-def]
    try:
        receipt = service.claim_reward(claim)
    except ClaimError as err:
        print(f"  {label}: rejected with {err.code} ({err})")
    else:
        print(f"  {label}: accepted, next nonce {receipt.new_nonce}")


def main() -> None:
    engine = create_engine("sqlite://", poolclass=StaticPool)
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    db = sessionmaker(bind=engine, expire_on_commit=False)()
    clock = FixedClock(1_700_000_000)

    store = AdminConfigStore(db)
    store.set_authorized_signer(address_of(SIGNER_KEY))
    store.set_reserve_address(RESERVE)
    store.set_limits(max_single=1_000, max_daily=1_000, cooldown_seconds=60)
    SqlValueLedger(db).credit(RESERVE, 10_000, allowance=10_000)
    db.commit()

    service = ClaimService(db, clock)
    domain = signing_domain("reward")
    print(f"Reward domain: chain {domain.chain_id}, verifier {domain.verifying_address}")

    def claim(run: str, nonce: int, magnitude: int = 600, ttl: int = 300):  # type: ignore[no-untyped-def]
        run_id = "0x" + keccak256(run.encode()).hex()
        fields = build_fields(ACTOR, magnitude, run_id, nonce, clock.now() + ttl)
        return sign_claim(SIGNER_KEY, fields, domain)

    first = claim("run-1", 0)
    attempt("first claim", service, first)
    attempt("same envelope again", service, first)
    clock.advance(30)
    attempt("next claim 30s later", service, claim("run-2", 1, magnitude=100))
    clock.advance(31)
    attempt("over the daily cap", service, claim("run-3", 1))
    attempt("expires too far out", service, claim("run-4", 1, magnitude=100, ttl=7_200))
    clock.advance(86_400)
    attempt("next day", service, claim("run-3", 1))

    print(f"Actor balance: {SqlValueLedger(db).balance_of(ACTOR)}")


if __name__ == "__main__":
    main()
