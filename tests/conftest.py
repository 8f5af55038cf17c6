# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from claim_gate.api.v1.dependencies import get_clock_dep
from claim_gate.core.claims import Claim, Flow, build_fields, sign_claim
from claim_gate.core.clock import FixedClock
from claim_gate.core.security import create_access_token
from claim_gate.db.session import Base, enable_sqlite_savepoints
from claim_gate.db.session import get_db as app_get_session
from claim_gate.main import app as fastapi_app
from claim_gate.services.admin import AdminConfigStore
from claim_gate.services.ledger import SqlValueLedger
from claim_gate.services.verifier import signing_domain
from tests.helpers import (
    ACTOR,
    ACTOR_FUNDS,
    RESERVE,
    RESERVE_FUNDS,
    SIGNER_ADDRESS,
    SIGNER_KEY,
    T0,
    unique_id,
)

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(T0)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(app: FastAPI, db_session: Session, clock: FixedClock) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_clock_dep] = lambda: clock
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_clock_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    """Return authorization headers carrying an admin token."""
    token = create_access_token("ops@claim-gate")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def configured(db_session: Session) -> AdminConfigStore:
    """Configure signer, reserve and generous limits, and fund the ledger."""
    store = AdminConfigStore(db_session)
    store.set_authorized_signer(SIGNER_ADDRESS)
    store.set_reserve_address(RESERVE)
    store.set_limits(max_single=1_000, max_daily=5_000, cooldown_seconds=0)
    store.set_expiry_window(3_600)

    ledger = SqlValueLedger(db_session)
    ledger.credit(RESERVE, RESERVE_FUNDS, allowance=RESERVE_FUNDS)
    ledger.credit(ACTOR, ACTOR_FUNDS, allowance=ACTOR_FUNDS)
    db_session.commit()
    return store


@pytest.fixture()
def make_claim(clock: FixedClock) -> Callable[..., Claim]:
    """Return a factory producing claims signed by the authorized signer."""

    def _make(
        *,
        magnitude: int = 100,
        label: str = "R1",
        nonce: int = 0,
        actor: str = ACTOR,
        expiry: int | None = None,
        flow: Flow = "reward",
        key: bytes = SIGNER_KEY,
    ) -> Claim:
        fields = build_fields(
            actor,
            magnitude,
            unique_id(label),
            nonce,
            expiry if expiry is not None else clock.now() + 300,
        )
        return sign_claim(key, fields, signing_domain(flow))

    return _make
