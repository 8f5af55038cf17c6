# src/claim_gate/models/guard_state.py
"""Per-actor replay and throughput state."""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from claim_gate.db.session import Base


class ActorGuardState(Base):
    """Nonce and rate counters for one actor.

    Rows are created on an actor's first successful claim; an actor without a
    row behaves as if every column were zero.
    """

    __tablename__ = "actor_guard_state"

    actor: Mapped[str] = mapped_column(String(42), primary_key=True)
    nonce: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    last_claim_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    daily_consumed: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    # floor(timestamp / 86400) of the day daily_consumed belongs to.
    daily_bucket: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
