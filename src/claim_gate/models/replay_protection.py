# src/claim_gate/models/replay_protection.py
"""Models supporting replay protection."""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from claim_gate.db.session import Base


class ConsumedClaim(Base):
    """Record indicating that a claim's unique id has been consumed.

    Existence of a row means "already used". Rows are write-once and double as
    the audit trail of finalized claims.
    """

    __tablename__ = "consumed_claim"

    unique_id: Mapped[str] = mapped_column(String(66), primary_key=True)
    flow: Mapped[str] = mapped_column(String(16), nullable=False)
    actor: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    magnitude: Mapped[int] = mapped_column(BigInteger, nullable=False)
    nonce: Mapped[int] = mapped_column(BigInteger, nullable=False)
    consumed_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    item_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
