# src/claim_gate/models/config.py
"""Persisted claim configuration."""

from sqlalchemy import BigInteger, Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from claim_gate.db.session import Base

CONFIG_ROW_ID = 1


class ClaimConfig(Base):
    """Single-row table holding the signer, reserve and limit parameters.

    Read by every claim evaluation and mutated only through the
    administrative store.
    """

    __tablename__ = "claim_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=CONFIG_ROW_ID)
    authorized_signer: Mapped[str] = mapped_column(String(42), nullable=False)
    reserve_address: Mapped[str] = mapped_column(String(42), nullable=False)
    max_single_claim: Mapped[int] = mapped_column(BigInteger, nullable=False)
    max_daily_per_actor: Mapped[int] = mapped_column(BigInteger, nullable=False)
    cooldown_seconds: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    expiry_window_seconds: Mapped[int] = mapped_column(BigInteger, nullable=False)
    paused: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
