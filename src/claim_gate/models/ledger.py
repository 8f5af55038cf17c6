# src/claim_gate/models/ledger.py
"""Tables backing the bundled ledger and item registry collaborators."""

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from claim_gate.db.session import Base


class LedgerAccount(Base):
    """Balance of one address and the amount it lets the service draw."""

    __tablename__ = "ledger_account"

    address: Mapped[str] = mapped_column(String(42), primary_key=True)
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    allowance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class OwnedItem(Base):
    """Item issued to a buyer by a successful purchase."""

    __tablename__ = "owned_item"

    item_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    purchase_id: Mapped[str] = mapped_column(String(66), nullable=False, unique=True)
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    issued_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
