"""Value movement for authorized claims and the bundled ledger collaborators.

The ledger and the item registry are collaborators with deliberately narrow
interfaces. The SQL-backed implementations here share the pipeline's session,
so their writes commit or roll back together with the guard state.
"""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.orm import Session

from claim_gate.core.claims import Claim, Flow
from claim_gate.models import LedgerAccount, OwnedItem
from claim_gate.services.errors import LedgerEffectFailed

logger = logging.getLogger(__name__)

# Balances and allowances are stored in signed 64-bit columns.
MAX_BALANCE = 2**63 - 1


class LedgerError(RuntimeError):
    """Raised by a ledger when it refuses a movement; the ledger itself is left unchanged."""


class ValueLedger(Protocol):
    def destroy(self, actor: str, amount: int) -> None: ...

    def move_from_reserve(self, reserve: str, actor: str, amount: int) -> None: ...


class ItemRegistry(Protocol):
    def issue(self, owner: str, purchase_id: str, price: int, issued_at: int) -> int: ...


class SqlValueLedger:
    """Balances stored in ``ledger_account``.

    An account must both hold ``amount`` and have authorized the service to
    draw at least ``amount`` (its ``allowance``) before value leaves it.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _debit(self, address: str, amount: int) -> LedgerAccount:
        account = self.db.get(LedgerAccount, address)
        if account is None or account.balance < amount:
            raise LedgerError(f"Insufficient balance for {address}")
        if account.allowance < amount:
            raise LedgerError(f"Insufficient authorization for {address}")
        account.balance -= amount
        account.allowance -= amount
        return account

    def destroy(self, actor: str, amount: int) -> None:
        """Burn ``amount`` from ``actor``'s balance."""
        self._debit(actor, amount)

    def move_from_reserve(self, reserve: str, actor: str, amount: int) -> None:
        """Transfer ``amount`` from the reserve account to ``actor``."""
        if reserve == actor:
            raise LedgerError("Reserve cannot pay itself")
        recipient = self.db.get(LedgerAccount, actor)
        if recipient is not None and recipient.balance + amount > MAX_BALANCE:
            raise LedgerError(f"Balance of {actor} would overflow")
        self._debit(reserve, amount)
        if recipient is None:
            recipient = LedgerAccount(address=actor, balance=0, allowance=0)
            self.db.add(recipient)
        recipient.balance += amount

    def credit(self, address: str, amount: int, allowance: int | None = None) -> LedgerAccount:
        """Mint ``amount`` to ``address`` and optionally set its allowance."""
        account = self.db.get(LedgerAccount, address)
        current = account.balance if account is not None else 0
        if current + amount > MAX_BALANCE:
            raise LedgerError(f"Balance of {address} would overflow")
        if allowance is not None and allowance > MAX_BALANCE:
            raise LedgerError("Allowance exceeds the storable maximum")
        if account is None:
            account = LedgerAccount(address=address, balance=0, allowance=0)
            self.db.add(account)
        account.balance += amount
        if allowance is not None:
            account.allowance = allowance
        return account

    def balance_of(self, address: str) -> int:
        account = self.db.get(LedgerAccount, address)
        return account.balance if account is not None else 0


class SqlItemRegistry:
    """Ownership records for purchased items, one per purchase id."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def issue(self, owner: str, purchase_id: str, price: int, issued_at: int) -> int:
        item = OwnedItem(owner=owner, purchase_id=purchase_id, price=price, issued_at=issued_at)
        self.db.add(item)
        self.db.flush()
        return item.item_id


class LedgerEffector:
    """Executes the economic effect of a claim whose guard state is already committed."""

    def __init__(self, ledger: ValueLedger, registry: ItemRegistry) -> None:
        self.ledger = ledger
        self.registry = registry

    def execute(self, flow: Flow, claim: Claim, *, reserve: str, now: int) -> int | None:
        """Move value for ``claim``; return the issued item id for purchases.

        Raises:
            LedgerEffectFailed: If the ledger refuses the movement.
        """
        try:
            if flow == "purchase":
                self.ledger.destroy(claim.actor, claim.magnitude)
                return self.registry.issue(claim.actor, claim.unique_id, claim.magnitude, now)
            self.ledger.move_from_reserve(reserve, claim.actor, claim.magnitude)
            return None
        except LedgerError as err:
            logger.info("Ledger refused %s for %s: %s", flow, claim.actor, err)
            raise LedgerEffectFailed(str(err)) from err
