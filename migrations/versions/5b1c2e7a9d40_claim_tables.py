"""claim tables

Revision ID: 5b1c2e7a9d40
Revises:
Create Date: 2026-10-17 09:12:41.208331

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1c2e7a9d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create configuration, guard state, consumed-id and ledger tables."""
    op.create_table(
        "claim_config",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("authorized_signer", sa.String(length=42), nullable=False),
        sa.Column("reserve_address", sa.String(length=42), nullable=False),
        sa.Column("max_single_claim", sa.BigInteger(), nullable=False),
        sa.Column("max_daily_per_actor", sa.BigInteger(), nullable=False),
        sa.Column("cooldown_seconds", sa.BigInteger(), nullable=False),
        sa.Column("expiry_window_seconds", sa.BigInteger(), nullable=False),
        sa.Column("paused", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "actor_guard_state",
        sa.Column("actor", sa.String(length=42), nullable=False),
        sa.Column("nonce", sa.BigInteger(), nullable=False),
        sa.Column("last_claim_timestamp", sa.BigInteger(), nullable=False),
        sa.Column("daily_consumed", sa.BigInteger(), nullable=False),
        sa.Column("daily_bucket", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("actor"),
    )
    op.create_table(
        "consumed_claim",
        sa.Column("unique_id", sa.String(length=66), nullable=False),
        sa.Column("flow", sa.String(length=16), nullable=False),
        sa.Column("actor", sa.String(length=42), nullable=False),
        sa.Column("magnitude", sa.BigInteger(), nullable=False),
        sa.Column("nonce", sa.BigInteger(), nullable=False),
        sa.Column("consumed_at", sa.BigInteger(), nullable=False),
        sa.Column("item_id", sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint("unique_id"),
    )
    op.create_index("ix_consumed_claim_actor", "consumed_claim", ["actor"])
    op.create_table(
        "ledger_account",
        sa.Column("address", sa.String(length=42), nullable=False),
        sa.Column("balance", sa.BigInteger(), nullable=False),
        sa.Column("allowance", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("address"),
    )
    op.create_table(
        "owned_item",
        sa.Column("item_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("owner", sa.String(length=42), nullable=False),
        sa.Column("purchase_id", sa.String(length=66), nullable=False),
        sa.Column("price", sa.BigInteger(), nullable=False),
        sa.Column("issued_at", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("item_id"),
        sa.UniqueConstraint("purchase_id"),
    )
    op.create_index("ix_owned_item_owner", "owned_item", ["owner"])


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_index("ix_owned_item_owner", table_name="owned_item")
    op.drop_table("owned_item")
    op.drop_table("ledger_account")
    op.drop_index("ix_consumed_claim_actor", table_name="consumed_claim")
    op.drop_table("consumed_claim")
    op.drop_table("actor_guard_state")
    op.drop_table("claim_config")
