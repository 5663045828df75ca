"""
Create users, items and item_audit_log tables.

Revision ID: a1c3e5f70912
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1c3e5f70912"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="viewer"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "items",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("location", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("sku", name="uq_items_sku"),
    )
    op.create_index("ix_items_id", "items", ["id"])
    op.create_index("ix_items_sku", "items", ["sku"])
    op.create_index("ix_items_created", "items", ["created_at", "id"])

    op.create_table(
        "item_audit_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("item_id", sa.String(length=36), nullable=False),
        sa.Column(
            "action",
            sa.Enum("INSERT", "UPDATE", "DELETE", name="audit_action_enum", native_enum=False),
            nullable=False,
        ),
        sa.Column("actor", sa.String(length=64), nullable=False),
        sa.Column(
            "actor_user_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("old_data", sa.JSON(), nullable=True),
        sa.Column("new_data", sa.JSON(), nullable=True),
        sa.Column("diff", sa.JSON(), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_item_audit_log_item_id", "item_audit_log", ["item_id"])
    op.create_index("ix_item_audit_log_action", "item_audit_log", ["action"])
    op.create_index("ix_item_audit_log_actor", "item_audit_log", ["actor"])
    op.create_index("ix_item_audit_log_actor_user_id", "item_audit_log", ["actor_user_id"])
    op.create_index("ix_item_audit_log_changed_at", "item_audit_log", ["changed_at"])
    op.create_index("ix_item_audit_item_time", "item_audit_log", ["item_id", "changed_at"])
    op.create_index("ix_item_audit_action_time", "item_audit_log", ["action", "changed_at"])
    op.create_index(
        "ix_item_audit_time_desc",
        "item_audit_log",
        [sa.text("changed_at DESC"), "id"],
    )


def downgrade() -> None:
    op.drop_table("item_audit_log")
    op.drop_table("items")
    op.drop_table("users")
