"""discount_keys_core_schema

Revision ID: 3c1e5a7b9d20
Revises:
Create Date: 2026-10-12 10:30:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "3c1e5a7b9d20"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("identifier", sa.CHAR(8), nullable=False),
        sa.Column("sharing_enabled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("purchases_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'ACTIVE'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("identifier ~ '^[0-9]{8}$'", name="ck_accounts_identifier_digits"),
        sa.CheckConstraint("purchases_count >= 0", name="ck_accounts_purchases_count_non_negative"),
        sa.CheckConstraint("status IN ('ACTIVE','DISABLED')", name="ck_accounts_status"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("identifier", name="uq_accounts_identifier"),
    )
    op.create_index(
        "idx_accounts_identifier_tail",
        "accounts",
        [sa.text("right(identifier, 4)")],
    )

    op.create_table(
        "redemption_throttles",
        sa.Column("account_id", sa.BigInteger(), nullable=False),
        sa.Column("failed_attempts", sa.SmallInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "failed_attempts >= 0",
            name="ck_redemption_throttles_failed_attempts_non_negative",
        ),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("account_id"),
    )

    op.create_table(
        "discount_keys",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("key_type", sa.String(16), nullable=False),
        sa.Column("percentage", sa.SmallInteger(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("key_type IN ('silver','bronze','gold')", name="ck_discount_keys_key_type"),
        sa.CheckConstraint("percentage BETWEEN 1 AND 100", name="ck_discount_keys_percentage"),
    )
    op.create_index(
        "uq_discount_keys_active_type",
        "discount_keys",
        ["key_type"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "discount_key_usages",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.CHAR(8), nullable=False),
        sa.Column("redeemer_account_id", sa.BigInteger(), nullable=False),
        sa.Column("partner_account_id", sa.BigInteger(), nullable=False),
        sa.Column("discount_key_id", sa.BigInteger(), nullable=False),
        sa.Column("discount_key_type", sa.String(16), nullable=False),
        sa.Column("percentage", sa.SmallInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("code ~ '^[0-9]{8}$'", name="ck_discount_key_usages_code_digits"),
        sa.CheckConstraint(
            "redeemer_account_id <> partner_account_id",
            name="ck_discount_key_usages_distinct_accounts",
        ),
        sa.ForeignKeyConstraint(["redeemer_account_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["partner_account_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["discount_key_id"], ["discount_keys.id"]),
        sa.UniqueConstraint("code", name="uq_discount_key_usages_code"),
    )
    op.create_index("idx_discount_key_usages_redeemer", "discount_key_usages", ["redeemer_account_id"])
    op.create_index("idx_discount_key_usages_partner", "discount_key_usages", ["partner_account_id"])

    op.create_table(
        "cart_line_discounts",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("account_id", sa.BigInteger(), nullable=False),
        sa.Column("product_id", sa.BigInteger(), nullable=False),
        sa.Column("size", sa.String(32), nullable=False),
        sa.Column("color", sa.String(64), nullable=False),
        sa.Column("percentage", sa.SmallInteger(), nullable=False),
        sa.Column("discount_key_type", sa.String(16), nullable=False),
        sa.Column("usage_code", sa.CHAR(8), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("percentage BETWEEN 1 AND 100", name="ck_cart_line_discounts_percentage"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.UniqueConstraint(
            "account_id",
            "product_id",
            "size",
            "color",
            name="uq_cart_line_discounts_line",
        ),
    )
    op.create_index("idx_cart_line_discounts_account", "cart_line_discounts", ["account_id"])

    op.execute(
        """
        INSERT INTO discount_keys (key_type, percentage, is_active)
        VALUES ('silver', 5, true), ('bronze', 10, true), ('gold', 20, true)
        """
    )


def downgrade() -> None:
    op.drop_index("idx_cart_line_discounts_account", table_name="cart_line_discounts")
    op.drop_table("cart_line_discounts")
    op.drop_index("idx_discount_key_usages_partner", table_name="discount_key_usages")
    op.drop_index("idx_discount_key_usages_redeemer", table_name="discount_key_usages")
    op.drop_table("discount_key_usages")
    op.drop_index("uq_discount_keys_active_type", table_name="discount_keys")
    op.drop_table("discount_keys")
    op.drop_table("redemption_throttles")
    op.drop_index("idx_accounts_identifier_tail", table_name="accounts")
    op.drop_table("accounts")
