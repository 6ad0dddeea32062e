"""Base schema (portfolios, listings, dividend_info, transactions)

Revision ID: 0001_base_schema
Revises:
Create Date: 2025-03-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_base_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "portfolios",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("currency", sa.Text(), nullable=False, server_default="USD"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_portfolios_user_id", "portfolios", ["user_id"], unique=False)

    op.create_table(
        "listings",
        sa.Column("isin", sa.Text(), nullable=False),
        sa.Column("exchange_code", sa.Text(), nullable=False),
        sa.Column("ticker_symbol", sa.Text(), nullable=False),
        sa.Column("company_name", sa.Text(), nullable=True),
        sa.Column("currency", sa.Text(), nullable=False, server_default="USD"),
        sa.Column("current_price", sa.Numeric(), nullable=True),
        sa.Column("dividend_yield", sa.Numeric(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("isin", "exchange_code"),
    )
    op.create_index("ix_listings_ticker_symbol", "listings", ["ticker_symbol"], unique=False)

    op.create_table(
        "dividend_info",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("listing_isin", sa.Text(), nullable=False),
        sa.Column("listing_exchange_code", sa.Text(), nullable=False),
        sa.Column("frequency", sa.Text(), nullable=True),
        sa.Column("avg_amount", sa.Numeric(), nullable=True),
        sa.Column("next_payment_date", sa.Date(), nullable=True),
        sa.Column("next_amount", sa.Numeric(), nullable=True),
        sa.Column("source", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(
            ["listing_isin", "listing_exchange_code"],
            ["listings.isin", "listings.exchange_code"],
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("listing_isin", "listing_exchange_code", name="uq_dividend_info_listing"),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("portfolio_id", sa.Text(), nullable=False),
        sa.Column("listing_isin", sa.Text(), nullable=False),
        sa.Column("listing_exchange_code", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Numeric(), nullable=False),
        sa.Column("price", sa.Numeric(), nullable=True),
        sa.Column("amount", sa.Numeric(), nullable=True),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["portfolio_id"], ["portfolios.id"]),
        sa.ForeignKeyConstraint(
            ["listing_isin", "listing_exchange_code"],
            ["listings.isin", "listings.exchange_code"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_transactions_portfolio_id", "transactions", ["portfolio_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_transactions_portfolio_id", table_name="transactions")
    op.drop_table("transactions")

    op.drop_table("dividend_info")

    op.drop_index("ix_listings_ticker_symbol", table_name="listings")
    op.drop_table("listings")

    op.drop_index("ix_portfolios_user_id", table_name="portfolios")
    op.drop_table("portfolios")
