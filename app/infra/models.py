from datetime import datetime

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base


# ---------- Portfolios ----------


class Portfolio(Base):
    __tablename__ = "portfolios"

    id = Column(Text, primary_key=True)            # uuid string
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    currency = Column(Text, nullable=False, default="USD")

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=datetime.utcnow
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=datetime.utcnow
    )

    transactions = relationship("Transaction", back_populates="portfolio")


# ---------- Listings + dividend metadata ----------


class Listing(Base):
    __tablename__ = "listings"

    isin = Column(Text, primary_key=True)
    exchange_code = Column(Text, primary_key=True)
    ticker_symbol = Column(Text, nullable=False, index=True)
    company_name = Column(Text, nullable=True)
    currency = Column(Text, nullable=False, default="USD")
    current_price = Column(Numeric, nullable=True)
    dividend_yield = Column(Numeric, nullable=True)  # percent, e.g. 4.12

    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=datetime.utcnow
    )

    dividend_info = relationship(
        "DividendInfo", back_populates="listing", uselist=False
    )


class DividendInfo(Base):
    __tablename__ = "dividend_info"
    __table_args__ = (
        UniqueConstraint("listing_isin", "listing_exchange_code", name="uq_dividend_info_listing"),
        ForeignKeyConstraint(
            ["listing_isin", "listing_exchange_code"],
            ["listings.isin", "listings.exchange_code"],
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    listing_isin = Column(Text, nullable=False)
    listing_exchange_code = Column(Text, nullable=False)

    frequency = Column(Text, nullable=True)        # MONTHLY / QUARTERLY / SEMI_ANNUAL / ANNUAL
    avg_amount = Column(Numeric, nullable=True)    # per share, per payment
    next_payment_date = Column(Date, nullable=True)
    next_amount = Column(Numeric, nullable=True)   # per share, annual rate
    source = Column(Text, nullable=True)           # "yfinance", "manual", ...

    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=datetime.utcnow
    )

    listing = relationship("Listing", back_populates="dividend_info")


# ---------- Ledger ----------


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        ForeignKeyConstraint(
            ["listing_isin", "listing_exchange_code"],
            ["listings.isin", "listings.exchange_code"],
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    portfolio_id = Column(
        Text, ForeignKey("portfolios.id"), nullable=False, index=True
    )
    listing_isin = Column(Text, nullable=False)
    listing_exchange_code = Column(Text, nullable=False)

    type = Column(Text, nullable=False)            # BUY / SELL / DIVIDEND
    quantity = Column(Numeric, nullable=False)
    price = Column(Numeric, nullable=True)
    amount = Column(Numeric, nullable=True)        # signed cash flow
    transaction_date = Column(Date, nullable=False)

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=datetime.utcnow
    )

    portfolio = relationship("Portfolio", back_populates="transactions")
