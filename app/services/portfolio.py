from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from app.domain.models import (
    DividendFrequency,
    DividendInfo,
    DividendProjections,
    Frequency,
    LedgerEntry,
    Listing,
    SecurityKey,
    TransactionSide,
)
from app.infra import models as orm
from app.services.dividends_projector import project_dividends
from app.services.positions import build_positions_from_ledger

log = logging.getLogger(__name__)


class PortfolioNotFoundError(LookupError):
    pass


def _float_or_none(v) -> Optional[float]:
    return float(v) if v is not None else None


def _frequency(raw: Optional[str]) -> Optional[Frequency]:
    if not raw:
        return None
    try:
        return DividendFrequency(raw.strip().upper())
    except ValueError:
        # keep unknown cadences as-is; the estimator treats them as "no schedule"
        return raw


def get_portfolio(db: Session, user_id: str, portfolio_id: str) -> orm.Portfolio:
    portfolio = (
        db.query(orm.Portfolio)
        .filter(orm.Portfolio.id == portfolio_id, orm.Portfolio.user_id == user_id)
        .one_or_none()
    )
    if portfolio is None:
        raise PortfolioNotFoundError("Portfolio not found or access denied.")
    return portfolio


def fetch_ledger_entries(db: Session, portfolio_id: str) -> List[LedgerEntry]:
    """BUY/SELL rows for a portfolio, oldest first. Dividends etc. are ignored."""
    rows = (
        db.query(orm.Transaction)
        .filter(
            orm.Transaction.portfolio_id == portfolio_id,
            orm.Transaction.type.in_([TransactionSide.BUY.value, TransactionSide.SELL.value]),
        )
        .order_by(orm.Transaction.transaction_date, orm.Transaction.id)
        .all()
    )
    return [
        LedgerEntry(
            security_key=SecurityKey(r.listing_isin, r.listing_exchange_code),
            side=TransactionSide(r.type),
            quantity=float(r.quantity or 0.0),
        )
        for r in rows
    ]


def dividend_info_from_row(row: Optional[orm.DividendInfo]) -> Optional[DividendInfo]:
    if row is None:
        return None
    return DividendInfo(
        frequency=_frequency(row.frequency),
        average_amount_per_share=_float_or_none(row.avg_amount),
        next_payment_date=row.next_payment_date,
        next_payment_amount_per_share=_float_or_none(row.next_amount),
    )


def listing_from_row(row: orm.Listing) -> Listing:
    return Listing(
        security_key=SecurityKey(row.isin, row.exchange_code),
        ticker_symbol=row.ticker_symbol,
        company_name=row.company_name,
        current_price=float(row.current_price or 0.0),
        dividend_yield_percent=_float_or_none(row.dividend_yield),
        dividend_info=dividend_info_from_row(row.dividend_info),
    )


def fetch_listings_with_dividend_info(
    db: Session, keys: Iterable[SecurityKey]
) -> Dict[SecurityKey, Listing]:
    keys = list(dict.fromkeys(keys))
    if not keys:
        return {}

    rows = (
        db.query(orm.Listing)
        .options(joinedload(orm.Listing.dividend_info))
        .filter(
            or_(
                *[
                    and_(orm.Listing.isin == k.isin, orm.Listing.exchange_code == k.exchange_code)
                    for k in keys
                ]
            )
        )
        .all()
    )
    return {SecurityKey(r.isin, r.exchange_code): listing_from_row(r) for r in rows}


def get_portfolio_projections(
    db: Session,
    user_id: str,
    portfolio_id: str,
    now: date,
) -> DividendProjections:
    """
    Ownership check, fetch ledger + listings, run the projection.

    Raises PortfolioNotFoundError before any projection work when the
    portfolio is missing or belongs to someone else.
    """
    get_portfolio(db, user_id, portfolio_id)

    entries = fetch_ledger_entries(db, portfolio_id)
    listings = fetch_listings_with_dividend_info(db, (e.security_key for e in entries))
    missing = set(build_positions_from_ledger(entries)) - set(listings)
    if missing:
        log.warning(
            "portfolio %s: %d securities without listing data: %s",
            portfolio_id,
            len(missing),
            sorted(f"{k.isin}_{k.exchange_code}" for k in missing),
        )

    return project_dividends(entries, listings, now)
