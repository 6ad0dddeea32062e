# app/services/positions.py

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping

from app.domain.models import (
    LedgerEntry,
    Listing,
    OpenPosition,
    SecurityKey,
    TransactionSide,
)

# Anything at or below this is treated as fully closed.
POSITION_EPSILON = 1e-6

UNKNOWN_TICKER = "UNKNOWN"


def build_positions_from_ledger(
    entries: Iterable[LedgerEntry],
) -> Dict[SecurityKey, float]:
    """
    Net open quantity per security from BUY/SELL ledger entries.

    - quantity = |sum(BUY)| - |sum(SELL)|
    - Securities that were never bought are not emitted.
    - Closed or over-sold positions (<= POSITION_EPSILON) are dropped.

    Keys come back in the order each security was first bought.
    """
    bought: Dict[SecurityKey, float] = {}
    sold: Dict[SecurityKey, float] = {}

    for e in entries:
        if e.side == TransactionSide.BUY:
            bought[e.security_key] = bought.get(e.security_key, 0.0) + float(e.quantity)
        elif e.side == TransactionSide.SELL:
            sold[e.security_key] = sold.get(e.security_key, 0.0) + float(e.quantity)

    positions: Dict[SecurityKey, float] = {}
    for key, buy_qty in bought.items():
        qty = abs(buy_qty) - abs(sold.get(key, 0.0))
        if qty > POSITION_EPSILON:
            positions[key] = qty

    return positions


def open_positions_from_ledger(
    entries: Iterable[LedgerEntry],
    listings: Mapping[SecurityKey, Listing],
) -> List[OpenPosition]:
    """Join reconstructed quantities with listing + dividend metadata."""
    out: List[OpenPosition] = []
    for key, qty in build_positions_from_ledger(entries).items():
        listing = listings.get(key)
        if listing is None:
            out.append(
                OpenPosition(
                    security_key=key,
                    ticker_symbol=UNKNOWN_TICKER,
                    company_name=None,
                    current_quantity=qty,
                )
            )
            continue

        out.append(
            OpenPosition(
                security_key=key,
                ticker_symbol=listing.ticker_symbol or UNKNOWN_TICKER,
                company_name=listing.company_name,
                current_quantity=qty,
                current_price=float(listing.current_price or 0.0),
                dividend_yield_percent=listing.dividend_yield_percent,
                dividend_info=listing.dividend_info,
            )
        )
    return out
