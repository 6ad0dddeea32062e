from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Mapping, Sequence

from app.domain.models import (
    DividendProjections,
    LedgerEntry,
    Listing,
    MonthlyProjection,
    OpenPosition,
    ProjectedDividend,
    ProjectionSummary,
    SecurityKey,
)
from app.services.dividend_schedule import estimate_dividend_for_month, round2
from app.services.positions import open_positions_from_ledger

log = logging.getLogger(__name__)

PROJECTION_MONTHS = 12


def add_months(d: date, months: int) -> date:
    """First day of the month `months` after d's month."""
    idx = d.year * 12 + (d.month - 1) + months
    return date(idx // 12, idx % 12 + 1, 1)


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def build_monthly_projections(
    positions: Sequence[OpenPosition], now: date
) -> List[MonthlyProjection]:
    """
    One MonthlyProjection per month for the 12 months starting at now's month.
    Holdings keep the order of `positions`.
    """
    start = date(now.year, now.month, 1)
    projections: List[MonthlyProjection] = []

    for i in range(PROJECTION_MONTHS):
        target = add_months(start, i)
        holdings: List[ProjectedDividend] = []
        for p in positions:
            projected = estimate_dividend_for_month(p, target)
            if projected is not None:
                holdings.append(projected)

        projections.append(
            MonthlyProjection(
                month=month_key(target),
                total_projected=round2(sum(h.amount for h in holdings)),
                holdings=tuple(holdings),
            )
        )

    return projections


def summarize_projections(projections: Sequence[MonthlyProjection]) -> ProjectionSummary:
    total = round2(sum(m.total_projected for m in projections))
    return ProjectionSummary(
        total_12_month_projection=total,
        avg_monthly_projection=round2(total / PROJECTION_MONTHS),
    )


def project_dividends(
    entries: Iterable[LedgerEntry],
    listings: Mapping[SecurityKey, Listing],
    now: date,
) -> DividendProjections:
    """Ledger + listing metadata -> 12-month forecast and summary."""
    positions = open_positions_from_ledger(entries, listings)
    projections = build_monthly_projections(positions, now)
    summary = summarize_projections(projections)
    log.debug(
        "projected %d open positions from %s: total=%.2f",
        len(positions),
        month_key(now),
        summary.total_12_month_projection,
    )
    return DividendProjections(projections=tuple(projections), summary=summary)
