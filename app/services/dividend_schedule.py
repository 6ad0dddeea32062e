from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Optional, Sequence, Union

from app.domain.models import (
    DividendFrequency,
    DividendSource,
    Frequency,
    OpenPosition,
    ProjectedDividend,
)

_PAYMENTS_PER_YEAR: Dict[str, int] = {
    DividendFrequency.MONTHLY: 12,
    DividendFrequency.QUARTERLY: 4,
    DividendFrequency.SEMI_ANNUAL: 2,
    DividendFrequency.ANNUAL: 1,
}

# Cadence spacing (in months) when a real payment date anchors the schedule.
_ANCHORED_STEP: Dict[str, int] = {
    DividendFrequency.MONTHLY: 1,
    DividendFrequency.QUARTERLY: 3,
    DividendFrequency.SEMI_ANNUAL: 6,
    DividendFrequency.ANNUAL: 12,
}

# Common payout months when nothing anchors the schedule.
_DEFAULT_PAY_MONTHS: Dict[str, frozenset] = {
    DividendFrequency.MONTHLY: frozenset(range(1, 13)),
    DividendFrequency.QUARTERLY: frozenset({3, 6, 9, 12}),
    DividendFrequency.SEMI_ANNUAL: frozenset({6, 12}),
    DividendFrequency.ANNUAL: frozenset({12}),
}

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round half-up to cents on the exact binary value."""
    return float(Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP))


def month_index(d: date) -> int:
    return d.year * 12 + (d.month - 1)


def payments_per_year(frequency: Optional[Frequency]) -> int:
    return _PAYMENTS_PER_YEAR.get(frequency, 4)


def should_pay_in_month(
    frequency: Frequency,
    target_month: date,
    anchor_date: Optional[date] = None,
) -> bool:
    """
    Whether a payment of the given cadence lands in target_month.

    With an anchor, payments repeat every N months from the anchor in either
    direction. Without one, fall back to the usual calendar months.
    """
    if anchor_date is not None:
        step = _ANCHORED_STEP.get(frequency)
        if step is None:
            return False
        diff = abs(month_index(target_month) - month_index(anchor_date))
        return diff % step == 0

    months = _DEFAULT_PAY_MONTHS.get(frequency)
    if months is None:
        return False
    return target_month.month in months


# ---------- Rule chain ----------


@dataclass(frozen=True)
class Matched:
    dividend: ProjectedDividend


class NotMatched:
    def __repr__(self) -> str:
        return "NOT_MATCHED"


NOT_MATCHED = NotMatched()

RuleResult = Union[Matched, NotMatched]
Rule = Callable[[OpenPosition, date], RuleResult]


def _emit(position: OpenPosition, per_share: float, source: DividendSource) -> Matched:
    return Matched(
        ProjectedDividend(
            ticker_symbol=position.ticker_symbol,
            company_name=position.company_name,
            amount=round2(per_share * position.current_quantity),
            source=source,
        )
    )


def explicit_date_rule(position: OpenPosition, target_month: date) -> RuleResult:
    info = position.dividend_info
    if info is None or not info.next_payment_date or not info.next_payment_amount_per_share:
        return NOT_MATCHED

    nxt = info.next_payment_date
    if (nxt.year, nxt.month) != (target_month.year, target_month.month):
        return NOT_MATCHED

    frequency = info.frequency or DividendFrequency.QUARTERLY
    per_payment = float(info.next_payment_amount_per_share) / payments_per_year(frequency)
    return _emit(position, per_payment, DividendSource.EXTERNAL_API)


def historical_pattern_rule(position: OpenPosition, target_month: date) -> RuleResult:
    info = position.dividend_info
    if info is None or not info.frequency or not info.average_amount_per_share:
        return NOT_MATCHED

    if not should_pay_in_month(info.frequency, target_month, info.next_payment_date):
        return NOT_MATCHED
    return _emit(position, float(info.average_amount_per_share), DividendSource.HISTORICAL_PATTERN)


def yield_estimation_rule(position: OpenPosition, target_month: date) -> RuleResult:
    info = position.dividend_info
    if info is None or info.average_amount_per_share:
        return NOT_MATCHED
    if not position.dividend_yield_percent or not position.current_price:
        return NOT_MATCHED

    frequency = info.frequency or DividendFrequency.QUARTERLY
    annual_per_share = (float(position.dividend_yield_percent) / 100.0) * float(position.current_price)
    per_payment = annual_per_share / payments_per_year(frequency)

    if not should_pay_in_month(frequency, target_month, None):
        return NOT_MATCHED
    return _emit(position, per_payment, DividendSource.HISTORICAL_PATTERN)


DEFAULT_RULES: Sequence[Rule] = (
    explicit_date_rule,
    historical_pattern_rule,
    yield_estimation_rule,
)


def evaluate_rules(
    position: OpenPosition,
    target_month: date,
    rules: Sequence[Rule] = DEFAULT_RULES,
) -> Optional[ProjectedDividend]:
    for rule in rules:
        result = rule(position, target_month)
        if isinstance(result, Matched):
            return result.dividend
    return None


def estimate_dividend_for_month(
    position: OpenPosition,
    target_month: date,
) -> Optional[ProjectedDividend]:
    """
    Expected dividend for one position in the month containing target_month,
    or None when no payment is likely (or nothing is known).
    """
    if position.dividend_info is None:
        return None
    return evaluate_rules(position, target_month)
