from datetime import date

import pytest

from app.domain.models import (
    DividendFrequency,
    DividendInfo,
    DividendSource,
    OpenPosition,
    SecurityKey,
)
from app.services.dividend_schedule import (
    NOT_MATCHED,
    Matched,
    estimate_dividend_for_month,
    evaluate_rules,
    explicit_date_rule,
    historical_pattern_rule,
    month_index,
    payments_per_year,
    round2,
    should_pay_in_month,
    yield_estimation_rule,
)

Q = DividendFrequency.QUARTERLY


def _position(info=None, quantity=100.0, price=0.0, yield_pct=None):
    return OpenPosition(
        security_key=SecurityKey("US0000000001", "XNYS"),
        ticker_symbol="ABC",
        company_name="ABC Corp",
        current_quantity=quantity,
        current_price=price,
        dividend_yield_percent=yield_pct,
        dividend_info=info,
    )


def test_payments_per_year():
    assert payments_per_year(DividendFrequency.MONTHLY) == 12
    assert payments_per_year(Q) == 4
    assert payments_per_year(DividendFrequency.SEMI_ANNUAL) == 2
    assert payments_per_year(DividendFrequency.ANNUAL) == 1
    assert payments_per_year("WEEKLY") == 4
    assert payments_per_year(None) == 4


def test_month_index_is_contiguous_across_years():
    assert month_index(date(2025, 1, 1)) - month_index(date(2024, 12, 31)) == 1


@pytest.mark.parametrize(
    "frequency,months",
    [
        (DividendFrequency.MONTHLY, list(range(1, 13))),
        (Q, [3, 6, 9, 12]),
        (DividendFrequency.SEMI_ANNUAL, [6, 12]),
        (DividendFrequency.ANNUAL, [12]),
        ("WEEKLY", []),
    ],
)
def test_default_pay_months(frequency, months):
    paying = [m for m in range(1, 13) if should_pay_in_month(frequency, date(2024, m, 1))]
    assert paying == months


def test_anchored_schedule_is_order_independent():
    anchor = date(2024, 2, 15)
    assert should_pay_in_month(Q, date(2024, 5, 1), anchor)
    assert should_pay_in_month(Q, date(2023, 11, 1), anchor)
    assert should_pay_in_month(Q, date(2025, 2, 1), anchor)
    assert not should_pay_in_month(Q, date(2024, 6, 1), anchor)
    assert should_pay_in_month(DividendFrequency.SEMI_ANNUAL, date(2024, 8, 1), anchor)
    assert not should_pay_in_month(DividendFrequency.ANNUAL, date(2024, 8, 1), anchor)
    assert should_pay_in_month(DividendFrequency.ANNUAL, date(2025, 2, 1), anchor)
    assert should_pay_in_month(DividendFrequency.MONTHLY, date(2024, 7, 1), anchor)
    assert not should_pay_in_month("WEEKLY", date(2024, 2, 1), anchor)


def test_round2_half_up():
    assert round2(0.125) == 0.13
    assert round2(200.0) == 200.0
    assert round2(1 / 3) == 0.33
    assert round2(2.675) == 2.67  # 2.675 is 2.67499999... in binary


def test_no_dividend_info_yields_nothing():
    p = _position(info=None, price=100.0, yield_pct=3.0)
    assert estimate_dividend_for_month(p, date(2024, 6, 1)) is None


def test_explicit_date_takes_priority_over_history():
    info = DividendInfo(
        frequency=Q,
        average_amount_per_share=0.5,
        next_payment_date=date(2024, 3, 14),
        next_payment_amount_per_share=2.4,
    )
    p = _position(info=info, quantity=10)

    d = estimate_dividend_for_month(p, date(2024, 3, 1))
    assert d.source == DividendSource.EXTERNAL_API
    assert d.amount == 6.0  # 2.4 / 4 * 10
    assert d.ticker_symbol == "ABC"
    assert d.company_name == "ABC Corp"


def test_explicit_date_defaults_to_quarterly_divisor():
    info = DividendInfo(next_payment_date=date(2024, 3, 14), next_payment_amount_per_share=2.0)
    d = estimate_dividend_for_month(_position(info=info, quantity=3), date(2024, 3, 31))
    assert d.amount == 1.5
    assert d.source == DividendSource.EXTERNAL_API


def test_explicit_date_in_other_month_falls_through_to_anchored_history():
    info = DividendInfo(
        frequency=Q,
        average_amount_per_share=0.5,
        next_payment_date=date(2024, 3, 14),
        next_payment_amount_per_share=2.4,
    )
    p = _position(info=info, quantity=10)

    d = estimate_dividend_for_month(p, date(2024, 6, 1))
    assert d.source == DividendSource.HISTORICAL_PATTERN
    assert d.amount == 5.0
    assert estimate_dividend_for_month(p, date(2024, 4, 1)) is None


def test_historical_pattern_uses_default_quarters():
    info = DividendInfo(frequency=Q, average_amount_per_share=2.0)
    p = _position(info=info, quantity=100)

    for m in range(1, 13):
        d = estimate_dividend_for_month(p, date(2024, m, 1))
        if m in (3, 6, 9, 12):
            assert d.amount == 200.0
            assert d.source == DividendSource.HISTORICAL_PATTERN
        else:
            assert d is None


def test_anchored_quarterly_without_next_amount():
    info = DividendInfo(
        frequency=Q,
        average_amount_per_share=1.5,
        next_payment_date=date(2024, 2, 15),
    )
    p = _position(info=info, quantity=10)

    paying = [m for m in range(1, 13) if estimate_dividend_for_month(p, date(2024, m, 1))]
    assert paying == [2, 5, 8, 11]
    assert estimate_dividend_for_month(p, date(2024, 5, 1)).amount == 15.0


def test_yield_fallback_defaults_to_quarterly():
    p = _position(info=DividendInfo(), quantity=50, price=100.0, yield_pct=2.0)

    d = estimate_dividend_for_month(p, date(2024, 6, 1))
    assert d.amount == 25.0
    assert d.source == DividendSource.HISTORICAL_PATTERN
    assert estimate_dividend_for_month(p, date(2024, 7, 1)) is None


def test_yield_fallback_respects_known_frequency():
    info = DividendInfo(frequency=DividendFrequency.MONTHLY)
    p = _position(info=info, quantity=12, price=50.0, yield_pct=6.0)

    # 6% of 50 = 3.00/yr -> 0.25/month
    d = estimate_dividend_for_month(p, date(2024, 1, 1))
    assert d.amount == 3.0


def test_yield_fallback_ignores_anchor_date():
    info = DividendInfo(next_payment_date=date(2024, 2, 15))
    p = _position(info=info, quantity=50, price=100.0, yield_pct=2.0)

    assert estimate_dividend_for_month(p, date(2024, 2, 1)) is None
    assert estimate_dividend_for_month(p, date(2024, 3, 1)).amount == 25.0


def test_yield_fallback_skipped_when_average_present():
    # average exists but the month is off-schedule: no yield-based guess
    info = DividendInfo(frequency=Q, average_amount_per_share=1.0)
    p = _position(info=info, quantity=10, price=100.0, yield_pct=5.0)
    assert estimate_dividend_for_month(p, date(2024, 1, 1)) is None


def test_missing_price_or_yield_yields_nothing():
    assert estimate_dividend_for_month(_position(info=DividendInfo(), yield_pct=2.0), date(2024, 6, 1)) is None
    assert estimate_dividend_for_month(_position(info=DividendInfo(), price=10.0), date(2024, 6, 1)) is None


def test_unknown_frequency_never_schedules():
    info = DividendInfo(frequency="WEEKLY", average_amount_per_share=1.0)
    p = _position(info=info, quantity=10)
    assert all(estimate_dividend_for_month(p, date(2024, m, 1)) is None for m in range(1, 13))


def test_rules_are_independently_evaluable():
    info = DividendInfo(frequency=Q, average_amount_per_share=1.0)
    p = _position(info=info, quantity=10)

    assert explicit_date_rule(p, date(2024, 3, 1)) is NOT_MATCHED
    assert isinstance(historical_pattern_rule(p, date(2024, 3, 1)), Matched)
    assert yield_estimation_rule(p, date(2024, 3, 1)) is NOT_MATCHED


def test_evaluate_rules_short_circuits():
    calls = []

    def first(position, month):
        calls.append("first")
        return historical_pattern_rule(position, month)

    def second(position, month):
        calls.append("second")
        return NOT_MATCHED

    p = _position(info=DividendInfo(frequency=Q, average_amount_per_share=1.0), quantity=1)
    assert evaluate_rules(p, date(2024, 3, 1), rules=(first, second)).amount == 1.0
    assert calls == ["first"]
