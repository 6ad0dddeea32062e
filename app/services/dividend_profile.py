from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
import yfinance as yf
from sqlalchemy.orm import Session

from app.domain.models import DividendFrequency, DividendInfo
from app.infra import models as orm
from app.infra.settings import settings
from app.services.cache_utils import clear_ttl_cache, load_ttl_cache, store_ttl_cache
from app.services.dividend_schedule import payments_per_year

log = logging.getLogger(__name__)

_CACHE_NAMESPACE = "dividend_profiles"

_PROFILE_FIELDS = (
    "frequency",
    "average_amount_per_share",
    "next_payment_date",
    "next_payment_amount_per_share",
)

# Only the most recent payouts say anything about the current cadence.
_RECENT_PAYOUTS = 8


class DividendProfileUnavailable(RuntimeError):
    """Raised when yfinance returned neither dividend history nor quote info."""


# ---------- Internal helpers ----------


def _to_date(d: Any) -> date:
    # pd.Timestamp is a datetime
    if isinstance(d, datetime):
        return d.date()
    if isinstance(d, date):
        return d
    return date.fromisoformat(str(d)[:10])


def _frequency_from_gap(median_gap_days: float) -> DividendFrequency:
    if median_gap_days <= 45:
        return DividendFrequency.MONTHLY
    if median_gap_days <= 135:
        return DividendFrequency.QUARTERLY
    if median_gap_days <= 270:
        return DividendFrequency.SEMI_ANNUAL
    return DividendFrequency.ANNUAL


def _history_as_of(dividends: Optional[pd.Series], as_of: date) -> pd.Series:
    """Ex-date -> cash/share, date-indexed, ascending, nothing after as_of."""
    if dividends is None or len(dividends) == 0:
        return pd.Series(dtype=float)
    s = pd.Series(
        [float(v) for v in dividends.values],
        index=[_to_date(i) for i in dividends.index],
        dtype=float,
    )
    s = s[[d <= as_of for d in s.index]]
    s = s[s > 0]
    return s.sort_index()


def _next_payment(info: Optional[Dict[str, Any]], as_of: date) -> tuple:
    if not info:
        return None, None
    ts = info.get("dividendDate")
    if not ts:
        return None, None
    try:
        pay_date = datetime.fromtimestamp(int(ts), tz=timezone.utc).date()
    except (TypeError, ValueError, OverflowError, OSError):
        return None, None
    if pay_date < as_of:
        return None, None
    rate = info.get("dividendRate")
    return pay_date, (float(rate) if rate else None)


# ---------- Public: inference ----------


def infer_dividend_info(
    dividends: Optional[pd.Series],
    as_of: date,
    info: Optional[Dict[str, Any]] = None,
) -> DividendInfo:
    """
    Derive DividendInfo from an ex-date history (e.g. yfinance Ticker.dividends)
    plus the provider's quote info.

    - frequency: median gap between the most recent ex-dates
    - average_amount_per_share: mean of the last year's worth of payouts
    - next payment: provider's dividendDate / dividendRate, only if not in the past
    """
    hist = _history_as_of(dividends, as_of)
    next_date, next_amount = _next_payment(info, as_of)

    if hist.empty:
        return DividendInfo(
            frequency=None,
            average_amount_per_share=None,
            next_payment_date=next_date,
            next_payment_amount_per_share=next_amount,
        )

    recent = hist.tail(_RECENT_PAYOUTS)
    if len(recent) == 1:
        frequency = DividendFrequency.ANNUAL
    else:
        ordinals = np.array([d.toordinal() for d in recent.index], dtype=float)
        frequency = _frequency_from_gap(float(np.median(np.diff(ordinals))))

    last_n = hist.tail(payments_per_year(frequency))
    avg = round(float(last_n.mean()), 4)

    return DividendInfo(
        frequency=frequency,
        average_amount_per_share=avg,
        next_payment_date=next_date,
        next_payment_amount_per_share=next_amount,
    )


def trailing_yield_percent(info: Optional[Dict[str, Any]]) -> Optional[float]:
    """Yahoo reports yield as a fraction (0.0412 == 4.12%). Forward yield wins over trailing."""
    if not info:
        return None
    y = info.get("dividendYield")
    if y is None:
        y = info.get("trailingAnnualDividendYield")
    if y is None:
        return None
    return round(float(y) * 100.0, 4)


def last_price(info: Optional[Dict[str, Any]]) -> Optional[float]:
    """Quote price in major units; LSE quotes in pence (GBp) are divided by 100."""
    if not info:
        return None
    price = info.get("regularMarketPrice") or info.get("currentPrice")
    if not price:
        return None
    price = float(price)
    if info.get("currency") == "GBp":
        price = price / 100.0
    return price


# ---------- Public: yfinance profile ----------


def profile_to_dividend_info(profile: Dict[str, Any]) -> DividendInfo:
    freq = profile.get("frequency")
    nxt = profile.get("next_payment_date")
    return DividendInfo(
        frequency=DividendFrequency(freq) if freq else None,
        average_amount_per_share=profile.get("average_amount_per_share"),
        next_payment_date=date.fromisoformat(nxt) if nxt else None,
        next_payment_amount_per_share=profile.get("next_payment_amount_per_share"),
    )


def get_dividend_profile(
    symbol: str, as_of: date, bypass_cache: bool = False
) -> Dict[str, Any]:
    """
    Fetch dividend history + quote info for one symbol from yfinance and
    reduce it to a JSON-friendly profile. Cached on disk per (symbol, as_of).

    Raises DividendProfileUnavailable (and caches nothing) when both lookups fail.
    """
    cache_key = f"{symbol.upper()}:{as_of.isoformat()}"
    if not bypass_cache:
        cached = load_ttl_cache(_CACHE_NAMESPACE, cache_key)
        if isinstance(cached, dict):
            return cached

    ticker = yf.Ticker(symbol)

    errors = []
    try:
        divs = ticker.dividends
    except Exception as e:
        log.warning("yfinance dividends failed for %s: %s", symbol, e)
        errors.append(e)
        divs = None

    try:
        info = ticker.info or {}
    except Exception as e:
        log.warning("yfinance info failed for %s: %s", symbol, e)
        errors.append(e)
        info = {}

    if len(errors) == 2:
        raise DividendProfileUnavailable(f"yfinance lookups failed for {symbol}: {errors[-1]}") from errors[-1]

    di = infer_dividend_info(divs, as_of, info)

    profile = {
        "symbol": symbol.upper(),
        "as_of": as_of.isoformat(),
        "frequency": di.frequency.value if di.frequency else None,
        "average_amount_per_share": di.average_amount_per_share,
        "next_payment_date": di.next_payment_date.isoformat() if di.next_payment_date else None,
        "next_payment_amount_per_share": di.next_payment_amount_per_share,
        "trailing_yield_percent": trailing_yield_percent(info),
        "last_price": last_price(info),
    }

    try:
        store_ttl_cache(_CACHE_NAMESPACE, cache_key, profile, settings.projector_yf_cache_ttl_seconds)
    except OSError as e:
        log.debug("could not cache dividend profile for %s: %s", symbol, e)

    return profile


def clear_dividend_profiles() -> int:
    return clear_ttl_cache(_CACHE_NAMESPACE)


# ---------- Public: persist ----------


def upsert_dividend_info(
    db: Session,
    listing: orm.Listing,
    info: DividendInfo,
    source: str = "yfinance",
) -> orm.DividendInfo:
    """Insert or update the dividend_info row for a listing. Caller commits."""
    freq = info.frequency.value if isinstance(info.frequency, DividendFrequency) else info.frequency

    row: Optional[orm.DividendInfo] = (
        db.query(orm.DividendInfo)
        .filter(
            orm.DividendInfo.listing_isin == listing.isin,
            orm.DividendInfo.listing_exchange_code == listing.exchange_code,
        )
        .one_or_none()
    )
    if row is None:
        row = orm.DividendInfo(
            listing_isin=listing.isin,
            listing_exchange_code=listing.exchange_code,
        )
        db.add(row)

    row.frequency = freq
    row.avg_amount = info.average_amount_per_share
    row.next_payment_date = info.next_payment_date
    row.next_amount = info.next_payment_amount_per_share
    row.source = source
    row.updated_at = datetime.utcnow()
    return row


def refresh_listing_from_profile(
    db: Session, listing: orm.Listing, profile: Dict[str, Any]
) -> Optional[orm.DividendInfo]:
    """
    Apply a fetched profile to a listing: price, yield, dividend_info.

    A profile with no dividend fields leaves the stored dividend_info row alone
    and returns None.
    """
    if profile.get("last_price") is not None:
        listing.current_price = profile["last_price"]
    if profile.get("trailing_yield_percent") is not None:
        listing.dividend_yield = profile["trailing_yield_percent"]
    listing.updated_at = datetime.utcnow()
    if all(profile.get(k) is None for k in _PROFILE_FIELDS):
        log.info("no dividend data for %s; keeping stored dividend_info", listing.ticker_symbol)
        return None
    return upsert_dividend_info(db, listing, profile_to_dividend_info(profile))
