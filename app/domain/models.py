from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import NamedTuple, Optional, Tuple, Union


class DividendFrequency(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    SEMI_ANNUAL = "SEMI_ANNUAL"
    ANNUAL = "ANNUAL"


class TransactionSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class DividendSource(str, Enum):
    EXTERNAL_API = "EXTERNAL_API"
    HISTORICAL_PATTERN = "HISTORICAL_PATTERN"


# Storage may hold cadence values we don't recognise; they stay raw strings.
Frequency = Union[DividendFrequency, str]


class SecurityKey(NamedTuple):
    isin: str
    exchange_code: str


@dataclass(frozen=True)
class LedgerEntry:
    security_key: SecurityKey
    side: TransactionSide
    quantity: float


@dataclass(frozen=True)
class DividendInfo:
    frequency: Optional[Frequency] = None
    average_amount_per_share: Optional[float] = None
    next_payment_date: Optional[date] = None
    next_payment_amount_per_share: Optional[float] = None  # annual rate


@dataclass(frozen=True)
class Listing:
    security_key: SecurityKey
    ticker_symbol: str
    company_name: Optional[str] = None
    current_price: float = 0.0
    dividend_yield_percent: Optional[float] = None
    dividend_info: Optional[DividendInfo] = None


@dataclass(frozen=True)
class OpenPosition:
    security_key: SecurityKey
    ticker_symbol: str
    company_name: Optional[str]
    current_quantity: float
    current_price: float = 0.0
    dividend_yield_percent: Optional[float] = None
    dividend_info: Optional[DividendInfo] = None


@dataclass(frozen=True)
class ProjectedDividend:
    ticker_symbol: str
    company_name: Optional[str]
    amount: float  # 2 dp
    source: DividendSource


@dataclass(frozen=True)
class MonthlyProjection:
    month: str  # YYYY-MM
    total_projected: float
    holdings: Tuple[ProjectedDividend, ...] = ()


@dataclass(frozen=True)
class ProjectionSummary:
    total_12_month_projection: float
    avg_monthly_projection: float


@dataclass(frozen=True)
class DividendProjections:
    projections: Tuple[MonthlyProjection, ...]
    summary: ProjectionSummary
