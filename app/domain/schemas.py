from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.domain.models import DividendProjections, DividendSource


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectedDividendOut(_CamelModel):
    ticker_symbol: str
    company_name: Optional[str] = None
    amount: float
    source: DividendSource


class MonthlyProjectionOut(_CamelModel):
    month: str
    total_projected: float
    holdings: List[ProjectedDividendOut]


class ProjectionSummaryOut(_CamelModel):
    total_12_month_projection: float = Field(alias="total12MonthProjection")
    avg_monthly_projection: float


class ProjectionsResponse(_CamelModel):
    projections: List[MonthlyProjectionOut]
    summary: ProjectionSummaryOut

    @classmethod
    def from_result(cls, result: DividendProjections) -> "ProjectionsResponse":
        return cls(
            projections=[
                MonthlyProjectionOut(
                    month=m.month,
                    total_projected=m.total_projected,
                    holdings=[
                        ProjectedDividendOut(
                            ticker_symbol=h.ticker_symbol,
                            company_name=h.company_name,
                            amount=h.amount,
                            source=h.source,
                        )
                        for h in m.holdings
                    ],
                )
                for m in result.projections
            ],
            summary=ProjectionSummaryOut(
                total_12_month_projection=result.summary.total_12_month_projection,
                avg_monthly_projection=result.summary.avg_monthly_projection,
            ),
        )
