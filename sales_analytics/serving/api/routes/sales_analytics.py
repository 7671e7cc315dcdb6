"""
Sales Analytics API Endpoints

Read-only report endpoints. Parameters arrive as raw strings and are
validated by the report filter builder, so malformed values produce a 400
with every problem listed.
"""

from datetime import date
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from sales_analytics.analytics.filters import ReportParams
from sales_analytics.analytics.reports import SalesReportService
from sales_analytics.config import get_settings
from sales_analytics.database.connection import get_db_dependency
from sales_analytics.database.repository import SqlSalesRepository

router = APIRouter()
logger = structlog.get_logger(__name__)


class ReportRow(BaseModel):
    """Report rows serialize with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeSeriesPoint(ReportRow):
    """Sales in one time bucket; metrics not requested are omitted"""
    period: date
    total_revenue: Optional[float] = None
    average_revenue: Optional[float] = None
    sale_count: Optional[int] = None
    active_users: Optional[int] = None


class UserPerformance(ReportRow):
    """Sales performance of one user"""
    user_id: int
    name: str
    role: str
    sale_count: int
    total_revenue: Optional[float]
    average_revenue: Optional[float]
    active_days: int
    groups: List[str]


class GroupPerformance(ReportRow):
    """Sales performance of one group"""
    group_id: int
    name: str
    member_count: int
    sale_count: int
    total_revenue: Optional[float]
    avg_revenue_per_sale: Optional[float]
    avg_revenue_per_member: Optional[float]


class TrendPoint(ReportRow):
    """Revenue in one time bucket with growth against the previous one"""
    period: date
    total_revenue: Optional[float]
    sale_count: int
    growth_percentage: Optional[float]


class TimeSeriesResponse(BaseModel):
    data: List[TimeSeriesPoint]


class UserPerformanceResponse(BaseModel):
    data: List[UserPerformance]


class GroupPerformanceResponse(BaseModel):
    data: List[GroupPerformance]


class TrendResponse(BaseModel):
    data: List[TrendPoint]


def get_clock() -> Callable[[], date]:
    """Source of "today" for reports without an end date"""
    return date.today


async def get_report_service(
    db: AsyncSession = Depends(get_db_dependency),
    clock: Callable[[], date] = Depends(get_clock),
) -> SalesReportService:
    """FastAPI dependency building a report service over the request's session."""
    return SalesReportService(
        SqlSalesRepository(db),
        clock=clock,
        settings=get_settings().reports,
    )


@router.get(
    "/time-series",
    response_model=TimeSeriesResponse,
    response_model_exclude_unset=True,
)
async def get_time_series(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    interval: Optional[str] = None,
    user_id: Optional[str] = Query(None, alias="userId"),
    group_id: Optional[str] = Query(None, alias="groupId"),
    metric: str = "all",
    service: SalesReportService = Depends(get_report_service),
) -> TimeSeriesResponse:
    """
    Sales per time bucket.

    ``metric`` narrows the output to ``period`` plus one of totalRevenue,
    avgRevenue or saleCount.
    """
    logger.info(
        "get_time_series called",
        start_date=start_date,
        end_date=end_date,
        interval=interval,
        user_id=user_id,
        group_id=group_id,
        metric=metric,
    )

    rows = await service.time_series(ReportParams(
        start_date=start_date,
        end_date=end_date,
        interval=interval,
        user_id=user_id,
        group_id=group_id,
        metric=metric,
    ))
    return TimeSeriesResponse(data=rows)


@router.get("/users", response_model=UserPerformanceResponse)
async def get_user_performance(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    limit: Optional[str] = None,
    service: SalesReportService = Depends(get_report_service),
) -> UserPerformanceResponse:
    """Top users by revenue."""
    logger.info("get_user_performance called", start_date=start_date, end_date=end_date, limit=limit)

    rows = await service.user_performance(ReportParams(
        start_date=start_date,
        end_date=end_date,
        limit=limit,
    ))
    return UserPerformanceResponse(data=rows)


@router.get("/groups", response_model=GroupPerformanceResponse)
async def get_group_performance(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    service: SalesReportService = Depends(get_report_service),
) -> GroupPerformanceResponse:
    """Every group by revenue."""
    logger.info("get_group_performance called", start_date=start_date, end_date=end_date)

    rows = await service.group_performance(ReportParams(start_date=start_date, end_date=end_date))
    return GroupPerformanceResponse(data=rows)


@router.get("/trends", response_model=TrendResponse)
async def get_trends(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    interval: Optional[str] = None,
    service: SalesReportService = Depends(get_report_service),
) -> TrendResponse:
    """Revenue per time bucket with period-over-period growth."""
    logger.info("get_trends called", start_date=start_date, end_date=end_date, interval=interval)

    rows = await service.trends(ReportParams(start_date=start_date, end_date=end_date, interval=interval))
    return TrendResponse(data=rows)
