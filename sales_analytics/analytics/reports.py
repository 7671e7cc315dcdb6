"""
Report Assemblers

Each report wires the filter builder, a record store fetch, the aggregation
engine, the growth engine (trends only) and ranking/projection together, and
fixes the report's grouping key, ordering, row limit and output fields.
"""

from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Any, Callable, Dict, Iterator, List, Optional

import structlog
from polars.exceptions import PolarsError

from sales_analytics.analytics.aggregation import GroupingDimension, aggregate
from sales_analytics.analytics.errors import ComputationError
from sales_analytics.analytics.filters import (
    DEFAULT_START_DATE,
    DEFAULT_USER_LIMIT,
    BucketGranularity,
    FilterBuildResult,
    ReportFilter,
    ReportParams,
    build_filter,
)
from sales_analytics.analytics.growth import with_growth
from sales_analytics.analytics.ranking import rank_and_project, time_series_fields
from sales_analytics.analytics.store import SalesRecordStore
from sales_analytics.config.settings import ReportSettings

logger = structlog.get_logger(__name__)

Row = Dict[str, Any]

USER_FIELDS: Dict[str, str] = {
    "user_id": "userId",
    "name": "name",
    "role": "role",
    "sale_count": "saleCount",
    "total_revenue": "totalRevenue",
    "average_revenue": "averageRevenue",
    "active_days": "activeDays",
    "groups": "groups",
}

GROUP_FIELDS: Dict[str, str] = {
    "group_id": "groupId",
    "name": "name",
    "member_count": "memberCount",
    "sale_count": "saleCount",
    "total_revenue": "totalRevenue",
    "average_revenue": "avgRevenuePerSale",
    "avg_revenue_per_member": "avgRevenuePerMember",
}

TREND_FIELDS: Dict[str, str] = {
    "period": "period",
    "total_revenue": "totalRevenue",
    "sale_count": "saleCount",
    "growth_percentage": "growthPercentage",
}


@contextmanager
def _computing(report: str) -> Iterator[None]:
    """Turn engine failures into ComputationError"""
    try:
        yield
    except PolarsError as e:
        logger.error("Report computation failed", report=report, error=str(e), error_type=type(e).__name__)
        raise ComputationError(f"{report} report could not be computed") from e


def _date_range_only(report_filter: ReportFilter) -> ReportFilter:
    """Drop the user and group clauses; only the time series honours them"""
    return replace(report_filter, user_id=None, group_id=None)


class SalesReportService:
    """
    Builds the four sales reports from a record store.

    Holds no state between calls; one instance per request is fine.

    Example:
        service = SalesReportService(SqlSalesRepository(session))
        rows = await service.trends(ReportParams(interval="quarter"))
    """

    def __init__(
        self,
        store: SalesRecordStore,
        clock: Callable[[], date] = date.today,
        settings: Optional[ReportSettings] = None,
    ):
        self.store = store
        self.clock = clock
        self.settings = settings

    def _build(self, params: ReportParams) -> FilterBuildResult:
        if self.settings is not None:
            defaults = {
                "default_start_date": self.settings.default_start_date,
                "default_interval": BucketGranularity.coerce(self.settings.default_interval),
                "default_limit": self.settings.default_user_limit,
            }
        else:
            defaults = {
                "default_start_date": DEFAULT_START_DATE,
                "default_interval": BucketGranularity.MONTH,
                "default_limit": DEFAULT_USER_LIMIT,
            }

        result = build_filter(params, today=self.clock(), **defaults)
        result.require_filter()
        return result

    async def time_series(self, params: ReportParams) -> List[Row]:
        """Sales per time bucket, optionally for one user or group."""
        built = self._build(params)
        dataset = await self.store.fetch_sales(built.filter)

        with _computing("time_series"):
            frame = aggregate(dataset, built.filter, GroupingDimension.time_period(built.granularity))
            rows = rank_and_project(frame, sort_metric=None, limit=None, fields=time_series_fields(params.metric))

        logger.info(
            "Time series report built",
            granularity=built.granularity.value,
            user_id=built.filter.user_id,
            group_id=built.filter.group_id,
            metric=params.metric,
            rows=len(rows),
        )
        return rows

    async def user_performance(self, params: ReportParams) -> List[Row]:
        """Top users by revenue; users without sales rank last."""
        built = self._build(params)
        report_filter = _date_range_only(built.filter)
        dataset = await self.store.fetch_users_with_sales_and_groups(report_filter)

        with _computing("user_performance"):
            frame = aggregate(dataset, report_filter, GroupingDimension.user())
            rows = rank_and_project(frame, sort_metric="total_revenue", limit=built.limit, fields=USER_FIELDS)

        logger.info("User performance report built", limit=built.limit, rows=len(rows))
        return rows

    async def group_performance(self, params: ReportParams) -> List[Row]:
        """Every group by revenue; groups without sales rank last."""
        built = self._build(params)
        report_filter = _date_range_only(built.filter)
        dataset = await self.store.fetch_groups_with_members_and_sales(report_filter)

        with _computing("group_performance"):
            frame = aggregate(dataset, report_filter, GroupingDimension.group())
            rows = rank_and_project(frame, sort_metric="total_revenue", limit=None, fields=GROUP_FIELDS)

        logger.info("Group performance report built", rows=len(rows))
        return rows

    async def trends(self, params: ReportParams) -> List[Row]:
        """Revenue per time bucket with growth against the previous bucket."""
        built = self._build(params)
        report_filter = _date_range_only(built.filter)
        dataset = await self.store.fetch_sales(report_filter)

        with _computing("trends"):
            frame = aggregate(dataset, report_filter, GroupingDimension.time_period(built.granularity))
            frame = with_growth(frame)
            rows = rank_and_project(frame, sort_metric=None, limit=None, fields=TREND_FIELDS)

        logger.info("Trend report built", granularity=built.granularity.value, rows=len(rows))
        return rows
