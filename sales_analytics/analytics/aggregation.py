"""
Bucketing & Aggregation Engine

Aggregates a filtered SalesDataset along one grouping dimension:

- time period: one row per bucket that holds at least one sale, ascending
- user: one row per user, including users without sales
- group: one row per group, including groups without members or sales

Revenue columns are null (not zero) when a row has no sales.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Optional

import polars as pl
import structlog

from sales_analytics.analytics.dataset import SalesDataset
from sales_analytics.analytics.filters import BucketGranularity, ReportFilter

logger = structlog.get_logger(__name__)

# Closed set of truncation rules; weeks start on Monday
TRUNCATION_EVERY: Dict[BucketGranularity, str] = {
    BucketGranularity.DAY: "1d",
    BucketGranularity.WEEK: "1w",
    BucketGranularity.MONTH: "1mo",
    BucketGranularity.QUARTER: "1q",
    BucketGranularity.YEAR: "1y",
}


class DimensionKind(str, Enum):
    """What an aggregate row is keyed by"""
    TIME_PERIOD = "time_period"
    USER = "user"
    GROUP = "group"


@dataclass(frozen=True)
class GroupingDimension:
    """Grouping key for aggregate(); granularity applies to time periods only"""
    kind: DimensionKind
    granularity: Optional[BucketGranularity] = None

    @classmethod
    def time_period(cls, granularity: BucketGranularity) -> "GroupingDimension":
        return cls(DimensionKind.TIME_PERIOD, BucketGranularity.coerce(granularity))

    @classmethod
    def user(cls) -> "GroupingDimension":
        return cls(DimensionKind.USER)

    @classmethod
    def group(cls) -> "GroupingDimension":
        return cls(DimensionKind.GROUP)


def truncate_expr(column: str, granularity: BucketGranularity) -> pl.Expr:
    """Expression mapping a date column to the start of its bucket"""
    return pl.col(column).dt.truncate(TRUNCATION_EVERY[granularity])


def truncate_date(value: date, granularity: BucketGranularity) -> date:
    """Start of the bucket containing ``value``."""
    return pl.select(pl.lit(value, dtype=pl.Date).dt.truncate(TRUNCATION_EVERY[granularity])).item()


def round_money(expr: pl.Expr) -> pl.Expr:
    """Round to cents, halves away from zero"""
    return expr.round(2, mode="half_away_from_zero")


def _revenue_aggregates(average_alias: str = "average_revenue") -> list:
    return [
        pl.len().cast(pl.Int64).alias("sale_count"),
        # Float sums of cent amounts are rounded back to cents
        round_money(pl.col("amount").sum()).alias("total_revenue"),
        round_money(pl.col("amount").mean()).alias(average_alias),
    ]


def _aggregate_time_period(
    sales: pl.DataFrame,
    report_filter: ReportFilter,
    granularity: BucketGranularity,
) -> pl.DataFrame:
    """
    One row per bucket present in the filtered sales.

    A leading bucket that starts before the requested range is labelled with
    the range start, so every period lies inside [start_date, end_date].
    """
    range_start = pl.lit(report_filter.start_date, dtype=pl.Date)
    bucket_start = truncate_expr("date", granularity)
    bucketed = sales.with_columns(
        pl.when(bucket_start < range_start)
        .then(range_start)
        .otherwise(bucket_start)
        .alias("period")
    )

    return (
        bucketed.group_by("period")
        .agg(_revenue_aggregates() + [
            # Distinct sellers in the bucket
            pl.col("user_id").n_unique().cast(pl.Int64).alias("active_users"),
        ])
        .sort("period")
    )


def _aggregate_users(dataset: SalesDataset, sales: pl.DataFrame) -> pl.DataFrame:
    """One row per user; group names are not date-scoped."""
    per_user = sales.group_by("user_id").agg(_revenue_aggregates() + [
        # Calendar days with at least one sale
        pl.col("date").n_unique().cast(pl.Int64).alias("active_days"),
    ])

    groups = dataset.groups.rename({"id": "group_id", "name": "group_name"})
    group_names = (
        dataset.users.select(pl.col("id").alias("user_id"))
        .join(dataset.memberships, on="user_id", how="left")
        .join(groups, on="group_id", how="left")
        .sort(["user_id", "group_id"], nulls_last=True)
        .group_by("user_id", maintain_order=True)
        .agg(pl.col("group_name").drop_nulls().unique(maintain_order=True).alias("groups"))
    )

    return (
        dataset.users.rename({"id": "user_id"})
        .join(per_user, on="user_id", how="left")
        .join(group_names, on="user_id", how="left")
        .with_columns([
            pl.col("sale_count").fill_null(0),
            pl.col("active_days").fill_null(0),
        ])
        .sort("user_id")
    )


def _aggregate_groups(dataset: SalesDataset, sales: pl.DataFrame) -> pl.DataFrame:
    """One row per group with member-normalised revenue."""
    memberships = dataset.memberships.unique()

    member_counts = memberships.group_by("group_id").agg(
        pl.col("user_id").n_unique().cast(pl.Int64).alias("member_count")
    )

    per_group = (
        memberships.join(sales, on="user_id", how="inner")
        .group_by("group_id")
        .agg(_revenue_aggregates())
    )

    return (
        dataset.groups.rename({"id": "group_id"})
        .join(member_counts, on="group_id", how="left")
        .join(per_group, on="group_id", how="left")
        .with_columns([
            pl.col("member_count").fill_null(0),
            pl.col("sale_count").fill_null(0),
        ])
        .with_columns(
            # Empty groups have no per-member revenue
            pl.when(pl.col("member_count") > 0)
            .then(round_money(pl.col("total_revenue") / pl.col("member_count")))
            .otherwise(pl.lit(None, dtype=pl.Float64))
            .alias("avg_revenue_per_member")
        )
        .sort("group_id")
    )


def aggregate(
    dataset: SalesDataset,
    report_filter: ReportFilter,
    dimension: GroupingDimension,
) -> pl.DataFrame:
    """
    Aggregate filtered sales along ``dimension``.

    Args:
        dataset: Record snapshot
        report_filter: Predicates applied to the sales frame
        dimension: Grouping key

    Returns:
        Aggregate frame. Columns always present: sale_count, total_revenue,
        average_revenue. Time periods add period and active_users; users add
        user_id, name, role, active_days and groups; groups add group_id,
        name, member_count and avg_revenue_per_member.
    """
    sales = dataset.sales.filter(report_filter.predicate(dataset.memberships))

    if dimension.kind == DimensionKind.TIME_PERIOD:
        granularity = dimension.granularity or BucketGranularity.MONTH
        result = _aggregate_time_period(sales, report_filter, granularity)
    elif dimension.kind == DimensionKind.USER:
        result = _aggregate_users(dataset, sales)
    else:
        result = _aggregate_groups(dataset, sales)

    logger.debug(
        "Aggregation completed",
        dimension=dimension.kind.value,
        granularity=dimension.granularity.value if dimension.granularity else None,
        input_sales=len(dataset.sales),
        matched_sales=len(sales),
        rows=len(result),
    )
    return result
