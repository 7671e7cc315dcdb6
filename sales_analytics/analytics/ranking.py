"""
Ranking & Projection

Orders aggregate rows by a metric with nulls always last, truncates to a
row limit and renames the surviving columns to their output names.
"""

from typing import Any, Dict, List, Mapping, Optional

import polars as pl

# column -> output field
TIME_SERIES_FIELDS: Dict[str, str] = {
    "period": "period",
    "total_revenue": "totalRevenue",
    "average_revenue": "averageRevenue",
    "sale_count": "saleCount",
    "active_users": "activeUsers",
}

# metric name accepted from callers -> column
TIME_SERIES_METRICS: Dict[str, str] = {
    "totalRevenue": "total_revenue",
    "avgRevenue": "average_revenue",
    "saleCount": "sale_count",
}


def rank(
    frame: pl.DataFrame,
    sort_metric: Optional[str],
    limit: Optional[int] = None,
    descending: bool = True,
) -> pl.DataFrame:
    """
    Sort by ``sort_metric`` with null values last, then keep ``limit`` rows.

    Ties keep their incoming order. With no sort metric the incoming order is
    kept; with no limit every row is kept.
    """
    if sort_metric is not None:
        frame = frame.sort(sort_metric, descending=descending, nulls_last=True, maintain_order=True)
    if limit is not None:
        frame = frame.head(limit)
    return frame


def project(frame: pl.DataFrame, fields: Mapping[str, str]) -> List[Dict[str, Any]]:
    """Select ``fields`` (column -> output name) and return plain row dicts."""
    return frame.select([pl.col(column).alias(name) for column, name in fields.items()]).to_dicts()


def rank_and_project(
    frame: pl.DataFrame,
    sort_metric: Optional[str],
    limit: Optional[int],
    fields: Mapping[str, str],
    descending: bool = True,
) -> List[Dict[str, Any]]:
    """Rank, truncate and project in one step."""
    return project(rank(frame, sort_metric, limit=limit, descending=descending), fields)


def time_series_fields(metric: Optional[str]) -> Dict[str, str]:
    """
    Fields emitted by the time-series report for a requested metric.

    ``all`` selects every field. A known metric name selects ``period`` plus
    that metric. Anything else leaves ``period`` alone.
    """
    if metric is None or metric == "all":
        return dict(TIME_SERIES_FIELDS)

    fields = {"period": TIME_SERIES_FIELDS["period"]}
    column = TIME_SERIES_METRICS.get(metric)
    if column is not None:
        fields[column] = TIME_SERIES_FIELDS[column]
    return fields
