"""
Growth Engine

Period-over-period revenue change for a chronologically ordered aggregate
frame. Rows are not re-sorted here.
"""

import polars as pl

from sales_analytics.analytics.aggregation import round_money


def with_growth(
    frame: pl.DataFrame,
    revenue_column: str = "total_revenue",
    alias: str = "growth_percentage",
) -> pl.DataFrame:
    """
    Add the percentage change of revenue against the previous row.

    growth = (revenue - previous) / previous * 100, rounded to 2 decimals with halves
    away from zero.
    The first row, and any row whose previous revenue is null or zero, gets
    null.

    Args:
        frame: Aggregate frame ordered by period
        revenue_column: Column compared between consecutive rows
        alias: Name of the added column

    Returns:
        The frame with the growth column appended
    """
    previous = pl.col(revenue_column).shift(1)

    return frame.with_columns(
        pl.when(previous.is_null() | (previous == 0))
        .then(pl.lit(None, dtype=pl.Float64))
        .otherwise(round_money((pl.col(revenue_column) - previous) / previous * 100))
        .alias(alias)
    )
