"""
Unit Tests - Growth Engine
"""
from datetime import date

import polars as pl

from sales_analytics.analytics.growth import with_growth


def _periods(revenues):
    return pl.DataFrame(
        {
            "period": [date(2021, month, 1) for month in range(1, len(revenues) + 1)],
            "total_revenue": revenues,
        },
        schema={"period": pl.Date, "total_revenue": pl.Float64},
    )


class TestWithGrowth:
    """Tests for with_growth"""

    def test_month_over_month(self):
        """Growth compares each row with the previous one"""
        result = with_growth(_periods([60813.0, 16562.0]))

        growth = result["growth_percentage"].to_list()
        assert growth[0] is None
        assert growth[1] == round((16562 - 60813) / 60813 * 100, 2)

    def test_positive_growth(self):
        """Doubling revenue is +100%"""
        result = with_growth(_periods([100.0, 200.0, 250.0]))

        assert result["growth_percentage"].to_list() == [None, 100.0, 25.0]

    def test_zero_previous_revenue(self):
        """Growth from zero is undefined"""
        result = with_growth(_periods([0.0, 500.0]))

        assert result["growth_percentage"].to_list() == [None, None]

    def test_null_previous_revenue(self):
        """Growth from a null bucket is undefined"""
        result = with_growth(_periods([None, 500.0, 250.0]))

        assert result["growth_percentage"].to_list() == [None, None, -50.0]

    def test_row_order_is_kept(self):
        """Rows are not re-sorted"""
        frame = _periods([300.0, 100.0, 200.0])

        result = with_growth(frame)

        assert result["period"].to_list() == frame["period"].to_list()
        assert result.columns == ["period", "total_revenue", "growth_percentage"]

    def test_empty_frame(self):
        """An empty frame stays empty"""
        result = with_growth(_periods([]))

        assert len(result) == 0
        assert "growth_percentage" in result.columns

    def test_custom_columns(self):
        """Revenue and output column names can be chosen"""
        frame = pl.DataFrame({"revenue": [10.0, 15.0]})

        result = with_growth(frame, revenue_column="revenue", alias="change")

        assert result["change"].to_list() == [None, 50.0]
