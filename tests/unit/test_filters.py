"""
Unit Tests - Report Filter Builder
"""
from datetime import date

import polars as pl
import pytest

from sales_analytics.analytics.errors import ValidationError
from sales_analytics.analytics.filters import (
    DEFAULT_START_DATE,
    DEFAULT_USER_LIMIT,
    BucketGranularity,
    ReportFilter,
    ReportParams,
    build_filter,
)

TODAY = date(2021, 6, 30)


class TestBucketGranularity:
    """Tests for interval coercion"""

    @pytest.mark.parametrize("value", ["day", "week", "month", "quarter", "year"])
    def test_known_values(self, value):
        """Known intervals map to themselves"""
        assert BucketGranularity.coerce(value).value == value

    @pytest.mark.parametrize("value", [None, "", "fortnight", "MONTH", "hour"])
    def test_unknown_values_fall_back_to_month(self, value):
        """Anything else becomes month"""
        assert BucketGranularity.coerce(value) == BucketGranularity.MONTH

    def test_custom_default(self):
        """Fallback can be overridden"""
        assert BucketGranularity.coerce("bogus", default=BucketGranularity.WEEK) == BucketGranularity.WEEK


class TestBuildFilter:
    """Tests for build_filter"""

    def test_defaults(self):
        """Empty parameters use default start, today and month"""
        result = build_filter(ReportParams(), today=TODAY)

        assert result.is_valid
        assert result.filter == ReportFilter(start_date=DEFAULT_START_DATE, end_date=TODAY)
        assert result.granularity == BucketGranularity.MONTH
        assert result.limit == DEFAULT_USER_LIMIT

    def test_explicit_values(self):
        """Well-formed strings are parsed"""
        result = build_filter(
            ReportParams(
                start_date="2021-02-01",
                end_date="2021-03-31",
                interval="week",
                user_id="7",
                group_id="2",
                limit="5",
            ),
            today=TODAY,
        )

        assert result.is_valid
        assert result.filter.start_date == date(2021, 2, 1)
        assert result.filter.end_date == date(2021, 3, 31)
        assert result.filter.user_id == 7
        assert result.filter.group_id == 2
        assert result.granularity == BucketGranularity.WEEK
        assert result.limit == 5

    def test_invalid_interval_is_not_an_error(self):
        """Unknown interval is coerced silently"""
        result = build_filter(ReportParams(interval="fortnight"), today=TODAY)

        assert result.is_valid
        assert result.granularity == BucketGranularity.MONTH

    @pytest.mark.parametrize("field,name", [("user_id", "userId"), ("group_id", "groupId")])
    def test_non_numeric_id(self, field, name):
        """Non-numeric ids are rejected"""
        result = build_filter(ReportParams(**{field: "abc"}), today=TODAY)

        assert not result.is_valid
        assert result.filter is None
        assert len(result.errors) == 1
        assert name in result.errors[0]

    def test_malformed_date(self):
        """Dates must be ISO formatted"""
        result = build_filter(ReportParams(start_date="01/02/2021"), today=TODAY)

        assert not result.is_valid
        assert "startDate" in result.errors[0]

    def test_start_after_end(self):
        """An inverted range is rejected"""
        result = build_filter(ReportParams(start_date="2021-05-01", end_date="2021-04-01"), today=TODAY)

        assert not result.is_valid
        assert "after" in result.errors[0]

    def test_start_equal_to_end(self):
        """A single-day range is valid"""
        result = build_filter(ReportParams(start_date="2021-05-01", end_date="2021-05-01"), today=TODAY)

        assert result.is_valid

    def test_errors_are_collected(self):
        """Every bad parameter is reported at once"""
        result = build_filter(
            ReportParams(end_date="yesterday", user_id="x", group_id="y", limit="many"),
            today=TODAY,
        )

        assert len(result.errors) == 4

    def test_negative_limit(self):
        """Negative limits are rejected"""
        result = build_filter(ReportParams(limit="-1"), today=TODAY)

        assert not result.is_valid
        assert "limit" in result.errors[0]

    def test_zero_limit(self):
        """Zero is a valid limit"""
        result = build_filter(ReportParams(limit="0"), today=TODAY)

        assert result.is_valid
        assert result.limit == 0

    def test_custom_defaults(self):
        """Caller-supplied defaults apply"""
        result = build_filter(
            ReportParams(),
            today=TODAY,
            default_start_date=date(2021, 3, 1),
            default_interval=BucketGranularity.QUARTER,
            default_limit=3,
        )

        assert result.filter.start_date == date(2021, 3, 1)
        assert result.granularity == BucketGranularity.QUARTER
        assert result.limit == 3

    def test_require_filter_raises(self):
        """require_filter surfaces every error"""
        result = build_filter(ReportParams(user_id="abc", group_id="def"), today=TODAY)

        with pytest.raises(ValidationError) as exc_info:
            result.require_filter()

        assert len(exc_info.value.errors) == 2


class TestReportFilter:
    """Tests for ReportFilter predicates"""

    @pytest.fixture
    def sales(self):
        return pl.DataFrame(
            {
                "id": [1, 2, 3, 4],
                "user_id": [7, 17, 3, 7],
                "amount": [100.0, 200.0, 300.0, 400.0],
                "date": [date(2021, 1, 1), date(2021, 1, 15), date(2021, 1, 31), date(2021, 2, 1)],
            }
        )

    @pytest.fixture
    def memberships(self):
        return pl.DataFrame({"user_id": [7, 3, 17], "group_id": [1, 1, 2]})

    def test_date_clause_only(self, memberships):
        """Without ids only the date clause exists"""
        report_filter = ReportFilter(start_date=date(2021, 1, 1), end_date=date(2021, 1, 31))

        assert len(report_filter.clauses(memberships)) == 1

    def test_date_range_is_inclusive(self, sales, memberships):
        """Both range ends are included"""
        report_filter = ReportFilter(start_date=date(2021, 1, 1), end_date=date(2021, 1, 31))

        result = sales.filter(report_filter.predicate(memberships))

        assert result["id"].to_list() == [1, 2, 3]

    def test_user_clause(self, sales, memberships):
        """User filter keeps one seller"""
        report_filter = ReportFilter(start_date=date(2021, 1, 1), end_date=date(2021, 12, 31), user_id=7)

        result = sales.filter(report_filter.predicate(memberships))

        assert result["id"].to_list() == [1, 4]

    def test_group_clause(self, sales, memberships):
        """Group filter keeps the group's members"""
        report_filter = ReportFilter(start_date=date(2021, 1, 1), end_date=date(2021, 12, 31), group_id=1)

        result = sales.filter(report_filter.predicate(memberships))

        assert result["id"].to_list() == [1, 3, 4]

    def test_group_without_members(self, sales, memberships):
        """A group with no members matches nothing"""
        report_filter = ReportFilter(start_date=date(2021, 1, 1), end_date=date(2021, 12, 31), group_id=99)

        result = sales.filter(report_filter.predicate(memberships))

        assert len(result) == 0
