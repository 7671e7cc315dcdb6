"""
Report Filter Builder

Turns raw report parameters into a validated ReportFilter and a canonical
bucket granularity. Problems are collected rather than raised one at a time,
so a caller sees every bad parameter in a single response.

Policy:
- an unknown or missing interval falls back to the default granularity
  (month); this is never an error
- non-numeric user/group ids and limits are errors
- a missing end date means "today", taken from the caller's clock
"""

import operator
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from functools import reduce
from typing import List, Optional, Union

import polars as pl
import structlog

from sales_analytics.analytics.errors import ValidationError

logger = structlog.get_logger(__name__)

DEFAULT_START_DATE = date(2021, 1, 1)
DEFAULT_USER_LIMIT = 10

DateInput = Optional[Union[str, date]]
IntInput = Optional[Union[str, int]]

_INTEGER = re.compile(r"[+-]?\d+")


class BucketGranularity(str, Enum):
    """Width of a time bucket"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @classmethod
    def coerce(cls, value: Optional[str], default: Optional["BucketGranularity"] = None) -> "BucketGranularity":
        """Return the matching granularity, or ``default`` (month) for anything else."""
        try:
            return cls(value)
        except ValueError:
            return default or cls.MONTH


@dataclass
class ReportParams:
    """Raw report parameters as received from the caller"""
    start_date: DateInput = None
    end_date: DateInput = None
    interval: Optional[str] = None
    user_id: IntInput = None
    group_id: IntInput = None
    metric: str = "all"
    limit: IntInput = None


@dataclass(frozen=True)
class ReportFilter:
    """
    Conjunction of independent sale predicates.

    The date clause is always present; user and group clauses only when an
    id was supplied.
    """
    start_date: date
    end_date: date
    user_id: Optional[int] = None
    group_id: Optional[int] = None

    def clauses(self, memberships: pl.DataFrame) -> List[pl.Expr]:
        """
        Predicates over the sales frame.

        Args:
            memberships: (user_id, group_id) frame used to resolve the group clause
        """
        clauses = [pl.col("date").is_between(self.start_date, self.end_date, closed="both")]

        if self.user_id is not None:
            clauses.append(pl.col("user_id") == self.user_id)

        if self.group_id is not None:
            members = (
                memberships
                .filter(pl.col("group_id") == self.group_id)
                .get_column("user_id")
                .unique()
            )
            clauses.append(pl.col("user_id").is_in(pl.Series("members", members.to_list(), dtype=pl.Int64)))

        return clauses

    def predicate(self, memberships: pl.DataFrame) -> pl.Expr:
        """All clauses joined with AND"""
        return reduce(operator.and_, self.clauses(memberships))


@dataclass
class FilterBuildResult:
    """Outcome of build_filter"""
    filter: Optional[ReportFilter]
    granularity: BucketGranularity
    limit: Optional[int] = None
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def require_filter(self) -> ReportFilter:
        """Return the filter or raise ValidationError with every collected problem."""
        if self.errors or self.filter is None:
            raise ValidationError(self.errors)
        return self.filter


def _parse_date(value: DateInput, name: str, errors: List[str]) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        errors.append(f"{name} must be a date in YYYY-MM-DD format, got {value!r}")
        return None


def _parse_int(value: IntInput, name: str, errors: List[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        errors.append(f"{name} must be an integer, got {value!r}")
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not _INTEGER.fullmatch(text):
        errors.append(f"{name} must be an integer, got {value!r}")
        return None
    return int(text)


def build_filter(
    params: ReportParams,
    today: date,
    default_start_date: date = DEFAULT_START_DATE,
    default_interval: BucketGranularity = BucketGranularity.MONTH,
    default_limit: int = DEFAULT_USER_LIMIT,
) -> FilterBuildResult:
    """
    Validate report parameters.

    Args:
        params: Raw parameters
        today: Date substituted for a missing end date
        default_start_date: Date substituted for a missing start date
        default_interval: Granularity used when the interval is missing or unknown
        default_limit: Row limit used when none is given

    Returns:
        FilterBuildResult with the filter (None when invalid), the granularity,
        the row limit and any validation errors
    """
    errors: List[str] = []

    granularity = BucketGranularity.coerce(params.interval, default=default_interval)
    if params.interval is not None and granularity.value != params.interval:
        logger.debug("Unknown interval coerced", interval=params.interval, granularity=granularity.value)

    start_date = _parse_date(params.start_date, "startDate", errors) or default_start_date
    end_date = _parse_date(params.end_date, "endDate", errors) or today
    user_id = _parse_int(params.user_id, "userId", errors)
    group_id = _parse_int(params.group_id, "groupId", errors)

    limit = _parse_int(params.limit, "limit", errors)
    if limit is None:
        limit = default_limit
    elif limit < 0:
        errors.append(f"limit must not be negative, got {limit}")

    if not errors and start_date > end_date:
        errors.append(f"startDate {start_date.isoformat()} is after endDate {end_date.isoformat()}")

    if errors:
        logger.info("Report parameters rejected", errors=errors)
        return FilterBuildResult(filter=None, granularity=granularity, limit=limit, errors=errors)

    report_filter = ReportFilter(
        start_date=start_date,
        end_date=end_date,
        user_id=user_id,
        group_id=group_id,
    )
    return FilterBuildResult(filter=report_filter, granularity=granularity, limit=limit)
