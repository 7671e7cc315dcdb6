"""
Analytics Module

Aggregation engine behind the sales reports.
"""
from .aggregation import GroupingDimension, aggregate, truncate_date
from .dataset import SalesDataset
from .errors import ComputationError, DataAccessError, ReportError, ValidationError
from .filters import BucketGranularity, ReportFilter, ReportParams, build_filter
from .growth import with_growth
from .ranking import rank_and_project, time_series_fields
from .reports import SalesReportService
from .store import SalesRecordStore

__all__ = [
    "GroupingDimension",
    "aggregate",
    "truncate_date",
    "SalesDataset",
    "ReportError",
    "ValidationError",
    "DataAccessError",
    "ComputationError",
    "BucketGranularity",
    "ReportFilter",
    "ReportParams",
    "build_filter",
    "with_growth",
    "rank_and_project",
    "time_series_fields",
    "SalesReportService",
    "SalesRecordStore",
]
