"""Read contract between the report assemblers and the record store."""

from typing import Protocol

from sales_analytics.analytics.dataset import SalesDataset
from sales_analytics.analytics.filters import ReportFilter


class SalesRecordStore(Protocol):
    """
    Source of record snapshots for reports.

    Implementations may push filters down to storage but must return every
    record the filter selects. Failures are raised as DataAccessError.
    """

    async def fetch_sales(self, report_filter: ReportFilter) -> SalesDataset:
        """Sales inside the filter, plus the memberships of a filtered group."""

    async def fetch_users_with_sales_and_groups(self, report_filter: ReportFilter) -> SalesDataset:
        """All users, their group memberships and names, and sales in the date range."""

    async def fetch_groups_with_members_and_sales(self, report_filter: ReportFilter) -> SalesDataset:
        """All groups, their memberships, and members' sales in the date range."""
