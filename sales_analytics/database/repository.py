"""
Sales Record Repository

SQLAlchemy implementation of the report read interface. Date ranges and
entity filters are pushed down to the database; aggregation is left to the
analytics engine.
"""

from typing import Any, List, Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from sales_analytics.analytics.dataset import (
    GROUPS_SCHEMA,
    MEMBERSHIPS_SCHEMA,
    SALES_SCHEMA,
    USERS_SCHEMA,
    SalesDataset,
    build_frame,
)
from sales_analytics.analytics.errors import DataAccessError
from sales_analytics.analytics.filters import ReportFilter
from sales_analytics.database.models import Group, Sale, User, UserGroup

logger = structlog.get_logger(__name__)


class SqlSalesRepository:
    """
    Reads report snapshots through an async session.

    Example:
        async with get_db() as db:
            dataset = await SqlSalesRepository(db).fetch_sales(report_filter)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _rows(self, operation: str, statement: Select) -> List[Sequence[Any]]:
        try:
            result = await self.session.execute(statement)
            return list(result.all())
        except SQLAlchemyError as e:
            logger.error(
                "Record store query failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DataAccessError(f"Failed to read {operation}", operation=operation) from e

    def _sales_query(self, report_filter: ReportFilter) -> Select:
        query = select(Sale.id, Sale.user_id, Sale.amount, Sale.sale_date).where(
            Sale.sale_date.between(report_filter.start_date, report_filter.end_date)
        )

        if report_filter.user_id is not None:
            query = query.where(Sale.user_id == report_filter.user_id)

        if report_filter.group_id is not None:
            members = select(UserGroup.user_id).where(UserGroup.group_id == report_filter.group_id)
            query = query.where(Sale.user_id.in_(members))

        return query.order_by(Sale.id)

    async def _sales(self, report_filter: ReportFilter):
        rows = await self._rows("sales", self._sales_query(report_filter))
        # Numeric columns come back as Decimal
        return build_frame(
            ((sale_id, user_id, float(amount), sale_date) for sale_id, user_id, amount, sale_date in rows),
            SALES_SCHEMA,
        )

    async def _users(self):
        rows = await self._rows("users", select(User.id, User.name, User.role).order_by(User.id))
        return build_frame(rows, USERS_SCHEMA)

    async def _groups(self):
        rows = await self._rows("groups", select(Group.id, Group.name).order_by(Group.id))
        return build_frame(rows, GROUPS_SCHEMA)

    async def _memberships(self, group_id: Optional[int] = None):
        query = select(UserGroup.user_id, UserGroup.group_id)
        if group_id is not None:
            query = query.where(UserGroup.group_id == group_id)
        rows = await self._rows("memberships", query.order_by(UserGroup.user_id, UserGroup.group_id))
        return build_frame(rows, MEMBERSHIPS_SCHEMA)

    async def fetch_sales(self, report_filter: ReportFilter) -> SalesDataset:
        """Sales inside the filter, plus the memberships of a filtered group."""
        sales = await self._sales(report_filter)

        if report_filter.group_id is None:
            dataset = SalesDataset(sales=sales)
        else:
            dataset = SalesDataset(sales=sales, memberships=await self._memberships(report_filter.group_id))

        logger.debug(
            "Sales fetched",
            start_date=str(report_filter.start_date),
            end_date=str(report_filter.end_date),
            user_id=report_filter.user_id,
            group_id=report_filter.group_id,
            sales=len(sales),
        )
        return dataset

    async def fetch_users_with_sales_and_groups(self, report_filter: ReportFilter) -> SalesDataset:
        """All users, their memberships and group names, and sales in the date range."""
        dataset = SalesDataset(
            sales=await self._sales(report_filter),
            users=await self._users(),
            groups=await self._groups(),
            memberships=await self._memberships(),
        )
        logger.debug("User snapshot fetched", users=len(dataset.users), sales=len(dataset.sales))
        return dataset

    async def fetch_groups_with_members_and_sales(self, report_filter: ReportFilter) -> SalesDataset:
        """All groups, their memberships, and sales in the date range."""
        dataset = SalesDataset(
            sales=await self._sales(report_filter),
            groups=await self._groups(),
            memberships=await self._memberships(),
        )
        logger.debug("Group snapshot fetched", groups=len(dataset.groups), sales=len(dataset.sales))
        return dataset
