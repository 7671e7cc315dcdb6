"""
Test Suite Configuration
"""
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from sales_analytics.analytics.dataset import SalesDataset
from sales_analytics.analytics.errors import DataAccessError
from sales_analytics.analytics.filters import ReportFilter
from sales_analytics.config import Settings
from sales_analytics.database.models import Base, Group, Sale, User, UserGroup

TODAY = date(2021, 6, 30)


class InMemorySalesStore:
    """Record store serving a fixed dataset; the engine does all filtering"""

    def __init__(self, dataset: SalesDataset, fail_with: Optional[Exception] = None):
        self.dataset = dataset
        self.fail_with = fail_with
        self.filters = []

    async def _fetch(self, report_filter: ReportFilter) -> SalesDataset:
        self.filters.append(report_filter)
        if self.fail_with is not None:
            raise self.fail_with
        return self.dataset

    async def fetch_sales(self, report_filter: ReportFilter) -> SalesDataset:
        return await self._fetch(report_filter)

    async def fetch_users_with_sales_and_groups(self, report_filter: ReportFilter) -> SalesDataset:
        return await self._fetch(report_filter)

    async def fetch_groups_with_members_and_sales(self, report_filter: ReportFilter) -> SalesDataset:
        return await self._fetch(report_filter)


def fixed_clock() -> date:
    return TODAY


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        APP_ENV="testing",
        DEBUG=True,
        SEED_ON_STARTUP=False,
    )


@pytest.fixture
def two_month_dataset() -> SalesDataset:
    """
    January: 3 sales totalling 60813 by 3 users.
    February: 1 sale of 16562.
    """
    return SalesDataset.from_records(
        sales=[
            (1, 7, 20271, date(2021, 1, 4)),
            (2, 17, 20000, date(2021, 1, 15)),
            (3, 3, 20542, date(2021, 1, 28)),
            (4, 7, 16562, date(2021, 2, 10)),
        ],
        users=[
            (3, "Alice", "Manager"),
            (7, "Gloria", "Agent"),
            (17, "Quincy", "Retail Agent"),
        ],
        groups=[
            (1, "Northeast Sales Team"),
            (2, "West Coast Sales Team"),
        ],
        memberships=[
            (7, 1),
            (3, 1),
            (17, 2),
        ],
    )


@pytest.fixture
def team_dataset() -> SalesDataset:
    """
    Gloria: 3 sales (88748) on 2 distinct days, in two groups.
    Quincy: 1 sale (47836).
    Bram: no sales, no groups.
    Empty Team: no members.
    """
    return SalesDataset.from_records(
        sales=[
            (1, 7, 30000, date(2021, 3, 1)),
            (2, 7, 29000, date(2021, 3, 1)),
            (3, 7, 29748, date(2021, 4, 12)),
            (4, 17, 47836, date(2021, 5, 20)),
        ],
        users=[
            (7, "Gloria", "Agent"),
            (17, "Quincy", "Retail Agent"),
            (21, "Bram", "Agent"),
        ],
        groups=[
            (1, "Northeast Sales Team"),
            (2, "West Coast Sales Team"),
            (3, "Empty Team"),
        ],
        memberships=[
            (7, 1),
            (7, 2),
            (17, 2),
        ],
    )


@pytest.fixture
async def test_engine():
    """Create test database engine"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def seeded_db(test_db) -> AsyncSession:
    """Session over the team_dataset records"""
    test_db.add_all([
        Group(id=1, name="Northeast Sales Team"),
        Group(id=2, name="West Coast Sales Team"),
        Group(id=3, name="Empty Team"),
        User(id=7, name="Gloria", role="Agent"),
        User(id=17, name="Quincy", role="Retail Agent"),
        User(id=21, name="Bram", role="Agent"),
        UserGroup(user_id=7, group_id=1),
        UserGroup(user_id=7, group_id=2),
        UserGroup(user_id=17, group_id=2),
        Sale(id=1, user_id=7, amount=Decimal("30000.00"), sale_date=date(2021, 3, 1)),
        Sale(id=2, user_id=7, amount=Decimal("29000.00"), sale_date=date(2021, 3, 1)),
        Sale(id=3, user_id=7, amount=Decimal("29748.00"), sale_date=date(2021, 4, 12)),
        Sale(id=4, user_id=17, amount=Decimal("47836.00"), sale_date=date(2021, 5, 20)),
    ])
    await test_db.flush()
    return test_db


@pytest.fixture
def failing_store() -> InMemorySalesStore:
    return InMemorySalesStore(SalesDataset(), fail_with=DataAccessError("connection refused", operation="sales"))


@pytest.fixture
def make_store():
    """Factory for in-memory record stores"""
    return InMemorySalesStore


@pytest.fixture
def clock():
    """Clock pinned to TODAY"""
    return fixed_clock
