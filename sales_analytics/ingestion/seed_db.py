"""
Demo Data Seeder

Creates the sales tables and fills them with reproducible demo data:
sales teams, representatives, team memberships and a few years of sales.
Skips seeding when users already exist.

Usage:
    python -m sales_analytics.ingestion.seed_db
"""

import asyncio
import random
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

import structlog
from faker import Faker
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sales_analytics.database.connection import close_database, get_db, get_engine, init_database
from sales_analytics.database.models import Base, Group, Sale, User, UserGroup

logger = structlog.get_logger(__name__)

GROUP_NAMES = [
    "Northeast Sales Team",
    "West Coast Sales Team",
    "Midwest Sales Team",
    "Enterprise Accounts",
]

ROLES = ["Agent", "Senior Agent", "Retail Agent", "Account Manager"]

SALES_START = date(2021, 1, 1)
SALES_END = date(2023, 12, 31)


def generate_records(
    n_users: int = 20,
    n_sales: int = 500,
    seed: int = 42,
) -> List[Base]:
    """
    Generate demo records without touching the database.

    Each user joins zero to two groups; the last group is left empty so the
    group report always shows a team without members.

    Args:
        n_users: Number of sales representatives
        n_sales: Number of sales spread over SALES_START..SALES_END
        seed: Random seed for reproducibility
    """
    rng = random.Random(seed)
    fake = Faker()
    fake.seed_instance(seed)

    groups = [Group(id=i, name=name) for i, name in enumerate(GROUP_NAMES, start=1)]
    staffed_groups = groups[:-1]

    users = [
        User(id=i, name=fake.first_name(), role=rng.choice(ROLES))
        for i in range(1, n_users + 1)
    ]

    memberships = []
    for user in users:
        for group in rng.sample(staffed_groups, k=rng.randint(0, 2)):
            memberships.append(UserGroup(user_id=user.id, group_id=group.id))

    span_days = (SALES_END - SALES_START).days
    sales = [
        Sale(
            id=i,
            user_id=rng.choice(users).id,
            amount=Decimal(rng.randint(1_000, 50_000)),
            sale_date=SALES_START + timedelta(days=rng.randint(0, span_days)),
        )
        for i in range(1, n_sales + 1)
    ]

    return [*groups, *users, *memberships, *sales]


async def create_tables() -> None:
    """Create any missing tables"""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_session(session: AsyncSession, n_users: int = 20, n_sales: int = 500, seed: int = 42) -> bool:
    """
    Seed through an open session.

    Returns:
        True if records were inserted, False if data was already present
    """
    existing = (await session.execute(select(func.count(User.id)))).scalar() or 0
    if existing:
        logger.info("Seeding skipped, users already present", users=existing)
        return False

    records = generate_records(n_users=n_users, n_sales=n_sales, seed=seed)
    session.add_all(records)
    await session.flush()

    logger.info("Database seeded", records=len(records), users=n_users, sales=n_sales)
    return True


async def seed_database(n_users: int = 20, n_sales: int = 500, seed: int = 42) -> bool:
    """Create tables and seed demo data on the initialized database."""
    await create_tables()
    async with get_db() as db:
        return await seed_session(db, n_users=n_users, n_sales=n_sales, seed=seed)


async def main(url: Optional[str] = None) -> None:
    from sales_analytics.config.logging import configure_logging
    configure_logging()

    logger.info("Starting database seeding...")
    await init_database(url)
    try:
        await seed_database()
    except Exception as e:
        logger.error("Seeding failed", error=str(e))
        raise
    finally:
        await close_database()


def run() -> None:
    """Console entry point"""
    asyncio.run(main())


if __name__ == "__main__":
    run()
