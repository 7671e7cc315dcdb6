"""
Sales Dataset

In-memory snapshot of the records a report reads, held as polars frames.
The record store fills whichever frames a report needs; the rest stay empty.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Sequence

import polars as pl


SALES_SCHEMA: Dict[str, Any] = {
    "id": pl.Int64,
    "user_id": pl.Int64,
    "amount": pl.Float64,
    "date": pl.Date,
}

USERS_SCHEMA: Dict[str, Any] = {
    "id": pl.Int64,
    "name": pl.Utf8,
    "role": pl.Utf8,
}

GROUPS_SCHEMA: Dict[str, Any] = {
    "id": pl.Int64,
    "name": pl.Utf8,
}

MEMBERSHIPS_SCHEMA: Dict[str, Any] = {
    "user_id": pl.Int64,
    "group_id": pl.Int64,
}


def build_frame(rows: Iterable[Sequence[Any]], schema: Dict[str, Any]) -> pl.DataFrame:
    """Build a frame from row tuples ordered like ``schema``."""
    rows = list(rows)
    if not rows:
        return empty_frame(schema)
    return pl.DataFrame(rows, schema=schema, orient="row")


def empty_frame(schema: Dict[str, Any]) -> pl.DataFrame:
    return pl.DataFrame(schema=schema)


@dataclass(frozen=True)
class SalesDataset:
    """Record snapshot for one report request"""
    sales: pl.DataFrame = field(default_factory=lambda: empty_frame(SALES_SCHEMA))
    users: pl.DataFrame = field(default_factory=lambda: empty_frame(USERS_SCHEMA))
    groups: pl.DataFrame = field(default_factory=lambda: empty_frame(GROUPS_SCHEMA))
    memberships: pl.DataFrame = field(default_factory=lambda: empty_frame(MEMBERSHIPS_SCHEMA))

    @classmethod
    def from_records(
        cls,
        sales: Iterable[Sequence[Any]] = (),
        users: Iterable[Sequence[Any]] = (),
        groups: Iterable[Sequence[Any]] = (),
        memberships: Iterable[Sequence[Any]] = (),
    ) -> "SalesDataset":
        """
        Build a dataset from plain row tuples.

        Args:
            sales: (id, user_id, amount, date) tuples
            users: (id, name, role) tuples
            groups: (id, name) tuples
            memberships: (user_id, group_id) tuples
        """
        return cls(
            sales=build_frame(
                ((sale_id, user_id, float(amount), sale_date) for sale_id, user_id, amount, sale_date in sales),
                SALES_SCHEMA,
            ),
            users=build_frame(users, USERS_SCHEMA),
            groups=build_frame(groups, GROUPS_SCHEMA),
            memberships=build_frame(memberships, MEMBERSHIPS_SCHEMA),
        )
