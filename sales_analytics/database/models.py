"""
Database Models - Sales Records

Transactional tables read by the analytics reports:

- User: sales representatives
- Group: sales teams
- UserGroup: many-to-many team membership
- Sale: a single recorded sale, immutable once written
"""

from datetime import date
from decimal import Decimal
from typing import List

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


class User(Base):
    """Sales representative"""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(100), nullable=False)

    sales: Mapped[List["Sale"]] = relationship(back_populates="user")
    memberships: Mapped[List["UserGroup"]] = relationship(back_populates="user")


class Group(Base):
    """Sales team"""
    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    memberships: Mapped[List["UserGroup"]] = relationship(back_populates="group")


class UserGroup(Base):
    """
    Team membership

    Pure association; a user may belong to any number of groups.
    """
    __tablename__ = "user_groups"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True
    )

    user: Mapped["User"] = relationship(back_populates="memberships")
    group: Mapped["Group"] = relationship(back_populates="memberships")

    __table_args__ = (
        Index("ix_user_groups_group_id", "group_id"),
    )


class Sale(Base):
    """Recorded sale"""
    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    sale_date: Mapped[date] = mapped_column("date", Date, nullable=False)

    user: Mapped["User"] = relationship(back_populates="sales")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_sales_amount_non_negative"),
        Index("ix_sales_date", "date"),
        Index("ix_sales_user_date", "user_id", "date"),
    )
