"""
Database Module
"""
from .connection import init_database, close_database, get_db, get_db_dependency
from .models import Base
from .repository import SqlSalesRepository

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_db_dependency",
    "Base",
    "SqlSalesRepository",
]
