"""
Ingestion Module
"""
from .seed_db import generate_records, seed_database

__all__ = ["generate_records", "seed_database"]
