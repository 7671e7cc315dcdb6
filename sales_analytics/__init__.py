"""
Sales Analytics Service

Time-series, user, group and trend reports over sales records.
"""

__version__ = "1.0.0"
