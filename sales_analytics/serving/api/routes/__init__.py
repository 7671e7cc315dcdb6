"""
API Routes Module
"""
from .health import router as health_router
from .sales_analytics import router as sales_analytics_router

__all__ = [
    "health_router",
    "sales_analytics_router",
]
