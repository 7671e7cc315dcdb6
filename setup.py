#!/usr/bin/env python
"""
Sales Analytics Service Setup
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="sales-analytics",
    version="1.0.0",
    description="Read-only sales reporting API: time series, user and group performance, revenue trends",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["sales_analytics", "sales_analytics.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: FastAPI",
        "Topic :: Database",
        "Topic :: Scientific/Engineering :: Information Analysis",
    ],
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-asyncio>=0.23.0",
            "httpx>=0.26.0",
            "aiosqlite>=0.19.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "sales-analytics-seed=sales_analytics.ingestion.seed_db:run",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords=[
        "sales",
        "analytics",
        "reporting",
        "fastapi",
        "polars",
        "postgresql",
    ],
)
