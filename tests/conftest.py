"""
Pytest configuration and fixtures for sales-pulse tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import os
from collections.abc import Callable
from typing import Generator

import pytest
from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.types import StringType, StructField, StructType
from testcontainers.postgres import PostgresContainer

from tests.sample_data import MUTTATHARA_HEADERS, PALAYAM_HEADERS


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session() -> Generator[SparkSession, None, None]:
    """
    Create a Spark session for testing with local mode

    Yields:
        SparkSession configured for local testing
    """
    spark = (
        SparkSession.builder
        .appName("sales-pulse-test")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.sql.adaptive.enabled", "true")
        .config("spark.sql.session.timeZone", "UTC")
        .config("spark.driver.memory", "1g")
        .config("spark.ui.enabled", "false")  # Disable UI for tests
        .config("spark.sql.warehouse.dir", "/tmp/spark-warehouse")
        .getOrCreate()
    )

    # Set log level to WARN to reduce test output noise
    spark.sparkContext.setLogLevel("WARN")

    yield spark

    spark.stop()


# =======================
# BRANCH DATA FIXTURES
# =======================

@pytest.fixture(scope="session")
def make_source(spark_session) -> Callable[..., DataFrame]:
    """
    Build a text-typed branch source from raw-header dictionaries

    Headers not present in a row dictionary are null.
    """
    def _make(headers: list[str], rows: list[dict]) -> DataFrame:
        schema = StructType([StructField(h, StringType(), True) for h in headers])
        data = [tuple(row.get(h) for h in headers) for row in rows]
        return spark_session.createDataFrame(data, schema)

    return _make


@pytest.fixture(scope="session")
def sales_line() -> Callable[..., dict]:
    """
    Build one well-formed raw sales line

    Common fields are keyword arguments; raw maps any other raw header
    to an override value.
    """
    def _line(
        invoice: str = "SINV-0001",
        posting_date: str | None = "2025-07-01",
        total: str | None = "100.00",
        item_group: str | None = "Brake Parts",
        branch: str | None = "Muttathara",
        raw: dict | None = None,
    ) -> dict:
        line = {
            "Branch": branch,
            "Technician Name": "Anil",
            "Vehicle Type": "Scooter",
            "Item Code": "SP-1042",
            "Item Name": "Brake Pad Set",
            "Item Group": item_group,
            "Invoice": invoice,
            "Posting Date": posting_date,
            "Customer Group": "Individual",
            "Customer": "CUST-0001",
            "Customer Name": "Rahul",
            "Mode Of Payment": "Cash",
            "Stock Qty": "1",
            "Stock UOM": "Nos",
            "Rate": total,
            "Amount": total,
            "Output Tax CGST Rate": "9",
            "Output Tax CGST Amount": "0",
            "Output Tax SGST Rate": "9",
            "Output Tax SGST Amount": "0",
            "Total Tax": "0",
            "Total Other Charges": "",
            "Total": total,
        }
        line.update(raw or {})
        return line

    return _line


@pytest.fixture
def example_sources(make_source, sales_line) -> dict[str, DataFrame]:
    """
    Two-branch example: one service line and one spare-part line in
    Muttathara, one summary row in Palayam
    """
    muttathara = make_source(MUTTATHARA_HEADERS, [
        sales_line(invoice="MUT-1", posting_date="2025-07-01", total="100.00", item_group="Labour Charge"),
        sales_line(invoice="MUT-2", posting_date="2025-07-15", total="50.00", item_group="Brake Pad"),
    ])
    palayam = make_source(PALAYAM_HEADERS, [
        {"Branch": "", "Total": "200.00"},
    ])
    return {"muttathara": muttathara, "palayam": palayam}


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_sales",
        password="test_password",
        dbname="test_sales",
        driver=None,
    ) as postgres:
        yield postgres


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture(scope="session")
def project_root() -> str:
    return os.path.dirname(os.path.dirname(__file__))
