"""
Pytest configuration and fixtures for aggregation service tests.
"""
from datetime import date, datetime, timedelta

import pytest
from pyspark.sql import SparkSession
from pyspark.sql.types import (
    StructType, StructField, StringType, DoubleType, DateType, TimestampNTZType
)

from aggregation.src.aggregator import DAILY_COLUMNS
from aggregation.src.config import AggregationConfig


VARIABLES = ["Wind_f_inst", "Tair_f_inst", "Rainf_f_tavg", "SWdown_f_tavg"]

OBSERVATION_SCHEMA = StructType([
    StructField("timestamp", TimestampNTZType(), False),
    StructField("variable", StringType(), False),
    StructField("version", StringType(), False),
    StructField("value", DoubleType(), True),
])

MERGED_SCHEMA = StructType(
    [StructField("timestamp", TimestampNTZType(), False)]
    + [StructField(v, DoubleType(), True) for v in VARIABLES]
)

DAILY_SCHEMA = StructType(
    [StructField("date", DateType(), False)]
    + [StructField(c, DoubleType(), True) for c in DAILY_COLUMNS]
)


@pytest.fixture(scope="session")
def spark():
    """Create a Spark session for testing."""
    spark = (
        SparkSession.builder
        .appName("DataRods-Aggregation-Tests")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.sql.session.timeZone", "UTC")
        .getOrCreate()
    )

    yield spark

    spark.stop()


@pytest.fixture
def variables():
    return list(VARIABLES)


@pytest.fixture
def utc_config():
    """Aggregation config without a local offset."""
    return AggregationConfig(local_offset_hours=0.0, floor_date=date(2000, 1, 1))


@pytest.fixture
def make_observations(spark):
    """Build an observation DataFrame from (timestamp, variable, version, value) tuples."""
    def _make(rows):
        return spark.createDataFrame(rows, schema=OBSERVATION_SCHEMA)
    return _make


@pytest.fixture
def make_merged(spark):
    """Build a merged DataFrame from dicts keyed by timestamp and variable names."""
    def _make(rows):
        data = [
            tuple([row["timestamp"]] + [row.get(v) for v in VARIABLES])
            for row in rows
        ]
        return spark.createDataFrame(data, schema=MERGED_SCHEMA)
    return _make


@pytest.fixture
def make_daily(spark):
    """Build consecutive daily records starting 2000-01-01.

    Each keyword is a list of values for that daily column; unspecified
    columns default to 1.0.
    """
    def _make(n_days=None, start=date(2000, 1, 1), dates=None, **columns):
        if dates is None:
            dates = [start + timedelta(days=i) for i in range(n_days)]
        data = []
        for i, day in enumerate(dates):
            values = [columns[c][i] if c in columns else 1.0 for c in DAILY_COLUMNS]
            values = [float(v) if v is not None else None for v in values]
            data.append(tuple([day] + values))
        return spark.createDataFrame(data, schema=DAILY_SCHEMA)
    return _make


@pytest.fixture
def sample_day_of_observations():
    """Eight 3-hourly UTC samples on 2000-01-03 for every variable."""
    base = datetime(2000, 1, 3)
    rows = []
    for i in range(8):
        rows.append({
            "timestamp": base + timedelta(hours=3 * i),
            "Tair_f_inst": 270.0 + i,
            "Wind_f_inst": 1.0 + i,
            "Rainf_f_tavg": 0.5,
            "SWdown_f_tavg": 100.0 * i,
        })
    return rows
