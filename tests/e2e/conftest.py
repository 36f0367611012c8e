"""
Pytest fixtures for end-to-end tests.

Provides fixtures for:
- A local Spark session
- A fake data rods service generating asc2 payloads
- A pipeline configuration pointing at temporary directories
"""
from datetime import date, datetime, timedelta
from typing import Set
from unittest.mock import MagicMock

import pytest
import requests
from pyspark.sql import SparkSession

from aggregation.src.config import AggregationConfig
from ingestion.src.config import DataRodsConfig, IngestionConfig, VersionRange
from orchestrator.src.config import PipelineConfig


V20 = "GLDAS_NOAH025_3H_v2.0"
V21 = "GLDAS_NOAH025_3H_v2.1"

# Per-version bias so overlap averaging is observable
VERSION_BIAS = {V20: 1.0, V21: -1.0}


def sample_value(variable: str, version: str, timestamp: datetime) -> float:
    """Deterministic synthetic value for a variable at a 3-hourly timestamp."""
    step = timestamp.hour // 3
    if variable == "Tair_f_inst":
        return 270.0 + step + VERSION_BIAS[version]
    if variable == "Wind_f_inst":
        return 2.0 + step
    if variable == "Rainf_f_tavg":
        return 1.0
    if variable == "SWdown_f_tavg":
        return 50.0 * step
    raise KeyError(variable)


def asc2_body(version: str, variable: str, start: datetime, end: datetime) -> str:
    """asc2 response: 12 header lines then one tab-delimited row per 3 hours in [start, end)."""
    lines = [
        f"prod_name\t{version}",
        f"param_short_name\t{variable}",
        "param_name\tsynthetic",
        "unit\t-",
        f"begin_time\t{start:%Y-%m-%dT%H}",
        f"end_time\t{end:%Y-%m-%dT%H}",
        "lat\t35.875",
        "lon\t-78.875",
        "Request_lat\t35.88",
        "Request_lon\t-78.79",
        "undef\t-9999.0",
        "Date&Time\tData",
    ]
    t = start
    while t < end:
        lines.append(f"{t:%Y-%m-%dT%H:%M:%S}\t{sample_value(variable, version, t)}")
        t += timedelta(hours=3)
    return "\n".join(lines) + "\n"


class FakeDataRodsService:
    """Stands in for the HTTP session used by the data rods client."""

    def __init__(self, failing: Set[str] = frozenset()):
        self.failing = set(failing)
        self.requests: list = []

    def get(self, url, params=None, timeout=None, stream=False):
        self.requests.append(dict(params))
        _, version, variable = params["variable"].split(":")

        response = MagicMock()
        if variable in self.failing:
            response.status_code = 500
            response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
            return response

        start = datetime.strptime(params["startDate"], "%Y-%m-%dT%H")
        end = datetime.strptime(params["endDate"], "%Y-%m-%dT%H")
        body = asc2_body(version, variable, start, end)
        response.status_code = 200
        response.text = body
        response.iter_content.return_value = [body.encode("utf-8")]
        return response

    def close(self):
        pass


@pytest.fixture(scope="session")
def spark():
    """Create a Spark session for end-to-end tests."""
    spark = (
        SparkSession.builder
        .appName("DataRods-E2E-Tests")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.sql.session.timeZone", "UTC")
        .getOrCreate()
    )

    yield spark

    spark.stop()


@pytest.fixture
def pipeline_config(tmp_path) -> PipelineConfig:
    """Two overlapping versions over two weeks of January 2000, no local offset."""
    return PipelineConfig(
        datarods=DataRodsConfig(base_url="https://datarods.test/timeseries.cgi", timeout=5),
        ingestion=IngestionConfig(
            versions={
                V20: VersionRange(start=datetime(2000, 1, 1), end=datetime(2000, 1, 5)),
                V21: VersionRange(start=datetime(2000, 1, 3), end=datetime(2000, 1, 15)),
            },
            artifact_dir=tmp_path / "raw",
        ),
        aggregation=AggregationConfig(
            local_offset_hours=0.0,
            floor_date=date(2000, 1, 1),
            output_path=tmp_path / "summary.csv",
        ),
    )


@pytest.fixture
def fake_service() -> FakeDataRodsService:
    return FakeDataRodsService()


@pytest.fixture
def make_service():
    """Factory for fake services, e.g. make_service(failing={"Rainf_f_tavg"})."""
    return FakeDataRodsService
