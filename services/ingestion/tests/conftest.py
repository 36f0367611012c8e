"""Test configuration for pytest."""
from datetime import datetime

import pytest

from ingestion.src.config import DataRodsConfig, IngestionConfig, VersionRange


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires network access)"
    )


@pytest.fixture
def datarods_config():
    """Create data rods configuration for testing."""
    return DataRodsConfig(base_url="https://datarods.test/timeseries.cgi", timeout=5)


@pytest.fixture
def ingestion_config(tmp_path):
    """Two versions, two variables, artifacts under tmp_path."""
    return IngestionConfig(
        longitude=-78.79,
        latitude=35.88,
        versions={
            "GLDAS_NOAH025_3H_v2.0": VersionRange(
                start=datetime(2000, 1, 1), end=datetime(2015, 1, 1)
            ),
            "GLDAS_NOAH025_3H_v2.1": VersionRange(
                start=datetime(2000, 1, 1), end=datetime(2024, 1, 1)
            ),
        },
        variables=["Tair_f_inst", "Rainf_f_tavg"],
        artifact_dir=tmp_path / "raw",
    )
