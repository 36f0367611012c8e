import pytest
from pyspark.sql import SparkSession

from processing.src.config import ProcessingConfig


ASC2_HEADER = [
    "prod_name\tGLDAS_NOAH025_3H_v2.1",
    "param_short_name\tTair_f_inst",
    "param_name\tAir temperature",
    "unit\tK",
    "begin_time\t2000-01-01T00",
    "end_time\t2000-01-02T00",
    "lat\t35.875",
    "lon\t-78.875",
    "Request_lat\t35.88",
    "Request_lon\t-78.79",
    "undef\t-9999.0",
    "Date&Time\tData",
]


def _write_artifact(directory, name, rows, header=ASC2_HEADER):
    """Write an asc2 artifact with the standard 12-line header."""
    path = directory / name
    path.write_text("\n".join(list(header) + list(rows)) + "\n", encoding="utf-8")
    return path


@pytest.fixture(scope="session")
def spark():
    """Create Spark session for tests"""
    spark = (
        SparkSession.builder
        .appName("DataRods-Processing-Tests")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.sql.session.timeZone", "UTC")
        .getOrCreate()
    )

    yield spark

    spark.stop()


@pytest.fixture
def processing_config():
    return ProcessingConfig()


@pytest.fixture
def versions():
    return ["GLDAS_NOAH025_3H_v2.0", "GLDAS_NOAH025_3H_v2.1"]


@pytest.fixture
def variables():
    return ["Wind_f_inst", "Tair_f_inst", "Rainf_f_tavg", "SWdown_f_tavg"]


@pytest.fixture
def sample_air_temp_artifact(tmp_path):
    """Sample air temperature artifact, including one missing value"""
    return _write_artifact(tmp_path, "GLDAS_NOAH025_3H_v2.1_Tair_f_inst.csv", [
        "2000-01-01T00:00:00\t271.5",
        "2000-01-01T03:00:00\t270.25",
        "2000-01-01T06:00:00\t-9999.0",
        "2000-01-01T09:00:00\t275.0",
    ])


@pytest.fixture
def write_artifact():
    """Helper writing asc2 artifacts: write_artifact(directory, name, rows, header=...)"""
    return _write_artifact
