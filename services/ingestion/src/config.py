"""Configuration management for ingestion service."""
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel
from pydantic_settings import BaseSettings


@dataclass
class DataRodsConfig:
    """GES DISC data rods service configuration."""
    base_url: str = "https://hydro1.gesdisc.eosdis.nasa.gov/daac-bin/access/timeseries.cgi"
    dataset: str = "GLDAS2"
    response_type: str = "asc2"
    timeout: int = 120
    max_retries: int = 0
    retry_delay: int = 5

    @classmethod
    def from_env(cls) -> "DataRodsConfig":
        """Load data rods config from environment variables."""
        defaults = cls()
        return cls(
            base_url=os.getenv("DATARODS_BASE_URL", defaults.base_url),
            dataset=os.getenv("DATARODS_DATASET", defaults.dataset),
            response_type=os.getenv("DATARODS_RESPONSE_TYPE", defaults.response_type),
            timeout=int(os.getenv("DATARODS_TIMEOUT", str(defaults.timeout))),
            max_retries=int(os.getenv("DATARODS_MAX_RETRIES", str(defaults.max_retries))),
            retry_delay=int(os.getenv("DATARODS_RETRY_DELAY", str(defaults.retry_delay))),
        )


class VersionRange(BaseModel):
    """Temporal coverage requested from one model version."""
    start: datetime
    end: datetime


class IngestionConfig(BaseSettings):
    """Point, time ranges and variables to request."""

    longitude: float = -78.79
    latitude: float = 35.88

    # GLDAS 2.0 ends in 2014, 2.1 starts in 2000; the two overlap for 2000-2014
    versions: Dict[str, VersionRange] = {
        "GLDAS_NOAH025_3H_v2.0": VersionRange(
            start=datetime(2000, 1, 1), end=datetime(2015, 1, 1)
        ),
        "GLDAS_NOAH025_3H_v2.1": VersionRange(
            start=datetime(2000, 1, 1), end=datetime(2024, 1, 1)
        ),
    }
    variables: List[str] = [
        "Wind_f_inst",
        "Tair_f_inst",
        "Rainf_f_tavg",
        "SWdown_f_tavg",
    ]

    artifact_dir: Path = Path("data/raw")
    skip_existing: bool = False

    class Config:
        env_file = ".env"
        env_prefix = "DATARODS_"
        extra = "ignore"
