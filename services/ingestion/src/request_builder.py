"""Query descriptors for the data rods time-series service.

One query is built per (model version, variable) pair. Each query also
determines the local artifact its response is stored in, so the naming
helpers live here too.
"""
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Tuple, Union

from .config import IngestionConfig

ARTIFACT_DELIMITER = "_"
ARTIFACT_SUFFIX = ".csv"
INSTANT_FORMAT = "%Y-%m-%dT%H"


def format_instant(value: datetime) -> str:
    """Format a datetime the way the service expects (hourly precision)."""
    return value.strftime(INSTANT_FORMAT)


def artifact_name(version: str, variable: str) -> str:
    """Build the artifact filename for a version/variable pair.

    Example:
        GLDAS_NOAH025_3H_v2.1_Tair_f_inst.csv
    """
    return f"{version}{ARTIFACT_DELIMITER}{variable}{ARTIFACT_SUFFIX}"


def parse_artifact_name(
    name: Union[str, Path],
    versions: Iterable[str],
    variables: Iterable[str],
) -> Tuple[str, str]:
    """Recover (version, variable) from an artifact filename.

    Version and variable names both contain the delimiter, so the name is
    matched against the known versions and variables instead of being split.

    Args:
        name: Artifact filename or path
        versions: Configured model versions
        variables: Configured variable names

    Returns:
        Tuple of (version, variable)

    Raises:
        ValueError: If the name does not follow the artifact naming scheme
    """
    stem = Path(name).name
    if stem.endswith(ARTIFACT_SUFFIX):
        stem = stem[: -len(ARTIFACT_SUFFIX)]

    # Longest version first so "v2.1" never shadows a longer "v2.1x"
    for version in sorted(versions, key=len, reverse=True):
        prefix = f"{version}{ARTIFACT_DELIMITER}"
        if not stem.startswith(prefix):
            continue
        variable = stem[len(prefix):]
        if variable in set(variables):
            return version, variable

    raise ValueError(f"Unrecognised artifact name: {Path(name).name}")


@dataclass(frozen=True)
class DataRodsQuery:
    """A single point time-series request."""
    version: str
    variable: str
    start: datetime
    end: datetime
    longitude: float
    latitude: float

    @property
    def artifact_name(self) -> str:
        return artifact_name(self.version, self.variable)

    @property
    def location(self) -> str:
        return f"GEOM:POINT({self.longitude}, {self.latitude})"

    def to_params(self, dataset: str, response_type: str = "asc2") -> Dict[str, str]:
        """Query-string parameters for this request.

        Args:
            dataset: Dataset family prefix (e.g. 'GLDAS2')
            response_type: Response format requested from the service

        Returns:
            Dictionary of query parameters
        """
        return {
            "variable": f"{dataset}:{self.version}:{self.variable}",
            "startDate": format_instant(self.start),
            "endDate": format_instant(self.end),
            "location": self.location,
            "type": response_type,
        }


def build_queries(config: IngestionConfig) -> List[DataRodsQuery]:
    """Build one query per configured (version, variable) pair.

    Args:
        config: Ingestion configuration

    Returns:
        Queries ordered by version, then variable, as configured
    """
    queries = []
    for version, coverage in config.versions.items():
        for variable in config.variables:
            queries.append(
                DataRodsQuery(
                    version=version,
                    variable=variable,
                    start=coverage.start,
                    end=coverage.end,
                    longitude=config.longitude,
                    latitude=config.latitude,
                )
            )
    return queries
