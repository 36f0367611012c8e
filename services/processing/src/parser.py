"""
Data rods artifact parser

Reads tab-delimited asc2 artifacts from the local artifact directory,
drops the fixed-size header and converts the remaining rows into a
long-format Spark DataFrame of observations.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from functools import reduce
from itertools import islice
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from pyspark.sql import Column, SparkSession, DataFrame
from pyspark.sql.types import (
    StructType, StructField, StringType, DoubleType, TimestampNTZType
)
from pyspark.sql import functions as F

from ingestion.src.request_builder import parse_artifact_name

from .config import ProcessingConfig

logger = logging.getLogger(__name__)


OBSERVATION_SCHEMA = StructType([
    StructField("timestamp", TimestampNTZType(), False),
    StructField("variable", StringType(), False),
    StructField("version", StringType(), False),
    StructField("value", DoubleType(), True),
])

# Raw layout of an asc2 data row; both cells are kept as text until validated
RAW_SCHEMA = StructType([
    StructField("raw_timestamp", StringType(), True),
    StructField("raw_value", StringType(), True),
])

# Timestamps are UTC; shorter forms are padded to this layout before casting
TIMESTAMP_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}$"
NUMBER_PATTERN = r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$"

# Fill values that mean "no sample"
FILL_VALUES = [-9999.0, -9999.9]

# Only the first few bad rows per file are logged individually
MAX_REPORTED_ROWS = 5


class ParseError(Exception):
    """An artifact does not follow the expected asc2 layout."""


def timestamp_column(raw: Column) -> Column:
    """
    Parse a UTC timestamp string into a TIMESTAMP_NTZ column

    Accepts 'yyyy-MM-ddTHH:mm:ss', 'yyyy-MM-ddTHH:mm', 'yyyy-MM-ddTHH'
    and the space-separated form, with an optional trailing 'Z'.
    Anything else becomes null.
    """
    text = F.regexp_replace(F.trim(raw), "Z$", "")
    text = F.regexp_replace(text, " ", "T")
    padded = (
        F.when(F.length(text) == 13, F.concat(text, F.lit(":00:00")))
        .when(F.length(text) == 16, F.concat(text, F.lit(":00")))
        .otherwise(text)
    )
    return F.when(padded.rlike(TIMESTAMP_PATTERN), padded.cast(TimestampNTZType()))


def value_column(raw: Column) -> Column:
    """Parse a value cell as double; non-numeric cells and fill values become null."""
    text = F.trim(raw)
    value = F.when(text.rlike(NUMBER_PATTERN), text.cast(DoubleType()))
    return F.when(~value.isin(*FILL_VALUES), value)


@dataclass
class ParsedArtifact:
    """Observations and metrics read from one artifact."""
    path: Path
    version: str
    variable: str
    observations: DataFrame
    total_rows: int = 0
    skipped_rows: int = 0
    malformed_values: int = 0
    first_timestamp: Optional[datetime] = None
    last_timestamp: Optional[datetime] = None

    @property
    def metrics(self) -> Dict[str, any]:
        return {
            "total_rows": self.total_rows,
            "skipped_rows": self.skipped_rows,
            "malformed_values": self.malformed_values,
            "date_range": {
                "min": self.first_timestamp,
                "max": self.last_timestamp,
            },
        }


class DataRodsParser:
    """Parser for data rods asc2 artifacts"""

    def __init__(
        self,
        spark: SparkSession,
        config: ProcessingConfig,
        versions: Iterable[str],
        variables: Iterable[str],
    ):
        """
        Initialize parser

        Args:
            spark: SparkSession instance
            config: Processing configuration
            versions: Known model versions (used to decode artifact names)
            variables: Known variable names (used to decode artifact names)
        """
        self.spark = spark
        self.config = config
        self.versions = list(versions)
        self.variables = list(variables)
        logger.info(
            f"Initialized DataRodsParser: {len(self.versions)} versions, "
            f"{len(self.variables)} variables"
        )

    def _check_header(self, path: Path):
        """Raise ParseError unless the file starts with a complete header."""
        with open(path, encoding="utf-8", errors="replace") as f:
            header = list(islice(f, self.config.header_lines))

        if len(header) < self.config.header_lines:
            raise ParseError(
                f"{path.name}: expected a {self.config.header_lines}-line header, "
                f"found {len(header)} lines"
            )

    def _read_rows(self, path: Path) -> DataFrame:
        """Data rows of an artifact as raw strings, header removed."""
        raw = self.spark.read.csv(
            str(path),
            sep=self.config.delimiter,
            schema=RAW_SCHEMA,
            quote="",
            mode="PERMISSIVE",  # Short rows get null cells
            ignoreLeadingWhiteSpace=True,
            ignoreTrailingWhiteSpace=True
        )

        header_lines = self.config.header_lines
        body = (
            raw.rdd.zipWithIndex()
            .filter(lambda pair: pair[1] >= header_lines)
            .map(lambda pair: pair[0])
        )
        return self.spark.createDataFrame(body, schema=RAW_SCHEMA)

    def read_artifact(self, path: Path) -> ParsedArtifact:
        """
        Read one artifact into an observation DataFrame

        Rows without a parseable timestamp or without a value cell are
        skipped; non-numeric and fill values are kept as null and counted.

        Args:
            path: Local artifact path

        Returns:
            ParsedArtifact with observations and row-level counters

        Raises:
            ParseError: If the name is not an artifact name or the header is missing
        """
        path = Path(path)
        try:
            version, variable = parse_artifact_name(path, self.versions, self.variables)
        except ValueError as e:
            raise ParseError(str(e)) from e

        self._check_header(path)

        rows = self._read_rows(path).select(
            "raw_timestamp",
            "raw_value",
            timestamp_column(F.col("raw_timestamp")).alias("timestamp"),
            value_column(F.col("raw_value")).alias("value"),
        )
        unusable = F.col("timestamp").isNull() | F.col("raw_value").isNull()

        stats = rows.agg(
            F.sum((~unusable).cast("int")).alias("total_rows"),
            F.sum(unusable.cast("int")).alias("skipped_rows"),
            F.sum((~unusable & F.col("value").isNull()).cast("int")).alias("malformed_values"),
            F.min(F.when(~unusable, F.col("timestamp"))).alias("first_timestamp"),
            F.max(F.when(~unusable, F.col("timestamp"))).alias("last_timestamp"),
        ).collect()[0]

        skipped = stats["skipped_rows"] or 0
        if skipped:
            bad = rows.filter(unusable).limit(MAX_REPORTED_ROWS).collect()
            for row in bad:
                logger.warning(
                    f"{path.name}: skipping unparseable row "
                    f"{row['raw_timestamp']!r}, {row['raw_value']!r}"
                )
            if skipped > MAX_REPORTED_ROWS:
                logger.warning(f"{path.name}: {skipped} rows skipped in total")

        observations = rows.filter(~unusable).select(
            "timestamp",
            F.lit(variable).alias("variable"),
            F.lit(version).alias("version"),
            "value",
        )

        return ParsedArtifact(
            path=path,
            version=version,
            variable=variable,
            observations=observations,
            total_rows=stats["total_rows"] or 0,
            skipped_rows=skipped,
            malformed_values=stats["malformed_values"] or 0,
            first_timestamp=stats["first_timestamp"],
            last_timestamp=stats["last_timestamp"],
        )

    def parse_file(self, path: Path) -> DataFrame:
        """
        Parse a single artifact into an observation DataFrame

        Args:
            path: Local artifact path

        Returns:
            Spark DataFrame with the OBSERVATION_SCHEMA columns
        """
        logger.info(f"Parsing file: {path}")

        parsed = self.read_artifact(path)
        self._report(parsed)
        return parsed.observations

    def _report(self, parsed: ParsedArtifact) -> str:
        """Log the outcome of one artifact and return its status."""
        name = parsed.path.name
        logger.info(f"Parsed {parsed.total_rows} rows from {name}")

        if parsed.malformed_values:
            logger.warning(f"{name}: {parsed.malformed_values} missing or non-numeric values")

        if not parsed.total_rows:
            logger.warning(f"No data available in {name}")
            return "empty"
        return "parsed"

    def parse_artifacts(self, paths: Iterable[Path]) -> Tuple[DataFrame, Dict[str, dict]]:
        """
        Parse several artifacts into one observation DataFrame

        Artifacts that fail to parse are skipped and reported.

        Args:
            paths: Local artifact paths

        Returns:
            Tuple of (unified DataFrame, per-file result map)
        """
        frames = []
        results = {}

        for path in paths:
            path = Path(path)
            try:
                parsed = self.read_artifact(path)
            except (ParseError, OSError) as e:
                logger.warning(f"Parse failure, skipping {path.name}: {e}")
                results[path.name] = {"status": "failed", "error": str(e)}
                continue

            frames.append(parsed.observations)
            results[path.name] = {
                "status": self._report(parsed),
                "version": parsed.version,
                "variable": parsed.variable,
                **parsed.metrics,
            }

        total = sum(r.get("total_rows", 0) for r in results.values())
        logger.info(f"Parsed {total} observations from {len(results)} artifacts")

        if not frames:
            return self.spark.createDataFrame([], schema=OBSERVATION_SCHEMA), results
        return reduce(DataFrame.unionByName, frames), results

    def validate_data(self, df: DataFrame) -> Dict[str, any]:
        """
        Collect quality metrics for an observation DataFrame

        Args:
            df: Parsed observations

        Returns:
            Dictionary with validation metrics
        """
        logger.info("Validating parsed data")

        metrics = {
            "total_rows": df.count(),
            "null_values": df.filter(F.col("value").isNull()).count(),
            "variables": sorted(r["variable"] for r in df.select("variable").distinct().collect()),
            "versions": sorted(r["version"] for r in df.select("version").distinct().collect()),
            "date_range": {},
        }

        date_stats = df.agg(
            F.min("timestamp").alias("min_date"),
            F.max("timestamp").alias("max_date")
        ).collect()[0]
        metrics["date_range"] = {
            "min": date_stats["min_date"],
            "max": date_stats["max_date"]
        }

        logger.info(f"Validation metrics: {metrics}")
        return metrics
