"""
Processing orchestrator

Creates the Spark session and turns downloaded artifacts into
a single observation DataFrame.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Optional

from pyspark.sql import SparkSession

from .config import ProcessingConfig, get_config
from .parser import DataRodsParser

logger = logging.getLogger(__name__)


class ProcessingOrchestrator:
    """Orchestrates parsing of all available artifacts"""

    def __init__(
        self,
        spark: SparkSession,
        versions: Iterable[str],
        variables: Iterable[str],
        config: Optional[ProcessingConfig] = None,
    ):
        """
        Initialize orchestrator

        Args:
            spark: SparkSession instance
            versions: Configured model versions
            variables: Configured variable names
            config: Processing configuration (loaded from env if omitted)
        """
        self.spark = spark
        self.config = config or get_config()
        self.parser = DataRodsParser(spark, self.config, versions, variables)
        logger.info("ProcessingOrchestrator initialized")

    def process_artifacts(self, paths: Iterable[Path]) -> Dict[str, any]:
        """
        Parse artifacts into one observation DataFrame

        Args:
            paths: Artifact paths that were fetched successfully

        Returns:
            Dictionary with the observations DataFrame, per-file results
            and validation metrics
        """
        paths = list(paths)
        logger.info(f"Starting processing of {len(paths)} artifacts")
        start_time = datetime.utcnow()

        observations, file_results = self.parser.parse_artifacts(paths)
        validation_metrics = self.parser.validate_data(observations)

        duration = (datetime.utcnow() - start_time).total_seconds()
        failures = sum(1 for r in file_results.values() if r["status"] == "failed")

        logger.info(
            f"Processing complete in {duration:.2f}s: "
            f"{len(file_results) - failures} parsed, {failures} failed"
        )

        return {
            "observations": observations,
            "file_results": file_results,
            "validation_metrics": validation_metrics,
            "processing_time_seconds": duration,
        }


def create_spark_session(app_name: str, master: Optional[str] = None) -> SparkSession:
    """
    Create and configure Spark session

    Args:
        app_name: Spark application name
        master: Spark master URL (None for local mode)

    Returns:
        Configured SparkSession
    """
    builder = SparkSession.builder.appName(app_name)

    if master:
        builder = builder.master(master)
    else:
        builder = builder.master("local[*]")

    # Timestamps are handled as UTC wall-clock values throughout
    builder = builder.config("spark.sql.session.timeZone", "UTC")

    # Small single-point data; keep shuffles cheap
    builder = builder.config("spark.sql.shuffle.partitions", "4")
    builder = builder.config("spark.sql.adaptive.enabled", "true")
    builder = builder.config("spark.sql.adaptive.coalescePartitions.enabled", "true")

    spark = builder.getOrCreate()

    logger.info(f"Spark session created: {spark.version}")
    return spark
