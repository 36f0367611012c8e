"""
End-to-end pipeline and CLI.

Runs the climate summary pipeline:
1. Build and fetch one data rods query per (model version, variable)
2. Parse fetched artifacts into observations
3. Merge versions and pivot to one row per timestamp
4. Aggregate to daily records in the configured local offset
5. Compute trailing rolling-window features
6. Join the windows and write the summary table
"""
import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List, Optional

from pyspark.sql import SparkSession

from aggregation.src.aggregator import DailyAggregator
from aggregation.src.feature_calculators import calculate_all_rolling_features
from aggregation.src.merger import merge_observations
from aggregation.src.summary_writer import SummaryWriter, join_windows
from ingestion.src.orchestrator import IngestionOrchestrator
from ingestion.src.request_builder import build_queries
from processing.src.orchestrator import ProcessingOrchestrator, create_spark_session

from .config import ConfigurationError, PipelineConfig

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class ClimateSummaryPipeline:
    """Orchestrates fetch, parse, merge, daily aggregation, rolling and export."""

    def __init__(
        self,
        config: PipelineConfig,
        spark: Optional[SparkSession] = None,
        ingestion: Optional[IngestionOrchestrator] = None,
    ):
        """
        Initialize pipeline.

        Args:
            config: Validated pipeline configuration
            spark: Optional SparkSession (created on demand if omitted)
            ingestion: Optional ingestion orchestrator (created on demand if omitted)
        """
        config.validate()
        self.config = config
        self._spark = spark
        self._owns_spark = spark is None
        self._ingestion = ingestion

    @property
    def spark(self) -> SparkSession:
        if self._spark is None:
            self._spark = create_spark_session(
                self.config.processing.spark_app_name,
                self.config.processing.spark_master,
            )
        return self._spark

    @property
    def ingestion(self) -> IngestionOrchestrator:
        if self._ingestion is None:
            self._ingestion = IngestionOrchestrator(self.config.ingestion, self.config.datarods)
        return self._ingestion

    def _existing_artifacts(self) -> List[Path]:
        """Artifacts on disk for every configured query (used when not fetching)."""
        artifact_dir = Path(self.config.ingestion.artifact_dir)
        paths = []
        for query in build_queries(self.config.ingestion):
            path = artifact_dir / query.artifact_name
            if path.exists():
                paths.append(path)
            else:
                logger.warning(f"No artifact for {query.variable} ({query.version}): {path}")
        return paths

    def run(self, fetch: bool = True) -> Dict[str, Any]:
        """
        Run the whole pipeline once.

        Args:
            fetch: If False, reuse artifacts already in the artifact directory

        Returns:
            Dictionary with per-stage results and metrics
        """
        start_time = time.time()
        metrics: Dict[str, Any] = {
            "started_at": datetime.utcnow().isoformat(),
            "status": "running",
        }

        # Fetch
        if fetch:
            ingestion_result = self.ingestion.ingest_all()
            metrics["fetch_results"] = ingestion_result["results"]
            metrics["fetch_stats"] = ingestion_result["stats"]
            artifacts = [
                r["artifact"] for r in ingestion_result["results"]
                if r["status"] != "failed"
            ]
        else:
            artifacts = self._existing_artifacts()

        # Parse
        processing = ProcessingOrchestrator(
            self.spark,
            versions=self.config.ingestion.versions.keys(),
            variables=self.config.ingestion.variables,
            config=self.config.processing,
        )
        processed = processing.process_artifacts(artifacts)
        metrics["parse_results"] = processed["file_results"]
        observations = processed["observations"]

        if processed["validation_metrics"]["total_rows"] == 0:
            logger.warning("No observations available; the summary will contain no rows")

        # Merge and aggregate
        merged = merge_observations(observations, self.config.ingestion.variables)

        aggregator = DailyAggregator(self.config.aggregation)
        daily = aggregator.aggregate(merged).cache()

        try:
            quality = aggregator.compute_quality_metrics(daily)
            metrics["quality_metrics"] = quality
            for column in aggregator.gap_columns(quality):
                missing = quality["missingness"][column]
                logger.warning(
                    f"No data available for {column} on {missing['count']} of "
                    f"{quality['total_days']} days; rolling windows touching them are affected"
                )

            # Roll and export
            features = calculate_all_rolling_features(daily, self.config.aggregation.window_lengths)
            summary = join_windows(features)

            writer = SummaryWriter(self.config.aggregation.output_path)
            write_stats = writer.write(summary)
            metrics["write_stats"] = write_stats
            metrics["rows_written"] = write_stats["rows_written"]
            metrics["output_validation"] = writer.validate_output()
        finally:
            daily.unpersist()

        metrics["status"] = "success"
        metrics["elapsed_seconds"] = round(time.time() - start_time, 2)
        logger.info(
            f"Pipeline complete in {metrics['elapsed_seconds']}s: "
            f"{metrics['rows_written']} rows written to {write_stats['output_path']}"
        )
        return metrics

    def cleanup(self):
        """Release the HTTP session and any Spark session created here."""
        if self._ingestion is not None:
            self._ingestion.close()
        if self._owns_spark and self._spark is not None:
            self._spark.stop()
            self._spark = None


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Fetch data rods climate variables and write rolling-window summaries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fetch everything and write the summary
  datarods-summary --config pipeline.yaml

  # Re-run aggregation on artifacts already on disk
  datarods-summary --skip-fetch --output data/summary.csv
        """
    )
    parser.add_argument("--config", help="YAML configuration file (default: environment)")
    parser.add_argument("--artifact-dir", help="Directory for downloaded artifacts")
    parser.add_argument("--output", help="Summary CSV path")
    parser.add_argument(
        "--skip-fetch",
        action="store_true",
        help="Reuse artifacts already in the artifact directory"
    )
    parser.add_argument(
        "--skip-existing",
        action="store_true",
        help="Only fetch artifacts that are not on disk yet"
    )
    parser.add_argument("--spark-master", help="Spark master URL (default: local)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )

    args = parser.parse_args(argv)
    logging.getLogger().setLevel(args.log_level)

    try:
        config = PipelineConfig.load(args.config)
        if args.artifact_dir:
            config.ingestion.artifact_dir = Path(args.artifact_dir)
        if args.output:
            config.aggregation.output_path = Path(args.output)
        if args.skip_existing:
            config.ingestion.skip_existing = True
        if args.spark_master:
            config.processing.spark_master = args.spark_master
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    pipeline = ClimateSummaryPipeline(config)
    try:
        metrics = pipeline.run(fetch=not args.skip_fetch)

        fetch_stats = metrics.get("fetch_stats", {})
        print("\n" + "=" * 60)
        print("CLIMATE SUMMARY")
        print("=" * 60)
        print(f"Status:            {metrics['status']}")
        if fetch_stats:
            print(f"Queries:           {fetch_stats['total_queries']}")
            print(f"Fetch Errors:      {fetch_stats['failed']}")
        print(f"Days Aggregated:   {metrics['quality_metrics']['total_days']}")
        print(f"Rows Written:      {metrics['rows_written']}")
        print(f"Output:            {metrics['write_stats']['output_path']}")
        print(f"Elapsed Time:      {metrics['elapsed_seconds']}s")
        print("=" * 60 + "\n")
        return 0

    except Exception as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        return 1
    finally:
        pipeline.cleanup()


if __name__ == "__main__":
    sys.exit(main())
