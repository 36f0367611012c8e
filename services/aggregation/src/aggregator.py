"""
Daily aggregation of merged sub-daily rows.
"""
import logging
from typing import Dict, List

from pyspark.sql import DataFrame
from pyspark.sql import functions as F

from .config import AggregationConfig

logger = logging.getLogger(__name__)


DAILY_COLUMNS = [
    "max_temp",
    "min_temp",
    "precip",
    "sol_rad",
    "max_wind",
    "mean_wind",
    "min_wind",
]


class DailyAggregator:
    """Reduces merged sub-daily rows to one record per local calendar date."""

    def __init__(self, config: AggregationConfig):
        """
        Initialize aggregator.

        Args:
            config: Configuration object
        """
        self.config = config

    def _role_column(self, role: str):
        """Column holding the variable mapped to a role."""
        names = self.config.variables_for(role)
        if len(names) != 1:
            raise ValueError(f"Expected exactly one variable for role {role!r}, got {names}")
        return F.col(names[0])

    def with_local_date(self, merged: DataFrame) -> DataFrame:
        """
        Add the local calendar date of each UTC timestamp.

        The configured offset is applied as a fixed shift; no time zone
        rules are involved.
        """
        minutes = int(round(self.config.local_offset_hours * 60))
        shifted = F.expr(f"timestamp + make_dt_interval(0, 0, {minutes}, 0)")
        return merged.withColumn("date", F.to_date(shifted))

    def aggregate(self, merged: DataFrame) -> DataFrame:
        """
        Compute daily records from merged rows.

        Expected input columns:
        - timestamp (UTC)
        - one column per configured variable

        Returns DataFrame with columns:
        - date
        - max_temp, min_temp (extremes of instantaneous readings)
        - precip, sol_rad (sums of interval-average rates)
        - max_wind, mean_wind, min_wind

        Dates before the configured floor date are dropped. A date without
        any non-null sample for a variable yields null, never zero.
        """
        df = self.with_local_date(merged)

        df = df.select(
            "date",
            self._role_column("temperature").alias("_temp"),
            self._role_column("wind").alias("_wind"),
            self._role_column("precipitation").alias("_precip"),
            self._role_column("solar").alias("_solar"),
        )

        daily = df.groupBy("date").agg(
            F.max("_temp").alias("max_temp"),
            F.min("_temp").alias("min_temp"),
            F.sum("_precip").alias("precip"),
            F.sum("_solar").alias("sol_rad"),
            F.max("_wind").alias("max_wind"),
            F.avg("_wind").alias("mean_wind"),
            F.min("_wind").alias("min_wind"),
        )

        daily = daily.filter(F.col("date") >= F.lit(self.config.floor_date))

        return daily.select("date", *DAILY_COLUMNS).orderBy("date")

    def compute_quality_metrics(self, daily: DataFrame) -> Dict[str, any]:
        """
        Count missing days per daily column.

        Returns:
            Dictionary with total days and per-column missingness
        """
        total = daily.count()

        counts = daily.agg(*[
            F.sum(F.col(c).isNull().cast("int")).alias(c) for c in DAILY_COLUMNS
        ]).collect()[0]

        metrics = {"total_days": total, "missingness": {}}
        for col in DAILY_COLUMNS:
            missing = counts[col] or 0
            ratio = missing / total if total > 0 else 0
            metrics["missingness"][col] = {
                "count": missing,
                "ratio": round(ratio, 4)
            }

        if total:
            dates = daily.agg(F.min("date").alias("first"), F.max("date").alias("last")).collect()[0]
            metrics["date_range"] = {"min": dates["first"], "max": dates["last"]}

        logger.info(f"Daily quality metrics: {metrics}")
        return metrics

    @staticmethod
    def gap_columns(metrics: Dict[str, any]) -> List[str]:
        """Daily columns with at least one missing day."""
        return [c for c, m in metrics["missingness"].items() if m["count"]]
