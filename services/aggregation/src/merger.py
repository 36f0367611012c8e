"""
Merge long-format observations into one wide row per timestamp.

Model versions overlap in time. Where more than one version reports the same
variable at the same timestamp, the reported values are averaged so that
version transitions are smoothed rather than resolved in favour of either
version.
"""
import logging
from typing import List

from pyspark.sql import DataFrame
from pyspark.sql import functions as F

logger = logging.getLogger(__name__)


def average_versions(observations: DataFrame) -> DataFrame:
    """
    Collapse duplicate (timestamp, variable) observations by their mean.

    Null values are ignored by the mean; a group where every version is
    null stays null.

    Returns DataFrame with columns: timestamp, variable, value, version_count
    """
    return observations.groupBy("timestamp", "variable").agg(
        F.avg("value").alias("value"),
        F.countDistinct("version").alias("version_count"),
    )


def merge_observations(observations: DataFrame, variables: List[str]) -> DataFrame:
    """
    Pivot observations to one row per distinct timestamp.

    Expected input columns:
    - timestamp, variable, version, value

    Returns DataFrame with columns timestamp plus one column per entry in
    ``variables``. A variable without an observation at a timestamp is null,
    never zero. Configured variables that were never observed still get a
    (fully null) column.
    """
    averaged = average_versions(observations)

    overlapping = averaged.filter(F.col("version_count") > 1).count()
    if overlapping:
        logger.info(f"Averaged {overlapping} observations reported by more than one version")

    merged = (
        averaged.groupBy("timestamp")
        .pivot("variable", variables)
        .agg(F.first("value"))
    )

    return merged.select("timestamp", *variables).orderBy("timestamp")
