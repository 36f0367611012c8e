"""
Feature calculators for trailing rolling-window summaries.

Each calculator takes the date-ordered DataFrame of daily records and
computes right-aligned window statistics used as predictor features.
Windows are positional: they cover the W most recent daily records, so a
gap in the daily series widens the calendar span of the windows touching it.
"""
from typing import Dict, List

from pyspark.sql import Column, DataFrame
from pyspark.sql import functions as F
from pyspark.sql.window import Window


# Daily column -> window reducer
ROLLING_REDUCERS: Dict[str, str] = {
    "max_temp": "max",
    "min_temp": "min",
    "precip": "sum",
    "sol_rad": "sum",
    "max_wind": "max",
    "mean_wind": "mean",
    "min_wind": "min",
}


def rolling_column_name(column: str, window_length: int) -> str:
    """Output column name for a daily column and window length, e.g. precip_7d."""
    return f"{column}_{window_length}d"


def rolling_columns(window_length: int) -> List[str]:
    return [rolling_column_name(c, window_length) for c in ROLLING_REDUCERS]


def _window_statistic(column: str, reducer: str, window_length: int, window) -> Column:
    """
    Windowed statistic for one daily column.

    Sums are only defined when every record in the window is present;
    max/min/mean use the records that are present and are null only when
    the whole window is null.
    """
    col = F.col(column)
    if reducer == "sum":
        return F.when(F.count(col).over(window) == window_length, F.sum(col).over(window))
    if reducer == "max":
        return F.max(col).over(window)
    if reducer == "min":
        return F.min(col).over(window)
    if reducer == "mean":
        return F.avg(col).over(window)
    raise ValueError(f"Unknown reducer: {reducer}")


def calculate_rolling_features(daily: DataFrame, window_length: int) -> DataFrame:
    """
    Calculate trailing window features over daily records.

    Expected input columns:
    - date
    - max_temp, min_temp, precip, sol_rad, max_wind, mean_wind, min_wind

    Returns DataFrame with columns:
    - date (date of the most recent record in the window)
    - one ``<column>_<W>d`` column per daily column

    Only positions with a full window produce a row; the first W-1 records
    of the series produce nothing.
    """
    if window_length < 1:
        raise ValueError(f"Window length must be positive, got {window_length}")

    # Single point series: one ordered partition is intended
    ordered = Window.orderBy("date")
    trailing = ordered.rowsBetween(-(window_length - 1), Window.currentRow)

    features = daily.select(
        "date",
        F.row_number().over(ordered).alias("_position"),
        *[
            _window_statistic(column, reducer, window_length, trailing)
            .alias(rolling_column_name(column, window_length))
            for column, reducer in ROLLING_REDUCERS.items()
        ],
    )

    return (
        features.filter(F.col("_position") >= window_length)
        .drop("_position")
        .orderBy("date")
    )


def calculate_all_rolling_features(daily: DataFrame, window_lengths: List[int]) -> Dict[int, DataFrame]:
    """Rolling features for each window length over the same daily sequence."""
    return {w: calculate_rolling_features(daily, w) for w in window_lengths}
