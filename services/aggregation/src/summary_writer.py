"""
Summary writer

Joins the rolling-window outputs on date and writes them as a single
flat CSV table, fully replacing any previous output.
"""
import csv
import logging
import os
from datetime import date, datetime
from functools import reduce
from pathlib import Path
from typing import Dict, List, Optional

from pyspark.sql import DataFrame

from .feature_calculators import rolling_columns

logger = logging.getLogger(__name__)


def join_windows(features: Dict[int, DataFrame]) -> DataFrame:
    """
    Full outer join of rolling outputs on date.

    A date present in only one window output keeps nulls in the other
    window's columns.

    Args:
        features: Window length -> rolling feature DataFrame

    Returns:
        DataFrame with date plus every window's columns, sorted by date
    """
    lengths = sorted(features)
    if not lengths:
        raise ValueError("No rolling features to join")

    joined = reduce(
        lambda left, right: left.join(right, on="date", how="full"),
        [features[w] for w in lengths],
    )

    columns = ["date"] + [c for w in lengths for c in rolling_columns(w)]
    return joined.select(*columns).orderBy("date")


def _format_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    # repr gives the shortest string that parses back to the same float
    return repr(float(value))


def read_summary(path: Path) -> List[Dict[str, Optional[object]]]:
    """
    Read a summary table back into dictionaries.

    Returns:
        One dict per row: 'date' as datetime.date, other columns as float
        or None for empty cells
    """
    rows = []
    with open(path, newline="", encoding="utf-8") as f:
        for record in csv.DictReader(f):
            row = {"date": date.fromisoformat(record.pop("date"))}
            for key, cell in record.items():
                row[key] = float(cell) if cell != "" else None
            rows.append(row)
    return rows


class SummaryWriter:
    """Write the joined rolling summary to a single CSV file"""

    def __init__(self, output_path: Path):
        """
        Initialize summary writer

        Args:
            output_path: Destination CSV path
        """
        self.output_path = Path(output_path)
        logger.info(f"Initialized SummaryWriter: path={self.output_path}")

    def write(self, df: DataFrame) -> Dict[str, any]:
        """
        Write DataFrame to the output path

        The table is written to a temporary file and renamed over the
        destination, so readers never see a partial file.

        Args:
            df: Joined rolling summary

        Returns:
            Dictionary with write statistics
        """
        columns = df.columns
        rows = df.orderBy("date").collect()

        logger.info(f"Writing {len(rows)} rows to {self.output_path}")

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.output_path.with_name(self.output_path.name + ".tmp")

        try:
            with open(temp_path, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(columns)
                for row in rows:
                    writer.writerow([_format_cell(row[c]) for c in columns])
            os.replace(temp_path, self.output_path)
        except Exception as e:
            logger.error(f"Failed to write summary: {e}")
            if temp_path.exists():
                temp_path.unlink()
            raise

        stats = {
            "output_path": str(self.output_path),
            "rows_written": len(rows),
            "columns": columns,
            "written_at": datetime.utcnow().isoformat(),
        }

        logger.info(f"Write complete: {stats}")
        return stats

    def validate_output(self) -> Dict[str, any]:
        """
        Validate written output

        Reads the file back and computes basic statistics.

        Returns:
            Validation metrics
        """
        logger.info(f"Validating output at {self.output_path}")

        rows = read_summary(self.output_path)
        with open(self.output_path, newline="", encoding="utf-8") as f:
            header = next(csv.reader(f), [])

        dates = [r["date"] for r in rows]
        metrics = {
            "output_path": str(self.output_path),
            "total_rows": len(rows),
            "columns": header,
            "dates_sorted": dates == sorted(dates),
            "duplicate_dates": len(dates) - len(set(dates)),
        }
        if dates:
            metrics["date_range"] = {"min": dates[0], "max": dates[-1]}

        logger.info(f"Validation metrics: {metrics}")
        return metrics
