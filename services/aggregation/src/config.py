"""
Configuration management for the aggregation service.
"""
from datetime import date
from pathlib import Path
from typing import Dict, List

from pydantic_settings import BaseSettings


# Reducer families applied per variable during daily aggregation
VARIABLE_ROLES = ("temperature", "wind", "precipitation", "solar")


class AggregationConfig(BaseSettings):
    """Configuration for aggregation service."""

    # Variable name -> role (see VARIABLE_ROLES)
    variable_roles: Dict[str, str] = {
        "Wind_f_inst": "wind",
        "Tair_f_inst": "temperature",
        "Rainf_f_tavg": "precipitation",
        "SWdown_f_tavg": "solar",
    }

    # Hours added to UTC before taking the calendar date. The civil offset at
    # the default point is UTC-5; the inverted sign is what existing feature
    # tables were built with and is kept until data owners confirm otherwise.
    local_offset_hours: float = 5.0

    floor_date: date = date(2000, 1, 1)
    window_lengths: List[int] = [5, 7]

    output_path: Path = Path("data/climate_summary.csv")

    class Config:
        env_file = ".env"
        env_prefix = "AGGREGATION_"
        extra = "ignore"

    def variables_for(self, role: str) -> List[str]:
        """Variable names mapped to a role."""
        return [name for name, r in self.variable_roles.items() if r == role]
