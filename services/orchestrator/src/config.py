"""Pipeline configuration: one object composed of every service's settings."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from aggregation.src.config import VARIABLE_ROLES, AggregationConfig
from ingestion.src.config import DataRodsConfig, IngestionConfig
from processing.src.config import ProcessingConfig


class ConfigurationError(Exception):
    """Invalid pipeline configuration; raised before any network activity."""


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    datarods: DataRodsConfig = field(default_factory=DataRodsConfig)
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Load full configuration from environment."""
        try:
            config = cls(
                datarods=DataRodsConfig.from_env(),
                ingestion=IngestionConfig(),
                processing=ProcessingConfig(),
                aggregation=AggregationConfig(),
            )
        except (ValidationError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
        config.validate()
        return config

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "PipelineConfig":
        """Load configuration from a YAML file.

        The file may contain the sections ``datarods``, ``ingestion``,
        ``processing`` and ``aggregation``; missing sections and keys fall
        back to their defaults.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")

        with open(path) as f:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Expected a mapping at the top of {path}")

        unknown = set(raw) - {"datarods", "ingestion", "processing", "aggregation"}
        if unknown:
            raise ConfigurationError(f"Unknown config sections: {sorted(unknown)}")

        try:
            config = cls(
                datarods=DataRodsConfig(**(raw.get("datarods") or {})),
                ingestion=IngestionConfig(**(raw.get("ingestion") or {})),
                processing=ProcessingConfig(**(raw.get("processing") or {})),
                aggregation=AggregationConfig(**(raw.get("aggregation") or {})),
            )
        except (ValidationError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e

        config.validate()
        return config

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "PipelineConfig":
        """Load from ``path``, ``$DATARODS_CONFIG`` or the environment."""
        path = path or os.getenv("DATARODS_CONFIG")
        if path:
            return cls.from_yaml(path)
        return cls.from_env()

    def validate(self):
        """Check cross-service consistency.

        Raises:
            ConfigurationError: On the first problem found
        """
        if not self.ingestion.versions:
            raise ConfigurationError("No model versions configured")
        if not self.ingestion.variables:
            raise ConfigurationError("No variables configured")

        for version, coverage in self.ingestion.versions.items():
            if coverage.start >= coverage.end:
                raise ConfigurationError(
                    f"Invalid date range for {version}: "
                    f"{coverage.start.isoformat()} is not before {coverage.end.isoformat()}"
                )

        if not (-90 <= self.ingestion.latitude <= 90):
            raise ConfigurationError(f"Latitude out of range: {self.ingestion.latitude}")
        if not (-180 <= self.ingestion.longitude <= 180):
            raise ConfigurationError(f"Longitude out of range: {self.ingestion.longitude}")

        roles = self.aggregation.variable_roles
        for name, role in roles.items():
            if role not in VARIABLE_ROLES:
                raise ConfigurationError(
                    f"Unknown role {role!r} for {name}; must be one of {list(VARIABLE_ROLES)}"
                )

        for variable in self.ingestion.variables:
            if variable not in roles:
                raise ConfigurationError(f"Unknown variable {variable!r}: no role configured")

        for role in VARIABLE_ROLES:
            mapped = [v for v in self.ingestion.variables if roles.get(v) == role]
            if len(mapped) != 1:
                raise ConfigurationError(
                    f"Role {role!r} must be covered by exactly one requested variable, got {mapped}"
                )

        lengths = self.aggregation.window_lengths
        if not lengths or any(w < 1 for w in lengths) or len(set(lengths)) != len(lengths):
            raise ConfigurationError(f"Invalid window lengths: {lengths}")

        if self.processing.header_lines < 0:
            raise ConfigurationError(f"Invalid header size: {self.processing.header_lines}")

        if abs(self.aggregation.local_offset_hours) > 24:
            raise ConfigurationError(
                f"Local offset out of range: {self.aggregation.local_offset_hours}"
            )

        if self.datarods.timeout <= 0:
            raise ConfigurationError(f"Timeout must be positive: {self.datarods.timeout}")
