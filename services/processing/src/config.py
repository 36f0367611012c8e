"""
Configuration for processing service
"""
from typing import Optional
from pydantic_settings import BaseSettings


class ProcessingConfig(BaseSettings):
    """Processing service configuration"""

    # Data rods asc2 layout
    header_lines: int = 12
    delimiter: str = "\t"

    # Spark configuration
    spark_app_name: str = "DataRods-Processing"
    spark_master: Optional[str] = None  # None = local mode

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "PROCESSING_"
        extra = "ignore"


def get_config() -> ProcessingConfig:
    """Get processing configuration instance"""
    return ProcessingConfig()
