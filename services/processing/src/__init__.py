"""
Data Rods Processing Service

Parses downloaded data rods artifacts into a long-format
Spark DataFrame of observations.
"""

__version__ = "0.1.0"
