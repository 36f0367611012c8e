"""
Data Rods Aggregation Service

Merges observations across model versions, reduces them to daily records,
computes trailing rolling-window features and writes the summary table.
"""

__version__ = "0.1.0"
