"""
Data Rods Pipeline Orchestrator

Wires ingestion, processing and aggregation into a single run and
exposes the command-line entry point.
"""

__version__ = "0.1.0"
