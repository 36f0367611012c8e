"""
Data Rods Ingestion Service

Builds point time-series queries and downloads their responses
into the local artifact directory.
"""

__version__ = "0.1.0"
