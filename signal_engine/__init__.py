"""Signal Engine: financial news ingestion, scoring and personalized impact."""

__version__ = "0.1.0"
