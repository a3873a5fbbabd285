"""NKV API - REST surface for ingestion, research and pulse."""

__version__ = "1.0.0"
