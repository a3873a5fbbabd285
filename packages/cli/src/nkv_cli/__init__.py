"""NKV CLI - command-line interface for the knowledge pipeline."""

__version__ = "1.0.0"
