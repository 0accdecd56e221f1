"""Utility modules for the price distribution ingest."""

from .logger import get_logger

__all__ = [
    "get_logger",
]
