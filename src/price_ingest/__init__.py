"""
Price distribution ingest.

Loads auction house price distribution CSV files from S3 into PostgreSQL,
replacing the destination table's contents once per file.
"""

from .coordinator import EventCoordinator, IngestResult, Stage
from .exceptions import (
    DecodeError,
    FetchError,
    IngestError,
    InvalidEventError,
    ParseError,
    ParseErrorKind,
    WriteError,
)
from .fetcher import S3ObjectFetcher
from .models import FileReference, PriceDistributionRecord, decode_object_key
from .parser import parse_price_distributions
from .writer import ReplaceWriter

__version__ = "0.1.0"

__all__ = [
    "EventCoordinator",
    "IngestResult",
    "Stage",
    "DecodeError",
    "FetchError",
    "IngestError",
    "InvalidEventError",
    "ParseError",
    "ParseErrorKind",
    "WriteError",
    "S3ObjectFetcher",
    "FileReference",
    "PriceDistributionRecord",
    "decode_object_key",
    "parse_price_distributions",
    "ReplaceWriter",
]
