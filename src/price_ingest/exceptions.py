"""Errors raised while ingesting price distribution files.

Every error is fatal to the current invocation. Causes from boto3, the
``csv`` module or SQLAlchemy are chained with ``raise ... from``.
"""

from enum import Enum
from typing import Optional


class IngestError(Exception):
    """Base class for all ingest failures."""


class InvalidEventError(IngestError):
    """The triggering event does not describe an S3 object."""


class DecodeError(IngestError):
    """An S3 object key could not be URL-decoded."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"error decoding S3 object key {key!r}: {reason}")


class FetchError(IngestError):
    """The object could not be retrieved from S3."""

    def __init__(self, bucket: str, key: str, message: str):
        self.bucket = bucket
        self.key = key
        super().__init__(f"error downloading s3://{bucket}/{key}: {message}")


class ParseErrorKind(str, Enum):
    HEADER_MISSING = "HeaderMissing"
    ROW_MALFORMED = "RowMalformed"


class ParseError(IngestError):
    """The CSV content could not be turned into records."""

    def __init__(
        self,
        kind: ParseErrorKind,
        message: str,
        row_index: Optional[int] = None,
        raw: Optional[str] = None,
    ):
        self.kind = kind
        self.row_index = row_index
        self.raw = raw
        if row_index is not None:
            message = f"row {row_index}: {message}"
        if raw is not None:
            message = f"{message} (raw: {raw!r})"
        super().__init__(f"{kind.value}: {message}")


class WriteError(IngestError):
    """The destination table could not be replaced."""
