"""Data model for price distribution ingestion."""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, NamedTuple, Optional
from urllib.parse import unquote_plus

from .exceptions import DecodeError, InvalidEventError

# A '%' not followed by two hex digits is an invalid escape
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class PriceDistributionRecord(NamedTuple):
    """One row of a price distribution file, columns 0-4 in file order."""

    realm_id: int
    auction_house_id: int
    item_id: int
    buyout_each: int
    quantity: int


# Bit width of each record field, in field order
FIELD_BIT_WIDTHS = (
    ("realm_id", 16),
    ("auction_house_id", 16),
    ("item_id", 32),
    ("buyout_each", 32),
    ("quantity", 32),
)

RecordBatch = List[PriceDistributionRecord]


@dataclass(frozen=True)
class FileReference:
    """An S3 object named by one event notification."""

    bucket: str
    key: str
    event_name: Optional[str] = None
    event_time: Optional[str] = None
    size: Optional[int] = None
    etag: Optional[str] = None

    @classmethod
    def from_s3_record(cls, record: Dict[str, Any]) -> "FileReference":
        """
        Build a reference from one entry of an S3 event's ``Records`` list.

        Args:
            record: S3 event record

        Returns:
            FileReference with the raw (still escaped) object key.

        Raises:
            InvalidEventError: If the bucket name or object key is missing.
        """
        s3_info = record.get("s3") or {}
        bucket = (s3_info.get("bucket") or {}).get("name")
        object_info = s3_info.get("object") or {}
        key = object_info.get("key")

        if not bucket or not key:
            raise InvalidEventError(f"S3 event record is missing bucket name or object key: {record!r}")

        return cls(
            bucket=bucket,
            key=key,
            event_name=record.get("eventName"),
            event_time=record.get("eventTime"),
            size=object_info.get("size"),
            etag=object_info.get("eTag"),
        )

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


def decode_object_key(key: str) -> str:
    """
    Decode an object key as delivered in an S3 event notification.

    S3 form-encodes keys in notifications: spaces arrive as ``+`` and other
    reserved characters as ``%XX`` escapes.

    Args:
        key: Escaped object key

    Returns:
        Decoded object key.

    Raises:
        DecodeError: On a malformed escape or escapes that are not UTF-8.
    """
    bad = _BAD_ESCAPE.search(key)
    if bad:
        escape = key[bad.start():bad.start() + 3]
        raise DecodeError(key, f"invalid URL escape {escape!r}")

    try:
        return unquote_plus(key, errors="strict")
    except UnicodeDecodeError as e:
        raise DecodeError(key, "escaped bytes are not valid UTF-8") from e
