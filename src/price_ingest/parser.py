"""Decode price distribution CSV streams into records."""

import csv
import io
import re
from typing import BinaryIO, Iterator, List

from .exceptions import ParseError, ParseErrorKind
from .models import FIELD_BIT_WIDTHS, PriceDistributionRecord

# Signed base-10 integer, ASCII digits only
_DECIMAL = re.compile(r"[+-]?[0-9]+")

# Bytes that failed UTF-8 decoding, as left by the surrogateescape handler
_UNDECODABLE = re.compile("[\udc80-\udcff]")

COLUMN_COUNT = len(FIELD_BIT_WIDTHS)


def parse_int(value: str, bits: int) -> int:
    """
    Parse a signed decimal integer that must fit in ``bits`` bits.

    Raises:
        ValueError: If the value is not a decimal integer or is out of range.
    """
    if not _DECIMAL.fullmatch(value):
        raise ValueError(f"could not parse integer {value!r}")

    result = int(value, 10)
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    if not low <= result <= high:
        raise ValueError(f"integer {value!r} out of range for {bits}-bit field")
    return result


def map_row(row: List[str], row_index: int) -> PriceDistributionRecord:
    """Map CSV columns 0-4 onto a record. Extra columns are ignored."""
    if len(row) < COLUMN_COUNT:
        raise ParseError(
            ParseErrorKind.ROW_MALFORMED,
            f"expected at least {COLUMN_COUNT} columns, got {len(row)}",
            row_index=row_index,
            raw=",".join(row),
        )

    values = []
    for (field, bits), column in zip(FIELD_BIT_WIDTHS, row):
        try:
            values.append(parse_int(column, bits))
        except ValueError as e:
            raise ParseError(
                ParseErrorKind.ROW_MALFORMED,
                f"{field}: {e}",
                row_index=row_index,
                raw=",".join(row),
            ) from e

    return PriceDistributionRecord(*values)


def _has_undecodable(row: List[str]) -> bool:
    return any(_UNDECODABLE.search(column) for column in row)


def _next_row(reader: Iterator[List[str]]) -> List[str]:
    # Blank lines are not records
    row = next(reader)
    while not row:
        row = next(reader)
    return row


def parse_price_distributions(stream: BinaryIO) -> Iterator[PriceDistributionRecord]:
    """
    Lazily parse a UTF-8 CSV byte stream of price distributions.

    The first line is a header and is discarded unread. Every following
    line must start with five integer columns: realm ID, auction house ID,
    item ID, per-unit buyout and quantity. Parsing stops at the first bad
    row; nothing after it is produced.

    Args:
        stream: Readable binary stream, consumed once

    Yields:
        One PriceDistributionRecord per data row, in file order.

    Raises:
        ParseError: HeaderMissing if no header can be read, RowMalformed
            for the first row that cannot be parsed.
    """
    # Undecodable bytes survive as lone surrogates so they are caught per row
    text = io.TextIOWrapper(stream, encoding="utf-8", errors="surrogateescape", newline="")
    reader = csv.reader(text)

    try:
        header = _next_row(reader)
    except StopIteration:
        raise ParseError(ParseErrorKind.HEADER_MISSING, "stream contains no header line") from None
    except csv.Error as e:
        raise ParseError(ParseErrorKind.HEADER_MISSING, f"could not read header: {e}") from e
    if _has_undecodable(header):
        raise ParseError(ParseErrorKind.HEADER_MISSING, "header is not valid UTF-8")

    row_index = 0
    while True:
        try:
            row = _next_row(reader)
        except StopIteration:
            return
        except csv.Error as e:
            raise ParseError(
                ParseErrorKind.ROW_MALFORMED,
                f"could not read CSV row: {e}",
                row_index=row_index + 1,
            ) from e

        row_index += 1
        if _has_undecodable(row):
            raise ParseError(
                ParseErrorKind.ROW_MALFORMED,
                "row is not valid UTF-8",
                row_index=row_index,
                raw=",".join(row).encode("utf-8", "surrogateescape").decode("utf-8", "replace"),
            )
        yield map_row(row, row_index)
