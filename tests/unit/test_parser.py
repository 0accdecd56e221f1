"""Unit tests for the CSV record parser."""

import io
import types

import pytest

from price_ingest.exceptions import ParseError, ParseErrorKind
from price_ingest.models import PriceDistributionRecord
from price_ingest.parser import map_row, parse_int, parse_price_distributions


def parse(data: bytes):
    return list(parse_price_distributions(io.BytesIO(data)))


class TestParseInt:
    """Test bounded decimal parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("0", 0),
        ("42", 42),
        ("-7", -7),
        ("+7", 7),
        ("007", 7),
    ])
    def test_valid_values(self, value, expected):
        assert parse_int(value, 32) == expected

    @pytest.mark.parametrize("value", ["", "abc", "1.5", " 1", "1 ", "1_000", "0x10", "--1", "١"])
    def test_rejects_non_decimal(self, value):
        with pytest.raises(ValueError):
            parse_int(value, 32)

    def test_16_bit_bounds(self):
        assert parse_int("32767", 16) == 32767
        assert parse_int("-32768", 16) == -32768
        with pytest.raises(ValueError, match="out of range"):
            parse_int("32768", 16)
        with pytest.raises(ValueError, match="out of range"):
            parse_int("-32769", 16)

    def test_32_bit_bounds(self):
        assert parse_int("2147483647", 32) == 2147483647
        assert parse_int("-2147483648", 32) == -2147483648
        with pytest.raises(ValueError, match="out of range"):
            parse_int("2147483648", 32)


class TestMapRow:
    """Test mapping of CSV columns onto records."""

    def test_maps_columns_in_order(self):
        record = map_row(["1", "2", "100", "500", "3"], 1)
        assert record == PriceDistributionRecord(1, 2, 100, 500, 3)
        assert record.item_id == 100
        assert record.buyout_each == 500

    def test_ignores_extra_columns(self):
        record = map_row(["1", "2", "100", "500", "3", "extra", "x"], 1)
        assert record == PriceDistributionRecord(1, 2, 100, 500, 3)

    def test_short_row(self):
        with pytest.raises(ParseError) as exc_info:
            map_row(["1", "2", "100", "500"], 4)

        error = exc_info.value
        assert error.kind is ParseErrorKind.ROW_MALFORMED
        assert error.row_index == 4
        assert error.raw == "1,2,100,500"

    def test_realm_overflow_is_malformed(self):
        with pytest.raises(ParseError) as exc_info:
            map_row(["40000", "2", "100", "500", "3"], 1)
        assert exc_info.value.kind is ParseErrorKind.ROW_MALFORMED
        assert "realm_id" in str(exc_info.value)


class TestParsePriceDistributions:
    """Test stream parsing."""

    def test_sample_file(self):
        records = parse(b"header\n1,2,100,500,3\n1,2,101,250,10\n")

        assert records == [
            PriceDistributionRecord(realm_id=1, auction_house_id=2, item_id=100, buyout_each=500, quantity=3),
            PriceDistributionRecord(realm_id=1, auction_house_id=2, item_id=101, buyout_each=250, quantity=10),
        ]

    def test_header_only_yields_nothing(self):
        assert parse(b"realmID,auctionHouseID,itemID,buyoutEach,quantity\n") == []

    def test_header_content_is_not_validated(self):
        assert parse(b"anything at all\n5,6,7,8,9\n") == [PriceDistributionRecord(5, 6, 7, 8, 9)]

    def test_missing_trailing_newline(self):
        assert parse(b"header\n1,2,3,4,5") == [PriceDistributionRecord(1, 2, 3, 4, 5)]

    def test_crlf_line_endings(self):
        assert parse(b"header\r\n1,2,3,4,5\r\n6,7,8,9,10\r\n") == [
            PriceDistributionRecord(1, 2, 3, 4, 5),
            PriceDistributionRecord(6, 7, 8, 9, 10),
        ]

    def test_blank_lines_are_skipped(self):
        assert parse(b"header\n\n1,2,3,4,5\n\n") == [PriceDistributionRecord(1, 2, 3, 4, 5)]

    def test_row_count_matches_data_rows(self):
        rows = "".join(f"1,2,{item},{item * 10},1\n" for item in range(250))
        records = parse(("header\n" + rows).encode("utf-8"))

        assert len(records) == 250
        assert records[-1] == PriceDistributionRecord(1, 2, 249, 2490, 1)

    def test_empty_stream_is_header_missing(self):
        with pytest.raises(ParseError) as exc_info:
            parse(b"")
        assert exc_info.value.kind is ParseErrorKind.HEADER_MISSING

    def test_undecodable_header_is_header_missing(self):
        with pytest.raises(ParseError) as exc_info:
            parse(b"\xff\xfe\xfa\n1,2,3,4,5\n")
        assert exc_info.value.kind is ParseErrorKind.HEADER_MISSING

    def test_non_numeric_column(self):
        with pytest.raises(ParseError) as exc_info:
            parse(b"header\n1,2,abc,500,3\n")

        error = exc_info.value
        assert error.kind is ParseErrorKind.ROW_MALFORMED
        assert error.row_index == 1
        assert error.raw == "1,2,abc,500,3"

    def test_short_row_reports_its_index(self):
        with pytest.raises(ParseError) as exc_info:
            parse(b"header\n1,2,3,4,5\n6,7,8,9,10\n1,2,3\n")

        assert exc_info.value.kind is ParseErrorKind.ROW_MALFORMED
        assert exc_info.value.row_index == 3

    def test_quantity_overflow(self):
        with pytest.raises(ParseError) as exc_info:
            parse(b"header\n1,2,3,4,4294967296\n")
        assert exc_info.value.kind is ParseErrorKind.ROW_MALFORMED

    def test_is_lazy_and_stops_at_bad_row(self):
        records = parse_price_distributions(io.BytesIO(b"header\n1,2,3,4,5\nbad\n"))

        assert isinstance(records, types.GeneratorType)
        assert next(records) == PriceDistributionRecord(1, 2, 3, 4, 5)
        with pytest.raises(ParseError):
            next(records)

    def test_invalid_utf8_in_data_row(self):
        with pytest.raises(ParseError) as exc_info:
            parse(b"header\n1,2,3,4,5\n1,2,3,4,\xff\n")

        assert exc_info.value.kind is ParseErrorKind.ROW_MALFORMED
        assert exc_info.value.row_index == 2

    def test_invalid_utf8_past_first_chunk(self):
        rows = b"".join(b"1,2,%d,4,5\n" % item for item in range(2000))
        with pytest.raises(ParseError) as exc_info:
            parse(b"header\n" + rows + b"1,2,3,4,5\xfe\n")

        assert exc_info.value.kind is ParseErrorKind.ROW_MALFORMED
        assert exc_info.value.row_index == 2001

    def test_bare_quote_in_field_is_malformed(self):
        with pytest.raises(ParseError) as exc_info:
            parse(b'header\n1,2,3"x,4,5\n')

        assert exc_info.value.kind is ParseErrorKind.ROW_MALFORMED
        assert exc_info.value.row_index == 1
