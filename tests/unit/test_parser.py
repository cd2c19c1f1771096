from __future__ import annotations

import pytest

from variation_import.models.error_record import InputErrorKind
from variation_import.tabular.parser import (
    attribute_names,
    detect_delimiter,
    normalize_header,
    parse,
)


def test_detect_delimiter_prefers_tab_only_when_more_tabs():
    assert detect_delimiter("a\tb\tc") == "\t"
    assert detect_delimiter("a,b,c") == ","
    # tie -> comma
    assert detect_delimiter("a\tb,c") == ","
    # only the first line counts
    assert detect_delimiter("a,b\nx\ty\tz\tw") == ","


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("color", "Color"),
        ("  PACKAGE type ", "Package Type"),
        ("price", "Price"),
        ("SKU", "Sku"),
        ("room  TYPE", "Room  Type"),
    ],
)
def test_normalize_header_title_cases_each_word(raw, expected):
    assert normalize_header(raw) == expected


def test_attribute_names_excludes_price_and_sku():
    assert attribute_names(["Color", "Price", "Size", "Sku"]) == ["Color", "Size"]


def test_parse_tsv_basic(sample_tsv):
    result = parse(sample_tsv)
    assert result.success
    assert result.headers == ["Color", "Size", "Price", "Sku"]
    assert len(result.rows) == 2
    first = result.rows[0]
    assert first.row_number == 2
    assert first.price == 10.0
    assert first.sku == "TS-RED-M"
    assert first.attributes == {"Color": "Red", "Size": "M"}
    assert list(first.attributes) == ["Color", "Size"]


def test_parse_csv_with_quoted_field():
    text = 'Package Type,Price\n"Box, large",19.90\n'
    result = parse(text)
    assert result.success
    assert result.rows[0].attributes == {"Package Type": "Box, large"}
    assert result.rows[0].price == 19.9


def test_parse_headers_normalized_and_lowercase_price_accepted():
    result = parse("room type,PRICE\nking,100")
    assert result.success
    assert result.headers == ["Room Type", "Price"]
    assert result.rows[0].attributes == {"Room Type": "king"}


def test_parse_sanitizes_price():
    result = parse("Color,Price\nRed,$1275.50\nBlue,abc")
    assert result.rows[0].price == 1275.5
    # unparseable -> 0.0, left for the validator
    assert result.rows[1].price == 0.0


@pytest.mark.parametrize("raw", ["", "   ", "\n\n", None])
def test_parse_empty_input(raw):
    result = parse(raw)
    assert not result.success
    assert [e.kind for e in result.errors] == [InputErrorKind.EMPTY_INPUT]
    assert result.error_messages == ["Input data is empty."]
    assert result.rows == []


def test_parse_missing_price_column():
    result = parse("Color,Size\nRed,M")
    assert not result.success
    assert result.errors[0].kind is InputErrorKind.MISSING_REQUIRED_COLUMN
    assert result.error_messages == ["Missing required column: Price"]
    assert result.headers == ["Color", "Size"]
    assert result.rows == []


def test_parse_header_only_is_no_valid_rows():
    result = parse("Color,Price\n")
    assert not result.success
    assert result.errors[0].kind is InputErrorKind.NO_VALID_ROWS
    assert result.error_messages == ["No valid rows found."]


def test_parse_short_rows_padded_long_rows_truncated():
    result = parse("Color,Size,Price\nRed\nBlue,L,5,extra,cells")
    assert result.success
    short, long_ = result.rows
    assert short.attributes == {"Color": "Red", "Size": ""}
    assert short.price == 0.0
    assert long_.attributes == {"Color": "Blue", "Size": "L"}
    assert long_.price == 5.0


def test_parse_all_blank_row_skipped_but_numbered():
    result = parse("Color,Price\nRed,1\n , \nBlue,2")
    assert [r.row_number for r in result.rows] == [2, 4]


def test_parse_blank_lines_dropped():
    result = parse("Color,Price\n\nRed,1\n\n\nBlue,2\n")
    assert [r.row_number for r in result.rows] == [2, 3]


def test_parse_crlf_line_endings():
    result = parse("Color\tPrice\r\nRed\t1\r\nBlue\t2\r\n")
    assert result.success
    assert [r.attributes["Color"] for r in result.rows] == ["Red", "Blue"]


def test_parse_values_trimmed_and_empty_sku_is_none():
    result = parse("Color,Price,Sku\n  Red  , 3 ,  ")
    row = result.rows[0]
    assert row.attributes == {"Color": "Red"}
    assert row.sku is None


def test_parse_without_attributes_still_parses():
    result = parse("Price,Sku\n10,A")
    assert result.success
    assert result.rows[0].attributes == {}


def test_parse_is_pure(sample_tsv):
    first = parse(sample_tsv)
    second = parse(sample_tsv)
    assert [r.to_dict() for r in first.rows] == [r.to_dict() for r in second.rows]


def test_repeated_price_column_rightmost_wins():
    result = parse("Color,Price,Price\nRed,10,12")
    assert result.success
    assert result.rows[0].price == 12.0
    assert result.rows[0].attributes == {"Color": "Red"}
