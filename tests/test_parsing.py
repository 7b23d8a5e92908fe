"""
Tests for numeric literal parsing.
"""

import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from plimit.constants import Limits
from plimit.exceptions import ParseError
from plimit.utils.parsing import parse_byte_size, parse_integer


class TestParseByteSize:
    """Tests for parse_byte_size()."""

    @pytest.mark.unit
    @pytest.mark.parametrize("text,expected", [
        ("0", 0),
        ("4096", 4096),
        ("1K", 1024),
        ("10M", 10485760),
        ("512M", 536870912),
        ("1G", 1073741824),
        ("2T", 2 * 1024 ** 4),
        ("1P", 1024 ** 5),
        ("1E", 1024 ** 6),
    ])
    def test_suffixes(self, text, expected):
        assert parse_byte_size(text) == expected

    @pytest.mark.unit
    def test_suffix_case_insensitive(self):
        assert parse_byte_size("10m") == parse_byte_size("10M")
        assert parse_byte_size("1g") == 1073741824

    @pytest.mark.unit
    def test_fractional_magnitude(self):
        """Fractions are scaled then truncated to whole bytes."""
        assert parse_byte_size("1.5K") == 1536
        assert parse_byte_size("0.5M") == 524288
        assert parse_byte_size(".5K") == 512
        assert parse_byte_size("1.0001K") == 1024

    @pytest.mark.unit
    def test_surrounding_whitespace(self):
        assert parse_byte_size("  64K ") == 65536

    @pytest.mark.unit
    def test_explicit_plus(self):
        assert parse_byte_size("+1K") == 1024

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_rejected(self, text):
        with pytest.raises(ParseError):
            parse_byte_size(text)

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["-1", "-10M", "-0.5G"])
    def test_negative_rejected(self, text):
        with pytest.raises(ParseError):
            parse_byte_size(text)

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["abc", "10X", "10MB", "1..5K", "K", "1 K", "0x10"])
    def test_malformed_rejected(self, text):
        with pytest.raises(ParseError):
            parse_byte_size(text)

    @pytest.mark.unit
    def test_overflow_rejected(self):
        with pytest.raises(ParseError):
            parse_byte_size("8E")
        with pytest.raises(ParseError):
            parse_byte_size(str(Limits.BYTES_MAX + 1))

    @pytest.mark.unit
    def test_largest_value_accepted(self):
        assert parse_byte_size(str(Limits.BYTES_MAX)) == Limits.BYTES_MAX


class TestParseInteger:
    """Tests for parse_integer()."""

    @pytest.mark.unit
    def test_valid(self):
        assert parse_integer("1234") == 1234
        assert parse_integer(" 42 ") == 42
        assert parse_integer("-3") == -3

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["", None, "12a", "1.5", "0x1f", "ten"])
    def test_invalid(self, text):
        with pytest.raises(ParseError):
            parse_integer(text, "pid")

    @pytest.mark.unit
    def test_message_names_value(self):
        with pytest.raises(ParseError, match="pid"):
            parse_integer("abc", "pid")
