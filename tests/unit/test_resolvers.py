"""Tests for fixedwidth/lib/resolvers.py."""

import io
import logging

import pytest

from fixedwidth.lib.errors import ConfigurationError, MalformedRecordError
from fixedwidth.lib.options import ReaderOptions
from fixedwidth.lib.reader import FixedWidthReader
from fixedwidth.lib.resolvers import DiscriminatorResolver, fixed_widths

LAYOUTS = {"A": [1, 6, 10], "B": [1, 1, 1, 1]}


class TestFixedWidths:
    def test_returns_same_widths(self):
        resolve = fixed_widths([2, 3])
        reader = FixedWidthReader(io.StringIO(""), resolve)

        assert resolve(reader) == [2, 3]
        assert resolve(reader) == [2, 3]

    def test_validates_up_front(self):
        with pytest.raises(ConfigurationError):
            fixed_widths([2, 0])


class TestDiscriminatorResolver:
    """Tests for DiscriminatorResolver."""

    def test_reads_mixed_records(self):
        resolver = DiscriminatorResolver(LAYOUTS)
        reader = FixedWidthReader(io.StringIO("A  1234     hello\nB1C2\n"), resolver)

        assert reader.read() == ["A", "1234", "hello"]
        assert resolver.last_code == "A"
        assert reader.read() == ["B", "1", "C", "2"]
        assert resolver.last_code == "B"
        assert reader.read() is None
        assert resolver.last_code is None

    def test_code_not_at_start(self):
        resolver = DiscriminatorResolver({"01": [4, 2, 3], "02": [4, 2, 1]}, start=4, length=2)
        reader = FixedWidthReader(io.StringIO("abcd01xyz\nefgh02q\n"), resolver)

        assert list(reader) == [["abcd", "01", "xyz"], ["efgh", "02", "q"]]

    def test_peek_widths(self):
        assert DiscriminatorResolver(LAYOUTS).peek_widths == [1]
        assert DiscriminatorResolver({"X": [5, 5]}, start=3, length=2).peek_widths == [3, 2]

    def test_code_is_trimmed_with_fields(self):
        resolver = DiscriminatorResolver({"7": [3, 1]}, length=3)
        reader = FixedWidthReader(io.StringIO("  7x\n"), resolver)

        assert resolver.code_of(reader) == "7"
        assert reader.read() == ["7", "x"]

    def test_padded_code_matches_as_written(self):
        resolver = DiscriminatorResolver({"A ": [2, 2], "B": [1, 3]}, length=2)
        reader = FixedWidthReader(io.StringIO("A 12\nB 34\n"), resolver)

        assert reader.read() == ["A", "12"]
        assert resolver.last_code == "A "
        assert reader.read() == ["B", "34"]
        assert resolver.last_code == "B"

    def test_code_matched_without_trimming_fields(self):
        resolver = DiscriminatorResolver({"7": [3, 1]}, length=3)
        options = ReaderOptions(trim_whitespace=False)
        reader = FixedWidthReader(io.StringIO("  7x\n"), resolver, options)

        assert reader.read() == ["  7", "x"]

    def test_unknown_code_ends_input(self, caplog):
        resolver = DiscriminatorResolver(LAYOUTS)
        reader = FixedWidthReader(io.StringIO("B1C2\nZ\n"), resolver)

        with caplog.at_level(logging.DEBUG, logger="fixedwidth.lib.resolvers"):
            assert reader.read() == ["B", "1", "C", "2"]
            assert reader.read() is None

        assert resolver.last_code == "Z"
        assert "Unknown record type 'Z'" in caplog.text

    def test_unknown_code_strict(self):
        resolver = DiscriminatorResolver(LAYOUTS, strict=True)
        reader = FixedWidthReader(io.StringIO("B1C2\nZ\n"), resolver)
        reader.read()

        with pytest.raises(MalformedRecordError) as exc_info:
            reader.read()

        assert exc_info.value.record_number == 2
        assert exc_info.value.details["known_types"] == ["A", "B"]

    def test_no_layouts(self):
        with pytest.raises(ConfigurationError):
            DiscriminatorResolver({})

    def test_negative_start(self):
        with pytest.raises(ConfigurationError):
            DiscriminatorResolver(LAYOUTS, start=-1)

    def test_zero_length(self):
        with pytest.raises(ConfigurationError):
            DiscriminatorResolver(LAYOUTS, length=0)

    def test_layout_shorter_than_code(self):
        with pytest.raises(ConfigurationError, match="shorter than its discriminator"):
            DiscriminatorResolver({"A": [2]}, start=1, length=2)

    def test_invalid_layout_widths(self):
        with pytest.raises(ConfigurationError) as exc_info:
            DiscriminatorResolver({"A": [1, 0]})

        assert exc_info.value.field == "layouts.A"
