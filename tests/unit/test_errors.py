"""Tests for fixedwidth/lib/errors.py - structured exception hierarchy."""

import pytest

from fixedwidth.lib.errors import (
    ConfigurationError,
    FieldCountMismatchError,
    FixedWidthError,
    MalformedRecordError,
    UnexpectedTrailingCharactersError,
    UseAfterDisposeError,
    ValueTooLongError,
)


class TestFixedWidthError:
    """Tests for base FixedWidthError class."""

    def test_basic_message(self):
        error = FixedWidthError("Something went wrong")
        assert str(error) == "Something went wrong"

    def test_with_details(self):
        error = FixedWidthError("Bad record", details={"record_number": 3})
        assert "record_number: 3" in str(error)

    def test_with_suggestion(self):
        error = FixedWidthError("Bad widths", suggestion="Check the layout file")
        assert "Suggestion: Check the layout file" in str(error)

    def test_to_dict(self):
        error = FixedWidthError("Test error", details={"key": "value"}, suggestion="Fix it")

        assert error.to_dict() == {
            "error_type": "FixedWidthError",
            "message": "Test error",
            "details": {"key": "value"},
            "suggestion": "Fix it",
        }


class TestErrorKinds:
    """Each error kind carries its context."""

    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("bad"),
            FieldCountMismatchError(2, 3),
            ValueTooLongError(0, 1, "ab"),
            MalformedRecordError("short"),
            UnexpectedTrailingCharactersError("x"),
            UseAfterDisposeError("FixedWidthReader"),
        ],
    )
    def test_hierarchy(self, error):
        assert isinstance(error, FixedWidthError)
        assert isinstance(error, ValueError)

    def test_configuration_error(self):
        error = ConfigurationError("Invalid width", field="widths", value=0)

        assert error.field == "widths"
        assert error.details == {"field": "widths", "value": "0"}

    def test_configuration_error_keeps_details(self):
        error = ConfigurationError("Unknown type", field="record_type", details={"defined_types": ["A"]})

        assert error.details["defined_types"] == ["A"]
        assert error.details["field"] == "record_type"

    def test_field_count_mismatch(self):
        error = FieldCountMismatchError(3, 2, record_type="H")

        assert "(2)" in str(error) and "(3)" in str(error)
        assert error.details["record_type"] == "H"

    def test_value_too_long(self):
        error = ValueTooLongError(1, 2, "abc")

        assert error.to_dict()["details"]["value_length"] == 3
        assert "LayoutWriter" in error.suggestion

    def test_malformed_record(self):
        error = MalformedRecordError("Input ended", record_number=4, expected=10, available=3)

        assert error.details == {
            "record_number": 4,
            "expected_characters": 10,
            "available_characters": 3,
        }

    def test_unexpected_trailing_characters(self):
        error = UnexpectedTrailingCharactersError("XY", record_number=1)

        assert "(2 chars)" in str(error)
        assert "ignore_extra_characters_at_end_of_record" in error.suggestion

    def test_use_after_dispose(self):
        error = UseAfterDisposeError("LayoutWriter", "write")

        assert str(error).startswith("Cannot use LayoutWriter after it has been closed")
        assert error.details["operation"] == "write"
