"""Structured exception hierarchy for fixed-width reading and writing.

Every error carries the offending position or field, so a failure deep in a
large extract can be traced back to the exact record that caused it.
End of input is never an error: readers return ``None`` instead.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = [
    "FixedWidthError",
    "ConfigurationError",
    "FieldCountMismatchError",
    "MalformedRecordError",
    "UnexpectedTrailingCharactersError",
    "UseAfterDisposeError",
    "ValueTooLongError",
]


class FixedWidthError(Exception):
    """Base exception for all fixed-width errors.

    Provides structured error information for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]

        if self.details:
            parts.append("\nDetails:")
            parts.extend(f"  {k}: {v}" for k, v in self.details.items())

        if suggestion:
            parts.append(f"\nSuggestion: {suggestion}")

        super().__init__("\n".join(parts) if len(parts) > 1 else message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class ConfigurationError(FixedWidthError, ValueError):
    """Invalid reader, writer or layout configuration.

    Raised for non-positive widths, duplicate record type names, bad padding
    characters and missing sources or sinks.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        self.field = field
        self.value = value

        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)

        super().__init__(message, details=details, **kwargs)


class FieldCountMismatchError(FixedWidthError, ValueError):
    """The number of values does not match the number of field widths."""

    def __init__(
        self,
        expected: int,
        actual: int,
        *,
        record_type: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.expected = expected
        self.actual = actual
        self.record_type = record_type

        details = kwargs.pop("details", {})
        details.update({"expected_fields": expected, "actual_values": actual})
        if record_type is not None:
            details["record_type"] = record_type

        super().__init__(
            f"The number of values ({actual}) does not match "
            f"the number of field widths ({expected})",
            details=details,
            **kwargs,
        )


class ValueTooLongError(FixedWidthError, ValueError):
    """A value does not fit in its column and truncation is not allowed."""

    def __init__(self, index: int, width: int, value: str, **kwargs: Any) -> None:
        self.index = index
        self.width = width
        self.value = value

        suggestion = kwargs.pop("suggestion", None) or (
            "Widen the field or use a LayoutWriter, which truncates long values."
        )

        super().__init__(
            f"Value too long for field {index}",
            details={
                "field_index": index,
                "width": width,
                "value": value,
                "value_length": len(value),
            },
            suggestion=suggestion,
            **kwargs,
        )


class MalformedRecordError(FixedWidthError, ValueError):
    """Input ended part way through a record, or a record could not be decoded."""

    def __init__(
        self,
        message: str,
        *,
        record_number: Optional[int] = None,
        expected: Optional[int] = None,
        available: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        self.record_number = record_number
        self.expected = expected
        self.available = available

        details = kwargs.pop("details", {})
        if record_number is not None:
            details["record_number"] = record_number
        if expected is not None:
            details["expected_characters"] = expected
        if available is not None:
            details["available_characters"] = available

        super().__init__(message, details=details, **kwargs)


class UnexpectedTrailingCharactersError(FixedWidthError, ValueError):
    """Characters were found between the last field and the line break."""

    def __init__(
        self,
        extra: str,
        *,
        record_number: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        self.extra = extra
        self.record_number = record_number

        details: Dict[str, Any] = {"extra_characters": extra}
        if record_number is not None:
            details["record_number"] = record_number

        suggestion = kwargs.pop("suggestion", None) or (
            "Check the field widths, or set "
            "ignore_extra_characters_at_end_of_record=True to discard them."
        )

        super().__init__(
            f"Unread characters found at end of record ({len(extra)} chars)",
            details=details,
            suggestion=suggestion,
            **kwargs,
        )


class UseAfterDisposeError(FixedWidthError, ValueError):
    """An operation was attempted on a closed reader or writer."""

    def __init__(self, component: str, operation: Optional[str] = None) -> None:
        self.component = component
        self.operation = operation

        details: Dict[str, Any] = {"component": component}
        if operation:
            details["operation"] = operation

        super().__init__(
            f"Cannot use {component} after it has been closed",
            details=details,
        )

