"""Option and field types shared by the readers and writers."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from fixedwidth.lib.errors import ConfigurationError

__all__ = [
    "DEFAULT_RECORD_TYPE",
    "FieldDefinition",
    "ReaderOptions",
    "RecordLayout",
    "RecordSeparator",
    "ValueAlignment",
    "WriterOptions",
    "validate_widths",
]

DEFAULT_RECORD_TYPE = "Default"


class RecordSeparator(Enum):
    """What sits between records when reading."""

    NONE = "none"  # Records are back to back
    LINE_BREAK = "line_break"  # \n, \r or \r\n after every record


class ValueAlignment(Enum):
    """Where a value sits in its column.

    For left-to-right text, START is left-aligned and END is right-aligned.
    """

    START = "start"
    END = "end"
    LEFT = "start"
    RIGHT = "end"


def validate_widths(widths: Sequence[int], *, field_name: str = "widths") -> List[int]:
    """Check a width list and return it as a list.

    Raises:
        ConfigurationError: If the list is empty or holds a non-positive width
    """
    if isinstance(widths, (str, bytes)):
        raise ConfigurationError(
            "Field widths must be a sequence of integers",
            field=field_name,
            value=widths,
        )

    result = list(widths)
    if not result:
        raise ConfigurationError(
            "At least one field width is required", field=field_name
        )

    for i, width in enumerate(result):
        # bool is an int subclass
        if isinstance(width, bool) or not isinstance(width, int) or width < 1:
            raise ConfigurationError(
                f"Field width at position {i} must be a positive integer",
                field=field_name,
                value=width,
            )
    return result


def _check_padding(padding: Optional[str], field_name: str) -> None:
    if padding is not None and (not isinstance(padding, str) or len(padding) != 1):
        raise ConfigurationError(
            "Padding must be exactly one character",
            field=field_name,
            value=padding,
        )


@dataclass(frozen=True)
class ReaderOptions:
    """Options affecting the way a file is read.

    Example:
        options = ReaderOptions(
            record_separator=RecordSeparator.NONE,
            trim_whitespace=False,
        )
    """

    record_separator: RecordSeparator = RecordSeparator.LINE_BREAK
    # Only applies to LINE_BREAK files
    ignore_extra_characters_at_end_of_record: bool = False
    # None detects a UTF-8 byte order mark and otherwise reads UTF-8
    encoding: Optional[str] = None
    leave_stream_open: bool = False
    trim_whitespace: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.record_separator, RecordSeparator):
            raise ConfigurationError(
                "record_separator must be a RecordSeparator",
                field="record_separator",
                value=self.record_separator,
            )

    @property
    def text_encoding(self) -> str:
        return self.encoding or "utf-8-sig"


@dataclass(frozen=True)
class WriterOptions:
    """Options affecting the way a file is written."""

    padding: str = " "
    alignment: ValueAlignment = ValueAlignment.START
    record_separator: str = os.linesep
    encoding: Optional[str] = None
    leave_stream_open: bool = False

    def __post_init__(self) -> None:
        if self.padding is None:
            raise ConfigurationError("padding is required", field="padding")
        _check_padding(self.padding, "padding")
        if not isinstance(self.alignment, ValueAlignment):
            raise ConfigurationError(
                "alignment must be a ValueAlignment",
                field="alignment",
                value=self.alignment,
            )
        if not isinstance(self.record_separator, str):
            raise ConfigurationError(
                "record_separator must be a string",
                field="record_separator",
                value=self.record_separator,
            )

    @property
    def text_encoding(self) -> str:
        return self.encoding or "utf-8"


@dataclass(frozen=True)
class FieldDefinition:
    """One column of a record layout.

    ``padding`` and ``alignment`` override the writer defaults when set.
    """

    width: int
    padding: Optional[str] = None
    alignment: Optional[ValueAlignment] = None

    def __post_init__(self) -> None:
        if isinstance(self.width, bool) or not isinstance(self.width, int) or self.width < 1:
            raise ConfigurationError(
                "Width must be greater than zero", field="width", value=self.width
            )
        _check_padding(self.padding, "padding")


@dataclass
class RecordLayout:
    """A named record type and its fields.

    ``columns`` is optional and only used when records are turned into
    tables; positions remain the only identity of a value.
    """

    name: str = DEFAULT_RECORD_TYPE
    fields: List[FieldDefinition] = field(default_factory=list)
    columns: Optional[List[str]] = None

    def __post_init__(self) -> None:
        if self.columns is not None and len(self.columns) != len(self.fields):
            raise ConfigurationError(
                f"Record type '{self.name}' has {len(self.fields)} fields "
                f"but {len(self.columns)} column names",
                field="columns",
            )

    @property
    def widths(self) -> List[int]:
        return [f.width for f in self.fields]

    @property
    def record_length(self) -> int:
        return sum(self.widths)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "widths": self.widths,
            "columns": self.columns,
        }
