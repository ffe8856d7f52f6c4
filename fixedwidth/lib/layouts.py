"""Multi-layout writer for files mixing several record types.

Each record type has its own fields; every field may override the writer's
default padding and alignment. Values longer than their field are
truncated.

Usage:
    writer = (
        LayoutWriterBuilder()
        .with_sink(stream)
        .with_default_alignment(ValueAlignment.END)
        .add_record_definition(
            lambda r: r.with_type_name("H").add_field(1).add_field(8, padding="0")
        )
        .add_record_definition(
            lambda r: r.with_type_name("D").add_field(1).add_field(20)
        )
        .build()
    )
    writer.write(["H", "42"], "H")
"""

from __future__ import annotations

import logging
from typing import IO, Any, Callable, Dict, List, Optional, Sequence

from fixedwidth.lib.errors import ConfigurationError, FieldCountMismatchError
from fixedwidth.lib.options import (
    DEFAULT_RECORD_TYPE,
    FieldDefinition,
    RecordLayout,
    ValueAlignment,
    WriterOptions,
)
from fixedwidth.lib.writer import _SinkWriter, pad_value, to_text

logger = logging.getLogger(__name__)

__all__ = ["LayoutWriter", "LayoutWriterBuilder", "RecordBuilder"]


class RecordBuilder:
    """Collects the fields of one record type."""

    def __init__(self) -> None:
        self.type_name = DEFAULT_RECORD_TYPE
        self.fields: List[FieldDefinition] = []
        self.columns: Optional[List[str]] = None

    def with_type_name(self, name: str) -> "RecordBuilder":
        if not name:
            raise ConfigurationError("Record type name must not be empty", field="type")
        self.type_name = name
        return self

    def with_columns(self, columns: Sequence[str]) -> "RecordBuilder":
        self.columns = list(columns)
        return self

    def add_field(
        self,
        width: int,
        padding: Optional[str] = None,
        alignment: Optional[ValueAlignment] = None,
    ) -> "RecordBuilder":
        self.fields.append(FieldDefinition(width, padding, alignment))
        return self

    def build(self) -> RecordLayout:
        if not self.fields:
            raise ConfigurationError(
                f"Record type '{self.type_name}' has no fields", field="fields"
            )
        return RecordLayout(self.type_name, list(self.fields), self.columns)


class LayoutWriterBuilder:
    """Fluent configuration for a LayoutWriter."""

    def __init__(self) -> None:
        self.padding = " "
        self.alignment = ValueAlignment.START
        self.record_separator = "\r\n"
        self.encoding: Optional[str] = None
        self.leave_stream_open = False
        self.sink: Optional[IO[Any]] = None
        self.record_types: Dict[str, RecordLayout] = {}

    def with_default_padding(self, padding: str) -> "LayoutWriterBuilder":
        self.padding = padding
        return self

    def with_default_alignment(self, alignment: ValueAlignment) -> "LayoutWriterBuilder":
        self.alignment = alignment
        return self

    def with_record_separator(self, separator: str) -> "LayoutWriterBuilder":
        self.record_separator = separator
        return self

    def with_encoding(self, encoding: str) -> "LayoutWriterBuilder":
        self.encoding = encoding
        return self

    def with_sink(self, sink: IO[Any], *, leave_open: bool = False) -> "LayoutWriterBuilder":
        self.sink = sink
        self.leave_stream_open = leave_open
        return self

    def add_record_definition(
        self, configure: Callable[[RecordBuilder], Any]
    ) -> "LayoutWriterBuilder":
        """Define a record type through a RecordBuilder callback."""
        record = RecordBuilder()
        configure(record)
        return self.add_layout(record.build())

    def add_layout(self, layout: RecordLayout) -> "LayoutWriterBuilder":
        if layout.name in self.record_types:
            raise ConfigurationError(
                f"Record type '{layout.name}' is already defined",
                field="type",
                value=layout.name,
                suggestion="Give each record definition a unique name with with_type_name().",
            )
        self.record_types[layout.name] = layout
        return self

    def build(self) -> "LayoutWriter":
        options = WriterOptions(
            padding=self.padding,
            alignment=self.alignment,
            record_separator=self.record_separator,
            encoding=self.encoding,
            leave_stream_open=self.leave_stream_open,
        )
        return LayoutWriter(self.sink, self.record_types, options)


class LayoutWriter(_SinkWriter):
    """Writes records of several named types."""

    def __init__(
        self,
        sink: Optional[IO[Any]],
        record_types: Dict[str, RecordLayout],
        options: Optional[WriterOptions] = None,
    ) -> None:
        if not record_types:
            raise ConfigurationError(
                "At least one record definition must be provided",
                field="record_types",
                suggestion="Use add_record_definition() to define record layouts.",
            )
        self._record_types = dict(record_types)
        super().__init__(sink, options or WriterOptions(record_separator="\r\n"))

    @property
    def record_types(self) -> List[str]:
        return list(self._record_types)

    def layout(self, record_type: str) -> RecordLayout:
        try:
            return self._record_types[record_type]
        except KeyError:
            raise ConfigurationError(
                f"Record type '{record_type}' is not defined",
                field="record_type",
                value=record_type,
                details={"defined_types": sorted(self._record_types)},
            ) from None

    def write(self, values: Sequence[Any], record_type: str = DEFAULT_RECORD_TYPE) -> None:
        """Write one record of ``record_type``.

        Raises:
            ConfigurationError: If the record type is not defined
            FieldCountMismatchError: If the value count differs from the field count
        """
        self._check_open("write")
        layout = self.layout(record_type)

        if len(values) != len(layout.fields):
            raise FieldCountMismatchError(
                len(layout.fields), len(values), record_type=record_type
            )

        parts: List[str] = []
        for i, (value, field) in enumerate(zip(values, layout.fields)):
            text = to_text(value)
            if len(text) > field.width:
                logger.debug(
                    "Truncating field %d of %s record from %d to %d characters",
                    i,
                    record_type,
                    len(text),
                    field.width,
                )
                text = text[: field.width]
            parts.append(
                pad_value(
                    text,
                    field.width,
                    field.padding or self._options.padding,
                    field.alignment or self._options.alignment,
                )
            )

        self._emit(parts)
