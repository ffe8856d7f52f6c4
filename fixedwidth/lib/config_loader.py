"""YAML layout files.

A layout file describes the record types of a fixed-width file and the
options used to read and write it, so the same layout drives both
directions.

Example YAML (customers.yaml):
    reader:
      record_separator: line_break
      encoding: ${CUSTOMER_ENCODING}

    writer:
      alignment: start
      record_separator: crlf

    discriminator:
      start: 0
      length: 1
      strict: true

    record_types:
      - type: A
        columns: [kind, customer_id, name]
        fields: [1, 7, 20]
      - type: B
        columns: [kind, street, city, state, zip]
        fields:
          - 1
          - 15
          - 11
          - 2
          - {width: 5, alignment: end, padding: "0"}

Usage:
    from fixedwidth.lib.config_loader import load_layout
    layout = load_layout("customers.yaml")
    with layout.open_reader("customers.txt") as reader:
        for record in reader:
            ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Union

import yaml

from fixedwidth.lib.env import expand_value
from fixedwidth.lib.errors import ConfigurationError
from fixedwidth.lib.layouts import LayoutWriter, LayoutWriterBuilder
from fixedwidth.lib.options import (
    DEFAULT_RECORD_TYPE,
    FieldDefinition,
    ReaderOptions,
    RecordLayout,
    RecordSeparator,
    ValueAlignment,
    WriterOptions,
)
from fixedwidth.lib.reader import FixedWidthReader
from fixedwidth.lib.resolvers import DiscriminatorResolver, WidthResolver, fixed_widths

logger = logging.getLogger(__name__)

__all__ = [
    "DiscriminatorConfig",
    "FileLayout",
    "load_layout",
    "parse_layout",
]

KNOWN_SECTIONS = {"reader", "writer", "discriminator", "record_types"}

RECORD_SEPARATOR_MAP = {
    "none": RecordSeparator.NONE,
    "line_break": RecordSeparator.LINE_BREAK,
    "linebreak": RecordSeparator.LINE_BREAK,
}

ALIGNMENT_MAP = {
    "start": ValueAlignment.START,
    "left": ValueAlignment.START,
    "end": ValueAlignment.END,
    "right": ValueAlignment.END,
}

# Named separators for the writer; any other string is written as is
SEPARATOR_ALIASES = {
    "crlf": "\r\n",
    "lf": "\n",
    "cr": "\r",
    "none": "",
}

TRUE_STRINGS = {"true", "yes", "1", "on"}
FALSE_STRINGS = {"false", "no", "0", "off"}


@dataclass(frozen=True)
class DiscriminatorConfig:
    """Where the record type code sits in each record."""

    start: int = 0
    length: int = 1
    strict: bool = False


@dataclass
class FileLayout:
    """Record types plus reader and writer options for one file format."""

    record_types: Dict[str, RecordLayout]
    reader_options: ReaderOptions = field(default_factory=ReaderOptions)
    writer_options: WriterOptions = field(default_factory=WriterOptions)
    discriminator: Optional[DiscriminatorConfig] = None

    def __post_init__(self) -> None:
        if not self.record_types:
            raise ConfigurationError(
                "At least one record type is required", field="record_types"
            )
        if len(self.record_types) > 1 and self.discriminator is None:
            raise ConfigurationError(
                "Layouts with several record types need a discriminator",
                field="discriminator",
                suggestion="Add a 'discriminator' section with start and length.",
            )

    @property
    def record_type_names(self) -> List[str]:
        return list(self.record_types)

    def layout(self, record_type: Optional[str] = None) -> RecordLayout:
        """Return the named layout, or the only one when no name is given."""
        if record_type is None:
            if len(self.record_types) != 1:
                raise ConfigurationError(
                    "A record type must be named for multi-record layouts",
                    field="record_type",
                    details={"defined_types": self.record_type_names},
                )
            return next(iter(self.record_types.values()))

        try:
            return self.record_types[record_type]
        except KeyError:
            raise ConfigurationError(
                f"Record type '{record_type}' is not defined",
                field="record_type",
                value=record_type,
                details={"defined_types": self.record_type_names},
            ) from None

    def columns_for(self, record_type: Optional[str] = None) -> List[str]:
        """Column names for a record type, generated when not configured."""
        layout = self.layout(record_type)
        if layout.columns:
            return list(layout.columns)
        return [f"field_{i}" for i in range(len(layout.fields))]

    def resolver(self) -> WidthResolver:
        if self.discriminator is None:
            return fixed_widths(self.layout().widths)
        return DiscriminatorResolver(
            {name: rt.widths for name, rt in self.record_types.items()},
            start=self.discriminator.start,
            length=self.discriminator.length,
            strict=self.discriminator.strict,
        )

    def build_reader(self, source: IO[Any]) -> FixedWidthReader:
        return FixedWidthReader(source, self.resolver(), self.reader_options)

    def open_reader(self, path: Union[str, Path]) -> FixedWidthReader:
        return FixedWidthReader.from_path(path, self.resolver(), self.reader_options)

    def build_writer(self, sink: IO[Any], *, leave_open: bool = False) -> LayoutWriter:
        builder = (
            LayoutWriterBuilder()
            .with_default_padding(self.writer_options.padding)
            .with_default_alignment(self.writer_options.alignment)
            .with_record_separator(self.writer_options.record_separator)
            .with_sink(sink, leave_open=leave_open)
        )
        if self.writer_options.encoding:
            builder.with_encoding(self.writer_options.encoding)
        for record_layout in self.record_types.values():
            builder.add_layout(record_layout)
        return builder.build()

    def open_writer(self, path: Union[str, Path]) -> LayoutWriter:
        """Create (or truncate) ``path``; the file is closed with the writer."""
        handle = open(path, "wb")
        try:
            return self.build_writer(handle)
        except Exception:
            handle.close()
            raise


def _as_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ConfigurationError(f"{field_name} must be true or false", field=field_name, value=value)


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer", field=field_name, value=value)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    raise ConfigurationError(f"{field_name} must be an integer", field=field_name, value=value)


def _lookup(mapping: Dict[str, Any], value: Any, field_name: str) -> Any:
    key = str(value).strip().lower()
    if key not in mapping:
        valid = ", ".join(sorted(mapping))
        raise ConfigurationError(
            f"Invalid {field_name} '{value}'. Valid options: {valid}",
            field=field_name,
            value=value,
        )
    return mapping[key]


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{name}' must be a mapping", field=name)
    return section


def _parse_reader_options(section: Dict[str, Any]) -> ReaderOptions:
    kwargs: Dict[str, Any] = {}
    if "record_separator" in section:
        kwargs["record_separator"] = _lookup(
            RECORD_SEPARATOR_MAP, section["record_separator"], "reader.record_separator"
        )
    for key in ("ignore_extra_characters_at_end_of_record", "trim_whitespace"):
        if key in section:
            kwargs[key] = _as_bool(section[key], f"reader.{key}")
    if section.get("encoding"):
        kwargs["encoding"] = str(section["encoding"])
    return ReaderOptions(**kwargs)


def _parse_writer_options(section: Dict[str, Any]) -> WriterOptions:
    kwargs: Dict[str, Any] = {}
    if "padding" in section:
        kwargs["padding"] = str(section["padding"])
    if "alignment" in section:
        kwargs["alignment"] = _lookup(ALIGNMENT_MAP, section["alignment"], "writer.alignment")
    if "record_separator" in section:
        separator = section["record_separator"]
        if separator is None:
            separator = ""
        separator = str(separator)
        kwargs["record_separator"] = SEPARATOR_ALIASES.get(separator.lower(), separator)
    if section.get("encoding"):
        kwargs["encoding"] = str(section["encoding"])
    return WriterOptions(**kwargs)


def _parse_field(value: Any, field_name: str) -> FieldDefinition:
    if isinstance(value, dict):
        if "width" not in value:
            raise ConfigurationError(f"{field_name}.width is required", field=field_name)
        alignment = value.get("alignment")
        return FieldDefinition(
            width=_as_int(value["width"], f"{field_name}.width"),
            padding=None if value.get("padding") is None else str(value["padding"]),
            alignment=None if alignment is None else _lookup(
                ALIGNMENT_MAP, alignment, f"{field_name}.alignment"
            ),
        )
    return FieldDefinition(width=_as_int(value, field_name))


def _parse_record_type(config: Dict[str, Any], position: int) -> RecordLayout:
    if not isinstance(config, dict):
        raise ConfigurationError(
            f"record_types[{position}] must be a mapping", field=f"record_types[{position}]"
        )

    name = str(config.get("type", DEFAULT_RECORD_TYPE))
    prefix = f"record_types.{name}"

    raw_fields = config.get("fields", config.get("widths"))
    if not raw_fields or not isinstance(raw_fields, list):
        raise ConfigurationError(f"{prefix}.fields is required", field=f"{prefix}.fields")

    fields = [_parse_field(f, f"{prefix}.fields[{i}]") for i, f in enumerate(raw_fields)]

    columns = config.get("columns")
    if isinstance(columns, str):
        columns = [columns]

    return RecordLayout(name=name, fields=fields, columns=columns)


def parse_layout(config: Dict[str, Any]) -> FileLayout:
    """Create a FileLayout from parsed YAML.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ConfigurationError("Layout file must contain a mapping")

    config = expand_value(config)

    unknown = set(config) - KNOWN_SECTIONS
    if unknown:
        logger.warning("Ignoring unknown layout sections: %s", ", ".join(sorted(unknown)))

    raw_types = config.get("record_types")
    if not raw_types or not isinstance(raw_types, list):
        raise ConfigurationError("record_types is required", field="record_types")

    record_types: Dict[str, RecordLayout] = {}
    for position, raw in enumerate(raw_types):
        layout = _parse_record_type(raw, position)
        if layout.name in record_types:
            raise ConfigurationError(
                f"Record type '{layout.name}' is defined more than once",
                field="record_types",
                value=layout.name,
            )
        record_types[layout.name] = layout

    discriminator = None
    if config.get("discriminator") is not None:
        section = _section(config, "discriminator")
        discriminator = DiscriminatorConfig(
            start=_as_int(section.get("start", 0), "discriminator.start"),
            length=_as_int(section.get("length", 1), "discriminator.length"),
            strict=_as_bool(section.get("strict", False), "discriminator.strict"),
        )

    return FileLayout(
        record_types=record_types,
        reader_options=_parse_reader_options(_section(config, "reader")),
        writer_options=_parse_writer_options(_section(config, "writer")),
        discriminator=discriminator,
    )


def load_layout(path: Union[str, Path]) -> FileLayout:
    """Load a layout from a YAML file.

    Raises:
        ConfigurationError: If the file is not valid YAML or the layout is invalid
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Layout file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {path}", details={"cause": str(e)}
            ) from e

    layout = parse_layout(config or {})
    logger.debug(
        "Loaded layout %s with record types %s", path, ", ".join(layout.record_type_names)
    )
    return layout
