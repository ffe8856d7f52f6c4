"""Fixed-width library modules.

This package contains the streaming reader, the writers and the layout,
configuration and DataFrame helpers built on them.
"""

from fixedwidth.lib.config_loader import DiscriminatorConfig, FileLayout, load_layout, parse_layout
from fixedwidth.lib.env import expand_env_vars, expand_value, load_env_file
from fixedwidth.lib.errors import (
    ConfigurationError,
    FieldCountMismatchError,
    FixedWidthError,
    MalformedRecordError,
    UnexpectedTrailingCharactersError,
    UseAfterDisposeError,
    ValueTooLongError,
)
from fixedwidth.lib.frames import read_dataframe, read_parent_child, write_dataframe
from fixedwidth.lib.layouts import LayoutWriter, LayoutWriterBuilder, RecordBuilder
from fixedwidth.lib.observability import ConversionMetrics, JSONFormatter, setup_logging
from fixedwidth.lib.options import (
    DEFAULT_RECORD_TYPE,
    FieldDefinition,
    ReaderOptions,
    RecordLayout,
    RecordSeparator,
    ValueAlignment,
    WriterOptions,
    validate_widths,
)
from fixedwidth.lib.reader import FixedWidthReader, split_fields
from fixedwidth.lib.resolvers import DiscriminatorResolver, WidthResolver, fixed_widths
from fixedwidth.lib.writer import FixedWidthWriter, pad_value, to_text

__all__ = [
    # Config
    "DiscriminatorConfig",
    "FileLayout",
    "load_layout",
    "parse_layout",
    # Env
    "expand_env_vars",
    "expand_value",
    "load_env_file",
    # Errors
    "ConfigurationError",
    "FieldCountMismatchError",
    "FixedWidthError",
    "MalformedRecordError",
    "UnexpectedTrailingCharactersError",
    "UseAfterDisposeError",
    "ValueTooLongError",
    # Frames
    "read_dataframe",
    "read_parent_child",
    "write_dataframe",
    # Layouts
    "LayoutWriter",
    "LayoutWriterBuilder",
    "RecordBuilder",
    # Observability
    "ConversionMetrics",
    "JSONFormatter",
    "setup_logging",
    # Options
    "DEFAULT_RECORD_TYPE",
    "FieldDefinition",
    "ReaderOptions",
    "RecordLayout",
    "RecordSeparator",
    "ValueAlignment",
    "WriterOptions",
    "validate_widths",
    # Reader
    "FixedWidthReader",
    "split_fields",
    # Resolvers
    "DiscriminatorResolver",
    "WidthResolver",
    "fixed_widths",
    # Writer
    "FixedWidthWriter",
    "pad_value",
    "to_text",
]
