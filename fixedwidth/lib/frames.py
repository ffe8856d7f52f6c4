"""pandas helpers for fixed-width files.

Turns reader output into DataFrames, including parent-child record files
commonly found in mainframe extracts, and writes DataFrames back out.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from fixedwidth.lib.errors import ConfigurationError, MalformedRecordError
from fixedwidth.lib.layouts import LayoutWriter
from fixedwidth.lib.options import ReaderOptions, validate_widths
from fixedwidth.lib.reader import FixedWidthReader
from fixedwidth.lib.resolvers import DiscriminatorResolver
from fixedwidth.lib.writer import FixedWidthWriter

logger = logging.getLogger(__name__)

__all__ = [
    "OUTPUT_MODES",
    "read_dataframe",
    "read_parent_child",
    "write_dataframe",
]

OUTPUT_MODES = ("flatten", "parent_only", "child_only")


def read_dataframe(
    reader: FixedWidthReader,
    columns: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Read every remaining record into a DataFrame of strings.

    All records must have the same number of fields, matching ``columns``
    when given.
    """
    rows: List[List[str]] = list(reader)

    if columns is None:
        width = len(rows[0]) if rows else 0
        columns = [f"field_{i}" for i in range(width)]

    for number, row in enumerate(rows, 1):
        if len(row) != len(columns):
            raise MalformedRecordError(
                f"Record has {len(row)} fields but {len(columns)} columns were given",
                record_number=number,
            )

    return pd.DataFrame(rows, columns=list(columns), dtype="object")


def read_parent_child(
    source: Union[str, Path, IO[Any]],
    record_types: List[Dict[str, Any]],
    *,
    type_position: Tuple[int, int] = (0, 1),
    output_mode: str = "flatten",
    options: Optional[ReaderOptions] = None,
) -> pd.DataFrame:
    """Parse a fixed-width file with parent-child record relationships.

    Supports ABABBB, ABBAB patterns where:
    - Parent (A) records define a master record
    - Child (B) records belong to the most recent parent
    - Records with role "skip" are read and dropped

    ``widths`` of each record type cover the data after the type indicator,
    so the type code itself never shows up as a column.

    Args:
        source: Path or stream of the fixed-width file
        record_types: Definitions with type, role, columns and widths
        type_position: [start, end) character positions of the type indicator
        output_mode: "flatten", "parent_only" or "child_only"
        options: Reader options

    Raises:
        ConfigurationError: If parent/child definitions are missing
        MalformedRecordError: If a child has no parent or a type is unknown

    Example:
        >>> record_types = [
        ...     {"type": "H", "role": "parent", "columns": ["id", "name"], "widths": [5, 20]},
        ...     {"type": "D", "role": "child", "columns": ["item", "qty"], "widths": [10, 5]},
        ... ]
        >>> df = read_parent_child("data.txt", record_types)
    """
    if output_mode not in OUTPUT_MODES:
        raise ConfigurationError(
            f"Invalid output_mode '{output_mode}'. Valid options: {', '.join(OUTPUT_MODES)}",
            field="output_mode",
            value=output_mode,
        )

    start_pos, end_pos = type_position
    if start_pos < 0 or end_pos <= start_pos:
        raise ConfigurationError(
            "type_position must be [start, end) with start < end",
            field="type_position",
            value=type_position,
        )

    parent_config = next((rt for rt in record_types if rt.get("role") == "parent"), None)
    child_config = next((rt for rt in record_types if rt.get("role") == "child"), None)
    if not parent_config or not child_config:
        raise ConfigurationError(
            "Parent-child pattern requires one 'parent' and one 'child' record type",
            field="record_types",
        )

    roles: Dict[str, str] = {}
    layouts: Dict[str, List[int]] = {}
    for rt in record_types:
        widths = validate_widths(rt.get("widths", []), field_name=f"record_types.{rt['type']}.widths")
        # The type indicator and anything before it is one leading field
        layouts[rt["type"]] = [end_pos] + widths
        roles[rt["type"]] = rt.get("role", "skip")

    parent_columns = list(parent_config.get("columns", []))
    child_columns = list(child_config.get("columns", []))
    if output_mode == "flatten":
        all_columns = parent_columns + child_columns
    elif output_mode == "parent_only":
        all_columns = parent_columns
    else:
        all_columns = child_columns

    resolver = DiscriminatorResolver(
        layouts, start=start_pos, length=end_pos - start_pos, strict=True
    )

    if isinstance(source, (str, Path)):
        reader = FixedWidthReader.from_path(source, resolver, options)
    else:
        reader = FixedWidthReader(
            source,
            resolver,
            dataclasses.replace(options or ReaderOptions(), leave_stream_open=True),
        )

    rows: List[List[str]] = []
    current_parent: Optional[List[str]] = None

    with reader:
        for record in reader:
            role = roles[resolver.last_code]
            values = record[1:]

            if role == "parent":
                current_parent = values
                if output_mode == "parent_only":
                    rows.append(values)

            elif role == "child":
                if current_parent is None:
                    raise MalformedRecordError(
                        "Child record has no parent",
                        record_number=reader.records_read,
                    )
                if output_mode == "flatten":
                    rows.append(current_parent + values)
                elif output_mode == "child_only":
                    rows.append(values)

        logger.debug("Parsed %d records into %d rows", reader.records_read, len(rows))

    return pd.DataFrame(rows, columns=all_columns, dtype="object")


def write_dataframe(
    writer: Union[FixedWidthWriter, LayoutWriter],
    frame: pd.DataFrame,
    record_type: Optional[str] = None,
) -> int:
    """Write every row of ``frame`` as one record.

    Missing values (None, NaN, NaT) become empty fields.

    Returns:
        Number of records written
    """
    count = 0
    for row in frame.itertuples(index=False, name=None):
        values = [None if pd.isna(v) else v for v in row]
        if isinstance(writer, LayoutWriter):
            if record_type is None:
                writer.write(values)
            else:
                writer.write(values, record_type)
        else:
            writer.write(values)
        count += 1
    return count
