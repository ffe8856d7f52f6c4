"""Streaming reader and writer for fixed-width text files.

Records are sequences of fields occupying fixed character columns. The
reader chooses the widths of each record as it goes, so files mixing
several record layouts can be read in one pass.

Usage:
    python -m fixedwidth read layout.yaml input.txt --output out.parquet
    python -m fixedwidth write layout.yaml input.csv output.txt
"""

from fixedwidth.lib.reader import FixedWidthReader
from fixedwidth.lib.writer import FixedWidthWriter
from fixedwidth.lib.layouts import LayoutWriter, LayoutWriterBuilder
from fixedwidth.lib.options import ReaderOptions, RecordSeparator, ValueAlignment, WriterOptions

__all__ = [
    "FixedWidthReader",
    "FixedWidthWriter",
    "LayoutWriter",
    "LayoutWriterBuilder",
    "ReaderOptions",
    "RecordSeparator",
    "ValueAlignment",
    "WriterOptions",
]
