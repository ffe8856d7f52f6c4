"""Fixed-width writer.

Formats each value into its column, padding it with the configured
character on the side given by the alignment, and ends every record with
the record separator. A value longer than its column raises
ValueTooLongError; use a LayoutWriter to truncate instead.

Usage:
    with FixedWidthWriter.from_path("out.txt", [1, 2, 3]) as writer:
        writer.write(["a", "b", "c"])
        writer.write(["oh", None, 9], widths=[3, 2, 1])
"""

from __future__ import annotations

import dataclasses
import io
import logging
from pathlib import Path
from typing import IO, Any, List, Optional, Sequence, Tuple, Union

from fixedwidth.lib.errors import (
    ConfigurationError,
    FieldCountMismatchError,
    UseAfterDisposeError,
    ValueTooLongError,
)
from fixedwidth.lib.options import ValueAlignment, WriterOptions, validate_widths

logger = logging.getLogger(__name__)

__all__ = ["FixedWidthWriter", "pad_value", "to_text"]


def to_text(value: Any) -> str:
    """Convert a field value to text; None becomes an empty field."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def pad_value(value: str, width: int, padding: str, alignment: ValueAlignment) -> str:
    """Pad ``value`` to ``width`` characters.

    Example:
        >>> pad_value("b", 2, " ", ValueAlignment.END)
        ' b'
    """
    fill = padding * (width - len(value))
    if alignment is ValueAlignment.END:
        return fill + value
    return value + fill


class _SinkWriter:
    """Shared sink handling for the writers."""

    def __init__(self, sink: IO[Any], options: WriterOptions) -> None:
        self._options = options
        self._sink, self._wrapped = _open_sink(sink, options)
        self._records_written = 0
        self._closed = False

    @property
    def options(self) -> WriterOptions:
        return self._options

    @property
    def records_written(self) -> int:
        return self._records_written

    @property
    def closed(self) -> bool:
        return self._closed

    def flush(self) -> None:
        """Force buffered output to the underlying sink."""
        self._check_open("flush")
        self._sink.flush()

    def close(self) -> None:
        """Flush, then close the sink unless it is left open."""
        if self._closed:
            return
        self._closed = True

        try:
            self._sink.flush()
        finally:
            if not self._options.leave_stream_open:
                self._sink.close()
            elif self._wrapped:
                self._sink.detach()

        logger.debug(
            "Closed %s after %d records", type(self).__name__, self._records_written
        )

    def __enter__(self) -> Any:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _check_open(self, operation: str) -> None:
        if self._closed:
            raise UseAfterDisposeError(type(self).__name__, operation)

    def _emit(self, parts: List[str]) -> None:
        parts.append(self._options.record_separator)
        self._sink.write("".join(parts))
        self._records_written += 1


class FixedWidthWriter(_SinkWriter):
    """Writes records with one default width list.

    Not thread-safe. Output is buffered by the sink until ``flush`` or
    ``close``.
    """

    def __init__(
        self,
        sink: IO[Any],
        widths: Sequence[int],
        options: Optional[WriterOptions] = None,
    ) -> None:
        self._widths = validate_widths(widths)
        super().__init__(sink, options or WriterOptions())

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        widths: Sequence[int],
        options: Optional[WriterOptions] = None,
    ) -> "FixedWidthWriter":
        """Create (or truncate) the file at ``path``; it is closed with the writer."""
        options = options or WriterOptions()
        if options.leave_stream_open:
            options = dataclasses.replace(options, leave_stream_open=False)

        widths = validate_widths(widths)
        handle = open(path, "wb")
        try:
            return cls(handle, widths, options)
        except Exception:
            handle.close()
            raise

    @property
    def widths(self) -> List[int]:
        return list(self._widths)

    def write(
        self,
        values: Sequence[Any],
        widths: Optional[Sequence[int]] = None,
    ) -> None:
        """Write one record.

        Args:
            values: One value per field; None writes an empty field
            widths: Field widths overriding the writer's widths

        Raises:
            FieldCountMismatchError: If values and widths differ in length
            ValueTooLongError: If a value is wider than its field
        """
        self._check_open("write")
        widths = self._widths if widths is None else validate_widths(widths)

        if len(values) != len(widths):
            raise FieldCountMismatchError(len(widths), len(values))

        parts: List[str] = []
        for i, (value, width) in enumerate(zip(values, widths)):
            text = to_text(value)
            if len(text) > width:
                raise ValueTooLongError(i, width, text)
            parts.append(
                pad_value(text, width, self._options.padding, self._options.alignment)
            )

        self._emit(parts)


def _open_sink(sink: Any, options: WriterOptions) -> Tuple[Any, bool]:
    """Return a text stream for ``sink`` and whether it was wrapped."""
    if sink is None:
        raise ConfigurationError(
            "A sink stream to write to is required",
            field="sink",
        )

    if isinstance(sink, (io.RawIOBase, io.BufferedIOBase)):
        if not sink.writable():
            raise ConfigurationError("The provided stream must be writable", field="sink")
        # newline="" writes the record separator exactly as configured
        return io.TextIOWrapper(sink, encoding=options.text_encoding, newline=""), True

    if not hasattr(sink, "write"):
        raise ConfigurationError(
            "Sink must be a writable stream",
            field="sink",
            value=type(sink).__name__,
        )
    if hasattr(sink, "writable") and not sink.writable():
        raise ConfigurationError("The provided stream must be writable", field="sink")

    return sink, False
