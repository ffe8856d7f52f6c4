"""Streaming reader for fixed-width files.

Records are pulled from a character stream through a lookahead buffer, so
the widths of a record can be chosen after inspecting the start of that
same record (multi-layout files selected by a discriminator field).

Usage:
    # Single layout
    with FixedWidthReader.from_path("data.txt", [1, 6, 10]) as reader:
        for record in reader:
            print(record)

    # Layout chosen per record
    def resolve(reader):
        peeked = reader.peek([1])
        if peeked is None:
            return None
        return {"A": [1, 6, 10], "B": [1, 1, 1, 1]}.get(peeked[0])

    reader = FixedWidthReader(stream, resolve)
    record = reader.read()  # None at end of input
"""

from __future__ import annotations

import dataclasses
import io
import logging
from pathlib import Path
from typing import IO, Any, Iterator, List, Optional, Sequence, Tuple, Union

from fixedwidth.lib.errors import (
    ConfigurationError,
    MalformedRecordError,
    UnexpectedTrailingCharactersError,
    UseAfterDisposeError,
)
from fixedwidth.lib.options import ReaderOptions, RecordSeparator, validate_widths
from fixedwidth.lib.resolvers import WidthResolver, fixed_widths

logger = logging.getLogger(__name__)

__all__ = ["FixedWidthReader", "split_fields"]

INITIAL_BUFFER_SIZE = 256


def split_fields(chunk: str, widths: Sequence[int], *, trim: bool = True) -> List[str]:
    """Split a fixed-width chunk into column values.

    Example:
        >>> split_fields("John      Doe       ", [10, 10])
        ['John', 'Doe']
    """
    values: List[str] = []
    pos = 0
    for width in widths:
        value = chunk[pos : pos + width]
        values.append(value.strip() if trim else value)
        pos += width
    return values


class FixedWidthReader:
    """Reads records from a character stream.

    The reader owns a lookahead buffer: a single list of characters plus a
    window ``[index, index + length)`` of characters fetched from the source
    but not yet consumed. Peeks slice the window without moving it; reads
    slice it and then advance past the record. A wide peek may pull in
    characters of the following record, which stay buffered for later reads.

    ``source`` may be a text stream, a binary stream (decoded with
    ``options.encoding``) or anything with ``read(n)``. ``widths`` is either
    a fixed width list or a resolver called before every ``read()``.

    Instances are not thread-safe.
    """

    def __init__(
        self,
        source: IO[Any],
        widths: Union[Sequence[int], WidthResolver],
        options: Optional[ReaderOptions] = None,
    ) -> None:
        self._options = options or ReaderOptions()

        # Validate before wrapping: an abandoned wrapper closes the caller's stream
        if callable(widths):
            self._resolve: WidthResolver = widths
        else:
            self._resolve = fixed_widths(widths)

        self._source, self._wrapped = _open_source(source, self._options)

        self._buffer: List[str] = [""] * INITIAL_BUFFER_SIZE
        self._index = 0
        self._length = 0
        self._records_read = 0
        self._closed = False

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        widths: Union[Sequence[int], WidthResolver],
        options: Optional[ReaderOptions] = None,
    ) -> "FixedWidthReader":
        """Open the file at ``path`` for reading.

        The file is always closed with the reader.
        """
        options = options or ReaderOptions()
        if options.leave_stream_open:
            options = dataclasses.replace(options, leave_stream_open=False)

        handle = open(path, "rb")
        try:
            return cls(handle, widths, options)
        except Exception:
            handle.close()
            raise

    @property
    def options(self) -> ReaderOptions:
        return self._options

    @property
    def records_read(self) -> int:
        """Number of records consumed so far."""
        return self._records_read

    @property
    def buffer_capacity(self) -> int:
        return len(self._buffer)

    @property
    def buffered(self) -> str:
        """Characters fetched from the source but not yet consumed."""
        return "".join(self._buffer[self._index : self._index + self._length])

    @property
    def closed(self) -> bool:
        return self._closed

    def peek(self, widths: Sequence[int], *, trim: Optional[bool] = None) -> Optional[List[str]]:
        """Return the next ``len(widths)`` fields without consuming them.

        ``trim`` overrides ``options.trim_whitespace`` for this peek.

        Returns:
            The field values, or None if the input is exhausted

        Raises:
            MalformedRecordError: If input ends part way through the fields
        """
        self._check_open("peek")
        widths = validate_widths(widths)

        chunk = self._take(sum(widths), consume=False)
        if chunk is None:
            return None
        if trim is None:
            trim = self._options.trim_whitespace
        return split_fields(chunk, widths, trim=trim)

    def read(self, widths: Optional[Sequence[int]] = None) -> Optional[List[str]]:
        """Read and consume the next record.

        Without ``widths`` the resolver decides the layout; a resolver
        returning None or no widths ends the input without consuming
        anything.

        Returns:
            The field values, or None at end of input

        Raises:
            MalformedRecordError: If input ends part way through a record
            UnexpectedTrailingCharactersError: If characters sit between the
                record and its line break and they are not being ignored
        """
        self._check_open("read")

        if widths is None:
            resolved = self._resolve(self)
            if not resolved:
                return None
            widths = resolved
        widths = validate_widths(widths)

        chunk = self._take(sum(widths), consume=True)
        if chunk is None:
            return None
        self._records_read += 1

        if self._options.record_separator is RecordSeparator.LINE_BREAK:
            extra = self._skip_to_next_record()
            if extra and not self._options.ignore_extra_characters_at_end_of_record:
                raise UnexpectedTrailingCharactersError(
                    extra, record_number=self._records_read
                )

        return split_fields(chunk, widths, trim=self._options.trim_whitespace)

    def __iter__(self) -> Iterator[List[str]]:
        while True:
            record = self.read()
            if record is None:
                return
            yield record

    def close(self) -> None:
        """Release the buffer and close the source unless it is left open."""
        if self._closed:
            return
        self._closed = True

        if not self._options.leave_stream_open:
            self._source.close()
        elif self._wrapped:
            # Hand the binary stream back to the caller untouched
            self._source.detach()

        self._buffer = []
        self._index = 0
        self._length = 0
        logger.debug("Closed reader after %d records", self._records_read)

    def __enter__(self) -> "FixedWidthReader":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _check_open(self, operation: str) -> None:
        if self._closed:
            raise UseAfterDisposeError(type(self).__name__, operation)

    def _take(self, count: int, *, consume: bool) -> Optional[str]:
        """Return the next ``count`` characters, fetching as needed."""
        self._reserve(count)

        if self._length < count:
            self._fill(count)

            if self._length == 0:
                return None
            if self._length < count:
                raise MalformedRecordError(
                    "Input ended part way through a record",
                    record_number=self._records_read + 1,
                    expected=count,
                    available=self._length,
                )

        start = self._index
        chunk = "".join(self._buffer[start : start + count])

        if consume:
            self._consume(count)
        return chunk

    def _reserve(self, count: int) -> None:
        """Make room for a window of ``count`` characters at ``index``."""
        capacity = len(self._buffer)

        if count > capacity:
            grown = [""] * count
            grown[: self._length] = self._buffer[self._index : self._index + self._length]
            self._buffer = grown
            self._index = 0
            logger.debug("Grew lookahead buffer from %d to %d characters", capacity, count)
        elif self._index + count > capacity:
            self._compact()

    def _compact(self) -> None:
        if self._index:
            self._buffer[: self._length] = self._buffer[self._index : self._index + self._length]
            self._index = 0

    def _fill(self, count: int) -> None:
        """Fetch from the source until the window holds ``count`` characters."""
        while self._length < count:
            chunk = self._source.read(count - self._length)
            if not chunk:
                break
            end = self._index + self._length
            self._buffer[end : end + len(chunk)] = chunk
            self._length += len(chunk)

    def _refill(self) -> bool:
        """Fetch a buffer's worth of characters into an empty window."""
        chunk = self._source.read(len(self._buffer))
        if not chunk:
            return False
        self._index = 0
        self._buffer[: len(chunk)] = chunk
        self._length = len(chunk)
        return True

    def _consume(self, count: int) -> None:
        self._length -= count
        if self._length == 0:
            self._index = 0
        else:
            self._index += count

    def _skip_to_next_record(self) -> str:
        """Consume up to and including the next line break.

        Returns the characters passed on the way. The scan ends when a line
        break is found in the buffer, when a trailing ``\\r`` has been
        checked against one more character from the source, or when the
        source runs out.
        """
        extra: List[str] = []

        while True:
            if self._length == 0 and not self._refill():
                return "".join(extra)

            start = self._index
            end = start + self._length
            for pos in range(start, end):
                ch = self._buffer[pos]
                if ch == "\n" or ch == "\r":
                    extra.extend(self._buffer[start:pos])
                    self._consume(pos - start + 1)
                    if ch == "\r":
                        self._skip_line_feed()
                    return "".join(extra)

            extra.extend(self._buffer[start:end])
            self._consume(self._length)

    def _skip_line_feed(self) -> None:
        """Consume the ``\\n`` of a ``\\r\\n`` pair, if there is one."""
        if self._length:
            if self._buffer[self._index] == "\n":
                self._consume(1)
            return

        # The \r was the last buffered character
        probe = self._source.read(1)
        if probe and probe != "\n":
            self._buffer[0] = probe
            self._index = 0
            self._length = 1


def _open_source(source: Any, options: ReaderOptions) -> Tuple[Any, bool]:
    """Return a text stream for ``source`` and whether it was wrapped."""
    if source is None:
        raise ConfigurationError("A source stream is required", field="source")

    if isinstance(source, (io.RawIOBase, io.BufferedIOBase)):
        if not source.readable():
            raise ConfigurationError("The provided stream must be readable", field="source")
        # newline="" keeps \r and \r\n intact for the separator scan
        return io.TextIOWrapper(source, encoding=options.text_encoding, newline=""), True

    if not hasattr(source, "read"):
        raise ConfigurationError(
            "Source must be a readable stream",
            field="source",
            value=type(source).__name__,
        )
    if hasattr(source, "readable") and not source.readable():
        raise ConfigurationError("The provided stream must be readable", field="source")

    return source, False
