"""Width resolvers for multi-layout files.

A resolver is any callable that takes the reader, may ``peek`` at the
upcoming characters, and returns the widths of the next record or None to
end the input.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Sequence

from fixedwidth.lib.errors import ConfigurationError, MalformedRecordError
from fixedwidth.lib.options import validate_widths

if TYPE_CHECKING:
    from fixedwidth.lib.reader import FixedWidthReader

logger = logging.getLogger(__name__)

__all__ = ["DiscriminatorResolver", "WidthResolver", "fixed_widths"]

WidthResolver = Callable[["FixedWidthReader"], Optional[Sequence[int]]]


def fixed_widths(widths: Sequence[int]) -> WidthResolver:
    """Return a resolver that gives every record the same widths."""
    checked = validate_widths(widths)

    def resolve(reader: "FixedWidthReader") -> List[int]:
        return checked

    return resolve


class DiscriminatorResolver:
    """Choose record widths from a record type code inside the record.

    The code occupies ``length`` characters starting at column ``start``.
    Each layout's widths cover the whole record, code included.

    Example:
        resolver = DiscriminatorResolver({"A": [1, 6, 10], "B": [1, 1, 1, 1]})
        reader = FixedWidthReader(stream, resolver)

    Unknown codes end the input, or raise MalformedRecordError when
    ``strict`` is set.
    """

    def __init__(
        self,
        layouts: Mapping[str, Sequence[int]],
        *,
        start: int = 0,
        length: int = 1,
        strict: bool = False,
    ) -> None:
        if not layouts:
            raise ConfigurationError("At least one record layout is required", field="layouts")
        if start < 0:
            raise ConfigurationError(
                "Discriminator start must not be negative", field="start", value=start
            )
        if length < 1:
            raise ConfigurationError(
                "Discriminator length must be positive", field="length", value=length
            )

        self.layouts: Dict[str, List[int]] = {}
        for code, widths in layouts.items():
            checked = validate_widths(widths, field_name=f"layouts.{code}")
            if sum(checked) < start + length:
                raise ConfigurationError(
                    f"Record type '{code}' is shorter than its discriminator",
                    field=f"layouts.{code}",
                    value=checked,
                )
            self.layouts[code] = checked

        self.start = start
        self.length = length
        self.strict = strict
        self.last_code: Optional[str] = None

    @property
    def peek_widths(self) -> List[int]:
        if self.start:
            return [self.start, self.length]
        return [self.length]

    def code_of(self, reader: "FixedWidthReader") -> Optional[str]:
        """Peek the record type code of the next record.

        The code is matched against the layouts exactly as it appears in the
        record, then with surrounding whitespace removed, so both ``"A "``
        and ``"A"`` can be used as layout keys.
        """
        peeked = reader.peek(self.peek_widths, trim=False)
        if peeked is None:
            return None
        code = peeked[-1]
        if code in self.layouts:
            return code
        return code.strip()

    def __call__(self, reader: "FixedWidthReader") -> Optional[List[int]]:
        code = self.code_of(reader)
        self.last_code = code
        if code is None:
            return None

        widths = self.layouts.get(code)
        if widths is None:
            if self.strict:
                raise MalformedRecordError(
                    f"Unknown record type '{code}'",
                    record_number=reader.records_read + 1,
                    details={"known_types": sorted(self.layouts)},
                )
            logger.debug(
                "Unknown record type %r after %d records, ending input",
                code,
                reader.records_read,
            )
        return widths
