"""Pytest configuration and fixtures."""

import io
from typing import Callable, List, Optional

import pytest


class TrickleSource(io.TextIOBase):
    """Text source that hands out at most ``chunk_size`` characters per read.

    Real streams may return fewer characters than requested; this makes
    every read do so and counts the calls.
    """

    def __init__(self, text: str, chunk_size: int = 1) -> None:
        super().__init__()
        self._text = text
        self._pos = 0
        self.chunk_size = chunk_size
        self.read_calls = 0

    def readable(self) -> bool:
        return True

    def read(self, size: Optional[int] = -1) -> str:
        self.read_calls += 1
        if size is None or size < 0:
            size = len(self._text)
        n = min(size, self.chunk_size)
        chunk = self._text[self._pos : self._pos + n]
        self._pos += len(chunk)
        return chunk


@pytest.fixture
def trickle() -> Callable[..., TrickleSource]:
    """Factory for sources that return one character (or a few) at a time."""

    def make(text: str, chunk_size: int = 1) -> TrickleSource:
        return TrickleSource(text, chunk_size)

    return make


def discriminate_ab(reader) -> Optional[List[int]]:
    """Resolver used throughout the reader tests."""
    peeked = reader.peek([1])
    if peeked is None:
        return None
    return {"A": [1, 6, 10], "B": [1, 1, 1, 1]}.get(peeked[0])


@pytest.fixture
def ab_resolver():
    return discriminate_ab
