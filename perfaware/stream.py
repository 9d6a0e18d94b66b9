"""Little-endian byte stream reader over a window of a buffer."""

from __future__ import annotations

from typing import Optional


class EndOfStreamError(EOFError):
    """Raised when a read would go past the end of the stream."""


class ByteStream:
    """Reads bytes and 16-bit little-endian words from ``data[start:end]``.

    ``pos`` is the absolute offset into ``data`` of the next byte to read.
    A failed read leaves ``pos`` unchanged.
    """

    def __init__(self, data, start: int = 0, end: Optional[int] = None):
        self.data = data
        self.pos = start
        self.end = len(data) if end is None else end

    def at_end(self) -> bool:
        return self.pos >= self.end

    def read_byte(self) -> int:
        if self.pos >= self.end:
            raise EndOfStreamError(f"no byte left at offset {self.pos}")
        value = self.data[self.pos]
        self.pos += 1
        return value

    def read_word(self) -> int:
        if self.pos + 1 >= self.end:
            raise EndOfStreamError(f"no word left at offset {self.pos}")
        value = self.data[self.pos] | (self.data[self.pos + 1] << 8)
        self.pos += 2
        return value

    def read(self, is_word: bool) -> int:
        """Read an unsigned byte or word."""
        return self.read_word() if is_word else self.read_byte()

    def read_signed(self, is_word: bool) -> int:
        """Read a signed word, or a byte sign-extended to a word."""
        if is_word:
            value = self.read_word()
            return value - 0x10000 if value & 0x8000 else value
        value = self.read_byte()
        return value - 0x100 if value & 0x80 else value