"""Bit-level reading and writing over byte buffers, most significant bit first."""

from __future__ import annotations

_BITS_IN_BYTE = 8


class ExiError(Exception):
    """Base class for errors of the EXI coding layer."""


class InputStreamEOFError(ExiError, EOFError):
    """Raised when more bits are requested than the input holds."""


class OutputStreamEOFError(ExiError):
    """Raised when the output buffer has no room for another byte."""


class BitReader:
    """Reads bit fields from a byte buffer."""

    def __init__(self, data) -> None:
        self._data = bytes(data)
        self._pos = 0
        self._buffer = 0
        self._capacity = 0

    @property
    def position(self) -> int:
        """Number of bytes taken from the input so far."""
        return self._pos

    def reset(self) -> None:
        """Discard any bits left over from the current byte."""
        self._buffer = 0
        self._capacity = 0

    def _fill(self) -> None:
        if self._capacity == 0:
            if self._pos >= len(self._data):
                raise InputStreamEOFError("input stream exhausted")
            self._buffer = self._data[self._pos]
            self._pos += 1
            self._capacity = _BITS_IN_BYTE

    def read_bits(self, num_bits: int) -> int:
        """Read the next ``num_bits`` bits and return them as an unsigned integer."""
        if num_bits < 0:
            raise ValueError("num_bits must not be negative")
        self._fill()
        if num_bits <= self._capacity:
            self._capacity -= num_bits
            return (self._buffer >> self._capacity) & (0xFF >> (_BITS_IN_BYTE - num_bits))

        value = self._buffer & (0xFF >> (_BITS_IN_BYTE - self._capacity))
        remaining = num_bits - self._capacity
        self._capacity = 0

        while remaining >= _BITS_IN_BYTE:
            self._fill()
            value = (value << _BITS_IN_BYTE) | self._buffer
            remaining -= _BITS_IN_BYTE
            self._capacity = 0

        if remaining > 0:
            self._fill()
            value = (value << remaining) | (self._buffer >> (_BITS_IN_BYTE - remaining))
            self._capacity = _BITS_IN_BYTE - remaining
        return value


class BitWriter:
    """Writes bit fields into a byte buffer of fixed size."""

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError("size must not be negative")
        self._size = size
        self._data = bytearray()
        self._buffer = 0
        self._capacity = _BITS_IN_BYTE

    @property
    def position(self) -> int:
        """Number of complete bytes written so far."""
        return len(self._data)

    def reset(self) -> None:
        """Drop any bits not yet written out and start a fresh byte."""
        self._buffer = 0
        self._capacity = _BITS_IN_BYTE

    def _emit(self, byte: int) -> None:
        if len(self._data) >= self._size:
            raise OutputStreamEOFError("output buffer full")
        self._data.append(byte & 0xFF)

    def write_bits(self, nbits: int, value: int) -> None:
        """Write the ``nbits`` least significant bits of ``value``, most significant first."""
        if nbits < 0:
            raise ValueError("nbits must not be negative")
        if value < 0:
            raise ValueError("value must not be negative")

        if nbits <= self._capacity:
            self._buffer = ((self._buffer << nbits) & 0xFF) | (value & (0xFF >> (_BITS_IN_BYTE - nbits)))
            self._capacity -= nbits
            if self._capacity == 0:
                byte = self._buffer
                self._capacity = _BITS_IN_BYTE
                self._buffer = 0
                self._emit(byte)
            return

        capacity = self._capacity
        self._buffer = ((self._buffer << capacity) & 0xFF) | (
            (value >> (nbits - capacity)) & (0xFF >> (_BITS_IN_BYTE - capacity))
        )
        remaining = nbits - capacity
        self._emit(self._buffer)
        self._buffer = 0

        while remaining >= _BITS_IN_BYTE:
            remaining -= _BITS_IN_BYTE
            self._emit(value >> remaining)

        # leftover bits stay in the buffer; stale high bits get shifted out later
        self._buffer = value & 0xFF
        self._capacity = _BITS_IN_BYTE - remaining

    def flush(self) -> None:
        """Pad a partly filled byte with zero bits and write it out."""
        if self._capacity != _BITS_IN_BYTE:
            self.write_bits(self._capacity, 0)

    def getvalue(self) -> bytes:
        """Return the complete bytes written so far."""
        return bytes(self._data)