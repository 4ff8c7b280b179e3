"""Decoding of EXI booleans, n-bit values and variable-length integers."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .bitstream import BitReader, ExiError

_MAX_OCTETS_UNSIGNED = 10
_MAX_OCTETS_BIG = 32
_WIDTHS = (16, 32, 64)

_INT16_MIN, _INT16_MAX = -(1 << 15), (1 << 15) - 1
_INT32_MIN, _INT32_MAX = -(1 << 31), (1 << 31) - 1
_UINT16_MAX = (1 << 16) - 1
_UINT32_MAX = (1 << 32) - 1
_UINT64_MASK = (1 << 64) - 1


class IntegerKind(enum.Enum):
    """The smallest C integer type that holds a decoded value."""

    UNSIGNED_8 = "uint8"
    UNSIGNED_16 = "uint16"
    UNSIGNED_32 = "uint32"
    UNSIGNED_64 = "uint64"
    INTEGER_8 = "int8"
    INTEGER_16 = "int16"
    INTEGER_32 = "int32"
    INTEGER_64 = "int64"


@dataclass(frozen=True)
class ExiInteger:
    """A decoded integer together with the type class it falls into."""

    kind: IntegerKind
    value: int


class UnsupportedValueError(ExiError):
    """Raised for integers too large for the decoder to represent."""


class BufferOverflowError(ExiError):
    """Raised when decoded data does not fit into the allowed size."""


def _check_width(width: int) -> None:
    if width not in _WIDTHS:
        raise ValueError(f"width must be one of {_WIDTHS}, got {width}")


def _to_signed(value: int, width: int) -> int:
    value &= (1 << width) - 1
    if value >= 1 << (width - 1):
        value -= 1 << width
    return value


class IntegerDecoder:
    """Decodes EXI primitive values from a bit-packed stream."""

    def __init__(self, reader: BitReader) -> None:
        self.reader = reader

    def decode_byte(self) -> int:
        """Read one octet."""
        return self.reader.read_bits(8)

    def decode_boolean(self) -> bool:
        """Read a single bit as a boolean."""
        return self.reader.read_bits(1) != 0

    def decode_nbit_unsigned(self, nbits: int) -> int:
        """Read an unsigned integer of exactly ``nbits`` bits."""
        if nbits == 0:
            return 0
        return self.reader.read_bits(nbits)

    def _octets(self, limit: int, error: str):
        """Yield the 7-bit payloads of a terminated octet sequence."""
        count = 0
        while True:
            octet = self.decode_byte()
            count += 1
            if count > limit:
                raise UnsupportedValueError(error)
            yield octet & 0x7F
            if octet < 0x80:
                return

    def _decode_unsigned(self, negative: bool) -> ExiInteger:
        groups = list(self._octets(_MAX_OCTETS_UNSIGNED, "unsigned integer has too many octets"))
        magnitude = 0
        for group in reversed(groups):
            magnitude = (magnitude << 7) | group
        count = len(groups)

        if count == 1:
            if negative:
                return ExiInteger(IntegerKind.INTEGER_8, -(magnitude + 1))
            return ExiInteger(IntegerKind.UNSIGNED_8, magnitude)
        if count == 2:
            if negative:
                return ExiInteger(IntegerKind.INTEGER_16, -(magnitude + 1))
            return ExiInteger(IntegerKind.UNSIGNED_16, magnitude)
        if count <= 4:
            if negative:
                value = -(magnitude + 1)
                kind = IntegerKind.INTEGER_16 if _INT16_MIN <= value <= _INT16_MAX else IntegerKind.INTEGER_32
                return ExiInteger(kind, value)
            kind = IntegerKind.UNSIGNED_16 if magnitude <= _UINT16_MAX else IntegerKind.UNSIGNED_32
            return ExiInteger(kind, magnitude)

        magnitude &= _UINT64_MASK
        if negative:
            if count > 9:
                raise UnsupportedValueError("negative integer is too large")
            value = -(magnitude + 1)
            kind = IntegerKind.INTEGER_32 if _INT32_MIN <= value <= _INT32_MAX else IntegerKind.INTEGER_64
            return ExiInteger(kind, value)
        kind = IntegerKind.UNSIGNED_32 if magnitude <= _UINT32_MAX else IntegerKind.UNSIGNED_64
        return ExiInteger(kind, magnitude)

    def decode_unsigned(self) -> ExiInteger:
        """Read a variable-length unsigned integer of up to ten octets."""
        return self._decode_unsigned(False)

    def decode_unsigned_width(self, width: int) -> int:
        """Read a variable-length unsigned integer, truncated to ``width`` bits."""
        _check_width(width)
        mask = (1 << width) - 1
        value = 0
        shift = 0
        while True:
            octet = self.decode_byte()
            value = (value + ((octet & 0x7F) << shift)) & mask
            shift += 7
            if octet >> 7 != 1:
                return value

    def decode_unsigned_big(self, size: int) -> bytes:
        """Read an unsigned integer of up to 32 octets as big-endian magnitude bytes.

        Zero yields an empty result. More than ``size`` bytes raises
        :class:`BufferOverflowError`.
        """
        value = 0
        shift = 0
        for group in self._octets(_MAX_OCTETS_BIG, "big integer has too many octets"):
            value |= group << shift
            shift += 7
        length = (value.bit_length() + 7) // 8
        if length > size:
            raise BufferOverflowError(f"big integer needs {length} bytes, only {size} allowed")
        return value.to_bytes(length, "big")

    def decode_integer(self) -> ExiInteger:
        """Read a sign bit followed by a variable-length magnitude."""
        negative = self.decode_boolean()
        return self._decode_unsigned(negative)

    def decode_integer_width(self, width: int) -> int:
        """Read a signed integer, wrapped to a ``width``-bit two's complement value."""
        _check_width(width)
        negative = self.decode_boolean()
        magnitude = self.decode_unsigned_width(width)
        if negative:
            return _to_signed(-(magnitude + 1), width)
        return _to_signed(magnitude, width)

    def decode_integer_big(self, size: int) -> tuple[bool, bytes]:
        """Read a sign bit and a big magnitude; return ``(negative, magnitude_bytes)``.

        For negative values the magnitude holds the absolute value minus one.
        """
        negative = self.decode_boolean()
        return negative, self.decode_unsigned_big(size)