"""Decoding of EXI floats, decimals, strings, binary data and date-times."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Sequence

from .bitstream import ExiError
from .exi_integers import BufferOverflowError, IntegerDecoder

DATETIME_YEAR_OFFSET = 2000
DATETIME_NUMBER_BITS_MONTHDAY = 9
DATETIME_NUMBER_BITS_TIME = 17
DATETIME_NUMBER_BITS_TIMEZONE = 11
DATETIME_TIMEZONE_OFFSET_IN_MINUTES = 896

_ASCII_LIMIT = 128


class InvalidCharacterError(ExiError):
    """Raised for characters outside the supported character range."""


@dataclass(frozen=True)
class ExiFloat:
    """A float as a mantissa and a base-10 exponent."""

    mantissa: int
    exponent: int


@dataclass(frozen=True)
class ExiDecimal:
    """A decimal as sign, integral part and digit-reversed fractional part."""

    negative: bool
    integral: int
    reverse_fraction: int


class DateTimeType(enum.Enum):
    """The kinds of date-time values EXI can carry."""

    GYEAR = "gYear"
    GYEARMONTH = "gYearMonth"
    DATE = "date"
    DATETIME = "dateTime"
    GMONTH = "gMonth"
    GMONTHDAY = "gMonthDay"
    GDAY = "gDay"
    TIME = "time"


@dataclass(frozen=True)
class ExiDateTime:
    """The components of a decoded date-time; absent parts are zero or None."""

    type: DateTimeType
    year: int = 0
    month_day: int = 0
    time: int = 0
    fractional_secs: Optional[int] = None
    timezone: Optional[int] = None


class ExiDecoder(IntegerDecoder):
    """Decodes composite EXI values from a bit-packed stream."""

    def decode_float(self) -> ExiFloat:
        """Read a 64-bit mantissa followed by a 16-bit exponent."""
        mantissa = self.decode_integer_width(64)
        exponent = self.decode_integer_width(16)
        return ExiFloat(mantissa, exponent)

    def decode_decimal(self) -> ExiDecimal:
        """Read a sign bit and two unsigned integers."""
        negative = self.decode_boolean()
        integral = self.decode_unsigned().value
        reverse_fraction = self.decode_unsigned().value
        return ExiDecimal(negative, integral, reverse_fraction)

    @staticmethod
    def _check_capacity(length: int, capacity: int) -> None:
        # one slot is reserved for the terminating character
        if length + 1 > capacity:
            raise BufferOverflowError(f"string of {length} characters does not fit capacity {capacity}")

    def _decode_ascii(self) -> str:
        octet = self.decode_byte()
        if octet >= _ASCII_LIMIT:
            raise InvalidCharacterError(f"character 0x{octet:02x} is not ASCII")
        return chr(octet)

    def decode_characters(self, length: int, capacity: int) -> str:
        """Read ``length`` ASCII characters, each as one octet."""
        self._check_capacity(length, capacity)
        return "".join(self._decode_ascii() for _ in range(length))

    def decode_string_only(self, length: int, capacity: int) -> str:
        """Read a string of a known length."""
        self._check_capacity(length, capacity)
        return self.decode_characters(length, capacity)

    def decode_string(self, capacity: int) -> str:
        """Read a length-prefixed string."""
        length = self.decode_unsigned_width(32)
        return self.decode_string_only(length, capacity)

    def decode_rcs_characters(self, length: int, capacity: int, code_length: int, rcs_set: Sequence[str]) -> str:
        """Read characters coded against a restricted character set.

        A code equal to the set size announces a character outside the set,
        which follows as one octet.
        """
        self._check_capacity(length, capacity)
        rcs_size = len(rcs_set)
        chars = []
        for _ in range(length):
            code = self.decode_nbit_unsigned(code_length)
            if code == rcs_size:
                chars.append(self._decode_ascii())
            elif code < rcs_size:
                chars.append(rcs_set[code])
            else:
                raise InvalidCharacterError(f"code {code} is outside the restricted character set")
        return "".join(chars)

    def decode_bytes(self, length: int) -> bytes:
        """Read ``length`` octets."""
        return bytes(self.decode_byte() for _ in range(length))

    def decode_binary(self, capacity: int) -> bytes:
        """Read a length-prefixed sequence of octets."""
        length = self.decode_unsigned_width(32)
        if length > capacity:
            raise BufferOverflowError(f"binary of {length} bytes does not fit capacity {capacity}")
        return self.decode_bytes(length)

    def _decode_year(self) -> int:
        return self.decode_integer_width(32) + DATETIME_YEAR_OFFSET

    def _decode_time(self) -> tuple[int, Optional[int]]:
        time = self.decode_nbit_unsigned(DATETIME_NUMBER_BITS_TIME)
        fractional = self.decode_unsigned_width(32) if self.decode_boolean() else None
        return time, fractional

    def decode_datetime(self, kind) -> ExiDateTime:
        """Read the components of a date-time of the given kind."""
        kind = DateTimeType(kind)
        year = month_day = time = 0
        fractional = None

        if kind is DateTimeType.GYEAR:
            year = self._decode_year()
        elif kind in (DateTimeType.GYEARMONTH, DateTimeType.DATE):
            year = self._decode_year()
            month_day = self.decode_nbit_unsigned(DATETIME_NUMBER_BITS_MONTHDAY)
        elif kind is DateTimeType.DATETIME:
            year = self._decode_year()
            month_day = self.decode_nbit_unsigned(DATETIME_NUMBER_BITS_MONTHDAY)
            time, fractional = self._decode_time()
        elif kind is DateTimeType.TIME:
            time, fractional = self._decode_time()
        else:
            month_day = self.decode_nbit_unsigned(DATETIME_NUMBER_BITS_MONTHDAY)

        timezone = None
        if self.decode_boolean():
            timezone = self.decode_nbit_unsigned(DATETIME_NUMBER_BITS_TIMEZONE) - DATETIME_TIMEZONE_OFFSET_IN_MINUTES

        return ExiDateTime(kind, year, month_day, time, fractional, timezone)