"""Reading and writing the simple EXI header byte."""

from __future__ import annotations

from .bitstream import BitReader, BitWriter, ExiError

_COOKIE_START = ord("$")
_OPTIONS_PRESENT = 0x20
_SIMPLE_HEADER = 0x80


class UnsupportedHeaderError(ExiError):
    """Raised for EXI headers carrying a cookie or an options document."""


def read_exi_header(reader: BitReader) -> int:
    """Read and check the EXI header byte at the start of a stream; return it."""
    reader.reset()
    header = reader.read_bits(8)
    if header == _COOKIE_START:
        raise UnsupportedHeaderError("EXI cookie is not supported")
    if header & _OPTIONS_PRESENT:
        raise UnsupportedHeaderError("EXI options in the header are not supported")
    return header


def write_exi_header(writer: BitWriter) -> None:
    """Write the simple EXI header byte, starting a fresh byte."""
    writer.reset()
    writer.write_bits(8, _SIMPLE_HEADER)