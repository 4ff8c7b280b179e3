"""Internet checksum for UDP and TCP segments carried over IPv6."""

from __future__ import annotations

import struct

_ADDRESS_LEN = 16


def _as_address(value: bytes | bytearray | memoryview, name: str) -> bytes:
    address = bytes(value)
    if len(address) != _ADDRESS_LEN:
        raise ValueError(f"{name} must be a {_ADDRESS_LEN}-byte IPv6 address, got {len(address)} bytes")
    return address


def udp_tcp_checksum(frame, source, destination, next_header: int) -> int:
    """Return the 16-bit checksum of a UDP or TCP segment over IPv6.

    ``frame`` is the whole segment (header and payload) with its checksum
    field zeroed. ``source`` and ``destination`` are the 16-byte IPv6
    addresses used for transmission, and ``next_header`` is the protocol
    number (0x11 for UDP, 0x06 for TCP). The frame itself is never modified.
    """
    segment = bytes(frame)
    src = _as_address(source, "source")
    dst = _as_address(destination, "destination")
    if len(segment) > 0xFFFF:
        raise ValueError("frame is longer than 65535 bytes")
    if not 0 <= next_header <= 0xFF:
        raise ValueError("next_header must fit in one byte")

    pseudo_header = src + dst + len(segment).to_bytes(4, "big") + bytes(3) + bytes([next_header])
    padding = b"\x00" if len(segment) % 2 else b""
    data = pseudo_header + segment + padding

    total = 0
    for (word,) in struct.iter_unpack(">H", data):
        total += word
        if total > 0xFFFF:
            # one's complement addition: fold the carry back into bit 0
            total -= 0xFFFF
    return total ^ 0xFFFF