"""Framing and driver logic for a QCA7000/QCA7005 powerline modem attached over SPI."""

from __future__ import annotations

import logging
from typing import Callable, Iterator, Optional

log = logging.getLogger(__name__)

SPI_BUFFER_SIZE = 1100
ETH_TRANSMIT_BUFFER_LEN = 250
ETH_RECEIVE_BUFFER_LEN = 250

ETHERTYPE_HOMEPLUG = 0x88E1
ETHERTYPE_IPV6 = 0x86DD

# commands: bit 7 read, bit 6 internal register, low bits register number
CMD_READ_SIGNATURE = 0xDA
CMD_WRITE_BFR_SIZE = 0x41
CMD_READ_RDBUF_BYTE_AVA = 0xC3
CMD_READ_EXTERNAL = 0x80
CMD_WRITE_EXTERNAL = 0x00

START_OF_FRAME = b"\xaa\xaa\xaa\xaa"
END_OF_FRAME = b"\x55\x55"

# a modem reporting this much data is assumed to be a garbled transfer
_IMPLAUSIBLE_AVAILABLE = 4000
_FRAME_OVERHEAD = 10  # start of frame, length, reserved, end of frame
_LEN_FIELD = 4
_ETH_HEADER_LEN = 14

SpiTransfer = Callable[[bytes], bytes]
FrameHandler = Callable[[bytes], None]


def ether_type(frame) -> int:
    """Return the EtherType of an Ethernet frame (bytes 12 and 13, big endian)."""
    frame = bytes(frame)
    if len(frame) < _ETH_HEADER_LEN:
        raise ValueError(f"frame of {len(frame)} bytes has no complete Ethernet header")
    return int.from_bytes(frame[12:14], "big")


def build_spi_frame(eth_frame) -> bytes:
    """Return the SPI transfer that writes ``eth_frame`` to the modem.

    The transfer holds the external-write command, the start of frame, the
    little-endian frame length, two reserved bytes, the frame and the end of
    frame.
    """
    eth_frame = bytes(eth_frame)
    if len(eth_frame) > ETH_TRANSMIT_BUFFER_LEN:
        raise ValueError(f"Ethernet frame of {len(eth_frame)} bytes exceeds {ETH_TRANSMIT_BUFFER_LEN} bytes")
    return (
        bytes([CMD_WRITE_EXTERNAL, 0x00])
        + START_OF_FRAME
        + len(eth_frame).to_bytes(2, "little")
        + b"\x00\x00"
        + eth_frame
        + END_OF_FRAME
    )


def split_spi_frames(data) -> Iterator[bytes]:
    """Yield the Ethernet frames contained in data read from the modem.

    Each entry is a 4-byte big-endian outer length, the start of frame, a
    2-byte little-endian inner length, two reserved bytes, the payload and the
    end of frame. Parsing stops at the first entry whose two lengths do not
    agree. Payloads longer than the receive buffer are cut to its size.
    """
    data = bytes(data)
    remaining = len(data)
    offset = 0
    while len(data) - offset >= 12:
        outer_len = int.from_bytes(data[offset + 2:offset + 4], "big")
        inner_len = int.from_bytes(data[offset + 8:offset + 10], "little")
        if inner_len + _FRAME_OVERHEAD != outer_len:
            return
        length = min(inner_len, ETH_RECEIVE_BUFFER_LEN)
        if length < inner_len:
            log.debug("QCA7000: received frame cut from %d to %d bytes", inner_len, length)
        start = offset + 12
        yield data[start:start + length]
        remaining -= outer_len + _LEN_FIELD
        offset += outer_len + _LEN_FIELD
        if remaining <= 10:
            return


class Qca7000:
    """Talks to the modem through ``spi``, a full-duplex transfer function.

    ``spi`` takes the bytes to send and returns as many bytes received.
    Received HomePlug frames go to ``on_homeplug``, IPv6 frames to
    ``on_ipv6``; other frames are dropped.
    """

    def __init__(
        self,
        spi: SpiTransfer,
        on_homeplug: Optional[FrameHandler] = None,
        on_ipv6: Optional[FrameHandler] = None,
    ) -> None:
        self._spi = spi
        self._on_homeplug = on_homeplug
        self._on_ipv6 = on_ipv6
        self.total_transmitted_bytes = 0

    def _transfer(self, tx: bytes) -> bytes:
        rx = bytes(self._spi(tx))
        if len(rx) < len(tx):
            raise ValueError(f"SPI returned {len(rx)} bytes for a transfer of {len(tx)}")
        return rx

    def _read_register(self, command: int) -> int:
        rx = self._transfer(bytes([command, 0x00, 0x00, 0x00]))
        return int.from_bytes(rx[2:4], "big")

    def read_signature(self) -> int:
        """Read the signature register; a working modem answers 0xAA55."""
        return self._read_register(CMD_READ_SIGNATURE)

    def write_buffer_size(self, size: int) -> None:
        """Announce the size of the next external read or write."""
        if not 0 <= size <= 0xFFFF:
            raise ValueError("buffer size must fit in 16 bits")
        self._transfer(bytes([CMD_WRITE_BFR_SIZE, 0x00]) + size.to_bytes(2, "big"))

    def read_available(self) -> int:
        """Return the number of received bytes waiting in the modem."""
        return self._read_register(CMD_READ_RDBUF_BYTE_AVA)

    def distribute(self, data) -> int:
        """Split received data into Ethernet frames and hand each to its handler.

        Returns the number of frames found.
        """
        count = 0
        for frame in split_spi_frames(data):
            count += 1
            if len(frame) < _ETH_HEADER_LEN:
                continue
            kind = ether_type(frame)
            if kind == ETHERTYPE_HOMEPLUG:
                log.debug("ETH rx HP: %s", frame.hex())
                if self._on_homeplug is not None:
                    self._on_homeplug(frame)
            elif kind == ETHERTYPE_IPV6:
                log.debug("ETH rx IP: %s", frame.hex())
                if self._on_ipv6 is not None:
                    self._on_ipv6(frame)
        return count

    def check_for_received_data(self) -> int:
        """Fetch waiting data from the modem and distribute it.

        Returns the number of frames found. An implausibly large amount of
        waiting data is ignored, to be read again on the next call.
        """
        available = self.read_available()
        if available == 0 or available >= _IMPLAUSIBLE_AVAILABLE:
            return 0
        if available + 2 >= SPI_BUFFER_SIZE:
            available = SPI_BUFFER_SIZE - 2
        self.write_buffer_size(available)
        rx = self._transfer(bytes([CMD_READ_EXTERNAL, 0x00]) + bytes(available))
        # the first two bytes are clocked in during the command and carry no data
        return self.distribute(rx[2:2 + available])

    def send_eth_frame(self, frame) -> None:
        """Write one Ethernet frame to the modem for transmission."""
        spi_frame = build_spi_frame(frame)
        eth_len = len(spi_frame) - 12
        log.debug("ETH will transmit: %s", bytes(frame).hex())
        self.write_buffer_size(eth_len + _FRAME_OVERHEAD)
        self._transfer(spi_frame)
        self.total_transmitted_bytes += eth_len