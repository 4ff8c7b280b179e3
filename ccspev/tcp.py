"""Minimal TCP client for the vehicle side of a charging session over IPv6."""

from __future__ import annotations

import enum
import logging
import struct
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .checksum import udp_tcp_checksum

log = logging.getLogger(__name__)

NEXT_HEADER_TCP = 0x06
ETHERTYPE_IPV6 = b"\x86\xdd"

FLAG_SYN = 0x02
FLAG_RST = 0x04
FLAG_PSH = 0x08
FLAG_ACK = 0x10

TRANSMIT_PACKET_LEN = 200
RX_DATA_LEN = 200
ACK_TIMEOUT_MS = 100
MAX_RETRANSMISSIONS = 40
RECEIVE_WINDOW = 1000
HOP_LIMIT = 0x0A
INITIAL_SEQUENCE_NUMBER = 200

FIRST_PORT = 60000
LAST_PORT = 65000

CONNLEVEL_SDP_DONE = 50

# options of the connection request: MSS 1440, window scale 8, SACK permitted
SYN_OPTIONS = bytes([0x02, 0x04, 0x05, 0xA0, 0x01, 0x03, 0x03, 0x08, 0x01, 0x01, 0x04, 0x02])

_HEADER = struct.Struct(">HHIIBBHHH")
_IP_FIXED = struct.Struct(">BBBBHBB")
_UINT32 = 0xFFFFFFFF

# offsets inside a received Ethernet frame carrying IPv6 and TCP
_OFS_IP_PAYLOAD_LEN = 18
_OFS_TCP = 54
_OFS_TCP_PAYLOAD = _OFS_TCP + 20
_MIN_FRAME_LEN = _OFS_TCP + 14


class TcpState(enum.Enum):
    """Connection states of the client."""

    CLOSED = 0
    SYN_SENT = 1
    ESTABLISHED = 2


@dataclass
class TcpEndpoints:
    """Addresses and ports of both ends of the connection."""

    evcc_ip: bytes
    secc_ip: bytes
    our_mac: bytes
    evse_mac: bytes
    evcc_port: int
    secc_port: int

    def __post_init__(self) -> None:
        self.evcc_ip = bytes(self.evcc_ip)
        self.secc_ip = bytes(self.secc_ip)
        self.our_mac = bytes(self.our_mac)
        self.evse_mac = bytes(self.evse_mac)
        for name, value, size in (
            ("evcc_ip", self.evcc_ip, 16),
            ("secc_ip", self.secc_ip, 16),
            ("our_mac", self.our_mac, 6),
            ("evse_mac", self.evse_mac, 6),
        ):
            if len(value) != size:
                raise ValueError(f"{name} must be {size} bytes, got {len(value)}")


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class TcpClient:
    """Opens one TCP connection to the charger and exchanges data over it.

    ``send_frame`` receives every complete Ethernet frame to transmit,
    ``clock`` returns the current time in milliseconds, and
    ``on_connection_ok`` is called whenever the connection shows signs of life.
    """

    def __init__(
        self,
        endpoints: TcpEndpoints,
        send_frame: Callable[[bytes], None],
        clock: Optional[Callable[[], int]] = None,
        on_connection_ok: Optional[Callable[[], None]] = None,
    ) -> None:
        self.endpoints = endpoints
        self._send_frame = send_frame
        self._clock = clock if clock is not None else _monotonic_ms
        self._on_connection_ok = on_connection_ok
        self.state = TcpState.CLOSED
        self.seq_nr = INITIAL_SEQUENCE_NUMBER
        self.ack_nr = 0
        self.packets_received = 0
        self.total_retries = 0
        self._rx_data = b""
        self._last_ip_packet = b""
        self._last_unacked_time: Optional[int] = None
        self._retries_left = 0

    # -- sending -----------------------------------------------------------

    def _send_ethernet(self, ip_packet: bytes) -> None:
        ep = self.endpoints
        self._send_frame(ep.evse_mac + ep.our_mac + ETHERTYPE_IPV6 + ip_packet)

    def _send_segment(self, flags: int, options: bytes = b"", payload: bytes = b"") -> None:
        ep = self.endpoints
        header_len = 20 + len(options)
        header = _HEADER.pack(
            ep.evcc_port,
            ep.secc_port,
            self.seq_nr & _UINT32,
            self.ack_nr & _UINT32,
            (header_len // 4) << 4,
            flags,
            RECEIVE_WINDOW,
            0,
            0,
        )
        segment = bytearray(header + options + payload)
        checksum = udp_tcp_checksum(segment, ep.evcc_ip, ep.secc_ip, NEXT_HEADER_TCP)
        segment[16:18] = checksum.to_bytes(2, "big")
        ip_header = _IP_FIXED.pack(0x60, 0, 0, 0, len(segment), NEXT_HEADER_TCP, HOP_LIMIT)
        self._last_ip_packet = ip_header + ep.evcc_ip + ep.secc_ip + bytes(segment)
        self._send_ethernet(self._last_ip_packet)

    def _connection_ok(self) -> None:
        if self._on_connection_ok is not None:
            self._on_connection_ok()

    def connect(self) -> None:
        """Send the connection request and wait for the answer."""
        log.debug("[TCP] connecting")
        self._send_segment(FLAG_SYN, options=SYN_OPTIONS)
        self.state = TcpState.SYN_SENT

    def transmit(self, payload) -> bool:
        """Send ``payload`` as one data segment; return False if not connected.

        Raises ValueError if the payload does not fit into one segment.
        """
        if self.state is not TcpState.ESTABLISHED:
            return False
        payload = bytes(payload)
        if len(payload) + 20 >= TRANSMIT_PACKET_LEN:
            raise ValueError("payload and header do not fit into one TCP packet")
        log.debug("TCP will transmit %s", payload.hex())
        self._send_segment(FLAG_PSH | FLAG_ACK, payload=payload)
        self._last_unacked_time = self._clock()
        self._retries_left = MAX_RETRANSMISSIONS
        return True

    def _send_ack(self) -> None:
        self._send_segment(FLAG_ACK)

    # -- receiving ---------------------------------------------------------

    def evaluate_packet(self, frame) -> None:
        """Process one received Ethernet frame carrying IPv6 and TCP."""
        frame = bytes(frame)
        if len(frame) < _MIN_FRAME_LEN:
            raise ValueError(f"frame of {len(frame)} bytes is too short for a TCP header")
        self.packets_received += 1
        ip_payload_len = int.from_bytes(frame[_OFS_IP_PAYLOAD_LEN:_OFS_IP_PAYLOAD_LEN + 2], "big")
        header_len = (frame[_OFS_TCP + 12] >> 4) * 4
        payload_len = max(ip_payload_len - header_len, 0)

        source_port, destination_port, remote_seq, remote_ack = struct.unpack_from(">HHII", frame, _OFS_TCP)
        if source_port != self.endpoints.secc_port or destination_port != self.endpoints.evcc_port:
            log.debug("[TCP] wrong port %d %d", source_port, destination_port)
            return

        flags = frame[_OFS_TCP + 13]
        if flags == FLAG_SYN | FLAG_ACK:
            if self.state is TcpState.SYN_SENT:
                self.seq_nr = remote_ack
                self.ack_nr = (remote_seq + 1) & _UINT32
                self.state = TcpState.ESTABLISHED
                self._send_ack()
                self._connection_ok()
                log.debug("[TCP] connected")
            return

        if self.state is not TcpState.ESTABLISHED:
            log.debug("[TCP] ignore, not connected")
            return

        if 0 < payload_len < RX_DATA_LEN:
            self._rx_data = frame[_OFS_TCP_PAYLOAD:_OFS_TCP_PAYLOAD + payload_len]
            self._connection_ok()
            self.ack_nr = (remote_seq + len(self._rx_data)) & _UINT32
            self._send_ack()
            log.debug("Data received: %s", self._rx_data.hex())

        if flags & FLAG_ACK:
            self.packets_received += 1000
            self.seq_nr = remote_ack
            self._last_unacked_time = None
            self._retries_left = 0

    def take_received(self) -> bytes:
        """Return the last received payload and mark it consumed; empty if none."""
        data, self._rx_data = self._rx_data, b""
        return data

    # -- connection handling -----------------------------------------------

    def reset(self) -> None:
        """Abort an open connection with a reset segment."""
        if self.state is not TcpState.CLOSED:
            self.ack_nr = 0
            self._send_segment(FLAG_RST)
            self.state = TcpState.CLOSED

    def disconnect(self) -> None:
        """Forget the connection without telling the peer."""
        self.state = TcpState.CLOSED

    def is_closed(self) -> bool:
        return self.state is TcpState.CLOSED

    def is_connected(self) -> bool:
        return self.state is TcpState.ESTABLISHED

    def mainfunction(self, connection_level: int) -> None:
        """Cyclic handling: retransmissions and connection setup or teardown."""
        if self._last_unacked_time is not None and self._clock() - self._last_unacked_time > ACK_TIMEOUT_MS:
            if self._retries_left > 0:
                self._send_ethernet(self._last_ip_packet)
                self.total_retries += 1
                self._last_unacked_time = self._clock()
                self._retries_left -= 1
                log.debug("[TCP] last packet was not acknowledged, retransmitting")
            else:
                log.debug("[TCP] giving up the retry")

        if connection_level < CONNLEVEL_SDP_DONE:
            self._last_unacked_time = None
            self.reset()
            return

        if connection_level == CONNLEVEL_SDP_DONE and self.state is TcpState.CLOSED:
            self.endpoints.evcc_port += 1
            if self.endpoints.evcc_port > LAST_PORT:
                self.endpoints.evcc_port = FIRST_PORT
            self.connect()