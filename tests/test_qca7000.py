import pytest

from ccspev.qca7000 import (
    ETH_RECEIVE_BUFFER_LEN,
    Qca7000,
    build_spi_frame,
    ether_type,
    split_spi_frames,
)

DEST = bytes([0x02, 0, 0, 0, 0, 0x01])
SRC = bytes([0x02, 0, 0, 0, 0, 0x02])


def eth(ethertype: int, payload_len: int = 46, fill: int = 0x11) -> bytes:
    return DEST + SRC + ethertype.to_bytes(2, "big") + bytes([fill]) * payload_len


def received(frame: bytes) -> bytes:
    """Data as the modem delivers it: outer length, then the framed payload."""
    inner = build_spi_frame(frame)[2:]
    return len(inner).to_bytes(4, "big") + inner


class FakeSpi:
    def __init__(self, available: int = 0, rx_data: bytes = b"", signature: int = 0):
        self.available = available
        self.rx_data = rx_data
        self.signature = signature
        self.sent = []

    def __call__(self, tx: bytes) -> bytes:
        self.sent.append(bytes(tx))
        if tx[0] == 0xC3:
            return b"\x00\x00" + self.available.to_bytes(2, "big")
        if tx[0] == 0xDA:
            return b"\x00\x00" + self.signature.to_bytes(2, "big")
        if tx[0] == 0x80:
            body = self.rx_data[: len(tx) - 2]
            return b"\x00\x00" + body + bytes(len(tx) - 2 - len(body))
        return bytes(len(tx))


def test_ether_type():
    assert ether_type(eth(0x88E1)) == 0x88E1
    assert ether_type(eth(0x86DD)) == 0x86DD


def test_ether_type_short_frame():
    with pytest.raises(ValueError):
        ether_type(b"\x00" * 10)


def test_build_spi_frame_wire_layout():
    frame = bytes(range(60))
    spi = build_spi_frame(frame)
    assert spi[:10] == bytes([0x00, 0x00, 0xAA, 0xAA, 0xAA, 0xAA, 0x3C, 0x00, 0x00, 0x00])
    assert spi[10:70] == frame
    assert spi[-2:] == b"\x55\x55"
    assert len(spi) == len(frame) + 12


def test_build_spi_frame_too_long():
    with pytest.raises(ValueError):
        build_spi_frame(bytes(251))


def test_split_round_trip_single():
    frame = eth(0x88E1)
    assert list(split_spi_frames(received(frame))) == [frame]


def test_split_two_frames():
    a = eth(0x88E1, fill=0x01)
    b = eth(0x86DD, fill=0x02)
    assert list(split_spi_frames(received(a) + received(b))) == [a, b]


def test_split_stops_on_inconsistent_length():
    data = bytearray(received(eth(0x88E1)))
    data[3] ^= 0x01
    assert list(split_spi_frames(bytes(data))) == []


def test_split_truncates_long_payload():
    payload = bytes(300)
    inner = b"\xaa" * 4 + len(payload).to_bytes(2, "little") + b"\x00\x00" + payload + b"\x55\x55"
    data = len(inner).to_bytes(4, "big") + inner
    frames = list(split_spi_frames(data))
    assert len(frames) == 1
    assert len(frames[0]) == ETH_RECEIVE_BUFFER_LEN


def test_read_signature():
    modem = Qca7000(FakeSpi(signature=0xAA55))
    assert modem.read_signature() == 0xAA55


def test_write_buffer_size_command():
    spi = FakeSpi()
    Qca7000(spi).write_buffer_size(0x0146)
    assert spi.sent == [bytes([0x41, 0x00, 0x01, 0x46])]


def test_distribute_dispatches_by_ethertype():
    homeplug, ipv6 = [], []
    modem = Qca7000(FakeSpi(), on_homeplug=homeplug.append, on_ipv6=ipv6.append)
    hp, ip, other = eth(0x88E1), eth(0x86DD), eth(0x0800)
    count = modem.distribute(received(hp) + received(ip) + received(other))
    assert count == 3
    assert homeplug == [hp]
    assert ipv6 == [ip]


def test_check_for_received_data_fetches_and_dispatches():
    frame = eth(0x86DD)
    data = received(frame)
    spi = FakeSpi(available=len(data), rx_data=data)
    ipv6 = []
    modem = Qca7000(spi, on_ipv6=ipv6.append)
    assert modem.check_for_received_data() == 1
    assert ipv6 == [frame]
    assert spi.sent[1] == bytes([0x41, 0x00]) + len(data).to_bytes(2, "big")
    assert spi.sent[2][:2] == bytes([0x80, 0x00])
    assert len(spi.sent[2]) == len(data) + 2


def test_check_for_received_data_nothing_waiting():
    spi = FakeSpi(available=0)
    assert Qca7000(spi).check_for_received_data() == 0
    assert len(spi.sent) == 1


def test_check_for_received_data_ignores_implausible_amount():
    spi = FakeSpi(available=5000)
    assert Qca7000(spi).check_for_received_data() == 0
    assert len(spi.sent) == 1


def test_check_for_received_data_limits_read_size():
    spi = FakeSpi(available=3000)
    Qca7000(spi).check_for_received_data()
    assert spi.sent[1] == bytes([0x41, 0x00]) + (1098).to_bytes(2, "big")
    assert len(spi.sent[2]) == 1100


def test_send_eth_frame():
    spi = FakeSpi()
    modem = Qca7000(spi)
    frame = bytes(range(60))
    modem.send_eth_frame(frame)
    assert spi.sent[0] == bytes([0x41, 0x00, 0x00, 0x46])
    assert spi.sent[1] == build_spi_frame(frame)
    assert modem.total_transmitted_bytes == len(frame)