# ccspev

Pure-Python building blocks for the vehicle side of a CCS charging session.
The package has no third-party dependencies and never touches hardware
itself: every part that would talk to a device takes a callable you supply,
so everything can be driven from tests or simulations.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

| Module | Contents |
| --- | --- |
| `ccspev.checksum` | `udp_tcp_checksum()`: the one's-complement UDP/TCP checksum over an IPv6 pseudo header |
| `ccspev.bitstream` | `BitReader` and `BitWriter`, most-significant-bit-first bit streams over bytes; `ExiError`, `InputStreamEOFError`, `OutputStreamEOFError` |
| `ccspev.exi_header` | `read_exi_header()` and `write_exi_header()` for the simple EXI header byte; `UnsupportedHeaderError` |
| `ccspev.exi_integers` | `IntegerDecoder` for EXI booleans, n-bit values and variable-length integers; `ExiInteger`, `IntegerKind`, `UnsupportedValueError`, `BufferOverflowError` |
| `ccspev.exi_decoder` | `ExiDecoder` (an `IntegerDecoder`) for floats, decimals, strings, restricted-character-set strings, binary data and date-times; `ExiFloat`, `ExiDecimal`, `ExiDateTime`, `DateTimeType`, `InvalidCharacterError` |
| `ccspev.tcp` | `TcpClient`, a minimal TCP-over-IPv6 client with retransmission; `TcpState`, `TcpEndpoints` |
| `ccspev.qca7000` | QCA7000 SPI framing: `build_spi_frame()`, `split_spi_frames()`, `ether_type()` and the `Qca7000` driver |
| `ccspev.temperatures` | `ohm_to_celsius()`, `adc_to_celsius()`, `derate_current()`, `calculate_temperatures()` and `TemperatureReport` |
| `ccspev.pushbutton` | `Pushbutton`: long-press detection and four-digit codes entered as series of presses |
| `ccspev.wakecontrol` | `WakeControl`: the keep-power-on output and when the board may sleep |

## Examples

Bit streams and the EXI header:

```python
from ccspev.bitstream import BitReader, BitWriter
from ccspev.exi_header import read_exi_header, write_exi_header

writer = BitWriter(16)
write_exi_header(writer)
writer.write_bits(3, 0b101)
writer.flush()
data = writer.getvalue()          # b"\x80\xa0"

reader = BitReader(data)
read_exi_header(reader)           # 0x80
assert reader.read_bits(3) == 0b101
```

Decoding an EXI unsigned integer:

```python
from ccspev.bitstream import BitReader
from ccspev.exi_integers import IntegerDecoder, IntegerKind

decoder = IntegerDecoder(BitReader(bytes([0x96, 0x01])))
value = decoder.decode_unsigned()
assert value.value == 150 and value.kind is IntegerKind.UNSIGNED_16
```

Opening a TCP connection; every Ethernet frame goes to the callable you pass:

```python
from ccspev.tcp import TcpClient, TcpEndpoints, TcpState

sent = []
endpoints = TcpEndpoints(
    evcc_ip=bytes(16),
    secc_ip=bytes(16),
    our_mac=bytes.fromhex("020000000001"),
    evse_mac=bytes.fromhex("020000000002"),
    evcc_port=60000,
    secc_port=15118,
)
client = TcpClient(endpoints, sent.append, clock=lambda: 0)
client.connect()
assert client.state is TcpState.SYN_SENT
```

Framing an Ethernet frame for the modem:

```python
from ccspev.qca7000 import build_spi_frame

spi_bytes = build_spi_frame(bytes(60))   # 72 bytes: command, start of frame, length, frame, end of frame
```

Temperature derating:

```python
from ccspev.temperatures import derate_current

derate_current(max_temperature=75.0, max_pin_temperature=80.0, charge_current=100.0)   # 50.0
```

## Errors

Errors are raised as exceptions: reading past the end of a `BitReader` raises
`InputStreamEOFError`, writing past the size of a `BitWriter` raises
`OutputStreamEOFError`, an EXI header with a cookie or options raises
`UnsupportedHeaderError`, and the EXI decoders raise `UnsupportedValueError`,
`BufferOverflowError` or `InvalidCharacterError`. Bad arguments raise
`ValueError`.

## What the package does not do

- It has no charging-session state machine and no message-level EXI
  encoder or decoder for V2G documents; only the bit streams, the header and
  the primitive EXI value decoders are included.
- It does not perform SLAC, HomePlug or neighbour discovery handling;
  `Qca7000` only hands received HomePlug and IPv6 frames to your callbacks.
- It does not access SPI, GPIO or ADC hardware; you supply the transfer
  function, the output callback and the sampled values.
- It provides no command-line program.