"""Vehicle-side CCS charging building blocks: EXI bit streams and decoding, TCP, QCA7000 framing and peripherals."""

__version__ = "0.1.0"