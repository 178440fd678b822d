"""Primitive codecs for the WebAssembly binary format.

All integers in the container are LEB128-encoded and all names are
length-prefixed UTF-8.  :class:`ByteReader` walks a ``bytes`` buffer and
raises :class:`~wasmsnip.errors.ParseError` with the absolute file offset on
any truncation or malformed value, so callers never see ``IndexError``.
"""

from __future__ import annotations

from wasmsnip.errors import ParseError

# Maximum encoded length of a varuint32 / varuint64.
_MAX_LEB_BYTES = {32: 5, 64: 10}


class ByteReader:
    """Cursor over a byte buffer.

    ``base`` is the absolute offset of ``data[0]`` in the original file, used
    only to make error messages point at the right place.
    """

    def __init__(self, data: bytes, base: int = 0) -> None:
        self.data = data
        self.pos = 0
        self.base = base

    @property
    def offset(self) -> int:
        return self.base + self.pos

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def remaining(self) -> int:
        return len(self.data) - self.pos

    def fail(self, msg: str) -> ParseError:
        return ParseError(msg, self.offset)

    def read_byte(self) -> int:
        if self.pos >= len(self.data):
            raise self.fail("unexpected end of data")
        byte = self.data[self.pos]
        self.pos += 1
        return byte

    def read_bytes(self, n: int) -> bytes:
        if n < 0 or self.pos + n > len(self.data):
            raise self.fail(f"unexpected end of data reading {n} bytes")
        chunk = self.data[self.pos : self.pos + n]
        self.pos += n
        return chunk

    def read_varuint(self, bits: int = 32) -> int:
        start = self.offset
        result = 0
        shift = 0
        for _ in range(_MAX_LEB_BYTES[bits]):
            byte = self.read_byte()
            result |= (byte & 0x7F) << shift
            if byte & 0x80 == 0:
                if result >> bits:
                    raise ParseError(f"varuint{bits} out of range", start)
                return result
            shift += 7
        raise ParseError(f"varuint{bits} is too long", start)

    def read_varint(self, bits: int = 33) -> int:
        start = self.offset
        result = 0
        shift = 0
        max_bytes = (bits + 6) // 7
        for _ in range(max_bytes):
            byte = self.read_byte()
            result |= (byte & 0x7F) << shift
            shift += 7
            if byte & 0x80 == 0:
                if byte & 0x40:
                    result -= 1 << shift
                return result
        raise ParseError(f"varint{bits} is too long", start)

    def read_name(self) -> str:
        start = self.offset
        length = self.read_varuint()
        raw = self.read_bytes(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"invalid UTF-8 in name: {e.reason}", start) from e

    def expect_end(self, what: str) -> None:
        if not self.at_end():
            raise self.fail(f"{what} has {self.remaining()} trailing byte(s)")


def encode_varuint(value: int) -> bytes:
    """Encode *value* as minimal unsigned LEB128."""
    if value < 0:
        raise ValueError(f"cannot LEB128-encode negative value {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def encode_name(name: str) -> bytes:
    raw = name.encode("utf-8")
    return encode_varuint(len(raw)) + raw
