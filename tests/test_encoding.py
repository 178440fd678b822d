"""Tests for wasmsnip.encoding — LEB128 and name codecs."""

import pytest

from wasmsnip.encoding import ByteReader, encode_name, encode_varuint
from wasmsnip.errors import ParseError

# -------------------------------------------------------------------------
# ByteReader
# -------------------------------------------------------------------------


class TestReadVaruint:
    def test_single_byte(self) -> None:
        assert ByteReader(b"\x05").read_varuint() == 5

    def test_multi_byte(self) -> None:
        r = ByteReader(b"\xe5\x8e\x26")
        assert r.read_varuint() == 624485
        assert r.at_end()

    def test_padded_form(self) -> None:
        """LLVM pads section sizes to five bytes; the value is unaffected."""
        r = ByteReader(b"\x83\x80\x80\x80\x00")
        assert r.read_varuint() == 3
        assert r.pos == 5

    def test_truncated(self) -> None:
        with pytest.raises(ParseError, match="unexpected end"):
            ByteReader(b"\x80\x80").read_varuint()

    def test_too_long(self) -> None:
        with pytest.raises(ParseError, match="too long"):
            ByteReader(b"\x80\x80\x80\x80\x80\x00").read_varuint()

    def test_out_of_range(self) -> None:
        with pytest.raises(ParseError, match="out of range"):
            ByteReader(b"\xff\xff\xff\xff\x7f").read_varuint()

    def test_varuint64(self) -> None:
        r = ByteReader(b"\xff\xff\xff\xff\x7f")
        assert r.read_varuint(64) == 0x7_FFFF_FFFF

    def test_error_offset_includes_base(self) -> None:
        r = ByteReader(b"", base=0x20)
        with pytest.raises(ParseError) as exc_info:
            r.read_varuint()
        assert exc_info.value.offset == 0x20


class TestReadVarint:
    def test_positive(self) -> None:
        assert ByteReader(b"\xe4\x00").read_varint() == 100

    def test_negative_one(self) -> None:
        assert ByteReader(b"\x7f").read_varint() == -1

    def test_heap_type_funcref(self) -> None:
        # abstract heap type `func` encodes as 0x70 == -16 in s33
        assert ByteReader(b"\x70").read_varint(33) == -16


class TestReadName:
    def test_utf8(self) -> None:
        r = ByteReader(b"\x05" + "café".encode())
        assert r.read_name() == "café"

    def test_truncated(self) -> None:
        with pytest.raises(ParseError):
            ByteReader(b"\x05abc").read_name()

    def test_invalid_utf8(self) -> None:
        with pytest.raises(ParseError, match="UTF-8"):
            ByteReader(b"\x02\xff\xfe").read_name()


class TestReadBytes:
    def test_exact(self) -> None:
        r = ByteReader(b"abcdef")
        assert r.read_bytes(3) == b"abc"
        assert r.remaining() == 3

    def test_overrun(self) -> None:
        with pytest.raises(ParseError):
            ByteReader(b"ab").read_bytes(3)

    def test_expect_end(self) -> None:
        r = ByteReader(b"ab")
        r.read_byte()
        with pytest.raises(ParseError, match="trailing"):
            r.expect_end("thing")


# -------------------------------------------------------------------------
# Encoders
# -------------------------------------------------------------------------


class TestEncodeVaruint:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0, b"\x00"), (127, b"\x7f"), (128, b"\x80\x01"), (624485, b"\xe5\x8e\x26")],
    )
    def test_minimal(self, value: int, expected: bytes) -> None:
        assert encode_varuint(value) == expected

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError):
            encode_varuint(-1)


def test_encode_name() -> None:
    assert encode_name("name") == b"\x04name"
    assert encode_name("") == b"\x00"
