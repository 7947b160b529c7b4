"""
Tests for the shielded memo wire format.

Test plan:
- Plain text: ASCII round-trips through encode/decode, trailing zero
  padding stripped, interior zeros kept, 0xF4 still plain text
- Sentinels: 0xFF → unformatted, 0xF6..0xFE → reserved, never raising
- Typed frames: text type → typed text, unknown type → reserved,
  capacity overflow → MalformedFrame, truncated frame → MalformedFrame
- Encode asymmetry: raw content starting with a marker byte does not
  come back as plain text
- Size limits: encode rejects > 512 bytes, decode rejects > 512 bytes
- Hex transport: invalid hex → InvalidMemoHex
- Varints: known encodings, negative rejected
"""

import pytest

from zmsg.errors import ContentTooLarge, InvalidMemoHex, MalformedFrame
from zmsg.memo import (
    MEMO_SIZE,
    TEXT_TYPE_ID,
    DecodedMessage,
    MessageKind,
    decode_memo,
    decode_memo_hex,
    encode_memo,
    encode_memo_hex,
    encode_typed_frame,
    encode_varint,
    read_varint,
)


def _pad(memo: bytes) -> bytes:
    """Pad to full memo size the way the node reports it."""
    return memo + b"\x00" * (MEMO_SIZE - len(memo))


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------


class TestPlainText:
    @pytest.mark.parametrize(
        "content",
        [
            "hello",
            "a",
            "Meet at the usual place, 9pm.",
            "~" * 510,
            "x" * 510,
        ],
    )
    def test_ascii_round_trip(self, content: str) -> None:
        decoded = decode_memo(encode_memo(content))
        assert decoded.kind is MessageKind.PLAIN_TEXT
        assert decoded.content == content

    @pytest.mark.parametrize("content", ["hello", "~" * 510])
    def test_ascii_round_trip_through_padded_hex(self, content: str) -> None:
        memo_hex = encode_memo_hex(_pad(encode_memo(content)))
        decoded = decode_memo(decode_memo_hex(memo_hex))
        assert decoded.kind is MessageKind.PLAIN_TEXT
        assert decoded.content == content

    def test_utf8_round_trip(self) -> None:
        decoded = decode_memo(_pad(encode_memo("café ☕")))
        assert decoded.content == "café ☕"

    def test_trailing_zeros_stripped(self) -> None:
        assert decode_memo(b"hi\x00\x00\x00").content == "hi"

    def test_interior_zeros_kept(self) -> None:
        assert decode_memo(b"a\x00b\x00\x00").content == "a\x00b"

    def test_f4_is_plain_text(self) -> None:
        decoded = decode_memo(_pad(b"\xf4abc"))
        assert decoded.kind is MessageKind.PLAIN_TEXT
        assert decoded.content.endswith("abc")

    def test_all_zero_memo_is_empty_plain_text(self) -> None:
        decoded = decode_memo(b"\x00" * MEMO_SIZE)
        assert decoded.kind is MessageKind.PLAIN_TEXT
        assert decoded.content == ""

    def test_empty_buffer_is_empty_plain_text(self) -> None:
        assert decode_memo(b"") == DecodedMessage(MessageKind.PLAIN_TEXT)

    def test_plain_text_has_no_type_id(self) -> None:
        assert decode_memo(b"hello").type_id is None

    def test_plain_text_is_visible(self) -> None:
        assert decode_memo(b"hello").visible is True


# ---------------------------------------------------------------------------
# Sentinels
# ---------------------------------------------------------------------------


class TestUnformatted:
    def test_ff_is_unformatted(self) -> None:
        decoded = decode_memo(_pad(b"\xff"))
        assert decoded.kind is MessageKind.UNFORMATTED
        assert decoded.content == ""

    def test_ff_ignores_rest_of_buffer(self) -> None:
        decoded = decode_memo(b"\xff\xf5\xff\xff garbage")
        assert decoded.kind is MessageKind.UNFORMATTED
        assert decoded.content == ""

    def test_unformatted_not_visible(self) -> None:
        assert decode_memo(b"\xff").visible is False


class TestReserved:
    @pytest.mark.parametrize("first", range(0xF6, 0xFF))
    def test_reserved_range(self, first: int) -> None:
        decoded = decode_memo(_pad(bytes([first]) + b"future payload"))
        assert decoded.kind is MessageKind.RESERVED
        assert decoded.content == ""

    @pytest.mark.parametrize("first", range(0xF6, 0xFF))
    def test_reserved_never_raises_on_garbage(self, first: int) -> None:
        decoded = decode_memo(bytes([first]) + b"\xff" * (MEMO_SIZE - 1))
        assert decoded.kind is MessageKind.RESERVED

    def test_f7_is_reserved_not_malformed(self) -> None:
        """0xF7 and above skip silently instead of failing the memo."""
        assert decode_memo(_pad(b"\xf7")).kind is MessageKind.RESERVED

    def test_reserved_not_visible(self) -> None:
        assert decode_memo(b"\xf6").visible is False


# ---------------------------------------------------------------------------
# Typed frames
# ---------------------------------------------------------------------------


class TestTypedFrame:
    def test_text_frame(self) -> None:
        memo = b"\xf5" + encode_varint(0xA0) + encode_varint(5) + b"hello"
        decoded = decode_memo(memo)
        assert decoded.kind is MessageKind.TYPED_TEXT
        assert decoded.content == "hello"
        assert decoded.type_id == TEXT_TYPE_ID

    def test_text_frame_padded(self) -> None:
        memo = _pad(b"\xf5\xa0\x01\x05hello")
        decoded = decode_memo(memo)
        assert decoded.kind is MessageKind.TYPED_TEXT
        assert decoded.content == "hello"

    def test_payload_taken_exactly(self) -> None:
        memo = _pad(b"\xf5\xa0\x01\x03hello")
        assert decode_memo(memo).content == "hel"

    def test_unknown_type_is_reserved(self) -> None:
        memo = _pad(b"\xf5\x01\x03abc")
        decoded = decode_memo(memo)
        assert decoded.kind is MessageKind.RESERVED
        assert decoded.content == ""
        assert decoded.type_id == 1

    def test_multibyte_unknown_type_is_reserved(self) -> None:
        memo = _pad(b"\xf5" + encode_varint(70000) + encode_varint(2) + b"ok")
        decoded = decode_memo(memo)
        assert decoded.kind is MessageKind.RESERVED
        assert decoded.type_id == 70000

    def test_frame_filling_memo_exactly(self) -> None:
        # 1 + 2 (type) + 2 (length) + 507 = 512
        payload = b"x" * 507
        memo = b"\xf5" + encode_varint(TEXT_TYPE_ID) + encode_varint(507) + payload
        assert len(memo) == MEMO_SIZE
        assert decode_memo(memo).content == "x" * 507

    def test_declared_length_over_capacity(self) -> None:
        memo = _pad(b"\xf5" + encode_varint(TEXT_TYPE_ID) + encode_varint(509))
        with pytest.raises(MalformedFrame):
            decode_memo(memo)

    def test_over_capacity_with_unknown_type_still_malformed(self) -> None:
        memo = _pad(b"\xf5\x01" + encode_varint(600))
        with pytest.raises(MalformedFrame):
            decode_memo(memo)

    def test_declared_length_past_buffer_end(self) -> None:
        with pytest.raises(MalformedFrame):
            decode_memo(b"\xf5\xa0\x01\x0ahello")

    def test_truncated_varint(self) -> None:
        with pytest.raises(MalformedFrame):
            decode_memo(b"\xf5\x80")

    def test_missing_length(self) -> None:
        with pytest.raises(MalformedFrame):
            decode_memo(b"\xf5\xa0\x01")

    def test_typed_text_is_visible(self) -> None:
        assert decode_memo(b"\xf5\xa0\x01\x02hi").visible is True


class TestEncodeTypedFrame:
    def test_text_frame_bytes(self) -> None:
        assert encode_typed_frame(TEXT_TYPE_ID, b"hello") == b"\xf5\xa0\x01\x05hello"

    def test_decodes_back(self) -> None:
        frame = encode_typed_frame(TEXT_TYPE_ID, "\xff leading".encode("utf-8"))
        decoded = decode_memo(_pad(frame))
        assert decoded.kind is MessageKind.TYPED_TEXT
        assert decoded.content == "\xff leading"

    def test_too_large(self) -> None:
        with pytest.raises(ContentTooLarge):
            encode_typed_frame(TEXT_TYPE_ID, b"x" * 508)


# ---------------------------------------------------------------------------
# Encode asymmetry
# ---------------------------------------------------------------------------


class TestEncodeAsymmetry:
    """Encoding writes no tag byte, so marker-like content is misread.

    These pin the behavior down: it must not be "fixed" silently.
    """

    def test_f5_content_is_not_plain_text(self) -> None:
        memo = encode_memo(b"\xf5hello")
        assert memo == b"\xf5hello"
        try:
            decoded = decode_memo(memo)
        except MalformedFrame:
            return
        assert decoded.kind is not MessageKind.PLAIN_TEXT

    def test_f5_content_padded_reads_as_reserved(self) -> None:
        # 'h' (0x68) is taken as the type id, 'e' (0x65) as the length.
        decoded = decode_memo(_pad(encode_memo(b"\xf5hello")))
        assert decoded.kind is MessageKind.RESERVED
        assert decoded.type_id == ord("h")

    def test_f5_content_unpadded_is_malformed(self) -> None:
        with pytest.raises(MalformedFrame):
            decode_memo(encode_memo(b"\xf5hello"))

    def test_reserved_byte_content_is_skipped(self) -> None:
        decoded = decode_memo(_pad(encode_memo(b"\xf9hi there")))
        assert decoded.kind is MessageKind.RESERVED
        assert decoded.content == ""

    def test_ff_content_is_unformatted(self) -> None:
        decoded = decode_memo(_pad(encode_memo(b"\xffhi")))
        assert decoded.kind is MessageKind.UNFORMATTED

    def test_text_can_never_start_with_marker(self) -> None:
        """UTF-8 never produces a lead byte >= 0xF5, so str input is safe."""
        for char in ["\xf5", "\xff", "\U0010ffff", "ÿ"]:
            assert encode_memo(char)[0] < 0xF5


# ---------------------------------------------------------------------------
# Size limits
# ---------------------------------------------------------------------------


class TestSizeLimits:
    def test_exactly_512_accepted(self) -> None:
        assert len(encode_memo("a" * MEMO_SIZE)) == MEMO_SIZE

    def test_513_rejected(self) -> None:
        with pytest.raises(ContentTooLarge) as excinfo:
            encode_memo("a" * (MEMO_SIZE + 1))
        assert excinfo.value.size == 513
        assert excinfo.value.limit == MEMO_SIZE

    def test_multibyte_counted_in_bytes(self) -> None:
        with pytest.raises(ContentTooLarge):
            encode_memo("é" * 257)  # 514 bytes

    def test_encode_does_not_pad(self) -> None:
        assert encode_memo("hi") == b"hi"

    def test_decode_rejects_oversized_buffer(self) -> None:
        with pytest.raises(MalformedFrame):
            decode_memo(b"a" * (MEMO_SIZE + 1))


# ---------------------------------------------------------------------------
# Hex transport
# ---------------------------------------------------------------------------


class TestHex:
    def test_encode_hex(self) -> None:
        assert encode_memo_hex(b"hi") == "6869"

    def test_decode_hex(self) -> None:
        assert decode_memo_hex("6869") == b"hi"

    def test_decode_hex_uppercase(self) -> None:
        assert decode_memo_hex("F6") == b"\xf6"

    @pytest.mark.parametrize("bad", ["zz", "abc", "68 6g"])
    def test_invalid_hex(self, bad: str) -> None:
        with pytest.raises(InvalidMemoHex):
            decode_memo_hex(bad)


# ---------------------------------------------------------------------------
# Varints
# ---------------------------------------------------------------------------


class TestVarint:
    @pytest.mark.parametrize(
        ("value", "encoded"),
        [
            (0, b"\x00"),
            (5, b"\x05"),
            (127, b"\x7f"),
            (128, b"\x80\x01"),
            (0xA0, b"\xa0\x01"),
            (300, b"\xac\x02"),
        ],
    )
    def test_known_encodings(self, value: int, encoded: bytes) -> None:
        assert encode_varint(value) == encoded
        assert read_varint(encoded, 0) == (value, len(encoded))

    def test_read_from_offset(self) -> None:
        assert read_varint(b"\xff\xac\x02\x07", 1) == (300, 3)

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError):
            encode_varint(-1)

    def test_truncated(self) -> None:
        with pytest.raises(MalformedFrame):
            read_varint(b"\x80\x80", 0)
