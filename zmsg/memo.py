"""
Shielded memo wire format.

A memo is a fixed 512-byte field. The node hands it to us hex-encoded;
trailing zero bytes are padding. The first byte selects the framing:

    0x00..0xF4   legacy plain text — the whole buffer, zeros stripped
                 from the right, is the message
    0xF5         typed frame:
                     0xF5 || varint(type_id) || varint(length) || payload
                 type_id 0xA0 is UTF-8 text; anything else is skipped
    0xF6..0xFE   reserved for future use — skipped, never an error
    0xFF         "no memo" sentinel — skipped

Varints are base-128, least significant group first, high bit set on
every byte except the last.

Encoding emits the raw content bytes with no tag byte, matching the
legacy plain-text framing. Content whose first byte is >= 0xF5 will
therefore come back as a typed or reserved frame on the receiving
side. That asymmetry is part of the format and is kept as-is; callers
that need to send such content can use ``encode_typed_frame``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from zmsg.errors import ContentTooLarge, InvalidMemoHex, MalformedFrame

# Memo field capacity in bytes.
MEMO_SIZE = 512

# First-byte markers.
TYPED_FRAME = 0xF5
RESERVED_MIN = 0xF6
RESERVED_MAX = 0xFE
UNFORMATTED = 0xFF

# Typed-frame type id for UTF-8 text.
TEXT_TYPE_ID = 0xA0


class MessageKind(str, Enum):
    """What a memo decoded to."""

    PLAIN_TEXT = "plain_text"
    TYPED_TEXT = "typed_text"
    UNFORMATTED = "unformatted"
    RESERVED = "reserved"


@dataclass(frozen=True)
class DecodedMessage:
    """Result of decoding one memo.

    Attributes:
        kind: Framing the memo used.
        content: Message text. Empty for unformatted and reserved memos.
        type_id: Type id from a typed frame, None for other framings.
    """

    kind: MessageKind
    content: str = ""
    type_id: int | None = None

    @property
    def visible(self) -> bool:
        """Whether this memo carries a message a user should see."""
        return self.kind in (MessageKind.PLAIN_TEXT, MessageKind.TYPED_TEXT)


# =========================================================================
# Varints
# =========================================================================


def encode_varint(value: int) -> bytes:
    """Encode a non-negative integer as a base-128 varint."""
    if value < 0:
        raise ValueError(f"varint must be non-negative, got {value}")
    out = bytearray()
    while True:
        group = value & 0x7F
        value >>= 7
        if value:
            out.append(group | 0x80)
        else:
            out.append(group)
            return bytes(out)


def read_varint(buf: bytes, offset: int) -> tuple[int, int]:
    """Read a varint from ``buf`` starting at ``offset``.

    Returns:
        (value, offset of the first byte after the varint)

    Raises:
        MalformedFrame: If the buffer ends before the last group.
    """
    value = 0
    shift = 0
    pos = offset
    while pos < len(buf):
        byte = buf[pos]
        pos += 1
        value |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return value, pos
        shift += 7
    raise MalformedFrame(
        "truncated varint in typed memo frame",
        details={"offset": offset},
    )


# =========================================================================
# Encoding
# =========================================================================


def encode_memo(content: str | bytes) -> bytes:
    """Encode message text as memo bytes (legacy plain-text framing).

    Args:
        content: Message text, or raw bytes to send untouched. UTF-8
            text never starts with a byte >= 0xF5; raw bytes can.

    Returns:
        The content bytes, unpadded.

    Raises:
        ContentTooLarge: If the encoded text exceeds MEMO_SIZE bytes.
    """
    raw = content if isinstance(content, bytes) else content.encode("utf-8")
    if len(raw) > MEMO_SIZE:
        raise ContentTooLarge(len(raw), MEMO_SIZE)
    return raw


def encode_typed_frame(type_id: int, payload: bytes) -> bytes:
    """Build a 0xF5 typed frame around ``payload``.

    Raises:
        ContentTooLarge: If the frame exceeds MEMO_SIZE bytes.
    """
    frame = bytes([TYPED_FRAME]) + encode_varint(type_id) + encode_varint(len(payload)) + payload
    if len(frame) > MEMO_SIZE:
        raise ContentTooLarge(len(frame), MEMO_SIZE)
    return frame


def encode_memo_hex(memo: bytes) -> str:
    """Hex-encode memo bytes for the node's transfer call."""
    return memo.hex()


def decode_memo_hex(memo_hex: str) -> bytes:
    """Decode the hex memo string reported by the node.

    Raises:
        InvalidMemoHex: If the string is not valid hex.
    """
    try:
        return bytes.fromhex(memo_hex)
    except (ValueError, TypeError) as exc:
        raise InvalidMemoHex(
            f"memo is not valid hex: {exc}",
            details={"memo_hex": str(memo_hex)[:32]},
        ) from exc


# =========================================================================
# Decoding
# =========================================================================


def decode_memo(memo: bytes) -> DecodedMessage:
    """Decode memo bytes into a DecodedMessage.

    Total over every first byte: reserved and sentinel values decode
    to skip kinds rather than errors.

    Raises:
        MalformedFrame: If the buffer is over capacity, or a typed frame
            declares more bytes than the memo holds.
    """
    if len(memo) > MEMO_SIZE:
        raise MalformedFrame(
            f"memo is {len(memo)} bytes, capacity is {MEMO_SIZE}",
            details={"size": len(memo)},
        )
    if not memo:
        return DecodedMessage(MessageKind.PLAIN_TEXT)

    first = memo[0]
    if first == UNFORMATTED:
        return DecodedMessage(MessageKind.UNFORMATTED)
    if RESERVED_MIN <= first <= RESERVED_MAX:
        return DecodedMessage(MessageKind.RESERVED)
    if first == TYPED_FRAME:
        return _decode_typed_frame(memo)
    return DecodedMessage(
        MessageKind.PLAIN_TEXT,
        memo.rstrip(b"\x00").decode("utf-8", errors="replace"),
    )


def _decode_typed_frame(memo: bytes) -> DecodedMessage:
    type_id, pos = read_varint(memo, 1)
    length, pos = read_varint(memo, pos)

    # pos == 1 + sizeof(type_id) + sizeof(length)
    if pos + length > MEMO_SIZE:
        raise MalformedFrame(
            f"typed frame declares {length} payload bytes, "
            f"exceeding memo capacity of {MEMO_SIZE}",
            details={"type_id": type_id, "length": length},
        )
    if pos + length > len(memo):
        raise MalformedFrame(
            f"typed frame declares {length} payload bytes, "
            f"only {len(memo) - pos} present",
            details={"type_id": type_id, "length": length},
        )

    if type_id != TEXT_TYPE_ID:
        return DecodedMessage(MessageKind.RESERVED, type_id=type_id)
    payload = memo[pos : pos + length]
    return DecodedMessage(
        MessageKind.TYPED_TEXT,
        payload.decode("utf-8", errors="replace"),
        type_id=type_id,
    )
