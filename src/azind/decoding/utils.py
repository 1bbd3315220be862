"""Decoding utilities: topic reinterpretation and ABI word access."""

from __future__ import annotations

from azind.core.errors import MalformedPayloadError

WORD = 32


def topic_bytes(topic_hex: str | None, *, what: str = "topic") -> bytes:
    """Return the 32 raw bytes of a 0x-hex topic."""
    if topic_hex is None:
        raise MalformedPayloadError(f"missing {what}")
    h = topic_hex[2:] if topic_hex.lower().startswith("0x") else topic_hex
    try:
        raw = bytes.fromhex(h)
    except ValueError as e:
        raise MalformedPayloadError(f"{what} is not hex: {topic_hex!r}") from e
    if len(raw) != WORD:
        raise MalformedPayloadError(f"{what} must be {WORD} bytes, got {len(raw)}")
    return raw


def topic_to_uint32(topic_hex: str | None, *, what: str = "topic") -> int:
    """Low 4 bytes of a topic, big-endian."""
    return int.from_bytes(topic_bytes(topic_hex, what=what)[-4:], "big")


def topic_to_azimuth_number(topic_hex: str | None, *, what: str = "topic") -> int:
    """Identity number carried in a topic (a uint32)."""
    return topic_to_uint32(topic_hex, what=what)


def topic_to_address(topic_hex: str | None, *, what: str = "topic") -> str:
    """Low 20 bytes of a topic as a lowercase 0x-address."""
    return "0x" + topic_bytes(topic_hex, what=what)[-20:].hex()


def word_at(data: bytes, i: int) -> bytes:
    """Return the i-th 32-byte ABI word (zero-padded if out-of-range)."""
    start = WORD * i
    end = start + WORD
    return data[start:end] if start < len(data) else b"\x00" * WORD


def word_to_uint32(word: bytes) -> int:
    return int.from_bytes(word[-4:], "big")


def word_to_hex(word: bytes) -> str:
    return "0x" + word.hex()


def require_words(data: bytes, n: int, *, event: str) -> None:
    """Fixed-width payloads must be exactly `n` words long."""
    if len(data) != WORD * n:
        raise MalformedPayloadError(
            f"{event} data must be exactly {WORD * n} bytes, got {len(data)}"
        )
