"""PKCS#1 v1.5 encryption padding (block type 2) for text messages.

Text is first turned into bytes with a multi-byte scheme equal to UTF-8 on UTF-16 code units: one byte below 0x80,
two bytes below 0x800 and three bytes otherwise. Characters outside the Basic Multilingual Plane travel as a
surrogate pair, each half in three bytes. The bytes are then framed as `00 02 PS 00 M`.

Typical usage example:

    em = pad("Hi there!", key.bsize)
    text = unpad(em, key.bsize)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from collections.abc import Iterator

from rsalite import entropy
from rsalite.errors import BadPadding
from rsalite.errors import MessageTooLong

# 00 02 <at least 8 bytes PS> 00
PADDING_OVERHEAD: int = 11


def _code_units(text: str) -> Iterator[int]:
    for ch in text:
        cp = ord(ch)
        if cp > 0xFFFF:
            cp -= 0x10000
            yield 0xD800 | (cp >> 10)
            yield 0xDC00 | (cp & 0x3FF)
        else:
            yield cp


def encode_text(text: str) -> bytes:
    """Encodes text into the 1/2/3-byte multi-byte form carried inside the padding.

    Args:
        text: The text to encode.

    Returns:
        The encoded bytes.
    """
    out = bytearray()
    for unit in _code_units(text):
        if unit < 0x80:
            out.append(unit)
        elif unit < 0x800:
            out += bytes(((unit >> 6) | 0xC0, (unit & 0x3F) | 0x80))
        else:
            out += bytes(((unit >> 12) | 0xE0, ((unit >> 6) & 0x3F) | 0x80, (unit & 0x3F) | 0x80))
    return bytes(out)


def decode_text(data: bytes) -> str:
    """Inverse of `encode_text`.

    The sequence width is taken from the high bits of the lead byte. Surrogate pairs are joined back into a single
    character, a lone surrogate is kept as is.

    Args:
        data: The encoded bytes.

    Returns:
        The decoded text.

    Raises:
        BadPadding: If the bytes are not a valid 1/2/3-byte sequence stream.
    """
    units = []
    i = 0
    while i < len(data):
        c = data[i]
        if c < 0x80:
            units.append(c)
            i += 1
            continue
        if 0xC0 <= c < 0xE0:
            width, unit = 2, c & 0x1F
        elif 0xE0 <= c < 0xF0:
            width, unit = 3, c & 0x0F
        else:
            raise BadPadding()
        tail = data[i + 1:i + width]
        if len(tail) != width - 1 or any(b & 0xC0 != 0x80 for b in tail):
            raise BadPadding()
        for b in tail:
            unit = (unit << 6) | (b & 0x3F)
        units.append(unit)
        i += width
    joined = "".join(map(chr, units))
    return joined.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "surrogatepass")


def _nonzero_bytes(source: entropy.EntropySource, count: int) -> bytes:
    """Draws `count` bytes from the source, rejecting and redrawing every zero."""
    ps = bytearray()
    while len(ps) < count:
        ps += bytes(b for b in source.random_bytes(count - len(ps)) if b)
    return bytes(ps)


def pad(text: str, k: int, source: entropy.EntropySource | None = None) -> int:
    """Pads the text into a PKCS#1 v1.5 type 2 encryption block.

    Args:
        text: The message to pad.
        k: The modulus length in bytes.
        source: Where the padding string is drawn from. Defaults to a fresh system CSPRNG draw per call.

    Returns:
        The big-endian integer of the `k`-byte block `00 02 PS 00 M`.

    Raises:
        MessageTooLong: If the encoded message exceeds `k - 11` bytes.
    """
    message = encode_text(text)
    if k < len(message) + PADDING_OVERHEAD:
        raise MessageTooLong(f"Message of {len(message)} bytes too long for a {k} byte modulus.")
    if source is None:
        source = entropy.SystemEntropy()
    ps = _nonzero_bytes(source, k - len(message) - 3)
    return int.from_bytes(b"\x00\x02" + ps + b"\x00" + message, byteorder="big", signed=False)


def unpad(value: int, k: int) -> str:
    """Strips PKCS#1 v1.5 type 2 padding and decodes the message.

    Args:
        value: The decrypted block as an integer.
        k: The modulus length in bytes.

    Returns:
        The message text.

    Raises:
        BadPadding: If the block is not a valid type 2 encoding for a `k` byte modulus.
    """
    if value < 0:
        raise BadPadding()
    em = value.to_bytes((value.bit_length() + 7) // 8, byteorder="big", signed=False).lstrip(b"\x00")
    if len(em) != k - 1 or em[0:1] != b"\x02":
        raise BadPadding()
    sep = em.find(b"\x00", 1)
    if sep < 0:
        raise BadPadding()
    return decode_text(em[sep + 1:])
