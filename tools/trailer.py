#!/usr/bin/env python3
"""Integrity trailer of a raw flash image.

The linker leaves a 38-byte magic trailer at the very end of the image:

    01 02 .. 1f 20   32-byte placeholder, replaced by SHA-256 of the body
    28 00            preserved as-is
    78 56 34 12      placeholder, replaced by CRC-32 (big-endian) of bytes [0, N-4)
"""
import hashlib
import zlib
from dataclasses import dataclass

MAGIC_SIZE = 38
MAGIC_STRING = (
    "0102030405060708090a0b0c0d0e0f10"
    "1112131415161718191a1b1c1d1e1f20"
    "280078563412"
)
DIGEST_LEN = 32
CRC_LEN = 4
FIXED_OFF = DIGEST_LEN
FIXED_LEN = MAGIC_SIZE - DIGEST_LEN - CRC_LEN  # 2


class FormatError(ValueError):
    """Raw image bytes are not laid out as expected."""


class TooShortError(FormatError):
    pass


class MagicMismatchError(FormatError):
    pass


class DigestMismatchError(FormatError):
    pass


class FixedFieldMismatchError(FormatError):
    pass


class ChecksumMismatchError(FormatError):
    pass


@dataclass(frozen=True)
class TrailerInfo:
    split: int
    digest: bytes
    fixed: bytes
    crc: int


def magic_bytes() -> bytes:
    return bytes.fromhex(MAGIC_STRING)


def _split(image) -> int:
    n = len(image)
    if n < MAGIC_SIZE:
        raise TooShortError(
            f"image is {n} bytes, shorter than the {MAGIC_SIZE}-byte trailer")
    return n - MAGIC_SIZE


def validate_trailer(image) -> int:
    """Check that the last MAGIC_SIZE bytes hold the magic string.

    Returns the offset where the trailer starts (the body length).
    """
    split = _split(image)
    hexdump = bytes(image[split:]).hex()
    if hexdump != MAGIC_STRING:
        raise MagicMismatchError("invalid ELF file; the magic string doesn't match")
    return split


def rewrite_trailer(image) -> bytes:
    """Fill in digest and checksum of an already validated image."""
    n = len(image)
    split = n - MAGIC_SIZE
    sha = hashlib.sha256(image[:split]).digest()

    out = bytearray(image)
    out[split:split + DIGEST_LEN] = sha

    crc = zlib.crc32(out[:n - CRC_LEN]) & 0xFFFFFFFF
    out[n - CRC_LEN:] = crc.to_bytes(CRC_LEN, "big")
    return bytes(out)


def checksum(image) -> bytes:
    """Validate the magic trailer and return the image with its final trailer."""
    validate_trailer(image)
    return rewrite_trailer(image)


def verify_image(image) -> TrailerInfo:
    """Check the trailer of a rewritten image against its contents."""
    n = len(image)
    split = _split(image)
    data = bytes(image)
    digest = data[split:split + DIGEST_LEN]
    fixed = data[split + FIXED_OFF:split + FIXED_OFF + FIXED_LEN]
    crc = int.from_bytes(data[n - CRC_LEN:], "big")

    if hashlib.sha256(data[:split]).digest() != digest:
        raise DigestMismatchError("SHA-256 of the image body doesn't match the trailer")
    expected_fixed = magic_bytes()[FIXED_OFF:FIXED_OFF + FIXED_LEN]
    if fixed != expected_fixed:
        raise FixedFieldMismatchError(
            f"trailer bytes {fixed.hex()} should be {expected_fixed.hex()}")
    expected = zlib.crc32(data[:n - CRC_LEN]) & 0xFFFFFFFF
    if expected != crc:
        raise ChecksumMismatchError(
            f"CRC-32 mismatch: stored 0x{crc:08x}, computed 0x{expected:08x}")
    return TrailerInfo(split, digest, fixed, crc)
