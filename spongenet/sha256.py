"""SHA-256 message digest and short hexadecimal fingerprints."""

from __future__ import annotations

import struct
from typing import Union

_MASK = 0xFFFFFFFF

_K = (
    0x428A2F98, 0x71374491, 0xB5C0FBCF, 0xE9B5DBA5, 0x3956C25B, 0x59F111F1, 0x923F82A4, 0xAB1C5ED5,
    0xD807AA98, 0x12835B01, 0x243185BE, 0x550C7DC3, 0x72BE5D74, 0x80DEB1FE, 0x9BDC06A7, 0xC19BF174,
    0xE49B69C1, 0xEFBE4786, 0x0FC19DC6, 0x240CA1CC, 0x2DE92C6F, 0x4A7484AA, 0x5CB0A9DC, 0x76F988DA,
    0x983E5152, 0xA831C66D, 0xB00327C8, 0xBF597FC7, 0xC6E00BF3, 0xD5A79147, 0x06CA6351, 0x14292967,
    0x27B70A85, 0x2E1B2138, 0x4D2C6DFC, 0x53380D13, 0x650A7354, 0x766A0ABB, 0x81C2C92E, 0x92722C85,
    0xA2BFE8A1, 0xA81A664B, 0xC24B8B70, 0xC76C51A3, 0xD192E819, 0xD6990624, 0xF40E3585, 0x106AA070,
    0x19A4C116, 0x1E376C08, 0x2748774C, 0x34B0BCB5, 0x391C0CB3, 0x4ED8AA4A, 0x5B9CCA4F, 0x682E6FF3,
    0x748F82EE, 0x78A5636F, 0x84C87814, 0x8CC70208, 0x90BEFFFA, 0xA4506CEB, 0xBEF9A3F7, 0xC67178F2,
)

_INITIAL_STATE = (
    0x6A09E667, 0xBB67AE85, 0x3C6EF372, 0xA54FF53A, 0x510E527F, 0x9B05688C, 0x1F83D9AB, 0x5BE0CD19,
)

DIGEST_SIZE = 32
BLOCK_SIZE = 64


def _rot(x: int, n: int) -> int:
    return ((x >> n) | (x << (32 - n))) & _MASK


def _compress(state: list[int], block: bytes) -> None:
    w = list(struct.unpack("!16I", block))
    for i in range(16, 64):
        s0 = _rot(w[i - 15], 7) ^ _rot(w[i - 15], 18) ^ (w[i - 15] >> 3)
        s1 = _rot(w[i - 2], 17) ^ _rot(w[i - 2], 19) ^ (w[i - 2] >> 10)
        w.append((s1 + w[i - 7] + s0 + w[i - 16]) & _MASK)

    a, b, c, d, e, f, g, h = state
    for k, wi in zip(_K, w):
        ep1 = _rot(e, 6) ^ _rot(e, 11) ^ _rot(e, 25)
        ch = (e & f) ^ (~e & g)
        t1 = (h + ep1 + ch + k + wi) & _MASK
        ep0 = _rot(a, 2) ^ _rot(a, 13) ^ _rot(a, 22)
        maj = (a & b) ^ (b & c) ^ (c & a)
        t2 = (ep0 + maj) & _MASK
        h, g, f, e, d, c, b, a = g, f, e, (d + t1) & _MASK, c, b, a, (t1 + t2) & _MASK

    for i, value in enumerate((a, b, c, d, e, f, g, h)):
        state[i] = (state[i] + value) & _MASK


class SHA256:
    """Computes SHA-256 digests of whole messages."""

    def __init__(self) -> None:
        self._initial_state = _INITIAL_STATE

    def digest(self, data: Union[bytes, bytearray, memoryview, str]) -> bytes:
        """Return the 32-byte SHA-256 digest of ``data``; text is hashed as UTF-8."""
        message = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        bit_length = (8 * len(message)) & 0xFFFFFFFFFFFFFFFF

        padding_zeros = (55 - len(message)) % BLOCK_SIZE
        padded = message + b"\x80" + bytes(padding_zeros) + struct.pack("!Q", bit_length)

        state = list(self._initial_state)
        for start in range(0, len(padded), BLOCK_SIZE):
            _compress(state, padded[start : start + BLOCK_SIZE])
        return struct.pack("!8I", *state)

    @staticmethod
    def to_string(digest: bytes, length: int = 5) -> str:
        """Return the last ``length`` hexadecimal characters of ``digest``."""
        if len(digest) != DIGEST_SIZE:
            raise ValueError(f"digest must be {DIGEST_SIZE} bytes, got {len(digest)}")
        text = bytes(digest).hex()
        if not 0 <= length <= len(text):
            raise ValueError(f"length must be between 0 and {len(text)}, got {length}")
        return text[len(text) - length :]