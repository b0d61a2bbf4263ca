"""
Fiat-Shamir transcripts and 128-bit challenges.

A transcript is the concatenation of 64-byte point encodings, hashed with
Keccak-256; the challenge is the low 16 bytes of the digest read
big-endian. This is the layout an EVM verifier reproduces with
``keccak256(abi.encodePacked(...))``, so it must not change.
"""

import logging
import secrets
from typing import Any, List, Optional

from Crypto.Hash import keccak

from .ec_group import Point, _is_int, point_to_bytes

logger = logging.getLogger(__name__)

CHALLENGE_BITS = 128
NUM_BYTES_CHALLENGE = CHALLENGE_BITS // 8
CHALLENGE_MODULUS = 1 << CHALLENGE_BITS


def keccak256(*chunks: bytes) -> bytes:
    h = keccak.new(digest_bits=256)
    for chunk in chunks:
        h.update(chunk)
    return h.digest()


class Transcript:
    """Ordered public inputs of a proof"""

    def __init__(self):
        self._parts: List[bytes] = []

    def append_point(self, point: Point) -> 'Transcript':
        self._parts.append(point_to_bytes(point))
        return self

    def append_points(self, *points: Point) -> 'Transcript':
        for point in points:
            self.append_point(point)
        return self

    def challenge(self) -> int:
        digest = keccak256(*self._parts)
        return int.from_bytes(digest[NUM_BYTES_CHALLENGE:], 'big')


def fiat_shamir_challenge(*points: Point) -> int:
    return Transcript().append_points(*points).challenge()


def random_challenge(rng: Optional[Any] = None) -> int:
    rng = rng or secrets.SystemRandom()
    return rng.randrange(CHALLENGE_MODULUS)


def is_canonical_challenge(c: Any) -> bool:
    return _is_int(c) and 0 <= c < CHALLENGE_MODULUS


def challenge_sub(a: int, b: int) -> int:
    return (a - b) % CHALLENGE_MODULUS


def challenge_to_bytes(c: int) -> bytes:
    return c.to_bytes(NUM_BYTES_CHALLENGE, 'big')
