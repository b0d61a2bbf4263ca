"""
Elliptic-Curve Group Module for the Voting Engine
=================================================
Arithmetic on BN254 (alt_bn128) G1, the curve exposed by the Ethereum
precompiled contracts. Group operations are delegated to py_ecc's
Jacobian-coordinate implementation; everything that crosses a module
boundary is an affine ``Point`` of plain integers so that inputs coming
from the wire can be represented before they are validated.

The identity element is encoded as (0, 0), as on the EVM.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from py_ecc.optimized_bn128 import (
    FQ,
    Z1,
    add as _jacobian_add,
    curve_order,
    field_modulus,
    is_inf,
    multiply as _jacobian_multiply,
    neg as _jacobian_neg,
    normalize,
)

logger = logging.getLogger(__name__)

# ============================================================================
# CURVE PARAMETERS
# ============================================================================

ORDER = curve_order
FIELD_MODULUS = field_modulus
CURVE_B = 3

NUM_BYTES_SCALAR = 256 // 8
NUM_BYTES_COORDINATE = 256 // 8
NUM_BYTES_POINT = 2 * NUM_BYTES_COORDINATE


class MalformedInputError(ValueError):
    """A point or scalar failed its canonical-form checks"""
    pass


# ============================================================================
# POINTS
# ============================================================================


@dataclass(frozen=True)
class Point:
    """Affine point (x, y). Construction never validates; see is_on_curve."""
    x: int
    y: int

    def is_infinity(self) -> bool:
        return self.x == 0 and self.y == 0

    def to_jacobian(self) -> Tuple[FQ, FQ, FQ]:
        if self.is_infinity():
            return Z1
        return (FQ(self.x), FQ(self.y), FQ.one())

    @classmethod
    def from_jacobian(cls, pt) -> 'Point':
        if is_inf(pt):
            return INFINITY
        x, y = normalize(pt)
        return cls(x.n, y.n)

    def to_dict(self) -> Dict[str, int]:
        return {'x': self.x, 'y': self.y}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Point':
        """Wire decoding. Only the shape is checked here."""
        try:
            x, y = data['x'], data['y']
        except (KeyError, TypeError) as e:
            raise MalformedInputError(f"Point must be an object with x and y: {e}")
        if not _is_int(x) or not _is_int(y):
            raise MalformedInputError("Point coordinates must be integers")
        return cls(x, y)

    def __add__(self, other: 'Point') -> 'Point':
        if not isinstance(other, Point):
            return NotImplemented
        return add(self, other)

    def __sub__(self, other: 'Point') -> 'Point':
        if not isinstance(other, Point):
            return NotImplemented
        return sub(self, other)

    def __neg__(self) -> 'Point':
        return neg(self)

    def __rmul__(self, scalar: int) -> 'Point':
        if not _is_int(scalar):
            return NotImplemented
        return scalar_mul(scalar, self)

    def __str__(self) -> str:
        return f"Point(0x{self.x:064x}, 0x{self.y:064x})"


INFINITY = Point(0, 0)
G = Point(1, 2)
# Base point for the plaintext. Kept equal to G so that proofs stay
# byte-compatible with the on-chain verifier.
H = G


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ============================================================================
# GROUP OPERATIONS
# ============================================================================


def add(p: Point, q: Point) -> Point:
    """Return p + q"""
    return Point.from_jacobian(_jacobian_add(p.to_jacobian(), q.to_jacobian()))


def neg(p: Point) -> Point:
    """Return -p"""
    if p.is_infinity():
        return INFINITY
    return Point.from_jacobian(_jacobian_neg(p.to_jacobian()))


def sub(p: Point, q: Point) -> Point:
    """Return p - q"""
    return add(p, neg(q))


def scalar_mul(scalar: int, p: Point) -> Point:
    """Return scalar·p; the scalar is reduced modulo the group order."""
    k = scalar % ORDER
    if k == 0 or p.is_infinity():
        return INFINITY
    return Point.from_jacobian(_jacobian_multiply(p.to_jacobian(), k))


def base_mul(scalar: int) -> Point:
    """Return scalar·G"""
    return scalar_mul(scalar, G)


# ============================================================================
# VALIDATION
# ============================================================================


def is_on_curve(p: Any) -> bool:
    """Check that p is a well-formed group element.

    BN254 G1 has cofactor 1, so the curve equation also implies subgroup
    membership. The identity (0, 0) is accepted.
    """
    if not isinstance(p, Point):
        return False
    if not _is_int(p.x) or not _is_int(p.y):
        return False
    if not (0 <= p.x < FIELD_MODULUS and 0 <= p.y < FIELD_MODULUS):
        return False
    if p.is_infinity():
        return True
    return (p.y * p.y - p.x * p.x * p.x - CURVE_B) % FIELD_MODULUS == 0


def is_valid_public_key(p: Any) -> bool:
    """On the curve and not the identity"""
    return is_on_curve(p) and not p.is_infinity()


def is_canonical_scalar(s: Any) -> bool:
    """True iff 0 <= s < ORDER"""
    return _is_int(s) and 0 <= s < ORDER


def random_scalar(rng: Optional[Any] = None) -> int:
    """Uniform scalar in [1, ORDER).

    ``rng`` may be any object exposing ``randrange``; a seeded
    ``random.Random`` makes every caller deterministic.
    """
    rng = rng or secrets.SystemRandom()
    return rng.randrange(1, ORDER)


# ============================================================================
# BINARY CODEC
# ============================================================================


def point_to_bytes(p: Point) -> bytes:
    return (p.x.to_bytes(NUM_BYTES_COORDINATE, 'big') +
            p.y.to_bytes(NUM_BYTES_COORDINATE, 'big'))


def point_from_bytes(data: bytes) -> Point:
    if len(data) != NUM_BYTES_POINT:
        raise MalformedInputError(
            f"Curve point should be represented with {NUM_BYTES_POINT} bytes")
    p = Point(int.from_bytes(data[:NUM_BYTES_COORDINATE], 'big'),
              int.from_bytes(data[NUM_BYTES_COORDINATE:], 'big'))
    if not is_on_curve(p):
        raise MalformedInputError("Curve point is not on the curve")
    return p


def scalar_to_bytes(s: int) -> bytes:
    return s.to_bytes(NUM_BYTES_SCALAR, 'big')


def scalar_from_bytes(data: bytes) -> int:
    if len(data) != NUM_BYTES_SCALAR:
        raise MalformedInputError(
            f"Scalar should be represented with {NUM_BYTES_SCALAR} bytes")
    value = int.from_bytes(data, 'big')
    if value >= ORDER:
        raise MalformedInputError("Scalar is over the group order")
    return value
