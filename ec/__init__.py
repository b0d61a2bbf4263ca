"""Elliptic-curve group (BN254 G1) and Fiat-Shamir transcripts."""

from .ec_group import (
    # Parameters
    ORDER,
    FIELD_MODULUS,
    G,
    H,
    INFINITY,
    NUM_BYTES_SCALAR,
    NUM_BYTES_POINT,

    # Types
    Point,

    # Operations
    add,
    neg,
    sub,
    scalar_mul,
    base_mul,
    is_on_curve,
    is_valid_public_key,
    is_canonical_scalar,
    random_scalar,

    # Codec
    point_to_bytes,
    point_from_bytes,
    scalar_to_bytes,
    scalar_from_bytes,

    # Exceptions
    MalformedInputError,
)
from .transcript import (
    CHALLENGE_BITS,
    CHALLENGE_MODULUS,
    Transcript,
    keccak256,
    fiat_shamir_challenge,
    random_challenge,
    is_canonical_challenge,
    challenge_sub,
    challenge_to_bytes,
)

__all__ = [
    'ORDER',
    'FIELD_MODULUS',
    'G',
    'H',
    'INFINITY',
    'NUM_BYTES_SCALAR',
    'NUM_BYTES_POINT',
    'Point',
    'add',
    'neg',
    'sub',
    'scalar_mul',
    'base_mul',
    'is_on_curve',
    'is_valid_public_key',
    'is_canonical_scalar',
    'random_scalar',
    'point_to_bytes',
    'point_from_bytes',
    'scalar_to_bytes',
    'scalar_from_bytes',
    'MalformedInputError',
    'CHALLENGE_BITS',
    'CHALLENGE_MODULUS',
    'Transcript',
    'keccak256',
    'fiat_shamir_challenge',
    'random_challenge',
    'is_canonical_challenge',
    'challenge_sub',
    'challenge_to_bytes',
]
