"""
EC-ElGamal Voting Module
========================
Key generation, 0/1 ballot encryption, homomorphic aggregation and tally
decryption. A ciphertext (A, B) = (r·G, r·pk + m·H) can hold a single
ballot or the sum of any number of ballots, since adding ciphertexts
component-wise adds their plaintexts.
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from math import isqrt
from typing import Any, Dict, Iterable, Optional, Tuple

from ec import (
    H,
    INFINITY,
    ORDER,
    MalformedInputError,
    Point,
    base_mul,
    is_valid_public_key,
    random_scalar,
    scalar_mul,
)

logger = logging.getLogger(__name__)


# ============================================================================
# EXCEPTIONS
# ============================================================================


class ElGamalError(Exception):
    """Base exception for ElGamal operations"""
    pass


class DecryptionError(ElGamalError):
    """The plaintext was not found within the given bound"""
    pass


# ============================================================================
# KEYS
# ============================================================================


class Vote(IntEnum):
    NO = 0
    YES = 1


@dataclass(frozen=True)
class KeyPair:
    """ElGamal key pair; sk never leaves the owner"""
    pk: Point
    sk: int = field(repr=False)

    def is_consistent(self) -> bool:
        return base_mul(self.sk) == self.pk

    def to_dict(self) -> Dict[str, Any]:
        return {'pk': self.pk.to_dict(), 'sk': self.sk}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KeyPair':
        try:
            pk, sk = data['pk'], data['sk']
        except (KeyError, TypeError) as e:
            raise MalformedInputError(f"KeyPair must have pk and sk: {e}")
        if not isinstance(sk, int) or isinstance(sk, bool):
            raise MalformedInputError("KeyPair sk must be an integer")
        if not 0 < sk < ORDER:
            raise MalformedInputError("KeyPair sk must lie in [1, ORDER)")
        key_pair = cls(pk=Point.from_dict(pk), sk=sk)
        if not is_valid_public_key(key_pair.pk):
            raise MalformedInputError("KeyPair pk is not a valid curve point")
        if not key_pair.is_consistent():
            raise MalformedInputError("KeyPair pk does not match sk")
        return key_pair


def generate_key_pair(rng: Optional[Any] = None) -> KeyPair:
    """Draw sk uniformly from [1, ORDER) and compute pk = sk·G"""
    sk = random_scalar(rng)
    return KeyPair(pk=base_mul(sk), sk=sk)


# ============================================================================
# CIPHERTEXTS
# ============================================================================


@dataclass(frozen=True)
class EncryptedVote:
    """EC-ElGamal ciphertext (A, B)"""
    a: Point
    b: Point

    @classmethod
    def zero(cls) -> 'EncryptedVote':
        """Encryption of 0 with zero randomness; identity for combine"""
        return cls(INFINITY, INFINITY)

    def __add__(self, other: 'EncryptedVote') -> 'EncryptedVote':
        if not isinstance(other, EncryptedVote):
            return NotImplemented
        return combine(self, other)

    def to_dict(self) -> Dict[str, Any]:
        return {'a': self.a.to_dict(), 'b': self.b.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EncryptedVote':
        try:
            a, b = data['a'], data['b']
        except (KeyError, TypeError) as e:
            raise MalformedInputError(f"EncryptedVote must have a and b: {e}")
        return cls(Point.from_dict(a), Point.from_dict(b))


def encrypt_vote(vote: int, pk: Point,
                 rng: Optional[Any] = None) -> Tuple[EncryptedVote, int]:
    """Encrypt a 0/1 vote.

    Returns the ciphertext together with the encryption nonce, which the
    caller needs to prove well-formedness and must then discard.
    """
    if not isinstance(vote, int) or isinstance(vote, bool) or vote not in (0, 1):
        raise ValueError(f"Vote must be 0 or 1, got {vote!r}")
    r = random_scalar(rng)
    a = base_mul(r)
    b = scalar_mul(r, pk) + scalar_mul(int(vote), H)
    return EncryptedVote(a, b), r


def combine(x: EncryptedVote, y: EncryptedVote) -> EncryptedVote:
    """Homomorphic addition: the result decrypts to the sum of the inputs"""
    return EncryptedVote(x.a + y.a, x.b + y.b)


def sum_encrypted_votes(votes: Iterable[EncryptedVote]) -> EncryptedVote:
    total = EncryptedVote.zero()
    for vote in votes:
        total = combine(total, vote)
    return total


# ============================================================================
# TALLYING
# ============================================================================


@dataclass(frozen=True)
class Tally:
    num_yes: int
    num_no: int

    @property
    def num_voters(self) -> int:
        return self.num_yes + self.num_no


@dataclass(frozen=True)
class EncryptedTally:
    """Running sum of ballots together with the number of ballots added"""
    votes: EncryptedVote = field(default_factory=EncryptedVote.zero)
    count: int = 0

    def add(self, vote: EncryptedVote) -> 'EncryptedTally':
        return EncryptedTally(combine(self.votes, vote), self.count + 1)

    def decrypt(self, sk: int) -> Tally:
        num_yes = decrypt_tally(self.votes, sk, self.count)
        return Tally(num_yes=num_yes, num_no=self.count - num_yes)


def decrypt_tally(encrypted: EncryptedVote, sk: int, bound: int) -> int:
    """Recover m in [0, bound] from m·H = B - sk·A.

    Uses baby-step giant-step, so the cost grows with sqrt(bound).
    """
    if bound < 0:
        raise ValueError(f"Decryption bound must be non-negative, got {bound}")

    target = encrypted.b - scalar_mul(sk, encrypted.a)

    m = isqrt(bound) + 1
    baby_steps: Dict[Point, int] = {}
    point = INFINITY
    for j in range(m):
        baby_steps.setdefault(point, j)
        point = point + H

    giant_step = -scalar_mul(m, H)
    gamma = target
    for i in range(m):
        j = baby_steps.get(gamma)
        if j is not None:
            result = i * m + j
            if result <= bound:
                logger.debug(f"Decrypted tally {result} (bound {bound})")
                return result
            break
        gamma = gamma + giant_step

    raise DecryptionError(f"Plaintext not found in [0, {bound}]")
