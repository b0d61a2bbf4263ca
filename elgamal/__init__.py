"""EC-ElGamal encryption of 0/1 ballots with homomorphic tallying."""

from .elgamal_voting import (
    # Data structures
    Vote,
    KeyPair,
    EncryptedVote,
    EncryptedTally,
    Tally,

    # Operations
    generate_key_pair,
    encrypt_vote,
    combine,
    sum_encrypted_votes,
    decrypt_tally,

    # Exceptions
    ElGamalError,
    DecryptionError,
)

__all__ = [
    'Vote',
    'KeyPair',
    'EncryptedVote',
    'EncryptedTally',
    'Tally',
    'generate_key_pair',
    'encrypt_vote',
    'combine',
    'sum_encrypted_votes',
    'decrypt_tally',
    'ElGamalError',
    'DecryptionError',
]
