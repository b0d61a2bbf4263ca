"""
Zero-Knowledge Proof Module for the Voting Engine
Sigma protocols for key ownership, ballot well-formedness and tally decryption
"""

from .zk_proofs import (
    # Proof records
    ProofSkKnowledge,
    ProofVoteWellFormedness,
    ProofCorrectDecryption,
    ProofType,

    # Provers
    prove_sk_knowledge,
    prove_vote_well_formedness,
    prove_correct_decryption,

    # Verifiers
    verify_sk_knowledge,
    verify_vote_well_formedness,
    verify_correct_decryption,

    # Exceptions
    ZKError,
    ProofGenerationError,
)

__version__ = "1.0.0"

__all__ = [
    # Proof records
    'ProofSkKnowledge',
    'ProofVoteWellFormedness',
    'ProofCorrectDecryption',
    'ProofType',

    # Provers
    'prove_sk_knowledge',
    'prove_vote_well_formedness',
    'prove_correct_decryption',

    # Verifiers
    'verify_sk_knowledge',
    'verify_vote_well_formedness',
    'verify_correct_decryption',

    # Exceptions
    'ZKError',
    'ProofGenerationError',
]
