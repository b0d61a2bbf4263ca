"""
Cryptographic Engine Surface
============================
The four operations external orchestration needs: key generation with
proof, ballot encryption with proof, homomorphic addition, and tally
decryption with proof. Inputs and outputs are plain dataclasses with a
dict form for the wire (points as {"x", "y"}, scalars as integers).
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from ec import keccak256
from elgamal import (
    EncryptedVote,
    KeyPair,
    combine,
    decrypt_tally,
    encrypt_vote,
    generate_key_pair,
)
from zk import (
    ProofCorrectDecryption,
    ProofSkKnowledge,
    ProofVoteWellFormedness,
    prove_correct_decryption,
    prove_sk_knowledge,
    prove_vote_well_formedness,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyPairWithProof:
    key_pair: KeyPair
    proof: ProofSkKnowledge

    def to_dict(self) -> Dict[str, Any]:
        return {'key_pair': self.key_pair.to_dict(), 'proof': self.proof.to_dict()}


@dataclass(frozen=True)
class EncryptedVoteWithProof:
    encrypted_vote: EncryptedVote
    proof: ProofVoteWellFormedness

    def to_dict(self) -> Dict[str, Any]:
        return {'encrypted_vote': self.encrypted_vote.to_dict(),
                'proof': self.proof.to_dict()}


@dataclass(frozen=True)
class DecryptedTallyWithProof:
    result: int
    proof: ProofCorrectDecryption

    def to_dict(self) -> Dict[str, Any]:
        return {'result': self.result, 'proof': self.proof.to_dict()}


def new_key_pair_with_proof(rng: Optional[Any] = None) -> KeyPairWithProof:
    """Generate an ElGamal key pair and a proof of sk knowledge"""
    key_pair = generate_key_pair(rng)
    proof = prove_sk_knowledge(key_pair, rng)
    logger.info("Generated election key pair with proof of sk knowledge")
    return KeyPairWithProof(key_pair=key_pair, proof=proof)


def encrypt_vote_with_proof(vote: int, pk, rng: Optional[Any] = None) -> EncryptedVoteWithProof:
    """Encrypt a 0/1 vote and prove it is well-formed. The nonce is dropped."""
    encrypted_vote, nonce = encrypt_vote(vote, pk, rng)
    proof = prove_vote_well_formedness(encrypted_vote, vote, nonce, pk, rng)
    return EncryptedVoteWithProof(encrypted_vote=encrypted_vote, proof=proof)


def add_encrypted_votes(a: EncryptedVote, b: EncryptedVote) -> EncryptedVote:
    return combine(a, b)


def decrypt_tally_with_proof(tally: EncryptedVote, cast_count: int,
                             key_pair: KeyPair,
                             rng: Optional[Any] = None) -> DecryptedTallyWithProof:
    """Decrypt an aggregate of cast_count ballots and prove the result"""
    if not key_pair.is_consistent():
        raise ValueError("Key pair is inconsistent: pk != sk·G")
    result = decrypt_tally(tally, key_pair.sk, cast_count)
    proof = prove_correct_decryption(tally, key_pair, rng)
    logger.info(f"Decrypted tally of {cast_count} ballots: {result}")
    return DecryptedTallyWithProof(result=result, proof=proof)


def proof_identifier(encrypted_vote: EncryptedVote,
                     proof: Union[ProofVoteWellFormedness, Dict[str, Any]]) -> str:
    """Digest identifying a ciphertext/proof pair, for replay protection.

    Computed over the canonical JSON form so that it is defined for any
    input, including ones that later fail verification.
    """
    proof_data = proof if isinstance(proof, dict) else proof.to_dict()
    payload = json.dumps(
        {'encrypted_vote': encrypted_vote.to_dict(), 'proof': proof_data},
        sort_keys=True, separators=(',', ':'))
    return keccak256(payload.encode('utf-8')).hex()
