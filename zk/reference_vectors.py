"""
Reference vectors shared by every verifier implementation.

``generate_reference_vectors`` produces a JSON-able set of keys, ballots and
proofs; ``check_reference_vectors`` replays the expectations attached to
them. An independent verifier (for instance the on-chain gate) consumes the
same file and must reach the same verdicts, which pins down the transcript
layout and the canonical-range checks on both sides.
"""

import logging
from typing import Any, Dict, List, Optional

from ec import CHALLENGE_MODULUS, ORDER, Point
from elgamal import (
    EncryptedVote,
    Vote,
    decrypt_tally,
    encrypt_vote,
    generate_key_pair,
    sum_encrypted_votes,
)
from .zk_proofs import (
    ProofCorrectDecryption,
    ProofSkKnowledge,
    ProofVoteWellFormedness,
    prove_correct_decryption,
    prove_sk_knowledge,
    prove_vote_well_formedness,
    verify_correct_decryption,
    verify_sk_knowledge,
    verify_vote_well_formedness,
)

logger = logging.getLogger(__name__)

REFERENCE_VOTES = [Vote.YES, Vote.NO, Vote.YES, Vote.YES, Vote.NO]
INVALID_PK_VOTES = [Vote.YES, Vote.NO]


def _ballots(votes: List[int], pk: Point, rng: Optional[Any]):
    ciphertexts, proofs = [], []
    for vote in votes:
        encrypted_vote, nonce = encrypt_vote(int(vote), pk, rng)
        proof = prove_vote_well_formedness(encrypted_vote, int(vote), nonce, pk, rng)
        ciphertexts.append(encrypted_vote)
        proofs.append(proof)
    return ciphertexts, proofs


def generate_reference_vectors(rng: Optional[Any] = None) -> Dict[str, Any]:
    key_pair_a = generate_key_pair(rng)
    proof_sk_a = prove_sk_knowledge(key_pair_a, rng)
    key_pair_b = generate_key_pair(rng)
    proof_sk_b = prove_sk_knowledge(key_pair_b, rng)

    valid_votes, valid_proofs = _ballots(REFERENCE_VOTES, key_pair_a.pk, rng)
    invalid_votes, invalid_proofs = _ballots(INVALID_PK_VOTES, key_pair_b.pk, rng)

    tally = sum_encrypted_votes(valid_votes)
    result = decrypt_tally(tally, key_pair_a.sk, len(valid_votes))
    proof_decryption_valid = prove_correct_decryption(tally, key_pair_a, rng)

    # A proof for a tally with one extra ballot must not verify against
    # the five-ballot tally.
    extra_vote, _ = encrypt_vote(Vote.NO, key_pair_a.pk, rng)
    proof_decryption_invalid = prove_correct_decryption(tally + extra_vote, key_pair_a, rng)

    logger.info(f"Generated reference vectors with {len(valid_votes)} ballots")

    return {
        'order': ORDER,
        'challenge_modulus': CHALLENGE_MODULUS,
        'votes': [int(v) for v in REFERENCE_VOTES],
        'pk_a': key_pair_a.pk.to_dict(),
        'proof_sk_knowledge_a': proof_sk_a.to_dict(),
        'pk_b': key_pair_b.pk.to_dict(),
        'proof_sk_knowledge_b': proof_sk_b.to_dict(),
        'encrypted_votes_valid': [v.to_dict() for v in valid_votes],
        'proofs_vote_well_formedness_valid': [p.to_dict() for p in valid_proofs],
        'encrypted_votes_invalid': [v.to_dict() for v in invalid_votes],
        'proofs_vote_well_formedness_invalid': [p.to_dict() for p in invalid_proofs],
        'encrypted_tally': tally.to_dict(),
        'proof_correct_decryption_valid': proof_decryption_valid.to_dict(),
        'proof_correct_decryption_invalid': proof_decryption_invalid.to_dict(),
        'result': result,
    }


def check_reference_vectors(data: Dict[str, Any]) -> Dict[str, bool]:
    """Replay every expectation; each entry is True when the verdict matches"""
    pk_a = Point.from_dict(data['pk_a'])
    pk_b = Point.from_dict(data['pk_b'])
    proof_sk_a = ProofSkKnowledge.from_dict(data['proof_sk_knowledge_a'])
    proof_sk_b = ProofSkKnowledge.from_dict(data['proof_sk_knowledge_b'])
    valid_votes = [EncryptedVote.from_dict(v) for v in data['encrypted_votes_valid']]
    valid_proofs = [ProofVoteWellFormedness.from_dict(p)
                    for p in data['proofs_vote_well_formedness_valid']]
    invalid_votes = [EncryptedVote.from_dict(v) for v in data['encrypted_votes_invalid']]
    invalid_proofs = [ProofVoteWellFormedness.from_dict(p)
                      for p in data['proofs_vote_well_formedness_invalid']]
    tally = sum_encrypted_votes(valid_votes)
    proof_dec_valid = ProofCorrectDecryption.from_dict(data['proof_correct_decryption_valid'])
    proof_dec_invalid = ProofCorrectDecryption.from_dict(data['proof_correct_decryption_invalid'])
    result = data['result']

    checks = {
        'sk_knowledge_valid': verify_sk_knowledge(proof_sk_a, pk_a),
        'sk_knowledge_wrong_pk_rejected': not verify_sk_knowledge(proof_sk_b, pk_a),
        'sk_knowledge_swapped_coordinates_rejected':
            not verify_sk_knowledge(proof_sk_a, Point(pk_a.y, pk_a.x)),
        'sk_knowledge_non_canonical_rejected':
            not verify_sk_knowledge(ProofSkKnowledge(proof_sk_a.b, proof_sk_a.d + ORDER), pk_a),
        'well_formedness_valid': all(
            verify_vote_well_formedness(p, v, pk_a)
            for p, v in zip(valid_proofs, valid_votes)),
        'well_formedness_different_vote_rejected':
            not verify_vote_well_formedness(valid_proofs[1], valid_votes[2], pk_a),
        'well_formedness_different_pk_rejected': not any(
            verify_vote_well_formedness(p, v, pk_a)
            for p, v in zip(invalid_proofs, invalid_votes)),
        'encrypted_tally_matches': tally.to_dict() == data['encrypted_tally'],
        'correct_decryption_valid': verify_correct_decryption(proof_dec_valid, tally, result, pk_a),
        'correct_decryption_invalid_proof_rejected':
            not verify_correct_decryption(proof_dec_invalid, tally, result, pk_a),
        'correct_decryption_wrong_result_rejected':
            not verify_correct_decryption(proof_dec_valid, tally, result + 1, pk_a),
        'result_matches_votes': result == sum(data['votes']),
    }

    failed = [name for name, ok in checks.items() if not ok]
    if failed:
        logger.error(f"Reference vector checks failed: {failed}")
    else:
        logger.info(f"All {len(checks)} reference vector checks passed")
    return checks
