"""
Voting Session State Machine
============================
Single-writer record of one yes/no election: which key is declared, who has
voted, the running encrypted tally and the final result. Every transition
is gated by status, by caller identity and, where a proof is involved, by
the corresponding zero-knowledge verifier.

Transitions are atomic: all checks run first, then the new state is
committed in one step under a non-reentrant lock. A failed call leaves the
session exactly as it was. Ordering between calls is the caller's concern
(the ledger serializes transactions).
"""

import logging
import threading
from enum import IntEnum
from typing import Any, Dict, Optional, Set

from crypto_engine import proof_identifier
from ec import MalformedInputError, Point, is_valid_public_key
from elgamal import EncryptedVote, combine
from zk import (
    ProofCorrectDecryption,
    ProofSkKnowledge,
    ProofVoteWellFormedness,
    verify_correct_decryption,
    verify_sk_knowledge,
    verify_vote_well_formedness,
)

logger = logging.getLogger(__name__)

# ============================================================================
# EXCEPTIONS AND ENUMS
# ============================================================================


class Status(IntEnum):
    """Session phases; values match the on-chain enum"""
    INIT = 0
    DECLARED = 1
    VOTING = 2
    TALLYING = 3
    FINI = 4


class VotingSessionError(Exception):
    """Base exception for session operations"""
    pass


class WrongStatusError(VotingSessionError):
    """Operation attempted in the wrong phase"""

    def __init__(self, status: Status, expected: Optional[Status] = None):
        self.status = status
        self.expected = expected
        message = f"Wrong status: {status.name}"
        if expected is not None:
            message += f" (expected {expected.name})"
        super().__init__(message)


class UnauthorizedError(VotingSessionError):
    """Caller lacks the owner role"""

    def __init__(self, caller: str):
        self.caller = caller
        super().__init__(f"Unauthorized caller: {caller}")


class ProofVerificationError(VotingSessionError):
    """A zero-knowledge proof did not verify"""

    def __init__(self):
        super().__init__("Proof verification failed")


class DoubleVotingError(VotingSessionError):
    """Caller has already cast a vote"""

    def __init__(self, voter: str):
        self.voter = voter
        super().__init__(f"Voter has already voted: {voter}")


class DoubleProofError(VotingSessionError):
    """Ciphertext/proof pair was already cast"""

    def __init__(self, proof_id: str):
        self.proof_id = proof_id
        super().__init__(f"Proof already used: {proof_id[:16]}...")


# ============================================================================
# SESSION
# ============================================================================


class VotingSession:
    """One election, owned by a single privileged identity"""

    def __init__(self, owner: str):
        self.owner = owner
        self.status = Status.INIT
        self.pk: Optional[Point] = None
        self.encrypted_tally = EncryptedVote.zero()
        self.cast_count = 0
        self.voted_addresses: Set[str] = set()
        self.used_proof_identifiers: Set[str] = set()
        self.result: Optional[int] = None
        self._lock = threading.Lock()

        logger.info(f"Created voting session owned by {owner}")

    # ------------------------------------------------------------------
    # guards
    # ------------------------------------------------------------------

    def _require_owner(self, caller: str):
        if caller != self.owner:
            logger.warning(f"Rejected call from non-owner {caller}")
            raise UnauthorizedError(caller)

    def _require_status(self, expected: Status):
        if self.status != expected:
            logger.warning(
                f"Rejected call in status {self.status.name}, expected {expected.name}")
            raise WrongStatusError(self.status, expected)

    def _transition(self, new_status: Status):
        logger.info(f"Session status {self.status.name} -> {new_status.name}")
        self.status = new_status

    # ------------------------------------------------------------------
    # gated operations
    # ------------------------------------------------------------------

    def declare_pk(self, caller: str, pk: Point, proof: ProofSkKnowledge):
        """Declare the election public key, proving knowledge of its sk"""
        with self._lock:
            self._require_owner(caller)
            self._require_status(Status.INIT)
            if not is_valid_public_key(pk):
                raise MalformedInputError("Public key is not a valid curve point")
            if not verify_sk_knowledge(proof, pk):
                logger.warning("Rejected public key: sk knowledge proof failed")
                raise ProofVerificationError()

            self.pk = pk
            self._transition(Status.DECLARED)

    def start_voting_phase(self, caller: str):
        with self._lock:
            self._require_owner(caller)
            self._require_status(Status.DECLARED)
            self._transition(Status.VOTING)

    def cast_vote(self, caller: str, proof: ProofVoteWellFormedness,
                  encrypted_vote: EncryptedVote):
        """Accept one ballot per identity and fold it into the tally"""
        with self._lock:
            self._require_status(Status.VOTING)
            if caller in self.voted_addresses:
                logger.warning(f"Rejected second ballot from {caller}")
                raise DoubleVotingError(caller)

            proof_id = proof_identifier(encrypted_vote, proof)
            if proof_id in self.used_proof_identifiers:
                logger.warning(f"Rejected replayed ballot from {caller}")
                raise DoubleProofError(proof_id)

            if not verify_vote_well_formedness(proof, encrypted_vote, self.pk):
                logger.warning(f"Rejected ballot from {caller}: proof failed")
                raise ProofVerificationError()

            new_tally = combine(self.encrypted_tally, encrypted_vote)

            self.voted_addresses.add(caller)
            self.used_proof_identifiers.add(proof_id)
            self.encrypted_tally = new_tally
            self.cast_count += 1
            logger.info(f"Accepted ballot #{self.cast_count} from {caller}")

    def stop_voting_phase(self, caller: str):
        with self._lock:
            self._require_owner(caller)
            self._require_status(Status.VOTING)
            self._transition(Status.TALLYING)

    def tally(self, caller: str, proof: ProofCorrectDecryption, result: int):
        """Publish the decrypted result; terminal on success"""
        with self._lock:
            self._require_owner(caller)
            self._require_status(Status.TALLYING)
            if not verify_correct_decryption(proof, self.encrypted_tally, result, self.pk):
                logger.warning("Rejected tally: decryption proof failed")
                raise ProofVerificationError()

            self.result = result
            self._transition(Status.FINI)
            logger.info(f"Final result: {result} yes out of {self.cast_count}")

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------

    def get_pk(self) -> Point:
        if self.status == Status.INIT:
            raise WrongStatusError(self.status)
        return self.pk

    def get_result(self) -> int:
        if self.status != Status.FINI:
            raise WrongStatusError(self.status, Status.FINI)
        return self.result

    def get_encrypted_tally(self) -> EncryptedVote:
        return self.encrypted_tally

    def has_voted(self, address: str) -> bool:
        return address in self.voted_addresses

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of the whole session state"""
        return {
            'owner': self.owner,
            'status': self.status.name,
            'pk': self.pk.to_dict() if self.pk is not None else None,
            'encrypted_tally': self.encrypted_tally.to_dict(),
            'cast_count': self.cast_count,
            'voted_addresses': sorted(self.voted_addresses),
            'used_proof_identifiers': sorted(self.used_proof_identifiers),
            'result': self.result,
        }
