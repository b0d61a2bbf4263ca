"""Voting session state machine gating the protocol phases."""

from .voting_session import (
    # Session
    VotingSession,
    Status,

    # Exceptions
    VotingSessionError,
    WrongStatusError,
    UnauthorizedError,
    ProofVerificationError,
    DoubleVotingError,
    DoubleProofError,
)

__all__ = [
    'VotingSession',
    'Status',
    'VotingSessionError',
    'WrongStatusError',
    'UnauthorizedError',
    'ProofVerificationError',
    'DoubleVotingError',
    'DoubleProofError',
]
