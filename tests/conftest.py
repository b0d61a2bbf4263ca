"""Shared fixtures for the voting engine test suite."""

import random

import pytest

from crypto_engine import encrypt_vote_with_proof, new_key_pair_with_proof
from session import VotingSession

OWNER = "owner"


@pytest.fixture
def rng():
    """Seeded randomness so every proof in a test is reproducible"""
    return random.Random(20240901)


@pytest.fixture(scope="module")
def key_pair_with_proof():
    return new_key_pair_with_proof(random.Random(7))


@pytest.fixture(scope="module")
def key_pair(key_pair_with_proof):
    return key_pair_with_proof.key_pair


@pytest.fixture(scope="module")
def other_key_pair():
    return new_key_pair_with_proof(random.Random(8)).key_pair


@pytest.fixture
def session():
    return VotingSession(OWNER)


@pytest.fixture
def declared_session(session, key_pair_with_proof):
    session.declare_pk(OWNER, key_pair_with_proof.key_pair.pk, key_pair_with_proof.proof)
    return session


@pytest.fixture
def voting_session(declared_session):
    declared_session.start_voting_phase(OWNER)
    return declared_session


@pytest.fixture
def make_ballot(key_pair, rng):
    """Ballot factory under the module key pair"""
    def _make(vote: int):
        return encrypt_vote_with_proof(vote, key_pair.pk, rng)
    return _make
