"""Session ordering, authorization, double-use prevention and the full scenario."""

import threading
from dataclasses import replace

import pytest

from crypto_engine import (
    decrypt_tally_with_proof,
    encrypt_vote_with_proof,
    new_key_pair_with_proof,
)
from ec import INFINITY, ORDER, MalformedInputError, Point
from session import (
    DoubleProofError,
    DoubleVotingError,
    ProofVerificationError,
    Status,
    UnauthorizedError,
    VotingSession,
    VotingSessionError,
    WrongStatusError,
)
from zk import prove_sk_knowledge

OWNER = "owner"


@pytest.fixture
def tallying_session(voting_session, make_ballot):
    for i, vote in enumerate([1, 0, 1]):
        ballot = make_ballot(vote)
        voting_session.cast_vote(f"voter_{i}", ballot.proof, ballot.encrypted_vote)
    voting_session.stop_voting_phase(OWNER)
    return voting_session


def _decrypt(session, key_pair, rng):
    return decrypt_tally_with_proof(
        session.get_encrypted_tally(), session.cast_count, key_pair, rng)


@pytest.fixture
def finished_session(tallying_session, key_pair, rng):
    decrypted = _decrypt(tallying_session, key_pair, rng)
    tallying_session.tally(OWNER, decrypted.proof, decrypted.result)
    return tallying_session


# ============================================================================
# DECLARE
# ============================================================================


class TestDeclarePk:

    def test_declare(self, session, key_pair_with_proof):
        session.declare_pk(OWNER, key_pair_with_proof.key_pair.pk, key_pair_with_proof.proof)
        assert session.status == Status.DECLARED
        assert session.get_pk() == key_pair_with_proof.key_pair.pk

    def test_non_owner(self, session, key_pair_with_proof):
        before = session.to_dict()
        with pytest.raises(UnauthorizedError) as exc_info:
            session.declare_pk("mallory", key_pair_with_proof.key_pair.pk,
                               key_pair_with_proof.proof)
        assert exc_info.value.caller == "mallory"
        assert session.to_dict() == before

    def test_proof_for_other_key(self, session, key_pair_with_proof, other_key_pair, rng):
        before = session.to_dict()
        wrong_proof = prove_sk_knowledge(other_key_pair, rng)
        with pytest.raises(ProofVerificationError):
            session.declare_pk(OWNER, key_pair_with_proof.key_pair.pk, wrong_proof)
        assert session.to_dict() == before

    @pytest.mark.parametrize("pk", [INFINITY, Point(1, 3)])
    def test_malformed_pk(self, session, key_pair_with_proof, pk):
        with pytest.raises(MalformedInputError):
            session.declare_pk(OWNER, pk, key_pair_with_proof.proof)
        assert session.status == Status.INIT

    def test_declare_twice(self, declared_session, rng):
        other = new_key_pair_with_proof(rng)
        with pytest.raises(WrongStatusError) as exc_info:
            declared_session.declare_pk(OWNER, other.key_pair.pk, other.proof)
        assert exc_info.value.status == Status.DECLARED
        assert exc_info.value.expected == Status.INIT

    def test_get_pk_before_declare(self, session):
        with pytest.raises(WrongStatusError):
            session.get_pk()


# ============================================================================
# PHASES
# ============================================================================


class TestPhaseOrdering:

    def test_start_before_declare(self, session):
        with pytest.raises(WrongStatusError):
            session.start_voting_phase(OWNER)
        assert session.status == Status.INIT

    def test_authorization_checked_before_status(self, session):
        with pytest.raises(UnauthorizedError):
            session.start_voting_phase("mallory")
        with pytest.raises(UnauthorizedError):
            session.stop_voting_phase("mallory")

    def test_non_owner_cannot_start(self, declared_session):
        with pytest.raises(UnauthorizedError):
            declared_session.start_voting_phase("mallory")
        assert declared_session.status == Status.DECLARED

    def test_stop_before_start(self, declared_session):
        with pytest.raises(WrongStatusError):
            declared_session.stop_voting_phase(OWNER)

    def test_non_owner_cannot_stop(self, voting_session):
        with pytest.raises(UnauthorizedError):
            voting_session.stop_voting_phase("mallory")
        assert voting_session.status == Status.VOTING

    def test_tally_during_voting(self, voting_session, key_pair, rng):
        decrypted = _decrypt(voting_session, key_pair, rng)
        with pytest.raises(WrongStatusError):
            voting_session.tally(OWNER, decrypted.proof, decrypted.result)

    def test_get_result_before_fini(self, tallying_session):
        with pytest.raises(WrongStatusError):
            tallying_session.get_result()

    def test_errors_share_a_base(self):
        for exc in (WrongStatusError, UnauthorizedError, ProofVerificationError,
                    DoubleVotingError, DoubleProofError):
            assert issubclass(exc, VotingSessionError)


# ============================================================================
# CASTING
# ============================================================================


class TestCastVote:

    def test_cast_before_voting(self, declared_session, make_ballot):
        ballot = make_ballot(1)
        with pytest.raises(WrongStatusError):
            declared_session.cast_vote("alice", ballot.proof, ballot.encrypted_vote)

    def test_cast(self, voting_session, make_ballot):
        ballot = make_ballot(1)
        voting_session.cast_vote("alice", ballot.proof, ballot.encrypted_vote)
        assert voting_session.has_voted("alice")
        assert voting_session.cast_count == 1
        assert voting_session.get_encrypted_tally() == ballot.encrypted_vote

    def test_double_voting(self, voting_session, make_ballot):
        first, second = make_ballot(1), make_ballot(0)
        voting_session.cast_vote("alice", first.proof, first.encrypted_vote)
        before = voting_session.to_dict()
        with pytest.raises(DoubleVotingError) as exc_info:
            voting_session.cast_vote("alice", second.proof, second.encrypted_vote)
        assert exc_info.value.voter == "alice"
        assert voting_session.to_dict() == before

    def test_replayed_ballot(self, voting_session, make_ballot):
        ballot = make_ballot(1)
        voting_session.cast_vote("alice", ballot.proof, ballot.encrypted_vote)
        before = voting_session.to_dict()
        with pytest.raises(DoubleProofError):
            voting_session.cast_vote("bob", ballot.proof, ballot.encrypted_vote)
        assert voting_session.to_dict() == before
        assert not voting_session.has_voted("bob")

    def test_invalid_proof(self, voting_session, make_ballot):
        ballot = make_ballot(1)
        before = voting_session.to_dict()
        tampered = replace(ballot.proof, r0=ballot.proof.r0 + ORDER)
        with pytest.raises(ProofVerificationError):
            voting_session.cast_vote("alice", tampered, ballot.encrypted_vote)
        assert voting_session.to_dict() == before

    def test_failed_ballot_does_not_burn_voter(self, voting_session, make_ballot):
        ballot = make_ballot(0)
        other = make_ballot(1)
        with pytest.raises(ProofVerificationError):
            voting_session.cast_vote("alice", ballot.proof, other.encrypted_vote)
        voting_session.cast_vote("alice", ballot.proof, ballot.encrypted_vote)
        assert voting_session.cast_count == 1

    def test_cast_after_stop(self, tallying_session, make_ballot):
        ballot = make_ballot(1)
        with pytest.raises(WrongStatusError):
            tallying_session.cast_vote("late", ballot.proof, ballot.encrypted_vote)

    def test_concurrent_replay_only_one_succeeds(self, voting_session, make_ballot):
        ballot = make_ballot(1)
        outcomes = []

        def cast(voter):
            try:
                voting_session.cast_vote(voter, ballot.proof, ballot.encrypted_vote)
                outcomes.append("ok")
            except DoubleProofError:
                outcomes.append("replay")

        threads = [threading.Thread(target=cast, args=(f"v{i}",)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["ok", "replay", "replay", "replay"]
        assert voting_session.cast_count == 1


# ============================================================================
# TALLY
# ============================================================================


class TestTally:

    def test_wrong_result(self, tallying_session, key_pair, rng):
        decrypted = _decrypt(tallying_session, key_pair, rng)
        before = tallying_session.to_dict()
        with pytest.raises(ProofVerificationError):
            tallying_session.tally(OWNER, decrypted.proof, decrypted.result + 1)
        assert tallying_session.to_dict() == before

    def test_non_owner(self, tallying_session, key_pair, rng):
        decrypted = _decrypt(tallying_session, key_pair, rng)
        with pytest.raises(UnauthorizedError):
            tallying_session.tally("mallory", decrypted.proof, decrypted.result)

    def test_tally(self, tallying_session, key_pair, rng):
        decrypted = _decrypt(tallying_session, key_pair, rng)
        tallying_session.tally(OWNER, decrypted.proof, decrypted.result)
        assert tallying_session.status == Status.FINI
        assert tallying_session.get_result() == 2

    def test_empty_election(self, voting_session, key_pair, rng):
        voting_session.stop_voting_phase(OWNER)
        decrypted = _decrypt(voting_session, key_pair, rng)
        voting_session.tally(OWNER, decrypted.proof, decrypted.result)
        assert voting_session.get_result() == 0


class TestFinished:

    @pytest.mark.parametrize("operation", [
        "declare_pk", "start_voting_phase", "cast_vote", "stop_voting_phase", "tally",
    ])
    def test_every_transition_is_closed(self, finished_session, other_key_pair,
                                        make_ballot, key_pair, rng, operation):
        ballot = make_ballot(1)
        calls = {
            "declare_pk": lambda s: s.declare_pk(
                OWNER, other_key_pair.pk, prove_sk_knowledge(other_key_pair, rng)),
            "start_voting_phase": lambda s: s.start_voting_phase(OWNER),
            "cast_vote": lambda s: s.cast_vote("late", ballot.proof, ballot.encrypted_vote),
            "stop_voting_phase": lambda s: s.stop_voting_phase(OWNER),
            "tally": lambda s: s.tally(OWNER, _decrypt(s, key_pair, rng).proof, 2),
        }
        before = finished_session.to_dict()
        with pytest.raises(WrongStatusError):
            calls[operation](finished_session)
        assert finished_session.to_dict() == before
        assert finished_session.status == Status.FINI
        assert finished_session.get_result() == 2


# ============================================================================
# SCENARIO
# ============================================================================


def test_five_voter_election(rng):
    session = VotingSession(OWNER)
    election_key = new_key_pair_with_proof(rng)
    session.declare_pk(OWNER, election_key.key_pair.pk, election_key.proof)
    session.start_voting_phase(OWNER)

    for i, vote in enumerate([1, 0, 1, 1, 0]):
        ballot = encrypt_vote_with_proof(vote, session.get_pk(), rng)
        session.cast_vote(f"voter_{i}", ballot.proof, ballot.encrypted_vote)

    session.stop_voting_phase(OWNER)
    decrypted = decrypt_tally_with_proof(
        session.get_encrypted_tally(), session.cast_count, election_key.key_pair, rng)
    assert decrypted.result == 3

    session.tally(OWNER, decrypted.proof, decrypted.result)
    assert session.status == Status.FINI
    assert session.get_result() == 3

    snapshot = session.to_dict()
    with pytest.raises(WrongStatusError):
        session.tally(OWNER, decrypted.proof, decrypted.result)
    assert session.to_dict() == snapshot
    assert snapshot['cast_count'] == 5
    assert snapshot['voted_addresses'] == [f"voter_{i}" for i in range(5)]
