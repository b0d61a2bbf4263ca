import argparse
import asyncio
import json
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional

from config.config import SystemConfig, load_config
from crypto_engine import (
    decrypt_tally_with_proof,
    encrypt_vote_with_proof,
    new_key_pair_with_proof,
)
from elgamal import sum_encrypted_votes
from session import Status, VotingSession, VotingSessionError
from utils.utils import (
    PerformanceMonitor,
    create_performance_report,
    format_duration,
    save_results,
    setup_logging,
)
from zk import verify_correct_decryption
from zk.reference_vectors import check_reference_vectors, generate_reference_vectors

logger = logging.getLogger(__name__)


class ElectionOrchestrator:
    """Drives one election end to end against a VotingSession"""

    def __init__(self, config: SystemConfig):
        self.config = config
        self.owner = config.election.owner
        self.session = VotingSession(self.owner)
        self.performance_monitor = PerformanceMonitor()
        self.key_pair = None
        self.results: Dict[str, Any] = {
            'ballots': [],
            'rejected_ballots': [],
            'result': None,
            'decryption_proof': None,
            'performance_metrics': {},
            'integrity_checks': {}
        }

        logger.info("Initialized Election Orchestrator")

    def setup(self):
        with self.performance_monitor.start_operation("key_generation"):
            key_pair_with_proof = new_key_pair_with_proof()
        self.key_pair = key_pair_with_proof.key_pair

        with self.performance_monitor.start_operation("declare_pk"):
            self.session.declare_pk(self.owner, self.key_pair.pk,
                                    key_pair_with_proof.proof)
        self.session.start_voting_phase(self.owner)

    def _encrypt(self, vote: int, voter_id: str):
        start_time = time.perf_counter()
        ballot = encrypt_vote_with_proof(vote, self.session.get_pk())
        logger.debug(f"Encrypted ballot for {voter_id}")
        return ballot, time.perf_counter() - start_time

    async def encrypt_ballots(self, votes: List[int], voter_ids: List[str]):
        """Encrypt and prove every ballot concurrently in a worker pool"""
        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(max_workers=self.config.election.max_workers) as executor:
            with self.performance_monitor.start_operation("encrypt_ballots"):
                tasks = [
                    loop.run_in_executor(executor, self._encrypt, vote, voter_id)
                    for vote, voter_id in zip(votes, voter_ids)
                ]
                return await asyncio.gather(*tasks)

    def cast_ballots(self, votes: List[int], voter_ids: List[str], encrypted) -> List[int]:
        accepted_votes = []
        for vote, voter_id, (ballot, encryption_time) in zip(votes, voter_ids, encrypted):
            try:
                with self.performance_monitor.start_operation("cast_vote"):
                    self.session.cast_vote(voter_id, ballot.proof, ballot.encrypted_vote)
            except VotingSessionError as e:
                logger.error(f"Failed to cast ballot from {voter_id}: {e}")
                self.results['rejected_ballots'].append(
                    {'voter_id': voter_id, 'reason': type(e).__name__})
                continue

            accepted_votes.append(vote)
            self.results['ballots'].append({
                'voter_id': voter_id,
                'encrypted_vote': ballot.encrypted_vote,
                'proof': ballot.proof,
                'encryption_time': encryption_time
            })
        return accepted_votes

    def close_and_tally(self) -> int:
        self.session.stop_voting_phase(self.owner)

        with self.performance_monitor.start_operation("decrypt_tally"):
            decrypted = decrypt_tally_with_proof(
                self.session.get_encrypted_tally(),
                self.session.cast_count,
                self.key_pair)

        with self.performance_monitor.start_operation("tally"):
            self.session.tally(self.owner, decrypted.proof, decrypted.result)

        self.results['decryption_proof'] = decrypted.proof
        return decrypted.result

    async def run_election(self, votes: List[int], voter_ids: List[str]) -> Dict[str, Any]:
        if len(votes) != len(voter_ids):
            raise ValueError("votes and voter_ids must have the same length")

        logger.info(f"Starting election with {len(votes)} voters")
        election_start = time.perf_counter()

        self.setup()
        encrypted = await self.encrypt_ballots(votes, voter_ids)
        accepted_votes = self.cast_ballots(votes, voter_ids, encrypted)

        if not accepted_votes:
            raise ValueError("No valid ballots to tally")

        result = self.close_and_tally()
        election_time = time.perf_counter() - election_start

        self.results['result'] = result
        self.results['session'] = self.session.to_dict()
        self.results['performance_metrics'] = {
            'total_voters': len(votes),
            'accepted_ballots': len(accepted_votes),
            'rejected_ballots': len(votes) - len(accepted_votes),
            'total_election_time': election_time,
            'avg_encryption_time': sum(
                b['encryption_time'] for b in self.results['ballots']) / len(self.results['ballots']),
            'throughput_ballots_per_second': len(accepted_votes) / election_time
        }
        self.results['integrity_checks'] = self._perform_integrity_checks(accepted_votes)

        logger.info(f"Election completed in {format_duration(election_time)}")
        logger.info(f"Final result: {result} yes out of {len(accepted_votes)}")

        return self.results

    def _perform_integrity_checks(self, accepted_votes: List[int]) -> Dict[str, bool]:
        checks = {}

        recomputed_tally = sum_encrypted_votes(
            b['encrypted_vote'] for b in self.results['ballots'])
        checks['encrypted_tally_matches_ballots'] = (
            recomputed_tally == self.session.get_encrypted_tally())

        checks['decryption_proof_valid'] = verify_correct_decryption(
            self.results['decryption_proof'],
            self.session.get_encrypted_tally(),
            self.session.get_result(),
            self.session.get_pk())

        checks['result_matches_plaintext_votes'] = (
            self.session.get_result() == sum(accepted_votes))
        checks['cast_count_matches'] = self.session.cast_count == len(accepted_votes)
        checks['session_finalized'] = self.session.status == Status.FINI

        checks['all_checks_passed'] = all(checks.values())
        return checks


async def run_demo(config: SystemConfig, votes: Optional[List[int]] = None) -> bool:
    votes = list(config.election.votes if votes is None else votes)
    config.election.votes = votes
    voter_ids = config.election.voter_ids()

    print("=" * 80)
    print("VERIFIABLE YES/NO ELECTION - DEMONSTRATION")
    print("   ElGamal on BN254 + Fiat-Shamir zero-knowledge proofs")
    print("=" * 80)

    orchestrator = ElectionOrchestrator(config)

    try:
        results = await orchestrator.run_election(votes, voter_ids)
    except (VotingSessionError, ValueError) as e:
        logger.error(f"Demo failed: {e}")
        return False

    print(f"\nFinal result: {results['result']} yes / "
          f"{results['performance_metrics']['accepted_ballots']} ballots")

    print("\nIntegrity Checks:")
    for check, passed in results['integrity_checks'].items():
        status = "PASSED" if passed else "FAILED"
        print(f"  {check}: {status}")

    report_path = config.results_dir / "election_report.json"
    save_results(results, report_path)

    if config.enable_benchmarking:
        perf_report = create_performance_report(orchestrator.performance_monitor)
        perf_path = config.results_dir / "performance_report.txt"
        with open(perf_path, "w") as f:
            f.write(perf_report)
        print(f"Performance report: {perf_path}")

    print(f"\nFull results saved to: {report_path}")
    return results['integrity_checks']['all_checks_passed']


def write_vectors(path: Path) -> bool:
    vectors = generate_reference_vectors()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(vectors, f, indent=2)
    logger.info(f"Reference vectors written to {path}")
    return all(check_reference_vectors(vectors).values())


def verify_vectors(path: Path) -> bool:
    with open(path, 'r') as f:
        vectors = json.load(f)
    checks = check_reference_vectors(vectors)
    for name, passed in checks.items():
        print(f"  {name}: {'PASSED' if passed else 'FAILED'}")
    return all(checks.values())


def parse_votes(value: str) -> List[int]:
    try:
        votes = [int(v) for v in value.split(',') if v.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid vote list: {value}")
    if any(v not in (0, 1) for v in votes):
        raise argparse.ArgumentTypeError("Votes must be 0 or 1")
    return votes


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Verifiable Private Yes/No Voting Engine')
    parser.add_argument('--mode', choices=['demo', 'vectors', 'verify-vectors'],
                        default='demo')
    parser.add_argument('--config', type=Path, default=Path('config.yaml'),
                        help='Config file path')
    parser.add_argument('--votes', type=parse_votes, default=None,
                        help='Comma-separated 0/1 votes, e.g. 1,0,1,1,0')
    parser.add_argument('--output', type=Path, default=None,
                        help='Reference vector file (vectors modes)')
    parser.add_argument('--log-level', default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])

    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.log_level:
        config.log_level = args.log_level
    config.ensure_directories()

    setup_logging(config.log_level, config.log_dir / "voting_engine.log")

    vectors_path = args.output or config.vectors_file

    if args.mode == 'demo':
        success = asyncio.run(run_demo(config, args.votes))
    elif args.mode == 'vectors':
        success = write_vectors(vectors_path)
    else:
        success = verify_vectors(vectors_path)

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
