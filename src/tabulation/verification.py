"""
Consistency checks for finished tabulations.

Each verifier re-derives the bookkeeping a result must satisfy and returns a
report dictionary; ``generate_verification_report`` turns one into text.
Instant runoff outcomes can also be cross-checked against pyrankvote.
"""

import logging
from typing import Dict, List, Optional, Sequence

from pyrankvote import Ballot
from pyrankvote import Candidate as RankedCandidate
from pyrankvote import instant_runoff_voting

from election.ballots import BallotMultiset, split_signature
from election.candidate import Candidate

from .config import MAJORITY_THRESHOLD
from .instant_runoff import InstantRunoffResult
from .open_party_list import OpenPartyListResult

logger = logging.getLogger(__name__)


def _check(checks: List[Dict], name: str, passed: bool, detail: str = ""):
    checks.append({"check": name, "passed": bool(passed), "detail": detail})


def verify_instant_runoff(result: InstantRunoffResult) -> Dict:
    """
    Verify the ballot bookkeeping of an instant runoff result.

    Args:
        result: Finished instant runoff result

    Returns:
        Verification report dictionary
    """
    logger.info("Verifying instant runoff result")
    checks: List[Dict] = []

    final_total = sum(result.final_ballots.values())
    _check(
        checks,
        "final ballots match remaining count",
        final_total == result.remaining_ballots,
        f"{final_total} in play, {result.remaining_ballots} counted",
    )
    _check(
        checks,
        "remaining ballots within total",
        0 <= result.remaining_ballots <= result.total_ballots,
        f"{result.remaining_ballots} of {result.total_ballots}",
    )
    _check(
        checks,
        "winner is a registered candidate",
        any(candidate is result.winner for candidate in result.candidates),
        result.winner.label(),
    )
    if result.decided_by_majority:
        _check(
            checks,
            "majority winner holds a majority",
            result.share_of_remaining > MAJORITY_THRESHOLD,
            f"{result.share_of_remaining * 100:.2f}% of remaining ballots",
        )

    previous_remaining = result.total_ballots
    for snapshot in result.rounds:
        live_votes = sum(snapshot.votes.values())
        in_play = sum(snapshot.ballot_distribution.values())
        _check(
            checks,
            f"count {snapshot.round_number} votes match ballots in play",
            live_votes == in_play == snapshot.remaining_ballots,
            f"{live_votes} votes, {in_play} ballots, {snapshot.remaining_ballots} remaining",
        )
        _check(
            checks,
            f"count {snapshot.round_number} exhausted ballots accounted for",
            previous_remaining - snapshot.exhausted_ballots == snapshot.remaining_ballots,
            f"{snapshot.exhausted_ballots} exhausted",
        )
        previous_remaining = snapshot.remaining_ballots

    return {
        "election_type": "Instant Runoff",
        "winner": result.winner.label(),
        "checks": checks,
        "failed_checks": [c["check"] for c in checks if not c["passed"]],
        "verification_passed": all(c["passed"] for c in checks),
    }


def verify_open_party_list(result: OpenPartyListResult) -> Dict:
    """
    Verify the seat bookkeeping of an open party list result.

    Args:
        result: Finished open party list result

    Returns:
        Verification report dictionary
    """
    logger.info("Verifying open party list result")
    checks: List[Dict] = []

    _check(
        checks,
        "quota is ballots divided by seats",
        result.quota == result.total_ballots // result.seats_available,
        f"quota {result.quota}",
    )

    parties = {party.name: party for party in result.parties}
    seats_open = result.seats_available
    for allocation in result.recorder.allocations:
        party = parties[allocation.party]
        expected = min(allocation.votes // result.quota, party.num_candidates, seats_open)
        seats_open -= expected
        _check(
            checks,
            f"{party.name} first allocation",
            allocation.first_allocation == expected,
            f"{allocation.first_allocation} awarded, {expected} expected",
        )
        _check(
            checks,
            f"{party.name} remaining votes",
            allocation.remaining_votes
            == allocation.votes - result.quota * allocation.first_allocation,
            f"{allocation.remaining_votes} remaining",
        )
        _check(
            checks,
            f"{party.name} within candidate capacity",
            party.seats_won <= party.num_candidates,
            f"{party.seats_won} seats, {party.num_candidates} candidates",
        )
        _check(
            checks,
            f"{party.name} seat totals agree",
            allocation.total_seats == party.seats_won,
            f"{allocation.total_seats} allocated, {party.seats_won} held",
        )

        elected = [c for c in result.winning_candidates if c.party == party.name]
        _check(
            checks,
            f"{party.name} elected candidates fill its seats",
            len(elected) == party.seats_won,
            f"{len(elected)} elected",
        )

    seats_won = sum(party.seats_won for party in result.parties)
    _check(
        checks,
        "seats awarded plus seats left equal seats available",
        seats_won + result.seats_left == result.seats_available,
        f"{seats_won} + {result.seats_left} of {result.seats_available}",
    )
    if result.seats_left > 0:
        _check(
            checks,
            "undistributed seats only when every party is full",
            all(party.at_capacity for party in result.parties),
            f"{result.seats_left} seat(s) left",
        )

    return {
        "election_type": "Open Party List",
        "winner": ", ".join(c.label() for c in result.winning_candidates),
        "checks": checks,
        "failed_checks": [c["check"] for c in checks if not c["passed"]],
        "verification_passed": all(c["passed"] for c in checks),
    }


def cross_check_with_pyrankvote(
    ballots: BallotMultiset,
    candidates: Sequence[Candidate],
    winner: Optional[Candidate] = None,
) -> Dict:
    """
    Re-run an instant runoff election with pyrankvote and compare winners.

    Only meaningful when no tie-break was needed, since pyrankvote settles
    ties its own way.

    Args:
        ballots: Ballot multiset as it stood before tabulation
        candidates: Candidates in input order
        winner: Winner our tabulation produced, if any

    Returns:
        Dictionary with both winners and whether they match
    """
    ranked = {c.party: RankedCandidate(c.name) for c in candidates}

    expanded: List[Ballot] = []
    for signature, count in ballots.items():
        ranked_candidates = [ranked[party] for party in split_signature(signature)]
        expanded.extend(
            Ballot(ranked_candidates=ranked_candidates) for _ in range(count)
        )

    logger.info(f"Cross-checking {len(expanded)} ballots with pyrankvote")
    election_result = instant_runoff_voting(list(ranked.values()), expanded)
    reference_winners = [c.name for c in election_result.get_winners()]

    return {
        "our_winner": winner.name if winner else None,
        "reference_winners": reference_winners,
        "winners_match": winner is not None and reference_winners == [winner.name],
    }


def generate_verification_report(verification_results: Dict) -> str:
    """
    Generate a human-readable verification report.

    Args:
        verification_results: Output of one of the verify functions

    Returns:
        Formatted report text
    """
    report = []
    report.append("=" * 60)
    report.append(f"{verification_results['election_type'].upper()} VERIFICATION REPORT")
    report.append("=" * 60)

    if verification_results["verification_passed"]:
        report.append("VERIFICATION PASSED - All consistency checks hold")
    else:
        report.append(
            f"VERIFICATION FAILED - {len(verification_results['failed_checks'])} "
            f"check(s) failed"
        )
    report.append(f"Winner(s): {verification_results['winner']}")
    report.append("")

    report.append("CHECKS:")
    for check in verification_results["checks"]:
        status = "ok  " if check["passed"] else "FAIL"
        line = f"  [{status}] {check['check']}"
        if check["detail"]:
            line += f" ({check['detail']})"
        report.append(line)

    return "\n".join(report)
