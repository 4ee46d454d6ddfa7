import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from election.ballots import (
    BallotMultiset,
    contains_party,
    first_party,
    remove_party,
    split_signature,
)
from election.candidate import Candidate

from .config import MAJORITY_THRESHOLD
from .recorder import (
    TIE_ELIMINATION,
    TIE_WINNER,
    ResultsRecorder,
    RoundSnapshot,
    TieRecord,
)
from .tiebreak import RandomTieBreaker, TieBreaker

logger = logging.getLogger(__name__)


@dataclass
class InstantRunoffResult:
    """Outcome of an instant runoff tabulation."""

    winner: Candidate
    total_ballots: int
    remaining_ballots: int
    share_of_remaining: float
    share_of_total: float
    decided_by_majority: bool
    candidates: List[Candidate]  # registry in input order
    final_ballots: Dict[str, int]
    summary: str
    recorder: ResultsRecorder = field(repr=False, default_factory=ResultsRecorder)

    @property
    def rounds(self) -> List[RoundSnapshot]:
        return self.recorder.rounds

    @property
    def ties(self) -> List[TieRecord]:
        return self.recorder.ties

    @property
    def notes(self) -> List[str]:
        return self.recorder.notes


class InstantRunoffTabulator:
    """
    Instant runoff tabulation engine.

    Repeatedly checks for a majority among the ballots still in play,
    eliminating the last-place candidate and transferring their ballots to the
    next preference until a winner emerges. Once only two candidates remain
    the winner is chosen by the tie-break oracle.
    """

    def __init__(
        self,
        ballots: Union[BallotMultiset, Dict[str, int]],
        candidates: List[Candidate],
        total_ballots: int,
        tie_breaker: Optional[TieBreaker] = None,
        recorder: Optional[ResultsRecorder] = None,
    ):
        """
        Initialize the tabulator and count first preferences.

        Args:
            ballots: Signature -> ballot count. A BallotMultiset is used (and
                mutated) in place; a plain dict is copied
            candidates: Candidates in input order, one per party tag
            total_ballots: Number of valid ballots cast
            tie_breaker: Oracle for ties (default: unseeded random)
            recorder: Event sink (default: a fresh ResultsRecorder)

        Raises:
            ValueError: If total_ballots is not positive, candidates or ballots
                are empty, party tags repeat, a ballot names an unknown party, or
                the ballots outnumber total_ballots
        """
        if total_ballots is None or total_ballots <= 0:
            raise ValueError("total_ballots must be positive")
        if not candidates:
            raise ValueError("candidates must be non-empty")
        if not ballots:
            raise ValueError("ballots must be non-empty")

        by_party: Dict[str, Candidate] = {}
        for candidate in candidates:
            if candidate.party in by_party:
                raise ValueError(
                    f"Party tag {candidate.party} is shared by more than one candidate"
                )
            by_party[candidate.party] = candidate

        if not isinstance(ballots, BallotMultiset):
            ballots = BallotMultiset(ballots)
        for signature in ballots:
            unknown = [p for p in split_signature(signature) if p not in by_party]
            if unknown or not split_signature(signature):
                raise ValueError(f"Ballot {signature!r} names unknown parties")
        if ballots.total() > total_ballots:
            raise ValueError(
                f"{ballots.total()} ballots in play exceed total_ballots {total_ballots}"
            )

        self.ballots = ballots
        self.registry = list(candidates)
        self.candidates = list(candidates)
        self.total_ballots = total_ballots
        self.total_counts = total_ballots
        self.round_count = 1
        self.tie_breaker = tie_breaker or RandomTieBreaker()
        self.recorder = recorder or ResultsRecorder()

        self.winner: Optional[Candidate] = None
        self.summary = ""
        self.candidate_to_eliminate: Optional[Candidate] = None
        self.votes_before_redistribution: Dict[Candidate, int] = {}
        self._by_party = by_party
        self._decided_by_majority = False
        self._exhausted_last_round = 0

        self._set_original_votes()

    def _set_original_votes(self):
        """Reset every candidate and credit each signature to its first choice."""
        for candidate in self.candidates:
            candidate.set_votes(0)

        for signature, count in self.ballots.items():
            self._by_party[first_party(signature)].add_votes(count)

    def run(self) -> InstantRunoffResult:
        """
        Run the complete instant runoff tabulation.

        Returns:
            InstantRunoffResult with the winner and the recorded rounds/ties
        """
        if self.winner is not None:
            raise RuntimeError("This tabulation has already been run")

        logger.info(
            f"Starting instant runoff with {len(self.candidates)} candidates "
            f"and {self.total_ballots} ballots"
        )

        self._record_round()
        self.round_count += 1

        while not self.check_majority():
            self.candidate_to_eliminate = self.eliminate_candidate()
            self.redistribute(self.candidate_to_eliminate)
            self._record_round()
            self.round_count += 1

        logger.info(
            f"Instant runoff complete: {self.winner.label()} wins after "
            f"{len(self.recorder.rounds)} counts"
        )
        return self._build_result()

    def check_majority(self) -> bool:
        """
        Decide whether the current count produces a winner.

        Returns:
            True if a winner was set (majority, sole remaining candidate, or a
            two-candidate toss)
        """
        most_votes = self.candidates[0]
        for candidate in self.candidates:
            if most_votes.current_votes < candidate.current_votes:
                most_votes = candidate

        proportion = self._share(most_votes.current_votes, self.total_counts)
        if proportion > MAJORITY_THRESHOLD:
            self.winner = most_votes
            self._decided_by_majority = True
            self.summary = self._winner_statement(most_votes)
            return True

        if len(self.candidates) == 1:
            # Only reachable when total_ballots exceeds the ballots in play.
            self.winner = most_votes
            self.summary = self._winner_statement(most_votes)
            return True

        if len(self.candidates) == 2:
            # Reached even without equal votes: two remaining always ends the count.
            index = self.tie_breaker.choose_one(2)
            self.winner = self.candidates[index]
            self.recorder.record_tie(
                TieRecord(
                    context=TIE_WINNER,
                    tied=[c.name for c in self.candidates],
                    chosen=self.winner.name,
                    round_number=self.round_count - 1,
                )
            )
            self.summary = self._winner_statement(self.winner)
            return True

        logger.debug(
            f"No majority after count {self.round_count - 1}: leader "
            f"{most_votes.label()} has {proportion * 100}% of remaining ballots"
        )
        return False

    def eliminate_candidate(self) -> Candidate:
        """
        Pick the last-place candidate, breaking ties with the oracle.

        Returns:
            The candidate to eliminate
        """
        least_votes = self.candidates[0]
        for candidate in self.candidates:
            if least_votes.current_votes > candidate.current_votes:
                least_votes = candidate

        losing = [
            c for c in self.candidates if c.current_votes == least_votes.current_votes
        ]
        if len(losing) == 1:
            loser = losing[0]
        else:
            loser = losing[self.tie_breaker.choose_one(len(losing))]
            self.recorder.record_tie(
                TieRecord(
                    context=TIE_ELIMINATION,
                    tied=[c.name for c in losing],
                    chosen=loser.name,
                    round_number=self.round_count - 1,
                )
            )

        logger.info(f"Eliminating {loser.label()} with {loser.current_votes} votes")
        return loser

    def redistribute(self, eliminated: Candidate):
        """
        Transfer the eliminated candidate's ballots to their next preference.

        Every signature carrying the eliminated party loses that token. The
        shortened signature absorbs the count (crediting its new first choice
        when that changed); a signature left empty is exhausted and drops out
        of the majority denominator.

        Args:
            eliminated: Candidate leaving the count
        """
        self.votes_before_redistribution = {
            c: c.current_votes for c in self.candidates if c is not eliminated
        }
        exhausted = 0

        for signature, count in self.ballots.items():
            if not contains_party(signature, eliminated.party):
                continue

            replacement = remove_party(signature, eliminated.party)
            if not replacement:
                self.total_counts -= count
                exhausted += count
            else:
                self.ballots.add(replacement, count)
                lost_to = first_party(signature)
                won_by = first_party(replacement)
                if lost_to != won_by:
                    self._by_party[won_by].add_votes(count)
            self.ballots.remove(signature)

        self.candidates.remove(eliminated)
        self._exhausted_last_round = exhausted
        if exhausted:
            logger.debug(f"{exhausted} ballots exhausted with {eliminated.label()}")

    def _record_round(self):
        round_number = self.round_count
        transferred = round_number > 1
        self.recorder.record_round(
            RoundSnapshot(
                round_number=round_number,
                votes={c.label(): c.current_votes for c in self.candidates},
                deltas=(
                    {
                        c.label(): c.current_votes - self.votes_before_redistribution[c]
                        for c in self.candidates
                    }
                    if transferred
                    else {}
                ),
                eliminated=(
                    self.candidate_to_eliminate.label() if transferred else None
                ),
                ballot_distribution=self.ballots.as_dict(),
                remaining_ballots=self.total_counts,
                exhausted_ballots=self._exhausted_last_round if transferred else 0,
            )
        )

    def _winner_statement(self, winner: Candidate) -> str:
        share_remaining = self._share(winner.current_votes, self.total_counts) * 100
        share_total = self._share(winner.current_votes, self.total_ballots) * 100
        return (
            f"{winner.label()} has won the election with {share_remaining}% of the "
            f"remaining votes.\nThis is {share_total}% of the total votes cast in "
            f"this election."
        )

    @staticmethod
    def _share(votes: int, total: int) -> float:
        return votes / total if total > 0 else 0.0

    def _build_result(self) -> InstantRunoffResult:
        return InstantRunoffResult(
            winner=self.winner,
            total_ballots=self.total_ballots,
            remaining_ballots=self.total_counts,
            share_of_remaining=self._share(self.winner.current_votes, self.total_counts),
            share_of_total=self._share(self.winner.current_votes, self.total_ballots),
            decided_by_majority=self._decided_by_majority,
            candidates=self.registry,
            final_ballots=self.ballots.as_dict(),
            summary=self.summary,
            recorder=self.recorder,
        )
