import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from election.candidate import Candidate, Party

from .recorder import (
    TIE_CANDIDATE_SEAT,
    TIE_PARTY_SEAT,
    PartyAllocation,
    ResultsRecorder,
    TieRecord,
)
from .tiebreak import RandomTieBreaker, TieBreaker

logger = logging.getLogger(__name__)


@dataclass
class OpenPartyListResult:
    """Outcome of an open party list tabulation."""

    quota: int
    total_ballots: int
    seats_available: int
    seats_left: int
    parties: List[Party]
    winning_candidates: List[Candidate]
    recorder: ResultsRecorder = field(repr=False, default_factory=ResultsRecorder)

    @property
    def all_seats_filled(self) -> bool:
        return self.seats_left == 0

    @property
    def seats_by_party(self) -> Dict[str, int]:
        return {party.name: party.seats_won for party in self.parties}

    @property
    def first_allocation(self) -> Dict[str, int]:
        return {a.party: a.first_allocation for a in self.recorder.allocations}

    @property
    def second_allocation(self) -> Dict[str, int]:
        return {a.party: a.second_allocation for a in self.recorder.allocations}

    @property
    def remaining_votes(self) -> Dict[str, int]:
        return {party.name: party.remaining_votes for party in self.parties}

    @property
    def ties(self) -> List[TieRecord]:
        return self.recorder.ties

    @property
    def notes(self) -> List[str]:
        return self.recorder.notes


class OpenPartyListTabulator:
    """
    Open party list seat allocation engine.

    Seats go to parties in two phases: whole quotas first, then one seat at a
    time to the largest remainders. Each party's seats then go to its most
    popular candidates.
    """

    def __init__(
        self,
        total_ballots: int,
        seats_available: int,
        parties: List[Party],
        tie_breaker: Optional[TieBreaker] = None,
        recorder: Optional[ResultsRecorder] = None,
    ):
        """
        Initialize the tabulator and compute the quota.

        Args:
            total_ballots: Number of ballots cast
            seats_available: Number of seats up for election
            parties: Parties with their candidates and vote totals
            tie_breaker: Oracle for ties (default: unseeded random)
            recorder: Event sink (default: a fresh ResultsRecorder)

        Raises:
            ValueError: If total_ballots or seats_available is not positive,
                parties is empty, or there are fewer ballots than seats
        """
        if total_ballots is None or total_ballots <= 0:
            raise ValueError("total_ballots must be positive")
        if seats_available is None or seats_available <= 0:
            raise ValueError("seats_available must be positive")
        if not parties:
            raise ValueError("parties must contain at least one party")
        if total_ballots < seats_available:
            raise ValueError(
                f"{total_ballots} ballots cannot fill a quota for {seats_available} seats"
            )

        self.total_ballots = total_ballots
        self.seats_available = seats_available
        self.parties = list(parties)
        self.quota = total_ballots // seats_available
        self.seats_left = seats_available
        self.winning_candidates: List[Candidate] = []
        self.tie_breaker = tie_breaker or RandomTieBreaker()
        self.recorder = recorder or ResultsRecorder()
        self._allocations: Dict[Party, PartyAllocation] = {}
        self._has_run = False

    @property
    def num_candidates(self) -> int:
        return sum(party.num_candidates for party in self.parties)

    def run(self) -> OpenPartyListResult:
        """
        Run the complete open party list tabulation.

        Returns:
            OpenPartyListResult with seats per party and the elected candidates
        """
        if self._has_run:
            raise RuntimeError("This tabulation has already been run")
        self._has_run = True

        logger.info(
            f"Starting open party list: {len(self.parties)} parties, "
            f"{self.num_candidates} candidates, {self.seats_available} seats, "
            f"quota {self.quota}"
        )

        self.conduct_first_allocation()
        self.conduct_second_allocation()
        self.determine_winners()

        if self.seats_left > 0:
            self.recorder.add_note(
                f"{self.seats_left} seat(s) has not been distributed. This is likely "
                f"due to there being less candidates than seats available."
            )

        logger.info(
            "Open party list complete: "
            + ", ".join(f"{p.name}={p.seats_won}" for p in self.parties)
        )
        return OpenPartyListResult(
            quota=self.quota,
            total_ballots=self.total_ballots,
            seats_available=self.seats_available,
            seats_left=self.seats_left,
            parties=self.parties,
            winning_candidates=self.winning_candidates,
            recorder=self.recorder,
        )

    def conduct_first_allocation(self):
        """
        Award every party one seat per whole quota.

        A party gets at most one seat per candidate, and never more than the
        seats still open. Parties are visited in list order, so when whole
        quotas outnumber the seats (a quota smaller than the seat count) the
        earlier parties take the remaining seats first.
        """
        for party in self.parties:
            obtained = min(
                party.total_votes // self.quota, party.num_candidates, self.seats_left
            )
            party.set_seats_won(obtained)
            party.set_remaining_votes(party.total_votes - self.quota * obtained)
            self.seats_left -= obtained

            allocation = PartyAllocation(
                party=party.name,
                votes=party.total_votes,
                first_allocation=obtained,
                remaining_votes=party.remaining_votes,
            )
            self._allocations[party] = allocation
            self.recorder.record_allocation(allocation)
            logger.debug(f"{party.name} has {obtained} quota(s)")

        logger.info(f"{self.seats_left} seat(s) remaining after the first allocation")

    def conduct_second_allocation(self):
        """
        Hand out the seats left over by remainders, largest first.

        Parties sharing a remainder form one group. Groups are visited from
        the largest remainder down and then around again until the seats run
        out or every party is at candidate capacity. A group that is larger
        than the seats still available is settled by the tie-break oracle one
        seat at a time.
        """
        if self.seats_left <= 0:
            return

        groups: Dict[int, List[Party]] = {}
        for party in self.parties:
            groups.setdefault(party.remaining_votes, []).append(party)
        order = sorted(groups, reverse=True)

        full_parties = set()
        index = 0
        while self.seats_left > 0 and len(full_parties) < len(self.parties):
            group = groups[order[index]]

            for party in group:
                if party.at_capacity:
                    full_parties.add(party)
            group[:] = [party for party in group if not party.at_capacity]

            if 0 < len(group) <= self.seats_left:
                for party in group:
                    self._add_seat(party)
            elif len(group) > self.seats_left:
                tied = list(group)
                while self.seats_left > 0:
                    winning_index = self.tie_breaker.choose_one(len(tied))
                    winner = tied[winning_index]
                    self._add_seat(winner)
                    self.recorder.record_tie(
                        TieRecord(
                            context=TIE_PARTY_SEAT,
                            tied=[party.name for party in tied],
                            chosen=winner.name,
                        )
                    )
                    tied.pop(winning_index)

            index = (index + 1) % len(order)

        if self.seats_left > 0:
            logger.warning(
                f"{self.seats_left} seat(s) left undistributed: every party is at "
                f"candidate capacity"
            )

    def _add_seat(self, party: Party) -> bool:
        if party.at_capacity:
            return False

        party.set_seats_won(party.seats_won + 1)
        self.seats_left -= 1
        self.recorder.record_seat_award(party.name)
        self._allocations[party].second_allocation += 1
        logger.debug(f"{party.name} receives another seat")
        return True

    def determine_winners(self):
        """Fill each party's seats with its candidates in descending vote order."""
        for party in self.parties:
            seats = party.seats_won
            by_votes: Dict[int, List[Candidate]] = {}
            for candidate in party.candidates:
                by_votes.setdefault(candidate.current_votes, []).append(candidate)

            distributed = 0
            for votes in sorted(by_votes, reverse=True):
                if distributed >= seats:
                    break
                group = by_votes[votes]
                if len(group) <= seats - distributed:
                    self.winning_candidates.extend(group)
                    distributed += len(group)
                    continue

                tied = list(group)
                while tied and distributed < seats:
                    winning_index = self.tie_breaker.choose_one(len(tied))
                    winner = tied[winning_index]
                    self.winning_candidates.append(winner)
                    self.recorder.record_tie(
                        TieRecord(
                            context=TIE_CANDIDATE_SEAT,
                            tied=[candidate.name for candidate in tied],
                            chosen=winner.name,
                            party=winner.party,
                        )
                    )
                    tied.pop(winning_index)
                    distributed += 1

        logger.info(
            "Elected: "
            + ", ".join(candidate.label() for candidate in self.winning_candidates)
        )
