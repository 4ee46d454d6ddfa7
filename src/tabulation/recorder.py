import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

TIE_ELIMINATION = "elimination"
TIE_WINNER = "winner"
TIE_PARTY_SEAT = "party_seat"
TIE_CANDIDATE_SEAT = "candidate_seat"


@dataclass
class RoundSnapshot:
    """Vote distribution after one instant runoff count."""

    round_number: int
    votes: Dict[str, int]  # candidate label -> votes, live candidates only
    deltas: Dict[str, int]  # votes gained from the transfer, empty on the 1st count
    eliminated: Optional[str]  # candidate whose ballots were transferred
    ballot_distribution: Dict[str, int]
    remaining_ballots: int
    exhausted_ballots: int = 0


@dataclass
class PartyAllocation:
    """Seat allocation breakdown for one open party list party."""

    party: str
    votes: int
    first_allocation: int
    remaining_votes: int
    second_allocation: int = 0

    @property
    def total_seats(self) -> int:
        return self.first_allocation + self.second_allocation


@dataclass
class TieRecord:
    """One use of the tie-break oracle: who was tied and who it picked."""

    context: str
    tied: List[str]
    chosen: str
    round_number: Optional[int] = None
    party: Optional[str] = None

    def describe(self) -> str:
        names = ", ".join(self.tied)
        if self.context == TIE_ELIMINATION:
            return (
                f"{names} tied in number of votes while determining the loser "
                f"during round {self.round_number}. {self.chosen} was eliminated "
                f"in a fair coin toss."
            )
        if self.context == TIE_WINNER:
            return (
                f"{' and '.join(self.tied)} tied in number of votes while "
                f"determining the winner. {self.chosen} won the election in a "
                f"fair coin toss."
            )
        if self.context == TIE_PARTY_SEAT:
            return (
                f"{names} tied when assigning remaining seats. "
                f"{self.chosen} won in a fair coin toss."
            )
        return (
            f"{names} tied in popularity when assigning seats for {self.party}. "
            f"{self.chosen} won in a fair coin toss."
        )


@dataclass
class ResultsRecorder:
    """
    Append-only log of what a tabulation did.

    Engines push structured events here; the reporting layer turns them into
    text and the summaries below turn them into tables.
    """

    rounds: List[RoundSnapshot] = field(default_factory=list)
    allocations: List[PartyAllocation] = field(default_factory=list)
    ties: List[TieRecord] = field(default_factory=list)
    seat_awards: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    def record_round(self, snapshot: RoundSnapshot):
        self.rounds.append(snapshot)

    def record_allocation(self, allocation: PartyAllocation):
        self.allocations.append(allocation)

    def record_tie(self, tie: TieRecord):
        self.ties.append(tie)
        logger.info(tie.describe())

    def record_seat_award(self, party: str):
        self.seat_awards.append(party)

    def add_note(self, note: str):
        self.notes.append(note)

    def allocation_for(self, party: str) -> Optional[PartyAllocation]:
        return next((a for a in self.allocations if a.party == party), None)

    @property
    def had_ties(self) -> bool:
        return bool(self.ties)

    def round_summary(self) -> pd.DataFrame:
        """
        Get round-by-round candidate totals as a DataFrame.

        Returns:
            DataFrame with one row per candidate per round
        """
        if not self.rounds:
            return pd.DataFrame()

        summary_data = []
        for snapshot in self.rounds:
            for candidate, votes in snapshot.votes.items():
                summary_data.append(
                    {
                        "round": snapshot.round_number,
                        "candidate": candidate,
                        "votes": votes,
                        "delta": snapshot.deltas.get(candidate, 0),
                        "transferred_from": snapshot.eliminated,
                        "remaining_ballots": snapshot.remaining_ballots,
                        "exhausted_ballots": snapshot.exhausted_ballots,
                    }
                )

        return pd.DataFrame(summary_data)

    def allocation_summary(self) -> pd.DataFrame:
        """Get the per-party seat allocation table as a DataFrame."""
        if not self.allocations:
            return pd.DataFrame()

        return pd.DataFrame(
            [
                {
                    "party": a.party,
                    "votes": a.votes,
                    "first_allocation": a.first_allocation,
                    "remaining_votes": a.remaining_votes,
                    "second_allocation": a.second_allocation,
                    "total_seats": a.total_seats,
                }
                for a in self.allocations
            ]
        )

    def tie_summary(self) -> pd.DataFrame:
        """Get every recorded tie as a DataFrame."""
        if not self.ties:
            return pd.DataFrame()

        return pd.DataFrame(
            [
                {
                    "context": tie.context,
                    "tied": ", ".join(tie.tied),
                    "chosen": tie.chosen,
                    "round": tie.round_number,
                    "party": tie.party,
                }
                for tie in self.ties
            ]
        )
