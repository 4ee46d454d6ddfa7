import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .ballots import BallotMultiset, format_token
from .candidate import Candidate, Party

logger = logging.getLogger(__name__)

MIN_RANKED_FRACTION = 0.5


@dataclass
class BallotBuildResult:
    """Ballot multiset plus the bookkeeping from building it."""

    ballots: BallotMultiset
    total_ballots: int
    invalidated: List[Tuple[Optional[int], ...]] = field(default_factory=list)

    @property
    def invalidated_count(self) -> int:
        return len(self.invalidated)


def build_candidates(entries: Iterable[Tuple[str, str]]) -> List[Candidate]:
    """
    Create candidates from (name, party) pairs.

    Args:
        entries: Candidate name and party tag, in ballot column order

    Returns:
        Candidates with ids assigned sequentially from 0
    """
    return [
        Candidate(name, party, candidate_id)
        for candidate_id, (name, party) in enumerate(entries)
    ]


def group_into_parties(candidates: Sequence[Candidate]) -> List[Party]:
    """
    Group candidates into parties in order of first appearance.

    A party's total votes is the sum of its candidates' current votes.
    """
    parties: Dict[str, Party] = {}
    for candidate in candidates:
        party = parties.get(candidate.party)
        if party is None:
            party = Party(candidate.party)
            parties[candidate.party] = party
        party.add_candidate(candidate)
        party.set_total_votes(party.total_votes + candidate.current_votes)

    return list(parties.values())


def _ranking_signature(
    candidates: Sequence[Candidate], ranking: Sequence[Optional[int]]
) -> str:
    slots: List[str] = [""] * len(candidates)
    for candidate, rank in zip(candidates, ranking):
        if rank is None:
            continue
        if not 1 <= rank <= len(candidates):
            raise ValueError(
                f"Rank {rank} for {candidate.name} is outside 1..{len(candidates)}"
            )
        if slots[rank - 1]:
            raise ValueError(f"Rank {rank} is used more than once on a ballot")
        slots[rank - 1] = format_token(candidate.party)
    return "".join(slots)


def build_ballot_multiset(
    candidates: Sequence[Candidate],
    rankings: Iterable[Sequence[Optional[int]]],
    min_ranked_fraction: float = MIN_RANKED_FRACTION,
) -> BallotBuildResult:
    """
    Compress ranked ballots into a ballot multiset.

    Each ranking lists, per candidate (in candidate order), the 1-based rank
    the voter gave that candidate or None when left unranked. Ballots that
    rank fewer than ``ceil(len(candidates) * min_ranked_fraction)`` candidates
    are invalidated and not counted.

    Args:
        candidates: Candidates in ballot column order
        rankings: Per-ballot rank rows
        min_ranked_fraction: Share of candidates a valid ballot must rank

    Returns:
        BallotBuildResult with the multiset, valid ballot total and the
        invalidated rows

    Raises:
        ValueError: On empty candidates, a row of the wrong length, or
            out-of-range / duplicated ranks
    """
    if not candidates:
        raise ValueError("At least one candidate is required")

    required = math.ceil(len(candidates) * min_ranked_fraction)
    ballots = BallotMultiset()
    invalidated: List[Tuple[Optional[int], ...]] = []
    total = 0

    for ranking in rankings:
        if len(ranking) != len(candidates):
            raise ValueError(
                f"Ballot has {len(ranking)} entries, expected {len(candidates)}"
            )
        ranked = sum(1 for rank in ranking if rank is not None)
        if ranked < required or ranked == 0:
            invalidated.append(tuple(ranking))
            continue

        ballots.add(_ranking_signature(candidates, ranking))
        total += 1

    if invalidated:
        logger.warning(
            f"Invalidated {len(invalidated)} ballots ranking fewer than {required} candidates"
        )
    logger.info(f"Built {len(ballots)} ballot signatures from {total} valid ballots")

    return BallotBuildResult(
        ballots=ballots, total_ballots=total, invalidated=invalidated
    )


def ballots_from_frame(
    frame: pd.DataFrame,
    candidates: Sequence[Candidate],
    min_ranked_fraction: float = MIN_RANKED_FRACTION,
) -> BallotBuildResult:
    """
    Build a ballot multiset from long-format ballot rows.

    Args:
        frame: DataFrame with ballot_id, candidate_id, rank_position columns,
            one row per ranked candidate
        candidates: Candidates whose ids appear in ``frame``
        min_ranked_fraction: Share of candidates a valid ballot must rank

    Returns:
        BallotBuildResult, see ``build_ballot_multiset``
    """
    required_columns = {"ballot_id", "candidate_id", "rank_position"}
    missing = required_columns - set(frame.columns)
    if missing:
        raise ValueError(f"Ballot frame is missing columns: {sorted(missing)}")

    position = {candidate.candidate_id: i for i, candidate in enumerate(candidates)}
    unknown = set(frame["candidate_id"]) - set(position)
    if unknown:
        raise ValueError(f"Ballot frame references unknown candidates: {sorted(unknown)}")

    rankings = []
    for _, group in frame.groupby("ballot_id", sort=False):
        ranking: List[Optional[int]] = [None] * len(candidates)
        for _, row in group.iterrows():
            ranking[position[row["candidate_id"]]] = int(row["rank_position"])
        rankings.append(ranking)

    return build_ballot_multiset(candidates, rankings, min_ranked_fraction)


def tally_single_choices(
    candidates: Sequence[Candidate], choices: Iterable[int]
) -> int:
    """
    Count single-choice (open party list) ballots.

    Args:
        candidates: Candidates in ballot column order
        choices: For each ballot, the index of the chosen candidate

    Returns:
        Number of ballots counted
    """
    choices = list(choices)
    for choice in choices:
        if not 0 <= choice < len(candidates):
            raise ValueError(f"Ballot choice {choice} does not name a candidate")

    for choice in choices:
        candidates[choice].add_votes(1)
    total = len(choices)

    logger.info(f"Tallied {total} single-choice ballots")
    return total
