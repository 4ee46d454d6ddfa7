"""
Election data model.

This module provides the registry and ballot structures the tabulation
engines operate on:
- Candidate / Party: identity plus running vote totals
- BallotMultiset: ranked-preference signatures mapped to ballot counts
- builders: helpers that assemble the above from already-parsed rows
"""

from .ballots import BallotMultiset
from .builders import (
    BallotBuildResult,
    ballots_from_frame,
    build_ballot_multiset,
    build_candidates,
    group_into_parties,
    tally_single_choices,
)
from .candidate import Candidate, Party

__all__ = [
    "Candidate",
    "Party",
    "BallotMultiset",
    "BallotBuildResult",
    "build_candidates",
    "group_into_parties",
    "build_ballot_multiset",
    "ballots_from_frame",
    "tally_single_choices",
]
