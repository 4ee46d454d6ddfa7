"""
One-call tabulation runs.

Wires a seeded tie-breaker into an engine, renders the reports and, when
configured, writes them to disk.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from election.ballots import BallotMultiset
from election.builders import BallotBuildResult
from election.candidate import Candidate, Party

from .config import TabulationConfig
from .instant_runoff import InstantRunoffResult, InstantRunoffTabulator
from .open_party_list import OpenPartyListResult, OpenPartyListTabulator
from .reporting import render_reports, write_reports
from .tiebreak import RandomTieBreaker, TieBreaker

logger = logging.getLogger(__name__)


@dataclass
class ElectionRun:
    """A finished tabulation with its rendered reports."""

    result: Union[InstantRunoffResult, OpenPartyListResult]
    audit_text: str
    media_text: str
    written_paths: List[Path] = field(default_factory=list)
    error: Optional[OSError] = None
    invalidated_text: Optional[str] = None

    @property
    def display_text(self) -> str:
        return self.media_text


def _tie_breaker(config: TabulationConfig, tie_breaker: Optional[TieBreaker]):
    if tie_breaker is not None:
        return tie_breaker
    return RandomTieBreaker(config.seed)


def _finish(result, config: TabulationConfig, invalidated=None) -> ElectionRun:
    reports = render_reports(result, invalidated)
    run = ElectionRun(
        result=result,
        audit_text=reports["audit"],
        media_text=reports["media"],
        invalidated_text=reports.get("invalidated"),
    )

    if config.report_directory is None or not config.write_reports:
        return run

    try:
        run.written_paths = write_reports(reports, config.report_directory)
    except OSError as e:
        # The tabulation stands even if its reports could not be saved.
        logger.error(f"Failed to write reports to {config.report_directory}: {e}")
        run.error = e

    return run


def run_instant_runoff(
    ballots: Union[BallotBuildResult, BallotMultiset, Dict[str, int]],
    candidates: List[Candidate],
    total_ballots: Optional[int] = None,
    config: Optional[TabulationConfig] = None,
    tie_breaker: Optional[TieBreaker] = None,
    invalidated: Optional[Sequence[Sequence[Optional[int]]]] = None,
) -> ElectionRun:
    """
    Tabulate an instant runoff election and produce its reports.

    Args:
        ballots: Signature -> ballot count, or the output of
            ``build_ballot_multiset``, which also supplies ``total_ballots``
            and the invalidated rows
        candidates: Candidates in input order
        total_ballots: Number of valid ballots cast
        config: Run options (default: TabulationConfig())
        tie_breaker: Overrides the seeded random tie-breaker from ``config``
        invalidated: Rejected ballot rows. When given, the invalidated
            ballots file is rendered and written alongside the reports

    Returns:
        ElectionRun with the result, report text and any written paths
    """
    if isinstance(ballots, BallotBuildResult):
        if total_ballots is None:
            total_ballots = ballots.total_ballots
        if invalidated is None:
            invalidated = ballots.invalidated
        ballots = ballots.ballots

    config = config or TabulationConfig()
    tabulator = InstantRunoffTabulator(
        ballots,
        candidates,
        total_ballots,
        tie_breaker=_tie_breaker(config, tie_breaker),
    )
    return _finish(tabulator.run(), config, invalidated)


def run_open_party_list(
    total_ballots: int,
    seats_available: int,
    parties: Sequence[Party],
    config: Optional[TabulationConfig] = None,
    tie_breaker: Optional[TieBreaker] = None,
) -> ElectionRun:
    """
    Tabulate an open party list election and produce its reports.

    Args:
        total_ballots: Number of ballots cast
        seats_available: Number of seats up for election
        parties: Parties with their candidates and vote totals
        config: Run options (default: TabulationConfig())
        tie_breaker: Overrides the seeded random tie-breaker from ``config``

    Returns:
        ElectionRun with the result, report text and any written paths
    """
    config = config or TabulationConfig()
    tabulator = OpenPartyListTabulator(
        total_ballots,
        seats_available,
        list(parties),
        tie_breaker=_tie_breaker(config, tie_breaker),
    )
    return _finish(tabulator.run(), config)
