"""
Tabulation engines for ranked-choice and party-list elections.

This module provides:
- InstantRunoffTabulator: single-winner elimination and transfer
- OpenPartyListTabulator: quota plus largest-remainder seat allocation
- Tie-breakers: seeded random (default) and scripted

The runner functions wrap an engine, its reports and report writing.
"""

from .config import TabulationConfig, configure_logging
from .instant_runoff import InstantRunoffResult, InstantRunoffTabulator
from .open_party_list import OpenPartyListResult, OpenPartyListTabulator
from .recorder import ResultsRecorder, RoundSnapshot, TieRecord
from .runner import ElectionRun, run_instant_runoff, run_open_party_list
from .tiebreak import RandomTieBreaker, ScriptedTieBreaker, TieBreaker
from .verification import (
    cross_check_with_pyrankvote,
    generate_verification_report,
    verify_instant_runoff,
    verify_open_party_list,
)

__all__ = [
    "InstantRunoffTabulator",
    "InstantRunoffResult",
    "OpenPartyListTabulator",
    "OpenPartyListResult",
    "TieBreaker",
    "RandomTieBreaker",
    "ScriptedTieBreaker",
    "ResultsRecorder",
    "RoundSnapshot",
    "TieRecord",
    "TabulationConfig",
    "configure_logging",
    "ElectionRun",
    "run_instant_runoff",
    "run_open_party_list",
    "verify_instant_runoff",
    "verify_open_party_list",
    "cross_check_with_pyrankvote",
    "generate_verification_report",
]
