"""
Tabulation settings and logging setup.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# A candidate wins an instant runoff count with strictly more than this
# share of the ballots still in play.
MAJORITY_THRESHOLD = 0.5

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

REPORT_TIMESTAMP_FORMAT = "%Y_%m_%d_%H_%M_%S"

ELECTION_TYPE_IR = "IR"
ELECTION_TYPE_OPL = "OPL"


@dataclass
class TabulationConfig:
    """Options for a single tabulation run."""

    seed: Optional[int] = None  # tie-break seed; None draws fresh entropy
    report_directory: Optional[Path] = None
    write_reports: bool = True

    def __post_init__(self):
        if self.report_directory is not None:
            self.report_directory = Path(self.report_directory)


def configure_logging(level: int = logging.INFO):
    """Route tabulation logs to stderr in the standard format."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
