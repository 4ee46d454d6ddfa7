"""
Text rendering of tabulation results.

Turns the structured results and recorder events into the audit file, the
media report and the on-screen summary. Nothing here changes a result.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .config import ELECTION_TYPE_IR, ELECTION_TYPE_OPL, REPORT_TIMESTAMP_FORMAT
from .instant_runoff import InstantRunoffResult
from .open_party_list import OpenPartyListResult
from .recorder import ResultsRecorder

logger = logging.getLogger(__name__)

NO_TIES_NOTE = "No ties occurred in this election."

INVALIDATED_KIND = "Invalidated"


def ordinal_count(n: int) -> str:
    """Count label for a round: 1st Count, 2nd Count, 3rd Count, 4th Count..."""
    if n % 100 in (11, 12, 13):
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix} Count"


def _heading(title: str) -> List[str]:
    return [title, "-" * len(title)]


def _final_notes(recorder: ResultsRecorder) -> List[str]:
    lines = [tie.describe() for tie in recorder.ties] or [NO_TIES_NOTE]
    return lines + list(recorder.notes)


# Instant runoff


def ir_statistics(result: InstantRunoffResult) -> str:
    """Round-by-round vote counts with the gains from each transfer."""
    report = _heading("Election Statistics:")
    for snapshot in result.rounds:
        title = ordinal_count(snapshot.round_number)
        if snapshot.eliminated:
            report.append(f"{title} (Transfer of {snapshot.eliminated}'s votes):")
        else:
            report.append(f"{title}:")
        for candidate, votes in snapshot.votes.items():
            line = f"\t{candidate}: {votes}"
            if snapshot.eliminated:
                line += f" (+{snapshot.deltas.get(candidate, 0)})"
            report.append(line)
        if snapshot.exhausted_ballots:
            report.append(f"\tExhausted ballots: {snapshot.exhausted_ballots}")
    return "\n".join(report)


def ir_results(result: InstantRunoffResult) -> str:
    report = _heading("Election Results:")
    report.append("Election Type: Instant Runoff")
    report.append(
        "Candidates: " + ", ".join(candidate.label() for candidate in result.candidates)
    )
    report.append(f"Total Number of Votes Cast: {result.total_ballots}")
    report.append(result.summary)
    return "\n".join(report)


def ir_audit_text(result: InstantRunoffResult) -> str:
    """
    Full audit trail of an instant runoff election.

    Includes the ballot distribution after every count, so the whole
    tabulation can be replayed by hand.
    """
    report = ["Election Type: Instant Runoff"]
    report.append(f"Number of candidates: {len(result.candidates)}")
    report.append(
        "Candidates: " + ", ".join(candidate.label() for candidate in result.candidates)
    )
    report.append(f"Total Ballots: {result.total_ballots}")

    for snapshot in result.rounds:
        if snapshot.round_number == 1:
            report.append("Original Distribution (i.e., 1st count):")
        else:
            report.append(
                f"Distribution after {ordinal_count(snapshot.round_number)}:"
            )
        for signature, count in snapshot.ballot_distribution.items():
            report.append(f"{signature}: {count}")
        report.append(f"Ballots remaining in play: {snapshot.remaining_ballots}")

    report.append("")
    report.append(ir_statistics(result))
    report.append(result.summary)
    report.append("")
    report.extend(_heading("Final Notes:"))
    report.extend(_final_notes(result.recorder))
    return "\n".join(report) + "\n"


def ir_media_text(result: InstantRunoffResult) -> str:
    sections = [
        ir_results(result),
        ir_statistics(result),
        "\n".join(_heading("Final Notes:") + _final_notes(result.recorder)),
    ]
    return "\n\n".join(sections) + "\n"


# Open party list


def opl_results(result: OpenPartyListResult) -> str:
    report = _heading("Election Results:")
    report.append("Candidates:")
    for party in result.parties:
        report.append(
            f"\t{party.name} Candidates: " + ", ".join(party.candidate_names())
        )
    report.append(f"Total Number of votes cast: {result.total_ballots}")
    report.append(f"Number of seats up for election: {result.seats_available}")
    report.append(
        "Winners: "
        + ", ".join(candidate.label() for candidate in result.winning_candidates)
    )
    return "\n".join(report)


def opl_allocation_statistics(result: OpenPartyListResult) -> str:
    """Per-party table: votes, first allocation, remainder, second allocation, total."""
    report = _heading("Seat Allocation Statistics:")
    report.append(f"***Quota for First Allocation: {result.quota} Votes***")
    report.append(
        "[Party],[Votes],[First Allocation of Seats],[Remaining Votes],"
        "[Second Allocation of Seats],[Final Seat Total]"
    )
    for a in result.recorder.allocations:
        report.append(
            f"{a.party},{a.votes},{a.first_allocation},{a.remaining_votes},"
            f"{a.second_allocation},{a.total_seats}"
        )
    return "\n".join(report)


def opl_candidate_votes(result: OpenPartyListResult) -> str:
    report = _heading("Votes for Each Candidate:")
    for party in result.parties:
        report.append(
            f"{party.name} Candidates: "
            + ", ".join(f"{c.name} ({c.current_votes})" for c in party.candidates)
        )
    return "\n".join(report)


def opl_audit_text(result: OpenPartyListResult) -> str:
    report = ["Election Type: Open Party List"]
    report.append(
        f"Number of candidates: {sum(p.num_candidates for p in result.parties)}"
    )
    report.append(
        "Candidates: "
        + ",".join(
            f"[{candidate.name},{party.name}]"
            for party in result.parties
            for candidate in party.candidates
        )
    )
    report.append(f"Number of Seats: {result.seats_available}")
    report.append(f"Total number of Votes: {result.total_ballots}")
    report.append(f"Calculated Quota: {result.quota}")

    for party in result.parties:
        report.append(f"{party.name},{party.total_votes}")
        report.append(
            ",".join(f"[{c.name},{c.current_votes}]" for c in party.candidates)
        )
    for a in result.recorder.allocations:
        report.append(f"{a.party} has {a.first_allocation} quota(s)")

    first_round_seats = sum(a.first_allocation for a in result.recorder.allocations)
    report.append(f"{result.seats_available - first_round_seats} seat(s) remaining")

    if result.recorder.seat_awards or not result.all_seats_filled:
        for a in result.recorder.allocations:
            report.append(f"{a.party},{a.remaining_votes}")
        for party_name in result.recorder.seat_awards:
            report.append(f"{party_name} receives another seat.")

    if result.all_seats_filled:
        report.append("All seats have been filled.")
    else:
        report.append(
            "Not all seats have been distributed. This is likely due to there "
            "being less candidates than seats available."
        )
    for party in result.parties:
        report.append(f"{party.name} has earned {party.seats_won} seat(s).")

    report.append(
        ",".join(f"[{c.name},{c.party}]" for c in result.winning_candidates)
        + " have been elected."
    )
    report.append("")
    report.extend(_heading("Additional Notes:"))
    report.extend(_final_notes(result.recorder))
    return "\n".join(report) + "\n"


def opl_media_text(result: OpenPartyListResult) -> str:
    sections = [
        opl_results(result),
        opl_allocation_statistics(result),
        opl_candidate_votes(result),
        "\n".join(_heading("Additional Notes:") + _final_notes(result.recorder)),
    ]
    return "\n\n".join(sections) + "\n"


# Invalidated ballots


def invalidated_text(rows: Sequence[Sequence[Optional[int]]]) -> str:
    """
    One line per invalidated ballot, its ranks comma separated.

    Unranked candidates leave an empty field, so a ballot ranking only the
    first and last of six candidates reads ``1,,,,,2``. No rows renders as an
    empty file.
    """
    return "".join(
        ",".join("" if rank is None else str(rank) for rank in row) + "\n"
        for row in rows
    )


# Files


def report_filename(kind: str, election_type: str, when: Optional[datetime] = None) -> str:
    """
    Timestamped report file name, e.g. ``IRAuditFile_2024_11_05_20_30_00.txt``.

    Args:
        kind: "AuditFile", "MediaReport" or "Invalidated"
        election_type: "IR" or "OPL", or "" for files not tied to one
        when: Timestamp to embed (default: now)
    """
    when = when or datetime.now()
    return f"{election_type}{kind}_{when.strftime(REPORT_TIMESTAMP_FORMAT)}.txt"


def render_reports(
    result, invalidated: Optional[Sequence[Sequence[Optional[int]]]] = None
) -> Dict[str, str]:
    """
    Render the audit and media text for either kind of result.

    Args:
        result: Instant runoff or open party list result
        invalidated: Ballot rows rejected while building the ballots, if the
            invalidated ballots file should be produced

    Returns:
        Dictionary with "election_type", "audit", "media" and "display" keys,
        plus "invalidated" when rows were given
    """
    if isinstance(result, InstantRunoffResult):
        media = ir_media_text(result)
        reports = {
            "election_type": ELECTION_TYPE_IR,
            "audit": ir_audit_text(result),
            "media": media,
            "display": media,
        }
    elif isinstance(result, OpenPartyListResult):
        media = opl_media_text(result)
        reports = {
            "election_type": ELECTION_TYPE_OPL,
            "audit": opl_audit_text(result),
            "media": media,
            "display": media,
        }
    else:
        raise TypeError(f"Cannot render reports for {type(result).__name__}")

    if invalidated is not None:
        reports["invalidated"] = invalidated_text(invalidated)
    return reports


def write_reports(
    reports: Dict[str, str], directory: Path, when: Optional[datetime] = None
) -> List[Path]:
    """
    Write the audit file and media report to ``directory``.

    The invalidated ballots file is written too when ``reports`` carries one.

    Args:
        reports: Output of ``render_reports``
        directory: Destination directory (created if missing)
        when: Timestamp for the file names (default: now)

    Returns:
        Paths of the audit file, the media report and, if written, the
        invalidated ballots file

    Raises:
        OSError: If a file cannot be written
    """
    when = when or datetime.now()
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    election_type = reports["election_type"]
    audit_path = directory / report_filename("AuditFile", election_type, when)
    media_path = directory / report_filename("MediaReport", election_type, when)

    audit_path.write_text(reports["audit"])
    media_path.write_text(reports["media"])

    logger.info(f"Wrote audit file {audit_path} and media report {media_path}")
    paths = [audit_path, media_path]

    if "invalidated" in reports:
        invalidated_path = directory / report_filename(INVALIDATED_KIND, "", when)
        invalidated_path.write_text(reports["invalidated"])
        logger.info(f"Wrote invalidated ballots to {invalidated_path}")
        paths.append(invalidated_path)

    return paths
