from typing import List


class Candidate:
    """
    A single candidate in an election.

    Name, party and id are fixed at registry-build time; only the running
    vote count changes during a tabulation.
    """

    def __init__(self, name: str, party: str, candidate_id: int):
        """
        Initialize a candidate.

        Args:
            name: Candidate name
            party: Party tag (the token used in ballot signatures)
            candidate_id: Unique id, assigned sequentially from 0

        Raises:
            ValueError: If name or party is missing or empty
        """
        if not name or not party:
            raise ValueError("Candidate name and party must be non-empty strings")

        self._name = name
        self._party = party
        self._candidate_id = candidate_id
        self._current_votes = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def party(self) -> str:
        return self._party

    @property
    def candidate_id(self) -> int:
        return self._candidate_id

    @property
    def current_votes(self) -> int:
        return self._current_votes

    def set_votes(self, votes: int):
        """Replace the running vote count."""
        if votes < 0:
            raise ValueError(f"Votes cannot be negative (got {votes})")
        self._current_votes = votes

    def add_votes(self, votes: int):
        """Increment the running vote count."""
        if votes < 0:
            raise ValueError(f"Votes cannot be negative (got {votes})")
        self._current_votes += votes

    def label(self) -> str:
        """Name with party tag, e.g. ``Rosen (D)``."""
        return f"{self._name} ({self._party})"

    def __repr__(self) -> str:
        return (
            f"Candidate(name={self._name!r}, party={self._party!r}, "
            f"candidate_id={self._candidate_id}, votes={self._current_votes})"
        )


class Party:
    """
    A party in an open party list election.

    Owns its candidates in input order and carries the seat allocation state.
    """

    def __init__(self, name: str):
        if not name:
            raise ValueError("Party name must be a non-empty string")

        self._name = name
        self._candidates: List[Candidate] = []
        self._total_votes = 0
        self._remaining_votes = 0
        self._seats_won = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def candidates(self) -> List[Candidate]:
        return self._candidates

    @property
    def total_votes(self) -> int:
        return self._total_votes

    @property
    def remaining_votes(self) -> int:
        return self._remaining_votes

    @property
    def seats_won(self) -> int:
        return self._seats_won

    @property
    def num_candidates(self) -> int:
        return len(self._candidates)

    @property
    def at_capacity(self) -> bool:
        """True once the party holds a seat for every one of its candidates."""
        return self._seats_won >= len(self._candidates)

    def candidate_names(self) -> List[str]:
        return [candidate.name for candidate in self._candidates]

    def add_candidate(self, candidate: Candidate):
        if candidate is None:
            raise ValueError("Candidate cannot be None")
        self._candidates.append(candidate)

    def set_total_votes(self, votes: int):
        if votes < 0:
            raise ValueError(f"Votes cannot be negative (got {votes})")
        self._total_votes = votes

    def set_remaining_votes(self, votes: int):
        if votes < 0:
            raise ValueError(f"Votes cannot be negative (got {votes})")
        self._remaining_votes = votes

    def set_seats_won(self, seats: int):
        if seats < 0:
            raise ValueError(f"Seats cannot be negative (got {seats})")
        if seats > len(self._candidates):
            raise ValueError(
                f"Party {self._name} cannot hold {seats} seats with "
                f"{len(self._candidates)} candidates"
            )
        self._seats_won = seats

    def __repr__(self) -> str:
        return (
            f"Party(name={self._name!r}, candidates={self.num_candidates}, "
            f"votes={self._total_votes}, seats={self._seats_won})"
        )
