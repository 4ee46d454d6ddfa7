"""
Ballot signatures and the ballot multiset.

A ranked ballot is stored as a signature: the party tokens of its ranked
candidates concatenated in preference order, e.g. ``(D)(I)(R)``. Ballots
sharing a signature are counted together rather than stored one by one.
"""

import re
from typing import Dict, Iterator, List, Optional, Tuple

_TOKEN_PATTERN = re.compile(r"\(([^()]+)\)")


def format_token(party: str) -> str:
    return f"({party})"


def split_signature(signature: str) -> List[str]:
    """
    Split a signature into its party tags in preference order.

    Args:
        signature: Ballot signature such as ``(D)(I)(R)``

    Returns:
        Party tags, e.g. ``["D", "I", "R"]``
    """
    return _TOKEN_PATTERN.findall(signature)


def join_signature(parties: List[str]) -> str:
    return "".join(format_token(party) for party in parties)


def first_party(signature: str) -> Optional[str]:
    """Party tag of the first (outermost) preference, None for an empty signature."""
    match = _TOKEN_PATTERN.match(signature)
    return match.group(1) if match else None


def contains_party(signature: str, party: str) -> bool:
    return format_token(party) in signature


def remove_party(signature: str, party: str) -> str:
    """Signature with the given party's token removed (may become empty)."""
    return signature.replace(format_token(party), "")


class BallotMultiset:
    """
    Mapping of ballot signature to the number of ballots sharing it.

    Counts are always positive; a signature whose ballots all move elsewhere
    is removed outright. Iteration follows insertion order.
    """

    def __init__(self, counts: Optional[Dict[str, int]] = None):
        self._counts: Dict[str, int] = {}
        for signature, count in (counts or {}).items():
            self.add(signature, count)

    def add(self, signature: str, count: int = 1):
        """
        Merge ``count`` ballots into ``signature``, creating it if absent.

        Raises:
            ValueError: If the signature is empty or count is not positive
        """
        if not signature:
            raise ValueError("Ballot signature cannot be empty")
        if count <= 0:
            raise ValueError(f"Ballot count must be positive (got {count})")
        self._counts[signature] = self._counts.get(signature, 0) + count

    def remove(self, signature: str) -> int:
        """Drop a signature and return the count it carried."""
        return self._counts.pop(signature)

    def count(self, signature: str) -> int:
        return self._counts.get(signature, 0)

    def items(self) -> List[Tuple[str, int]]:
        """Snapshot of (signature, count) pairs, safe to iterate while mutating."""
        return list(self._counts.items())

    def signatures(self) -> List[str]:
        return list(self._counts)

    def total(self) -> int:
        return sum(self._counts.values())

    def as_dict(self) -> Dict[str, int]:
        return dict(self._counts)

    def copy(self) -> "BallotMultiset":
        return BallotMultiset(self._counts)

    def __contains__(self, signature: object) -> bool:
        return signature in self._counts

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._counts))

    def __len__(self) -> int:
        return len(self._counts)

    def __bool__(self) -> bool:
        return bool(self._counts)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BallotMultiset):
            return self._counts == other._counts
        if isinstance(other, dict):
            return self._counts == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"BallotMultiset({self._counts!r})"
