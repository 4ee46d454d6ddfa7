"""
Shared pytest configuration and fixtures for election-tabulation.

This module provides common test fixtures and utilities used across
all test modules.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from election import build_candidates, group_into_parties  # noqa: E402
from tabulation import ScriptedTieBreaker  # noqa: E402


@pytest.fixture
def ir_candidates():
    """Provide a three-candidate instant runoff registry."""
    return build_candidates([("Rosen", "D"), ("Kleinberg", "R"), ("Chou", "I")])


@pytest.fixture
def ir_ballots():
    """
    Provide ballots where nobody wins the first count.

    D=4, R=3, I=2 of 9; I is eliminated and both of its ballots move to R.
    """
    return {
        "(D)(R)": 4,
        "(R)(D)": 3,
        "(I)(R)": 2,
    }


@pytest.fixture
def opl_parties():
    """
    Provide a two-seat open party list election with 12 ballots.

    Quota is 6: Democrats 7 (1 seat, 1 left over), Republicans 5 (0 seats,
    5 left over) so the second seat goes to the Republicans.
    """
    candidates = build_candidates(
        [("Pike", "Democrat"), ("Foster", "Democrat"), ("Deutsch", "Republican")]
    )
    for candidate, votes in zip(candidates, [4, 3, 5]):
        candidate.set_votes(votes)
    return group_into_parties(candidates)


@pytest.fixture
def no_ties():
    """Tie-breaker that fails the test if it is ever consulted."""
    return ScriptedTieBreaker([])


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (engine, reports and files together)",
    )
    config.addinivalue_line(
        "markers",
        "golden: marks tests as golden dataset validation (hand-computed elections)",
    )
    config.addinivalue_line(
        "markers", "invariant: marks tests as mathematical invariant validation"
    )
    config.addinivalue_line(
        "markers", "smoke: marks tests as smoke tests (basic functionality check)"
    )
