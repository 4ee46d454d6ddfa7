"""
Unit tests for the instant runoff engine.

Scenarios are small enough to follow by hand; ties are settled with a
scripted tie-breaker so every outcome is fixed.
"""

import pytest

from election import BallotMultiset, build_candidates
from tabulation import (
    InstantRunoffTabulator,
    RandomTieBreaker,
    ResultsRecorder,
    ScriptedTieBreaker,
)
from tabulation.recorder import TIE_ELIMINATION, TIE_WINNER


@pytest.fixture
def four_even_blocs():
    """Four candidates with 10 first preferences each and a circular second choice."""
    candidates = build_candidates(
        [("Alpha", "A"), ("Bravo", "B"), ("Charlie", "C"), ("Delta", "D")]
    )
    ballots = {"(A)(B)": 10, "(B)(C)": 10, "(C)(D)": 10, "(D)(A)": 10}
    return candidates, ballots


class TestFirstCount:
    """Test initial vote counting and first-count winners."""

    def test_first_preferences_counted(self, ir_candidates, ir_ballots, no_ties):
        InstantRunoffTabulator(ir_ballots, ir_candidates, 9, tie_breaker=no_ties)
        assert [c.current_votes for c in ir_candidates] == [4, 3, 2]

    def test_stale_votes_are_reset(self, ir_candidates, ir_ballots, no_ties):
        for candidate in ir_candidates:
            candidate.set_votes(100)
        InstantRunoffTabulator(ir_ballots, ir_candidates, 9, tie_breaker=no_ties)
        assert [c.current_votes for c in ir_candidates] == [4, 3, 2]

    def test_majority_on_first_count(self, no_ties):
        candidates = build_candidates([("Rosen", "D"), ("Kleinberg", "R")])
        ballots = {"(D)": 10, "(D)(R)": 10, "(R)(D)": 10}

        result = InstantRunoffTabulator(
            ballots, candidates, 30, tie_breaker=no_ties
        ).run()

        assert result.winner is candidates[0]
        assert result.decided_by_majority
        assert len(result.rounds) == 1
        assert result.final_ballots == ballots
        assert result.share_of_remaining == pytest.approx(20 / 30)
        assert not result.ties


class TestRedistribution:
    """Test elimination and ballot transfer."""

    def test_transfer_produces_majority(self, ir_candidates, ir_ballots, no_ties):
        result = InstantRunoffTabulator(
            ir_ballots, ir_candidates, 9, tie_breaker=no_ties
        ).run()

        assert result.winner.name == "Kleinberg"
        assert result.decided_by_majority
        assert result.final_ballots == {"(D)(R)": 4, "(R)(D)": 3, "(R)": 2}
        assert result.remaining_ballots == 9

        second = result.rounds[1]
        assert second.eliminated == "Chou (I)"
        assert second.votes == {"Rosen (D)": 4, "Kleinberg (R)": 5}
        assert second.deltas == {"Rosen (D)": 0, "Kleinberg (R)": 2}
        assert "Chou (I)" not in second.votes

    def test_transfer_skips_unchanged_first_choice(self, no_ties):
        # Removing I from (D)(I)(R) leaves D first, so D gains nothing.
        candidates = build_candidates([("Rosen", "D"), ("Kleinberg", "R"), ("Chou", "I")])
        ballots = {"(D)(I)(R)": 4, "(R)": 3, "(I)(R)": 2}

        result = InstantRunoffTabulator(
            ballots, candidates, 9, tie_breaker=no_ties
        ).run()

        assert result.rounds[1].votes == {"Rosen (D)": 4, "Kleinberg (R)": 5}
        assert result.final_ballots == {"(D)(R)": 4, "(R)": 5}

    def test_exhausted_ballots_leave_the_denominator(self, no_ties):
        candidates = build_candidates([("Ada", "A"), ("Ben", "B"), ("Cy", "C")])
        ballots = {"(A)": 3, "(B)": 2, "(C)": 1}

        result = InstantRunoffTabulator(
            ballots, candidates, 6, tie_breaker=no_ties
        ).run()

        # 3 of 6 is not a majority; 3 of the 5 left after C's ballot exhausts is.
        assert result.winner.name == "Ada"
        assert result.remaining_ballots == 5
        assert result.share_of_remaining == pytest.approx(0.6)
        assert result.share_of_total == pytest.approx(0.5)
        assert result.rounds[1].exhausted_ballots == 1
        assert result.final_ballots == {"(A)": 3, "(B)": 2}

    def test_multiset_input_is_updated_in_place(self, ir_candidates, no_ties):
        ballots = BallotMultiset({"(D)(R)": 4, "(R)(D)": 3, "(I)(R)": 2})
        InstantRunoffTabulator(ballots, ir_candidates, 9, tie_breaker=no_ties).run()
        assert ballots == {"(D)(R)": 4, "(R)(D)": 3, "(R)": 2}

    def test_dict_input_is_copied(self, ir_candidates, ir_ballots, no_ties):
        original = dict(ir_ballots)
        InstantRunoffTabulator(ir_ballots, ir_candidates, 9, tie_breaker=no_ties).run()
        assert ir_ballots == original


class TestTies:
    """Test tie-breaking during elimination and the final two."""

    def test_even_blocs_tie_every_count(self, four_even_blocs):
        candidates, ballots = four_even_blocs
        tie_breaker = ScriptedTieBreaker([0, 0, 1])

        result = InstantRunoffTabulator(
            ballots, candidates, 40, tie_breaker=tie_breaker
        ).run()

        assert [t.context for t in result.ties] == [
            TIE_ELIMINATION,
            TIE_ELIMINATION,
            TIE_WINNER,
        ]
        assert result.ties[0].tied == ["Alpha", "Bravo", "Charlie", "Delta"]
        assert result.ties[0].chosen == "Alpha"
        assert result.ties[0].round_number == 1
        assert result.ties[1].tied == ["Charlie", "Delta"]
        assert result.ties[1].round_number == 2
        assert result.ties[2].tied == ["Bravo", "Delta"]
        assert result.ties[2].round_number == 3

        assert result.winner.name == "Delta"
        assert not result.decided_by_majority
        assert result.final_ballots == {"(B)": 20, "(D)": 20}
        assert tie_breaker.remaining == 0

    def test_single_choice_blocs_exhaust_to_final_two(self):
        candidates = build_candidates([(f"Cand{i}", f"p{i}") for i in range(4)])
        ballots = {"(p0)": 10, "(p1)": 10, "(p2)": 10, "(p3)": 10}

        result = InstantRunoffTabulator(
            ballots, candidates, 40, tie_breaker=ScriptedTieBreaker([0, 0, 0])
        ).run()

        assert [t.context for t in result.ties] == [
            TIE_ELIMINATION,
            TIE_ELIMINATION,
            TIE_WINNER,
        ]
        assert [t.round_number for t in result.ties] == [1, 2, 3]
        assert result.winner.name == "Cand2"
        assert result.remaining_ballots == 20
        assert [r.exhausted_ballots for r in result.rounds] == [0, 10, 10]

    def test_tie_narration(self, four_even_blocs):
        candidates, ballots = four_even_blocs
        result = InstantRunoffTabulator(
            ballots, candidates, 40, tie_breaker=ScriptedTieBreaker([0, 0, 1])
        ).run()

        assert result.ties[0].describe() == (
            "Alpha, Bravo, Charlie, Delta tied in number of votes while "
            "determining the loser during round 1. Alpha was eliminated in a "
            "fair coin toss."
        )
        assert result.ties[2].describe() == (
            "Bravo and Delta tied in number of votes while determining the "
            "winner. Delta won the election in a fair coin toss."
        )

    def test_last_two_decided_without_equal_votes(self):
        # 5 ballots in play out of 10 counted: neither candidate has a majority.
        candidates = build_candidates([("Ada", "A"), ("Ben", "B")])
        result = InstantRunoffTabulator(
            {"(A)": 3, "(B)": 2},
            candidates,
            10,
            tie_breaker=ScriptedTieBreaker([1]),
        ).run()

        assert result.winner.name == "Ben"
        assert not result.decided_by_majority
        assert result.ties[0].context == TIE_WINNER
        assert result.share_of_total == pytest.approx(0.2)

    def test_sole_candidate_wins_without_majority(self):
        # 3 of the 10 ballots counted are in play, so 30% is no majority.
        candidates = build_candidates([("Ada", "A")])
        result = InstantRunoffTabulator(
            {"(A)": 3}, candidates, 10, tie_breaker=ScriptedTieBreaker([])
        ).run()

        assert result.winner is candidates[0]
        assert not result.decided_by_majority
        assert not result.ties
        assert len(result.rounds) == 1
        assert result.share_of_total == pytest.approx(0.3)

    def test_same_seed_same_winner(self, four_even_blocs):
        winners = []
        for _ in range(2):
            candidates, ballots = four_even_blocs
            result = InstantRunoffTabulator(
                dict(ballots), candidates, 40, tie_breaker=RandomTieBreaker(seed=99)
            ).run()
            winners.append(result.winner.name)
        assert winners[0] == winners[1]

    def test_default_tie_breaker(self, four_even_blocs):
        candidates, ballots = four_even_blocs
        result = InstantRunoffTabulator(ballots, candidates, 40).run()
        assert result.winner.name in {"Alpha", "Bravo", "Charlie", "Delta"}
        assert len(result.ties) >= 2


class TestValidation:
    """Test constructor validation and lifecycle."""

    @pytest.mark.parametrize("total", [0, -5, None])
    def test_bad_total_rejected(self, ir_candidates, ir_ballots, total):
        with pytest.raises(ValueError):
            InstantRunoffTabulator(ir_ballots, ir_candidates, total)

    def test_empty_inputs_rejected(self, ir_candidates, ir_ballots):
        with pytest.raises(ValueError):
            InstantRunoffTabulator(ir_ballots, [], 9)
        with pytest.raises(ValueError):
            InstantRunoffTabulator({}, ir_candidates, 9)

    def test_more_ballots_than_total_rejected(self, ir_candidates, ir_ballots):
        with pytest.raises(ValueError, match="exceed total_ballots"):
            InstantRunoffTabulator(ir_ballots, ir_candidates, 8)

    def test_duplicate_party_rejected(self, ir_ballots):
        candidates = build_candidates([("Rosen", "D"), ("Lee", "D"), ("Chou", "I")])
        with pytest.raises(ValueError):
            InstantRunoffTabulator(ir_ballots, candidates, 9)

    def test_unknown_party_rejected_before_counting(self, ir_candidates):
        for candidate in ir_candidates:
            candidate.set_votes(7)
        with pytest.raises(ValueError):
            InstantRunoffTabulator({"(D)": 1, "(X)(D)": 1}, ir_candidates, 2)
        assert all(c.current_votes == 7 for c in ir_candidates)

    def test_run_twice_rejected(self, ir_candidates, ir_ballots, no_ties):
        tabulator = InstantRunoffTabulator(
            ir_ballots, ir_candidates, 9, tie_breaker=no_ties
        )
        tabulator.run()
        with pytest.raises(RuntimeError):
            tabulator.run()


@pytest.mark.invariant
def test_round_totals_match_ballots_in_play(four_even_blocs):
    candidates, ballots = four_even_blocs
    result = InstantRunoffTabulator(
        ballots, candidates, 40, tie_breaker=RandomTieBreaker(seed=3)
    ).run()

    for snapshot in result.rounds:
        assert sum(snapshot.votes.values()) == snapshot.remaining_ballots
        assert sum(snapshot.ballot_distribution.values()) == snapshot.remaining_ballots


@pytest.mark.unit
def test_round_summary_frame(ir_candidates, ir_ballots, no_ties):
    recorder = ResultsRecorder()
    InstantRunoffTabulator(
        ir_ballots, ir_candidates, 9, tie_breaker=no_ties, recorder=recorder
    ).run()

    summary = recorder.round_summary()
    assert list(summary["round"].unique()) == [1, 2]
    second = summary[summary["round"] == 2].set_index("candidate")
    assert second.loc["Kleinberg (R)", "votes"] == 5
    assert second.loc["Kleinberg (R)", "delta"] == 2
    assert second.loc["Kleinberg (R)", "transferred_from"] == "Chou (I)"
