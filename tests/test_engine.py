"""Tests for round generation and result application."""

import random

import pytest

from courtmix.engine import apply_results, clamp_court_count, generate_round, init_state
from courtmix.models import MatchDecision, Mode, RoundFailure, RoundResult, SessionState


def make_roster(n):
    return [{"id": f"p{i}", "name": f"Player {i}"} for i in range(1, n + 1)]


def all_ids(result):
    return [pid for a in result.assignments for pid in a.team1_ids + a.team2_ids]


class TestClampCourtCount:

    @pytest.mark.parametrize(
        "value,expected",
        [(1, 1), (3, 3), (6, 6), (10, 6), (-2, 1), (0, 6), (None, 6), ("2", 2), ("abc", 6)],
    )
    def test_clamp(self, value, expected):
        assert clamp_court_count(value) == expected


class TestInitState:

    def test_none_gives_fresh_state(self):
        state = init_state()
        assert state.round == 0
        assert state.mode == "random"

    def test_existing_state_used_as_is(self):
        state = SessionState(round=4)
        assert init_state(state) is state

    def test_dict_rebuilt(self):
        state = init_state({"round": 2, "mode": "throne", "bye_counts": {"p1": 1}})
        assert state.round == 2
        assert state.mode == "throne"
        assert state.bye_counts == {"p1": 1}


class TestGenerateRound:

    def test_eight_players_two_courts(self):
        """A full fresh round has no byes and no repeats."""
        result = generate_round(make_roster(8), court_count=2, rng=random.Random(1))

        assert isinstance(result, RoundResult)
        assert not result.impossible
        assert result.round == 1
        assert result.court_count == 2
        assert result.capacity == 8
        assert result.players_total == 8
        assert result.bye_players == []
        assert [a.court for a in result.assignments] == [1, 2]
        assert sorted(all_ids(result)) == sorted(f"p{i}" for i in range(1, 9))
        assert result.diagnostics["repeat_partnerships_used"] == 0
        assert result.diagnostics["repeat_matchups_used"] == 0

    def test_assignment_labels(self):
        result = generate_round(make_roster(4), court_count=1, rng=random.Random(2))
        assignment = result.assignments[0]
        assert " & " in assignment.team1
        assert " & " in assignment.team2

    def test_histories_committed(self):
        result = generate_round(make_roster(8), court_count=2, rng=random.Random(3))
        state = result.state

        assert sum(state.partner_history.values()) == 4
        assert sum(state.match_history.values()) == 2
        for assignment in result.assignments:
            for pid in assignment.team1_ids + assignment.team2_ids:
                assert state.last_court[pid] == assignment.court

    def test_round_counter_and_last_round(self):
        state = SessionState()
        rng = random.Random(4)
        for expected in (1, 2, 3):
            result = generate_round(make_roster(8), court_count=2, state=state, rng=rng)
            assert result.round == expected
        assert state.round == 3
        assert state.last_round["court_count"] == 2
        assert len(state.last_round["assignments"]) == 2

    def test_bye_rotation_with_nine_players(self):
        """Nine players on two courts: everyone sits out once in nine rounds."""
        state = SessionState()
        rng = random.Random(5)
        sat_out = []

        for _ in range(9):
            result = generate_round(make_roster(9), court_count=2, state=state, rng=rng)
            assert not result.impossible
            assert len(result.bye_players) == 1
            sat_out.append(result.bye_players[0].id)

        assert sorted(sat_out) == sorted(f"p{i}" for i in range(1, 10))
        assert set(state.bye_counts.values()) == {1}

    def test_names_as_roster(self):
        result = generate_round(["Ann", "Bob", "Cid", "Dan"], court_count=1, rng=random.Random(6))
        assert sorted(all_ids(result)) == ["Ann", "Bob", "Cid", "Dan"]

    def test_court_count_clamped(self):
        result = generate_round(make_roster(8), court_count=20, rng=random.Random(7))
        assert result.court_count == 6
        assert result.capacity == 24
        assert len(result.assignments) == 2

    def test_seed_is_reproducible(self):
        first = generate_round(make_roster(12), court_count=2, seed=42)
        second = generate_round(make_roster(12), court_count=2, seed=42)

        assert [a.to_dict() for a in first.assignments] == [a.to_dict() for a in second.assignments]
        assert [p.id for p in first.bye_players] == [p.id for p in second.bye_players]

    def test_state_dict_round_trip(self):
        result = generate_round(make_roster(8), court_count=2, rng=random.Random(8))
        data = result.state.to_dict()

        following = generate_round(make_roster(8), court_count=2, state=data, rng=random.Random(9))

        assert following.round == 2
        assert sum(following.state.partner_history.values()) == 8


class TestGenerateRoundFailures:

    def test_odd_active_count(self):
        result = generate_round(make_roster(3), court_count=1, rng=random.Random(1))
        assert isinstance(result, RoundFailure)
        assert result.impossible
        assert result.reason == "Odd number of active players"

    def test_unknown_mode(self):
        state = SessionState()
        result = generate_round(make_roster(9), court_count=2, state=state, mode="ladder")

        assert result.impossible
        assert result.reason == "Unknown mode: ladder"
        assert state.bye_counts == {}
        assert state.round == 0
        assert state.mode == "random"

    def test_unknown_mode_keeps_previous_mode(self):
        """A rejected mode is not stored; the next call runs the previous mode."""
        state = SessionState()
        rng = random.Random(11)
        generate_round(make_roster(8), court_count=2, state=state, mode="throne", rng=rng)

        rejected = generate_round(make_roster(8), court_count=2, state=state, mode="ladder", rng=rng)
        assert rejected.impossible
        assert state.mode == "throne"
        assert state.round == 1

        following = generate_round(make_roster(8), court_count=2, state=state, rng=rng)
        assert not following.impossible
        assert following.round == 2
        assert following.state.mode == "throne"

    def test_failure_leaves_round_counter(self):
        state = SessionState()
        generate_round(make_roster(5), court_count=2, state=state, rng=random.Random(2))
        assert state.round == 0
        assert state.last_round is None

    def test_six_players_two_courts(self):
        """Three teams cannot all be matched against each other."""
        result = generate_round(make_roster(6), court_count=2, max_retries=20, rng=random.Random(3))
        assert result.impossible
        assert result.reason == "Could not build matches"


class TestModes:

    def test_mode_stored_in_state(self):
        result = generate_round(make_roster(8), court_count=2, mode=Mode.THRONE, rng=random.Random(1))
        assert result.state.mode == "throne"
        assert result.diagnostics["message"] == "No results for prior round; ranks unchanged."

    def test_ladder_modes_skip_match_history(self):
        """Matchup repeats are not tracked on ladder courts (partners are)."""
        for mode in ("throne", "upDownRiver", "gauntlet", "cream"):
            result = generate_round(make_roster(8), court_count=2, mode=mode, rng=random.Random(2))
            assert result.state.match_history == {}
            assert sum(result.state.partner_history.values()) == 4

    def test_throne_full_cycle(self):
        state = SessionState()
        rng = random.Random(3)
        first = generate_round(make_roster(8), court_count=2, state=state, mode="throne", rng=rng)

        decisions = [MatchDecision.from_assignment(a, 1) for a in first.assignments]
        apply_results(state, decisions)

        ranks = state.format_state["throne"]["court_ranks"]
        top = first.assignments[0]
        bottom = first.assignments[1]
        for pid in top.team1_ids:
            assert ranks[pid] == 1
        for pid in top.team2_ids:
            assert ranks[pid] == 2
        for pid in bottom.team1_ids:
            assert ranks[pid] == 1
        for pid in bottom.team2_ids:
            assert ranks[pid] == 2

        second = generate_round(make_roster(8), court_count=2, state=state, rng=rng)
        court_one = set(second.assignments[0].team1_ids + second.assignments[0].team2_ids)
        assert court_one == set(top.team1_ids + bottom.team1_ids)
        assert second.diagnostics == {}

    def test_gauntlet_ratings_move(self):
        state = SessionState()
        first = generate_round(make_roster(4), court_count=1, state=state, mode="gauntlet", rng=random.Random(4))

        apply_results(state, [MatchDecision.from_assignment(first.assignments[0], 2)])

        for pid in first.assignments[0].team2_ids:
            assert state.ratings[pid] == 1024
        for pid in first.assignments[0].team1_ids:
            assert state.ratings[pid] == 976


class TestApplyResults:

    def test_empty_decisions_are_ignored(self):
        state = SessionState(mode="gauntlet", ratings={"p1": 1000})
        apply_results(state, [])
        apply_results(state, None)
        assert state.ratings == {"p1": 1000}

    def test_unknown_mode_is_ignored(self):
        state = SessionState(mode="ladder", ratings={"p1": 1000})
        apply_results(state, [MatchDecision(1, ["p1", "p2"], ["p3", "p4"], 1)])
        assert state.ratings == {"p1": 1000}

    def test_random_mode_is_noop(self):
        state = SessionState(ratings={"p1": 1000})
        before = state.to_dict()
        apply_results(state, [MatchDecision(1, ["p1", "p2"], ["p3", "p4"], 1)])
        assert state.to_dict() == before

    def test_accepts_plain_dicts(self):
        state = SessionState(mode="gauntlet")
        apply_results(state, [{"court": "1", "team1_ids": ["a", "b"], "team2_ids": ["c", "d"], "winner_team": "1"}])
        assert state.ratings == {"a": 1024, "b": 1024, "c": 976, "d": 976}
