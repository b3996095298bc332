"""Tests for roster normalization."""

from types import SimpleNamespace

from courtmix.models import Player
from courtmix.roster import normalize_player, normalize_players, player_id_from_name


class TestPlayerIdFromName:
    """Test id derivation from display names."""

    def test_lowercases_and_trims(self):
        assert player_id_from_name("  Ana  ") == "ana"

    def test_whitespace_runs_become_underscore(self):
        assert player_id_from_name("Ana   Maria\tLopez") == "ana_maria_lopez"


class TestNormalizePlayer:
    """Test conversion of a single record."""

    def test_bare_name(self):
        assert normalize_player("  Ana ") == Player(id="Ana", name="Ana")

    def test_mapping_with_id_and_name(self):
        assert normalize_player({"id": " a1 ", "name": " Ana "}) == Player(id="a1", name="Ana")

    def test_mapping_name_only(self):
        assert normalize_player({"name": "Bob"}) == Player(id="Bob", name="Bob")

    def test_mapping_id_only(self):
        assert normalize_player({"id": 7}) == Player(id="7", name="7")

    def test_object_attributes(self):
        record = SimpleNamespace(id="cid", name="Cid")
        assert normalize_player(record) == Player(id="cid", name="Cid")


class TestNormalizePlayers:
    """Test roster deduplication."""

    def test_first_occurrence_wins(self):
        players = normalize_players([
            {"id": "ana", "name": "Ana"},
            {"id": "bob", "name": "Bob"},
            {"id": "ana", "name": "Ana Again"},
        ])
        assert [p.id for p in players] == ["ana", "bob"]
        assert players[0].name == "Ana"

    def test_empty_ids_are_dropped(self):
        players = normalize_players(["", "   ", {"name": ""}, {}, None, "Dan"])
        assert players == [Player(id="Dan", name="Dan")]

    def test_dedup_uses_trimmed_id(self):
        players = normalize_players(["Ana", " Ana "])
        assert len(players) == 1

    def test_order_preserved(self):
        players = normalize_players(["c", "a", "b"])
        assert [p.id for p in players] == ["c", "a", "b"]

    def test_none_roster(self):
        assert normalize_players(None) == []
