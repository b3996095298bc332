"""Tests for CSV roster import and court sheet export."""

import csv

import pytest

from courtmix.io_csv import (
    CSVImportError,
    export_round_csv,
    import_players_csv,
    validate_player_row,
)
from courtmix.models import Assignment, Player


def write_csv(tmp_path, text, name="roster.csv"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestValidatePlayerRow:

    def test_name_only(self):
        assert validate_player_row({"name": " Ana Lopez "}, 2) == {"id": "ana_lopez", "name": "Ana Lopez"}

    def test_explicit_id(self):
        assert validate_player_row({"name": "Bob", "id": " b7 "}, 2) == {"id": "b7", "name": "Bob"}

    def test_missing_name(self):
        with pytest.raises(CSVImportError, match="Row 4: Missing required field 'name'"):
            validate_player_row({"name": "  ", "id": "x"}, 4)


class TestImportPlayers:

    def test_import(self, tmp_path):
        path = write_csv(tmp_path, "name,id\nAna Lopez,\nBob,bob_2\n\nCid,\n")
        players = import_players_csv(path)
        assert players == [
            Player("ana_lopez", "Ana Lopez"),
            Player("bob_2", "Bob"),
            Player("cid", "Cid"),
        ]

    def test_name_column_only(self, tmp_path):
        path = write_csv(tmp_path, "name\nAna\nBob\n")
        assert [p.id for p in import_players_csv(path)] == ["ana", "bob"]

    def test_duplicates_skipped(self, tmp_path):
        path = write_csv(tmp_path, "name\nAna\nana\nBob\n")
        assert [p.name for p in import_players_csv(path)] == ["Ana", "Bob"]

    def test_duplicates_rejected(self, tmp_path):
        path = write_csv(tmp_path, "name\nAna\nana\n")
        with pytest.raises(CSVImportError, match="Row 3: Duplicate id 'ana'"):
            import_players_csv(path, skip_duplicates=False)

    def test_missing_file(self, tmp_path):
        with pytest.raises(CSVImportError, match="not found"):
            import_players_csv(str(tmp_path / "missing.csv"))

    def test_missing_name_column(self, tmp_path):
        path = write_csv(tmp_path, "player,id\nAna,1\n")
        with pytest.raises(CSVImportError, match="missing required column"):
            import_players_csv(path)


def test_export_round(tmp_path):
    assignments = [
        Assignment(court=2, team1_ids=["e", "f"], team2_ids=["g", "h"], team1="E & F", team2="G & H"),
        Assignment(court=1, team1_ids=["a", "b"], team2_ids=["c", "d"], team1="A & B", team2="C & D"),
    ]
    out = tmp_path / "round.csv"

    export_round_csv(assignments, str(out))

    with open(out, encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["court", "team1", "team2", "team1_ids", "team2_ids"]
    assert rows[1] == ["1", "A & B", "C & D", "a b", "c d"]
    assert rows[2] == ["2", "E & F", "G & H", "e f", "g h"]
