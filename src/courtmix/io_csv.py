"""CSV import/export utilities."""

import csv
import logging
from pathlib import Path
from typing import Union

from courtmix.models import Assignment, Player, RoundResult
from courtmix.roster import player_id_from_name

logger = logging.getLogger(__name__)


class CSVImportError(Exception):
    """Error during CSV import."""
    pass


def validate_player_row(row: dict, row_num: int) -> dict:
    """Validate a roster row from CSV.

    Args:
        row: Dictionary with CSV columns
        row_num: Row number for error messages

    Returns:
        Validated dictionary with id and name

    Raises:
        CSVImportError: If the row has no usable name
    """
    name = (row.get("name") or "").strip()
    if not name:
        raise CSVImportError(f"Row {row_num}: Missing required field 'name'")

    player_id = (row.get("id") or "").strip() or player_id_from_name(name)
    return {"id": player_id, "name": name}


def import_players_csv(csv_path: str, skip_duplicates: bool = True) -> list[Player]:
    """Import a roster from CSV file.

    CSV format:
        name,id
        Ana Lopez,
        Bob,bob_2

    The id column is optional; missing ids are derived from the name.
    Blank rows are skipped.

    Args:
        csv_path: Path to CSV file
        skip_duplicates: Skip rows whose id was already seen

    Returns:
        List of Player objects

    Raises:
        CSVImportError: If file not found, the name column is missing, or
            duplicates are not allowed and one is found
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise CSVImportError(f"CSV file not found: {csv_path}")

    players = []
    seen_ids = set()
    skipped_count = 0

    with open(csv_file, "r", encoding="utf-8") as f:
        reader = csv.DictReader(f)

        if "name" not in (reader.fieldnames or []):
            raise CSVImportError("CSV missing required column: name")

        for row_num, row in enumerate(reader, start=2):  # Row 1 is the header
            if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
                skipped_count += 1
                continue

            validated = validate_player_row(row, row_num)

            if validated["id"] in seen_ids:
                if not skip_duplicates:
                    raise CSVImportError(f"Row {row_num}: Duplicate id '{validated['id']}'")
                logger.warning("Row %d: duplicate id %s, skipping", row_num, validated["id"])
                skipped_count += 1
                continue

            seen_ids.add(validated["id"])
            players.append(Player(id=validated["id"], name=validated["name"]))

    logger.info("Validated %d players from %s", len(players), csv_path)
    if skipped_count > 0:
        logger.info("Skipped %d rows (blank or duplicates)", skipped_count)

    return players


def export_round_csv(round_or_assignments: Union[RoundResult, list[Assignment]], path: str):
    """Export a round's court sheet to CSV.

    Args:
        round_or_assignments: RoundResult or its list of assignments
        path: Output CSV path
    """
    if isinstance(round_or_assignments, RoundResult):
        assignments = round_or_assignments.assignments
    else:
        assignments = round_or_assignments

    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["court", "team1", "team2", "team1_ids", "team2_ids"])

        for assignment in sorted(assignments, key=lambda a: a.court):
            writer.writerow([
                assignment.court,
                assignment.team1,
                assignment.team2,
                " ".join(assignment.team1_ids),
                " ".join(assignment.team2_ids),
            ])
