"""Player identity normalization.

Callers hand the engine whatever they keep for a player: a bare display
name, a mapping with ``id``/``name`` keys, or any object with ``id``/``name``
attributes. Everything is reduced to a `Player` here.
"""

import re
from typing import Any, Iterable

from courtmix.models import Player


def player_id_from_name(name: str) -> str:
    """Derive a stable player id from a display name.

    Examples:
        >>> player_id_from_name("  Ana  Lopez ")
        'ana_lopez'
    """
    return re.sub(r"\s+", "_", name.strip().lower())


def _field(record: Any, key: str) -> Any:
    if isinstance(record, dict):
        return record.get(key)
    return getattr(record, key, None)


def normalize_player(record: Any) -> Player:
    """Convert one caller-supplied record into a Player.

    The id falls back to the name and the name falls back to the id.
    """
    if isinstance(record, str):
        text = record.strip()
        return Player(id=text, name=text)

    raw_id = _field(record, "id")
    raw_name = _field(record, "name")
    player_id = str(raw_id if raw_id is not None else raw_name if raw_name is not None else "").strip()
    name = str(raw_name if raw_name is not None else raw_id if raw_id is not None else "").strip()
    return Player(id=player_id, name=name)


def normalize_players(records: Iterable[Any]) -> list[Player]:
    """Normalize and deduplicate a roster.

    Entries with an empty id are dropped and the first occurrence of an id
    wins. Never raises for odd records, they are simply left out.

    Args:
        records: Player records in any supported shape

    Returns:
        Ordered list of unique players
    """
    seen = set()
    players = []
    for record in records or []:
        if record is None:
            continue
        player = normalize_player(record)
        if not player.id or player.id in seen:
            continue
        seen.add(player.id)
        players.append(player)
    return players
