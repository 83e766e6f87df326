"""
Player catalog builder.

The catalog is the set of players eligible for one feature bundle: the base
roster merged with the caller's explicit "available player" list. Ids in the
available list that are not on the roster are extra eligible players (subs,
call-ups), not errors.

Output order is ascending by id so repeated runs produce identical bundles.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Sequence

from lineuplab.errors import ValidationError

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


def normalize_identifier(value: object, field_name: str = "player id") -> str:
    """
    Return the canonical (trimmed, lower-case) form of a UUID identifier.

    Raises:
        ValidationError: if the value is not a UUID string
    """
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a UUID string, got {type(value).__name__}.")
    normalized = value.strip().lower()
    if not UUID_PATTERN.match(normalized):
        raise ValidationError(f"{field_name} must be a valid UUID: {value!r}")
    return normalized


@dataclass(frozen=True)
class PlayerCatalog:
    """Deduplicated, sorted set of eligible player ids."""

    player_ids: tuple[str, ...]
    members: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", frozenset(self.player_ids))

    def __contains__(self, player_id: object) -> bool:
        return player_id in self.members

    def __iter__(self) -> Iterator[str]:
        return iter(self.player_ids)

    def __len__(self) -> int:
        return len(self.player_ids)


def build_catalog(
    base_roster: Iterable[str],
    available_player_ids: Optional[Sequence[str]] = None,
) -> PlayerCatalog:
    """
    Merge the base roster with the available-player list.

    Args:
        base_roster: Roster player ids (duplicates are collapsed)
        available_player_ids: Explicitly available ids; None means none

    Returns:
        PlayerCatalog containing every id from both inputs

    Raises:
        ValidationError: for malformed ids, or an id listed twice in
            available_player_ids
    """
    if base_roster is None:
        base_roster = ()
    if isinstance(base_roster, str):
        raise ValidationError("base_roster must be a collection of player ids, not a string.")
    if isinstance(available_player_ids, str):
        raise ValidationError("available_player_ids must be a list of player ids, not a string.")

    roster_ids = {normalize_identifier(pid, "base_roster id") for pid in base_roster}

    available_ids: list[str] = []
    seen: set[str] = set()
    for pid in available_player_ids or ():
        normalized = normalize_identifier(pid, "available_player_ids id")
        if normalized in seen:
            raise ValidationError(f"available_player_ids must not contain duplicates: {normalized}")
        seen.add(normalized)
        available_ids.append(normalized)

    return PlayerCatalog(player_ids=tuple(sorted(roster_ids.union(available_ids))))
