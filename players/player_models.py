from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field, StrictInt


NOT_FOUND = -1


class Player(BaseModel):
    """A name with a number of wins. Field names match the db file keys."""

    Name: str
    Wins: StrictInt = Field(0, ge=0)


@dataclass
class League:
    """Ordered player records, in insertion order."""

    players: List[Player] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.players)

    def __iter__(self) -> Iterator[Player]:
        return iter(self.players)

    def find(self, name: str) -> Tuple[Optional[Player], int]:
        """Return the first record named ``name`` and its position.

        Absent names give ``(None, NOT_FOUND)``.
        """
        for idx, player in enumerate(self.players):
            if player.Name == name:
                return player, idx
        return None, NOT_FOUND

    def append(self, player: Player) -> None:
        self.players.append(player)

    def remove_at(self, idx: int) -> Player:
        return self.players.pop(idx)

    def sorted_by_wins(self) -> List[Player]:
        # sorted() is stable, so equal win counts keep insertion order.
        return sorted(
            (p.model_copy() for p in self.players),
            key=lambda p: p.Wins,
            reverse=True,
        )

    def as_records(self) -> List[dict]:
        return [p.model_dump() for p in self.players]

    def copy(self) -> "League":
        return League([p.model_copy() for p in self.players])
