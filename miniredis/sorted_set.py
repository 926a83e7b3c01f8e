"""A simple sorted set: members with float scores, ordered on demand."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Direction(enum.Enum):
    """Ordering requested from a sorted set."""

    UNSORTED = 0
    ASC = 1
    DESC = 2


@dataclass(frozen=True, order=True)
class SSElem:
    """A member with its score. Orders by score, then by member."""

    score: float
    member: str


class SortedSet:
    """Members mapped to scores; ordering is computed when asked for."""

    def __init__(self) -> None:
        self._scores: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._scores)

    def __contains__(self, member: object) -> bool:
        return member in self._scores

    def set(self, score: float, member: str) -> None:
        """Add a member, or replace the score of an existing one."""
        self._scores[member] = score

    def get(self, member: str) -> float | None:
        """The score of a member, or None if it is absent."""
        return self._scores.get(member)

    def elems(self) -> list[SSElem]:
        """All members with their scores, in no particular order."""
        return [SSElem(score, member) for member, score in self._scores.items()]

    def by_score(self, direction: Direction = Direction.ASC) -> list[SSElem]:
        """All members ordered by score, ties broken by member."""
        ordered = sorted(self.elems())
        if direction is Direction.DESC:
            ordered.reverse()
        return ordered

    def rank_by_score(self, member: str, direction: Direction = Direction.ASC) -> int | None:
        """The 0-based rank of a member, or None if it is absent."""
        if member not in self._scores:
            return None
        for rank, elem in enumerate(self.by_score(direction)):
            if elem.member == member:
                return rank
        return None