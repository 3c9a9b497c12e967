"""Leaderboard Ranking - pure ordering and competition ranking of family members.

Invariants:
    - Entries sorted by points desc, then name asc (case-insensitive)
    - Competition ranking: equal points share a rank, next rank skips (1, 1, 3)
    - Input entries are not mutated
"""

from dataclasses import dataclass, field, replace
from uuid import UUID


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: UUID
    name: str
    points: int
    streaks: dict[str, int] = field(default_factory=dict)
    badges_count: int = 0
    rank: int = 0

    def to_dict(self) -> dict:
        return {
            "user_id": str(self.user_id),
            "name": self.name,
            "points": self.points,
            "rank": self.rank,
            "streaks": dict(self.streaks),
            "badges_count": self.badges_count,
        }


def rank_entries(entries: list[LeaderboardEntry]) -> list[LeaderboardEntry]:
    ordered = sorted(entries, key=lambda e: (-e.points, (e.name or "").lower()))
    ranked: list[LeaderboardEntry] = []
    for position, entry in enumerate(ordered, start=1):
        if ranked and ranked[-1].points == entry.points:
            rank = ranked[-1].rank
        else:
            rank = position
        ranked.append(replace(entry, rank=rank))
    return ranked


def streak_summary(current_counts: dict[str, int], streak_types: list[str]) -> dict[str, int]:
    """Per-type current counts (missing types as 0) plus their total."""
    summary = {t: current_counts.get(t, 0) for t in streak_types}
    summary["total"] = sum(summary.values())
    return summary
