"""What came next: numbers drawn right after each number of the newest draw.

Two readings: every number of the following draw, or only the one
nearest in value to the number being followed.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from eurojackpot.algorithms.base import BONUS, MAIN, NumberPool
from eurojackpot.domain import Draw, require_history


@dataclass(frozen=True)
class FollowingCount:
    number: int
    count: int
    percentage: float

    def to_dict(self) -> dict:
        return {"number": self.number, "count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class NumberFollowers:
    number: int
    total_following_draws: int
    followers: list[FollowingCount]

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "total_following_draws": self.total_following_draws,
            "followers": [f.to_dict() for f in self.followers],
        }


@dataclass(frozen=True)
class FollowingAnalysis:
    reference: Draw
    main: list[NumberFollowers]
    bonus: list[NumberFollowers]
    aggregated_main: list[FollowingCount]
    aggregated_bonus: list[FollowingCount]
    predicted_main: list[int]
    predicted_bonus: list[int]

    def to_dict(self) -> dict:
        return {
            "reference": self.reference.to_dict(),
            "main": [m.to_dict() for m in self.main],
            "bonus": [b.to_dict() for b in self.bonus],
            "aggregated_main": [a.to_dict() for a in self.aggregated_main],
            "aggregated_bonus": [a.to_dict() for a in self.aggregated_bonus],
            "predicted_main": self.predicted_main,
            "predicted_bonus": self.predicted_bonus,
        }


@dataclass(frozen=True)
class FollowingDrawsResult:
    latest: FollowingAnalysis
    previous: FollowingAnalysis | None
    previous_main_hits: list[int]
    previous_bonus_hits: list[int]

    def to_dict(self) -> dict:
        return {
            "latest": self.latest.to_dict(),
            "previous": self.previous.to_dict() if self.previous else None,
            "previous_main_hits": self.previous_main_hits,
            "previous_bonus_hits": self.previous_bonus_hits,
        }


def _ranked(counts: Counter[int], total: int) -> list[FollowingCount]:
    return [
        FollowingCount(number=n, count=c, percentage=c / total * 100 if total else 0.0)
        for n, c in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    ]


def _followers(history: Sequence[Draw], pool: NumberPool, num: int) -> NumberFollowers:
    counts: Counter[int] = Counter()
    occurrences = 0
    for i in range(1, len(history)):
        if num in pool.of(history[i]):
            occurrences += 1
            counts.update(pool.of(history[i - 1]))
    return NumberFollowers(number=num, total_following_draws=occurrences, followers=_ranked(counts, occurrences))


def _aggregate(per_number: list[NumberFollowers]) -> list[FollowingCount]:
    counts: Counter[int] = Counter()
    for item in per_number:
        for follower in item.followers:
            counts[follower.number] += follower.count
    return _ranked(counts, sum(counts.values()))


def analyze_following(history: Sequence[Draw]) -> FollowingAnalysis:
    """Followers of every number in ``history[0]`` across the rest of the history."""

    require_history(history, 1)
    reference = history[0]
    main = [_followers(history, MAIN, n) for n in reference.main_numbers]
    bonus = [_followers(history, BONUS, n) for n in reference.bonus_numbers]
    aggregated_main = _aggregate(main)
    aggregated_bonus = _aggregate(bonus)
    return FollowingAnalysis(
        reference=reference,
        main=main,
        bonus=bonus,
        aggregated_main=aggregated_main,
        aggregated_bonus=aggregated_bonus,
        predicted_main=[c.number for c in aggregated_main[: MAIN.pick]],
        predicted_bonus=[c.number for c in aggregated_bonus[: BONUS.pick]],
    )


class FollowingDrawsService:
    def analyze(self, history: Sequence[Draw]) -> FollowingDrawsResult:
        latest = analyze_following(history)
        if len(history) < 2:
            return FollowingDrawsResult(latest=latest, previous=None, previous_main_hits=[], previous_bonus_hits=[])

        # Same analysis one draw earlier, checked against what was actually drawn.
        previous = analyze_following(history[1:])
        actual = history[0]
        return FollowingDrawsResult(
            latest=latest,
            previous=previous,
            previous_main_hits=sorted(set(previous.predicted_main) & set(actual.main_numbers)),
            previous_bonus_hits=sorted(set(previous.predicted_bonus) & set(actual.bonus_numbers)),
        )


@dataclass(frozen=True)
class ClosestFollower:
    number: int
    distance: int
    count: int

    def to_dict(self) -> dict:
        return {"number": self.number, "distance": self.distance, "count": self.count}


@dataclass(frozen=True)
class NumberClosestFollowers:
    number: int
    followers: list[ClosestFollower]

    @property
    def most_common(self) -> ClosestFollower:
        return self.followers[0]

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "closest_followers": [f.to_dict() for f in self.followers[:5]],
            "most_common_follower": self.most_common.number,
            "follower_count": self.most_common.count,
        }


@dataclass(frozen=True)
class ClosestFollowerAnalysis:
    reference: Draw
    main: list[NumberClosestFollowers]
    bonus: list[NumberClosestFollowers]

    @property
    def predicted_main(self) -> list[int]:
        return sorted({m.most_common.number for m in self.main})

    @property
    def predicted_bonus(self) -> list[int]:
        return sorted({b.most_common.number for b in self.bonus})

    def to_dict(self) -> dict:
        return {
            "reference": self.reference.to_dict(),
            "main": [m.to_dict() for m in self.main],
            "bonus": [b.to_dict() for b in self.bonus],
            "predicted_main": self.predicted_main,
            "predicted_bonus": self.predicted_bonus,
        }


@dataclass(frozen=True)
class ClosestFollowersResult:
    latest: ClosestFollowerAnalysis
    previous: ClosestFollowerAnalysis | None
    previous_main_hits: list[int]
    previous_bonus_hits: list[int]

    def to_dict(self) -> dict:
        return {
            "latest": self.latest.to_dict(),
            "previous": self.previous.to_dict() if self.previous else None,
            "previous_main_hits": self.previous_main_hits,
            "previous_bonus_hits": self.previous_bonus_hits,
        }


def closest_number(target: int, numbers: Sequence[int]) -> int:
    """Nearest of ``numbers`` to ``target``, ties to the lower number."""

    return min(sorted(numbers), key=lambda n: abs(target - n))


def _closest_followers(history: Sequence[Draw], pool: NumberPool, num: int) -> NumberClosestFollowers | None:
    counts: Counter[int] = Counter()
    for i in range(1, len(history)):
        if num in pool.of(history[i]):
            counts[closest_number(num, pool.of(history[i - 1]))] += 1
    if not counts:
        return None
    followers = [
        ClosestFollower(number=n, distance=abs(num - n), count=c)
        for n, c in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    ]
    return NumberClosestFollowers(number=num, followers=followers)


def analyze_closest_followers(history: Sequence[Draw]) -> ClosestFollowerAnalysis:
    """For each number of ``history[0]``, the nearest number drawn right after it in the past.

    Numbers that never appeared before are left out.
    """

    require_history(history, 1)
    reference = history[0]
    main = [_closest_followers(history, MAIN, n) for n in reference.main_numbers]
    bonus = [_closest_followers(history, BONUS, n) for n in reference.bonus_numbers]
    return ClosestFollowerAnalysis(
        reference=reference,
        main=[m for m in main if m is not None],
        bonus=[b for b in bonus if b is not None],
    )


class ClosestFollowersService:
    def analyze(self, history: Sequence[Draw]) -> ClosestFollowersResult:
        latest = analyze_closest_followers(history)
        if len(history) < 2:
            return ClosestFollowersResult(latest=latest, previous=None, previous_main_hits=[], previous_bonus_hits=[])

        previous = analyze_closest_followers(history[1:])
        actual = history[0]
        return ClosestFollowersResult(
            latest=latest,
            previous=previous,
            previous_main_hits=sorted(set(previous.predicted_main) & set(actual.main_numbers)),
            previous_bonus_hits=sorted(set(previous.predicted_bonus) & set(actual.bonus_numbers)),
        )
