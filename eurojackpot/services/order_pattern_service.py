"""Order-pattern analysis: how numbers sit inside the sorted draw.

Looks at sorted positions, the gaps to neighbouring numbers, small
arithmetic sequences and how a number moves between positions from one
draw to the next.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence
from dataclasses import asdict, dataclass

from eurojackpot.domain import BONUS_MAX, MAIN_COUNT, MAIN_MAX, Draw, require_history


@dataclass(frozen=True)
class OrderPatternScore:
    number: int
    position_score: float
    gap_pattern_score: float
    sequence_score: float
    transition_score: float
    total_order_score: float
    preferred_position: int


@dataclass(frozen=True)
class OrderPatternInsights:
    common_gap_pattern: list[int]
    preferred_positions: dict[int, int]
    sequence_tendency: str
    avg_gap_between_numbers: float


@dataclass(frozen=True)
class OrderPatternAnalysis:
    main_scores: list[OrderPatternScore]
    bonus_scores: list[OrderPatternScore]
    insights: OrderPatternInsights

    def to_dict(self) -> dict:
        data = asdict(self)
        data["insights"]["preferred_positions"] = {
            str(k): v for k, v in self.insights.preferred_positions.items()
        }
        return data


def _std_dev(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    avg = sum(values) / len(values)
    return math.sqrt(sum((v - avg) ** 2 for v in values) / len(values))


def _ranked(scores: list[OrderPatternScore]) -> list[OrderPatternScore]:
    return sorted(scores, key=lambda s: (-s.total_order_score, s.number))


def _position_counts(num: int, sorted_draws: Sequence[Sequence[int]], slots: int) -> list[int]:
    counts = [0] * slots
    for numbers in sorted_draws:
        if num in numbers:
            idx = numbers.index(num)
            if idx < slots:
                counts[idx] += 1
    return counts


def _preferred(counts: list[int]) -> int:
    return counts.index(max(counts))


def _main_position_score(num: int, recent: Sequence[Sequence[int]]) -> float:
    counts = _position_counts(num, recent, MAIN_COUNT)
    total = sum(counts)
    if total == 0:
        return 0.0
    consistency = max(counts) / total
    expected = math.floor(num / MAIN_MAX * MAIN_COUNT)
    match_bonus = 20 if abs(expected - _preferred(counts)) <= 1 else 0
    return consistency * 60 + match_bonus + total / len(recent) * 20


def _main_gap_score(num: int, recent: Sequence[Sequence[int]]) -> float:
    before: list[int] = []
    after: list[int] = []
    for numbers in recent:
        if num not in numbers:
            continue
        idx = numbers.index(num)
        if idx > 0:
            before.append(num - numbers[idx - 1])
        if idx < len(numbers) - 1:
            after.append(numbers[idx + 1] - num)

    if not before and not after:
        return 0.0

    avg_before = sum(before) / len(before) if before else 0.0
    avg_after = sum(after) / len(after) if after else 0.0
    consistency = max(0.0, 30 - (_std_dev(before) + _std_dev(after)) / 2)
    reasonable = 20 if (3 < avg_before < 15) or (3 < avg_after < 15) else 0

    latest = recent[0]
    match = 0
    for lo, hi in zip(latest, latest[1:]):
        if lo < num < hi and (abs(num - lo - avg_before) < 3 or abs(hi - num - avg_after) < 3):
            match += 25
    return consistency + reasonable + match


def _main_sequence_score(num: int, recent: Sequence[Sequence[int]]) -> float:
    participation = 0
    consecutive = 0
    for numbers in recent:
        if num not in numbers:
            continue
        idx = numbers.index(num)
        in_sequence = False
        if idx > 0 and numbers[idx - 1] == num - 1:
            in_sequence = True
            consecutive += 1
        if idx < len(numbers) - 1 and numbers[idx + 1] == num + 1:
            in_sequence = True
            consecutive += 1
        if any((num - step) in numbers and (num + step) in numbers for step in range(2, 11)):
            in_sequence = True
        if in_sequence:
            participation += 1

    latest = recent[0]
    bonus = 0
    for drawn in latest:
        if num in (drawn + 1, drawn - 1):
            bonus += 20
        if (drawn * 2 - num) in latest or (drawn * 2 + num) in latest:
            bonus += 10

    return participation / len(recent) * 100 + consecutive / len(recent) * 50 + bonus


def _main_transition_score(num: int, recent: Sequence[Sequence[int]], everything: Sequence[Sequence[int]]) -> float:
    transitions: list[int] = []
    for current, previous in zip(everything, everything[1:]):
        if num not in current:
            continue
        cur_idx = current.index(num)
        if num in previous:
            transitions.append(cur_idx - previous.index(num))
        else:
            transitions.append(cur_idx)

    if not transitions:
        return 50.0

    common, count = Counter(transitions).most_common(1)[0]
    bonus = 20 if num not in recent[0] and common >= 0 else 0
    return count / len(transitions) * 100 + bonus


def _bonus_position_score(num: int, recent: Sequence[Sequence[int]]) -> float:
    counts = _position_counts(num, recent, 2)
    total = sum(counts)
    if total == 0:
        return 0.0
    return max(counts) / total * 70 + total / len(recent) * 30


def _bonus_gap_score(num: int, recent: Sequence[Sequence[int]]) -> float:
    gaps = [abs(pair[0] - pair[1]) for pair in recent if len(pair) == 2 and num in pair]
    if not gaps:
        return 0.0
    avg = sum(gaps) / len(gaps)
    match = sum(40 for euro in recent[0] if abs(abs(num - euro) - avg) < 2)
    return max(0.0, 30 - _std_dev(gaps)) + match


def _bonus_sequence_score(num: int, recent: Sequence[Sequence[int]]) -> float:
    consecutive = sum(1 for pair in recent if len(pair) == 2 and abs(pair[0] - pair[1]) == 1 and num in pair)
    bonus = sum(30 for euro in recent[0] if abs(num - euro) == 1)
    return consecutive / len(recent) * 100 + bonus


def _bonus_transition_score(num: int, recent: Sequence[Sequence[int]]) -> float:
    window = recent[:10]
    return sum(1 for pair in window if num in pair) / min(10, len(recent)) * 100


def _insights(recent: Sequence[Sequence[int]]) -> OrderPatternInsights:
    all_gaps: list[int] = []
    ascending = 0
    mixed = 0
    distinct_patterns: dict[tuple[int, ...], list[int]] = {}
    for numbers in recent:
        gaps = [b - a for a, b in zip(numbers, numbers[1:])]
        all_gaps.extend(gaps)
        distinct_patterns[tuple(gaps)] = gaps

        increasing = sum(1 for a, b in zip(gaps, gaps[1:]) if b > a)
        decreasing = sum(1 for a, b in zip(gaps, gaps[1:]) if b < a)
        if increasing > decreasing:
            ascending += 1
        elif increasing < decreasing:
            mixed += 1

    if distinct_patterns:
        sums = [0, 0, 0, 0]
        for gaps in distinct_patterns.values():
            for idx, gap in enumerate(gaps[:4]):
                sums[idx] += gap
        common = [math.floor(s / len(distinct_patterns) + 0.5) for s in sums]
    else:
        common = [10, 10, 10, 10]

    if ascending > mixed * 1.5:
        tendency = "ascending"
    elif mixed > ascending * 1.5:
        tendency = "mixed"
    else:
        tendency = "balanced"

    return OrderPatternInsights(
        common_gap_pattern=common,
        preferred_positions={
            num: _preferred(_position_counts(num, recent, MAIN_COUNT)) for num in range(1, MAIN_MAX + 1)
        },
        sequence_tendency=tendency,
        avg_gap_between_numbers=sum(all_gaps) / len(all_gaps) if all_gaps else 0.0,
    )


def analyze_order_patterns(history: Sequence[Draw], recent: int = 30) -> OrderPatternAnalysis:
    """Score every main and euro number by its order patterns.

    ``recent`` bounds the window used for position, gap and sequence
    statistics; position transitions use the whole history.
    """

    require_history(history, 1)

    everything = [sorted(d.main_numbers) for d in history]
    window = everything[: max(1, min(recent, len(history)))]
    bonus_window = [sorted(d.bonus_numbers) for d in history[: len(window)]]

    main_scores: list[OrderPatternScore] = []
    for num in range(1, MAIN_MAX + 1):
        position = _main_position_score(num, window)
        gap = _main_gap_score(num, window)
        sequence = _main_sequence_score(num, window)
        transition = _main_transition_score(num, window, everything)
        main_scores.append(
            OrderPatternScore(
                number=num,
                position_score=position,
                gap_pattern_score=gap,
                sequence_score=sequence,
                transition_score=transition,
                total_order_score=position * 0.35 + gap * 0.30 + sequence * 0.20 + transition * 0.15,
                preferred_position=_preferred(_position_counts(num, window, MAIN_COUNT)),
            )
        )

    bonus_scores: list[OrderPatternScore] = []
    for num in range(1, BONUS_MAX + 1):
        position = _bonus_position_score(num, bonus_window)
        gap = _bonus_gap_score(num, bonus_window)
        sequence = _bonus_sequence_score(num, bonus_window)
        transition = _bonus_transition_score(num, bonus_window)
        bonus_scores.append(
            OrderPatternScore(
                number=num,
                position_score=position,
                gap_pattern_score=gap,
                sequence_score=sequence,
                transition_score=transition,
                total_order_score=position * 0.40 + gap * 0.30 + sequence * 0.20 + transition * 0.10,
                preferred_position=_preferred(_position_counts(num, bonus_window, 2)),
            )
        )

    return OrderPatternAnalysis(
        main_scores=_ranked(main_scores),
        bonus_scores=_ranked(bonus_scores),
        insights=_insights(window),
    )
