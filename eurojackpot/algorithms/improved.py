"""Predictors used by the adaptive ensemble.

These favour numbers that have been absent for a while and keep the
ticket close to the recent low/mid/high and odd/even balance.
"""

from __future__ import annotations

import math
import random
from collections import Counter
from collections.abc import Sequence

from eurojackpot.algorithms import register
from eurojackpot.algorithms.base import (
    BONUS,
    MAIN,
    NumberPool,
    count_in,
    finalize_prediction,
    frequency_ranking,
    last_seen,
    top_numbers,
)
from eurojackpot.domain import Draw, Prediction
from eurojackpot.services.order_pattern_service import analyze_order_patterns

LOW_RANGE = range(1, 18)
MID_RANGE = range(18, 35)
HIGH_RANGE = range(35, 51)
BALANCE_ATTEMPTS = 1000


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _frequency_gap_scores(history: Sequence[Draw], pool: NumberPool, repeat_penalty: float) -> dict[int, float]:
    presence = pool.presence(history)
    counts = count_in(presence, pool)
    size = len(presence)
    scores: dict[int, float] = {}
    for num in pool.numbers:
        gap = last_seen(presence, num, default=size)
        score = counts[num] / size * 0.4 + gap / size * 0.6
        if num in presence[0]:
            score *= repeat_penalty
        scores[num] = score
    return scores


@register("frequency_gap", "Frequency blended with time since last appearance")
def frequency_gap(history: Sequence[Draw], rng: random.Random) -> Prediction:
    recent = history[:50]
    main = top_numbers(_frequency_gap_scores(recent, MAIN, 0.3), MAIN.pick)
    bonus = top_numbers(_frequency_gap_scores(recent, BONUS, 0.2), BONUS.pick)
    return finalize_prediction(history, main, bonus)


@register("statistical_balance", "Random tickets matching recent range, parity and sum targets", randomized=True)
def statistical_balance(history: Sequence[Draw], rng: random.Random) -> Prediction:
    recent = history[:30]
    numbers = [n for d in recent for n in d.main_numbers]
    total = len(numbers) or 1

    even_target = _round_half_up(MAIN.pick * sum(1 for n in numbers if n % 2 == 0) / total)
    low = _round_half_up(MAIN.pick * sum(1 for n in numbers if n in LOW_RANGE) / total)
    mid = min(MAIN.pick - low, _round_half_up(MAIN.pick * sum(1 for n in numbers if n in MID_RANGE) / total))
    high = max(0, MAIN.pick - low - mid)
    sum_target = sum(sum(d.main_numbers) for d in recent) / len(recent)

    best: list[int] | None = None
    best_distance = math.inf
    for _ in range(BALANCE_ATTEMPTS):
        candidate = sorted(
            rng.sample(LOW_RANGE, low) + rng.sample(MID_RANGE, mid) + rng.sample(HIGH_RANGE, high)
        )
        evens = sum(1 for n in candidate if n % 2 == 0)
        if abs(evens - even_target) > 1:
            continue
        distance = abs(sum(candidate) - sum_target)
        if distance < best_distance:
            best, best_distance = candidate, distance

    return finalize_prediction(history, best or [], frequency_ranking(recent, BONUS))


def _ordered_unique(draws: Sequence[Draw], pool: NumberPool) -> list[int]:
    seen: list[int] = []
    for draw in draws:
        for num in pool.of(draw):
            if num not in seen:
                seen.append(num)
    return seen


@register("hot_cold_mix", "Three recently hot numbers with two long-cold ones", randomized=True)
def hot_cold_mix(history: Sequence[Draw], rng: random.Random) -> Prediction:
    hot = _ordered_unique(history[:10], MAIN)
    recent = set(_ordered_unique(history[:30], MAIN))
    cold = [n for n in _ordered_unique(history[:100], MAIN) if n not in recent]

    rng.shuffle(hot)
    rng.shuffle(cold)
    main = hot[:3] + cold[:2]

    hot_bonus = _ordered_unique(history[:10], BONUS)
    if len(hot_bonus) >= BONUS.pick:
        bonus = hot_bonus[: BONUS.pick]
    else:
        bonus = frequency_ranking(history[:100], BONUS)
    return finalize_prediction(history, main, bonus)


def _recency_weights(history: Sequence[Draw], pool: NumberPool, penalty: float = 0.3) -> dict[int, float]:
    scores = {n: 0.0 for n in pool.numbers}
    for i, draw in enumerate(history[:30]):
        weight = math.exp(-i / 10) * (penalty if i == 0 else 1.0)
        for num in pool.of(draw):
            if num in scores:
                scores[num] += weight
    return scores


@register("weighted_recency", "Exponentially decayed appearance weights")
def weighted_recency(history: Sequence[Draw], rng: random.Random) -> Prediction:
    main = top_numbers(_recency_weights(history, MAIN), MAIN.pick)
    bonus = top_numbers(_recency_weights(history, BONUS), BONUS.pick)
    return finalize_prediction(history, main, bonus)


def _overdue_scores(history: Sequence[Draw], pool: NumberPool, unseen_score: float) -> dict[int, float]:
    presence = pool.presence(history[:200])
    scores: dict[int, float] = {}
    for num in pool.numbers:
        seen_at = [i for i, s in enumerate(presence) if num in s]
        gaps = [b - a for a, b in zip(seen_at, seen_at[1:])]
        if not gaps:
            scores[num] = unseen_score
            continue
        avg_gap = sum(gaps) / len(gaps)
        scores[num] = max(0.0, seen_at[0] - avg_gap)
    return scores


@register("gap_overdue", "Numbers whose current absence exceeds their average gap")
def gap_overdue(history: Sequence[Draw], rng: random.Random) -> Prediction:
    main = top_numbers(_overdue_scores(history, MAIN, 10.0), MAIN.pick)
    bonus = top_numbers(_overdue_scores(history, BONUS, 5.0), BONUS.pick)
    return finalize_prediction(history, main, bonus)


@register("consecutive_pattern", "Most common neighbouring pairs, topped up by frequency")
def consecutive_pattern(history: Sequence[Draw], rng: random.Random) -> Prediction:
    recent = history[:100]
    pairs: Counter[tuple[int, int]] = Counter()
    for draw in recent:
        numbers = set(draw.main_numbers)
        for num in numbers:
            if num + 1 in numbers:
                pairs[(num, num + 1)] += 1

    picked: list[int] = []
    for pair, _ in sorted(pairs.items(), key=lambda kv: (-kv[1], kv[0]))[:10]:
        for num in pair:
            if len(picked) < MAIN.pick and num not in picked:
                picked.append(num)
        if len(picked) >= MAIN.pick:
            break

    main = picked + frequency_ranking(recent, MAIN)
    return finalize_prediction(history, main, frequency_ranking(recent, BONUS))


@register("order_pattern", "Position, gap, sequence and transition patterns of sorted draws")
def order_pattern(history: Sequence[Draw], rng: random.Random) -> Prediction:
    analysis = analyze_order_patterns(history, 30)
    candidates = analysis.main_scores[:10]

    picked: list[int] = []
    for position in range(MAIN.pick):
        remaining = [c for c in candidates if c.number not in picked]
        if not remaining:
            break
        preferred = [c for c in remaining if c.preferred_position == position]
        picked.append((preferred or remaining)[0].number)

    bonus = [s.number for s in analysis.bonus_scores[:5]][: BONUS.pick]
    return finalize_prediction(history, picked, bonus)
