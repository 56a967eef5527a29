"""Frequency, gap and classic statistics based predictors."""

from __future__ import annotations

import heapq
import math
import random
from collections import Counter
from collections.abc import Sequence
from itertools import combinations

from eurojackpot.algorithms import register
from eurojackpot.algorithms.base import (
    BONUS,
    MAIN,
    NumberPool,
    Presence,
    count_in,
    finalize_prediction,
    frequency,
    frequency_ranking,
    last_seen,
    mean_variance,
    per_number,
    recent_count,
    scored,
    series,
    top_numbers,
    window_counts,
)
from eurojackpot.domain import Draw, Prediction

FIBONACCI = (1, 2, 3, 5, 8, 13, 21, 34)


def _gap_bucket(gap: int) -> float:
    if gap == 0:
        return 20
    if gap <= 3:
        return 100
    if gap <= 8:
        return 70
    if gap <= 15:
        return 40
    return 10


def _follow_pattern(presence: Presence, num: int) -> float:
    """How often ``num`` showed up in the draw after a reference number appeared."""

    matches = 0
    total = 0
    for ref in presence[0]:
        for i in range(1, len(presence)):
            if ref in presence[i]:
                total += 1
                if num in presence[i - 1]:
                    matches += 1
    return matches / total * 100 if total else 0.0


@per_number
def _hybrid(presence: Presence, pool: NumberPool, num: int) -> float:
    recent_window = min(20, len(presence))
    freq = frequency(presence, num) * 100
    recent = recent_count(presence, num, recent_window) / recent_window * 100
    gap = _gap_bucket(last_seen(presence, num))
    return freq * 0.25 + recent * 0.30 + gap * 0.20 + _follow_pattern(presence, num) * 0.25


@register("hybrid", "Weighted frequency, recency, gap and follow-pattern blend")
def hybrid(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _hybrid)


@per_number
def _hot_cold(presence: Presence, pool: NumberPool, num: int) -> float:
    overall = frequency(presence, num)
    recent = recent_count(presence, num, 10) / min(10, len(presence))
    cold_floor = 0.20 if pool.is_bonus else 0.15

    hot = (recent - overall) * 200 if recent > overall else 0.0
    cold = (overall - recent) * 150 if recent < overall and overall > cold_floor else 0.0
    return hot + cold + overall * 50


@register("hot_cold", "Rising numbers plus historically common numbers due a return")
def hot_cold(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _hot_cold)


@register("positional", "Most frequent number at each sorted position")
def positional(history: Sequence[Draw], rng: random.Random) -> Prediction:
    by_position: list[Counter[int]] = [Counter() for _ in range(MAIN.pick)]
    for draw in history:
        for pos, num in enumerate(sorted(draw.main_numbers)[: MAIN.pick]):
            by_position[pos][num] += 1

    picked: list[int] = []
    for counter in by_position:
        best_num, best_count = 0, 0
        for num in MAIN.numbers:
            if num not in picked and counter[num] > best_count:
                best_num, best_count = num, counter[num]
        if best_num:
            picked.append(best_num)

    return finalize_prediction(history, picked, frequency_ranking(history, BONUS))


def _pair_scores(history: Sequence[Draw], pool: NumberPool) -> dict[int, float]:
    pairs: Counter[tuple[int, int]] = Counter()
    for draw in history:
        numbers = sorted(set(pool.of(draw)))
        pairs.update(combinations(numbers, 2))

    reference = set(pool.of(history[0]))
    scores: dict[int, float] = {}
    for num in pool.numbers:
        if num in reference:
            continue
        scores[num] = sum(pairs.get((min(ref, num), max(ref, num)), 0) for ref in reference)
    return scores


@register("pair_frequency", "Numbers that co-occur most with the latest draw")
def pair_frequency(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return finalize_prediction(
        history,
        top_numbers(_pair_scores(history, MAIN), MAIN.pick),
        top_numbers(_pair_scores(history, BONUS), BONUS.pick),
    )


@register("delta", "Chain of the most common gaps between sorted numbers", randomized=True)
def delta(history: Sequence[Draw], rng: random.Random) -> Prediction:
    deltas: Counter[int] = Counter()
    for draw in history:
        ordered = sorted(draw.main_numbers)
        deltas.update(b - a for a, b in zip(ordered, ordered[1:]))
    common = top_numbers(deltas, 8)

    current = rng.randint(1, 10)
    picked = [current]
    steps = 0
    while common and len(picked) < MAIN.pick:
        current += common[steps % len(common)]
        if current <= MAIN.upper and current not in picked:
            picked.append(current)
        steps += 1
        if steps > 50:
            break

    return finalize_prediction(history, picked, frequency_ranking(history, BONUS))


@per_number
def _ml_inspired(presence: Presence, pool: NumberPool, num: int) -> float:
    freq = frequency(presence, num)
    _, variance = mean_variance(window_counts(presence, num, 10))
    momentum = recent_count(presence, num, 10) / 10 - freq
    gap = last_seen(presence, num)
    cycle = 1.0 if 1 <= gap <= 5 else 0.0
    return freq * 3.5 + 1 / (variance + 1) * 1.2 + momentum * 2.8 + cycle * 1.5


@register("ml_inspired", "Hand-weighted frequency, variance, momentum and cycle features")
def ml_inspired(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _ml_inspired)


@per_number
def _fibonacci(presence: Presence, pool: NumberPool, num: int) -> float:
    freq = frequency(presence, num)
    recent = recent_count(presence, num, 10) / 10
    if pool.is_bonus:
        return freq * 100 + (40 if num in FIBONACCI else 0) + recent * 50
    near = 25 if any(abs(f - num) <= 2 for f in FIBONACCI) else 0
    return freq * 100 + (50 if num in FIBONACCI else 0) + near + recent * 50


@register("fibonacci", "Frequency with a bonus for Fibonacci numbers")
def fibonacci(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _fibonacci)


def _markov(presence: Presence, pool: NumberPool) -> dict[int, float]:
    transitions: dict[int, Counter[int]] = {}
    for i in range(len(presence) - 1):
        for current in presence[i + 1]:
            transitions.setdefault(current, Counter()).update(presence[i])

    scores: Counter[int] = Counter()
    for num in presence[0]:
        scores.update(transitions.get(num, Counter()))
    return dict(scores)


@register("markov", "Draw-to-draw transition counts from the latest draw")
def markov(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _markov)


@per_number
def _exponential_smoothing(presence: Presence, pool: NumberPool, num: int) -> float:
    alpha = 0.3
    smoothed = 0.0
    # Oldest to newest so the latest draws carry the most weight.
    for present in reversed(series(presence[:50], num)):
        smoothed = alpha * present + (1 - alpha) * smoothed
    return smoothed * 100


@register("exponential_smoothing", "Exponentially smoothed presence over the last 50 draws")
def exponential_smoothing(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _exponential_smoothing)


def _knn(presence: Presence, pool: NumberPool, k: int = 5) -> dict[int, float]:
    reference = presence[0]
    similarities: list[tuple[float, int]] = []
    for i in range(2, len(presence)):
        union = len(presence[i] | reference)
        similarity = len(presence[i] & reference) / union if union else 0.0
        similarities.append((similarity, i))

    nearest = sorted(similarities, key=lambda s: -s[0])[:k]
    votes: Counter[int] = Counter()
    for _, idx in nearest:
        # history[idx - 1] is the draw that followed the neighbour.
        votes.update(presence[idx - 1])
    return dict(votes)


@register("knn", "Successors of the five draws most similar to the latest one")
def knn(history: Sequence[Draw], rng: random.Random) -> Prediction:
    if len(history) < 3:
        return finalize_prediction(history, [], [])
    return scored(history, _knn)


def _evolve_main(history: Sequence[Draw], rng: random.Random) -> list[int]:
    population_size, generations, mutation_rate = 50, 20, 0.15
    presence = MAIN.presence(history)
    n = len(presence)
    freq = {num: c / n for num, c in count_in(presence, MAIN).items()}
    pairs: Counter[tuple[int, int]] = Counter()
    for s in presence:
        pairs.update(combinations(sorted(s), 2))

    def fitness(combo: list[int]) -> float:
        score = sum(freq[num] * 10 for num in combo)
        score += sum(pairs.get((min(a, b), max(a, b)), 0) * 0.5 for a, b in combinations(combo, 2))
        return score - (len(combo) - len(set(combo))) * 20

    def random_combo() -> list[int]:
        combo: list[int] = []
        while len(combo) < MAIN.pick:
            num = rng.randint(1, MAIN.upper)
            if num not in combo:
                combo.append(num)
        return combo

    population = [random_combo() for _ in range(population_size)]
    for _ in range(generations):
        ranked = sorted(population, key=fitness, reverse=True)
        survivors = ranked[: population_size // 2]
        population = list(survivors)

        while len(population) < population_size:
            parent1 = survivors[rng.randrange(len(survivors))]
            parent2 = survivors[rng.randrange(len(survivors))]

            child: list[int] = []
            for i in range(MAIN.pick):
                gene = parent1[i] if rng.random() < 0.5 else parent2[i]
                if gene not in child:
                    child.append(gene)
            while len(child) < MAIN.pick:
                num = rng.randint(1, MAIN.upper)
                if num not in child:
                    child.append(num)

            if rng.random() < mutation_rate:
                idx = rng.randrange(MAIN.pick)
                num = rng.randint(1, MAIN.upper)
                while num in child:
                    num = rng.randint(1, MAIN.upper)
                child[idx] = num

            population.append(child)

    return max(population, key=fitness)


def _evolve_bonus(history: Sequence[Draw], rng: random.Random) -> list[int]:
    population_size, generations, mutation_rate = 50, 20, 0.15
    presence = BONUS.presence(history)
    freq = {num: c / len(presence) for num, c in count_in(presence, BONUS).items()}

    def fitness(combo: list[int]) -> float:
        return sum(freq[num] * 10 for num in combo)

    population = [rng.sample(list(BONUS.numbers), BONUS.pick) for _ in range(population_size)]
    for _ in range(generations):
        survivors = sorted(population, key=fitness, reverse=True)[: population_size // 2]
        population = list(survivors)
        while len(population) < population_size:
            child = list(survivors[rng.randrange(len(survivors))])
            if rng.random() < mutation_rate:
                idx = rng.randrange(BONUS.pick)
                num = rng.randint(1, BONUS.upper)
                while num in child:
                    num = rng.randint(1, BONUS.upper)
                child[idx] = num
            population.append(child)

    return max(population, key=fitness)


@register("genetic", "Evolves tickets towards frequent numbers and pairs", randomized=True)
def genetic(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return finalize_prediction(history, _evolve_main(history, rng), _evolve_bonus(history, rng))


def _simulate(presence: Presence, pool: NumberPool, rng: random.Random, simulations: int) -> dict[int, float]:
    weights = {num: frequency(presence, num) for num in pool.numbers}
    weighted = [(num, w) for num, w in weights.items() if w > 0]

    selected: Counter[int] = Counter()
    for _ in range(simulations):
        # Weighted sampling without replacement: keep the largest log(u) / w keys.
        keys = ((math.log(1.0 - rng.random()) / w, num) for num, w in weighted)
        selected.update(num for _, num in heapq.nlargest(pool.pick, keys))
    return dict(selected)


@register("monte_carlo", "Most selected numbers over 10 000 frequency-weighted draws", randomized=True)
def monte_carlo(history: Sequence[Draw], rng: random.Random) -> Prediction:
    simulations = 10_000
    main = _simulate(MAIN.presence(history), MAIN, rng, simulations)
    bonus = _simulate(BONUS.presence(history), BONUS, rng, simulations)
    return finalize_prediction(history, top_numbers(main, MAIN.pick), top_numbers(bonus, BONUS.pick))


@per_number
def _bayesian(presence: Presence, pool: NumberPool, num: int) -> float:
    prior = frequency(presence, num)
    likelihood = recent_count(presence, num, 10) / 10
    posterior = likelihood * prior / 0.3

    gap_bonus = 0.0
    gap = last_seen(presence, num, default=-1)
    if 3 <= gap <= 8:
        gap_bonus = 0.2
    elif 1 <= gap <= 2:
        gap_bonus = 0.1
    return (posterior + gap_bonus) * 100


@register("bayesian", "Recent likelihood times historical prior plus a gap bonus")
def bayesian(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _bayesian)


@per_number
def _time_series(presence: Presence, pool: NumberPool, num: int) -> float:
    counts = window_counts(presence, num, 10)
    n = len(counts)
    if n == 0:
        return 0.0

    sum_x = n * (n - 1) / 2
    sum_y = sum(counts)
    sum_xy = sum(x * y for x, y in enumerate(counts))
    sum_x2 = n * (n - 1) * (2 * n - 1) / 6
    trend = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x) if n > 1 else 0.0

    avg = sum_y / n
    seasonal = counts[0] - avg
    return trend * 50 + seasonal * 20 + avg * 30


@register("time_series", "Trend and seasonal component of 10-draw window counts")
def time_series(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _time_series)


@per_number
def _entropy(presence: Presence, pool: NumberPool, num: int) -> float:
    freq = frequency(presence, num)
    information = -math.log2(freq) if freq > 0 else 10.0
    return -abs(information - 2.5) * 20 + freq * 50 + recent_count(presence, num, 10) / 10 * 30


@register("entropy", "Numbers whose information content is near 2.5 bits")
def entropy(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _entropy)


def _cluster_target_average(history: Sequence[Draw], k: int = 5, iterations: int = 20) -> float:
    features: list[tuple[float, float, float]] = []
    for draw in history:
        ordered = sorted(draw.main_numbers)
        total = float(sum(ordered))
        features.append((total / len(ordered), float(ordered[-1] - ordered[0]), total))

    def distance(a: tuple[float, float, float], b: tuple[float, float, float]) -> float:
        return math.sqrt((a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2 / 1000)

    def nearest(point: tuple[float, float, float], centroids: list[tuple[float, float, float]]) -> int:
        best, best_dist = 0, math.inf
        for idx, centroid in enumerate(centroids):
            d = distance(point, centroid)
            if d < best_dist:
                best, best_dist = idx, d
        return best

    centroids = list(features[:k])
    for _ in range(iterations):
        clusters: list[list[tuple[float, float, float]]] = [[] for _ in centroids]
        for feat in features:
            clusters[nearest(feat, centroids)].append(feat)
        # An empty cluster keeps its previous centroid.
        centroids = [
            tuple(sum(f[j] for f in members) / len(members) for j in range(3)) if members else centroids[idx]  # type: ignore[misc]
            for idx, members in enumerate(clusters)
        ]

    return centroids[nearest(features[0], centroids)][0]


@register("kmeans", "Frequent numbers close to the latest draw's cluster average")
def kmeans(history: Sequence[Draw], rng: random.Random) -> Prediction:
    target = _cluster_target_average(history)
    presence = MAIN.presence(history)
    main = {
        num: frequency(presence, num) * 100 - (abs(num - target) / target * 20 if target else 0.0)
        for num in MAIN.numbers
    }
    return finalize_prediction(history, top_numbers(main, MAIN.pick), frequency_ranking(history, BONUS))


@per_number
def _autoregressive(presence: Presence, pool: NumberPool, num: int) -> float:
    order = 5
    ts = series(presence, num)
    if len(ts) < order:
        return 0.0

    coefficients = []
    for lag in range(1, order + 1):
        products = [ts[i] * ts[i - lag] for i in range(lag, len(ts))]
        coefficients.append(sum(products) / len(products) if products else 0.0)

    prediction = sum(coefficients[i] * ts[i] for i in range(order))
    return prediction * 50 + sum(ts) / len(ts) * 50


@register("autoregressive", "AR(5) lag products of the presence series")
def autoregressive(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _autoregressive)


@per_number
def _chi_square(presence: Presence, pool: NumberPool, num: int) -> float:
    observed = sum(1 for s in presence if num in s)
    expected = len(presence) * pool.pick / pool.upper
    chi = (observed - expected) ** 2 / expected
    signed = chi if observed > expected else -chi
    return signed + recent_count(presence, num, 15) * 5


@register("chi_square", "Signed chi-square deviation from the uniform expectation")
def chi_square(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _chi_square)


@per_number
def _fourier(presence: Presence, pool: NumberPool, num: int) -> float:
    ts = series(presence, num)
    best = 0.0
    for period in (2, 3, 4, 5, 7, 10):
        matches = 0
        compared = 0
        for i in range(len(ts) - period):
            if ts[i]:
                compared += 1
                if ts[i + period]:
                    matches += 1
        if compared:
            best = max(best, matches / compared)
    recent = sum(ts[:10]) / 10
    return best * 100 + recent * 50 + sum(ts) / len(ts) * 30


@register("fourier", "Strongest periodicity over a handful of draw periods")
def fourier(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _fourier)


@per_number
def _regression(presence: Presence, pool: NumberPool, num: int) -> float:
    counts = window_counts(presence, num, 5, windows=20)
    n = len(counts)
    if n < 2:
        return 0.0

    x_mean = (n - 1) / 2
    y_mean, variance = mean_variance(counts)
    numerator = sum((i - x_mean) * (y - y_mean) for i, y in enumerate(counts))
    denominator = sum((i - x_mean) ** 2 for i in range(n))
    slope = numerator / denominator if denominator else 0.0
    std_dev = math.sqrt(variance)

    autocorr = 0.0
    if variance > 0:
        for lag in range(1, min(3, n - 1) + 1):
            total = sum((counts[i] - y_mean) * (counts[i + lag] - y_mean) for i in range(n - lag))
            autocorr += total / ((n - lag) * variance)
        autocorr /= 3

    gap = last_seen(presence, num, default=len(presence))
    gap_score = 20 if 3 <= gap <= 8 else 10 if gap in (1, 2) else 0
    return slope * 40 + 1 / (std_dev + 1) * 15 + autocorr * 25 + gap_score + y_mean * 30


@register("regression", "Slope, volatility, autocorrelation and gap features over 5-draw windows")
def regression(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _regression)
