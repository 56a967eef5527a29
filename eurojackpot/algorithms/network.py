"""Predictors loosely modelled on machine-learning architectures.

None of these learn anything: the "weights" are fixed formulas applied to
each number's presence series. They exist to compare against the simpler
statistics in backtests.
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
    Presence,
    finalize_prediction,
    frequency,
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


def _sigmoid(x: float) -> float:
    return 1 / (1 + math.exp(-x))


def _relu(x: float) -> float:
    return max(0.0, x)


@per_number
def _neural(presence: Presence, pool: NumberPool, num: int) -> float:
    n = len(presence)
    recent_window = min(30, n)
    freq = frequency(presence, num)
    recent = recent_count(presence, num, recent_window) / recent_window
    gap = last_seen(presence, num)
    recency = 1 / (gap + 1)

    size = n // 5
    counts = []
    for i in range(5):
        if i * size >= n:
            break
        counts.append(sum(1 for s in presence[i * size : (i + 1) * size] if num in s))
    _, variance = mean_variance(counts)
    consistency = 1 / (variance + 1)

    h1 = _relu(freq * 2.4 + recent * 3.1 - variance * 0.5)
    h2 = _relu(recency * 1.8 + consistency * 2.2 - gap * 0.02)
    h3 = _sigmoid((freq - 0.5) * 5 + (recent - 0.5) * 4)
    return _sigmoid(h1 * 0.4 + h2 * 0.35 + h3 * 0.25) * 100


@register("neural", "Two fixed dense layers over frequency, recency and consistency")
def neural(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _neural)


@per_number
def _svm(presence: Presence, pool: NumberPool, num: int) -> float:
    n = len(presence)
    recent = recent_count(presence, num, 15) / 15
    overall = frequency(presence, num)
    normalized_gap = 1 - last_seen(presence, num) / n
    _, variance = mean_variance(window_counts(presence, num, 10))
    return 2.5 * recent + 1.8 * overall + 1.2 * normalized_gap + 0.8 / (1 + variance) + 0.1


@register("svm", "Linear decision function over recency, frequency, gap and variance")
def svm(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _svm)


def _random_forest(presence: Presence, pool: NumberPool) -> dict[int, float]:
    reference = presence[0]
    counts = Counter(n for s in presence for n in s)

    def tree_frequency(num: int) -> float:
        recent = recent_count(presence, num, 10)
        if counts[num] > 30:
            return 100 if recent > 3 else 70
        return 60 if recent > 2 else 30

    def tree_gap(num: int) -> float:
        gap = last_seen(presence, num)
        return 100 if gap <= 3 else 70 if gap <= 8 else 40 if gap <= 15 else 20

    def tree_variance(num: int) -> float:
        _, variance = mean_variance(window_counts(presence, num, 10))
        return 100 if variance < 1 else 70 if variance < 2 else 40

    def tree_pairs(num: int) -> float:
        pair_score = sum(1 for ref in reference for s in presence if ref in s and num in s)
        return 100 if pair_score > 5 else 60 if pair_score > 2 else 30

    return {
        num: (tree_frequency(num) + tree_gap(num) + tree_variance(num) + tree_pairs(num)) / 4
        for num in pool.numbers
    }


@register("random_forest", "Average vote of four rule trees")
def random_forest(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _random_forest)


@per_number
def _gradient_boosting(presence: Presence, pool: NumberPool, num: int) -> float:
    lr = 0.3
    freq = frequency(presence, num)
    prediction = freq * lr

    recent = recent_count(presence, num, 15) / 15
    prediction += (recent - prediction) * lr

    gap = last_seen(presence, num)
    gap_score = 0.5 if 3 <= gap <= 10 else 0.2
    prediction += (gap_score - prediction) * lr

    _, variance = mean_variance(window_counts(presence, num, 10))
    prediction += (1 / (1 + variance) - prediction) * lr

    prediction += (recent - freq) * lr * 0.5
    return prediction * 100


@register("gradient_boosting", "Staged residual fitting of five simple features")
def gradient_boosting(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _gradient_boosting)


def _gated_cell(bits: Sequence[int], weights: Sequence[float]) -> float:
    forget, gate_in, gate_out = 0.6, 0.7, 0.8
    cell = 0.0
    hidden = 0.0
    for bit, weight in zip(bits, weights):
        cell = cell * forget + bit * gate_in * weight
        hidden = math.tanh(cell) * gate_out
    return hidden


@per_number
def _lstm(presence: Presence, pool: NumberPool, num: int) -> float:
    length = min(30, len(presence))
    bits = series(presence[:length], num)
    hidden = _gated_cell(bits, [1 - i / length for i in range(length)])
    return hidden * 80 + frequency(presence, num) * 20


@register("lstm", "Gated decaying memory over the last 30 draws")
def lstm(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _lstm)


@per_number
def _xgboost(presence: Presence, pool: NumberPool, num: int) -> float:
    lam, alpha, lr = 1.0, 0.5, 0.1
    hessian = 1.0
    freq = frequency(presence, num)
    prediction = 0.5

    for round_no in range(10):
        gradient = prediction - freq
        prediction += lr * (-gradient / (hessian + lam)) / (1 + alpha)

        window = 10 + round_no * 2
        recent = recent_count(presence, num, window) / window
        gain = gradient**2 / (hessian + lam)
        prediction += gain * 0.01 * (recent - freq)

    return max(0.0, min(1.0, prediction)) * 100


@register("xgboost", "Regularised boosting rounds towards the historical frequency")
def xgboost(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _xgboost)


@per_number
def _dbn(presence: Presence, pool: NumberPool, num: int) -> float:
    visible = series(presence[:50], num)

    hidden1 = [
        _sigmoid(sum(v * math.sin((h + 1) * (i + 1) * 0.1) * 0.5 for i, v in enumerate(visible)))
        for h in range(20)
    ]
    hidden2 = [
        _sigmoid(sum(v * math.cos((h + 1) * (i + 1) * 0.1) * 0.5 for i, v in enumerate(hidden1)))
        for h in range(10)
    ]
    output = sum(h * (i + 1) / len(hidden2) for i, h in enumerate(hidden2))
    return output * 70 + recent_count(presence, num, 10) / 10 * 30


@register("dbn", "Two sinusoidal hidden layers over the last 50 presence bits")
def dbn(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _dbn)


@per_number
def _attention(presence: Presence, pool: NumberPool, num: int) -> float:
    d_model = 16
    bits = series(presence[:30], num)
    length = len(bits)
    if not length:
        return 0.0

    raw: list[float] = []
    for i, bit in enumerate(bits):
        # Query and key are identical, so q.k is a sum of squares.
        score = 0.0
        for d in range(d_model):
            q = bit + math.sin(i / 10000 ** (2 * d / d_model)) * 0.1
            score += q * q
        raw.append(math.exp(score / math.sqrt(d_model)))

    total = sum(raw)
    weights = [w / total for w in raw]
    output = sum(w * bit * d_model for w, bit in zip(weights, bits))

    return (output * 0.4 + output * 0.35 * weights[0] + output * 0.25 * weights[length // 2]) * 100


@register("attention", "Self-attention over the last 30 draws with three heads")
def attention(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _attention)


def _haar(signal: Sequence[float]) -> tuple[list[float], list[float]]:
    root2 = math.sqrt(2)
    approx = [(signal[i] + signal[i + 1]) / root2 for i in range(0, len(signal) - 1, 2)]
    detail = [(signal[i] - signal[i + 1]) / root2 for i in range(0, len(signal) - 1, 2)]
    return approx, detail


@per_number
def _wavelet(presence: Presence, pool: NumberPool, num: int) -> float:
    ts = series(presence, num)
    if len(ts) < 4:
        return 0.0

    approx1, detail1 = _haar(ts)
    approx2, detail2 = _haar(approx1) if len(approx1) >= 2 else (approx1, [])
    approx3, detail3 = _haar(approx2) if len(approx2) >= 2 else (approx2, [])

    def energy(values: Sequence[float]) -> float:
        return sum(v * v for v in values)

    high = (energy(detail1) + energy(detail2) * 0.7) / (len(ts) + 1)
    low = (energy(approx3) + energy(detail3) * 0.5) / (len(ts) + 1)
    return high * 60 + low * 40


@register("wavelet", "Three-level Haar decomposition energy")
def wavelet(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _wavelet)


def _gnn(presence: Presence, pool: NumberPool) -> dict[int, float]:
    n = len(presence)
    adjacency: dict[int, Counter[int]] = {}
    for s in presence:
        for a in s:
            edges = adjacency.setdefault(a, Counter())
            for b in s:
                if a != b:
                    edges[b] += 1

    freq = {num: frequency(presence, num) for num in pool.numbers}

    scores: dict[int, float] = {}
    for num in pool.numbers:
        neighbours = adjacency.get(num, Counter())
        feature = freq[num]
        for _ in range(3):
            if neighbours:
                message = sum(weight / n * freq.get(other, 0.0) for other, weight in neighbours.items())
                feature = max(0.0, 0.6 * feature + 0.4 * message / len(neighbours))
        degree = len(neighbours)
        total_weight = sum(neighbours.values())
        scores[num] = feature * 60 + degree / pool.upper * 20 + total_weight / n * 20
    return scores


@register("gnn", "Message passing on the co-occurrence graph")
def gnn(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _gnn)


@per_number
def _qlearning(presence: Presence, pool: NumberPool, num: int) -> float:
    lr, discount = 0.1, 0.9
    q = 0.5
    for episode in range(min(20, len(presence) - 1)):
        hit = num in presence[episode]
        reward = 1.0 if hit else -0.1
        next_value = 0.8 if hit else 0.2
        q += lr * (reward + discount * next_value - q)

    visits = sum(1 for s in presence if num in s)
    exploration = math.sqrt(2 * math.log(len(presence)) / (visits + 1))
    return q * 50 + exploration * 20 + recent_count(presence, num, 10) / 10 * 30


@register("qlearning", "TD(0) value of each number with an exploration bonus")
def qlearning(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _qlearning)


@per_number
def _gan(presence: Presence, pool: NumberPool, num: int) -> float:
    iterations, size = 10, 5
    ts = series(presence, num)
    mean = sum(ts) / len(ts)

    # Rolling window sums, newest window first.
    window_avgs = [sum(ts[i : i + size]) / size for i in range(len(ts) - size)]

    generator = 0.0
    for it in range(iterations):
        generated = mean + math.sin(it * 0.5) * 0.1
        agreement = sum(1 for avg in window_avgs if abs(avg - generated) < 0.3)
        agreement /= max(1, len(ts) - size)
        generator += agreement * (1 - it / iterations)

    return generator * 60 + sum(ts[:10]) / 10 * 40


@register("gan", "Agreement between a generated rate and rolling window rates")
def gan(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _gan)


@per_number
def _meta_learning(presence: Presence, pool: NumberPool, num: int) -> float:
    task_scores = []
    for idx, window in enumerate((10, 20, 30, 50)):
        if len(presence) < window:
            continue
        task = presence[:window]
        half = window // 2
        base = frequency(task, num)
        trend = frequency(task[half:], num) - frequency(task[:half], num)
        task_scores.append((base + trend * 0.3) / (idx + 1))

    meta = sum(task_scores) / len(task_scores) if task_scores else 0.0
    fast = recent_count(presence, num, 5) / 5 * 0.4
    return (meta * 60 + fast * 40) * 100


@register("meta_learning", "Trend-adjusted frequency averaged over several windows")
def meta_learning(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _meta_learning)


def _vae_score(bits: Sequence[int], freq: float, rng: random.Random) -> float:
    latent_dim = 8
    means: list[float] = []
    log_vars: list[float] = []
    for z in range(latent_dim):
        mean_sum = 0.0
        var_sum = 0.0
        for idx, bit in enumerate(bits):
            weight = math.exp(-idx * 0.05)
            mean_sum += bit * weight * math.cos(z * 0.3)
            var_sum += bit * weight * math.sin(z * 0.3)
        means.append(mean_sum / 30)
        log_vars.append(math.log(abs(var_sum) + 0.01))

    latent = [m + math.sqrt(math.exp(lv)) * (rng.random() - 0.5) for m, lv in zip(means, log_vars)]
    reconstruction = sum(z * math.cos(i * 0.4) for i, z in enumerate(latent))
    kl = sum(0.5 * (math.exp(lv) + m * m - 1 - lv) for m, lv in zip(means, log_vars))
    return (abs(reconstruction) * 50 + freq * 30 - kl * 5) * 100


def _vae_pool(presence: Presence, pool: NumberPool, rng: random.Random) -> dict[int, float]:
    return {
        num: _vae_score(series(presence[:30], num), frequency(presence, num), rng) for num in pool.numbers
    }


@register("vae", "Latent encoding with random reparameterisation", randomized=True)
def vae(history: Sequence[Draw], rng: random.Random) -> Prediction:
    main = _vae_pool(MAIN.presence(history), MAIN, rng)
    bonus = _vae_pool(BONUS.presence(history), BONUS, rng)
    return finalize_prediction(history, top_numbers(main, MAIN.pick), top_numbers(bonus, BONUS.pick))


@per_number
def _capsule(presence: Presence, pool: NumberPool, num: int) -> float:
    capsules, iterations = 8, 3
    horizon = min(len(presence), 40)

    activity: list[float] = []
    for c in range(capsules):
        size = 5 + c * 2
        windows = [
            sum(1 for s in presence[i : i + size] if num in s) / size for i in range(0, horizon, size)
        ]
        activity.append(sum(windows) / len(windows) if windows else 0.0)

    coupling = [1 / capsules] * capsules
    output = [0.0] * capsules
    for it in range(iterations):
        weighted = sum(c * a for c, a in zip(coupling, activity))
        output = [weighted] * capsules
        norm = math.sqrt(sum(v * v for v in output))
        output = [norm * norm / (1 + norm * norm) * (v / (norm + 0.0001)) for v in output]

        if it < iterations - 1:
            agreements = [a * o for a, o in zip(activity, output)]
            total = sum(abs(a) for a in agreements)
            coupling = [abs(a) / (total + 0.0001) for a in agreements]

    return math.sqrt(sum(v * v for v in output)) * 100


@register("capsule", "Dynamic routing over eight windowed capsules")
def capsule(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _capsule)


@per_number
def _tcn(presence: Presence, pool: NumberPool, num: int) -> float:
    kernel = 3
    activations: list[float] = [float(b) for b in series(presence[:50], num)]
    if len(activations) < kernel:
        return 0.0

    for layer in range(4):
        dilation = 2**layer
        convolved = []
        for i in range(len(activations)):
            taps = [
                activations[i - k * dilation] * math.cos(k * 0.5 + layer * 0.3)
                for k in range(kernel)
                if i - k * dilation >= 0
            ]
            convolved.append(max(0.0, sum(taps) / len(taps)))
        activations = convolved

    return sum(activations) / len(activations) * 100


@register("tcn", "Dilated causal convolutions over the last 50 draws")
def tcn(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _tcn)


_EMBED_HIT = [math.cos(i * 0.3) for i in range(16)]
_EMBED_MISS = [math.sin(i * 0.3) for i in range(16)]


def _embedding(numbers: frozenset[int]) -> list[float]:
    return [_EMBED_HIT[i] if (i + 1) in numbers else _EMBED_MISS[i] for i in range(16)]


def _siamese(presence: Presence, pool: NumberPool) -> dict[int, float]:
    reference = _embedding(presence[0])
    similar: list[tuple[float, frozenset[int]]] = []
    for i in range(1, min(len(presence), 30)):
        emb = _embedding(presence[i])
        similarity = math.exp(-math.sqrt(sum((a - b) ** 2 for a, b in zip(reference, emb))))
        if similarity > 0.5:
            similar.append((similarity, presence[i]))

    scores: dict[int, float] = {}
    for num in pool.numbers:
        matches = [sim for sim, s in similar if num in s]
        avg = sum(matches) / len(matches) if matches else 0.0
        scores[num] = (avg * 60 + frequency(presence, num) * 40) * 100
    return scores


@register("siamese", "Numbers from past draws whose embedding resembles the latest draw")
def siamese(history: Sequence[Draw], rng: random.Random) -> Prediction:
    if len(history) < 2:
        return finalize_prediction(history, [], [])
    return scored(history, _siamese)


@per_number
def _bilstm(presence: Presence, pool: NumberPool, num: int) -> float:
    length = min(25, len(presence))
    bits = series(presence[:length], num)
    forward = _gated_cell(bits, [1 - i / length for i in range(length)])
    backward = _gated_cell(bits[::-1], [i / length for i in reversed(range(length))])
    return (forward + backward) / 2 * 70 + frequency(presence, num) * 30


@register("bilstm", "Forward and backward gated cells over the last 25 draws")
def bilstm(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _bilstm)


@per_number
def _resnet(presence: Presence, pool: NumberPool, num: int) -> float:
    features = frequency(presence, num)
    for block in range(5):
        window = min(10 + block * 5, len(presence))
        block_freq = recent_count(presence, num, window) / window
        features = max(0.0, features + math.tanh(block_freq * 2 - 1) * 0.3)
    return features * 100


@register("resnet", "Residual tanh blocks over growing windows")
def resnet(history: Sequence[Draw], rng: random.Random) -> Prediction:
    return scored(history, _resnet)
