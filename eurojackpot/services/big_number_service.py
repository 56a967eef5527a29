"""Big-number patterns: each draw read as one long string of digits.

The five main numbers are zero-padded to two digits and concatenated in
draw order (``3, 17, 22, 41, 9`` becomes ``"0317224109"``). Repeating
digit runs, per-position digits, digit transitions, digit sums and the
value modulo 9 are then mined for five small prediction methods.
"""

from __future__ import annotations

import random
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from eurojackpot.algorithms.base import BONUS, MAIN, NumberPool, finalize_prediction, top_numbers
from eurojackpot.domain import Draw, Prediction, require_history

BIG_NUMBER_DIGITS = 10


def draw_to_big_number(numbers: Iterable[int], sort: bool = False) -> str:
    values = sorted(numbers) if sort else list(numbers)
    return "".join(f"{n:02d}" for n in values)


def big_number_to_numbers(text: str, upper: int = MAIN.upper) -> list[int]:
    """Read consecutive two-digit numbers, keeping distinct ones in ``1..upper``."""

    found: list[int] = []
    for i in range(0, len(text) - 1, 2):
        num = int(text[i : i + 2])
        if 1 <= num <= upper and num not in found:
            found.append(num)
    return found


def _digits(text: str) -> list[int]:
    return [int(c) for c in text]


def _product(values: Iterable[int]) -> int:
    result = 1
    for v in values:
        result *= v
    return result


@dataclass(frozen=True)
class BigNumberPattern:
    draw: Draw
    big_number: str
    sorted_big_number: str
    euro_big_number: str
    digit_sum: int
    digit_product: int
    euro_digit_sum: int

    @classmethod
    def from_draw(cls, draw: Draw) -> "BigNumberPattern":
        big = draw_to_big_number(draw.main_numbers)
        euro = draw_to_big_number(draw.bonus_numbers)
        return cls(
            draw=draw,
            big_number=big,
            sorted_big_number=draw_to_big_number(draw.main_numbers, sort=True),
            euro_big_number=euro,
            digit_sum=sum(_digits(big)),
            digit_product=_product(_digits(big)),
            euro_digit_sum=sum(_digits(euro)),
        )

    def to_dict(self) -> dict:
        return {
            "draw_date": self.draw.draw_date.isoformat(),
            "draw_system_id": self.draw.draw_system_id,
            "big_number": self.big_number,
            "sorted_big_number": self.sorted_big_number,
            "euro_big_number": self.euro_big_number,
            "digit_sum": self.digit_sum,
            "digit_product": self.digit_product,
            "euro_digit_sum": self.euro_digit_sum,
        }


@dataclass(frozen=True)
class SumStats:
    min: int
    max: int
    avg: float
    recent: list[int]

    @classmethod
    def of(cls, values: Sequence[int]) -> "SumStats":
        return cls(min=min(values), max=max(values), avg=sum(values) / len(values), recent=list(values[:10]))

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max, "avg": self.avg, "recent": self.recent}


@dataclass(frozen=True)
class BigNumberMethod:
    method: str
    prediction: Prediction
    confidence: int
    details: str

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "confidence": self.confidence,
            "details": self.details,
            **self.prediction.to_dict(),
        }


@dataclass(frozen=True)
class BigNumberReport:
    patterns: list[BigNumberPattern]
    sequences: list[tuple[str, int]]
    euro_sequences: list[tuple[str, int]]
    positional: dict[int, dict[int, int]]
    digit_sum_stats: SumStats
    euro_digit_sum_stats: SumStats
    transitions: list[tuple[str, int]]
    modulo_distribution: dict[int, int]
    predictions: list[BigNumberMethod]

    def to_dict(self) -> dict:
        return {
            "patterns": [p.to_dict() for p in self.patterns],
            "sequences": [{"sequence": s, "count": c} for s, c in self.sequences],
            "euro_sequences": [{"sequence": s, "count": c} for s, c in self.euro_sequences],
            "positional": {str(pos): {str(d): c for d, c in digits.items()} for pos, digits in self.positional.items()},
            "digit_sum_stats": self.digit_sum_stats.to_dict(),
            "euro_digit_sum_stats": self.euro_digit_sum_stats.to_dict(),
            "transitions": [{"transition": t, "count": c} for t, c in self.transitions],
            "modulo_distribution": {str(k): v for k, v in self.modulo_distribution.items()},
            "predictions": [p.to_dict() for p in self.predictions],
        }


def _most_common(counts: Counter) -> list[tuple]:
    """Highest count first, ties to the lower key."""

    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))


def count_sequences(patterns: Sequence[BigNumberPattern], min_length: int = 2, max_length: int = 4) -> Counter[str]:
    """Every digit run of ``min_length..max_length`` in every big number."""

    counts: Counter[str] = Counter()
    for p in patterns:
        text = p.big_number
        for length in range(min_length, max_length + 1):
            for start in range(len(text) - length + 1):
                counts[text[start : start + length]] += 1
    return counts


def count_euro_sequences(patterns: Sequence[BigNumberPattern]) -> Counter[str]:
    """The whole four-digit euro string plus each of its two-digit runs."""

    counts: Counter[str] = Counter()
    for p in patterns:
        text = p.euro_big_number
        counts[text] += 1
        for start in range(len(text) - 1):
            counts[text[start : start + 2]] += 1
    return counts


def positional_digits(patterns: Sequence[BigNumberPattern]) -> dict[int, dict[int, int]]:
    positions: dict[int, Counter[int]] = {i: Counter() for i in range(BIG_NUMBER_DIGITS)}
    for p in patterns:
        for i, digit in enumerate(_digits(p.big_number[:BIG_NUMBER_DIGITS])):
            positions[i][digit] += 1
    return {i: {d: c[d] for d in sorted(c)} for i, c in positions.items()}


def digit_transitions(patterns: Sequence[BigNumberPattern]) -> Counter[str]:
    counts: Counter[str] = Counter()
    for p in patterns:
        text = p.big_number
        for a, b in zip(text, text[1:]):
            counts[f"{a}->{b}"] += 1
    return counts


def modulo_distribution(patterns: Sequence[BigNumberPattern], modulus: int = 9) -> dict[int, int]:
    counts = Counter(int(p.big_number) % modulus for p in patterns)
    return {k: counts[k] for k in sorted(counts)}


def _recent_ranking(history: Sequence[Draw], pool: NumberPool, window: int = 10) -> list[int]:
    counts = Counter(n for d in history[:window] for n in pool.of(d))
    return top_numbers({n: counts.get(n, 0) for n in pool.numbers}, pool.upper)


def _random_fill(picked: list[int], rng: random.Random, upper: int = MAIN.upper, count: int = MAIN.pick) -> list[int]:
    picked = list(picked)[:count]
    while len(picked) < count:
        num = rng.randint(1, upper)
        if num not in picked:
            picked.append(num)
    return picked


def _frequent_sequence(
    patterns: Sequence[BigNumberPattern], sequences: Counter[str], history: Sequence[Draw], rng: random.Random
) -> tuple[list[int], int]:
    combined = ""
    used = 0
    for seq, _ in _most_common(sequences)[:10]:
        if len(combined) >= BIG_NUMBER_DIGITS:
            break
        combined += seq
        used += 1
    if len(combined) < BIG_NUMBER_DIGITS:
        combined += patterns[0].sorted_big_number
    numbers = big_number_to_numbers(combined[:BIG_NUMBER_DIGITS])[: MAIN.pick]
    for num in _recent_ranking(history, MAIN):
        if len(numbers) == MAIN.pick:
            break
        if num not in numbers:
            numbers.append(num)
    return _random_fill(numbers, rng), min(95, 60 + used * 5)


def _positional(positional: dict[int, dict[int, int]], rng: random.Random) -> list[int]:
    digits = ""
    for pos in range(BIG_NUMBER_DIGITS):
        counts = positional[pos]
        digits += str(_most_common(Counter(counts))[0][0]) if counts else "0"
    return _random_fill(big_number_to_numbers(digits)[: MAIN.pick], rng)


def _target_sum_numbers(target: int, rng: random.Random) -> list[int]:
    numbers: list[int] = []
    remaining = target
    for i in range(MAIN.pick):
        ceiling = min(MAIN.upper, remaining - (MAIN.pick - 1 - i))
        if ceiling < 1:
            break
        num = rng.randint(1, ceiling)
        if num not in numbers:
            numbers.append(num)
            remaining -= num
    return _random_fill(numbers, rng)


def _digit_sum_progression(patterns: Sequence[BigNumberPattern], rng: random.Random) -> tuple[list[int], int]:
    sums = [p.digit_sum for p in patterns[:20]]
    diffs = [sums[i] - sums[i + 1] for i in range(len(sums) - 1)]
    avg_diff = sum(diffs) / len(diffs) if diffs else 0.0
    predicted = max(15, min(45, round(sums[0] - avg_diff)))
    return _target_sum_numbers(predicted, rng), predicted


def _transition_walk(patterns: Sequence[BigNumberPattern], transitions: Counter[str], rng: random.Random) -> list[int]:
    top = [t for t, _ in _most_common(transitions)[:15]]
    digits = patterns[0].big_number[0]
    current = digits
    for _ in range(BIG_NUMBER_DIGITS - 1):
        nxt = next((t.split("->")[1] for t in top if t.startswith(f"{current}->")), None)
        current = nxt if nxt is not None else str(rng.randint(0, 9))
        digits += current
    return _random_fill(big_number_to_numbers(digits)[: MAIN.pick], rng)


def _modulo_pattern(
    patterns: Sequence[BigNumberPattern], distribution: dict[int, int], rng: random.Random
) -> tuple[list[int], int]:
    best = _most_common(Counter(distribution))[0][0]
    match = next(p for p in patterns if int(p.big_number) % 9 == best)
    varied: list[int] = []
    for num in match.draw.main_numbers:
        shifted = num + (2 if rng.random() < 0.5 else -2)
        shifted = max(1, min(MAIN.upper, shifted))
        if shifted not in varied:
            varied.append(shifted)
    return _random_fill(varied, rng), best


def _euro_numbers(euro_sequences: Counter[str], history: Sequence[Draw]) -> list[int]:
    full = [s for s, _ in _most_common(euro_sequences) if len(s) == 4]
    if full:
        candidates = big_number_to_numbers(full[0])
        if len(candidates) >= BONUS.pick and all(n <= BONUS.upper for n in candidates[: BONUS.pick]):
            return candidates[: BONUS.pick]
    return _recent_ranking(history, BONUS)[: BONUS.pick]


def analyze_big_numbers(history: Sequence[Draw], rng: random.Random) -> BigNumberReport:
    require_history(history, 2)

    patterns = [BigNumberPattern.from_draw(d) for d in history]
    sequences = count_sequences(patterns)
    euro_sequences = count_euro_sequences(patterns)
    positional = positional_digits(patterns)
    transitions = digit_transitions(patterns)
    modulo = modulo_distribution(patterns)
    euro = _euro_numbers(euro_sequences, history)

    def _method(name: str, main: list[int], confidence: int, details: str) -> BigNumberMethod:
        return BigNumberMethod(
            method=name,
            prediction=finalize_prediction(history, main, euro),
            confidence=confidence,
            details=details,
        )

    sequence_main, sequence_confidence = _frequent_sequence(patterns, sequences, history, rng)
    sum_main, target_sum = _digit_sum_progression(patterns, rng)
    modulo_main, modulo_value = _modulo_pattern(patterns, modulo, rng)
    predictions = [
        _method(
            "Frequent Sequence Pattern",
            sequence_main,
            sequence_confidence,
            "Built from the most common digit runs in past big numbers",
        ),
        _method(
            "Positional Digit Frequency",
            _positional(positional, rng),
            75,
            "Most frequent digit at each of the ten big-number positions",
        ),
        _method("Digit Sum Progression", sum_main, 70, f"Target digit sum {target_sum} from the recent sum trend"),
        _method(
            "Digit Transition Pattern",
            _transition_walk(patterns, transitions, rng),
            72,
            "Walks the most common digit-to-digit transitions",
        ),
        _method(
            "Modulo 9 Pattern",
            modulo_main,
            68,
            f"Varies the latest draw whose big number is {modulo_value} mod 9",
        ),
    ]

    euro_sums = [p.euro_digit_sum for p in patterns]
    return BigNumberReport(
        patterns=patterns[:20],
        sequences=_most_common(sequences)[:20],
        euro_sequences=_most_common(euro_sequences)[:20],
        positional=positional,
        digit_sum_stats=SumStats.of([p.digit_sum for p in patterns]),
        euro_digit_sum_stats=SumStats.of(euro_sums),
        transitions=_most_common(transitions)[:20],
        modulo_distribution=modulo,
        predictions=predictions,
    )
