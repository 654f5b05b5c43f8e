from __future__ import annotations
from typing import Dict, Mapping, Sequence

from .errors import ConfigurationError, StateError
from .types import Category, CategoryResult, Item, Result


def is_correct(item: Item, answer: int) -> bool:
    return int(answer) == item.correct_index


def score(items: Sequence[Item], answers: Sequence[int], thresholds: Mapping[Category, int]) -> Result:
    """
    Per-category pass/fail for a finished session.

    Every category that appears in ``items`` must reach its threshold for the
    attempt to pass; there is no weighting or partial credit across sections.
    Categories with no items are left out of the result.
    """
    if len(answers) != len(items):
        raise StateError(f"cannot score: {len(answers)} answers for {len(items)} items")

    correct: Dict[Category, int] = {}
    total: Dict[Category, int] = {}
    for item, ans in zip(items, answers):
        cat = item.category
        total[cat] = total.get(cat, 0) + 1
        correct[cat] = correct.get(cat, 0) + int(is_correct(item, ans))

    missing = [cat.value for cat in total if cat not in thresholds]
    if missing:
        raise ConfigurationError(f"no threshold configured for categories: {', '.join(sorted(missing))}")

    results = []
    for cat in Category:
        if cat not in total:
            continue
        required = int(thresholds[cat])
        results.append(
            CategoryResult(
                category=cat,
                correct=correct[cat],
                total=total[cat],
                required=required,
                passed=correct[cat] >= required,
            )
        )

    return Result(
        categories=tuple(results),
        passed=all(r.passed for r in results),
        correct=sum(correct.values()),
        total=len(items),
    )
