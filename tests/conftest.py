from __future__ import annotations

import random

import pytest

from k53_core.question_bank import ItemPool
from k53_core.types import Category, Item, ItemKind


def build_synthetic_bank(
    *,
    controls: int = 8,
    signs: int = 28,
    rules: int = 28,
    mixed: int = 0,
    scenarios_per_category: int = 0,
) -> ItemPool:
    """Create a deterministic synthetic pool for tests and smoke runs."""

    items: list[Item] = []
    sizes = {
        Category.CONTROLS: controls,
        Category.SIGNS: signs,
        Category.RULES: rules,
        Category.MIXED: mixed,
    }
    for category, n in sizes.items():
        for idx in range(n):
            items.append(
                Item(
                    id=f"{category.value}_q{idx}",
                    category=category,
                    prompt=f"{category.value} question #{idx}",
                    options=("A", "B", "C", "D"),
                    correct_index=idx % 4,
                    explanation=f"Answer is {'ABCD'[idx % 4]}",
                )
            )
        for idx in range(scenarios_per_category):
            items.append(
                Item(
                    id=f"{category.value}_sc{idx}",
                    category=category,
                    kind=ItemKind.SCENARIO,
                    title=f"{category.value} scenario {idx}",
                    scenario="You are driving.",
                    prompt="What do you do?",
                    options=("Stop", "Go", "Wait"),
                    correct_index=0,
                    difficulty=("basic", "intermediate", "advanced")[idx % 3],
                    context=("urban", "rural")[idx % 2],
                )
            )
    return ItemPool(items)


def wrong_index(item: Item) -> int:
    return (item.correct_index + 1) % len(item.options)


def answers_with(items, correct_per_category: dict[Category, int]) -> list[int]:
    """Answer the first N items of each category correctly and the rest wrongly."""

    left = dict(correct_per_category)
    out: list[int] = []
    for item in items:
        if left.get(item.category, 0) > 0:
            out.append(item.correct_index)
            left[item.category] -= 1
        else:
            out.append(wrong_index(item))
    return out


@pytest.fixture
def synthetic_bank() -> ItemPool:
    return build_synthetic_bank()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(20240601)
