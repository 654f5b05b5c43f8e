from __future__ import annotations

import random

import pytest

from k53_core import config
from k53_core.composer import (
    build_session,
    compose_scenario_test,
    compose_session,
    get_session_type,
    scale_thresholds,
    session_types,
)
from k53_core.errors import ConfigurationError, QuotaShortfallWarning
from k53_core.question_bank import load_bank
from k53_core.session import SessionState
from k53_core.types import Category, ItemKind

from tests.conftest import build_synthetic_bank


def _runs(categories: list[Category]) -> int:
    return 1 + sum(1 for a, b in zip(categories, categories[1:]) if a != b)


def test_full_exam_uses_entire_exact_pool(synthetic_bank, rng):
    full = get_session_type("full")
    items = compose_session(synthetic_bank, full.quotas, rng=rng)
    assert len(items) == 64
    assert sorted(it.id for it in items) == sorted(it.id for it in synthetic_bank)


@pytest.mark.parametrize("quotas", [
    {Category.CONTROLS: 8, Category.SIGNS: 28, Category.RULES: 28},
    {Category.CONTROLS: 2, Category.SIGNS: 5, Category.RULES: 5},
    {Category.SIGNS: 1},
    {Category.CONTROLS: 0, Category.RULES: 3},
])
def test_composed_length_matches_quota_sum(quotas, rng):
    bank = build_synthetic_bank(controls=10, signs=30, rules=30)
    items = compose_session(bank, quotas, rng=rng)
    assert len(items) == sum(quotas.values())
    assert len({it.id for it in items}) == len(items)
    for cat, n in quotas.items():
        assert sum(1 for it in items if it.category == cat) == n


def test_accepts_per_category_mapping(synthetic_bank, rng):
    pools = synthetic_bank.pools()
    items = compose_session(pools, config.QUICK_QUOTAS, rng=rng)
    assert len(items) == 12


def test_order_is_not_grouped_by_category(synthetic_bank):
    rng = random.Random(5)
    quotas = get_session_type("full").quotas
    for _ in range(20):
        cats = [it.category for it in compose_session(synthetic_bank, quotas, rng=rng)]
        assert _runs(cats) > 10


def test_quick_practice_varies_between_attempts():
    bank = load_bank()
    quotas = get_session_type("quick").quotas
    sequences = {tuple(it.id for it in compose_session(bank, quotas)) for _ in range(5)}
    assert len(sequences) > 1


def test_strict_compose_fails_when_pool_too_small():
    bank = build_synthetic_bank(controls=4)
    with pytest.raises(ConfigurationError, match="category controls"):
        compose_session(bank, get_session_type("full").quotas, policy="strict")


def test_session_types_and_scaled_quick_thresholds():
    types = session_types()
    assert set(types) == {"full", "quick"}
    assert types["full"].thresholds == {Category.CONTROLS: 6, Category.SIGNS: 23, Category.RULES: 22}
    assert types["quick"].quotas == {Category.CONTROLS: 2, Category.SIGNS: 5, Category.RULES: 5}
    assert types["quick"].thresholds == {Category.CONTROLS: 2, Category.SIGNS: 5, Category.RULES: 4}
    assert types["full"].size == 64


def test_scale_thresholds_uses_overall_ratio_for_unknown_categories():
    full = get_session_type("full")
    scaled = scale_thresholds({Category.MIXED: 10, Category.SIGNS: 28}, full)
    # 51 of 64 needed overall on the full paper
    assert scaled[Category.MIXED] == 8
    assert scaled[Category.SIGNS] == 23


def test_unknown_session_type():
    with pytest.raises(ConfigurationError, match="unknown session type"):
        get_session_type("marathon")


def test_scenario_test_filters(rng):
    bank = build_synthetic_bank(scenarios_per_category=6)
    # idx 0 and 3 are "basic"
    items = compose_scenario_test(bank, 2, difficulty="basic", category=Category.RULES, rng=rng)
    assert len(items) == 2
    assert all(it.kind == ItemKind.SCENARIO for it in items)
    assert all(it.category == Category.RULES and it.difficulty == "basic" for it in items)


def test_scenario_test_defaults_to_configured_count(monkeypatch, rng):
    monkeypatch.setattr(config, "SCENARIO_COUNT", 4, raising=False)
    bank = build_synthetic_bank(scenarios_per_category=3)
    assert len(compose_scenario_test(bank, rng=rng)) == 4


def test_build_session_starts_in_progress(synthetic_bank, rng):
    sess = build_session("quick", synthetic_bank, rng=rng)
    assert sess.state == SessionState.IN_PROGRESS
    assert len(sess.items) == 12
    assert sess.thresholds == get_session_type("quick").thresholds


def test_build_scenario_session_scales_thresholds(rng):
    bank = build_synthetic_bank(scenarios_per_category=5, mixed=0)
    sess = build_session("scenario", bank, rng=rng, count=8)
    assert len(sess.items) == 8
    assert set(sess.thresholds) == {it.category for it in sess.items}


def test_cap_policy_shortens_paper_and_warns(rng):
    bank = build_synthetic_bank(controls=3, signs=28, rules=28)
    full = get_session_type("full")
    with pytest.warns(QuotaShortfallWarning, match="controls"):
        items = compose_session(bank, full.quotas, rng=rng, policy="cap")
    assert len(items) == 3 + 28 + 28
    assert sum(1 for it in items if it.category == Category.CONTROLS) == 3

    with pytest.raises(ConfigurationError):
        compose_session(bank, full.quotas, rng=rng, policy="strict")
