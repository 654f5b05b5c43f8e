from __future__ import annotations
import logging, math, random
from typing import Dict, List, Mapping, Optional, Sequence, Union

from . import config
from .errors import ConfigurationError
from .question_bank import ItemPool
from .sampler import draw, fisher_yates, sample
from .session import PracticeSession
from .types import Category, Item, ItemKind, SessionType

log = logging.getLogger(__name__)

Pools = Union[ItemPool, Mapping[Category, Sequence[Item]]]

SCENARIO_TYPE = "scenario"


def compose_session(
    pools: Pools,
    quotas: Mapping[Category, int],
    rng: Optional[random.Random] = None,
    policy: Optional[str] = None,
) -> List[Item]:
    """Stratified draw per quota category, then one shuffle over the whole test."""
    picked: List[Item] = []
    for category, count in quotas.items():
        cat = Category(category)
        if isinstance(pools, ItemPool):
            candidates: Sequence[Item] = pools.items
        else:
            candidates = pools.get(cat, ())
        picked.extend(sample(candidates, cat, int(count), rng=rng, policy=policy))
    ordered = fisher_yates(picked, rng)
    log.debug("composed %d items from quotas %s", len(ordered), {Category(k).value: v for k, v in quotas.items()})
    return ordered


def compose_scenario_test(
    pool: ItemPool,
    count: Optional[int] = None,
    difficulty: Optional[str] = None,
    category: Optional[Category] = None,
    context: Optional[str] = None,
    rng: Optional[random.Random] = None,
    policy: Optional[str] = None,
) -> List[Item]:
    n = config.SCENARIO_COUNT if count is None else int(count)
    candidates = pool.filter(kind=ItemKind.SCENARIO, difficulty=difficulty, category=category, context=context)
    return draw(candidates.items, n, rng=rng, policy=policy)


def scale_thresholds(counts: Mapping[Category, int], reference: SessionType) -> Dict[Category, int]:
    """
    Pass marks for a shorter paper, proportional to ``reference``.

    ``ceil(count / ref_quota * ref_threshold)`` per category; categories the
    reference does not define use its overall pass ratio.
    """
    ref_total = sum(reference.quotas.values())
    ref_required = sum(reference.thresholds.values())
    overall = (ref_required / ref_total) if ref_total else 0.0
    out: Dict[Category, int] = {}
    for category, count in counts.items():
        cat = Category(category)
        quota = reference.quotas.get(cat)
        required = reference.thresholds.get(cat)
        if quota and required is not None:
            out[cat] = math.ceil(int(count) / quota * required)
        else:
            out[cat] = math.ceil(int(count) * overall)
    return out


def session_types() -> Dict[str, SessionType]:
    full = SessionType(
        name="full",
        quotas=dict(config.FULL_QUOTAS),
        thresholds=dict(config.FULL_THRESHOLDS),
        label="Full learner's licence paper",
    )
    quick = SessionType(
        name="quick",
        quotas=dict(config.QUICK_QUOTAS),
        thresholds=scale_thresholds(config.QUICK_QUOTAS, full),
        label="Quick practice",
    )
    return {full.name: full, quick.name: quick}


def get_session_type(name: str) -> SessionType:
    types = session_types()
    try:
        return types[name]
    except KeyError:
        raise ConfigurationError(f"unknown session type {name!r}; expected one of {sorted(types)}") from None


def build_session(
    session_type: str,
    pool: ItemPool,
    rng: Optional[random.Random] = None,
    policy: Optional[str] = None,
    *,
    count: Optional[int] = None,
    difficulty: Optional[str] = None,
    category: Optional[Category] = None,
    context: Optional[str] = None,
) -> PracticeSession:
    """Compose the items for ``session_type`` and return a started session."""
    if session_type == SCENARIO_TYPE:
        items = compose_scenario_test(
            pool, count, difficulty=difficulty, category=category, context=context, rng=rng, policy=policy
        )
        tally: Dict[Category, int] = {}
        for it in items:
            tally[it.category] = tally.get(it.category, 0) + 1
        thresholds = scale_thresholds(tally, get_session_type("full"))
    else:
        st = get_session_type(session_type)
        items = compose_session(pool, st.quotas, rng=rng, policy=policy)
        thresholds = dict(st.thresholds)

    sess = PracticeSession(thresholds, session_type=session_type)
    sess.start(items)
    return sess
