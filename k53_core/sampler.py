from __future__ import annotations
import logging, random, warnings
from typing import List, Optional, Sequence, TypeVar

from . import config
from .errors import ConfigurationError, QuotaShortfallWarning
from .types import Category, Item

log = logging.getLogger(__name__)

T = TypeVar("T")


def fisher_yates(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Uniform shuffle of a copy of ``items``; the input is left untouched."""
    r = rng or random
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = r.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def _resolve_policy(policy: Optional[str]) -> str:
    p = (policy or config.QUOTA_POLICY).lower()
    if p not in config.QUOTA_POLICIES:
        raise ConfigurationError(f"unknown quota policy {p!r}; expected one of {config.QUOTA_POLICIES}")
    return p


def _take(candidates: Sequence[Item], count: int, label: str, rng, policy: Optional[str]) -> List[Item]:
    if count < 0:
        raise ConfigurationError(f"{label}: requested a negative count ({count})")
    available = len(candidates)
    if count > available:
        if _resolve_policy(policy) == "strict":
            raise ConfigurationError(f"{label}: requested {count} items but only {available} available")
        msg = f"{label}: quota {count} capped at pool size {available}"
        log.warning(msg)
        warnings.warn(msg, QuotaShortfallWarning, stacklevel=3)
    picked = fisher_yates(candidates, rng)[:count]
    log.debug("sampled %d/%d for %s", len(picked), available, label)
    return picked


def sample(
    pool: Sequence[Item],
    category: Category,
    count: int,
    rng: Optional[random.Random] = None,
    policy: Optional[str] = None,
) -> List[Item]:
    """Draw ``count`` distinct items of ``category`` without replacement."""
    candidates = [it for it in pool if it.category == category]
    return _take(candidates, count, f"category {category.value}", rng, policy)


def draw(
    pool: Sequence[Item],
    count: int,
    rng: Optional[random.Random] = None,
    policy: Optional[str] = None,
) -> List[Item]:
    return _take(list(pool), count, "draw", rng, policy)
