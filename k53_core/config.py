from __future__ import annotations
import os, json, pathlib, random

from .types import Category


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_str(name: str, default: str | None) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


# Official learner's licence paper: 64 questions over three sections.
FULL_QUOTAS: dict[Category, int] = {
    Category.CONTROLS: 8,
    Category.SIGNS: 28,
    Category.RULES: 28,
}
FULL_THRESHOLDS: dict[Category, int] = {
    Category.CONTROLS: 6,
    Category.SIGNS: 23,
    Category.RULES: 22,
}

QUICK_QUOTAS: dict[Category, int] = {
    Category.CONTROLS: 2,
    Category.SIGNS: 5,
    Category.RULES: 5,
}

SCENARIO_COUNT: int = 10

QUOTA_POLICIES: tuple[str, ...] = ("strict", "cap")
QUOTA_POLICY: str = "strict"

BANK_PATH: str | None = None
BANK_MIN_PER_CATEGORY: int = max(FULL_QUOTAS.values())

DEBUG_SEED: int | None = None
LOG_LEVEL: str = "INFO"

# // env overrides for staging/ops; defaults match the official paper.
SCENARIO_COUNT = _env_int("SCENARIO_COUNT", SCENARIO_COUNT)
QUOTA_POLICY = (_env_str("QUOTA_POLICY", QUOTA_POLICY) or QUOTA_POLICY).lower()
if QUOTA_POLICY not in QUOTA_POLICIES:
    QUOTA_POLICY = "strict"
BANK_PATH = _env_str("K53_BANK_PATH", BANK_PATH)
BANK_MIN_PER_CATEGORY = _env_int("BANK_MIN_PER_CATEGORY", BANK_MIN_PER_CATEGORY)
_seed_raw = _env_str("DEBUG_SEED", None)
DEBUG_SEED = int(_seed_raw) if _seed_raw and _seed_raw.lstrip("-").isdigit() else None
LOG_LEVEL = (_env_str("LOG_LEVEL", LOG_LEVEL) or LOG_LEVEL).upper()
SHOW_ANSWER_KEY = _env_bool("SHOW_ANSWER_KEY", False)


def load_config(path: str | os.PathLike[str] = "config.json") -> dict:
    """Merge an optional config.json with environment overrides; env wins."""
    cfg: dict = {}
    p = pathlib.Path(path)
    if p.exists():
        try:
            cfg = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            cfg = {}
    e = os.environ
    if e.get("QUOTA_POLICY"): cfg["QUOTA_POLICY"] = e["QUOTA_POLICY"]
    if e.get("K53_BANK_PATH"): cfg["BANK_PATH"] = e["K53_BANK_PATH"]
    if e.get("SEED"): cfg["SEED"] = e["SEED"]
    policy = str(cfg.get("QUOTA_POLICY") or QUOTA_POLICY).strip().lower()
    cfg["QUOTA_POLICY"] = policy if policy in QUOTA_POLICIES else QUOTA_POLICY
    cfg.setdefault("BANK_PATH", BANK_PATH)
    try:
        cfg["SEED"] = int(cfg["SEED"]) if cfg.get("SEED") is not None else None
    except (TypeError, ValueError):
        cfg["SEED"] = None
    return cfg


def make_rng(seed: int | None = None) -> random.Random:
    """Seeded generator for reproducible runs; unseeded (system entropy) otherwise."""
    s = seed if seed is not None else DEBUG_SEED
    return random.Random(s) if s is not None else random.Random()
