from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping

from . import config
from .composer import session_types as default_session_types
from .question_bank import CATEGORIES, DIFFICULTIES, EXAM_CATEGORIES, load_bank
from .types import Item, ItemKind, SessionType

_UNRATED = "unrated"


def _blank_category() -> dict[str, object]:
    return {
        "question": 0,
        "scenario": 0,
        "difficulty": {lvl: 0 for lvl in (*DIFFICULTIES, _UNRATED)},
        "total": 0,
    }


def audit_items(
    items: Iterable[Item],
    session_types: Mapping[str, SessionType] | None = None,
) -> dict[str, object]:
    """Coverage per category, plus warnings where a session type's quota can't be met."""
    if session_types is None:
        session_types = default_session_types()

    coverage: dict[str, dict[str, object]] = {cat.value: _blank_category() for cat in CATEGORIES}
    totals = {"question": 0, "scenario": 0, "total": 0}

    for item in items:
        data = coverage[item.category.value]
        kind = item.kind.value if isinstance(item.kind, ItemKind) else str(item.kind)
        data[kind] += 1  # type: ignore[operator]
        data["total"] += 1  # type: ignore[operator]
        totals[kind] += 1
        totals["total"] += 1
        diff_map: dict[str, int] = data["difficulty"]  # type: ignore[assignment]
        lvl = item.difficulty or _UNRATED
        diff_map[lvl] = diff_map.get(lvl, 0) + 1

    warnings: list[str] = []
    for name in sorted(session_types):
        st = session_types[name]
        for cat, quota in st.quotas.items():
            have = coverage[cat.value]["total"]
            if have < quota:  # type: ignore[operator]
                warnings.append(f"{name}: {cat.value} needs {quota} items, bank has {have}")
            required = st.thresholds.get(cat)
            if required is not None and required > quota:
                warnings.append(f"{name}: {cat.value} threshold {required} exceeds quota {quota}")

    for cat in EXAM_CATEGORIES:
        have = coverage[cat.value]["total"]
        if have < config.BANK_MIN_PER_CATEGORY:  # type: ignore[operator]
            warnings.append(f"{cat.value} has {have} items (<{config.BANK_MIN_PER_CATEGORY})")

    return {"coverage": coverage, "warnings": warnings, "totals": totals}


def print_report(summary: dict[str, object]) -> None:
    coverage: dict[str, dict[str, object]] = summary["coverage"]  # type: ignore[assignment]
    print("=== Bank Coverage ===")
    for cat_name in coverage:
        data = coverage[cat_name]
        diffs: dict[str, int] = data["difficulty"]  # type: ignore[assignment]
        diff_txt = "  ".join(f"{lvl}:{n:3d}" for lvl, n in diffs.items())
        print(
            f"\n{cat_name:<9} total {data['total']:3d}  questions {data['question']:3d}  "
            f"scenarios {data['scenario']:3d}"
        )
        print(f"  {diff_txt}")

    warnings: list[str] = summary["warnings"]  # type: ignore[assignment]
    if warnings:
        print("\nWarnings:")
        for msg in warnings:
            print(f" - {msg}")
    else:
        print("\nNo warnings.")

    print("\nTotals:", summary["totals"])


def write_summary(summary: dict[str, object], path: Path = Path("/tmp/bank_audit.json")) -> str:
    text = json.dumps(summary, indent=2, sort_keys=True)
    path.write_text(text + "\n", encoding="utf-8")
    return text


def main(_argv: list[str] | None = None) -> int:
    pool = load_bank()
    summary = audit_items(pool)
    print_report(summary)
    write_summary(summary)
    return 2 if summary["warnings"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
