"""Helpers to export a finished session's answer sheet in JSON/CSV formats."""
from __future__ import annotations

from typing import Iterable, List, Dict, Any, Sequence
import csv
import io

from .scoring import is_correct
from .types import Item

_FIELDS: tuple[str, ...] = (
    "position",
    "item_id",
    "category",
    "kind",
    "chosen_index",
    "correct_index",
    "is_correct",
)


def answer_rows(items: Sequence[Item], answers: Sequence[int]) -> List[Dict[str, Any]]:
    """One row per presented item, in presentation order (1-based positions)."""
    rows: List[Dict[str, Any]] = []
    for pos, item in enumerate(items):
        chosen = answers[pos] if pos < len(answers) else None
        rows.append({
            "position": pos + 1,
            "item_id": item.id,
            "category": item.category.value,
            "kind": item.kind.value,
            "chosen_index": chosen,
            "correct_index": item.correct_index,
            "is_correct": chosen is not None and is_correct(item, chosen),
        })
    return rows


def _normalize_row(row: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key in _FIELDS:
        val = row.get(key)
        if key in {"position", "correct_index"}:
            try:
                out[key] = int(val)
            except (TypeError, ValueError):
                out[key] = 0
        elif key == "chosen_index":
            try:
                out[key] = int(val)
            except (TypeError, ValueError):
                out[key] = None
        elif key == "is_correct":
            out[key] = bool(val)
        else:
            out[key] = "" if val is None else str(val)
    return out


def to_json(rows: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    normalized = [_normalize_row(r or {}) for r in rows]
    return {"answers": normalized}


def to_csv(rows: Iterable[Dict[str, Any]]) -> str:
    """Render answer rows as CSV with a fixed header."""

    normalized = [_normalize_row(r or {}) for r in rows]
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=_FIELDS)
    writer.writeheader()
    for row in normalized:
        writer.writerow(row)
    return buf.getvalue()


__all__ = ["answer_rows", "to_json", "to_csv"]
