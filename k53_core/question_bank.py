from __future__ import annotations
import json, logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from . import config
from .errors import DataIntegrityError
from .types import Category, Item, ItemKind

log = logging.getLogger(__name__)

CATEGORIES: Tuple[Category, ...] = tuple(Category)
EXAM_CATEGORIES: Tuple[Category, ...] = (Category.CONTROLS, Category.SIGNS, Category.RULES)
DIFFICULTIES: Tuple[str, ...] = ("basic", "intermediate", "advanced")

_DEFAULT_BANK = Path(__file__).with_name("data") / "bank.json"


def _validate(item: Item) -> None:
    if len(item.options) < 2:
        raise DataIntegrityError(f"item {item.id!r} has {len(item.options)} option(s); need at least 2")
    if not 0 <= item.correct_index < len(item.options):
        raise DataIntegrityError(
            f"item {item.id!r} correct_index {item.correct_index} out of range for {len(item.options)} options"
        )


class ItemPool:
    """Read-only catalog of items, validated once at construction."""

    def __init__(self, items: Iterable[Item]):
        ordered: List[Item] = []
        seen: set[str] = set()
        for item in items:
            if item.id in seen:
                raise DataIntegrityError(f"duplicate item id {item.id!r}")
            _validate(item)
            seen.add(item.id)
            ordered.append(item)
        self._items: Tuple[Item, ...] = tuple(ordered)
        self._by_id: Dict[str, Item] = {it.id: it for it in self._items}

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, object]]) -> "ItemPool":
        items: List[Item] = []
        for idx, raw in enumerate(records):
            try:
                items.append(Item.from_dict(raw))
            except (KeyError, TypeError, ValueError) as exc:
                ident = raw.get("id", f"#{idx}") if isinstance(raw, Mapping) else f"#{idx}"
                raise DataIntegrityError(f"bank record {ident!r} is malformed: {exc}") from exc
        return cls(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._by_id

    @property
    def items(self) -> Tuple[Item, ...]:
        return self._items

    def get(self, item_id: str) -> Optional[Item]:
        return self._by_id.get(item_id)

    def by_category(self, category: Category) -> Tuple[Item, ...]:
        return tuple(it for it in self._items if it.category == category)

    def pools(self) -> Dict[Category, Tuple[Item, ...]]:
        return {cat: self.by_category(cat) for cat in CATEGORIES}

    def counts(self) -> Dict[str, int]:
        out = {cat.value: 0 for cat in CATEGORIES}
        for it in self._items:
            out[it.category.value] += 1
        return out

    def filter(
        self,
        *,
        kind: Optional[ItemKind] = None,
        category: Optional[Category] = None,
        difficulty: Optional[str] = None,
        context: Optional[str] = None,
        language: Optional[str] = None,
    ) -> "ItemPool":
        def keep(it: Item) -> bool:
            if kind is not None and it.kind != kind: return False
            if category is not None and it.category != category: return False
            if difficulty is not None and it.difficulty != difficulty: return False
            if context is not None and it.context != context: return False
            if language is not None and it.language != language: return False
            return True
        return ItemPool(it for it in self._items if keep(it))


def load_bank(path: str | Path | None = None) -> ItemPool:
    src = Path(path or config.BANK_PATH or _DEFAULT_BANK)
    raw = json.loads(src.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise DataIntegrityError(f"{src} must contain a JSON list of items")
    pool = ItemPool.from_records(raw)
    log.info("loaded %d items from %s %s", len(pool), src.name, pool.counts())
    return pool
