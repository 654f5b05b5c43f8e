from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple


class Category(str, Enum):
    CONTROLS = "controls"
    SIGNS = "signs"
    RULES = "rules"
    MIXED = "mixed"


class ItemKind(str, Enum):
    QUESTION = "question"
    SCENARIO = "scenario"


CategoryQuota = Mapping[Category, int]
CategoryThreshold = Mapping[Category, int]

_OPTIONAL_FIELDS = ("title", "scenario", "difficulty", "context", "time_of_day", "weather", "image")


@dataclass(frozen=True)
class Item:
    id: str
    category: Category
    prompt: str
    options: Tuple[str, ...]
    correct_index: int
    explanation: str = ""
    kind: ItemKind = ItemKind.QUESTION
    title: Optional[str] = None
    scenario: Optional[str] = None
    difficulty: Optional[str] = None
    context: Optional[str] = None
    time_of_day: Optional[str] = None
    weather: Optional[str] = None
    language: str = "en"
    image: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, object]) -> "Item":
        """Build an item from a bank record. Raises KeyError/ValueError on malformed input."""
        extra = {k: raw.get(k) for k in _OPTIONAL_FIELDS if raw.get(k) is not None}
        return cls(
            id=str(raw["id"]),
            category=Category(raw["category"]),
            prompt=str(raw["prompt"]),
            options=tuple(str(o) for o in raw["options"]),  # type: ignore[union-attr]
            correct_index=int(raw["correct_index"]),  # type: ignore[arg-type]
            explanation=str(raw.get("explanation") or ""),
            kind=ItemKind(raw.get("kind") or ItemKind.QUESTION.value),
            language=str(raw.get("language") or "en"),
            **extra,
        )

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            "id": self.id,
            "category": self.category.value,
            "kind": self.kind.value,
            "prompt": self.prompt,
            "options": list(self.options),
            "correct_index": self.correct_index,
            "explanation": self.explanation,
            "language": self.language,
        }
        for key in _OPTIONAL_FIELDS:
            val = getattr(self, key)
            if val is not None:
                out[key] = val
        return out


@dataclass(frozen=True)
class CategoryResult:
    category: Category
    correct: int
    total: int
    required: int
    passed: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "category": self.category.value,
            "correct": self.correct,
            "total": self.total,
            "required": self.required,
            "passed": self.passed,
        }


@dataclass(frozen=True)
class Result:
    categories: Tuple[CategoryResult, ...]
    passed: bool
    correct: int = 0
    total: int = 0

    def category(self, category: Category) -> Optional[CategoryResult]:
        for res in self.categories:
            if res.category == category:
                return res
        return None

    @property
    def percentage(self) -> int:
        return round(self.correct / self.total * 100) if self.total else 0

    @property
    def failed_categories(self) -> List[Category]:
        return [res.category for res in self.categories if not res.passed]

    def to_dict(self) -> Dict[str, object]:
        return {
            "passed": self.passed,
            "correct": self.correct,
            "total": self.total,
            "percentage": self.percentage,
            "categories": [res.to_dict() for res in self.categories],
        }


@dataclass(frozen=True)
class SessionType:
    name: str
    quotas: Dict[Category, int]
    thresholds: Dict[Category, int] = field(default_factory=dict)
    label: str = ""

    @property
    def size(self) -> int:
        return sum(self.quotas.values())
