# k53_core/session.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from .errors import ConfigurationError, StateError
from .question_bank import ItemPool
from .scoring import is_correct, score
from .types import Category, Item, Result


log = logging.getLogger(__name__)


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class AnswerFeedback:
    item_id: str
    option_index: int
    correct_index: int
    is_correct: bool
    explanation: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "item_id": self.item_id,
            "option_index": self.option_index,
            "correct_index": self.correct_index,
            "is_correct": self.is_correct,
            "explanation": self.explanation,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(raw: object) -> Optional[datetime]:
    if not raw:
        return None
    return datetime.fromisoformat(str(raw))


class PracticeSession:
    """
    One candidate's pass through a composed test.

    Answers are recorded and the cursor is moved in two separate steps
    (``submit_answer`` then ``advance``) so feedback can be shown in between.
    A recorded answer cannot be revised, and the cursor never moves back.
    """

    def __init__(self, thresholds: Mapping[Category, int], session_type: str = "custom"):
        self.session_type = session_type
        self.thresholds: Dict[Category, int] = {Category(k): int(v) for k, v in thresholds.items()}
        self._state = SessionState.NOT_STARTED
        self._items: Tuple[Item, ...] = ()
        self._answers: List[int] = []
        self._index = 0
        self._result: Optional[Result] = None
        self.started_at: Optional[datetime] = None
        self.completed_at: Optional[datetime] = None

    # ---- read-only view ----
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def items(self) -> Tuple[Item, ...]:
        return self._items

    @property
    def answers(self) -> Tuple[int, ...]:
        return tuple(self._answers)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_item(self) -> Optional[Item]:
        if self._state != SessionState.IN_PROGRESS:
            return None
        return self._items[self._index]

    @property
    def is_complete(self) -> bool:
        return self._state == SessionState.COMPLETED

    @property
    def has_answered_current(self) -> bool:
        return len(self._answers) > self._index

    @property
    def progress(self) -> float:
        if not self._items:
            return 0.0
        if self.is_complete:
            return 1.0
        return (self._index + 1) / len(self._items)

    @property
    def result(self) -> Optional[Result]:
        return self._result

    @property
    def elapsed_seconds(self) -> Optional[float]:
        if self.started_at is None:
            return None
        end = self.completed_at or _utcnow()
        return (end - self.started_at).total_seconds()

    # ---- transitions ----
    def start(self, items: Sequence[Item]) -> None:
        if self._state != SessionState.NOT_STARTED:
            raise StateError(f"session already {self._state.value}")
        if not items:
            raise ConfigurationError("cannot start a session with no items")
        missing = self._missing_thresholds(items)
        if missing:
            raise ConfigurationError(f"no pass mark for categories: {', '.join(missing)}")
        self._items = tuple(items)
        self._answers = []
        self._index = 0
        self._result = None
        self._state = SessionState.IN_PROGRESS
        self.started_at = _utcnow()
        log.debug("session %s started with %d items", self.session_type, len(self._items))

    def _missing_thresholds(self, items: Sequence[Item]) -> List[str]:
        return sorted({it.category.value for it in items if it.category not in self.thresholds})

    def _require_in_progress(self, op: str) -> None:
        if self._state != SessionState.IN_PROGRESS:
            raise StateError(f"{op}() is only valid in_progress (state={self._state.value})")

    def submit_answer(self, option_index: int) -> AnswerFeedback:
        self._require_in_progress("submit_answer")
        item = self._items[self._index]
        if isinstance(option_index, bool) or not isinstance(option_index, int):
            raise StateError(f"option index must be an int, got {option_index!r}")
        if not 0 <= option_index < len(item.options):
            raise StateError(
                f"option index {option_index} out of range for item {item.id} ({len(item.options)} options)"
            )
        if self.has_answered_current:
            raise StateError(f"item {self._index} ({item.id}) already answered; call advance()")
        self._answers.append(option_index)
        return AnswerFeedback(
            item_id=item.id,
            option_index=option_index,
            correct_index=item.correct_index,
            is_correct=is_correct(item, option_index),
            explanation=item.explanation,
        )

    def advance(self) -> Optional[Result]:
        """Move past the answered item; returns the Result once the last item is passed."""
        self._require_in_progress("advance")
        if not self.has_answered_current:
            raise StateError(f"item {self._index} has no answer yet")
        if self._index < len(self._items) - 1:
            self._index += 1
            return None
        self._result = score(self._items, self._answers, self.thresholds)
        self._state = SessionState.COMPLETED
        self.completed_at = _utcnow()
        log.info(
            "session %s completed: %d/%d correct, passed=%s",
            self.session_type, self._result.correct, self._result.total, self._result.passed,
        )
        return self._result

    # ---- persistence ----
    def to_dict(self) -> Dict[str, object]:
        """JSON-friendly snapshot; enough to resume with ``from_dict``."""
        return {
            "session_type": self.session_type,
            "state": self._state.value,
            "thresholds": {cat.value: req for cat, req in self.thresholds.items()},
            "items": [it.to_dict() for it in self._items],
            "answers": list(self._answers),
            "current_index": self._index,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "PracticeSession":
        try:
            sess = cls(data["thresholds"], str(data.get("session_type") or "custom"))  # type: ignore[arg-type]
            state = SessionState(data.get("state") or SessionState.NOT_STARTED.value)
            items = tuple(Item.from_dict(r) for r in data.get("items") or [])  # type: ignore[union-attr]
            answers = [int(a) for a in data.get("answers") or []]  # type: ignore[union-attr]
            index = int(data.get("current_index") or 0)  # type: ignore[arg-type]
            started = _parse_ts(data.get("started_at"))
            completed = _parse_ts(data.get("completed_at"))
            items = ItemPool(items).items
        except (KeyError, TypeError, ValueError) as exc:
            raise StateError(f"malformed session snapshot: {exc}") from exc

        if state == SessionState.NOT_STARTED:
            if items or answers:
                raise StateError("not_started snapshot must not carry items or answers")
            return sess
        if not items:
            raise StateError(f"{state.value} snapshot has no items")
        missing = sess._missing_thresholds(items)
        if missing:
            raise StateError(f"snapshot has no pass mark for: {', '.join(missing)}")
        if not 0 <= index < len(items):
            raise StateError(f"current_index {index} out of range for {len(items)} items")
        if len(answers) not in (index, index + 1):
            raise StateError(f"{len(answers)} answers inconsistent with current_index {index}")
        for pos, ans in enumerate(answers):
            if not 0 <= ans < len(items[pos].options):
                raise StateError(f"answer {ans} at position {pos} out of range")
        if state == SessionState.COMPLETED and (len(answers) != len(items) or index != len(items) - 1):
            raise StateError("completed snapshot must answer every item")

        sess._items = items
        sess._answers = answers
        sess._index = index
        sess._state = state
        sess.started_at = started
        sess.completed_at = completed
        if state == SessionState.COMPLETED:
            sess._result = score(items, answers, sess.thresholds)
        return sess
