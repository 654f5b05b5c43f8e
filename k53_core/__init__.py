"""Test generation and scoring engine for K53 learner's licence practice."""
from .composer import build_session, compose_scenario_test, compose_session, get_session_type, scale_thresholds, session_types
from .errors import ConfigurationError, DataIntegrityError, QuotaShortfallWarning, StateError
from .question_bank import ItemPool, load_bank
from .sampler import fisher_yates, sample
from .scoring import score
from .session import AnswerFeedback, PracticeSession, SessionState
from .types import Category, CategoryResult, Item, ItemKind, Result, SessionType

__all__ = [
    "AnswerFeedback",
    "Category",
    "CategoryResult",
    "ConfigurationError",
    "DataIntegrityError",
    "Item",
    "ItemKind",
    "ItemPool",
    "PracticeSession",
    "QuotaShortfallWarning",
    "Result",
    "SessionState",
    "SessionType",
    "StateError",
    "build_session",
    "compose_scenario_test",
    "compose_session",
    "fisher_yates",
    "get_session_type",
    "load_bank",
    "sample",
    "scale_thresholds",
    "score",
    "session_types",
]
