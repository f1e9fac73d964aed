"""Plain data types exchanged between the engine and its collaborators.

These are deliberately free of any persistence concern. The SQLAlchemy rows
in :mod:`closer.db.models` are converted to and from these types by the
repository layer.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class CardType(str, Enum):
    """Kind of drill card."""
    VOCABULARY = "vocabulary"
    GRAMMAR = "grammar"


class GameMode(str, Enum):
    """Which queue a play session was served from."""
    NATIONAL = "national"
    FOR_YOU = "for_you"
    VOCAB = "vocab"


@dataclass(frozen=True)
class Card:
    """A four-option drill question."""
    id: str
    prompt: str
    options: Tuple[str, str, str, str]
    correct_index: int
    card_type: CardType = CardType.VOCABULARY
    category: Optional[str] = None
    difficulty: Optional[str] = None
    explanation: Optional[str] = None
    created_at: Optional[datetime] = None

    def is_correct(self, choice_index: int) -> bool:
        return choice_index == self.correct_index


@dataclass(frozen=True)
class ReviewState:
    """Spaced-repetition progress for one (learner, card) pair."""
    stage: int
    last_reviewed_at: datetime
    next_review_at: datetime
    memory_strength: float
    correct_count: int = 0


@dataclass(frozen=True)
class AnswerRecord:
    """One logged answer, as fed to the weakness selector."""
    category: str
    correct: bool
    card_id: Optional[str] = None
    response_time_ms: Optional[int] = None
    answered_at: Optional[datetime] = None


@dataclass(frozen=True)
class RunResult:
    """Outcome of a completed play session."""
    learner_id: str
    score: int
    max_combo: int
    correct_rate: float
    elapsed_ms: int
    mode: GameMode = GameMode.NATIONAL
    rank: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class PlayQuota:
    """Free-play bookkeeping for one learner."""
    first_use_at: Optional[datetime] = None
    play_date: Optional[str] = None
    play_count: int = 0


@dataclass(frozen=True)
class VocabularyEntry:
    """A word a learner registered from an explanation."""
    word: str
    meanings: Tuple[str, ...]
    source_card_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
