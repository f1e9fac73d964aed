"""SQLAlchemy implementations of the storage ports.

Each store wraps a session owned by the caller. Stores flush but never
commit; the request handler decides when a unit of work is complete.
Database errors propagate to the caller.
"""
from typing import List, Optional, Sequence

from sqlalchemy import desc
from sqlalchemy.orm import Session

from closer.db.models import AnswerLogRow, CardRow, PlayQuotaRow, ReviewStateRow, RunRow, VocabularyRow
from closer.models import (
    AnswerRecord, Card, CardType, GameMode, PlayQuota, ReviewState, RunResult, VocabularyEntry
)


def card_from_row(row: CardRow) -> Card:
    """
    Convert a card row, padding short option lists with empty strings.

    Unknown card types are read as vocabulary.
    """
    options = list(row.options or [])[:4]
    options += [""] * (4 - len(options))
    try:
        card_type = CardType(row.card_type)
    except ValueError:
        card_type = CardType.VOCABULARY
    return Card(
        id=row.id,
        prompt=row.prompt,
        options=tuple(options),
        correct_index=row.correct_index,
        card_type=card_type,
        category=row.category,
        difficulty=row.difficulty,
        explanation=row.explanation,
        created_at=row.created_at,
    )


class CardRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, card_id: str) -> Optional[Card]:
        row = self.db.get(CardRow, card_id)
        return card_from_row(row) if row else None

    def all(self, card_type: Optional[CardType] = None) -> List[Card]:
        query = self.db.query(CardRow)
        if card_type is not None:
            query = query.filter(CardRow.card_type == card_type.value)
        return [card_from_row(row) for row in query.order_by(desc(CardRow.created_at), CardRow.id).all()]

    def add_all(self, cards: Sequence[Card]) -> None:
        for card in cards:
            self.db.add(CardRow(
                id=card.id,
                prompt=card.prompt,
                options=list(card.options),
                correct_index=card.correct_index,
                card_type=card.card_type.value,
                category=card.category,
                difficulty=card.difficulty,
                explanation=card.explanation,
                **({"created_at": card.created_at} if card.created_at else {}),
            ))
        self.db.flush()


class SqlReviewStateStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, learner_id: str, card_id: str) -> Optional[ReviewState]:
        row = self.db.get(ReviewStateRow, (learner_id, card_id))
        if row is None:
            return None
        return ReviewState(
            stage=row.stage,
            last_reviewed_at=row.last_reviewed_at,
            next_review_at=row.next_review_at,
            memory_strength=row.memory_strength,
            correct_count=row.correct_count,
        )

    def put(self, learner_id: str, card_id: str, state: ReviewState) -> None:
        row = self.db.get(ReviewStateRow, (learner_id, card_id))
        if row is None:
            row = ReviewStateRow(learner_id=learner_id, card_id=card_id)
            self.db.add(row)
        row.stage = state.stage
        row.last_reviewed_at = state.last_reviewed_at
        row.next_review_at = state.next_review_at
        row.memory_strength = state.memory_strength
        row.correct_count = state.correct_count
        self.db.flush()


class SqlAnswerLogStore:
    def __init__(self, db: Session):
        self.db = db

    def append(self, learner_id: str, record: AnswerRecord) -> None:
        self.db.add(AnswerLogRow(
            learner_id=learner_id,
            card_id=record.card_id,
            category=record.category,
            correct=record.correct,
            response_time_ms=record.response_time_ms,
            **({"answered_at": record.answered_at} if record.answered_at else {}),
        ))
        self.db.flush()

    def history(self, learner_id: str) -> List[AnswerRecord]:
        rows = self.db.query(AnswerLogRow).filter(
            AnswerLogRow.learner_id == learner_id
        ).order_by(desc(AnswerLogRow.answered_at), desc(AnswerLogRow.id)).all()
        return [
            AnswerRecord(
                category=row.category,
                correct=row.correct,
                card_id=row.card_id,
                response_time_ms=row.response_time_ms,
                answered_at=row.answered_at,
            )
            for row in rows
        ]


def run_from_row(row: RunRow) -> RunResult:
    return RunResult(
        learner_id=row.learner_id,
        score=row.score,
        max_combo=row.max_combo,
        correct_rate=row.correct_rate,
        elapsed_ms=row.elapsed_ms,
        mode=GameMode(row.mode),
        rank=row.rank,
        created_at=row.created_at,
    )


class SqlRunResultStore:
    def __init__(self, db: Session):
        self.db = db

    def add(self, result: RunResult) -> None:
        self.db.add(RunRow(
            learner_id=result.learner_id,
            score=result.score,
            max_combo=result.max_combo,
            correct_rate=result.correct_rate,
            elapsed_ms=result.elapsed_ms,
            mode=result.mode.value,
            rank=result.rank,
            created_at=result.created_at,
        ))
        self.db.flush()

    def ranked(self, limit: int) -> List[RunResult]:
        rows = self.db.query(RunRow).order_by(
            desc(RunRow.score), RunRow.elapsed_ms, RunRow.id
        ).limit(limit).all()
        return [run_from_row(row) for row in rows]


class SqlPlayQuotaStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, learner_id: str) -> Optional[PlayQuota]:
        row = self.db.get(PlayQuotaRow, learner_id)
        if row is None:
            return None
        return PlayQuota(first_use_at=row.first_use_at, play_date=row.play_date, play_count=row.play_count)

    def put(self, learner_id: str, quota: PlayQuota) -> None:
        row = self.db.get(PlayQuotaRow, learner_id)
        if row is None:
            row = PlayQuotaRow(learner_id=learner_id)
            self.db.add(row)
        row.first_use_at = quota.first_use_at
        row.play_date = quota.play_date
        row.play_count = quota.play_count
        self.db.flush()


class SqlVocabularyStore:
    def __init__(self, db: Session):
        self.db = db

    def register(self, learner_id: str, entry: VocabularyEntry) -> None:
        """Insert the word, or replace the meanings of an already registered one."""
        row = self.db.get(VocabularyRow, (learner_id, entry.word))
        if row is None:
            row = VocabularyRow(learner_id=learner_id, word=entry.word, created_at=entry.created_at)
            self.db.add(row)
        row.meanings = list(entry.meanings)
        row.source_card_id = entry.source_card_id
        self.db.flush()

    def words(self, learner_id: str) -> List[VocabularyEntry]:
        rows = self.db.query(VocabularyRow).filter(
            VocabularyRow.learner_id == learner_id
        ).order_by(desc(VocabularyRow.created_at), VocabularyRow.word).all()
        return [
            VocabularyEntry(
                word=row.word,
                meanings=tuple(row.meanings or []),
                source_card_id=row.source_card_id,
                created_at=row.created_at,
            )
            for row in rows
        ]
