"""SQLAlchemy models for the Closer drill engine."""
from sqlalchemy import Column, Integer, String, Text, DateTime, Float, Boolean, JSON, CheckConstraint, Index
from closer.db.database import Base
from closer.models import utcnow


class CardRow(Base):
    """Four-option drill card authored by the content pipeline."""
    __tablename__ = "cards"

    id = Column(String(64), primary_key=True)
    prompt = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # list of 4 strings
    correct_index = Column(Integer, nullable=False)
    card_type = Column(String(16), CheckConstraint("card_type IN ('vocabulary', 'grammar')"), nullable=False, default="vocabulary")
    category = Column(String(64), nullable=True)
    difficulty = Column(String(8), nullable=True)  # '500', '700', '900'
    explanation = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_card_category_created', 'category', 'created_at'),
    )


class ReviewStateRow(Base):
    """Per-learner per-card spaced repetition state."""
    __tablename__ = "review_states"

    learner_id = Column(String(64), primary_key=True)
    card_id = Column(String(64), primary_key=True)
    stage = Column(Integer, CheckConstraint("stage BETWEEN 1 AND 5"), nullable=False, default=1)
    last_reviewed_at = Column(DateTime, nullable=False)
    next_review_at = Column(DateTime, nullable=False)
    memory_strength = Column(Float, nullable=False, default=0.0)
    correct_count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index('idx_learner_next_review', 'learner_id', 'next_review_at'),
    )


class AnswerLogRow(Base):
    """One answered question, used for weak-category detection."""
    __tablename__ = "answer_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    learner_id = Column(String(64), nullable=False)
    card_id = Column(String(64), nullable=True)
    category = Column(String(64), nullable=False)
    correct = Column(Boolean, nullable=False)
    response_time_ms = Column(Integer, nullable=True)
    answered_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_learner_answered', 'learner_id', 'answered_at'),
    )


class RunRow(Base):
    """Completed play session, used for the leaderboard."""
    __tablename__ = "runs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    learner_id = Column(String(64), nullable=False)
    score = Column(Integer, nullable=False)
    max_combo = Column(Integer, nullable=False, default=0)
    correct_rate = Column(Float, nullable=False, default=0.0)
    elapsed_ms = Column(Integer, nullable=False)
    mode = Column(String(16), nullable=False, default="national")
    rank = Column(String(1), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_run_score_time', 'score', 'elapsed_ms'),
    )


class PlayQuotaRow(Base):
    """Free-play bookkeeping per learner."""
    __tablename__ = "play_quotas"

    learner_id = Column(String(64), primary_key=True)
    first_use_at = Column(DateTime, nullable=True)
    play_date = Column(String(10), nullable=True)  # ISO date of the last play
    play_count = Column(Integer, nullable=False, default=0)


class VocabularyRow(Base):
    """Word registered by a learner; one row per learner and word."""
    __tablename__ = "learner_vocabulary"

    learner_id = Column(String(64), primary_key=True)
    word = Column(String(128), primary_key=True)  # stored trimmed and lower-cased
    meanings = Column(JSON, nullable=False)  # up to 3 strings
    source_card_id = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_vocabulary_learner_created', 'learner_id', 'created_at'),
    )
