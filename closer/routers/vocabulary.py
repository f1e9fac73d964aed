"""Per-learner word registration for the vocabulary mode."""
from typing import List, Optional
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session
from closer.constants import ANONYMOUS_LEARNER_ID, ANSWER_SUBMISSION_RATE_LIMIT, VOCAB_MAX_MEANINGS
from closer.db.database import get_db
from closer.db.repository import SqlVocabularyStore
from closer.logging_config import get_logger
from closer.models import VocabularyEntry, utcnow
from closer.rate_limit import limiter
from closer.routers.serializers import vocabulary_to_dict

logger = get_logger(__name__)
router = APIRouter(prefix="/api/vocabulary", tags=["vocabulary"])


class WordRegistration(BaseModel):
    """Request body for registering a word."""
    learner_id: str = Field(..., min_length=1, max_length=64)
    word: str = Field(..., min_length=1, max_length=128)
    meanings: List[str]
    source_card_id: Optional[str] = Field(None, max_length=64)

    @field_validator('word')
    @classmethod
    def normalize_word(cls, v):
        """Words are stored trimmed and lower-cased."""
        word = v.strip().lower()
        if not word:
            raise ValueError("word must not be blank")
        return word

    @field_validator('meanings')
    @classmethod
    def limit_meanings(cls, v):
        return v[:VOCAB_MAX_MEANINGS]


@router.post("")
@limiter.limit(ANSWER_SUBMISSION_RATE_LIMIT)
async def register_word(
    request: Request,
    body: WordRegistration,
    db: Session = Depends(get_db)
):
    """Register a word; registering it again replaces its meanings."""
    SqlVocabularyStore(db).register(body.learner_id, VocabularyEntry(
        word=body.word,
        meanings=tuple(body.meanings),
        source_card_id=body.source_card_id,
        created_at=utcnow(),
    ))
    db.commit()
    logger.debug(f"Registered word '{body.word}'", extra={"learner_id": body.learner_id})
    return {"ok": True}


@router.get("")
async def list_words(learner_id: Optional[str] = None, db: Session = Depends(get_db)):
    """Registered words, newest first. Signed-out learners have none."""
    if not learner_id or learner_id == ANONYMOUS_LEARNER_ID:
        return []
    return [vocabulary_to_dict(entry) for entry in SqlVocabularyStore(db).words(learner_id)]
