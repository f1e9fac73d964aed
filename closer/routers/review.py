"""Spaced-repetition review endpoints."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from closer.balance import load_balance
from closer.constants import ANSWER_SUBMISSION_RATE_LIMIT, DEFAULT_CATEGORY
from closer.db.database import get_db
from closer.db.repository import CardRepository, SqlAnswerLogStore, SqlReviewStateStore
from closer.models import AnswerRecord, utcnow
from closer.rate_limit import limiter
from closer.routers.serializers import card_to_dict
from closer.services.review import ReviewService
from closer.services.survival import question_timeout_ms

router = APIRouter(prefix="/api/review", tags=["review"])


class ReviewAnswer(BaseModel):
    """Request body for a review answer. A missing choice means timeout."""
    card_id: str = Field(..., min_length=1, max_length=64)
    choice_index: Optional[int] = Field(None, ge=0, le=3)
    response_time_ms: int = Field(..., ge=0)


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(SqlReviewStateStore(db), load_balance())


@router.get("/{learner_id}/queue")
async def get_review_queue(
    learner_id: str,
    db: Session = Depends(get_db),
    service: ReviewService = Depends(get_review_service)
):
    """Cards due for review, shuffled, each with its answer window."""
    cards = CardRepository(db).all()
    queue = service.due_cards(learner_id, cards)
    return [
        {**card_to_dict(card), "timeout_ms": question_timeout_ms(card.card_type, service.balance)}
        for card in queue
    ]


@router.post("/{learner_id}/answer")
@limiter.limit(ANSWER_SUBMISSION_RATE_LIMIT)
async def submit_review_answer(
    request: Request,
    learner_id: str,
    body: ReviewAnswer,
    db: Session = Depends(get_db),
    service: ReviewService = Depends(get_review_service)
):
    """
    Grade a review answer and reschedule the card.

    The answer is also appended to the learner's history so it counts
    toward weak-category detection.
    """
    card = CardRepository(db).get(body.card_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Card not found")

    now = utcnow()
    timed_out = body.choice_index is None
    correct = not timed_out and card.is_correct(body.choice_index)

    state = service.record_answer(learner_id, card, correct, body.response_time_ms, now)
    SqlAnswerLogStore(db).append(learner_id, AnswerRecord(
        category=card.category or DEFAULT_CATEGORY,
        correct=correct,
        card_id=card.id,
        response_time_ms=body.response_time_ms,
        answered_at=now,
    ))
    db.commit()

    return {
        "correct": correct,
        "timed_out": timed_out,
        "correct_index": card.correct_index,
        "explanation": card.explanation,
        "stage": state.stage,
        "memory_strength": state.memory_strength,
        "correct_count": state.correct_count,
        "next_review_at": state.next_review_at.isoformat(),
    }


@router.get("/{learner_id}/progress")
async def get_review_progress(
    learner_id: str,
    db: Session = Depends(get_db),
    service: ReviewService = Depends(get_review_service)
):
    """Stage, retention and schedule for every card."""
    now = utcnow()
    return [service.progress(learner_id, card, now) for card in CardRepository(db).all()]
