"""Live-play endpoints: answer logging, question fetch, runs and quota."""
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session
from closer.balance import load_balance
from closer.constants import (
    DEFAULT_CATEGORY,
    QUESTIONS_DEFAULT_LIMIT,
    QUESTIONS_MAX_LIMIT,
    QUESTIONS_MIN_LIMIT,
    ANSWER_SUBMISSION_RATE_LIMIT,
    RUN_SUBMISSION_RATE_LIMIT
)
from closer.db.database import get_db
from closer.db.repository import (
    CardRepository,
    SqlAnswerLogStore,
    SqlPlayQuotaStore,
    SqlRunResultStore
)
from closer.logging_config import get_logger
from closer.models import AnswerRecord, CardType, GameMode, RunResult, utcnow
from closer.rate_limit import limiter
from closer.routers.serializers import card_to_dict, run_to_dict
from closer.services.leaderboard import clamp_limit
from closer.services.play_quota import can_play_free, plays_today, register_play, within_free_trial
from closer.services.scoring import rank_from_run
from closer.services.weakness import mix_for_you_questions

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["play"])


class AnswerLogRequest(BaseModel):
    """Request body for logging one answer."""
    learner_id: str = Field(..., min_length=1, max_length=64)
    card_id: str = Field(..., min_length=1, max_length=64)
    correct: bool
    response_time_ms: int = Field(..., ge=0)
    category: Optional[str] = Field(None, max_length=64)

    @field_validator('category')
    @classmethod
    def default_category(cls, v):
        """Blank categories are logged under the default category."""
        if v is None or v.strip() == '':
            return DEFAULT_CATEGORY
        return v.strip()


class RunSubmission(BaseModel):
    """Request body for a finished run."""
    learner_id: str = Field(..., min_length=1, max_length=64)
    score: int = Field(..., ge=0)
    elapsed_ms: int = Field(..., ge=0)
    max_combo: int = Field(0, ge=0)
    correct_rate: float = Field(0.0, ge=0.0, le=1.0)
    mode: GameMode = GameMode.NATIONAL


@router.post("/log")
@limiter.limit(ANSWER_SUBMISSION_RATE_LIMIT)
async def log_answer(
    request: Request,
    body: AnswerLogRequest,
    db: Session = Depends(get_db)
):
    """Append one answer to the learner's history."""
    SqlAnswerLogStore(db).append(body.learner_id, AnswerRecord(
        category=body.category or DEFAULT_CATEGORY,
        correct=body.correct,
        card_id=body.card_id,
        response_time_ms=body.response_time_ms,
        answered_at=utcnow(),
    ))
    db.commit()
    return {"ok": True}


@router.get("/questions")
async def get_questions(
    mode: GameMode = GameMode.NATIONAL,
    learner_id: Optional[str] = None,
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """
    Fetch a question list.

    - national: newest cards
    - vocab: newest vocabulary cards only
    - for_you: cards from the learner's weak categories first, topped up
      from the general pool
    """
    size = clamp_limit(limit, QUESTIONS_DEFAULT_LIMIT, QUESTIONS_MIN_LIMIT, QUESTIONS_MAX_LIMIT)
    repository = CardRepository(db)

    if mode == GameMode.VOCAB:
        return [card_to_dict(card) for card in repository.all(CardType.VOCABULARY)[:size]]

    cards = repository.all()
    if mode == GameMode.FOR_YOU and learner_id:
        history = SqlAnswerLogStore(db).history(learner_id)
        selected = mix_for_you_questions(cards, history, size, balance=load_balance())
        logger.debug(
            f"Served {len(selected)} for-you questions",
            extra={"learner_id": learner_id}
        )
    else:
        selected = cards[:size]

    return [card_to_dict(card) for card in selected]


@router.post("/runs")
@limiter.limit(RUN_SUBMISSION_RATE_LIMIT)
async def submit_run(
    request: Request,
    body: RunSubmission,
    db: Session = Depends(get_db)
):
    """Record a finished run. The rank is computed here, not by the client."""
    balance = load_balance()
    rank = rank_from_run(body.score, body.max_combo, body.correct_rate, balance)
    result = RunResult(
        learner_id=body.learner_id,
        score=body.score,
        max_combo=body.max_combo,
        correct_rate=body.correct_rate,
        elapsed_ms=body.elapsed_ms,
        mode=body.mode,
        rank=rank.value if rank else None,
        created_at=utcnow(),
    )
    SqlRunResultStore(db).add(result)
    db.commit()
    logger.info(
        f"Run stored: score={result.score}, rank={result.rank}",
        extra={"learner_id": body.learner_id}
    )
    return {"ok": True, "rank": result.rank}


@router.get("/runs")
async def get_ranking(
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Leaderboard: score descending, ties broken by faster time."""
    runs = SqlRunResultStore(db).ranked(clamp_limit(limit))
    return [run_to_dict(run) for run in runs]


@router.get("/quota/{learner_id}")
async def get_quota(learner_id: str, db: Session = Depends(get_db)):
    """Whether the learner may start a free session now."""
    now = utcnow()
    balance = load_balance()
    quota = SqlPlayQuotaStore(db).get(learner_id)
    return {
        "learner_id": learner_id,
        "can_play": can_play_free(quota, now, balance),
        "in_free_trial": within_free_trial(quota, now, balance),
        "plays_today": plays_today(quota, now),
    }


@router.post("/quota/{learner_id}/play")
async def record_play(learner_id: str, db: Session = Depends(get_db)):
    """Count one started session against the learner's quota."""
    store = SqlPlayQuotaStore(db)
    quota = register_play(store.get(learner_id), utcnow())
    store.put(learner_id, quota)
    db.commit()
    return {"learner_id": learner_id, "plays_today": quota.play_count}
