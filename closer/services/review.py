"""Spaced-repetition review service.

Wires the retention model to an injected review-state store: reads the
prior state, grades the answer, writes the new state back. Answers for the
same learner must be fed in chronological order.
"""
import random
from datetime import datetime
from typing import List, Optional, Sequence

from closer.balance import DEFAULT_BALANCE, GameBalance
from closer.logging_config import get_logger
from closer.models import Card, ReviewState, utcnow
from closer.services.retention import (
    apply_review,
    coerce_review_state,
    current_retention,
    is_due,
    is_fast_answer
)
from closer.services.stage_ladder import stage_label
from closer.services.storage import ReviewStateStore

logger = get_logger(__name__)


class ReviewService:
    """Applies review answers and builds review queues for one store."""

    def __init__(self, store: ReviewStateStore, balance: GameBalance = DEFAULT_BALANCE):
        self.store = store
        self.balance = balance

    def get_state(self, learner_id: str, card_id: str) -> Optional[ReviewState]:
        """Stored state, with unreadable states treated as never reviewed."""
        return coerce_review_state(self.store.get(learner_id, card_id), self.balance)

    def record_answer(
        self,
        learner_id: str,
        card: Card,
        correct: bool,
        response_time_ms: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> ReviewState:
        """
        Grade one answer and persist the new state.

        Args:
            learner_id: Learner identifier
            card: Card that was answered
            correct: Whether the answer was correct (timeouts are misses)
            response_time_ms: Answer latency, used for the fast-answer jump
            now: Time of the answer (defaults to the current UTC time)

        Returns:
            The new ReviewState
        """
        now = now or utcnow()
        prior = self.get_state(learner_id, card.id)
        fast = correct and is_fast_answer(response_time_ms, card.card_type, self.balance)
        state = apply_review(prior, correct, now, fast_answer=fast, balance=self.balance)
        self.store.put(learner_id, card.id, state)

        logger.debug(
            f"Review recorded: correct={correct}, fast={fast}, "
            f"stage {prior.stage if prior else None} -> {state.stage}",
            extra={"learner_id": learner_id, "card_id": card.id}
        )
        return state

    def due_cards(
        self,
        learner_id: str,
        cards: Sequence[Card],
        now: Optional[datetime] = None,
        rng: Optional[random.Random] = None
    ) -> List[Card]:
        """
        Build the review queue.

        Due cards (never reviewed, or past their review time) are shuffled.
        When nothing is due the first few cards are served instead so a
        session never starts empty.

        Args:
            learner_id: Learner identifier
            cards: Full card pool
            now: Reference time
            rng: Random source for the shuffle

        Returns:
            Cards to review
        """
        now = now or utcnow()
        rng = rng or random.Random()
        due = [card for card in cards if is_due(self.get_state(learner_id, card.id), now)]
        if not due:
            return list(cards[:self.balance.review_fallback_size])
        rng.shuffle(due)
        return due

    def progress(self, learner_id: str, card: Card, now: Optional[datetime] = None) -> dict:
        """Summary of one card's review state for display."""
        now = now or utcnow()
        state = self.get_state(learner_id, card.id)
        if state is None:
            return {
                "card_id": card.id,
                "scheduled": False,
                "stage": self.balance.min_stage,
                "label": stage_label(self.balance.min_stage, self.balance),
                "retention": 0.0,
                "due": True,
            }
        return {
            "card_id": card.id,
            "scheduled": True,
            "stage": state.stage,
            "label": stage_label(state.stage, self.balance),
            "retention": round(current_retention(state, now), 4),
            "memory_strength": state.memory_strength,
            "correct_count": state.correct_count,
            "next_review_at": state.next_review_at.isoformat(),
            "due": is_due(state, now),
        }
