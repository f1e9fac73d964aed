"""Weak-category detection and the "for you" question mix."""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from closer.balance import DEFAULT_BALANCE, GameBalance
from closer.constants import DEFAULT_CATEGORY
from closer.logging_config import get_logger
from closer.models import AnswerRecord, Card

logger = get_logger(__name__)

HistoryItem = Union[AnswerRecord, Tuple[str, bool]]


@dataclass
class CategoryAccuracy:
    """Answer tally for one category."""
    category: str
    correct: int = 0
    total: int = 0

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0


def _unpack(item: HistoryItem) -> Tuple[str, bool]:
    if isinstance(item, AnswerRecord):
        return item.category or DEFAULT_CATEGORY, item.correct
    category, correct = item
    return category or DEFAULT_CATEGORY, bool(correct)


def aggregate_category_accuracy(history: Iterable[HistoryItem]) -> Dict[str, CategoryAccuracy]:
    """
    Tally answers per category.

    The result keeps the order in which categories first appear in the
    history, so a most-recent-first history yields most-recent-first
    categories.

    Args:
        history: AnswerRecord objects or (category, correct) pairs

    Returns:
        Dict of category -> CategoryAccuracy
    """
    by_category: Dict[str, CategoryAccuracy] = {}
    for item in history:
        category, correct = _unpack(item)
        tally = by_category.setdefault(category, CategoryAccuracy(category=category))
        tally.total += 1
        if correct:
            tally.correct += 1
    return by_category


def select_weak_categories(
    history: Iterable[HistoryItem],
    min_samples: Optional[int] = None,
    accuracy_threshold: Optional[float] = None,
    max_categories: Optional[int] = None,
    balance: GameBalance = DEFAULT_BALANCE
) -> List[str]:
    """
    Pick the categories a learner keeps getting wrong.

    A category qualifies with at least ``min_samples`` attempts and an
    accuracy strictly below ``accuracy_threshold``. An empty list means the
    caller should serve the unbiased pool.

    Args:
        history: Answer history, most recent first
        min_samples: Minimum attempts (default 3)
        accuracy_threshold: Accuracy ceiling, exclusive (default 0.6)
        max_categories: Maximum categories returned (default 5)
        balance: Game balance supplying the defaults

    Returns:
        Up to max_categories category names, in history order
    """
    if min_samples is None:
        min_samples = balance.weak_min_samples
    if accuracy_threshold is None:
        accuracy_threshold = balance.weak_accuracy_threshold
    if max_categories is None:
        max_categories = balance.weak_max_categories

    weak = [
        tally.category
        for tally in aggregate_category_accuracy(history).values()
        if tally.total >= min_samples and tally.accuracy < accuracy_threshold
    ]
    return weak[:max(0, max_categories)]


def _newest_first(cards: Sequence[Card]) -> List[Card]:
    # Cards without a timestamp sort last; ties keep their input order
    return sorted(cards, key=lambda card: card.created_at or datetime.min, reverse=True)


def mix_for_you_questions(
    cards: Sequence[Card],
    history: Iterable[HistoryItem],
    limit: int,
    balance: GameBalance = DEFAULT_BALANCE
) -> List[Card]:
    """
    Build a question list biased toward the learner's weak categories.

    Weak-category cards come first (newest first), then the rest of the
    pool fills the remaining slots. With no weak category the pool is
    served newest first.

    Args:
        cards: Candidate cards
        history: Learner's answer history, most recent first
        limit: Number of cards wanted
        balance: Game balance

    Returns:
        At most ``limit`` cards
    """
    if limit <= 0:
        return []

    pool = _newest_first(cards)
    weak_categories = select_weak_categories(history, balance=balance)
    if not weak_categories:
        return pool[:limit]

    weak_set = set(weak_categories)
    weak_cards = [card for card in pool if card.category in weak_set][:limit]
    if not weak_cards:
        return pool[:limit]

    chosen_ids = {card.id for card in weak_cards}
    others = [card for card in pool if card.id not in chosen_ids]
    logger.debug(
        f"For-you mix: {len(weak_cards)} weak cards from {weak_categories}, "
        f"{max(0, limit - len(weak_cards))} slots from the general pool"
    )
    return (weak_cards + others)[:limit]
