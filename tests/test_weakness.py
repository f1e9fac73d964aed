"""Unit tests for weak-category selection and the for-you mix."""
from datetime import datetime, timedelta

from closer.models import AnswerRecord, Card, CardType
from closer.services.weakness import (
    aggregate_category_accuracy,
    mix_for_you_questions,
    select_weak_categories
)


def make_history(tallies):
    """Build (category, correct) pairs from {category: (correct, total)}."""
    history = []
    for category, (correct, total) in tallies.items():
        history += [(category, True)] * correct
        history += [(category, False)] * (total - correct)
    return history


def make_card(card_id, category, age_days, base):
    return Card(
        id=card_id,
        prompt=f"prompt {card_id}",
        options=("a", "b", "c", "d"),
        correct_index=0,
        card_type=CardType.GRAMMAR,
        category=category,
        created_at=base - timedelta(days=age_days),
    )


class TestAggregate:
    """Tests for per-category tallies."""

    def test_counts_and_accuracy(self):
        """Tallies count correct answers and attempts per category."""
        tallies = aggregate_category_accuracy(make_history({"A": (2, 5), "B": (8, 10)}))
        assert tallies["A"].correct == 2
        assert tallies["A"].total == 5
        assert tallies["A"].accuracy == 0.4
        assert tallies["B"].accuracy == 0.8

    def test_preserves_first_seen_order(self):
        """Categories keep the order they first appear in."""
        history = [("C", True), ("A", False), ("C", False), ("B", True)]
        assert list(aggregate_category_accuracy(history)) == ["C", "A", "B"]

    def test_accepts_answer_records(self):
        """AnswerRecords work; blank categories count as other."""
        history = [
            AnswerRecord(category="tense", correct=False),
            AnswerRecord(category="", correct=True),
        ]
        tallies = aggregate_category_accuracy(history)
        assert tallies["tense"].total == 1
        assert tallies["other"].correct == 1


class TestSelectWeakCategories:
    """Tests for the weakness heuristic."""

    def test_reference_example(self):
        """B is accurate enough and C has too few attempts."""
        history = make_history({"A": (2, 5), "B": (8, 10), "C": (1, 2)})
        assert select_weak_categories(history, min_samples=3, accuracy_threshold=0.6) == ["A"]

    def test_threshold_is_exclusive(self):
        """Accuracy exactly at the threshold is not weak."""
        history = make_history({"A": (3, 5)})
        assert select_weak_categories(history) == []

    def test_min_samples_is_inclusive(self):
        """Exactly the minimum number of attempts qualifies."""
        history = make_history({"A": (0, 3)})
        assert select_weak_categories(history) == ["A"]

    def test_max_categories_keeps_history_order(self):
        """Only the first weak categories are kept."""
        history = make_history({name: (0, 3) for name in "FEDCBA"})
        assert select_weak_categories(history, max_categories=5) == ["F", "E", "D", "C", "B"]
        assert select_weak_categories(history, max_categories=2) == ["F", "E"]

    def test_empty_history_returns_empty_list(self):
        """No history means no weak categories."""
        assert select_weak_categories([]) == []


class TestForYouMix:
    """Tests for biasing question delivery toward weak categories."""

    def setup_method(self):
        base = datetime(2026, 1, 1)
        self.cards = [
            make_card("p1", "prepositions", 1, base),
            make_card("t1", "tense", 2, base),
            make_card("p2", "prepositions", 3, base),
            make_card("v1", "voice", 4, base),
            make_card("t2", "tense", 5, base),
        ]

    def test_weak_cards_first(self):
        """Weak-category cards come first, newest first, then the rest."""
        history = make_history({"tense": (0, 4), "voice": (5, 5)})
        mixed = mix_for_you_questions(self.cards, history, limit=4)
        assert [card.id for card in mixed] == ["t1", "t2", "p1", "p2"]

    def test_no_weak_category_serves_newest(self):
        """Without weak categories the newest cards are served."""
        mixed = mix_for_you_questions(self.cards, [], limit=3)
        assert [card.id for card in mixed] == ["p1", "t1", "p2"]

    def test_weak_category_without_cards_falls_back(self):
        """A weak category with no cards falls back to the newest pool."""
        history = make_history({"articles": (0, 5)})
        mixed = mix_for_you_questions(self.cards, history, limit=2)
        assert [card.id for card in mixed] == ["p1", "t1"]

    def test_limit_respected(self):
        """Never more cards than the limit."""
        history = make_history({"tense": (0, 4)})
        assert len(mix_for_you_questions(self.cards, history, limit=1)) == 1
        assert mix_for_you_questions(self.cards, history, limit=0) == []
