"""Plain-dict views of engine types for JSON responses."""
from typing import Any, Dict

from closer.models import Card, RunResult, VocabularyEntry


def card_to_dict(card: Card) -> Dict[str, Any]:
    return {
        "id": card.id,
        "prompt": card.prompt,
        "options": list(card.options),
        "correct_index": card.correct_index,
        "type": card.card_type.value,
        "category": card.category,
        "difficulty": card.difficulty,
        "explanation": card.explanation,
    }


def run_to_dict(run: RunResult) -> Dict[str, Any]:
    return {
        "learner_id": run.learner_id,
        "score": run.score,
        "max_combo": run.max_combo,
        "correct_rate": run.correct_rate,
        "elapsed_ms": run.elapsed_ms,
        "mode": run.mode.value,
        "rank": run.rank,
        "created_at": run.created_at.isoformat() if run.created_at else None,
    }


def vocabulary_to_dict(entry: VocabularyEntry) -> Dict[str, Any]:
    return {
        "word": entry.word,
        "meanings": list(entry.meanings),
        "source_card_id": entry.source_card_id,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }
